"""Build the live cycle StateGraph.

``build_live_cycle_graph()`` wires the NoteTaker and Researcher as two
parallel branches that fan in to the Orchestrator::

    START --(run_agents)--> take_notes --+
          \\                              +--> decide --> END
           +------------> research ------+
          \\
           +--(skip agents)------------------> decide

The router sends the cycle straight to ``decide`` when there is nothing new
for the agents to read.
"""

from typing import Any

from langgraph.graph import END, START, StateGraph

from interview_conductor.graph.nodes import (
    make_note_taker_node,
    make_orchestrator_node,
    make_researcher_node,
)
from interview_conductor.graph.state import LiveCycleState
from interview_conductor.services.note_taker import NoteTaker
from interview_conductor.services.orchestrator import Orchestrator
from interview_conductor.services.researcher import Researcher


def route_cycle(state: dict[str, Any]) -> list[str] | str:
    """Fan out to both agents, or go straight to ``decide``."""
    if state.get("run_agents", True):
        return ["take_notes", "research"]
    return "decide"


def build_live_cycle_graph(
    note_taker: NoteTaker,
    researcher: Researcher,
    orchestrator: Orchestrator,
    checkpointer: Any | None = None,
) -> Any:
    """Build and compile the live cycle graph.

    Parameters
    ----------
    note_taker:
        Agent bound into the ``take_notes`` node.
    researcher:
        Agent bound into the ``research`` node.
    orchestrator:
        Agent bound into the ``decide`` node.
    checkpointer:
        Optional LangGraph checkpointer.

    Returns
    -------
    CompiledStateGraph
        A compiled graph ready for ``.ainvoke()``.
    """
    graph = StateGraph(LiveCycleState)

    graph.add_node("take_notes", make_note_taker_node(note_taker))
    graph.add_node("research", make_researcher_node(researcher))
    graph.add_node("decide", make_orchestrator_node(orchestrator))

    graph.add_conditional_edges(START, route_cycle, ["take_notes", "research", "decide"])
    # decide waits for both branches
    graph.add_edge(["take_notes", "research"], "decide")
    graph.add_edge("decide", END)

    compile_kwargs: dict[str, Any] = {}
    if checkpointer is not None:
        compile_kwargs["checkpointer"] = checkpointer

    return graph.compile(**compile_kwargs)
