"""LangGraph wiring for the live orchestration cycle."""

from interview_conductor.graph.graph import build_live_cycle_graph, route_cycle
from interview_conductor.graph.nodes import (
    make_note_taker_node,
    make_orchestrator_node,
    make_researcher_node,
    merge_research_view,
)
from interview_conductor.graph.state import LiveCycleState

__all__ = [
    "LiveCycleState",
    "build_live_cycle_graph",
    "make_note_taker_node",
    "make_orchestrator_node",
    "make_researcher_node",
    "merge_research_view",
    "route_cycle",
]
