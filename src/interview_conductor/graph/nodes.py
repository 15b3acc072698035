"""LangGraph node functions for the live cycle.

Each factory closes over one agent and returns an async node that takes a
``LiveCycleState`` and returns a partial update dict.  Nodes delegate to the
service classes rather than reimplementing any logic.

A node never lets an agent exception escape: it logs, reports the failure in
``agent_errors`` and writes the agent's fallback value instead.  Task
cancellation is not intercepted.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from interview_conductor.domain.values import ResearchItem
from interview_conductor.services.note_taker import NoteTaker
from interview_conductor.services.orchestrator import Orchestrator
from interview_conductor.services.researcher import Researcher

logger = logging.getLogger(__name__)

NodeFn = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


def _error_entry(agent: str, error: str) -> dict[str, Any]:
    return {"agent": agent, "error": error, "timestamp": time.time()}


def merge_research_view(
    accumulated: Sequence[ResearchItem],
    new: Sequence[ResearchItem],
) -> list[ResearchItem]:
    """Accumulated research followed by new items whose topic is not present yet."""
    merged = list(accumulated)
    seen = {item.topic_key for item in accumulated}
    for item in new:
        if item.topic_key in seen:
            continue
        seen.add(item.topic_key)
        merged.append(item)
    return merged


def make_note_taker_node(note_taker: NoteTaker) -> NodeFn:
    """Build the ``take_notes`` node.

    Reads ``note_taker_window``, ``prior_notes``, ``plan``.
    Writes ``notes`` and, on failure, appends to ``agent_errors``.
    """

    async def take_notes_node(state: dict[str, Any]) -> dict[str, Any]:
        prior = state["prior_notes"]
        try:
            notes = await note_taker.update_notes(
                state.get("note_taker_window", ()), prior, state["plan"]
            )
        except Exception as exc:
            logger.warning("take_notes_node: NoteTaker raised: %s", exc)
            return {"notes": prior, "agent_errors": [_error_entry(note_taker.name, str(exc))]}

        result: dict[str, Any] = {"notes": notes}
        if note_taker.last_error:
            result["agent_errors"] = [_error_entry(note_taker.name, note_taker.last_error)]
        return result

    return take_notes_node


def make_researcher_node(researcher: Researcher) -> NodeFn:
    """Build the ``research`` node.

    Reads ``researcher_window``, ``accumulated_research``, ``topic``.
    Writes ``new_research``.
    """

    async def research_node(state: dict[str, Any]) -> dict[str, Any]:
        try:
            items = await researcher.research(
                state.get("researcher_window", ()),
                state.get("accumulated_research", ()),
                state.get("topic", ""),
            )
        except Exception as exc:
            logger.warning("research_node: Researcher raised: %s", exc)
            return {"new_research": [], "agent_errors": [_error_entry(researcher.name, str(exc))]}
        return {"new_research": list(items)}

    return research_node


def make_orchestrator_node(orchestrator: Orchestrator) -> NodeFn:
    """Build the ``decide`` node.

    Runs after both agent branches (or directly when they were skipped).
    When ``reuse_decision`` is set and a cached decision exists, returns it
    unchanged.  Otherwise decides on the new notes and the accumulated
    research plus this cycle's new items.
    """

    async def decide_node(state: dict[str, Any]) -> dict[str, Any]:
        cached = state.get("cached_decision")
        if state.get("reuse_decision") and cached is not None:
            logger.debug("decide_node: reusing cached decision")
            return {"decision": cached, "decision_reused": True}

        plan = state["plan"]
        notes = state.get("notes") or state["prior_notes"]
        research = merge_research_view(
            state.get("accumulated_research", ()), state.get("new_research", [])
        )
        asked = state.get("asked_question_ids", frozenset())
        elapsed = state.get("elapsed_seconds", 0.0)
        target = state.get("target_seconds", 0.0)
        floor = state["phase_floor"]
        cutoff = state.get("opening_cutoff")
        try:
            decision = await orchestrator.decide(
                plan,
                notes,
                research,
                elapsed,
                target,
                asked,
                phase_floor=floor,
                transcript_window=state.get("orchestrator_window", ()),
                recently_asked=state.get("recently_asked", ()),
                opening_cutoff=cutoff,
            )
        except Exception as exc:
            logger.warning("decide_node: Orchestrator raised: %s", exc)
            decision = orchestrator.fallback(plan, asked, elapsed, target, floor, cutoff)
            return {
                "decision": decision,
                "decision_reused": False,
                "agent_errors": [_error_entry(orchestrator.name, str(exc))],
            }
        return {"decision": decision, "decision_reused": False}

    return decide_node
