"""LangGraph state definition for one live orchestration cycle.

Defines ``LiveCycleState``, the ``TypedDict`` that flows through the cycle
graph.  Inputs are immutable snapshots taken by the coordinator before the
cycle starts; the agent nodes only write their own output keys, so the two
parallel branches never touch the same channel.  ``agent_errors`` is
append-only (``Annotated[list, operator.add]``) because both branches may
report into it in the same step.

Note: We intentionally do NOT use ``from __future__ import annotations`` because
LangGraph needs to resolve type hints at runtime via ``get_type_hints()``.
"""

import operator
from typing import Annotated, Any, TypedDict

from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import InterviewPhase
from interview_conductor.domain.values import (
    NotesState,
    OrchestratorDecision,
    ResearchItem,
    TranscriptEntry,
)


class LiveCycleState(TypedDict, total=False):
    """State flowing through the live cycle graph."""

    # -- Inputs (snapshotted by the coordinator)
    plan: Plan
    topic: str
    note_taker_window: tuple[TranscriptEntry, ...]
    researcher_window: tuple[TranscriptEntry, ...]
    orchestrator_window: tuple[TranscriptEntry, ...]
    prior_notes: NotesState
    accumulated_research: tuple[ResearchItem, ...]
    asked_question_ids: frozenset[str]
    recently_asked: tuple[str, ...]
    elapsed_seconds: float
    target_seconds: float
    phase_floor: InterviewPhase
    opening_cutoff: float

    # -- Control
    run_agents: bool
    reuse_decision: bool
    cached_decision: OrchestratorDecision | None

    # -- Outputs
    notes: NotesState
    new_research: list[ResearchItem]
    decision: OrchestratorDecision
    decision_reused: bool
    agent_errors: Annotated[list[dict[str, Any]], operator.add]
