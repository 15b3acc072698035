"""Shared fixtures for the interview conductor test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from interview_conductor.domain.entities import Plan, Question, Section
from interview_conductor.domain.enums import Importance, QuestionRole, Speaker
from interview_conductor.domain.values import TranscriptEntry
from interview_conductor.infrastructure.config import (
    CoordinatorConfig,
    NoteTakerConfig,
    OrchestratorConfig,
    ResearcherConfig,
)
from interview_conductor.infrastructure.llm.client import LangChainAgentClient
from interview_conductor.services.coordinator import AgentCoordinator
from interview_conductor.testing import FakeClock, MockStructuredChatModel


# ---------------------------------------------------------------------------
# Plan fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def plan() -> Plan:
    """Two sections, four questions.

    Plan order is q1 (P1), q2 (P2), q3 (P1), q4 (P3), so the priority scan
    order is q1, q3, q2, q4.
    """
    return Plan(
        topic="Early-stage venture investing",
        research_goal="Understand how seed investors evaluate founders",
        angle="Mistakes investors made and what they learned",
        target_seconds=600,
        sections=(
            Section(
                section_id="background",
                title="Background",
                importance=Importance.HIGH,
                estimated_seconds=180,
                questions=(
                    Question(
                        "q1",
                        "How did you get started in venture capital?",
                        priority=1,
                        notes_for_interviewer="Keep it light; this is the warm-up.",
                    ),
                    Question(
                        "q2",
                        "What was the very first investment you made?",
                        role=QuestionRole.FOLLOWUP,
                        priority=2,
                    ),
                ),
            ),
            Section(
                section_id="lessons",
                title="Lessons",
                importance=Importance.MEDIUM,
                estimated_seconds=300,
                questions=(
                    Question(
                        "q3",
                        "What is the biggest mistake founders make when raising money?",
                        priority=1,
                    ),
                    Question(
                        "q4",
                        "Which book changed how you think about startups?",
                        role=QuestionRole.FOLLOWUP,
                        priority=3,
                    ),
                ),
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Transcript helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def say() -> Callable[..., TranscriptEntry]:
    """Factory for final transcript entries with distinct timestamps."""
    counter = {"n": 0}

    def _say(text: str, speaker: Speaker = Speaker.USER) -> TranscriptEntry:
        counter["n"] += 1
        return TranscriptEntry(speaker=speaker, text=text, timestamp=float(counter["n"]))

    return _say


# ---------------------------------------------------------------------------
# Coordinator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_coordinator(
    clock: FakeClock,
) -> Callable[..., tuple[AgentCoordinator, MockStructuredChatModel]]:
    """Build a coordinator over a ``MockStructuredChatModel``.

    ``responses`` maps schema class names to queued responses; a schema with
    no queue fails every call.
    """

    def _make(
        responses: dict[str, list[Any]] | None = None,
        delay: float = 0.0,
        timeout: float | None = 5.0,
        note_taker_config: NoteTakerConfig | None = None,
        researcher_config: ResearcherConfig | None = None,
        orchestrator_config: OrchestratorConfig | None = None,
        coordinator_config: CoordinatorConfig | None = None,
    ) -> tuple[AgentCoordinator, MockStructuredChatModel]:
        model = MockStructuredChatModel(structured_responses=responses or {}, delay=delay)
        coordinator = AgentCoordinator.from_model(
            model,
            timeout=timeout,
            note_taker_config=note_taker_config,
            researcher_config=researcher_config,
            orchestrator_config=orchestrator_config,
            coordinator_config=coordinator_config,
            clock=clock,
        )
        return coordinator, model

    return _make


@pytest.fixture
def mock_client() -> Callable[..., tuple[LangChainAgentClient, MockStructuredChatModel]]:
    """Build a ``LangChainAgentClient`` over a ``MockStructuredChatModel``."""

    def _make(
        responses: dict[str, list[Any]] | list[Any] | None = None,
        delay: float = 0.0,
        timeout: float | None = 5.0,
    ) -> tuple[LangChainAgentClient, MockStructuredChatModel]:
        model = MockStructuredChatModel(structured_responses=responses or {}, delay=delay)
        return LangChainAgentClient(model, timeout=timeout), model

    return _make
