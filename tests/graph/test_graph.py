"""Tests for the live cycle graph and its nodes."""

from __future__ import annotations

from typing import Any

import pytest

from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import InterviewPhase, ResearchKind, Speaker
from interview_conductor.domain.values import NotesState, ResearchItem, TranscriptEntry
from interview_conductor.graph.graph import build_live_cycle_graph, route_cycle
from interview_conductor.graph.nodes import (
    make_note_taker_node,
    make_orchestrator_node,
    make_researcher_node,
    merge_research_view,
)
from interview_conductor.services.note_taker import KeyIdeaOutput, NoteTaker, NoteTakerOutput
from interview_conductor.services.orchestrator import (
    NextQuestionOutput,
    Orchestrator,
    OrchestratorOutput,
)
from interview_conductor.services.researcher import Researcher


def _state(plan: Plan, **overrides: Any) -> dict[str, Any]:
    entry = TranscriptEntry(Speaker.USER, "We passed on Airbnb.", timestamp=1.0)
    state: dict[str, Any] = {
        "plan": plan,
        "topic": plan.topic,
        "note_taker_window": (entry,),
        "researcher_window": (entry,),
        "orchestrator_window": (entry,),
        "prior_notes": NotesState(),
        "accumulated_research": (),
        "asked_question_ids": frozenset(),
        "recently_asked": (),
        "elapsed_seconds": 200.0,
        "target_seconds": 600.0,
        "phase_floor": InterviewPhase.OPENING,
        "opening_cutoff": 0.15,
        "run_agents": True,
        "reuse_decision": False,
        "cached_decision": None,
        "agent_errors": [],
    }
    state.update(overrides)
    return state


def _agents(client: Any) -> tuple[NoteTaker, Researcher, Orchestrator]:
    return NoteTaker(client), Researcher(client), Orchestrator(client)


class TestRouting:
    def test_route(self) -> None:
        assert route_cycle({"run_agents": True}) == ["take_notes", "research"]
        assert route_cycle({"run_agents": False}) == "decide"
        assert route_cycle({}) == ["take_notes", "research"]

    def test_merge_research_view(self) -> None:
        old = [ResearchItem("Sequoia", ResearchKind.COMPANY, "old")]
        new = [
            ResearchItem("SEQUOIA", ResearchKind.COMPANY, "dup"),
            ResearchItem("a16z", ResearchKind.COMPANY, "new"),
        ]
        assert [r.summary for r in merge_research_view(old, new)] == ["old", "new"]


class TestNodes:
    @pytest.mark.asyncio
    async def test_note_taker_node_reports_failure(self, plan: Plan, mock_client) -> None:
        client, _ = mock_client({})
        node = make_note_taker_node(NoteTaker(client))
        prior = NotesState(possible_titles=("t",))
        out = await node(_state(plan, prior_notes=prior))
        assert out["notes"] is prior
        assert out["agent_errors"][0]["agent"] == "NoteTaker"

    @pytest.mark.asyncio
    async def test_note_taker_node_success(self, plan: Plan, mock_client) -> None:
        client, _ = mock_client(
            {"NoteTakerOutput": [NoteTakerOutput(key_ideas=[KeyIdeaOutput(text="Pass fast")])]}
        )
        out = await make_note_taker_node(NoteTaker(client))(_state(plan))
        assert [i.text for i in out["notes"].key_ideas] == ["Pass fast"]
        assert "agent_errors" not in out

    @pytest.mark.asyncio
    async def test_researcher_node_contains_exceptions(self, plan: Plan, mock_client) -> None:
        client, _ = mock_client({})
        researcher = Researcher(client)

        async def _boom(*args: Any) -> list[ResearchItem]:
            raise KeyError("bug")

        researcher.research = _boom  # type: ignore[method-assign]
        out = await make_researcher_node(researcher)(_state(plan))
        assert out["new_research"] == []
        assert out["agent_errors"][0]["agent"] == "Researcher"

    @pytest.mark.asyncio
    async def test_decide_node_reuses_cache(self, plan: Plan, mock_client) -> None:
        client, model = mock_client({})
        orchestrator = Orchestrator(client)
        cached = orchestrator.fallback(plan, frozenset(), 200, 600)
        out = await make_orchestrator_node(orchestrator)(
            _state(plan, reuse_decision=True, cached_decision=cached)
        )
        assert out == {"decision": cached, "decision_reused": True}
        assert model.calls == []

    @pytest.mark.asyncio
    async def test_decide_node_falls_back_on_exception(self, plan: Plan, mock_client) -> None:
        client, _ = mock_client({})
        orchestrator = Orchestrator(client)

        async def _boom(*args: Any, **kwargs: Any) -> None:
            raise RuntimeError("bug")

        orchestrator.decide = _boom  # type: ignore[method-assign]
        out = await make_orchestrator_node(orchestrator)(_state(plan))
        assert out["decision"].used_fallback
        assert out["decision"].next_question.source_question_id == "q1"
        assert out["agent_errors"][0]["agent"] == "Orchestrator"


class TestCompiledGraph:
    @pytest.mark.asyncio
    async def test_fan_out_and_fan_in(self, plan: Plan, mock_client) -> None:
        client, model = mock_client(
            {
                "NoteTakerOutput": [NoteTakerOutput(key_ideas=[KeyIdeaOutput(text="Pass fast")])],
                "OrchestratorOutput": [
                    OrchestratorOutput(
                        phase="deep_dive",
                        next_question=NextQuestionOutput(text="Why pass?", source_question_id="q3"),
                    )
                ],
            }
        )
        graph = build_live_cycle_graph(*_agents(client))
        out = await graph.ainvoke(_state(plan))

        assert [i.text for i in out["notes"].key_ideas] == ["Pass fast"]
        assert out["new_research"] == []
        assert out["decision"].next_question.source_question_id == "q3"
        assert out["decision_reused"] is False
        assert "Pass fast" in model.calls_for("OrchestratorOutput")[0]

    @pytest.mark.asyncio
    async def test_skip_agents(self, plan: Plan, mock_client) -> None:
        client, model = mock_client({})
        graph = build_live_cycle_graph(*_agents(client))
        out = await graph.ainvoke(_state(plan, run_agents=False))
        assert "notes" not in out
        assert out["decision"].used_fallback
        assert model.calls_for("NoteTakerOutput") == []
        assert model.calls_for("TopicIdentificationOutput") == []
        assert len(model.calls_for("OrchestratorOutput")) == 1

    @pytest.mark.asyncio
    async def test_errors_from_both_branches_accumulate(self, plan: Plan, mock_client) -> None:
        client, _ = mock_client({})
        note_taker, researcher, orchestrator = _agents(client)

        async def _boom(*args: Any) -> list[ResearchItem]:
            raise KeyError("bug")

        researcher.research = _boom  # type: ignore[method-assign]
        graph = build_live_cycle_graph(note_taker, researcher, orchestrator)
        out = await graph.ainvoke(_state(plan))
        assert sorted(e["agent"] for e in out["agent_errors"]) == ["NoteTaker", "Researcher"]
