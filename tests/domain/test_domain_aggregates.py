"""Tests for PhaseFloor and AskedQuestionLedger."""

from __future__ import annotations

from interview_conductor.domain.aggregates import AskedQuestionLedger, PhaseFloor
from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import InterviewPhase


class TestPhaseFloor:
    def test_starts_at_opening(self) -> None:
        assert PhaseFloor().phase is InterviewPhase.OPENING

    def test_advance_only_moves_forward(self) -> None:
        floor = PhaseFloor()
        assert floor.advance(InterviewPhase.WRAP_UP) is InterviewPhase.WRAP_UP
        assert floor.advance(InterviewPhase.OPENING) is InterviewPhase.WRAP_UP
        assert floor.advance(InterviewPhase.DEEP_DIVE) is InterviewPhase.WRAP_UP
        assert floor.phase is InterviewPhase.WRAP_UP

    def test_clamp(self) -> None:
        floor = PhaseFloor(InterviewPhase.DEEP_DIVE)
        assert floor.clamp(InterviewPhase.OPENING) is InterviewPhase.DEEP_DIVE
        assert floor.clamp(InterviewPhase.WRAP_UP) is InterviewPhase.WRAP_UP

    def test_reset(self) -> None:
        floor = PhaseFloor(InterviewPhase.WRAP_UP)
        floor.reset()
        assert floor.phase is InterviewPhase.OPENING


class TestAskedQuestionLedger:
    def test_mark_and_query(self, plan: Plan) -> None:
        ledger = AskedQuestionLedger()
        assert ledger.mark("q1", plan) is True
        assert ledger.mark("q1", plan) is False
        assert "q1" in ledger
        assert ledger.is_asked("q1")
        assert len(ledger) == 1

    def test_unknown_and_empty_ids_ignored(self, plan: Plan) -> None:
        ledger = AskedQuestionLedger()
        assert ledger.mark("q99", plan) is False
        assert ledger.mark(None, plan) is False
        assert ledger.mark("", plan) is False
        assert len(ledger) == 0

    def test_without_plan_accepts_any_id(self) -> None:
        ledger = AskedQuestionLedger()
        assert ledger.mark("anything") is True

    def test_snapshot_is_immutable_copy(self, plan: Plan) -> None:
        ledger = AskedQuestionLedger(["q2"])
        snap = ledger.snapshot()
        ledger.mark("q3", plan)
        assert snap == frozenset({"q2"})
        assert list(ledger) == ["q2", "q3"]
