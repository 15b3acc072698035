"""Tests for interviewer instruction formatting."""

from __future__ import annotations

from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import InterviewPhase, ResearchKind, VerificationStatus
from interview_conductor.domain.values import (
    Contradiction,
    Gap,
    NextQuestion,
    NotesState,
    OrchestratorDecision,
    ResearchItem,
)
from interview_conductor.services.instructions import (
    build_interviewer_instructions,
    build_session_instructions,
)


def _decision(brief: str = "Keep it warm.") -> OrchestratorDecision:
    return OrchestratorDecision(
        phase=InterviewPhase.DEEP_DIVE,
        next_question=NextQuestion("What went wrong with the first fund?"),
        interviewer_brief=brief,
    )


class TestInterviewerInstructions:
    def test_minimal(self) -> None:
        text = build_interviewer_instructions(_decision(brief=""), NotesState())
        assert text == (
            "## Current Phase: Deep Dive\n\n## Ask Next\nWhat went wrong with the first fund?"
        )

    def test_brief(self) -> None:
        text = build_interviewer_instructions(_decision(), NotesState())
        assert "## How to Ask\nKeep it warm." in text
        assert "## Research Context" not in text

    def test_research_context_top_three_by_priority(self) -> None:
        research = [
            ResearchItem(f"topic {i}", ResearchKind.METRIC, f"s{i}", priority=p)
            for i, p in enumerate((3, 1, 2, 1))
        ]
        research[1] = ResearchItem(
            "topic 1", ResearchKind.METRIC, "s1", how_to_use_in_question="cite it", priority=1
        )
        text = build_interviewer_instructions(_decision(), NotesState(), research)
        assert "- **topic 1**: s1 (use: cite it)" in text
        assert "- **topic 3**: s3" in text
        assert "- **topic 2**: s2" in text
        assert "topic 0" not in text
        assert text.index("topic 1") < text.index("topic 2")

    def test_fact_checks(self) -> None:
        research = [
            ResearchItem(
                "Unicorn rate",
                ResearchKind.CLAIM_VERIFICATION,
                "About 1% of seed rounds.",
                verification_status=VerificationStatus.PARTIALLY_TRUE,
                verification_note="closer to 1.5%",
            ),
            ResearchItem(
                "Fund returns",
                ResearchKind.CLAIM_VERIFICATION,
                "Top decile returns 3x.",
                verification_status=VerificationStatus.CONTRADICTED,
            ),
            ResearchItem("Unchecked", ResearchKind.CLAIM_VERIFICATION, "No status yet."),
        ]
        text = build_interviewer_instructions(_decision(), NotesState(), research)
        assert "## Fact-Check Notes" in text
        assert "- [PARTIALLY TRUE] Unicorn rate: About 1% of seed rounds. (closer to 1.5%)" in text
        assert "- [CONTRADICTED] Fund returns: Top decile returns 3x." in text
        assert "Unchecked" not in text
        assert "Raise contradicted claims gently" in text
        assert "## Research Context" not in text

    def test_gaps_and_contradictions(self) -> None:
        notes = NotesState(
            gaps=tuple(Gap(f"gap {i}", suggested_followup=f"follow {i}") for i in range(4)),
            contradictions=tuple(
                Contradiction(f"conflict {i}", suggested_clarification_question=f"clarify {i}")
                for i in range(3)
            ),
        )
        text = build_interviewer_instructions(_decision(), notes)
        assert "- gap 0 (try: follow 0)" in text
        assert "gap 3" not in text
        assert "- conflict 1 (ask: clarify 1)" in text
        assert "conflict 2" not in text


class TestSessionInstructions:
    def test_plan_rendering(self, plan: Plan) -> None:
        text = build_session_instructions(plan)
        assert text.startswith("You are an expert podcast-style interviewer")
        assert "**Topic**: Early-stage venture investing" in text
        assert "**Angle**: Mistakes investors made and what they learned" in text
        assert "### 1. Background" in text
        assert "### 2. Lessons" in text
        assert "- **[MUST ASK]** How did you get started in venture capital?" in text
        assert "- [follow-up] What was the very first investment you made?" in text
        assert "  _Note: Keep it light; this is the warm-up._" in text
        assert "About 10 minutes in total" in text
        assert text.endswith("Start by warmly greeting the expert and introducing the topic.")

    def test_explicit_target_overrides_plan(self, plan: Plan) -> None:
        assert "About 30 minutes" in build_session_instructions(plan, target_seconds=1800)

    def test_no_time_budget_without_target(self) -> None:
        text = build_session_instructions(Plan(topic="Beekeeping"))
        assert "## Time Budget" not in text
        assert "**Research Goal**" not in text
