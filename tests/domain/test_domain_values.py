"""Tests for domain value objects."""

from __future__ import annotations

import pytest

from interview_conductor.domain.enums import (
    CoverageQuality,
    InterviewPhase,
    ResearchKind,
    Speaker,
    VerificationStatus,
)
from interview_conductor.domain.values import (
    Claim,
    KeyIdea,
    LiveUpdateResult,
    NextQuestion,
    NotesState,
    OrchestratorDecision,
    QuotableLine,
    ResearchItem,
    SectionCoverage,
    TranscriptEntry,
    topic_key,
)


class TestTranscriptEntry:
    def test_label(self) -> None:
        assert TranscriptEntry(Speaker.USER, "hi").label == "Expert"
        assert TranscriptEntry(Speaker.ASSISTANT, "hi").label == "Interviewer"


class TestNotesState:
    def test_empty(self) -> None:
        notes = NotesState()
        assert notes.is_empty
        assert notes.summary() == "(No notes yet)"

    def test_summary_mentions_items(self) -> None:
        notes = NotesState(
            key_ideas=(KeyIdea("Hire slowly"),),
            claims=(Claim("Most startups die from indigestion"),),
            possible_titles=("The Patient Investor",),
        )
        text = notes.summary()
        assert "Hire slowly" in text
        assert "[confidence: medium]" in text
        assert "The Patient Investor" in text
        assert not notes.is_empty

    def test_coverage_for_placeholder(self) -> None:
        notes = NotesState(
            section_coverage=(SectionCoverage("background", quality=CoverageQuality.DEEP),)
        )
        assert notes.coverage_for("background").quality is CoverageQuality.DEEP
        placeholder = notes.coverage_for("lessons", "Lessons")
        assert placeholder.quality is CoverageQuality.NONE
        assert placeholder.section_title == "Lessons"

    def test_under_covered_and_best_quotes(self) -> None:
        notes = NotesState(
            section_coverage=(
                SectionCoverage("a", quality=CoverageQuality.SHALLOW),
                SectionCoverage("b", quality=CoverageQuality.ADEQUATE),
            ),
            quotable_lines=(
                QuotableLine("ok line", strength="good"),
                QuotableLine("killer line", strength="exceptional"),
            ),
        )
        assert [c.section_id for c in notes.under_covered_sections] == ["a"]
        assert [q.text for q in notes.best_quotes] == ["killer line"]


class TestResearchItem:
    def test_priority_validated(self) -> None:
        with pytest.raises(ValueError):
            ResearchItem("x", ResearchKind.CONTEXT, "s", priority=5)

    def test_topic_key_normalizes(self) -> None:
        item = ResearchItem("  Series   A ", ResearchKind.METRIC, "s")
        assert item.topic_key == "series a"
        assert topic_key("SERIES a") == "series a"

    def test_claim_flags(self) -> None:
        verified = ResearchItem(
            "claim",
            ResearchKind.CLAIM_VERIFICATION,
            "s",
            verification_status=VerificationStatus.VERIFIED,
        )
        contradicted = ResearchItem(
            "claim",
            ResearchKind.CLAIM_VERIFICATION,
            "s",
            verification_status=VerificationStatus.CONTRADICTED,
        )
        assert verified.is_verified_claim and not verified.is_contradicted_claim
        assert contradicted.is_contradicted_claim


class TestLiveUpdateResult:
    def test_unpacks_as_triple(self) -> None:
        decision = OrchestratorDecision(InterviewPhase.OPENING, NextQuestion("Hi?"))
        result = LiveUpdateResult(NotesState(), (), decision, instructions="x")
        notes, research, got = result
        assert notes == NotesState()
        assert research == ()
        assert got is decision
