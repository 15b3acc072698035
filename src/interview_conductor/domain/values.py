"""Value objects for the interview conductor.

All types here are frozen dataclasses -- immutable, compared by value.
They represent transcript entries, extracted notes, research findings and
orchestrator decisions that flow between agents within one cycle.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .enums import (
    ClaimConfidence,
    CoverageQuality,
    InterviewPhase,
    QuestionSource,
    ResearchKind,
    Speaker,
    VerificationStatus,
)


def _short_id() -> str:
    return str(uuid.uuid4())[:8]


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TranscriptEntry:
    """One utterance in the live conversation."""

    speaker: Speaker
    text: str
    timestamp: float = field(default_factory=time.time)
    is_final: bool = True

    @property
    def label(self) -> str:
        return self.speaker.label


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KeyIdea:
    text: str
    related_question_ids: tuple[str, ...] = ()
    item_id: str = field(default_factory=_short_id)


@dataclass(frozen=True)
class Story:
    summary: str
    impact: str = ""
    item_id: str = field(default_factory=_short_id)


@dataclass(frozen=True)
class Claim:
    text: str
    confidence: ClaimConfidence = ClaimConfidence.MEDIUM
    item_id: str = field(default_factory=_short_id)


@dataclass(frozen=True)
class Gap:
    """A topic the expert touched on without elaborating."""

    description: str
    suggested_followup: str = ""
    related_question_ids: tuple[str, ...] = ()
    item_id: str = field(default_factory=_short_id)


@dataclass(frozen=True)
class Contradiction:
    """Two statements from the transcript that conflict."""

    description: str
    first_quote: str = ""
    second_quote: str = ""
    suggested_clarification_question: str = ""
    item_id: str = field(default_factory=_short_id)


@dataclass(frozen=True)
class SectionCoverage:
    """Snapshot of how well one plan section has been covered.

    Keyed by ``section_id``; a newer snapshot for the same section replaces
    the older one.
    """

    section_id: str
    section_title: str = ""
    quality: CoverageQuality = CoverageQuality.NONE
    key_points_covered: tuple[str, ...] = ()
    missing_aspects: tuple[str, ...] = ()
    suggested_followup: str | None = None

    @property
    def quality_score(self) -> float:
        return self.quality.score


@dataclass(frozen=True)
class QuotableLine:
    text: str
    speaker: str = "expert"
    potential_use: str = "pull_quote"  # hook | section_header | pull_quote | conclusion | tweet
    topic: str = ""
    strength: str = "good"  # good | great | exceptional
    item_id: str = field(default_factory=_short_id)


@dataclass(frozen=True)
class NotesState:
    """Running accumulator of everything the NoteTaker has extracted.

    Created empty at session start and grown every cycle.  Merging never
    drops entries; only ``section_coverage`` entries are superseded by
    section id.
    """

    key_ideas: tuple[KeyIdea, ...] = ()
    stories: tuple[Story, ...] = ()
    claims: tuple[Claim, ...] = ()
    gaps: tuple[Gap, ...] = ()
    contradictions: tuple[Contradiction, ...] = ()
    section_coverage: tuple[SectionCoverage, ...] = ()
    quotable_lines: tuple[QuotableLine, ...] = ()
    possible_titles: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not any((
            self.key_ideas,
            self.stories,
            self.claims,
            self.gaps,
            self.contradictions,
            self.section_coverage,
            self.quotable_lines,
            self.possible_titles,
        ))

    def coverage_for(self, section_id: str, section_title: str = "") -> SectionCoverage:
        """Coverage entry for *section_id*, or a ``none``-quality placeholder."""
        for coverage in self.section_coverage:
            if coverage.section_id == section_id:
                return coverage
        return SectionCoverage(section_id=section_id, section_title=section_title)

    @property
    def under_covered_sections(self) -> tuple[SectionCoverage, ...]:
        return tuple(c for c in self.section_coverage if c.quality_score < 0.5)

    @property
    def best_quotes(self) -> tuple[QuotableLine, ...]:
        return tuple(q for q in self.quotable_lines if q.strength in ("great", "exceptional"))

    def summary(self) -> str:
        """Markdown summary used inside agent prompts."""
        parts: list[str] = []
        if self.key_ideas:
            parts.append("**Key Ideas:**\n" + "\n".join(f"- {i.text}" for i in self.key_ideas))
        if self.stories:
            parts.append(
                "**Stories:**\n"
                + "\n".join(f"- {s.summary} (Impact: {s.impact})" for s in self.stories)
            )
        if self.claims:
            parts.append(
                "**Claims:**\n"
                + "\n".join(f"- {c.text} [confidence: {c.confidence.value}]" for c in self.claims)
            )
        if self.gaps:
            parts.append("**Gaps:**\n" + "\n".join(f"- {g.description}" for g in self.gaps))
        if self.contradictions:
            parts.append(
                "**Contradictions:**\n"
                + "\n".join(f"- {c.description}" for c in self.contradictions)
            )
        if self.section_coverage:
            lines = []
            for c in self.section_coverage:
                points = f" ({', '.join(c.key_points_covered)})" if c.key_points_covered else ""
                lines.append(f"- {c.section_title or c.section_id}: {c.quality.value.upper()}{points}")
            parts.append("**Section Coverage:**\n" + "\n".join(lines))
        if self.quotable_lines:
            parts.append(
                "**Quotable Lines:**\n"
                + "\n".join(
                    f'- "{q.text}" [{q.potential_use}, {q.strength}]'
                    for q in self.quotable_lines[:5]
                )
            )
        if self.possible_titles:
            parts.append("**Possible Titles:**\n" + "\n".join(f"- {t}" for t in self.possible_titles))
        return "\n\n".join(parts) if parts else "(No notes yet)"


# ---------------------------------------------------------------------------
# Research
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResearchItem:
    """Background context or a fact-check the interviewer can draw on."""

    topic: str
    kind: ResearchKind
    summary: str
    how_to_use_in_question: str = ""
    priority: int = 2
    verification_status: VerificationStatus | None = None
    verification_note: str | None = None
    item_id: str = field(default_factory=_short_id)

    def __post_init__(self) -> None:
        if not 1 <= self.priority <= 3:
            raise ValueError(f"priority must be in [1, 3], got {self.priority}")

    @property
    def topic_key(self) -> str:
        """Case-insensitive deduplication key."""
        return topic_key(self.topic)

    @property
    def is_verified_claim(self) -> bool:
        return (
            self.kind is ResearchKind.CLAIM_VERIFICATION
            and self.verification_status is VerificationStatus.VERIFIED
        )

    @property
    def is_contradicted_claim(self) -> bool:
        return (
            self.kind is ResearchKind.CLAIM_VERIFICATION
            and self.verification_status is VerificationStatus.CONTRADICTED
        )


def topic_key(topic: str) -> str:
    return " ".join(topic.lower().split())


# ---------------------------------------------------------------------------
# Orchestrator decision
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NextQuestion:
    text: str
    target_section_id: str = ""
    source: QuestionSource = QuestionSource.PLAN
    source_question_id: str | None = None
    expected_answer_seconds: int = 60


@dataclass(frozen=True)
class OrchestratorDecision:
    """What the interviewer should do next.

    ``used_fallback`` is ``True`` when the decision came from the
    deterministic plan scan instead of the agent.
    """

    phase: InterviewPhase
    next_question: NextQuestion
    interviewer_brief: str = ""
    used_fallback: bool = False


# ---------------------------------------------------------------------------
# Cycle result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiveUpdateResult:
    """Outcome of one coordinator cycle.

    Unpacks as ``notes, new_research_items, decision``.
    """

    notes: NotesState
    new_research_items: tuple[ResearchItem, ...]
    decision: OrchestratorDecision
    instructions: str = ""
    agents_skipped: bool = False
    decision_reused: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Any]:
        yield self.notes
        yield self.new_research_items
        yield self.decision


@dataclass(frozen=True)
class SessionSnapshot:
    """Persistable copy of a coordinator's session state.

    The decision cache and agent activity timestamps are not included; a
    restored coordinator re-runs its agents on the next cycle.
    """

    transcript: tuple[TranscriptEntry, ...] = ()
    notes: NotesState = field(default_factory=NotesState)
    research: tuple[ResearchItem, ...] = ()
    asked_question_ids: frozenset[str] = frozenset()
    phase_floor: InterviewPhase = InterviewPhase.OPENING
    recently_asked: tuple[str, ...] = ()
    opening_cutoff: float | None = None
