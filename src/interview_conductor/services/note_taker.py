"""NoteTaker agent: extracts structured notes from the live transcript.

Each cycle the agent reads the recent transcript window and returns newly
observed ideas, stories, claims, gaps, contradictions, section coverage,
quotable lines and title ideas.  ``merge_notes`` folds those into the
running ``NotesState`` without ever dropping earlier entries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Literal, TypeVar

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import ClaimConfidence, CoverageQuality
from interview_conductor.domain.values import (
    Claim,
    Contradiction,
    Gap,
    KeyIdea,
    NotesState,
    QuotableLine,
    SectionCoverage,
    Story,
    TranscriptEntry,
)
from interview_conductor.infrastructure.config import NoteTakerConfig
from interview_conductor.infrastructure.llm.client import AgentClient
from interview_conductor.services.similarity import is_near_duplicate
from interview_conductor.services.transcript import format_transcript

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")


# -- Structured output schemas -----------------------------------------------


class KeyIdeaOutput(BaseModel):
    text: str = Field(description="Core insight, principle or framework")
    related_question_ids: list[str] = Field(default_factory=list)


class StoryOutput(BaseModel):
    summary: str = Field(description="What happened")
    impact: str = Field(default="", description="Why it matters")


class ClaimOutput(BaseModel):
    text: str = Field(description="Strong opinion or assertion")
    confidence: Literal["low", "medium", "high"] = Field(default="medium")


class GapOutput(BaseModel):
    description: str = Field(description="Topic touched on but not explored")
    suggested_followup: str = Field(default="")
    related_question_ids: list[str] = Field(default_factory=list)


class ContradictionOutput(BaseModel):
    description: str = Field(description="What seems to conflict")
    first_quote: str = Field(default="")
    second_quote: str = Field(default="")
    suggested_clarification_question: str = Field(default="")


class SectionCoverageOutput(BaseModel):
    section_id: str = Field(description="Id of the plan section")
    section_title: str = Field(default="")
    quality: Literal["none", "shallow", "adequate", "deep"] = Field(default="none")
    key_points_covered: list[str] = Field(default_factory=list)
    missing_aspects: list[str] = Field(default_factory=list)
    suggested_followup: str | None = Field(default=None)


class QuotableLineOutput(BaseModel):
    text: str = Field(description="Exact words worth quoting")
    speaker: str = Field(default="expert")
    potential_use: Literal["hook", "section_header", "pull_quote", "conclusion", "tweet"] = Field(
        default="pull_quote"
    )
    topic: str = Field(default="")
    strength: Literal["good", "great", "exceptional"] = Field(default="good")


class NoteTakerOutput(BaseModel):
    """Notes newly observed in the transcript window."""

    key_ideas: list[KeyIdeaOutput] = Field(default_factory=list)
    stories: list[StoryOutput] = Field(default_factory=list)
    claims: list[ClaimOutput] = Field(default_factory=list)
    gaps: list[GapOutput] = Field(default_factory=list)
    contradictions: list[ContradictionOutput] = Field(default_factory=list)
    section_coverage: list[SectionCoverageOutput] = Field(default_factory=list)
    quotable_lines: list[QuotableLineOutput] = Field(default_factory=list)
    possible_titles: list[str] = Field(default_factory=list)

    def to_notes(self) -> NotesState:
        """Convert into a domain ``NotesState`` batch (not yet merged)."""
        return NotesState(
            key_ideas=tuple(
                KeyIdea(text=i.text, related_question_ids=tuple(i.related_question_ids))
                for i in self.key_ideas
            ),
            stories=tuple(Story(summary=s.summary, impact=s.impact) for s in self.stories),
            claims=tuple(
                Claim(text=c.text, confidence=ClaimConfidence(c.confidence)) for c in self.claims
            ),
            gaps=tuple(
                Gap(
                    description=g.description,
                    suggested_followup=g.suggested_followup,
                    related_question_ids=tuple(g.related_question_ids),
                )
                for g in self.gaps
            ),
            contradictions=tuple(
                Contradiction(
                    description=c.description,
                    first_quote=c.first_quote,
                    second_quote=c.second_quote,
                    suggested_clarification_question=c.suggested_clarification_question,
                )
                for c in self.contradictions
            ),
            section_coverage=tuple(
                SectionCoverage(
                    section_id=c.section_id,
                    section_title=c.section_title,
                    quality=CoverageQuality(c.quality),
                    key_points_covered=tuple(c.key_points_covered),
                    missing_aspects=tuple(c.missing_aspects),
                    suggested_followup=c.suggested_followup,
                )
                for c in self.section_coverage
            ),
            quotable_lines=tuple(
                QuotableLine(
                    text=q.text,
                    speaker=q.speaker,
                    potential_use=q.potential_use,
                    topic=q.topic,
                    strength=q.strength,
                )
                for q in self.quotable_lines
            ),
            possible_titles=tuple(self.possible_titles),
        )


# -- Prompt ------------------------------------------------------------------

_NOTE_TAKER_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a research assistant taking notes during a live expert "
            "interview. Your notes help the interviewer choose follow-up "
            "questions and later guide writing an essay from the conversation.\n\n"
            "Extract only what is NEW in the transcript segment:\n"
            "- Key ideas: core insights, principles or frameworks.\n"
            "- Stories: concrete anecdotes, with what happened and why it matters.\n"
            "- Claims: strong assertions, rated high (certain, backed by "
            "experience), medium (believed with nuance) or low (speculative).\n"
            "- Gaps: topics mentioned but not explored, with a follow-up question.\n"
            "- Contradictions: statements that conflict with earlier ones.\n"
            "- Section coverage: for each plan section discussed, rate coverage "
            "none, shallow, adequate or deep, using the section ids given.\n"
            "- Quotable lines: the expert's exact, vivid wording.\n"
            "- Possible titles for the eventual essay.\n\n"
            "Keep the expert's voice. Do not repeat notes that already exist.",
        ),
        (
            "human",
            "## Interview\n"
            "**Topic**: {topic}\n"
            "**Research Goal**: {research_goal}\n"
            "**Angle**: {angle}\n\n"
            "## Plan Sections\n{plan_sections}\n\n"
            "## Current Notes\n{current_notes}\n\n"
            "## Transcript (most recent)\n{transcript}\n\n"
            "Update the notes with anything new.",
        ),
    ]
)


# -- Merging -----------------------------------------------------------------


def _merge_items(
    existing: Sequence[ItemT],
    new: Iterable[ItemT],
    text_of: Callable[[ItemT], str],
    threshold: float,
) -> tuple[ItemT, ...]:
    """Append items from *new* that are not near-duplicates.

    Each candidate is checked against the existing items and against the
    candidates already accepted from this batch.  Blank items are dropped.
    """
    merged = list(existing)
    seen = [text_of(item) for item in existing]
    for item in new:
        text = text_of(item).strip()
        if not text:
            continue
        if is_near_duplicate(text, seen, threshold):
            continue
        merged.append(item)
        seen.append(text)
    return tuple(merged)


def _merge_coverage(
    existing: Sequence[SectionCoverage],
    new: Iterable[SectionCoverage],
    plan: Plan | None,
) -> tuple[SectionCoverage, ...]:
    by_section: dict[str, SectionCoverage] = {c.section_id: c for c in existing}
    for coverage in new:
        if not coverage.section_id:
            continue
        if plan is not None and plan.get_section(coverage.section_id) is None:
            logger.debug("NoteTaker: ignoring coverage for unknown section %r", coverage.section_id)
            continue
        # dict keeps first-insertion order, so replaced sections stay in place
        by_section[coverage.section_id] = coverage
    return tuple(by_section.values())


def _merge_titles(existing: Sequence[str], new: Iterable[str]) -> tuple[str, ...]:
    merged = list(existing)
    seen = {t.strip().lower() for t in existing}
    for title in new:
        key = title.strip().lower()
        if not key or key in seen:
            continue
        merged.append(title.strip())
        seen.add(key)
    return tuple(merged)


def merge_notes(
    existing: NotesState,
    new: NotesState,
    config: NoteTakerConfig | None = None,
    plan: Plan | None = None,
) -> NotesState:
    """Fold a freshly extracted batch into the running notes.

    Every list is additive: nothing already in *existing* is removed.
    Section coverage is keyed by section id and the newest snapshot wins,
    even when its quality is lower.  When *plan* is given, coverage for
    sections outside it is ignored.
    """
    cfg = config or NoteTakerConfig()
    return NotesState(
        key_ideas=_merge_items(existing.key_ideas, new.key_ideas, lambda i: i.text, cfg.idea_threshold),
        stories=_merge_items(existing.stories, new.stories, lambda s: s.summary, cfg.story_threshold),
        claims=_merge_items(existing.claims, new.claims, lambda c: c.text, cfg.claim_threshold),
        gaps=_merge_items(existing.gaps, new.gaps, lambda g: g.description, cfg.gap_threshold),
        contradictions=_merge_items(
            existing.contradictions,
            new.contradictions,
            lambda c: c.description,
            cfg.contradiction_threshold,
        ),
        section_coverage=_merge_coverage(existing.section_coverage, new.section_coverage, plan),
        quotable_lines=_merge_items(
            existing.quotable_lines, new.quotable_lines, lambda q: q.text, cfg.quote_threshold
        ),
        possible_titles=_merge_titles(existing.possible_titles, new.possible_titles),
    )


def describe_plan_sections(plan: Plan) -> str:
    lines = []
    for section in plan.sections:
        ids = ", ".join(q.question_id for q in section.questions)
        lines.append(f"- [{section.section_id}] {section.title} (questions: {ids or 'none'})")
    return "\n".join(lines) if lines else "(No sections)"


# -- NoteTaker ---------------------------------------------------------------


class NoteTaker:
    """Extracts notes from the transcript window and merges them.

    ``update_notes`` never raises: on any failure it returns the notes it
    was given and records the error in ``last_error``.

    Parameters
    ----------
    client:
        Structured completion client.
    config:
        Deduplication thresholds.
    prompt:
        Optional custom ``ChatPromptTemplate``.
    clock:
        Time source for activity tracking.
    """

    name = "NoteTaker"

    def __init__(
        self,
        client: AgentClient,
        config: NoteTakerConfig | None = None,
        prompt: ChatPromptTemplate | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.config = config or NoteTakerConfig()
        self._prompt = prompt or _NOTE_TAKER_PROMPT
        self._clock = clock
        self.last_error: str | None = None
        self.last_activity: float | None = None

    async def update_notes(
        self,
        transcript_window: Sequence[TranscriptEntry],
        current_notes: NotesState,
        plan: Plan,
    ) -> NotesState:
        """Return *current_notes* merged with whatever the agent finds new."""
        self.last_error = None
        if not transcript_window:
            logger.debug("NoteTaker: empty transcript window, nothing to extract")
            return current_notes

        self.last_activity = self._clock()
        result = await self.client.complete(
            self._prompt,
            {
                "topic": plan.topic,
                "research_goal": plan.research_goal or "N/A",
                "angle": plan.angle or "N/A",
                "plan_sections": describe_plan_sections(plan),
                "current_notes": current_notes.summary(),
                "transcript": format_transcript(transcript_window),
            },
            NoteTakerOutput,
            agent=self.name,
        )
        if not result.ok:
            self.last_error = result.error
            logger.warning("NoteTaker: extraction failed, keeping prior notes: %s", result.error)
            return current_notes

        try:
            batch = result.value.to_notes()
            merged = merge_notes(current_notes, batch, self.config, plan)
        except Exception as exc:
            self.last_error = str(exc)
            logger.warning("NoteTaker: could not merge extracted notes: %s", exc)
            return current_notes

        self.last_activity = self._clock()
        logger.info(
            "NoteTaker: %d ideas, %d stories, %d claims, %d gaps (+%d new items)",
            len(merged.key_ideas),
            len(merged.stories),
            len(merged.claims),
            len(merged.gaps),
            _count_items(merged) - _count_items(current_notes),
        )
        return merged


def _count_items(notes: NotesState) -> int:
    return (
        len(notes.key_ideas)
        + len(notes.stories)
        + len(notes.claims)
        + len(notes.gaps)
        + len(notes.contradictions)
        + len(notes.quotable_lines)
    )
