"""Orchestrator agent: decides the next interview question.

The orchestrator combines the plan (with asked/unasked status), the running
notes, accumulated research and the clock into one ``OrchestratorDecision``.

Two paths produce a decision:

* **Primary** -- the model proposes phase, question and brief.  Its phase is
  clamped to the phase floor and its question is attributed to a plan
  question by id or by fuzzy text match (``resolve_source_question``).
* **Fallback** -- when the model call fails or returns garbage, the first
  unasked plan question by priority is chosen deterministically
  (``fallback_decision``).
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable, Sequence
from typing import Literal

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import InterviewPhase, QuestionSource
from interview_conductor.domain.values import (
    NextQuestion,
    NotesState,
    OrchestratorDecision,
    ResearchItem,
    TranscriptEntry,
)
from interview_conductor.infrastructure.config import OrchestratorConfig
from interview_conductor.infrastructure.llm.client import AgentClient
from interview_conductor.services.similarity import best_match
from interview_conductor.services.transcript import format_transcript

logger = logging.getLogger(__name__)


# -- Structured output schemas -----------------------------------------------


class NextQuestionOutput(BaseModel):
    text: str = Field(description="The question, phrased for the interviewer to ask")
    target_section_id: str = Field(default="", description="Plan section this question serves")
    source: Literal["plan", "gap", "contradiction", "research"] = Field(default="plan")
    source_question_id: str | None = Field(
        default=None, description="Id of the plan question being asked, if any"
    )
    expected_answer_seconds: int = Field(default=60)


class OrchestratorOutput(BaseModel):
    """The model's proposed decision."""

    phase: Literal["opening", "deep_dive", "wrap_up"] = Field(description="Current interview phase")
    next_question: NextQuestionOutput
    interviewer_brief: str = Field(default="", description="How to ask the question")


# -- Prompt ------------------------------------------------------------------

_ORCHESTRATOR_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are the orchestrator of a live, time-boxed expert interview. "
            "Decide the single best next question.\n\n"
            "Phases: opening (roughly the first 15% of time) clarifies context "
            "and stakes; deep_dive alternates plan questions with follow-ups on "
            "gaps, contradictions and research; wrap_up (final 15%) synthesizes "
            "and reflects.\n\n"
            "Rules:\n"
            "- Prefer P1 questions marked NOT ASKED. Never propose a question "
            "marked ASKED.\n"
            "- Never repeat or rephrase a recently asked question.\n"
            "- When asking a plan question, return its id as source_question_id.\n"
            "- Give the interviewer a short brief on tone and framing.",
        ),
        (
            "human",
            "## Interview Status\n"
            "**Topic**: {topic}\n"
            "**Research Goal**: {research_goal}\n"
            "**Angle**: {angle}\n"
            "**Time**: {elapsed} elapsed / {target} total ({remaining} remaining)\n"
            "**Suggested Phase**: {suggested_phase}\n\n"
            "## Interview Plan (Question Coverage)\n{plan_status}\n\n"
            "{recently_asked}"
            "## Notes from Conversation\n{notes}\n\n"
            "## Research\n{research}\n\n"
            "## Recent Transcript\n{transcript}\n\n"
            "Decide the phase, the next question and the interviewer brief.",
        ),
    ]
)


# -- Phase computation -------------------------------------------------------


def compute_phase(
    elapsed_seconds: float,
    target_seconds: float,
    opening_cutoff: float = 0.15,
    wrap_up_cutoff: float = 0.85,
) -> InterviewPhase:
    """Phase implied by the clock alone.

    ``progress = elapsed / target``; below ``opening_cutoff`` is opening,
    above ``wrap_up_cutoff`` is wrap_up, anything else is deep_dive.
    Negative elapsed counts as zero and a non-positive target is wrap_up.
    """
    if target_seconds <= 0:
        return InterviewPhase.WRAP_UP
    progress = max(0.0, elapsed_seconds) / target_seconds
    if progress < opening_cutoff:
        return InterviewPhase.OPENING
    if progress > wrap_up_cutoff:
        return InterviewPhase.WRAP_UP
    return InterviewPhase.DEEP_DIVE


def clamp_phase(phase: InterviewPhase, floor: InterviewPhase) -> InterviewPhase:
    """Return the later of *phase* and *floor*."""
    return phase if phase.rank >= floor.rank else floor


# -- Question attribution ----------------------------------------------------


def resolve_source_question(
    question: NextQuestion,
    plan: Plan,
    asked_question_ids: frozenset[str] | set[str],
    match_threshold: float = 0.6,
) -> NextQuestion:
    """Attribute *question* to an unasked plan question, if it is one.

    1. A ``source_question_id`` naming a known, unasked question is kept.
    2. Otherwise the text is compared with every unasked question and the
       best match is taken when its Jaccard score is strictly above
       *match_threshold*.
    3. Otherwise the question is organic: no id, and a ``plan`` source
       becomes ``gap``.

    A resolved question always gets source ``plan`` and its own section id.
    """
    qid = question.source_question_id
    if qid and qid not in asked_question_ids:
        section = plan.section_for(qid)
        if section is not None:
            return dataclasses.replace(
                question, source=QuestionSource.PLAN, target_section_id=section.section_id
            )
    if qid:
        logger.debug("Orchestrator: source id %r is unknown or already asked", qid)

    candidates = [
        (q.question_id, q.text)
        for _, q in plan.iter_questions()
        if q.question_id not in asked_question_ids
    ]
    match_id, score = best_match(question.text, candidates)
    if match_id is not None and score > match_threshold:
        section = plan.section_for(match_id)
        assert section is not None
        logger.debug("Orchestrator: matched question text to %r (score %.2f)", match_id, score)
        return dataclasses.replace(
            question,
            source=QuestionSource.PLAN,
            source_question_id=match_id,
            target_section_id=section.section_id,
        )

    source = QuestionSource.GAP if question.source is QuestionSource.PLAN else question.source
    return dataclasses.replace(question, source=source, source_question_id=None)


# -- Fallback ----------------------------------------------------------------


def fallback_decision(
    plan: Plan,
    asked_question_ids: frozenset[str] | set[str],
    elapsed_seconds: float,
    target_seconds: float,
    phase_floor: InterviewPhase = InterviewPhase.OPENING,
    config: OrchestratorConfig | None = None,
    opening_cutoff: float | None = None,
) -> OrchestratorDecision:
    """Deterministic decision used when the model is unavailable.

    Picks the first unasked question scanning priority 1, then 2, then 3,
    each in plan order.  When every question has been asked, returns the
    closing question with source ``gap``.  Same inputs always give the same
    decision.
    """
    cfg = config or OrchestratorConfig()
    cutoff = cfg.opening_cutoff if opening_cutoff is None else opening_cutoff
    phase = clamp_phase(
        compute_phase(elapsed_seconds, target_seconds, cutoff, cfg.wrap_up_cutoff),
        phase_floor,
    )

    for priority in (1, 2, 3):
        for section, question in plan.iter_questions():
            if question.priority != priority or question.question_id in asked_question_ids:
                continue
            brief = question.notes_for_interviewer or (
                f"Ask this {question.role.value} question from the "
                f"'{section.title}' section in a natural, conversational way."
            )
            return OrchestratorDecision(
                phase=phase,
                next_question=NextQuestion(
                    text=question.text,
                    target_section_id=section.section_id,
                    source=QuestionSource.PLAN,
                    source_question_id=question.question_id,
                    expected_answer_seconds=cfg.default_expected_answer_seconds,
                ),
                interviewer_brief=brief,
                used_fallback=True,
            )

    last_section = plan.sections[-1].section_id if plan.sections else ""
    return OrchestratorDecision(
        phase=phase,
        next_question=NextQuestion(
            text=cfg.closing_question,
            target_section_id=last_section,
            source=QuestionSource.GAP,
            source_question_id=None,
            expected_answer_seconds=cfg.default_expected_answer_seconds,
        ),
        interviewer_brief="All planned questions are covered. Invite final reflections.",
        used_fallback=True,
    )


# -- Prompt formatting -------------------------------------------------------


def _format_time(seconds: float) -> str:
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def format_plan_status(plan: Plan, asked_question_ids: frozenset[str] | set[str]) -> str:
    """Plan outline with ASKED / NOT ASKED markers, ids and priorities."""
    blocks = []
    for section in plan.sections:
        asked = sum(1 for q in section.questions if q.question_id in asked_question_ids)
        lines = [
            f"### {section.title} (section_id: {section.section_id}) "
            f"[{asked}/{len(section.questions)} asked, {section.importance.value} importance]"
        ]
        for q in section.questions:
            status = "ASKED" if q.question_id in asked_question_ids else "NOT ASKED"
            lines.append(f"  {status} [id: {q.question_id}] [P{q.priority}] {q.text}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) if blocks else "(Empty plan)"


def format_notes_for_decision(notes: NotesState) -> str:
    parts: list[str] = []
    if notes.key_ideas:
        parts.append(
            "**Key Ideas Captured:**\n" + "\n".join(f"- {i.text}" for i in notes.key_ideas[:5])
        )
    if notes.gaps:
        parts.append(
            "**Gaps to Explore:**\n"
            + "\n".join(
                f"- {g.description}\n  Suggested: {g.suggested_followup}" for g in notes.gaps[:3]
            )
        )
    if notes.contradictions:
        parts.append(
            "**Contradictions to Clarify:**\n"
            + "\n".join(
                f"- {c.description}\n  First: \"{c.first_quote}\"\n  Second: \"{c.second_quote}\""
                f"\n  Suggested: {c.suggested_clarification_question}"
                for c in notes.contradictions[:2]
            )
        )
    if notes.section_coverage:
        lines = []
        for c in notes.section_coverage:
            line = f"- {c.section_title or c.section_id}: {c.quality.value.upper()}"
            if c.missing_aspects:
                line += f" (Missing: {', '.join(c.missing_aspects)})"
            if c.suggested_followup:
                line += f"\n  Suggested: {c.suggested_followup}"
            lines.append(line)
        parts.append("**Section Coverage Quality:**\n" + "\n".join(lines))
    return "\n\n".join(parts) if parts else "(No significant notes yet)"


def format_research_for_decision(research: Sequence[ResearchItem], limit: int = 5) -> str:
    if not research:
        return "(No research items available)"
    ranked = sorted(research, key=lambda r: r.priority)[:limit]
    return "\n".join(
        f"- [{r.kind.value}] {r.topic}: {r.summary}\n  How to use: {r.how_to_use_in_question}"
        for r in ranked
    )


def format_recently_asked(recently_asked: Sequence[str], limit: int = 5) -> str:
    if not recently_asked:
        return ""
    lines = [
        f"{i}. {text[:100]}" for i, text in enumerate(list(recently_asked)[-limit:], start=1)
    ]
    return "## Recently Asked Questions (do not repeat or rephrase)\n" + "\n".join(lines) + "\n\n"


# -- Orchestrator ------------------------------------------------------------


class Orchestrator:
    """Produces the next-question decision for each cycle.

    ``decide`` never raises; any failure yields ``fallback_decision``.

    Parameters
    ----------
    client:
        Structured completion client.
    config:
        Phase cutoffs, matching threshold and closing question.
    prompt:
        Optional custom ``ChatPromptTemplate``.
    clock:
        Time source for activity tracking.
    """

    name = "Orchestrator"

    def __init__(
        self,
        client: AgentClient,
        config: OrchestratorConfig | None = None,
        prompt: ChatPromptTemplate | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()
        self._prompt = prompt or _ORCHESTRATOR_PROMPT
        self._clock = clock
        self.last_error: str | None = None
        self.last_activity: float | None = None

    def fallback(
        self,
        plan: Plan,
        asked_question_ids: frozenset[str] | set[str],
        elapsed_seconds: float,
        target_seconds: float,
        phase_floor: InterviewPhase = InterviewPhase.OPENING,
        opening_cutoff: float | None = None,
    ) -> OrchestratorDecision:
        return fallback_decision(
            plan,
            asked_question_ids,
            elapsed_seconds,
            target_seconds,
            phase_floor=phase_floor,
            config=self.config,
            opening_cutoff=opening_cutoff,
        )

    async def decide(
        self,
        plan: Plan,
        notes: NotesState,
        research: Sequence[ResearchItem],
        elapsed_seconds: float,
        target_seconds: float,
        asked_question_ids: frozenset[str] | set[str],
        phase_floor: InterviewPhase = InterviewPhase.OPENING,
        transcript_window: Sequence[TranscriptEntry] = (),
        recently_asked: Sequence[str] = (),
        opening_cutoff: float | None = None,
    ) -> OrchestratorDecision:
        """Return the next decision; falls back deterministically on failure.

        The returned phase is never earlier than *phase_floor* nor earlier
        than the phase implied by the clock.
        """
        cutoff = self.config.opening_cutoff if opening_cutoff is None else opening_cutoff
        time_phase = compute_phase(
            elapsed_seconds, target_seconds, cutoff, self.config.wrap_up_cutoff
        )
        floor = clamp_phase(time_phase, phase_floor)
        self.last_activity = self._clock()

        result = await self.client.complete(
            self._prompt,
            {
                "topic": plan.topic,
                "research_goal": plan.research_goal or "N/A",
                "angle": plan.angle or "N/A",
                "elapsed": _format_time(elapsed_seconds),
                "target": _format_time(target_seconds),
                "remaining": _format_time(target_seconds - elapsed_seconds),
                "suggested_phase": floor.value,
                "plan_status": format_plan_status(plan, asked_question_ids),
                "recently_asked": format_recently_asked(recently_asked),
                "notes": format_notes_for_decision(notes),
                "research": format_research_for_decision(research),
                "transcript": format_transcript(transcript_window),
            },
            OrchestratorOutput,
            agent=self.name,
        )
        if not result.ok:
            self.last_error = result.error
            logger.warning("Orchestrator: decision failed, using plan fallback: %s", result.error)
            return self.fallback(
                plan, asked_question_ids, elapsed_seconds, target_seconds, floor, cutoff
            )

        try:
            decision = self._to_decision(result.value, plan, asked_question_ids, floor)
        except Exception as exc:
            self.last_error = str(exc)
            logger.warning("Orchestrator: unusable decision, using plan fallback: %s", exc)
            return self.fallback(
                plan, asked_question_ids, elapsed_seconds, target_seconds, floor, cutoff
            )

        self.last_error = None
        self.last_activity = self._clock()
        logger.info(
            "Orchestrator: phase=%s source=%s id=%s",
            decision.phase.value,
            decision.next_question.source.value,
            decision.next_question.source_question_id,
        )
        return decision

    def _to_decision(
        self,
        output: OrchestratorOutput,
        plan: Plan,
        asked_question_ids: frozenset[str] | set[str],
        floor: InterviewPhase,
    ) -> OrchestratorDecision:
        raw = output.next_question
        text = raw.text.strip()
        if not text:
            raise ValueError("empty question text")
        expected = raw.expected_answer_seconds
        if expected <= 0:
            expected = self.config.default_expected_answer_seconds
        question = resolve_source_question(
            NextQuestion(
                text=text,
                target_section_id=raw.target_section_id,
                source=QuestionSource(raw.source),
                source_question_id=raw.source_question_id or None,
                expected_answer_seconds=expected,
            ),
            plan,
            asked_question_ids,
            self.config.question_match_threshold,
        )
        return OrchestratorDecision(
            phase=clamp_phase(InterviewPhase.parse(output.phase), floor),
            next_question=question,
            interviewer_brief=output.interviewer_brief,
        )
