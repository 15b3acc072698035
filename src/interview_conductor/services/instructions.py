"""Formatting of instructions for the voice interviewer.

``build_session_instructions`` produces the text the live channel starts
with; ``build_interviewer_instructions`` produces the per-cycle update that
carries the orchestrator's decision plus supporting context.
"""

from __future__ import annotations

from collections.abc import Sequence

from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import QuestionRole, ResearchKind
from interview_conductor.domain.values import NotesState, OrchestratorDecision, ResearchItem

_MAX_RESEARCH_FACTS = 3
_MAX_FACT_CHECKS = 3
_MAX_GAPS = 3
_MAX_CONTRADICTIONS = 2


def build_interviewer_instructions(
    decision: OrchestratorDecision,
    notes: NotesState,
    research: Sequence[ResearchItem] = (),
) -> str:
    """Render one cycle's decision as a markdown instruction block.

    Sections with nothing to say are omitted.  Research facts are the
    highest priority non-verification items; fact-check notes are the
    claim-verification items with a known status.
    """
    question = decision.next_question
    lines = [
        f"## Current Phase: {decision.phase.display_name}",
        "",
        "## Ask Next",
        question.text,
    ]
    if decision.interviewer_brief:
        lines += ["", "## How to Ask", decision.interviewer_brief]

    facts = sorted(
        (r for r in research if r.kind is not ResearchKind.CLAIM_VERIFICATION),
        key=lambda r: r.priority,
    )[:_MAX_RESEARCH_FACTS]
    if facts:
        lines += ["", "## Research Context"]
        for item in facts:
            line = f"- **{item.topic}**: {item.summary}"
            if item.how_to_use_in_question:
                line += f" (use: {item.how_to_use_in_question})"
            lines.append(line)

    checks = [
        r
        for r in research
        if r.kind is ResearchKind.CLAIM_VERIFICATION and r.verification_status is not None
    ][:_MAX_FACT_CHECKS]
    if checks:
        lines += ["", "## Fact-Check Notes"]
        for item in checks:
            status = item.verification_status.value.replace("_", " ").upper()
            line = f"- [{status}] {item.topic}: {item.summary}"
            if item.verification_note:
                line += f" ({item.verification_note})"
            lines.append(line)
        if any(r.is_contradicted_claim for r in checks):
            lines.append("Raise contradicted claims gently; ask the expert for their source.")

    if notes.gaps:
        lines += ["", "## Open Gaps"]
        for gap in notes.gaps[:_MAX_GAPS]:
            line = f"- {gap.description}"
            if gap.suggested_followup:
                line += f" (try: {gap.suggested_followup})"
            lines.append(line)

    if notes.contradictions:
        lines += ["", "## Contradictions to Clarify"]
        for item in notes.contradictions[:_MAX_CONTRADICTIONS]:
            line = f"- {item.description}"
            if item.suggested_clarification_question:
                line += f" (ask: {item.suggested_clarification_question})"
            lines.append(line)

    return "\n".join(lines)


def _minutes(seconds: float) -> int:
    return max(1, round(seconds / 60))


def build_session_instructions(plan: Plan, target_seconds: float | None = None) -> str:
    """Opening instructions for the voice interviewer.

    Lists every section with backbone questions flagged as must-ask, then
    the role, conversational style and time budget.
    """
    target = target_seconds if target_seconds is not None else plan.target_seconds
    lines = [
        "You are an expert podcast-style interviewer running a live conversation "
        "with a subject-matter expert.",
        "",
        f"**Topic**: {plan.topic}",
    ]
    if plan.research_goal:
        lines.append(f"**Research Goal**: {plan.research_goal}")
    if plan.angle:
        lines.append(f"**Angle**: {plan.angle}")

    lines += ["", "## Interview Plan"]
    for index, section in enumerate(plan.sections, start=1):
        lines.append(f"### {index}. {section.title}")
        for question in section.questions:
            tag = "**[MUST ASK]**" if question.role is QuestionRole.BACKBONE else "[follow-up]"
            lines.append(f"- {tag} {question.text}")
            if question.notes_for_interviewer:
                lines.append(f"  _Note: {question.notes_for_interviewer}_")
        lines.append("")

    lines += [
        "## Your Role",
        "- Ask one question at a time and let the expert finish.",
        "- Follow interesting threads, then return to the plan.",
        "- Ask for concrete stories, numbers and examples.",
        "- You will receive live updates naming the next question; prefer them.",
        "",
        "## Conversation Style",
        "Warm, curious and concise. Acknowledge answers briefly before moving on. "
        "Never read the plan aloud.",
    ]

    if target and target > 0:
        total = _minutes(target)
        lines += [
            "",
            "## Time Budget",
            f"About {total} minutes in total. Spend the first 2-3 minutes on context "
            "and stakes, most of the time going deep on the plan, and the last "
            "2-3 minutes on synthesis and final reflections.",
        ]

    lines += ["", "Start by warmly greeting the expert and introducing the topic."]
    return "\n".join(lines)
