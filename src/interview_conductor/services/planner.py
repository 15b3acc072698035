"""Planner: turns a topic into a structured interview plan.

Session setup runs once before the live conversation, so unlike the live
agents the planner has no fallback: a failed or unusable model answer raises
``PlanningError`` and the caller decides what to do.
"""

from __future__ import annotations

import logging
import re
from typing import Literal

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from interview_conductor.domain.entities import Plan, Question, Section
from interview_conductor.domain.enums import Importance, QuestionRole
from interview_conductor.domain.exceptions import InterviewConductorError, PlanningError
from interview_conductor.infrastructure.llm.client import AgentClient

logger = logging.getLogger(__name__)


# -- Structured output schemas -----------------------------------------------


class PlannedQuestionOutput(BaseModel):
    id: str = Field(default="", description="Short unique id, e.g. q1")
    text: str
    role: Literal["backbone", "followup"] = "backbone"
    priority: int = Field(default=2, description="1 = must ask, 3 = nice to have")
    notes_for_interviewer: str = ""


class PlannedSectionOutput(BaseModel):
    id: str = Field(default="", description="Short unique id, e.g. s1")
    title: str
    importance: Literal["high", "medium", "low"] = "medium"
    estimated_seconds: int = 0
    questions: list[PlannedQuestionOutput] = Field(default_factory=list)


class PlannerOutput(BaseModel):
    """A generated interview plan."""

    research_goal: str = ""
    angle: str = ""
    sections: list[PlannedSectionOutput] = Field(default_factory=list)


# -- Prompt ------------------------------------------------------------------

_PLANNER_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You design interview guides for live conversations with experts. "
            "Produce 3 to 5 sections, each with 2 to 4 questions. Mark the "
            "questions that must be covered as backbone with priority 1; use "
            "followup for tangent helpers. Estimate seconds per section so the "
            "total fits the time budget. State a research goal and an angle "
            "that makes the conversation distinctive.",
        ),
        (
            "human",
            "Topic: {topic}\n\n"
            "Context from the host:\n{context}\n\n"
            "Time budget: {target_minutes} minutes.\n\n"
            "Return the plan.",
        ),
    ]
)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", value.strip().lower()).strip("_")


def _clamp_priority(value: int) -> int:
    return min(3, max(1, value))


class Planner:
    """Generates a ``Plan`` for a topic.

    Parameters
    ----------
    client:
        Structured completion client.
    prompt:
        Optional custom ``ChatPromptTemplate`` with ``topic``, ``context``
        and ``target_minutes`` inputs.
    """

    name = "Planner"

    def __init__(self, client: AgentClient, prompt: ChatPromptTemplate | None = None) -> None:
        self.client = client
        self._prompt = prompt or _PLANNER_PROMPT

    async def generate_plan(self, topic: str, context: str = "", target_minutes: int = 10) -> Plan:
        """Ask the model for a plan and convert it to domain objects.

        Raises
        ------
        PlanningError
            If the topic is blank, the call fails, or the plan has no questions.
        """
        if not topic.strip():
            raise PlanningError("Cannot plan an interview without a topic", topic=topic)

        result = await self.client.complete(
            self._prompt,
            {"topic": topic, "context": context or "(none)", "target_minutes": target_minutes},
            PlannerOutput,
            agent=self.name,
        )
        try:
            output = result.unwrap()
        except InterviewConductorError as exc:
            raise PlanningError(
                f"Plan generation failed: {exc}", topic=topic, details=exc.details
            ) from exc

        plan = self.to_plan(output, topic, target_seconds=target_minutes * 60)
        if plan.total_questions == 0:
            raise PlanningError("Generated plan contains no questions", topic=topic)
        logger.info(
            "Planner: %d sections, %d questions for %r",
            len(plan.sections),
            plan.total_questions,
            topic,
        )
        return plan

    @staticmethod
    def to_plan(output: PlannerOutput, topic: str, target_seconds: float | None = None) -> Plan:
        """Convert model output to a ``Plan``.

        Blank or duplicate ids are regenerated, priorities are clamped to
        1..3 and sections without a title are dropped.
        """
        section_ids: set[str] = set()
        question_ids: set[str] = set()
        sections: list[Section] = []

        for s_index, raw_section in enumerate(output.sections, start=1):
            title = raw_section.title.strip()
            if not title:
                continue
            section_id = _slug(raw_section.id)
            if not section_id or section_id in section_ids:
                section_id = f"s{s_index}"
                while section_id in section_ids:
                    section_id += "_"
            section_ids.add(section_id)

            questions: list[Question] = []
            for q_index, raw_question in enumerate(raw_section.questions, start=1):
                text = raw_question.text.strip()
                if not text:
                    continue
                question_id = _slug(raw_question.id)
                if not question_id or question_id in question_ids:
                    question_id = f"{section_id}_q{q_index}"
                    while question_id in question_ids:
                        question_id += "_"
                question_ids.add(question_id)
                questions.append(
                    Question(
                        question_id=question_id,
                        text=text,
                        role=QuestionRole(raw_question.role),
                        priority=_clamp_priority(raw_question.priority),
                        notes_for_interviewer=raw_question.notes_for_interviewer,
                    )
                )

            sections.append(
                Section(
                    section_id=section_id,
                    title=title,
                    questions=tuple(questions),
                    importance=Importance(raw_section.importance),
                    estimated_seconds=max(0, raw_section.estimated_seconds),
                )
            )

        return Plan(
            topic=topic,
            sections=tuple(sections),
            research_goal=output.research_goal,
            angle=output.angle,
            target_seconds=target_seconds,
        )
