"""Domain entities for the interview conductor.

Entities have *identity* (a unique id).  ``Plan`` is the interview guide
produced during session setup; it is immutable once the interview is live.
Whether a question has been asked is tracked by the coordinator's
``AskedQuestionLedger``, never on the plan itself.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field

from .enums import Importance, QuestionRole

# ---------------------------------------------------------------------------
# Question / Section
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Question:
    """A single question in the interview plan.

    Parameters
    ----------
    question_id:
        Identifier unique within the plan.
    text:
        The question as the interviewer should ask it.
    role:
        ``backbone`` questions are must-hit; ``followup`` questions are
        helpers for tangents.
    priority:
        1 is must-ask, 3 is nice-to-have.
    notes_for_interviewer:
        Free-form hint for how to approach the question.
    """

    question_id: str
    text: str
    role: QuestionRole = QuestionRole.BACKBONE
    priority: int = 2
    notes_for_interviewer: str = ""

    def __post_init__(self) -> None:
        if not self.question_id:
            raise ValueError("question_id must not be empty")
        if not 1 <= self.priority <= 3:
            raise ValueError(
                f"priority must be in [1, 3], got {self.priority} for {self.question_id!r}"
            )


@dataclass(frozen=True)
class Section:
    """A thematic block of the plan with its ordered questions."""

    section_id: str
    title: str
    questions: tuple[Question, ...] = ()
    importance: Importance = Importance.MEDIUM
    estimated_seconds: int = 0


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Plan:
    """The ordered interview guide.

    Question ids must be unique across all sections; a duplicate raises
    ``ValueError`` at construction.
    """

    topic: str
    sections: tuple[Section, ...] = ()
    research_goal: str = ""
    angle: str = ""
    target_seconds: float | None = None
    plan_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for _, question in self.iter_questions():
            if question.question_id in seen:
                raise ValueError(f"Duplicate question id {question.question_id!r} in plan")
            seen.add(question.question_id)

    # -- queries --------------------------------------------------------------

    def iter_questions(self) -> Iterator[tuple[Section, Question]]:
        """Yield ``(section, question)`` pairs in plan order."""
        for section in self.sections:
            for question in section.questions:
                yield section, question

    @property
    def questions(self) -> list[Question]:
        return [q for _, q in self.iter_questions()]

    @property
    def question_ids(self) -> frozenset[str]:
        return frozenset(q.question_id for _, q in self.iter_questions())

    def get_question(self, question_id: str) -> Question | None:
        for _, question in self.iter_questions():
            if question.question_id == question_id:
                return question
        return None

    def section_for(self, question_id: str) -> Section | None:
        """Return the section containing *question_id*, if any."""
        for section, question in self.iter_questions():
            if question.question_id == question_id:
                return section
        return None

    def get_section(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.section_id == section_id:
                return section
        return None

    @property
    def section_ids(self) -> frozenset[str]:
        return frozenset(s.section_id for s in self.sections)

    @property
    def total_questions(self) -> int:
        return sum(len(s.questions) for s in self.sections)
