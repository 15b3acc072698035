"""Aggregate roots for the interview conductor.

Aggregates enforce consistency boundaries.  The coordinator only mutates
session progress through these methods, never by touching the underlying
collections directly.

* ``PhaseFloor`` -- advance-only lower bound on the interview phase.
* ``AskedQuestionLedger`` -- monotonically growing set of asked question ids.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .entities import Plan
from .enums import InterviewPhase

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# PhaseFloor
# ---------------------------------------------------------------------------

class PhaseFloor:
    """Lower bound on the phase the orchestrator may report.

    Phases are ordered ``opening < deep_dive < wrap_up``.  ``advance`` only
    ever moves the floor forward; ``reset`` is reserved for session
    boundaries.
    """

    def __init__(self, phase: InterviewPhase = InterviewPhase.OPENING) -> None:
        self._phase = phase

    @property
    def phase(self) -> InterviewPhase:
        return self._phase

    def advance(self, phase: InterviewPhase) -> InterviewPhase:
        """Move the floor to *phase* if it is later; return the resulting floor."""
        if phase.rank > self._phase.rank:
            logger.debug("PhaseFloor: %s -> %s", self._phase.value, phase.value)
            self._phase = phase
        return self._phase

    def clamp(self, phase: InterviewPhase) -> InterviewPhase:
        """Return *phase* raised to the floor when it is earlier."""
        return phase if phase.rank >= self._phase.rank else self._phase

    def reset(self, phase: InterviewPhase = InterviewPhase.OPENING) -> None:
        self._phase = phase

    def __repr__(self) -> str:
        return f"PhaseFloor({self._phase.value!r})"


# ---------------------------------------------------------------------------
# AskedQuestionLedger
# ---------------------------------------------------------------------------

class AskedQuestionLedger:
    """Set of plan question ids that have been asked.

    Within a session the set only grows.  Ids that do not belong to the
    plan are ignored.
    """

    def __init__(self, question_ids: Iterable[str] = ()) -> None:
        self._ids: set[str] = set(question_ids)

    def mark(self, question_id: str | None, plan: Plan | None = None) -> bool:
        """Record *question_id* as asked.

        Returns ``True`` if the id was newly added.  When *plan* is given,
        ids not present in it are ignored.
        """
        if not question_id:
            return False
        if plan is not None and plan.get_question(question_id) is None:
            logger.debug("AskedQuestionLedger: ignoring unknown question id %r", question_id)
            return False
        if question_id in self._ids:
            return False
        self._ids.add(question_id)
        return True

    def is_asked(self, question_id: str) -> bool:
        return question_id in self._ids

    def snapshot(self) -> frozenset[str]:
        """Immutable copy for handing to agents."""
        return frozenset(self._ids)

    def clear(self) -> None:
        self._ids.clear()

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)
