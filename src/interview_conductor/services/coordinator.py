"""Agent coordinator: owns session state and runs the live cycle.

The coordinator is the single writer of everything that persists across
cycles -- transcript buffer, notes, accumulated research, asked-question
ledger, phase floor, decision cache and agent activity.  Each call to
``process_live_update`` is one cycle:

1. Append new utterances; advance the phase floor with the clock.
2. Run the compiled cycle graph: NoteTaker and Researcher in parallel (or
   skipped when nothing is new), then the Orchestrator (or the cached
   decision when it is still fresh).
3. Commit the results, unless the session was reset while the cycle was in
   flight.

All mutations happen synchronously between awaits, so concurrent callers on
one event loop never interleave partial updates.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel

from interview_conductor.domain.aggregates import AskedQuestionLedger, PhaseFloor
from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import InterviewPhase
from interview_conductor.domain.values import (
    LiveUpdateResult,
    NotesState,
    OrchestratorDecision,
    ResearchItem,
    SessionSnapshot,
    TranscriptEntry,
)
from interview_conductor.graph.graph import build_live_cycle_graph
from interview_conductor.infrastructure.config import (
    CoordinatorConfig,
    NoteTakerConfig,
    OrchestratorConfig,
    ResearcherConfig,
)
from interview_conductor.infrastructure.llm.client import LangChainAgentClient
from interview_conductor.services.instructions import build_interviewer_instructions
from interview_conductor.services.note_taker import NoteTaker
from interview_conductor.services.orchestrator import Orchestrator, compute_phase
from interview_conductor.services.researcher import Researcher
from interview_conductor.services.transcript import window

logger = logging.getLogger(__name__)


class AgentCoordinator:
    """Runs NoteTaker, Researcher and Orchestrator as one live cycle.

    ``process_live_update`` never raises; the worst case is the
    Orchestrator's deterministic plan fallback.

    Parameters
    ----------
    note_taker, researcher, orchestrator:
        The three agents.
    config:
        Transcript windows, decision reuse window and activity decay.
    clock:
        Monotonic time source for the decision cache and activity scores.
    """

    def __init__(
        self,
        note_taker: NoteTaker,
        researcher: Researcher,
        orchestrator: Orchestrator,
        config: CoordinatorConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.note_taker = note_taker
        self.researcher = researcher
        self.orchestrator = orchestrator
        self.config = config or CoordinatorConfig()
        self._clock = clock
        self._graph = build_live_cycle_graph(note_taker, researcher, orchestrator)

        self._transcript: list[TranscriptEntry] = []
        self._notes = NotesState()
        self._research: list[ResearchItem] = []
        self._asked = AskedQuestionLedger()
        self._phase_floor = PhaseFloor()
        self._last_decision: OrchestratorDecision | None = None
        self._last_decision_at: float | None = None
        self._recently_asked: list[str] = []
        self._activity: dict[str, float] = {}
        self._opening_cutoff = orchestrator.config.opening_cutoff
        self._generation = 0
        self._refresh_pending = True

    @classmethod
    def from_model(
        cls,
        model: BaseChatModel,
        *,
        timeout: float | None = 45.0,
        note_taker_config: NoteTakerConfig | None = None,
        researcher_config: ResearcherConfig | None = None,
        orchestrator_config: OrchestratorConfig | None = None,
        coordinator_config: CoordinatorConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> AgentCoordinator:
        """Build a coordinator whose three agents share one chat model."""
        client = LangChainAgentClient(model, timeout=timeout)
        return cls(
            NoteTaker(client, note_taker_config, clock=clock),
            Researcher(client, researcher_config, clock=clock),
            Orchestrator(client, orchestrator_config, clock=clock),
            config=coordinator_config,
            clock=clock,
        )

    # -- read-only views ------------------------------------------------------

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._transcript)

    @property
    def notes(self) -> NotesState:
        return self._notes

    @property
    def research(self) -> tuple[ResearchItem, ...]:
        return tuple(self._research)

    @property
    def asked_question_ids(self) -> frozenset[str]:
        return self._asked.snapshot()

    @property
    def phase(self) -> InterviewPhase:
        """Current phase floor."""
        return self._phase_floor.phase

    @property
    def last_decision(self) -> OrchestratorDecision | None:
        return self._last_decision

    @property
    def recently_asked(self) -> tuple[str, ...]:
        return tuple(self._recently_asked)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def refresh_pending(self) -> bool:
        return self._refresh_pending

    @property
    def opening_cutoff(self) -> float:
        return self._opening_cutoff

    # -- session lifecycle ----------------------------------------------------

    def start_new_session(self) -> None:
        """Clear all session state and reset the Researcher.

        Cycles still in flight from the previous session finish but their
        results are not merged.
        """
        self._generation += 1
        self._transcript.clear()
        self._notes = NotesState()
        self._research.clear()
        self._asked.clear()
        self._phase_floor.reset()
        self._clear_decision_cache()
        self._recently_asked.clear()
        self._activity.clear()
        self._opening_cutoff = self.orchestrator.config.opening_cutoff
        self._refresh_pending = True
        self.researcher.reset()
        logger.info("AgentCoordinator: new session (generation %d)", self._generation)

    def start_follow_up_session(self) -> None:
        """Begin a follow-up conversation on the same plan.

        Notes, research, the asked-question set and the researcher's topic
        tracking carry over.  The transcript, decision cache and phase floor
        start fresh, and the opening phase is shorter.
        """
        self._generation += 1
        self._transcript.clear()
        self._phase_floor.reset()
        self._clear_decision_cache()
        self._recently_asked.clear()
        self._opening_cutoff = self.orchestrator.config.follow_up_opening_cutoff
        self._refresh_pending = True
        logger.info(
            "AgentCoordinator: follow-up session (generation %d, %d questions already asked)",
            self._generation,
            len(self._asked),
        )

    def mark_question_asked(self, question_id: str, plan: Plan) -> bool:
        """Record *question_id* as asked; unknown ids are ignored."""
        return self._asked.mark(question_id, plan)

    def request_refresh(self) -> None:
        """Force the agents to run on the next cycle even without new transcript."""
        self._refresh_pending = True

    def agent_activity(self) -> dict[str, float]:
        """Recency score per agent: 1.0 just now, falling linearly to 0."""
        now = self._clock()
        decay = self.config.activity_decay_seconds
        return {
            name: max(0.0, 1.0 - (now - at) / decay)
            for name, at in self._activity.items()
        }

    # -- persistence hook -----------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            transcript=tuple(self._transcript),
            notes=self._notes,
            research=tuple(self._research),
            asked_question_ids=self._asked.snapshot(),
            phase_floor=self._phase_floor.phase,
            recently_asked=tuple(self._recently_asked),
            opening_cutoff=self._opening_cutoff,
        )

    def restore(self, snapshot: SessionSnapshot) -> None:
        """Replace session state with *snapshot*; the next cycle re-runs all agents."""
        self._generation += 1
        self._transcript = list(snapshot.transcript)
        self._notes = snapshot.notes
        self._research = []
        self._append_research(snapshot.research)
        self._asked = AskedQuestionLedger(snapshot.asked_question_ids)
        self._phase_floor = PhaseFloor(snapshot.phase_floor)
        self._recently_asked = list(snapshot.recently_asked)
        self._opening_cutoff = (
            snapshot.opening_cutoff
            if snapshot.opening_cutoff is not None
            else self.orchestrator.config.opening_cutoff
        )
        self._clear_decision_cache()
        self._activity.clear()
        self._refresh_pending = True
        self.researcher.reset()
        logger.info(
            "AgentCoordinator: restored session (%d entries, %d asked, phase %s)",
            len(self._transcript),
            len(self._asked),
            self._phase_floor.phase.value,
        )

    # -- the live cycle -------------------------------------------------------

    async def process_live_update(
        self,
        new_utterances: Iterable[TranscriptEntry],
        plan: Plan,
        current_notes: NotesState | None = None,
        elapsed_seconds: float = 0.0,
        target_seconds: float | None = None,
    ) -> LiveUpdateResult:
        """Run one cycle and return ``(notes, new_research_items, decision)``.

        Parameters
        ----------
        new_utterances:
            Transcript entries received since the previous cycle.
        plan:
            The interview plan.
        current_notes:
            Notes to build on.  Defaults to the coordinator's own notes.
        elapsed_seconds:
            Interview time used so far.
        target_seconds:
            Interview time budget.  Defaults to ``plan.target_seconds``.
        """
        utterances = list(new_utterances)
        target = target_seconds if target_seconds is not None else (plan.target_seconds or 0.0)
        base_notes = current_notes if current_notes is not None else self._notes
        generation = self._generation
        try:
            return await self._run_cycle(utterances, plan, base_notes, elapsed_seconds, target)
        except Exception:
            logger.exception("AgentCoordinator: cycle failed, using plan fallback")
            if generation != self._generation:
                decision = self.orchestrator.fallback(plan, frozenset(), elapsed_seconds, target)
                return LiveUpdateResult(
                    notes=base_notes,
                    new_research_items=(),
                    decision=decision,
                    instructions=build_interviewer_instructions(decision, base_notes, ()),
                    metadata={"error": True, "discarded": True},
                )
            decision = self.orchestrator.fallback(
                plan,
                self._asked.snapshot(),
                elapsed_seconds,
                target,
                self._phase_floor.phase,
                self._opening_cutoff,
            )
            self._commit_decision(decision, plan)
            return LiveUpdateResult(
                notes=base_notes,
                new_research_items=(),
                decision=decision,
                instructions=build_interviewer_instructions(decision, base_notes, self._research),
                metadata={"error": True},
            )

    async def _run_cycle(
        self,
        utterances: list[TranscriptEntry],
        plan: Plan,
        base_notes: NotesState,
        elapsed_seconds: float,
        target_seconds: float,
    ) -> LiveUpdateResult:
        generation = self._generation
        self._transcript.extend(utterances)
        self._phase_floor.advance(
            compute_phase(
                elapsed_seconds,
                target_seconds,
                self._opening_cutoff,
                self.orchestrator.config.wrap_up_cutoff,
            )
        )

        has_new = bool(utterances)
        run_agents = has_new or self._refresh_pending
        reuse = not run_agents and self._decision_is_fresh()

        state: dict[str, Any] = {
            "plan": plan,
            "topic": plan.topic,
            "note_taker_window": tuple(window(self._transcript, self.config.note_taker_window)),
            "researcher_window": tuple(window(self._transcript, self.config.researcher_window)),
            "orchestrator_window": tuple(window(self._transcript, self.config.orchestrator_window)),
            "prior_notes": base_notes,
            "accumulated_research": tuple(self._research),
            "asked_question_ids": self._asked.snapshot(),
            "recently_asked": tuple(self._recently_asked[-self.config.recently_asked_limit :])
            if self.config.recently_asked_limit
            else (),
            "elapsed_seconds": elapsed_seconds,
            "target_seconds": target_seconds,
            "phase_floor": self._phase_floor.phase,
            "opening_cutoff": self._opening_cutoff,
            "run_agents": run_agents,
            "reuse_decision": reuse,
            "cached_decision": self._last_decision,
            "agent_errors": [],
        }
        logger.debug(
            "AgentCoordinator: cycle start (new=%d, run_agents=%s, reuse=%s)",
            len(utterances),
            run_agents,
            reuse,
        )

        out = await self._graph.ainvoke(state)

        notes: NotesState = out.get("notes") or base_notes
        new_research: list[ResearchItem] = list(out.get("new_research") or [])
        decision: OrchestratorDecision = out["decision"]
        reused = bool(out.get("decision_reused"))
        errors: list[dict[str, Any]] = list(out.get("agent_errors") or [])

        if generation != self._generation:
            logger.info("AgentCoordinator: session changed during cycle, discarding results")
            return LiveUpdateResult(
                notes=notes,
                new_research_items=tuple(new_research),
                decision=decision,
                instructions=build_interviewer_instructions(decision, notes, new_research),
                agents_skipped=not run_agents,
                decision_reused=reused,
                metadata={"discarded": True, "agent_errors": errors},
            )

        # -- commit (no awaits below this point)
        self._notes = notes
        appended = self._append_research(new_research)
        if not reused:
            self._commit_decision(decision, plan)
        if run_agents:
            now = self._clock()
            self._activity[self.note_taker.name] = now
            self._activity[self.researcher.name] = now
            self._refresh_pending = any(e.get("agent") == self.note_taker.name for e in errors)
        if not reused:
            self._activity[self.orchestrator.name] = self._clock()

        logger.info(
            "AgentCoordinator: cycle done phase=%s next=%r (+%d research, %d asked%s)",
            decision.phase.value,
            decision.next_question.text[:60],
            len(appended),
            len(self._asked),
            ", reused" if reused else "",
        )
        return LiveUpdateResult(
            notes=notes,
            new_research_items=tuple(appended),
            decision=decision,
            instructions=build_interviewer_instructions(decision, notes, self._research),
            agents_skipped=not run_agents,
            decision_reused=reused,
            metadata={"agent_errors": errors} if errors else {},
        )

    # -- internals ------------------------------------------------------------

    def _decision_is_fresh(self) -> bool:
        if self._last_decision is None or self._last_decision_at is None:
            return False
        return self._clock() - self._last_decision_at < self.config.decision_reuse_seconds

    def _clear_decision_cache(self) -> None:
        self._last_decision = None
        self._last_decision_at = None

    def _commit_decision(self, decision: OrchestratorDecision, plan: Plan) -> None:
        self._asked.mark(decision.next_question.source_question_id, plan)
        self._phase_floor.advance(decision.phase)
        self._last_decision = decision
        self._last_decision_at = self._clock()
        text = decision.next_question.text
        if text and (not self._recently_asked or self._recently_asked[-1] != text):
            self._recently_asked.append(text)
        limit = max(self.config.recently_asked_limit, 1)
        del self._recently_asked[:-limit]

    def _append_research(self, items: Sequence[ResearchItem]) -> list[ResearchItem]:
        """Append items whose topic is new; return the ones appended."""
        seen = {r.topic_key for r in self._research}
        appended: list[ResearchItem] = []
        for item in items:
            if item.topic_key in seen:
                continue
            seen.add(item.topic_key)
            self._research.append(item)
            appended.append(item)
        return appended
