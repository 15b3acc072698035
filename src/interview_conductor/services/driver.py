"""Live session driver: runs coordinator cycles on a timer.

The driver buffers utterances from the voice layer, runs one coordinator
cycle every ``interval`` seconds and pushes the resulting instructions to an
``InstructionChannel``.  A cycle is skipped while the previous one is still
running or before anyone has spoken.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from interview_conductor.domain.entities import Plan
from interview_conductor.domain.enums import Speaker
from interview_conductor.domain.values import LiveUpdateResult, TranscriptEntry
from interview_conductor.services.coordinator import AgentCoordinator
from interview_conductor.services.instructions import build_session_instructions

logger = logging.getLogger(__name__)


class InstructionChannel(ABC):
    """Destination for updated interviewer instructions, e.g. a realtime voice session."""

    @abstractmethod
    async def update_instructions(self, text: str) -> None:
        """Replace the interviewer's instructions with *text*."""


class LiveSessionDriver:
    """Drives an ``AgentCoordinator`` for one live interview.

    Parameters
    ----------
    coordinator:
        The coordinator owning session state.
    channel:
        Destination for instruction updates.
    plan:
        The interview plan.
    target_seconds:
        Time budget; defaults to ``plan.target_seconds``.
    interval:
        Seconds between cycles.
    clock:
        Monotonic time source for elapsed-time tracking.
    """

    def __init__(
        self,
        coordinator: AgentCoordinator,
        channel: InstructionChannel,
        plan: Plan,
        target_seconds: float | None = None,
        interval: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.coordinator = coordinator
        self.channel = channel
        self.plan = plan
        self.target_seconds = (
            target_seconds if target_seconds is not None else (plan.target_seconds or 0.0)
        )
        self.interval = interval
        self._clock = clock
        self._pending: list[TranscriptEntry] = []
        self._processing = False
        self._task: asyncio.Task[None] | None = None
        self._started_at: float | None = None
        self._paused_at: float | None = None
        self._paused_total = 0.0
        self.last_result: LiveUpdateResult | None = None
        self.cycles_run = 0

    # -- input ----------------------------------------------------------------

    def add_utterance(self, speaker: Speaker, text: str, is_final: bool = True) -> None:
        """Buffer a final utterance for the next cycle; partials are dropped."""
        if not is_final or not text.strip():
            return
        self._pending.append(TranscriptEntry(speaker=speaker, text=text.strip()))

    # -- timing ---------------------------------------------------------------

    @property
    def elapsed_seconds(self) -> float:
        """Interview time so far, excluding paused intervals."""
        if self._started_at is None:
            return 0.0
        now = self._paused_at if self._paused_at is not None else self._clock()
        return max(0.0, now - self._started_at - self._paused_total)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    def pause(self) -> None:
        if self._paused_at is None:
            self._paused_at = self._clock()

    def resume(self) -> None:
        if self._paused_at is not None:
            self._paused_total += self._clock() - self._paused_at
            self._paused_at = None

    # -- cycles ---------------------------------------------------------------

    async def run_cycle(self) -> LiveUpdateResult | None:
        """Run one coordinator cycle and forward its instructions.

        Returns ``None`` when the cycle was skipped.
        """
        if self._processing:
            logger.debug("LiveSessionDriver: previous cycle still running, skipping")
            return None
        if not self._pending and not self.coordinator.transcript:
            logger.debug("LiveSessionDriver: no transcript yet, skipping")
            return None

        self._processing = True
        try:
            utterances, self._pending = self._pending, []
            result = await self.coordinator.process_live_update(
                utterances,
                self.plan,
                elapsed_seconds=self.elapsed_seconds,
                target_seconds=self.target_seconds,
            )
        finally:
            self._processing = False

        self.last_result = result
        self.cycles_run += 1
        if not result.decision_reused:
            await self._send(result.instructions)
        return result

    async def _send(self, text: str) -> None:
        try:
            await self.channel.update_instructions(text)
        except Exception as exc:
            logger.warning("LiveSessionDriver: instruction update failed: %s", exc)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.is_paused:
                continue
            await self.run_cycle()

    async def start(self) -> None:
        """Send the opening instructions and start the cycle loop."""
        if self.is_running:
            return
        self._started_at = self._clock()
        self._paused_at = None
        self._paused_total = 0.0
        await self._send(build_session_instructions(self.plan, self.target_seconds))
        self._task = asyncio.create_task(self._loop())
        logger.info("LiveSessionDriver: started (interval %.1fs)", self.interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it; an in-flight cycle is abandoned."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("LiveSessionDriver: stopped after %d cycles", self.cycles_run)
