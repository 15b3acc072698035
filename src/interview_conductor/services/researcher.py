"""Researcher agent: background context and fact-checks during the interview.

Per cycle the researcher asks the model which 1-3 concrete topics from the
recent transcript are worth looking up (people, companies, jargon, claims to
verify), then researches each one and returns the new ``ResearchItem``s.

The researcher keeps its own bookkeeping between cycles:

* ``TopicTracker`` -- which topics were attempted or researched recently, so
  the same topic is not looked up twice within the freshness window.
* a consecutive-failure counter with a simple cooldown: after too many
  failed cycles it sits out a few cycles, then tries again.
* the fingerprint of the last transcript window, so an unchanged window
  costs nothing.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Literal

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from interview_conductor.domain.enums import ResearchKind, VerificationStatus
from interview_conductor.domain.values import ResearchItem, TranscriptEntry, topic_key
from interview_conductor.infrastructure.config import ResearcherConfig
from interview_conductor.infrastructure.llm.client import AgentClient
from interview_conductor.services.transcript import format_transcript, transcript_fingerprint

logger = logging.getLogger(__name__)

_KindLiteral = Literal[
    "definition",
    "counterpoint",
    "example",
    "metric",
    "person",
    "company",
    "context",
    "trend",
    "claim_verification",
]


# -- Structured output schemas -----------------------------------------------


class TopicToResearch(BaseModel):
    """A concrete topic the model wants to look up."""

    topic: str = Field(description="The specific concept, name or claim to research")
    kind: _KindLiteral = Field(default="context", description="What type of research is needed")
    search_query: str = Field(default="", description="A good search query for it")
    why_useful: str = Field(default="", description="How this helps the interviewer")


class TopicIdentificationOutput(BaseModel):
    topics_to_research: list[TopicToResearch] = Field(default_factory=list)


class ResearchItemOutput(BaseModel):
    """Result of researching one topic."""

    topic: str = Field(description="The topic that was researched")
    kind: _KindLiteral = Field(default="context")
    summary: str = Field(description="Concise factual summary, 2-3 sentences")
    how_to_use_in_question: str = Field(default="", description="How to use this in a question")
    priority: int = Field(default=2, description="1 = very important, 3 = nice to have")
    verification_status: Literal[
        "verified", "contradicted", "partially_true", "unverifiable"
    ] | None = Field(default=None, description="Only for claim_verification items")
    verification_note: str | None = Field(default=None)


# -- Prompts -----------------------------------------------------------------

_IDENTIFY_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a skeptical research assistant supporting a live interview. "
            "Find specific things in the conversation worth looking up so the "
            "interviewer can ask sharper, better-informed questions.\n\n"
            "Look for: claims to verify, numbers to check, counterpoints, "
            "technical terms, people and companies mentioned, and historical "
            "context. Do not assume the expert is right.\n\n"
            "Return 1 to 3 specific topics. Never return the interview's main "
            "topic itself or anything listed as already researched.",
        ),
        (
            "human",
            "## Interview Topic\n{topic}\n\n"
            "## Already Researched\n{excluded_topics}\n\n"
            "## Recent Transcript\n{transcript}\n\n"
            "Which topics should be researched now?",
        ),
    ]
)

_RESEARCH_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a fact-checker. Find the truth, not just confirmation. "
            "Include specific numbers, dates and names. If a claim cannot be "
            "verified, say so and mark it unverifiable.",
        ),
        (
            "human",
            "Research this topic for an interviewer.\n\n"
            "**Topic**: {topic}\n"
            "**Research Type**: {kind}\n"
            "**Search Query**: {search_query}\n"
            "**Why Useful**: {why_useful}\n\n"
            "Provide a brief factual summary and how to use it in a follow-up "
            "question. Rate priority 1 (very important) to 3 (nice to have).",
        ),
    ]
)


# -- TopicTracker ------------------------------------------------------------


class TopicTracker:
    """Remembers recently attempted and researched topics.

    Keys are case-insensitive.  Entries expire ``freshness_seconds`` after
    they were recorded, after which the topic may be suggested again.

    Parameters
    ----------
    freshness_seconds:
        Age at which a tracked topic is forgotten.
    clock:
        Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        freshness_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.freshness_seconds = freshness_seconds
        self._clock = clock
        self._attempted: dict[str, float] = {}
        self._succeeded: dict[str, float] = {}

    def mark_attempted(self, topic: str) -> None:
        self._attempted[topic_key(topic)] = self._clock()

    def mark_succeeded(self, topic: str) -> None:
        self._succeeded[topic_key(topic)] = self._clock()

    def was_attempted(self, topic: str) -> bool:
        return topic_key(topic) in self._attempted

    def was_succeeded(self, topic: str) -> bool:
        return topic_key(topic) in self._succeeded

    def expire(self) -> int:
        """Forget topics whose age is at least ``freshness_seconds``.

        Returns the number of keys removed.
        """
        now = self._clock()
        removed = 0
        for table in (self._attempted, self._succeeded):
            stale = [k for k, t in table.items() if now - t >= self.freshness_seconds]
            for key in stale:
                del table[key]
            removed += len(stale)
        return removed

    def excluded_topics(self) -> set[str]:
        return set(self._attempted) | set(self._succeeded)

    def is_excluded(self, topic: str) -> bool:
        key = topic_key(topic)
        return key in self._attempted or key in self._succeeded

    def reset(self) -> None:
        self._attempted.clear()
        self._succeeded.clear()

    def __len__(self) -> int:
        return len(self.excluded_topics())


# -- Researcher --------------------------------------------------------------


def _clamp_priority(value: int) -> int:
    return max(1, min(3, int(value)))


class Researcher:
    """Identifies and researches topics raised in the conversation.

    ``research`` never raises; failed lookups are logged and skipped.
    Cooldown is checked before the unchanged-window skip, so every cycle with
    a non-empty window counts towards ``cooldown_cycles``.

    Parameters
    ----------
    client:
        Structured completion client.
    config:
        Topic budget, freshness window and cooldown settings.
    clock:
        Monotonic time source shared with the ``TopicTracker``.
    """

    name = "Researcher"

    def __init__(
        self,
        client: AgentClient,
        config: ResearcherConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        identify_prompt: ChatPromptTemplate | None = None,
        research_prompt: ChatPromptTemplate | None = None,
    ) -> None:
        self.client = client
        self.config = config or ResearcherConfig()
        self._clock = clock
        self._identify_prompt = identify_prompt or _IDENTIFY_PROMPT
        self._research_prompt = research_prompt or _RESEARCH_PROMPT
        self.tracker = TopicTracker(self.config.topic_freshness_seconds, clock=clock)
        self._consecutive_failures = 0
        self._skipped_cycles = 0
        self._last_fingerprint: str | None = None
        self._epoch = 0
        self.last_activity: float | None = None
        self.last_error: str | None = None

    # -- properties -----------------------------------------------------------

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def skipped_cycles(self) -> int:
        return self._skipped_cycles

    @property
    def in_cooldown(self) -> bool:
        return self._consecutive_failures >= self.config.failure_threshold

    # -- lifecycle ------------------------------------------------------------

    def reset(self) -> None:
        """Forget all tracking state (new interview session).

        A ``research`` call still awaiting the model when this runs returns
        ``[]`` and leaves the fresh state untouched.
        """
        self._epoch += 1
        self.tracker.reset()
        self._consecutive_failures = 0
        self._skipped_cycles = 0
        self._last_fingerprint = None
        self.last_activity = None
        self.last_error = None

    # -- main entry point -----------------------------------------------------

    async def research(
        self,
        transcript_window: Sequence[TranscriptEntry],
        existing_research: Sequence[ResearchItem],
        topic: str,
    ) -> list[ResearchItem]:
        """Return research items produced this cycle (possibly empty)."""
        if not transcript_window:
            logger.debug("Researcher: empty transcript window")
            return []

        if self.in_cooldown:
            self._skipped_cycles += 1
            logger.debug(
                "Researcher: cooling down after %d failures (skip %d/%d)",
                self._consecutive_failures,
                self._skipped_cycles,
                self.config.cooldown_cycles,
            )
            if self._skipped_cycles >= self.config.cooldown_cycles:
                self._consecutive_failures = 0
                self._skipped_cycles = 0
            return []

        fingerprint = transcript_fingerprint(transcript_window)
        if fingerprint == self._last_fingerprint:
            logger.debug("Researcher: transcript unchanged since last cycle")
            return []
        self._last_fingerprint = fingerprint

        self.tracker.expire()
        self.last_activity = self._clock()
        epoch = self._epoch

        candidates = await self._identify_topics(
            transcript_window, existing_research, topic, epoch
        )
        if self._is_stale(epoch):
            return []
        if candidates is None:
            self._record_failure()
            return []
        if not candidates:
            logger.debug("Researcher: no new topics identified")
            return []

        items: list[ResearchItem] = []
        tried = 0
        for candidate in candidates[: self.config.max_topics_per_cycle]:
            tried += 1
            self.tracker.mark_attempted(candidate.topic)
            item = await self._research_topic(candidate, epoch)
            if self._is_stale(epoch):
                return []
            if item is None:
                continue
            self.tracker.mark_succeeded(candidate.topic)
            items.append(item)

        if items:
            self._consecutive_failures = 0
            self.last_error = None
        elif tried:
            self._record_failure()

        self.last_activity = self._clock()
        logger.info("Researcher: %d/%d topics researched", len(items), tried)
        return items

    # -- internals ------------------------------------------------------------

    def _is_stale(self, epoch: int) -> bool:
        """True when ``reset`` ran while a call started in *epoch* was awaited."""
        if epoch == self._epoch:
            return False
        logger.debug("Researcher: reset during cycle, dropping its results")
        return True

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        logger.debug("Researcher: consecutive failures = %d", self._consecutive_failures)

    def _filter_topics(
        self,
        topics: Iterable[TopicToResearch],
        main_topic: str,
        already_researched: Iterable[str] = (),
    ) -> list[TopicToResearch]:
        main_key = topic_key(main_topic)
        seen: set[str] = set(already_researched)
        kept: list[TopicToResearch] = []
        for candidate in topics:
            key = topic_key(candidate.topic)
            if not key or key == main_key or key in seen or self.tracker.is_excluded(key):
                continue
            seen.add(key)
            kept.append(candidate)
        return kept

    async def _identify_topics(
        self,
        transcript_window: Sequence[TranscriptEntry],
        existing_research: Sequence[ResearchItem],
        topic: str,
        epoch: int,
    ) -> list[TopicToResearch] | None:
        """Ask for topics; ``None`` signals a failed call."""
        excluded = sorted(
            self.tracker.excluded_topics() | {r.topic_key for r in existing_research}
        )
        result = await self.client.complete(
            self._identify_prompt,
            {
                "topic": topic,
                "excluded_topics": ", ".join(excluded) if excluded else "None yet",
                "transcript": format_transcript(transcript_window),
            },
            TopicIdentificationOutput,
            agent=self.name,
        )
        if self._is_stale(epoch):
            return None
        if not result.ok:
            self.last_error = result.error
            logger.warning("Researcher: topic identification failed: %s", result.error)
            return None
        return self._filter_topics(
            result.value.topics_to_research, topic, (r.topic_key for r in existing_research)
        )

    async def _research_topic(
        self, candidate: TopicToResearch, epoch: int
    ) -> ResearchItem | None:
        result = await self.client.complete(
            self._research_prompt,
            {
                "topic": candidate.topic,
                "kind": candidate.kind,
                "search_query": candidate.search_query or candidate.topic,
                "why_useful": candidate.why_useful or "N/A",
            },
            ResearchItemOutput,
            agent=self.name,
        )
        if self._is_stale(epoch):
            return None
        if not result.ok:
            self.last_error = result.error
            logger.warning("Researcher: lookup of %r failed: %s", candidate.topic, result.error)
            return None

        output = result.value
        try:
            status = output.verification_status
            return ResearchItem(
                topic=output.topic.strip() or candidate.topic,
                kind=ResearchKind(output.kind),
                summary=output.summary,
                how_to_use_in_question=output.how_to_use_in_question,
                priority=_clamp_priority(output.priority),
                verification_status=VerificationStatus(status) if status else None,
                verification_note=output.verification_note,
            )
        except Exception as exc:
            self.last_error = str(exc)
            logger.warning("Researcher: unusable result for %r: %s", candidate.topic, exc)
            return None
