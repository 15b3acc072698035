"""Configuration dataclasses for the interview conductor.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations.  No third-party dependencies -- just
stdlib ``dataclasses``.

Configs are **frozen** (``frozen=True``) so a coordinator and its agents
can share one instance without risking silent mutation mid-interview.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any


def _check_unit_interval(name: str, value: float) -> None:
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0, 1], got {value}")


# ===================================================================== #
#  NoteTaker Configuration                                               #
# ===================================================================== #

@dataclass(frozen=True)
class NoteTakerConfig:
    """Near-duplicate thresholds used when merging extracted notes.

    Attributes
    ----------
    idea_threshold, story_threshold, claim_threshold, gap_threshold:
        Jaccard similarity at or above which a new item is considered a
        duplicate of an existing one.
    contradiction_threshold:
        Same, for contradiction descriptions.
    quote_threshold:
        Same, for quotable lines.  Higher because quotes are short and
        exact wording matters.
    """

    idea_threshold: float = 0.7
    story_threshold: float = 0.7
    claim_threshold: float = 0.7
    gap_threshold: float = 0.7
    contradiction_threshold: float = 0.6
    quote_threshold: float = 0.8

    def validate(self) -> None:
        """Raise ``ValueError`` if any threshold is outside ``[0, 1]``."""
        for f in fields(self):
            _check_unit_interval(f.name, getattr(self, f.name))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NoteTakerConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Researcher Configuration                                              #
# ===================================================================== #

@dataclass(frozen=True)
class ResearcherConfig:
    """Topic budget, freshness window and failure cooldown.

    Attributes
    ----------
    max_topics_per_cycle:
        Upper bound on research calls in a single cycle.
    failure_threshold:
        Consecutive failed cycles before the researcher starts skipping.
    cooldown_cycles:
        Cycles skipped before the failure counter resets.
    topic_freshness_seconds:
        Tracked topics older than this may be researched again.
    """

    max_topics_per_cycle: int = 3
    failure_threshold: int = 5
    cooldown_cycles: int = 3
    topic_freshness_seconds: float = 300.0

    def validate(self) -> None:
        if self.max_topics_per_cycle < 1:
            raise ValueError(
                f"max_topics_per_cycle must be >= 1, got {self.max_topics_per_cycle}"
            )
        if self.failure_threshold < 1:
            raise ValueError(
                f"failure_threshold must be >= 1, got {self.failure_threshold}"
            )
        if self.cooldown_cycles < 1:
            raise ValueError(f"cooldown_cycles must be >= 1, got {self.cooldown_cycles}")
        if self.topic_freshness_seconds < 0:
            raise ValueError(
                f"topic_freshness_seconds must be >= 0, got {self.topic_freshness_seconds}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResearcherConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Orchestrator Configuration                                            #
# ===================================================================== #

DEFAULT_CLOSING_QUESTION = (
    "Is there anything else you'd like to add that we haven't covered?"
)


@dataclass(frozen=True)
class OrchestratorConfig:
    """Phase cutoffs and question-matching parameters.

    Attributes
    ----------
    opening_cutoff:
        Fraction of the time budget below which the phase is ``opening``.
    follow_up_opening_cutoff:
        Opening cutoff used for follow-up sessions.
    wrap_up_cutoff:
        Fraction above which the phase is ``wrap_up``.
    question_match_threshold:
        A returned question text must score strictly above this against an
        unasked plan question to be attributed to it.
    default_expected_answer_seconds:
        Used when the agent omits an estimate and by the fallback path.
    closing_question:
        Asked by the fallback path once every plan question is covered.
    """

    opening_cutoff: float = 0.15
    follow_up_opening_cutoff: float = 0.10
    wrap_up_cutoff: float = 0.85
    question_match_threshold: float = 0.6
    default_expected_answer_seconds: int = 60
    closing_question: str = DEFAULT_CLOSING_QUESTION

    def validate(self) -> None:
        _check_unit_interval("opening_cutoff", self.opening_cutoff)
        _check_unit_interval("follow_up_opening_cutoff", self.follow_up_opening_cutoff)
        _check_unit_interval("wrap_up_cutoff", self.wrap_up_cutoff)
        _check_unit_interval("question_match_threshold", self.question_match_threshold)
        if self.opening_cutoff > self.wrap_up_cutoff:
            raise ValueError(
                f"opening_cutoff ({self.opening_cutoff}) must not exceed "
                f"wrap_up_cutoff ({self.wrap_up_cutoff})"
            )
        if self.default_expected_answer_seconds < 1:
            raise ValueError(
                "default_expected_answer_seconds must be >= 1, "
                f"got {self.default_expected_answer_seconds}"
            )
        if not self.closing_question.strip():
            raise ValueError("closing_question must not be empty")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrchestratorConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Coordinator Configuration                                             #
# ===================================================================== #

@dataclass(frozen=True)
class CoordinatorConfig:
    """Transcript windows and cycle-skipping parameters.

    Attributes
    ----------
    note_taker_window, researcher_window, orchestrator_window:
        Number of trailing transcript entries each agent sees.
    decision_reuse_seconds:
        A cached decision younger than this is reused when no new
        transcript arrived.
    recently_asked_limit:
        How many recently asked question texts the orchestrator sees.
    activity_decay_seconds:
        Agent activity scores fall linearly to zero over this span.
    """

    note_taker_window: int = 20
    researcher_window: int = 20
    orchestrator_window: int = 30
    decision_reuse_seconds: float = 30.0
    recently_asked_limit: int = 5
    activity_decay_seconds: float = 30.0

    def validate(self) -> None:
        for name in ("note_taker_window", "researcher_window", "orchestrator_window"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.decision_reuse_seconds < 0:
            raise ValueError(
                f"decision_reuse_seconds must be >= 0, got {self.decision_reuse_seconds}"
            )
        if self.recently_asked_limit < 0:
            raise ValueError(
                f"recently_asked_limit must be >= 0, got {self.recently_asked_limit}"
            )
        if self.activity_decay_seconds <= 0:
            raise ValueError(
                f"activity_decay_seconds must be > 0, got {self.activity_decay_seconds}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoordinatorConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Model Configuration                                                   #
# ===================================================================== #

_VALID_PROVIDERS = frozenset({"anthropic", "openai", "mock"})


@dataclass(frozen=True)
class ModelConfig:
    """Which chat model backs the agents.

    Attributes
    ----------
    provider:
        One of ``anthropic``, ``openai`` or ``mock``.
    model:
        Provider-specific model name.  Empty means the provider default.
    temperature:
        Sampling temperature.
    timeout_seconds:
        Per-call timeout applied by the agent client.
    """

    provider: str = "anthropic"
    model: str = ""
    temperature: float = 0.3
    timeout_seconds: float = 45.0

    def validate(self) -> None:
        if self.provider not in _VALID_PROVIDERS:
            raise ValueError(
                f"provider must be one of {sorted(_VALID_PROVIDERS)}, "
                f"got '{self.provider}'"
            )
        if not (0.0 <= self.temperature <= 2.0):
            raise ValueError(f"temperature must be in [0, 2], got {self.temperature}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModelConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Unified config loader                                                 #
# ===================================================================== #

_CONFIG_MAP: dict[str, type] = {
    "note_taker": NoteTakerConfig,
    "researcher": ResearcherConfig,
    "orchestrator": OrchestratorConfig,
    "coordinator": CoordinatorConfig,
    "model": ModelConfig,
}


def load_config_from_json(json_str: str) -> dict[str, Any]:
    """Parse a JSON string into a dict of typed config objects.

    The JSON is expected to be an object whose top-level keys correspond to
    config section names (``note_taker``, ``researcher``, ``orchestrator``,
    ``coordinator``, ``model``).  Unknown sections are preserved as raw
    dicts.

    Returns a dict mapping section name -> config instance (or raw dict).
    """
    raw = json.loads(json_str)
    if not isinstance(raw, dict):
        raise ValueError("Top-level JSON must be an object")
    result: dict[str, Any] = {}
    for section, data in raw.items():
        cls = _CONFIG_MAP.get(section)
        if cls is not None and isinstance(data, dict):
            result[section] = cls.from_dict(data)
        else:
            result[section] = data
    return result
