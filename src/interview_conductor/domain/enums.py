"""Domain enumerations for the interview conductor.

These enums capture the fixed vocabularies used across the domain layer:
speakers, plan metadata, interview phases, question sources, coverage
quality, research kinds and claim-verification outcomes.
"""

from enum import Enum


class Speaker(Enum):
    """Who produced a transcript entry."""

    USER = "user"  # the expert being interviewed
    ASSISTANT = "assistant"  # the voice interviewer

    @property
    def label(self) -> str:
        return "Interviewer" if self is Speaker.ASSISTANT else "Expert"


class Importance(Enum):
    """Relative weight of a plan section."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QuestionRole(Enum):
    """Whether a plan question is must-hit or a tangent helper."""

    BACKBONE = "backbone"
    FOLLOWUP = "followup"


class InterviewPhase(Enum):
    """Coarse stage of the interview, ordered by ``rank``."""

    OPENING = "opening"
    DEEP_DIVE = "deep_dive"
    WRAP_UP = "wrap_up"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, value: "str | InterviewPhase", default: "InterviewPhase | None" = None) -> "InterviewPhase":
        """Normalize arbitrary input into a phase."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower().replace(" ", "_").replace("-", "_")
        for candidate in cls:
            if candidate.value == normalized:
                return candidate
        if default is not None:
            return default
        raise ValueError(f"Unsupported interview phase: {value!r}")


_PHASE_ORDER = (InterviewPhase.OPENING, InterviewPhase.DEEP_DIVE, InterviewPhase.WRAP_UP)


class QuestionSource(Enum):
    """What prompted the next question."""

    PLAN = "plan"
    GAP = "gap"
    CONTRADICTION = "contradiction"
    RESEARCH = "research"


class CoverageQuality(Enum):
    """How thoroughly a plan section has been discussed."""

    NONE = "none"
    SHALLOW = "shallow"
    ADEQUATE = "adequate"
    DEEP = "deep"

    @property
    def score(self) -> float:
        return _COVERAGE_SCORES[self]


_COVERAGE_SCORES = {
    CoverageQuality.NONE: 0.0,
    CoverageQuality.SHALLOW: 0.3,
    CoverageQuality.ADEQUATE: 0.7,
    CoverageQuality.DEEP: 1.0,
}


class ClaimConfidence(Enum):
    """How sure the expert sounded when making a claim."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ResearchKind(Enum):
    """Category of a research item."""

    DEFINITION = "definition"
    COUNTERPOINT = "counterpoint"
    EXAMPLE = "example"
    METRIC = "metric"
    PERSON = "person"
    COMPANY = "company"
    CONTEXT = "context"
    TREND = "trend"
    CLAIM_VERIFICATION = "claim_verification"


class VerificationStatus(Enum):
    """Outcome of fact-checking one of the expert's claims."""

    VERIFIED = "verified"
    CONTRADICTED = "contradicted"
    PARTIALLY_TRUE = "partially_true"
    UNVERIFIABLE = "unverifiable"
