"""Domain layer for the interview conductor.

Re-exports all public domain types so that consumers can write::

    from interview_conductor.domain import Plan, NotesState, InterviewPhase
"""

# -- Enumerations -------------------------------------------------------------
from .enums import (
    ClaimConfidence,
    CoverageQuality,
    Importance,
    InterviewPhase,
    QuestionRole,
    QuestionSource,
    ResearchKind,
    Speaker,
    VerificationStatus,
)

# -- Value Objects ------------------------------------------------------------
from .values import (
    Claim,
    Contradiction,
    Gap,
    KeyIdea,
    LiveUpdateResult,
    NextQuestion,
    NotesState,
    OrchestratorDecision,
    QuotableLine,
    ResearchItem,
    SectionCoverage,
    SessionSnapshot,
    Story,
    TranscriptEntry,
    topic_key,
)

# -- Entities -----------------------------------------------------------------
from .entities import Plan, Question, Section

# -- Aggregates ---------------------------------------------------------------
from .aggregates import AskedQuestionLedger, PhaseFloor

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    AgentCallError,
    InterviewConductorError,
    PlanningError,
    SessionStateError,
)

__all__ = [
    # enums
    "ClaimConfidence",
    "CoverageQuality",
    "Importance",
    "InterviewPhase",
    "QuestionRole",
    "QuestionSource",
    "ResearchKind",
    "Speaker",
    "VerificationStatus",
    # values
    "Claim",
    "Contradiction",
    "Gap",
    "KeyIdea",
    "LiveUpdateResult",
    "NextQuestion",
    "NotesState",
    "OrchestratorDecision",
    "QuotableLine",
    "ResearchItem",
    "SectionCoverage",
    "SessionSnapshot",
    "Story",
    "TranscriptEntry",
    "topic_key",
    # entities
    "Plan",
    "Question",
    "Section",
    # aggregates
    "AskedQuestionLedger",
    "PhaseFloor",
    # exceptions
    "AgentCallError",
    "InterviewConductorError",
    "PlanningError",
    "SessionStateError",
]
