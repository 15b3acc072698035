"""Agent services for the interview conductor.

Each agent wraps one structured completion behind a fallback so the live
cycle never fails; the coordinator composes them.  ``AgentCoordinator`` and
``LiveSessionDriver`` live in their own modules because they build on the
graph package, which itself imports the agents.
"""

from interview_conductor.services.instructions import (
    build_interviewer_instructions,
    build_session_instructions,
)
from interview_conductor.services.note_taker import NoteTaker, NoteTakerOutput, merge_notes
from interview_conductor.services.orchestrator import (
    Orchestrator,
    OrchestratorOutput,
    compute_phase,
    fallback_decision,
    resolve_source_question,
)
from interview_conductor.services.planner import Planner, PlannerOutput
from interview_conductor.services.researcher import (
    Researcher,
    ResearchItemOutput,
    TopicIdentificationOutput,
    TopicTracker,
)
from interview_conductor.services.similarity import is_near_duplicate, jaccard_similarity

__all__ = [
    "NoteTaker",
    "NoteTakerOutput",
    "Orchestrator",
    "OrchestratorOutput",
    "Planner",
    "PlannerOutput",
    "ResearchItemOutput",
    "Researcher",
    "TopicIdentificationOutput",
    "TopicTracker",
    "build_interviewer_instructions",
    "build_session_instructions",
    "compute_phase",
    "fallback_decision",
    "is_near_duplicate",
    "jaccard_similarity",
    "merge_notes",
    "resolve_source_question",
]
