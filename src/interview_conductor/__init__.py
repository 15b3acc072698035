"""Interview Conductor.

Agent orchestration core for live, time-boxed voice interviews: a NoteTaker
and a Researcher read the live transcript in parallel, and an Orchestrator
decides the next question from the plan, the notes, the research and the
clock.
"""

__version__ = "0.1.0"

from interview_conductor.graph import build_live_cycle_graph
from interview_conductor.services.coordinator import AgentCoordinator
from interview_conductor.services.instructions import (
    build_interviewer_instructions,
    build_session_instructions,
)

__all__ = [
    "AgentCoordinator",
    "build_live_cycle_graph",
    "build_interviewer_instructions",
    "build_session_instructions",
]
