"""Domain exceptions for the interview conductor.

All domain-specific exceptions inherit from ``InterviewConductorError`` so
callers can catch the full family with a single ``except`` clause when needed.

Nothing inside the live cycle raises these past the coordinator; they are
used by session-setup operations (planning, snapshot restore) and to tag
agent failures before they are folded into a fallback value.
"""

from __future__ import annotations

from typing import Any


class InterviewConductorError(Exception):
    """Base exception for all interview conductor errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class AgentCallError(InterviewConductorError):
    """Raised when a structured completion call fails.

    Covers timeouts, transport errors and responses that do not validate
    against the requested schema.
    """

    def __init__(
        self,
        message: str = "Agent call failed",
        agent: str = "",
        schema: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.agent = agent
        self.schema = schema


class PlanningError(InterviewConductorError):
    """Raised when an interview plan cannot be generated.

    Planning happens before the interview is live, so it fails loudly and
    the user can retry.
    """

    def __init__(
        self,
        message: str = "Planning failed",
        topic: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.topic = topic


class SessionStateError(InterviewConductorError):
    """Raised when a persisted session snapshot cannot be restored."""
