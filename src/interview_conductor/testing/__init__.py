"""Public testing utilities for the interview conductor.

Provides a mock chat model and a manual clock for writing self-contained
tests and offline replays without requiring API keys.
"""

from interview_conductor.testing.clock import FakeClock
from interview_conductor.testing.mock_llm import MockStructuredChatModel

__all__ = ["FakeClock", "MockStructuredChatModel"]
