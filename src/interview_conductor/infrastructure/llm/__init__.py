"""LLM integration layer for the interview conductor.

Public API
----------
AgentClient
    Abstract structured completion capability used by every agent.
LangChainAgentClient
    ``AgentClient`` backed by a LangChain chat model.
AgentResult
    Tagged success/failure outcome of a completion call.
ChatModelFactory
    Registry creating chat models by provider name.
"""

from interview_conductor.infrastructure.llm.client import (
    AgentClient,
    AgentResult,
    LangChainAgentClient,
)
from interview_conductor.infrastructure.llm.factory import ChatModelFactory

__all__ = [
    "AgentClient",
    "AgentResult",
    "ChatModelFactory",
    "LangChainAgentClient",
]
