"""Infrastructure layer for the interview conductor.

Re-exports the public API surface for convenience::

    from interview_conductor.infrastructure import (
        CoordinatorConfig, load_config_from_json,
        LangChainAgentClient, ChatModelFactory,
        session_to_dict, session_from_dict,
    )
"""

from interview_conductor.infrastructure.config import (
    CoordinatorConfig,
    ModelConfig,
    NoteTakerConfig,
    OrchestratorConfig,
    ResearcherConfig,
    load_config_from_json,
)
from interview_conductor.infrastructure.llm import (
    AgentClient,
    AgentResult,
    ChatModelFactory,
    LangChainAgentClient,
)
from interview_conductor.infrastructure.serialization import (
    deserialize,
    from_json,
    serialize,
    session_from_dict,
    session_to_dict,
    to_json,
)

__all__ = [
    # Configuration
    "NoteTakerConfig",
    "ResearcherConfig",
    "OrchestratorConfig",
    "CoordinatorConfig",
    "ModelConfig",
    "load_config_from_json",
    # LLM
    "AgentClient",
    "AgentResult",
    "LangChainAgentClient",
    "ChatModelFactory",
    # Serialization
    "serialize",
    "deserialize",
    "to_json",
    "from_json",
    "session_to_dict",
    "session_from_dict",
]
