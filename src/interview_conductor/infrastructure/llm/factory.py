"""Chat model factory for the interview conductor.

Maps a ``ModelConfig.provider`` name to a LangChain chat model.  Provider
packages are imported lazily so a missing optional dependency only fails
when that provider is requested.

Usage::

    model = ChatModelFactory().from_config(ModelConfig(provider="anthropic"))
    model = ChatModelFactory().create("mock", structured_responses={...})
"""

from __future__ import annotations

import importlib.util
import logging
from typing import Any, Callable, Mapping

from langchain_core.language_models import BaseChatModel

from interview_conductor.infrastructure.config import ModelConfig

logger = logging.getLogger(__name__)


ModelConstructor = Callable[..., BaseChatModel]


def _create_anthropic(**kwargs: Any) -> BaseChatModel:
    from langchain_anthropic import ChatAnthropic

    kwargs.setdefault("model", "claude-sonnet-4-5")
    return ChatAnthropic(**kwargs)


def _create_openai(**kwargs: Any) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    kwargs.setdefault("model", "gpt-4o")
    return ChatOpenAI(**kwargs)


def _create_mock(**kwargs: Any) -> BaseChatModel:
    from interview_conductor.testing.mock_llm import MockStructuredChatModel

    return MockStructuredChatModel(**kwargs)


# provider name -> (constructor, integration package or None)
_BUILTIN: dict[str, tuple[ModelConstructor, str | None]] = {
    "anthropic": (_create_anthropic, "langchain_anthropic"),
    "openai": (_create_openai, "langchain_openai"),
    "mock": (_create_mock, None),
}


class ChatModelFactory:
    """Creates chat models for the agents by provider name.

    Parameters
    ----------
    overrides:
        Extra or replacement constructors keyed by provider name.  An
        override is always reported as available.
    """

    def __init__(self, overrides: Mapping[str, ModelConstructor] | None = None) -> None:
        self._providers: dict[str, tuple[ModelConstructor, str | None]] = dict(_BUILTIN)
        for name, constructor in (overrides or {}).items():
            self._providers[name] = (constructor, None)

    @property
    def registered_providers(self) -> list[str]:
        return sorted(self._providers)

    def available_providers(self) -> dict[str, bool]:
        """Map each provider to whether its integration package is importable."""
        return {
            name: package is None or importlib.util.find_spec(package) is not None
            for name, (_, package) in self._providers.items()
        }

    def create(self, provider: str, **kwargs: Any) -> BaseChatModel:
        """Create a chat model.

        Raises
        ------
        ValueError
            If *provider* is unknown.
        ImportError
            If the provider's integration package is not installed.
        """
        if provider not in self._providers:
            raise ValueError(
                f"Unknown provider {provider!r}. "
                f"Available providers: {', '.join(self.registered_providers)}"
            )
        constructor, _ = self._providers[provider]
        logger.info("ChatModelFactory: creating %r (%s)", provider, ", ".join(sorted(kwargs)))
        return constructor(**kwargs)

    def from_config(self, config: ModelConfig, **kwargs: Any) -> BaseChatModel:
        """Create the model described by *config*; *kwargs* win over it.

        Sampling settings are not passed to the mock provider.
        """
        params: dict[str, Any] = {}
        if config.provider != "mock":
            params["temperature"] = config.temperature
            if config.model:
                params["model"] = config.model
        params.update(kwargs)
        return self.create(config.provider, **params)
