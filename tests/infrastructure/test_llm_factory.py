"""Tests for ChatModelFactory."""

from __future__ import annotations

import pytest

from interview_conductor.infrastructure.config import ModelConfig
from interview_conductor.infrastructure.llm.factory import ChatModelFactory
from interview_conductor.testing import MockStructuredChatModel


class TestChatModelFactory:
    def test_builtin_providers(self) -> None:
        factory = ChatModelFactory()
        assert factory.registered_providers == ["anthropic", "mock", "openai"]
        assert factory.available_providers()["mock"] is True

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown provider 'llama'"):
            ChatModelFactory().create("llama")

    def test_create_mock(self) -> None:
        model = ChatModelFactory().create("mock", structured_responses={"X": []}, delay=0.5)
        assert isinstance(model, MockStructuredChatModel)
        assert model.delay == 0.5

    def test_override_adds_provider(self) -> None:
        factory = ChatModelFactory({"canned": lambda **kw: MockStructuredChatModel(**kw)})
        assert "canned" in factory.registered_providers
        assert factory.available_providers()["canned"] is True
        assert isinstance(factory.create("canned"), MockStructuredChatModel)

    def test_from_config_mock_ignores_sampling(self) -> None:
        model = ChatModelFactory().from_config(ModelConfig(provider="mock", model="ignored"))
        assert isinstance(model, MockStructuredChatModel)

    def test_from_config_passes_model_and_temperature(self) -> None:
        seen: dict = {}

        def _capture(**kwargs: object) -> MockStructuredChatModel:
            seen.update(kwargs)
            return MockStructuredChatModel()

        factory = ChatModelFactory({"anthropic": _capture})
        factory.from_config(ModelConfig(model="claude-x", temperature=0.1), max_tokens=100)
        assert seen == {"model": "claude-x", "temperature": 0.1, "max_tokens": 100}
