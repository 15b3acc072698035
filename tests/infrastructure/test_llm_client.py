"""Tests for the structured completion client."""

from __future__ import annotations

import asyncio

import pytest
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel

from interview_conductor.domain.exceptions import AgentCallError
from interview_conductor.infrastructure.llm.client import AgentResult, LangChainAgentClient
from interview_conductor.testing import MockStructuredChatModel

_PROMPT = ChatPromptTemplate.from_messages([("human", "Summarize: {text}")])


class EchoOutput(BaseModel):
    summary: str
    score: int = 0


class OtherOutput(BaseModel):
    value: str


def _client(responses: object, delay: float = 0.0, timeout: float | None = 1.0) -> LangChainAgentClient:
    model = MockStructuredChatModel(structured_responses={"EchoOutput": responses}, delay=delay)
    return LangChainAgentClient(model, timeout=timeout)


class TestAgentResult:
    def test_success(self) -> None:
        result = AgentResult.success(EchoOutput(summary="ok"), agent="NoteTaker")
        assert result.ok
        assert result.unwrap().summary == "ok"

    def test_failure_unwrap_raises(self) -> None:
        result = AgentResult.failure(TimeoutError(), agent="Researcher")
        assert not result.ok
        assert result.error == "TimeoutError"
        with pytest.raises(AgentCallError) as info:
            result.unwrap()
        assert info.value.agent == "Researcher"
        assert info.value.details == {"error_type": "TimeoutError"}


class TestLangChainAgentClient:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        client = _client([EchoOutput(summary="short")])
        result = await client.complete(_PROMPT, {"text": "long"}, EchoOutput, agent="NoteTaker")
        assert result.ok
        assert result.value == EchoOutput(summary="short")
        assert result.agent == "NoteTaker"
        assert client.model.calls == [("EchoOutput", "Human: Summarize: long")]

    @pytest.mark.asyncio
    async def test_dict_response_is_validated(self) -> None:
        client = _client([{"summary": "from dict", "score": 3}])
        result = await client.complete(_PROMPT, {"text": "x"}, EchoOutput)
        assert result.value == EchoOutput(summary="from dict", score=3)

    @pytest.mark.asyncio
    async def test_invalid_dict_is_a_failure(self) -> None:
        client = _client([{"score": "not a number"}])
        result = await client.complete(_PROMPT, {"text": "x"}, EchoOutput)
        assert not result.ok
        assert result.error_type == "ValidationError"

    @pytest.mark.asyncio
    async def test_wrong_type_is_a_failure(self) -> None:
        client = _client([OtherOutput(value="?")])
        result = await client.complete(_PROMPT, {"text": "x"}, EchoOutput)
        assert not result.ok
        assert result.error_type == "AgentCallError"
        assert "expected EchoOutput" in result.error

    @pytest.mark.asyncio
    async def test_exception_is_a_failure(self) -> None:
        client = _client([ConnectionError("reset by peer")])
        result = await client.complete(_PROMPT, {"text": "x"}, EchoOutput)
        assert result.error == "reset by peer"
        assert result.error_type == "ConnectionError"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        client = _client([EchoOutput(summary="late")], delay=0.2, timeout=0.01)
        result = await client.complete(_PROMPT, {"text": "x"}, EchoOutput)
        assert not result.ok
        assert result.error_type == "TimeoutError"

    @pytest.mark.asyncio
    async def test_no_timeout(self) -> None:
        client = _client([EchoOutput(summary="eventually")], delay=0.02, timeout=None)
        result = await client.complete(_PROMPT, {"text": "x"}, EchoOutput)
        assert result.ok

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        client = _client([EchoOutput(summary="never")], delay=1.0, timeout=None)
        task = asyncio.create_task(client.complete(_PROMPT, {"text": "x"}, EchoOutput))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    def test_chain_cached_per_prompt_and_schema(self) -> None:
        client = _client([])
        first = client._chain_for(_PROMPT, EchoOutput)
        assert client._chain_for(_PROMPT, EchoOutput) is first
        assert client._chain_for(_PROMPT, OtherOutput) is not first
