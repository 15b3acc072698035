"""Tests for MockStructuredChatModel."""

from __future__ import annotations

import pytest
from langchain_core.messages import HumanMessage
from pydantic import BaseModel

from interview_conductor.testing import FakeClock, MockStructuredChatModel


class Alpha(BaseModel):
    n: int


class Beta(BaseModel):
    s: str


class TestMockStructuredChatModel:
    def test_per_schema_queues_repeat_last(self) -> None:
        model = MockStructuredChatModel(structured_responses={"Alpha": [Alpha(n=1), Alpha(n=2)]})
        runnable = model.with_structured_output(Alpha)
        assert [runnable.invoke("x").n for _ in range(3)] == [1, 2, 2]

    def test_missing_schema_raises(self) -> None:
        model = MockStructuredChatModel(structured_responses={"Alpha": [Alpha(n=1)]})
        with pytest.raises(RuntimeError, match="Beta"):
            model.with_structured_output(Beta).invoke("x")

    def test_list_mode_cycles(self) -> None:
        model = MockStructuredChatModel(structured_responses=[Alpha(n=1), Beta(s="b")])
        results = [model.with_structured_output(Alpha).invoke("x") for _ in range(3)]
        assert results == [Alpha(n=1), Beta(s="b"), Alpha(n=1)]

    def test_queued_exception_raised(self) -> None:
        model = MockStructuredChatModel(
            structured_responses={"Alpha": [ValueError("bad"), Alpha(n=3)]}
        )
        runnable = model.with_structured_output(Alpha)
        with pytest.raises(ValueError):
            runnable.invoke("x")
        assert runnable.invoke("x").n == 3

    @pytest.mark.asyncio
    async def test_async_and_calls_recorded(self) -> None:
        model = MockStructuredChatModel(structured_responses={"Beta": [Beta(s="hi")]}, delay=0.01)
        assert (await model.with_structured_output(Beta).ainvoke("prompt text")).s == "hi"
        assert model.calls == [("Beta", "prompt text")]
        assert model.calls_for("Beta") == ["prompt text"]
        assert model.calls_for("Alpha") == []

    def test_plain_generation(self) -> None:
        model = MockStructuredChatModel(structured_responses=[Alpha(n=7)])
        message = model.invoke([HumanMessage(content="hello")])
        assert '"n":7' in message.content


class TestFakeClock:
    def test_advance(self) -> None:
        clock = FakeClock(10.0)
        assert clock() == 10.0
        clock.advance(2.5)
        assert clock.now == 12.5
