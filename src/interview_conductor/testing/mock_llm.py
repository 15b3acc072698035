"""Mock LLM for testing and offline replays.

Provides a ``MockStructuredChatModel`` that supports ``with_structured_output``
by returning pre-configured Pydantic model instances.  Works with every agent
(NoteTaker, Researcher, Orchestrator, Planner) through ``LangChainAgentClient``.
"""

from __future__ import annotations

import asyncio
from typing import Any

from langchain_core.callbacks import CallbackManagerForLLMRun
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from langchain_core.runnables import RunnableSerializable
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class _QueuedStructuredRunnable(RunnableSerializable):
    """Returns the owner's next queued response for one schema."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    owner: Any
    schema_name: str

    def invoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any:
        return self.owner._resolve(self.owner._next_response(self.schema_name, input))

    async def ainvoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any:
        resp = self.owner._next_response(self.schema_name, input)
        if self.owner.delay > 0:
            await asyncio.sleep(self.owner.delay)
        return self.owner._resolve(resp)


class MockStructuredChatModel(BaseChatModel):
    """A mock chat model that supports with_structured_output.

    ``structured_responses`` is either a list, cycled across all schemas, or
    a dict mapping a schema class name to its own queue.  Queues are consumed
    in order and the last element repeats once the queue is exhausted.
    Exception instances in a queue are raised instead of returned.

    Usage::

        model = MockStructuredChatModel(
            structured_responses={
                "NoteTakerOutput": [NoteTakerOutput(...)],
                "OrchestratorOutput": [TimeoutError("slow"), OrchestratorOutput(...)],
            },
            delay=0.0,
        )

    Every call is recorded in ``calls`` as ``(schema_name, prompt_text)``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    structured_responses: list[Any] | dict[str, list[Any]] = Field(default_factory=list)
    delay: float = 0.0
    calls: list[tuple[str, str]] = Field(default_factory=list)
    _call_index: int = PrivateAttr(default=0)
    _queue_index: dict[str, int] = PrivateAttr(default_factory=dict)

    @property
    def _llm_type(self) -> str:
        return "mock-structured"

    def _next_response(self, schema_name: str, prompt_input: Any = None) -> Any:
        text = prompt_input.to_string() if hasattr(prompt_input, "to_string") else str(prompt_input)
        self.calls.append((schema_name, text))

        if isinstance(self.structured_responses, dict):
            queue = self.structured_responses.get(schema_name)
            if not queue:
                return RuntimeError(f"No mock response queued for {schema_name}")
            idx = self._queue_index.get(schema_name, 0)
            self._queue_index[schema_name] = idx + 1
            return queue[min(idx, len(queue) - 1)]

        if not self.structured_responses:
            return RuntimeError("MockStructuredChatModel has no responses")
        idx = self._call_index % len(self.structured_responses)
        self._call_index += 1
        return self.structured_responses[idx]

    @staticmethod
    def _resolve(resp: Any) -> Any:
        if isinstance(resp, BaseException):
            raise resp
        return resp

    def calls_for(self, schema_name: str) -> list[str]:
        """Prompt texts sent for *schema_name*, in call order."""
        return [text for name, text in self.calls if name == schema_name]

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: CallbackManagerForLLMRun | None = None,
        **kwargs: Any,
    ) -> ChatResult:
        resp = self._resolve(self._next_response("text", messages))
        text = resp.model_dump_json() if isinstance(resp, BaseModel) else str(resp)
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=text))])

    def with_structured_output(self, schema: Any, **kwargs: Any) -> Any:
        """Return a runnable that yields the queued responses for *schema*."""
        name = getattr(schema, "__name__", str(schema))
        return _QueuedStructuredRunnable(owner=self, schema_name=name)
