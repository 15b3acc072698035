"""Structured completion client used by every agent.

An agent hands the client a prompt template, the template inputs and a
pydantic schema; the client returns an ``AgentResult`` that either carries a
validated schema instance or a tagged failure.  The client never raises for
transport, timeout or validation problems -- only task cancellation
propagates -- so each agent can fold failures into its own fallback value.

Usage::

    client = LangChainAgentClient(ChatAnthropic(model="..."), timeout=30)
    result = await client.complete(prompt, {"transcript": "..."}, NoteTakerOutput)
    if result.ok:
        notes = result.value
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, ValidationError

from interview_conductor.domain.exceptions import AgentCallError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass(frozen=True)
class AgentResult(Generic[SchemaT]):
    """Outcome of a structured completion call."""

    value: SchemaT | None = None
    error: str | None = None
    error_type: str | None = None
    agent: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, value: SchemaT, agent: str = "") -> AgentResult[SchemaT]:
        return cls(value=value, agent=agent)

    @classmethod
    def failure(cls, exc: BaseException, agent: str = "") -> AgentResult[SchemaT]:
        return cls(error=str(exc) or type(exc).__name__, error_type=type(exc).__name__, agent=agent)

    def unwrap(self) -> SchemaT:
        """Return the value or raise ``AgentCallError`` for a failed call."""
        if not self.ok:
            raise AgentCallError(
                self.error or "Agent call failed",
                agent=self.agent,
                details={"error_type": self.error_type},
            )
        assert self.value is not None
        return self.value


class AgentClient(ABC):
    """Abstract structured completion capability."""

    @abstractmethod
    async def complete(
        self,
        prompt: ChatPromptTemplate,
        inputs: dict[str, Any],
        schema: type[SchemaT],
        *,
        agent: str = "",
    ) -> AgentResult[SchemaT]:
        """Run *prompt* with *inputs* and parse the answer into *schema*."""


class LangChainAgentClient(AgentClient):
    """``AgentClient`` backed by a LangChain chat model.

    Builds ``prompt | model.with_structured_output(schema)`` chains, caching
    one per (prompt, schema) pair.

    Parameters
    ----------
    model:
        Any LangChain chat model supporting ``with_structured_output``.
    timeout:
        Per-call timeout in seconds.  ``None`` disables the timeout.
    """

    def __init__(self, model: BaseChatModel, timeout: float | None = 45.0) -> None:
        self.model = model
        self._timeout = timeout
        self._chains: dict[tuple[int, type[BaseModel]], Any] = {}

    def _chain_for(self, prompt: ChatPromptTemplate, schema: type[BaseModel]) -> Any:
        key = (id(prompt), schema)
        chain = self._chains.get(key)
        if chain is None:
            chain = prompt | self.model.with_structured_output(schema)
            self._chains[key] = chain
        return chain

    async def _invoke_with_timeout(self, chain: Any, inputs: dict[str, Any]) -> Any:
        if self._timeout is None:
            return await chain.ainvoke(inputs)
        return await asyncio.wait_for(chain.ainvoke(inputs), timeout=self._timeout)

    async def complete(
        self,
        prompt: ChatPromptTemplate,
        inputs: dict[str, Any],
        schema: type[SchemaT],
        *,
        agent: str = "",
    ) -> AgentResult[SchemaT]:
        try:
            raw = await self._invoke_with_timeout(self._chain_for(prompt, schema), inputs)
            if isinstance(raw, dict):
                raw = schema.model_validate(raw)
            if not isinstance(raw, schema):
                raise AgentCallError(
                    f"expected {schema.__name__}, got {type(raw).__name__}",
                    agent=agent,
                    schema=schema.__name__,
                )
            return AgentResult.success(raw, agent=agent)
        except asyncio.TimeoutError as exc:
            logger.warning("%s: call timed out after %ss", agent or "agent", self._timeout)
            return AgentResult.failure(exc, agent=agent)
        except ValidationError as exc:
            logger.warning("%s: invalid %s response: %s", agent or "agent", schema.__name__, exc)
            return AgentResult.failure(exc, agent=agent)
        except Exception as exc:
            logger.warning("%s: call failed: %s", agent or "agent", exc)
            return AgentResult.failure(exc, agent=agent)
