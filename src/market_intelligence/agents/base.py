"""Agent capability contract.

An intelligence agent reads a ``MarketBriefingDocument`` and returns one
``AgentSignal``.  Raising is how an agent reports failure; the executor
converts exceptions and timeouts into ``AgentError`` values.
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Union

from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument

AgentFunction = Callable[
    [MarketBriefingDocument], Union[AgentSignal, Awaitable[AgentSignal]]
]


class BaseIntelligenceAgent(ABC):
    """Abstract intelligence agent.

    Subclasses set ``name`` (unique per engine) and optionally ``category``
    (the fusion weight key, defaulting to the name).
    """

    name: str = ""
    category: str = ""

    @abstractmethod
    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        """Produce this agent's signal for *mbd*."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionAgent(BaseIntelligenceAgent):
    """Adapts a plain or ``async`` callable into an agent.

    Blocking callables run in a worker thread so that they never stall the
    other agents' tasks.
    """

    def __init__(self, name: str, fn: AgentFunction, category: str = "") -> None:
        self.name = name
        self.category = category or name
        self._fn = fn

    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        if inspect.iscoroutinefunction(self._fn):
            return await self._fn(mbd)
        result = await asyncio.to_thread(self._fn, mbd)
        if inspect.isawaitable(result):
            result = await result
        return result
