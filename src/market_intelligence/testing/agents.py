"""Deterministic agents for tests."""

from __future__ import annotations

import asyncio
from typing import Any

from market_intelligence.agents.base import BaseIntelligenceAgent
from market_intelligence.domain.enums import SignalDirection
from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument


def make_signal(
    agent_name: str,
    direction: SignalDirection | str = SignalDirection.YES,
    confidence: float = 0.8,
    fair_probability: float = 0.6,
    **kwargs: Any,
) -> AgentSignal:
    """Shorthand ``AgentSignal`` constructor; *direction* may be a string."""
    if isinstance(direction, str):
        direction = SignalDirection(direction.upper())
    return AgentSignal(
        agent_name=agent_name,
        direction=direction,
        confidence=confidence,
        fair_probability=fair_probability,
        **kwargs,
    )


class StaticAgent(BaseIntelligenceAgent):
    """Always returns the same signal and counts its calls."""

    def __init__(self, signal: AgentSignal, name: str | None = None) -> None:
        self.name = name or signal.agent_name
        self.category = signal.category
        self.signal = signal
        self.calls = 0

    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        self.calls += 1
        return self.signal


class FailingAgent(BaseIntelligenceAgent):
    """Raises *exc* on every call."""

    def __init__(self, name: str, exc: Exception | None = None) -> None:
        self.name = name
        self.exc = exc or RuntimeError(f"{name} exploded")
        self.calls = 0

    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        self.calls += 1
        raise self.exc


class SlowAgent(BaseIntelligenceAgent):
    """Sleeps *delay* seconds before answering; used to trigger timeouts."""

    def __init__(self, name: str, delay: float, signal: AgentSignal | None = None) -> None:
        self.name = name
        self.delay = delay
        self.signal = signal or make_signal(name)
        self.cancelled = False

    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self.signal


class BadReturnAgent(BaseIntelligenceAgent):
    """Returns something that is not an ``AgentSignal``."""

    def __init__(self, name: str, value: Any = None) -> None:
        self.name = name
        self.value = value if value is not None else {"direction": "YES"}

    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        return self.value
