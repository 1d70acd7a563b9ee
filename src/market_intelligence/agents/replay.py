"""Replay agent: re-emits a recorded signal or a recorded failure.

Used by the CLI to push a stored set of agent outputs through the full
pipeline without calling any model.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from collections.abc import Mapping
from typing import Any

from market_intelligence.agents.base import BaseIntelligenceAgent
from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument
from market_intelligence.infrastructure.serialization import signal_from_dict, snake_keys


class RecordedAgentFailure(RuntimeError):
    """A failure captured in a recording."""


class ReplayAgent(BaseIntelligenceAgent):
    """Returns *signal* (re-stamped with the current time), or raises *error*.

    ``delay`` seconds are awaited first, so recorded timeouts can be
    reproduced against the configured agent deadline.
    """

    def __init__(
        self,
        name: str,
        signal: AgentSignal | None = None,
        error: str | None = None,
        delay: float = 0.0,
        category: str = "",
    ) -> None:
        if (signal is None) == (error is None):
            raise ValueError("exactly one of signal and error must be given")
        self.name = name
        self.category = category or (signal.category if signal is not None else name)
        self._signal = signal
        self._error = error
        self._delay = delay

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReplayAgent:
        """Build from ``{"agent_name", ...signal fields}`` or ``{"agent_name", "error"}``."""
        d = snake_keys(data)
        name = str(d["agent_name"])
        delay = float(d.get("delay", 0.0))
        if d.get("error"):
            return cls(name, error=str(d["error"]), delay=delay)
        return cls(name, signal=signal_from_dict(data), delay=delay)

    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        if self._delay > 0:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise RecordedAgentFailure(self._error)
        return dataclasses.replace(self._signal, timestamp=time.time())
