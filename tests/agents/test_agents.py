"""Tests for the agent contract, function agents and replay agents."""

from __future__ import annotations

import time

import pytest

from market_intelligence.agents.base import FunctionAgent
from market_intelligence.agents.replay import RecordedAgentFailure, ReplayAgent
from market_intelligence.domain.enums import SignalDirection
from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument
from market_intelligence.testing import make_signal


class TestFunctionAgent:

    @pytest.mark.asyncio
    async def test_sync_function(self, mbd: MarketBriefingDocument) -> None:
        def analyst(briefing: MarketBriefingDocument) -> AgentSignal:
            return make_signal("sync", fair_probability=briefing.current_probability)

        agent = FunctionAgent("sync", analyst, category="momentum")
        signal = await agent.analyze(mbd)
        assert signal.fair_probability == mbd.current_probability
        assert agent.category == "momentum"

    @pytest.mark.asyncio
    async def test_async_function(self, mbd: MarketBriefingDocument) -> None:
        async def analyst(briefing: MarketBriefingDocument) -> AgentSignal:
            return make_signal("async", "NO")

        agent = FunctionAgent("async", analyst)
        signal = await agent.analyze(mbd)
        assert signal.direction is SignalDirection.NO
        assert agent.category == "async"

    @pytest.mark.asyncio
    async def test_errors_propagate(self, mbd: MarketBriefingDocument) -> None:
        def analyst(briefing: MarketBriefingDocument) -> AgentSignal:
            raise ValueError("no data")

        with pytest.raises(ValueError, match="no data"):
            await FunctionAgent("bad", analyst).analyze(mbd)

    def test_repr(self) -> None:
        assert repr(FunctionAgent("x", lambda m: None)) == "FunctionAgent(name='x')"


class TestReplayAgent:

    @pytest.mark.asyncio
    async def test_replays_signal_with_fresh_timestamp(
        self, mbd: MarketBriefingDocument
    ) -> None:
        recorded = make_signal("poll", timestamp=1.0, metadata={"category": "polling_intelligence"})
        agent = ReplayAgent("poll", signal=recorded)
        before = time.time()
        signal = await agent.analyze(mbd)
        assert signal.timestamp >= before
        assert signal.fair_probability == recorded.fair_probability
        assert agent.category == "polling_intelligence"

    @pytest.mark.asyncio
    async def test_replays_failure(self, mbd: MarketBriefingDocument) -> None:
        agent = ReplayAgent.from_dict({"agentName": "news", "error": "HTTP 503"})
        with pytest.raises(RecordedAgentFailure, match="HTTP 503"):
            await agent.analyze(mbd)

    def test_from_dict_signal(self) -> None:
        agent = ReplayAgent.from_dict(
            {
                "agent_name": "momentum",
                "direction": "YES",
                "confidence": 0.6,
                "fair_probability": 0.55,
                "delay": 0.5,
            }
        )
        assert agent.name == "momentum"
        assert agent.category == "momentum"

    def test_exactly_one_of_signal_or_error(self) -> None:
        with pytest.raises(ValueError, match="exactly one"):
            ReplayAgent("x")
        with pytest.raises(ValueError, match="exactly one"):
            ReplayAgent("x", signal=make_signal("x"), error="boom")
