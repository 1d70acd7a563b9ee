"""Tests for parallel agent execution."""

from __future__ import annotations

import asyncio
import time

import pytest

from market_intelligence.agents.base import FunctionAgent
from market_intelligence.domain.aggregates import RunState
from market_intelligence.domain.enums import AgentErrorKind, RecommendationErrorKind
from market_intelligence.domain.errors import RecommendationError
from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument
from market_intelligence.infrastructure.config import AgentsConfig
from market_intelligence.infrastructure.registry import AgentRegistry
from market_intelligence.services.agent_executor import AgentExecutor
from market_intelligence.services.audit_trail import AuditTrail
from market_intelligence.testing import (
    BadReturnAgent,
    FailingAgent,
    SlowAgent,
    StaticAgent,
    make_signal,
)


@pytest.fixture
def state(mbd: MarketBriefingDocument) -> RunState:
    return RunState(mbd, AuditTrail(run_id=mbd.market_id))


class TestAgentExecutor:

    @pytest.mark.asyncio
    async def test_all_succeed_in_registry_order(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        registry = AgentRegistry(
            [StaticAgent(make_signal("b")), StaticAgent(make_signal("a"))]
        )
        signals = await AgentExecutor(registry).execute(mbd, state)
        assert [s.agent_name for s in signals] == ["b", "a"]
        assert state.signals == signals
        assert [e.stage for e in state.audit_trail] == ["agent:b", "agent:a"]

    @pytest.mark.asyncio
    async def test_failure_is_isolated(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        ok_a = StaticAgent(make_signal("a"))
        ok_b = StaticAgent(make_signal("b"))
        registry = AgentRegistry([ok_a, FailingAgent("boom"), ok_b])
        signals = await AgentExecutor(registry).execute(mbd, state)
        assert [s.agent_name for s in signals] == ["a", "b"]
        assert ok_a.calls == ok_b.calls == 1
        (error,) = state.agent_errors
        assert error.agent_name == "boom"
        assert error.kind is AgentErrorKind.EXECUTION_FAILED
        assert "RuntimeError" in error.message
        failed = state.audit_trail.query(stage="agent:boom")[0]
        assert failed.data["status"] == "failed"
        assert failed.errors[0]["kind"] == "EXECUTION_FAILED"

    @pytest.mark.asyncio
    async def test_timeout_does_not_cancel_siblings(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        slow = SlowAgent("slow", delay=5.0)
        fast = StaticAgent(make_signal("fast"))
        other = StaticAgent(make_signal("other"))
        executor = AgentExecutor(
            AgentRegistry([slow, fast, other]), AgentsConfig(timeout_ms=50)
        )
        started = time.monotonic()
        signals = await executor.execute(mbd, state)
        assert time.monotonic() - started < 2.0
        assert [s.agent_name for s in signals] == ["fast", "other"]
        assert state.agent_errors[0].kind is AgentErrorKind.TIMEOUT
        assert state.agent_errors[0].details["timeout_ms"] == 50
        assert slow.cancelled

    @pytest.mark.asyncio
    async def test_agents_run_concurrently(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        agents = [SlowAgent(f"s{i}", delay=0.2) for i in range(4)]
        executor = AgentExecutor(AgentRegistry(agents), AgentsConfig(timeout_ms=2000))
        started = time.monotonic()
        signals = await executor.execute(mbd, state)
        assert len(signals) == 4
        assert time.monotonic() - started < 0.7

    @pytest.mark.asyncio
    async def test_below_threshold(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        registry = AgentRegistry(
            [StaticAgent(make_signal("a")), FailingAgent("x"), FailingAgent("y")]
        )
        result = await AgentExecutor(registry, AgentsConfig(min_agents_required=2)).execute(
            mbd, state
        )
        assert isinstance(result, RecommendationError)
        assert result.kind is RecommendationErrorKind.INSUFFICIENT_DATA
        assert result.details == {"succeeded": ["a"], "failed": ["x", "y"]}
        assert len(state.signals) == 1
        assert len(state.agent_errors) == 2

    @pytest.mark.asyncio
    async def test_non_signal_return(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        registry = AgentRegistry([BadReturnAgent("weird"), StaticAgent(make_signal("a"))])
        await AgentExecutor(registry, AgentsConfig(min_agents_required=1)).execute(mbd, state)
        assert state.agent_errors[0].kind is AgentErrorKind.EXECUTION_FAILED
        assert "expected AgentSignal" in state.agent_errors[0].message

    @pytest.mark.asyncio
    async def test_duplicate_signal_name(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        sig = make_signal("shared")
        registry = AgentRegistry([StaticAgent(sig), StaticAgent(sig, name="copycat")])
        await AgentExecutor(registry, AgentsConfig(min_agents_required=1)).execute(mbd, state)
        assert [s.agent_name for s in state.signals] == ["shared"]
        assert state.agent_errors[0].agent_name == "copycat"
        assert "duplicate" in state.agent_errors[0].message

    @pytest.mark.asyncio
    async def test_enabled_subset(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        a, b = StaticAgent(make_signal("a")), StaticAgent(make_signal("b"))
        executor = AgentExecutor(
            AgentRegistry([a, b]), AgentsConfig(enabled=("b",), min_agents_required=1)
        )
        assert [x.name for x in executor.planned_agents()] == ["b"]
        await executor.execute(mbd, state)
        assert a.calls == 0
        assert b.calls == 1

    @pytest.mark.asyncio
    async def test_category_injected_from_agent(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        agent = StaticAgent(make_signal("poll-1"))
        agent.category = "polling_intelligence"
        registry = AgentRegistry([agent])
        signals = await AgentExecutor(
            registry, AgentsConfig(min_agents_required=1)
        ).execute(mbd, state)
        assert signals[0].category == "polling_intelligence"

    @pytest.mark.asyncio
    async def test_blocking_agent_does_not_stall_loop(
        self, mbd: MarketBriefingDocument, state: RunState
    ) -> None:
        def blocking(briefing: MarketBriefingDocument) -> AgentSignal:
            time.sleep(0.2)
            return make_signal("blocking")

        async def quick(briefing: MarketBriefingDocument) -> AgentSignal:
            await asyncio.sleep(0)
            return make_signal("quick")

        registry = AgentRegistry([FunctionAgent("blocking", blocking), FunctionAgent("quick", quick)])
        signals = await AgentExecutor(registry, AgentsConfig(timeout_ms=2000)).execute(mbd, state)
        assert [s.agent_name for s in signals] == ["blocking", "quick"]
