#!/usr/bin/env python3
"""Example 01: Basic end-to-end market analysis.

Demonstrates:
- Building a MarketBriefingDocument by hand
- Wrapping plain functions as intelligence agents
- Running the MarketAnalysisOrchestrator to a recommendation
- Inspecting the AnalysisOutcome and its audit trail

Run:
    PYTHONPATH=src python examples/01_basic_analysis.py
"""

from __future__ import annotations

import asyncio
import time

from market_intelligence.agents import FunctionAgent
from market_intelligence.domain.enums import EventType, SignalDirection, VolatilityRegime
from market_intelligence.domain.values import AgentSignal, Catalyst, MarketBriefingDocument
from market_intelligence.infrastructure.event_bus import EventBus, EventStore
from market_intelligence.infrastructure.persistence import InMemoryPersistence
from market_intelligence.infrastructure.registry import AgentRegistry
from market_intelligence.presentation import ConsoleReport
from market_intelligence.services.orchestrator import MarketAnalysisOrchestrator

DAY = 86400.0


def polling(mbd: MarketBriefingDocument) -> AgentSignal:
    return AgentSignal(
        agent_name="polling_intelligence",
        direction=SignalDirection.YES,
        confidence=0.8,
        fair_probability=0.65,
        key_drivers=("six-point lead in swing-state averages",),
        risk_factors=("turnout below 2020 levels",),
    )


def momentum(mbd: MarketBriefingDocument) -> AgentSignal:
    return AgentSignal(
        agent_name="momentum",
        direction=SignalDirection.YES,
        confidence=0.7,
        fair_probability=0.70,
        key_drivers=("price up 8 points over two weeks",),
    )


async def news(mbd: MarketBriefingDocument) -> AgentSignal:
    await asyncio.sleep(0.05)
    return AgentSignal(
        agent_name="breaking_news",
        direction=SignalDirection.NO,
        confidence=0.6,
        fair_probability=0.40,
        key_drivers=("incumbent endorsement announced",),
        risk_factors=("story fades within a news cycle",),
    )


def main() -> None:
    # -- Briefing ---------------------------------------------------------------
    mbd = MarketBriefingDocument(
        market_id="demo-election",
        condition_id="0xdemo",
        question="Will candidate X win the election?",
        current_probability=0.5,
        event_type=EventType.ELECTION,
        resolution_criteria="Resolves YES if X is certified as the winner.",
        expiry_timestamp=time.time() + 60 * DAY,
        liquidity_score=7.5,
        bid_ask_spread=2.0,
        volatility_regime=VolatilityRegime.MEDIUM,
        volume_24h=250_000.0,
        catalysts=(Catalyst("final debate", time.time() + 12 * DAY),),
    )

    # -- Agents -----------------------------------------------------------------
    registry = AgentRegistry(
        [
            FunctionAgent("polling_intelligence", polling),
            FunctionAgent("momentum", momentum),
            FunctionAgent("breaking_news", news),
        ]
    )

    # -- Orchestrator -----------------------------------------------------------
    bus = EventBus()
    events = EventStore()
    bus.subscribe_all(events.append)
    persistence = InMemoryPersistence()
    orchestrator = MarketAnalysisOrchestrator(
        registry, persistence=persistence, event_bus=bus
    )

    start = time.monotonic()
    outcome = asyncio.run(orchestrator.analyze(mbd))
    elapsed = time.monotonic() - start

    # -- Results ----------------------------------------------------------------
    ConsoleReport().print_outcome(outcome, show_audit=True)
    print()
    print(f"Run {outcome.run_id}: {'ok' if outcome.ok else 'failed'} "
          f"in {elapsed:.3f}s, {outcome.steps} steps, {len(events)} events")
    print(f"Stored recommendations: {persistence.recommendation_count()}")


if __name__ == "__main__":
    main()
