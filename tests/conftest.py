"""Shared fixtures for the Market Intelligence Engine test suite."""

from __future__ import annotations

import time

import pytest

from market_intelligence.domain.enums import EventType, VolatilityRegime
from market_intelligence.domain.values import AgentSignal, Catalyst, MarketBriefingDocument
from market_intelligence.infrastructure.config import AgentsConfig, EngineConfig
from market_intelligence.infrastructure.event_bus import EventBus, EventStore
from market_intelligence.infrastructure.persistence import InMemoryPersistence
from market_intelligence.infrastructure.registry import AgentRegistry
from market_intelligence.testing import StaticAgent, make_signal

NOW = 1_700_000_000.0
DAY = 86400.0

# ---------------------------------------------------------------------------
# Briefings
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> float:
    """Fixed clock used by debate engines under test."""
    return NOW


@pytest.fixture
def mbd() -> MarketBriefingDocument:
    """Election market at 50%, liquid, 2c spread, 60 days to expiry."""
    return MarketBriefingDocument(
        market_id="mkt-1",
        condition_id="cond-1",
        question="Will candidate X win the election?",
        current_probability=0.5,
        event_type=EventType.ELECTION,
        resolution_criteria="Resolves YES if X is certified winner.",
        expiry_timestamp=time.time() + 60 * DAY,
        liquidity_score=7.0,
        bid_ask_spread=2.0,
        volatility_regime=VolatilityRegime.MEDIUM,
        volume_24h=125_000.0,
        catalysts=(Catalyst("debate night", NOW + 10 * DAY),),
    )


@pytest.fixture
def tight_mbd() -> MarketBriefingDocument:
    """Market already priced at 71%."""
    return MarketBriefingDocument(
        market_id="mkt-tight",
        condition_id="cond-tight",
        question="Will the bill pass?",
        current_probability=0.71,
        event_type=EventType.POLICY,
        expiry_timestamp=time.time() + 60 * DAY,
        liquidity_score=7.0,
        bid_ask_spread=2.0,
    )


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


@pytest.fixture
def main_signals() -> list[AgentSignal]:
    """Two YES agents and one NO agent; agreement with a clear YES lean."""
    return [
        make_signal(
            "alpha", "YES", confidence=0.8, fair_probability=0.65,
            key_drivers=("strong polling lead",), risk_factors=("turnout miss",),
        ),
        make_signal(
            "beta", "YES", confidence=0.7, fair_probability=0.70,
            key_drivers=("fundraising edge",),
        ),
        make_signal(
            "gamma", "NO", confidence=0.6, fair_probability=0.40,
            key_drivers=("incumbent advantage",), risk_factors=("scandal fades",),
        ),
    ]


@pytest.fixture
def tight_signals() -> list[AgentSignal]:
    """High-confidence agents that all sit right at the market price."""
    return [
        make_signal("alpha", "YES", confidence=0.95, fair_probability=0.72),
        make_signal("beta", "NO", confidence=0.92, fair_probability=0.70),
        make_signal("gamma", "NEUTRAL", confidence=0.90, fair_probability=0.71),
    ]


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> EngineConfig:
    """Defaults with a short agent deadline."""
    return EngineConfig(agents=AgentsConfig(timeout_ms=200))


@pytest.fixture
def main_registry(main_signals: list[AgentSignal]) -> AgentRegistry:
    return AgentRegistry(StaticAgent(s) for s in main_signals)


@pytest.fixture
def persistence() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def event_store(event_bus: EventBus) -> EventStore:
    """Store subscribed to every event on ``event_bus``."""
    store = EventStore()
    event_bus.subscribe_all(store.append)
    return store
