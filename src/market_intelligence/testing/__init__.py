"""Public testing utilities for the Market Intelligence Engine.

Deterministic agents, a scripted chat model and a static market data
provider, so pipelines can be exercised without API keys or network.
"""

from market_intelligence.testing.agents import (
    BadReturnAgent,
    FailingAgent,
    SlowAgent,
    StaticAgent,
    make_signal,
)
from market_intelligence.testing.market_data import StaticMarketDataProvider
from market_intelligence.testing.mock_llm import MockStructuredChatModel

__all__ = [
    "BadReturnAgent",
    "FailingAgent",
    "MockStructuredChatModel",
    "SlowAgent",
    "StaticAgent",
    "StaticMarketDataProvider",
    "make_signal",
]
