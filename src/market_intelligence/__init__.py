"""Market Intelligence Engine.

Multi-agent analysis of binary prediction markets: independent intelligence
agents emit signals that are fused, argued into bull and bear theses,
stress-tested in a structured debate, reduced to a consensus probability
and turned into an explainable trade recommendation.
"""

__version__ = "0.1.0"

from market_intelligence.infrastructure.config import EngineConfig
from market_intelligence.infrastructure.registry import AgentRegistry
from market_intelligence.services.orchestrator import (
    AnalysisOutcome,
    MarketAnalysisOrchestrator,
)

__all__ = [
    "AgentRegistry",
    "AnalysisOutcome",
    "EngineConfig",
    "MarketAnalysisOrchestrator",
]
