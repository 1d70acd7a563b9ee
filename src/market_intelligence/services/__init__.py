"""Service layer for the Market Intelligence Engine.

Re-exports every pipeline stage::

    from market_intelligence.services import (
        AgentExecutor, SignalFusionEngine, ThesisConstructor, DebateEngine,
        ConsensusCalculator, RecommendationGenerator, AuditTrail,
        MarketAnalysisOrchestrator,
    )
"""

from market_intelligence.services.agent_executor import AgentExecutor, AgentOutcome
from market_intelligence.services.audit_trail import AuditTrail
from market_intelligence.services.consensus import ConsensusCalculator, classify_regime
from market_intelligence.services.debate import (
    CausalityTest,
    DebateContext,
    DebateEngine,
    DebateTestStrategy,
    EvidenceTest,
    LiquidityTest,
    Measurement,
    TailRiskTest,
    TimingTest,
    default_battery,
    expiry_urgency,
    score_measurement,
)
from market_intelligence.services.orchestrator import (
    AnalysisOutcome,
    MarketAnalysisOrchestrator,
)
from market_intelligence.services.recommendation import (
    RecommendationGenerator,
    expected_value,
    liquidity_risk,
)
from market_intelligence.services.signal_fusion import (
    ContextAdjustment,
    SignalFusionEngine,
    default_context_adjustment,
)
from market_intelligence.services.thesis import ThesisConstructor, weighted_fair_probability

__all__ = [
    "AgentExecutor",
    "AgentOutcome",
    "AnalysisOutcome",
    "AuditTrail",
    "CausalityTest",
    "ConsensusCalculator",
    "ContextAdjustment",
    "DebateContext",
    "DebateEngine",
    "DebateTestStrategy",
    "EvidenceTest",
    "LiquidityTest",
    "MarketAnalysisOrchestrator",
    "Measurement",
    "RecommendationGenerator",
    "SignalFusionEngine",
    "TailRiskTest",
    "ThesisConstructor",
    "TimingTest",
    "classify_regime",
    "default_battery",
    "default_context_adjustment",
    "expected_value",
    "expiry_urgency",
    "liquidity_risk",
    "score_measurement",
    "weighted_fair_probability",
]
