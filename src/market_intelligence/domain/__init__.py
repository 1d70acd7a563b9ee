"""Domain layer for the Market Intelligence Engine.

Re-exports all public domain types so that consumers can write::

    from market_intelligence.domain import AgentSignal, SignalDirection
"""

# -- Enumerations -------------------------------------------------------------
from .enums import (
    AgentErrorKind,
    DebateOutcome,
    DebateTestType,
    EventType,
    IngestionErrorKind,
    LiquidityRisk,
    OrchestrationErrorKind,
    PipelineStage,
    ProbabilityRegime,
    RecommendationErrorKind,
    SignalDirection,
    TradeAction,
    VolatilityRegime,
)

# -- Value Objects ------------------------------------------------------------
from .values import (
    AgentSignal,
    AuditEntry,
    Catalyst,
    ConflictingPair,
    ConsensusProbability,
    DebateRecord,
    DebateTest,
    FusionResult,
    MarketBriefingDocument,
    SignalContribution,
    Thesis,
    TradeExplanation,
    TradeMetadata,
    TradeRecommendation,
)

# -- Tagged errors ------------------------------------------------------------
from .errors import (
    AgentError,
    IngestionError,
    OrchestrationError,
    PipelineError,
    RecommendationError,
)

# -- Aggregates ---------------------------------------------------------------
from .aggregates import RunState

# -- Domain Events ------------------------------------------------------------
from .events import (
    AgentFailed,
    AnalysisCompleted,
    AnalysisFailed,
    DomainEvent,
    StageCompleted,
)

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    AgentRegistrationError,
    ConfigurationError,
    MarketIntelligenceError,
)

__all__ = [
    # enums
    "AgentErrorKind",
    "DebateOutcome",
    "DebateTestType",
    "EventType",
    "IngestionErrorKind",
    "LiquidityRisk",
    "OrchestrationErrorKind",
    "PipelineStage",
    "ProbabilityRegime",
    "RecommendationErrorKind",
    "SignalDirection",
    "TradeAction",
    "VolatilityRegime",
    # values
    "AgentSignal",
    "AuditEntry",
    "Catalyst",
    "ConflictingPair",
    "ConsensusProbability",
    "DebateRecord",
    "DebateTest",
    "FusionResult",
    "MarketBriefingDocument",
    "SignalContribution",
    "Thesis",
    "TradeExplanation",
    "TradeMetadata",
    "TradeRecommendation",
    # errors
    "AgentError",
    "IngestionError",
    "OrchestrationError",
    "PipelineError",
    "RecommendationError",
    # aggregates
    "RunState",
    # events
    "AgentFailed",
    "AnalysisCompleted",
    "AnalysisFailed",
    "DomainEvent",
    "StageCompleted",
    # exceptions
    "AgentRegistrationError",
    "ConfigurationError",
    "MarketIntelligenceError",
]
