"""Domain enumerations for the Market Intelligence Engine.

These enums capture the fixed vocabularies used across the domain layer:
market classification, signal directions, debate outcomes, consensus
regimes, trade actions, error kinds, and pipeline stages.
"""

from enum import Enum


class EventType(Enum):
    """Classification of the real-world event behind a market."""

    ELECTION = "election"
    POLICY = "policy"
    COURT = "court"
    GEOPOLITICAL = "geopolitical"
    ECONOMIC = "economic"
    OTHER = "other"


class VolatilityRegime(Enum):
    """Recent price volatility bucket of a market."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SignalDirection(Enum):
    """Direction an agent leans on the market outcome."""

    YES = "YES"
    NO = "NO"
    NEUTRAL = "NEUTRAL"

    @property
    def sign(self) -> int:
        """+1 for YES, -1 for NO, 0 for NEUTRAL."""
        if self is SignalDirection.YES:
            return 1
        if self is SignalDirection.NO:
            return -1
        return 0


class DebateTestType(Enum):
    """Adversarial test families run during cross-examination."""

    EVIDENCE = "evidence"
    CAUSALITY = "causality"
    TIMING = "timing"
    LIQUIDITY = "liquidity"
    TAIL_RISK = "tail-risk"


class DebateOutcome(Enum):
    """How a thesis claim fared against its rebuttal."""

    SURVIVED = "survived"
    WEAKENED = "weakened"
    REFUTED = "refuted"


class ProbabilityRegime(Enum):
    """Qualitative certainty bucket of a consensus estimate."""

    HIGH_CONFIDENCE = "high-confidence"
    MODERATE_CONFIDENCE = "moderate-confidence"
    HIGH_UNCERTAINTY = "high-uncertainty"


class TradeAction(Enum):
    """Final trade action."""

    LONG_YES = "LONG_YES"
    LONG_NO = "LONG_NO"
    NO_TRADE = "NO_TRADE"


class LiquidityRisk(Enum):
    """Execution risk implied by market liquidity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IngestionErrorKind(Enum):
    """Failures while producing the market briefing document."""

    API_UNAVAILABLE = "API_UNAVAILABLE"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INVALID_MARKET_ID = "INVALID_MARKET_ID"
    VALIDATION_FAILED = "VALIDATION_FAILED"


class AgentErrorKind(Enum):
    """Failures of a single intelligence agent."""

    TIMEOUT = "TIMEOUT"
    EXECUTION_FAILED = "EXECUTION_FAILED"


class RecommendationErrorKind(Enum):
    """Failures (and the soft no-edge outcome) of the decision stages."""

    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    CONSENSUS_FAILED = "CONSENSUS_FAILED"
    NO_EDGE = "NO_EDGE"


class OrchestrationErrorKind(Enum):
    """Failures of the pipeline machinery itself."""

    STEP_BUDGET_EXCEEDED = "STEP_BUDGET_EXCEEDED"
    SHUTDOWN_REQUESTED = "SHUTDOWN_REQUESTED"
    STAGE_FAILED = "STAGE_FAILED"


class PipelineStage(Enum):
    """Stages of the analysis state machine, in execution order."""

    INGESTION = "market_ingestion"
    AGENTS = "agent_execution"
    FUSION = "signal_fusion"
    THESIS = "thesis_construction"
    DEBATE = "cross_examination"
    CONSENSUS = "consensus_engine"
    RECOMMENDATION = "recommendation_generation"
    DONE = "done"
