"""Value objects for the Market Intelligence Engine.

All types here are frozen dataclasses -- immutable, compared by value.
They represent the market input, the per-agent opinions, and every
intermediate and final artifact a pipeline run produces.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .enums import (
    DebateOutcome,
    DebateTestType,
    EventType,
    LiquidityRisk,
    ProbabilityRegime,
    SignalDirection,
    TradeAction,
    VolatilityRegime,
)

MAX_KEY_DRIVERS = 5


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


def _check_zone(name: str, zone: tuple[float, float]) -> None:
    if len(zone) != 2:
        raise ValueError(f"{name} must have exactly two bounds, got {zone!r}")
    if zone[0] > zone[1]:
        raise ValueError(f"{name} lower bound exceeds upper bound: {zone!r}")


# ---------------------------------------------------------------------------
# MarketBriefingDocument
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Catalyst:
    """A dated event expected to move the market."""

    event: str
    timestamp: float = 0.0


@dataclass(frozen=True)
class MarketBriefingDocument:
    """Standardized market snapshot -- the immutable input of one run.

    ``current_probability`` is the market-implied probability of YES.
    ``bid_ask_spread`` is quoted in cents (0-100) and ``expiry_timestamp``
    in epoch seconds.
    """

    market_id: str
    condition_id: str
    question: str
    current_probability: float
    event_type: EventType = EventType.OTHER
    resolution_criteria: str = ""
    expiry_timestamp: float = 0.0
    liquidity_score: float = 5.0
    bid_ask_spread: float = 0.0
    volatility_regime: VolatilityRegime = VolatilityRegime.MEDIUM
    volume_24h: float = 0.0
    catalysts: tuple[Catalyst, ...] = ()
    ambiguity_flags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.market_id:
            raise ValueError("market_id must not be empty")
        _check_unit("current_probability", self.current_probability)
        if not 0.0 <= self.liquidity_score <= 10.0:
            raise ValueError(
                f"liquidity_score must be in [0, 10], got {self.liquidity_score}"
            )
        if self.bid_ask_spread < 0.0:
            raise ValueError(
                f"bid_ask_spread must be >= 0, got {self.bid_ask_spread}"
            )
        if self.volume_24h < 0.0:
            raise ValueError(f"volume_24h must be >= 0, got {self.volume_24h}")

    @property
    def spread_probability(self) -> float:
        """Bid-ask spread expressed in probability units."""
        return self.bid_ask_spread / 100.0

    def days_to_expiry(self, now: float | None = None) -> float:
        """Days remaining until resolution (negative once expired)."""
        now = time.time() if now is None else now
        return (self.expiry_timestamp - now) / 86400.0


# ---------------------------------------------------------------------------
# AgentSignal
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AgentSignal:
    """One agent's probabilistic opinion about a market.

    ``key_drivers`` longer than five entries are truncated so that
    explanations stay short.
    """

    agent_name: str
    direction: SignalDirection
    confidence: float
    fair_probability: float
    timestamp: float = field(default_factory=time.time)
    key_drivers: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.agent_name:
            raise ValueError("agent_name must not be empty")
        _check_unit("confidence", self.confidence)
        _check_unit("fair_probability", self.fair_probability)
        drivers = tuple(self.key_drivers)
        if len(drivers) > MAX_KEY_DRIVERS:
            drivers = drivers[:MAX_KEY_DRIVERS]
        object.__setattr__(self, "key_drivers", drivers)
        object.__setattr__(self, "risk_factors", tuple(self.risk_factors))

    @property
    def category(self) -> str:
        """Signal category used to look up fusion weights."""
        return str(self.metadata.get("category", self.agent_name))


# ---------------------------------------------------------------------------
# Fusion output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SignalContribution:
    """How a single signal entered the fused directional scores."""

    agent_name: str
    category: str
    direction: SignalDirection
    confidence: float
    fair_probability: float
    base_weight: float
    adjusted_weight: float
    score: float
    normalized_weight: float = 0.0

    @property
    def effective_weight(self) -> float:
        """Confidence-scaled weight used for probability averaging."""
        return self.confidence * self.adjusted_weight


@dataclass(frozen=True)
class ConflictingPair:
    """Two agents whose fair probabilities diverge beyond the threshold."""

    agent_a: str
    agent_b: str
    disagreement: float


@dataclass(frozen=True)
class FusionResult:
    """Weighted directional view of all surviving signals."""

    yes_score: float
    no_score: float
    contributions: tuple[SignalContribution, ...]
    yes_alignment_bonus: float = 0.0
    no_alignment_bonus: float = 0.0
    high_conflict: bool = False
    normalized_gap: float = 0.0
    fused_probability: float = 0.5
    signal_alignment: float = 1.0
    fusion_confidence: float = 0.0
    conflicting_pairs: tuple[ConflictingPair, ...] = ()
    excluded_agents: tuple[str, ...] = ()

    @property
    def agent_names(self) -> tuple[str, ...]:
        return tuple(c.agent_name for c in self.contributions)

    @property
    def weights(self) -> dict[str, float]:
        """Normalized per-agent weights (sum to 1)."""
        return {c.agent_name: c.normalized_weight for c in self.contributions}

    @property
    def leading_direction(self) -> SignalDirection:
        """Direction with the higher score; NEUTRAL on a tie or conflict."""
        if self.high_conflict or self.yes_score == self.no_score:
            return SignalDirection.NEUTRAL
        if self.yes_score > self.no_score:
            return SignalDirection.YES
        return SignalDirection.NO

    def supporting(self, direction: SignalDirection) -> tuple[SignalContribution, ...]:
        """Contributions that lean toward *direction*."""
        return tuple(c for c in self.contributions if c.direction is direction)

    def score_for(self, direction: SignalDirection) -> float:
        if direction is SignalDirection.YES:
            return self.yes_score
        if direction is SignalDirection.NO:
            return self.no_score
        return 0.0


# ---------------------------------------------------------------------------
# Thesis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Thesis:
    """Structured argument for one market outcome (Bull = YES, Bear = NO)."""

    direction: SignalDirection
    fair_probability: float
    market_probability: float
    core_argument: str = ""
    catalysts: tuple[str, ...] = ()
    failure_conditions: tuple[str, ...] = ()
    supporting_signals: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.direction is SignalDirection.NEUTRAL:
            raise ValueError("a thesis must argue YES or NO")
        _check_unit("fair_probability", self.fair_probability)
        _check_unit("market_probability", self.market_probability)

    @property
    def edge(self) -> float:
        """Absolute gap between the thesis and the market."""
        return abs(self.fair_probability - self.market_probability)

    @property
    def is_supported(self) -> bool:
        """False when no signal argued for this side."""
        return bool(self.supporting_signals)


# ---------------------------------------------------------------------------
# Debate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DebateTest:
    """Result of one adversarial test against one thesis."""

    test_type: DebateTestType
    side: SignalDirection
    claim: str
    challenge: str
    outcome: DebateOutcome
    score: float

    def __post_init__(self) -> None:
        if not -1.0 <= self.score <= 1.0:
            raise ValueError(f"score must be in [-1, 1], got {self.score}")


@dataclass(frozen=True)
class DebateRecord:
    """Ordered cross-examination results for both theses."""

    tests: tuple[DebateTest, ...] = ()
    bull_score: float = 0.0
    bear_score: float = 0.0
    key_disagreements: tuple[str, ...] = ()

    def score_for(self, direction: SignalDirection) -> float:
        if direction is SignalDirection.YES:
            return self.bull_score
        if direction is SignalDirection.NO:
            return self.bear_score
        return 0.0


# ---------------------------------------------------------------------------
# Consensus
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConsensusProbability:
    """Final probability estimate with its uncertainty band."""

    consensus_probability: float
    confidence_band: tuple[float, float]
    disagreement_index: float
    regime: ProbabilityRegime
    contributing_signals: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_unit("consensus_probability", self.consensus_probability)
        _check_unit("disagreement_index", self.disagreement_index)
        lower, upper = self.confidence_band
        if not 0.0 <= lower <= self.consensus_probability <= upper <= 1.0:
            raise ValueError(
                f"confidence_band {self.confidence_band!r} must bracket "
                f"{self.consensus_probability} within [0, 1]"
            )

    @property
    def band_width(self) -> float:
        return self.confidence_band[1] - self.confidence_band[0]


# ---------------------------------------------------------------------------
# TradeRecommendation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TradeExplanation:
    """Human-readable justification attached to a recommendation."""

    summary: str
    core_thesis: str
    key_catalysts: tuple[str, ...] = ()
    failure_scenarios: tuple[str, ...] = ()
    uncertainty_note: str | None = None


@dataclass(frozen=True)
class TradeMetadata:
    """Numbers the recommendation was derived from."""

    consensus_probability: float
    market_probability: float
    edge: float
    confidence_band: tuple[float, float]


@dataclass(frozen=True)
class TradeRecommendation:
    """Terminal artifact of a successful run."""

    market_id: str
    action: TradeAction
    entry_zone: tuple[float, float]
    target_zone: tuple[float, float]
    expected_value: float
    win_probability: float
    liquidity_risk: LiquidityRisk
    explanation: TradeExplanation
    metadata: TradeMetadata
    recommendation_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def __post_init__(self) -> None:
        _check_zone("entry_zone", self.entry_zone)
        _check_zone("target_zone", self.target_zone)
        _check_unit("win_probability", self.win_probability)


# ---------------------------------------------------------------------------
# AuditEntry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuditEntry:
    """Immutable record of one pipeline stage (or one agent outcome)."""

    stage: str
    timestamp: float = field(default_factory=time.time)
    duration: float = 0.0
    data: Mapping[str, Any] = field(default_factory=dict)
    errors: tuple[Any, ...] = ()
    entry_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
