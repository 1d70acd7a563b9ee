"""Recommendation Generator -- turns a consensus into a trade.

Trades are expressed in the price of the outcome token being bought: a
LONG_NO entry zone brackets the NO price ``1 - market`` and its target zone
mirrors the consensus band.  An edge below ``min_edge_threshold`` yields a
NO_TRADE recommendation together with a soft ``NO_EDGE`` error.
"""

from __future__ import annotations

import logging

from market_intelligence.domain.enums import (
    LiquidityRisk,
    ProbabilityRegime,
    RecommendationErrorKind,
    TradeAction,
)
from market_intelligence.domain.errors import RecommendationError
from market_intelligence.domain.values import (
    ConsensusProbability,
    DebateRecord,
    MarketBriefingDocument,
    Thesis,
    TradeExplanation,
    TradeMetadata,
    TradeRecommendation,
)
from market_intelligence.infrastructure.config import ConsensusConfig

logger = logging.getLogger(__name__)

MIN_ENTRY_HALF_WIDTH = 0.01
MIN_ENTRY_PRICE = 0.01


def liquidity_risk(score: float) -> LiquidityRisk:
    if score < 3.0:
        return LiquidityRisk.HIGH
    if score < 7.0:
        return LiquidityRisk.MEDIUM
    return LiquidityRisk.LOW


def expected_value(win_probability: float, entry_price: float) -> float:
    """Expected profit in dollars per $100 staked at *entry_price*."""
    price = max(entry_price, MIN_ENTRY_PRICE)
    return win_probability * 100.0 / price - 100.0


def _zone(center: float, half: float) -> tuple[float, float]:
    return (max(0.0, center - half), min(1.0, center + half))


class RecommendationGenerator:
    """Builds the terminal ``TradeRecommendation``."""

    def __init__(self, config: ConsensusConfig | None = None) -> None:
        self._config = config or ConsensusConfig()

    def decide(self, consensus: float, market: float) -> TradeAction:
        """Action implied by *consensus* vs *market* under the edge threshold."""
        if abs(consensus - market) < self._config.min_edge_threshold:
            return TradeAction.NO_TRADE
        return TradeAction.LONG_YES if consensus > market else TradeAction.LONG_NO

    def generate(
        self,
        mbd: MarketBriefingDocument,
        consensus: ConsensusProbability,
        bull: Thesis,
        bear: Thesis,
        debate: DebateRecord,
    ) -> tuple[TradeRecommendation, RecommendationError | None]:
        """Return the recommendation and, for NO_TRADE, the soft ``NO_EDGE`` error."""
        cfg = self._config
        market = mbd.current_probability
        p = consensus.consensus_probability
        edge = abs(p - market)
        action = self.decide(p, market)
        half = max(mbd.spread_probability / 2.0, MIN_ENTRY_HALF_WIDTH)
        lower, upper = consensus.confidence_band

        soft_error: RecommendationError | None = None
        if action is TradeAction.LONG_YES:
            entry_price = market
            entry_zone = _zone(entry_price, half)
            target_zone = (lower, upper)
            win_probability = p
            ev = expected_value(win_probability, entry_price)
            thesis = bull
        elif action is TradeAction.LONG_NO:
            entry_price = 1.0 - market
            entry_zone = _zone(entry_price, half)
            target_zone = (1.0 - upper, 1.0 - lower)
            win_probability = 1.0 - p
            ev = expected_value(win_probability, entry_price)
            thesis = bear
        else:
            entry_zone = _zone(market, half)
            target_zone = (lower, upper)
            win_probability = p
            ev = 0.0
            thesis = None
            soft_error = RecommendationError(
                message=(
                    f"edge {edge:.4f} below threshold {cfg.min_edge_threshold:.4f}"
                ),
                kind=RecommendationErrorKind.NO_EDGE,
                details={"edge": edge, "threshold": cfg.min_edge_threshold},
            )

        explanation = self._explain(action, mbd, consensus, edge, thesis, bull, bear, debate)
        rec = TradeRecommendation(
            market_id=mbd.market_id,
            action=action,
            entry_zone=entry_zone,
            target_zone=target_zone,
            expected_value=ev,
            win_probability=min(1.0, max(0.0, win_probability)),
            liquidity_risk=liquidity_risk(mbd.liquidity_score),
            explanation=explanation,
            metadata=TradeMetadata(
                consensus_probability=p,
                market_probability=market,
                edge=edge,
                confidence_band=consensus.confidence_band,
            ),
        )
        logger.info(
            "Recommendation for %s: %s edge=%.4f EV=%.2f",
            mbd.market_id, action.value, edge, ev,
        )
        return rec, soft_error

    def _explain(
        self,
        action: TradeAction,
        mbd: MarketBriefingDocument,
        consensus: ConsensusProbability,
        edge: float,
        thesis: Thesis | None,
        bull: Thesis,
        bear: Thesis,
        debate: DebateRecord,
    ) -> TradeExplanation:
        p = consensus.consensus_probability
        market = mbd.current_probability
        if thesis is None:
            summary = (
                f"No trade: consensus {p:.1%} is within "
                f"{self._config.min_edge_threshold:.1%} of the market price {market:.1%}."
            )
            core = (
                f"Bull and bear cases roughly offset "
                f"(debate {debate.bull_score:+.2f} vs {debate.bear_score:+.2f})."
            )
            catalysts = bull.catalysts
            failures = bear.catalysts
        else:
            side = "YES" if action is TradeAction.LONG_YES else "NO"
            summary = (
                f"Buy {side}: consensus {p:.1%} vs market {market:.1%} "
                f"({edge:.1%} edge, {consensus.regime.value})."
            )
            core = thesis.core_argument
            catalysts = thesis.catalysts
            failures = thesis.failure_conditions

        note = None
        if consensus.disagreement_index > self._config.high_disagreement_threshold:
            note = (
                f"Agents disagree materially (disagreement index "
                f"{consensus.disagreement_index:.2f}); size positions conservatively."
            )
        elif consensus.regime is ProbabilityRegime.MODERATE_CONFIDENCE and mbd.ambiguity_flags:
            note = "Resolution criteria carry ambiguity flags: " + ", ".join(mbd.ambiguity_flags)

        return TradeExplanation(
            summary=summary,
            core_thesis=core,
            key_catalysts=tuple(catalysts),
            failure_scenarios=tuple(failures),
            uncertainty_note=note,
        )
