"""Consensus Calculator -- final probability, band, disagreement and regime.

The consensus starts at the fusion-weighted fair probability and moves
toward the winning thesis in proportion to the square root of the combined
(fusion + debate) margin.  The band narrows as total confidence grows and
widens under signal conflict; the disagreement index measures dispersion
of the agents around the consensus.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from market_intelligence.domain.enums import ProbabilityRegime, RecommendationErrorKind
from market_intelligence.domain.errors import RecommendationError
from market_intelligence.domain.values import (
    ConsensusProbability,
    DebateRecord,
    FusionResult,
    Thesis,
)
from market_intelligence.infrastructure.config import ConsensusConfig

logger = logging.getLogger(__name__)

MAX_BAND_HALF_WIDTH = 0.5


def _clip01(value: float) -> float:
    return min(1.0, max(0.0, value))


def classify_regime(
    disagreement_index: float,
    band_width: float,
    config: ConsensusConfig,
) -> ProbabilityRegime:
    """Pure regime classification.

    Monotone in the disagreement index: raising it never moves the regime
    toward higher confidence.
    """
    threshold = config.high_disagreement_threshold
    if disagreement_index > threshold:
        return ProbabilityRegime.HIGH_UNCERTAINTY
    if disagreement_index < threshold and band_width <= config.narrow_band_width:
        return ProbabilityRegime.HIGH_CONFIDENCE
    return ProbabilityRegime.MODERATE_CONFIDENCE


class ConsensusCalculator:
    """Combines fusion and debate into a ``ConsensusProbability``.

    Parameters
    ----------
    config:
        Band, disagreement and regime thresholds.
    min_agents_required:
        Minimum number of contributing signals; checked again here.
    """

    def __init__(
        self,
        config: ConsensusConfig | None = None,
        min_agents_required: int = 2,
    ) -> None:
        self._config = config or ConsensusConfig()
        self._min_agents = min_agents_required

    def calculate(
        self,
        fusion: FusionResult,
        bull: Thesis,
        bear: Thesis,
        debate: DebateRecord,
    ) -> ConsensusProbability | RecommendationError:
        cfg = self._config
        contributions = fusion.contributions
        if len(contributions) < self._min_agents:
            return RecommendationError(
                message=(
                    f"{len(contributions)} contributing signals, "
                    f"{self._min_agents} required"
                ),
                kind=RecommendationErrorKind.CONSENSUS_FAILED,
            )

        base = fusion.fused_probability
        c_yes = max(0.0, fusion.yes_score + debate.bull_score)
        c_no = max(0.0, fusion.no_score + debate.bear_score)
        total = c_yes + c_no
        margin = abs(c_yes - c_no) / total if total > 0 else 0.0
        if c_yes > c_no:
            winner: Thesis | None = bull
        elif c_no > c_yes:
            winner = bear
        else:
            winner = None

        consensus = base
        if winner is not None:
            consensus = base + math.sqrt(margin) * (winner.fair_probability - base)
        if not math.isfinite(consensus):
            return RecommendationError(
                message="consensus probability is not finite",
                kind=RecommendationErrorKind.CONSENSUS_FAILED,
            )
        consensus = _clip01(consensus)

        confidences = np.array([c.confidence for c in contributions])
        total_conf = float(confidences.sum())
        if total_conf > 0:
            half = cfg.band_scale / total_conf
        else:
            half = MAX_BAND_HALF_WIDTH
        if fusion.high_conflict:
            half *= cfg.conflict_band_multiplier
        half = min(half, MAX_BAND_HALF_WIDTH)
        band = (_clip01(consensus - half), _clip01(consensus + half))

        di = self.disagreement_index(fusion, consensus)
        width = band[1] - band[0]
        regime = classify_regime(di, width, cfg)

        logger.info(
            "Consensus %.4f band=[%.4f, %.4f] DI=%.3f regime=%s (margin %.3f)",
            consensus, band[0], band[1], di, regime.value, margin,
        )
        return ConsensusProbability(
            consensus_probability=consensus,
            confidence_band=band,
            disagreement_index=di,
            regime=regime,
            contributing_signals=fusion.agent_names,
        )

    def disagreement_index(self, fusion: FusionResult, consensus: float) -> float:
        """Weighted dispersion around *consensus*, plus confidence and conflict terms."""
        contributions = fusion.contributions
        if not contributions:
            return 1.0
        weights = np.array([c.normalized_weight for c in contributions])
        if weights.sum() <= 0:
            weights = np.full(len(contributions), 1.0 / len(contributions))
        probs = np.array([c.fair_probability for c in contributions])
        confidences = np.array([c.confidence for c in contributions])
        std = float(np.sqrt(np.dot(weights, (probs - consensus) ** 2)))
        di = std / 0.5 + 0.1 * (1.0 - float(confidences.mean()))
        if fusion.high_conflict:
            di += self._config.conflict_penalty
        return _clip01(di)
