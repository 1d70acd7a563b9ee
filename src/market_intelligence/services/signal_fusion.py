"""Signal Fusion Engine -- weighted directional aggregation of agent signals.

Each signal's directional score is ``sign(direction) * confidence * weight``
where the weight comes from the category base weights, optionally scaled by
a market-context adjustment.  Scores are summed per direction, a majority of
agreeing categories earns an alignment bonus, and a small normalized gap
between the two directions is flagged as high conflict instead of forcing a
winner.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Sequence

import numpy as np

from market_intelligence.domain.enums import EventType, SignalDirection, VolatilityRegime
from market_intelligence.domain.values import (
    AgentSignal,
    ConflictingPair,
    FusionResult,
    MarketBriefingDocument,
    SignalContribution,
)
from market_intelligence.infrastructure.config import SignalFusionConfig

logger = logging.getLogger(__name__)

ContextAdjustment = Callable[[str, float, MarketBriefingDocument], float]

# -- Default context adjustment ----------------------------------------------

_EVENT_BOOSTS: dict[EventType, tuple[frozenset[str], float]] = {
    EventType.ELECTION: (frozenset({"polling_intelligence", "historical_pattern"}), 1.5),
    EventType.POLICY: (frozenset({"breaking_news", "event_impact"}), 1.2),
    EventType.COURT: (frozenset({"breaking_news", "event_impact"}), 1.2),
}

PRICE_ACTION_CATEGORIES = frozenset({"momentum", "mean_reversion", "market_microstructure"})

_VOLATILITY_SCALE: dict[VolatilityRegime, float] = {
    VolatilityRegime.HIGH: 0.8,
    VolatilityRegime.MEDIUM: 1.0,
    VolatilityRegime.LOW: 1.1,
}


def default_context_adjustment(
    category: str,
    weight: float,
    mbd: MarketBriefingDocument,
) -> float:
    """Event-type boosts plus volatility scaling of price-action categories."""
    boost = _EVENT_BOOSTS.get(mbd.event_type)
    if boost is not None and category in boost[0]:
        weight *= boost[1]
    if category in PRICE_ACTION_CATEGORIES:
        weight *= _VOLATILITY_SCALE[mbd.volatility_regime]
    return weight


# -- Engine --------------------------------------------------------------------


class SignalFusionEngine:
    """Fuses agent signals into per-direction scores.

    Parameters
    ----------
    config:
        Base weights, conflict threshold, alignment bonus and whether to
        apply context adjustments.
    adjustment:
        Context adjustment function.  Defaults to
        ``default_context_adjustment``.
    """

    def __init__(
        self,
        config: SignalFusionConfig | None = None,
        adjustment: ContextAdjustment | None = None,
    ) -> None:
        self._config = config or SignalFusionConfig()
        self._adjustment = adjustment or default_context_adjustment

    def weight_for(self, signal: AgentSignal, mbd: MarketBriefingDocument) -> tuple[float, float]:
        """Return ``(base_weight, adjusted_weight)`` for *signal*."""
        base = self._config.weight_for(signal.category)
        if not self._config.context_adjustments:
            return base, base
        return base, float(self._adjustment(signal.category, base, mbd))

    def fuse(
        self,
        signals: Sequence[AgentSignal],
        mbd: MarketBriefingDocument,
    ) -> FusionResult:
        cfg = self._config
        raw: list[SignalContribution] = []
        excluded: list[str] = []

        for signal in signals:
            base, adjusted = self.weight_for(signal, mbd)
            if adjusted <= 0.0:
                excluded.append(signal.agent_name)
                logger.debug("Excluding %s (weight %.3f)", signal.agent_name, adjusted)
                continue
            raw.append(
                SignalContribution(
                    agent_name=signal.agent_name,
                    category=signal.category,
                    direction=signal.direction,
                    confidence=signal.confidence,
                    fair_probability=signal.fair_probability,
                    base_weight=base,
                    adjusted_weight=adjusted,
                    score=signal.direction.sign * signal.confidence * adjusted,
                )
            )

        if not raw:
            return FusionResult(
                yes_score=0.0,
                no_score=0.0,
                contributions=(),
                high_conflict=True,
                fused_probability=mbd.current_probability,
                signal_alignment=0.0,
                excluded_agents=tuple(excluded),
            )

        scores = np.array([c.score for c in raw])
        yes = float(scores[scores > 0].sum())
        no = float(-scores[scores < 0].sum())

        yes_bonus = self._alignment_bonus(raw, SignalDirection.YES)
        no_bonus = self._alignment_bonus(raw, SignalDirection.NO)
        yes += yes_bonus
        no += no_bonus

        total = yes + no
        gap = abs(yes - no) / total if total > 0 else 0.0
        high_conflict = gap < cfg.conflict_threshold

        effective = np.array([c.effective_weight for c in raw])
        probs = np.array([c.fair_probability for c in raw])
        if effective.sum() > 0:
            norm = effective / effective.sum()
        else:
            norm = np.full(len(raw), 1.0 / len(raw))
        fused = float(np.dot(norm, probs))
        std = float(np.sqrt(np.dot(norm, (probs - fused) ** 2)))
        alignment = max(0.0, 1.0 - 2.0 * std)
        mean_conf = float(np.dot(norm, [c.confidence for c in raw]))

        contributions = tuple(
            SignalContribution(
                agent_name=c.agent_name,
                category=c.category,
                direction=c.direction,
                confidence=c.confidence,
                fair_probability=c.fair_probability,
                base_weight=c.base_weight,
                adjusted_weight=c.adjusted_weight,
                score=c.score,
                normalized_weight=float(w),
            )
            for c, w in zip(raw, norm)
        )

        result = FusionResult(
            yes_score=yes,
            no_score=no,
            contributions=contributions,
            yes_alignment_bonus=yes_bonus,
            no_alignment_bonus=no_bonus,
            high_conflict=high_conflict,
            normalized_gap=gap,
            fused_probability=min(1.0, max(0.0, fused)),
            signal_alignment=alignment,
            fusion_confidence=mean_conf * alignment,
            conflicting_pairs=self._conflicting_pairs(raw),
            excluded_agents=tuple(excluded),
        )
        logger.info(
            "Fused %d signals: yes=%.3f no=%.3f gap=%.3f conflict=%s",
            len(raw), yes, no, gap, high_conflict,
        )
        return result

    def _alignment_bonus(
        self,
        contributions: Sequence[SignalContribution],
        direction: SignalDirection,
    ) -> float:
        categories = {c.category for c in contributions}
        agreeing = {c.category for c in contributions if c.direction is direction}
        k = len(agreeing)
        if k > len(categories) / 2:
            return self._config.alignment_bonus * (k - 1)
        return 0.0

    def _conflicting_pairs(
        self,
        contributions: Sequence[SignalContribution],
    ) -> tuple[ConflictingPair, ...]:
        threshold = self._config.conflict_threshold
        pairs = []
        for a, b in itertools.combinations(contributions, 2):
            disagreement = abs(a.fair_probability - b.fair_probability)
            if disagreement > threshold:
                pairs.append(ConflictingPair(a.agent_name, b.agent_name, disagreement))
        return tuple(pairs)
