"""Thesis Constructor -- builds the Bull (YES) and Bear (NO) arguments.

Each thesis is derived purely from the fused signal contributions that
support it: its fair probability is their confidence-and-weight averaged
fair probability, its catalysts are their key drivers, and its failure
conditions are their own risk factors plus the opposing side's drivers.

When only one side has directional support, the other thesis is built from
what is left: the opposing signals' risk factors become its catalysts and
its fair probability comes from the neutral signals, or the market price
when there are none.  Such a thesis has no ``supporting_signals``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from market_intelligence.domain.enums import RecommendationErrorKind, SignalDirection
from market_intelligence.domain.errors import RecommendationError
from market_intelligence.domain.values import (
    AgentSignal,
    FusionResult,
    MarketBriefingDocument,
    SignalContribution,
    Thesis,
)

logger = logging.getLogger(__name__)

MAX_THESIS_ITEMS = 5


def _unique(items: Iterable[str], limit: int = MAX_THESIS_ITEMS) -> tuple[str, ...]:
    out: list[str] = []
    for item in items:
        if item and item not in out:
            out.append(item)
            if len(out) == limit:
                break
    return tuple(out)


def weighted_fair_probability(contributions: Sequence[SignalContribution]) -> float:
    """Mean fair probability weighted by ``confidence * adjusted_weight``."""
    total = sum(c.effective_weight for c in contributions)
    if total <= 0:
        return sum(c.fair_probability for c in contributions) / len(contributions)
    return sum(c.effective_weight * c.fair_probability for c in contributions) / total


def _outcome(direction: SignalDirection) -> str:
    return "YES" if direction is SignalDirection.YES else "NO"


class ThesisConstructor:
    """Builds one thesis per direction from a ``FusionResult``."""

    def build(
        self,
        fusion: FusionResult,
        signals: Sequence[AgentSignal],
        mbd: MarketBriefingDocument,
    ) -> tuple[Thesis, Thesis] | RecommendationError:
        """Return ``(bull, bear)``, or ``INSUFFICIENT_DATA`` when no signal takes a side."""
        by_name = {s.agent_name: s for s in signals}
        bull_support = fusion.supporting(SignalDirection.YES)
        bear_support = fusion.supporting(SignalDirection.NO)
        neutral = fusion.supporting(SignalDirection.NEUTRAL)

        if not bull_support and not bear_support:
            logger.warning(
                "No directional signals among %d contribution(s)", len(fusion.contributions)
            )
            return RecommendationError(
                message="no supporting signals for YES or NO",
                kind=RecommendationErrorKind.INSUFFICIENT_DATA,
                details={"missing_sides": ["YES", "NO"]},
            )

        bull = self._side(SignalDirection.YES, bull_support, bear_support, neutral, by_name, mbd)
        bear = self._side(SignalDirection.NO, bear_support, bull_support, neutral, by_name, mbd)
        logger.info(
            "Theses built: bull=%.3f (edge %.3f) bear=%.3f (edge %.3f)",
            bull.fair_probability, bull.edge, bear.fair_probability, bear.edge,
        )
        return bull, bear

    def _side(
        self,
        direction: SignalDirection,
        support: Sequence[SignalContribution],
        opposing: Sequence[SignalContribution],
        neutral: Sequence[SignalContribution],
        by_name: Mapping[str, AgentSignal],
        mbd: MarketBriefingDocument,
    ) -> Thesis:
        if support:
            return self._thesis(direction, support, opposing, by_name, mbd)
        logger.info(
            "No signals argue for %s; building it from the opposing risks",
            _outcome(direction),
        )
        return self._unsupported_thesis(direction, opposing, neutral, by_name, mbd)

    def _thesis(
        self,
        direction: SignalDirection,
        support: Sequence[SignalContribution],
        opposing: Sequence[SignalContribution],
        by_name: Mapping[str, AgentSignal],
        mbd: MarketBriefingDocument,
    ) -> Thesis:
        fair = min(1.0, max(0.0, weighted_fair_probability(support)))
        supporting = [by_name[c.agent_name] for c in support if c.agent_name in by_name]
        against = [by_name[c.agent_name] for c in opposing if c.agent_name in by_name]

        catalysts = _unique(d for s in supporting for d in s.key_drivers)
        failure_conditions = _unique(
            [r for s in supporting for r in s.risk_factors]
            + [d for s in against for d in s.key_drivers]
        )

        lean = "above" if fair > mbd.current_probability else "at or below"
        core = (
            f"{len(support)} signal(s) argue for {_outcome(direction)}: fair probability "
            f"{fair:.1%} vs market {mbd.current_probability:.1%} ({lean} market)"
        )
        if catalysts:
            core += f"; led by {catalysts[0]}"

        return Thesis(
            direction=direction,
            fair_probability=fair,
            market_probability=mbd.current_probability,
            core_argument=core,
            catalysts=catalysts,
            failure_conditions=failure_conditions,
            supporting_signals=tuple(c.agent_name for c in support),
        )

    def _unsupported_thesis(
        self,
        direction: SignalDirection,
        opposing: Sequence[SignalContribution],
        neutral: Sequence[SignalContribution],
        by_name: Mapping[str, AgentSignal],
        mbd: MarketBriefingDocument,
    ) -> Thesis:
        if neutral:
            fair = min(1.0, max(0.0, weighted_fair_probability(neutral)))
        else:
            fair = mbd.current_probability
        against = [by_name[c.agent_name] for c in opposing if c.agent_name in by_name]
        remaining = [by_name[c.agent_name] for c in neutral if c.agent_name in by_name]

        catalysts = _unique(
            [r for s in against for r in s.risk_factors]
            + [d for s in remaining for d in s.key_drivers]
        )
        failure_conditions = _unique(d for s in against for d in s.key_drivers)

        core = (
            f"no signal argues for {_outcome(direction)}; the case rests on "
            f"{len(against)} opposing signal(s) failing: fair probability "
            f"{fair:.1%} vs market {mbd.current_probability:.1%}"
        )
        if catalysts:
            core += f"; watch {catalysts[0]}"

        return Thesis(
            direction=direction,
            fair_probability=fair,
            market_probability=mbd.current_probability,
            core_argument=core,
            catalysts=catalysts,
            failure_conditions=failure_conditions,
        )
