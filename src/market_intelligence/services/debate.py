"""Debate Engine -- adversarial cross-examination of both theses.

A battery of ``DebateTestStrategy`` objects is run against the Bull thesis
and then the Bear thesis.  Every strategy measures a claim ``support`` from
the tested side and a ``rebuttal`` from the opposing side; the engine turns
the pair into an outcome and a score in [-1, 1]::

    raw = (support - rebuttal) / support
    raw >= 0       -> survived, score = min(raw, 1)
    -1 < raw < 0   -> weakened, score = raw
    raw <= -1      -> refuted,  score = -1

The engine never fails: an empty battery simply yields zero scores.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

from market_intelligence.domain.enums import (
    DebateOutcome,
    DebateTestType,
    SignalDirection,
    VolatilityRegime,
)
from market_intelligence.domain.values import (
    DebateRecord,
    DebateTest,
    FusionResult,
    MarketBriefingDocument,
    SignalContribution,
    Thesis,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebateContext:
    """Everything a test may look at for one side of the debate."""

    thesis: Thesis
    opposing_thesis: Thesis
    support: tuple[SignalContribution, ...]
    opposing: tuple[SignalContribution, ...]
    mbd: MarketBriefingDocument
    now: float

    @property
    def side(self) -> str:
        return "bull" if self.thesis.direction is SignalDirection.YES else "bear"


@dataclass(frozen=True)
class Measurement:
    """Raw support / rebuttal strengths reported by a strategy."""

    support: float
    rebuttal: float
    claim: str
    challenge: str


def _mean_conf(contributions: Sequence[SignalContribution]) -> float:
    if not contributions:
        return 0.0
    return float(np.mean([c.confidence for c in contributions]))


def _max_conf(contributions: Sequence[SignalContribution]) -> float:
    return max((c.confidence for c in contributions), default=0.0)


def _weighted_strength(contributions: Sequence[SignalContribution]) -> float:
    return float(sum(c.effective_weight for c in contributions))


def _coherence(contributions: Sequence[SignalContribution]) -> float:
    if not contributions:
        return 0.0
    probs = [c.fair_probability for c in contributions]
    return 1.0 - (max(probs) - min(probs))


def score_measurement(support: float, rebuttal: float) -> tuple[DebateOutcome, float]:
    """Map a support / rebuttal pair onto an outcome and score."""
    if support <= 0.0:
        raw = -1.0 if rebuttal > 0.0 else 0.0
    else:
        raw = (support - rebuttal) / support
    if raw >= 0.0:
        return DebateOutcome.SURVIVED, min(raw, 1.0)
    if raw > -1.0:
        return DebateOutcome.WEAKENED, raw
    return DebateOutcome.REFUTED, -1.0


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class DebateTestStrategy(ABC):
    """One family of adversarial test."""

    test_type: DebateTestType

    @abstractmethod
    def measure(self, ctx: DebateContext) -> Measurement:
        ...

    def run(self, ctx: DebateContext) -> DebateTest:
        m = self.measure(ctx)
        support = max(0.0, m.support)
        rebuttal = max(0.0, m.rebuttal)
        outcome, score = score_measurement(support, rebuttal)
        return DebateTest(
            test_type=self.test_type,
            side=ctx.thesis.direction,
            claim=m.claim,
            challenge=m.challenge,
            outcome=outcome,
            score=score,
        )


class EvidenceTest(DebateTestStrategy):
    """Weight of evidence behind the thesis vs against it."""

    test_type = DebateTestType.EVIDENCE

    def measure(self, ctx: DebateContext) -> Measurement:
        support = _weighted_strength(ctx.support)
        rebuttal = _weighted_strength(ctx.opposing)
        return Measurement(
            support=support,
            rebuttal=rebuttal,
            claim=f"{len(ctx.support)} signal(s) with weighted strength {support:.2f}",
            challenge=f"{len(ctx.opposing)} opposing signal(s) with weighted strength {rebuttal:.2f}",
        )


class CausalityTest(DebateTestStrategy):
    """Do the supporting agents tell a coherent story?"""

    test_type = DebateTestType.CAUSALITY

    def measure(self, ctx: DebateContext) -> Measurement:
        own = _coherence(ctx.support)
        other = _coherence(ctx.opposing)
        return Measurement(
            support=_mean_conf(ctx.support) * own,
            rebuttal=_mean_conf(ctx.opposing) * other,
            claim=f"supporting estimates are coherent ({own:.2f})",
            challenge=f"opposing estimates are coherent ({other:.2f})",
        )


def expiry_urgency(days_to_expiry: float) -> float:
    """Pressure of time remaining: 1.0 within a week, 0.6 within a month, else 0.3."""
    if days_to_expiry <= 7.0:
        return 1.0
    if days_to_expiry <= 30.0:
        return 0.6
    return 0.3


class TimingTest(DebateTestStrategy):
    """Can the market reprice to the thesis before resolution?"""

    test_type = DebateTestType.TIMING

    def measure(self, ctx: DebateContext) -> Measurement:
        market = ctx.mbd.current_probability
        d_self = abs(ctx.thesis.fair_probability - market)
        d_other = abs(ctx.opposing_thesis.fair_probability - market)
        days = ctx.mbd.days_to_expiry(ctx.now)
        urgency = expiry_urgency(days)
        share = d_self / (d_self + d_other) if d_self + d_other > 0 else 0.0
        return Measurement(
            support=_mean_conf(ctx.support),
            rebuttal=urgency * share,
            claim=f"repricing of {d_self:.3f} expected before expiry",
            challenge=f"{max(days, 0.0):.1f} day(s) left to move {d_self:.3f}",
        )


class LiquidityTest(DebateTestStrategy):
    """Is the edge executable given liquidity and spread?"""

    test_type = DebateTestType.LIQUIDITY

    def measure(self, ctx: DebateContext) -> Measurement:
        spread = ctx.mbd.spread_probability
        edge = ctx.thesis.edge
        if edge > 0:
            spread_drag = min(1.0, spread / edge)
        else:
            spread_drag = 1.0 if spread > 0 else 0.0
        rebuttal = 0.5 * (1.0 - ctx.mbd.liquidity_score / 10.0) + 0.5 * spread_drag
        return Measurement(
            support=_mean_conf(ctx.support),
            rebuttal=rebuttal,
            claim=f"edge of {edge:.3f} is tradeable",
            challenge=(
                f"liquidity {ctx.mbd.liquidity_score:.1f}/10 and spread "
                f"{spread:.3f} consume the edge"
            ),
        )


_VOL_FACTOR: dict[VolatilityRegime, float] = {
    VolatilityRegime.LOW: 0.05,
    VolatilityRegime.MEDIUM: 0.15,
    VolatilityRegime.HIGH: 0.30,
}


class TailRiskTest(DebateTestStrategy):
    """Exposure to sharp adverse moves."""

    test_type = DebateTestType.TAIL_RISK

    def measure(self, ctx: DebateContext) -> Measurement:
        vol = _VOL_FACTOR[ctx.mbd.volatility_regime]
        strongest = _max_conf(ctx.opposing)
        return Measurement(
            support=_mean_conf(ctx.support),
            rebuttal=vol + 0.25 * strongest,
            claim="thesis holds under normal price swings",
            challenge=(
                f"{ctx.mbd.volatility_regime.value} volatility and an opposing "
                f"signal at confidence {strongest:.2f}"
            ),
        )


def default_battery() -> list[DebateTestStrategy]:
    return [EvidenceTest(), CausalityTest(), TimingTest(), LiquidityTest(), TailRiskTest()]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class DebateEngine:
    """Runs the test battery against both theses.

    Parameters
    ----------
    battery:
        Ordered strategies.  Defaults to the five standard tests.
    clock:
        Returns the current epoch time (used by the timing test).
    """

    def __init__(
        self,
        battery: Sequence[DebateTestStrategy] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._battery = list(default_battery() if battery is None else battery)
        self._clock = clock

    @property
    def battery(self) -> list[DebateTestStrategy]:
        return list(self._battery)

    def debate(
        self,
        bull: Thesis,
        bear: Thesis,
        fusion: FusionResult,
        mbd: MarketBriefingDocument,
    ) -> DebateRecord:
        now = self._clock()
        yes = fusion.supporting(SignalDirection.YES)
        no = fusion.supporting(SignalDirection.NO)
        contexts = (
            DebateContext(bull, bear, yes, no, mbd, now),
            DebateContext(bear, bull, no, yes, mbd, now),
        )

        tests: list[DebateTest] = []
        for strategy in self._battery:
            for ctx in contexts:
                test = strategy.run(ctx)
                logger.debug(
                    "%s/%s: %s (%.3f)",
                    ctx.side, test.test_type.value, test.outcome.value, test.score,
                )
                tests.append(test)

        bull_score = sum(t.score for t in tests if t.side is SignalDirection.YES)
        bear_score = sum(t.score for t in tests if t.side is SignalDirection.NO)
        disagreements = tuple(
            f"[{'bull' if t.side is SignalDirection.YES else 'bear'}:{t.test_type.value}] "
            f"{t.challenge}"
            for t in tests
            if t.outcome is not DebateOutcome.SURVIVED
        )
        logger.info(
            "Debate finished: bull=%.3f bear=%.3f (%d tests)",
            bull_score, bear_score, len(tests),
        )
        return DebateRecord(
            tests=tuple(tests),
            bull_score=bull_score,
            bear_score=bear_score,
            key_disagreements=disagreements,
        )
