"""Tests for trade recommendation generation."""

from __future__ import annotations

import dataclasses

import pytest

from market_intelligence.domain.enums import (
    LiquidityRisk,
    ProbabilityRegime,
    RecommendationErrorKind,
    SignalDirection,
    TradeAction,
)
from market_intelligence.domain.values import (
    ConsensusProbability,
    DebateRecord,
    MarketBriefingDocument,
    Thesis,
)
from market_intelligence.infrastructure.config import ConsensusConfig
from market_intelligence.services.recommendation import (
    RecommendationGenerator,
    expected_value,
    liquidity_risk,
)


def _consensus(
    p: float,
    band: tuple[float, float],
    di: float = 0.1,
    regime: ProbabilityRegime = ProbabilityRegime.HIGH_CONFIDENCE,
) -> ConsensusProbability:
    return ConsensusProbability(
        consensus_probability=p,
        confidence_band=band,
        disagreement_index=di,
        regime=regime,
        contributing_signals=("a", "b"),
    )


def _theses(market: float) -> tuple[Thesis, Thesis]:
    bull = Thesis(
        SignalDirection.YES, 0.7, market,
        core_argument="bull case",
        catalysts=("rally",),
        failure_conditions=("stall",),
    )
    bear = Thesis(
        SignalDirection.NO, 0.35, market,
        core_argument="bear case",
        catalysts=("slump",),
        failure_conditions=("rebound",),
    )
    return bull, bear


def _generate(mbd: MarketBriefingDocument, consensus: ConsensusProbability, **kwargs):
    bull, bear = _theses(mbd.current_probability)
    return RecommendationGenerator(**kwargs).generate(mbd, consensus, bull, bear, DebateRecord())


class TestHelpers:

    @pytest.mark.parametrize(
        "score, risk",
        [
            (0.0, LiquidityRisk.HIGH),
            (2.9, LiquidityRisk.HIGH),
            (3.0, LiquidityRisk.MEDIUM),
            (6.9, LiquidityRisk.MEDIUM),
            (7.0, LiquidityRisk.LOW),
            (10.0, LiquidityRisk.LOW),
        ],
    )
    def test_liquidity_risk(self, score: float, risk: LiquidityRisk) -> None:
        assert liquidity_risk(score) is risk

    def test_expected_value(self) -> None:
        assert expected_value(0.65, 0.5) == pytest.approx(30.0)
        assert expected_value(0.5, 0.5) == pytest.approx(0.0)
        assert expected_value(0.3, 0.5) == pytest.approx(-40.0)

    def test_expected_value_floors_entry_price(self) -> None:
        assert expected_value(0.5, 0.0) == pytest.approx(0.5 * 100 / 0.01 - 100)

    @pytest.mark.parametrize(
        "consensus, market, action",
        [
            (0.65, 0.50, TradeAction.LONG_YES),
            (0.40, 0.60, TradeAction.LONG_NO),
            (0.52, 0.50, TradeAction.NO_TRADE),
            (0.48, 0.50, TradeAction.NO_TRADE),
            (0.56, 0.50, TradeAction.LONG_YES),
        ],
    )
    def test_decide(self, consensus: float, market: float, action: TradeAction) -> None:
        assert RecommendationGenerator().decide(consensus, market) is action

    def test_decide_respects_threshold(self) -> None:
        generator = RecommendationGenerator(ConsensusConfig(min_edge_threshold=0.2))
        assert generator.decide(0.65, 0.5) is TradeAction.NO_TRADE


class TestRecommendationGenerator:

    def test_long_yes(self, mbd: MarketBriefingDocument) -> None:
        rec, soft = _generate(mbd, _consensus(0.65, (0.60, 0.70)))
        assert soft is None
        assert rec.action is TradeAction.LONG_YES
        assert rec.entry_zone == pytest.approx((0.49, 0.51))
        assert rec.target_zone == (0.60, 0.70)
        assert rec.expected_value == pytest.approx(30.0)
        assert rec.win_probability == pytest.approx(0.65)
        assert rec.liquidity_risk is LiquidityRisk.LOW
        assert rec.metadata.edge == pytest.approx(0.15)
        assert rec.explanation.summary.startswith("Buy YES")
        assert rec.explanation.core_thesis == "bull case"
        assert rec.explanation.key_catalysts == ("rally",)
        assert rec.explanation.failure_scenarios == ("stall",)
        assert rec.explanation.uncertainty_note is None

    def test_long_no_priced_in_no_token(self, mbd: MarketBriefingDocument) -> None:
        m = dataclasses.replace(mbd, current_probability=0.6)
        rec, soft = _generate(m, _consensus(0.40, (0.35, 0.45)))
        assert soft is None
        assert rec.action is TradeAction.LONG_NO
        assert rec.entry_zone == pytest.approx((0.39, 0.41))
        assert rec.target_zone == pytest.approx((0.55, 0.65))
        assert rec.win_probability == pytest.approx(0.6)
        assert rec.expected_value == pytest.approx(50.0)
        assert rec.explanation.summary.startswith("Buy NO")
        assert rec.explanation.core_thesis == "bear case"

    def test_no_trade_reports_no_edge(self, mbd: MarketBriefingDocument) -> None:
        rec, soft = _generate(mbd, _consensus(0.52, (0.47, 0.57)))
        assert rec.action is TradeAction.NO_TRADE
        assert rec.expected_value == 0.0
        assert rec.entry_zone == pytest.approx((0.49, 0.51))
        assert soft is not None
        assert soft.kind is RecommendationErrorKind.NO_EDGE
        assert not soft.is_fatal
        assert soft.details["edge"] == pytest.approx(0.02)
        assert rec.explanation.summary.startswith("No trade")

    def test_entry_zone_clipped(self, mbd: MarketBriefingDocument) -> None:
        m = dataclasses.replace(mbd, current_probability=0.995, bid_ask_spread=4.0)
        rec, _ = _generate(m, _consensus(0.999, (0.99, 1.0)))
        assert rec.entry_zone == pytest.approx((0.975, 1.0))

    def test_minimum_entry_width(self, mbd: MarketBriefingDocument) -> None:
        m = dataclasses.replace(mbd, bid_ask_spread=0.0)
        rec, _ = _generate(m, _consensus(0.65, (0.60, 0.70)))
        assert rec.entry_zone == pytest.approx((0.49, 0.51))

    def test_high_liquidity_risk(self, mbd: MarketBriefingDocument) -> None:
        m = dataclasses.replace(mbd, liquidity_score=1.5)
        rec, _ = _generate(m, _consensus(0.65, (0.60, 0.70)))
        assert rec.liquidity_risk is LiquidityRisk.HIGH

    def test_disagreement_note(self, mbd: MarketBriefingDocument) -> None:
        consensus = _consensus(0.65, (0.60, 0.70), di=0.3, regime=ProbabilityRegime.HIGH_UNCERTAINTY)
        rec, _ = _generate(mbd, consensus)
        assert "disagree" in rec.explanation.uncertainty_note

    def test_ambiguity_note(self, mbd: MarketBriefingDocument) -> None:
        m = dataclasses.replace(mbd, ambiguity_flags=("undefined 'official' source",))
        consensus = _consensus(
            0.65, (0.55, 0.75), di=0.1, regime=ProbabilityRegime.MODERATE_CONFIDENCE
        )
        rec, _ = _generate(m, consensus)
        assert rec.explanation.uncertainty_note.startswith("Resolution criteria")
        assert "undefined 'official' source" in rec.explanation.uncertainty_note

    def test_ids_are_unique(self, mbd: MarketBriefingDocument) -> None:
        first, _ = _generate(mbd, _consensus(0.65, (0.60, 0.70)))
        second, _ = _generate(mbd, _consensus(0.65, (0.60, 0.70)))
        assert first.recommendation_id != second.recommendation_id
