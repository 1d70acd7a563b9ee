"""Tests for bull / bear thesis construction."""

from __future__ import annotations

import pytest

from market_intelligence.domain.enums import RecommendationErrorKind, SignalDirection
from market_intelligence.domain.errors import RecommendationError
from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument, Thesis
from market_intelligence.services.signal_fusion import SignalFusionEngine
from market_intelligence.services.thesis import ThesisConstructor
from market_intelligence.testing import make_signal


def _build(signals: list[AgentSignal], mbd: MarketBriefingDocument):
    fusion = SignalFusionEngine().fuse(signals, mbd)
    return ThesisConstructor().build(fusion, signals, mbd)


class TestThesisConstructor:

    def test_main_scenario(
        self, main_signals: list[AgentSignal], mbd: MarketBriefingDocument
    ) -> None:
        bull, bear = _build(main_signals, mbd)
        assert isinstance(bull, Thesis)
        assert bull.direction is SignalDirection.YES
        assert bear.direction is SignalDirection.NO
        assert bull.fair_probability == pytest.approx(1.01 / 1.5)
        assert bear.fair_probability == pytest.approx(0.40)
        assert bull.market_probability == bear.market_probability == 0.5
        assert bull.supporting_signals == ("alpha", "beta")
        assert bear.supporting_signals == ("gamma",)

    def test_catalysts_and_failure_conditions(
        self, main_signals: list[AgentSignal], mbd: MarketBriefingDocument
    ) -> None:
        bull, bear = _build(main_signals, mbd)
        assert bull.catalysts == ("strong polling lead", "fundraising edge")
        assert bull.failure_conditions == ("turnout miss", "incumbent advantage")
        assert bear.catalysts == ("incumbent advantage",)
        assert bear.failure_conditions == (
            "scandal fades",
            "strong polling lead",
            "fundraising edge",
        )
        assert "strong polling lead" in bull.core_argument

    def test_items_deduplicated_and_capped(self, mbd: MarketBriefingDocument) -> None:
        signals = [
            make_signal("a", key_drivers=("x", "y", "z")),
            make_signal("b", key_drivers=("y", "p", "q", "r")),
            make_signal("c", "NO"),
        ]
        bull, _ = _build(signals, mbd)
        assert bull.catalysts == ("x", "y", "z", "p", "q")

    def test_missing_bear_built_from_bull_risks(
        self, main_signals: list[AgentSignal], mbd: MarketBriefingDocument
    ) -> None:
        bull, bear = _build(main_signals[:2], mbd)
        assert bull.supporting_signals == ("alpha", "beta")
        assert bull.failure_conditions == ("turnout miss",)
        assert not bear.is_supported
        assert bear.supporting_signals == ()
        assert bear.fair_probability == 0.5
        assert bear.edge == 0.0
        assert bear.catalysts == ("turnout miss",)
        assert bear.failure_conditions == ("strong polling lead", "fundraising edge")
        assert bear.core_argument.startswith("no signal argues for NO")

    def test_missing_bull_uses_neutral_signals(self, mbd: MarketBriefingDocument) -> None:
        signals = [
            make_signal("n", "NEUTRAL", confidence=0.6, fair_probability=0.55,
                        key_drivers=("quiet news week",)),
            make_signal("c", "NO", fair_probability=0.3, risk_factors=("late surge",)),
        ]
        bull, bear = _build(signals, mbd)
        assert bull.supporting_signals == ()
        assert bull.fair_probability == pytest.approx(0.55)
        assert bull.catalysts == ("late surge", "quiet news week")
        assert bear.is_supported
        assert bear.fair_probability == pytest.approx(0.3)

    def test_no_directional_signal_is_insufficient(self, mbd: MarketBriefingDocument) -> None:
        signals = [make_signal("a", "NEUTRAL"), make_signal("b", "NEUTRAL")]
        result = _build(signals, mbd)
        assert isinstance(result, RecommendationError)
        assert result.kind is RecommendationErrorKind.INSUFFICIENT_DATA
        assert result.details["missing_sides"] == ["YES", "NO"]
