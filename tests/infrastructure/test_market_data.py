"""Tests for briefing validation and market data providers."""

from __future__ import annotations

import pytest

from market_intelligence.domain.enums import IngestionErrorKind
from market_intelligence.domain.errors import IngestionError
from market_intelligence.domain.values import MarketBriefingDocument
from market_intelligence.infrastructure.market_data import (
    MappingMarketDataProvider,
    parse_briefing,
)

RAW = {
    "market_id": "m-1",
    "condition_id": "c-1",
    "question": "Will it happen?",
    "current_probability": 0.35,
    "event_type": "court",
}


class TestParseBriefing:

    def test_valid(self) -> None:
        mbd = parse_briefing(RAW)
        assert isinstance(mbd, MarketBriefingDocument)
        assert mbd.current_probability == 0.35

    def test_missing_field(self) -> None:
        result = parse_briefing({"market_id": "m-1"})
        assert isinstance(result, IngestionError)
        assert result.kind is IngestionErrorKind.VALIDATION_FAILED
        assert result.details["field"] == "current_probability"
        assert result.market_id == "m-1"

    def test_out_of_range(self) -> None:
        result = parse_briefing({**RAW, "current_probability": 1.7})
        assert isinstance(result, IngestionError)
        assert result.kind is IngestionErrorKind.VALIDATION_FAILED
        assert "current_probability" in result.message

    def test_unknown_enum(self) -> None:
        result = parse_briefing({**RAW, "event_type": "sports"})
        assert isinstance(result, IngestionError)
        assert result.kind is IngestionErrorKind.VALIDATION_FAILED


class TestMappingMarketDataProvider:

    @pytest.mark.asyncio
    async def test_fetch(self) -> None:
        provider = MappingMarketDataProvider({"c-1": RAW})
        mbd = await provider.fetch_briefing("c-1")
        assert isinstance(mbd, MarketBriefingDocument)
        assert mbd.market_id == "m-1"

    @pytest.mark.asyncio
    async def test_unknown_and_empty_ids(self) -> None:
        provider = MappingMarketDataProvider()
        for condition_id in ("", "nope"):
            result = await provider.fetch_briefing(condition_id)
            assert isinstance(result, IngestionError)
            assert result.kind is IngestionErrorKind.INVALID_MARKET_ID

    @pytest.mark.asyncio
    async def test_stored_data_is_validated(self) -> None:
        provider = MappingMarketDataProvider()
        provider.add("bad", {"market_id": "bad", "current_probability": -1})
        result = await provider.fetch_briefing("bad")
        assert isinstance(result, IngestionError)
        assert result.kind is IngestionErrorKind.VALIDATION_FAILED
