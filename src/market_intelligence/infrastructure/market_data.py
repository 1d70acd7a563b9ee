"""Market data boundary.

A ``MarketDataProvider`` turns a condition id into a validated
``MarketBriefingDocument`` or an ``IngestionError``.  Providers never raise
for venue failures; the orchestrator treats any ``IngestionError`` as fatal
before a single agent runs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from market_intelligence.domain.enums import IngestionErrorKind
from market_intelligence.domain.errors import IngestionError
from market_intelligence.domain.values import MarketBriefingDocument
from market_intelligence.infrastructure.serialization import briefing_from_dict

logger = logging.getLogger(__name__)


def parse_briefing(raw: Mapping[str, Any]) -> MarketBriefingDocument | IngestionError:
    """Validate a raw briefing mapping.

    Missing keys, unknown enum values and out-of-range numbers all become
    ``IngestionError(VALIDATION_FAILED)`` with the offending detail.
    """
    market_id = str(raw.get("market_id", raw.get("marketId", "")))
    try:
        return briefing_from_dict(raw)
    except KeyError as exc:
        field_name = str(exc.args[0]) if exc.args else ""
        logger.warning("Briefing for %r is missing field %s", market_id, field_name)
        return IngestionError(
            message=f"missing required field '{field_name}'",
            kind=IngestionErrorKind.VALIDATION_FAILED,
            market_id=market_id,
            details={"field": field_name, "reason": "missing"},
        )
    except (TypeError, ValueError) as exc:
        logger.warning("Briefing for %r failed validation: %s", market_id, exc)
        return IngestionError(
            message=str(exc),
            kind=IngestionErrorKind.VALIDATION_FAILED,
            market_id=market_id,
            details={"reason": str(exc)},
        )


class MarketDataProvider(ABC):
    """Source of market briefings."""

    @abstractmethod
    async def fetch_briefing(
        self, condition_id: str
    ) -> MarketBriefingDocument | IngestionError:
        """Return the briefing for *condition_id* or the reason it is unavailable."""


class MappingMarketDataProvider(MarketDataProvider):
    """Serves briefings from raw mappings keyed by condition id.

    Useful for replaying recorded briefings; every lookup goes through
    ``parse_briefing`` so stored data gets the same validation as live data.
    """

    def __init__(self, briefings: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._briefings: dict[str, Mapping[str, Any]] = dict(briefings or {})

    def add(self, condition_id: str, raw: Mapping[str, Any]) -> None:
        self._briefings[condition_id] = raw

    async def fetch_briefing(
        self, condition_id: str
    ) -> MarketBriefingDocument | IngestionError:
        if not condition_id:
            return IngestionError(
                message="empty condition id",
                kind=IngestionErrorKind.INVALID_MARKET_ID,
                market_id=condition_id,
            )
        raw = self._briefings.get(condition_id)
        if raw is None:
            return IngestionError(
                message=f"unknown market '{condition_id}'",
                kind=IngestionErrorKind.INVALID_MARKET_ID,
                market_id=condition_id,
            )
        return parse_briefing(raw)
