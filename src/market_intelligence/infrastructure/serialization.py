"""Serialization utilities for the Market Intelligence Engine.

``to_dict`` / ``from_dict`` conversion for the value objects that cross a
process boundary: briefings and signals come in (from files, providers or
replays), recommendations and audit trails go out.

- Every ``*_to_dict`` output is JSON-serializable (no enums, tuples, numpy
  scalars).
- ``*_from_dict`` reconstructors accept snake_case or camelCase keys and
  raise ``ValueError`` / ``KeyError`` for unrecoverable data.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

import numpy as np
import yaml

from market_intelligence.domain.enums import (
    EventType,
    LiquidityRisk,
    SignalDirection,
    TradeAction,
    VolatilityRegime,
)
from market_intelligence.domain.values import (
    AgentSignal,
    Catalyst,
    MarketBriefingDocument,
    TradeExplanation,
    TradeMetadata,
    TradeRecommendation,
)

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def snake_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *data* with camelCase keys converted to snake_case."""
    return {_CAMEL_RE.sub("_", str(k)).lower(): v for k, v in data.items()}


# =========================================================================== #
#  Generic                                                                     #
# =========================================================================== #

def to_jsonable(obj: Any) -> Any:
    """Recursively convert *obj* into JSON-compatible primitives."""
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, (int, float)):
        return obj
    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return to_jsonable(obj.to_dict())
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_jsonable(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset, np.ndarray)):
        return [to_jsonable(v) for v in obj]
    return str(obj)


def dumps_json(obj: Any) -> str:
    return json.dumps(to_jsonable(obj), indent=2)


def dumps_yaml(obj: Any) -> str:
    return yaml.safe_dump(to_jsonable(obj), sort_keys=False)


def loads_document(text: str, *, fmt: str = "json") -> Any:
    """Parse a JSON or YAML document."""
    if fmt in ("yaml", "yml"):
        return yaml.safe_load(text)
    return json.loads(text)


# =========================================================================== #
#  MarketBriefingDocument                                                      #
# =========================================================================== #

def _catalyst_from_raw(raw: Any) -> Catalyst:
    if isinstance(raw, str):
        return Catalyst(event=raw)
    data = snake_keys(raw)
    return Catalyst(event=str(data["event"]), timestamp=float(data.get("timestamp", 0.0)))


def briefing_to_dict(mbd: MarketBriefingDocument) -> dict[str, Any]:
    return to_jsonable(mbd)


def briefing_from_dict(data: Mapping[str, Any]) -> MarketBriefingDocument:
    """Build a briefing from a raw mapping.

    Required keys: ``market_id`` and ``current_probability``.  Enum-valued
    fields accept their string values (case-insensitive).
    """
    d = snake_keys(data)
    metadata = snake_keys(d.get("metadata") or {})
    ambiguity = d.get("ambiguity_flags", metadata.get("ambiguity_flags", ()))
    catalysts = d.get("catalysts", metadata.get("key_catalysts", ()))
    return MarketBriefingDocument(
        market_id=str(d["market_id"]),
        condition_id=str(d.get("condition_id", d["market_id"])),
        question=str(d.get("question", "")),
        current_probability=float(d["current_probability"]),
        event_type=EventType(str(d.get("event_type", "other")).lower()),
        resolution_criteria=str(d.get("resolution_criteria", "")),
        expiry_timestamp=float(d.get("expiry_timestamp", 0.0)),
        liquidity_score=float(d.get("liquidity_score", 5.0)),
        bid_ask_spread=float(d.get("bid_ask_spread", 0.0)),
        volatility_regime=VolatilityRegime(
            str(d.get("volatility_regime", "medium")).lower()
        ),
        volume_24h=float(d.get("volume_24h", 0.0)),
        catalysts=tuple(_catalyst_from_raw(c) for c in catalysts or ()),
        ambiguity_flags=tuple(str(a) for a in ambiguity or ()),
    )


# =========================================================================== #
#  AgentSignal                                                                 #
# =========================================================================== #

def signal_to_dict(signal: AgentSignal) -> dict[str, Any]:
    return to_jsonable(signal)


def signal_from_dict(data: Mapping[str, Any]) -> AgentSignal:
    d = snake_keys(data)
    kwargs: dict[str, Any] = {
        "agent_name": str(d["agent_name"]),
        "direction": SignalDirection(str(d["direction"]).upper()),
        "confidence": float(d["confidence"]),
        "fair_probability": float(d["fair_probability"]),
        "key_drivers": tuple(str(x) for x in d.get("key_drivers", ())),
        "risk_factors": tuple(str(x) for x in d.get("risk_factors", ())),
        "metadata": dict(d.get("metadata") or {}),
    }
    if "timestamp" in d:
        kwargs["timestamp"] = float(d["timestamp"])
    return AgentSignal(**kwargs)


# =========================================================================== #
#  TradeRecommendation                                                         #
# =========================================================================== #

def recommendation_to_dict(rec: TradeRecommendation) -> dict[str, Any]:
    return to_jsonable(rec)


def recommendation_from_dict(data: Mapping[str, Any]) -> TradeRecommendation:
    d = snake_keys(data)
    explanation = snake_keys(d.get("explanation") or {})
    metadata = snake_keys(d["metadata"])
    extra: dict[str, Any] = {}
    if d.get("recommendation_id"):
        extra["recommendation_id"] = str(d["recommendation_id"])
    return TradeRecommendation(
        market_id=str(d["market_id"]),
        action=TradeAction(str(d["action"]).upper()),
        entry_zone=tuple(float(x) for x in d["entry_zone"]),  # type: ignore[arg-type]
        target_zone=tuple(float(x) for x in d["target_zone"]),  # type: ignore[arg-type]
        expected_value=float(d["expected_value"]),
        win_probability=float(d["win_probability"]),
        liquidity_risk=LiquidityRisk(str(d["liquidity_risk"]).lower()),
        explanation=TradeExplanation(
            summary=str(explanation.get("summary", "")),
            core_thesis=str(explanation.get("core_thesis", "")),
            key_catalysts=tuple(explanation.get("key_catalysts", ())),
            failure_scenarios=tuple(explanation.get("failure_scenarios", ())),
            uncertainty_note=explanation.get("uncertainty_note"),
        ),
        metadata=TradeMetadata(
            consensus_probability=float(metadata["consensus_probability"]),
            market_probability=float(metadata["market_probability"]),
            edge=float(metadata["edge"]),
            confidence_band=tuple(float(x) for x in metadata["confidence_band"]),  # type: ignore[arg-type]
        ),
        **extra,
    )
