"""Persistence boundary and the in-memory reference store.

The orchestrator writes through the ``Persistence`` interface only after a
run reaches a terminal state.  ``InMemoryPersistence`` is thread-safe and is
what tests and the CLI use; a database-backed store implements the same
abstract methods.
"""

from __future__ import annotations

import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from market_intelligence.domain.values import (
    AgentSignal,
    MarketBriefingDocument,
    TradeRecommendation,
)

ANALYSIS_STATUSES = frozenset({"success", "failed"})
ANALYSIS_TYPES = frozenset({"initial", "update"})
DAY_SECONDS = 86400.0


@dataclass(frozen=True)
class MarketRecord:
    """Stored view of a market."""

    market_id: str
    condition_id: str
    question: str
    event_type: str
    market_probability: float
    status: str = "active"
    resolved_outcome: str | None = None
    last_analyzed_at: float = 0.0
    updated_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AnalysisRecord:
    """One row of analysis history."""

    market_id: str
    status: str
    duration: float = 0.0
    error_message: str | None = None
    agents_used: tuple[str, ...] = ()
    analysis_type: str = "initial"
    cost_usd: float | None = None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class StoredSignal:
    """An agent signal linked to the recommendation it fed."""

    market_id: str
    recommendation_id: str
    signal: AgentSignal


class Persistence(ABC):
    """Storage operations used at the end of a run."""

    @abstractmethod
    def upsert_market(self, mbd: MarketBriefingDocument) -> str:
        """Create or refresh the market row.  Returns the market id."""

    @abstractmethod
    def store_recommendation(self, market_id: str, rec: TradeRecommendation) -> str:
        """Store *rec* and return its recommendation id."""

    @abstractmethod
    def store_agent_signals(
        self,
        market_id: str,
        recommendation_id: str,
        signals: Sequence[AgentSignal],
    ) -> None:
        ...

    @abstractmethod
    def record_analysis(
        self,
        market_id: str,
        status: str,
        duration: float = 0.0,
        error_message: str | None = None,
        agents_used: Sequence[str] = (),
        analysis_type: str = "initial",
        cost_usd: float | None = None,
    ) -> None:
        """Append one analysis-history row.

        *analysis_type* is ``"initial"`` for a market's first recommendation
        and ``"update"`` afterwards; *cost_usd* is the run's model spend when
        the agents report it.
        """

    @abstractmethod
    def get_latest_recommendation(self, market_id: str) -> TradeRecommendation | None:
        ...


class InMemoryPersistence(Persistence):
    """Dict-backed ``Persistence`` guarded by a single lock.

    Besides the core operations it supports the scheduling queries a
    monitoring loop needs: ``get_markets_for_update`` and
    ``mark_market_resolved``.

    Parameters
    ----------
    retention_days:
        Analysis history older than this is hidden from
        ``get_analysis_history`` and dropped by ``prune_history``.
        ``None`` or ``0`` keeps everything.
    """

    def __init__(self, retention_days: int | None = None) -> None:
        if retention_days is not None and retention_days < 0:
            raise ValueError(f"retention_days must be >= 0, got {retention_days}")
        self._retention = retention_days * DAY_SECONDS if retention_days else None
        self._lock = threading.Lock()
        self._markets: dict[str, MarketRecord] = {}
        self._recommendations: dict[str, list[TradeRecommendation]] = {}
        self._signals: list[StoredSignal] = []
        self._analyses: list[AnalysisRecord] = []

    # -- writes ---------------------------------------------------------------

    def upsert_market(self, mbd: MarketBriefingDocument) -> str:
        with self._lock:
            existing = self._markets.get(mbd.market_id)
            record = MarketRecord(
                market_id=mbd.market_id,
                condition_id=mbd.condition_id,
                question=mbd.question,
                event_type=mbd.event_type.value,
                market_probability=mbd.current_probability,
                status=existing.status if existing else "active",
                resolved_outcome=existing.resolved_outcome if existing else None,
                last_analyzed_at=time.time(),
            )
            self._markets[mbd.market_id] = record
        return mbd.market_id

    def store_recommendation(self, market_id: str, rec: TradeRecommendation) -> str:
        rec_id = rec.recommendation_id or str(uuid.uuid4())[:8]
        with self._lock:
            if market_id not in self._markets:
                raise KeyError(f"Market {market_id!r} not found")
            self._recommendations.setdefault(market_id, []).append(rec)
        return rec_id

    def store_agent_signals(
        self,
        market_id: str,
        recommendation_id: str,
        signals: Sequence[AgentSignal],
    ) -> None:
        with self._lock:
            self._signals.extend(
                StoredSignal(market_id, recommendation_id, s) for s in signals
            )

    def record_analysis(
        self,
        market_id: str,
        status: str,
        duration: float = 0.0,
        error_message: str | None = None,
        agents_used: Sequence[str] = (),
        analysis_type: str = "initial",
        cost_usd: float | None = None,
    ) -> None:
        if status not in ANALYSIS_STATUSES:
            raise ValueError(
                f"status must be one of {sorted(ANALYSIS_STATUSES)}, got '{status}'"
            )
        if analysis_type not in ANALYSIS_TYPES:
            raise ValueError(
                f"analysis_type must be one of {sorted(ANALYSIS_TYPES)}, got '{analysis_type}'"
            )
        if cost_usd is not None and cost_usd < 0:
            raise ValueError(f"cost_usd must be >= 0, got {cost_usd}")
        with self._lock:
            self._analyses.append(
                AnalysisRecord(
                    market_id=market_id,
                    status=status,
                    duration=duration,
                    error_message=error_message,
                    agents_used=tuple(agents_used),
                    analysis_type=analysis_type,
                    cost_usd=cost_usd,
                )
            )

    def mark_market_resolved(self, market_id: str, outcome: str) -> None:
        with self._lock:
            record = self._markets.get(market_id)
            if record is None:
                raise KeyError(f"Market {market_id!r} not found")
            self._markets[market_id] = replace(
                record, status="resolved", resolved_outcome=outcome, updated_at=time.time()
            )

    def prune_history(self, now: float | None = None) -> int:
        """Drop analysis rows past the retention window.  Returns how many."""
        cutoff = self._cutoff(now)
        if cutoff is None:
            return 0
        with self._lock:
            kept = [a for a in self._analyses if a.timestamp >= cutoff]
            dropped = len(self._analyses) - len(kept)
            self._analyses = kept
        return dropped

    # -- reads ----------------------------------------------------------------

    def get_latest_recommendation(self, market_id: str) -> TradeRecommendation | None:
        with self._lock:
            recs = self._recommendations.get(market_id)
            return recs[-1] if recs else None

    def get_markets_for_update(
        self,
        interval: float,
        now: float | None = None,
    ) -> list[MarketRecord]:
        """Active markets not analyzed within the last *interval* seconds."""
        now = time.time() if now is None else now
        with self._lock:
            return [
                m for m in self._markets.values()
                if m.status == "active" and now - m.last_analyzed_at >= interval
            ]

    def get_market(self, market_id: str) -> MarketRecord | None:
        with self._lock:
            return self._markets.get(market_id)

    def get_agent_signals(
        self,
        market_id: str,
        recommendation_id: str | None = None,
    ) -> list[AgentSignal]:
        with self._lock:
            return [
                s.signal for s in self._signals
                if s.market_id == market_id
                and (recommendation_id is None or s.recommendation_id == recommendation_id)
            ]

    def get_analysis_history(
        self,
        market_id: str | None = None,
        now: float | None = None,
    ) -> list[AnalysisRecord]:
        cutoff = self._cutoff(now)
        with self._lock:
            return [
                a for a in self._analyses
                if (market_id is None or a.market_id == market_id)
                and (cutoff is None or a.timestamp >= cutoff)
            ]

    def recommendation_count(self, market_id: str | None = None) -> int:
        with self._lock:
            if market_id is not None:
                return len(self._recommendations.get(market_id, []))
            return sum(len(r) for r in self._recommendations.values())

    def _cutoff(self, now: float | None) -> float | None:
        if self._retention is None:
            return None
        return (time.time() if now is None else now) - self._retention
