"""Domain events for the Market Intelligence Engine.

Every event is a frozen dataclass inheriting from ``DomainEvent``.  The
orchestrator emits them on an optional ``EventBus``; listeners (console,
metrics, persistence hooks) react without the pipeline knowing about them.

All events carry a ``timestamp`` and a ``source_id`` identifying the run
(the market id).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from .enums import AgentErrorKind, TradeAction

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    timestamp: float = field(default_factory=time.time)
    source_id: str = ""


# ---------------------------------------------------------------------------
# Pipeline events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StageCompleted(DomainEvent):
    """A pipeline stage finished successfully."""

    stage: str = ""
    duration: float = 0.0
    step: int = 0


@dataclass(frozen=True)
class AgentFailed(DomainEvent):
    """An intelligence agent timed out or raised."""

    agent_name: str = ""
    kind: AgentErrorKind | None = None
    message: str = ""


@dataclass(frozen=True)
class AnalysisCompleted(DomainEvent):
    """A run reached DONE with a recommendation."""

    action: TradeAction | None = None
    consensus_probability: float = 0.0
    edge: float = 0.0
    duration: float = 0.0


@dataclass(frozen=True)
class AnalysisFailed(DomainEvent):
    """A run stopped on a fatal error."""

    stage: str = ""
    error_code: str = ""
    message: str = ""
    duration: float = 0.0
