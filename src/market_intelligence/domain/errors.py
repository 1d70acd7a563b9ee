"""Tagged error variants that drive pipeline control flow.

Business failures are *values*, not exceptions: each stage returns either
its output or one of these frozen records.  ``kind`` identifies the failure,
``is_fatal`` tells the orchestrator whether the run must stop.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .enums import (
    AgentErrorKind,
    IngestionErrorKind,
    OrchestrationErrorKind,
    RecommendationErrorKind,
)


@dataclass(frozen=True)
class PipelineError:
    """Common shape of every tagged error."""

    message: str = ""
    timestamp: float = field(default_factory=time.time)
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_fatal(self) -> bool:
        return True

    @property
    def code(self) -> str:
        kind = getattr(self, "kind", None)
        return kind.value if kind is not None else type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "kind": self.code,
            "message": self.message,
            "timestamp": self.timestamp,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class IngestionError(PipelineError):
    """The market briefing could not be produced."""

    kind: IngestionErrorKind = IngestionErrorKind.API_UNAVAILABLE
    market_id: str = ""

    @property
    def is_retryable(self) -> bool:
        return self.kind in (
            IngestionErrorKind.API_UNAVAILABLE,
            IngestionErrorKind.RATE_LIMIT_EXCEEDED,
        )


@dataclass(frozen=True)
class AgentError(PipelineError):
    """A single agent timed out or failed.  Never fatal on its own."""

    kind: AgentErrorKind = AgentErrorKind.EXECUTION_FAILED
    agent_name: str = ""

    @property
    def is_fatal(self) -> bool:
        return False


@dataclass(frozen=True)
class RecommendationError(PipelineError):
    """A decision stage could not produce a trustworthy result.

    ``NO_EDGE`` is soft: the run still completes with a NO_TRADE
    recommendation and the error is only recorded in the audit trail.
    """

    kind: RecommendationErrorKind = RecommendationErrorKind.INSUFFICIENT_DATA

    @property
    def is_fatal(self) -> bool:
        return self.kind is not RecommendationErrorKind.NO_EDGE


@dataclass(frozen=True)
class OrchestrationError(PipelineError):
    """The pipeline machinery stopped the run."""

    kind: OrchestrationErrorKind = OrchestrationErrorKind.STEP_BUDGET_EXCEEDED
    stage: str = ""
