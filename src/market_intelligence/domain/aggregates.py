"""Aggregate root for a single analysis run.

``RunState`` is the only mutable object in a pipeline run.  It is owned by
exactly one orchestrator task; stages never touch it concurrently, so it
carries no lock.  External code mutates it through the merge methods below
and reads it through properties.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .enums import PipelineStage
from .errors import AgentError, PipelineError
from .values import (
    AgentSignal,
    AuditEntry,
    ConsensusProbability,
    DebateRecord,
    FusionResult,
    MarketBriefingDocument,
    Thesis,
    TradeRecommendation,
)

if TYPE_CHECKING:
    from market_intelligence.services.audit_trail import AuditTrail


class RunState:
    """Accumulator for everything one run produces.

    Parameters
    ----------
    mbd:
        Market briefing the run analyzes.
    audit_trail:
        Append-only trail that ``record_stage`` writes to.
    step_limit:
        Maximum number of orchestration steps (stages plus agent calls).
    """

    def __init__(
        self,
        mbd: MarketBriefingDocument,
        audit_trail: AuditTrail,
        step_limit: int = 25,
    ) -> None:
        self._mbd = mbd
        self._audit_trail = audit_trail
        self._step_limit = step_limit
        self._steps = 0
        self._stage = PipelineStage.INGESTION
        self._stage_started = time.monotonic()
        self._signals: list[AgentSignal] = []
        self._agent_errors: list[AgentError] = []
        self.fusion: FusionResult | None = None
        self.bull_thesis: Thesis | None = None
        self.bear_thesis: Thesis | None = None
        self.debate: DebateRecord | None = None
        self.consensus: ConsensusProbability | None = None
        self.recommendation: TradeRecommendation | None = None

    # -- properties -----------------------------------------------------------

    @property
    def mbd(self) -> MarketBriefingDocument:
        return self._mbd

    @property
    def audit_trail(self) -> AuditTrail:
        return self._audit_trail

    @property
    def signals(self) -> tuple[AgentSignal, ...]:
        return tuple(self._signals)

    @property
    def agent_errors(self) -> tuple[AgentError, ...]:
        return tuple(self._agent_errors)

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    @property
    def stage_elapsed(self) -> float:
        """Seconds since the current stage was entered."""
        return time.monotonic() - self._stage_started

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def step_limit(self) -> int:
        return self._step_limit

    @property
    def remaining_steps(self) -> int:
        return max(0, self._step_limit - self._steps)

    # -- merges ---------------------------------------------------------------

    def add_signals(self, signals: Iterable[AgentSignal]) -> None:
        """Append *signals*, rejecting names that are already present."""
        seen = {s.agent_name for s in self._signals}
        for signal in signals:
            if signal.agent_name in seen:
                raise ValueError(f"Duplicate signal for agent {signal.agent_name!r}")
            seen.add(signal.agent_name)
            self._signals.append(signal)

    def add_agent_errors(self, errors: Iterable[AgentError]) -> None:
        self._agent_errors.extend(errors)

    def record_stage(
        self,
        stage: str,
        data: Mapping[str, Any] | None = None,
        errors: Sequence[PipelineError] = (),
        duration: float = 0.0,
    ) -> AuditEntry:
        """Append an audit entry for *stage* and return it."""
        return self._audit_trail.record(
            stage, data=data, errors=errors, duration=duration
        )

    # -- stage machine --------------------------------------------------------

    def advance(self, stage: PipelineStage) -> None:
        self._stage = stage
        self._stage_started = time.monotonic()

    def consume_step(self, count: int = 1) -> bool:
        """Consume *count* steps.  Returns ``False`` once the budget is exceeded."""
        self._steps += count
        return self._steps <= self._step_limit

    @property
    def is_complete(self) -> bool:
        return self._stage is PipelineStage.DONE and self.recommendation is not None

    def __repr__(self) -> str:
        return (
            f"RunState(market_id={self._mbd.market_id!r}, "
            f"stage={self._stage.value}, steps={self._steps}/{self._step_limit}, "
            f"signals={len(self._signals)}, errors={len(self._agent_errors)})"
        )
