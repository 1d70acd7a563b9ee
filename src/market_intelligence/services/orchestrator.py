"""Market analysis orchestrator -- the explicit pipeline stage machine.

One call to ``analyze`` is one run::

    INGESTION -> AGENTS -> FUSION -> THESIS -> DEBATE -> CONSENSUS
              -> RECOMMENDATION -> DONE

Every stage either stores its output on the ``RunState`` or returns a fatal
tagged error that ends the run; an exception raised inside a stage becomes a
``STAGE_FAILED`` orchestration error.  Each stage and each agent invocation
consumes one step of the step budget.  A shutdown request is honoured only
before the agents start; once they have run, the pipeline always reaches a
terminal state.  Persistence happens only at that terminal state.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from market_intelligence.domain.aggregates import RunState
from market_intelligence.domain.enums import OrchestrationErrorKind, PipelineStage
from market_intelligence.domain.errors import (
    AgentError,
    IngestionError,
    OrchestrationError,
    PipelineError,
    RecommendationError,
)
from market_intelligence.domain.events import (
    AgentFailed,
    AnalysisCompleted,
    AnalysisFailed,
    DomainEvent,
    StageCompleted,
)
from market_intelligence.domain.exceptions import MarketIntelligenceError
from market_intelligence.domain.values import (
    AgentSignal,
    ConsensusProbability,
    DebateRecord,
    FusionResult,
    MarketBriefingDocument,
    TradeRecommendation,
)
from market_intelligence.infrastructure.config import EngineConfig
from market_intelligence.infrastructure.event_bus import EventBus
from market_intelligence.infrastructure.market_data import MarketDataProvider
from market_intelligence.infrastructure.persistence import Persistence
from market_intelligence.infrastructure.registry import AgentRegistry
from market_intelligence.services.agent_executor import AgentExecutor
from market_intelligence.services.audit_trail import AuditTrail
from market_intelligence.services.consensus import ConsensusCalculator
from market_intelligence.services.debate import DebateEngine
from market_intelligence.services.recommendation import RecommendationGenerator
from market_intelligence.services.signal_fusion import SignalFusionEngine
from market_intelligence.services.thesis import ThesisConstructor

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    return str(uuid.uuid4())[:8]


# ===================================================================== #
#  Analysis Outcome                                                      #
# ===================================================================== #


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of one run.

    Exactly one of ``recommendation`` and ``error`` is set.

    Attributes
    ----------
    market_id:
        Market analysed (the condition id when ingestion failed).
    recommendation:
        Final recommendation on success.
    error:
        Fatal error that stopped the run.
    audit_trail:
        Every stage and agent outcome, in order.
    signals:
        Agent signals that survived execution.
    agent_errors:
        Per-agent failures (never fatal on their own).
    duration:
        Wall-clock seconds from start to terminal state.
    run_id:
        Identifier shared with ``audit_trail.run_id``.
    """

    market_id: str
    audit_trail: AuditTrail
    recommendation: TradeRecommendation | None = None
    error: PipelineError | None = None
    signals: tuple[AgentSignal, ...] = ()
    agent_errors: tuple[AgentError, ...] = ()
    fusion: FusionResult | None = None
    debate: DebateRecord | None = None
    consensus: ConsensusProbability | None = None
    duration: float = 0.0
    steps: int = 0
    run_id: str = field(default_factory=new_run_id)

    @property
    def ok(self) -> bool:
        return self.recommendation is not None and self.error is None


# ===================================================================== #
#  Orchestrator                                                          #
# ===================================================================== #


class MarketAnalysisOrchestrator:
    """Drives a run through every stage.

    Parameters
    ----------
    registry:
        Agents available to the run.
    config:
        Engine configuration, injected into every stage.
    persistence:
        Optional store written at the terminal state.
    market_data:
        Optional provider used by ``analyze_market``.
    event_bus:
        Optional bus receiving ``StageCompleted``, ``AgentFailed``,
        ``AnalysisCompleted`` and ``AnalysisFailed``.
    debate_engine:
        Optional pre-built debate engine (custom battery or clock).
    fusion_engine:
        Optional pre-built fusion engine (custom context adjustment).
    """

    def __init__(
        self,
        registry: AgentRegistry,
        config: EngineConfig | None = None,
        persistence: Persistence | None = None,
        market_data: MarketDataProvider | None = None,
        event_bus: EventBus | None = None,
        debate_engine: DebateEngine | None = None,
        fusion_engine: SignalFusionEngine | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._config.validate()
        self._persistence = persistence
        self._market_data = market_data
        self._event_bus = event_bus
        self._executor = AgentExecutor(registry, self._config.agents)
        self._fusion = fusion_engine or SignalFusionEngine(self._config.signal_fusion)
        self._theses = ThesisConstructor()
        self._debate = debate_engine or DebateEngine()
        self._consensus = ConsensusCalculator(
            self._config.consensus,
            min_agents_required=self._config.agents.min_agents_required,
        )
        self._recommender = RecommendationGenerator(self._config.consensus)
        self._shutdown = threading.Event()

    @property
    def config(self) -> EngineConfig:
        return self._config

    # -- shutdown -------------------------------------------------------------

    def request_shutdown(self) -> None:
        """Refuse new work; runs already past the agent stage still finish."""
        logger.info("Shutdown requested")
        self._shutdown.set()

    def reset_shutdown(self) -> None:
        self._shutdown.clear()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    # -- entry points ---------------------------------------------------------

    async def analyze_market(self, condition_id: str) -> AnalysisOutcome:
        """Fetch the briefing for *condition_id*, then run the pipeline."""
        if self._market_data is None:
            raise MarketIntelligenceError(
                "analyze_market requires a market data provider"
            )
        start = time.monotonic()
        trail = AuditTrail(run_id=new_run_id())
        if self._shutdown.is_set():
            error = self._shutdown_error(PipelineStage.INGESTION)
            trail.record(PipelineStage.INGESTION.value, data={"status": "failed"}, errors=[error])
            return self._fail(condition_id, trail, error, start)

        fetched = await self._market_data.fetch_briefing(condition_id)
        if isinstance(fetched, IngestionError):
            logger.warning(
                "Ingestion failed for %s (%s): %s",
                condition_id, fetched.kind.value, fetched.message,
            )
            trail.record(
                PipelineStage.INGESTION.value,
                data={"condition_id": condition_id, "status": "failed"},
                errors=[fetched],
                duration=time.monotonic() - start,
            )
            return self._fail(condition_id, trail, fetched, start)
        return await self._analyze(fetched, trail, start)

    async def analyze(self, mbd: MarketBriefingDocument) -> AnalysisOutcome:
        """Run the full pipeline on an already-built briefing."""
        start = time.monotonic()
        return await self._analyze(mbd, AuditTrail(run_id=new_run_id()), start)

    # -- stage machine --------------------------------------------------------

    async def _analyze(
        self,
        mbd: MarketBriefingDocument,
        trail: AuditTrail,
        start: float,
    ) -> AnalysisOutcome:
        state = RunState(mbd, trail, step_limit=self._config.orchestration.step_limit)
        logger.info(
            "Analysis %s started for %s: %r", trail.run_id, mbd.market_id, mbd.question
        )
        try:
            error = await self._run(state)
        except Exception as exc:
            logger.exception(
                "Stage %s raised while analysing %s", state.stage.value, mbd.market_id
            )
            error = self._crashed(state, exc)
        if error is not None:
            return self._fail(mbd.market_id, trail, error, start, state)
        return self._succeed(state, start)

    async def _run(self, state: RunState) -> PipelineError | None:
        mbd = state.mbd

        # INGESTION
        t0 = time.monotonic()
        if self._shutdown.is_set():
            return self._stage_failed(
                state,
                PipelineStage.INGESTION,
                self._shutdown_error(PipelineStage.INGESTION),
                t0,
            )
        err = self._enter(state, PipelineStage.INGESTION)
        if err is not None:
            return err
        self._complete(
            state,
            PipelineStage.INGESTION,
            {
                "market_id": mbd.market_id,
                "condition_id": mbd.condition_id,
                "event_type": mbd.event_type,
                "current_probability": mbd.current_probability,
                "liquidity_score": mbd.liquidity_score,
                "volatility_regime": mbd.volatility_regime,
            },
            t0,
        )

        # AGENTS
        t0 = time.monotonic()
        if self._shutdown.is_set():
            return self._stage_failed(
                state,
                PipelineStage.AGENTS,
                self._shutdown_error(PipelineStage.AGENTS),
                t0,
            )
        err = self._enter(state, PipelineStage.AGENTS)
        if err is not None:
            return err
        agents = self._executor.planned_agents()
        if not state.consume_step(len(agents)):
            return self._budget_error(state, PipelineStage.AGENTS)
        executed = await self._executor.execute(mbd, state)
        for agent_error in state.agent_errors:
            self._publish(
                AgentFailed(
                    source_id=mbd.market_id,
                    agent_name=agent_error.agent_name,
                    kind=agent_error.kind,
                    message=agent_error.message,
                )
            )
        if isinstance(executed, RecommendationError):
            return self._stage_failed(state, PipelineStage.AGENTS, executed, t0)
        self._complete(
            state,
            PipelineStage.AGENTS,
            {
                "succeeded": [s.agent_name for s in state.signals],
                "failed": [e.agent_name for e in state.agent_errors],
            },
            t0,
            errors=state.agent_errors,
        )

        # FUSION
        t0 = time.monotonic()
        err = self._enter(state, PipelineStage.FUSION)
        if err is not None:
            return err
        fusion = self._fusion.fuse(state.signals, mbd)
        state.fusion = fusion
        self._complete(
            state,
            PipelineStage.FUSION,
            {
                "yes_score": fusion.yes_score,
                "no_score": fusion.no_score,
                "normalized_gap": fusion.normalized_gap,
                "high_conflict": fusion.high_conflict,
                "fused_probability": fusion.fused_probability,
                "signal_alignment": fusion.signal_alignment,
                "weights": fusion.weights,
                "excluded_agents": fusion.excluded_agents,
                "conflicting_pairs": fusion.conflicting_pairs,
            },
            t0,
        )

        # THESIS
        t0 = time.monotonic()
        err = self._enter(state, PipelineStage.THESIS)
        if err is not None:
            return err
        built = self._theses.build(fusion, state.signals, mbd)
        if isinstance(built, RecommendationError):
            return self._stage_failed(state, PipelineStage.THESIS, built, t0)
        state.bull_thesis, state.bear_thesis = built
        self._complete(
            state,
            PipelineStage.THESIS,
            {
                "bull": state.bull_thesis,
                "bear": state.bear_thesis,
                "unsupported_sides": [
                    t.direction.value for t in built if not t.is_supported
                ],
            },
            t0,
        )

        # DEBATE
        t0 = time.monotonic()
        err = self._enter(state, PipelineStage.DEBATE)
        if err is not None:
            return err
        debate = self._debate.debate(state.bull_thesis, state.bear_thesis, fusion, mbd)
        state.debate = debate
        self._complete(
            state,
            PipelineStage.DEBATE,
            {
                "bull_score": debate.bull_score,
                "bear_score": debate.bear_score,
                "tests": debate.tests,
                "key_disagreements": debate.key_disagreements,
            },
            t0,
        )

        # CONSENSUS
        t0 = time.monotonic()
        err = self._enter(state, PipelineStage.CONSENSUS)
        if err is not None:
            return err
        consensus = self._consensus.calculate(
            fusion, state.bull_thesis, state.bear_thesis, debate
        )
        if isinstance(consensus, RecommendationError):
            return self._stage_failed(state, PipelineStage.CONSENSUS, consensus, t0)
        state.consensus = consensus
        self._complete(state, PipelineStage.CONSENSUS, {"consensus": consensus}, t0)

        # RECOMMENDATION
        t0 = time.monotonic()
        err = self._enter(state, PipelineStage.RECOMMENDATION)
        if err is not None:
            return err
        rec, soft_error = self._recommender.generate(
            mbd, consensus, state.bull_thesis, state.bear_thesis, debate
        )
        state.recommendation = rec
        if soft_error is not None:
            logger.info("No edge for %s: %s", mbd.market_id, soft_error.message)
        self._complete(
            state,
            PipelineStage.RECOMMENDATION,
            {
                "action": rec.action,
                "edge": rec.metadata.edge,
                "expected_value": rec.expected_value,
                "entry_zone": rec.entry_zone,
                "target_zone": rec.target_zone,
            },
            t0,
            errors=[soft_error] if soft_error is not None else (),
        )

        state.advance(PipelineStage.DONE)
        return None

    # -- stage helpers --------------------------------------------------------

    def _enter(self, state: RunState, stage: PipelineStage) -> OrchestrationError | None:
        state.advance(stage)
        if not state.consume_step():
            return self._budget_error(state, stage)
        return None

    def _complete(
        self,
        state: RunState,
        stage: PipelineStage,
        data: dict[str, Any],
        started: float,
        errors: Any = (),
    ) -> None:
        duration = time.monotonic() - started
        state.record_stage(stage.value, data=data, errors=list(errors), duration=duration)
        logger.info("Stage %s completed in %.3fs", stage.value, duration)
        self._publish(
            StageCompleted(
                source_id=state.mbd.market_id,
                stage=stage.value,
                duration=duration,
                step=state.steps,
            )
        )

    def _stage_failed(
        self,
        state: RunState,
        stage: PipelineStage,
        error: PipelineError,
        started: float,
    ) -> PipelineError:
        state.record_stage(
            stage.value,
            data={"status": "failed"},
            errors=[error],
            duration=time.monotonic() - started,
        )
        return error

    def _budget_error(self, state: RunState, stage: PipelineStage) -> OrchestrationError:
        error = OrchestrationError(
            message=(
                f"step budget of {state.step_limit} exceeded at {stage.value} "
                f"({state.steps} steps)"
            ),
            kind=OrchestrationErrorKind.STEP_BUDGET_EXCEEDED,
            stage=stage.value,
            details={"steps": state.steps, "step_limit": state.step_limit},
        )
        state.record_stage(stage.value, data={"status": "aborted"}, errors=[error])
        return error

    def _crashed(self, state: RunState, exc: Exception) -> OrchestrationError:
        stage = state.stage
        error = OrchestrationError(
            message=f"{type(exc).__name__}: {exc}",
            kind=OrchestrationErrorKind.STAGE_FAILED,
            stage=stage.value,
            details={"exception": type(exc).__name__},
        )
        state.record_stage(
            stage.value,
            data={"status": "failed"},
            errors=[error],
            duration=state.stage_elapsed,
        )
        return error

    @staticmethod
    def _shutdown_error(stage: PipelineStage) -> OrchestrationError:
        return OrchestrationError(
            message=f"shutdown requested before {stage.value}",
            kind=OrchestrationErrorKind.SHUTDOWN_REQUESTED,
            stage=stage.value,
        )

    def _publish(self, event: DomainEvent) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)

    def _analysis_type(self, market_id: str) -> str:
        """``update`` once the market already has a stored recommendation."""
        if self._persistence.get_latest_recommendation(market_id) is None:
            return "initial"
        return "update"

    # -- terminal states ------------------------------------------------------

    def _succeed(self, state: RunState, start: float) -> AnalysisOutcome:
        rec = state.recommendation
        duration = time.monotonic() - start
        if self._persistence is not None:
            try:
                market_id = self._persistence.upsert_market(state.mbd)
                analysis_type = self._analysis_type(market_id)
                rec_id = self._persistence.store_recommendation(market_id, rec)
                self._persistence.store_agent_signals(market_id, rec_id, state.signals)
                self._persistence.record_analysis(
                    market_id,
                    "success",
                    duration=duration,
                    agents_used=[s.agent_name for s in state.signals],
                    analysis_type=analysis_type,
                )
            except Exception as exc:
                logger.exception("Persisting analysis of %s failed", state.mbd.market_id)
                state.record_stage(
                    "persistence",
                    data={"status": "failed"},
                    errors=[{"type": type(exc).__name__, "message": str(exc)}],
                )

        logger.info(
            "Analysis of %s finished: %s in %.3fs (%d steps)",
            state.mbd.market_id, rec.action.value, duration, state.steps,
        )
        self._publish(
            AnalysisCompleted(
                source_id=state.mbd.market_id,
                action=rec.action,
                consensus_probability=rec.metadata.consensus_probability,
                edge=rec.metadata.edge,
                duration=duration,
            )
        )
        return AnalysisOutcome(
            market_id=state.mbd.market_id,
            audit_trail=state.audit_trail,
            recommendation=rec,
            signals=state.signals,
            agent_errors=state.agent_errors,
            fusion=state.fusion,
            debate=state.debate,
            consensus=state.consensus,
            duration=duration,
            steps=state.steps,
            run_id=state.audit_trail.run_id,
        )

    def _fail(
        self,
        market_id: str,
        trail: AuditTrail,
        error: PipelineError,
        start: float,
        state: RunState | None = None,
    ) -> AnalysisOutcome:
        duration = time.monotonic() - start
        stage = state.stage.value if state is not None else PipelineStage.INGESTION.value
        logger.warning(
            "Analysis of %s failed at %s: %s (%s)",
            market_id, stage, error.code, error.message,
        )
        if self._persistence is not None:
            try:
                self._persistence.record_analysis(
                    market_id,
                    "failed",
                    duration=duration,
                    error_message=f"{error.code}: {error.message}",
                    agents_used=[s.agent_name for s in state.signals] if state else (),
                    analysis_type=self._analysis_type(market_id),
                )
            except Exception as exc:
                logger.exception("Recording failed analysis of %s failed", market_id)
                trail.record(
                    "persistence",
                    data={"status": "failed"},
                    errors=[{"type": type(exc).__name__, "message": str(exc)}],
                )
        self._publish(
            AnalysisFailed(
                source_id=market_id,
                stage=stage,
                error_code=error.code,
                message=error.message,
                duration=duration,
            )
        )
        return AnalysisOutcome(
            market_id=market_id,
            audit_trail=trail,
            error=error,
            signals=state.signals if state else (),
            agent_errors=state.agent_errors if state else (),
            fusion=state.fusion if state else None,
            debate=state.debate if state else None,
            consensus=state.consensus if state else None,
            duration=duration,
            steps=state.steps if state else 0,
            run_id=trail.run_id,
        )
