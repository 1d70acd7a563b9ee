"""Agent Executor -- parallel fan-out / fan-in of intelligence agents.

Each enabled agent runs as its own asyncio task under a per-agent deadline.
``asyncio.gather`` is the barrier: results are merged into the run state,
in registry order, only after every agent has settled.  A failing or slow
agent never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass

from market_intelligence.agents.base import BaseIntelligenceAgent
from market_intelligence.domain.aggregates import RunState
from market_intelligence.domain.enums import AgentErrorKind, RecommendationErrorKind
from market_intelligence.domain.errors import AgentError, RecommendationError
from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument
from market_intelligence.infrastructure.config import AgentsConfig
from market_intelligence.infrastructure.registry import AgentRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentOutcome:
    """What one agent produced, before merging."""

    agent_name: str
    result: AgentSignal | AgentError
    duration: float

    @property
    def ok(self) -> bool:
        return isinstance(self.result, AgentSignal)


class AgentExecutor:
    """Runs the enabled agents of a registry against one briefing.

    Parameters
    ----------
    registry:
        Agents available to the engine.
    config:
        Timeout, quorum and enabled-agent selection.
    """

    def __init__(self, registry: AgentRegistry, config: AgentsConfig | None = None) -> None:
        self._registry = registry
        self._config = config or AgentsConfig()

    @property
    def config(self) -> AgentsConfig:
        return self._config

    def planned_agents(self) -> list[BaseIntelligenceAgent]:
        """Agents the next ``execute`` call will launch, in merge order."""
        return self._registry.enabled(self._config.enabled)

    async def execute(
        self,
        mbd: MarketBriefingDocument,
        state: RunState,
    ) -> tuple[AgentSignal, ...] | RecommendationError:
        """Run every planned agent and merge the outcomes into *state*.

        Returns the surviving signals, or ``INSUFFICIENT_DATA`` when fewer
        than ``min_agents_required`` agents succeeded.
        """
        agents = self.planned_agents()
        logger.info("Launching %d agents for market %s", len(agents), mbd.market_id)
        outcomes = await asyncio.gather(*(self._run_agent(a, mbd) for a in agents))
        signals, errors = self._merge(agents, outcomes, state)

        if len(signals) < self._config.min_agents_required:
            logger.warning(
                "Only %d/%d agents succeeded for %s (need %d)",
                len(signals), len(agents), mbd.market_id,
                self._config.min_agents_required,
            )
            return RecommendationError(
                message=(
                    f"{len(signals)} agent signals, "
                    f"{self._config.min_agents_required} required"
                ),
                kind=RecommendationErrorKind.INSUFFICIENT_DATA,
                details={
                    "succeeded": [s.agent_name for s in signals],
                    "failed": [e.agent_name for e in errors],
                },
            )
        return signals

    async def _run_agent(
        self,
        agent: BaseIntelligenceAgent,
        mbd: MarketBriefingDocument,
    ) -> AgentOutcome:
        timeout = self._config.timeout_seconds
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(agent.analyze(mbd), timeout=timeout)
        except asyncio.TimeoutError:
            return AgentOutcome(
                agent.name,
                AgentError(
                    message=f"no signal within {self._config.timeout_ms} ms",
                    kind=AgentErrorKind.TIMEOUT,
                    agent_name=agent.name,
                    details={"timeout_ms": self._config.timeout_ms},
                ),
                time.monotonic() - start,
            )
        except Exception as exc:
            return AgentOutcome(
                agent.name,
                AgentError(
                    message=f"{type(exc).__name__}: {exc}",
                    kind=AgentErrorKind.EXECUTION_FAILED,
                    agent_name=agent.name,
                ),
                time.monotonic() - start,
            )
        duration = time.monotonic() - start
        if not isinstance(result, AgentSignal):
            return AgentOutcome(
                agent.name,
                AgentError(
                    message=f"returned {type(result).__name__}, expected AgentSignal",
                    kind=AgentErrorKind.EXECUTION_FAILED,
                    agent_name=agent.name,
                ),
                duration,
            )
        if "category" not in result.metadata and agent.category and agent.category != result.agent_name:
            result = dataclasses.replace(
                result, metadata={**result.metadata, "category": agent.category}
            )
        return AgentOutcome(agent.name, result, duration)

    def _merge(
        self,
        agents: list[BaseIntelligenceAgent],
        outcomes: list[AgentOutcome],
        state: RunState,
    ) -> tuple[tuple[AgentSignal, ...], tuple[AgentError, ...]]:
        signals: list[AgentSignal] = []
        errors: list[AgentError] = []
        seen: set[str] = {s.agent_name for s in state.signals}

        for agent, outcome in zip(agents, outcomes):
            result = outcome.result
            if isinstance(result, AgentSignal) and result.agent_name in seen:
                result = AgentError(
                    message=f"duplicate signal name '{result.agent_name}'",
                    kind=AgentErrorKind.EXECUTION_FAILED,
                    agent_name=agent.name,
                )

            if isinstance(result, AgentSignal):
                seen.add(result.agent_name)
                signals.append(result)
                logger.debug(
                    "Agent %s: %s conf=%.2f p=%.3f (%.3fs)",
                    agent.name, result.direction.value, result.confidence,
                    result.fair_probability, outcome.duration,
                )
                state.record_stage(
                    f"agent:{agent.name}",
                    data={
                        "status": "success",
                        "direction": result.direction,
                        "confidence": result.confidence,
                        "fair_probability": result.fair_probability,
                        "category": result.category,
                    },
                    duration=outcome.duration,
                )
            else:
                errors.append(result)
                logger.warning(
                    "Agent %s failed (%s): %s", agent.name, result.kind.value, result.message
                )
                state.record_stage(
                    f"agent:{agent.name}",
                    data={"status": "failed", "kind": result.kind},
                    errors=[result],
                    duration=outcome.duration,
                )

        state.add_signals(signals)
        state.add_agent_errors(errors)
        return tuple(signals), tuple(errors)
