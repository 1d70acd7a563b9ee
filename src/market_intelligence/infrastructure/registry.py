"""Agent registry.

Holds the intelligence agents available to an orchestrator, keyed by their
unique ``name``.  A registry is built per engine and injected; there is no
process-wide instance, so tests and concurrent engines never share agents.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

from market_intelligence.domain.exceptions import AgentRegistrationError

if TYPE_CHECKING:
    from market_intelligence.agents.base import BaseIntelligenceAgent

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Ordered name -> agent mapping.

    Registration order is execution and merge order.

    Usage::

        registry = AgentRegistry()
        registry.register(PollingAgent())
        registry.register_all([NewsAgent(), SentimentAgent()])
    """

    def __init__(self, agents: Iterable[BaseIntelligenceAgent] = ()) -> None:
        self._agents: dict[str, BaseIntelligenceAgent] = {}
        self.register_all(agents)

    # ------------------------------------------------------------------ #
    #  Registration                                                       #
    # ------------------------------------------------------------------ #

    def register(
        self,
        agent: BaseIntelligenceAgent,
        *,
        overwrite: bool = False,
    ) -> BaseIntelligenceAgent:
        """Register *agent* under ``agent.name``.

        Raises ``AgentRegistrationError`` on a duplicate name unless
        *overwrite* is set.
        """
        name = agent.name
        if not name:
            raise AgentRegistrationError("Agent name must not be empty")
        if name in self._agents and not overwrite:
            raise AgentRegistrationError(
                f"Agent '{name}' is already registered as {self._agents[name]!r}",
                agent_name=name,
            )
        self._agents[name] = agent
        logger.debug("Registered agent %s: %r", name, agent)
        return agent

    def register_all(self, agents: Iterable[BaseIntelligenceAgent]) -> None:
        for agent in agents:
            self.register(agent)

    def unregister(self, name: str) -> BaseIntelligenceAgent:
        try:
            return self._agents.pop(name)
        except KeyError:
            raise KeyError(f"Cannot unregister agent '{name}': not found.") from None

    # ------------------------------------------------------------------ #
    #  Lookup                                                             #
    # ------------------------------------------------------------------ #

    def get(self, name: str) -> BaseIntelligenceAgent:
        try:
            return self._agents[name]
        except KeyError:
            raise KeyError(
                f"Agent '{name}' not registered. Available: {self.names()}"
            ) from None

    def names(self) -> list[str]:
        return list(self._agents)

    def enabled(self, names: Sequence[str] = ()) -> list[BaseIntelligenceAgent]:
        """Agents to run: all of them, or only *names* (in registry order).

        Unknown names raise ``AgentRegistrationError``.
        """
        if not names:
            return list(self._agents.values())
        unknown = [n for n in names if n not in self._agents]
        if unknown:
            raise AgentRegistrationError(
                f"Enabled agents not registered: {unknown}",
                agent_name=unknown[0],
            )
        wanted = set(names)
        return [a for n, a in self._agents.items() if n in wanted]

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __iter__(self) -> Iterator[BaseIntelligenceAgent]:
        return iter(list(self._agents.values()))

    def __len__(self) -> int:
        return len(self._agents)

    def __repr__(self) -> str:
        return f"<AgentRegistry {self.names()}>"
