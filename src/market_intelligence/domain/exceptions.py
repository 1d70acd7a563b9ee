"""Exceptions for the Market Intelligence Engine.

Business failures travel as tagged values (see ``errors.py``).  The
exceptions below are reserved for programming and configuration mistakes
and all inherit from ``MarketIntelligenceError``.
"""

from __future__ import annotations

from typing import Any


class MarketIntelligenceError(Exception):
    """Base exception for all Market Intelligence Engine errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ConfigurationError(MarketIntelligenceError):
    """Raised when a configuration source cannot be turned into an ``EngineConfig``."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        source: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.source = source


class AgentRegistrationError(MarketIntelligenceError):
    """Raised when two agents are registered under the same name."""

    def __init__(
        self,
        message: str = "Agent registration failed",
        agent_name: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.agent_name = agent_name
