"""Tests for the agent registry."""

from __future__ import annotations

import pytest

from market_intelligence.domain.exceptions import AgentRegistrationError
from market_intelligence.infrastructure.registry import AgentRegistry
from market_intelligence.testing import FailingAgent, StaticAgent, make_signal


class TestAgentRegistry:

    def test_register_preserves_order(self) -> None:
        reg = AgentRegistry()
        reg.register(StaticAgent(make_signal("b")))
        reg.register(StaticAgent(make_signal("a")))
        assert reg.names() == ["b", "a"]
        assert len(reg) == 2
        assert "a" in reg

    def test_duplicate_rejected(self) -> None:
        reg = AgentRegistry([FailingAgent("x")])
        with pytest.raises(AgentRegistrationError) as exc_info:
            reg.register(FailingAgent("x"))
        assert exc_info.value.agent_name == "x"

    def test_overwrite(self) -> None:
        reg = AgentRegistry([FailingAgent("x")])
        replacement = FailingAgent("x")
        reg.register(replacement, overwrite=True)
        assert reg.get("x") is replacement

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(AgentRegistrationError, match="empty"):
            AgentRegistry([FailingAgent("")])

    def test_unregister(self) -> None:
        reg = AgentRegistry([FailingAgent("x")])
        reg.unregister("x")
        assert len(reg) == 0
        with pytest.raises(KeyError, match="not found"):
            reg.unregister("x")

    def test_get_unknown(self) -> None:
        with pytest.raises(KeyError, match="not registered"):
            AgentRegistry().get("nope")

    def test_enabled_subset_in_registry_order(self) -> None:
        reg = AgentRegistry(FailingAgent(n) for n in ("a", "b", "c"))
        assert [a.name for a in reg.enabled()] == ["a", "b", "c"]
        assert [a.name for a in reg.enabled(["c", "a"])] == ["a", "c"]

    def test_enabled_unknown(self) -> None:
        reg = AgentRegistry([FailingAgent("a")])
        with pytest.raises(AgentRegistrationError, match="not registered"):
            reg.enabled(["a", "ghost"])

    def test_registries_are_independent(self) -> None:
        first = AgentRegistry([FailingAgent("a")])
        second = AgentRegistry()
        assert "a" in first
        assert "a" not in second
