"""Tests for the append-only audit trail."""

from __future__ import annotations

import json

from market_intelligence.domain.enums import AgentErrorKind, SignalDirection
from market_intelligence.domain.errors import AgentError
from market_intelligence.services.audit_trail import AuditTrail


class TestAuditTrail:

    def test_record_converts_to_primitives(self) -> None:
        trail = AuditTrail(run_id="r1")
        entry = trail.record(
            "agent:a",
            data={"direction": SignalDirection.YES, "zone": (0.1, 0.2)},
            errors=[AgentError(message="slow", kind=AgentErrorKind.TIMEOUT, agent_name="a")],
            duration=0.25,
        )
        assert entry.data == {"direction": "YES", "zone": [0.1, 0.2]}
        assert entry.errors[0]["kind"] == "TIMEOUT"
        assert entry.duration == 0.25

    def test_order_and_query(self) -> None:
        trail = AuditTrail()
        trail.record("market_ingestion")
        trail.record("agent:a")
        trail.record("agent:b", errors=[{"kind": "TIMEOUT"}])
        trail.record("agent_execution")
        assert trail.stages == ["market_ingestion", "agent:a", "agent:b", "agent_execution"]
        assert [e.stage for e in trail.query(prefix="agent:")] == ["agent:a", "agent:b"]
        assert [e.stage for e in trail.query(errors_only=True)] == ["agent:b"]
        assert len(trail.query(stage="agent_execution")) == 1
        assert len(trail) == 4

    def test_entries_are_copies(self) -> None:
        trail = AuditTrail()
        trail.record("x")
        trail.entries.clear()
        assert len(trail) == 1

    def test_total_duration(self) -> None:
        trail = AuditTrail()
        trail.record("a", duration=0.5)
        trail.record("b", duration=0.25)
        assert trail.total_duration == 0.75

    def test_json_round_trip(self) -> None:
        trail = AuditTrail(run_id="mkt-1")
        trail.record("signal_fusion", data={"yes_score": 1.7, "weights": {"a": 0.5}})
        trail.record("agent:c", errors=[AgentError(kind=AgentErrorKind.TIMEOUT, agent_name="c")])
        text = trail.to_json()
        json.loads(text)

        restored = AuditTrail.from_json(text)
        assert restored.run_id == "mkt-1"
        assert restored.stages == trail.stages
        assert restored.entries[0].data == {"yes_score": 1.7, "weights": {"a": 0.5}}
        assert restored.entries[1].errors[0]["kind"] == "TIMEOUT"
        assert restored.entries[1].entry_id == trail.entries[1].entry_id
