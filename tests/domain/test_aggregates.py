"""Tests for the RunState aggregate."""

from __future__ import annotations

import pytest

from market_intelligence.domain.aggregates import RunState
from market_intelligence.domain.enums import AgentErrorKind, PipelineStage
from market_intelligence.domain.errors import AgentError
from market_intelligence.domain.values import MarketBriefingDocument
from market_intelligence.services.audit_trail import AuditTrail
from market_intelligence.testing import make_signal


class TestRunState:

    @pytest.fixture
    def state(self, mbd: MarketBriefingDocument) -> RunState:
        return RunState(mbd, AuditTrail(run_id=mbd.market_id), step_limit=3)

    def test_initial(self, state: RunState) -> None:
        assert state.stage is PipelineStage.INGESTION
        assert state.steps == 0
        assert state.signals == ()
        assert not state.is_complete

    def test_add_signals_rejects_duplicates(self, state: RunState) -> None:
        state.add_signals([make_signal("a")])
        with pytest.raises(ValueError, match="Duplicate"):
            state.add_signals([make_signal("a")])
        assert len(state.signals) == 1

    def test_add_agent_errors(self, state: RunState) -> None:
        state.add_agent_errors([AgentError(kind=AgentErrorKind.TIMEOUT, agent_name="x")])
        assert state.agent_errors[0].agent_name == "x"

    def test_step_budget(self, state: RunState) -> None:
        assert state.consume_step()
        assert state.consume_step(2)
        assert state.remaining_steps == 0
        assert not state.consume_step()
        assert state.remaining_steps == 0

    def test_record_stage_writes_trail(self, state: RunState) -> None:
        entry = state.record_stage("signal_fusion", data={"k": 1}, duration=0.5)
        assert state.audit_trail.entries == [entry]
        assert entry.data == {"k": 1}

    def test_advance(self, state: RunState) -> None:
        state.advance(PipelineStage.DEBATE)
        assert state.stage is PipelineStage.DEBATE
        assert "cross_examination" in repr(state)
        assert 0.0 <= state.stage_elapsed < 1.0
