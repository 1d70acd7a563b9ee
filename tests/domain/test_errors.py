"""Tests for tagged pipeline errors and exceptions."""

from __future__ import annotations

from market_intelligence.domain.enums import (
    AgentErrorKind,
    IngestionErrorKind,
    OrchestrationErrorKind,
    RecommendationErrorKind,
)
from market_intelligence.domain.errors import (
    AgentError,
    IngestionError,
    OrchestrationError,
    PipelineError,
    RecommendationError,
)
from market_intelligence.domain.exceptions import (
    AgentRegistrationError,
    ConfigurationError,
    MarketIntelligenceError,
)


class TestFatality:

    def test_agent_errors_are_not_fatal(self) -> None:
        assert not AgentError(kind=AgentErrorKind.TIMEOUT).is_fatal
        assert not AgentError(kind=AgentErrorKind.EXECUTION_FAILED).is_fatal

    def test_no_edge_is_soft(self) -> None:
        assert not RecommendationError(kind=RecommendationErrorKind.NO_EDGE).is_fatal
        assert RecommendationError(kind=RecommendationErrorKind.INSUFFICIENT_DATA).is_fatal
        assert RecommendationError(kind=RecommendationErrorKind.CONSENSUS_FAILED).is_fatal

    def test_ingestion_and_orchestration_are_fatal(self) -> None:
        assert IngestionError(kind=IngestionErrorKind.INVALID_MARKET_ID).is_fatal
        assert OrchestrationError(kind=OrchestrationErrorKind.SHUTDOWN_REQUESTED).is_fatal

    def test_retryable_ingestion(self) -> None:
        assert IngestionError(kind=IngestionErrorKind.RATE_LIMIT_EXCEEDED).is_retryable
        assert IngestionError(kind=IngestionErrorKind.API_UNAVAILABLE).is_retryable
        assert not IngestionError(kind=IngestionErrorKind.VALIDATION_FAILED).is_retryable


class TestSerialization:

    def test_code_is_kind_value(self) -> None:
        err = AgentError(message="slow", kind=AgentErrorKind.TIMEOUT, agent_name="a")
        assert err.code == "TIMEOUT"

    def test_base_code_is_class_name(self) -> None:
        assert PipelineError("boom").code == "PipelineError"

    def test_to_dict(self) -> None:
        err = IngestionError(
            message="missing",
            kind=IngestionErrorKind.VALIDATION_FAILED,
            market_id="m",
            details={"field": "market_id"},
        )
        d = err.to_dict()
        assert d["type"] == "IngestionError"
        assert d["kind"] == "VALIDATION_FAILED"
        assert d["details"] == {"field": "market_id"}


class TestExceptions:

    def test_hierarchy(self) -> None:
        assert issubclass(ConfigurationError, MarketIntelligenceError)
        assert issubclass(AgentRegistrationError, MarketIntelligenceError)

    def test_fields(self) -> None:
        exc = ConfigurationError("bad", source="yaml", details={"line": 3})
        assert str(exc) == "bad"
        assert exc.source == "yaml"
        assert exc.details == {"line": 3}
        assert AgentRegistrationError("dup", agent_name="a").agent_name == "a"
