"""Intelligence agents."""

from market_intelligence.agents.base import (
    AgentFunction,
    BaseIntelligenceAgent,
    FunctionAgent,
)
from market_intelligence.agents.llm import LLMIntelligenceAgent, SignalOutput
from market_intelligence.agents.replay import RecordedAgentFailure, ReplayAgent

__all__ = [
    "AgentFunction",
    "BaseIntelligenceAgent",
    "FunctionAgent",
    "LLMIntelligenceAgent",
    "RecordedAgentFailure",
    "ReplayAgent",
    "SignalOutput",
]
