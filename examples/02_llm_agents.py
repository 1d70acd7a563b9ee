#!/usr/bin/env python3
"""Example 02: LLM-backed intelligence agents.

Demonstrates:
- LLMIntelligenceAgent with LangChain structured output
- A scripted chat model standing in for a provider model
- How a failing model is isolated by the agent executor

Any LangChain ``BaseChatModel`` can be passed instead of the scripted
model, for example ``ChatAnthropic(model=...)`` from ``langchain-anthropic``.

Run:
    PYTHONPATH=src python examples/02_llm_agents.py
"""

from __future__ import annotations

import asyncio
import time

from market_intelligence.agents import LLMIntelligenceAgent, SignalOutput
from market_intelligence.domain.enums import EventType
from market_intelligence.domain.values import MarketBriefingDocument
from market_intelligence.infrastructure.config import AgentsConfig, EngineConfig
from market_intelligence.infrastructure.registry import AgentRegistry
from market_intelligence.presentation import ConsoleReport
from market_intelligence.services.orchestrator import MarketAnalysisOrchestrator
from market_intelligence.testing import MockStructuredChatModel


def scripted(**fields) -> MockStructuredChatModel:
    return MockStructuredChatModel(structured_responses=[SignalOutput(**fields)])


def main() -> None:
    mbd = MarketBriefingDocument(
        market_id="demo-policy",
        condition_id="0xpolicy",
        question="Will the infrastructure bill pass the Senate this year?",
        current_probability=0.42,
        event_type=EventType.POLICY,
        expiry_timestamp=time.time() + 45 * 86400,
        liquidity_score=6.0,
        bid_ask_spread=3.0,
        ambiguity_flags=("'this year' may refer to the fiscal year",),
    )

    registry = AgentRegistry(
        [
            LLMIntelligenceAgent(
                "breaking_news",
                scripted(
                    direction="YES",
                    confidence=0.75,
                    fair_probability=0.55,
                    key_drivers=["bipartisan group announced a deal"],
                    risk_factors=["floor schedule slips"],
                    reasoning="Deal announcement changes the vote count.",
                ),
                focus="breaking news and official statements",
            ),
            LLMIntelligenceAgent(
                "historical_pattern",
                scripted(
                    direction="NO",
                    confidence=0.55,
                    fair_probability=0.35,
                    key_drivers=["similar bills stalled in committee"],
                    reasoning="Base rate for comparable bills is low.",
                ),
                focus="base rates from comparable past events",
            ),
            LLMIntelligenceAgent(
                "media_sentiment",
                scripted(
                    direction="YES",
                    confidence=0.6,
                    fair_probability=0.52,
                    key_drivers=["coverage turned positive"],
                    reasoning="Tone shift across major outlets.",
                ),
            ),
            LLMIntelligenceAgent(
                "social_sentiment",
                MockStructuredChatModel(structured_responses=[RuntimeError("rate limited")]),
            ),
        ]
    )

    config = EngineConfig(agents=AgentsConfig(timeout_ms=5000))
    outcome = asyncio.run(MarketAnalysisOrchestrator(registry, config).analyze(mbd))
    ConsoleReport().print_outcome(outcome)
    for err in outcome.agent_errors:
        print(f"agent {err.agent_name} failed: {err.kind.value} ({err.message})")


if __name__ == "__main__":
    main()
