"""LLM-backed intelligence agent using LangChain structured output.

``model.with_structured_output(SignalOutput)`` gives a typed response that
maps directly onto an ``AgentSignal``.  Any failure (transport, parsing,
out-of-range values) propagates so the executor can record it as
``EXECUTION_FAILED``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Literal

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from market_intelligence.agents.base import BaseIntelligenceAgent
from market_intelligence.domain.enums import SignalDirection
from market_intelligence.domain.values import AgentSignal, MarketBriefingDocument

logger = logging.getLogger(__name__)

# -- Structured output schema ------------------------------------------------


class SignalOutput(BaseModel):
    """Structured output schema for one agent opinion."""

    direction: Literal["YES", "NO", "NEUTRAL"] = Field(
        description="Outcome the evidence favours"
    )
    confidence: float = Field(ge=0, le=1, description="Confidence in the view [0, 1]")
    fair_probability: float = Field(
        ge=0, le=1, description="Estimated probability that the market resolves YES"
    )
    key_drivers: list[str] = Field(
        default_factory=list, description="Up to five factors behind the view"
    )
    risk_factors: list[str] = Field(
        default_factory=list, description="What would invalidate the view"
    )
    reasoning: str = Field(default="", description="Short justification")


# -- Prompt ------------------------------------------------------------------

_SIGNAL_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are the {agent_name} analyst on a prediction-market research "
            "desk.  Focus: {focus}.\n\n"
            "Read the market briefing and estimate the probability that the "
            "market resolves YES.  Report the direction you lean, your "
            "confidence, at most five key drivers and the main risks to your "
            "view.  Be quantitative and do not anchor on the market price.",
        ),
        (
            "human",
            "## Market\n"
            "**Question**: {question}\n"
            "**Resolution criteria**: {resolution_criteria}\n"
            "**Event type**: {event_type}\n"
            "**Market probability (YES)**: {current_probability}\n"
            "**Liquidity score**: {liquidity_score}/10\n"
            "**Bid-ask spread**: {bid_ask_spread} cents\n"
            "**Volatility regime**: {volatility_regime}\n"
            "**Days to expiry**: {days_to_expiry}\n"
            "**Catalysts**: {catalysts}\n"
            "**Ambiguity flags**: {ambiguity_flags}\n",
        ),
    ]
)


# -- LLMIntelligenceAgent ----------------------------------------------------


class LLMIntelligenceAgent(BaseIntelligenceAgent):
    """Agent whose opinion comes from a chat model.

    Parameters
    ----------
    name:
        Unique agent name.
    model:
        A LangChain chat model (any ``BaseChatModel``).
    focus:
        One-line description of what this analyst looks at.
    category:
        Fusion weight key; defaults to *name*.
    prompt:
        Optional custom ``ChatPromptTemplate`` to replace the default.
    """

    def __init__(
        self,
        name: str,
        model: BaseChatModel,
        focus: str = "",
        category: str = "",
        prompt: ChatPromptTemplate | None = None,
    ) -> None:
        self.name = name
        self.category = category or name
        self.focus = focus or name.replace("_", " ")
        self.model = model
        self._prompt = prompt or _SIGNAL_PROMPT
        self._chain = self._prompt | self.model.with_structured_output(SignalOutput)

    def _inputs(self, mbd: MarketBriefingDocument) -> dict[str, Any]:
        return {
            "agent_name": self.name,
            "focus": self.focus,
            "question": mbd.question,
            "resolution_criteria": mbd.resolution_criteria or "N/A",
            "event_type": mbd.event_type.value,
            "current_probability": f"{mbd.current_probability:.3f}",
            "liquidity_score": mbd.liquidity_score,
            "bid_ask_spread": mbd.bid_ask_spread,
            "volatility_regime": mbd.volatility_regime.value,
            "days_to_expiry": f"{mbd.days_to_expiry():.1f}",
            "catalysts": ", ".join(c.event for c in mbd.catalysts) or "none",
            "ambiguity_flags": ", ".join(mbd.ambiguity_flags) or "none",
        }

    async def analyze(self, mbd: MarketBriefingDocument) -> AgentSignal:
        result = await self._chain.ainvoke(self._inputs(mbd))
        if not isinstance(result, SignalOutput):
            result = SignalOutput.model_validate(result)
        logger.debug(
            "%s: %s conf=%.2f p=%.3f",
            self.name, result.direction, result.confidence, result.fair_probability,
        )
        return AgentSignal(
            agent_name=self.name,
            direction=SignalDirection(result.direction),
            confidence=result.confidence,
            fair_probability=result.fair_probability,
            timestamp=time.time(),
            key_drivers=tuple(result.key_drivers),
            risk_factors=tuple(result.risk_factors),
            metadata={"category": self.category, "reasoning": result.reasoning},
        )
