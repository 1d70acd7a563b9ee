"""Rich console rendering of analysis outcomes.

:class:`ConsoleReport` prints the recommendation, the consensus, the agent
signals, the debate battery and the audit trail as ``rich`` tables.
"""

from __future__ import annotations

import sys
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from market_intelligence.domain.enums import (
    DebateOutcome,
    ProbabilityRegime,
    SignalDirection,
    TradeAction,
)
from market_intelligence.services.orchestrator import AnalysisOutcome

_ACTION_STYLE = {
    TradeAction.LONG_YES: "bold green",
    TradeAction.LONG_NO: "bold red",
    TradeAction.NO_TRADE: "bold yellow",
}

_OUTCOME_STYLE = {
    DebateOutcome.SURVIVED: "green",
    DebateOutcome.WEAKENED: "yellow",
    DebateOutcome.REFUTED: "red",
}

_REGIME_STYLE = {
    ProbabilityRegime.HIGH_CONFIDENCE: "green",
    ProbabilityRegime.MODERATE_CONFIDENCE: "yellow",
    ProbabilityRegime.HIGH_UNCERTAINTY: "red",
}

_DIRECTION_STYLE = {
    SignalDirection.YES: "green",
    SignalDirection.NO: "red",
    SignalDirection.NEUTRAL: "dim",
}


def _zone(zone: tuple[float, float]) -> str:
    return f"{zone[0]:.3f} - {zone[1]:.3f}"


class ConsoleReport:
    """Console presentation of an :class:`AnalysisOutcome`.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    no_color:
        Disable colour (useful for logs and tests).
    """

    def __init__(self, file: Any = None, no_color: bool = False) -> None:
        self._console = Console(file=file or sys.stdout, no_color=no_color, width=120)

    @property
    def console(self) -> Console:
        return self._console

    def print_outcome(self, outcome: AnalysisOutcome, show_audit: bool = False) -> None:
        """Print everything known about *outcome*."""
        if outcome.ok:
            self.print_recommendation(outcome)
        else:
            self.print_error(outcome)
        if outcome.signals or outcome.agent_errors:
            self.print_signals(outcome)
        if outcome.consensus is not None:
            self.print_consensus(outcome)
        if outcome.debate is not None:
            self.print_debate(outcome)
        if show_audit:
            self.print_audit_trail(outcome)

    def print_recommendation(self, outcome: AnalysisOutcome) -> None:
        rec = outcome.recommendation
        assert rec is not None
        style = _ACTION_STYLE[rec.action]
        table = Table(show_header=False, box=None)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Action", f"[{style}]{rec.action.value}[/{style}]")
        table.add_row("Entry zone", _zone(rec.entry_zone))
        table.add_row("Target zone", _zone(rec.target_zone))
        table.add_row("Expected value", f"${rec.expected_value:+.2f} per $100")
        table.add_row("Win probability", f"{rec.win_probability:.1%}")
        table.add_row("Edge", f"{rec.metadata.edge:.1%}")
        table.add_row("Liquidity risk", rec.liquidity_risk.value)
        table.add_row("Summary", rec.explanation.summary)
        table.add_row("Core thesis", rec.explanation.core_thesis)
        if rec.explanation.key_catalysts:
            table.add_row("Catalysts", "\n".join(rec.explanation.key_catalysts))
        if rec.explanation.failure_scenarios:
            table.add_row("Failure scenarios", "\n".join(rec.explanation.failure_scenarios))
        if rec.explanation.uncertainty_note:
            table.add_row("Uncertainty", f"[yellow]{rec.explanation.uncertainty_note}[/yellow]")
        self._console.print(
            Panel(table, title=f"Recommendation: {rec.market_id}", border_style=style)
        )

    def print_error(self, outcome: AnalysisOutcome) -> None:
        err = outcome.error
        assert err is not None
        self._console.print(
            Panel(
                f"[bold]{err.code}[/bold]: {err.message}",
                title=f"Analysis failed: {outcome.market_id}",
                border_style="red",
            )
        )

    def print_signals(self, outcome: AnalysisOutcome) -> None:
        table = Table(title="Agent signals", header_style="bold cyan")
        table.add_column("Agent", style="bold")
        table.add_column("Direction", justify="center")
        table.add_column("Confidence", justify="right")
        table.add_column("Fair prob.", justify="right")
        table.add_column("Weight", justify="right")
        weights = outcome.fusion.weights if outcome.fusion is not None else {}
        for s in outcome.signals:
            style = _DIRECTION_STYLE[s.direction]
            weight = weights.get(s.agent_name)
            table.add_row(
                s.agent_name,
                f"[{style}]{s.direction.value}[/{style}]",
                f"{s.confidence:.2f}",
                f"{s.fair_probability:.3f}",
                f"{weight:.3f}" if weight is not None else "-",
            )
        for e in outcome.agent_errors:
            table.add_row(e.agent_name, f"[red]{e.kind.value}[/red]", "-", "-", "-")
        self._console.print(table)

    def print_consensus(self, outcome: AnalysisOutcome) -> None:
        c = outcome.consensus
        assert c is not None
        style = _REGIME_STYLE[c.regime]
        self._console.print(
            f"Consensus [bold]{c.consensus_probability:.1%}[/bold]  "
            f"band {_zone(c.confidence_band)}  "
            f"disagreement {c.disagreement_index:.3f}  "
            f"regime [{style}]{c.regime.value}[/{style}]"
        )

    def print_debate(self, outcome: AnalysisOutcome) -> None:
        debate = outcome.debate
        assert debate is not None
        table = Table(
            title=f"Debate (bull {debate.bull_score:+.2f} / bear {debate.bear_score:+.2f})",
            header_style="bold cyan",
        )
        table.add_column("Side")
        table.add_column("Test")
        table.add_column("Outcome", justify="center")
        table.add_column("Score", justify="right")
        table.add_column("Challenge")
        for t in debate.tests:
            style = _OUTCOME_STYLE[t.outcome]
            table.add_row(
                "bull" if t.side is SignalDirection.YES else "bear",
                t.test_type.value,
                f"[{style}]{t.outcome.value}[/{style}]",
                f"{t.score:+.3f}",
                t.challenge,
            )
        self._console.print(table)

    def print_audit_trail(self, outcome: AnalysisOutcome) -> None:
        table = Table(title="Audit trail", header_style="bold cyan")
        table.add_column("#", justify="right")
        table.add_column("Stage")
        table.add_column("Duration", justify="right")
        table.add_column("Errors")
        for i, entry in enumerate(outcome.audit_trail.entries, start=1):
            errors = ", ".join(
                str(e.get("kind", e.get("type", "?"))) if isinstance(e, dict) else str(e)
                for e in entry.errors
            )
            table.add_row(
                str(i),
                entry.stage,
                f"{entry.duration * 1000:.1f} ms",
                f"[red]{errors}[/red]" if errors else "",
            )
        self._console.print(table)
