"""Export utilities for analysis outcomes.

JSON for complete outcomes and CSV for agent signals.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

from market_intelligence.infrastructure.serialization import to_jsonable
from market_intelligence.services.orchestrator import AnalysisOutcome


def outcome_to_dict(outcome: AnalysisOutcome) -> dict[str, Any]:
    """JSON-ready view of *outcome*."""
    return {
        "run_id": outcome.run_id,
        "market_id": outcome.market_id,
        "status": "success" if outcome.ok else "failed",
        "duration": outcome.duration,
        "steps": outcome.steps,
        "recommendation": to_jsonable(outcome.recommendation),
        "error": to_jsonable(outcome.error),
        "consensus": to_jsonable(outcome.consensus),
        "debate": to_jsonable(outcome.debate),
        "signals": to_jsonable(outcome.signals),
        "agent_errors": to_jsonable(outcome.agent_errors),
        "audit_trail": outcome.audit_trail.to_dict(),
    }


def export_json(outcome: AnalysisOutcome, path: str | Path) -> None:
    """Write *outcome* to *path* as indented JSON."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as fh:
        json.dump(outcome_to_dict(outcome), fh, indent=2)


def export_signals_csv(outcome: AnalysisOutcome, path: str | Path) -> None:
    """One row per agent: signal fields, or the failure kind."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    weights = outcome.fusion.weights if outcome.fusion is not None else {}
    with open(out, "w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(
            ["agent_name", "status", "direction", "confidence", "fair_probability", "weight"]
        )
        for s in outcome.signals:
            writer.writerow(
                [
                    s.agent_name,
                    "success",
                    s.direction.value,
                    f"{s.confidence:.4f}",
                    f"{s.fair_probability:.4f}",
                    f"{weights.get(s.agent_name, 0.0):.4f}",
                ]
            )
        for e in outcome.agent_errors:
            writer.writerow([e.agent_name, e.kind.value, "", "", "", ""])
