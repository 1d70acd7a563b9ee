"""Presentation layer: console rendering and export."""

from market_intelligence.presentation.console import ConsoleReport
from market_intelligence.presentation.export import (
    export_json,
    export_signals_csv,
    outcome_to_dict,
)

__all__ = [
    "ConsoleReport",
    "export_json",
    "export_signals_csv",
    "outcome_to_dict",
]
