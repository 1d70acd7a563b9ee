"""Command-line interface for the Market Intelligence Engine.

Subcommands
-----------
``analyze``
    Run the full pipeline on a recorded briefing, replaying recorded agent
    outputs instead of calling live models.
``info``
    Show the version and the effective configuration.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    market-intelligence = "market_intelligence.cli:main"

Usage examples::

    market-intelligence analyze --briefing mbd.json --signals signals.yaml
    market-intelligence analyze --briefing mbd.json --signals signals.json \\
        --config engine.yaml --output out/run.json --audit
    market-intelligence info --config engine.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="market-intelligence",
        description=(
            "Market Intelligence Engine -- multi-agent analysis of binary "
            "prediction markets."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show the engine version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- analyze -------------------------------------------------------------
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze one market from recorded inputs.",
        description=(
            "Run the pipeline on a briefing file, replaying the agent outputs "
            "recorded in a signals file."
        ),
    )
    analyze_parser.add_argument(
        "--briefing",
        type=str,
        required=True,
        help="Market briefing document (.json, .yaml or .yml).",
    )
    analyze_parser.add_argument(
        "--signals",
        type=str,
        required=True,
        help=(
            "Recorded agent outputs: a list of signal objects, or objects with "
            "'agent_name' and 'error' for recorded failures."
        ),
    )
    analyze_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Engine config file.  Environment variables are applied on top.",
    )
    analyze_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the full outcome as JSON to this path.",
    )
    analyze_parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Write the per-agent signals as CSV to this path.",
    )
    analyze_parser.add_argument(
        "--format",
        type=str,
        default="table",
        choices=["table", "json"],
        help="Display format. (default: table)",
    )
    analyze_parser.add_argument(
        "--audit",
        action="store_true",
        default=False,
        help="Also print the audit trail.",
    )
    analyze_parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Override the configured log level.",
    )

    # -- info ----------------------------------------------------------------
    info_parser = subparsers.add_parser(
        "info",
        help="Show version and effective configuration.",
        description="Display the engine version and the resolved configuration.",
    )
    info_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Engine config file.  Environment variables are applied on top.",
    )

    return parser


# =========================================================================
# Helpers
# =========================================================================

def _read_document(path: Path) -> Any:
    from market_intelligence.infrastructure.serialization import loads_document

    fmt = "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"
    return loads_document(path.read_text(encoding="utf-8"), fmt=fmt)


def _load_config(config_path: str | None):
    from market_intelligence.infrastructure.config import (
        EngineConfig,
        load_config_file,
        load_config_from_env,
    )

    base = load_config_file(config_path) if config_path else EngineConfig()
    return load_config_from_env(base=base)


def _load_replay_agents(path: Path) -> list[Any]:
    from market_intelligence.agents.replay import ReplayAgent

    raw = _read_document(path)
    if isinstance(raw, dict):
        raw = raw.get("signals", [])
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of recorded agent outputs")
    return [ReplayAgent.from_dict(item) for item in raw]


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_analyze(args: argparse.Namespace) -> int:
    """Handle the ``analyze`` subcommand."""
    from market_intelligence.domain.errors import IngestionError
    from market_intelligence.infrastructure.config import configure_logging
    from market_intelligence.domain.events import StageCompleted
    from market_intelligence.infrastructure.event_bus import EventBus, EventStore
    from market_intelligence.infrastructure.market_data import parse_briefing
    from market_intelligence.infrastructure.persistence import InMemoryPersistence
    from market_intelligence.infrastructure.registry import AgentRegistry
    from market_intelligence.presentation.console import ConsoleReport
    from market_intelligence.presentation.export import (
        export_json,
        export_signals_csv,
        outcome_to_dict,
    )
    from market_intelligence.services.orchestrator import MarketAnalysisOrchestrator

    config = _load_config(args.config)
    configure_logging(args.log_level or config.logging.level)

    briefing_path = Path(args.briefing)
    signals_path = Path(args.signals)
    for p in (briefing_path, signals_path):
        if not p.exists():
            print(f"Error: file not found: {p}", file=sys.stderr)
            return 1

    mbd = parse_briefing(_read_document(briefing_path))
    if isinstance(mbd, IngestionError):
        print(f"Error: invalid briefing: {mbd.message}", file=sys.stderr)
        return 1

    registry = AgentRegistry(_load_replay_agents(signals_path))
    bus = EventBus()
    events = EventStore()
    bus.subscribe(StageCompleted, events.append)
    persistence = InMemoryPersistence(
        retention_days=config.logging.audit_trail_retention_days
    )
    orchestrator = MarketAnalysisOrchestrator(
        registry, config=config, persistence=persistence, event_bus=bus
    )

    def _on_signal(signum: int, frame: Any) -> None:
        orchestrator.request_shutdown()

    previous = {
        sig: signal.signal(sig, _on_signal)
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        outcome = asyncio.run(orchestrator.analyze(mbd))
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if args.format == "json":
        print(json.dumps(outcome_to_dict(outcome), indent=2))
    else:
        ConsoleReport().print_outcome(outcome, show_audit=args.audit)
        record = persistence.get_analysis_history(outcome.market_id)[-1]
        print(
            f"Run {outcome.run_id}: {len(events)} stage(s) completed, "
            f"{record.analysis_type} analysis recorded as {record.status}"
        )

    if args.output is not None:
        export_json(outcome, args.output)
        print(f"Exported outcome to {args.output}")
    if args.csv is not None:
        export_signals_csv(outcome, args.csv)
        print(f"Exported signals to {args.csv}")

    return 0 if outcome.ok else 2


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from market_intelligence import __version__
    from market_intelligence.infrastructure.serialization import dumps_yaml

    config = _load_config(args.config)
    print(f"Market Intelligence Engine v{__version__}")
    print()
    print("Effective configuration:")
    print(dumps_yaml(config.to_dict()))
    return 0


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.

    Returns
    -------
    int
        ``0`` on success, ``1`` on usage or input errors, ``2`` when the
        analysis ran but ended in a fatal pipeline error, ``130`` when
        interrupted.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from market_intelligence import __version__
        print(f"market-intelligence {__version__}")
        return 0

    if args.command is None:
        parser.print_help()
        return 0

    handlers: dict[str, Any] = {
        "analyze": _cmd_analyze,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
