"""
Command-line interface for SmithLab.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal

from smithlab import __version__
from smithlab.core.config_loader import example_strategy, load_strategy
from smithlab.core.errors import ConfigError, ConfigValidationError, SimulationError
from smithlab.core.kinds import ScenarioKind
from smithlab.core.orchestrator import StrategyOrchestrator
from smithlab.reporting.audit import AuditTrail
from smithlab.reporting.series import ChartSeriesBuilder


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal, dates, and objects exposing to_dict()."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, date):
            return obj.isoformat()
        elif hasattr(obj, "to_dict"):
            return obj.to_dict()
        return super().default(obj)


def _save_json(path: str, data: dict) -> None:
    """Save data as JSON to file path."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, cls=DecimalEncoder)


def _print_run_summary(result) -> None:
    """Print run summary to stdout."""
    metrics = result.metrics
    lengths = ", ".join(
        f"{kind.value}: {len(entries)} months" for kind, entries in result.entries.items()
    )
    print(f"Simulated {result.strategy_id} ({lengths})")
    for kind, month in metrics.payoff_months.items():
        label = f"month {month}" if month is not None else "not within horizon"
        print(f"  {kind.value} primary payoff: {label}")
    print(f"  Interest saved:   {metrics.total_interest_saved:,.2f}")
    print(f"  Tax benefit:      {metrics.total_tax_benefit:,.2f}")
    print(f"  HELOC interest:   {metrics.total_heloc_interest:,.2f}")
    print(f"  Net benefit:      {metrics.net_benefit:,.2f}")
    if metrics.months_accelerated is not None:
        print(f"  Months accelerated: {metrics.months_accelerated}")
    if metrics.stopped:
        print(f"  Stopped at month {metrics.stop_month}: {metrics.stop_reason}")


def cmd_example(_) -> int:
    """Print a complete Modified Smith strategy as JSON."""
    json.dump(example_strategy(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_validate(args) -> int:
    """Validate a strategy file."""
    try:
        config = load_strategy(args.input)
    except (ConfigError, FileNotFoundError) as e:
        errors = {"document": [str(e)]}
    else:
        errors = config.validate()

    if args.format == "json":
        report = {"is_valid": not errors, "exit_code": 1 if errors else 0, "errors": errors}
        json.dump(report, sys.stdout, indent=2)
        sys.stdout.write("\n")
    elif errors:
        print("Validation failed:")
        for field, messages in errors.items():
            for message in messages:
                print(f"  {field}: {message}")
    else:
        print("Strategy is valid")
    return 1 if errors else 0


def cmd_run(args) -> int:
    """Run a strategy file and export results."""
    try:
        config = load_strategy(args.input)
        start = date.fromisoformat(args.start)
        result = StrategyOrchestrator().run(config, start=start)
    except ConfigValidationError as e:
        print("Invalid strategy:", file=sys.stderr)
        for field, messages in e.errors.items():
            for message in messages:
                print(f"  {field}: {message}", file=sys.stderr)
        return 1
    except (ConfigError, SimulationError, FileNotFoundError, ValueError) as e:
        print(f"Error running strategy: {e}", file=sys.stderr)
        return 1

    _print_run_summary(result)

    if args.output:
        builder = ChartSeriesBuilder(result.entries)
        payload = {
            "strategy": config.summary(),
            "summary": result.metrics.to_dict(),
            "series": builder.all_series(),
            "ledgers": {
                kind.value: [entry.to_dict() for entry in entries]
                for kind, entries in result.entries.items()
            },
        }
        _save_json(args.output, payload)
        print(f"Results saved to {args.output}")

    if args.csv:
        audit = AuditTrail.from_result(config, result)
        with open(args.csv, "w", encoding="utf-8", newline="") as f:
            f.write(audit.export_csv(year=args.year))
        print(f"Ledger CSV saved to {args.csv}")

    return 0


def cmd_audit(args) -> int:
    """Print the audit report of a strategy as JSON."""
    try:
        config = load_strategy(args.input)
        result = StrategyOrchestrator().run(config, start=date.fromisoformat(args.start))
    except (ConfigError, SimulationError, FileNotFoundError, ValueError) as e:
        print(f"Error running strategy: {e}", file=sys.stderr)
        return 1

    audit = AuditTrail.from_result(config, result)
    report = audit.annual_report(args.year) if args.year else audit.summary_report()
    if report is None:
        scenario = result.metrics.strategy_scenario or ScenarioKind.BASELINE
        print(f"No {scenario.value} entries for the requested period", file=sys.stderr)
        return 1
    json.dump(report, sys.stdout, indent=2, cls=DecimalEncoder)
    sys.stdout.write("\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smithlab", description="SmithLab - Debt-optimization ledger simulator"
    )

    # Version argument
    parser.add_argument("--version", action="version", version=f"SmithLab {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example", help="Print a complete Modified Smith strategy JSON"
    )
    example_parser.set_defaults(func=cmd_example)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a strategy file")
    validate_parser.add_argument(
        "-i", "--input", required=True, help="Input strategy YAML/JSON file"
    )
    validate_parser.add_argument(
        "--format", choices=["human", "json"], default="human", help="Output format"
    )
    validate_parser.set_defaults(func=cmd_validate)

    # Run command
    run_parser = subparsers.add_parser(
        "run", help="Simulate a strategy and export results"
    )
    run_parser.add_argument(
        "-i", "--input", required=True, help="Input strategy YAML/JSON file"
    )
    run_parser.add_argument("-o", "--output", help="Output results JSON file")
    run_parser.add_argument(
        "--start", default="2026-01-01", help="Start month (YYYY-MM-DD)"
    )
    run_parser.add_argument("--csv", help="Write the strategy ledger as CSV")
    run_parser.add_argument(
        "--year", type=int, help="Restrict the CSV export to one calendar year"
    )
    run_parser.set_defaults(func=cmd_run)

    # Audit command
    audit_parser = subparsers.add_parser(
        "audit", help="Print the tax audit report of a strategy"
    )
    audit_parser.add_argument(
        "-i", "--input", required=True, help="Input strategy YAML/JSON file"
    )
    audit_parser.add_argument(
        "--start", default="2026-01-01", help="Start month (YYYY-MM-DD)"
    )
    audit_parser.add_argument(
        "--year", type=int, help="Annual report for this year (default: summary)"
    )
    audit_parser.set_defaults(func=cmd_audit)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
