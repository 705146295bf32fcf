from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from quantrack.diagnostics import check_consistency
from quantrack.errors import InvalidQuantileError
from quantrack.histograms import FlatHistogram
from quantrack.models import ConsistencyIssue, SimulationConfig
from quantrack.reporters import RichReporter
from quantrack.tracker import QuantileTracker
from quantrack.window import SlidingWindowTracker

_DEFAULT_QUANTILES = "1/100,1/2,99/100"


def _split_quantiles(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quantrack", description="Exact streaming histogram quantiles"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser(
        "simulate", help="Run a random sliding-window workload"
    )
    simulate.add_argument("--bins", type=int, default=32, help="Histogram bins")
    simulate.add_argument(
        "--window", type=int, default=100, help="Samples kept in the window"
    )
    simulate.add_argument(
        "--steps",
        type=int,
        default=10_000,
        help="Replacements after the window fills",
    )
    simulate.add_argument(
        "--quantiles",
        type=str,
        default=_DEFAULT_QUANTILES,
        help="Comma-separated fractions, e.g. 1/2,99/100 or 0.95",
    )
    simulate.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate.add_argument(
        "--check",
        action="store_true",
        help="Verify every quantile against a full rescan after each step",
    )

    scan = subparsers.add_parser(
        "scan", help="Track quantiles over bin indices read from a file"
    )
    scan.add_argument(
        "source",
        type=str,
        nargs="?",
        default="-",
        help="File of whitespace-separated bin indices ('-' for stdin)",
    )
    scan.add_argument(
        "--bins",
        type=int,
        default=None,
        help="Histogram bins (default: largest index + 1)",
    )
    scan.add_argument(
        "--quantiles",
        type=str,
        default=_DEFAULT_QUANTILES,
        help="Comma-separated fractions, e.g. 1/2,99/100 or 0.95",
    )
    return parser


def _render_issues(console: Console, step: int, issues: list[ConsistencyIssue]) -> None:
    table = Table(title=f"Consistency issues after step {step}")
    table.add_column("Quantile", style="bold")
    table.add_column("Kind")
    table.add_column("Message")
    for issue in issues:
        table.add_row(issue.quantile, issue.kind, issue.message)
    console.print(table)


def _run_simulate(args: argparse.Namespace, *, console: Console) -> int:
    try:
        config = SimulationConfig(
            bins=args.bins,
            window=args.window,
            steps=args.steps,
            quantiles=_split_quantiles(args.quantiles),
            seed=args.seed,
            check=args.check,
        )
    except ValidationError as exc:
        console.print(f"Invalid simulation settings: {exc.error_count()} error(s)")
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            console.print(f"  {location}: {error['msg']}")
        return 2

    histogram = FlatHistogram(config.bins)
    try:
        tracker = QuantileTracker(histogram, config.quantiles)
    except InvalidQuantileError as exc:
        console.print(str(exc))
        return 2

    window = SlidingWindowTracker(tracker, config.window)
    rng = np.random.default_rng(config.seed)
    for step in range(config.window + config.steps):
        window.push(int(rng.integers(0, config.bins)))
        if config.check:
            issues = check_consistency(tracker)
            if issues:
                _render_issues(console, step, issues)
                return 1

    RichReporter(console).render(tracker.snapshot(), histogram)
    if config.check:
        console.print(
            f"[green]Consistent[/green] after {config.window + config.steps:,} steps."
        )
    return 0


def _read_indices(source: str) -> list[int]:
    if source == "-":
        text = sys.stdin.read()
    else:
        text = Path(source).read_text()
    return [int(token) for token in text.split()]


def _run_scan(args: argparse.Namespace, *, console: Console) -> int:
    try:
        indices = _read_indices(args.source)
    except FileNotFoundError:
        console.print(f"Input not found: {args.source}")
        return 2
    except ValueError as exc:
        console.print(f"Invalid bin index: {exc}")
        return 2

    bins = args.bins
    if bins is None:
        bins = max((index for index in indices if index >= 0), default=0) + 1
    if bins <= 0:
        console.print("--bins must be positive.")
        return 2

    try:
        tracker = QuantileTracker(
            FlatHistogram(bins), _split_quantiles(args.quantiles)
        )
    except InvalidQuantileError as exc:
        console.print(str(exc))
        return 2

    rejected = sum(1 for index in indices if not tracker.insert(index))
    RichReporter(console).render(tracker.snapshot(), tracker.histogram)
    if rejected:
        console.print(f"[yellow]Rejected {rejected:,} out-of-range samples.[/yellow]")
    return 0


def run_cli(
    argv: Sequence[str] | None = None, *, console: Console | None = None
) -> int:
    logging.getLogger().setLevel(logging.ERROR)
    parser = _build_parser()
    args = parser.parse_args(argv)
    out_console = console or Console()
    if args.command == "simulate":
        return _run_simulate(args, console=out_console)
    if args.command == "scan":
        return _run_scan(args, console=out_console)
    parser.error("Unknown command.")
    return 2


def main() -> None:
    raise SystemExit(run_cli())
