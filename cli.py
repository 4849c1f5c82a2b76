"""Audience contagion trends CLI.

Command-line interface for deriving SIS/SEIR parameters, inspecting
forecast scenarios and running the full trend analysis for one item.

Usage:
    python cli.py params --title "Song" --artist "Band" --popularity 80 [--model SEIR]
    python cli.py scenarios --title "Song" --artist "Band" --popularity 80 --genre Pop
    python cli.py analyze --title "Song" --artist "Band" --popularity 80 \\
        [--days 30] [--history-days 180] [--seed 7] [--json] [--csv out.csv]
"""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import re
import sys
import textwrap
import traceback
from typing import Any

import numpy as np


# ===================================================================
# Text formatting utilities
# ===================================================================

def _header(title: str, width: int = 78) -> str:
    """Return a formatted section header."""
    lines = [
        "",
        "=" * width,
        f"  {title}",
        "=" * width,
    ]
    return "\n".join(lines)


def _subheader(title: str, width: int = 78) -> str:
    """Return a formatted sub-section header."""
    return f"\n--- {title} {'-' * max(0, width - len(title) - 5)}"


def _table(headers: list[str], rows: list[list[str]],
           col_widths: list[int] | None = None, indent: int = 2) -> str:
    """Build a simple text table.

    Parameters
    ----------
    headers : column header strings.
    rows : list of row lists (each element is a string).
    col_widths : explicit per-column widths; auto-computed when *None*.
    indent : number of leading spaces.
    """
    if not rows:
        return "  (no data)"

    if col_widths is None:
        col_widths = []
        for i, header in enumerate(headers):
            max_w = len(str(header))
            for row in rows:
                if i < len(row):
                    max_w = max(max_w, len(str(row[i])))
            col_widths.append(max_w + 2)

    prefix = " " * indent
    hdr_line = prefix + "".join(
        str(h).ljust(w) for h, w in zip(headers, col_widths)
    )
    sep_line = prefix + "-" * sum(col_widths)
    body_lines = [
        prefix + "".join(str(c).ljust(w) for c, w in zip(row, col_widths))
        for row in rows
    ]
    return "\n".join([hdr_line, sep_line] + body_lines)


def _kv(key: str, value: Any, indent: int = 4) -> str:
    """Format a key-value pair."""
    return f"{' ' * indent}{key:30s}: {value}"


def _wrap(text: str, width: int = 74, indent: int = 4) -> str:
    """Word-wrap text with indentation."""
    wrapper = textwrap.TextWrapper(
        width=width,
        initial_indent=" " * indent,
        subsequent_indent=" " * indent,
    )
    return wrapper.fill(text)


def _ff(v: float, decimals: int = 4) -> str:
    """Format a float."""
    return f"{v:.{decimals}f}"


# ===================================================================
# Item construction
# ===================================================================

def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _item_from_args(args: argparse.Namespace):
    from trendmodel.types import Item

    return Item(
        id=args.id or f"{_slug(args.artist)}--{_slug(args.title)}",
        title=args.title,
        artist=args.artist,
        popularity=args.popularity,
        album=args.album,
        release_year=args.release_year,
        genres=tuple(args.genre or ()),
    )


def _today(args: argparse.Namespace) -> dt.date:
    if args.today:
        return dt.date.fromisoformat(args.today)
    return dt.date.today()


# ===================================================================
# 1. params subcommand
# ===================================================================

def cmd_params(args: argparse.Namespace) -> int:
    """Show the derived model parameters for an item."""
    from trendmodel.parameters import classify_item, derive_parameters, rate_profile

    item = _item_from_args(args)
    today = _today(args)
    classification = classify_item(item, args.model, today)
    params = derive_parameters(item, args.model, today)

    print(_header("MODEL PARAMETERS"))
    print(_kv("Item", f"{item.title} - {item.artist}"))
    print(_kv("Model", args.model.upper()))
    print(_kv("Rate profile", rate_profile(classification).name))
    print(_kv("Age (years)", classification.age))
    flags = [
        name for name in ("is_new", "is_recent", "is_classic", "is_viral", "is_popular")
        if getattr(classification, name)
    ]
    print(_kv("Classification", ", ".join(flags) if flags else "(none)"))
    print()
    print(_kv("beta (discovery rate)", _ff(params.beta)))
    print(_kv("gamma (loss of interest)", _ff(params.gamma)))
    if params.sigma is not None:
        print(_kv("sigma (conversion rate)", _ff(params.sigma)))
    print(_kv("Initial active listeners", f"{params.initial_infected:,}"))
    print(_kv("Addressable audience", f"{params.total_population:,}"))
    return 0


# ===================================================================
# 2. scenarios subcommand
# ===================================================================

def cmd_scenarios(args: argparse.Namespace) -> int:
    """List forecast scenarios with their weights for an item."""
    from trendmodel.forecaster import choose_scenario
    from trendmodel.parameters import classify_item
    from trendmodel.scenarios import SCENARIO_CATALOG

    item = _item_from_args(args)
    today = _today(args)
    classification = classify_item(item, args.model, today)
    selected, weights = choose_scenario(item, classification, today)

    print(_header("FORECAST SCENARIOS"))
    print(_kv("Item", f"{item.title} - {item.artist}"))
    print(_kv("Date", today.isoformat()))
    print(_kv("Selected", selected.value))
    print()

    headers = ["", "Scenario", "Weight", "Volatile", "Shape"]
    col_widths = [3, 22, 10, 10, 44]
    rows = []
    for scenario, weight in weights.items():
        rows.append([
            "*" if scenario == selected else "",
            scenario.value,
            _ff(weight, 3),
            "yes" if scenario.volatile else "no",
            SCENARIO_CATALOG[scenario].description,
        ])
    print(_table(headers, rows, col_widths))
    return 0


# ===================================================================
# 3. analyze subcommand
# ===================================================================

def cmd_analyze(args: argparse.Namespace) -> int:
    """Run the full trend analysis for an item."""
    import pandas as pd

    from orchestrator.analysis import (
        AnalysisRequest,
        ItemCache,
        TrendAnalyzer,
        result_to_dict,
    )
    from trendmodel.config import TrendAnalysisConfig
    from trendmodel.export import series_to_frame
    from trendmodel.integrator import noise_for_variant

    item = _item_from_args(args)
    today = _today(args)
    config = TrendAnalysisConfig(
        history_days=args.history_days,
        prediction_days=args.days,
    )

    noise_factory = None
    if args.seed is not None:
        rng = np.random.default_rng(args.seed)
        noise_factory = lambda variant: noise_for_variant(variant, config.integrator, rng)  # noqa: E731

    analyzer = TrendAnalyzer(
        config=config,
        cache=ItemCache(),
        noise_factory=noise_factory,
        clock=lambda: today,
    )
    request = AnalysisRequest(
        item_id=item.id,
        variant=args.model,
        item=item,
        prediction_days=args.days,
        history_days=args.history_days,
    )
    result = analyzer.analyze(request)

    if args.csv:
        frame = pd.concat([
            series_to_frame(result.history).assign(kind="historical"),
            series_to_frame(result.predictions).assign(kind="predicted"),
        ])
        frame.to_csv(args.csv)

    if args.json:
        print(json.dumps(result_to_dict(result), indent=2))
        return 0

    insights = result.insights
    metrics = insights.metrics
    rec = insights.recommendation

    print(_header("TREND ANALYSIS"))
    print(_kv("Item", f"{item.title} - {item.artist}"))
    print(_kv("Model", result.variant.value))
    print(_kv("Scenario", result.scenario.value))
    print(_kv("History points", len(result.history)))
    print(_kv("Prediction points", len(result.predictions)))
    print(_kv("Total time (s)", _ff(result.total_duration, 4)))

    print(_subheader("Insights"))
    print(_kv("Peak", f"{insights.peak_value:,} on {insights.peak_date.isoformat()}"))
    print(_kv("Current trend", insights.current_trend.value))
    print(_kv("Future outlook", insights.future_outlook.value))
    print(_kv("Trend slope (per day)", _ff(metrics.slope, 2)))
    print(_kv("Growth potential", _ff(metrics.growth_potential, 3)))
    print(_kv("Volatility", _ff(metrics.volatility, 3)))
    print(_kv("Momentum", _ff(metrics.momentum, 3)))
    print(_kv("Overall trend", _ff(metrics.overall_trend, 3)))

    print(_subheader("Recommendation"))
    print(_wrap(f"{rec.action} ({rec.timing}), confidence {rec.confidence:.0%}"))
    print(_kv("Platforms", ", ".join(rec.platforms)))

    print(_subheader("Predictions"))
    headers = ["Date", "Active", "Susceptible", "Exposed", "Recovered"]
    rows = [
        [
            p.date.isoformat(),
            f"{p.infected:,}",
            f"{p.susceptible:,}",
            "-" if p.exposed is None else f"{p.exposed:,}",
            "-" if p.recovered is None else f"{p.recovered:,}",
        ]
        for p in result.predictions
    ]
    print(_table(headers, rows))
    if args.csv:
        print(_kv("CSV written to", args.csv))
    return 0


# ===================================================================
# Argument parser
# ===================================================================

def _add_item_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--title", required=True, help="Item title")
    p.add_argument("--artist", required=True, help="Creator name")
    p.add_argument(
        "--popularity", type=float, required=True,
        help="Popularity score in [0, 100]",
    )
    p.add_argument("--id", default=None, help="Item id (default: derived from artist/title)")
    p.add_argument("--album", default=None, help="Collection name")
    p.add_argument("--release-year", type=int, default=None, help="Release year")
    p.add_argument(
        "--genre", action="append", default=None,
        help="Genre tag (repeatable)",
    )
    p.add_argument(
        "--model", default="SIS", type=str.upper, choices=["SIS", "SEIR"],
        help="Compartmental model (default: SIS)",
    )
    p.add_argument(
        "--today", default=None,
        help="Reference date as YYYY-MM-DD (default: current date)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="trendmodel",
        description="Model an item's audience with SIS/SEIR contagion dynamics.",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # ---- params ----
    p_params = subparsers.add_parser(
        "params",
        help="Show derived model parameters",
        description="Classify the item and derive its SIS or SEIR parameters.",
    )
    _add_item_arguments(p_params)

    # ---- scenarios ----
    p_scen = subparsers.add_parser(
        "scenarios",
        help="Show forecast scenario weights",
        description="List every forecast scenario with its weight for the "
                    "item and mark the one selected for the reference date.",
    )
    _add_item_arguments(p_scen)

    # ---- analyze ----
    p_analyze = subparsers.add_parser(
        "analyze",
        help="Run the full trend analysis",
        description="Derive parameters, simulate history, forecast, smooth "
                    "and summarise the trajectory into insights.",
    )
    _add_item_arguments(p_analyze)
    p_analyze.add_argument(
        "--days", type=int, default=30,
        help="Prediction horizon in days (default: 30)",
    )
    p_analyze.add_argument(
        "--history-days", type=int, default=180,
        help="Historical window in days (default: 180)",
    )
    p_analyze.add_argument(
        "--seed", type=int, default=None,
        help="Seed for the historical noise (default: nondeterministic)",
    )
    p_analyze.add_argument("--json", action="store_true", help="Print JSON output")
    p_analyze.add_argument("--csv", default=None, help="Write both series to a CSV file")

    return parser


# ===================================================================
# Main entry point
# ===================================================================

_COMMAND_MAP = {
    "params": cmd_params,
    "scenarios": cmd_scenarios,
    "analyze": cmd_analyze,
}


def main(argv: list[str] | None = None) -> int:
    """CLI main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    handler = _COMMAND_MAP.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except Exception as exc:
        print(f"\nError: {exc}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc(file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
