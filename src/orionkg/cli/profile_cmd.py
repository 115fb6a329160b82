"""CLI command: orionkg profile, show a user's cognitive profile."""
from __future__ import annotations

import argparse

from orionkg.cli.common import add_snapshot_args, load_engine, print_error
from orionkg.core.errors import GraphError

_LEVEL_STYLE = {
    "fresh": "green",
    "mild": "green",
    "moderate": "yellow",
    "high": "red",
    "severe": "bold red",
}


def run_profile(argv: list[str]) -> int:
    """Entry point for `orionkg profile`."""
    parser = argparse.ArgumentParser(
        prog="orionkg profile",
        description="Show a user's cognitive profile, or list profiled users.",
    )
    parser.add_argument("user_id", nargs="?", default=None, help="User to show.")
    add_snapshot_args(parser)
    args = parser.parse_args(argv)

    from rich.console import Console
    from rich.table import Table

    try:
        engine = load_engine(args)
    except (GraphError, ValueError) as exc:
        print_error(str(exc))
        return 1
    if engine is None:
        return 1

    console = Console()
    users = engine.profiler.users()

    if args.user_id is None:
        if not users:
            console.print("[green]No profiles found.[/green]")
            return 0
        for user_id in users:
            console.print(user_id)
        return 0

    if args.user_id not in users:
        print_error(f"No profile for user: {args.user_id}")
        return 1

    profile = engine.profiler.profile(args.user_id)
    attention = profile.attention_span
    curiosity = profile.curiosity_metrics
    learning = profile.learning_velocity
    fatigue = profile.fatigue_state
    bias = profile.bias_tracking
    level = fatigue.current_level.value

    table = Table(title=f"Profile: {profile.user_id} ({profile.sample_count} samples)", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Fatigue", f"[{_LEVEL_STYLE[level]}]{level}[/{_LEVEL_STYLE[level]}]")
    table.add_row("Fatigue score", f"{fatigue.score:.2f}")
    table.add_row("Break in (min)", f"{fatigue.recommended_break_in / 60:.1f}")
    table.add_row("Focus", f"{attention.focus_score:.2f}")
    table.add_row("Deep reading", f"{attention.deep_reading_ratio:.2f}")
    table.add_row("Topic diversity", f"{curiosity.topic_diversity:.2f}")
    table.add_row("Exploration", f"{curiosity.exploration_score:.2f}")
    table.add_row("Acquisition rate", f"{learning.acquisition_rate:.2f}")
    table.add_row("Source homogeneity", f"{bias.source_homogeneity:.2f}")
    table.add_row("Skew", f"{bias.political_skew:+.2f}")
    if bias.drift_detected:
        table.add_row("Drift", bias.drift_direction or "detected")
    console.print(table)

    recs = engine.profiler.recommendations(args.user_id)
    if recs:
        console.print("[bold]Recommendations:[/bold]")
        for rec in recs:
            console.print(f"  - {rec.message}")
    return 0
