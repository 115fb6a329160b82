"""CLI command: orionkg timeline, page through AI activity events."""
from __future__ import annotations

import argparse

from orionkg.cli.common import add_snapshot_args, load_engine, print_error, shorten
from orionkg.core.errors import GraphError


def run_timeline(argv: list[str]) -> int:
    """Entry point for `orionkg timeline`."""
    parser = argparse.ArgumentParser(
        prog="orionkg timeline",
        description="Show recent timeline events, newest first.",
    )
    parser.add_argument(
        "--type",
        dest="types",
        action="append",
        default=None,
        help="Only this event type (repeatable).",
    )
    parser.add_argument("--impact", default=None, help="Only this impact.")
    parser.add_argument("--offset", type=int, default=0, help="Events to skip.")
    parser.add_argument("--limit", type=int, default=20, help="Max events to show.")
    add_snapshot_args(parser)
    args = parser.parse_args(argv)

    from rich.console import Console
    from rich.table import Table

    try:
        engine = load_engine(args)
        if engine is None:
            return 1
        page = engine.timeline.page(args.offset, args.limit, args.types, args.impact)
    except (GraphError, ValueError) as exc:
        print_error(str(exc))
        return 1

    console = Console()

    if not page.events:
        console.print("[green]No timeline events found.[/green]")
        return 0

    table = Table(title=f"Timeline: {len(page.events)} of {page.total}")
    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Event", style="cyan")
    table.add_column("Impact", justify="center")
    table.add_column("Description", no_wrap=False, max_width=60)
    table.add_column("Conf.", justify="right")

    for event in page.events:
        table.add_row(
            event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            event.display_name,
            event.impact.value,
            shorten(event.description),
            f"{event.confidence:.2f}",
        )

    console.print(table)
    if page.has_more:
        console.print(f"[dim]More events: --offset {page.offset + len(page.events)}[/dim]")
    return 0
