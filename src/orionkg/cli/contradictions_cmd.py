"""CLI command: orionkg contradictions, list knowledge graph contradictions."""
from __future__ import annotations

import argparse

from orionkg.cli.common import add_snapshot_args, load_engine, print_error, shorten
from orionkg.core.errors import GraphError


def run_contradictions(argv: list[str]) -> int:
    """Entry point for `orionkg contradictions`."""
    parser = argparse.ArgumentParser(
        prog="orionkg contradictions",
        description="List knowledge graph contradictions.",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="Include resolved contradictions.",
    )
    parser.add_argument("--limit", type=int, default=50, help="Max contradictions to show.")
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

    records = engine.query.contradictions(include_resolved=args.all)[: args.limit]

    console = Console()

    if not records:
        status = "" if args.all else "unresolved "
        console.print(f"[green]No {status}contradictions found.[/green]")
        return 0

    table = Table(
        title=f"Contradictions ({'all' if args.all else 'unresolved only'}): {len(records)}",
        show_lines=True,
    )
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Status", style="cyan", justify="center")
    table.add_column("Claim A", no_wrap=False, max_width=40)
    table.add_column("Claim B", no_wrap=False, max_width=40)
    table.add_column("Trust A/B", justify="right")

    for record in records:
        if not record.resolved:
            status_str = "[yellow]REVIEW[/yellow]" if record.needs_review else "[red]OPEN[/red]"
        else:
            status_str = "[green]RESOLVED[/green]"
        table.add_row(
            record.id,
            status_str,
            shorten(record.claim_a),
            shorten(record.claim_b),
            f"{record.trust_a:.2f}/{record.trust_b:.2f}",
        )

    console.print(table)
    return 0
