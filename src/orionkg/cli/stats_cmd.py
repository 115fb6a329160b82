"""CLI command: orionkg stats, show graph and timeline statistics."""
from __future__ import annotations

import argparse

from orionkg.cli.common import add_snapshot_args, load_engine, print_error
from orionkg.core.errors import GraphError


def run_stats(argv: list[str]) -> int:
    """Entry point for `orionkg stats`."""
    parser = argparse.ArgumentParser(
        prog="orionkg stats",
        description="Show knowledge graph and timeline statistics.",
    )
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

    stats = engine.query.statistics()
    timeline = engine.timeline.stats()

    console = Console()

    table = Table(title="Knowledge Graph", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Nodes", str(stats.total_nodes))
    table.add_row("Edges", str(stats.total_edges))
    table.add_row("Avg connections", f"{stats.average_connections:.2f}")
    table.add_row("Density", f"{stats.density:.4f}")
    table.add_row("Avg confidence", f"{stats.average_confidence:.2f}")
    table.add_row("Avg edge weight", f"{stats.average_edge_weight:.2f}")
    table.add_row("Added last 24h", str(stats.recent_additions))
    table.add_row("Open contradictions", str(stats.contradiction_count))
    table.add_row("Pending approvals", str(stats.pending_approvals))
    console.print(table)

    if stats.node_type_distribution:
        types = Table(title="Node Types")
        types.add_column("Type", style="cyan")
        types.add_column("Count", justify="right")
        for node_type, count in sorted(stats.node_type_distribution.items()):
            types.add_row(node_type, str(count))
        console.print(types)

    events = Table(title="Timeline", show_header=False)
    events.add_column("Metric", style="cyan")
    events.add_column("Value", justify="right")
    events.add_row("Events", str(timeline.total_events))
    events.add_row("Learned", str(timeline.learned_count))
    events.add_row("Ignored", str(timeline.ignored_count))
    events.add_row("Exported", str(timeline.exported_count))
    events.add_row("Influenced", str(timeline.influenced_count))
    events.add_row("Top sources", ", ".join(timeline.top_sources) or "-")
    console.print(events)
    return 0
