#!/usr/bin/env python
"""orionkg command line - read-only views over a saved snapshot."""
from __future__ import annotations

import sys

from orionkg.cli.contradictions_cmd import run_contradictions
from orionkg.cli.profile_cmd import run_profile
from orionkg.cli.stats_cmd import run_stats
from orionkg.cli.timeline_cmd import run_timeline

COMMANDS = {
    "stats": run_stats,
    "contradictions": run_contradictions,
    "timeline": run_timeline,
    "profile": run_profile,
}


def _usage() -> str:
    lines = ["Usage: orionkg <command> [options]", "", "Commands:"]
    lines.extend(f"  {name}" for name in COMMANDS)
    lines.append("")
    lines.append("Run 'orionkg <command> --help' for command options.")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Entry point"""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in ("-h", "--help"):
        print(_usage())
        return 0
    if args[0] == "--version":
        from orionkg import __version__

        print(__version__)
        return 0

    command = COMMANDS.get(args[0])
    if command is None:
        print(f"Error: unknown command '{args[0]}'", file=sys.stderr)
        print(_usage(), file=sys.stderr)
        return 1
    return command(args[1:])


if __name__ == "__main__":
    sys.exit(main())
