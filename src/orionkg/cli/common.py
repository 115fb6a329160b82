"""Helpers shared by the CLI commands."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from orionkg.config import Config
from orionkg.config.constants import ERROR_NO_SNAPSHOT
from orionkg.ingestion import KnowledgeEngine
from orionkg.storage import GraphSnapshotStore


def print_error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)


def add_snapshot_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--data-dir", default=None, help="Override the data directory.")
    parser.add_argument("--snapshot", default=None, help="Snapshot id (default: latest).")


def load_engine(args: argparse.Namespace) -> KnowledgeEngine | None:
    """Rebuild an engine from a saved snapshot; prints and returns None if there is none."""
    config = Config.load()
    data_dir = Path(args.data_dir).expanduser() if args.data_dir else config.data_dir
    store = GraphSnapshotStore(data_dir)
    state = store.load(args.snapshot)
    if state is None:
        if args.snapshot:
            print_error(f"Snapshot not found: {args.snapshot}")
        else:
            print_error(ERROR_NO_SNAPSHOT.format(path=store.db_path))
        return None
    engine = KnowledgeEngine(config)
    engine.load_state(state)
    return engine


def shorten(text: str, width: int = 60) -> str:
    return (text[:width] + "…") if len(text) > width else text
