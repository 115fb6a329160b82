"""DuckDB-backed persistence for serialized engine state."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from orionkg.config.constants import SNAPSHOT_DB_FILE
from orionkg.core.ids import ensure_utc, make_id, utcnow
from orionkg.storage.serializers import FORMAT_VERSION

logger = logging.getLogger(__name__)

# (table, key in serialized state, extra indexed columns taken from each row)
_ENTITY_TABLES: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("snapshot_nodes", "nodes", ("type", "approval_status")),
    ("snapshot_edges", "edges", ("source_id", "target_id")),
    ("snapshot_contradictions", "contradictions", ("resolved",)),
    ("snapshot_rules", "suppression_rules", ("type",)),
    ("snapshot_events", "timeline", ("timestamp", "type")),
)


@dataclass
class SnapshotInfo:
    id: str
    created_at: datetime
    label: str | None
    node_count: int
    edge_count: int
    event_count: int


def _naive_utc(value: datetime) -> datetime:
    return ensure_utc(value).replace(tzinfo=None)


class GraphSnapshotStore:
    """Saves and restores whole-engine snapshots, one table per entity kind."""

    def __init__(self, data_dir: Path) -> None:
        self._db_path = Path(data_dir).expanduser() / SNAPSHOT_DB_FILE
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self):
        import duckdb
        return duckdb.connect(database=str(self._db_path))

    def _ensure_tables(self) -> None:
        con = self._connect()
        try:
            con.execute("""
                CREATE TABLE IF NOT EXISTS graph_snapshots (
                    id              TEXT PRIMARY KEY,
                    seq             INTEGER NOT NULL,
                    created_at      TIMESTAMP NOT NULL,
                    label           TEXT,
                    version         INTEGER NOT NULL,
                    last_updated    TEXT NOT NULL,
                    node_count      INTEGER NOT NULL,
                    edge_count      INTEGER NOT NULL,
                    event_count     INTEGER NOT NULL
                )
            """)
            for table, _, columns in _ENTITY_TABLES:
                extra = "".join(f",\n                    {col} TEXT" for col in columns)
                con.execute(f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        snapshot_id     TEXT NOT NULL,
                        position        INTEGER NOT NULL,
                        id              TEXT NOT NULL,
                        payload         TEXT NOT NULL{extra}
                    )
                """)
                con.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{table}_snapshot ON {table}(snapshot_id)"
                )
            con.execute("""
                CREATE TABLE IF NOT EXISTS snapshot_profiles (
                    snapshot_id     TEXT NOT NULL,
                    user_id         TEXT NOT NULL,
                    payload         TEXT NOT NULL
                )
            """)
        finally:
            con.close()

    # ------------------------------------------------------------------
    # Save / load
    # ------------------------------------------------------------------

    def save(self, state: dict[str, Any], label: str | None = None) -> str:
        """Persist a state produced by ``KnowledgeEngine.export_state``."""
        snapshot_id = make_id("snap")
        graph = state["graph"]
        rows = {
            "nodes": graph.get("nodes", []),
            "edges": graph.get("edges", []),
            "contradictions": graph.get("contradictions", []),
            "suppression_rules": state.get("suppression_rules", []),
            "timeline": state.get("timeline", []),
        }

        con = self._connect()
        try:
            con.begin()
            try:
                seq = con.execute("SELECT COALESCE(MAX(seq), 0) + 1 FROM graph_snapshots").fetchone()[0]
                con.execute(
                    """
                    INSERT INTO graph_snapshots
                        (id, seq, created_at, label, version, last_updated,
                         node_count, edge_count, event_count)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        snapshot_id,
                        seq,
                        _naive_utc(utcnow()),
                        label,
                        state.get("version", FORMAT_VERSION),
                        graph["last_updated"],
                        len(rows["nodes"]),
                        len(rows["edges"]),
                        len(rows["timeline"]),
                    ],
                )
                for table, key, columns in _ENTITY_TABLES:
                    items = rows[key]
                    if not items:
                        continue
                    placeholders = ", ".join("?" for _ in range(4 + len(columns)))
                    col_sql = ", ".join(("snapshot_id", "position", "id", "payload") + columns)
                    con.executemany(
                        f"INSERT INTO {table} ({col_sql}) VALUES ({placeholders})",
                        [
                            [snapshot_id, pos, item["id"], json.dumps(item)]
                            + [str(item.get(col)) for col in columns]
                            for pos, item in enumerate(items)
                        ],
                    )
                profiles = state.get("profiles", [])
                if profiles:
                    con.executemany(
                        "INSERT INTO snapshot_profiles (snapshot_id, user_id, payload) VALUES (?, ?, ?)",
                        [[snapshot_id, p["user_id"], json.dumps(p)] for p in profiles],
                    )
                con.commit()
            except Exception:
                con.rollback()
                raise
        finally:
            con.close()

        logger.info("Saved snapshot %s (%d nodes)", snapshot_id, len(rows["nodes"]))
        return snapshot_id

    def load(self, snapshot_id: str | None = None) -> dict[str, Any] | None:
        """Rebuild a serialized state; the latest snapshot when no id is given."""
        con = self._connect()
        try:
            if snapshot_id is None:
                row = con.execute(
                    "SELECT id, version, last_updated FROM graph_snapshots ORDER BY seq DESC LIMIT 1"
                ).fetchone()
            else:
                row = con.execute(
                    "SELECT id, version, last_updated FROM graph_snapshots WHERE id = ?",
                    [snapshot_id],
                ).fetchone()
            if row is None:
                return None
            snap_id, version, last_updated = row

            loaded: dict[str, list[dict[str, Any]]] = {}
            for table, key, _ in _ENTITY_TABLES:
                payloads = con.execute(
                    f"SELECT payload FROM {table} WHERE snapshot_id = ? ORDER BY position",
                    [snap_id],
                ).fetchall()
                loaded[key] = [json.loads(p[0]) for p in payloads]
            profiles = con.execute(
                "SELECT payload FROM snapshot_profiles WHERE snapshot_id = ? ORDER BY user_id",
                [snap_id],
            ).fetchall()
        finally:
            con.close()

        return {
            "version": version,
            "graph": {
                "nodes": loaded["nodes"],
                "edges": loaded["edges"],
                "contradictions": loaded["contradictions"],
                "last_updated": last_updated,
            },
            "suppression_rules": loaded["suppression_rules"],
            "timeline": loaded["timeline"],
            "profiles": [json.loads(p[0]) for p in profiles],
        }

    def list_snapshots(self) -> list[SnapshotInfo]:
        con = self._connect()
        try:
            rows = con.execute(
                """
                SELECT id, created_at, label, node_count, edge_count, event_count
                FROM graph_snapshots ORDER BY seq DESC
                """
            ).fetchall()
        finally:
            con.close()
        return [
            SnapshotInfo(
                id=r[0],
                created_at=ensure_utc(r[1] if isinstance(r[1], datetime) else datetime.fromisoformat(str(r[1]))),
                label=r[2],
                node_count=r[3],
                edge_count=r[4],
                event_count=r[5],
            )
            for r in rows
        ]

    def delete(self, snapshot_id: str) -> bool:
        con = self._connect()
        try:
            exists = con.execute(
                "SELECT COUNT(*) FROM graph_snapshots WHERE id = ?", [snapshot_id]
            ).fetchone()[0]
            if exists == 0:
                return False
            for table, _, _ in _ENTITY_TABLES:
                con.execute(f"DELETE FROM {table} WHERE snapshot_id = ?", [snapshot_id])
            con.execute("DELETE FROM snapshot_profiles WHERE snapshot_id = ?", [snapshot_id])
            con.execute("DELETE FROM graph_snapshots WHERE id = ?", [snapshot_id])
        finally:
            con.close()
        return True
