"""Status endpoints - health and saved snapshots."""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

import orionkg.api.dependencies as deps
from orionkg.config.constants import APP_VERSION


router = APIRouter()


_SERVER_STARTED_AT = datetime.now(timezone.utc).isoformat()


class SnapshotRequest(BaseModel):
    label: str | None = None


@router.get("/health")
async def get_health():
    return {"status": "ok", "version": APP_VERSION, "server_started_at": _SERVER_STARTED_AT}


@router.get("/snapshots")
def list_snapshots():
    """Saved snapshots, newest first."""
    return [
        {
            "id": s.id,
            "created_at": s.created_at.isoformat(),
            "label": s.label,
            "node_count": s.node_count,
            "edge_count": s.edge_count,
            "event_count": s.event_count,
        }
        for s in deps.get_snapshot_store().list_snapshots()
    ]


@router.post("/snapshots", status_code=201)
def save_snapshot(body: SnapshotRequest | None = None):
    """Persist the current engine state."""
    state = deps.get_engine().export_state()
    snapshot_id = deps.get_snapshot_store().save(state, label=body.label if body else None)
    return {"id": snapshot_id, "node_count": len(state["graph"]["nodes"])}
