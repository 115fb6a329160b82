"""Fixtures for API tests: a real engine patched into every router."""
from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from orionkg.api.app import app
from orionkg.ingestion import KnowledgeEngine
from orionkg.storage import GraphSnapshotStore


@pytest.fixture
def snapshot_store(tmp_path) -> GraphSnapshotStore:
    return GraphSnapshotStore(tmp_path / "snapshots")


@pytest.fixture
def client(engine: KnowledgeEngine, snapshot_store: GraphSnapshotStore):
    with (
        patch("orionkg.api.routers.graph.get_engine", return_value=engine),
        patch("orionkg.api.routers.timeline.get_engine", return_value=engine),
        patch("orionkg.api.routers.profile.get_engine", return_value=engine),
        patch("orionkg.api.routers.suppression.get_engine", return_value=engine),
        patch("orionkg.api.routers.events.get_engine", return_value=engine),
        patch("orionkg.api.dependencies.get_engine", return_value=engine),
        patch("orionkg.api.dependencies.get_snapshot_store", return_value=snapshot_store),
    ):
        yield TestClient(app)
