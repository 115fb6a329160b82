"""Shared service singletons for the FastAPI app."""
from __future__ import annotations

import logging
from threading import Lock

from orionkg.config import Config
from orionkg.ingestion import KnowledgeEngine
from orionkg.storage import GraphSnapshotStore

logger = logging.getLogger(__name__)

_config: Config | None = None
_engine: KnowledgeEngine | None = None
_snapshot_store: GraphSnapshotStore | None = None

_service_lock = Lock()


def initialize_services(config: Config | None = None) -> None:
    """Build the engine and restore the latest saved snapshot, if any."""
    global _config, _engine, _snapshot_store

    with _service_lock:
        _config = config or Config.load()
        _engine = KnowledgeEngine(_config)
        _snapshot_store = GraphSnapshotStore(_config.data_dir)

        state = _snapshot_store.load()
        if state is not None:
            _engine.load_state(state)
        else:
            logger.info("No snapshot in %s, starting with an empty graph", _config.data_dir)


def shutdown_services() -> None:
    global _config, _engine, _snapshot_store

    with _service_lock:
        _config = None
        _engine = None
        _snapshot_store = None


def get_config() -> Config:
    """Get configuration singleton."""
    if _config is None:
        raise RuntimeError("Services not initialized. Call initialize_services() first.")
    return _config


def get_engine() -> KnowledgeEngine:
    """Get knowledge engine singleton."""
    if _engine is None:
        raise RuntimeError("Services not initialized. Call initialize_services() first.")
    return _engine


def get_snapshot_store() -> GraphSnapshotStore:
    """Get snapshot store singleton."""
    if _snapshot_store is None:
        raise RuntimeError("Services not initialized. Call initialize_services() first.")
    return _snapshot_store
