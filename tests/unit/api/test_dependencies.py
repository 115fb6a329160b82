from __future__ import annotations

import pytest

import orionkg.api.dependencies as deps
from orionkg.config import Config
from orionkg.ingestion import ContentAnalysisEvent, KnowledgeEngine
from orionkg.ingestion.models import ClaimCandidate
from orionkg.storage import GraphSnapshotStore


@pytest.fixture(autouse=True)
def reset_dependency_singletons(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(deps, "_config", None)
    monkeypatch.setattr(deps, "_engine", None)
    monkeypatch.setattr(deps, "_snapshot_store", None)


def test_getters_raise_before_initialization() -> None:
    with pytest.raises(RuntimeError, match="not initialized"):
        deps.get_engine()
    with pytest.raises(RuntimeError, match="not initialized"):
        deps.get_config()
    with pytest.raises(RuntimeError, match="not initialized"):
        deps.get_snapshot_store()


def test_initialize_starts_empty_without_snapshot() -> None:
    deps.initialize_services(Config.defaults())

    assert deps.get_engine().query.statistics().total_nodes == 0
    assert deps.get_snapshot_store().db_path.exists()


def test_initialize_restores_latest_snapshot() -> None:
    config = Config.defaults()
    engine = KnowledgeEngine(config)
    engine.ingest(ContentAnalysisEvent(
        description="Read about rivers",
        confidence=0.8,
        claims=(ClaimCandidate(node_type="fact", content="The Nile flows north", confidence=0.8),),
    ))
    GraphSnapshotStore(config.data_dir).save(engine.export_state())

    deps.initialize_services(config)

    restored = deps.get_engine().query.live_nodes()
    assert [n.content for n in restored] == ["The Nile flows north"]
    assert deps.get_config() is config


def test_shutdown_clears_services() -> None:
    deps.initialize_services(Config.defaults())
    deps.shutdown_services()
    with pytest.raises(RuntimeError):
        deps.get_engine()
