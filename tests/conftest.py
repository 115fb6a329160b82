"""Pytest configuration and fixtures for orionkg tests."""

from __future__ import annotations

import os

import pytest

from orionkg.config import Config
from orionkg.ingestion import KnowledgeEngine
from orionkg.knowledge_graph import EntityEdgeStore


@pytest.fixture(autouse=True)
def _isolate_orionkg_data_dir(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.startswith("ORIONKG_"):
            monkeypatch.delenv(name, raising=False)
    data_dir = tmp_path / ".orionkg"
    (data_dir / "config").mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("ORIONKG_DATA_DIR", str(data_dir))


@pytest.fixture
def config() -> Config:
    return Config.defaults()


@pytest.fixture
def store(config) -> EntityEdgeStore:
    return EntityEdgeStore(config.graph)


@pytest.fixture
def engine(config) -> KnowledgeEngine:
    return KnowledgeEngine(config)
