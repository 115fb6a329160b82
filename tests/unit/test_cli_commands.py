"""Tests for the orionkg command line."""
from __future__ import annotations

from pathlib import Path

import pytest

from orionkg import __version__
from orionkg.cli.main import main
from orionkg.ingestion import ClaimCandidate, ContentAnalysisEvent, KnowledgeEngine
from orionkg.profile import BehavioralSample
from orionkg.storage import GraphSnapshotStore


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    engine = KnowledgeEngine()
    engine.ingest(ContentAnalysisEvent(
        description="Read about Paris",
        confidence=0.9,
        sources=("https://atlas.example",),
        claims=(
            ClaimCandidate("fact", "Paris is the capital of France", 0.9),
            ClaimCandidate("entity", "Eiffel Tower", 0.8),
        ),
    ))
    engine.ingest(ContentAnalysisEvent(
        description="Read a forum post",
        confidence=0.5,
        claims=(ClaimCandidate("fact", "Paris is not the capital of France", 0.4),),
    ))
    engine.add_behavior_sample("alice", BehavioralSample(
        session_duration=60, scroll_speed=3000, read_time=0, click_events=30,
        typo_count=10, backtrack_count=10,
    ))
    target = tmp_path / "snapshots"
    GraphSnapshotStore(target).save(engine.export_state())
    return target


class TestMain:
    def test_usage(self, capsys) -> None:
        assert main([]) == 0
        assert "Usage: orionkg" in capsys.readouterr().out

    def test_version(self, capsys) -> None:
        assert main(["--version"]) == 0
        assert capsys.readouterr().out.strip() == __version__

    def test_unknown_command(self, capsys) -> None:
        assert main(["frobnicate"]) == 1
        assert "unknown command 'frobnicate'" in capsys.readouterr().err

    def test_missing_snapshot(self, capsys) -> None:
        assert main(["stats"]) == 1
        assert "No saved snapshot found" in capsys.readouterr().err


class TestStats:
    def test_tables(self, data_dir: Path, capsys) -> None:
        assert main(["stats", "--data-dir", str(data_dir)]) == 0
        out = capsys.readouterr().out
        assert "Knowledge Graph" in out
        assert "Node Types" in out
        assert "Timeline" in out
        assert "atlas.example" in out

    def test_unknown_snapshot_id(self, data_dir: Path, capsys) -> None:
        assert main(["stats", "--data-dir", str(data_dir), "--snapshot", "snap_missing"]) == 1
        assert "Snapshot not found: snap_missing" in capsys.readouterr().err


class TestContradictions:
    def test_lists_open(self, data_dir: Path, capsys) -> None:
        assert main(["contradictions", "--data-dir", str(data_dir)]) == 0
        out = capsys.readouterr().out
        assert "Contradictions (unresolved only): 1" in out
        assert "OPEN" in out

    def test_none_found(self, tmp_path: Path, capsys) -> None:
        GraphSnapshotStore(tmp_path / "empty").save(KnowledgeEngine().export_state())
        assert main(["contradictions", "--data-dir", str(tmp_path / "empty")]) == 0
        assert "No unresolved contradictions found." in capsys.readouterr().out


class TestTimeline:
    def test_filtered_page(self, data_dir: Path, capsys) -> None:
        argv = ["timeline", "--data-dir", str(data_dir), "--type", "contradiction_detected"]
        assert main(argv) == 0
        out = capsys.readouterr().out
        assert "Timeline: 1 of 1" in out
        assert "Contradiction Found" in out

    def test_bad_filter(self, data_dir: Path, capsys) -> None:
        assert main(["timeline", "--data-dir", str(data_dir), "--impact", "forgotten"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_empty_filter(self, data_dir: Path, capsys) -> None:
        assert main(["timeline", "--data-dir", str(data_dir), "--type", "user_correction"]) == 0
        assert "No timeline events found." in capsys.readouterr().out


class TestProfile:
    def test_lists_users(self, data_dir: Path, capsys) -> None:
        assert main(["profile", "--data-dir", str(data_dir)]) == 0
        assert capsys.readouterr().out.strip() == "alice"

    def test_shows_profile_and_recommendations(self, data_dir: Path, capsys) -> None:
        assert main(["profile", "alice", "--data-dir", str(data_dir)]) == 0
        out = capsys.readouterr().out
        assert "Profile: alice (1 samples)" in out
        assert "severe" in out
        assert "take a short break" in out

    def test_unknown_user(self, data_dir: Path, capsys) -> None:
        assert main(["profile", "bob", "--data-dir", str(data_dir)]) == 1
        assert "No profile for user: bob" in capsys.readouterr().err
