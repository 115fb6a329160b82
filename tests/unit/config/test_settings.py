"""Tests for orionkg.config.settings."""
from __future__ import annotations

import pytest

from orionkg.config import Config
from orionkg.config.constants import (
    DEFAULT_MERGE_THRESHOLD,
    DEFAULT_PORT,
    DEFAULT_TOPIC_THRESHOLD,
)


class TestConfigLoad:
    """Tests for Config.load edge cases."""

    def test_explicit_missing_path_raises(self, tmp_path):
        """Config.load with explicit nonexistent path raises FileNotFoundError."""
        missing = tmp_path / "nonexistent" / "settings.toml"
        with pytest.raises(FileNotFoundError):
            Config.load(config_path=missing)

    def test_default_load_uses_constants(self):
        config = Config.load()
        assert config.graph.merge_threshold == DEFAULT_MERGE_THRESHOLD
        assert config.graph.topic_threshold == DEFAULT_TOPIC_THRESHOLD
        assert config.server.port == DEFAULT_PORT
        assert config.contradictions.enabled is True
        assert config.profile.fatigue_thresholds["severe"] == 0.85

    def test_data_dir_follows_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ORIONKG_DATA_DIR", str(tmp_path / "kg"))
        assert Config.load().data_dir == tmp_path / "kg"

    def test_settings_file_is_read(self, tmp_path):
        settings = tmp_path / "settings.toml"
        settings.write_text(
            "[graph]\n"
            "merge_threshold = 0.9\n"
            "[graph.source_trust]\n"
            '"example.com" = 0.8\n'
            "[profile.indicator_weights]\n"
            "typos = 0.5\n"
            "[server]\n"
            'cors_origins = ["http://localhost:3000"]\n',
            encoding="utf-8",
        )
        config = Config.load(config_path=settings)
        assert config.graph.merge_threshold == 0.9
        assert config.graph.source_trust == {"example.com": 0.8}
        assert config.profile.indicator_weights["typos"] == 0.5
        # Unlisted weights keep their defaults
        assert config.profile.indicator_weights["scroll_speed"] > 0
        assert config.server.cors_origins == ["http://localhost:3000"]


class TestEnvironmentOverrides:
    def test_env_beats_file(self, tmp_path, monkeypatch):
        settings = tmp_path / "settings.toml"
        settings.write_text("[graph]\nmerge_threshold = 0.9\n", encoding="utf-8")
        monkeypatch.setenv("ORIONKG_MERGE_THRESHOLD", "0.75")
        assert Config.load(config_path=settings).graph.merge_threshold == 0.75

    def test_invalid_numeric_env_falls_back(self, monkeypatch):
        monkeypatch.setenv("ORIONKG_PORT", "not-a-port")
        assert Config.load().server.port == DEFAULT_PORT

    def test_bool_env(self, monkeypatch):
        monkeypatch.setenv("ORIONKG_CONTRADICTIONS_ENABLED", "false")
        assert Config.load().contradictions.enabled is False

    def test_cors_origins_env_is_split(self, monkeypatch):
        monkeypatch.setenv("ORIONKG_CORS_ORIGINS", "http://a.test, http://b.test,")
        assert Config.load().server.cors_origins == ["http://a.test", "http://b.test"]
