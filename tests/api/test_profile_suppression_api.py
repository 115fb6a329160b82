"""API tests for cognitive profiles, suppression rules and status endpoints."""
from __future__ import annotations

import pytest

from orionkg.config import Config

TIRED = {
    "session_duration": 60,
    "scroll_speed": 3000,
    "read_time": 0,
    "click_events": 30,
    "typo_count": 10,
    "backtrack_count": 10,
    "source_domains": ["news.example"],
}


@pytest.fixture
def config() -> Config:
    return Config.from_dict({"profile": {"ewma_alpha": 1.0}})


class TestProfiles:
    def test_unknown_user_gets_fresh_profile(self, client) -> None:
        data = client.get("/api/profiles/bob").json()
        assert data["user_id"] == "bob"
        assert data["sample_count"] == 0
        assert data["fatigue_state"]["current_level"] == "fresh"
        assert client.get("/api/profiles").json() == []

    def test_sample_recomputes_profile(self, client) -> None:
        resp = client.post("/api/profiles/alice/samples", json=TIRED)
        assert resp.status_code == 200
        data = resp.json()
        assert data["recomputed"] is True
        assert data["profile"]["fatigue_state"]["current_level"] == "severe"
        assert client.get("/api/profiles").json() == ["alice"]

    def test_invalid_sample_is_422(self, client) -> None:
        resp = client.post("/api/profiles/alice/samples", json={**TIRED, "read_time": -5})
        assert resp.status_code == 422

    def test_recommendations_are_logged(self, client) -> None:
        client.post("/api/profiles/alice/samples", json=TIRED)
        data = client.get("/api/profiles/alice/recommendations").json()
        assert data["results"][0]["kind"] == "take_break"
        assert data["results"][0]["priority"] == 0.9

        logged = client.get("/api/timeline", params={"types": "recommendation_generated"}).json()
        assert logged["total"] == len(data["results"])

    def test_break_resets_fatigue(self, client) -> None:
        client.post("/api/profiles/alice/samples", json=TIRED)
        data = client.post("/api/profiles/alice/break").json()
        assert data["fatigue_state"]["current_level"] == "fresh"
        assert data["fatigue_state"]["recommended_break_in"] == 2700


class TestSuppressionRules:
    def test_rule_lifecycle(self, client) -> None:
        created = client.post("/api/suppression/rules", json={"type": "domain", "value": "ads.example.com"})
        assert created.status_code == 201
        rule = created.json()
        assert rule["is_active"] is True
        assert client.get("/api/suppression/rules").json()["total"] == 1

        toggled = client.patch(f"/api/suppression/rules/{rule['id']}", json={"is_active": False})
        assert toggled.json()["is_active"] is False

        deleted = client.delete(f"/api/suppression/rules/{rule['id']}")
        assert deleted.json()["id"] == rule["id"]
        assert client.get("/api/suppression/rules").json()["total"] == 0

    def test_invalid_rule_is_422(self, client) -> None:
        resp = client.post("/api/suppression/rules", json={"type": "colour", "value": "red"})
        assert resp.status_code == 422

    def test_unknown_rule_is_404(self, client) -> None:
        assert client.delete("/api/suppression/rules/rule_missing").status_code == 404
        assert client.patch("/api/suppression/rules/rule_missing", json={"is_active": True}).status_code == 404

    def test_rule_blocks_ingestion(self, client) -> None:
        client.post("/api/suppression/rules", json={"type": "domain", "value": "ads.example.com"})
        resp = client.post(
            "/api/events",
            json={
                "description": "Visited a sponsored page",
                "confidence": 0.7,
                "claims": [{
                    "node_type": "fact",
                    "content": "This blender changes lives",
                    "confidence": 0.9,
                    "sources": ["https://ads.example.com/blender"],
                }],
            },
        )
        data = resp.json()
        assert data["created"] == []
        assert len(data["suppressed"]) == 1
        assert client.get("/api/graph/stats").json()["total_nodes"] == 0
        assert client.get("/api/suppression/rules").json()["results"][0]["match_count"] == 1


class TestStatus:
    def test_health(self, client) -> None:
        data = client.get("/api/health").json()
        assert data["status"] == "ok"
        assert data["version"]

    def test_save_and_list_snapshots(self, client) -> None:
        client.post(
            "/api/events",
            json={
                "description": "Read about tides",
                "confidence": 0.8,
                "claims": [{"node_type": "fact", "content": "The Moon drives tides", "confidence": 0.8}],
            },
        )
        assert client.get("/api/snapshots").json() == []

        resp = client.post("/api/snapshots", json={"label": "nightly"})
        assert resp.status_code == 201
        assert resp.json()["node_count"] == 1

        listed = client.get("/api/snapshots").json()
        assert len(listed) == 1
        assert listed[0]["id"] == resp.json()["id"]
        assert listed[0]["label"] == "nightly"
        assert listed[0]["node_count"] == 1
