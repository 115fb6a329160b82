"""API tests for the knowledge graph and event endpoints."""
from __future__ import annotations

from datetime import timedelta

import pytest

from orionkg.ingestion import KnowledgeEngine


def _post_event(client, *claims, relations=(), **extra):
    body = {
        "description": "Analyzed page",
        "confidence": 0.9,
        "claims": [
            {"node_type": t, "content": c, "confidence": conf, "sources": ["https://wiki.example"]}
            for t, c, conf in claims
        ],
        "relations": list(relations),
        **extra,
    }
    return client.post("/api/events", json=body)


@pytest.fixture
def seeded(client) -> dict[str, str]:
    resp = _post_event(
        client,
        ("concept", "Photosynthesis", 0.9),
        ("fact", "Plants turn sunlight into sugar", 0.8),
        relations=[{"source": 1, "target": 0, "relationship": "describes"}],
    )
    assert resp.status_code == 201
    concept, fact = resp.json()["created"]
    return {"concept": concept, "fact": fact}


class TestEvents:
    def test_ingest_returns_result(self, client) -> None:
        resp = _post_event(client, ("fact", "Bees pollinate flowers", 0.8), id="evt_custom")
        assert resp.status_code == 201
        data = resp.json()
        assert data["event_id"] == "evt_custom"
        assert len(data["created"]) == 1
        assert data["suppressed"] == []

    def test_duplicate_event_is_422(self, client) -> None:
        _post_event(client, ("fact", "Bees pollinate flowers", 0.8), id="evt_dup")
        resp = _post_event(client, ("fact", "Bees pollinate flowers", 0.8), id="evt_dup")
        assert resp.status_code == 422
        assert "already ingested" in resp.json()["detail"]

    def test_bad_node_type_is_422(self, client) -> None:
        resp = _post_event(client, ("gossip", "Something", 0.8))
        assert resp.status_code == 422

    def test_missing_relation_endpoint_is_skipped(self, client) -> None:
        resp = _post_event(
            client,
            ("fact", "Ferns like shade", 0.8),
            relations=[{"source": 0, "target": "node_missing", "relationship": "related_to"}],
        )
        assert resp.status_code == 201
        assert resp.json()["edges"] == []
        assert len(resp.json()["skipped_relations"]) == 1


class TestReads:
    def test_snapshot(self, client, seeded) -> None:
        data = client.get("/api/graph/snapshot").json()
        assert {n["id"] for n in data["nodes"]} == set(seeded.values())
        assert len(data["edges"]) == 1
        assert data["contradictions"] == []

    def test_stats(self, client, seeded) -> None:
        data = client.get("/api/graph/stats").json()
        assert data["total_nodes"] == 2
        assert data["total_edges"] == 1
        assert data["average_connections"] == 1.0
        assert data["density"] == 0.5
        assert data["node_type_distribution"] == {"concept": 1, "fact": 1}

    def test_list_nodes_filters(self, client, seeded) -> None:
        assert client.get("/api/graph/nodes").json()["total"] == 2
        by_type = client.get("/api/graph/nodes", params={"type": "concept"}).json()
        assert [n["id"] for n in by_type["results"]] == [seeded["concept"]]
        by_text = client.get("/api/graph/nodes", params={"q": "sunlight"}).json()
        assert [n["id"] for n in by_text["results"]] == [seeded["fact"]]

    def test_unknown_type_is_422(self, client, seeded) -> None:
        assert client.get("/api/graph/nodes", params={"type": "gossip"}).status_code == 422

    def test_get_node(self, client, seeded) -> None:
        resp = client.get(f"/api/graph/nodes/{seeded['fact']}")
        assert resp.status_code == 200
        assert resp.json()["content"] == "Plants turn sunlight into sugar"
        assert client.get("/api/graph/nodes/node_missing").status_code == 404

    def test_neighbors(self, client, seeded) -> None:
        resp = client.get(f"/api/graph/nodes/{seeded['fact']}/neighbors", params={"direction": "outgoing"})
        data = resp.json()
        assert data["total"] == 1
        assert data["results"][0]["node"]["id"] == seeded["concept"]
        assert data["results"][0]["edge"]["relationship"] == "describes"

        incoming = client.get(f"/api/graph/nodes/{seeded['fact']}/neighbors", params={"direction": "incoming"})
        assert incoming.json()["total"] == 0

    def test_neighbors_bad_direction(self, client, seeded) -> None:
        resp = client.get(f"/api/graph/nodes/{seeded['fact']}/neighbors", params={"direction": "sideways"})
        assert resp.status_code == 422

    def test_neighbors_unknown_node(self, client) -> None:
        assert client.get("/api/graph/nodes/node_missing/neighbors").status_code == 404

    def test_similar(self, client, seeded) -> None:
        resp = client.get(f"/api/graph/nodes/{seeded['fact']}/similar", params={"min_similarity": 0.0})
        assert resp.status_code == 200
        results = resp.json()["results"]
        assert results[0]["node"]["id"] == seeded["concept"]
        # Only the neighbor bonus applies
        assert results[0]["score"] == pytest.approx(0.1)

    def test_pending(self, client, seeded) -> None:
        assert client.get("/api/graph/pending").json()["total"] == 2


class TestUserActions:
    def test_approve(self, client, seeded) -> None:
        resp = client.post(f"/api/graph/nodes/{seeded['fact']}/approve")
        assert resp.json()["approval_status"] == "approved"
        assert client.get("/api/graph/pending").json()["total"] == 1

    def test_reject_with_and_without_reason(self, client, seeded) -> None:
        resp = client.post(f"/api/graph/nodes/{seeded['fact']}/reject", json={"reason": "vague"})
        assert resp.json()["approval_status"] == "rejected"
        assert resp.json()["metadata"]["rejection_reason"] == "vague"
        resp = client.post(f"/api/graph/nodes/{seeded['concept']}/reject")
        assert resp.status_code == 200
        assert client.get("/api/graph/stats").json()["total_nodes"] == 0

    def test_reject_unknown(self, client) -> None:
        assert client.post("/api/graph/nodes/node_missing/reject").status_code == 404

    def test_edit(self, client, seeded) -> None:
        current = client.get(f"/api/graph/nodes/{seeded['fact']}").json()
        resp = client.patch(
            f"/api/graph/nodes/{seeded['fact']}",
            json={
                "content": "Plants turn sunlight into chemical energy",
                "expected_updated_at": current["updated_at"],
                "confidence": 0.95,
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["user_edited"] is True
        assert data["approval_status"] == "edited"
        assert data["confidence"] == 0.95

    def test_stale_edit_is_409(self, client, seeded, engine: KnowledgeEngine) -> None:
        node = engine.query.get_node(seeded["fact"])
        stale = (node.updated_at - timedelta(seconds=5)).isoformat()
        resp = client.patch(
            f"/api/graph/nodes/{seeded['fact']}",
            json={"content": "Different", "expected_updated_at": stale},
        )
        assert resp.status_code == 409
        detail = resp.json()["detail"]
        assert detail["node_id"] == seeded["fact"]
        assert detail["current_updated_at"] == node.updated_at.isoformat()

    def test_edit_requires_content(self, client, seeded) -> None:
        resp = client.patch(f"/api/graph/nodes/{seeded['fact']}", json={"content": ""})
        assert resp.status_code == 422


class TestContradictions:
    @pytest.fixture
    def contradiction_id(self, client) -> str:
        _post_event(client, ("fact", "Paris is the capital of France", 0.9))
        resp = _post_event(client, ("fact", "Paris is not the capital of France", 0.4))
        return resp.json()["contradictions"][0]

    def test_list(self, client, contradiction_id) -> None:
        data = client.get("/api/graph/contradictions").json()
        assert data["total"] == 1
        assert data["results"][0]["id"] == contradiction_id
        assert data["include_resolved"] is False
        assert client.get("/api/graph/stats").json()["contradiction_count"] == 1

    def test_resolve_with_note(self, client, contradiction_id) -> None:
        resp = client.post(
            f"/api/graph/contradictions/{contradiction_id}/resolve",
            json={"resolution": "Checked the atlas"},
        )
        assert resp.status_code == 200
        assert resp.json()["resolved"] is True
        assert client.get("/api/graph/contradictions").json()["total"] == 0
        all_records = client.get("/api/graph/contradictions", params={"include_resolved": True}).json()
        assert all_records["total"] == 1

    def test_supersede(self, client, contradiction_id) -> None:
        resp = client.post(
            f"/api/graph/contradictions/{contradiction_id}/resolve",
            json={"strategy": "supersede", "winner": "b"},
        )
        assert resp.status_code == 200
        assert resp.json()["resolution"].startswith("Kept 'Paris is not the capital of France'")

    def test_resolve_requires_text(self, client, contradiction_id) -> None:
        resp = client.post(f"/api/graph/contradictions/{contradiction_id}/resolve", json={})
        assert resp.status_code == 422

    def test_unknown_strategy(self, client, contradiction_id) -> None:
        resp = client.post(
            f"/api/graph/contradictions/{contradiction_id}/resolve",
            json={"resolution": "x", "strategy": "coin_flip"},
        )
        assert resp.status_code == 422

    def test_unknown_contradiction(self, client) -> None:
        resp = client.post("/api/graph/contradictions/con_missing/resolve", json={"resolution": "x"})
        assert resp.status_code == 404
