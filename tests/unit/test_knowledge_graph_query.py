"""Tests for GraphQueryFacade statistics and views."""
from __future__ import annotations

from datetime import timedelta

import pytest

from orionkg.core.errors import ContradictionNotFoundError, NodeNotFoundError
from orionkg.core.ids import utcnow
from orionkg.knowledge_graph import (
    EntityEdgeStore,
    GraphQueryFacade,
    KnowledgeGraph,
    NodeCandidate,
    NodeType,
)
from orionkg.knowledge_graph.query import compute_statistics


@pytest.fixture
def populated(store: EntityEdgeStore) -> dict[str, str]:
    ids = {
        "python": store.upsert_node(NodeCandidate(NodeType.CONCEPT, "Python programming", 0.9)).node_id,
        "guido": store.upsert_node(NodeCandidate(NodeType.ENTITY, "Guido van Rossum", 0.8)).node_id,
        "snake": store.upsert_node(NodeCandidate(NodeType.FACT, "Pythons are snakes", 0.4)).node_id,
    }
    store.upsert_edge(ids["python"], ids["guido"], "created_by", 1.0)
    store.upsert_edge(ids["python"], ids["snake"], "named_after", 3.0)
    return ids


class TestStatistics:
    def test_empty_graph(self) -> None:
        stats = compute_statistics(KnowledgeGraph())
        assert stats.total_nodes == 0
        assert stats.average_connections == 0.0
        assert stats.density == 0.0
        assert stats.average_confidence == 0.0

    def test_counts(self, store: EntityEdgeStore, populated) -> None:
        stats = GraphQueryFacade(store).statistics()
        assert stats.total_nodes == 3
        assert stats.total_edges == 2
        assert stats.average_connections == pytest.approx(4 / 3)
        assert stats.density == pytest.approx(1 / 3)
        assert stats.average_confidence == pytest.approx(0.7)
        assert stats.average_edge_weight == pytest.approx(2.0)
        assert stats.recent_additions == 3
        assert stats.pending_approvals == 3
        assert stats.node_type_distribution == {"concept": 1, "entity": 1, "fact": 1}
        assert stats.relationship_distribution == {"created_by": 1, "named_after": 1}

    def test_rejected_nodes_and_their_edges_are_excluded(self, store: EntityEdgeStore, populated) -> None:
        store.reject_node(populated["snake"])
        stats = GraphQueryFacade(store).statistics()
        assert stats.total_nodes == 2
        assert stats.total_edges == 1
        assert stats.average_connections == pytest.approx(1.0)

    def test_recent_additions_window(self, store: EntityEdgeStore, populated) -> None:
        later = utcnow() + timedelta(days=2)
        assert GraphQueryFacade(store).statistics(now=later).recent_additions == 0


class TestViews:
    def test_get_node_missing(self, store: EntityEdgeStore) -> None:
        with pytest.raises(NodeNotFoundError):
            GraphQueryFacade(store).get_node("node_missing")

    def test_get_contradiction_missing(self, store: EntityEdgeStore) -> None:
        with pytest.raises(ContradictionNotFoundError):
            GraphQueryFacade(store).get_contradiction("con_missing")

    def test_nodes_by_type_and_pending(self, store: EntityEdgeStore, populated) -> None:
        query = GraphQueryFacade(store)
        assert [n.id for n in query.nodes_by_type("entity")] == [populated["guido"]]
        store.approve_node(populated["guido"])
        assert populated["guido"] not in {n.id for n in query.pending_approvals()}

    def test_live_nodes_excludes_rejected(self, store: EntityEdgeStore, populated) -> None:
        store.reject_node(populated["guido"])
        live = {n.id for n in GraphQueryFacade(store).live_nodes()}
        assert live == {populated["python"], populated["snake"]}

    def test_search(self, store: EntityEdgeStore, populated) -> None:
        query = GraphQueryFacade(store)
        assert [n.id for n in query.search("guido")] == [populated["guido"]]
        assert query.search("   ") == []

    def test_neighbors_accepts_string_direction(self, store: EntityEdgeStore, populated) -> None:
        query = GraphQueryFacade(store)
        outgoing = {n.id for _, n in query.neighbors(populated["python"], "outgoing")}
        assert outgoing == {populated["guido"], populated["snake"]}


class TestFindSimilar:
    def test_ranks_by_overlap(self, store: EntityEdgeStore) -> None:
        base = store.upsert_node(NodeCandidate(NodeType.FACT, "Solar panels convert sunlight to electricity", 0.8))
        close = store.upsert_node(NodeCandidate(NodeType.FACT, "Solar panels produce electricity", 0.8))
        store.upsert_node(NodeCandidate(NodeType.FACT, "Bananas are yellow", 0.8))

        similar = GraphQueryFacade(store).find_similar(base.node_id)

        assert [n.id for n, _ in similar] == [close.node_id]
        assert similar[0][1] == pytest.approx(0.5)

    def test_neighbors_get_a_bonus(self, store: EntityEdgeStore) -> None:
        base = store.upsert_node(NodeCandidate(NodeType.FACT, "Solar panels convert sunlight to electricity", 0.8))
        close = store.upsert_node(NodeCandidate(NodeType.FACT, "Solar panels produce electricity", 0.8))
        store.upsert_edge(base.node_id, close.node_id, "related_to")

        similar = GraphQueryFacade(store).find_similar(base.node_id)
        assert similar[0][1] == pytest.approx(0.6)
