"""Tests for EntityEdgeStore merging, edges, rejection and transactions."""
from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from orionkg.core.errors import (
    DanglingReferenceError,
    NodeNotFoundError,
    StaleEditError,
    ValidationError,
)
from orionkg.knowledge_graph import (
    ApprovalStatus,
    ChangeKind,
    Direction,
    EntityEdgeStore,
    MergeOutcome,
    NodeCandidate,
    NodeType,
)
from orionkg.suppression import SuppressionEngine


def _candidate(content: str, confidence: float = 0.8, source: str = "https://example.org/a", **kwargs) -> NodeCandidate:
    return NodeCandidate(
        type=kwargs.pop("type", NodeType.FACT),
        content=content,
        confidence=confidence,
        sources=(source,),
        **kwargs,
    )


@pytest.fixture
def two_nodes(store: EntityEdgeStore) -> tuple[str, str]:
    a = store.upsert_node(_candidate("Python is a programming language"))
    b = store.upsert_node(_candidate("Guido van Rossum created Python", type=NodeType.ENTITY))
    return a.node_id, b.node_id


class TestNodeUpsert:
    def test_new_candidate_creates_pending_node(self, store: EntityEdgeStore) -> None:
        result = store.upsert_node(_candidate("Water boils at 100 degrees"))
        assert result.outcome == MergeOutcome.CREATED
        node = store.get_node(result.node_id)
        assert node is not None
        assert node.approval_status == ApprovalStatus.PENDING
        assert node.created_at == node.updated_at
        assert node.sources == ("https://example.org/a",)

    def test_similar_candidate_merges(self, store: EntityEdgeStore) -> None:
        first = store.upsert_node(_candidate("Paris is the capital of France", 0.6, "https://a.example"))
        second = store.upsert_node(_candidate("paris is the capital of france", 0.8, "https://b.example"))

        assert second.outcome == MergeOutcome.MERGED
        assert second.node_id == first.node_id
        graph = store.snapshot()
        assert len(graph.nodes) == 1
        node = graph.nodes[first.node_id]
        assert node.sources == ("https://a.example", "https://b.example")
        # Equal trust on both sides averages the confidences
        assert node.confidence == pytest.approx(0.7)
        assert node.content == "paris is the capital of france"

    def test_merge_keeps_higher_confidence_content(self, store: EntityEdgeStore) -> None:
        first = store.upsert_node(_candidate("The Moon orbits the Earth", 0.9))
        store.upsert_node(_candidate("the moon orbits earth", 0.5))
        assert store.get_node(first.node_id).content == "The Moon orbits the Earth"

    def test_different_type_does_not_merge(self, store: EntityEdgeStore) -> None:
        store.upsert_node(_candidate("Rust", type=NodeType.CONCEPT))
        result = store.upsert_node(_candidate("Rust", type=NodeType.ENTITY))
        assert result.outcome == MergeOutcome.CREATED
        assert len(store.snapshot().nodes) == 2

    def test_user_edited_content_survives_merge(self, store: EntityEdgeStore) -> None:
        created = store.upsert_node(_candidate("Paris is the capital of France", 0.5))
        store.edit_node(created.node_id, "PARIS is the capital of France.")

        store.upsert_node(_candidate("Paris is the capital of France", 0.95))

        node = store.get_node(created.node_id)
        assert node.content == "PARIS is the capital of France."
        assert node.user_edited is True

    def test_invalid_candidate_rejected_at_boundary(self) -> None:
        with pytest.raises(ValidationError):
            _candidate("   ")
        with pytest.raises(ValidationError):
            _candidate("Valid content", confidence=1.5)
        with pytest.raises(ValidationError):
            _candidate("Valid content", type="opinion")


class TestEdges:
    def test_repeated_observation_strengthens_edge(self, store: EntityEdgeStore, two_nodes) -> None:
        a, b = two_nodes
        first = store.upsert_edge(a, b, "created_by", 1.0, 0.6)
        second = store.upsert_edge(a, b, "created_by", 1.0, 1.0)

        assert second.id == first.id
        assert first.weight == pytest.approx(1.0)
        assert second.weight == pytest.approx(1.5)
        assert second.confidence == pytest.approx(0.8)
        assert len(store.snapshot().edges) == 1

    def test_weight_never_decreases_and_is_capped(self, store: EntityEdgeStore, two_nodes) -> None:
        a, b = two_nodes
        previous = 0.0
        for _ in range(40):
            edge = store.upsert_edge(a, b, "mentions", 2.0)
            assert edge.weight >= previous
            previous = edge.weight
        assert previous == pytest.approx(store.config.max_edge_weight)

    def test_missing_endpoint_raises(self, store: EntityEdgeStore, two_nodes) -> None:
        a, _ = two_nodes
        with pytest.raises(DanglingReferenceError) as exc_info:
            store.upsert_edge(a, "node_missing", "related_to")
        assert exc_info.value.node_id == "node_missing"
        assert store.snapshot().edges == {}

    def test_rejected_endpoint_raises(self, store: EntityEdgeStore, two_nodes) -> None:
        a, b = two_nodes
        store.reject_node(b)
        with pytest.raises(DanglingReferenceError, match="rejected"):
            store.upsert_edge(a, b, "related_to")

    def test_invalid_edge_input(self, store: EntityEdgeStore, two_nodes) -> None:
        a, b = two_nodes
        with pytest.raises(ValidationError):
            store.upsert_edge(a, b, "  ")
        with pytest.raises(ValidationError):
            store.upsert_edge(a, b, "related_to", observed_weight=-1.0)


class TestNeighbors:
    def test_directions(self, store: EntityEdgeStore, two_nodes) -> None:
        a, b = two_nodes
        store.upsert_edge(a, b, "created_by")

        assert [n.id for _, n in store.neighbors(a, Direction.OUTGOING)] == [b]
        assert list(store.neighbors(a, Direction.INCOMING)) == []
        assert [n.id for _, n in store.neighbors(b, Direction.INCOMING)] == [a]
        assert [n.id for _, n in store.neighbors(b)] == [a]

    def test_bidirectional_edge_traverses_both_ways(self, store: EntityEdgeStore, two_nodes) -> None:
        a, b = two_nodes
        store.upsert_edge(a, b, "related_to", bidirectional=True)
        assert [n.id for _, n in store.neighbors(b, Direction.OUTGOING)] == [a]

    def test_rejected_nodes_are_hidden(self, store: EntityEdgeStore, two_nodes) -> None:
        a, b = two_nodes
        store.upsert_edge(a, b, "created_by")
        store.reject_node(b, reason="wrong")

        assert list(store.neighbors(a)) == []
        assert list(store.neighbors(b)) == []
        # The edge itself is retained
        assert len(store.snapshot().edges) == 1

    def test_unknown_node_raises(self, store: EntityEdgeStore) -> None:
        with pytest.raises(NodeNotFoundError):
            store.neighbors("node_missing")


class TestUserActions:
    def test_reject_is_idempotent(self, store: EntityEdgeStore, two_nodes) -> None:
        a, _ = two_nodes
        events = []
        store.add_commit_listener(events.append)

        first = store.reject_node(a, reason="duplicate")
        second = store.reject_node(a)

        assert first.approval_status == ApprovalStatus.REJECTED
        assert first.metadata["rejection_reason"] == "duplicate"
        assert second == first
        assert len(events) == 1

    def test_approve(self, store: EntityEdgeStore, two_nodes) -> None:
        a, _ = two_nodes
        assert store.approve_node(a).approval_status == ApprovalStatus.APPROVED

    def test_edit_marks_node(self, store: EntityEdgeStore, two_nodes) -> None:
        a, _ = two_nodes
        before = store.get_node(a)
        edited = store.edit_node(a, "Python is a general-purpose language", before.updated_at, 0.95)
        assert edited.user_edited is True
        assert edited.approval_status == ApprovalStatus.EDITED
        assert edited.confidence == 0.95
        assert edited.updated_at >= before.updated_at

    def test_stale_edit_raises_with_current_node(self, store: EntityEdgeStore, two_nodes) -> None:
        a, _ = two_nodes
        current = store.get_node(a)
        with pytest.raises(StaleEditError) as exc_info:
            store.edit_node(a, "Something else", current.updated_at - timedelta(seconds=1))
        assert exc_info.value.current == current
        assert store.get_node(a).content == current.content

    def test_unknown_node_raises(self, store: EntityEdgeStore) -> None:
        with pytest.raises(NodeNotFoundError):
            store.approve_node("node_missing")


class TestTransactions:
    def test_failed_transaction_publishes_nothing(self, store: EntityEdgeStore) -> None:
        events = []
        store.add_commit_listener(events.append)
        with pytest.raises(RuntimeError):
            with store.transaction() as tx:
                tx.upsert_node(_candidate("Half-done work"))
                raise RuntimeError("boom")
        assert store.snapshot().nodes == {}
        assert events == []

    def test_nested_transaction_joins_outer(self, store: EntityEdgeStore) -> None:
        events = []
        store.add_commit_listener(events.append)
        with store.transaction("evt_1") as outer:
            outer.upsert_node(_candidate("First claim about cats"))
            with store.transaction() as inner:
                assert inner is outer
                inner.upsert_node(_candidate("Second claim about dogs"))
            # Nothing published until the outer block exits
            assert store.snapshot().nodes == {}

        assert len(events) == 1
        assert events[0].cause_event_id == "evt_1"
        assert [c.kind for c in events[0].changes] == [ChangeKind.NODE_CREATED, ChangeKind.NODE_CREATED]

    def test_published_snapshot_is_immutable(self, store: EntityEdgeStore) -> None:
        before = store.snapshot()
        store.upsert_node(_candidate("Snapshots do not move"))
        assert before.nodes == {}
        assert len(store.snapshot().nodes) == 1

    def test_no_change_publishes_nothing(self, store: EntityEdgeStore) -> None:
        events = []
        store.add_commit_listener(events.append)
        with store.transaction():
            pass
        assert events == []

    def test_listener_failure_does_not_break_commit(self, store: EntityEdgeStore) -> None:
        def broken(_result) -> None:
            raise RuntimeError("listener bug")

        store.add_commit_listener(broken)
        result = store.upsert_node(_candidate("Still committed"))
        assert store.get_node(result.node_id) is not None

    def test_rolled_back_suppression_is_not_counted(self, config) -> None:
        gate = SuppressionEngine()
        rule = gate.add_rule("keyword", "casino")
        store = EntityEdgeStore(config.graph, suppression=gate)
        with pytest.raises(RuntimeError):
            with store.transaction() as tx:
                assert tx.upsert_node(_candidate("Best casino bonuses online")).outcome == MergeOutcome.REJECTED_BY_SUPPRESSION
                raise RuntimeError("boom")
        assert gate.get(rule.id).match_count == 0

        store.upsert_node(_candidate("Best casino bonuses online"))
        assert gate.get(rule.id).match_count == 1
        assert store.snapshot().nodes == {}

    def test_snapshot_metadata_is_read_only(self, store: EntityEdgeStore) -> None:
        result = store.upsert_node(_candidate("Tea contains caffeine", metadata={"topic": "drinks"}))
        node = store.snapshot().nodes[result.node_id]
        with pytest.raises(TypeError):
            node.metadata["topic"] = "food"
        assert store.get_node(result.node_id).metadata == {"topic": "drinks"}


class TestRejectedNodes:
    def test_reobserved_claim_keeps_rejected_content(self, store: EntityEdgeStore) -> None:
        created = store.upsert_node(_candidate("Coffee cures colds", 0.4, "https://a.example"))
        store.reject_node(created.node_id, reason="wrong")
        events = []
        store.add_commit_listener(events.append)

        again = store.upsert_node(_candidate("coffee cures colds!", 0.9, "https://b.example"))

        assert again.node_id == created.node_id
        node = store.get_node(created.node_id)
        assert node.content == "Coffee cures colds"
        assert node.confidence == pytest.approx(0.4)
        assert node.approval_status == ApprovalStatus.REJECTED
        assert node.sources == ("https://a.example", "https://b.example")
        assert [c.kind for c in events[0].changes] == [ChangeKind.NODE_REOBSERVED]
        assert store.snapshot().contradictions == {}


class TestConcurrentReaders:
    def test_reader_never_sees_partial_commit(self, store: EntityEdgeStore) -> None:
        rounds = 200
        done = threading.Event()
        failures: list[str] = []

        def write() -> None:
            try:
                for i in range(rounds):
                    with store.transaction() as tx:
                        a = tx.upsert_node(_candidate(f"Writer claim {i} about rivers"))
                        b = tx.upsert_node(_candidate(f"Writer entity {i}", type=NodeType.ENTITY))
                        tx.upsert_edge(a.node_id, b.node_id, "mentions")
            finally:
                done.set()

        def read() -> None:
            while not done.is_set():
                graph = store.snapshot()
                for edge in graph.edges.values():
                    if edge.source_id not in graph.nodes or edge.target_id not in graph.nodes:
                        failures.append(f"dangling edge {edge.id}")
                if len(graph.edges) * 2 != len(graph.nodes):
                    failures.append(f"{len(graph.nodes)} nodes with {len(graph.edges)} edges")
                for node in graph.nodes.values():
                    if not node.content:
                        failures.append(f"empty node {node.id}")

        readers = [threading.Thread(target=read) for _ in range(2)]
        writer = threading.Thread(target=write)
        for thread in readers:
            thread.start()
        writer.start()
        writer.join(timeout=30)
        for thread in readers:
            thread.join(timeout=30)

        assert failures == []
        assert len(store.snapshot().edges) == rounds
