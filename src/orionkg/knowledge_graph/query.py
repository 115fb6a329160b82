"""Read-only statistics and views over the committed graph."""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterator

import numpy as np

from orionkg.core.errors import ContradictionNotFoundError, NodeNotFoundError
from orionkg.core.ids import utcnow
from orionkg.knowledge_graph.models import (
    ApprovalStatus,
    Contradiction,
    Direction,
    GraphStatistics,
    KnowledgeEdge,
    KnowledgeGraph,
    KnowledgeNode,
    NodeType,
    coerce_node_type,
)
from orionkg.knowledge_graph.similarity import normalize, similarity
from orionkg.knowledge_graph.store import EntityEdgeStore, GraphState, iter_neighbors

RECENT_WINDOW = timedelta(hours=24)
CONNECTION_BONUS = 0.1


def live_edges(graph: KnowledgeGraph) -> list[KnowledgeEdge]:
    """Edges whose endpoints both exist and are not rejected."""
    nodes = graph.nodes
    out = []
    for edge in graph.edges.values():
        source = nodes.get(edge.source_id)
        target = nodes.get(edge.target_id)
        if source is None or target is None or source.is_rejected or target.is_rejected:
            continue
        out.append(edge)
    return out


def compute_statistics(graph: KnowledgeGraph, now: datetime | None = None) -> GraphStatistics:
    now = now or utcnow()
    nodes = [n for n in graph.nodes.values() if not n.is_rejected]
    edges = live_edges(graph)
    node_count = len(nodes)
    edge_count = len(edges)
    live_ids = {n.id for n in nodes}

    unresolved = 0
    for contradiction in graph.contradictions.values():
        if contradiction.resolved:
            continue
        if not contradiction.node_ids or any(nid in live_ids for nid in contradiction.node_ids):
            unresolved += 1

    return GraphStatistics(
        total_nodes=node_count,
        total_edges=edge_count,
        average_connections=(2.0 * edge_count / node_count) if node_count else 0.0,
        recent_additions=sum(1 for n in nodes if n.created_at >= now - RECENT_WINDOW),
        contradiction_count=unresolved,
        average_confidence=float(np.mean([n.confidence for n in nodes])) if nodes else 0.0,
        average_edge_weight=float(np.mean([e.weight for e in edges])) if edges else 0.0,
        density=(edge_count / (node_count * (node_count - 1))) if node_count > 1 else 0.0,
        pending_approvals=sum(1 for n in nodes if n.approval_status == ApprovalStatus.PENDING),
        node_type_distribution=dict(Counter(n.type.value for n in nodes)),
        relationship_distribution=dict(Counter(e.relationship for e in edges)),
    )


class GraphQueryFacade:
    """Answers read queries from whichever state was last committed.

    Each call grabs the published state once, so every answer reflects a
    single consistent commit even while a writer is active.
    """

    def __init__(self, store: EntityEdgeStore) -> None:
        self._store = store

    @property
    def _state(self) -> GraphState:
        return self._store.state

    def snapshot(self) -> KnowledgeGraph:
        return self._state.graph

    def statistics(self, now: datetime | None = None) -> GraphStatistics:
        return compute_statistics(self._state.graph, now)

    def get_node(self, node_id: str) -> KnowledgeNode:
        node = self._state.graph.nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_contradiction(self, contradiction_id: str) -> Contradiction:
        contradiction = self._state.graph.contradictions.get(contradiction_id)
        if contradiction is None:
            raise ContradictionNotFoundError(contradiction_id)
        return contradiction

    def neighbors(
        self,
        node_id: str,
        direction: Direction | str = Direction.BOTH,
    ) -> Iterator[tuple[KnowledgeEdge, KnowledgeNode]]:
        return self._store.neighbors(node_id, Direction(direction))

    def unresolved_contradictions(self) -> list[Contradiction]:
        pending = [c for c in self._state.graph.contradictions.values() if not c.resolved]
        return sorted(pending, key=lambda c: c.detected_at, reverse=True)

    def contradictions(self, include_resolved: bool = False) -> list[Contradiction]:
        if not include_resolved:
            return self.unresolved_contradictions()
        return sorted(
            self._state.graph.contradictions.values(),
            key=lambda c: c.detected_at,
            reverse=True,
        )

    def live_nodes(self) -> list[KnowledgeNode]:
        """Every non-rejected node, most recently updated first."""
        live = [n for n in self._state.graph.nodes.values() if not n.is_rejected]
        return sorted(live, key=lambda n: n.updated_at, reverse=True)

    def pending_approvals(self) -> list[KnowledgeNode]:
        pending = [
            n for n in self._state.graph.nodes.values()
            if n.approval_status == ApprovalStatus.PENDING
        ]
        return sorted(pending, key=lambda n: n.created_at, reverse=True)

    def recent_nodes(self, hours: float = 24, now: datetime | None = None) -> list[KnowledgeNode]:
        cutoff = (now or utcnow()) - timedelta(hours=hours)
        recent = [
            n for n in self._state.graph.nodes.values()
            if not n.is_rejected and n.created_at >= cutoff
        ]
        return sorted(recent, key=lambda n: n.created_at, reverse=True)

    def nodes_by_type(self, node_type: NodeType | str) -> list[KnowledgeNode]:
        wanted = coerce_node_type(node_type)
        return [
            n for n in self._state.graph.nodes.values()
            if n.type == wanted and not n.is_rejected
        ]

    def search(self, text: str, limit: int = 20) -> list[KnowledgeNode]:
        """Live nodes containing ``text``, best subject match first."""
        needle = normalize(text)
        if not needle:
            return []
        hits = [
            (similarity(text, n.content), n)
            for n in self._state.graph.nodes.values()
            if not n.is_rejected and needle in normalize(n.content)
        ]
        hits.sort(key=lambda pair: (pair[0], pair[1].confidence), reverse=True)
        return [n for _, n in hits[:limit]]

    def find_similar(
        self,
        node_id: str,
        min_similarity: float = 0.3,
        limit: int = 10,
    ) -> list[tuple[KnowledgeNode, float]]:
        """Rank other live nodes by token overlap, favoring direct neighbors."""
        state = self._state
        node = self.get_node(node_id)
        connected = {other.id for _, other in iter_neighbors(state, node_id, Direction.BOTH)}
        scored: list[tuple[KnowledgeNode, float]] = []
        for other in state.graph.nodes.values():
            if other.id == node_id or other.is_rejected:
                continue
            score = similarity(node.content, other.content)
            if other.id in connected:
                score = min(1.0, score + CONNECTION_BONUS)
            if score >= min_similarity:
                scored.append((other, score))
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]
