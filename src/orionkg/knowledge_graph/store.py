"""In-memory copy-on-write store for knowledge nodes, edges and contradictions."""
from __future__ import annotations

import logging
import math
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping, Protocol

from orionkg.config.settings import GraphConfig
from orionkg.core.errors import (
    ContradictionNotFoundError,
    DanglingReferenceError,
    NodeNotFoundError,
    StaleEditError,
    ValidationError,
)
from orionkg.core.ids import ensure_utc, utcnow
from orionkg.knowledge_graph.models import (
    ApprovalStatus,
    ChangeKind,
    CommitResult,
    Contradiction,
    Direction,
    GraphChange,
    KnowledgeEdge,
    KnowledgeGraph,
    KnowledgeNode,
    MergeOutcome,
    NodeCandidate,
    NodeUpsert,
    SuppressedCandidate,
)
from orionkg.knowledge_graph.similarity import similarity
from orionkg.knowledge_graph.trust import SourceTrust, reconcile_confidence

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimObservation:
    """The claim behind a node content change, as seen by node hooks."""

    content: str
    confidence: float
    sources: tuple[str, ...]
    trust: float
    by_user: bool = False


class SuppressionGate(Protocol):
    def evaluate(
        self,
        content: str,
        metadata: Mapping[str, str] | None = None,
        sources: tuple[str, ...] = (),
    ) -> Any: ...

    def count_matches(self, rule_ids: Iterable[str]) -> None: ...


NodeHook = Callable[["GraphTransaction", KnowledgeNode, ClaimObservation, "KnowledgeNode | None"], None]
CommitListener = Callable[[CommitResult], None]


@dataclass(frozen=True)
class GraphState:
    """One published, immutable version of the graph plus its lookup indexes."""

    graph: KnowledgeGraph = field(default_factory=KnowledgeGraph)
    edge_index: Mapping[tuple[str, str, str], str] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    incident: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({}),
    )

    @classmethod
    def from_graph(cls, graph: KnowledgeGraph) -> "GraphState":
        edge_index: dict[tuple[str, str, str], str] = {}
        incident: dict[str, list[str]] = {}
        for edge in graph.edges.values():
            edge_index[edge.key] = edge.id
            incident.setdefault(edge.source_id, []).append(edge.id)
            if edge.target_id != edge.source_id:
                incident.setdefault(edge.target_id, []).append(edge.id)
        return cls(
            graph=KnowledgeGraph(
                nodes=MappingProxyType(dict(graph.nodes)),
                edges=MappingProxyType(dict(graph.edges)),
                contradictions=MappingProxyType(dict(graph.contradictions)),
                last_updated=graph.last_updated,
            ),
            edge_index=MappingProxyType(edge_index),
            incident=MappingProxyType({k: tuple(v) for k, v in incident.items()}),
        )


def iter_neighbors(
    state: GraphState,
    node_id: str,
    direction: Direction = Direction.BOTH,
) -> Iterator[tuple[KnowledgeEdge, KnowledgeNode]]:
    """Lazily yield ``(edge, neighbor)`` pairs, skipping rejected neighbors."""
    nodes = state.graph.nodes
    edges = state.graph.edges
    for edge_id in state.incident.get(node_id, ()):
        edge = edges[edge_id]
        outgoing = edge.source_id == node_id
        incoming = edge.target_id == node_id
        if direction == Direction.OUTGOING and not (outgoing or edge.bidirectional):
            continue
        if direction == Direction.INCOMING and not (incoming or edge.bidirectional):
            continue
        other = nodes.get(edge.target_id if outgoing else edge.source_id)
        if other is None or other.is_rejected:
            continue
        yield edge, other


class GraphTransaction:
    """Private working copy of the graph for one serialized mutation.

    Nothing done here is visible to readers until the owning
    ``EntityEdgeStore.transaction()`` block exits without raising.
    """

    def __init__(self, store: "EntityEdgeStore", base: GraphState, cause_event_id: str | None) -> None:
        self._store = store
        self.cause_event_id = cause_event_id
        self._nodes: dict[str, KnowledgeNode] = dict(base.graph.nodes)
        self._edges: dict[str, KnowledgeEdge] = dict(base.graph.edges)
        self._contradictions: dict[str, Contradiction] = dict(base.graph.contradictions)
        self._edge_index: dict[tuple[str, str, str], str] = dict(base.edge_index)
        self._incident: dict[str, tuple[str, ...]] = dict(base.incident)
        self._last_updated = base.graph.last_updated
        self._changes: list[GraphChange] = []
        self._suppressed: list[SuppressedCandidate] = []

    @property
    def config(self) -> GraphConfig:
        return self._store.config

    @property
    def changes(self) -> tuple[GraphChange, ...]:
        return tuple(self._changes)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> KnowledgeNode | None:
        return self._nodes.get(node_id)

    def require_node(self, node_id: str) -> KnowledgeNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def nodes(self) -> list[KnowledgeNode]:
        return list(self._nodes.values())

    def get_contradiction(self, contradiction_id: str) -> Contradiction | None:
        return self._contradictions.get(contradiction_id)

    def require_contradiction(self, contradiction_id: str) -> Contradiction:
        contradiction = self._contradictions.get(contradiction_id)
        if contradiction is None:
            raise ContradictionNotFoundError(contradiction_id)
        return contradiction

    def contradictions_for(self, node_id: str) -> list[Contradiction]:
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._contradictions[c] for c in node.contradictions if c in self._contradictions]

    def contradictions(self) -> list[Contradiction]:
        return list(self._contradictions.values())

    def find_edge(self, source_id: str, target_id: str, relationship: str) -> KnowledgeEdge | None:
        edge_id = self._edge_index.get((source_id, target_id, relationship))
        return self._edges.get(edge_id) if edge_id else None

    def trust_of(self, sources: tuple[str, ...]) -> float:
        return self._store.trust(sources)

    def find_merge_target(self, candidate: NodeCandidate) -> KnowledgeNode | None:
        """Most similar node of the same type at or above the merge threshold."""
        threshold = self.config.merge_threshold
        best: KnowledgeNode | None = None
        best_score = 0.0
        for node in self._nodes.values():
            if node.type != candidate.type:
                continue
            score = similarity(node.content, candidate.content)
            if score >= threshold and score > best_score:
                best, best_score = node, score
        if best is not None:
            _logger.debug("Candidate matches %s (similarity %.3f)", best.id, best_score)
        return best

    # ------------------------------------------------------------------
    # Node mutations
    # ------------------------------------------------------------------

    def upsert_node(self, candidate: NodeCandidate) -> NodeUpsert:
        gate = self._store.suppression
        if gate is not None:
            decision = gate.evaluate(candidate.content, candidate.metadata, candidate.sources)
            if decision.suppressed:
                self._suppressed.append(
                    SuppressedCandidate(
                        rule_id=decision.rule_id,
                        content=candidate.content,
                        sources=candidate.sources,
                        confidence=candidate.confidence,
                    )
                )
                return NodeUpsert(MergeOutcome.REJECTED_BY_SUPPRESSION, rule_id=decision.rule_id)

        claim = ClaimObservation(
            content=candidate.content.strip(),
            confidence=candidate.confidence,
            sources=candidate.sources,
            trust=self.trust_of(candidate.sources),
        )
        existing = self.find_merge_target(candidate)

        if existing is None:
            now = utcnow()
            node = KnowledgeNode(
                type=candidate.type,
                content=claim.content,
                confidence=candidate.confidence,
                created_at=now,
                updated_at=now,
                sources=candidate.sources,
                metadata=dict(candidate.metadata),
            )
            self._put_node(node)
            self._record(
                ChangeKind.NODE_CREATED,
                node.id,
                f"Learned {node.type.value}: {node.content}",
                node.sources,
                node.confidence,
            )
            self._notify(node, claim, None)
            return NodeUpsert(MergeOutcome.CREATED, node.id)

        if existing.is_rejected:
            # The user's rejection stands; only provenance is kept.
            reobserved = replace(
                existing,
                sources=tuple(dict.fromkeys(existing.sources + candidate.sources)),
                updated_at=self._now(existing.updated_at),
            )
            self._put_node(reobserved)
            self._record(
                ChangeKind.NODE_REOBSERVED,
                existing.id,
                f"Ignored claim matching rejected {existing.type.value}: {claim.content}",
                candidate.sources,
                candidate.confidence,
            )
            return NodeUpsert(MergeOutcome.MERGED, existing.id)

        confidence = reconcile_confidence(
            existing.confidence,
            self.trust_of(existing.sources),
            candidate.confidence,
            claim.trust,
            self.config.trust_bias,
        )
        content = existing.content
        if not existing.user_edited and candidate.confidence > existing.confidence:
            content = claim.content
        merged = replace(
            existing,
            content=content,
            confidence=confidence,
            sources=tuple(dict.fromkeys(existing.sources + candidate.sources)),
            metadata={**existing.metadata, **candidate.metadata},
            updated_at=self._now(existing.updated_at),
        )
        self._put_node(merged)
        self._record(
            ChangeKind.NODE_MERGED,
            merged.id,
            f"Reinforced {merged.type.value}: {merged.content}",
            candidate.sources,
            merged.confidence,
        )
        _logger.debug(
            "Merged candidate into %s (confidence %.3f -> %.3f)",
            merged.id, existing.confidence, merged.confidence,
        )
        self._notify(merged, claim, existing)
        return NodeUpsert(MergeOutcome.MERGED, merged.id)

    def reject_node(self, node_id: str, reason: str = "") -> KnowledgeNode:
        node = self.require_node(node_id)
        if node.is_rejected:
            return node
        metadata = dict(node.metadata)
        if reason:
            metadata["rejection_reason"] = reason
        rejected = replace(
            node,
            approval_status=ApprovalStatus.REJECTED,
            metadata=metadata,
            updated_at=self._now(node.updated_at),
        )
        self._put_node(rejected)
        self._record(ChangeKind.NODE_REJECTED, node_id, f"Rejected: {node.content}", node.sources)
        for contradiction in self.contradictions_for(node_id):
            if contradiction.needs_review:
                continue
            self._contradictions[contradiction.id] = replace(contradiction, needs_review=True)
            self._record(
                ChangeKind.CONTRADICTION_FLAGGED,
                contradiction.id,
                f"Contradiction needs review after rejecting {node_id}",
            )
        _logger.info("Rejected node %s%s", node_id, f" ({reason})" if reason else "")
        return rejected

    def approve_node(self, node_id: str) -> KnowledgeNode:
        node = self.require_node(node_id)
        if node.approval_status == ApprovalStatus.APPROVED:
            return node
        approved = replace(
            node,
            approval_status=ApprovalStatus.APPROVED,
            updated_at=self._now(node.updated_at),
        )
        self._put_node(approved)
        self._record(ChangeKind.NODE_APPROVED, node_id, f"Approved: {node.content}", node.sources)
        return approved

    def edit_node(
        self,
        node_id: str,
        content: str,
        expected_updated_at: datetime | None = None,
        confidence: float | None = None,
    ) -> KnowledgeNode:
        node = self.require_node(node_id)
        if expected_updated_at is not None and ensure_utc(expected_updated_at) != node.updated_at:
            raise StaleEditError(node_id, node)
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Edited content must be a non-empty string")
        if confidence is not None and not 0.0 <= confidence <= 1.0:
            raise ValidationError(f"confidence must be within [0, 1], got {confidence}")

        edited = replace(
            node,
            content=content.strip(),
            confidence=node.confidence if confidence is None else float(confidence),
            user_edited=True,
            approval_status=ApprovalStatus.EDITED,
            updated_at=self._now(node.updated_at),
        )
        self._put_node(edited)
        self._record(
            ChangeKind.NODE_EDITED,
            node_id,
            f"Corrected to: {edited.content}",
            edited.sources,
            edited.confidence,
        )
        claim = ClaimObservation(
            content=edited.content,
            confidence=edited.confidence,
            sources=edited.sources,
            trust=1.0,
            by_user=True,
        )
        self._notify(edited, claim, node)
        return edited

    # ------------------------------------------------------------------
    # Edge mutations
    # ------------------------------------------------------------------

    def upsert_edge(
        self,
        source_id: str,
        target_id: str,
        relationship: str,
        observed_weight: float = 1.0,
        observed_confidence: float = 1.0,
        bidirectional: bool = False,
    ) -> KnowledgeEdge:
        if not isinstance(relationship, str) or not relationship.strip():
            raise ValidationError("Edge relationship must be a non-empty string")
        if not math.isfinite(observed_weight) or observed_weight < 0:
            raise ValidationError(f"Edge weight must be a non-negative number, got {observed_weight}")
        if not 0.0 <= observed_confidence <= 1.0:
            raise ValidationError(
                f"confidence must be within [0, 1], got {observed_confidence}"
            )
        for endpoint in (source_id, target_id):
            node = self._nodes.get(endpoint)
            if node is None:
                raise DanglingReferenceError(endpoint, "missing")
            if node.is_rejected:
                raise DanglingReferenceError(endpoint, "rejected")

        relationship = relationship.strip()
        max_weight = self.config.max_edge_weight
        existing = self.find_edge(source_id, target_id, relationship)
        if existing is not None:
            edge = replace(
                existing,
                weight=min(max_weight, existing.weight + observed_weight * self.config.edge_decay),
                confidence=reconcile_confidence(
                    existing.confidence, 0.0, observed_confidence, 0.0, self.config.trust_bias,
                ),
                bidirectional=existing.bidirectional or bidirectional,
            )
            self._edges[edge.id] = edge
            self._touch(utcnow())
            self._record(
                ChangeKind.EDGE_STRENGTHENED,
                edge.id,
                f"Strengthened {source_id} -{relationship}-> {target_id} to {edge.weight:.2f}",
                confidence=edge.confidence,
            )
            return edge

        edge = KnowledgeEdge(
            source_id=source_id,
            target_id=target_id,
            relationship=relationship,
            weight=min(max_weight, observed_weight),
            confidence=observed_confidence,
            bidirectional=bidirectional,
        )
        self._edges[edge.id] = edge
        self._edge_index[edge.key] = edge.id
        self._incident[source_id] = self._incident.get(source_id, ()) + (edge.id,)
        if target_id != source_id:
            self._incident[target_id] = self._incident.get(target_id, ()) + (edge.id,)
        self._touch(edge.created_at)
        self._record(
            ChangeKind.EDGE_CREATED,
            edge.id,
            f"Linked {source_id} -{relationship}-> {target_id}",
            confidence=edge.confidence,
        )
        return edge

    # ------------------------------------------------------------------
    # Contradiction records
    # ------------------------------------------------------------------

    def add_contradiction(self, contradiction: Contradiction) -> Contradiction:
        self._contradictions[contradiction.id] = contradiction
        for node_id in contradiction.node_ids:
            node = self._nodes.get(node_id)
            if node is not None and contradiction.id not in node.contradictions:
                self._nodes[node_id] = replace(
                    node, contradictions=node.contradictions + (contradiction.id,),
                )
        self._touch(contradiction.detected_at)
        self._record(
            ChangeKind.CONTRADICTION_DETECTED,
            contradiction.id,
            f"'{contradiction.claim_a}' conflicts with '{contradiction.claim_b}'",
            tuple(s for s in (contradiction.source_a, contradiction.source_b) if s),
            min(contradiction.confidence_a, contradiction.confidence_b),
        )
        return contradiction

    def resolve_contradiction(
        self,
        contradiction_id: str,
        resolution: str,
        automatic: bool = False,
    ) -> Contradiction:
        contradiction = self.require_contradiction(contradiction_id)
        if not isinstance(resolution, str) or not resolution.strip():
            raise ValidationError("A resolution note is required to resolve a contradiction")
        if automatic and contradiction.resolved:
            return contradiction
        resolved = replace(
            contradiction,
            resolved=True,
            resolution=resolution.strip(),
            resolved_at=utcnow(),
        )
        self._contradictions[contradiction_id] = resolved
        self._touch(resolved.resolved_at)
        self._record(
            ChangeKind.CONTRADICTION_AUTO_RESOLVED if automatic else ChangeKind.CONTRADICTION_RESOLVED,
            contradiction_id,
            resolved.resolution or "",
        )
        return resolved

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self, floor: datetime) -> datetime:
        now = utcnow()
        return now if now >= floor else floor

    def _touch(self, when: datetime | None) -> None:
        if when is not None and when > self._last_updated:
            self._last_updated = when

    def _put_node(self, node: KnowledgeNode) -> None:
        self._nodes[node.id] = node
        self._touch(node.updated_at)

    def _record(
        self,
        kind: ChangeKind,
        entity_id: str,
        description: str,
        sources: tuple[str, ...] = (),
        confidence: float = 1.0,
    ) -> None:
        self._changes.append(GraphChange(kind, entity_id, description, sources, confidence))

    def _notify(self, node: KnowledgeNode, claim: ClaimObservation, prior: KnowledgeNode | None) -> None:
        for hook in self._store.node_hooks:
            hook(self, self._nodes[node.id], claim, prior)

    def _publish(self) -> tuple[GraphState, CommitResult] | None:
        if not self._changes and not self._suppressed:
            return None
        graph = KnowledgeGraph(
            nodes=MappingProxyType(self._nodes),
            edges=MappingProxyType(self._edges),
            contradictions=MappingProxyType(self._contradictions),
            last_updated=self._last_updated,
        )
        state = GraphState(
            graph=graph,
            edge_index=MappingProxyType(self._edge_index),
            incident=MappingProxyType(self._incident),
        )
        result = CommitResult(
            changes=tuple(self._changes),
            graph=graph,
            cause_event_id=self.cause_event_id,
            suppressed=tuple(self._suppressed),
        )
        return state, result


class EntityEdgeStore:
    """Owns the canonical set of nodes, edges and contradictions.

    Mutations are serialized through ``transaction()``: each one works on a
    private copy and publishes it by swapping a single reference, so
    readers of ``state`` never need the lock and never see a partial
    update. A transaction that raises publishes nothing.
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        suppression: SuppressionGate | None = None,
    ) -> None:
        self.config = config or GraphConfig()
        self.suppression = suppression
        self.trust = SourceTrust(self.config.default_source_trust, self.config.source_trust)
        self.node_hooks: list[NodeHook] = []
        self._listeners: list[CommitListener] = []
        self._lock = threading.RLock()
        self._state = GraphState()
        self._active: GraphTransaction | None = None

    @property
    def state(self) -> GraphState:
        return self._state

    def snapshot(self) -> KnowledgeGraph:
        return self._state.graph

    def add_node_hook(self, hook: NodeHook) -> None:
        """Run ``hook`` inside the transaction on every node content change."""
        self.node_hooks.append(hook)

    def add_commit_listener(self, listener: CommitListener) -> None:
        """Call ``listener`` with the CommitResult after each publishing commit."""
        self._listeners.append(listener)

    @contextmanager
    def transaction(self, cause_event_id: str | None = None) -> Iterator[GraphTransaction]:
        with self._lock:
            if self._active is not None:
                # Nested use from the same thread joins the outer transaction.
                yield self._active
                return

            tx = GraphTransaction(self, self._state, cause_event_id)
            self._active = tx
            try:
                yield tx
            finally:
                self._active = None

            published = tx._publish()
            if published is None:
                return
            self._state, result = published
            if result.suppressed and self.suppression is not None:
                self.suppression.count_matches(s.rule_id for s in result.suppressed)
            for listener in self._listeners:
                try:
                    listener(result)
                except Exception:
                    _logger.exception("Commit listener failed")

    def restore(self, graph: KnowledgeGraph) -> None:
        """Replace the whole graph, e.g. from a persisted snapshot."""
        with self._lock:
            self._state = GraphState.from_graph(graph)

    # ------------------------------------------------------------------
    # Single-operation conveniences
    # ------------------------------------------------------------------

    def upsert_node(self, candidate: NodeCandidate) -> NodeUpsert:
        with self.transaction() as tx:
            return tx.upsert_node(candidate)

    def upsert_edge(
        self,
        source_id: str,
        target_id: str,
        relationship: str,
        observed_weight: float = 1.0,
        observed_confidence: float = 1.0,
        bidirectional: bool = False,
    ) -> KnowledgeEdge:
        with self.transaction() as tx:
            return tx.upsert_edge(
                source_id, target_id, relationship,
                observed_weight, observed_confidence, bidirectional,
            )

    def reject_node(self, node_id: str, reason: str = "") -> KnowledgeNode:
        with self.transaction() as tx:
            return tx.reject_node(node_id, reason)

    def approve_node(self, node_id: str) -> KnowledgeNode:
        with self.transaction() as tx:
            return tx.approve_node(node_id)

    def edit_node(
        self,
        node_id: str,
        content: str,
        expected_updated_at: datetime | None = None,
        confidence: float | None = None,
    ) -> KnowledgeNode:
        with self.transaction() as tx:
            return tx.edit_node(node_id, content, expected_updated_at, confidence)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> KnowledgeNode | None:
        return self._state.graph.nodes.get(node_id)

    def neighbors(
        self,
        node_id: str,
        direction: Direction = Direction.BOTH,
    ) -> Iterator[tuple[KnowledgeEdge, KnowledgeNode]]:
        state = self._state
        node = state.graph.nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        if node.is_rejected:
            return iter(())
        return iter_neighbors(state, node_id, Direction(direction))
