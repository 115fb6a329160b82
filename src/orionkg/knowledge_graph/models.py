"""Knowledge graph data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from orionkg.core.errors import ValidationError
from orionkg.core.ids import make_id, utcnow


class NodeType(str, Enum):
    """Kinds of knowledge a node can hold."""

    ENTITY = "entity"
    CONCEPT = "concept"
    BELIEF = "belief"
    FACT = "fact"
    QUESTION = "question"
    PREFERENCE = "preference"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EDITED = "edited"


class MergeOutcome(str, Enum):
    CREATED = "created"
    MERGED = "merged"
    REJECTED_BY_SUPPRESSION = "rejected_by_suppression"


class Direction(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"
    BOTH = "both"


class ChangeKind(str, Enum):
    """What a committed transaction did to one record."""

    NODE_CREATED = "node_created"
    NODE_MERGED = "node_merged"
    NODE_REOBSERVED = "node_reobserved"
    NODE_EDITED = "node_edited"
    NODE_APPROVED = "node_approved"
    NODE_REJECTED = "node_rejected"
    EDGE_CREATED = "edge_created"
    EDGE_STRENGTHENED = "edge_strengthened"
    CONTRADICTION_DETECTED = "contradiction_detected"
    CONTRADICTION_AUTO_RESOLVED = "contradiction_auto_resolved"
    CONTRADICTION_RESOLVED = "contradiction_resolved"
    CONTRADICTION_FLAGGED = "contradiction_flagged"


def _check_unit_interval(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number, got {value!r}") from exc
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"{name} must be within [0, 1], got {value}")
    return value


def coerce_node_type(value: NodeType | str) -> NodeType:
    try:
        return NodeType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown node type: {value!r}") from exc


@dataclass(frozen=True)
class KnowledgeNode:
    """A single piece of learned knowledge.

    Records are immutable; the store replaces them wholesale on every
    change so that published snapshots never move under a reader.
    """

    type: NodeType
    content: str
    confidence: float
    id: str = field(default_factory=lambda: make_id("node"))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    sources: tuple[str, ...] = ()
    contradictions: tuple[str, ...] = ()
    user_edited: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
    approval_status: ApprovalStatus = ApprovalStatus.PENDING

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def is_rejected(self) -> bool:
        return self.approval_status == ApprovalStatus.REJECTED


@dataclass(frozen=True)
class KnowledgeEdge:
    """A typed, weighted relationship between two nodes."""

    source_id: str
    target_id: str
    relationship: str
    weight: float
    confidence: float
    bidirectional: bool = False
    id: str = field(default_factory=lambda: make_id("edge"))
    created_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.source_id, self.target_id, self.relationship)


@dataclass(frozen=True)
class Contradiction:
    """Two claims about the same subject that cannot both hold."""

    claim_a: str
    claim_b: str
    source_a: str
    source_b: str
    id: str = field(default_factory=lambda: make_id("con"))
    detected_at: datetime = field(default_factory=utcnow)
    resolved: bool = False
    resolution: str | None = None
    node_ids: tuple[str, ...] = ()
    confidence_a: float = 0.0
    confidence_b: float = 0.0
    trust_a: float = 0.0
    trust_b: float = 0.0
    resolved_at: datetime | None = None
    needs_review: bool = False


@dataclass(frozen=True)
class NodeCandidate:
    """An already-extracted claim offered to the store."""

    type: NodeType
    content: str
    confidence: float
    sources: tuple[str, ...] = ()
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", coerce_node_type(self.type))
        object.__setattr__(self, "confidence", _check_unit_interval("confidence", self.confidence))
        if not isinstance(self.content, str) or not self.content.strip():
            raise ValidationError("Node content must be a non-empty string")
        object.__setattr__(self, "sources", tuple(dict.fromkeys(self.sources)))
        object.__setattr__(
            self, "metadata", MappingProxyType({str(k): str(v) for k, v in self.metadata.items()}),
        )


@dataclass(frozen=True)
class NodeUpsert:
    """Outcome of offering one candidate to the store."""

    outcome: MergeOutcome
    node_id: str | None = None
    rule_id: str | None = None


@dataclass(frozen=True)
class GraphChange:
    kind: ChangeKind
    entity_id: str
    description: str
    sources: tuple[str, ...] = ()
    confidence: float = 1.0


@dataclass(frozen=True)
class SuppressedCandidate:
    """A candidate the suppression gate kept out of the store."""

    rule_id: str
    content: str
    sources: tuple[str, ...] = ()
    confidence: float = 0.0


@dataclass(frozen=True)
class KnowledgeGraph:
    """Read-only view of every node, edge and contradiction at one commit."""

    nodes: Mapping[str, KnowledgeNode] = field(default_factory=lambda: MappingProxyType({}))
    edges: Mapping[str, KnowledgeEdge] = field(default_factory=lambda: MappingProxyType({}))
    contradictions: Mapping[str, Contradiction] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    last_updated: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class CommitResult:
    """What a single committed transaction changed."""

    changes: tuple[GraphChange, ...]
    graph: KnowledgeGraph
    cause_event_id: str | None = None
    suppressed: tuple[SuppressedCandidate, ...] = ()


@dataclass
class GraphStatistics:
    """Aggregates computed from one snapshot; never stored."""

    total_nodes: int = 0
    total_edges: int = 0
    average_connections: float = 0.0
    recent_additions: int = 0
    contradiction_count: int = 0
    average_confidence: float = 0.0
    average_edge_weight: float = 0.0
    density: float = 0.0
    pending_approvals: int = 0
    node_type_distribution: dict[str, int] = field(default_factory=dict)
    relationship_distribution: dict[str, int] = field(default_factory=dict)
