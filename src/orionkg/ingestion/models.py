"""Inbound event shapes and ingestion results."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

from orionkg.core.errors import ValidationError
from orionkg.core.ids import make_id, utcnow
from orionkg.knowledge_graph.models import NodeCandidate, NodeType, coerce_node_type
from orionkg.timeline.models import AIEventType, AITimelineEvent, Impact


@dataclass(frozen=True)
class ClaimCandidate:
    """A fact already extracted by an external analyzer."""

    node_type: NodeType | str
    content: str
    confidence: float
    metadata: Mapping[str, str] = field(default_factory=dict)
    sources: tuple[str, ...] = ()


@dataclass(frozen=True)
class RelationCandidate:
    """A relationship between two claims of the same event or existing nodes.

    ``source`` and ``target`` are either an index into the event's claims or
    an existing node id.
    """

    source: int | str
    target: int | str
    relationship: str
    weight: float = 1.0
    confidence: float = 1.0
    bidirectional: bool = False

    def validate(self) -> None:
        if not isinstance(self.relationship, str) or not self.relationship.strip():
            raise ValidationError("Relation relationship must be a non-empty string")
        try:
            weight = float(self.weight)
            confidence = float(self.confidence)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Relation weight and confidence must be numbers: {exc}") from exc
        if not math.isfinite(weight) or weight < 0:
            raise ValidationError(f"Relation weight must be a non-negative number, got {self.weight}")
        if not 0.0 <= confidence <= 1.0:
            raise ValidationError(f"Relation confidence must be within [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class ContentAnalysisEvent:
    description: str
    confidence: float
    type: AIEventType | str = AIEventType.CONTENT_ANALYZED
    details: Mapping[str, str] = field(default_factory=dict)
    sources: tuple[str, ...] = ()
    impact: Impact | str = Impact.LEARNED
    claims: tuple[ClaimCandidate, ...] = ()
    relations: tuple[RelationCandidate, ...] = ()
    id: str = field(default_factory=lambda: make_id("evt"))
    timestamp: datetime = field(default_factory=utcnow)

    def node_candidates(self) -> list[NodeCandidate]:
        """Validated store candidates; raises ValidationError on bad input.

        An event without explicit claims contributes its description as a
        single claim when ``details["node_type"]`` names a node type.
        """
        claims = list(self.claims)
        if not claims and "node_type" in self.details:
            claims.append(
                ClaimCandidate(
                    node_type=self.details["node_type"],
                    content=self.description,
                    confidence=self.confidence,
                )
            )
        candidates = []
        for claim in claims:
            candidates.append(
                NodeCandidate(
                    type=coerce_node_type(claim.node_type),
                    content=claim.content,
                    confidence=claim.confidence,
                    sources=tuple(self.sources) + tuple(claim.sources),
                    metadata=dict(claim.metadata),
                )
            )
        for relation in self.relations:
            relation.validate()
            for endpoint in (relation.source, relation.target):
                if isinstance(endpoint, int) and not 0 <= endpoint < len(candidates):
                    raise ValidationError(f"Relation references unknown claim index {endpoint}")
        return candidates

    def to_timeline_event(self, impact: Impact | str | None = None) -> AITimelineEvent:
        details = {str(k): str(v) for k, v in self.details.items()}
        details.setdefault("claims", str(len(self.claims)))
        details.setdefault("relations", str(len(self.relations)))
        return AITimelineEvent(
            id=self.id,
            type=self.type,
            description=self.description,
            impact=impact if impact is not None else self.impact,
            confidence=self.confidence,
            timestamp=self.timestamp,
            details=details,
            sources=tuple(self.sources),
        )


@dataclass
class IngestionResult:
    """What one content-analysis event did to the graph."""

    event_id: str
    created: list[str] = field(default_factory=list)
    merged: list[str] = field(default_factory=list)
    suppressed: list[str] = field(default_factory=list)
    edges: list[str] = field(default_factory=list)
    contradictions: list[str] = field(default_factory=list)
    skipped_relations: list[str] = field(default_factory=list)


@dataclass
class IngestionStats:
    """Accumulates stats across a batch run."""

    events_processed: int = 0
    events_failed: int = 0
    nodes_created: int = 0
    nodes_merged: int = 0
    candidates_suppressed: int = 0
    edges_upserted: int = 0
    contradictions_detected: int = 0
    interrupted: bool = False
    errors: list[str] = field(default_factory=list)

    def add(self, result: IngestionResult) -> None:
        self.events_processed += 1
        self.nodes_created += len(result.created)
        self.nodes_merged += len(result.merged)
        self.candidates_suppressed += len(result.suppressed)
        self.edges_upserted += len(result.edges)
        self.contradictions_detected += len(result.contradictions)
