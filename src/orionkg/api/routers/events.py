"""REST API router for inbound content-analysis events."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from orionkg.api.dependencies import get_engine
from orionkg.api.utils import http_error
from orionkg.core.errors import GraphError
from orionkg.ingestion.models import ClaimCandidate, ContentAnalysisEvent, RelationCandidate
from orionkg.timeline.models import AIEventType, Impact

router = APIRouter(prefix="/api/events", tags=["events"])


class ClaimRequest(BaseModel):
    node_type: str
    content: str
    confidence: float
    metadata: dict[str, str] = Field(default_factory=dict)
    sources: list[str] = Field(default_factory=list)


class RelationRequest(BaseModel):
    source: int | str
    target: int | str
    relationship: str
    weight: float = 1.0
    confidence: float = 1.0
    bidirectional: bool = False


class EventRequest(BaseModel):
    description: str
    confidence: float
    type: str = AIEventType.CONTENT_ANALYZED.value
    impact: str = Impact.LEARNED.value
    details: dict[str, str] = Field(default_factory=dict)
    sources: list[str] = Field(default_factory=list)
    claims: list[ClaimRequest] = Field(default_factory=list)
    relations: list[RelationRequest] = Field(default_factory=list)
    id: str | None = None
    timestamp: datetime | None = None


class IngestionResponse(BaseModel):
    event_id: str
    created: list[str]
    merged: list[str]
    suppressed: list[str]
    edges: list[str]
    contradictions: list[str]
    skipped_relations: list[str]


def _to_event(body: EventRequest) -> ContentAnalysisEvent:
    optional = {}
    if body.id is not None:
        optional["id"] = body.id
    if body.timestamp is not None:
        optional["timestamp"] = body.timestamp
    return ContentAnalysisEvent(
        description=body.description,
        confidence=body.confidence,
        type=body.type,
        impact=body.impact,
        details=body.details,
        sources=tuple(body.sources),
        claims=tuple(
            ClaimCandidate(
                node_type=c.node_type,
                content=c.content,
                confidence=c.confidence,
                metadata=c.metadata,
                sources=tuple(c.sources),
            )
            for c in body.claims
        ),
        relations=tuple(RelationCandidate(**r.model_dump()) for r in body.relations),
        **optional,
    )


@router.post("", response_model=IngestionResponse, status_code=201)
def ingest_event(body: EventRequest) -> IngestionResponse:
    """Apply one event to the graph in a single transaction."""
    try:
        result = get_engine().ingest(_to_event(body))
    except GraphError as exc:
        raise http_error(exc) from exc
    return IngestionResponse(
        event_id=result.event_id,
        created=result.created,
        merged=result.merged,
        suppressed=result.suppressed,
        edges=result.edges,
        contradictions=result.contradictions,
        skipped_relations=result.skipped_relations,
    )
