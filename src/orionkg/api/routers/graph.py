"""REST API router for the knowledge graph and its contradictions."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from orionkg.api.dependencies import get_engine
from orionkg.api.utils import http_error
from orionkg.core.errors import GraphError
from orionkg.knowledge_graph.models import Direction
from orionkg.knowledge_graph.resolver import ResolutionStrategy
from orionkg.storage.serializers import (
    contradiction_to_dict,
    edge_to_dict,
    format_timestamp,
    node_to_dict,
)

router = APIRouter(prefix="/api/graph", tags=["graph"])


# ---------------------------------------------------------------------------
# Pydantic request/response models
# ---------------------------------------------------------------------------


class NodeResponse(BaseModel):
    id: str
    type: str
    content: str
    confidence: float
    created_at: str
    updated_at: str
    sources: list[str]
    contradictions: list[str]
    user_edited: bool
    metadata: dict[str, str]
    approval_status: str


class EdgeResponse(BaseModel):
    id: str
    source_id: str
    target_id: str
    relationship: str
    weight: float
    confidence: float
    bidirectional: bool
    created_at: str


class ContradictionResponse(BaseModel):
    id: str
    claim_a: str
    claim_b: str
    source_a: str
    source_b: str
    detected_at: str
    resolved: bool
    resolution: str | None
    node_ids: list[str]
    confidence_a: float
    confidence_b: float
    trust_a: float
    trust_b: float
    resolved_at: str | None
    needs_review: bool


class GraphSnapshotResponse(BaseModel):
    nodes: list[NodeResponse]
    edges: list[EdgeResponse]
    contradictions: list[ContradictionResponse]
    last_updated: str


class GraphStatsResponse(BaseModel):
    total_nodes: int
    total_edges: int
    average_connections: float
    recent_additions: int
    contradiction_count: int
    average_confidence: float
    average_edge_weight: float
    density: float
    pending_approvals: int
    node_type_distribution: dict[str, int]
    relationship_distribution: dict[str, int]


class NodeListResponse(BaseModel):
    results: list[NodeResponse]
    total: int


class NeighborResponse(BaseModel):
    edge: EdgeResponse
    node: NodeResponse


class NeighborListResponse(BaseModel):
    node_id: str
    direction: str
    results: list[NeighborResponse]
    total: int


class SimilarNodeResponse(BaseModel):
    node: NodeResponse
    score: float


class SimilarNodesResponse(BaseModel):
    node_id: str
    results: list[SimilarNodeResponse]


class ContradictionListResponse(BaseModel):
    results: list[ContradictionResponse]
    total: int
    include_resolved: bool


class RejectRequest(BaseModel):
    reason: str = ""


class EditRequest(BaseModel):
    content: str = Field(..., min_length=1)
    expected_updated_at: datetime | None = None
    confidence: float | None = Field(None, ge=0.0, le=1.0)


class ResolveRequest(BaseModel):
    resolution: str = ""
    strategy: str = Field(
        ResolutionStrategy.NOTE.value,
        description="Resolution strategy: note|supersede|dismiss",
    )
    winner: str | None = Field(None, description="'a' or 'b', required for supersede")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _node(node) -> NodeResponse:
    return NodeResponse(**node_to_dict(node))


def _edge(edge) -> EdgeResponse:
    return EdgeResponse(**edge_to_dict(edge))


def _contradiction(contradiction) -> ContradictionResponse:
    return ContradictionResponse(**contradiction_to_dict(contradiction))


def _parse_direction(value: str) -> Direction:
    try:
        return Direction(value)
    except ValueError:
        valid = ", ".join(d.value for d in Direction)
        raise HTTPException(422, f"Invalid direction '{value}'. Must be one of: {valid}")


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get("/snapshot", response_model=GraphSnapshotResponse)
def graph_snapshot() -> GraphSnapshotResponse:
    """Return the whole graph as of the latest commit."""
    graph = get_engine().query.snapshot()
    return GraphSnapshotResponse(
        nodes=[_node(n) for n in graph.nodes.values()],
        edges=[_edge(e) for e in graph.edges.values()],
        contradictions=[_contradiction(c) for c in graph.contradictions.values()],
        last_updated=format_timestamp(graph.last_updated),
    )


@router.get("/stats", response_model=GraphStatsResponse)
def graph_stats() -> GraphStatsResponse:
    """Return node/edge counts, density and distributions."""
    stats = get_engine().query.statistics()
    return GraphStatsResponse(
        total_nodes=stats.total_nodes,
        total_edges=stats.total_edges,
        average_connections=round(stats.average_connections, 4),
        recent_additions=stats.recent_additions,
        contradiction_count=stats.contradiction_count,
        average_confidence=round(stats.average_confidence, 4),
        average_edge_weight=round(stats.average_edge_weight, 4),
        density=round(stats.density, 6),
        pending_approvals=stats.pending_approvals,
        node_type_distribution=stats.node_type_distribution,
        relationship_distribution=stats.relationship_distribution,
    )


@router.get("/nodes", response_model=NodeListResponse)
def list_nodes(
    type: str | None = Query(None, description="Node type filter"),
    q: str | None = Query(None, description="Substring search over node content"),
    limit: int = Query(50, ge=1, le=1000),
) -> NodeListResponse:
    """List live nodes, optionally filtered by type or text."""
    query = get_engine().query
    try:
        if q:
            nodes = query.search(q, limit=limit)
            if type is not None:
                nodes = [n for n in nodes if n.type.value == type]
        elif type is not None:
            nodes = query.nodes_by_type(type)[:limit]
        else:
            nodes = query.live_nodes()[:limit]
    except GraphError as exc:
        raise http_error(exc) from exc
    return NodeListResponse(results=[_node(n) for n in nodes], total=len(nodes))


@router.get("/nodes/{node_id}", response_model=NodeResponse)
def get_node(node_id: str) -> NodeResponse:
    try:
        return _node(get_engine().query.get_node(node_id))
    except GraphError as exc:
        raise http_error(exc) from exc


@router.get("/nodes/{node_id}/neighbors", response_model=NeighborListResponse)
def get_neighbors(
    node_id: str,
    direction: str = Query(Direction.BOTH.value, description="outgoing|incoming|both"),
) -> NeighborListResponse:
    """Return nodes one live edge away from ``node_id``."""
    parsed = _parse_direction(direction)
    try:
        pairs = list(get_engine().query.neighbors(node_id, parsed))
    except GraphError as exc:
        raise http_error(exc) from exc
    return NeighborListResponse(
        node_id=node_id,
        direction=parsed.value,
        results=[NeighborResponse(edge=_edge(e), node=_node(n)) for e, n in pairs],
        total=len(pairs),
    )


@router.get("/nodes/{node_id}/similar", response_model=SimilarNodesResponse)
def get_similar(
    node_id: str,
    min_similarity: float = Query(0.3, ge=0.0, le=1.0),
    limit: int = Query(10, ge=1, le=100),
) -> SimilarNodesResponse:
    try:
        ranked = get_engine().query.find_similar(node_id, min_similarity, limit)
    except GraphError as exc:
        raise http_error(exc) from exc
    return SimilarNodesResponse(
        node_id=node_id,
        results=[SimilarNodeResponse(node=_node(n), score=round(s, 4)) for n, s in ranked],
    )


@router.get("/pending", response_model=NodeListResponse)
def pending_approvals() -> NodeListResponse:
    """Nodes still awaiting user approval, newest first."""
    nodes = get_engine().query.pending_approvals()
    return NodeListResponse(results=[_node(n) for n in nodes], total=len(nodes))


@router.get("/contradictions", response_model=ContradictionListResponse)
def list_contradictions(
    include_resolved: bool = Query(False),
) -> ContradictionListResponse:
    records = get_engine().query.contradictions(include_resolved=include_resolved)
    return ContradictionListResponse(
        results=[_contradiction(c) for c in records],
        total=len(records),
        include_resolved=include_resolved,
    )


# ---------------------------------------------------------------------------
# User actions
# ---------------------------------------------------------------------------


@router.post("/nodes/{node_id}/approve", response_model=NodeResponse)
def approve_node(node_id: str) -> NodeResponse:
    try:
        return _node(get_engine().approve_node(node_id))
    except GraphError as exc:
        raise http_error(exc) from exc


@router.post("/nodes/{node_id}/reject", response_model=NodeResponse)
def reject_node(node_id: str, body: RejectRequest | None = None) -> NodeResponse:
    reason = body.reason if body is not None else ""
    try:
        return _node(get_engine().reject_node(node_id, reason))
    except GraphError as exc:
        raise http_error(exc) from exc


@router.patch("/nodes/{node_id}", response_model=NodeResponse)
def edit_node(node_id: str, body: EditRequest) -> NodeResponse:
    """Replace a node's content; 409 when ``expected_updated_at`` is stale."""
    try:
        node = get_engine().edit_node(
            node_id,
            body.content,
            expected_updated_at=body.expected_updated_at,
            confidence=body.confidence,
        )
    except GraphError as exc:
        raise http_error(exc) from exc
    return _node(node)


@router.post("/contradictions/{contradiction_id}/resolve", response_model=ContradictionResponse)
def resolve_contradiction(contradiction_id: str, body: ResolveRequest) -> ContradictionResponse:
    """Apply a resolution strategy to a contradiction."""
    try:
        contradiction = get_engine().resolve_contradiction(
            contradiction_id,
            body.resolution,
            strategy=body.strategy,
            winner=body.winner,
        )
    except GraphError as exc:
        raise http_error(exc) from exc
    return _contradiction(contradiction)
