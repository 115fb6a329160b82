"""Knowledge graph - node/edge store, contradiction detection, resolution, queries."""
from __future__ import annotations

from orionkg.knowledge_graph.detector import ContradictionDetector
from orionkg.knowledge_graph.models import (
    ApprovalStatus,
    ChangeKind,
    CommitResult,
    Contradiction,
    Direction,
    GraphChange,
    GraphStatistics,
    KnowledgeEdge,
    KnowledgeGraph,
    KnowledgeNode,
    MergeOutcome,
    NodeCandidate,
    NodeType,
    NodeUpsert,
)
from orionkg.knowledge_graph.query import GraphQueryFacade
from orionkg.knowledge_graph.resolver import ContradictionResolver, ResolutionStrategy
from orionkg.knowledge_graph.store import EntityEdgeStore, GraphTransaction

__all__ = [
    "NodeType",
    "ApprovalStatus",
    "MergeOutcome",
    "Direction",
    "ChangeKind",
    "KnowledgeNode",
    "KnowledgeEdge",
    "Contradiction",
    "KnowledgeGraph",
    "GraphStatistics",
    "GraphChange",
    "CommitResult",
    "NodeCandidate",
    "NodeUpsert",
    "EntityEdgeStore",
    "GraphTransaction",
    "ContradictionDetector",
    "ContradictionResolver",
    "ResolutionStrategy",
    "GraphQueryFacade",
]
