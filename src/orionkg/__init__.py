from __future__ import annotations

__version__ = "0.1.0"
__author__ = "orionkg Contributors"

from orionkg.ingestion import ContentAnalysisEvent, KnowledgeEngine
from orionkg.knowledge_graph import EntityEdgeStore, GraphQueryFacade, KnowledgeGraph

__all__ = [
    "ContentAnalysisEvent",
    "EntityEdgeStore",
    "GraphQueryFacade",
    "KnowledgeEngine",
    "KnowledgeGraph",
]
