"""Content-analysis ingestion into the knowledge core."""
from __future__ import annotations

from orionkg.ingestion.models import (
    ClaimCandidate,
    ContentAnalysisEvent,
    IngestionResult,
    IngestionStats,
    RelationCandidate,
)
from orionkg.ingestion.pipeline import KnowledgeEngine

__all__ = [
    "ClaimCandidate",
    "ContentAnalysisEvent",
    "IngestionResult",
    "IngestionStats",
    "KnowledgeEngine",
    "RelationCandidate",
]
