"""Shared utility functions for API endpoints."""
from __future__ import annotations

from fastapi import HTTPException

from orionkg.core.errors import (
    ContradictionNotFoundError,
    DanglingReferenceError,
    GraphError,
    NodeNotFoundError,
    RuleNotFoundError,
    StaleEditError,
    ValidationError,
)


def http_error(exc: GraphError) -> HTTPException:
    """Map a core error to the HTTP status clients should see."""
    if isinstance(exc, (NodeNotFoundError, ContradictionNotFoundError, RuleNotFoundError)):
        return HTTPException(404, str(exc))
    if isinstance(exc, StaleEditError):
        return HTTPException(
            409,
            {
                "message": str(exc),
                "node_id": exc.node_id,
                "current_updated_at": exc.current.updated_at.isoformat(),
            },
        )
    if isinstance(exc, DanglingReferenceError):
        return HTTPException(409, str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(422, str(exc))
    return HTTPException(500, str(exc))
