"""Core plumbing - errors, logging, ids and clocks."""
from __future__ import annotations

from orionkg.core.errors import (
    ContradictionNotFoundError,
    DanglingReferenceError,
    GraphError,
    InvalidEventError,
    NodeNotFoundError,
    RuleNotFoundError,
    StaleEditError,
    ValidationError,
)

__all__ = [
    "GraphError",
    "ValidationError",
    "InvalidEventError",
    "DanglingReferenceError",
    "StaleEditError",
    "NodeNotFoundError",
    "ContradictionNotFoundError",
    "RuleNotFoundError",
]
