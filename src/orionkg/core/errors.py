"""Error types raised by the knowledge core."""
from __future__ import annotations

from typing import Any


class GraphError(RuntimeError):
    """Base class for knowledge core failures."""


class ValidationError(GraphError, ValueError):
    """Input rejected at the boundary before any state was touched."""


class InvalidEventError(ValidationError):
    """Timeline event with out-of-range confidence or unknown type/impact."""


class DanglingReferenceError(GraphError):
    """Edge endpoint is missing or rejected."""

    def __init__(self, node_id: str, reason: str = "missing") -> None:
        super().__init__(f"Edge endpoint {node_id} is {reason}")
        self.node_id = node_id
        self.reason = reason


class StaleEditError(GraphError):
    """User edit based on an outdated view of the node."""

    def __init__(self, node_id: str, current: Any) -> None:
        # current: the node as it is now stored
        super().__init__(f"Node {node_id} changed since it was read")
        self.node_id = node_id
        self.current = current


class NodeNotFoundError(GraphError, KeyError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node not found: {node_id}")
        self.node_id = node_id

    def __str__(self) -> str:
        return self.args[0]


class ContradictionNotFoundError(GraphError, KeyError):
    def __init__(self, contradiction_id: str) -> None:
        super().__init__(f"Contradiction not found: {contradiction_id}")
        self.contradiction_id = contradiction_id

    def __str__(self) -> str:
        return self.args[0]


class RuleNotFoundError(GraphError, KeyError):
    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Suppression rule not found: {rule_id}")
        self.rule_id = rule_id

    def __str__(self) -> str:
        return self.args[0]
