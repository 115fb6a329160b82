"""User-driven resolution of knowledge graph contradictions."""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from orionkg.core.errors import ValidationError
from orionkg.knowledge_graph.models import Contradiction
from orionkg.knowledge_graph.similarity import normalize

if TYPE_CHECKING:
    from orionkg.knowledge_graph.store import EntityEdgeStore

_logger = logging.getLogger(__name__)


class ResolutionStrategy(str, Enum):
    """How the user settled a contradiction."""

    NOTE = "note"
    SUPERSEDE = "supersede"
    DISMISS = "dismiss"


class ContradictionResolver:
    """Applies user resolutions; every path requires explicit resolution text."""

    def __init__(self, store: EntityEdgeStore) -> None:
        self._store = store

    def resolve(self, contradiction_id: str, resolution: str) -> Contradiction:
        """Mark a contradiction resolved with the user's note."""
        with self._store.transaction() as tx:
            resolved = tx.resolve_contradiction(contradiction_id, resolution)
        _logger.info("resolve: %s (%s)", contradiction_id, resolved.resolution)
        return resolved

    def dismiss(self, contradiction_id: str, reason: str) -> Contradiction:
        """Declare the two claims compatible after all."""
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to dismiss a contradiction")
        return self.resolve(contradiction_id, f"Dismissed: {reason.strip()}")

    def supersede(self, contradiction_id: str, winner: str, note: str = "") -> Contradiction:
        """Keep one claim, rewriting affected nodes that still state the other.

        ``winner`` is ``"a"`` or ``"b"``. Rewrites are user edits, so the
        nodes become ``user_edited`` and are shielded from later automated
        content changes.
        """
        if winner not in ("a", "b"):
            raise ValidationError(f"winner must be 'a' or 'b', got {winner!r}")

        with self._store.transaction() as tx:
            contradiction = tx.require_contradiction(contradiction_id)
            keep = contradiction.claim_a if winner == "a" else contradiction.claim_b
            drop = contradiction.claim_b if winner == "a" else contradiction.claim_a
            for node_id in contradiction.node_ids:
                node = tx.get_node(node_id)
                if node is None or node.is_rejected:
                    continue
                if normalize(node.content) == normalize(drop):
                    tx.edit_node(node_id, keep)
            text = f"Kept '{keep}' over '{drop}'"
            if note.strip():
                text = f"{text}: {note.strip()}"
            resolved = tx.resolve_contradiction(contradiction_id, text)

        _logger.info("supersede: %s keeps claim %s", contradiction_id, winner)
        return resolved

    def apply(
        self,
        contradiction_id: str,
        strategy: ResolutionStrategy | str,
        resolution: str,
        winner: str | None = None,
    ) -> Contradiction:
        try:
            strategy = ResolutionStrategy(strategy)
        except ValueError as exc:
            raise ValidationError(f"Unknown resolution strategy: {strategy!r}") from exc
        if strategy == ResolutionStrategy.SUPERSEDE:
            return self.supersede(contradiction_id, winner or "", resolution)
        if strategy == ResolutionStrategy.DISMISS:
            return self.dismiss(contradiction_id, resolution)
        return self.resolve(contradiction_id, resolution)
