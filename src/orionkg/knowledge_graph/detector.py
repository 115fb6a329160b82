"""Contradiction detection via subject similarity + claim polarity."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from orionkg.config.settings import ContradictionConfig
from orionkg.config.constants import DEFAULT_TOPIC_THRESHOLD
from orionkg.knowledge_graph.models import Contradiction, KnowledgeNode
from orionkg.knowledge_graph.similarity import normalize, opposite_polarity, similarity

if TYPE_CHECKING:
    from orionkg.knowledge_graph.store import ClaimObservation, EntityEdgeStore, GraphTransaction

_logger = logging.getLogger(__name__)


def _first(sources: tuple[str, ...]) -> str:
    return sources[0] if sources else ""


def _pair_key(claim_a: str, claim_b: str) -> frozenset[str]:
    return frozenset((normalize(claim_a), normalize(claim_b)))


class ContradictionDetector:
    """Flags claims about the same subject that assert opposite things.

    Runs as a node hook inside the store transaction, so a contradiction is
    published in the same commit as the change that caused it. It compares
    the incoming claim with the node's prior content and with every live
    node of the same type on the same topic.
    """

    def __init__(
        self,
        config: ContradictionConfig | None = None,
        topic_threshold: float = DEFAULT_TOPIC_THRESHOLD,
    ) -> None:
        self.config = config or ContradictionConfig()
        self.topic_threshold = topic_threshold

    def attach(self, store: EntityEdgeStore) -> None:
        self.topic_threshold = store.config.topic_threshold
        store.add_node_hook(self.on_node_changed)

    def on_node_changed(
        self,
        tx: GraphTransaction,
        node: KnowledgeNode,
        claim: ClaimObservation,
        prior: KnowledgeNode | None,
    ) -> list[Contradiction]:
        if not self.config.enabled:
            return []

        self._check_supersession(tx, node, claim)

        found: list[Contradiction] = []
        # A user edit replaces the node's own prior claim on purpose.
        if prior is not None and not claim.by_user:
            created = self._compare(
                tx,
                claim,
                prior.content,
                prior.confidence,
                prior.sources,
                (node.id,),
            )
            if created is not None:
                found.append(created)

        for other in tx.nodes():
            if other.id == node.id or other.is_rejected or other.type != node.type:
                continue
            created = self._compare(
                tx,
                claim,
                other.content,
                other.confidence,
                other.sources,
                (other.id, node.id),
            )
            if created is not None:
                found.append(created)
        return found

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _dominates(self, trust: float, confidence: float, other_trust: float, other_confidence: float) -> bool:
        return (
            trust - other_trust >= self.config.trust_margin
            and confidence - other_confidence >= self.config.confidence_margin
        )

    def _compare(
        self,
        tx: GraphTransaction,
        claim: ClaimObservation,
        other_content: str,
        other_confidence: float,
        other_sources: tuple[str, ...],
        node_ids: tuple[str, ...],
    ) -> Contradiction | None:
        if not opposite_polarity(claim.content, other_content):
            return None
        score = similarity(claim.content, other_content)
        if score < self.topic_threshold:
            return None
        floor = self.config.min_confidence
        if claim.confidence < floor or other_confidence < floor:
            _logger.debug(
                "Ignoring low-confidence conflict (%.2f vs %.2f)",
                claim.confidence, other_confidence,
            )
            return None

        key = _pair_key(other_content, claim.content)
        for existing in tx.contradictions():
            if not existing.resolved and _pair_key(existing.claim_a, existing.claim_b) == key:
                return None

        other_trust = tx.trust_of(other_sources)
        contradiction = tx.add_contradiction(
            Contradiction(
                claim_a=other_content,
                claim_b=claim.content,
                source_a=_first(other_sources),
                source_b=_first(claim.sources),
                node_ids=tuple(dict.fromkeys(node_ids)),
                confidence_a=other_confidence,
                confidence_b=claim.confidence,
                trust_a=other_trust,
                trust_b=claim.trust,
            )
        )
        _logger.info(
            "Contradiction %s: '%s' vs '%s' (similarity %.2f)",
            contradiction.id, other_content, claim.content, score,
        )

        if self._dominates(claim.trust, claim.confidence, other_trust, other_confidence):
            tx.resolve_contradiction(
                contradiction.id,
                self._note(claim, other_content),
                automatic=True,
            )
            _logger.info("Contradiction %s auto-resolved on arrival", contradiction.id)
        return contradiction

    def _check_supersession(self, tx: GraphTransaction, node: KnowledgeNode, claim: ClaimObservation) -> None:
        """Resolve open contradictions on ``node`` that the new claim settles."""
        for contradiction in tx.contradictions_for(node.id):
            if contradiction.resolved:
                continue
            sides = (
                (contradiction.claim_a, contradiction.claim_b,
                 contradiction.trust_b, contradiction.confidence_b),
                (contradiction.claim_b, contradiction.claim_a,
                 contradiction.trust_a, contradiction.confidence_a),
            )
            for agrees_with, loser, loser_trust, loser_confidence in sides:
                if opposite_polarity(claim.content, agrees_with):
                    continue
                if similarity(claim.content, agrees_with) < self.topic_threshold:
                    continue
                if not self._dominates(claim.trust, claim.confidence, loser_trust, loser_confidence):
                    continue
                tx.resolve_contradiction(
                    contradiction.id,
                    self._note(claim, loser),
                    automatic=True,
                )
                _logger.info("Contradiction %s superseded by later claim", contradiction.id)
                break

    @staticmethod
    def _note(claim: ClaimObservation, loser: str) -> str:
        source = _first(claim.sources) or "user"
        return (
            f"Superseded by '{claim.content}' from {source} "
            f"(trust {claim.trust:.2f}, confidence {claim.confidence:.2f}) over '{loser}'"
        )
