"""Ingestion pipeline - wires suppression, store, detector, timeline and profiler."""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Iterable

from orionkg.config.settings import Config
from orionkg.core.errors import DanglingReferenceError, GraphError, ValidationError
from orionkg.knowledge_graph.detector import ContradictionDetector
from orionkg.knowledge_graph.models import (
    ChangeKind,
    CommitResult,
    Contradiction,
    KnowledgeNode,
    MergeOutcome,
    NodeCandidate,
)
from orionkg.knowledge_graph.query import GraphQueryFacade
from orionkg.knowledge_graph.resolver import ContradictionResolver, ResolutionStrategy
from orionkg.knowledge_graph.store import EntityEdgeStore
from orionkg.ingestion.models import ContentAnalysisEvent, IngestionResult, IngestionStats
from orionkg.profile.models import BehavioralSample, CognitiveProfile, Recommendation
from orionkg.profile.profiler import CognitiveProfiler
from orionkg.suppression.engine import SuppressionEngine
from orionkg.suppression.models import SuppressionRule, SuppressionRuleType
from orionkg.timeline.models import AIEventType, AITimelineEvent, Impact
from orionkg.timeline.recorder import TimelineRecorder, validate_event

logger = logging.getLogger(__name__)

# Timeline entry written for each kind of committed change.
CHANGE_EVENTS: dict[ChangeKind, tuple[AIEventType, Impact]] = {
    ChangeKind.NODE_CREATED: (AIEventType.KNOWLEDGE_CREATED, Impact.LEARNED),
    ChangeKind.NODE_MERGED: (AIEventType.KNOWLEDGE_UPDATED, Impact.LEARNED),
    ChangeKind.NODE_REOBSERVED: (AIEventType.KNOWLEDGE_UPDATED, Impact.IGNORED),
    ChangeKind.NODE_EDITED: (AIEventType.USER_CORRECTION, Impact.INFLUENCED),
    ChangeKind.NODE_APPROVED: (AIEventType.USER_CORRECTION, Impact.INFLUENCED),
    ChangeKind.NODE_REJECTED: (AIEventType.USER_CORRECTION, Impact.INFLUENCED),
    ChangeKind.EDGE_CREATED: (AIEventType.PATTERN_DETECTED, Impact.LEARNED),
    ChangeKind.EDGE_STRENGTHENED: (AIEventType.KNOWLEDGE_UPDATED, Impact.LEARNED),
    ChangeKind.CONTRADICTION_DETECTED: (AIEventType.CONTRADICTION_DETECTED, Impact.INFLUENCED),
    ChangeKind.CONTRADICTION_FLAGGED: (AIEventType.CONTRADICTION_DETECTED, Impact.INFLUENCED),
    ChangeKind.CONTRADICTION_AUTO_RESOLVED: (AIEventType.INFERENCE_MADE, Impact.INFLUENCED),
    ChangeKind.CONTRADICTION_RESOLVED: (AIEventType.USER_CORRECTION, Impact.INFLUENCED),
}


class KnowledgeEngine:
    """Owns one user's knowledge core and applies events to it.

    Each content-analysis event is applied in its own store transaction, so
    a batch stopped halfway leaves every earlier event fully committed and
    nothing of the later ones.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config.defaults()
        self.suppression = SuppressionEngine.from_config(self.config.suppression)
        self.store = EntityEdgeStore(self.config.graph, suppression=self.suppression)
        self.detector = ContradictionDetector(self.config.contradictions)
        self.detector.attach(self.store)
        self.resolver = ContradictionResolver(self.store)
        self.timeline = TimelineRecorder(self.config.timeline.max_events)
        self.profiler = CognitiveProfiler(self.config.profile, timeline=self.timeline)
        self.query = GraphQueryFacade(self.store)
        self.store.add_commit_listener(self._on_commit)
        self._ingest_lock = threading.Lock()
        self._ingested: set[str] = set()

    # ------------------------------------------------------------------
    # Content ingestion
    # ------------------------------------------------------------------

    def ingest(self, event: ContentAnalysisEvent) -> IngestionResult:
        """Apply one event; raises ValidationError before touching any state."""
        candidates = event.node_candidates()
        entry = validate_event(event.to_timeline_event())
        with self._ingest_lock:
            if event.id in self._ingested or self.timeline.get(event.id) is not None:
                raise ValidationError(f"Event {event.id} was already ingested")
            result = self._apply(event, candidates)
            self._ingested.add(event.id)
            if candidates and len(result.suppressed) == len(candidates):
                entry = validate_event(event.to_timeline_event(Impact.IGNORED))
            self.timeline.record(entry)
        return result

    def _apply(self, event: ContentAnalysisEvent, candidates: list[NodeCandidate]) -> IngestionResult:
        result = IngestionResult(event_id=event.id)
        with self.store.transaction(cause_event_id=event.id) as tx:
            node_ids: list[str | None] = []
            for candidate in candidates:
                upsert = tx.upsert_node(candidate)
                node_ids.append(upsert.node_id)
                if upsert.outcome == MergeOutcome.CREATED:
                    result.created.append(upsert.node_id)
                elif upsert.outcome == MergeOutcome.MERGED:
                    result.merged.append(upsert.node_id)
                else:
                    result.suppressed.append(upsert.rule_id)

            for relation in event.relations:
                endpoints = []
                for ref in (relation.source, relation.target):
                    endpoints.append(node_ids[ref] if isinstance(ref, int) else ref)
                if None in endpoints:
                    result.skipped_relations.append(
                        f"{relation.relationship}: endpoint claim was suppressed"
                    )
                    continue
                try:
                    edge = tx.upsert_edge(
                        endpoints[0],
                        endpoints[1],
                        relation.relationship,
                        relation.weight,
                        relation.confidence,
                        relation.bidirectional,
                    )
                except DanglingReferenceError as exc:
                    msg = f"{relation.relationship}: {exc}"
                    logger.warning("Skipping relation in event %s: %s", event.id, msg)
                    result.skipped_relations.append(msg)
                    continue
                result.edges.append(edge.id)

            result.contradictions = [
                change.entity_id for change in tx.changes
                if change.kind == ChangeKind.CONTRADICTION_DETECTED
            ]
        return result

    def ingest_batch(
        self,
        events: Iterable[ContentAnalysisEvent],
        should_stop: Callable[[], bool] | None = None,
    ) -> IngestionStats:
        """Apply events one by one, collecting failures instead of raising.

        ``should_stop`` is polled between events; once it returns True the
        batch ends with every already-applied event committed.
        """
        stats = IngestionStats()
        for event in events:
            if should_stop is not None and should_stop():
                stats.interrupted = True
                logger.info("Batch interrupted after %d events", stats.events_processed)
                break
            try:
                stats.add(self.ingest(event))
            except GraphError as exc:
                msg = f"Ingestion failed for event {event.id}: {exc}"
                logger.warning(msg)
                stats.events_failed += 1
                stats.errors.append(msg)
        return stats

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def approve_node(self, node_id: str) -> KnowledgeNode:
        return self.store.approve_node(node_id)

    def reject_node(self, node_id: str, reason: str = "") -> KnowledgeNode:
        return self.store.reject_node(node_id, reason)

    def edit_node(
        self,
        node_id: str,
        content: str,
        expected_updated_at: datetime | None = None,
        confidence: float | None = None,
    ) -> KnowledgeNode:
        return self.store.edit_node(node_id, content, expected_updated_at, confidence)

    def resolve_contradiction(
        self,
        contradiction_id: str,
        resolution: str,
        strategy: ResolutionStrategy | str = ResolutionStrategy.NOTE,
        winner: str | None = None,
    ) -> Contradiction:
        return self.resolver.apply(contradiction_id, strategy, resolution, winner)

    def add_suppression_rule(self, rule_type: SuppressionRuleType | str, value: str) -> SuppressionRule:
        with self.store.transaction():
            return self.suppression.add_rule(rule_type, value)

    def set_rule_active(self, rule_id: str, active: bool) -> SuppressionRule:
        with self.store.transaction():
            return self.suppression.set_active(rule_id, active)

    def remove_suppression_rule(self, rule_id: str) -> SuppressionRule:
        with self.store.transaction():
            return self.suppression.remove_rule(rule_id)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def add_behavior_sample(self, user_id: str, sample: BehavioralSample) -> CognitiveProfile | None:
        return self.profiler.add_sample(user_id, sample)

    def record_break(self, user_id: str, at: datetime | None = None) -> CognitiveProfile:
        return self.profiler.record_break(user_id, at)

    def recommendations(self, user_id: str) -> list[Recommendation]:
        recs = self.profiler.recommendations(user_id)
        for rec in recs:
            self.timeline.record(AITimelineEvent(
                type=AIEventType.RECOMMENDATION_GENERATED,
                description=rec.message,
                impact=Impact.INFLUENCED,
                confidence=rec.priority,
                details={"user_id": user_id, "kind": rec.kind.value, **rec.details},
            ))
        return recs

    # ------------------------------------------------------------------
    # Persistence hand-off
    # ------------------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        """Serialize everything; the export itself is logged to the timeline."""
        from orionkg.storage.serializers import engine_state_to_dict

        graph = self.store.snapshot()
        self.timeline.record(AITimelineEvent(
            type=AIEventType.EXPORT_TRIGGERED,
            description=f"Exported {len(graph.nodes)} nodes and {len(graph.edges)} edges",
            impact=Impact.EXPORTED,
            details={"nodes": str(len(graph.nodes)), "edges": str(len(graph.edges))},
        ))
        return engine_state_to_dict(
            graph,
            self.suppression.rules(),
            self.timeline.events(),
            self.profiler.export_profiles().values(),
        )

    def load_state(self, data: dict[str, Any]) -> None:
        from orionkg.storage.serializers import engine_state_from_dict

        graph, rules, events, profiles = engine_state_from_dict(data)
        with self.store.transaction():
            self.store.restore(graph)
            self.suppression.replace_rules(rules)
        self.timeline.load(events)
        with self._ingest_lock:
            self._ingested = {e.id for e in events}
        self.profiler.restore(profiles)
        logger.info(
            "Loaded state: %d nodes, %d edges, %d events",
            len(graph.nodes), len(graph.edges), len(events),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_commit(self, result: CommitResult) -> None:
        related = (result.cause_event_id,) if result.cause_event_id else ()
        for change in result.changes:
            event_type, impact = CHANGE_EVENTS[change.kind]
            self.timeline.record(AITimelineEvent(
                type=event_type,
                description=change.description,
                impact=impact,
                confidence=change.confidence,
                details={"change": change.kind.value, "entity_id": change.entity_id},
                sources=change.sources,
                related_events=related,
            ))
        for hit in result.suppressed:
            self.timeline.record(AITimelineEvent(
                type=AIEventType.SUPPRESSION_APPLIED,
                description=f"Suppressed: {hit.content}",
                impact=Impact.IGNORED,
                confidence=hit.confidence,
                details={"rule_id": hit.rule_id},
                sources=hit.sources,
                related_events=related,
            ))
