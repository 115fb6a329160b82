"""Field-for-field conversion of every core record to and from plain dicts.

Timestamps are ISO-8601 strings with microseconds and a UTC offset, so a
round trip reproduces every record exactly.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from orionkg.core.ids import ensure_utc
from orionkg.knowledge_graph.models import (
    ApprovalStatus,
    Contradiction,
    KnowledgeEdge,
    KnowledgeGraph,
    KnowledgeNode,
    NodeType,
)
from orionkg.profile.models import (
    AttentionMetrics,
    BiasMetrics,
    CognitiveProfile,
    CuriosityMetrics,
    FatigueIndicator,
    FatigueLevel,
    FatigueState,
    IndicatorType,
    LearningMetrics,
    Trend,
)
from orionkg.suppression.models import SuppressionRule, SuppressionRuleType
from orionkg.timeline.models import AIEventType, AITimelineEvent, Impact

FORMAT_VERSION = 1


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))


def _optional_ts(value: datetime | None) -> str | None:
    return format_timestamp(value) if value is not None else None


def _parse_optional_ts(value: str | None) -> datetime | None:
    return parse_timestamp(value) if value else None


# ----------------------------------------------------------------------
# Graph
# ----------------------------------------------------------------------

def node_to_dict(node: KnowledgeNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "type": node.type.value,
        "content": node.content,
        "confidence": node.confidence,
        "created_at": format_timestamp(node.created_at),
        "updated_at": format_timestamp(node.updated_at),
        "sources": list(node.sources),
        "contradictions": list(node.contradictions),
        "user_edited": node.user_edited,
        "metadata": dict(node.metadata),
        "approval_status": node.approval_status.value,
    }


def node_from_dict(data: dict[str, Any]) -> KnowledgeNode:
    return KnowledgeNode(
        id=data["id"],
        type=NodeType(data["type"]),
        content=data["content"],
        confidence=float(data["confidence"]),
        created_at=parse_timestamp(data["created_at"]),
        updated_at=parse_timestamp(data["updated_at"]),
        sources=tuple(data.get("sources", ())),
        contradictions=tuple(data.get("contradictions", ())),
        user_edited=bool(data.get("user_edited", False)),
        metadata=dict(data.get("metadata", {})),
        approval_status=ApprovalStatus(data.get("approval_status", ApprovalStatus.PENDING.value)),
    )


def edge_to_dict(edge: KnowledgeEdge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "source_id": edge.source_id,
        "target_id": edge.target_id,
        "relationship": edge.relationship,
        "weight": edge.weight,
        "confidence": edge.confidence,
        "bidirectional": edge.bidirectional,
        "created_at": format_timestamp(edge.created_at),
    }


def edge_from_dict(data: dict[str, Any]) -> KnowledgeEdge:
    return KnowledgeEdge(
        id=data["id"],
        source_id=data["source_id"],
        target_id=data["target_id"],
        relationship=data["relationship"],
        weight=float(data["weight"]),
        confidence=float(data["confidence"]),
        bidirectional=bool(data.get("bidirectional", False)),
        created_at=parse_timestamp(data["created_at"]),
    )


def contradiction_to_dict(contradiction: Contradiction) -> dict[str, Any]:
    return {
        "id": contradiction.id,
        "claim_a": contradiction.claim_a,
        "claim_b": contradiction.claim_b,
        "source_a": contradiction.source_a,
        "source_b": contradiction.source_b,
        "detected_at": format_timestamp(contradiction.detected_at),
        "resolved": contradiction.resolved,
        "resolution": contradiction.resolution,
        "node_ids": list(contradiction.node_ids),
        "confidence_a": contradiction.confidence_a,
        "confidence_b": contradiction.confidence_b,
        "trust_a": contradiction.trust_a,
        "trust_b": contradiction.trust_b,
        "resolved_at": _optional_ts(contradiction.resolved_at),
        "needs_review": contradiction.needs_review,
    }


def contradiction_from_dict(data: dict[str, Any]) -> Contradiction:
    return Contradiction(
        id=data["id"],
        claim_a=data["claim_a"],
        claim_b=data["claim_b"],
        source_a=data.get("source_a", ""),
        source_b=data.get("source_b", ""),
        detected_at=parse_timestamp(data["detected_at"]),
        resolved=bool(data.get("resolved", False)),
        resolution=data.get("resolution"),
        node_ids=tuple(data.get("node_ids", ())),
        confidence_a=float(data.get("confidence_a", 0.0)),
        confidence_b=float(data.get("confidence_b", 0.0)),
        trust_a=float(data.get("trust_a", 0.0)),
        trust_b=float(data.get("trust_b", 0.0)),
        resolved_at=_parse_optional_ts(data.get("resolved_at")),
        needs_review=bool(data.get("needs_review", False)),
    )


def graph_to_dict(graph: KnowledgeGraph) -> dict[str, Any]:
    return {
        "nodes": [node_to_dict(n) for n in graph.nodes.values()],
        "edges": [edge_to_dict(e) for e in graph.edges.values()],
        "contradictions": [contradiction_to_dict(c) for c in graph.contradictions.values()],
        "last_updated": format_timestamp(graph.last_updated),
    }


def graph_from_dict(data: dict[str, Any]) -> KnowledgeGraph:
    nodes = [node_from_dict(n) for n in data.get("nodes", [])]
    edges = [edge_from_dict(e) for e in data.get("edges", [])]
    contradictions = [contradiction_from_dict(c) for c in data.get("contradictions", [])]
    return KnowledgeGraph(
        nodes={n.id: n for n in nodes},
        edges={e.id: e for e in edges},
        contradictions={c.id: c for c in contradictions},
        last_updated=parse_timestamp(data["last_updated"]),
    )


# ----------------------------------------------------------------------
# Suppression / timeline
# ----------------------------------------------------------------------

def rule_to_dict(rule: SuppressionRule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "type": rule.type.value,
        "value": rule.value,
        "is_active": rule.is_active,
        "created_at": format_timestamp(rule.created_at),
        "match_count": rule.match_count,
    }


def rule_from_dict(data: dict[str, Any]) -> SuppressionRule:
    return SuppressionRule(
        id=data["id"],
        type=SuppressionRuleType(data["type"]),
        value=data["value"],
        is_active=bool(data.get("is_active", True)),
        created_at=parse_timestamp(data["created_at"]),
        match_count=int(data.get("match_count", 0)),
    )


def event_to_dict(event: AITimelineEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "timestamp": format_timestamp(event.timestamp),
        "type": event.type.value,
        "description": event.description,
        "details": dict(event.details),
        "sources": list(event.sources),
        "impact": event.impact.value,
        "confidence": event.confidence,
        "related_events": list(event.related_events),
    }


def event_from_dict(data: dict[str, Any]) -> AITimelineEvent:
    return AITimelineEvent(
        id=data["id"],
        timestamp=parse_timestamp(data["timestamp"]),
        type=AIEventType(data["type"]),
        description=data["description"],
        details=dict(data.get("details", {})),
        sources=tuple(data.get("sources", ())),
        impact=Impact(data["impact"]),
        confidence=float(data["confidence"]),
        related_events=tuple(data.get("related_events", ())),
    )


# ----------------------------------------------------------------------
# Profiles
# ----------------------------------------------------------------------

def profile_to_dict(profile: CognitiveProfile) -> dict[str, Any]:
    attention = profile.attention_span
    curiosity = profile.curiosity_metrics
    learning = profile.learning_velocity
    fatigue = profile.fatigue_state
    bias = profile.bias_tracking
    return {
        "user_id": profile.user_id,
        "attention_span": {
            "average_session_duration": attention.average_session_duration,
            "focus_score": attention.focus_score,
            "distraction_frequency": attention.distraction_frequency,
            "deep_reading_ratio": attention.deep_reading_ratio,
            "multitasking_tendency": attention.multitasking_tendency,
            "peak_attention_hours": list(attention.peak_attention_hours),
        },
        "curiosity_metrics": {
            "exploration_score": curiosity.exploration_score,
            "topic_diversity": curiosity.topic_diversity,
            "question_frequency": curiosity.question_frequency,
            "deep_dive_ratio": curiosity.deep_dive_ratio,
            "novelty_seeking_score": curiosity.novelty_seeking_score,
            "avoidance_patterns": list(curiosity.avoidance_patterns),
        },
        "learning_velocity": {
            "acquisition_rate": learning.acquisition_rate,
            "retention_score": learning.retention_score,
            "connection_making_rate": learning.connection_making_rate,
            "concept_revisit_frequency": learning.concept_revisit_frequency,
            "preferred_content_types": list(learning.preferred_content_types),
            "optimal_session_length": learning.optimal_session_length,
        },
        "fatigue_state": {
            "current_level": fatigue.current_level.value,
            "indicators": [
                {
                    "type": i.type.value,
                    "value": i.value,
                    "threshold": i.threshold,
                    "trend": i.trend.value,
                }
                for i in fatigue.indicators
            ],
            "recommended_break_in": fatigue.recommended_break_in,
            "last_break": format_timestamp(fatigue.last_break),
            "score": fatigue.score,
        },
        "bias_tracking": {
            "confirmation_bias_score": bias.confirmation_bias_score,
            "source_homogeneity": bias.source_homogeneity,
            "political_skew": bias.political_skew,
            "topic_blind_spots": list(bias.topic_blind_spots),
            "drift_detected": bias.drift_detected,
            "drift_direction": bias.drift_direction,
        },
        "last_updated": format_timestamp(profile.last_updated),
        "sample_count": profile.sample_count,
    }


def profile_from_dict(data: dict[str, Any]) -> CognitiveProfile:
    fatigue = data["fatigue_state"]
    return CognitiveProfile(
        user_id=data["user_id"],
        attention_span=AttentionMetrics(**data["attention_span"]),
        curiosity_metrics=CuriosityMetrics(**data["curiosity_metrics"]),
        learning_velocity=LearningMetrics(**data["learning_velocity"]),
        fatigue_state=FatigueState(
            current_level=FatigueLevel(fatigue["current_level"]),
            indicators=[
                FatigueIndicator(
                    type=IndicatorType(i["type"]),
                    value=float(i["value"]),
                    threshold=float(i["threshold"]),
                    trend=Trend(i["trend"]),
                )
                for i in fatigue.get("indicators", [])
            ],
            recommended_break_in=float(fatigue["recommended_break_in"]),
            last_break=parse_timestamp(fatigue["last_break"]),
            score=float(fatigue.get("score", 0.0)),
        ),
        bias_tracking=BiasMetrics(**data["bias_tracking"]),
        last_updated=parse_timestamp(data["last_updated"]),
        sample_count=int(data.get("sample_count", 0)),
    )


# ----------------------------------------------------------------------
# Whole engine
# ----------------------------------------------------------------------

def engine_state_to_dict(
    graph: KnowledgeGraph,
    rules: Iterable[SuppressionRule],
    events: Iterable[AITimelineEvent],
    profiles: Iterable[CognitiveProfile],
) -> dict[str, Any]:
    return {
        "version": FORMAT_VERSION,
        "graph": graph_to_dict(graph),
        "suppression_rules": [rule_to_dict(r) for r in rules],
        "timeline": [event_to_dict(e) for e in events],
        "profiles": [profile_to_dict(p) for p in profiles],
    }


def engine_state_from_dict(
    data: dict[str, Any],
) -> tuple[KnowledgeGraph, list[SuppressionRule], list[AITimelineEvent], list[CognitiveProfile]]:
    version = data.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported state format version: {version}")
    return (
        graph_from_dict(data["graph"]),
        [rule_from_dict(r) for r in data.get("suppression_rules", [])],
        [event_from_dict(e) for e in data.get("timeline", [])],
        [profile_from_dict(p) for p in data.get("profiles", [])],
    )
