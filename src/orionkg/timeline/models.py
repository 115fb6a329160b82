"""Timeline event data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping

from orionkg.core.ids import make_id, utcnow


class AIEventType(str, Enum):
    CONTENT_ANALYZED = "content_analyzed"
    PATTERN_DETECTED = "pattern_detected"
    KNOWLEDGE_CREATED = "knowledge_created"
    KNOWLEDGE_UPDATED = "knowledge_updated"
    INFERENCE_MADE = "inference_made"
    RECOMMENDATION_GENERATED = "recommendation_generated"
    CONTRADICTION_DETECTED = "contradiction_detected"
    EXPORT_TRIGGERED = "export_triggered"
    SUPPRESSION_APPLIED = "suppression_applied"
    USER_CORRECTION = "user_correction"


class Impact(str, Enum):
    LEARNED = "learned"
    IGNORED = "ignored"
    EXPORTED = "exported"
    INFLUENCED = "influenced"


# Display name and icon per event type, for presentation layers.
EVENT_DISPLAY: dict[AIEventType, tuple[str, str]] = {
    AIEventType.CONTENT_ANALYZED: ("Content Analyzed", "doc.text.magnifyingglass"),
    AIEventType.PATTERN_DETECTED: ("Pattern Detected", "waveform.path.ecg"),
    AIEventType.KNOWLEDGE_CREATED: ("Knowledge Created", "plus.circle"),
    AIEventType.KNOWLEDGE_UPDATED: ("Knowledge Updated", "arrow.triangle.2.circlepath"),
    AIEventType.INFERENCE_MADE: ("Inference Made", "brain"),
    AIEventType.RECOMMENDATION_GENERATED: ("Recommendation", "lightbulb"),
    AIEventType.CONTRADICTION_DETECTED: ("Contradiction Found", "exclamationmark.triangle"),
    AIEventType.EXPORT_TRIGGERED: ("Data Exported", "square.and.arrow.up"),
    AIEventType.SUPPRESSION_APPLIED: ("Suppression Applied", "eye.slash"),
    AIEventType.USER_CORRECTION: ("User Correction", "pencil"),
}


@dataclass(frozen=True)
class AITimelineEvent:
    """Immutable audit record of one significant change."""

    type: AIEventType
    description: str
    impact: Impact
    confidence: float = 1.0
    id: str = field(default_factory=lambda: make_id("evt"))
    timestamp: datetime = field(default_factory=utcnow)
    details: Mapping[str, str] = field(default_factory=dict)
    sources: tuple[str, ...] = ()
    related_events: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return EVENT_DISPLAY[self.type][0]


@dataclass
class TimelineStats:
    total_events: int = 0
    learned_count: int = 0
    ignored_count: int = 0
    exported_count: int = 0
    influenced_count: int = 0
    top_sources: list[str] = field(default_factory=list)


@dataclass
class TimelinePage:
    events: list[AITimelineEvent]
    total: int
    offset: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.events) < self.total
