"""Cognitive profile data models."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from orionkg.core.errors import ValidationError
from orionkg.core.ids import ensure_utc, utcnow


class FatigueLevel(str, Enum):
    FRESH = "fresh"
    MILD = "mild"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return FATIGUE_ORDER.index(self)


FATIGUE_ORDER: list[FatigueLevel] = list(FatigueLevel)


class IndicatorType(str, Enum):
    SCROLL_SPEED = "scroll_speed"
    READ_TIME = "read_time"
    CLICK_PATTERN = "click_pattern"
    TYPOS = "typos"
    BACKTRACKING = "backtracking"


class Trend(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class RecommendationKind(str, Enum):
    TAKE_BREAK = "take_break"
    DIVERSIFY_SOURCES = "diversify_sources"
    EXPLORE_TOPICS = "explore_topics"


@dataclass(frozen=True)
class BehavioralSample:
    """One discrete observation of browsing behavior.

    Durations are seconds; ``scroll_speed`` is pixels per second.
    """

    session_duration: float
    scroll_speed: float
    read_time: float
    click_events: int
    topics_visited: tuple[str, ...] = ()
    source_domains: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=utcnow)
    questions_asked: int = 0
    typo_count: int = 0
    backtrack_count: int = 0
    content_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in (
            "session_duration", "scroll_speed", "read_time", "click_events",
            "questions_asked", "typo_count", "backtrack_count",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ValidationError(f"{name} must be a non-negative number, got {value}")
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        for name in ("topics_visited", "source_domains", "content_types"):
            cleaned = tuple(str(v).strip().lower() for v in getattr(self, name) if str(v).strip())
            object.__setattr__(self, name, cleaned)

    @property
    def session_minutes(self) -> float:
        return max(self.session_duration / 60.0, 1.0)


@dataclass
class AttentionMetrics:
    average_session_duration: float = 0.0
    focus_score: float = 0.0
    distraction_frequency: float = 0.0
    deep_reading_ratio: float = 0.0
    multitasking_tendency: float = 0.0
    peak_attention_hours: list[int] = field(default_factory=list)


@dataclass
class CuriosityMetrics:
    exploration_score: float = 0.0
    topic_diversity: float = 0.0
    question_frequency: float = 0.0
    deep_dive_ratio: float = 0.0
    novelty_seeking_score: float = 0.0
    avoidance_patterns: list[str] = field(default_factory=list)


@dataclass
class LearningMetrics:
    acquisition_rate: float = 0.0
    retention_score: float = 0.0
    connection_making_rate: float = 0.0
    concept_revisit_frequency: float = 0.0
    preferred_content_types: list[str] = field(default_factory=list)
    optimal_session_length: float = 0.0


@dataclass
class FatigueIndicator:
    type: IndicatorType
    value: float
    threshold: float
    trend: Trend = Trend.STABLE

    @property
    def normalized(self) -> float:
        if self.threshold <= 0:
            return 0.0
        return min(1.0, self.value / self.threshold)


@dataclass
class FatigueState:
    current_level: FatigueLevel = FatigueLevel.FRESH
    indicators: list[FatigueIndicator] = field(default_factory=list)
    recommended_break_in: float = 0.0
    last_break: datetime = field(default_factory=utcnow)
    score: float = 0.0


@dataclass
class BiasMetrics:
    confirmation_bias_score: float = 0.0
    source_homogeneity: float = 0.0
    political_skew: float = 0.0
    topic_blind_spots: list[str] = field(default_factory=list)
    drift_detected: bool = False
    drift_direction: str | None = None


@dataclass
class CognitiveProfile:
    user_id: str
    attention_span: AttentionMetrics = field(default_factory=AttentionMetrics)
    curiosity_metrics: CuriosityMetrics = field(default_factory=CuriosityMetrics)
    learning_velocity: LearningMetrics = field(default_factory=LearningMetrics)
    fatigue_state: FatigueState = field(default_factory=FatigueState)
    bias_tracking: BiasMetrics = field(default_factory=BiasMetrics)
    last_updated: datetime = field(default_factory=utcnow)
    sample_count: int = 0


@dataclass(frozen=True)
class Recommendation:
    kind: RecommendationKind
    message: str
    priority: float = 0.5
    details: dict[str, str] = field(default_factory=dict)
