"""Rolling cognitive profile computed from behavioral samples."""
from __future__ import annotations

import copy
import logging
import threading
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable

import numpy as np

from orionkg.config.settings import ProfileConfig
from orionkg.core.ids import ensure_utc, utcnow
from orionkg.knowledge_graph.trust import domain_matches
from orionkg.profile import fatigue
from orionkg.profile.models import (
    AttentionMetrics,
    BehavioralSample,
    BiasMetrics,
    CognitiveProfile,
    CuriosityMetrics,
    FatigueIndicator,
    FatigueLevel,
    FatigueState,
    IndicatorType,
    LearningMetrics,
    Recommendation,
    RecommendationKind,
)
from orionkg.timeline.models import AIEventType
from orionkg.timeline.recorder import TimelineRecorder

_logger = logging.getLogger(__name__)

LEARNING_WINDOW = timedelta(hours=24)
PEAK_HOURS = 3
TOP_CONTENT_TYPES = 3
HOMOGENEITY_ALERT = 0.7
SKEW_ALERT = 0.5


def normalized_entropy(counts: Iterable[int]) -> float:
    """Shannon entropy scaled to [0, 1] by the log of the category count."""
    values = np.array([c for c in counts if c > 0], dtype=float)
    if values.size < 2:
        return 0.0
    p = values / values.sum()
    return float(-(p * np.log(p)).sum() / np.log(values.size))


def _mean(values: list[float]) -> float:
    return float(np.mean(values)) if values else 0.0


@dataclass
class _UserState:
    profile: CognitiveProfile
    lock: threading.Lock = field(default_factory=threading.Lock)
    window: deque = field(default_factory=deque)
    pending: list[BehavioralSample] = field(default_factory=list)
    focus: float | None = None
    distraction: float | None = None
    exploration: float | None = None
    novelty: float | None = None
    indicators: dict[IndicatorType, float] = field(default_factory=dict)
    topic_samples: Counter = field(default_factory=Counter)
    seen_domains: set[str] = field(default_factory=set)


class CognitiveProfiler:
    """Maintains one CognitiveProfile per user.

    Samples are buffered and folded in one update cycle at a time. Each user
    has a private lock, so profile work never waits on the graph writer and
    two users never wait on each other. Learning metrics come from the
    timeline; the node/edge store is never read.
    """

    def __init__(
        self,
        config: ProfileConfig | None = None,
        timeline: TimelineRecorder | None = None,
    ) -> None:
        self.config = config or ProfileConfig()
        self._timeline = timeline
        self._users: dict[str, _UserState] = {}
        self._users_lock = threading.Lock()

    @property
    def baseline_break_seconds(self) -> float:
        return self.config.break_baseline_minutes * 60.0

    def _state(self, user_id: str) -> _UserState:
        with self._users_lock:
            state = self._users.get(user_id)
            if state is None:
                state = _UserState(
                    profile=self._fresh_profile(user_id),
                    window=deque(maxlen=max(1, self.config.window_size)),
                )
                self._users[user_id] = state
            return state

    def _fresh_profile(self, user_id: str) -> CognitiveProfile:
        return CognitiveProfile(
            user_id=user_id,
            fatigue_state=FatigueState(recommended_break_in=self.baseline_break_seconds),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def users(self) -> list[str]:
        with self._users_lock:
            return list(self._users)

    def profile(self, user_id: str) -> CognitiveProfile:
        """A detached copy of the user's current profile."""
        with self._users_lock:
            state = self._users.get(user_id)
        if state is None:
            return self._fresh_profile(user_id)
        with state.lock:
            return copy.deepcopy(state.profile)

    def add_sample(self, user_id: str, sample: BehavioralSample) -> CognitiveProfile | None:
        """Buffer a sample; returns the new profile when it triggered an update."""
        state = self._state(user_id)
        with state.lock:
            state.pending.append(sample)
            due = len(state.pending) >= max(1, self.config.update_every)
        if due:
            return self.recompute(user_id)
        return None

    def recompute(self, user_id: str, now: datetime | None = None) -> CognitiveProfile:
        """Run one update cycle over every buffered sample."""
        state = self._state(user_id)
        now = ensure_utc(now) if now else utcnow()
        with state.lock:
            if not state.pending:
                return copy.deepcopy(state.profile)
            samples = sorted(state.pending, key=lambda s: s.timestamp)
            state.pending.clear()

            for sample in samples:
                self._absorb(state, sample)

            profile = state.profile
            profile.attention_span = self._attention(state)
            profile.curiosity_metrics = self._curiosity(state)
            profile.learning_velocity = self._learning(state, now)
            profile.fatigue_state = self._fatigue(state)
            profile.bias_tracking = self._bias(state)
            profile.sample_count += len(samples)
            profile.last_updated = now
            _logger.debug(
                "Profile %s updated: fatigue=%s score=%.2f",
                user_id, profile.fatigue_state.current_level.value, profile.fatigue_state.score,
            )
            return copy.deepcopy(profile)

    def record_break(self, user_id: str, at: datetime | None = None) -> CognitiveProfile:
        """Reset fatigue after a break."""
        state = self._state(user_id)
        at = ensure_utc(at) if at else utcnow()
        with state.lock:
            state.indicators.clear()
            previous = state.profile.fatigue_state
            state.profile.fatigue_state = FatigueState(
                current_level=FatigueLevel.FRESH,
                indicators=[
                    FatigueIndicator(i.type, 0.0, i.threshold) for i in previous.indicators
                ],
                recommended_break_in=self.baseline_break_seconds,
                last_break=at,
                score=0.0,
            )
            state.profile.last_updated = at
            _logger.info("Break recorded for %s", user_id)
            return copy.deepcopy(state.profile)

    def recommendations(self, user_id: str) -> list[Recommendation]:
        profile = self.profile(user_id)
        out: list[Recommendation] = []

        fatigue_state = profile.fatigue_state
        if (
            fatigue_state.current_level in (FatigueLevel.HIGH, FatigueLevel.SEVERE)
            or (profile.sample_count and fatigue_state.recommended_break_in <= 0)
        ):
            out.append(Recommendation(
                kind=RecommendationKind.TAKE_BREAK,
                message=f"Fatigue is {fatigue_state.current_level.value}; take a short break.",
                priority=0.9 if fatigue_state.current_level == FatigueLevel.SEVERE else 0.7,
                details={"level": fatigue_state.current_level.value},
            ))

        bias = profile.bias_tracking
        if profile.sample_count and (
            bias.source_homogeneity >= HOMOGENEITY_ALERT or abs(bias.political_skew) >= SKEW_ALERT
        ):
            out.append(Recommendation(
                kind=RecommendationKind.DIVERSIFY_SOURCES,
                message="Most of your reading comes from a narrow set of sources.",
                priority=0.5,
                details={
                    "source_homogeneity": f"{bias.source_homogeneity:.2f}",
                    "political_skew": f"{bias.political_skew:.2f}",
                },
            ))

        unexplored = bias.topic_blind_spots + profile.curiosity_metrics.avoidance_patterns
        if unexplored:
            out.append(Recommendation(
                kind=RecommendationKind.EXPLORE_TOPICS,
                message="Some topics have dropped out of your reading.",
                priority=0.3,
                details={"topics": ", ".join(sorted(set(unexplored)))},
            ))
        return out

    def export_profiles(self) -> dict[str, CognitiveProfile]:
        return {user_id: self.profile(user_id) for user_id in self.users()}

    def restore(self, profiles: Iterable[CognitiveProfile]) -> None:
        """Load persisted profiles; smoothing state restarts from them."""
        with self._users_lock:
            for profile in profiles:
                self._users[profile.user_id] = _UserState(
                    profile=copy.deepcopy(profile),
                    window=deque(maxlen=max(1, self.config.window_size)),
                )

    # ------------------------------------------------------------------
    # Update cycle
    # ------------------------------------------------------------------

    def _sample_focus(self, sample: BehavioralSample) -> float:
        depth = min(1.0, sample.read_time / self.config.deep_read_seconds)
        return depth / (1.0 + self._switch_rate(sample))

    @staticmethod
    def _switch_rate(sample: BehavioralSample) -> float:
        """Topic switches per minute."""
        return max(0, len(sample.topics_visited) - 1) / sample.session_minutes

    def _absorb(self, state: _UserState, sample: BehavioralSample) -> None:
        alpha = self.config.ewma_alpha
        state.focus = fatigue.ewma(state.focus, self._sample_focus(sample), alpha)
        state.distraction = fatigue.ewma(state.distraction, self._switch_rate(sample), alpha)

        topics = set(sample.topics_visited)
        domains = set(sample.source_domains)
        if topics:
            new_topics = sum(1 for t in topics if state.topic_samples[t] == 0)
            state.exploration = fatigue.ewma(state.exploration, new_topics / len(topics), alpha)
        if domains:
            new_domains = len(domains - state.seen_domains)
            state.novelty = fatigue.ewma(state.novelty, new_domains / len(domains), alpha)
        state.topic_samples.update(topics)
        state.seen_domains |= domains

        skim_floor = self.config.indicator_thresholds.get(IndicatorType.READ_TIME.value, 1.0)
        for kind, value in fatigue.raw_indicators(sample, skim_floor).items():
            state.indicators[kind] = fatigue.ewma(state.indicators.get(kind), value, alpha)
        state.window.append(sample)

    def _attention(self, state: _UserState) -> AttentionMetrics:
        window = list(state.window)
        deep = self.config.deep_read_seconds

        by_hour: dict[int, list[float]] = {}
        for sample in window:
            by_hour.setdefault(sample.timestamp.hour, []).append(self._sample_focus(sample))
        ranked = sorted(by_hour, key=lambda h: (_mean(by_hour[h]), -h), reverse=True)

        return AttentionMetrics(
            average_session_duration=_mean([s.session_duration for s in window]),
            focus_score=state.focus or 0.0,
            distraction_frequency=state.distraction or 0.0,
            deep_reading_ratio=_mean([1.0 if s.read_time >= deep else 0.0 for s in window]),
            multitasking_tendency=_mean(
                [1.0 if len(set(s.source_domains)) > 1 else 0.0 for s in window]
            ),
            peak_attention_hours=sorted(ranked[:PEAK_HOURS]),
        )

    def _curiosity(self, state: _UserState) -> CuriosityMetrics:
        window = list(state.window)
        topic_counts = Counter(t for s in window for t in set(s.topics_visited))

        continued = 0
        for previous, current in zip(window, window[1:]):
            if set(previous.topics_visited) & set(current.topics_visited):
                continued += 1

        avoidance: list[str] = []
        if len(window) >= 4:
            half = len(window) // 2
            older = Counter(t for s in window[:half] for t in set(s.topics_visited))
            newer = {t for s in window[half:] for t in s.topics_visited}
            avoidance = sorted(t for t, n in older.items() if n >= 2 and t not in newer)

        return CuriosityMetrics(
            exploration_score=state.exploration or 0.0,
            topic_diversity=normalized_entropy(topic_counts.values()),
            question_frequency=_mean([float(s.questions_asked) for s in window]),
            deep_dive_ratio=continued / (len(window) - 1) if len(window) > 1 else 0.0,
            novelty_seeking_score=state.novelty or 0.0,
            avoidance_patterns=avoidance,
        )

    def _learning(self, state: _UserState, now: datetime) -> LearningMetrics:
        window = list(state.window)
        created = 0
        analyzed_relations: list[float] = []
        if self._timeline is not None:
            for event in self._timeline.recent(now - LEARNING_WINDOW):
                if event.type == AIEventType.KNOWLEDGE_CREATED:
                    created += 1
                elif event.type == AIEventType.CONTENT_ANALYZED:
                    try:
                        analyzed_relations.append(float(event.details.get("relations", 0)))
                    except ValueError:
                        analyzed_relations.append(0.0)
        hours = LEARNING_WINDOW.total_seconds() / 3600.0

        topic_samples = state.topic_samples
        revisited = sum(1 for n in topic_samples.values() if n >= 2)
        occurrences = [t for s in window for t in set(s.topics_visited)]

        focus = [self._sample_focus(s) for s in window]
        optimal = 0.0
        if window:
            median = float(np.median(focus))
            focused = [s.session_duration for s, f in zip(window, focus) if f >= median]
            optimal = _mean(focused)

        content_types = Counter(c for s in window for c in s.content_types)
        return LearningMetrics(
            acquisition_rate=created / hours,
            retention_score=revisited / len(topic_samples) if topic_samples else 0.0,
            connection_making_rate=_mean(analyzed_relations),
            concept_revisit_frequency=(
                (len(occurrences) - len(set(occurrences))) / len(occurrences) if occurrences else 0.0
            ),
            preferred_content_types=[c for c, _ in content_types.most_common(TOP_CONTENT_TYPES)],
            optimal_session_length=optimal,
        )

    def _fatigue(self, state: _UserState) -> FatigueState:
        previous = state.profile.fatigue_state
        previous_values = {i.type: i.value for i in previous.indicators}
        thresholds = self.config.indicator_thresholds

        indicators = []
        for kind in IndicatorType:
            value = state.indicators.get(kind, 0.0)
            threshold = thresholds.get(kind.value, 1.0)
            indicators.append(FatigueIndicator(
                type=kind,
                value=value,
                threshold=threshold,
                trend=fatigue.trend_of(previous_values.get(kind), value, threshold),
            ))

        score = fatigue.composite_score(indicators, self.config.indicator_weights)
        target = fatigue.level_for_score(score, self.config.fatigue_thresholds)
        level = fatigue.step_level(previous.current_level, target)
        if level != previous.current_level:
            _logger.info(
                "Fatigue %s -> %s (score %.2f)",
                previous.current_level.value, level.value, score,
            )
        return FatigueState(
            current_level=level,
            indicators=indicators,
            recommended_break_in=fatigue.next_break_in(
                previous.current_level,
                level,
                previous.recommended_break_in,
                self.baseline_break_seconds,
            ),
            last_break=previous.last_break,
            score=score,
        )

    def _skew_of(self, samples: list[BehavioralSample]) -> float | None:
        skews = []
        for sample in samples:
            for domain in sample.source_domains:
                for known, skew in self.config.source_skew.items():
                    if domain_matches(domain, known):
                        skews.append(skew)
                        break
        return _mean(skews) if skews else None

    def _bias(self, state: _UserState) -> BiasMetrics:
        window = list(state.window)
        domain_counts = Counter(d for s in window for d in s.source_domains)
        homogeneity = 1.0 - normalized_entropy(domain_counts.values()) if domain_counts else 0.0
        skew = self._skew_of(window) or 0.0

        visited = set(state.topic_samples)
        blind_spots = [
            t for t in self.config.reference_topics if t.strip().lower() not in visited
        ]

        drift_detected = False
        direction = None
        if len(window) >= 4:
            half = len(window) // 2
            older, newer = window[:half], window[half:]
            older_skew, newer_skew = self._skew_of(older), self._skew_of(newer)
            if older_skew is not None and newer_skew is not None:
                delta = newer_skew - older_skew
                if abs(delta) >= self.config.drift_threshold:
                    drift_detected = True
                    direction = "right" if delta > 0 else "left"
            else:
                older_h = 1.0 - normalized_entropy(
                    Counter(d for s in older for d in s.source_domains).values()
                )
                newer_h = 1.0 - normalized_entropy(
                    Counter(d for s in newer for d in s.source_domains).values()
                )
                delta = newer_h - older_h
                if abs(delta) >= self.config.drift_threshold:
                    drift_detected = True
                    direction = "narrowing" if delta > 0 else "broadening"

        return BiasMetrics(
            confirmation_bias_score=(homogeneity + abs(skew)) / 2.0,
            source_homogeneity=homogeneity,
            political_skew=skew,
            topic_blind_spots=blind_spots,
            drift_detected=drift_detected,
            drift_direction=direction,
        )
