"""Fatigue scoring and the level state machine."""
from __future__ import annotations

from typing import Mapping

from orionkg.profile.models import (
    FATIGUE_ORDER,
    BehavioralSample,
    FatigueIndicator,
    FatigueLevel,
    IndicatorType,
    Trend,
)

# Share of the baseline break interval left at each level.
BREAK_FACTORS: dict[FatigueLevel, float] = {
    FatigueLevel.FRESH: 1.0,
    FatigueLevel.MILD: 0.75,
    FatigueLevel.MODERATE: 0.5,
    FatigueLevel.HIGH: 0.25,
    FatigueLevel.SEVERE: 0.0,
}

# Relative change (of the threshold) below which a trend reads as stable.
TREND_TOLERANCE = 0.02


def ewma(previous: float | None, value: float, alpha: float) -> float:
    if previous is None:
        return value
    return alpha * value + (1.0 - alpha) * previous


def raw_indicators(sample: BehavioralSample, skim_floor: float) -> dict[IndicatorType, float]:
    """Per-sample indicator readings before smoothing.

    Read time counts toward fatigue only as a shortfall below ``skim_floor``
    seconds, so a long focused read never raises the score.
    """
    return {
        IndicatorType.SCROLL_SPEED: sample.scroll_speed,
        IndicatorType.READ_TIME: max(0.0, skim_floor - sample.read_time),
        IndicatorType.CLICK_PATTERN: sample.click_events / sample.session_minutes,
        IndicatorType.TYPOS: float(sample.typo_count),
        IndicatorType.BACKTRACKING: float(sample.backtrack_count),
    }


def trend_of(previous: float | None, current: float, threshold: float) -> Trend:
    if previous is None:
        return Trend.STABLE
    delta = current - previous
    tolerance = TREND_TOLERANCE * (threshold if threshold > 0 else 1.0)
    if delta > tolerance:
        return Trend.INCREASING
    if delta < -tolerance:
        return Trend.DECREASING
    return Trend.STABLE


def composite_score(indicators: list[FatigueIndicator], weights: Mapping[str, float]) -> float:
    """Weighted mean of normalized indicators, in [0, 1]."""
    total_weight = 0.0
    score = 0.0
    for indicator in indicators:
        weight = weights.get(indicator.type.value, 0.0)
        total_weight += weight
        score += weight * indicator.normalized
    return score / total_weight if total_weight > 0 else 0.0


def level_for_score(score: float, thresholds: Mapping[str, float]) -> FatigueLevel:
    """Highest level whose entry threshold the score reaches."""
    level = FatigueLevel.FRESH
    for candidate in FATIGUE_ORDER[1:]:
        threshold = thresholds.get(candidate.value)
        if threshold is not None and score >= threshold:
            level = candidate
    return level


def step_level(previous: FatigueLevel, target: FatigueLevel) -> FatigueLevel:
    """Rise freely, but fall by at most one level per update."""
    if target.rank < previous.rank - 1:
        return FATIGUE_ORDER[previous.rank - 1]
    return target


def next_break_in(
    previous_level: FatigueLevel,
    level: FatigueLevel,
    previous_break_in: float,
    baseline_seconds: float,
) -> float:
    """Seconds until a break is advised.

    Never grows unless the level fell; a recorded break resets it elsewhere.
    """
    proposed = BREAK_FACTORS[level] * baseline_seconds
    if level.rank >= previous_level.rank:
        return min(previous_break_in, proposed)
    return proposed
