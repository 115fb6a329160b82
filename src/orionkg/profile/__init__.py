"""Cognitive profiling from behavioral samples."""
from __future__ import annotations

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
    Trend,
)
from orionkg.profile.profiler import CognitiveProfiler

__all__ = [
    "AttentionMetrics",
    "BehavioralSample",
    "BiasMetrics",
    "CognitiveProfile",
    "CognitiveProfiler",
    "CuriosityMetrics",
    "FatigueIndicator",
    "FatigueLevel",
    "FatigueState",
    "IndicatorType",
    "LearningMetrics",
    "Recommendation",
    "RecommendationKind",
    "Trend",
]
