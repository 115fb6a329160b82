"""Activity timeline of what the system learned, ignored and exported."""
from __future__ import annotations

from orionkg.timeline.models import (
    EVENT_DISPLAY,
    AIEventType,
    AITimelineEvent,
    Impact,
    TimelinePage,
    TimelineStats,
)
from orionkg.timeline.recorder import TimelineRecorder

__all__ = [
    "AIEventType",
    "AITimelineEvent",
    "EVENT_DISPLAY",
    "Impact",
    "TimelinePage",
    "TimelineRecorder",
    "TimelineStats",
]
