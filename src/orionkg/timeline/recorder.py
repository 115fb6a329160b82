"""Bounded, timestamp-ordered log of graph and profile activity."""
from __future__ import annotations

import bisect
import itertools
import logging
import math
import threading
from collections import Counter, deque
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from orionkg.config.constants import DEFAULT_TIMELINE_MAX_EVENTS
from orionkg.core.errors import InvalidEventError
from orionkg.core.ids import ensure_utc
from orionkg.timeline.models import (
    AIEventType,
    AITimelineEvent,
    Impact,
    TimelinePage,
    TimelineStats,
)

_logger = logging.getLogger(__name__)

TOP_SOURCES = 5


def validate_event(event: AITimelineEvent) -> AITimelineEvent:
    """Return ``event`` with enum fields coerced, or raise InvalidEventError."""
    try:
        event_type = AIEventType(event.type)
    except ValueError as exc:
        raise InvalidEventError(f"Unknown timeline event type: {event.type!r}") from exc
    try:
        impact = Impact(event.impact)
    except ValueError as exc:
        raise InvalidEventError(f"Unknown timeline impact: {event.impact!r}") from exc
    try:
        confidence = float(event.confidence)
    except (TypeError, ValueError) as exc:
        raise InvalidEventError(f"Event confidence must be a number, got {event.confidence!r}") from exc
    if not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
        raise InvalidEventError(f"Event confidence must be within [0, 1], got {confidence}")
    if not isinstance(event.timestamp, datetime):
        raise InvalidEventError("Event timestamp must be a datetime")
    return replace(
        event,
        type=event_type,
        impact=impact,
        confidence=confidence,
        timestamp=ensure_utc(event.timestamp),
        details={str(k): str(v) for k, v in event.details.items()},
        sources=tuple(event.sources),
        related_events=tuple(event.related_events),
    )


class TimelineRecorder:
    """Keeps events sorted by timestamp and drops only the oldest.

    Events with equal timestamps keep their recording order. Once more than
    ``max_events`` are held, the oldest are discarded; nothing else is ever
    removed or reordered.
    """

    def __init__(self, max_events: int = DEFAULT_TIMELINE_MAX_EVENTS) -> None:
        if max_events < 1:
            raise ValueError("max_events must be at least 1")
        self.max_events = max_events
        self._lock = threading.Lock()
        self._events: list[AITimelineEvent] = []
        self._keys: list[tuple[datetime, int]] = []
        self._by_id: dict[str, AITimelineEvent] = {}
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._events)

    def record(self, event: AITimelineEvent) -> AITimelineEvent:
        event = validate_event(event)
        with self._lock:
            if event.id in self._by_id:
                raise InvalidEventError(f"Duplicate timeline event id: {event.id}")
            key = (event.timestamp, next(self._seq))
            pos = bisect.bisect_right(self._keys, key)
            self._keys.insert(pos, key)
            self._events.insert(pos, event)
            self._by_id[event.id] = event
            overflow = len(self._events) - self.max_events
            if overflow > 0:
                for dropped in self._events[:overflow]:
                    del self._by_id[dropped.id]
                del self._events[:overflow]
                del self._keys[:overflow]
        _logger.debug("Timeline %s: %s", event.type.value, event.description)
        return event

    def load(self, events: Iterable[AITimelineEvent]) -> None:
        """Replace the log with persisted events."""
        with self._lock:
            self._events.clear()
            self._keys.clear()
            self._by_id.clear()
        for event in events:
            self.record(event)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._keys.clear()
            self._by_id.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def events(self) -> list[AITimelineEvent]:
        with self._lock:
            return list(self._events)

    def get(self, event_id: str) -> AITimelineEvent | None:
        return self._by_id.get(event_id)

    def recent(self, since: datetime) -> list[AITimelineEvent]:
        """Events strictly after ``since``, oldest first."""
        since = ensure_utc(since)
        with self._lock:
            pos = bisect.bisect_right(self._keys, (since, math.inf))
            return self._events[pos:]

    def related_to(self, event_id: str) -> list[AITimelineEvent]:
        """Events reachable from ``event_id`` through related-event links.

        Links are followed both ways: an event's own ``related_events`` and
        every event that names it. The start event is not included.
        """
        with self._lock:
            events = list(self._events)
            by_id = dict(self._by_id)
        if event_id not in by_id:
            return []

        linked_from: dict[str, list[str]] = {}
        for event in events:
            for target in event.related_events:
                linked_from.setdefault(target, []).append(event.id)

        seen = {event_id}
        queue = deque([event_id])
        while queue:
            current = queue.popleft()
            neighbours = list(linked_from.get(current, ()))
            if current in by_id:
                neighbours.extend(by_id[current].related_events)
            for other in neighbours:
                if other not in seen and other in by_id:
                    seen.add(other)
                    queue.append(other)
        seen.discard(event_id)
        return [e for e in events if e.id in seen]

    def filter(
        self,
        types: Iterable[AIEventType | str] | None = None,
        impact: Impact | str | None = None,
    ) -> list[AITimelineEvent]:
        try:
            wanted = {AIEventType(t) for t in types} if types else None
            wanted_impact = Impact(impact) if impact is not None else None
        except ValueError as exc:
            raise InvalidEventError(str(exc)) from exc
        with self._lock:
            events = list(self._events)
        return [
            e for e in events
            if (wanted is None or e.type in wanted)
            and (wanted_impact is None or e.impact == wanted_impact)
        ]

    def page(
        self,
        offset: int = 0,
        limit: int = 50,
        types: Iterable[AIEventType | str] | None = None,
        impact: Impact | str | None = None,
    ) -> TimelinePage:
        """Newest-first slice of the (optionally filtered) log."""
        offset = max(0, offset)
        limit = max(0, limit)
        matching = self.filter(types, impact)
        matching.reverse()
        return TimelinePage(
            events=matching[offset:offset + limit],
            total=len(matching),
            offset=offset,
            limit=limit,
        )

    def stats(self) -> TimelineStats:
        with self._lock:
            events = list(self._events)
        impacts = Counter(e.impact for e in events)
        sources = Counter(s for e in events for s in e.sources)
        return TimelineStats(
            total_events=len(events),
            learned_count=impacts.get(Impact.LEARNED, 0),
            ignored_count=impacts.get(Impact.IGNORED, 0),
            exported_count=impacts.get(Impact.EXPORTED, 0),
            influenced_count=impacts.get(Impact.INFLUENCED, 0),
            top_sources=[s for s, _ in sources.most_common(TOP_SOURCES)],
        )
