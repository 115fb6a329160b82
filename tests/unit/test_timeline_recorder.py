"""Tests for TimelineRecorder ordering, retention and queries."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from orionkg.core.errors import InvalidEventError
from orionkg.timeline import AIEventType, AITimelineEvent, Impact, TimelineRecorder

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _event(minutes: int = 0, **kwargs) -> AITimelineEvent:
    return AITimelineEvent(
        type=kwargs.pop("type", AIEventType.KNOWLEDGE_CREATED),
        description=kwargs.pop("description", f"event at +{minutes}m"),
        impact=kwargs.pop("impact", Impact.LEARNED),
        timestamp=T0 + timedelta(minutes=minutes),
        **kwargs,
    )


class TestRecording:
    def test_events_are_kept_in_timestamp_order(self) -> None:
        recorder = TimelineRecorder()
        late = recorder.record(_event(10))
        early = recorder.record(_event(1))
        middle = recorder.record(_event(5))
        assert [e.id for e in recorder.events()] == [early.id, middle.id, late.id]

    def test_equal_timestamps_keep_recording_order(self) -> None:
        recorder = TimelineRecorder()
        first = recorder.record(_event(3))
        second = recorder.record(_event(3))
        assert [e.id for e in recorder.events()] == [first.id, second.id]

    def test_naive_timestamp_is_treated_as_utc(self) -> None:
        recorder = TimelineRecorder()
        event = recorder.record(
            AITimelineEvent(
                type="content_analyzed",
                description="naive",
                impact="learned",
                timestamp=datetime(2024, 5, 1, 12, 0),
            )
        )
        assert event.timestamp == T0
        assert event.type == AIEventType.CONTENT_ANALYZED

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"type": "daydreamed"},
            {"impact": "forgotten"},
            {"confidence": 1.2},
            {"confidence": float("nan")},
        ],
    )
    def test_invalid_events_are_refused(self, kwargs) -> None:
        recorder = TimelineRecorder()
        with pytest.raises(InvalidEventError):
            recorder.record(_event(**kwargs))
        assert len(recorder) == 0

    def test_duplicate_id_is_refused(self) -> None:
        recorder = TimelineRecorder()
        event = recorder.record(_event())
        with pytest.raises(InvalidEventError, match="Duplicate"):
            recorder.record(_event(id=event.id))

    def test_max_events_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            TimelineRecorder(max_events=0)


class TestRetention:
    def test_oldest_events_are_dropped(self) -> None:
        recorder = TimelineRecorder(max_events=3)
        events = [recorder.record(_event(m)) for m in (4, 1, 3, 2, 5)]
        kept = recorder.events()
        assert [e.timestamp for e in kept] == [T0 + timedelta(minutes=m) for m in (3, 4, 5)]
        dropped = {e.id for e in events} - {e.id for e in kept}
        assert all(recorder.get(event_id) is None for event_id in dropped)


class TestQueries:
    def test_recent_is_strictly_after(self) -> None:
        recorder = TimelineRecorder()
        for m in (1, 2, 3):
            recorder.record(_event(m))
        recent = recorder.recent(T0 + timedelta(minutes=2))
        assert [e.timestamp for e in recent] == [T0 + timedelta(minutes=3)]

    def test_related_to_follows_links_both_ways(self) -> None:
        recorder = TimelineRecorder()
        root = recorder.record(_event(0, type=AIEventType.CONTENT_ANALYZED))
        child = recorder.record(_event(1, related_events=(root.id,)))
        grandchild = recorder.record(_event(2, related_events=(child.id,)))
        recorder.record(_event(3))

        assert [e.id for e in recorder.related_to(root.id)] == [child.id, grandchild.id]
        assert [e.id for e in recorder.related_to(grandchild.id)] == [root.id, child.id]
        assert recorder.related_to("evt_missing") == []

    def test_page_is_newest_first(self) -> None:
        recorder = TimelineRecorder()
        for m in range(5):
            recorder.record(_event(m))
        page = recorder.page(offset=1, limit=2)
        assert [e.timestamp for e in page.events] == [T0 + timedelta(minutes=3), T0 + timedelta(minutes=2)]
        assert page.total == 5
        assert page.has_more is True
        assert recorder.page(offset=3, limit=10).has_more is False

    def test_filter_by_type_and_impact(self) -> None:
        recorder = TimelineRecorder()
        recorder.record(_event(0))
        recorder.record(_event(1, type=AIEventType.SUPPRESSION_APPLIED, impact=Impact.IGNORED))
        recorder.record(_event(2, type=AIEventType.EXPORT_TRIGGERED, impact=Impact.EXPORTED))

        assert len(recorder.filter(types=["suppression_applied", "export_triggered"])) == 2
        assert [e.type for e in recorder.filter(impact="ignored")] == [AIEventType.SUPPRESSION_APPLIED]
        with pytest.raises(InvalidEventError):
            recorder.filter(types=["nope"])

    def test_stats(self) -> None:
        recorder = TimelineRecorder()
        recorder.record(_event(0, sources=("a.example", "b.example")))
        recorder.record(_event(1, sources=("a.example",), impact=Impact.IGNORED))
        recorder.record(_event(2, impact=Impact.EXPORTED))

        stats = recorder.stats()
        assert stats.total_events == 3
        assert stats.learned_count == 1
        assert stats.ignored_count == 1
        assert stats.exported_count == 1
        assert stats.influenced_count == 0
        assert stats.top_sources == ["a.example", "b.example"]

    def test_load_replaces_log(self) -> None:
        recorder = TimelineRecorder()
        recorder.record(_event(0))
        replacement = [_event(5), _event(6)]
        recorder.load(replacement)
        assert [e.id for e in recorder.events()] == [e.id for e in replacement]
