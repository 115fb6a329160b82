"""REST API router for the AI activity timeline."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from orionkg.api.dependencies import get_engine
from orionkg.api.utils import http_error
from orionkg.core.errors import GraphError
from orionkg.storage.serializers import event_to_dict
from orionkg.timeline.models import AITimelineEvent

router = APIRouter(prefix="/api/timeline", tags=["timeline"])


class TimelineEventResponse(BaseModel):
    id: str
    timestamp: str
    type: str
    display_name: str
    description: str
    details: dict[str, str]
    sources: list[str]
    impact: str
    confidence: float
    related_events: list[str]


class TimelinePageResponse(BaseModel):
    events: list[TimelineEventResponse]
    total: int
    offset: int
    limit: int
    has_more: bool


class TimelineStatsResponse(BaseModel):
    total_events: int
    learned_count: int
    ignored_count: int
    exported_count: int
    influenced_count: int
    top_sources: list[str]


class RelatedEventsResponse(BaseModel):
    event_id: str
    events: list[TimelineEventResponse]
    total: int


def _event(event: AITimelineEvent) -> TimelineEventResponse:
    return TimelineEventResponse(display_name=event.display_name, **event_to_dict(event))


@router.get("", response_model=TimelinePageResponse)
def timeline_page(
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    types: str | None = Query(None, description="Comma-separated event type list"),
    impact: str | None = Query(None, description="learned|ignored|exported|influenced"),
) -> TimelinePageResponse:
    """Newest-first page of timeline events."""
    parsed_types = [t.strip() for t in types.split(",") if t.strip()] if types else None
    try:
        page = get_engine().timeline.page(offset, limit, parsed_types, impact)
    except GraphError as exc:
        raise http_error(exc) from exc
    return TimelinePageResponse(
        events=[_event(e) for e in page.events],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


@router.get("/stats", response_model=TimelineStatsResponse)
def timeline_stats() -> TimelineStatsResponse:
    stats = get_engine().timeline.stats()
    return TimelineStatsResponse(
        total_events=stats.total_events,
        learned_count=stats.learned_count,
        ignored_count=stats.ignored_count,
        exported_count=stats.exported_count,
        influenced_count=stats.influenced_count,
        top_sources=stats.top_sources,
    )


@router.get("/{event_id}", response_model=TimelineEventResponse)
def get_event(event_id: str) -> TimelineEventResponse:
    event = get_engine().timeline.get(event_id)
    if event is None:
        raise HTTPException(404, f"Event not found: {event_id}")
    return _event(event)


@router.get("/{event_id}/related", response_model=RelatedEventsResponse)
def related_events(event_id: str) -> RelatedEventsResponse:
    """Events linked to ``event_id`` directly or transitively."""
    timeline = get_engine().timeline
    if timeline.get(event_id) is None:
        raise HTTPException(404, f"Event not found: {event_id}")
    events = timeline.related_to(event_id)
    return RelatedEventsResponse(
        event_id=event_id,
        events=[_event(e) for e in events],
        total=len(events),
    )
