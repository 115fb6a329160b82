"""REST API router for cognitive profiles."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from orionkg.api.dependencies import get_engine
from orionkg.api.utils import http_error
from orionkg.core.errors import GraphError
from orionkg.profile.models import BehavioralSample
from orionkg.storage.serializers import profile_to_dict

router = APIRouter(prefix="/api/profiles", tags=["profile"])


class SampleRequest(BaseModel):
    session_duration: float
    scroll_speed: float
    read_time: float
    click_events: int
    topics_visited: list[str] = Field(default_factory=list)
    source_domains: list[str] = Field(default_factory=list)
    timestamp: datetime | None = None
    questions_asked: int = 0
    typo_count: int = 0
    backtrack_count: int = 0
    content_types: list[str] = Field(default_factory=list)


class SampleResponse(BaseModel):
    user_id: str
    recomputed: bool
    profile: dict[str, Any] | None


class BreakRequest(BaseModel):
    at: datetime | None = None


class RecommendationResponse(BaseModel):
    kind: str
    message: str
    priority: float
    details: dict[str, str]


class RecommendationListResponse(BaseModel):
    user_id: str
    results: list[RecommendationResponse]


@router.get("", response_model=list[str])
def list_profiles() -> list[str]:
    return get_engine().profiler.users()


@router.get("/{user_id}")
def get_profile(user_id: str) -> dict[str, Any]:
    """Current profile; a user with no samples gets a fresh one."""
    return profile_to_dict(get_engine().profiler.profile(user_id))


@router.post("/{user_id}/samples", response_model=SampleResponse)
def add_sample(user_id: str, body: SampleRequest) -> SampleResponse:
    data = body.model_dump(exclude_none=True)
    for name in ("topics_visited", "source_domains", "content_types"):
        data[name] = tuple(data[name])
    try:
        sample = BehavioralSample(**data)
        profile = get_engine().add_behavior_sample(user_id, sample)
    except GraphError as exc:
        raise http_error(exc) from exc
    return SampleResponse(
        user_id=user_id,
        recomputed=profile is not None,
        profile=profile_to_dict(profile) if profile is not None else None,
    )


@router.post("/{user_id}/break")
def record_break(user_id: str, body: BreakRequest | None = None) -> dict[str, Any]:
    """Mark a break taken; fatigue drops back to fresh."""
    at = body.at if body is not None else None
    return profile_to_dict(get_engine().record_break(user_id, at))


@router.get("/{user_id}/recommendations", response_model=RecommendationListResponse)
def recommendations(user_id: str) -> RecommendationListResponse:
    recs = get_engine().recommendations(user_id)
    return RecommendationListResponse(
        user_id=user_id,
        results=[
            RecommendationResponse(
                kind=r.kind.value,
                message=r.message,
                priority=r.priority,
                details=r.details,
            )
            for r in recs
        ],
    )
