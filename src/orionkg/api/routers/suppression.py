"""REST API router for suppression rules."""
from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from orionkg.api.dependencies import get_engine
from orionkg.api.utils import http_error
from orionkg.core.errors import GraphError
from orionkg.storage.serializers import rule_to_dict
from orionkg.suppression.models import SuppressionRule

router = APIRouter(prefix="/api/suppression", tags=["suppression"])


class RuleResponse(BaseModel):
    id: str
    type: str
    value: str
    is_active: bool
    created_at: str
    match_count: int


class RuleListResponse(BaseModel):
    results: list[RuleResponse]
    total: int


class RuleCreateRequest(BaseModel):
    type: str = Field(..., description="Rule type: topic|domain|pattern|keyword")
    value: str = Field(..., min_length=1)


class RuleToggleRequest(BaseModel):
    is_active: bool


def _rule(rule: SuppressionRule) -> RuleResponse:
    return RuleResponse(**rule_to_dict(rule))


@router.get("/rules", response_model=RuleListResponse)
def list_rules() -> RuleListResponse:
    rules = get_engine().suppression.rules()
    return RuleListResponse(results=[_rule(r) for r in rules], total=len(rules))


@router.post("/rules", response_model=RuleResponse, status_code=201)
def add_rule(body: RuleCreateRequest) -> RuleResponse:
    """Add a rule; an equivalent existing rule is returned as-is."""
    try:
        return _rule(get_engine().add_suppression_rule(body.type, body.value))
    except GraphError as exc:
        raise http_error(exc) from exc


@router.patch("/rules/{rule_id}", response_model=RuleResponse)
def toggle_rule(rule_id: str, body: RuleToggleRequest) -> RuleResponse:
    try:
        return _rule(get_engine().set_rule_active(rule_id, body.is_active))
    except GraphError as exc:
        raise http_error(exc) from exc


@router.delete("/rules/{rule_id}", response_model=RuleResponse)
def delete_rule(rule_id: str) -> RuleResponse:
    try:
        return _rule(get_engine().remove_suppression_rule(rule_id))
    except GraphError as exc:
        raise http_error(exc) from exc
