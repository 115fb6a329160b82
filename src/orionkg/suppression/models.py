"""Suppression rule data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from orionkg.core.ids import make_id, utcnow


class SuppressionRuleType(str, Enum):
    TOPIC = "topic"
    DOMAIN = "domain"
    PATTERN = "pattern"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class SuppressionRule:
    """A filter that keeps matching candidates out of the graph."""

    type: SuppressionRuleType
    value: str
    id: str = field(default_factory=lambda: make_id("rule"))
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    match_count: int = 0

    @property
    def dedupe_key(self) -> tuple[str, str]:
        value = self.value.strip()
        if self.type != SuppressionRuleType.PATTERN:
            value = value.lower()
        return (self.type.value, value)


@dataclass(frozen=True)
class SuppressionOutcome:
    suppressed: bool
    rule_id: str | None = None

    @classmethod
    def allow(cls) -> "SuppressionOutcome":
        return cls(suppressed=False)

    @classmethod
    def suppress(cls, rule_id: str) -> "SuppressionOutcome":
        return cls(suppressed=True, rule_id=rule_id)
