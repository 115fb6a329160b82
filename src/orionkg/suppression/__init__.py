"""Suppression rules that gate what the graph may learn."""
from __future__ import annotations

from orionkg.suppression.engine import SuppressionEngine
from orionkg.suppression.models import SuppressionOutcome, SuppressionRule, SuppressionRuleType

__all__ = [
    "SuppressionEngine",
    "SuppressionOutcome",
    "SuppressionRule",
    "SuppressionRuleType",
]
