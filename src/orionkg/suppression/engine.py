"""Rule evaluation for keeping unwanted content out of the graph."""
from __future__ import annotations

import logging
import re
import threading
from dataclasses import replace
from typing import Iterable, Mapping

from orionkg.config.settings import SuppressionConfig
from orionkg.core.errors import RuleNotFoundError, ValidationError
from orionkg.knowledge_graph.trust import domain_matches, source_domain
from orionkg.suppression.models import SuppressionOutcome, SuppressionRule, SuppressionRuleType

_logger = logging.getLogger(__name__)

# Metadata keys that may carry a candidate's origin or topics.
_DOMAIN_KEYS = ("domain", "url", "source")
_TOPIC_KEYS = ("topic", "topics")


def coerce_rule_type(value: SuppressionRuleType | str) -> SuppressionRuleType:
    try:
        return SuppressionRuleType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown suppression rule type: {value!r}") from exc


class SuppressionEngine:
    """Evaluates active rules in insertion order; the first match wins."""

    def __init__(self, rules: Iterable[SuppressionRule] = (), enabled: bool = True) -> None:
        self.enabled = enabled
        self._lock = threading.Lock()
        self._rules: dict[str, SuppressionRule] = {}
        self._compiled: dict[str, re.Pattern[str]] = {}
        for rule in rules:
            self._insert(rule)

    @classmethod
    def from_config(cls, config: SuppressionConfig) -> "SuppressionEngine":
        engine = cls(enabled=config.enabled)
        for entry in config.default_rules:
            engine.add_rule(entry["type"], entry["value"])
        return engine

    # ------------------------------------------------------------------
    # Rule management
    # ------------------------------------------------------------------

    def add_rule(
        self,
        rule_type: SuppressionRuleType | str,
        value: str,
        is_active: bool = True,
    ) -> SuppressionRule:
        """Add a rule; an equivalent existing rule is returned instead."""
        rule_type = coerce_rule_type(rule_type)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Suppression rule value must be a non-empty string")
        candidate = SuppressionRule(type=rule_type, value=value.strip(), is_active=is_active)
        with self._lock:
            for existing in self._rules.values():
                if existing.dedupe_key == candidate.dedupe_key:
                    _logger.debug("Duplicate suppression rule coalesced into %s", existing.id)
                    return existing
            self._insert(candidate)
        _logger.info("Added %s suppression rule %s: %s", rule_type.value, candidate.id, candidate.value)
        return candidate

    def remove_rule(self, rule_id: str) -> SuppressionRule:
        with self._lock:
            rule = self._rules.pop(rule_id, None)
            self._compiled.pop(rule_id, None)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    def set_active(self, rule_id: str, active: bool) -> SuppressionRule:
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None:
                raise RuleNotFoundError(rule_id)
            updated = replace(rule, is_active=bool(active))
            self._rules[rule_id] = updated
        return updated

    def get(self, rule_id: str) -> SuppressionRule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    def rules(self) -> list[SuppressionRule]:
        with self._lock:
            return list(self._rules.values())

    def replace_rules(self, rules: Iterable[SuppressionRule]) -> None:
        """Swap in a persisted rule set, keeping its order and counters."""
        with self._lock:
            self._rules.clear()
            self._compiled.clear()
            for rule in rules:
                self._insert(rule)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        content: str,
        metadata: Mapping[str, str] | None = None,
        sources: tuple[str, ...] = (),
    ) -> SuppressionOutcome:
        if not self.enabled:
            return SuppressionOutcome.allow()
        metadata = metadata or {}
        with self._lock:
            for rule in self._rules.values():
                if not rule.is_active or not self._matches(rule, content, metadata, sources):
                    continue
                _logger.debug("Candidate matches %s rule %s", rule.type.value, rule.id)
                return SuppressionOutcome.suppress(rule.id)
        return SuppressionOutcome.allow()

    def count_matches(self, rule_ids: Iterable[str]) -> None:
        """Credit committed suppressions to their rules.

        Called by the store once the suppressing transaction has published;
        rules removed in the meantime are skipped.
        """
        with self._lock:
            for rule_id in rule_ids:
                rule = self._rules.get(rule_id)
                if rule is not None:
                    self._rules[rule_id] = replace(rule, match_count=rule.match_count + 1)

    def _matches(
        self,
        rule: SuppressionRule,
        content: str,
        metadata: Mapping[str, str],
        sources: tuple[str, ...],
    ) -> bool:
        value = rule.value.lower()
        if rule.type == SuppressionRuleType.TOPIC:
            haystacks = [content] + [metadata[k] for k in _TOPIC_KEYS if k in metadata]
            return any(value in h.lower() for h in haystacks)
        if rule.type == SuppressionRuleType.KEYWORD:
            return self._compiled[rule.id].search(content) is not None
        if rule.type == SuppressionRuleType.DOMAIN:
            origins = list(sources) + [metadata[k] for k in _DOMAIN_KEYS if k in metadata]
            for origin in origins:
                host = source_domain(origin)
                if host is not None and domain_matches(host, value):
                    return True
            return False
        return self._compiled[rule.id].search(content) is not None

    def _insert(self, rule: SuppressionRule) -> None:
        if rule.type == SuppressionRuleType.PATTERN:
            try:
                self._compiled[rule.id] = re.compile(rule.value)
            except re.error as exc:
                raise ValidationError(f"Invalid suppression pattern {rule.value!r}: {exc}") from exc
        elif rule.type == SuppressionRuleType.KEYWORD:
            self._compiled[rule.id] = re.compile(
                r"(?<!\w)" + re.escape(rule.value) + r"(?!\w)", re.IGNORECASE,
            )
        self._rules[rule.id] = rule
