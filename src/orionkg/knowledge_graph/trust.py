"""Source trust lookup and confidence reconciliation."""
from __future__ import annotations

from typing import Iterable, Mapping
from urllib.parse import urlparse


def source_domain(source: str) -> str | None:
    """Hostname of a URL-like provenance identifier, or None."""
    text = source.strip().lower()
    if not text:
        return None
    parsed = urlparse(text if "://" in text else f"//{text}")
    host = parsed.hostname
    if not host or "." not in host:
        return None
    return host


def domain_matches(host: str, domain: str) -> bool:
    """Exact or dot-suffix match: ``news.example.com`` matches ``example.com``."""
    host = host.lower().rstrip(".")
    domain = domain.lower().strip().lstrip(".").rstrip(".")
    if not domain:
        return False
    return host == domain or host.endswith("." + domain)


class SourceTrust:
    """Maps provenance identifiers to a trust score in [0, 1].

    Lookup order: exact identifier, then the most specific configured
    domain the identifier's hostname falls under, then the default.
    """

    def __init__(self, default: float = 0.5, overrides: Mapping[str, float] | None = None) -> None:
        self.default = default
        self._overrides = {k.lower(): float(v) for k, v in (overrides or {}).items()}

    def of(self, source: str) -> float:
        key = source.strip().lower()
        if key in self._overrides:
            return self._overrides[key]
        host = source_domain(source)
        if host is None:
            return self.default
        best: tuple[int, float] | None = None
        for domain, trust in self._overrides.items():
            if domain_matches(host, domain):
                if best is None or len(domain) > best[0]:
                    best = (len(domain), trust)
        return best[1] if best is not None else self.default

    def __call__(self, sources: Iterable[str]) -> float:
        scores = [self.of(s) for s in sources]
        return max(scores) if scores else self.default


def reconcile_confidence(
    old_confidence: float,
    old_trust: float,
    new_confidence: float,
    new_trust: float,
    bias: float,
) -> float:
    """Weighted average leaning toward the higher-trust side by ``bias``."""
    if new_trust > old_trust:
        weight_new = bias
    elif new_trust < old_trust:
        weight_new = 1.0 - bias
    else:
        weight_new = 0.5
    combined = weight_new * new_confidence + (1.0 - weight_new) * old_confidence
    return min(1.0, max(0.0, combined))
