"""Claim similarity and polarity helpers.

Similarity is a normalized token overlap (Jaccard) computed after negation
words and a small set of function words are removed, so that a claim and
its negation score as the same subject.
"""
from __future__ import annotations

import re

NEGATION_WORDS = frozenset({
    "not", "no", "never", "none", "nobody", "nothing", "neither", "nor",
    "cannot", "without", "false", "untrue", "incorrect",
})

STOP_WORDS = frozenset({
    "a", "an", "the", "of", "is", "are", "was", "were", "be", "been",
    "to", "in", "on", "at", "and", "or", "it", "its", "that", "this",
    "does", "do", "did", "has", "have", "had",
})

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:'[a-z]+)?")


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens with "n't" contractions split into "not"."""
    tokens: list[str] = []
    for raw in _TOKEN_RE.findall(text.lower()):
        if raw.endswith("n't"):
            stem = raw[:-3]
            if stem == "ca":
                stem = "can"
            elif stem == "wo":
                stem = "will"
            if stem:
                tokens.append(stem)
            tokens.append("not")
        else:
            tokens.append(raw)
    return tokens


def subject_tokens(text: str) -> frozenset[str]:
    tokens = [t for t in tokenize(text) if t not in NEGATION_WORDS]
    content = [t for t in tokens if t not in STOP_WORDS]
    return frozenset(content or tokens)


def normalize(text: str) -> str:
    return " ".join(tokenize(text))


def is_negated(text: str) -> bool:
    """True when the claim carries an odd number of negations."""
    return sum(1 for t in tokenize(text) if t in NEGATION_WORDS) % 2 == 1


def similarity(a: str, b: str) -> float:
    """Subject similarity in [0, 1], ignoring polarity."""
    tokens_a = subject_tokens(a)
    tokens_b = subject_tokens(b)
    if not tokens_a and not tokens_b:
        return 1.0 if normalize(a) == normalize(b) else 0.0
    union = tokens_a | tokens_b
    return len(tokens_a & tokens_b) / len(union)


def opposite_polarity(a: str, b: str) -> bool:
    return is_negated(a) != is_negated(b)
