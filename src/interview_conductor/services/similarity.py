"""Token-set text similarity used for deduplication and question matching."""

from __future__ import annotations

import re
from collections.abc import Iterable

_TOKEN_RE = re.compile(r"[\w']+")


def tokenize(text: str) -> frozenset[str]:
    """Lowercased word tokens of *text* as a set."""
    return frozenset(_TOKEN_RE.findall(text.lower()))


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard index ``|A & B| / |A | B|`` over the token sets of *a* and *b*.

    Two texts with no tokens at all score ``0.0``.
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def is_near_duplicate(text: str, existing: Iterable[str], threshold: float) -> bool:
    """True when *text* scores at least *threshold* against any of *existing*."""
    return any(jaccard_similarity(text, other) >= threshold for other in existing)


def best_match(text: str, candidates: Iterable[tuple[str, str]]) -> tuple[str | None, float]:
    """Return ``(key, score)`` of the candidate ``(key, text)`` closest to *text*.

    Ties keep the earliest candidate.  Returns ``(None, 0.0)`` for an empty
    candidate list.
    """
    best_key: str | None = None
    best_score = 0.0
    for key, candidate in candidates:
        score = jaccard_similarity(text, candidate)
        if score > best_score:
            best_key, best_score = key, score
    return best_key, best_score
