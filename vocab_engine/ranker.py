from __future__ import annotations

from typing import Iterable

from .types import Candidate

KEY_SEPARATOR = "|"


def dedup_key(candidate: Candidate) -> str:
    return f"{candidate.source_text.lower()}{KEY_SEPARATOR}{candidate.target_text.lower()}"


def deduplicate_and_rank(candidates: Iterable[Candidate]) -> list[Candidate]:
    """One candidate per case-insensitive (source, target), best confidence first.

    Within a key the strictly higher confidence wins; ties keep the first seen.
    Order among equal confidences is unspecified.
    """
    best_by_key: dict[str, Candidate] = {}
    for cand in candidates:
        k = dedup_key(cand)
        prev = best_by_key.get(k)
        if prev is None or cand.confidence > prev.confidence:
            best_by_key[k] = cand

    return sorted(best_by_key.values(), key=lambda c: c.confidence, reverse=True)
