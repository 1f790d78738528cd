"""Public entry points: parse_text and build_entries.

Both are pure and total: no I/O, no raised errors for malformed input,
at worst an empty list.
"""
from __future__ import annotations

from typing import Iterable

from .classifier import retained_lines
from .cleaner import clean_token, simple_answer, strip_annotations
from .expander import expand_term
from .normalizer import normalize_text
from .ranker import deduplicate_and_rank
from .strategies import Strategy, run_strategies
from .types import Candidate, VocabularyEntry


def parse_text(raw_text: str, strategies: Iterable[Strategy] = tuple(Strategy)) -> list[Candidate]:
    """Extract ranked (source, target) candidates from raw OCR text."""
    text = normalize_text(raw_text or "")
    lines = retained_lines(text)
    return deduplicate_and_rank(run_strategies(lines, text, strategies))


def build_entries(source_term: str, target_term: str) -> list[VocabularyEntry]:
    """Turn one user or scanned pair into one entry per slash-notation variant.

    Every returned entry shares the target and the untouched originals;
    only source_term differs.
    """
    source_term = source_term or ""
    target_term = target_term or ""

    target_clean = clean_token(simple_answer(target_term))
    if not target_clean:
        return []

    source_full = source_term.strip()
    target_full = target_term.strip()

    # Slash notation must survive until expansion, so only bracketed groups go here.
    source_stripped = strip_annotations(source_term)

    entries: list[VocabularyEntry] = []
    seen: set[str] = set()
    for variant in expand_term(source_stripped):
        term = clean_token(variant)
        if not term or term in seen:
            continue
        seen.add(term)
        entries.append(
            VocabularyEntry(
                source_term=term,
                target_term=target_clean,
                source_full=source_full,
                target_full=target_full,
            )
        )
    return entries


def build_entries_from_candidates(candidates: Iterable[Candidate]) -> list[VocabularyEntry]:
    out: list[VocabularyEntry] = []
    for cand in candidates:
        out.extend(build_entries(cand.source_text, cand.target_text))
    return out
