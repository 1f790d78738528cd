"""Candidate extraction strategies.

Four independent strategies scan the same retained lines and each returns
its own candidate list. They share one contract,
``(lines, full_text) -> list[Candidate]``, and never see each other's
output, so they can run in any order (or concurrently) before ranking.

Strategies:
- SEPARATOR: first separator (by priority) that splits the line
- PATTERN: first full-line template that matches
- LANGUAGE_HEURISTIC: split on any separator char, assign parts by language cues
- CONTEXTUAL: split every line on the document's dominant separator
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Iterable, Sequence

from .cleaner import clean_token, is_valid_pair
from .language import source_score, target_score
from .types import Candidate
from .utils import clamp

SEPARATOR_CONFIDENCE = 0.85
PATTERN_CONFIDENCE = 0.85
LANGUAGE_CONFIDENCE = 0.7
CONTEXTUAL_CONFIDENCE = 0.9

TAG_PATTERN = "pattern-matching"
TAG_LANGUAGE = "language-detection"
TAG_CONTEXTUAL = "contextual"

# (pattern, name) in priority order.
SEPARATORS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(p), name)
    for p, name in (
        (r"\s+[-–—]\s+", "dash"),
        (r"\s*=\s*", "equals"),
        (r"\s*:\s+", "colon"),
        (r"\s+→\s+", "arrow"),
        (r"\t+", "tab"),
        (r"\s{3,}", "multi-space"),
        (r"\s*\|\s*", "pipe"),
    )
)

LINE_TEMPLATES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"^\d+[.)]\s*(.+?)\s*[-–—]\s*(.+)$",
        r"^[•\-*►]\s*(.+?)\s*[-–—:]\s*(.+)$",
        r"^(.+?)\s*=\s*(.+)$",
        r"^([^:]+?):\s+(.+)$",
        r"^(.+?)\s*→\s*(.+)$",
        r"^(.+?)\.{2,}\s*(.+)$",
    )
)

SPLIT_CHARS = re.compile(r"[\t=\-:|]")

# Checked in this order; a later separator must strictly beat the count.
CONTEXTUAL_SEPARATORS: tuple[str, ...] = (" - ", " = ", ": ", "\t", " | ")
DOMINANT_MIN_COUNT = 3


def _non_empty_parts(parts: Iterable[str]) -> list[str]:
    return [p.strip() for p in parts if p.strip()]


def make_candidate(source: str, target: str, confidence: float, tag: str) -> Candidate | None:
    """Clean both sides and build a Candidate, or None when the pair is invalid."""
    source = clean_token(source)
    target = clean_token(target)
    if not is_valid_pair(source, target):
        return None
    return Candidate(
        source_text=source,
        target_text=target,
        confidence=clamp(confidence, 0.0, 1.0),
        strategy_tag=tag,
    )


def _split_head_tail(parts: list[str]) -> tuple[str, str]:
    return parts[0], " ".join(parts[1:])


def parse_with_separators(lines: Sequence[str], full_text: str = "") -> list[Candidate]:
    out: list[Candidate] = []
    for line in lines:
        for pattern, name in SEPARATORS:
            parts = _non_empty_parts(pattern.split(line))
            if len(parts) < 2:
                continue
            source, target = _split_head_tail(parts)
            cand = make_candidate(source, target, SEPARATOR_CONFIDENCE, f"separator-{name}")
            if cand is not None:
                out.append(cand)
                break
    return out


def parse_with_patterns(lines: Sequence[str], full_text: str = "") -> list[Candidate]:
    out: list[Candidate] = []
    for line in lines:
        for template in LINE_TEMPLATES:
            m = template.match(line)
            if m is None:
                continue
            cand = make_candidate(m.group(1), m.group(2), PATTERN_CONFIDENCE, TAG_PATTERN)
            if cand is not None:
                out.append(cand)
                break
    return out


def assign_by_language(parts: Sequence[str]) -> tuple[str | None, str | None]:
    """Pick (source, target) parts using language scores.

    A part with equal scores (both 0 included) counts as target, so two
    neutral parts give (None, first part) and no candidate. The two-part
    reading-order fallback only applies when neither side was assigned.
    """
    source_part: str | None = None
    target_part: str | None = None
    for part in parts:
        s = source_score(part)
        t = target_score(part)
        if s > t and source_part is None:
            source_part = part
        elif t >= s and target_part is None:
            target_part = part

    if source_part is None and target_part is None and len(parts) == 2:
        source_part, target_part = parts[0], parts[1]
    return source_part, target_part


def parse_with_language_detection(lines: Sequence[str], full_text: str = "") -> list[Candidate]:
    out: list[Candidate] = []
    for line in lines:
        parts = _non_empty_parts(SPLIT_CHARS.split(line))
        if len(parts) < 2:
            continue
        source, target = assign_by_language(parts)
        if source is None or target is None:
            continue
        cand = make_candidate(source, target, LANGUAGE_CONFIDENCE, TAG_LANGUAGE)
        if cand is not None:
            out.append(cand)
    return out


def dominant_separator(full_text: str) -> str | None:
    """Most frequent contextual separator, or None unless it occurs more than twice."""
    best: str | None = None
    best_count = 0
    for sep in CONTEXTUAL_SEPARATORS:
        n = full_text.count(sep)
        if n > best_count:
            best, best_count = sep, n
    if best_count < DOMINANT_MIN_COUNT:
        return None
    return best


def parse_with_context(lines: Sequence[str], full_text: str) -> list[Candidate]:
    sep = dominant_separator(full_text)
    if sep is None:
        return []

    out: list[Candidate] = []
    for line in lines:
        parts = _non_empty_parts(line.split(sep))
        if len(parts) < 2:
            continue
        source, target = _split_head_tail(parts)
        cand = make_candidate(source, target, CONTEXTUAL_CONFIDENCE, TAG_CONTEXTUAL)
        if cand is not None:
            out.append(cand)
    return out


StrategyFn = Callable[[Sequence[str], str], list[Candidate]]


class Strategy(Enum):
    """Closed set of extraction strategies."""
    SEPARATOR = "separator"
    PATTERN = "pattern"
    LANGUAGE_HEURISTIC = "language-heuristic"
    CONTEXTUAL = "contextual"

    def run(self, lines: Sequence[str], full_text: str) -> list[Candidate]:
        return _RUNNERS[self](lines, full_text)


_RUNNERS: dict[Strategy, StrategyFn] = {
    Strategy.SEPARATOR: parse_with_separators,
    Strategy.PATTERN: parse_with_patterns,
    Strategy.LANGUAGE_HEURISTIC: parse_with_language_detection,
    Strategy.CONTEXTUAL: parse_with_context,
}


def run_strategies(
    lines: Sequence[str],
    full_text: str,
    strategies: Iterable[Strategy] = tuple(Strategy),
) -> list[Candidate]:
    """Concatenate every strategy's candidates; no merging happens here."""
    out: list[Candidate] = []
    for strategy in strategies:
        out.extend(strategy.run(lines, full_text))
    return out
