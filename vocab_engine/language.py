"""Cheap source/target language cues for splitting unlabeled pairs.

Source is Spanish, target is English. Both scores start at 0 and are
clamped to [0, 1]; each cue for one language also counts against the other.
"""
from __future__ import annotations

import re

from .utils import clamp

SOURCE_CUE_CHARS = re.compile(r"[áéíóúüñ¿¡]", re.IGNORECASE)
SOURCE_ARTICLES = re.compile(r"^(el|la|los|las|un|una|unos|unas)\s", re.IGNORECASE)
TARGET_FUNCTION_WORDS = re.compile(
    r"\b(the|a|an|to|is|are|was|were|been|being|have|has|had|do|does|did)\b",
    re.IGNORECASE,
)


def source_score(text: str) -> float:
    score = 0.0
    if SOURCE_CUE_CHARS.search(text):
        score += 0.4
    if SOURCE_ARTICLES.search(text):
        score += 0.3
    if TARGET_FUNCTION_WORDS.search(text):
        score -= 0.3
    return clamp(score, 0.0, 1.0)


def target_score(text: str) -> float:
    score = 0.0
    if TARGET_FUNCTION_WORDS.search(text):
        score += 0.4
    lower = text.lower()
    if lower.startswith("to ") or lower.startswith("the "):
        score += 0.3
    if SOURCE_CUE_CHARS.search(text):
        score -= 0.3
    return clamp(score, 0.0, 1.0)
