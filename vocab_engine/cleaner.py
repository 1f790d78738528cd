"""Term cleanup shared by the parser and entry construction.

Two strengths:
- clean_token: light cleanup used on every candidate mid-parse
- strip_annotations: also drops (...), [...] and {...} groups, used for
  the canonical terms stored in a VocabularyEntry
"""
from __future__ import annotations

import re

from .utils import has_letter

_WRAPPER_CHARS = "\"'[](){}<>«»"
_EDGE_PUNCTUATION = ".,;:-–—_"
_WHITESPACE_RUN = re.compile(r"\s+")

_ANNOTATION_GROUPS = (
    re.compile(r"\s*\([^)]*\)"),
    re.compile(r"\s*\[[^\]]*\]"),
    re.compile(r"\s*\{[^}]*\}"),
)


def _strip_edges(text: str) -> str:
    # Alternate until stable so that e.g. '"perro".' and '.("perro")' both
    # come out bare; a single pass of each would not be idempotent.
    prev = None
    out = text
    while out != prev:
        prev = out
        out = out.strip().strip(_WRAPPER_CHARS).strip(_EDGE_PUNCTUATION)
    return out


def clean_token(text: str) -> str:
    """Trim wrapping quotes/brackets and edge punctuation, collapse whitespace."""
    out = _strip_edges(text)
    out = _WHITESPACE_RUN.sub(" ", out)
    return out.strip()


def _remove_annotation_groups(text: str) -> str:
    """Drop bracketed groups but keep everything else, slash notation included."""
    out = text
    for pattern in _ANNOTATION_GROUPS:
        out = pattern.sub("", out)
    return out.strip()


def strip_annotations(text: str) -> str:
    out = _remove_annotation_groups(text)
    out = _WHITESPACE_RUN.sub(" ", out)
    return out.strip()


def simple_answer(definition: str) -> str:
    """First ';'-separated part of a definition, annotations removed."""
    first = definition.split(";", 1)[0]
    return strip_annotations(first)


def is_valid_pair(source: str, target: str) -> bool:
    source = clean_token(source)
    target = clean_token(target)
    if not source or not target:
        return False
    if not has_letter(source) or not has_letter(target):
        return False
    return source.lower() != target.lower()
