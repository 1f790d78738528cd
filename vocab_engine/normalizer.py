"""Canonicalize raw OCR text before line parsing."""
from __future__ import annotations

import re

_GLYPH_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("“", '"'),  # left double quote
    ("”", '"'),  # right double quote
    ("„", '"'),  # low double quote
    ("‘", "'"),  # left single quote
    ("’", "'"),  # right single quote
    ("`", "'"),
    ("—", "-"),  # em dash
    ("–", "-"),  # en dash
    ("−", "-"),  # minus sign
    ("…", "..."),  # ellipsis
    ("ﬁ", "fi"),
    ("ﬂ", "fl"),
)

# Arrows are padded to exactly one space per side so re-normalizing is a no-op.
_ARROW = re.compile(r" *[→⟶] *")
_PAGE_NUMBER_LINE = re.compile(r"^[ \t]*\d+[ \t]*$", re.MULTILINE)


def normalize_text(text: str) -> str:
    """Return text with unified line endings, plain glyphs and no page-number lines.

    Page-number lines are emptied rather than dropped; empty lines are
    skipped later by the line splitter anyway.
    """
    if not text:
        return ""

    out = text.replace("\r\n", "\n").replace("\r", "\n")

    for old, new in _GLYPH_REPLACEMENTS:
        out = out.replace(old, new)
    out = _ARROW.sub(" → ", out)

    return _PAGE_NUMBER_LINE.sub("", out)
