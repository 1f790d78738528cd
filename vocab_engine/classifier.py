from __future__ import annotations

import re

from .utils import compile_patterns

_ENUMERATION = re.compile(r"^\d+[.):\-]\s*")
_BULLET = re.compile(r"^[•\-*+►▪◦○●]\s*")

_NOISE_PATTERNS = compile_patterns(
    [
        r"^(chapter|unit|lesson|section|part|module)(?![^\W\d_])",
        r"^(vocabulary|vocabulario|vocab|words|terms|glossary)(?![^\W\d_])",
        r"^(spanish|english|español|inglés)$",
        r"^(page|pagina|página)(?![^\W\d_])",
        r"^[\d\s\W_]+$",
    ],
    re.IGNORECASE,
)


def preprocess_line(line: str) -> str:
    """Drop a leading enumeration marker ("3. ", "2) ") and bullet glyph, then trim."""
    out = _ENUMERATION.sub("", line.strip())
    out = _BULLET.sub("", out)
    return out.strip()


def is_noise_line(line: str) -> bool:
    """True for headers, section titles, page markers and letterless lines."""
    lower = line.lower()
    return any(p.search(lower) for p in _NOISE_PATTERNS)


def retained_lines(text: str) -> list[str]:
    """Split normalized text into preprocessed lines, skipping empty and noise lines."""
    lines: list[str] = []
    for raw in text.split("\n"):
        if not raw.strip():
            continue
        line = preprocess_line(raw)
        if not line or is_noise_line(line):
            continue
        lines.append(line)
    return lines
