"""Bilingual vocabulary extraction engine.

This package turns noisy OCR text into ranked word-pair candidates and
turns single word pairs into vocabulary entries:
- parse_text(raw_text) -> ranked candidates
- build_entries(source, target) -> vocabulary entries

Storage, sync and quizzing are left to the caller.
"""

from __future__ import annotations

from .pipeline import build_entries, parse_text
from .types import Candidate, VocabularyEntry

__all__ = ["__version__", "Candidate", "VocabularyEntry", "build_entries", "parse_text"]

__version__ = "0.1.0"
