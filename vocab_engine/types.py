from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Candidate:
    source_text: str
    target_text: str
    confidence: float  # heuristic, only the ordering matters
    strategy_tag: str  # e.g. separator-dash, contextual

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Candidate:
        return cls(
            source_text=str(data.get("source_text") or ""),
            target_text=str(data.get("target_text") or ""),
            confidence=float(data.get("confidence", 0.0)),
            strategy_tag=str(data.get("strategy_tag") or ""),
        )


@dataclass(frozen=True)
class VocabularyEntry:
    source_term: str  # cleaned, possibly expanded
    target_term: str
    source_full: str  # original text as entered/scanned
    target_full: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VocabularyEntry:
        return cls(
            source_term=str(data.get("source_term") or ""),
            target_term=str(data.get("target_term") or ""),
            source_full=str(data.get("source_full") or ""),
            target_full=str(data.get("target_full") or ""),
        )
