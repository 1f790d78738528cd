"""Scan job: raw text in, candidates/review queue/entries on disk."""
from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from .classifier import retained_lines
from .config import EngineConfig
from .job import JobPaths
from .normalizer import normalize_text
from .pipeline import build_entries_from_candidates, parse_text
from .types import Candidate, VocabularyEntry
from .utils import load_json, stable_candidate_id, utc_now_iso
from .writer import JobWriter

STATUS_ACCEPTED = "accepted"
STATUS_REVIEW = "review"
STATUS_REJECTED = "rejected"


def auto_accept_threshold(review_cfg: dict[str, Any]) -> float | None:
    v = review_cfg.get("auto_accept_min_confidence")
    if v is None:
        return None
    return float(v)


def candidate_record(cand: Candidate, status: str, now: str) -> dict[str, Any]:
    rec = cand.to_dict()
    rec["candidate_id"] = stable_candidate_id(cand.source_text, cand.target_text)
    rec["status"] = status
    rec["created_at"] = now
    rec["updated_at"] = now
    return rec


def review_item(rec: dict[str, Any]) -> dict[str, Any]:
    return {
        "candidate_id": rec["candidate_id"],
        "source_text": rec["source_text"],
        "target_text": rec["target_text"],
        "confidence": rec["confidence"],
        "strategy_tag": rec["strategy_tag"],
    }


def entries_for_records(records: Iterable[dict[str, Any]]) -> list[VocabularyEntry]:
    """Entries for every accepted record, unique on (source_term, target_term) ignoring case."""
    accepted = [Candidate.from_dict(r) for r in records if r.get("status") == STATUS_ACCEPTED]

    out: list[VocabularyEntry] = []
    seen: set[tuple[str, str]] = set()
    for entry in build_entries_from_candidates(accepted):
        k = (entry.source_term.lower(), entry.target_term.lower())
        if k in seen:
            continue
        seen.add(k)
        out.append(entry)
    return out


def run_scan(paths: JobPaths, text: str, cfg: EngineConfig, *, source_name: str = "") -> dict[str, Any]:
    """Parse text into the job's output contract and return the final metrics."""
    normalized = normalize_text(text)
    paths.normalized_txt.parent.mkdir(parents=True, exist_ok=True)
    paths.normalized_txt.write_text(normalized, encoding="utf-8")

    ranked = parse_text(text)
    threshold = auto_accept_threshold(cfg.review)
    now = utc_now_iso()

    records: list[dict[str, Any]] = []
    review_items: list[dict[str, Any]] = []
    for cand in ranked:
        accept = threshold is not None and cand.confidence >= threshold
        rec = candidate_record(cand, STATUS_ACCEPTED if accept else STATUS_REVIEW, now)
        records.append(rec)
        if not accept:
            review_items.append(review_item(rec))

    entries = entries_for_records(records)

    metrics = load_json(paths.metrics_json)
    metrics.update(
        {
            "lines_total": sum(1 for line in normalized.split("\n") if line.strip()),
            "lines_retained": len(retained_lines(normalized)),
            "candidates_total": len(records),
            "candidates_by_strategy": dict(Counter(c.strategy_tag for c in ranked)),
            "review_items_total": len(review_items),
            "auto_accepted": len(records) - len(review_items),
            "entries_total": len(entries),
        }
    )

    job_meta = {"source": source_name, "created_at": metrics.get("created_at"), "auto_accept_min_confidence": threshold}
    JobWriter(paths).write_final(job_meta, records, review_items, [e.to_dict() for e in entries], metrics)
    return load_json(paths.metrics_json)
