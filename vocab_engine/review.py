from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .cleaner import clean_token, is_valid_pair
from .job import job_paths, record_error
from .scan import STATUS_ACCEPTED, STATUS_REJECTED, entries_for_records
from .utils import load_json, stable_candidate_id, utc_now_iso, write_json


@dataclass
class ApplyReviewStats:
    feedback_items: int = 0
    applied: int = 0
    skipped_unknown_candidate: int = 0
    skipped_already_applied: int = 0
    skipped_invalid_edit: int = 0
    entries_total: int = 0


def _load_feedback_items(feedback_path: str | Path) -> list[Any]:
    feedback_obj = load_json(feedback_path)
    if isinstance(feedback_obj, list):
        return feedback_obj
    if isinstance(feedback_obj, dict):
        items = feedback_obj.get("items")
        if not isinstance(items, list):
            raise ValueError("review feedback object must contain list field: items")
        return items
    raise ValueError("review feedback must be a list or an object with items")


def _edited_pair(rec: dict[str, Any], entry: dict[str, Any]) -> tuple[str, str]:
    source = entry.get("source_text")
    target = entry.get("target_text")
    source = clean_token(source) if isinstance(source, str) else rec["source_text"]
    target = clean_token(target) if isinstance(target, str) else rec["target_text"]
    return source, target


def apply_review_feedback(*, job_dir: str | Path, feedback_path: str | Path) -> ApplyReviewStats:
    """Apply human review feedback to a scan job.

    Feedback JSON format:
    [
      {"candidate_id": "...", "action": "accept|reject|edit",
       "source_text": "...", "target_text": "..."}
    ]

    Behavior:
    - accept: mark candidate accepted, remove from review_queue
    - reject: mark candidate rejected, remove from review_queue
    - edit: replace source/target (must still be a valid pair) then accept

    Idempotent:
    - Re-running on already-applied actions changes nothing; entries are
      always rebuilt from the accepted candidates, never appended.
    """
    paths = job_paths(job_dir)

    result = load_json(paths.candidates_json)
    review = load_json(paths.review_json)

    records = result.get("candidates", []) if isinstance(result, dict) else []
    review_items = review.get("items", []) if isinstance(review, dict) else []

    by_id: dict[str, dict[str, Any]] = {}
    for rec in records:
        if isinstance(rec, dict) and rec.get("candidate_id"):
            by_id[str(rec["candidate_id"])] = dict(rec)

    review_by_id: dict[str, dict[str, Any]] = {}
    for it in review_items:
        if isinstance(it, dict) and it.get("candidate_id"):
            review_by_id[str(it["candidate_id"])] = dict(it)

    feedback_items = _load_feedback_items(feedback_path)
    stats = ApplyReviewStats(feedback_items=len(feedback_items))

    for entry in feedback_items:
        if not isinstance(entry, dict):
            continue
        cid = str(entry.get("candidate_id") or "")
        action = str(entry.get("action") or "").lower()
        if not cid:
            continue

        rec = by_id.get(cid)
        if rec is None:
            stats.skipped_unknown_candidate += 1
            continue

        if action == "edit":
            source, target = _edited_pair(rec, entry)
            if not is_valid_pair(source, target):
                stats.skipped_invalid_edit += 1
                record_error(paths, stage="review", message=f"invalid_edit: candidate_id={cid}")
                continue
            if (
                rec.get("status") == STATUS_ACCEPTED
                and rec["source_text"] == source
                and rec["target_text"] == target
            ):
                stats.skipped_already_applied += 1
                review_by_id.pop(cid, None)
                continue
            rec["source_text"] = source
            rec["target_text"] = target
            rec["edited"] = True
            action = "accept"
        elif action == "accept" and rec.get("status") == STATUS_ACCEPTED:
            stats.skipped_already_applied += 1
            review_by_id.pop(cid, None)
            continue
        elif action == "reject" and rec.get("status") == STATUS_REJECTED:
            stats.skipped_already_applied += 1
            review_by_id.pop(cid, None)
            continue

        if action not in ("accept", "reject"):
            record_error(paths, stage="review", message=f"unknown_action: {action} candidate_id={cid}")
            continue

        rec["status"] = STATUS_ACCEPTED if action == "accept" else STATUS_REJECTED
        rec["updated_at"] = utc_now_iso()
        review_by_id.pop(cid, None)
        stats.applied += 1

    # An edit can make two candidates name the same pair; an accepted one wins.
    merged: dict[str, dict[str, Any]] = {}
    for rec in by_id.values():
        k = stable_candidate_id(rec["source_text"], rec["target_text"])
        prev = merged.get(k)
        if prev is None or (prev.get("status") != STATUS_ACCEPTED and rec.get("status") == STATUS_ACCEPTED):
            merged[k] = rec
    records_out = list(merged.values())

    entries = entries_for_records(records_out)
    stats.entries_total = len(entries)

    result_out = dict(result) if isinstance(result, dict) else {"job": {}, "candidates": []}
    result_out["candidates"] = records_out

    pending = {str(rec["candidate_id"]) for rec in records_out if rec.get("status") != STATUS_REJECTED}
    review_out = dict(review) if isinstance(review, dict) else {"items": []}
    review_out["items"] = [it for cid, it in review_by_id.items() if cid in pending]

    write_json(paths.candidates_json, result_out)
    write_json(paths.review_json, review_out)
    write_json(paths.entries_json, {"entries": [e.to_dict() for e in entries]})

    if paths.metrics_json.exists():
        metrics = load_json(paths.metrics_json)
        metrics["review_items_total"] = len(review_out["items"])
        metrics["entries_total"] = len(entries)
        write_json(paths.metrics_json, metrics)

    return stats
