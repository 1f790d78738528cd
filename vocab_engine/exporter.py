from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .job import job_paths, record_error
from .types import VocabularyEntry
from .utils import load_json, write_json

BASE_COLUMNS = ["source_term", "target_term"]
FULL_COLUMNS = ["source_full", "target_full"]


@dataclass
class ExportStats:
    entries_seen: int = 0
    entries_exported: int = 0
    entries_invalid: int = 0


def _load_entries(job_dir: str | Path, stats: ExportStats) -> list[VocabularyEntry]:
    paths = job_paths(job_dir)
    data = load_json(paths.entries_json)
    raw = data.get("entries", []) if isinstance(data, dict) else []

    entries: list[VocabularyEntry] = []
    for e in raw:
        stats.entries_seen += 1
        if not isinstance(e, dict):
            stats.entries_invalid += 1
            continue
        entry = VocabularyEntry.from_dict(e)
        if not entry.source_term or not entry.target_term:
            stats.entries_invalid += 1
            record_error(paths, stage="export", message=f"invalid_entry: {e}")
            continue
        entries.append(entry)

    if not entries:
        raise RuntimeError("No exportable entries (none accepted or all invalid)")
    return entries


def export_entries_csv(
    *,
    job_dir: str | Path,
    out_path: str | Path,
    include_full: bool = True,
) -> ExportStats:
    """Export a job's vocabulary entries to CSV.

    CSV columns:
    - source_term
    - target_term
    - source_full, target_full (when include_full)
    """
    stats = ExportStats()
    entries = _load_entries(job_dir, stats)

    fieldnames = BASE_COLUMNS + (FULL_COLUMNS if include_full else [])
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for entry in entries:
            writer.writerow(entry.to_dict())
            stats.entries_exported += 1

    return stats


def export_entries_json(*, job_dir: str | Path, out_path: str | Path) -> ExportStats:
    stats = ExportStats()
    entries = _load_entries(job_dir, stats)
    rows: list[dict[str, Any]] = [e.to_dict() for e in entries]
    write_json(out_path, rows)
    stats.entries_exported = len(rows)
    return stats
