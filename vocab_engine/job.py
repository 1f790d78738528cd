from __future__ import annotations

import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .utils import append_jsonl, ensure_dir, utc_now_iso, write_json


@dataclass
class JobPaths:
    job_dir: Path
    input_dir: Path
    stage_dir: Path
    normalized_txt: Path
    candidates_json: Path
    review_json: Path
    entries_json: Path
    metrics_json: Path
    errors_jsonl: Path


def job_paths(job_dir: str | Path) -> JobPaths:
    """Paths for an existing job directory (nothing is created)."""
    job_dir = Path(job_dir)
    stage_dir = job_dir / "stage"
    return JobPaths(
        job_dir=job_dir,
        input_dir=job_dir / "input",
        stage_dir=stage_dir,
        normalized_txt=stage_dir / "normalized.txt",
        candidates_json=job_dir / "candidates.json",
        review_json=job_dir / "review_queue.json",
        entries_json=job_dir / "entries.json",
        metrics_json=job_dir / "metrics.json",
        errors_jsonl=job_dir / "errors.jsonl",
    )


def create_job_dirs(workspace: str | Path, job_id: str) -> JobPaths:
    paths = job_paths(Path(workspace) / "jobs" / job_id)
    for p in (paths.input_dir, paths.stage_dir):
        ensure_dir(p)
    return paths


def new_job_id(use_timeline: bool = True) -> str:
    """Generate a new job ID.

    Args:
        use_timeline: If True, use timeline format YYYY-MM-DD/HH-MM-SS__<shortid>
                     If False, use UUID format

    Returns:
        Job ID string
    """
    if not use_timeline:
        return str(uuid.uuid4())

    now = datetime.now(timezone.utc)
    date_part = now.strftime("%Y-%m-%d")
    time_part = now.strftime("%H-%M-%S")
    short_id = uuid.uuid4().hex[:8]

    return f"{date_part}/{time_part}__{short_id}"


def record_error(paths: JobPaths, stage: str, message: str) -> None:
    append_jsonl(paths.errors_jsonl, {"stage": stage, "message": message, "created_at": utc_now_iso()})


def init_job_outputs(paths: JobPaths) -> None:
    # Always create output files, even if empty.
    write_json(paths.candidates_json, {"job": {}, "candidates": []})
    write_json(paths.review_json, {"items": []})
    write_json(paths.entries_json, {"entries": []})
    write_json(
        paths.metrics_json,
        {
            "created_at": utc_now_iso(),
            "finished": False,
            "completed_at": None,
            "lines_total": 0,
            "lines_retained": 0,
            "candidates_total": 0,
            "candidates_by_strategy": {},
            "review_items_total": 0,
            "auto_accepted": 0,
            "entries_total": 0,
        },
    )
    paths.errors_jsonl.parent.mkdir(parents=True, exist_ok=True)
    paths.errors_jsonl.touch(exist_ok=True)


def snapshot_input(paths: JobPaths, input_path: str | Path, input_type: str) -> None:
    src = Path(input_path)
    if src.is_file():
        shutil.copy2(src, paths.input_dir / src.name)
    write_json(paths.input_dir / "manifest.json", {"type": input_type, "path": str(src.resolve())})
