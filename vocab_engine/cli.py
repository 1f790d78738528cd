from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from .config import load_config
from .exporter import export_entries_csv, export_entries_json
from .job import create_job_dirs, init_job_outputs, new_job_id, record_error, snapshot_input
from .ocr import OCRTextReader
from .pipeline import build_entries, parse_text
from .review import apply_review_feedback
from .scan import run_scan
from .utils import read_text

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp"}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="vocab_engine")
    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Run a scan job over OCR text or a page image")
    scan.add_argument("--input", required=True, help="Input path (text file or image)")
    scan.add_argument("--type", default="auto", choices=["auto", "text", "image"], help="Input type")
    scan.add_argument("--workspace", default="./workspace", help="Workspace root")
    scan.add_argument("--source", default="", help="Source name (e.g. BookName)")
    scan.add_argument("--config", default=None, help="Config path (JSON)")

    parse = sub.add_parser("parse", help="Print ranked candidates for a text file as JSON")
    parse.add_argument("--input", required=True, help="Text file path")

    add = sub.add_parser("add", help="Print vocabulary entries for one word pair as JSON")
    add.add_argument("--source", required=True, help="Source term, e.g. 'soltero/a'")
    add.add_argument("--target", required=True, help="Target term, e.g. 'single; unmarried'")

    ar = sub.add_parser("apply-review", help="Apply human review feedback to a job")
    ar.add_argument("--job-dir", required=True, help="Job directory (workspace/jobs/<job_id>)")
    ar.add_argument("--feedback", required=True, help="Path to review_feedback.json")

    export = sub.add_parser("export", help="Export vocabulary entries from a job")
    export.add_argument("--job-dir", required=True, help="Job directory (workspace/jobs/<job_id>)")
    export.add_argument("--format", required=True, choices=["csv", "json"], help="Export format")
    export.add_argument("--out", required=True, help="Output file path")
    export.add_argument("--config", default=None, help="Config path (JSON)")

    return p


def _resolve_type(input_path: str, input_type: str) -> str:
    if input_type != "auto":
        return input_type
    return "image" if Path(input_path).suffix.lower() in IMAGE_SUFFIXES else "text"


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def cmd_scan(args: argparse.Namespace) -> int:
    try:
        cfg = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"scan_failed: {e}")
        return 1
    input_type = _resolve_type(args.input, args.type)

    job_id = new_job_id()
    paths = create_job_dirs(args.workspace, job_id)
    init_job_outputs(paths)
    snapshot_input(paths, args.input, input_type)

    if input_type == "image":
        result = OCRTextReader.from_config(cfg.ocr).read_text(args.input)
        if result.error:
            record_error(paths, stage="ocr", message=result.error)
        elif not result.text.strip():
            record_error(paths, stage="ocr", message="ocr_empty")
        text = result.text
    else:
        text = read_text(args.input)

    metrics = run_scan(paths, text, cfg, source_name=args.source)
    print(
        f"candidates={metrics['candidates_total']} review_items={metrics['review_items_total']} "
        f"entries={metrics['entries_total']}"
    )
    print(str(paths.job_dir))
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    try:
        text = read_text(args.input)
    except OSError as e:
        print(f"parse_failed: {e}")
        return 1
    _print_json([c.to_dict() for c in parse_text(text)])
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    entries = build_entries(args.source, args.target)
    if not entries:
        print("add_failed: no valid entry")
        return 1
    _print_json([e.to_dict() for e in entries])
    return 0


def cmd_apply_review(args: argparse.Namespace) -> int:
    try:
        stats = apply_review_feedback(job_dir=args.job_dir, feedback_path=args.feedback)
        print(
            f"feedback_items={stats.feedback_items} applied={stats.applied} "
            f"skipped_unknown_candidate={stats.skipped_unknown_candidate} "
            f"skipped_already_applied={stats.skipped_already_applied} "
            f"skipped_invalid_edit={stats.skipped_invalid_edit} entries={stats.entries_total}"
        )
        return 0
    except (OSError, ValueError) as e:
        print(f"apply_review_failed: {e}")
        return 1


def cmd_export(args: argparse.Namespace) -> int:
    try:
        cfg = load_config(args.config)
        if args.format == "csv":
            include_full = bool(cfg.export.get("include_full", True))
            stats = export_entries_csv(job_dir=args.job_dir, out_path=args.out, include_full=include_full)
        else:
            stats = export_entries_json(job_dir=args.job_dir, out_path=args.out)
        print(f"exported={stats.entries_exported} invalid={stats.entries_invalid}")
        return 0
    except (OSError, RuntimeError, ValueError) as e:
        print(f"export_failed: {e}")
        return 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "scan":
        return cmd_scan(args)

    if args.command == "parse":
        return cmd_parse(args)

    if args.command == "add":
        return cmd_add(args)

    if args.command == "apply-review":
        return cmd_apply_review(args)

    if args.command == "export":
        return cmd_export(args)

    raise SystemExit(2)


if __name__ == "__main__":
    raise SystemExit(main())
