"""Scan job workflow tests.

Covers:
1. Job directory + output contract
2. run_scan with and without auto-accept
3. Review feedback (accept / reject / edit) and idempotency
4. CSV / JSON export
5. CLI commands via main(argv)
"""
from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from vocab_engine.cli import main
from vocab_engine.config import EngineConfig, load_config
from vocab_engine.exporter import export_entries_csv, export_entries_json
from vocab_engine.job import create_job_dirs, init_job_outputs, job_paths, new_job_id
from vocab_engine.review import apply_review_feedback
from vocab_engine.scan import run_scan
from vocab_engine.utils import load_json, stable_candidate_id, write_json

PAGE_TEXT = "Lesson 2\nperro - dog\ngato - cat\ncasa - house\n"


# ═══════════════════════════════════════════════════════════════════════════════
# TEST FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def job(tmp_path: Path):
    paths = create_job_dirs(tmp_path, "job_001")
    init_job_outputs(paths)
    return paths


@pytest.fixture
def scanned_job(job):
    run_scan(job, PAGE_TEXT, EngineConfig(), source_name="Libro 1")
    return job


def _feedback(tmp_path: Path, items) -> Path:
    p = tmp_path / "review_feedback.json"
    write_json(p, items)
    return p


def _cid(source: str, target: str) -> str:
    return stable_candidate_id(source, target)


# ═══════════════════════════════════════════════════════════════════════════════
# JOB LAYOUT
# ═══════════════════════════════════════════════════════════════════════════════

class TestJobLayout:

    def test_new_job_id_timeline_format(self):
        job_id = new_job_id()
        date_part, time_and_id = job_id.split("/")
        assert len(date_part) == 10 and date_part[4] == "-" and date_part[7] == "-"
        time_part, short_id = time_and_id.split("__")
        assert len(time_part) == 8
        assert len(short_id) == 8

    def test_new_job_id_uuid_format(self):
        assert len(new_job_id(use_timeline=False)) == 36

    def test_output_contract_exists(self, job):
        for p in (job.candidates_json, job.review_json, job.entries_json, job.metrics_json, job.errors_jsonl):
            assert p.exists(), p
        metrics = load_json(job.metrics_json)
        assert metrics["finished"] is False
        assert load_json(job.entries_json) == {"entries": []}

    def test_job_paths_matches_created(self, tmp_path, job):
        assert job_paths(job.job_dir) == job


class TestConfig:

    def test_defaults(self):
        cfg = load_config()
        assert cfg.ocr == {} and cfg.review == {} and cfg.export == {}

    def test_shipped_default_config(self):
        cfg = load_config(Path(__file__).resolve().parents[1] / "config" / "default.json")
        assert cfg.ocr["lang"] == "es,en"
        assert cfg.review["auto_accept_min_confidence"] is None

    def test_non_object_rejected(self, tmp_path):
        p = tmp_path / "cfg.json"
        write_json(p, [1, 2])
        with pytest.raises(ValueError):
            load_config(p)


# ═══════════════════════════════════════════════════════════════════════════════
# SCAN
# ═══════════════════════════════════════════════════════════════════════════════

class TestRunScan:

    def test_everything_goes_to_review_by_default(self, scanned_job):
        result = load_json(scanned_job.candidates_json)
        assert result["job"]["finished"] is True
        assert result["job"]["source"] == "Libro 1"

        cands = result["candidates"]
        assert {(c["source_text"], c["target_text"]) for c in cands} == {
            ("perro", "dog"), ("gato", "cat"), ("casa", "house")
        }
        assert all(c["status"] == "review" for c in cands)
        assert all(c["candidate_id"] == _cid(c["source_text"], c["target_text"]) for c in cands)

        assert len(load_json(scanned_job.review_json)["items"]) == 3
        assert load_json(scanned_job.entries_json) == {"entries": []}

    def test_metrics(self, scanned_job):
        metrics = load_json(scanned_job.metrics_json)
        assert metrics["finished"] is True
        assert metrics["lines_total"] == 4
        assert metrics["lines_retained"] == 3
        assert metrics["candidates_total"] == 3
        assert metrics["candidates_by_strategy"] == {"contextual": 3}
        assert metrics["review_items_total"] == 3
        assert metrics["auto_accepted"] == 0

    def test_normalized_text_kept(self, scanned_job):
        assert scanned_job.normalized_txt.read_text(encoding="utf-8").startswith("Lesson 2\nperro - dog")

    def test_auto_accept_policy(self, job):
        cfg = EngineConfig(review={"auto_accept_min_confidence": 0.9})
        metrics = run_scan(job, PAGE_TEXT + "soltero/a: single; unmarried\n", cfg)

        items = load_json(job.review_json)["items"]
        assert [(it["source_text"], it["target_text"]) for it in items] == [("soltero/a", "single; unmarried")]

        entries = load_json(job.entries_json)["entries"]
        assert sorted(e["source_term"] for e in entries) == ["casa", "gato", "perro"]
        assert metrics["auto_accepted"] == 3
        assert metrics["entries_total"] == 3

    def test_empty_text(self, job):
        metrics = run_scan(job, "", EngineConfig())
        assert metrics["candidates_total"] == 0
        assert load_json(job.candidates_json)["candidates"] == []


# ═══════════════════════════════════════════════════════════════════════════════
# REVIEW
# ═══════════════════════════════════════════════════════════════════════════════

class TestApplyReview:

    def _apply_standard(self, tmp_path, job):
        fb = _feedback(
            tmp_path,
            [
                {"candidate_id": _cid("perro", "dog"), "action": "accept"},
                {"candidate_id": _cid("gato", "cat"), "action": "reject"},
                {"candidate_id": _cid("casa", "house"), "action": "edit", "target_text": "home"},
            ],
        )
        return fb, apply_review_feedback(job_dir=job.job_dir, feedback_path=fb)

    def test_accept_reject_edit(self, tmp_path, scanned_job):
        _, stats = self._apply_standard(tmp_path, scanned_job)
        assert stats.feedback_items == 3
        assert stats.applied == 3
        assert stats.entries_total == 2

        entries = load_json(scanned_job.entries_json)["entries"]
        assert {(e["source_term"], e["target_term"]) for e in entries} == {("perro", "dog"), ("casa", "home")}
        assert load_json(scanned_job.review_json)["items"] == []

        by_id = {c["candidate_id"]: c for c in load_json(scanned_job.candidates_json)["candidates"]}
        assert by_id[_cid("gato", "cat")]["status"] == "rejected"
        assert by_id[_cid("casa", "house")]["edited"] is True

    def test_idempotent(self, tmp_path, scanned_job):
        fb, _ = self._apply_standard(tmp_path, scanned_job)
        before = load_json(scanned_job.entries_json)

        stats = apply_review_feedback(job_dir=scanned_job.job_dir, feedback_path=fb)
        assert stats.applied == 0
        assert stats.skipped_already_applied == 3
        assert load_json(scanned_job.entries_json) == before

    def test_accepting_expands_slash_notation(self, tmp_path, job):
        run_scan(job, "soltero/a - single; unmarried", EngineConfig())
        cid = load_json(job.candidates_json)["candidates"][0]["candidate_id"]
        apply_review_feedback(job_dir=job.job_dir, feedback_path=_feedback(tmp_path, {"items": [{"candidate_id": cid, "action": "accept"}]}))

        entries = load_json(job.entries_json)["entries"]
        assert [e["source_term"] for e in entries] == ["soltero", "soltera"]
        assert {e["target_term"] for e in entries} == {"single"}

    def test_unknown_candidate(self, tmp_path, scanned_job):
        fb = _feedback(tmp_path, [{"candidate_id": "nope", "action": "accept"}])
        stats = apply_review_feedback(job_dir=scanned_job.job_dir, feedback_path=fb)
        assert stats.skipped_unknown_candidate == 1
        assert len(load_json(scanned_job.review_json)["items"]) == 3

    def test_invalid_edit_is_recorded(self, tmp_path, scanned_job):
        fb = _feedback(tmp_path, [{"candidate_id": _cid("perro", "dog"), "action": "edit", "target_text": "Perro"}])
        stats = apply_review_feedback(job_dir=scanned_job.job_dir, feedback_path=fb)
        assert stats.skipped_invalid_edit == 1
        assert stats.applied == 0

        lines = scanned_job.errors_jsonl.read_text(encoding="utf-8").strip().splitlines()
        assert json.loads(lines[-1])["stage"] == "review"

    def test_edit_into_existing_pair_merges(self, tmp_path, scanned_job):
        fb = _feedback(
            tmp_path,
            [
                {"candidate_id": _cid("gato", "cat"), "action": "edit", "source_text": "perro", "target_text": "dog"},
            ],
        )
        apply_review_feedback(job_dir=scanned_job.job_dir, feedback_path=fb)
        cands = load_json(scanned_job.candidates_json)["candidates"]
        assert [(c["source_text"], c["status"]) for c in cands if c["target_text"] == "dog"] == [("perro", "accepted")]
        assert len(load_json(scanned_job.entries_json)["entries"]) == 1

    @pytest.mark.parametrize("payload", ["oops", {"items": "x"}, 3])
    def test_bad_feedback_document(self, tmp_path, scanned_job, payload):
        fb = _feedback(tmp_path, payload)
        with pytest.raises(ValueError):
            apply_review_feedback(job_dir=scanned_job.job_dir, feedback_path=fb)


# ═══════════════════════════════════════════════════════════════════════════════
# EXPORT
# ═══════════════════════════════════════════════════════════════════════════════

class TestExport:

    @pytest.fixture
    def accepted_job(self, job):
        run_scan(job, PAGE_TEXT, EngineConfig(review={"auto_accept_min_confidence": 0.5}))
        return job

    def test_csv(self, tmp_path, accepted_job):
        out = tmp_path / "out" / "deck.csv"
        stats = export_entries_csv(job_dir=accepted_job.job_dir, out_path=out)
        assert stats.entries_exported == 3

        with out.open(encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert list(rows[0].keys()) == ["source_term", "target_term", "source_full", "target_full"]
        assert {(r["source_term"], r["target_term"]) for r in rows} == {
            ("perro", "dog"), ("gato", "cat"), ("casa", "house")
        }

    def test_csv_without_full_columns(self, tmp_path, accepted_job):
        out = tmp_path / "deck.csv"
        export_entries_csv(job_dir=accepted_job.job_dir, out_path=out, include_full=False)
        header = out.read_text(encoding="utf-8").splitlines()[0]
        assert header == "source_term,target_term"

    def test_json(self, tmp_path, accepted_job):
        out = tmp_path / "deck.json"
        stats = export_entries_json(job_dir=accepted_job.job_dir, out_path=out)
        assert stats.entries_exported == 3
        assert {e["source_term"] for e in load_json(out)} == {"perro", "gato", "casa"}

    def test_nothing_to_export(self, tmp_path, scanned_job):
        with pytest.raises(RuntimeError):
            export_entries_csv(job_dir=scanned_job.job_dir, out_path=tmp_path / "deck.csv")


# ═══════════════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════════════

class TestCli:

    def test_add(self, capsys):
        assert main(["add", "--source", "soltero/a (single)", "--target", "single; unmarried"]) == 0
        entries = json.loads(capsys.readouterr().out)
        assert [e["source_term"] for e in entries] == ["soltero", "soltera"]
        assert entries[0]["target_full"] == "single; unmarried"

    def test_add_invalid(self, capsys):
        assert main(["add", "--source", "(m.)", "--target", "dog"]) == 1
        assert capsys.readouterr().out.startswith("add_failed")

    def test_parse(self, tmp_path, capsys):
        src = tmp_path / "page.txt"
        src.write_text("1. perro - dog\n2. gato - cat\n", encoding="utf-8")
        assert main(["parse", "--input", str(src)]) == 0
        out = json.loads(capsys.readouterr().out)
        assert {(c["source_text"], c["target_text"]) for c in out} == {("perro", "dog"), ("gato", "cat")}

    def test_parse_missing_file(self, tmp_path, capsys):
        assert main(["parse", "--input", str(tmp_path / "missing.txt")]) == 1

    def test_scan_review_export(self, tmp_path, capsys):
        src = tmp_path / "page.txt"
        src.write_text(PAGE_TEXT, encoding="utf-8")
        ws = tmp_path / "ws"

        assert main(["scan", "--input", str(src), "--workspace", str(ws), "--source", "Libro"]) == 0
        job_dir = Path(capsys.readouterr().out.strip().splitlines()[-1])
        assert (job_dir / "candidates.json").exists()
        assert (job_dir / "input" / "page.txt").exists()

        out = tmp_path / "deck.csv"
        assert main(["export", "--job-dir", str(job_dir), "--format", "csv", "--out", str(out)]) == 1
        assert "export_failed" in capsys.readouterr().out

        fb = _feedback(tmp_path, [{"candidate_id": _cid("perro", "dog"), "action": "accept"}])
        assert main(["apply-review", "--job-dir", str(job_dir), "--feedback", str(fb)]) == 0
        assert "applied=1" in capsys.readouterr().out

        assert main(["export", "--job-dir", str(job_dir), "--format", "csv", "--out", str(out)]) == 0
        assert "exported=1" in capsys.readouterr().out

    def test_export_bad_config_path(self, scanned_job, tmp_path, capsys):
        args = [
            "export", "--job-dir", str(scanned_job.job_dir), "--format", "csv",
            "--out", str(tmp_path / "deck.csv"), "--config", str(tmp_path / "missing.json"),
        ]
        assert main(args) == 1
        assert capsys.readouterr().out.startswith("export_failed")

    def test_scan_unreadable_image_records_error(self, tmp_path, capsys):
        src = tmp_path / "page.png"
        src.write_bytes(b"not an image")
        ws = tmp_path / "ws"

        assert main(["scan", "--input", str(src), "--workspace", str(ws)]) == 0
        out = capsys.readouterr().out.strip().splitlines()
        assert out[0].startswith("candidates=0 ")
        job_dir = Path(out[-1])
        errors = [json.loads(line) for line in (job_dir / "errors.jsonl").read_text(encoding="utf-8").splitlines()]
        assert [e["stage"] for e in errors] == ["ocr"]
        assert load_json(job_dir / "metrics.json")["entries_total"] == 0

    def test_scan_bad_config_path(self, tmp_path, capsys):
        src = tmp_path / "page.txt"
        src.write_text(PAGE_TEXT, encoding="utf-8")
        args = ["scan", "--input", str(src), "--workspace", str(tmp_path / "ws"),
                "--config", str(tmp_path / "missing.json")]
        assert main(args) == 1
        assert capsys.readouterr().out.startswith("scan_failed")
        assert not (tmp_path / "ws").exists()
