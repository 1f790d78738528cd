from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def ensure_dir(path: str | Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def compile_patterns(patterns: list[str], flags: int = 0) -> list[re.Pattern[str]]:
    return [re.compile(p, flags) for p in patterns]


def has_letter(text: str) -> bool:
    return any(ch.isalpha() for ch in text)


def stable_candidate_id(source_text: str, target_text: str) -> str:
    """Stable id: sha1(lower(source) + '|' + lower(target)).

    Matches the ranker's dedup key so one id never names two candidates.
    """
    payload = f"{source_text.lower()}|{target_text.lower()}".encode("utf-8")
    return hashlib.sha1(payload, usedforsecurity=False).hexdigest()


def write_json(path: str | Path, data: Any) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def append_jsonl(path: str | Path, obj: dict[str, Any]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(obj, ensure_ascii=False) + "\n")


def load_json(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def read_text(path: str | Path) -> str:
    # utf-8-sig tolerates the BOM some OCR exports prepend.
    with open(path, "r", encoding="utf-8-sig") as f:
        return f.read()
