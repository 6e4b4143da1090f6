from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List


def _must(p: Path) -> Path:
    if not p.exists():
        raise FileNotFoundError(f"Missing claims file: {p}")
    return p


def load_records(path: str | Path) -> List[Dict[str, Any]]:
    """
    Load producer records from a JSON array file or a JSON Lines file.

    Blank lines in JSON Lines input are skipped. Anything that is not a JSON
    object raises ValueError naming the file (and line, for JSON Lines).
    """
    p = _must(Path(path))
    text = p.read_text(encoding="utf-8")
    stripped = text.lstrip()

    if stripped.startswith("["):
        obj = json.loads(text)
        if not all(isinstance(r, dict) for r in obj):
            raise ValueError(f"Every item in {p} must be a JSON object")
        return obj

    records: List[Dict[str, Any]] = []
    for n, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        obj = json.loads(line)
        if not isinstance(obj, dict):
            raise ValueError(f"{p}:{n}: expected a JSON object")
        records.append(obj)
    return records
