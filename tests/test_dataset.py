import json
from pathlib import Path

import pytest

from tally_core.dataset import load_records


def test_load_json_array(tmp_path: Path):
    p = tmp_path / "claims.json"
    p.write_text(json.dumps([{"id": "a"}, {"id": "b"}]), encoding="utf-8")
    assert [r["id"] for r in load_records(p)] == ["a", "b"]


def test_load_json_lines_skips_blank_lines(tmp_path: Path):
    p = tmp_path / "claims.jsonl"
    p.write_text('{"id": "a", "originalValue": "1,234百万円"}\n\n{"id": "b"}\n', encoding="utf-8")
    records = load_records(p)
    assert len(records) == 2
    assert records[0]["originalValue"] == "1,234百万円"


def test_non_object_line_raises(tmp_path: Path):
    p = tmp_path / "claims.jsonl"
    p.write_text('{"id": "a"}\n"oops"\n', encoding="utf-8")
    with pytest.raises(ValueError, match=":2"):
        load_records(p)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "nope.jsonl")
