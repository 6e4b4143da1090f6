import json
from pathlib import Path

from tally_eval.harness import run_case


def _write_case(root: Path, with_expected: bool = True) -> None:
    root.mkdir(parents=True, exist_ok=True)
    records = [
        {
            "id": "gross_profit",
            "originalValue": "1,234百万円",
            "calculationOperands": ["2,000百万円", "766百万円"],
            "calculationOperation": "subtract",
        },
        {
            "id": "margin",
            "originalValue": "61.5%",
            "calculationOperands": ["1,234百万円", "2,000百万円"],
            "calculationOperation": "divide_first_by_second_as_percentage",
            "valueType": "利益率",
        },
        {
            "id": "broken",
            "originalValue": "100",
            "calculationOperands": ["n/a", "1"],
            "calculationOperation": "sum",
        },
        {"id": "note", "aiComment": "not a calculation"},
    ]
    (root / "claims.jsonl").write_text(
        "\n".join(json.dumps(r, ensure_ascii=False) for r in records) + "\n",
        encoding="utf-8",
    )
    if with_expected:
        (root / "expected.csv").write_text(
            "id,expected_status\n"
            "gross_profit,confirmed\n"
            "margin,minor_discrepancy\n"
            "broken,unverifiable\n"
        )


def test_run_case_scores_expected_statuses(tmp_path: Path):
    case = tmp_path / "case1"
    _write_case(case)

    result = run_case(case)
    assert result["outputs"]["records"] == 4
    assert result["outputs"]["claims"] == 3
    assert result["metrics"]["status_agreement"]["score"] == 1.0
    assert result["pass"] is True
    assert result["confusion"]["confirmed"]["confirmed"] == 1
    assert abs(result["metrics"]["verdict_coverage"]["score"] - 2 / 3) < 1e-9
    json.dumps(result)


def test_run_case_without_expectations(tmp_path: Path):
    case = tmp_path / "case2"
    _write_case(case, with_expected=False)

    result = run_case(case)
    assert result["pass"] is None
    assert "status_agreement" not in result["metrics"]
