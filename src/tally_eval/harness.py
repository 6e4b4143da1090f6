from __future__ import annotations

import os
import platform
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from tally_core.dataset import load_records
from tally_core.numeric_agreement import DEFAULT_POLICY, TolerancePolicy
from tally_core.results import review_status_for, verify_records
from tally_eval.metrics import status_agreement, verdict_coverage


def _git_head_sha() -> Optional[str]:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode("utf-8").strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def load_expected(path: Path) -> Dict[str, str]:
    """Read id,expected_status pairs. Every column is read as text."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    for col in ("id", "expected_status"):
        if col not in df.columns:
            raise ValueError(f"{path} is missing column '{col}'")
    df["id"] = df["id"].str.strip()
    df["expected_status"] = df["expected_status"].str.strip().str.lower()
    return dict(zip(df["id"], df["expected_status"]))


def _confusion(expected: Dict[str, str], actual: Dict[str, str]) -> Dict[str, Dict[str, int]]:
    ids = [k for k in expected if k in actual]
    if not ids:
        return {}
    frame = pd.DataFrame(
        {
            "expected": [expected[k] for k in ids],
            "actual": [actual[k] for k in ids],
        }
    )
    table = pd.crosstab(frame["expected"], frame["actual"])
    return {
        str(row): {str(col): int(n) for col, n in counts.items()}
        for row, counts in table.to_dict(orient="index").items()
    }


def run_case(
    case_dir: str | Path,
    *,
    policy: TolerancePolicy = DEFAULT_POLICY,
) -> Dict[str, Any]:
    """
    Verify a labelled case directory and score the verdicts.

    Expects claims.jsonl (records with an "id") and, optionally, expected.csv
    (id,expected_status). Without expected.csv only coverage is reported.
    """
    root = Path(case_dir)
    records = load_records(root / "claims.jsonl")
    batch = verify_records(records, policy=policy)

    actual: Dict[str, str] = {}
    outcomes = []
    for i, (claim, verdict) in enumerate(zip(batch.claims, batch.verdicts)):
        cid = claim.claim_id or f"#{i + 1}"
        actual[cid] = verdict.status.value
        outcomes.append(
            {
                "id": cid,
                "status": verdict.status.value,
                "review_status": review_status_for(verdict).value,
                "failure": verdict.failure.value if verdict.failure else None,
                "trace": verdict.trace,
                "message": verdict.message,
            }
        )

    coverage = verdict_coverage(list(actual.values()))
    result: Dict[str, Any] = {
        "case": {"name": root.name, "path": str(root)},
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "git_head": _git_head_sha(),
        "env": {
            "python": sys.version.split()[0],
            "platform": platform.platform(),
            "cwd": os.getcwd(),
        },
        "outputs": {
            "records": len(records),
            "claims": len(batch.claims),
            "outcomes": outcomes,
        },
        "metrics": {
            coverage.name: {"score": coverage.score, "details": coverage.details},
        },
    }

    expected_path = root / "expected.csv"
    if expected_path.exists():
        expected = load_expected(expected_path)
        agreement = status_agreement(expected, actual)
        result["metrics"][agreement.name] = {"score": agreement.score, "details": agreement.details}
        result["confusion"] = _confusion(expected, actual)
        result["pass"] = agreement.score == 1.0
    else:
        result["pass"] = None

    return result
