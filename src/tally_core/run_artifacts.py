from __future__ import annotations

import json
import os
import subprocess
import time
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from tally_core.claims import CalculationClaim
from tally_core.numeric_agreement import TolerancePolicy
from tally_core.verification import VerificationReport, VerificationVerdict


def _git_rev_short() -> str:
    try:
        p = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            check=False,
        )
        rev = (p.stdout or "").strip()
        return rev if rev else "unknown"
    except OSError:
        return "unknown"


def _jsonable(x: Any) -> Any:
    if x is None:
        return None
    if isinstance(x, Enum):
        return x.value
    if isinstance(x, Decimal):
        return format(x, "f")
    if is_dataclass(x):
        return {k: _jsonable(v) for k, v in asdict(x).items()}
    if isinstance(x, (str, int, float, bool)):
        return x
    if isinstance(x, Path):
        return str(x)
    if isinstance(x, dict):
        return {str(k): _jsonable(v) for k, v in x.items()}
    if isinstance(x, (list, tuple, set)):
        return [_jsonable(v) for v in x]
    return repr(x)


def _claim_snapshot(claim: CalculationClaim) -> Dict[str, Any]:
    return {
        "id": claim.claim_id,
        "reported_value": claim.reported_value_text,
        "operands": list(claim.operand_texts),
        "operation": claim.operation_tag,
        "percentage_hint": claim.percentage_hint,
    }


def build_run_artifact(
    *,
    run_source: str,
    input_path: Optional[str],
    policy: TolerancePolicy,
    claims: Sequence[CalculationClaim],
    verdicts: Sequence[VerificationVerdict],
    report: VerificationReport,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    ts = time.strftime("%Y%m%d_%H%M%S")
    rev = _git_rev_short()

    artifact: Dict[str, Any] = {
        "schema": "tally.run_artifact.v1",
        "timestamp": ts,
        "git_rev": rev,
        "run_source": run_source,
        "inputs": {
            "input_path": input_path,
            "policy": _jsonable(policy),
        },
        "claims": {
            "count": len(claims),
            "items": [
                {**_claim_snapshot(c), "verdict": v.to_dict()}
                for c, v in zip(claims, verdicts)
            ],
        },
        "report": report.to_dict(),
    }

    if extra:
        artifact["extra"] = _jsonable(extra)

    return artifact


def write_run_artifact(
    artifact: Dict[str, Any],
    *,
    runs_dir: Optional[str] = None,
) -> Path:
    out_dir = Path(runs_dir or os.environ.get("TALLY_RUNS_DIR", "tally_runs"))
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = artifact.get("timestamp") or time.strftime("%Y%m%d_%H%M%S")
    rev = artifact.get("git_rev", "unknown")
    path = out_dir / f"run_{ts}_{rev}.json"

    text = json.dumps(artifact, indent=2, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")
    (out_dir / "latest.json").write_text(text, encoding="utf-8")
    return path
