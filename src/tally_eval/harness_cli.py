from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path

from tally_cli.config import load_tolerance_policy
from tally_core.numeric_agreement import DEFAULT_POLICY
from tally_eval.harness import run_case


def main() -> int:
    ap = argparse.ArgumentParser(description="Tally eval harness (writes tally_evals/out/latest.json).")
    ap.add_argument("case_dir")
    ap.add_argument("--policy", default=None)
    args = ap.parse_args()

    policy = load_tolerance_policy(args.policy) if args.policy else DEFAULT_POLICY

    out_dir = Path("tally_evals") / "out"
    out_dir.mkdir(parents=True, exist_ok=True)

    payload = run_case(args.case_dir, policy=policy)

    latest_path = out_dir / "latest.json"
    ts_path = out_dir / f"run_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.json"

    text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
    latest_path.write_text(text, encoding="utf-8")
    ts_path.write_text(text, encoding="utf-8")

    print(f"Wrote: {latest_path}")
    print(f"Wrote: {ts_path}")
    return 0
