from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tally_cli.config import load_tolerance_policy
from tally_core.dataset import load_records
from tally_core.numeric_agreement import DEFAULT_POLICY, TolerancePolicy
from tally_core.results import REVIEW_LABELS, review_status_for, verify_records
from tally_core.run_artifacts import build_run_artifact, write_run_artifact
from tally_core.verification import build_report


def _policy_from(path: Optional[str]) -> TolerancePolicy:
    if not path:
        return DEFAULT_POLICY
    return load_tolerance_policy(path)


def _int_env(name: str) -> Optional[int]:
    v = os.environ.get(name)
    return int(v) if v and v.strip() else None


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="tally-verify",
        description="Re-derive calculation claims and judge reported figures against them.",
    )
    ap.add_argument("input", help="JSON array or JSON Lines file of claim records.")
    ap.add_argument("--output", default=None, help="Where to write augmented records (default: stdout).")
    ap.add_argument("--policy", default=None, help="YAML tolerance policy.")
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("--runs-dir", default=None)
    ap.add_argument("--no-artifact", action="store_true")
    ap.add_argument("--log-level", default=None)
    ap.add_argument("--env-file", default=".env")
    args = ap.parse_args(argv)

    load_dotenv(dotenv_path=Path(args.env_file))

    level = args.log_level or os.environ.get("TALLY_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level.upper(), format="%(levelname)s %(name)s: %(message)s")

    policy = _policy_from(args.policy or os.environ.get("TALLY_POLICY_FILE"))
    workers = args.workers if args.workers is not None else _int_env("TALLY_WORKERS")

    records = load_records(args.input)
    batch = verify_records(records, policy=policy, max_workers=workers)
    claims, verdicts = batch.claims, batch.verdicts

    payload = json.dumps(batch.augmented, indent=2, ensure_ascii=False) + "\n"
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
    else:
        sys.stdout.write(payload)

    report = build_report(claims, verdicts)
    err = sys.stderr
    print(f"Records: {len(records)} (calculation claims: {len(claims)})", file=err)
    print("Summary:", report.summary, file=err)
    for c, v in zip(report.checks, verdicts):
        label = REVIEW_LABELS[review_status_for(v)]
        print(f"- {c.claim_id}: {c.status.value} [{label}] ({c.reason})", file=err)

    if not args.no_artifact:
        artifact = build_run_artifact(
            run_source="tally-verify",
            input_path=str(args.input),
            policy=policy,
            claims=claims,
            verdicts=verdicts,
            report=report,
            extra={"cwd": str(Path().resolve()), "workers": workers},
        )
        out_path = write_run_artifact(artifact, runs_dir=args.runs_dir)
        print("Wrote run artifact:", out_path, file=err)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
