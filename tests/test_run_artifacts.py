import json
from pathlib import Path

from tally_core.claims import CalculationClaim
from tally_core.numeric_agreement import TolerancePolicy
from tally_core.run_artifacts import build_run_artifact, write_run_artifact
from tally_core.verification import build_report, verify_claims


def test_run_artifact_round_trip(tmp_path: Path):
    claims = [
        CalculationClaim(
            reported_value_text="1,230百万円",
            operand_texts=("2,000百万円", "766百万円"),
            operation_tag="subtract",
            passthrough={"id": "c1"},
        )
    ]
    verdicts = verify_claims(claims)
    artifact = build_run_artifact(
        run_source="test",
        input_path="claims.jsonl",
        policy=TolerancePolicy(),
        claims=claims,
        verdicts=verdicts,
        report=build_report(claims, verdicts),
    )
    assert artifact["schema"] == "tally.run_artifact.v1"
    assert artifact["inputs"]["policy"]["relative_tolerance"] == "0.01"
    item = artifact["claims"]["items"][0]
    assert item["id"] == "c1"
    assert item["verdict"]["computed_value"] == "1234000000"

    path = write_run_artifact(artifact, runs_dir=str(tmp_path))
    assert path.exists()
    latest = json.loads((tmp_path / "latest.json").read_text(encoding="utf-8"))
    assert latest["report"]["counts"]["minor_discrepancy"] == 1
