from tally_eval.metrics import status_agreement, verdict_coverage


def test_status_agreement_exact():
    expected = {"a": "confirmed", "b": "contradicted"}
    r = status_agreement(expected, dict(expected))
    assert r.score == 1.0


def test_status_agreement_missing_and_mismatched():
    expected = {"a": "confirmed", "b": "contradicted", "c": "unverifiable", "d": "confirmed"}
    actual = {"a": "confirmed", "b": "minor_discrepancy", "c": "unverifiable"}
    r = status_agreement(expected, actual)
    assert r.score == 0.5
    assert "missing=1" in r.details
    assert "mismatched=b" in r.details


def test_status_agreement_without_expectations():
    assert status_agreement({}, {"a": "confirmed"}).score is None


def test_verdict_coverage():
    r = verdict_coverage(["confirmed", "unverifiable", "contradicted", "minor_discrepancy"])
    assert r.score == 0.75
    assert verdict_coverage([]).score is None
