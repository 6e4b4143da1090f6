from tally_core.results import (
    ReviewStatus,
    augment_record,
    augment_records,
    verify_records,
)


def _record(**overrides):
    r = {
        "page": 2,
        "itemPath": "P/L > 売上総利益",
        "originalValue": "1,230百万円",
        "calculationOperands": ["2,000百万円", "766百万円"],
        "calculationOperation": "subtract",
        "aiComment": "売上2,000百万円 - 売上原価766百万円 = 1,234百万円",
        "status": "エラー",
    }
    r.update(overrides)
    return r


def test_augment_record_appends_trace_and_keeps_passthrough():
    out = augment_record(_record())
    assert out["page"] == 2
    assert out["itemPath"] == "P/L > 売上総利益"
    assert out["status"] == ReviewStatus.MINOR_ERROR.value
    assert out["calculatedValue"] == "1234000000"
    assert out["aiComment"].startswith("売上2,000百万円 - 売上原価766百万円 = 1,234百万円\n---\n")
    assert "Calculation performed: 2,000,000,000 − 766,000,000 = 1,234,000,000\n" in out["aiComment"]
    assert out["verification"]["status"] == "minor_discrepancy"


def test_augment_record_does_not_mutate_input():
    r = _record()
    before = dict(r)
    augment_record(r)
    assert r == before


def test_non_calculation_record_passes_through():
    r = {"page": 1, "aiComment": "表記ゆれ", "status": "要確認"}
    assert augment_record(r) == r


def test_status_mapping():
    assert augment_record(_record(originalValue="1,234百万円"))["status"] == "ok"
    assert augment_record(_record(originalValue="900百万円"))["status"] == "error"
    assert augment_record(_record(calculationOperands=["x", "1"]))["status"] == "attention"
    div0 = augment_record(_record(calculationOperands=["1", "0"], calculationOperation="divide"))
    assert div0["status"] == "error"
    assert "calculatedValue" not in div0


def test_commentary_without_upstream_comment():
    r = _record()
    del r["aiComment"]
    out = augment_record(r)
    assert out["aiComment"].startswith("Calculation performed: ")


def test_augment_records_preserves_order_and_length():
    records = [
        _record(id="a"),
        {"id": "b", "aiComment": "no calculation"},
        _record(id="c", calculationOperands=["abc", "1"]),
        _record(id="d", originalValue="1,234百万円"),
        _record(id="e", calculationOperation="median"),
    ]
    out = augment_records(records, max_workers=2)
    assert [r["id"] for r in out] == ["a", "b", "c", "d", "e"]
    assert [r.get("status") for r in out] == ["minor_error", None, "attention", "ok", "attention"]

    batch = verify_records(records)
    assert [c.claim_id for c in batch.claims] == ["a", "c", "d", "e"]
    assert len(batch.verdicts) == 4


def test_english_label_containing_rate_is_still_an_amount():
    out = augment_record(_record(valueType="Corporate income tax"))
    assert out["status"] == ReviewStatus.MINOR_ERROR.value
    assert out["verification"]["status"] == "minor_discrepancy"
    assert "percentage points" not in out["aiComment"]


def test_trace_goes_to_the_commentary_key_that_holds_text():
    r = {
        "originalValue": "3",
        "calculationOperands": ["1", "2"],
        "calculationOperation": "sum",
        "aiComment": None,
        "commentary": "upstream note",
    }
    out = augment_record(r)
    assert out["commentary"].startswith("upstream note\n---\nCalculation performed: 1 + 2 = 3\n")
    assert out["aiComment"] is None
