from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from tally_core.claims import COMMENT_KEYS, CalculationClaim, FailureKind, VerificationStatus
from tally_core.numeric_agreement import DEFAULT_POLICY, TolerancePolicy
from tally_core.verification import VerificationVerdict, verify_claim, verify_claims


class ReviewStatus(str, Enum):
    """Coarse status vocabulary of the result viewer."""
    OK = "ok"
    MINOR_ERROR = "minor_error"
    ERROR = "error"
    ATTENTION = "attention"


REVIEW_LABELS = {
    ReviewStatus.OK: "正常",
    ReviewStatus.MINOR_ERROR: "軽微な誤り",
    ReviewStatus.ERROR: "誤り",
    ReviewStatus.ATTENTION: "要確認",
}

_INVALID_CLAIM = (FailureKind.DIVISION_BY_ZERO, FailureKind.INTERNAL_ERROR)


def review_status_for(verdict: VerificationVerdict) -> ReviewStatus:
    if verdict.status is VerificationStatus.CONFIRMED:
        return ReviewStatus.OK
    if verdict.status is VerificationStatus.MINOR_DISCREPANCY:
        return ReviewStatus.MINOR_ERROR
    if verdict.status is VerificationStatus.CONTRADICTED:
        return ReviewStatus.ERROR
    if verdict.failure in _INVALID_CLAIM:
        return ReviewStatus.ERROR
    return ReviewStatus.ATTENTION


def compose_commentary(upstream: Optional[str], verdict: VerificationVerdict) -> str:
    """Upstream commentary is kept; the engine's trace and message are appended after it."""
    parts = []
    if upstream:
        parts.append(upstream + "\n---\n")
    if verdict.trace:
        parts.append(f"Calculation performed: {verdict.trace}\n")
    parts.append(verdict.message)
    return "".join(parts)


def _comment_key(record: Mapping[str, Any]) -> str:
    # Same choice as CalculationClaim.from_record: the first key holding a value.
    for k in COMMENT_KEYS:
        if record.get(k) is not None:
            return k
    for k in COMMENT_KEYS:
        if k in record:
            return k
    return COMMENT_KEYS[0]


def apply_verdict(record: Mapping[str, Any], verdict: VerificationVerdict) -> dict[str, Any]:
    """
    Copy of record with the verdict attached.

    Sets status (coarse), calculatedValue (decimal string, when computed),
    appends to the commentary field and adds a "verification" block.
    Every other field is left as received.
    """
    out = dict(record)
    key = _comment_key(record)
    upstream = record.get(key)
    out[key] = compose_commentary(None if upstream is None else str(upstream), verdict)
    out["status"] = review_status_for(verdict).value
    if verdict.computed_value is not None:
        out["calculatedValue"] = format(verdict.computed_value, "f")
    out["verification"] = verdict.to_dict()
    return out


def augment_record(
    record: Mapping[str, Any],
    *,
    policy: TolerancePolicy = DEFAULT_POLICY,
) -> dict[str, Any]:
    """
    Verify one producer record. Records without operands or an operation are returned unchanged.
    """
    if not CalculationClaim.is_calculation_record(record):
        return dict(record)
    claim = CalculationClaim.from_record(record)
    return apply_verdict(record, verify_claim(claim, policy=policy))


@dataclass(frozen=True)
class RecordBatch:
    """
    augmented: every input record, in order, with verdicts applied to the calculation claims
    claims/verdicts: the calculation claims found among the records and their verdicts
    """
    augmented: list[dict[str, Any]]
    claims: tuple[CalculationClaim, ...]
    verdicts: tuple[VerificationVerdict, ...]


def verify_records(
    records: Iterable[Mapping[str, Any]],
    *,
    policy: TolerancePolicy = DEFAULT_POLICY,
    max_workers: Optional[int] = None,
) -> RecordBatch:
    records = list(records)
    idx = [i for i, r in enumerate(records) if CalculationClaim.is_calculation_record(r)]
    claims = tuple(CalculationClaim.from_record(records[i]) for i in idx)
    verdicts = verify_claims(claims, policy=policy, max_workers=max_workers)

    out = [dict(r) for r in records]
    for i, v in zip(idx, verdicts):
        out[i] = apply_verdict(records[i], v)
    return RecordBatch(augmented=out, claims=claims, verdicts=verdicts)


def augment_records(
    records: Iterable[Mapping[str, Any]],
    *,
    policy: TolerancePolicy = DEFAULT_POLICY,
    max_workers: Optional[int] = None,
) -> list[dict[str, Any]]:
    return verify_records(records, policy=policy, max_workers=max_workers).augmented
