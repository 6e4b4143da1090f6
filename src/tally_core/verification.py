from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

from tally_core.amounts import ParsedAmount, ParseFailure, parse_amount
from tally_core.claims import CalculationClaim, FailureKind, VerificationStatus
from tally_core.numeric_agreement import DEFAULT_POLICY, TolerancePolicy, judge_tolerance
from tally_core.operations import Computation, EvaluationErrorKind, evaluate_operation
from tally_core.units import resolve_unit_multiplier, unit_label

logger = logging.getLogger(__name__)

_FAILURE_FOR_ERROR = {
    EvaluationErrorKind.INSUFFICIENT_OPERANDS: FailureKind.INSUFFICIENT_OPERANDS,
    EvaluationErrorKind.DIVISION_BY_ZERO: FailureKind.DIVISION_BY_ZERO,
    EvaluationErrorKind.UNSUPPORTED_OPERATION: FailureKind.UNSUPPORTED_OPERATION,
}


@dataclass(frozen=True)
class VerificationVerdict:
    """
    Outcome for one claim.

    trace: infix rendering of the computation performed ("" when none was)
    message: how the computed value compares to the reported one, or why it could not be compared
    failure: set when the claim could not be judged numerically
    """
    status: VerificationStatus
    computed_value: Optional[Decimal] = None
    absolute_difference: Optional[Decimal] = None
    relative_difference: Optional[Decimal] = None
    trace: str = ""
    message: str = ""
    failure: Optional[FailureKind] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "computed_value": _dec(self.computed_value),
            "absolute_difference": _dec(self.absolute_difference),
            "relative_difference": _dec(self.relative_difference),
            "trace": self.trace,
            "message": self.message,
            "failure": self.failure.value if self.failure else None,
        }


def _dec(d: Optional[Decimal]) -> Optional[str]:
    # Decimal strings, never binary floats.
    return None if d is None else format(d, "f")


def _unverifiable(failure: FailureKind, message: str, trace: str = "") -> VerificationVerdict:
    return VerificationVerdict(
        status=VerificationStatus.UNVERIFIABLE,
        trace=trace,
        message=message,
        failure=failure,
    )


def _verify(claim: CalculationClaim, policy: TolerancePolicy) -> VerificationVerdict:
    operands: list[ParsedAmount] = []
    for text in claim.operand_texts:
        outcome = parse_amount(text)
        if isinstance(outcome, ParseFailure):
            return _unverifiable(
                FailureKind.PARSE_FAILURE,
                f"Operand {text!r} could not be interpreted as a number ({outcome.reason}).",
            )
        operands.append(outcome)

    evaluated = evaluate_operation(operands, claim.operation_tag)
    if not isinstance(evaluated, Computation):
        if evaluated.kind is EvaluationErrorKind.UNSUPPORTED_OPERATION:
            message = f"Unsupported calculation operation: {claim.operation_tag!r}."
        elif evaluated.kind is EvaluationErrorKind.DIVISION_BY_ZERO:
            message = f"Invalid claim: {evaluated.detail}."
        else:
            message = f"Calculation could not be performed: {evaluated.detail}."
        return _unverifiable(_FAILURE_FOR_ERROR[evaluated.kind], message)

    trace = evaluated.render()
    reported = parse_amount(claim.reported_value_text)
    judged = judge_tolerance(
        computed=evaluated.value,
        reported=reported,
        unit_multiplier=resolve_unit_multiplier(claim.reported_value_text),
        percentage_hint=claim.percentage_hint,
        unit=unit_label(claim.reported_value_text),
        policy=policy,
    )

    if judged.status is VerificationStatus.UNVERIFIABLE:
        return VerificationVerdict(
            status=judged.status,
            computed_value=evaluated.value,
            trace=trace,
            message=judged.reason,
            failure=FailureKind.REPORTED_VALUE_UNPARSABLE,
        )

    verdict_text = "within tolerance." if judged.ok else "outside tolerance."
    if judged.status is VerificationStatus.CONFIRMED:
        verdict_text = "exact match."
    return VerificationVerdict(
        status=judged.status,
        computed_value=evaluated.value,
        absolute_difference=judged.abs_diff,
        relative_difference=judged.rel_diff,
        trace=trace,
        message=f"{judged.reason} Result: {verdict_text}",
    )


def verify_claim(
    claim: CalculationClaim,
    *,
    policy: TolerancePolicy = DEFAULT_POLICY,
) -> VerificationVerdict:
    """
    Re-derive one claim's figure and judge the reported value against it.

    Always returns a verdict; unexpected errors become UNVERIFIABLE/INTERNAL_ERROR.
    """
    try:
        return _verify(claim, policy)
    except Exception as e:
        logger.exception("verify_claim: unexpected failure for claim %s", claim.claim_id)
        return _unverifiable(
            FailureKind.INTERNAL_ERROR,
            f"Internal error while verifying this claim ({type(e).__name__}).",
        )


def verify_claims(
    claims: Iterable[CalculationClaim],
    *,
    policy: TolerancePolicy = DEFAULT_POLICY,
    max_workers: Optional[int] = None,
) -> tuple[VerificationVerdict, ...]:
    """
    Verify each claim independently; output order matches input order.

    With max_workers > 1 claims are spread over a thread pool.
    """
    claims = tuple(claims)

    def one(c: CalculationClaim) -> VerificationVerdict:
        return verify_claim(c, policy=policy)

    if max_workers and max_workers > 1 and len(claims) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            verdicts = tuple(pool.map(one, claims))
    else:
        verdicts = tuple(one(c) for c in claims)

    counts = Counter(v.status.value for v in verdicts)
    logger.info("verify_claims: %d claim(s) verified %s", len(verdicts), dict(counts))
    return verdicts


@dataclass(frozen=True)
class ClaimCheck:
    claim_id: str
    status: VerificationStatus
    reason: str


@dataclass(frozen=True)
class VerificationReport:
    """
    Batch-level view of verdicts, machine-consumable and printable.

    checks: per-claim results, in input order
    counts: verdicts per status value
    """
    checks: tuple[ClaimCheck, ...]
    counts: dict[str, int]
    summary: str

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        for c in d["checks"]:
            c["status"] = c["status"].value if hasattr(c["status"], "value") else c["status"]
        return d


def build_report(
    claims: Iterable[CalculationClaim],
    verdicts: Iterable[VerificationVerdict],
) -> VerificationReport:
    checks = []
    for i, (c, v) in enumerate(zip(claims, verdicts)):
        checks.append(ClaimCheck(c.claim_id or f"#{i + 1}", v.status, v.message))

    counts = {s.value: 0 for s in VerificationStatus}
    for c in checks:
        counts[c.status.value] += 1

    total = len(checks)
    summary = f"claims={total}, " + ", ".join(f"{k}={n}" for k, n in counts.items())
    return VerificationReport(checks=tuple(checks), counts=counts, summary=summary)
