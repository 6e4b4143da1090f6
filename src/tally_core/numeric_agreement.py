from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from tally_core.amounts import HUNDRED, ParsedAmount, ParseFailure
from tally_core.claims import VerificationStatus
from tally_core.operations import percent_text
from tally_core.units import ONE, plain, rounded


@dataclass(frozen=True)
class TolerancePolicy:
    """
    relative_tolerance: |computed - reported| / |reported| accepted as rounding
    absolute_tolerance_units: accepted gap, in units of the reported value's own granularity
    percentage_point_tolerance: accepted gap for rate/percentage fields, in percentage points
    """
    relative_tolerance: Decimal = Decimal("0.01")
    absolute_tolerance_units: Decimal = Decimal("1")
    percentage_point_tolerance: Decimal = Decimal("1.0")


DEFAULT_POLICY = TolerancePolicy()


@dataclass(frozen=True)
class NumericAgreementResult:
    status: VerificationStatus
    ok: bool
    percentage_comparison: bool
    computed_value: Decimal
    reported_value: Optional[Decimal]
    abs_diff: Optional[Decimal]
    rel_diff: Optional[Decimal]
    abs_tol: Decimal
    rel_tol: Decimal
    reason: str


def _diff_in_unit(diff: Decimal, multiplier: Decimal, integral: bool) -> str:
    scaled = diff / multiplier
    return plain(rounded(scaled, 0 if integral else 2))


def judge_tolerance(
    *,
    computed: Union[ParsedAmount, Decimal],
    reported: Union[ParsedAmount, ParseFailure],
    unit_multiplier: Decimal = ONE,
    percentage_hint: bool = False,
    unit: Optional[str] = None,
    policy: TolerancePolicy = DEFAULT_POLICY,
) -> NumericAgreementResult:
    """
    Compare a re-derived amount against the document's reported amount.

    Percentage claims (by hint or by the reported value's own "%") compare in
    percentage points. Amount claims pass if the relative difference is within
    policy.relative_tolerance OR the absolute difference is within one unit of
    the reported value's granularity (policy.absolute_tolerance_units x
    unit_multiplier); a zero reported value uses only the absolute band.
    A zero difference is CONFIRMED, a tolerated one MINOR_DISCREPANCY, anything
    else CONTRADICTED.
    """
    cv = computed.value if isinstance(computed, ParsedAmount) else Decimal(computed)

    if isinstance(reported, ParseFailure):
        return NumericAgreementResult(
            status=VerificationStatus.UNVERIFIABLE,
            ok=False,
            percentage_comparison=percentage_hint,
            computed_value=cv,
            reported_value=None,
            abs_diff=None,
            rel_diff=None,
            abs_tol=policy.absolute_tolerance_units * unit_multiplier,
            rel_tol=policy.relative_tolerance,
            reason="Reported value not interpretable as a number; comparison skipped.",
        )

    rv = reported.value
    abs_diff = abs(cv - rv)
    rel_diff = abs_diff / abs(rv) if not rv.is_zero() else None
    exact = abs_diff.is_zero()

    if percentage_hint or reported.is_percentage:
        pp_diff = abs_diff * HUNDRED
        ok = pp_diff <= policy.percentage_point_tolerance
        reason = (
            f"Reported {percent_text(rv)}% vs computed {percent_text(cv)}%: "
            f"gap of {percent_text(abs_diff)} percentage points."
        )
        return NumericAgreementResult(
            status=_classify(exact, ok),
            ok=ok,
            percentage_comparison=True,
            computed_value=cv,
            reported_value=rv,
            abs_diff=abs_diff,
            rel_diff=rel_diff,
            abs_tol=policy.percentage_point_tolerance / HUNDRED,
            rel_tol=policy.relative_tolerance,
            reason=reason,
        )

    abs_tol = policy.absolute_tolerance_units * unit_multiplier
    abs_ok = abs_diff <= abs_tol
    label = unit or "units"
    integral = rv == rv.to_integral_value() and cv == cv.to_integral_value()
    diff_text = _diff_in_unit(abs_diff, unit_multiplier, integral)

    if rel_diff is None:
        ok = abs_ok
        reason = (
            f"Reported value is 0, computed {plain(cv / unit_multiplier)} {label}: "
            f"difference {diff_text} {label}."
        )
    else:
        ok = rel_diff <= policy.relative_tolerance or abs_ok
        reason = f"Difference {diff_text} {label} (relative {percent_text(rel_diff)}%)."

    return NumericAgreementResult(
        status=_classify(exact, ok),
        ok=ok,
        percentage_comparison=False,
        computed_value=cv,
        reported_value=rv,
        abs_diff=abs_diff,
        rel_diff=rel_diff,
        abs_tol=abs_tol,
        rel_tol=policy.relative_tolerance,
        reason=reason,
    )


def _classify(exact: bool, ok: bool) -> VerificationStatus:
    if exact:
        return VerificationStatus.CONFIRMED
    if ok:
        return VerificationStatus.MINOR_DISCREPANCY
    return VerificationStatus.CONTRADICTED
