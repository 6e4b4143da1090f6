from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from tally_core.claims import VerificationStatus


@dataclass(frozen=True)
class EvalResult:
    """Single evaluation result with a numeric score in [0,1] when applicable."""
    name: str
    score: Optional[float]  # None when not computed
    details: str


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def status_agreement(
    expected: Mapping[str, str],
    actual: Mapping[str, str],
) -> EvalResult:
    """
    Share of labelled claims whose verdict status equals the expected status.

    A claim id missing from actual counts as a mismatch.
    """
    if not expected:
        return EvalResult("status_agreement", None, "No expected statuses provided.")

    total = len(expected)
    matches = 0
    missing = []
    mismatched = []
    for k, v in expected.items():
        if k not in actual:
            missing.append(k)
        elif actual[k] == v:
            matches += 1
        else:
            mismatched.append(k)

    details = (
        f"matches={matches}/{total}, missing={len(missing)}"
        + (f" ({', '.join(missing[:5])}{'...' if len(missing) > 5 else ''})" if missing else "")
        + (f", mismatched={', '.join(mismatched[:5])}{'...' if len(mismatched) > 5 else ''}" if mismatched else "")
    )
    return EvalResult("status_agreement", clamp01(matches / total), details)


def verdict_coverage(statuses: Sequence[str]) -> EvalResult:
    """
    Share of claims that received a numeric judgement (anything but unverifiable).
    """
    if not statuses:
        return EvalResult("verdict_coverage", None, "No verdicts provided.")
    total = len(statuses)
    judged = sum(1 for s in statuses if s != VerificationStatus.UNVERIFIABLE.value)
    return EvalResult("verdict_coverage", clamp01(judged / total), f"judged={judged}/{total}")
