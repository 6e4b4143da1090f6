from __future__ import annotations

from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict

import yaml

from tally_core.numeric_agreement import TolerancePolicy

_POLICY_KEYS = {f.name for f in fields(TolerancePolicy)}


def load_tolerance_policy(path: str | Path) -> TolerancePolicy:
    """
    Read a tolerance policy from YAML. Keys omitted from the file keep their defaults.

        relative_tolerance: 0.01
        absolute_tolerance_units: 1
        percentage_point_tolerance: 1.0
    """
    p = Path(path)
    obj: Dict[str, Any] = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(obj, dict):
        raise ValueError(f"Tolerance policy must be a mapping: {p}")

    unknown = sorted(set(obj) - _POLICY_KEYS)
    if unknown:
        raise ValueError(f"Unknown tolerance policy key(s) in {p}: {', '.join(unknown)}")

    values: Dict[str, Decimal] = {}
    for k, v in obj.items():
        if isinstance(v, bool):
            raise ValueError(f"Tolerance policy {k} must be numeric: {p}")
        try:
            d = Decimal(str(v).strip())
        except InvalidOperation:
            raise ValueError(f"Tolerance policy {k} must be numeric, got {v!r}: {p}") from None
        if not d.is_finite() or d < 0:
            raise ValueError(f"Tolerance policy {k} must be a non-negative number: {p}")
        values[k] = d
    return TolerancePolicy(**values)
