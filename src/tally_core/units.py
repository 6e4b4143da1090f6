from __future__ import annotations

import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Optional

# Longest suffix first: "百万円" must win over "円".
UNIT_SUFFIXES: tuple[tuple[str, Decimal], ...] = (
    ("百万円", Decimal(1_000_000)),
    ("億円", Decimal(100_000_000)),
    ("千円", Decimal(1_000)),
    ("円", Decimal(1)),
)

ONE = Decimal(1)

_FOOTNOTE_RE = re.compile(r"(\s*[*※]\d*)$")
_TRAILING_STARS_RE = re.compile(r"(\s*\*+)$")


def normalize_width(text: str) -> str:
    """Fold full-width digits, punctuation and spaces to their half-width forms."""
    s = unicodedata.normalize("NFKC", text)
    # U+2212 MINUS SIGN is not folded by NFKC.
    return s.replace("−", "-").strip()


def strip_footnotes(s: str) -> str:
    s = _FOOTNOTE_RE.sub("", s).strip()
    return _TRAILING_STARS_RE.sub("", s).strip()


def split_unit_suffix(s: str) -> tuple[str, Decimal, Optional[str]]:
    """
    Strip a recognised trailing unit suffix.

    Returns (remaining text, multiplier, suffix or None). The multiplier is 1 when nothing matched.
    """
    for suffix, multiplier in UNIT_SUFFIXES:
        if s.endswith(suffix):
            return s[: -len(suffix)].strip(), multiplier, suffix
    return s, ONE, None


def resolve_unit_multiplier(text: Optional[str]) -> Decimal:
    """
    Multiplier implied by the unit suffix of one specific string (the reported value's).

    Independent of whether the numeric part of the string parses.
    """
    if not text:
        return ONE
    s = strip_footnotes(normalize_width(str(text)))
    _, multiplier, _ = split_unit_suffix(s)
    return multiplier


def unit_label(text: Optional[str]) -> Optional[str]:
    """The unit suffix of text, if it has one we recognise."""
    if not text:
        return None
    s = strip_footnotes(normalize_width(str(text)))
    return split_unit_suffix(s)[2]


def plain(value: Decimal) -> str:
    """Render a Decimal with digit grouping and without exponent notation."""
    return format(value.normalize(), ",f") if value else "0"


def rounded(value: Decimal, places: int) -> Decimal:
    """value rounded to places decimals; left as is when that exceeds the context precision."""
    try:
        return value.quantize(Decimal(1).scaleb(-places))
    except InvalidOperation:
        return value


def format_amount(value: Decimal, unit: Optional[str] = None) -> str:
    """
    Canonical rendering of a base-unit amount in a given unit, e.g. (1234000000, "百万円") -> "1,234百万円".

    Negative amounts use the triangle marker, as financial statements do.
    """
    multiplier = ONE
    if unit is not None:
        for suffix, m in UNIT_SUFFIXES:
            if suffix == unit:
                multiplier = m
                break
        else:
            raise ValueError(f"Unknown unit suffix: {unit!r}")
    scaled = Decimal(value) / multiplier
    body = plain(abs(scaled))
    sign = "△" if scaled < 0 else ""
    return f"{sign}{body}{unit or ''}"
