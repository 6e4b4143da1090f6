from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from tally_core.units import normalize_width, split_unit_suffix, strip_footnotes

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)

_NEGATIVE_MARKERS = ("△", "▲")
_CURRENCY_PREFIX_RE = re.compile(r"^[¥$€£]\s*")
_STRICT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_LENIENT_RE = re.compile(r"-?\d+(?:\.\d+)?")


@dataclass(frozen=True)
class ParsedAmount:
    """
    Exact signed amount recovered from a document string.

    For percentage-notated input the value is the fraction: "12.5%" -> Decimal("0.125").
    """
    value: Decimal
    is_percentage: bool = False
    source_text: Optional[str] = None


@dataclass(frozen=True)
class ParseFailure:
    text: str
    reason: str


ParseOutcome = Union[ParsedAmount, ParseFailure]


@dataclass(frozen=True)
class _Cleaned:
    body: str
    negative: bool
    multiplier: Decimal
    is_percentage: bool


def _clean(text: str) -> _Cleaned:
    s = normalize_width(text)

    negative = False
    if s.startswith("(") and s.endswith(")"):
        s = s[1:-1].strip()
        negative = True
    elif s.startswith(_NEGATIVE_MARKERS):
        s = s[1:].strip()
        negative = True

    s = _CURRENCY_PREFIX_RE.sub("", s).replace(",", "").strip()
    s = strip_footnotes(s)

    s, multiplier, _ = split_unit_suffix(s)

    is_percentage = False
    if s.endswith("%"):
        is_percentage = True
        s = s[:-1].strip()

    s = strip_footnotes(s)
    return _Cleaned(body=s, negative=negative, multiplier=multiplier, is_percentage=is_percentage)


def _strict(body: str) -> Optional[Decimal]:
    if not _STRICT_RE.fullmatch(body):
        return None
    try:
        return Decimal(body)
    except InvalidOperation:
        return None


def _lenient(body: str) -> Optional[tuple[Decimal, bool]]:
    m = _LENIENT_RE.search(body)
    if m is None:
        return None
    token = m.group(0)
    try:
        return Decimal(token), token.startswith("-")
    except InvalidOperation:
        return None


def parse_amount(text: Optional[str]) -> ParseOutcome:
    """
    Parse one free-form numeric string from a financial document.

    Total and pure: every input yields either a ParsedAmount or a ParseFailure.
    Supports full-width characters, (parenthesised) and △/▲ negatives, a leading
    currency symbol, comma grouping, 円/千円/百万円/億円 suffixes, a trailing %
    and trailing footnote markers (*, ※1).

    A strict parse of the cleaned text is tried first; if it fails, the first
    signed decimal substring is extracted instead. The result is signed first,
    then divided by 100 if percentage-notated, otherwise scaled by the unit.
    """
    if text is None:
        return ParseFailure(text="", reason="no value")
    raw = str(text)
    if not raw.strip():
        return ParseFailure(text=raw, reason="empty string")

    c = _clean(raw)
    if not c.body:
        logger.debug("parse_amount: %r is empty after cleaning", raw)
        return ParseFailure(text=raw, reason="no digits after removing markers and units")

    value = _strict(c.body)
    carries_sign = False
    if value is not None:
        carries_sign = value < 0
    else:
        extracted = _lenient(c.body)
        if extracted is None:
            logger.warning("parse_amount: could not extract a number from %r", raw)
            return ParseFailure(text=raw, reason=f"not a number: {c.body!r}")
        value, carries_sign = extracted
        logger.debug("parse_amount: fell back to %s extracted from %r", value, raw)

    if c.negative and not carries_sign and value > 0:
        value = -value

    if c.is_percentage:
        value = value / HUNDRED
    else:
        value = value * c.multiplier

    return ParsedAmount(value=value, is_percentage=c.is_percentage, source_text=raw)
