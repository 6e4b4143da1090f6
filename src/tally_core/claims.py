from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class Operation(str, Enum):
    SUM = "sum"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    DIVIDE_AS_PERCENTAGE = "divide_first_by_second_as_percentage"

    @classmethod
    def from_tag(cls, tag: Any) -> Optional["Operation"]:
        """
        Resolve a producer-supplied operation tag, or None if it is not one we evaluate.
        """
        if tag is None:
            return None
        key = str(tag).strip().lower()
        return _OPERATION_ALIASES.get(key)


_OPERATION_ALIASES: dict[str, Operation] = {op.value: op for op in Operation}
_OPERATION_ALIASES.update(
    {
        "add": Operation.SUM,
        "percentage_of_total": Operation.DIVIDE_AS_PERCENTAGE,
    }
)


class VerificationStatus(str, Enum):
    CONFIRMED = "confirmed"
    MINOR_DISCREPANCY = "minor_discrepancy"
    CONTRADICTED = "contradicted"
    UNVERIFIABLE = "unverifiable"


class FailureKind(str, Enum):
    PARSE_FAILURE = "parse_failure"
    REPORTED_VALUE_UNPARSABLE = "reported_value_unparsable"
    INSUFFICIENT_OPERANDS = "insufficient_operands"
    DIVISION_BY_ZERO = "division_by_zero"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    INTERNAL_ERROR = "internal_error"


# Producer record keys (camelCase) and the snake_case spellings we also accept.
REPORTED_VALUE_KEYS = ("originalValue", "reported_value")
OPERAND_KEYS = ("calculationOperands", "operands")
OPERATION_KEYS = ("calculationOperation", "operation")
VALUE_TYPE_KEYS = ("valueType", "value_type")
COMMENT_KEYS = ("aiComment", "ai_comment", "commentary")

_PERCENT_LABEL_MARKERS = ("パーセント", "率", "%")
# English markers count only as whole words: "Corporate tax" is an amount.
_PERCENT_WORD_RE = re.compile(r"(?<![a-z])(?:percent(?:age)?|rate)s?(?![a-z])")
_TRUTHY = {"true", "yes", "1", "y"}
_FALSY = {"false", "no", "0", "n", ""}


def _first(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for k in keys:
        if k in record and record[k] is not None:
            return record[k]
    return None


def percentage_hint_from(value: Any) -> bool:
    """
    Interpret the producer's booleanish value-type hint.

    Accepts a bool, "true"/"yes"/"1", or a value-type label such as "利益率" or "percentage".
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in _TRUTHY:
        return True
    if s in _FALSY:
        return False
    if any(m in s for m in _PERCENT_LABEL_MARKERS):
        return True
    return _PERCENT_WORD_RE.search(s) is not None


@dataclass(frozen=True)
class CalculationClaim:
    """
    Producer assertion: reported_value_text == operation(operand_texts).

    operation_tag is kept verbatim; it is validated only when the claim is evaluated.
    passthrough holds every record field the engine does not interpret.
    """
    reported_value_text: str
    operand_texts: tuple[str, ...]
    operation_tag: str
    percentage_hint: bool = False
    commentary: Optional[str] = None
    passthrough: dict[str, Any] = field(default_factory=dict)

    @property
    def operation(self) -> Optional[Operation]:
        return Operation.from_tag(self.operation_tag)

    @property
    def claim_id(self) -> Optional[str]:
        v = self.passthrough.get("id")
        return None if v is None else str(v)

    @staticmethod
    def is_calculation_record(record: Mapping[str, Any]) -> bool:
        operands = _first(record, OPERAND_KEYS)
        operation = _first(record, OPERATION_KEYS)
        return bool(operands) and bool(operation)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CalculationClaim":
        operands = _first(record, OPERAND_KEYS) or ()
        if not isinstance(operands, (list, tuple)):
            operands = (operands,)
        interpreted = set(
            REPORTED_VALUE_KEYS + OPERAND_KEYS + OPERATION_KEYS + VALUE_TYPE_KEYS + COMMENT_KEYS
        )
        reported = _first(record, REPORTED_VALUE_KEYS)
        operation = _first(record, OPERATION_KEYS)
        commentary = _first(record, COMMENT_KEYS)
        return cls(
            reported_value_text="" if reported is None else str(reported),
            operand_texts=tuple("" if o is None else str(o) for o in operands),
            operation_tag="" if operation is None else str(operation),
            percentage_hint=percentage_hint_from(_first(record, VALUE_TYPE_KEYS)),
            commentary=None if commentary is None else str(commentary),
            passthrough={k: v for k, v in record.items() if k not in interpreted},
        )
