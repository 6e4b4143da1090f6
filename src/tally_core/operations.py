from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Sequence, Union, assert_never

from tally_core.amounts import HUNDRED, ParsedAmount
from tally_core.claims import Operation
from tally_core.units import plain, rounded


class EvaluationErrorKind(str, Enum):
    INSUFFICIENT_OPERANDS = "insufficient_operands"
    DIVISION_BY_ZERO = "division_by_zero"
    UNSUPPORTED_OPERATION = "unsupported_operation"


@dataclass(frozen=True)
class EvaluationError:
    kind: EvaluationErrorKind
    detail: str
    operation_tag: str = ""


@dataclass(frozen=True)
class Computation:
    """
    Result of applying an operation. operands holds only the values that took part.
    value is the raw quotient for the Divide variants; percentage presentation is left to render().
    """
    operation: Operation
    operands: tuple[Decimal, ...]
    value: Decimal

    def render(self) -> str:
        return render_trace(self.operation, self.operands, self.value)


EvaluationOutcome = Union[Computation, EvaluationError]

_SYMBOLS = {
    Operation.SUM: "+",
    Operation.SUBTRACT: "−",
    Operation.MULTIPLY: "×",
    Operation.DIVIDE: "÷",
    Operation.DIVIDE_AS_PERCENTAGE: "÷",
}

_MIN_OPERANDS = {
    Operation.SUM: 1,
    Operation.SUBTRACT: 2,
    Operation.MULTIPLY: 2,
    Operation.DIVIDE: 2,
    Operation.DIVIDE_AS_PERCENTAGE: 2,
}


def _as_decimal(x: Union[ParsedAmount, Decimal, int, str]) -> Decimal:
    if isinstance(x, ParsedAmount):
        return x.value
    return Decimal(x)


def percent_text(fraction: Decimal, places: int = 2) -> str:
    """0.12345 -> "12.35" (percentage, rounded to places)."""
    scaled = rounded(fraction * HUNDRED, places)
    return plain(scaled)


def render_trace(operation: Operation, operands: Sequence[Decimal], result: Decimal) -> str:
    """Infix rendering of a computation, e.g. "2,000,000 − 766,000 = 1,234,000"."""
    symbol = f" {_SYMBOLS[operation]} "
    text = f"{symbol.join(plain(o) for o in operands)} = {plain(result)}"
    if operation is Operation.DIVIDE_AS_PERCENTAGE:
        text += f" (= {percent_text(result)}%)"
    return text


def evaluate_operation(
    operands: Sequence[Union[ParsedAmount, Decimal, int, str]],
    operation: Union[Operation, str],
) -> EvaluationOutcome:
    """
    Apply a named operation to already-parsed operands.

    Sum folds every operand. Subtract, Multiply and the Divide variants use
    operands[0] and operands[1] only; anything beyond index 1 is ignored.
    Failures are returned, never raised.
    """
    tag = operation.value if isinstance(operation, Operation) else str(operation)
    op = operation if isinstance(operation, Operation) else Operation.from_tag(operation)
    if op is None:
        return EvaluationError(
            kind=EvaluationErrorKind.UNSUPPORTED_OPERATION,
            detail=f"unsupported operation: {tag}",
            operation_tag=tag,
        )

    values = tuple(_as_decimal(o) for o in operands)
    needed = _MIN_OPERANDS[op]
    if len(values) < needed:
        return EvaluationError(
            kind=EvaluationErrorKind.INSUFFICIENT_OPERANDS,
            detail=f"{op.value} needs at least {needed} operand(s), got {len(values)}",
            operation_tag=tag,
        )

    match op:
        case Operation.SUM:
            used = values
            result = sum(values, Decimal(0))
        case Operation.SUBTRACT:
            used = values[:2]
            result = values[0] - values[1]
        case Operation.MULTIPLY:
            used = values[:2]
            result = values[0] * values[1]
        case Operation.DIVIDE | Operation.DIVIDE_AS_PERCENTAGE:
            used = values[:2]
            if values[1].is_zero():
                return EvaluationError(
                    kind=EvaluationErrorKind.DIVISION_BY_ZERO,
                    detail=f"division by zero: {plain(values[0])} {_SYMBOLS[op]} 0",
                    operation_tag=tag,
                )
            result = values[0] / values[1]
        case _:
            assert_never(op)

    return Computation(operation=op, operands=used, value=result)
