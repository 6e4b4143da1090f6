from decimal import Decimal

from tally_core.amounts import parse_amount
from tally_core.claims import Operation
from tally_core.operations import (
    Computation,
    EvaluationError,
    EvaluationErrorKind,
    evaluate_operation,
)


def test_subtract_uses_first_two_operands():
    r = evaluate_operation([2_000_000_000, 766_000_000], Operation.SUBTRACT)
    assert isinstance(r, Computation)
    assert r.value == 1_234_000_000

    r = evaluate_operation([10, 3, 999], "subtract")
    assert r.value == 7
    assert r.operands == (Decimal(10), Decimal(3))


def test_sum_folds_all_operands_from_parsed_amounts():
    operands = [parse_amount(s) for s in ("1,000千円", "(200千円)", "50千円")]
    r = evaluate_operation(operands, "add")
    assert isinstance(r, Computation)
    assert r.operation is Operation.SUM
    assert r.value == 850_000


def test_multiply():
    r = evaluate_operation([Decimal("1.5"), 4], Operation.MULTIPLY)
    assert r.value == Decimal("6.0")


def test_divide_by_zero_is_explicit():
    r = evaluate_operation([100, 0], Operation.DIVIDE)
    assert isinstance(r, EvaluationError)
    assert r.kind is EvaluationErrorKind.DIVISION_BY_ZERO


def test_insufficient_operands():
    r = evaluate_operation([10], Operation.SUBTRACT)
    assert isinstance(r, EvaluationError)
    assert r.kind is EvaluationErrorKind.INSUFFICIENT_OPERANDS
    assert "subtract" in r.detail and "got 1" in r.detail

    r = evaluate_operation([], "sum")
    assert r.kind is EvaluationErrorKind.INSUFFICIENT_OPERANDS


def test_unsupported_operation_keeps_tag():
    r = evaluate_operation([1, 2], "Average")
    assert isinstance(r, EvaluationError)
    assert r.kind is EvaluationErrorKind.UNSUPPORTED_OPERATION
    assert r.operation_tag == "Average"
    assert "Average" in r.detail


def test_percentage_of_total_is_division():
    plain = evaluate_operation([25, 200], "divide")
    pct = evaluate_operation([25, 200], "percentage_of_total")
    assert plain.value == pct.value == Decimal("0.125")
    assert pct.operation is Operation.DIVIDE_AS_PERCENTAGE
    assert type(pct.value) is Decimal


def test_trace_rendering():
    r = evaluate_operation([2_000_000, 766_000], Operation.SUBTRACT)
    assert r.render() == "2,000,000 − 766,000 = 1,234,000"

    r = evaluate_operation([1, 2, 3], Operation.SUM)
    assert r.render() == "1 + 2 + 3 = 6"

    r = evaluate_operation([25, 200], Operation.DIVIDE_AS_PERCENTAGE)
    assert r.render() == "25 ÷ 200 = 0.125 (= 12.5%)"
