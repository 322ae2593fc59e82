"""
Evaluate and validate card expressions.

Evaluation is strictly left to right, the way the expression was built:
`2 + 3 × 4` is (2 + 3) × 4 = 20. Neither function raises on a bad
expression; both report the first problem found in their result.
"""

import math
from enum import Enum
from typing import NamedTuple, Optional

from cards import Hand, OperatorType
from expression import Expression


class ErrorKind(Enum):
    STRUCTURAL = "structural"
    ARITHMETIC = "arithmetic"
    BUDGET_MISMATCH = "budget mismatch"
    DISABLED_OPERATOR = "disabled operator"
    NO_FEASIBLE_PLAY = "no feasible play"


class Reason(Enum):
    EMPTY_EXPRESSION = (ErrorKind.STRUCTURAL, "The expression is empty.")
    DANGLING_OPERATOR = (ErrorKind.STRUCTURAL, "The expression ends with an operator.")
    NEGATIVE_SQRT_OPERAND = (ErrorKind.ARITHMETIC, "Cannot take the square root of a negative number.")
    DIVISION_BY_ZERO = (ErrorKind.ARITHMETIC, "Division by zero.")
    SQRT_BUDGET_MISMATCH = (ErrorKind.BUDGET_MISMATCH, "Every √ card must be used exactly once.")
    MULTIPLY_BUDGET_MISMATCH = (ErrorKind.BUDGET_MISMATCH, "Every × card must be used exactly once.")
    DISABLED_OPERATOR = (ErrorKind.DISABLED_OPERATOR, "A disabled operator was used.")
    NO_FEASIBLE_PLAY = (ErrorKind.NO_FEASIBLE_PLAY, "No valid expression can be built from this hand.")

    @property
    def kind(self) -> ErrorKind:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


class EvaluationResult(NamedTuple):
    success: bool
    value: Optional[float] = None
    reason: Optional[Reason] = None

    @classmethod
    def ok(cls, value: float) -> "EvaluationResult":
        return cls(True, value, None)

    @classmethod
    def fail(cls, reason: Reason) -> "EvaluationResult":
        return cls(False, None, reason)


class ValidationResult(NamedTuple):
    valid: bool
    reason: Optional[Reason] = None


VALID = ValidationResult(True)

_APPLY = {
    OperatorType.ADD: lambda a, b: a + b,
    OperatorType.SUBTRACT: lambda a, b: a - b,
    OperatorType.MULTIPLY: lambda a, b: a * b,
    OperatorType.DIVIDE: lambda a, b: a / b,
}


def evaluate(expr: Expression) -> EvaluationResult:
    """Fold the terms left to right. A trailing operator is ignored."""
    if expr.is_empty():
        return EvaluationResult.fail(Reason.EMPTY_EXPRESSION)

    acc = None
    for i, term in enumerate(expr.terms):
        if term.sqrt_applied:
            if term.value < 0:
                return EvaluationResult.fail(Reason.NEGATIVE_SQRT_OPERAND)
            operand = math.sqrt(term.value)
        else:
            operand = float(term.value)

        if i == 0:
            acc = operand
            continue

        op = expr.operators[i - 1]
        if op is OperatorType.DIVIDE and operand == 0:
            return EvaluationResult.fail(Reason.DIVISION_BY_ZERO)
        acc = _APPLY[op](acc, operand)

    return EvaluationResult.ok(acc)


def validate(expr: Expression, hand: Hand) -> ValidationResult:
    """Check shape and that the hand's special cards are used exactly."""
    if expr.is_empty():
        return ValidationResult(False, Reason.EMPTY_EXPRESSION)
    if expr.expecting_number():
        return ValidationResult(False, Reason.DANGLING_OPERATOR)
    if expr.sqrt_count() != hand.sqrt_budget:
        return ValidationResult(False, Reason.SQRT_BUDGET_MISMATCH)
    if expr.multiply_count() != hand.multiply_budget:
        return ValidationResult(False, Reason.MULTIPLY_BUDGET_MISMATCH)
    for op in expr.operators:
        if op is not OperatorType.MULTIPLY and not hand.is_operator_enabled(op):
            return ValidationResult(False, Reason.DISABLED_OPERATOR)
    return VALID


def score(expr: Expression, hand: Hand, target: int) -> tuple[EvaluationResult, float]:
    """Validate, then evaluate, then measure the distance to `target`.

    A failure at either step yields a failed result and an infinite distance.
    """
    validation = validate(expr, hand)
    if not validation.valid:
        return EvaluationResult.fail(validation.reason), math.inf
    evaluation = evaluate(expr)
    if not evaluation.success:
        return evaluation, math.inf
    return evaluation, abs(evaluation.value - target)
