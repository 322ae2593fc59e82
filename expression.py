"""
Expressions built one card at a time.

Terms and operators strictly alternate, starting with a term:

    expr = Expression()
    expr.append_number(9, sqrt_applied=True)
    expr.append_operator(OperatorType.SUBTRACT)
    expr.append_number(4)
    expr.display_form()   # '√9 - 4'
"""

from typing import NamedTuple

from cards import OperatorType

SQRT_MARKER = "√"


class ExpressionError(Exception):
    """Raised when an append would break the number/operator alternation."""


class NotExpectingNumber(ExpressionError):
    def __init__(self, message="Expected an operator next, not a number."):
        super().__init__(message)


class NotExpectingOperator(ExpressionError):
    def __init__(self, message="Expected a number next, not an operator."):
        super().__init__(message)


class Term(NamedTuple):
    value: int
    sqrt_applied: bool = False

    def display(self) -> str:
        return f"{SQRT_MARKER}{self.value}" if self.sqrt_applied else str(self.value)


class Expression:
    def __init__(self, terms=(), operators=()):
        """Start empty, or from a complete list of terms and the operators between them.

        Terms may be plain ints or (value, sqrt_applied) pairs.
        """
        self.terms: list[Term] = []
        self.operators: list[OperatorType] = []
        if terms and len(operators) != len(terms) - 1:
            raise ValueError("Need exactly one operator between each pair of terms.")
        for i, term in enumerate(terms):
            if i:
                self.append_operator(operators[i - 1])
            if isinstance(term, tuple):
                self.append_number(*term)
            else:
                self.append_number(term)

    def append_number(self, value: int, sqrt_applied: bool = False) -> None:
        if not self.expecting_number():
            raise NotExpectingNumber()
        self.terms.append(Term(int(value), bool(sqrt_applied)))

    def append_operator(self, op: OperatorType) -> None:
        if self.expecting_number():
            raise NotExpectingOperator()
        self.operators.append(OperatorType(op))

    def clear(self) -> None:
        self.terms.clear()
        self.operators.clear()

    def is_empty(self) -> bool:
        return not self.terms

    def expecting_number(self) -> bool:
        return len(self.operators) == len(self.terms)

    def is_complete(self) -> bool:
        return not self.is_empty() and not self.expecting_number()

    def clone(self) -> "Expression":
        copy = Expression()
        copy.terms = list(self.terms)
        copy.operators = list(self.operators)
        return copy

    def sqrt_count(self) -> int:
        return sum(1 for t in self.terms if t.sqrt_applied)

    def multiply_count(self) -> int:
        return self.operators.count(OperatorType.MULTIPLY)

    def tokens(self):
        """Yield terms and operators in the order they were appended."""
        for i, term in enumerate(self.terms):
            yield term
            if i < len(self.operators):
                yield self.operators[i]

    def display_form(self) -> str:
        return " ".join(t.display() if isinstance(t, Term) else t.symbol for t in self.tokens())

    def __len__(self):
        return len(self.terms) + len(self.operators)

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self.terms == other.terms and self.operators == other.operators

    def __repr__(self):
        return f"Expression({self.display_form()!r})"

    def __str__(self):
        return self.display_form()
