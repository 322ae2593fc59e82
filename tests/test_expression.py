"""Tests for the alternating number/operator expression."""

import pytest

from cards import OperatorType
from expression import (Expression, NotExpectingNumber, NotExpectingOperator,
                        Term)


@pytest.fixture
def expr():
    e = Expression()
    e.append_number(2)
    e.append_operator(OperatorType.ADD)
    e.append_number(9, sqrt_applied=True)
    return e


# --- Alternation ---

def test_new_expression_expects_a_number():
    e = Expression()
    assert e.is_empty()
    assert e.expecting_number()


def test_two_numbers_in_a_row_fail(expr):
    before = len(expr)
    with pytest.raises(NotExpectingNumber):
        expr.append_number(3)
    assert len(expr) == before


def test_operator_on_empty_fails():
    e = Expression()
    with pytest.raises(NotExpectingOperator):
        e.append_operator(OperatorType.ADD)
    assert len(e) == 0


def test_two_operators_in_a_row_fail(expr):
    expr.append_operator(OperatorType.SUBTRACT)
    with pytest.raises(NotExpectingOperator):
        expr.append_operator(OperatorType.DIVIDE)
    assert expr.operators == [OperatorType.ADD, OperatorType.SUBTRACT]


def test_dangling_operator_expects_number(expr):
    assert not expr.expecting_number()
    assert expr.is_complete()
    expr.append_operator(OperatorType.MULTIPLY)
    assert expr.expecting_number()
    assert not expr.is_complete()


def test_clear(expr):
    expr.clear()
    assert expr.is_empty()
    assert expr.expecting_number()


# --- Cloning ---

def test_clone_is_independent(expr):
    copy = expr.clone()
    assert copy == expr
    expr.append_operator(OperatorType.DIVIDE)
    expr.append_number(4)
    assert copy.display_form() == "2 + √9"
    assert len(copy) == 3


def test_mutating_clone_leaves_original(expr):
    copy = expr.clone()
    copy.clear()
    assert expr.terms == [Term(2, False), Term(9, True)]


# --- Construction and display ---

def test_build_from_terms():
    e = Expression([4, (9, True), 2], [OperatorType.SUBTRACT, OperatorType.MULTIPLY])
    assert e.display_form() == "4 - √9 × 2"
    assert e.sqrt_count() == 1
    assert e.multiply_count() == 1


def test_build_needs_one_operator_per_gap():
    with pytest.raises(ValueError):
        Expression([1, 2], [])


def test_display_of_empty_expression():
    assert Expression().display_form() == ""


def test_tokens_alternate(expr):
    tokens = list(expr.tokens())
    assert tokens == [Term(2, False), OperatorType.ADD, Term(9, True)]
