#!/usr/bin/env python3
"""
Math High-Low Opponent Solver
-----------------------------
Provides a callable function `solve(hand, target)` that returns the
expression closest to the target that the hand can legally build.

Every leaf uses all of the hand's numbers, exactly its √ cards and exactly
its × cards. Leaves are visited in a fixed order and the first one found at
the best distance is kept, so the answer is reproducible.

Usage (example):
    from cards import Hand
    from solver import solve
    outcome = solve(Hand.from_values([4, 9], sqrt_budget=1), 5)
"""

import logging
import math
import time
from collections import Counter
from typing import NamedTuple, Optional

from cards import Hand, OperatorType
from evaluator import evaluate, validate
from expression import Expression

logger = logging.getLogger(__name__)


class SearchOutcome(NamedTuple):
    expression: Expression
    distance: float = math.inf
    value: Optional[float] = None
    explored: int = 0
    complete: bool = True

    @property
    def found(self) -> bool:
        return not self.expression.is_empty()

    @classmethod
    def nothing(cls, explored=0, complete=True) -> "SearchOutcome":
        return cls(Expression(), math.inf, None, explored, complete)


class SearchTimeout(Exception):
    pass


class Search:
    """One exhaustive search over a hand. Not reusable across hands."""

    def __init__(self, hand: Hand, target: int, time_limit: Optional[float] = None):
        self.hand = hand
        self.target = target
        self.numbers = tuple(hand.numbers)
        self.size = len(self.numbers)
        self.sqrt_budget = hand.sqrt_budget
        self.multiply_budget = hand.multiply_budget
        self.operators = tuple(hand.available_operators())
        self.deadline = None if time_limit is None else time.monotonic() + time_limit

        self.best = Expression()
        self.best_distance = math.inf
        self.best_value = None
        self.explored = 0

    def feasible(self) -> bool:
        if self.size == 0:
            return False
        free_slots = self.size - 1 - self.multiply_budget
        if free_slots < 0 or (free_slots > 0 and not self.operators):
            return False
        # each term takes at most one √
        return self.sqrt_budget <= self.size

    # --- Stage 1: distinct orderings of the number multiset ---
    def arrangements(self, counts=None, prefix=()):
        if counts is None:
            counts = Counter(self.numbers)
        if len(prefix) == self.size:
            yield prefix
            return
        for number, left in counts.items():
            if left == 0:
                continue
            counts[number] = left - 1
            yield from self.arrangements(counts, prefix + (number,))
            counts[number] = left

    # --- Stage 2: how many √ each position receives ---
    def sqrt_distributions(self, prefix=(), remaining=None):
        if remaining is None:
            remaining = self.sqrt_budget
        if len(prefix) == self.size:
            if remaining == 0:
                yield prefix
            return
        for count in range(remaining + 1):
            yield from self.sqrt_distributions(prefix + (count,), remaining - count)

    # --- Stage 3: operators for the n-1 slots ---
    def operator_assignments(self, prefix=(), multiply_used=0):
        slots = self.size - 1
        slots_left = slots - len(prefix)
        multiply_left = self.multiply_budget - multiply_used

        if multiply_left > slots_left:
            return
        if slots_left == 0:
            if multiply_left == 0:
                yield prefix
            return

        if multiply_left > 0:
            yield from self.operator_assignments(prefix + (OperatorType.MULTIPLY,), multiply_used + 1)
        for op in self.operators:
            yield from self.operator_assignments(prefix + (op,), multiply_used)

    def leaves(self):
        distributions = list(self.sqrt_distributions())
        assignments = list(self.operator_assignments())
        for numbers in self.arrangements():
            for roots in distributions:
                terms = [(n, r > 0) for n, r in zip(numbers, roots)]
                for ops in assignments:
                    yield Expression(terms, ops)

    # --- Stage 4: validate, evaluate, keep the closest ---
    def consider(self, expr: Expression) -> None:
        self.explored += 1
        if not validate(expr, self.hand).valid:
            return
        evaluation = evaluate(expr)
        if not evaluation.success:
            return
        distance = abs(evaluation.value - self.target)
        if distance < self.best_distance:
            self.best_distance = distance
            self.best_value = evaluation.value
            self.best = expr

    def run(self) -> SearchOutcome:
        if not self.feasible():
            logger.debug("Hand %s cannot be played, skipping search", self.numbers)
            return SearchOutcome.nothing()

        complete = True
        try:
            for expr in self.leaves():
                if self.deadline is not None and time.monotonic() > self.deadline:
                    raise SearchTimeout
                self.consider(expr)
                if self.best_distance == 0:
                    # nothing later can be strictly closer
                    break
        except SearchTimeout:
            complete = False
            logger.warning("Solver deadline passed after %d leaves; returning best so far",
                           self.explored)

        logger.debug("Searched %d leaves for %s → %s: best %r at distance %s",
                     self.explored, self.numbers, self.target, self.best, self.best_distance)
        return SearchOutcome(self.best.clone(), self.best_distance, self.best_value,
                             self.explored, complete)


def solve(hand: Hand, target: int, time_limit: Optional[float] = None) -> SearchOutcome:
    """
    Find the hand's expression closest to `target`.
    Returns a SearchOutcome; an empty expression with infinite distance
    means the hand has no legal play.
    """
    return Search(hand, target, time_limit).run()


# Optional: run standalone for testing
if __name__ == "__main__":
    hand = Hand.from_values([4, 9, 2, 7], multiply_budget=1, sqrt_budget=1)
    target = 20
    outcome = solve(hand, target)
    if outcome.found:
        print(f"Closest to {target} is {outcome.distance:g} away:\n")
        print(f"{outcome.expression.display_form()} = {outcome.value:g}")
    else:
        print("No legal expression for this hand.")
