"""
Cards, hands and the slot deck
------------------------------
A card is a single immutable value tagged with its kind:

    Card.number(7)                      -> 7
    Card.operator(OperatorType.ADD)     -> +
    Card.special(SpecialType.SQUARE_ROOT) -> √

A Hand keeps its number cards in deal order, so a card's position in
`hand.number_cards` is its slot index for the whole round.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum

import config

logger = logging.getLogger(__name__)


class OperatorType(Enum):
    ADD = "+"
    SUBTRACT = "-"
    DIVIDE = "÷"
    MULTIPLY = "×"

    @property
    def symbol(self) -> str:
        return self.value

    @classmethod
    def from_symbol(cls, text: str) -> "OperatorType":
        """Accept the display glyphs plus the usual keyboard stand-ins."""
        aliases = {"+": cls.ADD, "-": cls.SUBTRACT, "−": cls.SUBTRACT,
                   "÷": cls.DIVIDE, "/": cls.DIVIDE,
                   "×": cls.MULTIPLY, "x": cls.MULTIPLY, "*": cls.MULTIPLY}
        try:
            return aliases[text.strip().lower()]
        except KeyError:
            raise ValueError(f"Unknown operator: {text!r}") from None


# Multiply is never dealt as a plain operator; it only comes from a special.
BASE_OPERATORS = (OperatorType.ADD, OperatorType.SUBTRACT, OperatorType.DIVIDE)


class SpecialType(Enum):
    FORCED_MULTIPLY = "×"
    SQUARE_ROOT = "√"


class CardKind(Enum):
    NUMBER = "Number"
    OPERATOR = "Operator"
    SPECIAL = "Special"


@dataclass(frozen=True)
class Card:
    kind: CardKind
    value: object

    @classmethod
    def number(cls, value: int) -> "Card":
        return cls(CardKind.NUMBER, max(config.NUMBER_MIN, min(config.NUMBER_MAX, int(value))))

    @classmethod
    def operator(cls, op: OperatorType) -> "Card":
        return cls(CardKind.OPERATOR, OperatorType(op))

    @classmethod
    def special(cls, special: SpecialType) -> "Card":
        return cls(CardKind.SPECIAL, SpecialType(special))

    @property
    def is_number(self) -> bool:
        return self.kind is CardKind.NUMBER

    @property
    def is_special(self) -> bool:
        return self.kind is CardKind.SPECIAL

    def clone(self) -> "Card":
        return Card(self.kind, self.value)

    def display_text(self) -> str:
        if self.kind is CardKind.NUMBER:
            return str(self.value)
        return self.value.value

    def __str__(self):
        return self.display_text()


@dataclass
class Hand:
    """One side's cards for a round.

    Budgets are derived from the special cards, so they cannot drift from
    what was dealt.
    """

    number_cards: list = field(default_factory=list)
    special_cards: list = field(default_factory=list)
    disabled_operators: set = field(default_factory=set)

    @classmethod
    def from_values(cls, numbers, multiply_budget=0, sqrt_budget=0, disabled=()) -> "Hand":
        hand = cls()
        for n in numbers:
            hand.add_card(Card.number(n))
        for _ in range(multiply_budget):
            hand.add_card(Card.special(SpecialType.FORCED_MULTIPLY))
        for _ in range(sqrt_budget):
            hand.add_card(Card.special(SpecialType.SQUARE_ROOT))
        for op in disabled:
            hand.disable_operator(op)
        return hand

    def add_card(self, card: Card) -> None:
        if card.kind is CardKind.NUMBER:
            self.number_cards.append(card)
        elif card.kind is CardKind.SPECIAL:
            self.special_cards.append(card)
        else:
            # Base operators are implied by the hand, never held.
            logger.debug("Ignoring operator card %s", card)

    def clear(self) -> None:
        self.number_cards.clear()
        self.special_cards.clear()
        self.disabled_operators.clear()

    @property
    def numbers(self) -> list[int]:
        return [c.value for c in self.number_cards]

    @property
    def multiply_budget(self) -> int:
        return sum(1 for c in self.special_cards if c.value is SpecialType.FORCED_MULTIPLY)

    @property
    def sqrt_budget(self) -> int:
        return sum(1 for c in self.special_cards if c.value is SpecialType.SQUARE_ROOT)

    def is_operator_enabled(self, op: OperatorType) -> bool:
        return op not in self.disabled_operators

    def disable_operator(self, op: OperatorType) -> None:
        op = OperatorType(op)
        if op not in BASE_OPERATORS:
            raise ValueError(f"Only base operators can be disabled, not {op.symbol}")
        self.disabled_operators.add(op)

    def available_operators(self) -> list[OperatorType]:
        """Enabled base operators, always in Add, Subtract, Divide order."""
        return [op for op in BASE_OPERATORS if self.is_operator_enabled(op)]

    def total_card_count(self) -> int:
        return len(self.number_cards) + len(self.special_cards)

    def is_empty(self) -> bool:
        return not self.number_cards and not self.special_cards

    def __str__(self):
        return f"Hand: {len(self.number_cards)} numbers, {len(self.special_cards)} specials"


class Deck:
    """The shared slot deck both hands are dealt from."""

    def __init__(self, rng=None):
        self.rng = rng or random.Random()
        self.cards = []
        self.build()

    def build(self):
        cards = [Card.number(n)
                 for n in range(config.NUMBER_MIN, config.NUMBER_MAX + 1)
                 for _ in range(config.NUMBER_COPIES)]
        cards += [Card.special(SpecialType.FORCED_MULTIPLY) for _ in range(config.MULTIPLY_COPIES)]
        cards += [Card.special(SpecialType.SQUARE_ROOT) for _ in range(config.SQRT_COPIES)]
        self.rng.shuffle(cards)
        self.cards = cards

    def __len__(self):
        return len(self.cards)

    def draw(self) -> Card:
        if not self.cards:
            logger.warning("Deck exhausted, rebuilding")
            self.build()
        return self.cards.pop()

    def draw_number(self) -> Card:
        card = self.draw()
        while not card.is_number:
            card = self.draw()
        return card


def deal_hand(deck: Deck, rng=None) -> Hand:
    """
    Deal one hand:
      1. draw until NUMBERS_PER_HAND number cards are held, setting specials aside
      2. add each special, each one paid for with an extra number card
      3. every forced multiply disables one base operator, never the last one
    """
    rng = rng or deck.rng
    hand = Hand()
    specials = []

    while len(hand.number_cards) < config.NUMBERS_PER_HAND:
        card = deck.draw()
        if card.is_number:
            hand.add_card(card)
        else:
            specials.append(card)

    for special in specials:
        hand.add_card(special)
        hand.add_card(deck.draw_number())
        if special.value is SpecialType.FORCED_MULTIPLY:
            enabled = hand.available_operators()
            if len(enabled) > 1:
                hand.disable_operator(rng.choice(enabled))

    logger.debug("Dealt %s: numbers=%s ×%d √%d disabled=%s", hand, hand.numbers,
                 hand.multiply_budget, hand.sqrt_budget,
                 sorted(op.symbol for op in hand.disabled_operators))
    return hand
