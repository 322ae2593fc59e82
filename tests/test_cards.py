"""Tests for cards, hands, the slot deck and dealing."""

import random

import pytest

import config
from cards import (BASE_OPERATORS, Card, CardKind, Deck, Hand, OperatorType,
                   SpecialType, deal_hand)


# --- Cards ---

def test_number_card_is_clamped():
    assert Card.number(14).value == 10
    assert Card.number(-3).value == 0
    assert Card.number(7).value == 7


def test_clone_is_equal_but_distinct():
    card = Card.special(SpecialType.SQUARE_ROOT)
    copy = card.clone()
    assert copy == card
    assert copy is not card


def test_display_text_per_kind():
    assert Card.number(4).display_text() == "4"
    assert Card.operator(OperatorType.DIVIDE).display_text() == "÷"
    assert Card.special(SpecialType.FORCED_MULTIPLY).display_text() == "×"
    assert Card.special(SpecialType.SQUARE_ROOT).kind is CardKind.SPECIAL


@pytest.mark.parametrize("text, op", [
    ("+", OperatorType.ADD),
    ("-", OperatorType.SUBTRACT),
    ("/", OperatorType.DIVIDE),
    ("÷", OperatorType.DIVIDE),
    ("x", OperatorType.MULTIPLY),
    ("*", OperatorType.MULTIPLY),
])
def test_operator_from_symbol(text, op):
    assert OperatorType.from_symbol(text) is op


def test_operator_from_unknown_symbol():
    with pytest.raises(ValueError):
        OperatorType.from_symbol("%")


# --- Hand ---

def test_hand_budgets_come_from_specials():
    hand = Hand.from_values([1, 2, 2], multiply_budget=2, sqrt_budget=1)
    assert hand.numbers == [1, 2, 2]
    assert hand.multiply_budget == 2
    assert hand.sqrt_budget == 1
    assert hand.total_card_count() == 6


def test_available_operators_keep_fixed_order():
    hand = Hand.from_values([1], disabled=[OperatorType.SUBTRACT])
    assert hand.available_operators() == [OperatorType.ADD, OperatorType.DIVIDE]
    assert not hand.is_operator_enabled(OperatorType.SUBTRACT)


def test_multiply_cannot_be_disabled():
    with pytest.raises(ValueError):
        Hand().disable_operator(OperatorType.MULTIPLY)


def test_operator_cards_are_not_held():
    hand = Hand()
    hand.add_card(Card.operator(OperatorType.ADD))
    assert hand.is_empty()


def test_clear_empties_everything():
    hand = Hand.from_values([3], multiply_budget=1, disabled=[OperatorType.ADD])
    hand.clear()
    assert hand.is_empty()
    assert hand.available_operators() == list(BASE_OPERATORS)


# --- Deck and dealing ---

def test_deck_composition():
    deck = Deck(random.Random(1))
    numbers = (config.NUMBER_MAX - config.NUMBER_MIN + 1) * config.NUMBER_COPIES
    assert len(deck) == numbers + config.MULTIPLY_COPIES + config.SQRT_COPIES


def test_deck_rebuilds_when_empty():
    deck = Deck(random.Random(2))
    for _ in range(len(deck)):
        deck.draw()
    assert len(deck) == 0
    deck.draw()
    assert len(deck) > 0


def test_draw_number_skips_specials():
    deck = Deck(random.Random(3))
    deck.cards = [Card.number(5), Card.special(SpecialType.SQUARE_ROOT),
                  Card.special(SpecialType.FORCED_MULTIPLY)]
    assert deck.draw_number() == Card.number(5)


def test_each_special_brings_an_extra_number():
    deck = Deck(random.Random(4))
    # draw() pops from the end
    deck.cards = [Card.number(8), Card.number(7), Card.number(6),
                  Card.number(3), Card.special(SpecialType.SQUARE_ROOT),
                  Card.number(2), Card.special(SpecialType.FORCED_MULTIPLY),
                  Card.number(1)]
    hand = deal_hand(deck, random.Random(0))
    assert hand.multiply_budget == 1
    assert hand.sqrt_budget == 1
    assert len(hand.number_cards) == config.NUMBERS_PER_HAND + 2
    assert hand.numbers[:3] == [1, 2, 3]
    assert len(hand.disabled_operators) == 1


@pytest.mark.parametrize("seed", range(20))
def test_dealt_hands_are_consistent(seed):
    rng = random.Random(seed)
    deck = Deck(rng)
    hand = deal_hand(deck, rng)
    specials = hand.multiply_budget + hand.sqrt_budget
    assert len(hand.number_cards) == config.NUMBERS_PER_HAND + specials
    assert hand.available_operators(), "at least one base operator stays enabled"
    assert all(config.NUMBER_MIN <= n <= config.NUMBER_MAX for n in hand.numbers)


def test_dealing_is_reproducible_with_a_seed():
    first = deal_hand(Deck(random.Random(99)), random.Random(5))
    second = deal_hand(Deck(random.Random(99)), random.Random(5))
    assert first == second


def test_special_copies_are_distinct_cards():
    deck = Deck(random.Random(6))
    roots = [c for c in deck.cards if c.value is SpecialType.SQUARE_ROOT]
    assert len(roots) == config.SQRT_COPIES
    assert len({id(c) for c in roots}) == config.SQRT_COPIES
