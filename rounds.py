"""
Rounds and matches
------------------
A Match is a run of Rounds between one human and the solver. Each round:

    DEALING    both hands are dealt from one deck, the solver plays at once
    WAITING    the human picks cards; target and bet may change
    EVALUATING both expressions are scored against the target
    RESULTS    credits move by the bet

Nothing here knows about Discord; the bot drives it with a clock.
"""

import logging
import math
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import config
from cards import Deck, Hand, OperatorType, deal_hand
from evaluator import EvaluationResult, Reason, evaluate, score
from expression import Expression, ExpressionError
from solver import SearchOutcome, solve

logger = logging.getLogger(__name__)


class InputRejected(ExpressionError):
    pass


class PlayerInput:
    """Builds the human's expression from card picks, tracking used slots by index."""

    def __init__(self, hand: Hand):
        self.hand = hand
        self.current = Expression()
        self.used = [False] * len(hand.number_cards)

    def pick_number(self, slot: int, sqrt: bool = False) -> None:
        if not 0 <= slot < len(self.used):
            raise InputRejected(f"There is no number card in slot {slot + 1}.")
        if self.used[slot]:
            raise InputRejected("That card has already been used.")
        if not self.current.expecting_number():
            raise InputRejected("Pick an operator first.")
        self.current.append_number(self.hand.number_cards[slot].value, sqrt)
        self.used[slot] = True

    def pick_operator(self, op: OperatorType) -> None:
        if self.current.expecting_number():
            raise InputRejected("Pick a number first.")
        if op is OperatorType.MULTIPLY and self.hand.multiply_budget == 0:
            raise InputRejected("You have no × card.")
        self.current.append_operator(op)

    def reset(self) -> None:
        self.current.clear()
        self.used = [False] * len(self.hand.number_cards)

    def unused_slots(self) -> list[int]:
        return [i for i, used in enumerate(self.used) if not used]

    def expression(self) -> Expression:
        return self.current.clone()


class Winner(Enum):
    PLAYER = "Player"
    AI = "AI"
    DRAW = "Draw"
    INVALID = "Invalid"


@dataclass(frozen=True)
class RoundResult:
    target: int
    bet: int
    player_expression: str
    player_value: Optional[float]
    player_distance: float
    player_error: Optional[Reason]
    ai_expression: str
    ai_value: Optional[float]
    ai_distance: float
    ai_error: Optional[Reason]
    winner: Winner
    player_score_change: int

    @property
    def ai_score_change(self) -> int:
        return -self.player_score_change


def resolve_round(target: int, bet: int, player_expr: Expression, player_hand: Hand,
                  ai_expr: Expression, ai_hand: Optional[Hand] = None) -> RoundResult:
    """Score both sides and decide who takes the bet."""
    player_eval, player_distance = score(player_expr, player_hand, target)

    if ai_hand is not None:
        ai_eval, ai_distance = score(ai_expr, ai_hand, target)
    else:
        ai_eval = evaluate(ai_expr)
        ai_distance = abs(ai_eval.value - target) if ai_eval.success else math.inf
    if ai_expr.is_empty():
        ai_eval = EvaluationResult.fail(Reason.NO_FEASIBLE_PLAY)

    if math.isinf(player_distance) and math.isinf(ai_distance):
        winner, change = Winner.INVALID, 0
    elif math.isclose(player_distance, ai_distance):
        winner, change = Winner.DRAW, 0
    elif player_distance < ai_distance:
        winner, change = Winner.PLAYER, bet
    else:
        winner, change = Winner.AI, -bet

    return RoundResult(
        target=target,
        bet=bet,
        player_expression=player_expr.display_form() if player_eval.success else "-",
        player_value=player_eval.value,
        player_distance=player_distance,
        player_error=player_eval.reason,
        ai_expression=ai_expr.display_form() if ai_eval.success else "-",
        ai_value=ai_eval.value,
        ai_distance=ai_distance,
        ai_error=ai_eval.reason,
        winner=winner,
        player_score_change=change,
    )


class Phase(Enum):
    DEALING = "dealing"
    WAITING = "waiting"
    EVALUATING = "evaluating"
    RESULTS = "results"


class Round:
    def __init__(self, deck: Deck, rng=None, clock=time.monotonic,
                 time_limit=config.SOLVER_TIME_LIMIT):
        self.clock = clock
        self.time_limit = time_limit
        self.phase = Phase.DEALING
        self.target = config.TARGET_VALUES[0]
        self.bet = config.MIN_BET
        self.result: Optional[RoundResult] = None

        self.player_hand = deal_hand(deck, rng)
        self.ai_hand = deal_hand(deck, rng)
        self.player = PlayerInput(self.player_hand)
        self.ai_outcome = self._play_ai()

        self.started_at = self.clock()
        self.phase = Phase.WAITING

    def _play_ai(self) -> SearchOutcome:
        return solve(self.ai_hand, self.target, self.time_limit)

    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def submit_available(self) -> bool:
        return self.elapsed() >= config.SUBMISSION_UNLOCK_TIME

    def expired(self) -> bool:
        return self.phase is Phase.WAITING and self.elapsed() >= config.ROUND_DURATION

    def set_target(self, target: int) -> None:
        if self.phase is not Phase.WAITING:
            raise ValueError("The target can only change while the round is open.")
        if target not in config.TARGET_VALUES:
            raise ValueError(f"Target must be one of {', '.join(map(str, config.TARGET_VALUES))}.")
        if target != self.target:
            self.target = target
            self.ai_outcome = self._play_ai()

    def set_bet(self, bet: int) -> int:
        if self.phase is not Phase.WAITING:
            raise ValueError("The bet can only change while the round is open.")
        self.bet = max(config.MIN_BET, min(config.MAX_BET, int(bet)))
        return self.bet

    def resolve(self) -> RoundResult:
        if self.phase is not Phase.WAITING:
            raise ValueError("This round has already been resolved.")
        self.phase = Phase.EVALUATING
        self.result = resolve_round(self.target, self.bet, self.player.expression(),
                                    self.player_hand, self.ai_outcome.expression, self.ai_hand)
        self.phase = Phase.RESULTS
        logger.debug("Round resolved: %s", self.result)
        return self.result


class Match:
    """Credits for both sides across rounds."""

    def __init__(self, player_id=None, player_name="Player", rng=None, clock=time.monotonic,
                 time_limit=config.SOLVER_TIME_LIMIT):
        self.player_id = player_id
        self.player_name = player_name
        self.rng = rng or random.Random()
        self.clock = clock
        self.time_limit = time_limit
        self.deck = Deck(self.rng)
        self.player_credits = config.STARTING_CREDITS
        self.ai_credits = config.STARTING_CREDITS
        self.rounds_played = 0
        self.round: Optional[Round] = None
        self.winner: Optional[Winner] = None

    @property
    def over(self) -> bool:
        return self.winner is not None

    def new_round(self) -> Round:
        if self.over:
            raise ValueError("The match is over.")
        # a fresh deck each round, as the slot deck is rebuilt before dealing
        self.deck.build()
        self.round = Round(self.deck, self.rng, self.clock, self.time_limit)
        return self.round

    def finish_round(self) -> RoundResult:
        result = self.round.resolve()
        self.rounds_played += 1
        self.player_credits += result.player_score_change
        self.ai_credits += result.ai_score_change
        if self.player_credits <= 0:
            self.winner = Winner.AI
        elif self.ai_credits <= 0:
            self.winner = Winner.PLAYER
        if self.over:
            logger.info("Match over after %d rounds, winner: %s", self.rounds_played, self.winner.value)
        return result
