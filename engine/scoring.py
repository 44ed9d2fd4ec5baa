"""Round scoring and game-over detection for Suited Rummy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from .cards import Card
from .rules_schema import DEFAULT_RULES, RuleSet
from .seats import Seat

if TYPE_CHECKING:
    from .state import GameState, Player

JOKER_VALUE = 15


@dataclass(frozen=True)
class RoundScore:
    winner_points: int
    loser_penalty: int


def count_jokers(hand: Iterable[Card]) -> int:
    return sum(1 for card in hand if card.is_joker)


def round_score(winner: "Player", loser: "Player", rules: Optional[RuleSet] = None) -> RoundScore:
    """Points moved when ``winner`` goes out.

    The winner collects one point per joker stuck in the loser's hand (never
    fewer than ``min_go_out_points``); the loser pays ``joker_penalty`` for
    each of them, which may take their score below zero.
    """
    rules = rules or DEFAULT_RULES
    jokers = count_jokers(loser.hand)
    return RoundScore(
        winner_points=max(jokers, rules.min_go_out_points),
        loser_penalty=jokers * rules.joker_penalty,
    )


def game_winner(state: "GameState") -> Optional[Seat]:
    """Return the seat whose score strictly exceeds the win threshold."""
    threshold = state.rules.win_score
    for seat in (Seat.PLAYER, Seat.OPPONENT):
        if state.seat(seat).score > threshold:
            return seat
    return None


def is_game_over(state: "GameState") -> bool:
    return game_winner(state) is not None


def card_value(card: Card) -> int:
    """Heuristic holding cost of a card; jokers are the most expensive."""
    if card.is_joker:
        return JOKER_VALUE
    return card.rank


def hand_value(hand: Iterable[Card]) -> int:
    return sum(card_value(card) for card in hand)
