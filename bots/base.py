"""Common bot strategy interfaces.

Bots only read the state. Their decisions are applied through the public
engine functions in :mod:`engine.game`, the same path a human's intents take.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from random import Random
from typing import List, Optional, Sequence

from engine.cards import Card
from engine.game import (
    add_to_meld,
    can_discard,
    close_meld,
    discard,
    draw_from_deck,
    draw_from_discard,
    play_meld,
    replace_joker,
)
from engine.state import GamePhase, GameState, TurnPhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawChoice:
    """``from_index`` of ``None`` means draw from the deck."""

    from_index: Optional[int] = None

    @property
    def from_deck(self) -> bool:
        return self.from_index is None


@dataclass(frozen=True)
class Contribution:
    card: Card
    meld_id: str
    replace_joker: bool = False


class BotStrategy:
    """Base class for bot policies. Every hook plays the seat in ``state.current``."""

    name: str = "BaseBot"

    def choose_draw(self, state: GameState) -> DrawChoice:
        return DrawChoice()

    def choose_melds(self, state: GameState) -> List[List[Card]]:
        """Return groups of hand cards to lay down as new melds."""
        return []

    def choose_contributions(self, state: GameState) -> List[Contribution]:
        """Return hand cards to lay off onto (or swap into) table melds."""
        return []

    def choose_melds_to_close(self, state: GameState) -> List[str]:
        return []

    def choose_discard(self, state: GameState) -> Optional[Card]:
        return next((card for card in state.acting.hand if can_discard(state, card)), None)


def discardable(state: GameState, cards: Sequence[Card]) -> bool:
    """True when ``cards`` still contains a card the acting player may discard."""
    restricted = state.restricted_card
    return any(restricted is None or card.id != restricted.id for card in cards)


# Turn driving ---------------------------------------------------------------


def apply_draw(bot: BotStrategy, state: GameState, rng: Optional[Random] = None) -> GameState:
    choice = bot.choose_draw(state)
    if choice.from_deck:
        return draw_from_deck(state, rng)
    drawn = draw_from_discard(state, choice.from_index)
    if drawn is state:
        logger.debug("%s discard draw rejected, drawing from deck", bot.name)
        return draw_from_deck(state, rng)
    return drawn


def apply_plays(bot: BotStrategy, state: GameState) -> GameState:
    for cards in bot.choose_melds(state):
        state = play_meld(state, cards)
    for contribution in bot.choose_contributions(state):
        if contribution.replace_joker:
            state = replace_joker(state, contribution.card, contribution.meld_id)
        else:
            state = add_to_meld(state, contribution.card, contribution.meld_id)
    for meld_id in bot.choose_melds_to_close(state):
        state = close_meld(state, meld_id)
    return state


def apply_discard(bot: BotStrategy, state: GameState) -> GameState:
    choice = bot.choose_discard(state)
    if choice is not None:
        after = discard(state, choice)
        if after is not state:
            return after
    fallback = next((card for card in state.acting.hand if can_discard(state, card)), None)
    if fallback is None:
        logger.warning("%s has no card it may discard", bot.name)
        return state
    return discard(state, fallback)


def play_turn(bot: BotStrategy, state: GameState, rng: Optional[Random] = None) -> GameState:
    """Run one complete turn for the acting seat; returns ``state`` if stuck."""
    if state.phase is not GamePhase.PLAYING:
        return state
    start = state
    if state.turn_phase is TurnPhase.DRAW:
        state = apply_draw(bot, state, rng)
        if state is start:
            return start
    state = apply_plays(bot, state)
    return apply_discard(bot, state)
