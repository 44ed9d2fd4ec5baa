"""Game session facade for UI consumers.

``GameService`` owns the single current :class:`GameState`, routes the
human's intents through the turn engine, drives the bot through the same
engine functions, and saves a snapshot after every accepted change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from random import Random
from typing import List, Optional, Sequence

from bots.base import BotStrategy, apply_discard, apply_draw, apply_plays
from bots.heuristic import HeuristicBot

from . import game
from .cards import Card, card_label, serialize_card
from .persistence import MemoryStore, SnapshotStore, StoreError
from .rules_schema import RuleSet
from .scoring import game_winner
from .seats import Seat
from .snapshot import SnapshotError, action_payload, dump_state, load_state
from .state import GamePhase, GameState, TurnPhase

logger = logging.getLogger(__name__)

MAX_BOT_STEPS = 8


@dataclass
class MeldView:
    id: str
    kind: str
    owner: str
    closed: bool
    cards: list[dict]
    labels: list[str]


@dataclass
class GameView:
    phase: str
    turn_phase: str
    current_player: str
    round_number: int
    names: dict
    scores: dict
    hand: list[dict]
    hand_labels: list[str]
    other_hand_size: int
    draw_pile_size: int
    discard_pile: list[dict]
    melds: list[MeldView]
    restricted_card: Optional[dict]
    history: list[dict]
    is_my_turn: bool
    bot_pending: bool
    bot_delay_seconds: float
    winner: Optional[str]


class GameService:
    """Facade around the turn engine for one human-vs-bot game."""

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        bot: Optional[BotStrategy] = None,
        rng: Optional[Random] = None,
        rules: Optional[RuleSet] = None,
    ) -> None:
        self.store = store if store is not None else MemoryStore()
        self.bot = bot or HeuristicBot()
        self.rng = rng or Random()
        self.rules = rules
        self._state: Optional[GameState] = None
        self._bot_played = False

    # Session lifecycle -------------------------------------------------

    @property
    def state(self) -> GameState:
        if self._state is None:
            raise RuntimeError("No active game.")
        return self._state

    def new_game(self, player_name: str) -> GameView:
        self._state = game.create_session(player_name, self.rng, rules=self.rules)
        self._bot_played = False
        logger.info("New game for %s against %s", player_name, self._state.opponent.name)
        self._persist()
        return self.get_view()

    def resume(self, player_name: str) -> GameView:
        """Continue the stored game, or start fresh if there is none or it is unusable."""
        snapshot = self.store.load()
        if snapshot:
            try:
                self._state = load_state(snapshot)
            except SnapshotError as exc:
                logger.warning("Discarding unusable snapshot: %s", exc)
                self._clear_store()
            else:
                self._bot_played = False
                logger.info("Resumed game in round %d", self._state.round_number)
                return self.get_view()
        return self.new_game(player_name)

    def restart(self) -> GameView:
        name = self.state.player.name
        self._clear_store()
        return self.new_game(name)

    def next_round(self) -> bool:
        return self._apply(game.next_round(self.state, self.rng))

    # Human intents -----------------------------------------------------

    def draw_from_deck(self) -> bool:
        if not self._human_turn():
            return False
        return self._apply(game.draw_from_deck(self.state, self.rng))

    def draw_from_discard(self, index: int) -> bool:
        if not self._human_turn():
            return False
        return self._apply(game.draw_from_discard(self.state, index))

    def play_meld(self, card_ids: Sequence[str]) -> bool:
        if not self._human_turn():
            return False
        cards = self._cards(card_ids)
        if cards is None:
            return False
        return self._apply(game.play_meld(self.state, cards))

    def add_to_meld(self, card_id: str, meld_id: str) -> bool:
        card = self._card(card_id)
        if card is None or not self._human_turn():
            return False
        return self._apply(game.add_to_meld(self.state, card, meld_id))

    def replace_joker(self, card_id: str, meld_id: str) -> bool:
        card = self._card(card_id)
        if card is None or not self._human_turn():
            return False
        return self._apply(game.replace_joker(self.state, card, meld_id))

    def close_meld(self, meld_id: str) -> bool:
        if not self._human_turn():
            return False
        return self._apply(game.close_meld(self.state, meld_id))

    def open_meld(self, meld_id: str) -> bool:
        if not self._human_turn():
            return False
        return self._apply(game.open_meld(self.state, meld_id))

    def discard(self, card_id: str) -> bool:
        card = self._card(card_id)
        if card is None or not self._human_turn():
            return False
        return self._apply(game.discard(self.state, card))

    def can_discard(self, card_id: str) -> bool:
        card = self._card(card_id)
        return card is not None and self._human_turn() and game.can_discard(self.state, card)

    # Bot driving -------------------------------------------------------

    def bot_pending(self) -> bool:
        state = self._state
        return state is not None and state.phase is GamePhase.PLAYING and state.current is Seat.OPPONENT

    def bot_step(self) -> bool:
        """Advance the bot by one stage (draw, plays, discard).

        Stages are split so a presentation layer can pause between them; the
        outcome does not depend on how long it waits.
        """
        if not self.bot_pending():
            return False
        state = self.state
        if state.turn_phase is TurnPhase.DRAW:
            self._bot_played = False
            return self._apply(apply_draw(self.bot, state, self.rng))
        if not self._bot_played:
            self._bot_played = True
            self._apply(apply_plays(self.bot, state))
            return True
        return self._apply(apply_discard(self.bot, state))

    def play_bot_turn(self) -> int:
        """Run bot stages until it is no longer the bot's turn; returns the stage count."""
        steps = 0
        while self.bot_pending() and steps < MAX_BOT_STEPS:
            if not self.bot_step():
                logger.warning("Bot could not move in round %d", self.state.round_number)
                break
            steps += 1
        return steps

    # Views -------------------------------------------------------------

    def get_view(self, perspective: Seat = Seat.PLAYER) -> GameView:
        state = self.state
        own = state.seat(perspective)
        other = state.seat(perspective.other)
        winner = game_winner(state) if state.phase is GamePhase.GAME_OVER else None
        restricted = state.restricted_card if state.current is perspective else None
        return GameView(
            phase=state.phase.value,
            turn_phase=state.turn_phase.value,
            current_player=state.current.value,
            round_number=state.round_number,
            names={seat.value: state.seat(seat).name for seat in Seat},
            scores={seat.value: state.seat(seat).score for seat in Seat},
            hand=[serialize_card(card) for card in own.hand],
            hand_labels=[card_label(card) for card in own.hand],
            other_hand_size=len(other.hand),
            draw_pile_size=len(state.draw_pile),
            discard_pile=[serialize_card(card) for card in state.discard_pile],
            melds=[
                MeldView(
                    id=meld.id,
                    kind=meld.kind.value,
                    owner=meld.owner.value,
                    closed=meld.closed,
                    cards=[serialize_card(card) for card in meld.cards],
                    labels=[card_label(card) for card in meld.cards],
                )
                for meld in state.melds
            ],
            restricted_card=serialize_card(restricted) if restricted else None,
            history=[action_payload(action) for action in state.history],
            is_my_turn=state.phase is GamePhase.PLAYING and state.current is perspective,
            bot_pending=self.bot_pending(),
            bot_delay_seconds=state.rules.bot_delay_seconds,
            winner=winner.value if winner else None,
        )

    # Helpers -----------------------------------------------------------

    def _human_turn(self) -> bool:
        state = self.state
        return state.phase is GamePhase.PLAYING and state.current is Seat.PLAYER

    def _card(self, card_id: str) -> Optional[Card]:
        card = self.state.find_card(card_id)
        if card is None:
            logger.warning("Unknown card id %r", card_id)
        return card

    def _cards(self, card_ids: Sequence[str]) -> Optional[List[Card]]:
        cards = []
        for card_id in card_ids:
            card = self._card(card_id)
            if card is None:
                return None
            cards.append(card)
        return cards

    def _apply(self, new_state: GameState) -> bool:
        if new_state is self._state:
            return False
        self._state = new_state
        self._persist()
        return True

    def _persist(self) -> None:
        if self._state is None:
            return
        try:
            self.store.save(dump_state(self._state))
        except StoreError as exc:
            logger.warning("Snapshot not saved, keeping in-memory state: %s", exc)

    def _clear_store(self) -> None:
        try:
            self.store.clear()
        except StoreError as exc:
            logger.warning("Could not clear stored snapshot: %s", exc)
