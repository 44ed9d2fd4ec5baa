"""Game state management for Suited Rummy.

All state objects are frozen; transitions in :mod:`engine.game` build new
instances with :func:`dataclasses.replace`.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Union

from .cards import Card
from .deck import DECK_SIZE, build_deck
from .melds import Meld, MeldKind
from .rules_schema import DEFAULT_RULES, RuleSet
from .seats import Seat


class GamePhase(Enum):
    PLAYING = "playing"
    ROUND_END = "round_end"
    GAME_OVER = "game_over"


class TurnPhase(Enum):
    DRAW = "draw"
    PLAY = "play"
    # Accepted wherever PLAY is; no transition currently enters it.
    DISCARD = "discard"


@dataclass(frozen=True)
class Player:
    seat: Seat
    name: str
    hand: Tuple[Card, ...] = ()
    score: int = 0

    def holds(self, card_id: str) -> bool:
        return any(card.id == card_id for card in self.hand)

    def card(self, card_id: str) -> Optional[Card]:
        return next((card for card in self.hand if card.id == card_id), None)


# Turn history ---------------------------------------------------------------


@dataclass(frozen=True)
class RoundStarted:
    kind: ClassVar[str] = "round_start"
    actor: Seat
    player_name: str
    round_number: int


@dataclass(frozen=True)
class DrewFromDeck:
    kind: ClassVar[str] = "draw_deck"
    actor: Seat
    player_name: str


@dataclass(frozen=True)
class DrewFromDiscard:
    kind: ClassVar[str] = "draw_discard"
    actor: Seat
    player_name: str
    card_count: int


@dataclass(frozen=True)
class Reshuffled:
    kind: ClassVar[str] = "reshuffle"
    actor: Seat
    player_name: str
    card_count: int


@dataclass(frozen=True)
class PlayedMeld:
    kind: ClassVar[str] = "play_meld"
    actor: Seat
    player_name: str
    meld_id: str
    meld_kind: MeldKind
    card_count: int


@dataclass(frozen=True)
class AddedToMeld:
    kind: ClassVar[str] = "add_to_meld"
    actor: Seat
    player_name: str
    meld_id: str
    card_id: str


@dataclass(frozen=True)
class ReplacedJoker:
    kind: ClassVar[str] = "replace_joker"
    actor: Seat
    player_name: str
    meld_id: str
    card_id: str
    joker_id: str


@dataclass(frozen=True)
class ClosedMeld:
    kind: ClassVar[str] = "close_meld"
    actor: Seat
    player_name: str
    meld_id: str


@dataclass(frozen=True)
class OpenedMeld:
    kind: ClassVar[str] = "open_meld"
    actor: Seat
    player_name: str
    meld_id: str


@dataclass(frozen=True)
class Discarded:
    kind: ClassVar[str] = "discard"
    actor: Seat
    player_name: str
    card_id: str


@dataclass(frozen=True)
class WentOut:
    kind: ClassVar[str] = "go_out"
    actor: Seat
    player_name: str
    winner_points: int
    loser_penalty: int


TurnAction = Union[
    RoundStarted,
    DrewFromDeck,
    DrewFromDiscard,
    Reshuffled,
    PlayedMeld,
    AddedToMeld,
    ReplacedJoker,
    ClosedMeld,
    OpenedMeld,
    Discarded,
    WentOut,
]

ACTION_TYPES: Dict[str, type] = {
    action_type.kind: action_type
    for action_type in (
        RoundStarted,
        DrewFromDeck,
        DrewFromDiscard,
        Reshuffled,
        PlayedMeld,
        AddedToMeld,
        ReplacedJoker,
        ClosedMeld,
        OpenedMeld,
        Discarded,
        WentOut,
    )
}


# Game state -----------------------------------------------------------------


@dataclass(frozen=True)
class GameState:
    player: Player
    opponent: Player
    phase: GamePhase = GamePhase.PLAYING
    turn_phase: TurnPhase = TurnPhase.DRAW
    current: Seat = Seat.PLAYER
    starting_seat: Seat = Seat.PLAYER
    draw_pile: Tuple[Card, ...] = ()
    discard_pile: Tuple[Card, ...] = ()
    melds: Tuple[Meld, ...] = ()
    round_number: int = 1
    drawn_from_discard: Optional[Tuple[Card, ...]] = None
    history: Tuple[TurnAction, ...] = ()
    next_meld_id: int = 1
    rules: RuleSet = field(default=DEFAULT_RULES)

    def seat(self, seat: Seat) -> Player:
        return self.player if seat is Seat.PLAYER else self.opponent

    @property
    def acting(self) -> Player:
        return self.seat(self.current)

    def with_seat(self, player: Player) -> "GameState":
        if player.seat is Seat.PLAYER:
            return replace(self, player=player)
        return replace(self, opponent=player)

    def log(self, action: TurnAction) -> Tuple[TurnAction, ...]:
        return self.history + (action,)

    @property
    def restricted_card(self) -> Optional[Card]:
        """The card taken first from the discard pile this turn, if any."""
        if self.drawn_from_discard:
            return self.drawn_from_discard[0]
        return None

    def all_card_locations(self) -> List[Tuple[str, Card]]:
        locations: List[Tuple[str, Card]] = []
        locations.extend(("hand:player", card) for card in self.player.hand)
        locations.extend(("hand:opponent", card) for card in self.opponent.hand)
        locations.extend(("draw_pile", card) for card in self.draw_pile)
        locations.extend(("discard_pile", card) for card in self.discard_pile)
        for meld in self.melds:
            locations.extend((f"meld:{meld.id}", card) for card in meld.cards)
        return locations

    def find_card(self, card_id: str) -> Optional[Card]:
        return next((card for _, card in self.all_card_locations() if card.id == card_id), None)


def invariant_errors(state: GameState) -> List[str]:
    """Return human-readable violations of the card and meld invariants."""
    errors: List[str] = []
    locations = state.all_card_locations()
    if len(locations) != DECK_SIZE:
        errors.append(f"expected {DECK_SIZE} cards in play, found {len(locations)}")

    counts = Counter(card.id for _, card in locations)
    duplicates = sorted(card_id for card_id, count in counts.items() if count > 1)
    if duplicates:
        errors.append(f"cards in more than one location: {', '.join(duplicates)}")

    canonical = {card.id: card for card in build_deck()}
    missing = sorted(set(canonical) - set(counts))
    if missing:
        errors.append(f"cards missing: {', '.join(missing)}")
    for _, card in locations:
        if canonical.get(card.id) != card:
            errors.append(f"unknown or altered card: {card.id}")

    meld_ids = Counter(meld.id for meld in state.melds)
    if any(count > 1 for count in meld_ids.values()):
        errors.append("duplicate meld ids")
    for meld in state.melds:
        if not meld.is_valid():
            errors.append(f"meld {meld.id} is not a valid {meld.kind.value}")
        prefix, _, number = meld.id.partition("-")
        # The counter must stay ahead of every id it has handed out.
        if prefix == "meld" and number.isdigit() and int(number) >= state.next_meld_id:
            errors.append(f"meld id {meld.id} is not below next_meld_id {state.next_meld_id}")

    if state.drawn_from_discard is not None and state.turn_phase is TurnPhase.DRAW:
        errors.append("drawn_from_discard set during the draw phase")
    return errors
