"""Self-describing JSON snapshots of a :class:`GameState`.

``dump_state`` and ``load_state`` are the only format the persistence layer
sees. Loading validates the envelope with pydantic and then checks the card
and meld invariants, so a corrupt or hand-edited snapshot is refused rather
than half-restored.
"""

from __future__ import annotations

from dataclasses import fields
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .cards import Card, Suit
from .deck import build_deck
from .melds import Meld, MeldKind
from .rules_schema import RuleSet
from .seats import Seat
from .state import ACTION_TYPES, GamePhase, GameState, Player, TurnAction, TurnPhase, invariant_errors

SNAPSHOT_VERSION = 1

_ENUM_FIELDS = {"actor": Seat, "meld_kind": MeldKind}


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be turned back into a game state."""


class CardModel(BaseModel):
    id: str
    suit: Suit
    rank: int = Field(ge=0, le=13)
    joker: bool = False


class PlayerModel(BaseModel):
    seat: Seat
    name: str
    hand: List[CardModel]
    score: int


class MeldModel(BaseModel):
    id: str
    kind: MeldKind
    owner: Seat
    closed: bool = False
    cards: List[CardModel]


class ActionModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: str

    @field_validator("kind")
    @classmethod
    def known_kind(cls, value: str) -> str:
        if value not in ACTION_TYPES:
            raise ValueError(f"Unknown turn action kind: {value!r}")
        return value


class SnapshotModel(BaseModel):
    version: Literal[1] = SNAPSHOT_VERSION
    phase: GamePhase
    turn_phase: TurnPhase
    current: Seat
    starting_seat: Seat
    round_number: int = Field(ge=1)
    next_meld_id: int = Field(ge=1)
    player: PlayerModel
    opponent: PlayerModel
    draw_pile: List[CardModel]
    discard_pile: List[CardModel]
    melds: List[MeldModel]
    drawn_from_discard: Optional[List[CardModel]] = None
    history: List[ActionModel]
    rules: RuleSet


# Encoding -------------------------------------------------------------------


def _card_model(card: Card) -> CardModel:
    return CardModel(id=card.id, suit=card.suit, rank=card.rank, joker=card.is_joker)


def _player_model(player: Player) -> PlayerModel:
    return PlayerModel(
        seat=player.seat,
        name=player.name,
        hand=[_card_model(card) for card in player.hand],
        score=player.score,
    )


def action_payload(action: TurnAction) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"kind": action.kind}
    for item in fields(action):
        value = getattr(action, item.name)
        payload[item.name] = value.value if isinstance(value, Enum) else value
    return payload


def to_model(state: GameState) -> SnapshotModel:
    return SnapshotModel(
        phase=state.phase,
        turn_phase=state.turn_phase,
        current=state.current,
        starting_seat=state.starting_seat,
        round_number=state.round_number,
        next_meld_id=state.next_meld_id,
        player=_player_model(state.player),
        opponent=_player_model(state.opponent),
        draw_pile=[_card_model(card) for card in state.draw_pile],
        discard_pile=[_card_model(card) for card in state.discard_pile],
        melds=[
            MeldModel(
                id=meld.id,
                kind=meld.kind,
                owner=meld.owner,
                closed=meld.closed,
                cards=[_card_model(card) for card in meld.cards],
            )
            for meld in state.melds
        ],
        drawn_from_discard=(
            None if state.drawn_from_discard is None else [_card_model(card) for card in state.drawn_from_discard]
        ),
        history=[ActionModel(**action_payload(action)) for action in state.history],
        rules=state.rules,
    )


def dump_state(state: GameState) -> str:
    return to_model(state).model_dump_json()


# Decoding -------------------------------------------------------------------


class _Decoder:
    def __init__(self) -> None:
        self.canonical = {card.id: card for card in build_deck()}

    def card(self, model: CardModel) -> Card:
        card = self.canonical.get(model.id)
        if card is None:
            raise SnapshotError(f"Unknown card id {model.id!r}.")
        if (card.suit, card.rank, card.is_joker) != (model.suit, model.rank, model.joker):
            raise SnapshotError(f"Card {model.id!r} does not match its suit/rank.")
        return card

    def cards(self, models: List[CardModel]) -> tuple:
        return tuple(self.card(model) for model in models)

    def player(self, model: PlayerModel, seat: Seat) -> Player:
        if model.seat is not seat:
            raise SnapshotError(f"Seat mismatch: expected {seat.value}, found {model.seat.value}.")
        return Player(seat=seat, name=model.name, hand=self.cards(model.hand), score=model.score)

    def meld(self, model: MeldModel) -> Meld:
        return Meld.create(model.id, self.cards(model.cards), model.kind, model.owner, model.closed)

    def action(self, model: ActionModel) -> TurnAction:
        action_type = ACTION_TYPES[model.kind]
        payload = dict(model.model_extra or {})
        try:
            for name, enum_type in _ENUM_FIELDS.items():
                if name in payload:
                    payload[name] = enum_type(payload[name])
            return action_type(**payload)
        except (TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed {model.kind!r} history entry: {exc}") from exc


def from_model(model: SnapshotModel) -> GameState:
    decoder = _Decoder()
    state = GameState(
        player=decoder.player(model.player, Seat.PLAYER),
        opponent=decoder.player(model.opponent, Seat.OPPONENT),
        phase=model.phase,
        turn_phase=model.turn_phase,
        current=model.current,
        starting_seat=model.starting_seat,
        draw_pile=decoder.cards(model.draw_pile),
        discard_pile=decoder.cards(model.discard_pile),
        melds=tuple(decoder.meld(meld) for meld in model.melds),
        round_number=model.round_number,
        drawn_from_discard=None if model.drawn_from_discard is None else decoder.cards(model.drawn_from_discard),
        history=tuple(decoder.action(action) for action in model.history),
        next_meld_id=model.next_meld_id,
        rules=model.rules,
    )
    errors = invariant_errors(state)
    if errors:
        raise SnapshotError("Snapshot violates game invariants: " + "; ".join(errors))
    return state


def load_state(text: str) -> GameState:
    """Rebuild a game state, raising :class:`SnapshotError` on any defect."""
    try:
        model = SnapshotModel.model_validate_json(text)
    except ValidationError as exc:
        raise SnapshotError(f"Snapshot failed validation: {exc.error_count()} error(s).") from exc
    return from_model(model)
