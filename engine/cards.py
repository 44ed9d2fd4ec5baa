"""Card-related data structures and helpers for Suited Rummy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping


class Suit(Enum):
    SWORDS = "swords"
    SPADE = "spade"
    CUPS = "cups"
    HEARTS = "hearts"

    def __str__(self) -> str:
        return self.value


SUIT_ORDER: dict[Suit, int] = {suit: index for index, suit in enumerate(Suit)}

RANKS: list[int] = list(range(1, 14))
JOKER_RANK = 0

RANK_LABELS: dict[int, str] = {1: "A", 11: "J", 12: "Q", 13: "K"}


@dataclass(frozen=True)
class Card:
    """Immutable playing card. Identity is the ``id``, never suit+rank."""

    id: str
    suit: Suit
    rank: int
    is_joker: bool = False

    @classmethod
    def numbered(cls, suit: Suit, rank: int) -> "Card":
        return cls(id=f"{suit.value}-{rank}", suit=suit, rank=rank)

    @classmethod
    def joker(cls, suit: Suit) -> "Card":
        return cls(id=f"joker-{suit.value}", suit=suit, rank=JOKER_RANK, is_joker=True)


def card_label(card: Card) -> str:
    if card.is_joker:
        return f"Joker of {card.suit.value.title()}"
    rank = RANK_LABELS.get(card.rank, str(card.rank))
    return f"{rank} of {card.suit.value.title()}"


def serialize_card(card: Card) -> dict:
    return {"id": card.id, "suit": card.suit.value, "rank": card.rank, "joker": card.is_joker}


def deserialize_card(payload: Mapping) -> Card:
    suit = Suit(str(payload["suit"]).lower())
    if payload.get("joker"):
        return Card.joker(suit)
    return Card.numbered(suit, int(payload["rank"]))
