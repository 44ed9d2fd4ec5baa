"""Deck creation, shuffling and dealing for Suited Rummy."""

from __future__ import annotations

from random import Random
from typing import Iterable, List, Optional, Sequence, Tuple

from .cards import RANKS, SUIT_ORDER, Card, Suit

DECK_SIZE = len(Suit) * len(RANKS) + len(Suit)


def build_deck() -> List[Card]:
    """Return the ordered 56-card deck: 13 ranks per suit plus one joker per suit."""
    cards = [Card.numbered(suit, rank) for suit in Suit for rank in RANKS]
    cards.extend(Card.joker(suit) for suit in Suit)
    return cards


def shuffle(cards: Iterable[Card], rng: Optional[Random] = None) -> List[Card]:
    """Return a Fisher-Yates permutation of ``cards`` drawn from ``rng``."""
    if rng is None:
        rng = Random()
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def deal(pile: Sequence[Card], n: int) -> Tuple[List[Card], List[Card]]:
    """Split off the first ``n`` cards as a hand.

    Returns an empty hand and the untouched pile when ``n`` does not fit.
    """
    if n < 0 or n > len(pile):
        return [], list(pile)
    return list(pile[:n]), list(pile[n:])


def _sort_key(card: Card) -> Tuple[int, int, int]:
    if card.is_joker:
        return (1, SUIT_ORDER[card.suit], 0)
    return (0, SUIT_ORDER[card.suit], card.rank)


def sort_hand(hand: Iterable[Card]) -> List[Card]:
    """Canonical display order: suit then rank, jokers last."""
    return sorted(hand, key=_sort_key)


def remove_cards(hand: Iterable[Card], cards: Iterable[Card]) -> List[Card]:
    ids = {card.id for card in cards}
    return [card for card in hand if card.id not in ids]
