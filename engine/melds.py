"""Meld representation and validation.

A meld is either a *set* (3-4 cards of one rank, distinct suits) or a *run*
(3+ consecutive ranks of one suit). Jokers substitute for missing cards. In a
run the non-joker cards fix both ends, so jokers only ever fill interior gaps.

Runs are kept in slot order: ``cards[i]`` occupies rank ``lowest + i``. A joker's
position therefore names the rank it stands in for, and replacement targets
that slot directly instead of re-deriving it from rank arithmetic.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from enum import Enum
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .cards import Card, Suit
from .seats import Seat

MAX_SET_SIZE = 4
MIN_MELD_SIZE = 3
MAX_MELD_SIZE = 13


class MeldKind(Enum):
    SET = "set"
    RUN = "run"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Meld:
    id: str
    cards: Tuple[Card, ...]
    kind: MeldKind
    owner: Seat
    closed: bool = False

    @classmethod
    def create(cls, meld_id: str, cards: Sequence[Card], kind: MeldKind, owner: Seat, closed: bool = False) -> "Meld":
        ordered = tuple(cards)
        if kind is MeldKind.RUN:
            arranged = arrange_run(ordered)
            if arranged is not None:
                ordered = arranged
        return cls(id=meld_id, cards=ordered, kind=kind, owner=owner, closed=closed)

    def with_cards(self, cards: Sequence[Card]) -> "Meld":
        return Meld.create(self.id, cards, self.kind, self.owner, self.closed)

    def with_closed(self, closed: bool) -> "Meld":
        return replace(self, closed=closed)

    def card_ids(self) -> set[str]:
        return {card.id for card in self.cards}

    def is_valid(self) -> bool:
        return validate_kind(self.cards, self.kind)


def _split(cards: Iterable[Card]) -> Tuple[List[Card], int]:
    naturals = []
    jokers = 0
    for card in cards:
        if card.is_joker:
            jokers += 1
        else:
            naturals.append(card)
    return naturals, jokers


def is_valid_set(cards: Sequence[Card]) -> bool:
    if not MIN_MELD_SIZE <= len(cards) <= MAX_SET_SIZE:
        return False
    naturals, _ = _split(cards)
    if not naturals:
        return False
    rank = naturals[0].rank
    if any(card.rank != rank for card in naturals):
        return False
    return len({card.suit for card in naturals}) == len(naturals)


def is_valid_run(cards: Sequence[Card]) -> bool:
    if len(cards) < MIN_MELD_SIZE:
        return False
    naturals, jokers = _split(cards)
    if not naturals:
        return False
    suit = naturals[0].suit
    if any(card.suit is not suit for card in naturals):
        return False
    ranks = sorted(card.rank for card in naturals)
    if len(set(ranks)) != len(ranks):
        return False
    span = ranks[-1] - ranks[0] + 1
    if span != len(cards):
        return False
    return span - len(ranks) == jokers


def identify_meld(cards: Sequence[Card]) -> Optional[MeldKind]:
    """Return the meld kind formed by ``cards``; sets are checked before runs."""
    if is_valid_set(cards):
        return MeldKind.SET
    if is_valid_run(cards):
        return MeldKind.RUN
    return None


def validate_kind(cards: Sequence[Card], kind: MeldKind) -> bool:
    if kind is MeldKind.SET:
        return is_valid_set(cards)
    return is_valid_run(cards)


def arrange_run(cards: Sequence[Card]) -> Optional[Tuple[Card, ...]]:
    """Return the run in slot order with each joker in the gap it fills."""
    if not is_valid_run(cards):
        return None
    naturals, _ = _split(cards)
    by_rank = {card.rank: card for card in naturals}
    jokers = iter(card for card in cards if card.is_joker)
    lowest = min(by_rank)
    return tuple(by_rank.get(lowest + offset) or next(jokers) for offset in range(len(cards)))


def run_slots(meld: Meld) -> List[Tuple[int, Card]]:
    """Return ``(rank, card)`` pairs for each slot of a run meld."""
    if meld.kind is not MeldKind.RUN:
        raise ValueError(f"Meld {meld.id} is not a run.")
    naturals, _ = _split(meld.cards)
    lowest = min(card.rank for card in naturals)
    return [(lowest + offset, card) for offset, card in enumerate(meld.cards)]


def can_add_to_meld(card: Card, meld: Meld) -> bool:
    if meld.closed:
        return False
    if card.id in meld.card_ids():
        return False
    return validate_kind(meld.cards + (card,), meld.kind)


def joker_slot_for(card: Card, meld: Meld) -> Optional[int]:
    """Return the index of the joker ``card`` may replace in ``meld``, if any."""
    if meld.closed or card.is_joker:
        return None
    joker_indices = [index for index, held in enumerate(meld.cards) if held.is_joker]
    if not joker_indices:
        return None
    naturals, _ = _split(meld.cards)
    if not naturals:
        return None

    if meld.kind is MeldKind.SET:
        if card.rank != naturals[0].rank:
            return None
        if card.suit in {held.suit for held in naturals}:
            return None
        return joker_indices[0]

    if card.suit is not naturals[0].suit:
        return None
    for index, (rank, held) in enumerate(run_slots(meld)):
        if held.is_joker and rank == card.rank:
            return index
    return None


def can_replace_joker(card: Card, meld: Meld) -> bool:
    return joker_slot_for(card, meld) is not None


def _set_candidates(naturals: Sequence[Card], jokers: Sequence[Card]) -> Iterable[Tuple[Card, ...]]:
    by_rank: Dict[int, List[Card]] = defaultdict(list)
    for card in naturals:
        by_rank[card.rank].append(card)
    for group in by_rank.values():
        for size in range(1, min(MAX_SET_SIZE, len(group)) + 1):
            for picked in combinations(group, size):
                low = max(0, MIN_MELD_SIZE - size)
                high = min(len(jokers), MAX_SET_SIZE - size)
                for joker_count in range(low, high + 1):
                    for wild in combinations(jokers, joker_count):
                        yield picked + wild


def _run_candidates(naturals: Sequence[Card], jokers: Sequence[Card]) -> Iterable[Tuple[Card, ...]]:
    by_suit: Dict[Suit, List[Card]] = defaultdict(list)
    for card in naturals:
        by_suit[card.suit].append(card)
    for group in by_suit.values():
        group = sorted(group, key=lambda card: card.rank)
        for lo_index, low in enumerate(group):
            for hi_index in range(lo_index + 1, len(group)):
                high = group[hi_index]
                span = high.rank - low.rank + 1
                if span < MIN_MELD_SIZE or span > MAX_MELD_SIZE:
                    continue
                interior = group[lo_index + 1 : hi_index]
                for size in range(len(interior) + 1):
                    gaps = span - 2 - size
                    if gaps > len(jokers):
                        continue
                    for middle in combinations(interior, size):
                        for wild in combinations(jokers, gaps):
                            yield (low, *middle, high, *wild)


def find_possible_melds(hand: Sequence[Card]) -> List[List[Card]]:
    """Return every subset of ``hand`` (size 3..13) that forms a valid meld.

    The result matches an exhaustive power-set enumeration, ordered by size
    and then by hand position like ``itertools.combinations``. Candidates are
    generated per rank group (sets) and per suit group (runs) plus the
    hand's jokers, which keeps the search polynomial in the group sizes
    instead of exponential in the hand size.
    """
    position = {card.id: index for index, card in enumerate(hand)}
    naturals = [card for card in hand if not card.is_joker]
    jokers = [card for card in hand if card.is_joker]

    found: Dict[Tuple[int, ...], List[Card]] = {}
    for candidate in list(_set_candidates(naturals, jokers)) + list(_run_candidates(naturals, jokers)):
        if len(candidate) > MAX_MELD_SIZE or identify_meld(candidate) is None:
            continue
        key = tuple(sorted(position[card.id] for card in candidate))
        found.setdefault(key, [hand[index] for index in key])

    return [found[key] for key in sorted(found, key=lambda key: (len(key), key))]
