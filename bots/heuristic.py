"""Heuristic rummy bot."""

from __future__ import annotations

from typing import List, Optional, Sequence

from engine.cards import Card
from engine.melds import can_add_to_meld, find_possible_melds, joker_slot_for
from engine.scoring import card_value
from engine.state import GameState

from .base import BotStrategy, Contribution, DrawChoice, discardable

MELD_MEMBER_PENALTY = 20
JOKER_KEEP_SCORE = 15
SAME_RANK_SCORE = 5
ADJACENT_SCORE = 8
ONE_GAP_SCORE = 3


def completes_near_meld(hand: Sequence[Card], candidate: Card) -> bool:
    """True if two hand cards plus ``candidate`` make a set or a 3-card run."""
    if candidate.is_joker:
        return False
    naturals = [card for card in hand if not card.is_joker]

    set_suits = {card.suit for card in naturals if card.rank == candidate.rank and card.suit is not candidate.suit}
    if len(set_suits) >= 2:
        return True

    run_ranks = {card.rank for card in naturals if card.suit is candidate.suit and card.rank != candidate.rank}
    for low in range(candidate.rank - 2, candidate.rank + 1):
        window = {low, low + 1, low + 2} - {candidate.rank}
        if window <= run_ranks:
            return True
    return False


def near_meld_score(hand: Sequence[Card], card: Card) -> int:
    """How much ``card`` is worth keeping for melds it could still form."""
    if card.is_joker:
        return JOKER_KEEP_SCORE
    score = 0
    for other in hand:
        if other.id == card.id or other.is_joker:
            continue
        if other.rank == card.rank:
            score += SAME_RANK_SCORE
        if other.suit is card.suit:
            distance = abs(other.rank - card.rank)
            if distance == 1:
                score += ADJACENT_SCORE
            elif distance == 2:
                score += ONE_GAP_SCORE
    return score


class HeuristicBot(BotStrategy):
    """Greedy melder that keeps its options open.

    Takes from the discard pile when a slice adds melds (smallest slice
    first) or the top card completes a near-meld, lays down the largest
    non-overlapping melds, lays off what it can, never closes melds and
    throws away its least useful card.
    """

    name = "Heuristic"

    def choose_draw(self, state: GameState) -> DrawChoice:
        hand = list(state.acting.hand)
        pile = state.discard_pile
        if not pile:
            return DrawChoice()

        baseline = len(find_possible_melds(hand))
        top = len(pile) - 1
        for index in range(top, -1, -1):
            if len(find_possible_melds(hand + list(pile[index:]))) > baseline:
                return DrawChoice(index)
            if index == top and completes_near_meld(hand, pile[top]):
                return DrawChoice(index)
        return DrawChoice()

    def choose_melds(self, state: GameState) -> List[List[Card]]:
        hand = list(state.acting.hand)
        candidates = sorted(find_possible_melds(hand), key=len, reverse=True)
        remaining = {card.id: card for card in hand}
        chosen: List[List[Card]] = []
        for meld in candidates:
            ids = {card.id for card in meld}
            if not ids <= remaining.keys():
                continue
            leftover = [card for card_id, card in remaining.items() if card_id not in ids]
            if not discardable(state, leftover):
                continue
            chosen.append(meld)
            for card_id in ids:
                del remaining[card_id]
        return chosen

    def choose_contributions(self, state: GameState) -> List[Contribution]:
        remaining = list(state.acting.hand)
        contributions: List[Contribution] = []
        for card in state.acting.hand:
            for meld in state.melds:
                if can_add_to_meld(card, meld):
                    leftover = [held for held in remaining if held.id != card.id]
                    if discardable(state, leftover):
                        contributions.append(Contribution(card, meld.id))
                        remaining = leftover
                    break
                if joker_slot_for(card, meld) is not None:
                    contributions.append(Contribution(card, meld.id, replace_joker=True))
                    break
        return contributions

    def choose_melds_to_close(self, state: GameState) -> List[str]:
        return []

    def choose_discard(self, state: GameState) -> Optional[Card]:
        hand = list(state.acting.hand)
        restricted = state.restricted_card
        candidates = [card for card in hand if restricted is None or card.id != restricted.id]
        if not candidates:
            return None
        in_melds = {card.id for meld in find_possible_melds(hand) for card in meld}

        def discard_score(card: Card) -> int:
            score = card_value(card)
            if card.id in in_melds:
                score -= MELD_MEMBER_PENALTY
            return score - near_meld_score(hand, card)

        return max(candidates, key=discard_score)
