"""Random baseline bot for arena matches and engine smoke tests."""

from __future__ import annotations

import random
from typing import List, Optional

from engine.cards import Card
from engine.game import can_discard
from engine.melds import can_add_to_meld, find_possible_melds, joker_slot_for
from engine.state import GameState

from .base import BotStrategy, Contribution, DrawChoice, discardable


class RandomBot(BotStrategy):
    name = "Random"

    def __init__(self, seed: Optional[int] = None, *, meld_rate: float = 0.7) -> None:
        self._rng = random.Random(seed)
        self.meld_rate = meld_rate

    def choose_draw(self, state: GameState) -> DrawChoice:
        pile = state.discard_pile
        if not pile or self._rng.random() < 0.5:
            return DrawChoice()
        # Only consider the top few discards so hands stay manageable.
        return DrawChoice(self._rng.randrange(max(0, len(pile) - 3), len(pile)))

    def choose_melds(self, state: GameState) -> List[List[Card]]:
        if self._rng.random() >= self.meld_rate:
            return []
        candidates = find_possible_melds(list(state.acting.hand))
        self._rng.shuffle(candidates)
        remaining = {card.id: card for card in state.acting.hand}
        chosen: List[List[Card]] = []
        for meld in candidates:
            ids = {card.id for card in meld}
            leftover = [card for card_id, card in remaining.items() if card_id not in ids]
            if ids <= remaining.keys() and discardable(state, leftover):
                chosen.append(meld)
                remaining = {card.id: card for card in leftover}
        return chosen

    def choose_contributions(self, state: GameState) -> List[Contribution]:
        contributions: List[Contribution] = []
        for card in state.acting.hand:
            if self._rng.random() >= self.meld_rate:
                continue
            melds = list(state.melds)
            self._rng.shuffle(melds)
            for meld in melds:
                if joker_slot_for(card, meld) is not None:
                    contributions.append(Contribution(card, meld.id, replace_joker=True))
                    break
                if can_add_to_meld(card, meld):
                    contributions.append(Contribution(card, meld.id))
                    break
        return contributions

    def choose_melds_to_close(self, state: GameState) -> List[str]:
        own = [meld.id for meld in state.melds if meld.owner is state.current and not meld.closed]
        return [meld_id for meld_id in own if self._rng.random() < 0.1]

    def choose_discard(self, state: GameState) -> Optional[Card]:
        allowed = [card for card in state.acting.hand if can_discard(state, card)]
        if not allowed:
            return None
        return self._rng.choice(allowed)
