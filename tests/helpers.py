"""Table builders shared by the test modules."""

from typing import Iterable, Optional, Sequence

from engine.cards import Card, Suit
from engine.deck import build_deck
from engine.melds import Meld, identify_meld
from engine.seats import Seat
from engine.state import GamePhase, GameState, Player, TurnPhase


def card(suit: str, rank: int) -> Card:
    return Card.numbered(Suit(suit), rank)


def joker(suit: str) -> Card:
    return Card.joker(Suit(suit))


def meld(meld_id: str, cards: Sequence[Card], owner: Seat = Seat.PLAYER, closed: bool = False) -> Meld:
    kind = identify_meld(cards)
    assert kind is not None, f"{[c.id for c in cards]} is not a meld"
    return Meld.create(meld_id, cards, kind, owner, closed)


def build_table(
    player: Iterable[Card],
    opponent: Optional[Iterable[Card]] = None,
    *,
    discard: Optional[Iterable[Card]] = None,
    draw: Optional[Iterable[Card]] = None,
    melds: Sequence[Meld] = (),
    current: Seat = Seat.PLAYER,
    turn_phase: TurnPhase = TurnPhase.DRAW,
    drawn_from_discard: Optional[Sequence[Card]] = None,
    scores: tuple = (0, 0),
    phase: GamePhase = GamePhase.PLAYING,
) -> GameState:
    """Lay out a full 56-card table.

    Cards not placed explicitly go to the opponent (ten of them) when no
    opponent hand is given, then to the draw pile, or to the discard pile
    when the draw pile is given.
    """
    player = list(player)
    placed = list(player)
    for group in (opponent, discard, draw):
        if group is not None:
            placed.extend(group)
    for item in melds:
        placed.extend(item.cards)
    used = {c.id for c in placed}
    assert len(used) == len(placed), "a card was placed twice"
    leftovers = [c for c in build_deck() if c.id not in used]

    if opponent is None:
        opponent, leftovers = leftovers[:10], leftovers[10:]
    if draw is None:
        draw, leftovers = leftovers, []
    elif discard is None:
        discard, leftovers = leftovers, []
    assert not leftovers, "cards left unplaced"

    return GameState(
        player=Player(seat=Seat.PLAYER, name="Ada", hand=tuple(player), score=scores[0]),
        opponent=Player(seat=Seat.OPPONENT, name="Bot", hand=tuple(opponent), score=scores[1]),
        phase=phase,
        turn_phase=turn_phase,
        current=current,
        draw_pile=tuple(draw),
        discard_pile=tuple(discard or ()),
        melds=tuple(melds),
        drawn_from_discard=None if drawn_from_discard is None else tuple(drawn_from_discard),
        next_meld_id=len(melds) + 1,
    )


