"""Turn engine for Suited Rummy.

Every transition takes a :class:`GameState` and returns a new one. An intent
that breaks a rule (wrong phase, wrong owner, invalid meld, restricted
discard, unknown meld id) returns the *same* state object, so callers detect
rejection with ``new_state is state``. Nothing here raises for ordinary rule
violations.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from random import Random
from typing import Iterable, List, Optional, Sequence, Tuple

from .cards import Card
from .deck import build_deck, deal, remove_cards, shuffle, sort_hand
from .melds import Meld, can_add_to_meld, identify_meld, joker_slot_for
from .rules_schema import DEFAULT_RULES, RuleSet
from .scoring import game_winner, round_score
from .seats import Seat
from .state import (
    AddedToMeld,
    ClosedMeld,
    Discarded,
    DrewFromDeck,
    DrewFromDiscard,
    GamePhase,
    GameState,
    OpenedMeld,
    PlayedMeld,
    Player,
    ReplacedJoker,
    Reshuffled,
    RoundStarted,
    TurnPhase,
    WentOut,
)

logger = logging.getLogger(__name__)

PLAY_PHASES = (TurnPhase.PLAY, TurnPhase.DISCARD)


def _reject(state: GameState, reason: str, *args: object) -> GameState:
    logger.debug("Rejected intent: " + reason, *args)
    return state


# Session lifecycle ----------------------------------------------------------


def create_session(
    player_name: str,
    rng: Optional[Random] = None,
    *,
    opponent_name: Optional[str] = None,
    rules: Optional[RuleSet] = None,
    starting_seat: Seat = Seat.PLAYER,
) -> GameState:
    """Create a new game and deal its first round."""
    rules = rules or DEFAULT_RULES
    if rng is None:
        rng = Random()
    if opponent_name is None:
        opponent_name = rules.bot_names[rng.randrange(len(rules.bot_names))]
    state = GameState(
        player=Player(seat=Seat.PLAYER, name=player_name),
        opponent=Player(seat=Seat.OPPONENT, name=opponent_name),
        current=starting_seat,
        starting_seat=starting_seat,
        rules=rules,
    )
    return start_round(state, rng)


def start_round(state: GameState, rng: Optional[Random] = None) -> GameState:
    """Shuffle a fresh deck, deal both hands and seed the discard pile."""
    hand_size = state.rules.hand_size
    deck = shuffle(build_deck(), rng)
    player_hand, rest = deal(deck, hand_size)
    opponent_hand, rest = deal(rest, hand_size)
    seed, draw_pile = deal(rest, 1)

    starter = state.seat(state.starting_seat)
    logger.info("Starting round %d, %s to play first", state.round_number, starter.name)
    return replace(
        state,
        player=replace(state.player, hand=tuple(sort_hand(player_hand))),
        opponent=replace(state.opponent, hand=tuple(sort_hand(opponent_hand))),
        phase=GamePhase.PLAYING,
        turn_phase=TurnPhase.DRAW,
        current=state.starting_seat,
        draw_pile=tuple(draw_pile),
        discard_pile=tuple(seed),
        melds=(),
        drawn_from_discard=None,
        history=state.log(RoundStarted(state.starting_seat, starter.name, state.round_number)),
    )


def next_round(state: GameState, rng: Optional[Random] = None) -> GameState:
    if state.phase is not GamePhase.ROUND_END:
        return _reject(state, "next round requested in phase %s", state.phase.value)
    return start_round(replace(state, round_number=state.round_number + 1), rng)


# Queries --------------------------------------------------------------------


def current_player(state: GameState) -> Player:
    return state.acting


def find_meld(state: GameState, meld_id: str) -> Optional[Meld]:
    return next((meld for meld in state.melds if meld.id == meld_id), None)


def _meld_index(state: GameState, meld_id: str) -> Optional[int]:
    for index, meld in enumerate(state.melds):
        if meld.id == meld_id:
            return index
    return None


def _hand_card(state: GameState, card: Card) -> Optional[Card]:
    held = state.acting.card(card.id)
    if held is None and state.find_card(card.id) is None:
        logger.warning("Intent references card %r which does not exist in this game", card.id)
    return held


def _leaves_discard(state: GameState, remaining: Sequence[Card]) -> bool:
    """True when ``remaining`` still holds a card the player may discard."""
    restricted = state.restricted_card
    if restricted is None:
        return bool(remaining)
    return any(card.id != restricted.id for card in remaining)


def _in_play_phase(state: GameState) -> bool:
    return state.phase is GamePhase.PLAYING and state.turn_phase in PLAY_PHASES


def _with_meld(state: GameState, index: int, meld: Meld) -> Tuple[Meld, ...]:
    melds = list(state.melds)
    melds[index] = meld
    return tuple(melds)


# Draw -----------------------------------------------------------------------


def draw_from_deck(state: GameState, rng: Optional[Random] = None) -> GameState:
    if state.phase is not GamePhase.PLAYING or state.turn_phase is not TurnPhase.DRAW:
        return _reject(state, "draw from deck outside the draw phase")

    if not state.draw_pile:
        if len(state.discard_pile) <= 1:
            return _reject(state, "draw pile empty and nothing to reshuffle")
        top = state.discard_pile[-1]
        reshuffled = shuffle(state.discard_pile[:-1], rng)
        logger.info("Draw pile exhausted, reshuffling %d discards", len(reshuffled))
        state = replace(
            state,
            draw_pile=tuple(reshuffled),
            discard_pile=(top,),
            history=state.log(Reshuffled(state.current, state.acting.name, len(reshuffled))),
        )

    card, rest = state.draw_pile[0], state.draw_pile[1:]
    acting = state.acting
    updated = replace(acting, hand=tuple(sort_hand(acting.hand + (card,))))
    return replace(
        state.with_seat(updated),
        draw_pile=rest,
        turn_phase=TurnPhase.PLAY,
        drawn_from_discard=None,
        history=state.log(DrewFromDeck(state.current, acting.name)),
    )


def draw_from_discard(state: GameState, index: int) -> GameState:
    """Take the discard at ``index`` together with everything above it."""
    if state.phase is not GamePhase.PLAYING or state.turn_phase is not TurnPhase.DRAW:
        return _reject(state, "draw from discard outside the draw phase")
    if not 0 <= index < len(state.discard_pile):
        return _reject(state, "discard index %d out of range", index)

    taken = state.discard_pile[index:]
    acting = state.acting
    updated = replace(acting, hand=tuple(sort_hand(acting.hand + taken)))
    return replace(
        state.with_seat(updated),
        discard_pile=state.discard_pile[:index],
        turn_phase=TurnPhase.PLAY,
        drawn_from_discard=taken,
        history=state.log(DrewFromDiscard(state.current, acting.name, len(taken))),
    )


# Melds ----------------------------------------------------------------------


def play_meld(state: GameState, cards: Iterable[Card]) -> GameState:
    if not _in_play_phase(state):
        return _reject(state, "play meld outside the play phase")
    requested = list(cards)
    if len({card.id for card in requested}) != len(requested):
        return _reject(state, "meld lists the same card twice")

    resolved: List[Card] = []
    for card in requested:
        held = _hand_card(state, card)
        if held is None:
            return _reject(state, "card %s is not in hand", card.id)
        resolved.append(held)

    kind = identify_meld(resolved)
    if kind is None:
        return _reject(state, "cards do not form a meld")

    acting = state.acting
    remaining = remove_cards(acting.hand, resolved)
    if not _leaves_discard(state, remaining):
        return _reject(state, "meld would leave no card to discard")

    meld = Meld.create(f"meld-{state.next_meld_id}", resolved, kind, owner=state.current)
    updated = replace(acting, hand=tuple(sort_hand(remaining)))
    return replace(
        state.with_seat(updated),
        melds=state.melds + (meld,),
        next_meld_id=state.next_meld_id + 1,
        history=state.log(PlayedMeld(state.current, acting.name, meld.id, kind, len(resolved))),
    )


def add_to_meld(state: GameState, card: Card, meld_id: str) -> GameState:
    """Lay ``card`` off onto any open meld on the table, whoever owns it."""
    if not _in_play_phase(state):
        return _reject(state, "add to meld outside the play phase")
    index = _meld_index(state, meld_id)
    if index is None:
        return _reject(state, "unknown meld %s", meld_id)
    held = _hand_card(state, card)
    if held is None:
        return _reject(state, "card %s is not in hand", card.id)

    meld = state.melds[index]
    if not can_add_to_meld(held, meld):
        return _reject(state, "card %s does not extend meld %s", held.id, meld_id)

    acting = state.acting
    remaining = remove_cards(acting.hand, [held])
    if not _leaves_discard(state, remaining):
        return _reject(state, "addition would leave no card to discard")

    updated = replace(acting, hand=tuple(remaining))
    return replace(
        state.with_seat(updated),
        melds=_with_meld(state, index, meld.with_cards(meld.cards + (held,))),
        history=state.log(AddedToMeld(state.current, acting.name, meld_id, held.id)),
    )


def replace_joker(state: GameState, card: Card, meld_id: str) -> GameState:
    """Swap ``card`` for the joker it stands in for; the joker goes to hand."""
    if not _in_play_phase(state):
        return _reject(state, "replace joker outside the play phase")
    index = _meld_index(state, meld_id)
    if index is None:
        return _reject(state, "unknown meld %s", meld_id)
    held = _hand_card(state, card)
    if held is None:
        return _reject(state, "card %s is not in hand", card.id)

    meld = state.melds[index]
    slot = joker_slot_for(held, meld)
    if slot is None:
        return _reject(state, "card %s cannot replace a joker in meld %s", held.id, meld_id)

    joker = meld.cards[slot]
    cards = list(meld.cards)
    cards[slot] = held
    replaced = meld.with_cards(cards)
    if not replaced.is_valid():
        return _reject(state, "replacement would break meld %s", meld_id)

    acting = state.acting
    hand = remove_cards(acting.hand, [held]) + [joker]
    updated = replace(acting, hand=tuple(sort_hand(hand)))
    return replace(
        state.with_seat(updated),
        melds=_with_meld(state, index, replaced),
        history=state.log(ReplacedJoker(state.current, acting.name, meld_id, held.id, joker.id)),
    )


def _set_closed(state: GameState, meld_id: str, closed: bool) -> GameState:
    if state.phase is not GamePhase.PLAYING:
        return _reject(state, "meld lock changed outside play")
    index = _meld_index(state, meld_id)
    if index is None:
        return _reject(state, "unknown meld %s", meld_id)
    meld = state.melds[index]
    if meld.owner is not state.current:
        return _reject(state, "meld %s belongs to %s", meld_id, meld.owner.value)
    if meld.closed is closed:
        return _reject(state, "meld %s already %s", meld_id, "closed" if closed else "open")

    entry_type = ClosedMeld if closed else OpenedMeld
    return replace(
        state,
        melds=_with_meld(state, index, meld.with_closed(closed)),
        history=state.log(entry_type(state.current, state.acting.name, meld_id)),
    )


def close_meld(state: GameState, meld_id: str) -> GameState:
    return _set_closed(state, meld_id, True)


def open_meld(state: GameState, meld_id: str) -> GameState:
    return _set_closed(state, meld_id, False)


# Discard --------------------------------------------------------------------


def can_discard(state: GameState, card: Card) -> bool:
    """Whether the acting player may end their turn by discarding ``card``.

    The first card of a slice taken from the discard pile this turn cannot be
    thrown straight back.
    """
    if not _in_play_phase(state):
        return False
    if not state.acting.holds(card.id):
        return False
    restricted = state.restricted_card
    return restricted is None or restricted.id != card.id


def discard(state: GameState, card: Card) -> GameState:
    if not can_discard(state, card):
        if state.find_card(card.id) is None:
            logger.warning("Discard references card %r which does not exist in this game", card.id)
        return _reject(state, "discard of %s not allowed", card.id)

    acting = state.acting
    held = acting.card(card.id)
    assert held is not None
    remaining = remove_cards(acting.hand, [held])
    state = replace(
        state.with_seat(replace(acting, hand=tuple(remaining))),
        discard_pile=state.discard_pile + (held,),
        history=state.log(Discarded(state.current, acting.name, held.id)),
    )
    if not remaining:
        return _go_out(state)
    return replace(
        state,
        current=state.current.other,
        turn_phase=TurnPhase.DRAW,
        drawn_from_discard=None,
    )


def _go_out(state: GameState) -> GameState:
    winner = state.acting
    loser = state.seat(state.current.other)
    result = round_score(winner, loser, state.rules)
    logger.info(
        "%s went out: +%d to winner, -%d to %s",
        winner.name,
        result.winner_points,
        result.loser_penalty,
        loser.name,
    )
    scored = state.with_seat(replace(winner, score=winner.score + result.winner_points))
    scored = scored.with_seat(replace(loser, score=loser.score - result.loser_penalty))
    scored = replace(
        scored,
        phase=GamePhase.ROUND_END,
        drawn_from_discard=None,
        history=state.log(WentOut(state.current, winner.name, result.winner_points, result.loser_penalty)),
    )
    champion = game_winner(scored)
    if champion is not None:
        logger.info("Game over, %s wins", scored.seat(champion).name)
        return replace(scored, phase=GamePhase.GAME_OVER)
    return scored
