from dataclasses import replace
from random import Random

from engine import game
from engine.deck import DECK_SIZE, build_deck
from engine.rules_schema import RuleSet
from engine.seats import Seat
from engine.state import GamePhase, TurnPhase, invariant_errors

from helpers import card, joker, meld


# Session lifecycle ----------------------------------------------------------


def test_create_session_deals_round_one():
    state = game.create_session("Ada", Random(1))
    assert len(state.player.hand) == 10
    assert len(state.opponent.hand) == 10
    assert len(state.discard_pile) == 1
    assert len(state.draw_pile) == DECK_SIZE - 21
    assert state.phase is GamePhase.PLAYING
    assert state.turn_phase is TurnPhase.DRAW
    assert state.current is Seat.PLAYER
    assert state.round_number == 1
    assert state.opponent.name in state.rules.bot_names
    assert [entry.kind for entry in state.history] == ["round_start"]
    assert invariant_errors(state) == []


def test_create_session_is_deterministic_for_a_seed():
    assert game.create_session("Ada", Random(9)) == game.create_session("Ada", Random(9))


def test_create_session_uses_rules_hand_size():
    state = game.create_session("Ada", Random(2), opponent_name="Rex", rules=RuleSet(hand_size=7))
    assert len(state.player.hand) == 7
    assert state.opponent.name == "Rex"
    assert invariant_errors(state) == []


def test_next_round_only_after_round_end(table):
    playing = table([card("spade", 1)])
    assert game.next_round(playing) is playing

    ended = replace(table([card("spade", 1)], scores=(3, -1)), phase=GamePhase.ROUND_END)
    fresh = game.next_round(ended, Random(4))
    assert fresh.round_number == 2
    assert fresh.phase is GamePhase.PLAYING
    assert (fresh.player.score, fresh.opponent.score) == (3, -1)
    assert len(fresh.player.hand) == 10
    assert fresh.melds == ()
    assert fresh.history[-1].kind == "round_start"
    assert invariant_errors(fresh) == []


# Draw phase -----------------------------------------------------------------


def test_draw_from_deck_takes_top_of_draw_pile(table):
    state = table([card("spade", 1), card("cups", 9)])
    top = state.draw_pile[0]
    after = game.draw_from_deck(state)
    assert after.player.holds(top.id)
    assert after.draw_pile == state.draw_pile[1:]
    assert after.turn_phase is TurnPhase.PLAY
    assert after.drawn_from_discard is None
    assert after.history[-1].kind == "draw_deck"


def test_only_one_draw_per_turn(table):
    state = game.draw_from_deck(table([card("spade", 1), card("cups", 9)]))
    assert game.draw_from_deck(state) is state
    assert game.draw_from_discard(state, 0) is state


def test_draw_from_discard_takes_slice_in_order(table):
    pile = [card("spade", 2), card("cups", 8), card("hearts", 13)]
    state = table([card("swords", 1), card("swords", 9)], discard=pile)
    after = game.draw_from_discard(state, 1)
    assert after.discard_pile == (pile[0],)
    assert after.drawn_from_discard == (pile[1], pile[2])
    assert after.restricted_card == pile[1]
    assert after.player.holds("cups-8") and after.player.holds("hearts-13")
    assert len(after.player.hand) == 4
    assert after.history[-1].card_count == 2

    whole = game.draw_from_discard(state, 0)
    assert whole.discard_pile == ()
    assert len(whole.player.hand) == 5


def test_draw_from_discard_rejects_bad_index(table):
    state = table([card("swords", 1)], discard=[card("spade", 2)])
    assert game.draw_from_discard(state, 1) is state
    assert game.draw_from_discard(state, -1) is state


def test_empty_draw_pile_reshuffles_all_but_top_discard(table):
    state = table([card("swords", 1), card("swords", 2)], draw=[])
    old_discards = state.discard_pile
    after = game.draw_from_deck(state, Random(8))
    assert after.discard_pile == (old_discards[-1],)
    drawn = [c for c in after.player.hand if c.id not in {"swords-1", "swords-2"}]
    assert len(drawn) == 1
    assert sorted(c.id for c in after.draw_pile + tuple(drawn)) == sorted(c.id for c in old_discards[:-1])
    assert [entry.kind for entry in after.history[-2:]] == ["reshuffle", "draw_deck"]
    assert invariant_errors(after) == []


def test_nothing_to_draw_is_rejected(table):
    rest = [c for c in build_deck() if c.id not in {"swords-1", "cups-5"}]
    state = table([card("swords", 1)], rest, draw=[], discard=[card("cups", 5)])
    assert game.draw_from_deck(state) is state


# Melds ----------------------------------------------------------------------


def test_play_meld_moves_cards_to_table(table):
    run = [card("spade", 5), card("spade", 6), card("spade", 7)]
    state = table(run + [card("cups", 2)], turn_phase=TurnPhase.PLAY)
    after = game.play_meld(state, run)
    assert [c.id for c in after.player.hand] == ["cups-2"]
    (played,) = after.melds
    assert played.id == "meld-1"
    assert played.owner is Seat.PLAYER
    assert after.next_meld_id == 2
    assert after.history[-1].kind == "play_meld"
    assert invariant_errors(after) == []


def test_play_meld_rules(table):
    run = [card("spade", 5), card("spade", 6), card("spade", 7)]
    state = table(run + [card("cups", 2)], turn_phase=TurnPhase.PLAY)
    drawing = replace(state, turn_phase=TurnPhase.DRAW)
    assert game.play_meld(drawing, run) is drawing
    # not a meld
    assert game.play_meld(state, [run[0], run[1], card("cups", 2)]) is state
    # card not held
    assert game.play_meld(state, [run[0], run[1], card("spade", 8)]) is state
    # same card twice
    assert game.play_meld(state, [run[0], run[1], run[1]]) is state


def test_play_meld_must_leave_a_discard(table):
    run = [card("spade", 5), card("spade", 6), card("spade", 7)]
    bare = table(run, turn_phase=TurnPhase.PLAY)
    assert game.play_meld(bare, run) is bare

    restricted = card("cups", 2)
    only_restricted = table(run + [restricted], turn_phase=TurnPhase.PLAY, drawn_from_discard=[restricted])
    assert game.play_meld(only_restricted, run) is only_restricted


def test_add_to_any_open_meld(table):
    theirs = meld("meld-1", [card("swords", 7), card("cups", 7), card("hearts", 7)], owner=Seat.OPPONENT)
    state = table([card("spade", 7), card("cups", 2)], melds=[theirs], turn_phase=TurnPhase.PLAY)
    after = game.add_to_meld(state, card("spade", 7), "meld-1")
    assert len(after.melds[0].cards) == 4
    assert after.melds[0].owner is Seat.OPPONENT
    assert [c.id for c in after.player.hand] == ["cups-2"]
    assert after.history[-1].kind == "add_to_meld"
    assert game.add_to_meld(state, card("cups", 2), "meld-1") is state
    assert game.add_to_meld(state, card("spade", 7), "meld-9") is state


def test_add_to_meld_must_leave_a_discard(table):
    trio = meld("meld-1", [card("swords", 7), card("cups", 7), card("hearts", 7)])
    state = table([card("spade", 7)], melds=[trio], turn_phase=TurnPhase.PLAY)
    assert game.add_to_meld(state, card("spade", 7), "meld-1") is state


def test_replace_joker_returns_joker_to_hand(table):
    run = meld("meld-1", [card("spade", 5), joker("cups"), card("spade", 7)], owner=Seat.OPPONENT)
    state = table([card("spade", 6), card("hearts", 11)], melds=[run], turn_phase=TurnPhase.PLAY)
    after = game.replace_joker(state, card("spade", 6), "meld-1")
    assert [c.id for c in after.melds[0].cards] == ["spade-5", "spade-6", "spade-7"]
    assert after.player.holds("joker-cups")
    assert not after.player.holds("spade-6")
    assert after.history[-1].joker_id == "joker-cups"
    assert invariant_errors(after) == []

    assert game.replace_joker(state, card("hearts", 11), "meld-1") is state


def test_close_and_open_are_owner_only(table):
    mine = meld("meld-1", [card("spade", 5), card("spade", 6), card("spade", 7)])
    state = table([card("spade", 8), card("cups", 2)], melds=[mine], turn_phase=TurnPhase.PLAY)

    closed = game.close_meld(state, "meld-1")
    assert closed.melds[0].closed
    assert closed.history[-1].kind == "close_meld"
    assert game.close_meld(closed, "meld-1") is closed
    assert game.add_to_meld(closed, card("spade", 8), "meld-1") is closed

    their_turn = replace(closed, current=Seat.OPPONENT)
    assert game.open_meld(their_turn, "meld-1") is their_turn

    reopened = game.open_meld(closed, "meld-1")
    assert not reopened.melds[0].closed
    assert game.add_to_meld(reopened, card("spade", 8), "meld-1") is not reopened


# Discard --------------------------------------------------------------------


def test_first_card_of_discard_slice_cannot_be_thrown_back(table):
    pile = [card("spade", 2), card("cups", 8), card("hearts", 13)]
    state = game.draw_from_discard(table([card("swords", 1), card("swords", 9)], discard=pile), 1)
    assert not game.can_discard(state, card("cups", 8))
    assert game.discard(state, card("cups", 8)) is state
    assert game.can_discard(state, card("hearts", 13))

    after = game.discard(state, card("hearts", 13))
    assert after.discard_pile[-1] == card("hearts", 13)
    assert after.current is Seat.OPPONENT
    assert after.turn_phase is TurnPhase.DRAW
    assert after.drawn_from_discard is None
    assert invariant_errors(after) == []


def test_discard_needs_play_phase_and_held_card(table):
    state = table([card("swords", 1), card("swords", 9)])
    assert game.discard(state, card("swords", 1)) is state
    playing = replace(state, turn_phase=TurnPhase.PLAY)
    assert game.discard(playing, card("cups", 4)) is playing
    assert game.discard(playing, card("swords", 1)) is not playing


def test_discard_phase_is_accepted_like_play(table):
    state = table([card("swords", 1), card("swords", 9)], turn_phase=TurnPhase.DISCARD)
    assert game.can_discard(state, card("swords", 1))


def test_going_out_scores_the_round(table):
    state = table(
        [card("swords", 5)],
        [joker("swords"), joker("cups"), card("hearts", 9)],
        turn_phase=TurnPhase.PLAY,
        scores=(4, 1),
    )
    after = game.discard(state, card("swords", 5))
    assert after.phase is GamePhase.ROUND_END
    assert after.player.score == 6
    assert after.opponent.score == -1
    assert after.history[-1].kind == "go_out"
    assert invariant_errors(after) == []


def test_going_out_without_jokers_scores_one(table):
    state = table([card("swords", 5)], [card("hearts", 9)], turn_phase=TurnPhase.PLAY)
    after = game.discard(state, card("swords", 5))
    assert (after.player.score, after.opponent.score) == (1, 0)


def test_game_over_only_above_win_score(table):
    reaching = table([card("swords", 5)], [card("hearts", 9)], turn_phase=TurnPhase.PLAY, scores=(24, 0))
    assert game.discard(reaching, card("swords", 5)).phase is GamePhase.ROUND_END

    passing = table(
        [card("swords", 5)],
        [joker("cups"), joker("spade")],
        turn_phase=TurnPhase.PLAY,
        scores=(24, 0),
    )
    after = game.discard(passing, card("swords", 5))
    assert after.phase is GamePhase.GAME_OVER
    assert after.player.score == 26
    assert game.next_round(after) is after


def test_history_is_append_only(table):
    state = table([card("swords", 1), card("swords", 9)])
    after = game.draw_from_deck(state)
    after = game.discard(after, card("swords", 1))
    assert after.history[: len(state.history)] == state.history
    assert [entry.kind for entry in after.history[len(state.history):]] == ["draw_deck", "discard"]


def test_replacing_both_jokers_of_a_run(table):
    run = meld("meld-1", [card("spade", 8), joker("cups"), card("spade", 5), joker("hearts")], owner=Seat.OPPONENT)
    state = table([card("spade", 7), card("spade", 6), card("hearts", 11)], melds=[run], turn_phase=TurnPhase.PLAY)

    once = game.replace_joker(state, card("spade", 7), "meld-1")
    assert [c.id for c in once.melds[0].cards] == ["spade-5", "joker-cups", "spade-7", "spade-8"]
    assert once.player.holds("joker-hearts")

    twice = game.replace_joker(once, card("spade", 6), "meld-1")
    assert [c.id for c in twice.melds[0].cards] == ["spade-5", "spade-6", "spade-7", "spade-8"]
    assert sorted(c.id for c in twice.player.hand) == ["hearts-11", "joker-cups", "joker-hearts"]
    assert invariant_errors(twice) == []


def test_meld_counter_must_stay_ahead_of_table(table):
    run = [card("spade", 5), card("spade", 6), card("spade", 7)]
    after = game.play_meld(table(run + [card("cups", 2)], turn_phase=TurnPhase.PLAY), run)
    assert invariant_errors(after) == []
    assert invariant_errors(replace(after, next_meld_id=1)) == ["meld id meld-1 is not below next_meld_id 1"]
