"""Simple bot arena for Suited Rummy."""

from __future__ import annotations

import argparse
import logging
from random import Random
from typing import Dict, Iterable

from engine.game import create_session, next_round
from engine.seats import Seat
from engine.state import GamePhase, GameState

from .base import BotStrategy, play_turn
from .heuristic import HeuristicBot
from .random_bot import RandomBot

logger = logging.getLogger(__name__)

BOT_REGISTRY: Dict[str, type[BotStrategy]] = {
    "heuristic": HeuristicBot,
    "random": RandomBot,
}


def play_round(state: GameState, bots: Dict[Seat, BotStrategy], rng: Random, *, max_turns: int = 400) -> tuple[GameState, int, bool]:
    """Play until the round ends; returns ``(state, turns, stalled)``."""
    turns = 0
    while state.phase is GamePhase.PLAYING:
        if turns >= max_turns:
            logger.warning("Round %d hit the %d turn limit", state.round_number, max_turns)
            return state, turns, True
        after = play_turn(bots[state.current], state, rng)
        if after is state:
            logger.warning("Round %d stalled on %s's turn", state.round_number, state.acting.name)
            return state, turns, True
        state = after
        turns += 1
    return state, turns, False


def run_match(
    bot_a: BotStrategy,
    bot_b: BotStrategy,
    *,
    n_rounds: int = 10,
    seed: int | None = None,
    max_turns: int = 400,
) -> dict:
    rng = Random(seed)
    bots = {Seat.PLAYER: bot_a, Seat.OPPONENT: bot_b}
    state = create_session(bot_a.name, rng, opponent_name=bot_b.name)
    history = []
    for _ in range(n_rounds):
        state, turns, stalled = play_round(state, bots, rng, max_turns=max_turns)
        history.append(
            {
                "round": state.round_number,
                "turns": turns,
                "stalled": stalled,
                "scores": (state.player.score, state.opponent.score),
            }
        )
        if stalled or state.phase is GamePhase.GAME_OVER:
            break
        state = next_round(state, rng)
    return {
        "scores": [state.player.score, state.opponent.score],
        "game_over": state.phase is GamePhase.GAME_OVER,
        "history": history,
    }


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run a bot match.")
    parser.add_argument("--bot-a", default="heuristic", choices=BOT_REGISTRY.keys())
    parser.add_argument("--bot-b", default="random", choices=BOT_REGISTRY.keys())
    parser.add_argument("--n", type=int, default=10, help="Maximum number of rounds to play.")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    bot_a = BOT_REGISTRY[args.bot_a]()
    bot_b = BOT_REGISTRY[args.bot_b]()
    results = run_match(bot_a, bot_b, n_rounds=args.n, seed=args.seed)

    print(f"Scores after {len(results['history'])} rounds: {results['scores']}")
    stalled = sum(1 for entry in results["history"] if entry["stalled"])
    print(f"Game over: {results['game_over']}, stalled rounds: {stalled}")


if __name__ == "__main__":
    main()
