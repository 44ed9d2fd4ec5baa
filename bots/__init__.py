"""Bot strategies for Suited Rummy."""

from .base import BotStrategy, Contribution, DrawChoice, play_turn
from .heuristic import HeuristicBot
from .random_bot import RandomBot

__all__ = ["BotStrategy", "Contribution", "DrawChoice", "HeuristicBot", "RandomBot", "play_turn"]
