"""Core engine package for Suited Rummy."""

__all__ = [
    "cards",
    "seats",
    "deck",
    "melds",
    "scoring",
    "state",
    "rules_schema",
    "game",
    "snapshot",
    "persistence",
    "service",
]
