"""Validation schema for Suited Rummy rules configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .deck import DECK_SIZE

DEFAULT_BOT_NAMES = (
    "Rummy Rex",
    "Card Shark",
    "Meld Master",
    "Lucky Draw",
    "Wild Card",
    "Ace Hunter",
)


class RuleSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    hand_size: int = Field(10, ge=1, description="Cards dealt to each player at the start of a round.")
    win_score: int = Field(25, ge=1, description="The game ends once a score strictly exceeds this value.")
    joker_penalty: int = Field(1, ge=0, description="Points lost per joker left in the loser's hand.")
    min_go_out_points: int = Field(1, ge=0, description="Minimum points awarded for going out.")
    bot_names: tuple[str, ...] = Field(default=DEFAULT_BOT_NAMES)
    bot_delay_seconds: float = Field(
        1.2,
        ge=0,
        description="Pause a presentation layer may insert between bot steps.",
    )

    @field_validator("hand_size")
    @classmethod
    def hand_fits_deck(cls, value: int) -> int:
        # Two hands plus the discard seed come out of a 56-card deck.
        if 2 * value + 1 > DECK_SIZE:
            raise ValueError("Two hands and a discard seed must fit in the deck.")
        return value

    @field_validator("bot_names")
    @classmethod
    def ensure_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        names = tuple(name.strip() for name in value if name.strip())
        if not names:
            raise ValueError("At least one bot name is required.")
        return names

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RuleSet":
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(payload)


DEFAULT_RULES = RuleSet()
