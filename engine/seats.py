"""The two seats at the table."""

from __future__ import annotations

from enum import Enum


class Seat(Enum):
    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def other(self) -> "Seat":
        return Seat.OPPONENT if self is Seat.PLAYER else Seat.PLAYER

    def __str__(self) -> str:
        return self.value
