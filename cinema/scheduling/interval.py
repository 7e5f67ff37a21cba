"""Occupied intervals on a hall's timeline.

A screening occupies its hall from the start of the show until the end of
the cleaning buffer that follows it. Intervals are half-open, so a screening
may start exactly when the previous one's buffer ends.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from cinema.core.errors import ValidationError


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open wall-clock span ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValidationError("Interval cannot end before it starts")

    @classmethod
    def for_screening(
        cls, start: datetime, duration_minutes: int, buffer_minutes: int
    ) -> "Interval":
        if duration_minutes < 0 or buffer_minutes < 0:
            raise ValidationError("Duration and cleaning buffer must be non-negative")
        return cls(start, start + timedelta(minutes=duration_minutes + buffer_minutes))

    @property
    def length(self) -> timedelta:
        return self.end - self.start

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end


def overlaps(a: Interval, b: Interval) -> bool:
    """True iff the two spans share any instant. Touching endpoints do not."""
    return a.start < b.end and b.start < a.end


def conflicts(candidate: Interval, booked: Iterable[Interval]) -> list[Interval]:
    return [interval for interval in booked if overlaps(candidate, interval)]
