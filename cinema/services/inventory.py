"""Per-screening seat availability.

Seats are not stored: a seat is a (row, seat) pair inside the hall grid.
A seat is unavailable while a ticket for it is sold, or held with an expiry
still in the future. Expired holds stop counting the moment they expire,
whether or not the sweeper has visited them yet.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, NamedTuple
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from cinema.core.errors import ValidationError
from cinema.models.hall import Hall
from cinema.models.ticket import Ticket, TicketStatus


class SeatKey(NamedTuple):
    row: int
    seat: int

    @classmethod
    def parse(cls, raw) -> "SeatKey":
        """Accept ``"3-7"``, ``(3, 7)`` or ``{"row": 3, "seat": 7}``."""
        try:
            if isinstance(raw, str):
                row, seat = raw.split("-")
                return cls(int(row), int(seat))
            if isinstance(raw, dict):
                return cls(int(raw["row"]), int(raw["seat"]))
            row, seat = raw
            return cls(int(row), int(seat))
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Invalid seat key: {raw!r}", seat=str(raw))

    def __str__(self) -> str:
        return f"{self.row}-{self.seat}"

    def within(self, hall: Hall) -> bool:
        return 1 <= self.row <= hall.rows_count and 1 <= self.seat <= hall.seats_per_row


def parse_seat_keys(raw_seats: Iterable, hall: Hall, max_seats: int | None = None) -> list[SeatKey]:
    """Validate a requested seat set against the hall grid."""
    seats = [SeatKey.parse(raw) for raw in raw_seats]
    if not seats:
        raise ValidationError("At least one seat is required")
    if max_seats is not None and len(seats) > max_seats:
        raise ValidationError(f"At most {max_seats} seats can be held at once")
    if len(set(seats)) != len(seats):
        raise ValidationError("Duplicate seats in request")
    outside = [str(s) for s in seats if not s.within(hall)]
    if outside:
        raise ValidationError("Seats outside the hall", seats=outside)
    return seats


def occupying_filter(now: datetime):
    """SQL condition for tickets that keep their seat taken at ``now``."""
    return or_(
        Ticket.status == TicketStatus.SOLD,
        and_(Ticket.status == TicketStatus.HELD, Ticket.expires_at > now),
    )


@dataclass(frozen=True)
class SeatState:
    row: int
    seat: int
    status: str  # available, held, sold


@dataclass(frozen=True)
class SeatMap:
    screening_id: UUID
    rows: list[list[SeatState]]

    @property
    def available_count(self) -> int:
        return sum(1 for row in self.rows for s in row if s.status == "available")


class SeatInventory:
    """Read side of the reservation engine."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def _occupying(self, screening_id: UUID, now: datetime, seats: Iterable[SeatKey] | None = None):
        query = self._db.query(Ticket).filter(
            Ticket.screening_id == screening_id,
            occupying_filter(now),
        )
        if seats is not None:
            keys = [tuple(s) for s in seats]
            if not keys:
                return []
            query = query.filter(
                or_(*[and_(Ticket.row_number == r, Ticket.seat_number == s) for r, s in keys])
            )
        return query.all()

    def unavailable(
        self, screening_id: UUID, now: datetime, seats: Iterable[SeatKey] | None = None
    ) -> set[SeatKey]:
        """Sold seats plus seats held past ``now``, optionally narrowed to ``seats``."""
        return {
            SeatKey(t.row_number, t.seat_number)
            for t in self._occupying(screening_id, now, seats)
        }

    def seat_map(self, screening, now: datetime) -> SeatMap:
        hall = screening.hall
        taken = {
            (t.row_number, t.seat_number): t.status
            for t in self._occupying(screening.id, now)
        }
        rows = [
            [
                SeatState(row=r, seat=s, status=taken.get((r, s), "available"))
                for s in range(1, hall.seats_per_row + 1)
            ]
            for r in range(1, hall.rows_count + 1)
        ]
        return SeatMap(screening_id=screening.id, rows=rows)
