"""Tests for seat keys and per-screening availability."""

import pytest

from cinema.core.errors import ValidationError
from cinema.models.ticket import TicketStatus
from cinema.services.inventory import SeatInventory, SeatKey, parse_seat_keys
from cinema.services.reservations import SeatAssignment
from tests.conftest import at


class TestSeatKey:
    @pytest.mark.parametrize(
        "raw",
        ["3-7", (3, 7), [3, 7], {"row": 3, "seat": 7}, SeatKey(3, 7)],
    )
    def test_parse(self, raw):
        assert SeatKey.parse(raw) == SeatKey(3, 7)

    @pytest.mark.parametrize("raw", ["3", "3-7-1", "a-b", {"row": 3}, None, (1, 2, 3)])
    def test_parse_rejects_garbage(self, raw):
        with pytest.raises(ValidationError):
            SeatKey.parse(raw)

    def test_str(self):
        assert str(SeatKey(3, 7)) == "3-7"

    def test_parse_seat_keys_checks_hall_bounds(self, make_hall):
        hall = make_hall(rows=2, seats=3)
        assert parse_seat_keys(["2-3", "1-1"], hall) == [SeatKey(2, 3), SeatKey(1, 1)]
        with pytest.raises(ValidationError) as exc_info:
            parse_seat_keys(["2-4", "3-1"], hall)
        assert exc_info.value.details["seats"] == ["2-4", "3-1"]


class TestSeatInventory:
    def test_unavailable_counts_sold_and_live_holds(self, db, reservations, clock, screening):
        sold = reservations.reserve(screening.id, ["1-1"])
        reservations.confirm(sold.order_token, [SeatAssignment(1, 1)])
        reservations.reserve(screening.id, ["1-2"], hold_minutes=30)
        reservations.reserve(screening.id, ["1-3"], hold_minutes=5)
        inventory = SeatInventory(db)

        assert inventory.unavailable(screening.id, at(8, 1)) == {
            SeatKey(1, 1), SeatKey(1, 2), SeatKey(1, 3)
        }
        # the 1-3 hold has lapsed even though nothing has swept it yet
        assert inventory.unavailable(screening.id, at(8, 5)) == {SeatKey(1, 1), SeatKey(1, 2)}
        assert inventory.unavailable(screening.id, at(8, 5), [SeatKey(1, 2), SeatKey(4, 4)]) == {
            SeatKey(1, 2)
        }
        assert inventory.unavailable(screening.id, at(8, 5), []) == set()

    def test_seat_map(self, db, reservations, screening):
        sold = reservations.reserve(screening.id, ["2-1"])
        reservations.confirm(sold.order_token, [SeatAssignment(2, 1)])
        reservations.reserve(screening.id, ["2-2"])

        seat_map = SeatInventory(db).seat_map(screening, at(8))

        assert len(seat_map.rows) == 8
        assert len(seat_map.rows[0]) == 21
        assert seat_map.rows[1][0].status == TicketStatus.SOLD
        assert seat_map.rows[1][1].status == TicketStatus.HELD
        assert seat_map.rows[1][2].status == "available"
        assert seat_map.available_count == 8 * 21 - 2
