"""Tests for the expired-hold sweeper."""

import asyncio
import logging
import threading

import pytest

from cinema import main
from cinema.models.ticket import Ticket, TicketStatus
from cinema.services import sweeper
from cinema.services.reservations import SeatAssignment
from cinema.services.sweeper import expire_stale_holds, run_sweep
from tests.conftest import at


class TestExpireStaleHolds:
    def test_hold_expires_and_seat_is_reusable(self, db, reservations, clock, screening):
        """Hold taken at 09:50 expires at 10:00, swept at 10:00:05, re-held at 10:00:06."""
        clock.now = at(9, 50)
        first = reservations.reserve(screening.id, ["5-5"])
        assert first.expires_at == at(10)

        assert expire_stale_holds(db, at(10, 0, 5)) == 1
        db.refresh(first.tickets[0])
        assert first.tickets[0].status == TicketStatus.EXPIRED

        clock.now = at(10, 0, 6)
        second = reservations.reserve(screening.id, ["5-5"])
        assert second.ok

    def test_expiry_instant_is_inclusive(self, db, reservations, clock, screening):
        clock.now = at(9, 50)
        reservations.reserve(screening.id, ["5-5"])

        assert expire_stale_holds(db, at(9, 59, 59)) == 0
        assert expire_stale_holds(db, at(10)) == 1

    def test_idempotent(self, db, reservations, screening):
        reservations.reserve(screening.id, ["1-1", "1-2"], hold_minutes=1)

        assert expire_stale_holds(db, at(9)) == 2
        assert expire_stale_holds(db, at(9)) == 0

    def test_leaves_live_and_sold_tickets_alone(self, db, reservations, screening):
        sold = reservations.reserve(screening.id, ["2-2"])
        reservations.confirm(sold.order_token, [SeatAssignment(2, 2)])
        reservations.reserve(screening.id, ["2-3"], hold_minutes=30)
        reservations.reserve(screening.id, ["2-4"], hold_minutes=5)

        assert expire_stale_holds(db, at(8, 10)) == 1

        statuses = {
            t.seat_label: t.status
            for t in db.query(Ticket).order_by(Ticket.seat_number)
        }
        assert statuses == {
            "2-2": TicketStatus.SOLD,
            "2-3": TicketStatus.HELD,
            "2-4": TicketStatus.EXPIRED,
        }


class TestRunSweep:
    def test_uses_its_own_session(self, session_factory, reservations, screening):
        reservations.reserve(screening.id, ["7-7"], hold_minutes=1)

        assert run_sweep(session_factory, clock=lambda: at(9)) == 1
        assert run_sweep(session_factory, clock=lambda: at(9)) == 0


class StopLoop(Exception):
    pass


class TestSweepLoop:
    def _run_once(self, monkeypatch, fake_sweep):
        async def stop(seconds):
            raise StopLoop

        monkeypatch.setattr(sweeper, "run_sweep", fake_sweep)
        monkeypatch.setattr(main.asyncio, "sleep", stop)
        with pytest.raises(StopLoop):
            asyncio.run(main._hold_sweep_loop())

    def test_sweep_runs_off_the_event_loop(self, monkeypatch):
        threads = []

        def fake_sweep(session_factory):
            threads.append(threading.get_ident())
            return 0

        self._run_once(monkeypatch, fake_sweep)

        assert len(threads) == 1
        assert threads[0] != threading.get_ident()

    def test_failed_sweep_is_logged(self, monkeypatch, caplog):
        def broken_sweep(session_factory):
            raise RuntimeError("database unavailable")

        with caplog.at_level(logging.ERROR, logger="cinema.main"):
            self._run_once(monkeypatch, broken_sweep)

        assert "Error during seat hold sweep." in caplog.text
