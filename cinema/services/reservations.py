"""Seat holds, sales and refunds.

Ticket lifecycle::

    held ──confirm──▶ sold ──cancel_sale──▶ refunded
      │
      ├──release / cancel_order──▶ released
      └──TTL elapsed (sweeper or next reserve)──▶ expired

Every operation reads the clock once and runs in a single transaction. The
partial unique index on occupying tickets is the final arbiter when two
buyers race for the same seat: the loser's insert fails, its transaction is
rolled back, and it gets a ``SeatConflict`` with nothing written.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from cinema.core.clock import Clock, local_now
from cinema.core.config import ReservationRules
from cinema.core.errors import (
    BusinessRuleViolation,
    NotFoundError,
    ReservationLost,
    ValidationError,
)
from cinema.models.payment import PaymentRecord, Refund
from cinema.models.screening import Screening
from cinema.models.ticket import Ticket, TicketStatus
from cinema.services.inventory import SeatInventory, SeatKey, parse_seat_keys

logger = logging.getLogger(__name__)


def _new_token() -> str:
    return secrets.token_hex(16)


@dataclass(frozen=True)
class SeatConflict:
    """Some requested seats are taken; no hold was created."""

    screening_id: UUID
    seats: list[SeatKey]


@dataclass(frozen=True)
class ReservationResult:
    order_token: str | None = None
    tickets: list[Ticket] = field(default_factory=list)
    expires_at: datetime | None = None
    conflict: SeatConflict | None = None

    @property
    def ok(self) -> bool:
        return self.conflict is None


@dataclass(frozen=True)
class SeatAssignment:
    """One seat of a paid order, with the price actually charged if known."""

    row: int
    seat: int
    price: Decimal | None = None

    @property
    def key(self) -> SeatKey:
        return SeatKey(self.row, self.seat)


@dataclass(frozen=True)
class ConfirmResult:
    payment: PaymentRecord
    tickets: list[Ticket]
    duplicate: bool = False


@dataclass(frozen=True)
class TicketView:
    """A buyer's ticket as seen from their ticket list at one instant."""

    ticket: Ticket
    is_future: bool
    is_cancellable: bool
    cancellation_deadline: datetime


@dataclass(frozen=True)
class BuyerTickets:
    upcoming: list[TicketView] = field(default_factory=list)
    past: list[TicketView] = field(default_factory=list)
    refunded: list[TicketView] = field(default_factory=list)


class ReservationService:
    def __init__(self, db: Session, rules: ReservationRules, clock: Clock = local_now) -> None:
        self._db = db
        self._rules = rules
        self._clock = clock
        self._inventory = SeatInventory(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _bookable_screening(self, screening_id: UUID, now: datetime, *, lock: bool = False) -> Screening:
        query = self._db.query(Screening).filter(Screening.id == screening_id)
        if lock:
            # Same row lock as ScreeningCancellationService.cancel takes
            query = query.populate_existing().with_for_update()
        screening = query.first()
        if not screening:
            raise NotFoundError("Screening", screening_id)
        if screening.is_cancelled:
            raise BusinessRuleViolation("Screening has been cancelled", screening_id=str(screening_id))
        if screening.start_time <= now:
            raise BusinessRuleViolation("Screening has already started", screening_id=str(screening_id))
        return screening

    def _expire_stale(self, screening_id: UUID, now: datetime) -> int:
        return (
            self._db.query(Ticket)
            .filter(
                Ticket.screening_id == screening_id,
                Ticket.status == TicketStatus.HELD,
                Ticket.expires_at <= now,
            )
            .update({"status": TicketStatus.EXPIRED}, synchronize_session="fetch")
        )

    def _release(self, filters) -> int:
        try:
            count = (
                self._db.query(Ticket)
                .filter(Ticket.status == TicketStatus.HELD, *filters)
                .update(
                    {"status": TicketStatus.RELEASED, "expires_at": None},
                    synchronize_session="fetch",
                )
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return count

    # ------------------------------------------------------------------
    # Holds
    # ------------------------------------------------------------------

    def reserve(
        self,
        screening_id: UUID,
        seats: Iterable,
        *,
        user_id: UUID | None = None,
        contact: str | None = None,
        hold_minutes: int | None = None,
    ) -> ReservationResult:
        """Hold every requested seat, or none of them.

        ``seats`` accepts ``SeatKey`` values or anything ``SeatKey.parse``
        understands. Returns a result carrying either the new held tickets
        with their shared order token, or a ``SeatConflict``.

        Raises:
            ValidationError: bad seat keys or hold duration.
            NotFoundError: unknown screening.
            BusinessRuleViolation: screening cancelled or already started.
        """
        ttl = self._rules.hold_ttl_minutes if hold_minutes is None else hold_minutes
        if ttl <= 0:
            raise ValidationError("Hold duration must be positive")

        now = self._clock()
        screening = self._bookable_screening(screening_id, now)
        keys = parse_seat_keys(seats, screening.hall, self._rules.max_seats_per_hold)
        expires_at = now + timedelta(minutes=ttl)
        order_token = _new_token()

        try:
            # The screening may have been cancelled since the check above
            self._bookable_screening(screening_id, now, lock=True)

            # Free seats whose holds ran out so the unique index does not count them
            self._expire_stale(screening_id, now)

            taken = self._inventory.unavailable(screening_id, now, keys)
            if taken:
                self._db.rollback()
                logger.warning(
                    "Seat conflict on screening %s: %s", screening_id,
                    ", ".join(str(k) for k in sorted(taken)),
                )
                return ReservationResult(conflict=SeatConflict(screening_id, sorted(taken)))

            tickets = [
                Ticket(
                    screening_id=screening_id,
                    user_id=user_id,
                    contact=contact,
                    row_number=key.row,
                    seat_number=key.seat,
                    status=TicketStatus.HELD,
                    expires_at=expires_at,
                    access_token=_new_token(),
                    order_token=order_token,
                )
                for key in keys
            ]
            self._db.add_all(tickets)
            self._db.commit()
        except IntegrityError:
            # Lost the race: a concurrent buyer committed one of these seats first
            self._db.rollback()
            taken = self._inventory.unavailable(screening_id, now, keys) or set(keys)
            logger.warning("Concurrent hold on screening %s rejected.", screening_id)
            return ReservationResult(conflict=SeatConflict(screening_id, sorted(taken)))
        except Exception:
            self._db.rollback()
            raise

        logger.info(
            "Held %d seat(s) on screening %s until %s (order %s).",
            len(tickets), screening_id, expires_at, order_token,
        )
        return ReservationResult(order_token=order_token, tickets=tickets, expires_at=expires_at)

    def release(self, user_id: UUID, screening_id: UUID | None = None) -> int:
        """Release the user's unexpired holds. Returns how many were released."""
        now = self._clock()
        filters = [Ticket.user_id == user_id, Ticket.expires_at > now]
        if screening_id is not None:
            filters.append(Ticket.screening_id == screening_id)
        count = self._release(filters)
        if count:
            logger.info("Released %d hold(s) for user %s.", count, user_id)
        return count

    def cancel_order(self, order_token: str) -> int:
        """Payment was cancelled: give the order's held seats back."""
        count = self._release([Ticket.order_token == order_token])
        if count:
            logger.info("Released %d hold(s) for cancelled order %s.", count, order_token)
        return count

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def _existing_confirmation(self, order_token: str) -> ConfirmResult | None:
        payment = self._db.query(PaymentRecord).filter(PaymentRecord.order_token == order_token).first()
        if not payment:
            return None
        tickets = (
            self._db.query(Ticket)
            .filter(Ticket.order_token == order_token, Ticket.sold_at != None)  # noqa: E711
            .order_by(Ticket.row_number, Ticket.seat_number)
            .all()
        )
        return ConfirmResult(payment=payment, tickets=tickets, duplicate=True)

    def confirm(self, order_token: str, assignments: Iterable[SeatAssignment]) -> ConfirmResult:
        """Turn the order's holds into sales. Safe to call more than once.

        A repeated confirmation for an order that already has a payment
        record is a no-op returning the original outcome.

        Raises:
            ValidationError: empty or duplicate assignments, bad price.
            ReservationLost: some paid seats are no longer held by this order,
                or the screening was cancelled before the payment arrived.
        """
        assignments = list(assignments)
        if not order_token:
            raise ValidationError("Order token is required")
        if not assignments:
            raise ValidationError("At least one seat assignment is required")
        keys = [a.key for a in assignments]
        if len(set(keys)) != len(keys):
            raise ValidationError("Duplicate seats in payment confirmation")
        for a in assignments:
            if a.price is not None and a.price < 0:
                raise ValidationError(f"Invalid price for seat {a.key}", seat=str(a.key))

        existing = self._existing_confirmation(order_token)
        if existing:
            logger.info("Duplicate confirmation for order %s ignored.", order_token)
            return existing

        now = self._clock()
        try:
            screening_id = (
                self._db.query(Ticket.screening_id)
                .filter(Ticket.order_token == order_token)
                .limit(1)
                .scalar()
            )
            # Lock the screening before its tickets, in the same order a cancellation does
            screening = None
            if screening_id is not None:
                screening = (
                    self._db.query(Screening)
                    .filter(Screening.id == screening_id)
                    .populate_existing()
                    .with_for_update()
                    .first()
                )
            held = []
            if screening is not None and not screening.is_cancelled:
                held = (
                    self._db.query(Ticket)
                    .filter(
                        Ticket.order_token == order_token,
                        Ticket.status == TicketStatus.HELD,
                        Ticket.expires_at > now,
                    )
                    .with_for_update()
                    .all()
                )
            by_key = {SeatKey(t.row_number, t.seat_number): t for t in held}
            missing = [str(k) for k in keys if k not in by_key]
            if missing:
                # A concurrent delivery of this confirmation may have committed while we waited
                existing = self._existing_confirmation(order_token)
                if existing:
                    self._db.rollback()
                    logger.info("Concurrent duplicate confirmation for order %s ignored.", order_token)
                    return existing
                logger.warning(
                    "Reservation lost for paid order %s, seats %s.", order_token, ", ".join(missing)
                )
                raise ReservationLost(order_token, missing)

            base_price = screening.movie.price
            sold = []
            for a in assignments:
                ticket = by_key.pop(a.key)
                ticket.status = TicketStatus.SOLD
                ticket.price = a.price if a.price is not None else base_price
                ticket.sold_at = now
                ticket.expires_at = None
                sold.append(ticket)

            # Holds in the order that were not paid for go back on sale
            for leftover in by_key.values():
                leftover.status = TicketStatus.RELEASED
                leftover.expires_at = None

            payment = PaymentRecord(
                order_token=order_token,
                amount=sum((Decimal(t.price) for t in sold), Decimal("0")),
                ticket_count=len(sold),
            )
            self._db.add(payment)
            self._db.commit()
        except IntegrityError:
            # Another delivery of the same confirmation got there first
            self._db.rollback()
            existing = self._existing_confirmation(order_token)
            if existing:
                logger.info("Concurrent duplicate confirmation for order %s ignored.", order_token)
                return existing
            raise
        except Exception:
            self._db.rollback()
            raise

        logger.info("Order %s confirmed: %d ticket(s) sold.", order_token, len(sold))
        return ConfirmResult(payment=payment, tickets=sold)

    def cancel_sale(
        self,
        ticket_id: UUID,
        *,
        user_id: UUID | None = None,
        enforce_deadline: bool = False,
        reason: str | None = None,
    ) -> Ticket:
        """Mark a sold ticket refunded and free its seat.

        Refunding an already refunded ticket is a no-op. ``user_id`` limits
        the lookup to that buyer's tickets; ``enforce_deadline`` applies the
        buyer-facing cancellation cut-off before the screening starts.
        """
        now = self._clock()
        try:
            query = self._db.query(Ticket).filter(Ticket.id == ticket_id)
            if user_id is not None:
                query = query.filter(Ticket.user_id == user_id)
            ticket = query.with_for_update().first()
            if not ticket:
                raise NotFoundError("Ticket", ticket_id)
            if ticket.status == TicketStatus.REFUNDED:
                self._db.rollback()
                return ticket
            if ticket.status != TicketStatus.SOLD:
                raise BusinessRuleViolation(
                    f"Only sold tickets can be refunded (current status: '{ticket.status}')",
                    ticket_id=str(ticket_id),
                )
            if enforce_deadline:
                if now > self._refund_deadline(ticket.screening):
                    raise BusinessRuleViolation(
                        f"Tickets can be cancelled no later than "
                        f"{self._rules.refund_deadline_minutes} minutes before the screening",
                        ticket_id=str(ticket_id),
                    )

            ticket.status = TicketStatus.REFUNDED
            ticket.refunded_at = now
            self._db.add(Refund(
                ticket_id=ticket.id,
                order_token=ticket.order_token,
                amount=ticket.price or Decimal("0"),
                reason=reason or "Cancelled by customer",
            ))
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        self._db.refresh(ticket)
        logger.info("Ticket %s refunded (%s).", ticket_id, ticket.price)
        return ticket

    # ------------------------------------------------------------------
    # Buyer lookups
    # ------------------------------------------------------------------

    def _refund_deadline(self, screening: Screening) -> datetime:
        return screening.start_time - timedelta(minutes=self._rules.refund_deadline_minutes)

    def _view(self, ticket: Ticket, now: datetime) -> TicketView:
        screening = ticket.screening
        deadline = self._refund_deadline(screening)
        return TicketView(
            ticket=ticket,
            is_future=screening.start_time > now,
            is_cancellable=(
                ticket.status == TicketStatus.SOLD
                and not screening.is_cancelled
                and now <= deadline
            ),
            cancellation_deadline=deadline,
        )

    def _buyer_query(self, user_id: UUID):
        return (
            self._db.query(Ticket)
            .join(Ticket.screening)
            .options(
                joinedload(Ticket.screening).joinedload(Screening.movie),
                joinedload(Ticket.screening).joinedload(Screening.hall),
            )
            .filter(
                Ticket.user_id == user_id,
                Ticket.status.in_([TicketStatus.SOLD, TicketStatus.REFUNDED]),
            )
        )

    def buyer_tickets(self, user_id: UUID) -> BuyerTickets:
        """Sold and refunded tickets of a buyer, grouped for their ticket list.

        Upcoming and past hold sold tickets by screening start, nearest
        first; refunded ones are listed separately whatever their date.
        """
        now = self._clock()
        tickets = (
            self._buyer_query(user_id)
            .order_by(Screening.start_time, Ticket.row_number, Ticket.seat_number)
            .all()
        )
        result = BuyerTickets()
        for ticket in tickets:
            view = self._view(ticket, now)
            if ticket.status == TicketStatus.REFUNDED:
                result.refunded.append(view)
            elif view.is_future:
                result.upcoming.append(view)
            else:
                result.past.append(view)
        return result

    def buyer_ticket(self, ticket_id: UUID, user_id: UUID) -> TicketView:
        """One ticket of a buyer, with its access token. Other buyers' tickets are not found."""
        ticket = self._buyer_query(user_id).filter(Ticket.id == ticket_id).first()
        if not ticket:
            raise NotFoundError("Ticket", ticket_id)
        return self._view(ticket, self._clock())
