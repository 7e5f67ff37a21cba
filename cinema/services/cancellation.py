import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from cinema.core.clock import Clock, local_now
from cinema.core.errors import BusinessRuleViolation, NotFoundError
from cinema.models.payment import Refund
from cinema.models.screening import Screening
from cinema.models.ticket import Ticket, TicketStatus
from cinema.services.notifier import CancellationNotice, Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationSummary:
    screening_id: UUID
    refunded: int
    released: int
    refunded_amount: Decimal
    notified: int


class ScreeningCancellationService:
    """Admin cancellation of a screening.

    The screening leaves the hall's timeline, sold tickets are refunded,
    pending holds are released, and one notice per refunded ticket goes to
    the notifier once the transaction has committed.
    """

    def __init__(self, db: Session, notifier: Notifier, clock: Clock = local_now) -> None:
        self._db = db
        self._notifier = notifier
        self._clock = clock

    def cancel(self, screening_id: UUID, reason: str | None = None) -> CancellationSummary:
        now = self._clock()
        notices: list[CancellationNotice] = []
        try:
            screening = (
                self._db.query(Screening)
                .filter(Screening.id == screening_id)
                .with_for_update()
                .first()
            )
            if not screening:
                raise NotFoundError("Screening", screening_id)
            if screening.is_cancelled:
                raise BusinessRuleViolation(
                    "Screening is already cancelled", screening_id=str(screening_id)
                )
            if screening.start_time <= now:
                raise BusinessRuleViolation(
                    "Cannot cancel a screening that has already started",
                    screening_id=str(screening_id),
                )

            screening.is_cancelled = True
            screening.cancelled_at = now
            movie_title = screening.movie.title
            hall_name = screening.hall.name
            refund_reason = reason or f"Screening of '{movie_title}' cancelled by the cinema"

            sold = (
                self._db.query(Ticket)
                .filter(Ticket.screening_id == screening_id, Ticket.status == TicketStatus.SOLD)
                .with_for_update()
                .all()
            )
            total = Decimal("0")
            for ticket in sold:
                amount = ticket.price or Decimal("0")
                ticket.status = TicketStatus.REFUNDED
                ticket.refunded_at = now
                self._db.add(Refund(
                    ticket_id=ticket.id,
                    order_token=ticket.order_token,
                    amount=amount,
                    reason=refund_reason,
                ))
                total += Decimal(amount)
                notices.append(CancellationNotice(
                    ticket_id=ticket.id,
                    movie_title=movie_title,
                    hall_name=hall_name,
                    start_time=screening.start_time,
                    refund_amount=Decimal(amount),
                    recipient_contact=ticket.contact,
                ))

            released = (
                self._db.query(Ticket)
                .filter(Ticket.screening_id == screening_id, Ticket.status == TicketStatus.HELD)
                .update(
                    {"status": TicketStatus.RELEASED, "expires_at": None},
                    synchronize_session="fetch",
                )
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(
            "Screening %s cancelled: %d ticket(s) refunded (%s), %d hold(s) released.",
            screening_id, len(sold), total, released,
        )

        notified = 0
        for notice in notices:
            try:
                self._notifier.screening_cancelled(notice)
                notified += 1
            except Exception:
                # Delivery failures must not undo a committed cancellation
                logger.exception("Failed to deliver cancellation notice for ticket %s.", notice.ticket_id)

        return CancellationSummary(
            screening_id=screening_id,
            refunded=len(sold),
            released=released,
            refunded_amount=total,
            notified=notified,
        )
