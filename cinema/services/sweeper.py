import logging
from datetime import datetime

from sqlalchemy.orm import Session, sessionmaker

from cinema.core.clock import Clock, local_now
from cinema.models.ticket import Ticket, TicketStatus

logger = logging.getLogger(__name__)


def expire_stale_holds(db: Session, now: datetime) -> int:
    """
    Mark as expired every held ticket whose hold ran out at or before ``now``.

    One bulk UPDATE guarded by the expiry predicate: a hold confirmed or
    released in the meantime no longer matches and is left alone. Running it
    again immediately finds nothing to do.

    Returns the number of holds expired.
    """
    try:
        count = (
            db.query(Ticket)
            .filter(
                Ticket.status == TicketStatus.HELD,
                Ticket.expires_at <= now,
            )
            .update({"status": TicketStatus.EXPIRED}, synchronize_session="fetch")
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return count


def run_sweep(session_factory: sessionmaker, clock: Clock = local_now) -> int:
    """Open a session, expire stale holds, close the session."""
    db = session_factory()
    try:
        count = expire_stale_holds(db, clock())
    finally:
        db.close()
    if count:
        logger.info("Expired %d stale seat hold(s).", count)
    return count
