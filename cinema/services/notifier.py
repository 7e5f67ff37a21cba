"""Outbound notices for buyers affected by a cancelled screening.

Delivery (e-mail, messenger bots) lives outside this service; it plugs in by
implementing ``Notifier``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationNotice:
    ticket_id: UUID
    movie_title: str
    hall_name: str
    start_time: datetime
    refund_amount: Decimal
    recipient_contact: str | None


class Notifier(ABC):
    """Interface for the notification collaborator."""

    @abstractmethod
    def screening_cancelled(self, notice: CancellationNotice) -> None:
        """Deliver one cancellation-and-refund notice."""
        ...


class LoggingNotifier(Notifier):
    """Default notifier: writes the notice to the log only."""

    def screening_cancelled(self, notice: CancellationNotice) -> None:
        logger.info(
            "Cancellation notice for ticket %s to %s: '%s' in %s at %s, refund %s.",
            notice.ticket_id,
            notice.recipient_contact or "<no contact>",
            notice.movie_title,
            notice.hall_name,
            notice.start_time,
            notice.refund_amount,
        )
