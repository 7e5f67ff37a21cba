from fastapi import Depends
from sqlalchemy.orm import Session

from cinema.core.clock import Clock, local_now
from cinema.core.config import ReservationRules, ScheduleRules, settings
from cinema.db.session import get_db
from cinema.services.cancellation import ScreeningCancellationService
from cinema.services.notifier import LoggingNotifier, Notifier
from cinema.services.reservations import ReservationService
from cinema.services.scheduling import SchedulingService

_notifier = LoggingNotifier()


def get_clock() -> Clock:
    return local_now


def get_notifier() -> Notifier:
    return _notifier


def get_schedule_rules() -> ScheduleRules:
    return ScheduleRules.from_settings(settings)


def get_reservation_rules() -> ReservationRules:
    return ReservationRules.from_settings(settings)


def get_scheduling_service(
    db: Session = Depends(get_db),
    rules: ScheduleRules = Depends(get_schedule_rules),
    clock: Clock = Depends(get_clock),
) -> SchedulingService:
    return SchedulingService(db, rules, clock)


def get_reservation_service(
    db: Session = Depends(get_db),
    rules: ReservationRules = Depends(get_reservation_rules),
    clock: Clock = Depends(get_clock),
) -> ReservationService:
    return ReservationService(db, rules, clock)


def get_cancellation_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> ScreeningCancellationService:
    return ScreeningCancellationService(db, notifier, clock)
