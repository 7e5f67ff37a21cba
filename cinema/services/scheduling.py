"""Placing screenings on a hall's daily timeline.

All writes happen in one transaction that starts by locking the hall row,
so two schedulers working on the same hall are serialized and the overlap
check always sees the latest committed screenings. The partial unique index
on ``(hall_id, start_time)`` stays as a backstop.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from cinema.core.clock import Clock, local_now, to_local_naive
from cinema.core.config import ScheduleRules
from cinema.core.errors import BusinessRuleViolation, ConcurrentUpdateError, NotFoundError
from cinema.models.hall import Hall
from cinema.models.movie import Movie
from cinema.models.screening import Screening
from cinema.scheduling.interval import Interval, overlaps
from cinema.scheduling.slots import find_free_slots

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookedScreening:
    screening_id: UUID
    movie_title: str
    interval: Interval


@dataclass(frozen=True)
class ScheduleConflict:
    """The requested slot collides; nothing was written."""

    conflicting: BookedScreening
    suggestions: list[datetime] = field(default_factory=list)


@dataclass(frozen=True)
class ScheduleResult:
    screening: Screening | None = None
    conflict: ScheduleConflict | None = None

    @property
    def ok(self) -> bool:
        return self.screening is not None


class SchedulingService:
    def __init__(self, db: Session, rules: ScheduleRules, clock: Clock = local_now) -> None:
        self._db = db
        self._rules = rules
        self._clock = clock

    # ------------------------------------------------------------------
    # Business day
    # ------------------------------------------------------------------

    def day_open(self, day: date) -> datetime:
        return datetime.combine(day, time(hour=self._rules.day_open_hour))

    def latest_start(self, day: date) -> datetime:
        return datetime.combine(day, time(hour=self._rules.latest_start_hour))

    def occupied(self, start: datetime, duration_min: int) -> Interval:
        return Interval.for_screening(start, duration_min, self._rules.cleaning_buffer_minutes)

    def check_business_hours(self, start: datetime, duration_min: int) -> None:
        day = start.date()
        opens, latest = self.day_open(day), self.latest_start(day)
        if start < opens or start > latest:
            raise BusinessRuleViolation(
                f"Screenings must start between {opens:%H:%M} and {latest:%H:%M}",
                requested_start=start.isoformat(),
            )
        closing = latest + self._rules.cleaning_buffer
        if self.occupied(start, duration_min).end > closing:
            raise BusinessRuleViolation(
                f"Movie is too long ({duration_min} min) to start at {start:%H:%M}; "
                f"the hall must be free by {closing:%H:%M}",
                requested_start=start.isoformat(),
                duration_min=duration_min,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _active_on_day(self, hall_id: UUID, day: date) -> list[Screening]:
        day_start = datetime.combine(day, time.min)
        return (
            self._db.query(Screening)
            .options(joinedload(Screening.movie))
            .filter(
                Screening.hall_id == hall_id,
                Screening.is_cancelled == False,  # noqa: E712
                Screening.start_time >= day_start,
                Screening.start_time < day_start + timedelta(days=1),
            )
            .order_by(Screening.start_time)
            .all()
        )

    def day_schedule(self, hall_id: UUID, day: date) -> list[BookedScreening]:
        """Active screenings of a hall on ``day`` with their occupied intervals."""
        hall = self._db.get(Hall, hall_id)
        if not hall:
            raise NotFoundError("Hall", hall_id)
        return [
            BookedScreening(s.id, s.movie.title, self.occupied(s.start_time, s.movie.duration_min))
            for s in self._active_on_day(hall_id, day)
        ]

    def suggest(self, day: date, booked: list[BookedScreening], duration_min: int) -> list[datetime]:
        block = timedelta(minutes=duration_min) + self._rules.cleaning_buffer
        return find_free_slots(
            self.day_open(day),
            self.latest_start(day),
            [b.interval for b in booked],
            block,
            max_suggestions=self._rules.max_suggestions,
            granularity=self._rules.granularity,
            late_slack=self._rules.late_slack,
        )

    # ------------------------------------------------------------------
    # Command
    # ------------------------------------------------------------------

    def schedule(
        self,
        hall_id: UUID,
        movie_id: UUID,
        start_time: datetime,
        *,
        allow_past: bool = False,
    ) -> ScheduleResult:
        """Create an active screening, or report the collision with suggestions.

        Raises:
            BusinessRuleViolation: start in the past, outside business hours,
                or the movie cannot finish before closing.
            NotFoundError: hall or movie missing or inactive.
            ConcurrentUpdateError: another scheduler took the same start first.
        """
        start_time = to_local_naive(start_time)
        now = self._clock()
        if not allow_past and start_time < now:
            raise BusinessRuleViolation(
                "Cannot schedule a screening in the past",
                requested_start=start_time.isoformat(),
            )

        movie = self._db.query(Movie).filter(Movie.id == movie_id, Movie.is_active == True).first()  # noqa: E712
        if not movie:
            raise NotFoundError("Movie", movie_id)

        self.check_business_hours(start_time, movie.duration_min)

        try:
            hall = (
                self._db.query(Hall)
                .filter(Hall.id == hall_id, Hall.is_active == True)  # noqa: E712
                .with_for_update()
                .first()
            )
            if not hall:
                raise NotFoundError("Hall", hall_id)

            day = start_time.date()
            booked = [
                BookedScreening(s.id, s.movie.title, self.occupied(s.start_time, s.movie.duration_min))
                for s in self._active_on_day(hall.id, day)
            ]
            candidate = self.occupied(start_time, movie.duration_min)
            clash = next((b for b in booked if overlaps(candidate, b.interval)), None)
            if clash:
                suggestions = self.suggest(day, booked, movie.duration_min)
                self._db.rollback()
                logger.warning(
                    "Schedule conflict in hall %s at %s with screening %s; %d suggestion(s).",
                    hall_id, start_time, clash.screening_id, len(suggestions),
                )
                return ScheduleResult(conflict=ScheduleConflict(clash, suggestions))

            screening = Screening(hall_id=hall.id, movie_id=movie.id, start_time=start_time)
            self._db.add(screening)
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            logger.warning("Concurrent scheduling detected for hall %s at %s.", hall_id, start_time)
            raise ConcurrentUpdateError(
                "Another screening was scheduled for this hall at the same time; retry",
                hall_id=str(hall_id),
                requested_start=start_time.isoformat(),
            )
        except Exception:
            self._db.rollback()
            raise

        self._db.refresh(screening)
        logger.info(
            "Scheduled '%s' in hall %s at %s (screening %s).",
            movie.title, hall.name, start_time, screening.id,
        )
        return ScheduleResult(screening=screening)
