"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database and a frozen clock.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cinema.core.config import ReservationRules, ScheduleRules
from cinema.db.base import Base
from cinema.models.hall import Hall
from cinema.models.movie import Movie
from cinema.models.screening import Screening
from cinema.services.notifier import Notifier
from cinema.services.reservations import ReservationService
from cinema.services.scheduling import SchedulingService

DAY = datetime(2030, 5, 14)


def at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute, second=second)


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.notices = []

    def screening_cancelled(self, notice) -> None:
        self.notices.append(notice)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(at(8))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def schedule_rules() -> ScheduleRules:
    return ScheduleRules()


@pytest.fixture
def reservation_rules() -> ReservationRules:
    return ReservationRules()


@pytest.fixture
def scheduler(db, schedule_rules, clock) -> SchedulingService:
    return SchedulingService(db, schedule_rules, clock)


@pytest.fixture
def reservations(db, reservation_rules, clock) -> ReservationService:
    return ReservationService(db, reservation_rules, clock)


@pytest.fixture
def make_hall(db):
    counter = iter(range(1, 1000))

    def _make(rows: int = 8, seats: int = 21, name: str | None = None) -> Hall:
        hall = Hall(name=name or f"Hall {next(counter)}", rows_count=rows, seats_per_row=seats)
        db.add(hall)
        db.commit()
        return hall

    return _make


@pytest.fixture
def make_movie(db):
    def _make(duration_min: int = 120, price: str = "12.50", title: str = "Feature") -> Movie:
        movie = Movie(title=title, duration_min=duration_min, price=Decimal(price))
        db.add(movie)
        db.commit()
        return movie

    return _make


@pytest.fixture
def hall(make_hall) -> Hall:
    return make_hall()


@pytest.fixture
def screening(db, hall, make_movie) -> Screening:
    """An active screening at 14:00 that buyers can hold seats for."""
    movie = make_movie(duration_min=120, title="Main Feature")
    screening = Screening(hall_id=hall.id, movie_id=movie.id, start_time=at(14))
    db.add(screening)
    db.commit()
    return screening
