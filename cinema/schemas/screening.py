from typing import List, Optional
from pydantic import BaseModel, UUID4, field_validator
from decimal import Decimal
from datetime import date, datetime

from cinema.core.clock import to_local_naive
from cinema.schemas.hall import HallSummary
from cinema.schemas.movie import MovieSummary


# Screening: Create (POST /admin/screenings)
class ScreeningCreate(BaseModel):
    hall_id: UUID4
    movie_id: UUID4
    start_time: datetime
    allow_past: bool = False

    @field_validator("start_time")
    @classmethod
    def normalise_start(cls, v: datetime) -> datetime:
        # "...Z" timestamps from browsers become local wall-clock time
        return to_local_naive(v)


# Screening: DB response
class Screening(BaseModel):
    id: UUID4
    hall_id: UUID4
    movie_id: UUID4
    start_time: datetime
    is_cancelled: bool = False
    cancelled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ScreeningDetail(Screening):
    hall: Optional[HallSummary] = None
    movie: Optional[MovieSummary] = None

    class Config:
        from_attributes = True


# Occupied block on a hall's timeline, cleaning buffer included
class OccupiedSlot(BaseModel):
    screening_id: UUID4
    movie_title: str
    start_time: datetime
    occupied_until: datetime


# 409 body for POST /admin/screenings
class ScheduleConflictResponse(BaseModel):
    error: str = "SCHEDULE_CONFLICT"
    message: str
    conflicting: OccupiedSlot
    suggestions: List[datetime]


# GET /admin/halls/{id}/schedule
class HallScheduleResponse(BaseModel):
    hall_id: UUID4
    date: date
    slots: List[OccupiedSlot]


# POST /admin/screenings/{id}/cancel
class ScreeningCancelResponse(BaseModel):
    screening_id: UUID4
    refunded_tickets: int
    released_holds: int
    refunded_amount: Decimal
    notified: int
