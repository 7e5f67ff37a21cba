from typing import List, Optional
from pydantic import BaseModel


# Error responses
class ErrorResponse(BaseModel):
    error: str
    message: str


class SeatsUnavailableError(ErrorResponse):
    screening_id: str
    unavailable_seats: List[str]


class ReservationLostError(ErrorResponse):
    order_token: str
    missing_seats: List[str]


class SweepResult(BaseModel):
    expired: int
