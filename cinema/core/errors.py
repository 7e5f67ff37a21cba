"""Error codes and exceptions raised by the cinema services.

Conflicts on a requested slot or seat set are not exceptions: the services
return them as values (see ``ScheduleConflict`` and ``SeatConflict``).
Database errors are never wrapped here; they propagate to the caller.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable machine-readable error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    NOT_FOUND = "NOT_FOUND"
    RESERVATION_LOST = "RESERVATION_LOST"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"


class CinemaError(Exception):
    """Base error with code and user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict:
        return {"error": self.code.value, "message": self.message, **self.details}


class ValidationError(CinemaError):
    """Malformed input, rejected before any transaction is opened."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 422


class BusinessRuleViolation(CinemaError):
    """Well-formed input that breaks a scheduling or refund rule."""

    code = ErrorCode.BUSINESS_RULE_VIOLATION
    status_code = 422


class NotFoundError(CinemaError):
    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity} not found", entity=entity, id=str(entity_id))


class ReservationLost(CinemaError):
    """A payment was confirmed but the holds it pays for are gone.

    Needs manual reconciliation or a refund, so it is never folded into a
    plain seat conflict.
    """

    code = ErrorCode.RESERVATION_LOST
    status_code = 409

    def __init__(self, order_token: str, missing_seats: list[str]) -> None:
        super().__init__(
            "Reservation expired or no longer exists for this order",
            order_token=order_token,
            missing_seats=missing_seats,
        )
        self.order_token = order_token
        self.missing_seats = missing_seats


class ConcurrentUpdateError(CinemaError):
    """Another writer committed a conflicting row first. Safe to retry."""

    code = ErrorCode.CONCURRENT_UPDATE
    status_code = 409
    retryable = True
