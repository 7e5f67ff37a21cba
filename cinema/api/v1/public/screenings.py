from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.api.deps import get_clock, get_reservation_rules, get_reservation_service
from cinema.core.clock import Clock
from cinema.core.config import ReservationRules
from cinema.models.screening import Screening
from cinema.services.inventory import SeatInventory
from cinema.services.reservations import ReservationService
from cinema.schemas.common import SeatsUnavailableError
from cinema.schemas.ticket import (
    HeldTicket,
    HoldReleaseResponse,
    HoldRequest,
    HoldResponse,
    SeatMapResponse,
    SeatRow,
    SeatStatus,
)

router = APIRouter(prefix="/screenings", tags=["Screenings"])


# ---------------------------------------------------------------------------
# Public: Seat map (seat selection screen)
# ---------------------------------------------------------------------------


@router.get("/{screening_id}/seat-map", response_model=SeatMapResponse)
def get_seat_map(
    screening_id: UUID,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Returns the seat grid of a screening, row by row.
    Holds whose expiry has passed show as available even before the sweeper
    has run.
    """
    screening = (
        db.query(Screening)
        .filter(Screening.id == screening_id, Screening.is_cancelled == False)  # noqa: E712
        .first()
    )
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")

    seat_map = SeatInventory(db).seat_map(screening, clock())
    return SeatMapResponse(
        screening_id=screening.id,
        start_time=screening.start_time,
        hall_name=screening.hall.name,
        movie_title=screening.movie.title,
        base_price=screening.movie.price,
        available=seat_map.available_count,
        rows=[
            SeatRow(
                row=index,
                seats=[SeatStatus(seat=s.seat, status=s.status) for s in row],
            )
            for index, row in enumerate(seat_map.rows, start=1)
        ],
    )


# ---------------------------------------------------------------------------
# Seat holds
# ---------------------------------------------------------------------------


@router.post(
    "/{screening_id}/holds",
    response_model=HoldResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": SeatsUnavailableError}},
)
def hold_seats(
    screening_id: UUID,
    body: HoldRequest,
    service: ReservationService = Depends(get_reservation_service),
    rules: ReservationRules = Depends(get_reservation_rules),
):
    """
    Hold a set of seats for checkout. Either every seat is held or none is.
    Holds expire after the configured TTL unless payment confirms them.
    """
    seats = [s if isinstance(s, str) else (s.row, s.seat) for s in body.seats]
    result = service.reserve(screening_id, seats, user_id=body.user_id, contact=body.contact)
    if result.conflict:
        body_out = SeatsUnavailableError(
            error="SEATS_UNAVAILABLE",
            message="Some of the requested seats are already held or sold",
            screening_id=str(screening_id),
            unavailable_seats=[str(k) for k in result.conflict.seats],
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body_out.model_dump())

    return HoldResponse(
        order_token=result.order_token,
        screening_id=screening_id,
        expires_at=result.expires_at,
        ttl_seconds=rules.hold_ttl_minutes * 60,
        tickets=[HeldTicket.model_validate(t) for t in result.tickets],
    )


@router.delete("/{screening_id}/holds", response_model=HoldReleaseResponse)
def release_holds(
    screening_id: UUID,
    user_id: UUID = Query(..., description="Buyer whose holds are released"),
    service: ReservationService = Depends(get_reservation_service),
):
    """Release all seat holds of a buyer for this screening (checkout abandoned)."""
    return HoldReleaseResponse(released=service.release(user_id, screening_id))
