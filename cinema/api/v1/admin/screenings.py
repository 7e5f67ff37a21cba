from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from cinema.api.deps import get_cancellation_service, get_scheduling_service
from cinema.core.config import settings
from cinema.services.cancellation import ScreeningCancellationService
from cinema.services.scheduling import SchedulingService
from cinema.schemas.screening import (
    OccupiedSlot,
    ScheduleConflictResponse,
    ScreeningCancelResponse,
    ScreeningCreate,
    ScreeningDetail,
)

router = APIRouter(prefix="/admin/screenings", tags=["Admin - Screenings"])


@router.post(
    "/",
    response_model=ScreeningDetail,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ScheduleConflictResponse}},
)
def create_screening(
    data: ScreeningCreate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Schedule a movie in a hall.
    - 201 with the new screening when the hall is free.
    - 409 with the clashing screening and up to a few free start times
      for the same hall and day when it is not.
    """
    result = service.schedule(
        data.hall_id,
        data.movie_id,
        data.start_time,
        allow_past=data.allow_past or settings.ALLOW_PAST_SCHEDULING,
    )
    if result.conflict:
        clash = result.conflict.conflicting
        body = ScheduleConflictResponse(
            message=f"Hall is occupied by '{clash.movie_title}' at the requested time",
            conflicting=OccupiedSlot(
                screening_id=clash.screening_id,
                movie_title=clash.movie_title,
                start_time=clash.interval.start,
                occupied_until=clash.interval.end,
            ),
            suggestions=result.conflict.suggestions,
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))
    return result.screening


@router.post("/{screening_id}/cancel", response_model=ScreeningCancelResponse)
def cancel_screening(
    screening_id: UUID,
    service: ScreeningCancellationService = Depends(get_cancellation_service),
):
    """
    Cancel an upcoming screening.
    - Refunds every sold ticket and notifies its buyer.
    - Releases pending seat holds.
    """
    summary = service.cancel(screening_id)
    return ScreeningCancelResponse(
        screening_id=summary.screening_id,
        refunded_tickets=summary.refunded,
        released_holds=summary.released,
        refunded_amount=summary.refunded_amount,
        notified=summary.notified,
    )
