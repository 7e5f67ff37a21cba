from uuid import UUID
from typing import List
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.api.deps import get_scheduling_service
from cinema.models.hall import Hall
from cinema.services.scheduling import SchedulingService
from cinema.schemas.hall import Hall as HallSchema, HallCreate
from cinema.schemas.screening import HallScheduleResponse, OccupiedSlot

router = APIRouter(prefix="/admin/halls", tags=["Admin - Halls"])


@router.post("/", response_model=HallSchema, status_code=status.HTTP_201_CREATED)
def create_hall(data: HallCreate, db: Session = Depends(get_db)):
    if db.query(Hall).filter(Hall.name == data.name).first():
        raise HTTPException(status_code=409, detail=f"Hall '{data.name}' already exists")
    hall = Hall(**data.model_dump())
    db.add(hall)
    db.commit()
    db.refresh(hall)
    return hall


@router.get("/", response_model=List[HallSchema])
def list_halls(db: Session = Depends(get_db)):
    return db.query(Hall).filter(Hall.is_active == True).order_by(Hall.name).all()  # noqa: E712


# ---------------------------------------------------------------------------
# Hall schedule: see what's booked in a hall on a given date
# ---------------------------------------------------------------------------


@router.get("/{hall_id}/schedule", response_model=HallScheduleResponse)
def get_hall_schedule(
    hall_id: UUID,
    day: date = Query(..., alias="date", description="Calendar day (YYYY-MM-DD)"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Show the active screenings of a hall on one day, each with the block
    it occupies including the cleaning buffer.
    """
    booked = service.day_schedule(hall_id, day)
    return HallScheduleResponse(
        hall_id=hall_id,
        date=day,
        slots=[
            OccupiedSlot(
                screening_id=b.screening_id,
                movie_title=b.movie_title,
                start_time=b.interval.start,
                occupied_until=b.interval.end,
            )
            for b in booked
        ],
    )
