from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cinema.api.deps import get_clock
from cinema.core.clock import Clock
from cinema.db.session import get_db
from cinema.schemas.common import SweepResult
from cinema.services.sweeper import expire_stale_holds

router = APIRouter(prefix="/admin/holds", tags=["Admin - Seat Holds"])


@router.post("/sweep", response_model=SweepResult)
def sweep_expired_holds(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Expire stale seat holds now instead of waiting for the background sweep."""
    return SweepResult(expired=expire_stale_holds(db, clock()))
