from datetime import datetime
from typing import Callable

# Screening times are stored as timezone-naive local values, so the clock is too.
Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now()


def to_local_naive(ts: datetime) -> datetime:
    """Convert an offset-aware timestamp to naive local time; naive values pass through."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone().replace(tzinfo=None)
