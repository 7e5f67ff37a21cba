"""Free-slot suggestions for a hall's day.

The day is split into gaps around the booked intervals:
``(day_open, s1.start)``, ``(s1.end, s2.start)``, ..., ``(sN.end, latest_start)``.
Every gap that can take the requested block yields an "early" start at its
left edge, and gaps framed by two screenings may also yield a "late" start
that leaves the block flush against the next screening.
"""

from datetime import datetime, timedelta
from typing import Sequence

from cinema.scheduling.interval import Interval


def round_to_granularity(ts: datetime, granularity: timedelta) -> datetime:
    """Round to the nearest multiple of ``granularity`` past midnight, ties up."""
    midnight = ts.replace(hour=0, minute=0, second=0, microsecond=0)
    offset = ts - midnight
    steps = (offset + granularity / 2) // granularity
    return midnight + steps * granularity


def _early_candidate(
    gap_start: datetime,
    gap_end: datetime,
    block: timedelta,
    granularity: timedelta,
    trailing: bool,
) -> datetime | None:
    start = round_to_granularity(gap_start, granularity)
    if start < gap_start:
        # rounded down into the previous screening's buffer
        start += granularity
    if trailing:
        return start if start <= gap_end else None
    return start if start + block <= gap_end else None


def _late_candidate(
    gap_start: datetime,
    gap_end: datetime,
    block: timedelta,
    granularity: timedelta,
    late_slack: timedelta,
) -> datetime | None:
    latest = gap_end - block
    if latest - gap_start <= late_slack:
        return None
    start = round_to_granularity(latest, granularity)
    if start + block > gap_end:
        start -= granularity
    if start < gap_start or start + block > gap_end:
        return None
    return start


def find_free_slots(
    day_open: datetime,
    latest_start: datetime,
    booked: Sequence[Interval],
    block: timedelta,
    *,
    max_suggestions: int = 4,
    granularity: timedelta = timedelta(minutes=5),
    late_slack: timedelta = timedelta(minutes=15),
) -> list[datetime]:
    """Propose up to ``max_suggestions`` start times that collide with nothing.

    ``booked`` are the occupied intervals of the hall's active screenings that
    day; ``block`` is the new movie's runtime plus the cleaning buffer. The
    trailing gap only requires the start to be no later than ``latest_start``.
    Returns a sorted list without duplicates; empty when the day is full.
    """
    intervals = sorted(booked)
    proposals: list[datetime] = []

    gap_start = day_open
    for index in range(len(intervals) + 1):
        trailing = index == len(intervals)
        gap_end = latest_start if trailing else intervals[index].start

        if trailing:
            fits = gap_start <= latest_start
        else:
            fits = gap_end - gap_start >= block

        if fits:
            early = _early_candidate(gap_start, gap_end, block, granularity, trailing)
            if early is not None:
                proposals.append(early)
            # Only gaps with a real screening on both sides get a late start
            if not trailing and index > 0 and len(proposals) < max_suggestions:
                late = _late_candidate(gap_start, gap_end, block, granularity, late_slack)
                if late is not None:
                    proposals.append(late)

        if len(proposals) >= max_suggestions:
            proposals = proposals[:max_suggestions]
            break

        if not trailing:
            gap_start = max(gap_start, intervals[index].end)

    return sorted(set(proposals))
