# scheduling/utils/conflicts.py
# Pure overlap logic. Callers load the bookings; nothing here touches the DB.
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Tuple

from django.utils import timezone

from scheduling.models import ACTIVE_BOOKING_STATUSES


class SlotCandidate(NamedTuple):
    start: datetime
    end: datetime
    booking: Optional[object] = None  # the blocking booking, if occupied

    @property
    def is_free(self) -> bool:
        return self.booking is None


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Half-open overlap: [a_start, a_end) and [b_start, b_end). Touching ends don't count."""
    return a_start < b_end and a_end > b_start


def is_active_status(status) -> bool:
    return status in ACTIVE_BOOKING_STATUSES


def booking_interval(booking, default_minutes: int) -> Tuple[datetime, datetime]:
    start = booking.scheduled_at
    minutes = getattr(booking, "duration_minutes", None) or default_minutes
    return start, start + timedelta(minutes=minutes)


def _local_day(dt: datetime):
    if timezone.is_aware(dt):
        return timezone.localtime(dt).date()
    return dt.date()


def find_conflict(
    candidate_start: datetime,
    duration_minutes: int,
    bookings: Iterable,
    same_day_only: bool = True,
):
    """
    Return the first active booking whose interval overlaps
    [candidate_start, candidate_start + duration), or None.

    same_day_only restricts the scan to bookings on the candidate's local
    calendar day (calendar browsing); the write-time guard turns it off.
    """
    candidate_end = candidate_start + timedelta(minutes=duration_minutes)
    candidate_day = _local_day(candidate_start)

    for booking in bookings:
        if not is_active_status(booking.status):
            continue
        booked_start, booked_end = booking_interval(booking, duration_minutes)
        if same_day_only and _local_day(booked_start) != candidate_day:
            continue
        if intervals_overlap(candidate_start, candidate_end, booked_start, booked_end):
            return booking
    return None


def is_occupied(candidate_start, duration_minutes: int, bookings, same_day_only: bool = True) -> bool:
    return find_conflict(candidate_start, duration_minutes, bookings, same_day_only) is not None


def filter_free(candidates: Iterable[datetime], duration_minutes: int, bookings) -> List[SlotCandidate]:
    """
    Annotate every candidate with the booking that occupies it (if any).
    Order of candidates is preserved.
    """
    bookings = list(bookings)
    out: List[SlotCandidate] = []
    for start in candidates:
        out.append(SlotCandidate(
            start=start,
            end=start + timedelta(minutes=duration_minutes),
            booking=find_conflict(start, duration_minutes, bookings),
        ))
    return out


def free_starts(candidates, duration_minutes: int, bookings) -> List[datetime]:
    return [c.start for c in filter_free(candidates, duration_minutes, bookings) if c.is_free]


def within_student_window(requested_at: datetime, bookings: Iterable, window_minutes: int = 30):
    """
    Student-side check: first active booking whose start lies within
    [requested_at - window, requested_at + window], regardless of duration.
    """
    window = timedelta(minutes=window_minutes)
    lower, upper = requested_at - window, requested_at + window
    for booking in bookings:
        if not is_active_status(booking.status):
            continue
        if lower <= booking.scheduled_at <= upper:
            return booking
    return None
