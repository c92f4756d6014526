# scheduling/utils/slots.py
from datetime import date as date_cls, datetime, time, timedelta
from typing import Iterable, List

from django.utils import timezone


def _dt_on(d, t: time) -> datetime:
    """
    Combine date and time, return a TZ-aware datetime using Django's timezone.
    Works with zoneinfo (no .localize).
    """
    dt = datetime.combine(d, t)
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def parse_hhmm(value) -> time:
    """Accept a time or an "HH:MM" string."""
    if isinstance(value, time):
        return value
    h, m = str(value).split(":")
    return time(int(h), int(m))


def rule_day_for(d: date_cls) -> int:
    """
    Map a date to the rule numbering (0=Sunday .. 6=Saturday).
    Python's weekday() is 0=Monday.
    """
    return (d.weekday() + 1) % 7


def compute_candidates(
    the_date: date_cls,
    rules: Iterable,
    duration_minutes: int,
    step_minutes: int = 60,
) -> List[datetime]:
    """
    Candidate start instants for `the_date`, derived from the weekly rules.

    Every rule whose day_of_week matches contributes starts at
    rule_start + k*step while start + duration still fits before rule_end.
    Starts from different rules are concatenated in rule order and may repeat;
    conflict filtering works on absolute instants, so repeats are harmless.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    day = rule_day_for(the_date)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    starts: List[datetime] = []
    for rule in rules:
        if rule.day_of_week != day:
            continue
        rule_start = _dt_on(the_date, parse_hhmm(rule.start_time))
        rule_end = _dt_on(the_date, parse_hhmm(rule.end_time))

        current = rule_start
        while current + duration <= rule_end:
            starts.append(current)
            current += step
    return starts
