# scheduling/services/availability.py
# Weekly rules, the shared tutor buffer, and read-only slot browsing.
# Reads here are never locked; the booking guard re-validates at write time.
from __future__ import annotations

import logging
from datetime import date as date_cls, datetime, time as dtime, timedelta
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from scheduling import events
from scheduling.conf import get_setting
from scheduling.exceptions import SchedulingPermissionDenied, SchedulingValidationError
from scheduling.models import (
    ACTIVE_BOOKING_STATUSES,
    AvailabilityRule,
    Booking,
    TutoringClass,
    TutorProfile,
    User,
)
from scheduling.services.common import full_clean_or_400, get_or_404
from scheduling.utils.conflicts import filter_free
from scheduling.utils.slots import compute_candidates

logger = logging.getLogger(__name__)


def _day_bounds_aware(d: date_cls):
    tz = timezone.get_current_timezone()
    start_dt = timezone.make_aware(datetime.combine(d, dtime.min), tz)
    return start_dt, start_dt + timedelta(days=1)  # end exclusive


def get_tutor(tutor_id) -> User:
    return get_or_404(User.objects.filter(role=User.Roles.TUTOR), "Tutor not found", pk=tutor_id)


def buffer_minutes_for(tutor_id) -> int:
    profile = TutorProfile.objects.filter(user_id=tutor_id).only("buffer_minutes").first()
    return profile.buffer_minutes if profile else 0


def _require_owner(actor, tutor_id, verb: str):
    if str(actor.pk) != str(tutor_id) or not actor.is_tutor():
        raise SchedulingPermissionDenied(f"Only the tutor can {verb} their own availability.")


def _set_buffer(tutor_id, buffer_minutes: Optional[int]):
    if buffer_minutes is None:
        return
    limit = get_setting("MAX_BUFFER_MINUTES")
    if buffer_minutes < 0 or buffer_minutes > limit:
        raise SchedulingValidationError({"buffer_minutes": [f"Must be between 0 and {limit}."]})
    TutorProfile.objects.update_or_create(user_id=tutor_id, defaults={"buffer_minutes": buffer_minutes})


# ---------- listing ----------
def list_availability(tutor_id) -> Dict[str, Any]:
    tutor = get_tutor(tutor_id)
    rules = list(AvailabilityRule.objects.filter(tutor=tutor).order_by("day_of_week", "start_time"))
    return {"rules": rules, "buffer_minutes": buffer_minutes_for(tutor.pk)}


def day_bookings(tutor_id, the_date: date_cls):
    """Active bookings of the tutor starting on `the_date`, across every class."""
    day_start, day_end = _day_bounds_aware(the_date)
    return (
        Booking.objects
        .filter(
            tutor_id=tutor_id,
            status__in=ACTIVE_BOOKING_STATUSES,
            scheduled_at__gte=day_start,
            scheduled_at__lt=day_end,
        )
        .select_related("student", "tutoring_class")
        .order_by("scheduled_at")
    )


def project_conflict(booking) -> Dict[str, Any]:
    return {
        "id": str(booking.id),
        "scheduled_at": booking.scheduled_at,
        "status": booking.status,
        "duration_minutes": booking.duration_minutes,
        "student_name": booking.student.display_name,
        "class_title": booking.tutoring_class.title or "Class",
    }


def list_with_conflicts(tutor_id, the_date: Optional[date_cls] = None) -> Dict[str, Any]:
    data = list_availability(tutor_id)
    bookings = list(day_bookings(tutor_id, the_date)) if the_date else []
    data["conflicts"] = [project_conflict(b) for b in bookings]
    return data


# ---------- rule CRUD ----------
def add_rule(actor, tutor_id, *, day_of_week, start_time, end_time, timezone_label, buffer_minutes=None):
    _require_owner(actor, tutor_id, "add")
    with transaction.atomic():
        rule = AvailabilityRule(
            tutor_id=tutor_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            timezone=timezone_label,
        )
        full_clean_or_400(rule)
        rule.save()
        _set_buffer(tutor_id, buffer_minutes)
        logger.info("availability rule %s added for tutor %s", rule.pk, tutor_id)
        events.publish(tutor_id, events.CalendarEvent.AVAILABILITY_CHANGED, {"rule_id": str(rule.pk), "action": "added"})
    return rule


def update_rule(actor, tutor_id, rule_id, *, day_of_week, start_time, end_time, timezone_label, buffer_minutes=None):
    _require_owner(actor, tutor_id, "update")
    with transaction.atomic():
        rule = get_or_404(AvailabilityRule.objects.filter(tutor_id=tutor_id), "Availability rule not found", pk=rule_id)
        rule.day_of_week = day_of_week
        rule.start_time = start_time
        rule.end_time = end_time
        rule.timezone = timezone_label
        full_clean_or_400(rule)
        rule.save()
        _set_buffer(tutor_id, buffer_minutes)
        logger.info("availability rule %s updated for tutor %s", rule.pk, tutor_id)
        events.publish(tutor_id, events.CalendarEvent.AVAILABILITY_CHANGED, {"rule_id": str(rule.pk), "action": "updated"})
    return rule


def delete_rule(actor, tutor_id, rule_id):
    _require_owner(actor, tutor_id, "delete")
    with transaction.atomic():
        rule = get_or_404(AvailabilityRule.objects.filter(tutor_id=tutor_id), "Availability rule not found", pk=rule_id)
        rule.delete()
        logger.info("availability rule %s deleted for tutor %s", rule_id, tutor_id)
        events.publish(tutor_id, events.CalendarEvent.AVAILABILITY_CHANGED, {"rule_id": str(rule_id), "action": "deleted"})


# ---------- browsing ----------
def available_slots(tutoring_class_id, the_date: date_cls, now=None, step_minutes=None) -> Dict[str, Any]:
    """
    Candidate starts for a class on a date, each tagged free or occupied.
    Occupancy is checked against every active booking of the class's tutor,
    so a slot taken in another class of the same tutor shows as occupied.
    Starts already in the past are dropped.
    """
    tutoring_class = get_or_404(
        TutoringClass.objects.select_related("tutor"), "Class not found", pk=tutoring_class_id
    )
    now = now or timezone.now()
    step = step_minutes or get_setting("SLOT_STEP_MINUTES")
    duration = tutoring_class.duration_minutes

    rules = AvailabilityRule.objects.filter(tutor_id=tutoring_class.tutor_id)
    candidates = compute_candidates(the_date, rules, duration, step)
    bookings = list(day_bookings(tutoring_class.tutor_id, the_date))

    free: List[Dict[str, Any]] = []
    occupied: List[Dict[str, Any]] = []
    for slot in filter_free(candidates, duration, bookings):
        if slot.start <= now:
            continue
        row = {"start": slot.start, "end": slot.end}
        if slot.is_free:
            free.append(row)
        else:
            row["booking_id"] = str(slot.booking.pk)
            occupied.append(row)

    return {
        "class_id": str(tutoring_class.pk),
        "tutor_id": str(tutoring_class.tutor_id),
        "date": the_date,
        "duration_minutes": duration,
        "buffer_minutes": buffer_minutes_for(tutoring_class.tutor_id),
        "available": free,
        "occupied": occupied,
    }


def tutor_bookings(tutor_id, statuses=None, date_from=None, date_to=None, class_id=None):
    """Public calendar feed of a tutor's bookings."""
    qs = Booking.objects.filter(tutor_id=tutor_id).select_related("student", "tutoring_class")
    if statuses:
        qs = qs.filter(status__in=statuses)
    if date_from:
        qs = qs.filter(scheduled_at__gte=date_from)
    if date_to:
        qs = qs.filter(scheduled_at__lte=date_to)
    if class_id:
        qs = qs.filter(tutoring_class_id=class_id)
    return qs.order_by("scheduled_at")
