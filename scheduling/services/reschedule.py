"""
Reschedule proposals: PENDING -> ACCEPTED | DECLINED, both terminal.

A proposal is not conflict-checked when it is made; the slot can fill up or
free up before the other participant answers. Acceptance re-runs the booking
guard against the proposed time (same duration, ignoring the booking being
moved) and only then moves Booking.scheduled_at.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from scheduling import events, notifications
from scheduling.exceptions import (
    AlreadyResolvedError,
    InvalidStatusError,
    RescheduleConflictError,
    ReschedulePendingError,
    SchedulingNotFound,
    SchedulingPermissionDenied,
)
from scheduling.models import Booking, RescheduleRequest
from scheduling.services.booking_guard import BookingConflictGuard
from scheduling.services.common import ensure_future, get_or_404

logger = logging.getLogger(__name__)


def _request_payload(req: RescheduleRequest) -> dict:
    return {
        "id": str(req.id),
        "booking_id": str(req.booking_id),
        "requested_by": str(req.requested_by_id),
        "proposed_time": req.proposed_time.isoformat(),
        "status": req.status,
    }


class RescheduleWorkflow:
    def __init__(self, guard: BookingConflictGuard = None):
        self.guard = guard or BookingConflictGuard()

    # ---------- propose ----------
    def propose(self, booking_id, requester, proposed_time, now=None) -> RescheduleRequest:
        with transaction.atomic():
            booking = get_or_404(
                Booking.objects.select_for_update(), "Booking not found", pk=booking_id
            )
            if not booking.is_participant(requester):
                raise SchedulingPermissionDenied("Not authorized")
            if not booking.is_active:
                raise InvalidStatusError("Only pending or confirmed bookings can be rescheduled")
            ensure_future(proposed_time, now)

            if booking.reschedule_requests.filter(status=RescheduleRequest.Status.PENDING).exists():
                raise ReschedulePendingError()
            try:
                with transaction.atomic():
                    req = RescheduleRequest.objects.create(
                        booking=booking,
                        requested_by=requester,
                        proposed_time=proposed_time,
                    )
            except IntegrityError:
                raise ReschedulePendingError()

            logger.info("reschedule %s proposed for booking %s by %s", req.pk, booking.pk, requester.pk)
            events.publish(booking.tutor_id, events.CalendarEvent.RESCHEDULE_PROPOSED, _request_payload(req))
        return req

    # ---------- resolve ----------
    def _load_for_decision(self, booking_id, request_id, decider, verb: str) -> RescheduleRequest:
        req = get_or_404(
            RescheduleRequest.objects.select_for_update().select_related("booking"),
            "Request not found",
            pk=request_id,
        )
        if str(req.booking_id) != str(booking_id):
            raise SchedulingNotFound("Request not found")

        booking = req.booking
        if not booking.is_participant(decider):
            raise SchedulingPermissionDenied("Not authorized")
        if decider.pk == req.requested_by_id:
            raise SchedulingPermissionDenied(f"You cannot {verb} your own request")
        if decider.pk != req.other_party_id():
            who = "tutor" if req.other_party_id() == booking.tutor_id else "student"
            raise SchedulingPermissionDenied(f"Only {who} can {verb}")
        if req.status != RescheduleRequest.Status.PENDING:
            raise AlreadyResolvedError()
        return req

    def decline(self, booking_id, request_id, decider) -> RescheduleRequest:
        with transaction.atomic():
            req = self._load_for_decision(booking_id, request_id, decider, "decline")
            req.status = RescheduleRequest.Status.DECLINED
            req.resolved_at = timezone.now()
            req.save(update_fields=["status", "resolved_at"])
            logger.info("reschedule %s declined by %s", req.pk, decider.pk)
            events.publish(req.booking.tutor_id, events.CalendarEvent.RESCHEDULE_DECLINED, _request_payload(req))
        return req

    def accept(self, booking_id, request_id, decider, now=None) -> RescheduleRequest:
        """
        Move the booking to the proposed time if it is still free.
        On conflict nothing changes: the request stays PENDING so the decider
        can retry later or decline.
        """
        with transaction.atomic():
            req = self._load_for_decision(booking_id, request_id, decider, "accept")
            booking = req.booking
            if not booking.is_active:
                raise InvalidStatusError("Only pending or confirmed bookings can be rescheduled")
            ensure_future(req.proposed_time, now)

            self.guard.lock_participants(booking.tutor_id, booking.student_id)
            self.guard.check_conflicts(
                booking.tutor_id,
                booking.student_id,
                req.proposed_time,
                booking.duration_minutes,
                exclude_booking_id=booking.pk,
                student_error=RescheduleConflictError,
                tutor_error=RescheduleConflictError,
            )

            old_time = booking.scheduled_at
            booking.scheduled_at = req.proposed_time
            try:
                with transaction.atomic():
                    booking.save(update_fields=["scheduled_at", "updated_at"])
            except IntegrityError:
                booking.scheduled_at = old_time
                raise RescheduleConflictError()

            req.status = RescheduleRequest.Status.ACCEPTED
            req.resolved_at = timezone.now()
            req.save(update_fields=["status", "resolved_at"])

            logger.info(
                "reschedule %s accepted by %s: booking %s %s -> %s",
                req.pk, decider.pk, booking.pk, old_time.isoformat(), booking.scheduled_at.isoformat(),
            )
            payload = events.booking_payload(booking)
            payload["previous_scheduled_at"] = old_time.isoformat()
            events.publish(booking.tutor_id, events.CalendarEvent.BOOKING_RESCHEDULED, payload)
            notifications.booking_rescheduled(booking)
        return req

    # ---------- listing ----------
    def list_for_user(self, user):
        return (
            RescheduleRequest.objects
            .filter(Q(requested_by=user) | Q(booking__student=user) | Q(booking__tutor=user))
            .select_related("booking", "booking__tutoring_class", "booking__student", "requested_by")
            .distinct()
            .order_by("-created_at")
        )

    def list_for_booking(self, booking_id, user):
        booking = get_or_404(Booking.objects.all(), "Booking not found", pk=booking_id)
        if not booking.is_participant(user):
            raise SchedulingPermissionDenied("Not authorized")
        return booking.reschedule_requests.select_related("requested_by").order_by("-created_at")
