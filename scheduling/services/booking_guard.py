"""
booking_guard.py
----------------
Write-time conflict guard for bookings.

Every path that creates a booking (student books, booking via shareable link,
tutor schedules for a student) and every reschedule acceptance goes through
BookingConflictGuard. The guard never trusts an earlier slot read: inside one
transaction it locks the tutor and student rows, re-reads their active
bookings, re-runs the conflict checks and only then writes.

Two layers stop a concurrent second writer:
- select_for_update() on both participants' User rows serialises
  booking mutations per tutor (and per student). SQLite has no row locks;
  there the IMMEDIATE transaction mode in settings serialises writers;
- the conditional unique constraint on (tutor, scheduled_at) for active
  bookings turns an identical-instant race into an IntegrityError, which is
  reported as TutorConflictError.
"""
import logging
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from scheduling import events, notifications
from scheduling.conf import get_setting, student_conflict_mode
from scheduling.exceptions import (
    ClassInactiveError,
    InvalidStatusError,
    SchedulingNotFound,
    SchedulingPermissionDenied,
    SchedulingValidationError,
    StudentConflictError,
    TutorConflictError,
)
from scheduling.models import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    TutoringClass,
    User,
)
from scheduling.services.common import ensure_future, get_or_404
from scheduling.services.links import get_active_link
from scheduling.utils.conflicts import find_conflict, within_student_window

logger = logging.getLogger(__name__)

# No class runs longer than this, so older bookings can't reach a new start.
_LOOKBACK = timedelta(days=1)

# status -> statuses it may move to through update_status()
_TRANSITIONS = {
    Booking.Status.PENDING: {Booking.Status.CONFIRMED, Booking.Status.CANCELLED},
    Booking.Status.CONFIRMED: {Booking.Status.CANCELLED},
}


class BookingConflictGuard:
    # ------------------------------------------------------------------
    # conflict checks (call inside an atomic block holding the locks)
    # ------------------------------------------------------------------
    def lock_participants(self, *user_ids):
        """Row-lock the given users in primary-key order (deadlock-free)."""
        ids = sorted({uid for uid in user_ids if uid is not None}, key=str)
        return list(User.objects.select_for_update().filter(pk__in=ids).order_by("pk"))

    def _active_bookings(self, scheduled_at, duration_minutes, exclude_booking_id=None, **owner):
        qs = Booking.objects.filter(
            status__in=ACTIVE_BOOKING_STATUSES,
            scheduled_at__lt=scheduled_at + timedelta(minutes=duration_minutes) + _LOOKBACK,
            scheduled_at__gt=scheduled_at - _LOOKBACK,
            **owner,
        )
        if exclude_booking_id is not None:
            qs = qs.exclude(pk=exclude_booking_id)
        return list(qs)

    def find_student_conflict(self, student_id, scheduled_at, duration_minutes, exclude_booking_id=None):
        bookings = self._active_bookings(
            scheduled_at, duration_minutes, exclude_booking_id, student_id=student_id
        )
        if student_conflict_mode() == "overlap":
            return find_conflict(scheduled_at, duration_minutes, bookings, same_day_only=False)
        window = get_setting("STUDENT_CONFLICT_WINDOW_MINUTES")
        return within_student_window(scheduled_at, bookings, window_minutes=window)

    def find_tutor_conflict(self, tutor_id, scheduled_at, duration_minutes, exclude_booking_id=None):
        # every class of this tutor: the tutor's time is the scarce resource
        bookings = self._active_bookings(
            scheduled_at, duration_minutes, exclude_booking_id, tutor_id=tutor_id
        )
        return find_conflict(scheduled_at, duration_minutes, bookings, same_day_only=False)

    def check_conflicts(
        self,
        tutor_id,
        student_id,
        scheduled_at,
        duration_minutes,
        exclude_booking_id=None,
        student_error=StudentConflictError,
        tutor_error=TutorConflictError,
    ):
        clash = self.find_student_conflict(student_id, scheduled_at, duration_minutes, exclude_booking_id)
        if clash is not None:
            logger.info(
                "student conflict: student=%s at %s clashes with booking %s",
                student_id, scheduled_at.isoformat(), clash.pk,
            )
            raise student_error(booking=clash)

        clash = self.find_tutor_conflict(tutor_id, scheduled_at, duration_minutes, exclude_booking_id)
        if clash is not None:
            logger.info(
                "tutor conflict: tutor=%s at %s clashes with booking %s",
                tutor_id, scheduled_at.isoformat(), clash.pk,
            )
            raise tutor_error(booking=clash)

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------
    def create_booking(self, tutoring_class_id, student, scheduled_at, notes="", auto_confirm=False, now=None):
        """
        Create a booking for `student` in one atomic unit.

        Checks, in order: class exists (404) and is active (400), time is in
        the future (400), student window (409), tutor overlap (409).
        The booking is PENDING unless auto_confirm (tutor-initiated) is set.
        """
        with transaction.atomic():
            tutoring_class = get_or_404(
                TutoringClass.objects.select_related("tutor"), "Class not found", pk=tutoring_class_id
            )
            if not tutoring_class.is_active:
                raise ClassInactiveError()
            ensure_future(scheduled_at, now)

            self.lock_participants(tutoring_class.tutor_id, student.pk)
            duration = tutoring_class.duration_minutes
            self.check_conflicts(tutoring_class.tutor_id, student.pk, scheduled_at, duration)

            try:
                with transaction.atomic():
                    booking = Booking.objects.create(
                        tutoring_class=tutoring_class,
                        tutor_id=tutoring_class.tutor_id,
                        student=student,
                        scheduled_at=scheduled_at,
                        duration_minutes=duration,
                        notes=notes or "",
                        status=Booking.Status.CONFIRMED if auto_confirm else Booking.Status.PENDING,
                    )
            except IntegrityError:
                logger.info(
                    "tutor conflict (constraint): tutor=%s at %s", tutoring_class.tutor_id, scheduled_at.isoformat()
                )
                raise TutorConflictError()

            logger.info(
                "booking %s created: class=%s student=%s at %s [%s]",
                booking.pk, tutoring_class.pk, student.pk, scheduled_at.isoformat(), booking.status,
            )
            events.publish(booking.tutor_id, events.CalendarEvent.BOOKING_CREATED, events.booking_payload(booking))
            notifications.booking_created(booking)

        return Booking.objects.select_related("tutoring_class", "tutor", "student").get(pk=booking.pk)

    def create_for_student(self, actor, tutoring_class_id, scheduled_at, notes=""):
        """A logged-in student books directly."""
        if not actor.is_student():
            raise SchedulingPermissionDenied("Only students can create bookings")
        return self.create_booking(tutoring_class_id, actor, scheduled_at, notes)

    def create_via_link(self, token, student_name, student_email, scheduled_at, notes="", now=None):
        """
        Public booking through a tutor's shareable link. Unknown e-mails get
        a new STUDENT account; the account and the booking commit together.
        """
        now = now or timezone.now()
        with transaction.atomic():
            link = get_active_link(token, now)
            if not link.tutoring_class.is_active:
                raise ClassInactiveError("This class is no longer available for booking")
            ensure_future(scheduled_at, now)

            student = self._find_or_create_student(student_name, student_email)
            return self.create_booking(link.tutoring_class_id, student, scheduled_at, notes, now=now)

    def schedule_for_student(self, tutor, tutoring_class_id, student_email, scheduled_at, notes="", now=None):
        """Tutor books one of their own classes for an existing student; auto-confirmed."""
        if not tutor.is_tutor():
            raise SchedulingPermissionDenied("Only tutors can schedule classes")
        tutoring_class = get_or_404(TutoringClass.objects.all(), "Class not found", pk=tutoring_class_id)
        if tutoring_class.tutor_id != tutor.pk:
            raise SchedulingPermissionDenied("You can only schedule classes for your own classes")
        if not tutoring_class.is_active:
            raise ClassInactiveError("This class is not active")

        student = User.objects.filter(email__iexact=(student_email or "").strip()).first()
        if student is None:
            raise SchedulingNotFound("Student not found")
        if not student.is_student():
            raise SchedulingValidationError(
                {"student_email": ["The provided email does not belong to a student"]}
            )
        return self.create_booking(tutoring_class.pk, student, scheduled_at, notes, auto_confirm=True, now=now)

    def _find_or_create_student(self, student_name, student_email):
        email = (student_email or "").strip()
        student = User.objects.filter(email__iexact=email).first()
        if student is not None:
            if not student.is_student():
                raise SchedulingValidationError(
                    {"student_email": ["This email belongs to a tutor account"]}
                )
            return student

        parts = (student_name or "").split()
        max_length = User._meta.get_field("username").max_length
        base = email.lower()[:max_length]
        username = base
        suffix = 1
        while User.objects.filter(username=username).exists():
            suffix += 1
            tail = f"-{suffix}"
            username = f"{base[:max_length - len(tail)]}{tail}"
        student = User(
            username=username,
            email=email,
            first_name=parts[0] if parts else "",
            last_name=" ".join(parts[1:]),
            role=User.Roles.STUDENT,
        )
        student.set_unusable_password()
        student.save()
        logger.info("student account %s created from booking link", student.pk)
        return student

    # ------------------------------------------------------------------
    # status & delete
    # ------------------------------------------------------------------
    def update_status(self, booking_id, actor, new_status):
        """
        Tutors may confirm or cancel their bookings; students may cancel theirs.
        Terminal bookings (CANCELLED, COMPLETED) don't move.
        """
        with transaction.atomic():
            booking = get_or_404(
                Booking.objects.select_for_update(), "Booking not found", pk=booking_id
            )
            if actor.is_tutor():
                if new_status not in (Booking.Status.CONFIRMED, Booking.Status.CANCELLED):
                    raise InvalidStatusError("Tutors can only set status to CONFIRMED or CANCELLED")
                if booking.tutor_id != actor.pk:
                    raise SchedulingPermissionDenied("You do not have permission to update this booking")
            elif actor.is_student():
                if new_status != Booking.Status.CANCELLED:
                    raise InvalidStatusError("Students can only set status to CANCELLED")
                if booking.student_id != actor.pk:
                    raise SchedulingPermissionDenied("You do not have permission to cancel this booking")
            else:
                raise SchedulingPermissionDenied("Invalid user type")

            if new_status == booking.status:
                return booking
            if new_status not in _TRANSITIONS.get(booking.status, set()):
                raise InvalidStatusError(f"Cannot change a {booking.status} booking to {new_status}")

            booking.status = new_status
            booking.save(update_fields=["status", "updated_at"])
            logger.info("booking %s -> %s by %s", booking.pk, new_status, actor.pk)

            events.publish(
                booking.tutor_id, events.CalendarEvent.BOOKING_STATUS_CHANGED, events.booking_payload(booking)
            )
            notifications.booking_status_changed(booking)
        return booking

    def delete_booking(self, booking_id, actor):
        with transaction.atomic():
            booking = get_or_404(
                Booking.objects.select_for_update(), "Booking not found", pk=booking_id
            )
            if not actor.is_student() or booking.student_id != actor.pk:
                raise SchedulingPermissionDenied("Access denied")
            if not booking.is_active:
                raise InvalidStatusError("Only pending or confirmed bookings can be deleted")

            payload = events.booking_payload(booking)
            tutor_id = booking.tutor_id
            booking.delete()
            logger.info("booking %s deleted by student %s", booking_id, actor.pk)
            events.publish(tutor_id, events.CalendarEvent.BOOKING_DELETED, payload)
