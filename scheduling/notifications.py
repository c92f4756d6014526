# scheduling/notifications.py
#
# E-mail side effects of booking changes. Delivery itself is Django's
# EMAIL_BACKEND (console in dev, SMTP in prod). A failed send is logged and
# never breaks the request that triggered it.
#
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


def _send(subject: str, body: str, to_email: str):
    if not to_email:
        return
    try:
        send_mail(
            subject=subject,
            message=body,
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list=[to_email],
            fail_silently=False,
        )
    except Exception:
        logger.exception("e-mail to %s failed (%s)", to_email, subject)


def _when(booking) -> str:
    return timezone.localtime(booking.scheduled_at).strftime("%A, %B %d, %Y at %I:%M %p")


def booking_created(booking):
    """Tell both participants a booking exists. Runs after commit."""
    def _notify():
        cls = booking.tutoring_class
        when = _when(booking)
        _send(
            "New booking request" if booking.status == booking.Status.PENDING else "Class scheduled",
            (
                f"Hi {booking.tutor.display_name},\n\n"
                f"{booking.student.display_name} booked \"{cls.title}\" for {when} "
                f"({booking.duration_minutes} minutes).\n"
                f"Status: {booking.status}\n"
            ),
            booking.tutor.email,
        )
        _send(
            "Booking received",
            (
                f"Hi {booking.student.display_name},\n\n"
                f"Your booking for \"{cls.title}\" on {when} is {booking.status.lower()}.\n"
            ),
            booking.student.email,
        )

    transaction.on_commit(_notify)


def booking_status_changed(booking):
    def _notify():
        when = _when(booking)
        body = (
            f"The booking for \"{booking.tutoring_class.title}\" on {when} "
            f"is now {booking.status.lower()}.\n"
        )
        subject = f"Booking {booking.status.lower()}"
        _send(subject, body, booking.tutor.email)
        _send(subject, body, booking.student.email)

    transaction.on_commit(_notify)


def booking_rescheduled(booking):
    def _notify():
        body = (
            f"The booking for \"{booking.tutoring_class.title}\" has moved to {_when(booking)}.\n"
        )
        _send("Booking rescheduled", body, booking.tutor.email)
        _send("Booking rescheduled", body, booking.student.email)

    transaction.on_commit(_notify)
