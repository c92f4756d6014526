import uuid

from scheduling.exceptions import SchedulingPermissionDenied, SchedulingValidationError
from scheduling.models import Booking
from scheduling.services.common import get_or_404


def list_for_user(user, class_id=None):
    """Tutors see bookings of their classes, students their own. Newest first."""
    qs = Booking.objects.select_related("tutoring_class", "tutor", "student")
    if user.is_tutor():
        qs = qs.filter(tutor=user)
    else:
        qs = qs.filter(student=user)
    if class_id:
        try:
            class_id = uuid.UUID(str(class_id))
        except ValueError:
            raise SchedulingValidationError({"class_id": ["Must be a valid UUID."]})
        qs = qs.filter(tutoring_class_id=class_id)
    return qs.order_by("-scheduled_at")


def get_for_participant(booking_id, user) -> Booking:
    booking = get_or_404(
        Booking.objects.select_related("tutoring_class", "tutor", "student"),
        "Booking not found",
        pk=booking_id,
    )
    if not booking.is_participant(user):
        raise SchedulingPermissionDenied("Access denied")
    return booking
