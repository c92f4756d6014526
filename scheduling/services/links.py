import logging

from scheduling.exceptions import InvalidLinkError, SchedulingPermissionDenied
from scheduling.models import BookingLink, TutoringClass
from scheduling.services.common import get_or_404

logger = logging.getLogger(__name__)


def generate_link(tutor, tutoring_class_id, expires_at=None) -> BookingLink:
    """Shareable booking link for one of the tutor's own classes (default TTL from settings)."""
    if not tutor.is_tutor():
        raise SchedulingPermissionDenied("Only tutors can generate booking links")
    tutoring_class = get_or_404(TutoringClass.objects.all(), "Class not found", pk=tutoring_class_id)
    if tutoring_class.tutor_id != tutor.pk:
        raise SchedulingPermissionDenied("You can only generate links for your own classes")

    link = BookingLink(tutoring_class=tutoring_class, tutor=tutor)
    if expires_at is not None:
        link.expires_at = expires_at
    link.save()
    logger.info("booking link %s… created for class %s", link.token[:8], tutoring_class.pk)
    return link


def get_active_link(token, now=None) -> BookingLink:
    link = get_or_404(
        BookingLink.objects.select_related("tutoring_class", "tutoring_class__tutor"),
        "Booking link not found",
        token=token,
    )
    if not link.is_active:
        raise InvalidLinkError()
    if link.is_expired(now):
        raise InvalidLinkError("This booking link has expired")
    return link
