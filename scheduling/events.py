# scheduling/events.py
# Typed calendar events pushed to subscribers over the channel layer.
import json
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models, transaction

logger = logging.getLogger(__name__)


class CalendarEvent(models.TextChoices):
    BOOKING_CREATED = "booking.created"
    BOOKING_STATUS_CHANGED = "booking.status_changed"
    BOOKING_DELETED = "booking.deleted"
    BOOKING_RESCHEDULED = "booking.rescheduled"
    RESCHEDULE_PROPOSED = "reschedule.proposed"
    RESCHEDULE_DECLINED = "reschedule.declined"
    AVAILABILITY_CHANGED = "availability.changed"


def calendar_group(tutor_id) -> str:
    return f"calendar_{tutor_id}"


def booking_payload(booking) -> dict:
    return {
        "id": str(booking.id),
        "tutor_id": str(booking.tutor_id),
        "student_id": str(booking.student_id),
        "class_id": str(booking.tutoring_class_id),
        "scheduled_at": booking.scheduled_at.isoformat(),
        "duration_minutes": booking.duration_minutes,
        "status": booking.status,
    }


def _send(tutor_id, event: CalendarEvent, payload: dict):
    layer = get_channel_layer()
    if layer is None:
        return
    # channel layers need msgpack/JSON-safe values
    body = json.loads(json.dumps(payload, cls=DjangoJSONEncoder))
    try:
        async_to_sync(layer.group_send)(
            calendar_group(tutor_id),
            {"type": "calendar.event", "event": str(event), "payload": body},
        )
    except Exception:
        logger.warning("calendar event %s for tutor %s was not delivered", event, tutor_id, exc_info=True)
    else:
        logger.debug("published %s to %s", event, calendar_group(tutor_id))


def publish(tutor_id, event: CalendarEvent, payload: dict):
    """Send once the surrounding transaction commits; nothing is sent on rollback."""
    transaction.on_commit(lambda: _send(tutor_id, event, payload))
