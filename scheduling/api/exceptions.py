# scheduling/api/exceptions.py
import logging

from django.db import DatabaseError
from rest_framework.views import exception_handler

from scheduling.exceptions import SchedulingConflict, SchedulingError, StoreError

logger = logging.getLogger(__name__)


def scheduling_exception_handler(exc, context):
    """
    DRF's handler plus:
      - every SchedulingError body carries its machine-readable `code`
      - 409 bodies name the booking they clashed with
      - DatabaseError becomes a generic 500 (traceback goes to the log only)
    """
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception("store error in %s", view.__class__.__name__ if view else "unknown view")
        exc = StoreError()

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, (SchedulingError, StoreError)) and isinstance(response.data, dict):
        response.data.setdefault("code", exc.default_code if isinstance(exc.detail, dict) else exc.detail.code)
        if isinstance(exc, SchedulingConflict) and exc.booking is not None:
            response.data["conflicting_booking_id"] = str(exc.booking.pk)
    return response
