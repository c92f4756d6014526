"""
Error taxonomy for the booking engine.

Each error is a DRF APIException so services can raise and views let DRF
render the right status code:

    400  SchedulingValidationError (+ InvalidTimeError, ClassInactiveError, ...)
    403  SchedulingPermissionDenied
    404  SchedulingNotFound
    409  SchedulingConflict (+ StudentConflictError, TutorConflictError, ...)
    500  StoreError
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class SchedulingError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Scheduling request failed."
    default_code = "scheduling_error"


# ---------- 400 ----------
class SchedulingValidationError(SchedulingError):
    """Malformed or missing fields. `detail` may be a {field: [messages]} dict."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "invalid"


class InvalidTimeError(SchedulingValidationError):
    default_detail = "Booking must be scheduled for a future time."
    default_code = "invalid_time"


class ClassInactiveError(SchedulingValidationError):
    default_detail = "This class is not available for booking."
    default_code = "class_inactive"


class InvalidStatusError(SchedulingValidationError):
    default_detail = "That status change is not allowed."
    default_code = "invalid_status"


class AlreadyResolvedError(SchedulingValidationError):
    default_detail = "Request already handled."
    default_code = "already_resolved"


class InvalidLinkError(SchedulingValidationError):
    default_detail = "This booking link is no longer active."
    default_code = "link_inactive"


# ---------- 403 ----------
class SchedulingPermissionDenied(SchedulingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "permission_denied"


# ---------- 404 ----------
class SchedulingNotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


# ---------- 409 ----------
class SchedulingConflict(SchedulingError):
    """Recoverable: the caller should pick another time."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The requested time conflicts with an existing booking."
    default_code = "conflict"

    def __init__(self, detail=None, code=None, booking=None):
        super().__init__(detail=detail, code=code)
        self.booking = booking


class StudentConflictError(SchedulingConflict):
    default_detail = "You already have a booking at this time."
    default_code = "student_conflict"


class TutorConflictError(SchedulingConflict):
    default_detail = "The tutor is not available at this time."
    default_code = "tutor_conflict"


class RescheduleConflictError(SchedulingConflict):
    default_detail = "The proposed time is no longer available."
    default_code = "reschedule_conflict"


class ReschedulePendingError(SchedulingConflict):
    default_detail = "A reschedule request is already pending for this booking."
    default_code = "reschedule_pending"


# ---------- 500 ----------
class StoreError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "store_error"
