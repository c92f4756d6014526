from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from scheduling.exceptions import InvalidTimeError, SchedulingNotFound, SchedulingValidationError


def get_or_404(queryset, message: str, **lookup):
    """queryset.get(**lookup), mapping missing rows and malformed ids to 404."""
    try:
        return queryset.get(**lookup)
    except (queryset.model.DoesNotExist, DjangoValidationError, ValueError):
        raise SchedulingNotFound(message)


def ensure_future(when, now=None):
    now = now or timezone.now()
    if when is None or when <= now:
        raise InvalidTimeError()


def full_clean_or_400(instance, exclude=None):
    """Run model validation and surface it as a field-level 400."""
    try:
        instance.full_clean(exclude=exclude)
    except DjangoValidationError as exc:
        raise SchedulingValidationError(exc.message_dict if hasattr(exc, "error_dict") else exc.messages)
