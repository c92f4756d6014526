from datetime import datetime, time, timedelta

from django.utils import timezone

from scheduling.models import TutoringClass, User
from scheduling.utils.slots import rule_day_for

MONDAY = 1


def make_tutor(username="tutor", **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        role=User.Roles.TUTOR,
        **extra,
    )


def make_student(username="student", **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        role=User.Roles.STUDENT,
        **extra,
    )


def make_class(tutor, title="Algebra", duration=60, **extra):
    return TutoringClass.objects.create(tutor=tutor, title=title, duration_minutes=duration, **extra)


def next_day(rule_day=MONDAY, min_days_ahead=7):
    """First date at least `min_days_ahead` days out whose rule day matches."""
    d = timezone.localdate() + timedelta(days=min_days_ahead)
    while rule_day_for(d) != rule_day:
        d += timedelta(days=1)
    return d


def at(d, hour, minute=0):
    return timezone.make_aware(datetime.combine(d, time(hour, minute)))
