from datetime import timedelta
import secrets
import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from scheduling.conf import get_setting


# ----------------------------
# AUTH USER
# ----------------------------
class User(AbstractUser):
    class Roles(models.TextChoices):
        TUTOR = "TUTOR", "Tutor"
        STUDENT = "STUDENT", "Student"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.STUDENT)

    def is_tutor(self) -> bool:
        return self.role == self.Roles.TUTOR

    def is_student(self) -> bool:
        return self.role == self.Roles.STUDENT

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username


# ----------------------------
# helpers
# ----------------------------
def generate_link_token() -> str:
    """64 hex chars, unguessable."""
    return secrets.token_hex(32)


def default_link_expiry():
    return timezone.now() + timedelta(days=get_setting("BOOKING_LINK_TTL_DAYS"))


def max_buffer_minutes() -> int:
    return get_setting("MAX_BUFFER_MINUTES")


# ACTIVE_BOOKING_STATUSES is the set that blocks a tutor's or student's time.
class BookingStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    CANCELLED = "CANCELLED", "Cancelled"
    COMPLETED = "COMPLETED", "Completed"


ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


# ----------------------------
# TUTOR SETTINGS & CLASSES
# ----------------------------
class TutorProfile(models.Model):
    """
    Tutor-level scheduling settings. The buffer is one value per tutor,
    shared by every availability rule that tutor owns.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tutor_profile"
    )
    buffer_minutes = models.PositiveIntegerField(
        default=0, validators=[MaxValueValidator(max_buffer_minutes)]
    )

    def __str__(self) -> str:
        return f"{self.user} (buffer {self.buffer_minutes}m)"


class TutoringClass(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tutor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tutoring_classes"
    )
    title = models.CharField(max_length=255)
    subject = models.CharField(max_length=100, blank=True)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(15), MaxValueValidator(480)]
    )
    price_per_session = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["title"]
        verbose_name_plural = "tutoring classes"

    def __str__(self) -> str:
        return f"{self.title} ({self.duration_minutes}m)"


class BookingLink(models.Model):
    """Shareable link a tutor hands out so anyone can book one of their classes."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    token = models.CharField(max_length=64, unique=True, default=generate_link_token, editable=False)
    tutoring_class = models.ForeignKey(TutoringClass, on_delete=models.CASCADE, related_name="links")
    tutor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="booking_links"
    )
    expires_at = models.DateTimeField(default=default_link_expiry)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def is_expired(self, now=None) -> bool:
        return self.expires_at < (now or timezone.now())

    def __str__(self):
        return f"Link {self.token[:8]}… → {self.tutoring_class}"


# -------------------------------------------------------
# WEEKLY AVAILABILITY
# -------------------------------------------------------
class AvailabilityRule(models.Model):
    """
    Repeating weekly window for a tutor, e.g. day_of_week=1 (Mon), 09:00–11:00.
    Days are numbered 0=Sunday .. 6=Saturday.
    """
    WEEKDAYS = [
        (0, "Sun"),
        (1, "Mon"),
        (2, "Tue"),
        (3, "Wed"),
        (4, "Thu"),
        (5, "Fri"),
        (6, "Sat"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tutor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="availability_rules"
    )
    day_of_week = models.PositiveSmallIntegerField(choices=WEEKDAYS)
    start_time = models.TimeField()
    end_time = models.TimeField()
    timezone = models.CharField(max_length=64, default="UTC")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["day_of_week", "start_time"]
        indexes = [
            models.Index(fields=["tutor", "day_of_week"], name="rule_tutor_day_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="availability_rule_end_gt_start",
            ),
        ]

    def clean(self):
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError("Rule start_time must be before end_time.")
        if self.tutor_id and getattr(self.tutor, "role", None) != User.Roles.TUTOR:
            raise ValidationError("Availability rules may only belong to tutors.")

    def __str__(self):
        return f"{self.tutor} | {self.get_day_of_week_display()} {self.start_time:%H:%M}–{self.end_time:%H:%M} {self.timezone}"


# ----------------------------
# BOOKINGS
# ----------------------------
class Booking(models.Model):
    Status = BookingStatus

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tutoring_class = models.ForeignKey(TutoringClass, on_delete=models.CASCADE, related_name="bookings")
    # denormalised from tutoring_class so the tutor-wide conflict scan is one index hit
    tutor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings_as_tutor"
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings_as_student"
    )
    scheduled_at = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.PENDING)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["scheduled_at"]
        indexes = [
            models.Index(fields=["tutor", "scheduled_at"], name="booking_tutor_at_idx"),
            models.Index(fields=["student", "scheduled_at"], name="booking_student_at_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]
        constraints = [
            # second writer for the same tutor instant fails instead of racing past the read
            models.UniqueConstraint(
                fields=["tutor", "scheduled_at"],
                condition=models.Q(status__in=["PENDING", "CONFIRMED"]),
                name="uniq_active_booking_per_tutor_instant",
            ),
        ]

    @property
    def ends_at(self):
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def is_participant(self, user) -> bool:
        return user is not None and user.pk in (self.tutor_id, self.student_id)

    def __str__(self):
        return f"{self.student} → {self.tutor} | {self.scheduled_at:%Y-%m-%d %H:%M} [{self.status}]"


class RescheduleRequest(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        ACCEPTED = "ACCEPTED", "Accepted"
        DECLINED = "DECLINED", "Declined"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="reschedule_requests")
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="reschedule_requests"
    )
    proposed_time = models.DateTimeField()
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status="PENDING"),
                name="uniq_pending_reschedule_per_booking",
            ),
        ]

    def other_party_id(self):
        """The participant who must resolve this request."""
        booking = self.booking
        if self.requested_by_id == booking.student_id:
            return booking.tutor_id
        return booking.student_id

    def __str__(self):
        return f"Reschedule {self.booking_id} → {self.proposed_time:%Y-%m-%d %H:%M} [{self.status}]"
