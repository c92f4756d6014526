from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import serializers

from scheduling.conf import get_setting
from scheduling.models import (
    AvailabilityRule,
    Booking,
    BookingLink,
    RescheduleRequest,
    TutoringClass,
)

User = get_user_model()

HHMM_FORMATS = ["%H:%M"]


# ----------------------------
# Small user serializer (auth)
# ----------------------------
class UserBasicSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "email", "first_name", "last_name", "display_name", "role"]
        read_only_fields = fields


class ClassSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = TutoringClass
        fields = ["id", "title", "subject", "duration_minutes", "price_per_session", "is_active"]
        read_only_fields = fields


# ----------------------------
# Availability
# ----------------------------
class AvailabilityRuleSerializer(serializers.ModelSerializer):
    start_time = serializers.TimeField(format="%H:%M", read_only=True)
    end_time = serializers.TimeField(format="%H:%M", read_only=True)

    class Meta:
        model = AvailabilityRule
        fields = ["id", "tutor", "day_of_week", "start_time", "end_time", "timezone", "created_at"]
        read_only_fields = fields


class AvailabilityRuleInputSerializer(serializers.Serializer):
    """
    Body of POST /api/availability/<tutor_id>/ and PUT .../<rule_id>/.
    Times are "HH:MM"; buffer_minutes is optional and applies to the tutor.
    """
    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    start_time = serializers.TimeField(input_formats=HHMM_FORMATS)
    end_time = serializers.TimeField(input_formats=HHMM_FORMATS)
    timezone = serializers.CharField(max_length=64, trim_whitespace=True)
    buffer_minutes = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    def validate_buffer_minutes(self, v):
        limit = get_setting("MAX_BUFFER_MINUTES")
        if v is not None and v > limit:
            raise serializers.ValidationError(f"Must be between 0 and {limit}.")
        return v

    def validate(self, attrs):
        if attrs["start_time"] >= attrs["end_time"]:
            raise serializers.ValidationError({"end_time": ["Must be after start_time."]})
        return attrs

    def as_kwargs(self):
        data = self.validated_data
        return {
            "day_of_week": data["day_of_week"],
            "start_time": data["start_time"],
            "end_time": data["end_time"],
            "timezone_label": data["timezone"],
            "buffer_minutes": data.get("buffer_minutes"),
        }


class DayConflictSerializer(serializers.Serializer):
    id = serializers.CharField()
    scheduled_at = serializers.DateTimeField()
    status = serializers.CharField()
    duration_minutes = serializers.IntegerField()
    student_name = serializers.CharField()
    class_title = serializers.CharField()


class AvailabilityQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


# ----------------------------
# Slots
# ----------------------------
class SlotQuerySerializer(serializers.Serializer):
    """Query params for /api/classes/<class_id>/slots/."""
    date = serializers.DateField()


class SlotSerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()


class OccupiedSlotSerializer(SlotSerializer):
    booking_id = serializers.CharField()


class AvailableSlotsSerializer(serializers.Serializer):
    class_id = serializers.CharField()
    tutor_id = serializers.CharField()
    date = serializers.DateField()
    duration_minutes = serializers.IntegerField()
    buffer_minutes = serializers.IntegerField()
    available = SlotSerializer(many=True)
    occupied = OccupiedSlotSerializer(many=True)


# ----------------------------
# Bookings
# ----------------------------
class BookingReadSerializer(serializers.ModelSerializer):
    tutoring_class = ClassSummarySerializer(read_only=True)
    tutor = UserBasicSerializer(read_only=True)
    student = UserBasicSerializer(read_only=True)
    ends_at = serializers.DateTimeField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "tutoring_class",
            "tutor",
            "student",
            "scheduled_at",
            "ends_at",
            "duration_minutes",
            "status",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TutorCalendarBookingSerializer(serializers.ModelSerializer):
    """Public feed: enough to paint a calendar, no contact details."""
    class_id = serializers.UUIDField(source="tutoring_class_id", read_only=True)
    student_id = serializers.UUIDField(read_only=True)
    student_name = serializers.CharField(source="student.display_name", read_only=True)
    class_title = serializers.CharField(source="tutoring_class.title", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id", "scheduled_at", "status", "class_id",
            "student_id", "student_name", "duration_minutes", "class_title",
        ]
        read_only_fields = fields


class TutorCalendarQuerySerializer(serializers.Serializer):
    status = serializers.ListField(
        child=serializers.ChoiceField(choices=Booking.Status.choices), required=False
    )
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)
    class_id = serializers.UUIDField(required=False)

    @classmethod
    def from_query(cls, params):
        # ?status=PENDING&status=CONFIRMED or ?status=PENDING,CONFIRMED
        statuses = []
        for raw in params.getlist("status"):
            statuses.extend(s.strip() for s in raw.split(",") if s.strip())
        data = {k: v for k, v in (
            ("date_from", params.get("from")),
            ("date_to", params.get("to")),
            ("class_id", params.get("class_id") or params.get("classId")),
        ) if v}
        if statuses:
            data["status"] = statuses
        return cls(data=data)


class BookingCreateSerializer(serializers.Serializer):
    class_id = serializers.UUIDField()
    scheduled_at = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class LinkBookingSerializer(serializers.Serializer):
    student_name = serializers.CharField(max_length=150)
    student_email = serializers.EmailField()
    scheduled_at = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ScheduleForStudentSerializer(serializers.Serializer):
    class_id = serializers.UUIDField()
    student_email = serializers.EmailField()
    scheduled_at = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)


# ----------------------------
# Booking links
# ----------------------------
class GenerateLinkSerializer(serializers.Serializer):
    class_id = serializers.UUIDField()
    expires_at = serializers.DateTimeField(required=False, allow_null=True)


class BookingLinkSerializer(serializers.ModelSerializer):
    tutoring_class = ClassSummarySerializer(read_only=True)
    tutor = UserBasicSerializer(read_only=True)
    shareable_url = serializers.SerializerMethodField()

    class Meta:
        model = BookingLink
        fields = ["id", "token", "tutoring_class", "tutor", "expires_at", "is_active", "created_at", "shareable_url"]
        read_only_fields = fields

    def get_shareable_url(self, obj):
        base = getattr(settings, "FRONTEND_URL", "http://localhost:3000").rstrip("/")
        return f"{base}/book/{obj.token}"


# ----------------------------
# Reschedule
# ----------------------------
class RescheduleProposeSerializer(serializers.Serializer):
    proposed_time = serializers.DateTimeField()


class RescheduleRequestSerializer(serializers.ModelSerializer):
    requested_by = UserBasicSerializer(read_only=True)
    booking_id = serializers.UUIDField(read_only=True)
    class_title = serializers.CharField(source="booking.tutoring_class.title", read_only=True)
    current_time = serializers.DateTimeField(source="booking.scheduled_at", read_only=True)

    class Meta:
        model = RescheduleRequest
        fields = [
            "id",
            "booking_id",
            "class_title",
            "requested_by",
            "current_time",
            "proposed_time",
            "status",
            "created_at",
            "resolved_at",
        ]
        read_only_fields = fields
