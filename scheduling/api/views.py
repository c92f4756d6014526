# scheduling/api/views.py
from __future__ import annotations

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from scheduling.api.permissions import IsTutor
from scheduling.api.serializers import (
    AvailabilityQuerySerializer,
    AvailabilityRuleInputSerializer,
    AvailabilityRuleSerializer,
    AvailableSlotsSerializer,
    BookingCreateSerializer,
    BookingLinkSerializer,
    BookingReadSerializer,
    BookingStatusSerializer,
    DayConflictSerializer,
    GenerateLinkSerializer,
    LinkBookingSerializer,
    RescheduleProposeSerializer,
    RescheduleRequestSerializer,
    ScheduleForStudentSerializer,
    SlotQuerySerializer,
    TutorCalendarBookingSerializer,
    TutorCalendarQuerySerializer,
    UserBasicSerializer,
)
from scheduling.services import availability, bookings, links
from scheduling.services.booking_guard import BookingConflictGuard
from scheduling.services.reschedule import RescheduleWorkflow


def _availability_body(data):
    body = {
        "rules": AvailabilityRuleSerializer(data["rules"], many=True).data,
        "buffer_minutes": data["buffer_minutes"],
    }
    if "conflicts" in data:
        body["conflicts"] = DayConflictSerializer(data["conflicts"], many=True).data
    return body


# ------------------ health & auth boundary ------------------

class HealthView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({"status": "ok"})


class MeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response({"user": UserBasicSerializer(request.user).data})


# ------------------ availability ------------------

class AvailabilityView(APIView):
    """
    GET  /api/availability/<tutor_id>/   -> weekly rules + buffer (public)
    POST /api/availability/<tutor_id>/   -> add a rule (that tutor only)
    """

    def get_permissions(self):
        if self.request.method == "GET":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get(self, request, tutor_id):
        return Response(_availability_body(availability.list_availability(tutor_id)))

    def post(self, request, tutor_id):
        s = AvailabilityRuleInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        rule = availability.add_rule(request.user, tutor_id, **s.as_kwargs())
        return Response(AvailabilityRuleSerializer(rule).data, status=status.HTTP_201_CREATED)


class AvailabilityWithConflictsView(APIView):
    """GET /api/availability/<tutor_id>/with-conflicts/?date=YYYY-MM-DD"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, tutor_id):
        q = AvailabilityQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        data = availability.list_with_conflicts(tutor_id, q.validated_data.get("date"))
        return Response(_availability_body(data))


class AvailabilityRuleDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, tutor_id, rule_id):
        s = AvailabilityRuleInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        rule = availability.update_rule(request.user, tutor_id, rule_id, **s.as_kwargs())
        return Response(AvailabilityRuleSerializer(rule).data)

    def delete(self, request, tutor_id, rule_id):
        availability.delete_rule(request.user, tutor_id, rule_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ClassSlotsView(APIView):
    """GET /api/classes/<class_id>/slots/?date=YYYY-MM-DD (public, read-only)"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, class_id):
        q = SlotQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        data = availability.available_slots(class_id, q.validated_data["date"])
        return Response(AvailableSlotsSerializer(data).data)


# ------------------ bookings ------------------

class BookingListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        qs = bookings.list_for_user(request.user, class_id=request.query_params.get("class_id"))
        return Response(BookingReadSerializer(qs, many=True).data)

    def post(self, request):
        s = BookingCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        booking = BookingConflictGuard().create_for_student(
            request.user,
            s.validated_data["class_id"],
            s.validated_data["scheduled_at"],
            s.validated_data["notes"],
        )
        return Response(BookingReadSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, booking_id):
        booking = bookings.get_for_participant(booking_id, request.user)
        return Response(BookingReadSerializer(booking).data)

    def delete(self, request, booking_id):
        BookingConflictGuard().delete_booking(booking_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class BookingStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, booking_id):
        s = BookingStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        booking = BookingConflictGuard().update_status(booking_id, request.user, s.validated_data["status"])
        return Response(BookingReadSerializer(booking).data)


class ScheduleForStudentView(APIView):
    """POST /api/bookings/schedule/ -> tutor books a student in; CONFIRMED straight away."""
    permission_classes = [permissions.IsAuthenticated, IsTutor]

    def post(self, request):
        s = ScheduleForStudentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        booking = BookingConflictGuard().schedule_for_student(
            request.user,
            s.validated_data["class_id"],
            s.validated_data["student_email"],
            s.validated_data["scheduled_at"],
            s.validated_data["notes"],
        )
        return Response(BookingReadSerializer(booking).data, status=status.HTTP_201_CREATED)


class GenerateLinkView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsTutor]

    def post(self, request):
        s = GenerateLinkSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        link = links.generate_link(
            request.user, s.validated_data["class_id"], s.validated_data.get("expires_at")
        )
        return Response(BookingLinkSerializer(link).data, status=status.HTTP_201_CREATED)


class BookingLinkView(APIView):
    """
    GET  /api/bookings/link/<token>/ -> link + class + tutor (public)
    POST /api/bookings/link/<token>/ -> book through the link (public)
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request, token):
        link = links.get_active_link(token)
        return Response(BookingLinkSerializer(link).data)

    def post(self, request, token):
        s = LinkBookingSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        booking = BookingConflictGuard().create_via_link(
            token,
            s.validated_data["student_name"],
            s.validated_data["student_email"],
            s.validated_data["scheduled_at"],
            s.validated_data["notes"],
        )
        return Response(BookingReadSerializer(booking).data, status=status.HTTP_201_CREATED)


class TutorCalendarView(APIView):
    """GET /api/bookings/tutor/<tutor_id>/?status=&from=&to=&class_id= (public)"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, tutor_id):
        q = TutorCalendarQuerySerializer.from_query(request.query_params)
        q.is_valid(raise_exception=True)
        qs = availability.tutor_bookings(
            tutor_id,
            statuses=q.validated_data.get("status"),
            date_from=q.validated_data.get("date_from"),
            date_to=q.validated_data.get("date_to"),
            class_id=q.validated_data.get("class_id"),
        )
        return Response(TutorCalendarBookingSerializer(qs, many=True).data)


# ------------------ reschedule ------------------

class BookingRescheduleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, booking_id):
        qs = RescheduleWorkflow().list_for_booking(booking_id, request.user)
        return Response(RescheduleRequestSerializer(qs, many=True).data)

    def post(self, request, booking_id):
        s = RescheduleProposeSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        req = RescheduleWorkflow().propose(booking_id, request.user, s.validated_data["proposed_time"])
        return Response(RescheduleRequestSerializer(req).data, status=status.HTTP_201_CREATED)


class RescheduleAcceptView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, booking_id, request_id):
        req = RescheduleWorkflow().accept(booking_id, request_id, request.user)
        return Response(RescheduleRequestSerializer(req).data)


class RescheduleDeclineView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, booking_id, request_id):
        req = RescheduleWorkflow().decline(booking_id, request_id, request.user)
        return Response(RescheduleRequestSerializer(req).data)


class RescheduleRequestListView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        qs = RescheduleWorkflow().list_for_user(request.user)
        return Response(RescheduleRequestSerializer(qs, many=True).data)
