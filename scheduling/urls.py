# scheduling/urls.py
from django.urls import path

from scheduling.api.views import (
    # health + auth boundary
    HealthView,
    MeView,

    # weekly availability + slot browsing
    AvailabilityView,
    AvailabilityWithConflictsView,
    AvailabilityRuleDetailView,
    ClassSlotsView,

    # bookings
    BookingListCreateView,
    BookingDetailView,
    BookingStatusView,
    ScheduleForStudentView,
    GenerateLinkView,
    BookingLinkView,
    TutorCalendarView,

    # reschedule
    BookingRescheduleView,
    RescheduleAcceptView,
    RescheduleDeclineView,
    RescheduleRequestListView,
)

urlpatterns = [
    # ---------- API: health ----------
    path("api/health/", HealthView.as_view(), name="api_health"),

    # ---------- API: auth ----------
    path("api/auth/me/", MeView.as_view(), name="api_me"),

    # ---------- API: availability ----------
    path("api/availability/<uuid:tutor_id>/",                AvailabilityView.as_view(),              name="availability"),
    path("api/availability/<uuid:tutor_id>/with-conflicts/", AvailabilityWithConflictsView.as_view(), name="availability-with-conflicts"),
    path("api/availability/<uuid:tutor_id>/<uuid:rule_id>/", AvailabilityRuleDetailView.as_view(),    name="availability-rule"),
    path("api/classes/<uuid:class_id>/slots/",               ClassSlotsView.as_view(),                name="class-slots"),

    # ---------- API: bookings ----------
    path("api/bookings/",                          BookingListCreateView.as_view(),  name="bookings"),
    path("api/bookings/schedule/",                 ScheduleForStudentView.as_view(), name="booking-schedule"),
    path("api/bookings/generate-link/",            GenerateLinkView.as_view(),       name="booking-generate-link"),
    path("api/bookings/link/<str:token>/",         BookingLinkView.as_view(),        name="booking-link"),
    path("api/bookings/tutor/<uuid:tutor_id>/",    TutorCalendarView.as_view(),      name="tutor-calendar"),
    path("api/bookings/<uuid:booking_id>/",        BookingDetailView.as_view(),      name="booking-detail"),
    path("api/bookings/<uuid:booking_id>/status/", BookingStatusView.as_view(),      name="booking-status"),

    # ---------- API: reschedule ----------
    path("api/bookings/<uuid:booking_id>/reschedule/", BookingRescheduleView.as_view(), name="booking-reschedule"),
    path("api/bookings/<uuid:booking_id>/reschedule/<uuid:request_id>/accept/",
         RescheduleAcceptView.as_view(), name="reschedule-accept"),
    path("api/bookings/<uuid:booking_id>/reschedule/<uuid:request_id>/decline/",
         RescheduleDeclineView.as_view(), name="reschedule-decline"),
    path("api/reschedule-requests/", RescheduleRequestListView.as_view(), name="reschedule-requests"),
]
