from datetime import time
from io import StringIO
from unittest import mock

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase, override_settings

from scheduling.events import CalendarEvent
from scheduling.exceptions import SchedulingNotFound, SchedulingPermissionDenied, SchedulingValidationError
from scheduling.models import AvailabilityRule, Booking, TutorProfile
from scheduling.services import availability
from scheduling.services.booking_guard import BookingConflictGuard
from scheduling.tests.helpers import MONDAY, at, make_class, make_student, make_tutor, next_day


class RuleCrudTests(TestCase):
    def setUp(self):
        self.tutor = make_tutor()
        self.student = make_student()

    def _add(self, actor=None, **overrides):
        kwargs = dict(day_of_week=MONDAY, start_time=time(9), end_time=time(11), timezone_label="Europe/Berlin")
        kwargs.update(overrides)
        return availability.add_rule(actor or self.tutor, self.tutor.pk, **kwargs)

    def test_tutor_profile_created_with_tutor(self):
        self.assertTrue(TutorProfile.objects.filter(user=self.tutor).exists())
        self.assertFalse(TutorProfile.objects.filter(user=self.student).exists())

    def test_add_and_list(self):
        rule = self._add(buffer_minutes=15)
        data = availability.list_availability(self.tutor.pk)
        self.assertEqual([r.pk for r in data["rules"]], [rule.pk])
        self.assertEqual(data["buffer_minutes"], 15)
        self.assertEqual(rule.timezone, "Europe/Berlin")

    def test_only_owner_edits(self):
        with self.assertRaises(SchedulingPermissionDenied):
            self._add(actor=self.student)
        rule = self._add()
        with self.assertRaises(SchedulingPermissionDenied):
            availability.delete_rule(make_tutor("tutor2"), self.tutor.pk, rule.pk)

    def test_start_must_precede_end(self):
        with self.assertRaises(SchedulingValidationError):
            self._add(start_time=time(11), end_time=time(9))
        self.assertFalse(AvailabilityRule.objects.exists())

    def test_buffer_limit(self):
        with self.assertRaises(SchedulingValidationError):
            self._add(buffer_minutes=121)
        self.assertFalse(AvailabilityRule.objects.exists())

    def test_update_and_delete(self):
        rule = self._add()
        updated = availability.update_rule(
            self.tutor, self.tutor.pk, rule.pk,
            day_of_week=3, start_time=time(13), end_time=time(16), timezone_label="UTC",
        )
        self.assertEqual((updated.day_of_week, updated.start_time), (3, time(13)))

        availability.delete_rule(self.tutor, self.tutor.pk, rule.pk)
        with self.assertRaises(SchedulingNotFound):
            availability.delete_rule(self.tutor, self.tutor.pk, rule.pk)

    @override_settings(SCHEDULING={"MAX_BUFFER_MINUTES": 30})
    def test_profile_buffer_cap_follows_setting(self):
        profile = TutorProfile.objects.get(user=self.tutor)
        profile.buffer_minutes = 45
        with self.assertRaises(ValidationError):
            profile.full_clean()
        with self.assertRaises(SchedulingValidationError):
            self._add(buffer_minutes=45)

    def test_changes_are_published(self):
        with mock.patch("scheduling.events._send") as send:
            with self.captureOnCommitCallbacks(execute=True):
                self._add()
        self.assertEqual(send.call_args[0][1], CalendarEvent.AVAILABILITY_CHANGED)

    def test_unknown_tutor(self):
        with self.assertRaises(SchedulingNotFound):
            availability.list_availability(self.student.pk)


class AvailableSlotsTests(TestCase):
    def setUp(self):
        self.tutor = make_tutor()
        self.student = make_student()
        self.class_a = make_class(self.tutor, "Algebra")
        self.class_b = make_class(self.tutor, "Geometry")
        self.day = next_day()
        AvailabilityRule.objects.create(tutor=self.tutor, day_of_week=MONDAY, start_time=time(9), end_time=time(11))

    def test_free_week(self):
        data = availability.available_slots(self.class_a.pk, self.day)
        self.assertEqual([s["start"] for s in data["available"]], [at(self.day, 9), at(self.day, 10)])
        self.assertEqual(data["occupied"], [])

    def test_booking_in_one_class_blocks_the_other(self):
        booking = BookingConflictGuard().schedule_for_student(
            self.tutor, self.class_a.pk, self.student.email, at(self.day, 9)
        )
        data = availability.available_slots(self.class_b.pk, self.day)
        self.assertEqual([s["start"] for s in data["available"]], [at(self.day, 10)])
        self.assertEqual(data["occupied"][0]["booking_id"], str(booking.pk))

    def test_past_starts_dropped(self):
        data = availability.available_slots(self.class_a.pk, self.day, now=at(self.day, 9, 30))
        self.assertEqual([s["start"] for s in data["available"]], [at(self.day, 10)])

    def test_with_conflicts_projection(self):
        BookingConflictGuard().create_booking(self.class_a.pk, self.student, at(self.day, 10))
        data = availability.list_with_conflicts(self.tutor.pk, self.day)
        self.assertEqual(len(data["conflicts"]), 1)
        row = data["conflicts"][0]
        self.assertEqual(row["class_title"], "Algebra")
        self.assertEqual(row["student_name"], "student")
        self.assertEqual(row["status"], Booking.Status.PENDING)

    def test_tutor_feed_filters(self):
        guard = BookingConflictGuard()
        first = guard.create_booking(self.class_a.pk, self.student, at(self.day, 9))
        guard.create_booking(self.class_b.pk, make_student("s2"), at(self.day, 10))
        guard.update_status(first.pk, self.tutor, Booking.Status.CANCELLED)

        active = availability.tutor_bookings(self.tutor.pk, statuses=["PENDING", "CONFIRMED"])
        self.assertEqual([b.tutoring_class_id for b in active], [self.class_b.pk])
        by_class = availability.tutor_bookings(self.tutor.pk, class_id=self.class_a.pk)
        self.assertEqual([b.pk for b in by_class], [first.pk])


class SeedAvailabilityCommandTests(TestCase):
    def test_creates_rules_once(self):
        tutor = make_tutor()
        out = StringIO()
        call_command("seed_availability", tutor="tutor", days="1,3", start="08:00", end="12:00", stdout=out)
        self.assertEqual(AvailabilityRule.objects.filter(tutor=tutor).count(), 2)

        call_command("seed_availability", tutor="tutor", days="1,3", start="08:00", end="12:00", stdout=out)
        self.assertEqual(AvailabilityRule.objects.filter(tutor=tutor).count(), 2)
        self.assertIn("Total rules created: 0", out.getvalue())
