"""
Concurrent writers against a real (file-backed) database.

Each race runs two threads, each on its own connection. The tutor-side read
is slowed down so both callers are inside the guard at the same time; the
loser must come back as a 409 conflict, never as a store error.
"""
import threading
import time
from unittest import mock

from django.db import connection
from django.test import TransactionTestCase

from scheduling.exceptions import RescheduleConflictError, TutorConflictError
from scheduling.models import ACTIVE_BOOKING_STATUSES, Booking, RescheduleRequest
from scheduling.services.booking_guard import BookingConflictGuard
from scheduling.services.reschedule import RescheduleWorkflow
from scheduling.tests.helpers import at, make_class, make_student, make_tutor, next_day

_original_find_tutor_conflict = BookingConflictGuard.find_tutor_conflict


def _slow_find_tutor_conflict(self, *args, **kwargs):
    clash = _original_find_tutor_conflict(self, *args, **kwargs)
    time.sleep(0.2)
    return clash


class RaceTestBase(TransactionTestCase):
    def setUp(self):
        patcher = mock.patch("scheduling.events._send")
        patcher.start()
        self.addCleanup(patcher.stop)

        self.guard = BookingConflictGuard()
        self.tutor = make_tutor()
        self.student = make_student()
        self.other_student = make_student("other")
        self.class_a = make_class(self.tutor, "Algebra")
        self.class_b = make_class(self.tutor, "Geometry")
        self.day = next_day()

    def race(self, *calls):
        """Start every call at once in its own thread; return results or raised exceptions."""
        barrier = threading.Barrier(len(calls))
        outcomes = [None] * len(calls)

        def run(index, call):
            try:
                barrier.wait(timeout=5)
                outcomes[index] = call()
            except Exception as exc:
                outcomes[index] = exc
            finally:
                connection.close()

        threads = [threading.Thread(target=run, args=(i, call)) for i, call in enumerate(calls)]
        with mock.patch.object(BookingConflictGuard, "find_tutor_conflict", _slow_find_tutor_conflict):
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=30)
        return outcomes

    def assertOneWinner(self, outcomes, winner_type, loser_type):
        winners = [o for o in outcomes if isinstance(o, winner_type)]
        losers = [o for o in outcomes if isinstance(o, loser_type)]
        self.assertEqual((len(winners), len(losers)), (1, 1), outcomes)
        self.assertEqual(losers[0].status_code, 409)
        return winners[0]


class ConcurrentBookingTests(RaceTestBase):
    def test_overlapping_creates_one_wins(self):
        outcomes = self.race(
            lambda: self.guard.create_booking(self.class_a.pk, self.student, at(self.day, 10)),
            lambda: self.guard.create_booking(self.class_b.pk, self.other_student, at(self.day, 10, 30)),
        )
        self.assertOneWinner(outcomes, Booking, TutorConflictError)
        self.assertEqual(
            Booking.objects.filter(tutor=self.tutor, status__in=ACTIVE_BOOKING_STATUSES).count(), 1
        )

    def test_identical_instant_creates_one_wins(self):
        outcomes = self.race(
            lambda: self.guard.create_booking(self.class_a.pk, self.student, at(self.day, 10)),
            lambda: self.guard.create_booking(self.class_b.pk, self.other_student, at(self.day, 10)),
        )
        self.assertOneWinner(outcomes, Booking, TutorConflictError)
        self.assertEqual(
            Booking.objects.filter(tutor=self.tutor, status__in=ACTIVE_BOOKING_STATUSES).count(), 1
        )


class ConcurrentRescheduleTests(RaceTestBase):
    def setUp(self):
        super().setUp()
        self.workflow = RescheduleWorkflow(self.guard)
        self.first = self.guard.create_booking(self.class_a.pk, self.student, at(self.day, 10))
        self.second = self.guard.create_booking(self.class_b.pk, self.other_student, at(self.day, 12))
        self.first_req = self.workflow.propose(self.first.pk, self.student, at(self.day, 15))
        self.second_req = self.workflow.propose(self.second.pk, self.other_student, at(self.day, 15))

    def test_accepts_into_same_slot_one_wins(self):
        outcomes = self.race(
            lambda: self.workflow.accept(self.first.pk, self.first_req.pk, self.tutor),
            lambda: self.workflow.accept(self.second.pk, self.second_req.pk, self.tutor),
        )
        accepted = self.assertOneWinner(outcomes, RescheduleRequest, RescheduleConflictError)

        self.assertEqual(Booking.objects.filter(tutor=self.tutor, scheduled_at=at(self.day, 15)).count(), 1)
        statuses = set(RescheduleRequest.objects.values_list("status", flat=True))
        self.assertEqual(statuses, {RescheduleRequest.Status.ACCEPTED, RescheduleRequest.Status.PENDING})
        self.assertEqual(
            RescheduleRequest.objects.get(status=RescheduleRequest.Status.ACCEPTED).pk, accepted.pk
        )
