from datetime import date
from types import SimpleNamespace

from django.test import SimpleTestCase

from scheduling.tests.helpers import at
from scheduling.utils.conflicts import (
    booking_interval,
    filter_free,
    find_conflict,
    free_starts,
    intervals_overlap,
    within_student_window,
)

DAY = date(2024, 6, 3)
NEXT_DAY = date(2024, 6, 4)


def booking(start, minutes=60, status="CONFIRMED", pk=1):
    return SimpleNamespace(pk=pk, scheduled_at=start, duration_minutes=minutes, status=status)


class OverlapTests(SimpleTestCase):
    def test_touching_boundaries_never_conflict(self):
        self.assertFalse(intervals_overlap(at(DAY, 9), at(DAY, 10), at(DAY, 10), at(DAY, 11)))
        self.assertFalse(intervals_overlap(at(DAY, 10), at(DAY, 11), at(DAY, 9), at(DAY, 10)))

    def test_overlap_is_symmetric(self):
        a = (at(DAY, 9), at(DAY, 10))
        b = (at(DAY, 9, 30), at(DAY, 10, 30))
        self.assertTrue(intervals_overlap(*a, *b))
        self.assertTrue(intervals_overlap(*b, *a))

    def test_duration_falls_back_to_candidate(self):
        b = booking(at(DAY, 9), minutes=None)
        self.assertEqual(booking_interval(b, 45), (at(DAY, 9), at(DAY, 9, 45)))


class FindConflictTests(SimpleTestCase):
    def test_overlapping_booking_is_returned(self):
        b = booking(at(DAY, 9))
        self.assertIs(find_conflict(at(DAY, 9, 30), 60, [b]), b)

    def test_adjacent_booking_is_free(self):
        self.assertIsNone(find_conflict(at(DAY, 10), 60, [booking(at(DAY, 9))]))

    def test_cancelled_and_completed_do_not_block(self):
        bookings = [booking(at(DAY, 9), status="CANCELLED"), booking(at(DAY, 9), status="COMPLETED")]
        self.assertIsNone(find_conflict(at(DAY, 9), 60, bookings))

    def test_same_day_only_skips_previous_day(self):
        late = booking(at(DAY, 23, 30), minutes=60)
        self.assertIsNone(find_conflict(at(NEXT_DAY, 0), 60, [late]))
        self.assertIs(find_conflict(at(NEXT_DAY, 0), 60, [late], same_day_only=False), late)


class FilterFreeTests(SimpleTestCase):
    def test_booking_in_other_class_blocks_slot(self):
        """A 09:00 booking removes 09:00 and leaves 10:00."""
        taken = booking(at(DAY, 9), pk="b1")
        slots = filter_free([at(DAY, 9), at(DAY, 10)], 60, [taken])
        self.assertEqual([s.is_free for s in slots], [False, True])
        self.assertIs(slots[0].booking, taken)
        self.assertEqual(slots[1].end, at(DAY, 11))
        self.assertEqual(free_starts([at(DAY, 9), at(DAY, 10)], 60, [taken]), [at(DAY, 10)])


class StudentWindowTests(SimpleTestCase):
    def test_within_thirty_minutes(self):
        b = booking(at(DAY, 14), status="PENDING")
        self.assertIs(within_student_window(at(DAY, 14, 20), [b]), b)
        self.assertIs(within_student_window(at(DAY, 13, 30), [b]), b)

    def test_window_ignores_duration(self):
        long_one = booking(at(DAY, 13), minutes=120)
        self.assertIsNone(within_student_window(at(DAY, 14), [long_one]))

    def test_outside_window_or_inactive(self):
        self.assertIsNone(within_student_window(at(DAY, 14, 31), [booking(at(DAY, 14))]))
        self.assertIsNone(within_student_window(at(DAY, 14), [booking(at(DAY, 14), status="CANCELLED")]))
