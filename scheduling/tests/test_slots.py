from datetime import date, time
from types import SimpleNamespace

from django.test import SimpleTestCase

from scheduling.tests.helpers import at
from scheduling.utils.slots import compute_candidates, parse_hhmm, rule_day_for

MONDAY = date(2024, 6, 3)


def rule(day, start, end):
    return SimpleNamespace(day_of_week=day, start_time=start, end_time=end)


class RuleDayTests(SimpleTestCase):
    def test_sunday_is_zero(self):
        self.assertEqual(rule_day_for(date(2024, 6, 2)), 0)
        self.assertEqual(rule_day_for(MONDAY), 1)
        self.assertEqual(rule_day_for(date(2024, 6, 8)), 6)

    def test_parse_hhmm(self):
        self.assertEqual(parse_hhmm("09:30"), time(9, 30))
        self.assertEqual(parse_hhmm(time(7, 0)), time(7, 0))
        with self.assertRaises(ValueError):
            parse_hhmm("9am")


class ComputeCandidatesTests(SimpleTestCase):
    def test_two_hour_window_hourly(self):
        """Monday 09:00-11:00, 60 min, step 60 -> 09:00 and 10:00."""
        starts = compute_candidates(MONDAY, [rule(1, time(9), time(11))], 60, 60)
        self.assertEqual(starts, [at(MONDAY, 9), at(MONDAY, 10)])

    def test_other_days_ignored(self):
        self.assertEqual(compute_candidates(MONDAY, [rule(2, time(9), time(11))], 60), [])

    def test_last_start_must_fit(self):
        starts = compute_candidates(MONDAY, [rule(1, time(9), time(11))], 90, 60)
        self.assertEqual(starts, [at(MONDAY, 9)])

    def test_step_shorter_than_duration(self):
        starts = compute_candidates(MONDAY, [rule(1, time(9), time(11))], 60, 30)
        self.assertEqual(starts, [at(MONDAY, 9), at(MONDAY, 9, 30), at(MONDAY, 10)])

    def test_window_shorter_than_duration(self):
        self.assertEqual(compute_candidates(MONDAY, [rule(1, time(9), time(9, 45))], 60), [])

    def test_rules_concatenate_in_order_with_repeats(self):
        rules = [rule(1, time(14), time(15)), rule(1, time(9), time(10)), rule(1, time(14), time(15))]
        starts = compute_candidates(MONDAY, rules, 60)
        self.assertEqual(starts, [at(MONDAY, 14), at(MONDAY, 9), at(MONDAY, 14)])

    def test_string_times(self):
        starts = compute_candidates(MONDAY, [rule(1, "09:00", "10:00")], 60)
        self.assertEqual(starts, [at(MONDAY, 9)])

    def test_deterministic(self):
        rules = [rule(1, time(8), time(12)), rule(1, time(13), time(17))]
        self.assertEqual(
            compute_candidates(MONDAY, rules, 45, 30),
            compute_candidates(MONDAY, rules, 45, 30),
        )

    def test_rejects_non_positive_duration_or_step(self):
        with self.assertRaises(ValueError):
            compute_candidates(MONDAY, [], 0)
        with self.assertRaises(ValueError):
            compute_candidates(MONDAY, [], 60, 0)
