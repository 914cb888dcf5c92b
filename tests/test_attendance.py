"""
Unit tests for attendance accounting.

The number of scheduled classes is injected (total_classes_fn) so the tests
do not depend on calendar arithmetic.
"""

import copy
import unittest

from absencetracker.attendance import (
    attendance_status,
    calculate_all_courses_stats,
    calculate_attendance_stats,
    calculate_summary_stats,
    day_status,
    round_half_up,
    session_status,
    simulate_attendance,
)
from absencetracker.model import SummaryStats


def _records(course_id: str, status: str, n: int, start_day: int = 1) -> list:
    return [{"course_id": course_id, "date": f"2026-03-{start_day + i:02d}", "status": status} for i in range(n)]


def thirty(course: dict) -> int:
    return 30


def ten(course: dict) -> int:
    return 10


class TestAttendanceStats(unittest.TestCase):
    def setUp(self) -> None:
        self.course = {"id": "daa", "initial_absences": 1, "allowed_absences": 6}
        self.records = (
            _records("daa", "absent", 3)
            + _records("daa", "cancelled", 2, start_day=10)
            + _records("daa", "present", 4, start_day=20)
            + _records("daa", "proxy", 1, start_day=28)
            + _records("os", "absent", 5)
        )

    def test_basic(self) -> None:
        stats = calculate_attendance_stats(self.course, self.records, thirty)
        self.assertEqual(stats.total_classes, 30)
        self.assertEqual(stats.adjusted_total, 28)
        self.assertEqual(stats.absences, 4)
        self.assertEqual(stats.cancelled, 2)
        self.assertEqual(stats.attended, 24)
        self.assertEqual(stats.percentage, 85.71)
        self.assertEqual(stats.remaining_absences, 2)
        self.assertEqual(stats.status, "safe")
        self.assertTrue(stats.is_safe)
        self.assertFalse(stats.is_at_risk)
        self.assertFalse(stats.over_absence)

    def test_idempotent(self) -> None:
        first = calculate_attendance_stats(self.course, self.records, thirty)
        second = calculate_attendance_stats(self.course, self.records, thirty)
        self.assertEqual(first, second)
        self.assertEqual(first.to_dict(), second.to_dict())

    def test_warning_band(self) -> None:
        stats = calculate_attendance_stats({"id": "x"}, _records("x", "absent", 2), ten)
        self.assertEqual(stats.percentage, 80.0)
        self.assertEqual(stats.status, "warning")
        self.assertFalse(stats.is_safe)
        self.assertFalse(stats.is_at_risk)

    def test_danger(self) -> None:
        stats = calculate_attendance_stats({"id": "x"}, _records("x", "absent", 3), ten)
        self.assertEqual(stats.percentage, 70.0)
        self.assertEqual(stats.status, "danger")
        self.assertTrue(stats.is_at_risk)

    def test_everything_cancelled_is_fully_attended(self) -> None:
        stats = calculate_attendance_stats({"id": "x"}, _records("x", "cancelled", 10), ten)
        self.assertEqual(stats.adjusted_total, 0)
        self.assertEqual(stats.percentage, 100.0)
        self.assertEqual(stats.status, "safe")
        self.assertFalse(stats.over_absence)

    def test_no_classes_scheduled(self) -> None:
        stats = calculate_attendance_stats({"id": "x"}, [], lambda c: 0)
        self.assertEqual(stats.percentage, 100.0)
        self.assertEqual(stats.remaining_absences, 0)

    def test_over_absence_is_clamped(self) -> None:
        course = {"id": "x", "initial_absences": 7, "allowed_absences": 2}
        stats = calculate_attendance_stats(course, [], lambda c: 5)
        self.assertEqual(stats.absences, 7)
        self.assertEqual(stats.attended, 0)
        self.assertEqual(stats.percentage, 0.0)
        self.assertTrue(stats.over_absence)
        self.assertEqual(stats.remaining_absences, 0)
        self.assertEqual(stats.status, "danger")

    def test_default_allowed_absences(self) -> None:
        # 20% of 30 scheduled classes
        stats = calculate_attendance_stats({"id": "x"}, _records("x", "absent", 4), thirty)
        self.assertEqual(stats.remaining_absences, 2)

    def test_course_without_id_owns_no_records(self) -> None:
        orphans = [{"date": "2026-03-02", "status": "absent"}, {"course_id": None, "date": "2026-03-03", "status": "absent"}]
        stats = calculate_attendance_stats({"initial_absences": 1}, orphans, ten)
        self.assertEqual(stats.absences, 1)
        self.assertEqual(stats.attended, 9)

    def test_uses_calendar_by_default(self) -> None:
        course = {"id": "x", "start_date": "2026-03-02", "end_date": "2026-03-15", "weekdays": ["Monday", "Wednesday"]}
        stats = calculate_attendance_stats(course, _records("x", "absent", 1))
        self.assertEqual(stats.total_classes, 4)
        self.assertEqual(stats.percentage, 75.0)


class TestStatusAndRounding(unittest.TestCase):
    def test_thresholds(self) -> None:
        self.assertEqual(attendance_status(100), "safe")
        self.assertEqual(attendance_status(85), "safe")
        self.assertEqual(attendance_status(84.99), "warning")
        self.assertEqual(attendance_status(80), "warning")
        self.assertEqual(attendance_status(79.99), "danger")
        self.assertEqual(attendance_status(0), "danger")

    def test_round_half_up(self) -> None:
        self.assertEqual(round_half_up(85.714285), 85.71)
        self.assertEqual(round_half_up(0.125), 0.13)
        self.assertEqual(round_half_up(66.666666), 66.67)


class TestSimulation(unittest.TestCase):
    def test_planned_absences_do_not_touch_records(self) -> None:
        course = {"id": "daa", "allowed_absences": 6}
        records = _records("daa", "absent", 2)
        snapshot = copy.deepcopy(records)

        stats = simulate_attendance(course, records, ["2026-04-06", "2026-04-08"], thirty)

        self.assertEqual(records, snapshot)
        self.assertEqual(len(records), 2)
        self.assertEqual(stats.absences, 4)
        self.assertEqual(stats.remaining_absences, 2)
        self.assertEqual(calculate_attendance_stats(course, records, thirty).absences, 2)

    def test_no_planned_dates(self) -> None:
        course = {"id": "daa"}
        records = _records("daa", "absent", 1)
        self.assertEqual(
            simulate_attendance(course, records, [], thirty),
            calculate_attendance_stats(course, records, thirty),
        )


class TestSummary(unittest.TestCase):
    def test_summary(self) -> None:
        courses = [{"id": "a"}, {"id": "b"}]
        records = _records("a", "absent", 1) + _records("b", "absent", 3)

        summary = calculate_summary_stats(courses, records, ten)
        self.assertEqual(summary.total_courses, 2)
        self.assertEqual(summary.avg_attendance, 80.0)
        self.assertEqual(summary.safe_courses, 1)
        self.assertEqual(summary.at_risk_courses, 1)
        self.assertEqual(summary.total_absences, 4)

        per_course = calculate_all_courses_stats(courses, records, ten)
        self.assertEqual([s.percentage for _, s in per_course], [90.0, 70.0])

    def test_no_courses(self) -> None:
        self.assertEqual(calculate_summary_stats([], []), SummaryStats())


class TestDayStatus(unittest.TestCase):
    # 2026-03-02 is a Monday
    COURSES = [
        {"id": "a", "weekdays": ["Monday", "Wednesday"]},
        {"id": "b", "weekdays": ["Monday"]},
        {"id": "c", "weekdays": ["Tuesday"]},
    ]

    def test_all_absent(self) -> None:
        records = [
            {"course_id": "a", "date": "2026-03-02", "status": "absent"},
            {"course_id": "b", "date": "2026-03-02", "status": "absent"},
        ]
        self.assertEqual(day_status("2026-03-02", self.COURSES, records), "absent")

    def test_unrecorded_counts_as_present(self) -> None:
        records = [{"course_id": "a", "date": "2026-03-02", "status": "present"}]
        self.assertEqual(day_status("2026-03-02", self.COURSES, records), "present")
        self.assertEqual(day_status("2026-03-02", self.COURSES, []), "present")

    def test_mixed(self) -> None:
        records = [{"course_id": "a", "date": "2026-03-02", "status": "absent"}]
        self.assertEqual(day_status("2026-03-02", self.COURSES, records), "mixed")

        cancelled = [{"course_id": "b", "date": "2026-03-02", "status": "cancelled"}]
        self.assertEqual(day_status("2026-03-02", self.COURSES, cancelled), "mixed")

    def test_no_classes_that_day(self) -> None:
        self.assertIsNone(day_status("2026-03-01", self.COURSES, []))
        self.assertIsNone(day_status("not a date", self.COURSES, []))

    def test_session_status(self) -> None:
        records = [{"course_id": "a", "date": "2026-03-02", "status": "proxy"}]
        self.assertEqual(session_status("a", "2026-03-02", records), "proxy")
        self.assertIsNone(session_status("a", "2026-03-04", records))
        self.assertIsNone(session_status(None, "2026-03-02", [{"date": "2026-03-02", "status": "absent"}]))


if __name__ == "__main__":
    unittest.main()
