"""
Attendance accounting.

Course dict:  id, start_date, end_date, weekdays, initial_absences, allowed_absences
Record dict:  course_id, date (ISO), status (present / absent / cancelled / proxy)

Rules:
- cancelled sessions count neither for nor against attendance
- proxy and present both count as attended
- a course with no effective sessions is 100% attended
- status: safe >= 85%, warning >= 80%, danger below that
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Optional

from absencetracker.dates import calculate_total_classes, normalize_days, weekday_name
from absencetracker.model import (
    ABSENT,
    CANCELLED,
    DANGER,
    PRESENT,
    SAFE,
    WARNING,
    AttendanceStats,
    SummaryStats,
)


SAFE_THRESHOLD = 85
WARNING_THRESHOLD = 80
DEFAULT_ALLOWED_ABSENCE_RATIO = 0.2

TotalClassesFn = Callable[[dict[str, Any]], int]


def round_half_up(value: float, digits: int = 2) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def attendance_status(percentage: float) -> str:
    """safe / warning / danger for a percentage. Danger is anything below warning."""
    if percentage >= SAFE_THRESHOLD:
        return SAFE
    if percentage >= WARNING_THRESHOLD:
        return WARNING
    return DANGER


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _records_for(course_id: Any, records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    # a course without an id owns no records
    if course_id is None:
        return []
    return [r for r in records if r.get("course_id") == course_id]


def calculate_attendance_stats(
    course: dict[str, Any],
    records: Iterable[dict[str, Any]],
    total_classes_fn: TotalClassesFn = calculate_total_classes,
) -> AttendanceStats:
    """
    Attendance figures for one course from its schedule and its records.

    Absences beyond the classes that took place clamp `attended` and
    `percentage` at 0 and set `over_absence`.
    """
    total_classes = total_classes_fn(course)
    course_records = _records_for(course.get("id"), records)

    tracked_absences = sum(1 for r in course_records if r.get("status") == ABSENT)
    absences = _as_int(course.get("initial_absences")) + tracked_absences

    cancelled = sum(1 for r in course_records if r.get("status") == CANCELLED)
    adjusted_total = total_classes - cancelled

    over_absence = absences > max(adjusted_total, 0)
    attended = max(0, adjusted_total - absences)

    percentage = attended * 100 / adjusted_total if adjusted_total > 0 else 100.0

    allowed = course.get("allowed_absences")
    if allowed is None:
        allowed = int(total_classes * DEFAULT_ALLOWED_ABSENCE_RATIO)
    remaining = max(0, _as_int(allowed) - absences)

    return AttendanceStats(
        total_classes=total_classes,
        adjusted_total=adjusted_total,
        attended=attended,
        absences=absences,
        cancelled=cancelled,
        percentage=round_half_up(percentage),
        remaining_absences=remaining,
        status=attendance_status(percentage),
        is_at_risk=percentage < WARNING_THRESHOLD,
        is_safe=percentage >= SAFE_THRESHOLD,
        over_absence=over_absence,
    )


def simulate_attendance(
    course: dict[str, Any],
    records: Iterable[dict[str, Any]],
    planned_dates: Iterable[str],
    total_classes_fn: TotalClassesFn = calculate_total_classes,
) -> AttendanceStats:
    """
    What-if stats: the real records plus one absence per planned date.
    Nothing passed in is modified.
    """
    simulated = list(records)
    simulated.extend(
        {"course_id": course.get("id"), "date": d, "status": ABSENT, "is_planned": True}
        for d in planned_dates
    )
    return calculate_attendance_stats(course, simulated, total_classes_fn)


def calculate_all_courses_stats(
    courses: Iterable[dict[str, Any]],
    records: Iterable[dict[str, Any]],
    total_classes_fn: TotalClassesFn = calculate_total_classes,
) -> list[tuple[dict[str, Any], AttendanceStats]]:
    records = list(records)
    return [(c, calculate_attendance_stats(c, records, total_classes_fn)) for c in courses]


def calculate_summary_stats(
    courses: Iterable[dict[str, Any]],
    records: Iterable[dict[str, Any]],
    total_classes_fn: TotalClassesFn = calculate_total_classes,
) -> SummaryStats:
    """
    Totals over all courses. The average is the plain mean of course
    percentages, not weighted by class count.
    """
    all_stats = [s for _, s in calculate_all_courses_stats(courses, records, total_classes_fn)]
    if not all_stats:
        return SummaryStats()

    avg = sum(s.percentage for s in all_stats) / len(all_stats)
    return SummaryStats(
        total_courses=len(all_stats),
        avg_attendance=round_half_up(avg),
        safe_courses=sum(1 for s in all_stats if s.is_safe),
        at_risk_courses=sum(1 for s in all_stats if s.is_at_risk),
        total_absences=sum(s.absences for s in all_stats),
    )


def session_status(course_id: Any, date: str, records: Iterable[dict[str, Any]]) -> Optional[str]:
    """Status recorded for a course on a date, or None."""
    for r in _records_for(course_id, records):
        if r.get("date") == date:
            return r.get("status")
    return None


def day_status(date: str, courses: Iterable[dict[str, Any]], records: Iterable[dict[str, Any]]) -> Optional[str]:
    """
    'absent' if every class that day was missed, 'present' if every class was
    attended or left unrecorded, 'mixed' otherwise; None without classes.
    """
    day = weekday_name(date)
    if day is None:
        return None

    records = list(records)
    on_date = [c for c in courses if day in normalize_days(c.get("weekdays"))]
    if not on_date:
        return None

    statuses = [session_status(c.get("id"), date, records) for c in on_date]
    if all(s == ABSENT for s in statuses):
        return "absent"
    if all(s is None or s == PRESENT for s in statuses):
        return "present"
    return "mixed"
