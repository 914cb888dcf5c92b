"""
Conflict detection.

Given a candidate class and the student's enrolled courses, decide whether
adding it is a duplicate, an exact duplicate or a time clash, and collect
softer warnings (heavy load, back-to-back classes).

Overlap rule (half-open intervals):
    start < other_end AND other_start < end
so a class ending at 10:00 and one starting at 10:00 do not clash.

Candidate dict:  course_code, section, days, start_time, end_time, credit_hours
Enrolled dict:   code, section, name, days, start_time, end_time, credit_hours
"""

from __future__ import annotations

from typing import Any, Optional

from absencetracker.dates import normalize_days, try_minutes
from absencetracker.model import (
    DUPLICATE,
    EXACT_DUPLICATE,
    TIME_CONFLICT,
    ConflictResult,
    WarningResult,
)


MAX_CREDIT_HOURS = 20
BACK_TO_BACK_MINUTES = 30


def _credits(cls: dict[str, Any]) -> int:
    try:
        return int(cls.get("credit_hours") or 0)
    except (TypeError, ValueError):
        return 0


def _overlapping_days(a: dict[str, Any], b: dict[str, Any]) -> list[str]:
    other = set(normalize_days(b.get("days")))
    return [d for d in normalize_days(a.get("days")) if d in other]


def _interval(cls: dict[str, Any]) -> Optional[tuple[int, int]]:
    """(start, end) in minutes, or None if missing, invalid or empty."""
    start = try_minutes(cls.get("start_time"))
    end = try_minutes(cls.get("end_time"))
    if start is None or end is None or end <= start:
        return None
    return start, end


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and b_start < a_end


def has_time_overlap(a: dict[str, Any], b: dict[str, Any]) -> bool:
    """True if both classes meet on a shared weekday at overlapping times."""
    if not _overlapping_days(a, b):
        return False
    ia = _interval(a)
    ib = _interval(b)
    if ia is None or ib is None:
        return False
    return _overlaps(ia[0], ia[1], ib[0], ib[1])


def has_back_to_back(a: dict[str, Any], b: dict[str, Any]) -> bool:
    """True if, on a shared weekday, one class ends within 30 minutes of the other's start."""
    if not _overlapping_days(a, b):
        return False
    ia = _interval(a)
    ib = _interval(b)
    if ia is None or ib is None:
        return False
    gap1 = abs(ia[1] - ib[0])
    gap2 = abs(ib[1] - ia[0])
    return gap1 < BACK_TO_BACK_MINUTES or gap2 < BACK_TO_BACK_MINUTES


def detect_conflicts(candidate: Optional[dict[str, Any]], enrolled: Optional[list[dict[str, Any]]]) -> ConflictResult:
    """
    Check a candidate class against every enrolled course.

    Every reason found is appended to result.conflicts; result.type is the
    last one found, so callers that care about severity must read the list.
    """
    result = ConflictResult()
    if not candidate or not enrolled:
        return result

    code = str(candidate.get("course_code", "")).strip()
    section = str(candidate.get("section", "")).strip()

    for course in enrolled:
        enrolled_code = str(course.get("code", "")).strip()
        enrolled_section = str(course.get("section", "")).strip()

        if code and enrolled_code == code:
            if enrolled_section != section:
                result.add(
                    DUPLICATE,
                    course,
                    f"You're already enrolled in {code} Section {enrolled_section}. "
                    f"Adding Section {section} will create a duplicate.",
                )
            else:
                result.add(EXACT_DUPLICATE, course, f"You're already enrolled in {code} Section {section}.")

        if has_time_overlap(candidate, course):
            days = ", ".join(_overlapping_days(candidate, course))
            result.add(
                TIME_CONFLICT,
                course,
                f"Time conflict with {course.get('name') or enrolled_code} ({enrolled_code}) on {days}",
            )

    return result


def check_warnings(candidate: Optional[dict[str, Any]], enrolled: Optional[list[dict[str, Any]]]) -> WarningResult:
    """
    Advisory warnings that never block adding a class.
    """
    warnings = WarningResult()
    if not candidate:
        return warnings
    enrolled = enrolled or []

    total = sum(_credits(c) for c in enrolled)
    new_total = total + _credits(candidate)
    if new_total > MAX_CREDIT_HOURS:
        warnings.add(
            f"Adding this course will bring your total to {new_total} credit hours. That's a heavy load!"
        )

    for course in enrolled:
        if has_back_to_back(candidate, course):
            name = course.get("name") or course.get("code", "")
            warnings.add(f"Back-to-back class with {name}. You'll have minimal break time.")

    return warnings


def format_conflict_message(result: ConflictResult) -> str:
    """One prompt line describing a conflict result ('' when there is none)."""
    if not result.has_conflict:
        return ""

    if result.type == EXACT_DUPLICATE:
        return "This class is already in your courses."

    if result.type == DUPLICATE:
        course = result.conflicts[0]["course"]
        return (
            f"You're already enrolled in {course.get('code', '')} Section {course.get('section', '')}. "
            "Do you want to switch sections?"
        )

    if result.type == TIME_CONFLICT:
        names = ", ".join(
            str(c["course"].get("name") or c["course"].get("code", ""))
            for c in result.conflicts
        )
        return f"This class conflicts with: {names}. Do you still want to add it?"

    return "Conflict detected. Do you want to proceed?"
