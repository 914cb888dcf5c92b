"""
Time and date helpers shared by the parser and the engines.

- clock strings ("9:00", "09:00", "9:00 AM") <-> minutes since midnight
- weekday name normalization ("mon", "Mon", "monday" -> "Monday")
- counting how often a course meets between two dates
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Any, Iterable, Optional


WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# Grid days in the order the timetable is published
SCHOOL_DAYS = WEEKDAY_NAMES[:5]

_DAY_ALIASES = {
    "mo": "Monday", "mon": "Monday",
    "tu": "Tuesday", "tue": "Tuesday", "tues": "Tuesday",
    "we": "Wednesday", "wed": "Wednesday",
    "th": "Thursday", "thu": "Thursday", "thur": "Thursday", "thurs": "Thursday",
    "fr": "Friday", "fri": "Friday",
    "sa": "Saturday", "sat": "Saturday",
    "su": "Sunday", "sun": "Sunday",
}

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])?$")


# ---------------------------------------------------------------------------
# Clock times
# ---------------------------------------------------------------------------


def to_minutes(text: str) -> int:
    """
    Convert a clock string to minutes since midnight.

    Accepts 24-hour "H:MM" / "HH:MM" and 12-hour "H:MM AM" / "H:MM PM".
    12 AM is midnight, 12 PM stays noon.
    Raises ValueError for anything else.
    """
    m = _CLOCK_RE.match(text.strip())
    if not m:
        raise ValueError(f"Invalid time format: {text!r}")

    hours = int(m.group(1))
    minutes = int(m.group(2))
    meridiem = (m.group(3) or "").upper()

    if meridiem == "PM" and hours < 12:
        hours += 12
    elif meridiem == "AM" and hours == 12:
        hours = 0

    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time value: {text!r}")
    return hours * 60 + minutes


def try_minutes(text: Any) -> Optional[int]:
    """Like to_minutes(), but returns None for missing or invalid input."""
    if not isinstance(text, str) or not text.strip():
        return None
    try:
        return to_minutes(text)
    except ValueError:
        return None


def format_minutes(total: int) -> str:
    """Minutes since midnight -> 'HH:MM'."""
    return f"{total // 60:02d}:{total % 60:02d}"


def split_range(time_slot: str) -> tuple[str, str]:
    """
    Split a 'HH:MM-HH:MM' range into its start and end strings.
    Returns ('', '') when there is no dash.
    """
    if "-" not in time_slot:
        return "", ""
    start, end = time_slot.split("-", 1)
    return start.strip(), end.strip()


# ---------------------------------------------------------------------------
# Weekdays
# ---------------------------------------------------------------------------


def normalize_day(text: Any) -> Optional[str]:
    """Map 'mon', 'MON', 'Monday', 'Mo' ... to the full weekday name."""
    if not isinstance(text, str):
        return None
    t = text.strip().lower()
    if not t:
        return None
    for name in WEEKDAY_NAMES:
        if t == name.lower():
            return name
    return _DAY_ALIASES.get(t)


def normalize_days(days: Any) -> list[str]:
    """Normalize a list of weekday names, dropping unknown ones and duplicates."""
    if not isinstance(days, (list, tuple, set, frozenset)):
        return []
    out: list[str] = []
    for d in days:
        name = normalize_day(d)
        if name and name not in out:
            out.append(name)
    return out


def weekday_name(iso_date: str) -> Optional[str]:
    """Weekday name of an ISO date ('2026-02-16' -> 'Monday'), None if invalid."""
    try:
        return WEEKDAY_NAMES[date.fromisoformat(iso_date.strip()).weekday()]
    except (AttributeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Occurrence counting
# ---------------------------------------------------------------------------


def count_weekday_occurrences(start: date, end: date, weekdays: Iterable[str]) -> int:
    """
    Count dates in [start, end] (inclusive) whose weekday is in `weekdays`.
    """
    wanted = {WEEKDAY_NAMES.index(d) for d in normalize_days(list(weekdays))}
    if not wanted or end < start:
        return 0

    # whole weeks contribute len(wanted) each, the remainder is walked
    span = (end - start).days + 1
    full_weeks, rest = divmod(span, 7)
    count = full_weeks * len(wanted)
    tail_start = start + timedelta(days=full_weeks * 7)
    for i in range(rest):
        if (tail_start + timedelta(days=i)).weekday() in wanted:
            count += 1
    return count


def calculate_total_classes(course: dict[str, Any]) -> int:
    """
    Number of scheduled meetings of a course.

    Reads `start_date`, `end_date` (ISO) and `weekdays` from the course dict.
    Missing or invalid dates count as no meetings at all.
    """
    try:
        start = date.fromisoformat(str(course.get("start_date", "")).strip())
        end = date.fromisoformat(str(course.get("end_date", "")).strip())
    except ValueError:
        return 0
    return count_weekday_occurrences(start, end, course.get("weekdays") or [])
