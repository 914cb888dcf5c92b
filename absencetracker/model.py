"""
Central data model definitions used across the project.

SessionEntry and CourseOffering are produced by the timetable parser;
ConflictResult, WarningResult, AttendanceStats and SummaryStats are the
value objects handed back by the engines.

Enrolled courses, candidates, attendance courses and attendance records stay
plain dicts: they come straight out of JSON storage and are only read here.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, List, Optional


# Attendance record statuses
PRESENT = "present"
ABSENT = "absent"
CANCELLED = "cancelled"
PROXY = "proxy"

# Conflict types
NO_CONFLICT = "none"
DUPLICATE = "duplicate"
EXACT_DUPLICATE = "exact_duplicate"
TIME_CONFLICT = "time_conflict"

# Attendance status
SAFE = "safe"
WARNING = "warning"
DANGER = "danger"


@dataclass(frozen=True)
class SessionEntry:
    """
    One occurrence of a course on one day, parsed from one grid cell.
    """

    course_code: str
    course_name: str
    section: str
    instructor: str
    room: str
    day: str
    time_slot: str
    slot_number: int
    slot_count: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionEntry":
        return cls(
            course_code=str(data.get("course_code", "")),
            course_name=str(data.get("course_name") or data.get("course_code", "")),
            section=str(data.get("section", "")),
            instructor=str(data.get("instructor") or "TBA"),
            room=str(data.get("room", "")),
            day=str(data.get("day", "")),
            time_slot=str(data.get("time_slot", "")),
            slot_number=int(data.get("slot_number", 0)),
            slot_count=int(data.get("slot_count") or 1),
        )


@dataclass
class CourseOffering:
    """
    A (course_code, section) pair with all of its weekly sessions.

    credit_hours is the number of distinct weekly sessions, not the number of
    table slots they occupy. The single-session fields (day, time_slot, room,
    slot_number, slot_count) mirror the first session for older callers.
    """

    course_code: str
    course_name: str
    section: str
    instructor: str
    sessions: List[SessionEntry] = field(default_factory=list)

    @property
    def credit_hours(self) -> int:
        return len(self.sessions)

    @property
    def day(self) -> Optional[str]:
        return self.sessions[0].day if self.sessions else None

    @property
    def time_slot(self) -> Optional[str]:
        return self.sessions[0].time_slot if self.sessions else None

    @property
    def room(self) -> Optional[str]:
        return self.sessions[0].room if self.sessions else None

    @property
    def slot_number(self) -> Optional[int]:
        return self.sessions[0].slot_number if self.sessions else None

    @property
    def slot_count(self) -> Optional[int]:
        return self.sessions[0].slot_count if self.sessions else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_code": self.course_code,
            "course_name": self.course_name,
            "section": self.section,
            "instructor": self.instructor,
            "credit_hours": self.credit_hours,
            "sessions": [
                {
                    "day": s.day,
                    "time_slot": s.time_slot,
                    "room": s.room,
                    "slot_number": s.slot_number,
                    "slot_count": s.slot_count,
                }
                for s in self.sessions
            ],
            "day": self.day,
            "time_slot": self.time_slot,
            "room": self.room,
            "slot_number": self.slot_number,
            "slot_count": self.slot_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CourseOffering":
        code = str(data.get("course_code", ""))
        name = str(data.get("course_name") or code)
        section = str(data.get("section", ""))
        instructor = str(data.get("instructor") or "TBA")

        sessions: List[SessionEntry] = []
        for s in data.get("sessions") or []:
            if not isinstance(s, dict):
                continue
            sessions.append(
                SessionEntry.from_dict(
                    {**s, "course_code": code, "course_name": name, "section": section, "instructor": instructor}
                )
            )
        return cls(course_code=code, course_name=name, section=section, instructor=instructor, sessions=sessions)


@dataclass
class ConflictResult:
    """
    Outcome of a conflict check. `type` is the last reason found; every
    reason is kept in `conflicts` as {"type", "course", "message"}.
    """

    has_conflict: bool = False
    type: str = NO_CONFLICT
    conflicts: List[dict[str, Any]] = field(default_factory=list)

    def add(self, kind: str, course: dict[str, Any], message: str) -> None:
        self.has_conflict = True
        self.type = kind
        self.conflicts.append({"type": kind, "course": course, "message": message})


@dataclass
class WarningResult:
    has_warning: bool = False
    messages: List[str] = field(default_factory=list)

    def add(self, message: str) -> None:
        self.has_warning = True
        self.messages.append(message)


@dataclass(frozen=True)
class AttendanceStats:
    """
    Derived attendance figures for one course.

    over_absence is True when the recorded absences exceed the classes that
    actually took place; attended and percentage are clamped at 0 then.
    """

    total_classes: int
    adjusted_total: int
    attended: int
    absences: int
    cancelled: int
    percentage: float
    remaining_absences: int
    status: str
    is_at_risk: bool
    is_safe: bool
    over_absence: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SummaryStats:
    total_courses: int = 0
    avg_attendance: float = 0.0
    safe_courses: int = 0
    at_risk_courses: int = 0
    total_absences: int = 0
