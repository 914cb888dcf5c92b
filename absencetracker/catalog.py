"""
Catalog building (per-day entries -> section-based course catalog).

The grids are organized by room; students think in sections. The catalog maps
each section name to its CourseOfferings, one per course code, with every
weekly session folded into the offering's sessions list.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from absencetracker.config import DEFAULT_CONFIG, GridConfig
from absencetracker.dates import split_range
from absencetracker.gridparse import parse_day
from absencetracker.model import CourseOffering, SessionEntry


Catalog = Dict[str, List[CourseOffering]]


def group_by_section(entries: Iterable[SessionEntry]) -> Dict[str, List[SessionEntry]]:
    """Group entries by their (uppercased) section name, keeping input order."""
    sections: Dict[str, List[SessionEntry]] = {}
    for entry in entries:
        sections.setdefault(entry.section.upper(), []).append(entry)
    return sections


def build_catalog(entries: Iterable[SessionEntry]) -> Catalog:
    """
    Aggregate entries into CourseOfferings keyed by (course_code, section).

    Sessions keep first-seen order; instructor and name come from the first
    entry of each offering.
    """
    catalog: Catalog = {}

    for section, section_entries in group_by_section(entries).items():
        offerings: Dict[tuple[str, str], CourseOffering] = {}
        for entry in section_entries:
            key = (entry.course_code, entry.section)
            offering = offerings.get(key)
            if offering is None:
                offering = CourseOffering(
                    course_code=entry.course_code,
                    course_name=entry.course_name,
                    section=entry.section,
                    instructor=entry.instructor,
                )
                offerings[key] = offering
            offering.sessions.append(entry)
        catalog[section] = list(offerings.values())

    return catalog


def parse_timetable(grids: Mapping[str, str], config: GridConfig = DEFAULT_CONFIG) -> Catalog:
    """
    Parse every day grid ({day name: CSV or HTML text}) and build the catalog.
    """
    entries: List[SessionEntry] = []
    for day, text in grids.items():
        entries.extend(parse_day(text, day, config))
    return build_catalog(entries)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def all_sections(catalog: Mapping[str, List[CourseOffering]]) -> List[str]:
    return sorted(catalog)


def courses_for_section(catalog: Mapping[str, List[CourseOffering]], section: str) -> List[CourseOffering]:
    """Offerings of one section; unknown sections give an empty list."""
    return list(catalog.get((section or "").strip().upper(), []))


def search_offerings(catalog: Mapping[str, List[CourseOffering]], text: str) -> List[CourseOffering]:
    """
    Case-insensitive substring search over code, name, section, instructor
    and rooms. An empty query matches nothing.
    """
    query = (text or "").strip().lower()
    if not query:
        return []

    matches: List[CourseOffering] = []
    for section in all_sections(catalog):
        for offering in catalog[section]:
            rooms = " ".join(s.room for s in offering.sessions)
            hay = " ".join(
                [offering.course_code, offering.course_name, offering.section, offering.instructor, rooms]
            ).lower()
            if query in hay:
                matches.append(offering)
    return matches


def offering_to_candidate(offering: CourseOffering) -> Dict[str, Any]:
    """
    Shape an offering as a candidate for the conflict engine: all distinct
    session days, times taken from the first session.
    """
    days: List[str] = []
    for s in offering.sessions:
        if s.day and s.day not in days:
            days.append(s.day)

    start, end = split_range(offering.time_slot or "")
    return {
        "course_code": offering.course_code,
        "section": offering.section,
        "name": offering.course_name,
        "days": days,
        "start_time": start,
        "end_time": end,
        "credit_hours": offering.credit_hours,
    }


def offering_to_enrolled(offering: CourseOffering) -> Dict[str, Any]:
    """Shape an offering the way enrolled courses are stored."""
    candidate = offering_to_candidate(offering)
    return {
        "code": candidate["course_code"],
        "section": candidate["section"],
        "name": candidate["name"],
        "days": candidate["days"],
        "start_time": candidate["start_time"],
        "end_time": candidate["end_time"],
        "credit_hours": candidate["credit_hours"],
    }


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def catalog_to_json(catalog: Mapping[str, List[CourseOffering]]) -> Dict[str, List[Dict[str, Any]]]:
    return {section: [o.to_dict() for o in offerings] for section, offerings in catalog.items()}


def catalog_from_json(data: Any) -> Catalog:
    """Rebuild a catalog from catalog_to_json() output; bad input gives {}."""
    if not isinstance(data, dict):
        return {}

    catalog: Catalog = {}
    for section, offerings in data.items():
        if not isinstance(offerings, list):
            continue
        catalog[str(section)] = [CourseOffering.from_dict(o) for o in offerings if isinstance(o, dict)]
    return catalog
