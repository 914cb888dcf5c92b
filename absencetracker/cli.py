"""
CLI (Command Line Interface).

Quick terminal commands over the timetable catalog and attendance data, e.g.:

    absencetracker fetch --url Monday=https://...
    absencetracker build
    absencetracker sections
    absencetracker show BCS-5B
    absencetracker search networks
    absencetracker check DAA BCS-5B
    absencetracker enroll DAA BCS-5B
    absencetracker stats
    absencetracker simulate <course_id> 2026-03-02 2026-03-09
    absencetracker day 2026-03-02

Output is plain text.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

import requests

from absencetracker import storage
from absencetracker.attendance import calculate_all_courses_stats, calculate_summary_stats, day_status, simulate_attendance
from absencetracker.catalog import (
    Catalog,
    all_sections,
    courses_for_section,
    offering_to_candidate,
    offering_to_enrolled,
    parse_timetable,
    search_offerings,
)
from absencetracker.config import DEFAULT_CONFIG, load_grid_config
from absencetracker.conflicts import check_warnings, detect_conflicts, format_conflict_message
from absencetracker.fetch import RAW_DIR, SOURCES_PATH, fetch_day_grids, load_day_grids, load_sources, parse_source_args
from absencetracker.model import EXACT_DUPLICATE, CourseOffering


def _load_catalog(args: argparse.Namespace) -> Catalog:
    catalog = storage.load_catalog(args.data_dir)
    if not catalog:
        print("No timetable found. Run 'absencetracker build' first.")
    elif storage.is_catalog_stale(args.data_dir):
        print("Note: the cached timetable is more than a day old.")
    return catalog


def _find_offering(catalog: Catalog, code: str, section: str) -> Optional[CourseOffering]:
    for offering in courses_for_section(catalog, section):
        if offering.course_code.lower() == code.strip().lower():
            return offering
    return None


def _format_offering(o: CourseOffering) -> str:
    sessions = ", ".join(f"{s.day[:3]} {s.time_slot} {s.room}" for s in o.sessions)
    return f"{o.course_code} | {o.section} | {o.course_name} | {o.instructor} | {o.credit_hours} cr | {sessions}"


def _cmd_fetch(args: argparse.Namespace) -> int:
    try:
        sources = load_sources(args.sources)
        sources.update(parse_source_args(args.url))
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    if not sources:
        print("No grid sources configured.")
        return 1

    try:
        fetch_day_grids(sources, raw_dir=args.raw_dir, refresh=args.refresh, sleep_seconds=args.sleep)
    except requests.RequestException as e:
        print(f"Fetching failed: {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_build(args: argparse.Namespace) -> int:
    """
    Parse the cached day grids and store the section catalog.
    """
    try:
        config = load_grid_config(args.config) if args.config else DEFAULT_CONFIG
    except (OSError, ValueError) as e:
        print(f"Invalid grid config: {e}", file=sys.stderr)
        return 1

    grids = load_day_grids(args.raw_dir)
    if not grids:
        print(f"No day grids found in {args.raw_dir}")
        return 1

    catalog = parse_timetable(grids, config)
    path = storage.save_catalog(catalog, args.data_dir)

    n = sum(len(v) for v in catalog.values())
    print(f"Parsed {n} offerings in {len(catalog)} sections across {len(grids)} days")
    print(f"Catalog written to {path}")
    return 0


def _cmd_sections(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args)
    for section in all_sections(catalog):
        print(f"{section} ({len(catalog[section])} courses)")
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    catalog = _load_catalog(args)
    offerings = courses_for_section(catalog, args.section)
    if not offerings:
        print("No courses for this section.")
        return 0
    for o in offerings:
        print(_format_offering(o))
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    query = (args.text or "").strip()
    if not query:
        print("Please provide a search text.")
        return 1

    matches = search_offerings(_load_catalog(args), query)
    if not matches:
        print("No results.")
        return 0

    # show max 20
    for o in matches[:20]:
        print(_format_offering(o))
    if len(matches) > 20:
        print(f"... and {len(matches) - 20} more results")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """
    Check a catalog offering against the enrolled courses.
    Exit code 0 = clear, 3 = conflict found.
    """
    offering = _find_offering(_load_catalog(args), args.code, args.section)
    if offering is None:
        print(f"Not found: {args.code} {args.section}")
        return 1

    candidate = offering_to_candidate(offering)
    enrolled = storage.load_enrolled(args.data_dir)

    result = detect_conflicts(candidate, enrolled)
    warnings = check_warnings(candidate, enrolled)

    if result.has_conflict:
        print(format_conflict_message(result))
        for c in result.conflicts:
            print(f"- {c['message']}")
    else:
        print("No conflicts found.")

    for msg in warnings.messages:
        print(f"Warning: {msg}")

    return 3 if result.has_conflict else 0


def _cmd_enroll(args: argparse.Namespace) -> int:
    offering = _find_offering(_load_catalog(args), args.code, args.section)
    if offering is None:
        print(f"Not found: {args.code} {args.section}")
        return 1

    enrolled = storage.load_enrolled(args.data_dir)
    result = detect_conflicts(offering_to_candidate(offering), enrolled)

    if any(c["type"] == EXACT_DUPLICATE for c in result.conflicts):
        print("This class is already in your courses.")
        return 0
    if result.has_conflict and not args.force:
        print(format_conflict_message(result))
        print("Use --force to add it anyway.")
        return 3

    enrolled.append(offering_to_enrolled(offering))
    storage.save_enrolled(enrolled, args.data_dir)
    print(f"Added: {offering.course_code} {offering.section} (enrolled: {len(enrolled)})")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    courses = storage.load_courses(args.data_dir)
    if not courses:
        print("No courses tracked.")
        return 0

    records = storage.load_records(args.data_dir)
    for course, stats in calculate_all_courses_stats(courses, records):
        name = course.get("name") or course.get("id")
        print(
            f"{name}: {stats.percentage:.2f}% ({stats.status}) "
            f"absences {stats.absences}, {stats.remaining_absences} left, "
            f"{stats.attended}/{stats.adjusted_total} attended"
        )

    summary = calculate_summary_stats(courses, records)
    print(
        f"Average {summary.avg_attendance:.2f}% over {summary.total_courses} courses, "
        f"{summary.safe_courses} safe, {summary.at_risk_courses} at risk"
    )
    return 0


def _cmd_simulate(args: argparse.Namespace) -> int:
    course = next((c for c in storage.load_courses(args.data_dir) if str(c.get("id")) == args.course_id), None)
    if course is None:
        print(f"Unknown course id: {args.course_id}")
        return 1

    stats = simulate_attendance(course, storage.load_records(args.data_dir), args.dates)
    print(
        f"After skipping {len(args.dates)} more classes: {stats.percentage:.2f}% ({stats.status}), "
        f"{stats.remaining_absences} absences left"
    )
    return 0


def _cmd_day(args: argparse.Namespace) -> int:
    status = day_status(args.date, storage.load_courses(args.data_dir), storage.load_records(args.data_dir))
    print(status if status is not None else "No classes.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="absencetracker", description="Timetable catalog and attendance tracker")
    parser.add_argument("--data-dir", type=Path, default=None, help="Folder for processed JSON data")
    sub = parser.add_subparsers(dest="command", required=True)

    p_fetch = sub.add_parser("fetch", help="Download day grids")
    p_fetch.add_argument("--url", action="append", default=[], metavar="DAY=URL", help="Grid URL for one day")
    p_fetch.add_argument("--sources", type=Path, default=SOURCES_PATH, help="JSON file mapping days to URLs")
    p_fetch.add_argument("--raw-dir", type=Path, default=RAW_DIR)
    p_fetch.add_argument("--refresh", action="store_true", help="Overwrite cached grids")
    p_fetch.add_argument("--sleep", type=float, default=0.2, help="Sleep seconds between requests")

    p_build = sub.add_parser("build", help="Parse cached day grids into the catalog")
    p_build.add_argument("--raw-dir", type=Path, default=RAW_DIR)
    p_build.add_argument("--config", type=Path, default=None, help="Grid config JSON (slots, course names)")

    sub.add_parser("sections", help="List sections")

    p_show = sub.add_parser("show", help="Show courses of a section")
    p_show.add_argument("section", type=str, help="Section (e.g. BCS-5B)")

    p_search = sub.add_parser("search", help="Search offerings")
    p_search.add_argument("text", type=str, help="Search text")

    p_check = sub.add_parser("check", help="Check an offering against enrolled courses")
    p_check.add_argument("code", type=str, help="Course code (e.g. DAA)")
    p_check.add_argument("section", type=str, help="Section (e.g. BCS-5B)")

    p_enroll = sub.add_parser("enroll", help="Enroll in an offering")
    p_enroll.add_argument("code", type=str)
    p_enroll.add_argument("section", type=str)
    p_enroll.add_argument("--force", action="store_true", help="Add even if it conflicts")

    sub.add_parser("stats", help="Attendance statistics for tracked courses")

    p_sim = sub.add_parser("simulate", help="Attendance if the given dates are skipped")
    p_sim.add_argument("course_id", type=str)
    p_sim.add_argument("dates", nargs="+", help="ISO dates (YYYY-MM-DD)")

    p_day = sub.add_parser("day", help="Attendance status of one date")
    p_day.add_argument("date", type=str, help="ISO date (YYYY-MM-DD)")

    return parser


_COMMANDS = {
    "fetch": _cmd_fetch,
    "build": _cmd_build,
    "sections": _cmd_sections,
    "show": _cmd_show,
    "search": _cmd_search,
    "check": _cmd_check,
    "enroll": _cmd_enroll,
    "stats": _cmd_stats,
    "simulate": _cmd_simulate,
    "day": _cmd_day,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    args = build_parser().parse_args(argv)
    handler = _COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)
    raise SystemExit(handler(args))
