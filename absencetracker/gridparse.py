"""
Parsing (day grid -> SessionEntry list).

A day grid is a room-by-slot matrix exported from the timetable sheet:

    row 0-3   header rows (title, slot numbers, times, "CLASSROOMS")
    row 4..   one row per room: room name, then one cell per slot

A cell looks like

    "DAA BCS-5B\\nFahad Sherwani"
    "CN Lab BCS-5F\\nSameer Faisal"
    "CS4048-Data Sci. BCS-6B  (F,G,H,J)\\nSomeone"

i.e. "<course code> <section>" on the first line and the instructor on the
second. Labs usually occupy the following one or two slots as well, which the
sheet leaves blank.

Important rules:
- a bad cell never aborts the day, it simply yields no entry
- blank room names mean "same room as the row above"
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from bs4 import BeautifulSoup

from absencetracker.config import DEFAULT_CONFIG, GridConfig
from absencetracker.model import SessionEntry


# Section token: whitespace, 2+ uppercase letters, optional hyphen, digits,
# up to two trailing letters; followed by whitespace, "(" or end of line.
SECTION_RE = re.compile(r"\s+([A-Z]{2,}[A-Z]?-?\d+[A-Z]{0,2})(?:\s|\(|$)")


# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------


def _is_blank(cell: Optional[str]) -> bool:
    return cell is None or cell.strip() == ""


def split_rows(text: str) -> List[List[str]]:
    """
    Split CSV text into rows. Quoted fields may contain commas, line breaks
    and doubled quotes. Rows where every field is blank are dropped.
    """
    rows: List[List[str]] = []
    for row in csv.reader(io.StringIO(text)):
        if any(not _is_blank(cell) for cell in row):
            rows.append(row)
    return rows


def _span(cell, attr: str) -> int:
    try:
        return max(1, int(cell.get(attr, 1)))
    except (TypeError, ValueError):
        return 1


def html_rows(html: str) -> List[List[str]]:
    """
    Extract rows from the first <table> of a saved HTML export of a day grid.

    Multi-line cell content is joined with newlines. A cell spanning several
    columns (colspan) is followed by blank cells, so a merged lab cell looks
    exactly like a lab followed by empty slots in the CSV export. Columns
    covered by a rowspan from an earlier row get a blank cell, so a room name
    merged over several rows is carried forward like a blank room in CSV.
    """
    soup = BeautifulSoup(html, "html.parser")
    table = soup.find("table")
    if table is None:
        return []

    rows: List[List[str]] = []
    # column -> number of following rows still covered by a rowspan
    pending: Dict[int, int] = {}
    for tr in table.find_all("tr"):
        row: List[str] = []
        started: Dict[int, int] = {}
        for cell in tr.find_all(["td", "th"]):
            while len(row) in pending:
                row.append("")
            column = len(row)
            colspan = _span(cell, "colspan")
            row.append(cell.get_text("\n", strip=True))
            row.extend([""] * (colspan - 1))

            rowspan = _span(cell, "rowspan")
            if rowspan > 1:
                for col in range(column, column + colspan):
                    started[col] = rowspan - 1
        if pending:
            while len(row) <= max(pending):
                row.append("")

        pending = {col: n - 1 for col, n in pending.items() if n > 1}
        pending.update(started)

        if any(not _is_blank(cell) for cell in row):
            rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Cell parsing
# ---------------------------------------------------------------------------


def parse_cell(
    cell_text: Optional[str],
    room: str,
    day: str,
    slot_number: int,
    config: GridConfig = DEFAULT_CONFIG,
) -> Optional[SessionEntry]:
    """
    Parse one grid cell into one SessionEntry (single slot).

    Returns None for blank cells, "reserved" cells and cells whose first line
    has no recognizable section.
    """
    if _is_blank(cell_text) or "reserved" in cell_text.lower():
        return None

    lines = [line.strip() for line in cell_text.splitlines() if line.strip()]
    if not lines:
        return None

    first_line = lines[0]
    instructor = lines[1] if len(lines) > 1 else "TBA"

    m = SECTION_RE.search(first_line)
    if not m:
        return None

    # everything in front of the section token is the course code
    course_code = first_line[: m.start()].strip()
    if not course_code:
        return None

    return SessionEntry(
        course_code=course_code,
        course_name=config.course_name(course_code),
        section=m.group(1).upper(),
        instructor=instructor,
        room=room.strip(),
        day=day,
        time_slot=config.time_slot(slot_number),
        slot_number=slot_number,
        slot_count=1,
    )


def is_multi_slot_candidate(entry: SessionEntry, lookahead_blanks: int) -> bool:
    """
    Guess whether an entry continues into the blank cells after it.

    Only labs are stretched; lectures followed by free slots stay one slot.
    """
    return lookahead_blanks >= 1 and "lab" in entry.course_code.lower()


def _blanks_after(row: Sequence[str], column: int, last_column: int, lookahead: int) -> int:
    """Count contiguous blank cells right after `column`, at most `lookahead`."""
    count = 0
    for col in range(column + 1, min(column + lookahead, last_column) + 1):
        if col < len(row) and not _is_blank(row[col]):
            break
        count += 1
    return count


# ---------------------------------------------------------------------------
# Day parsing
# ---------------------------------------------------------------------------


def parse_rows(rows: Sequence[Sequence[str]], day: str, config: GridConfig = DEFAULT_CONFIG) -> List[SessionEntry]:
    """
    Turn the (already tokenized, blank-free) rows of one day into entries.
    """
    entries: List[SessionEntry] = []
    slots = config.slot_numbers
    last_column = len(slots)
    current_room = ""

    for row in rows[config.header_rows:]:
        if not row:
            continue

        room = row[0].strip()
        if room:
            current_room = room

        # column 1 holds the first slot of the table, column 2 the second, ...
        for column, slot in enumerate(slots, start=1):
            if column >= len(row):
                break

            entry = parse_cell(row[column], current_room, day, slot, config)
            if entry is None:
                continue

            blanks = _blanks_after(row, column, last_column, config.lookahead)
            if is_multi_slot_candidate(entry, blanks):
                last_slot = slots[column - 1 + blanks]
                entry = replace(
                    entry,
                    time_slot=config.time_slot(slot, last_slot),
                    slot_count=blanks + 1,
                )

            entries.append(entry)

    return entries


def parse_day_csv(text: str, day: str, config: GridConfig = DEFAULT_CONFIG) -> List[SessionEntry]:
    """Parse one day's CSV export into SessionEntry records."""
    return parse_rows(split_rows(text), day, config)


def parse_day_html(html: str, day: str, config: GridConfig = DEFAULT_CONFIG) -> List[SessionEntry]:
    """Parse one day's saved HTML export into SessionEntry records."""
    return parse_rows(html_rows(html), day, config)


def parse_day(text: str, day: str, config: GridConfig = DEFAULT_CONFIG) -> List[SessionEntry]:
    """
    Parse one day grid, picking the HTML parser when the text looks like an
    HTML document and the CSV parser otherwise.
    """
    head = text.lstrip()[:200].lower()
    if head.startswith("<") and ("<table" in text.lower() or "<html" in head):
        return parse_day_html(text, day, config)
    return parse_day_csv(text, day, config)
