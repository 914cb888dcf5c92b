"""
Grid configuration: slot table and course-code -> full-name table.

The published timetable changes shape from time to time (extra slots, extra
header rows, new course codes). Those changes go into a GridConfig, either by
editing the defaults below or by pointing load_grid_config() at a JSON file:

    {
      "slots": {"1": "08:00-08:50", "2": "08:55-09:45"},
      "course_names": {"DAA": "Design & Analysis of Algorithms"},
      "header_rows": 4,
      "lookahead": 2
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from absencetracker.dates import format_minutes, split_range, to_minutes


DEFAULT_SLOTS: dict[int, tuple[str, str]] = {
    1: ("09:00", "09:45"),
    2: ("09:45", "10:30"),
    3: ("10:30", "11:15"),
    4: ("11:15", "12:00"),
    5: ("12:00", "12:45"),
    6: ("12:45", "13:30"),
    7: ("13:30", "14:15"),
    8: ("14:15", "15:00"),
    9: ("15:00", "15:45"),
}

COURSE_NAMES: dict[str, str] = {
    "DAA": "Design & Analysis of Algorithms",
    "DBS": "Database Systems",
    "SDA": "Software Design & Architecture",
    "CN": "Computer Networks",
    "TBW": "Technical & Business Writing",
    "COAL": "Computer Organization & Assembly Language",
    "DS": "Data Structures",
    "TOA": "Theory of Automata",
    "AP": "Applied Physics",
    "Discrete": "Discrete Mathematics",
    "IS": "Information Security",
    "OOP": "Object Oriented Programming",
    "PF": "Programming Fundamentals",
    "ICT": "Information & Communication Technologies",
    "LA": "Linear Algebra",
    "Calculus": "Calculus",
    "DLD": "Digital Logic Design",
    "CAL": "Computer Architecture & Logic Design",
    "OS": "Operating Systems",
    "SE": "Software Engineering",
    "AI": "Artificial Intelligence",
    "ML": "Machine Learning",
    "NLP": "Natural Language Processing",
    "CV": "Computer Vision",
    "Web": "Web Technologies",
    "Mobile": "Mobile Application Development",
    "Cloud": "Cloud Computing",
    "Cyber": "Cyber Security",
    # labs
    "CN Lab": "Computer Networks Lab",
    "DBS Lab": "Database Systems Lab",
    "COAL Lab": "Computer Organization & Assembly Language Lab",
    "DS Lab": "Data Structures Lab",
    "DS-Lab": "Data Structures Lab",
    "PF Lab": "Programming Fundamentals Lab",
    "PF lab": "Programming Fundamentals Lab",
    "ICT Lab": "ICT Lab",
    "ICT lab": "ICT Lab",
    "BE Lab": "Business Economics Lab",
    "DF Lab": "Digital Forensics Lab",
    "FE Lab": "Functional English Lab",
    "Eng-1 Lab": "English Lab",
    "IT in Business lab": "IT in Business Lab",
    "Intro to D. Sci Lab": "Introduction to Data Science Lab",
    "Electrical Network Analysis lab": "Electrical Network Analysis Lab",
    "Object Oriented Data Structures lab": "Object Oriented Data Structures Lab",
    "Computer Architecture lab": "Computer Architecture Lab",
    "Applied Physics lab": "Applied Physics Lab",
    "Analog and Digital Communication lab": "Analog and Digital Communication Lab",
    "AML Lab": "Applied Machine Learning Lab",
    "OOP Lab": "Object Oriented Programming Lab",
    "DLD Lab": "Digital Logic Design Lab",
    "PAI Lab": "Probability and Inference Lab",
    "OS Lab": "Operating Systems Lab",
    "SCD Lab": "Software Construction & Development Lab",
    "SSD Lab": "System & Software Design Lab",
    "CV Lab": "Computer Vision Lab",
    "FA Lab": "Financial Accounting Lab",
    "FM Lab": "Financial Management Lab",
    "ML Lab": "Machine Learning Lab",
    "DCNet lab": "Data Communication & Networking Lab",
    "ENA lab": "Electrical Network Analysis Lab",
    "Electronic Devices and Circuits lab": "Electronic Devices and Circuits Lab",
    "Engineering Drawing lab": "Engineering Drawing Lab",
    "Application of ICT lab": "Application of ICT Lab",
    "MPI lab": "Microprocessor Interfacing Lab",
    "IOOP-Lab": "Introduction to OOP Lab",
    "DAB2 lAB": "Database Systems 2 Lab",
    "DS&BA Lab": "Data Structures & Business Analytics Lab",
    # other courses
    "Intro to D. Sci": "Introduction to Data Science",
    "Intro. to SE": "Introduction to Software Engineering",
    "Applied Physics": "Applied Physics",
    "Cyber Security": "Cyber Security",
    "Eng-1": "Functional English",
    "IST / UoS": "Introduction to Information Systems",
    "IT in Business": "IT in Business",
    "Entrep": "Entrepreneurship",
    "GenAI": "Generative AI",
    "Macro Eco": "Macroeconomics",
    "Psych": "Psychology",
    "Socio": "Sociology",
    "KRR": "Knowledge Representation & Reasoning",
    "KKR": "Knowledge Representation",
    "SQE": "Software Quality Engineering",
    "SSD": "System & Software Design",
    "PDC": "Parallel & Distributed Computing",
    "OR": "Operations Research",
    "OODS": "Object Oriented Data Structures",
    "MVC": "Multivariable Calculus",
    "MPI": "Microprocessor Interfacing",
    "HRM": "Human Resource Management",
    "GT": "Graph Theory",
    "FOM": "Fundamentals of Management",
    "FSPM": "Fundamentals of Project Management",
    "FM": "Financial Management",
    "FA": "Financial Accounting",
    "Ethics": "Ethics",
    "ENG": "English",
    "EM": "Engineering Mathematics",
    "EMT": "Electromagnetic Theory",
    "ENA": "Electrical Network Analysis",
    "EDC": "Electronic Devices & Circuits",
    "Enter": "Entrepreneurship",
    "DCNet": "Data Communication & Networking",
    "DCB": "Database Concepts",
    "DAB2": "Database Systems 2",
    "DSA": "Data Structures & Algorithms",
    "DLP": "Deep Learning Projects",
    "BM1": "Business Mathematics 1",
    "BM2": "Business Mathematics 2",
    "AML": "Applied Machine Learning",
    "AT": "Antenna Theory",
    "ADC": "Analog & Digital Communication",
    "AC": "Applied Calculus",
    "CA": "Computer Architecture",
    "CB": "Consumer Behavior",
    "CCE": "Computer Communication & Electronics",
    "CT": "Coding Theory",
    "CVT": "Computer Vision Techniques",
    "C. Const.": "Constitutional Law",
    "BF": "Business Finance",
    "EIS": "Enterprise Information Systems",
    "FOA": "Foundations of Algorithms",
    "ICC": "Introduction to Cloud Computing",
    "IA": "Information Assurance",
    "IOOP": "Introduction to Object Oriented Programming",
    "ME": "Managerial Economics",
    "MFM": "Mathematical Foundations",
    "MM": "Marketing Management",
    "NC": "Neural Computing",
    "OHS": "Occupational Health & Safety",
    "POE": "Principles of Economics",
    "PPIT": "Pakistan & International Trade",
    "PST": "Probability & Statistics",
    "PFB": "Programming Fundamentals - Business",
    "RS": "Recommender Systems",
    "SCD": "Software Construction & Development",
    "ST": "Software Testing",
    "UoS": "Understanding of Self",
    "WP": "Web Programming",
}


# Labs never span more than three slots
MAX_LOOKAHEAD = 2


@dataclass(frozen=True)
class GridConfig:
    """
    Static tables the grid parser needs.

    slots:        slot number -> (start, end) clock strings, in column order
    course_names: course code -> display name
    header_rows:  leading non-blank rows to skip in every day grid
    lookahead:    how many cells after a lab to inspect when merging slots (0-2)
    """

    slots: Mapping[int, tuple[str, str]] = field(default_factory=lambda: MappingProxyType(dict(DEFAULT_SLOTS)))
    course_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(COURSE_NAMES)))
    header_rows: int = 4
    lookahead: int = MAX_LOOKAHEAD

    def __post_init__(self) -> None:
        if self.header_rows < 0:
            raise ValueError(f"header_rows must not be negative: {self.header_rows}")
        if not 0 <= self.lookahead <= MAX_LOOKAHEAD:
            raise ValueError(f"lookahead must be between 0 and {MAX_LOOKAHEAD}: {self.lookahead}")

    @property
    def slot_numbers(self) -> list[int]:
        return sorted(self.slots)

    def time_slot(self, first: int, last: int | None = None) -> str:
        """'HH:MM-HH:MM' from the start of slot `first` to the end of slot `last`."""
        last = first if last is None else last
        return f"{self.slots[first][0]}-{self.slots[last][1]}"

    def course_name(self, code: str) -> str:
        return self.course_names.get(code, code)


DEFAULT_CONFIG = GridConfig()


def _parse_slots(raw: Any) -> dict[int, tuple[str, str]]:
    if not isinstance(raw, dict) or not raw:
        raise ValueError("'slots' must be a non-empty object")

    slots: dict[int, tuple[str, str]] = {}
    for key, value in raw.items():
        try:
            number = int(key)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid slot number: {key!r}") from None
        start, end = split_range(str(value))
        if not start:
            raise ValueError(f"Invalid slot range for slot {number}: {value!r}")
        # to_minutes raises on garbage; half-open slots need start < end
        start_min, end_min = to_minutes(start), to_minutes(end)
        if start_min >= end_min:
            raise ValueError(f"Invalid slot range for slot {number}: {value!r}")
        slots[number] = (format_minutes(start_min), format_minutes(end_min))
    return slots


def _int_setting(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be an integer") from None


def load_grid_config(path: str | Path) -> GridConfig:
    """
    Load a GridConfig from JSON. Missing keys fall back to the defaults;
    `course_names` entries are merged over the default table. Slot times may
    be written in 12-hour form and are stored as 'HH:MM'.

    Raises ValueError for malformed slots, negative header_rows or a
    lookahead outside 0-2.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Grid config must be a JSON object")

    slots = _parse_slots(data["slots"]) if "slots" in data else dict(DEFAULT_SLOTS)

    names = dict(COURSE_NAMES)
    extra = data.get("course_names", {})
    if isinstance(extra, dict):
        names.update({str(k): str(v) for k, v in extra.items()})

    return GridConfig(
        slots=MappingProxyType(slots),
        course_names=MappingProxyType(names),
        header_rows=_int_setting(data, "header_rows", 4),
        lookahead=_int_setting(data, "lookahead", MAX_LOOKAHEAD),
    )
