"""
Persistent storage for user state and the cached catalog.

Every blob is one JSON file in data/processed/:

    enrolled.json     enrolled courses (list of dicts)
    attendance.json   attendance records (list of dicts)
    courses.json      attendance courses (list of dicts)
    timetable.json    {"last_updated": ISO-8601, "data": {section: [offering, ...]}}

Loads are deliberately defensive: a missing or corrupted file never crashes
the application, it just yields the default value.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from absencetracker.catalog import Catalog, catalog_from_json, catalog_to_json


CACHE_MAX_AGE = timedelta(hours=24)

TIMETABLE = "timetable"
ENROLLED = "enrolled"
ATTENDANCE = "attendance"
COURSES = "courses"


def _default_data_dir() -> Path:
    """
    Return the default folder for processed data inside the package.

    A function instead of a constant, so tests can pass their own folder.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "processed"


def blob_path(name: str, data_dir: str | Path | None = None) -> Path:
    base = Path(data_dir) if data_dir is not None else _default_data_dir()
    return base / f"{name}.json"


def load_blob(name: str, default: Any, data_dir: str | Path | None = None) -> Any:
    """
    Load one JSON blob. Returns `default` when the file is missing,
    unreadable, or holds a different top-level type than `default`.
    """
    path = blob_path(name, data_dir)
    if not path.exists():
        return default

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return default

    if default is not None and not isinstance(data, type(default)):
        return default
    return data


def save_blob(name: str, value: Any, data_dir: str | Path | None = None) -> Path:
    """Write one JSON blob, creating parent folders if needed."""
    path = blob_path(name, data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def _dict_items(value: Any) -> list[dict[str, Any]]:
    return [x for x in value if isinstance(x, dict)]


# ---------------------------------------------------------------------------
# User state
# ---------------------------------------------------------------------------


def load_enrolled(data_dir: str | Path | None = None) -> list[dict[str, Any]]:
    return _dict_items(load_blob(ENROLLED, [], data_dir))


def save_enrolled(courses: list[dict[str, Any]], data_dir: str | Path | None = None) -> None:
    save_blob(ENROLLED, list(courses), data_dir)


def load_records(data_dir: str | Path | None = None) -> list[dict[str, Any]]:
    return _dict_items(load_blob(ATTENDANCE, [], data_dir))


def save_records(records: list[dict[str, Any]], data_dir: str | Path | None = None) -> None:
    save_blob(ATTENDANCE, list(records), data_dir)


def load_courses(data_dir: str | Path | None = None) -> list[dict[str, Any]]:
    return _dict_items(load_blob(COURSES, [], data_dir))


def save_courses(courses: list[dict[str, Any]], data_dir: str | Path | None = None) -> None:
    save_blob(COURSES, list(courses), data_dir)


# ---------------------------------------------------------------------------
# Catalog cache
# ---------------------------------------------------------------------------


def save_catalog(catalog: Catalog, data_dir: str | Path | None = None, now: Optional[datetime] = None) -> Path:
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return save_blob(TIMETABLE, {"last_updated": stamp, "data": catalog_to_json(catalog)}, data_dir)


def load_catalog(data_dir: str | Path | None = None) -> Catalog:
    blob = load_blob(TIMETABLE, {}, data_dir)
    return catalog_from_json(blob.get("data"))


def is_catalog_stale(data_dir: str | Path | None = None, now: Optional[datetime] = None) -> bool:
    """
    True if the cached catalog is missing, unreadable, undated, or older
    than CACHE_MAX_AGE.
    """
    blob = load_blob(TIMETABLE, {}, data_dir)
    stamp = blob.get("last_updated")
    if not isinstance(stamp, str) or not stamp:
        return True

    try:
        updated = datetime.fromisoformat(stamp)
    except ValueError:
        return True
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - updated > CACHE_MAX_AGE


def clear_catalog_cache(data_dir: str | Path | None = None) -> bool:
    """Delete the cached catalog. Returns True if a file was removed."""
    path = blob_path(TIMETABLE, data_dir)
    if not path.exists():
        return False
    path.unlink()
    return True
