from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Dict, List, Mapping

import requests

from absencetracker.dates import SCHOOL_DAYS, normalize_day


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PACKAGE_DIR = Path(__file__).resolve().parent
RAW_DIR = PACKAGE_DIR / "data" / "raw"
SOURCES_PATH = PACKAGE_DIR / "data" / "sources.json"


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def load_sources(path: Path = SOURCES_PATH) -> Dict[str, str]:
    """
    Read {day: url} from a JSON file. Unknown day names are dropped,
    a missing or broken file gives {}.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return {}
    if not isinstance(data, dict):
        return {}

    sources: Dict[str, str] = {}
    for key, url in data.items():
        day = normalize_day(key)
        if day and isinstance(url, str) and url.strip():
            sources[day] = url.strip()
    return sources


def parse_source_args(values: List[str]) -> Dict[str, str]:
    """Turn ['Monday=https://...', ...] into {'Monday': 'https://...'}."""
    sources: Dict[str, str] = {}
    for value in values:
        key, sep, url = value.partition("=")
        day = normalize_day(key)
        if not sep or not day or not url.strip():
            raise ValueError(f"Expected DAY=URL, got {value!r}")
        sources[day] = url.strip()
    return sources


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def fetch_day_grids(
    sources: Mapping[str, str],
    raw_dir: Path = RAW_DIR,
    refresh: bool = False,
    sleep_seconds: float = 0.2,
) -> List[Path]:
    """
    Download each day's grid and cache it as <raw_dir>/<Day>.csv.

    Already cached days are skipped unless refresh is set.
    HTTP errors are raised (requests.HTTPError).
    """
    raw_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for day, url in sources.items():
        out_file = raw_dir / f"{day}.csv"

        if out_file.exists() and not refresh:
            print(f"SKIP  {day}")
            continue

        print(f"FETCH {day}")
        resp = requests.get(url, timeout=30)
        resp.raise_for_status()

        out_file.write_text(resp.text, encoding="utf-8")
        written.append(out_file)
        time.sleep(sleep_seconds)

    print("Fetching finished.")
    return written


def load_day_grids(raw_dir: Path = RAW_DIR) -> Dict[str, str]:
    """
    Read cached grids in weekday order: <Day>.csv, or <Day>.html when no CSV
    exists for that day.
    """
    grids: Dict[str, str] = {}
    for day in SCHOOL_DAYS:
        for suffix in (".csv", ".html"):
            path = raw_dir / f"{day}{suffix}"
            if path.exists():
                grids[day] = path.read_text(encoding="utf-8")
                break
    return grids


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="absencetracker.fetch", description="Download timetable day grids (cache CSV)")
    p.add_argument("--url", action="append", default=[], metavar="DAY=URL", help="Grid URL for one day (repeatable)")
    p.add_argument("--sources", type=Path, default=SOURCES_PATH, help="JSON file mapping day names to URLs")
    p.add_argument("--refresh", action="store_true", help="Re-fetch and overwrite existing files")
    p.add_argument("--sleep", type=float, default=0.2, help="Sleep seconds between requests")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    sources = load_sources(args.sources)
    sources.update(parse_source_args(args.url))
    fetch_day_grids(sources, refresh=args.refresh, sleep_seconds=args.sleep)


if __name__ == "__main__":
    main()
