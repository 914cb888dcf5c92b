"""
Tests for CLI entry points.

Every test runs against temporary raw/data folders so the real package data
is never touched.
"""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from absencetracker import storage
from absencetracker.cli import main


MONDAY = (
    "Monday\n,1,2,3,4,5,6,7,8,9\n,times\nCLASSROOMS\n"
    'E-1,,"DAA BCS-5B\nFahad Sherwani",,,,,,,\n'
    'E-2,"OS BCS-5B\nAmna","SE BCS-5A\nOmer",,,,,,,\n'
)


def _run(argv: list) -> tuple:
    out = io.StringIO()
    with redirect_stdout(out):
        try:
            main(argv)
        except SystemExit as e:
            return e.code, out.getvalue()
    return None, out.getvalue()


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.raw = Path(self._tmp.name) / "raw"
        self.data = Path(self._tmp.name) / "processed"
        self.raw.mkdir()
        (self.raw / "Monday.csv").write_text(MONDAY, encoding="utf-8")

    def _main(self, *args: str) -> tuple:
        return _run(["--data-dir", str(self.data), *args])

    def test_search_requires_text(self) -> None:
        code, _ = self._main("search", "")
        self.assertNotEqual(code, 0)

    def test_build_then_show(self) -> None:
        code, out = self._main("build", "--raw-dir", str(self.raw))
        self.assertEqual(code, 0)
        self.assertIn("Parsed 3 offerings in 2 sections across 1 days", out)
        self.assertTrue((self.data / "timetable.json").exists())

        code, out = self._main("show", "bcs-5b")
        self.assertEqual(code, 0)
        self.assertIn("DAA | BCS-5B | Design & Analysis of Algorithms", out)

        code, out = self._main("sections")
        self.assertEqual(out.splitlines(), ["BCS-5A (1 courses)", "BCS-5B (2 courses)"])

    def test_build_without_grids(self) -> None:
        code, _ = self._main("build", "--raw-dir", str(Path(self._tmp.name) / "empty"))
        self.assertEqual(code, 1)

    def test_build_with_config(self) -> None:
        config = Path(self._tmp.name) / "grid.json"
        config.write_text(json.dumps({"course_names": {"DAA": "Algorithms"}}), encoding="utf-8")
        code, _ = self._main("build", "--raw-dir", str(self.raw), "--config", str(config))
        self.assertEqual(code, 0)
        code, out = self._main("show", "BCS-5B")
        self.assertIn("DAA | BCS-5B | Algorithms", out)

    def test_build_with_bad_config(self) -> None:
        bad = Path(self._tmp.name) / "bad.json"
        bad.write_text(json.dumps({"slots": {"1": "10:00-09:00"}}), encoding="utf-8")
        code, _ = self._main("build", "--raw-dir", str(self.raw), "--config", str(bad))
        self.assertEqual(code, 1)
        self.assertFalse((self.data / "timetable.json").exists())

        code, _ = self._main("build", "--raw-dir", str(self.raw), "--config", str(Path(self._tmp.name) / "missing.json"))
        self.assertEqual(code, 1)

    def test_check_and_enroll(self) -> None:
        self._main("build", "--raw-dir", str(self.raw))

        code, out = self._main("check", "DAA", "BCS-5B")
        self.assertEqual(code, 0)
        self.assertIn("No conflicts found.", out)

        code, _ = self._main("enroll", "DAA", "BCS-5B")
        self.assertEqual(code, 0)
        self.assertEqual([c["code"] for c in storage.load_enrolled(self.data)], ["DAA"])

        code, out = self._main("check", "DAA", "BCS-5B")
        self.assertEqual(code, 3)
        self.assertIn("already enrolled in DAA Section BCS-5B", out)

        # re-adding is a no-op
        code, out = self._main("enroll", "DAA", "BCS-5B")
        self.assertEqual(code, 0)
        self.assertIn("already in your courses", out)
        self.assertEqual(len(storage.load_enrolled(self.data)), 1)

        # SE BCS-5A clashes with DAA at slot 2 on Monday
        code, _ = self._main("enroll", "SE", "BCS-5A")
        self.assertEqual(code, 3)
        code, _ = self._main("enroll", "SE", "BCS-5A", "--force")
        self.assertEqual(code, 0)
        self.assertEqual(len(storage.load_enrolled(self.data)), 2)

    def test_check_unknown_offering(self) -> None:
        self._main("build", "--raw-dir", str(self.raw))
        code, _ = self._main("check", "XYZ", "BCS-5B")
        self.assertEqual(code, 1)

    def test_attendance_commands(self) -> None:
        courses = [{"id": "daa", "name": "DAA", "start_date": "2026-03-02", "end_date": "2026-03-29",
                    "weekdays": ["Monday"], "allowed_absences": 1}]
        records = [{"course_id": "daa", "date": "2026-03-02", "status": "absent"}]
        storage.save_courses(courses, self.data)
        storage.save_records(records, self.data)

        code, out = self._main("stats")
        self.assertEqual(code, 0)
        self.assertIn("DAA: 75.00% (danger)", out)

        code, out = self._main("simulate", "daa", "2026-03-09")
        self.assertEqual(code, 0)
        self.assertIn("50.00%", out)
        self.assertEqual(json.loads((self.data / "attendance.json").read_text(encoding="utf-8")), records)

        code, out = self._main("day", "2026-03-02")
        self.assertEqual(out.strip(), "absent")
        code, out = self._main("day", "2026-03-03")
        self.assertEqual(out.strip(), "No classes.")


if __name__ == "__main__":
    unittest.main()
