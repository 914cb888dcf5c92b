"""Timetable catalog, conflict checks and attendance tracking."""
