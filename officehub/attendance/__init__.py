"""Attendance module — daily attendance records and office-hour schedules."""
