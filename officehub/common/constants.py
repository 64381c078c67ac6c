"""Enums and constants for Office Hub — matching database ENUM types."""

from __future__ import annotations

import enum


# ── Users / Roles ───────────────────────────────────────────────────

class AccessLevel(str, enum.Enum):
    """Access level derived from a role's free-text name."""

    employee = "employee"
    manager = "manager"
    hr = "hr"
    admin = "admin"


class UserStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    present = "present"
    late = "late"
    absent = "absent"
    half_day = "half_day"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    annual = "annual"
    sick = "sick"
    personal = "personal"
    maternity = "maternity"
    emergency = "emergency"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


# ── Tasks / Todos ───────────────────────────────────────────────────

class Priority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class TaskStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


# ── Meetings ────────────────────────────────────────────────────────

class MeetingType(str, enum.Enum):
    meeting = "meeting"
    standup = "standup"
    review = "review"
    training = "training"
    interview = "interview"


class MeetingStatus(str, enum.Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    on_hold = "on_hold"


class ParticipantStatus(str, enum.Enum):
    invited = "invited"
    accepted = "accepted"
    declined = "declined"


# ── Role-based permissions ──────────────────────────────────────────

_EMPLOYEE_PERMISSIONS = [
    "users:read",
    "attendance:read_own",
    "attendance:write_own",
    "leave:request",
    "leave:read_own",
    "task:read",
    "meeting:read",
    "meeting:create",
    "todo:manage_own",
    "dashboard:view",
]

PERMISSIONS: dict[AccessLevel, list[str]] = {
    AccessLevel.employee: list(_EMPLOYEE_PERMISSIONS),
    AccessLevel.manager: _EMPLOYEE_PERMISSIONS + [
        "attendance:read_all",
        "leave:read_all",
        "leave:approve",
        "task:manage",
        "meeting:manage",
    ],
    AccessLevel.hr: _EMPLOYEE_PERMISSIONS + [
        "users:manage",
        "attendance:read_all",
        "attendance:manage",
        "schedule:manage",
        "leave:read_all",
        "leave:approve",
        "leave:manage",
        "task:manage",
        "meeting:manage",
        "audit:read",
    ],
    AccessLevel.admin: _EMPLOYEE_PERMISSIONS + [
        "users:manage",
        "roles:manage",
        "attendance:read_all",
        "attendance:manage",
        "schedule:manage",
        "leave:read_all",
        "leave:approve",
        "leave:manage",
        "task:manage",
        "meeting:manage",
        "audit:read",
    ],
}

# Dashboard features and the permission that unlocks each one
FEATURES: list[tuple[str, str, str]] = [
    ("users", "/users", "users:manage"),
    ("roles", "/roles", "roles:manage"),
    ("meetings", "/meetings", "meeting:read"),
    ("tasks", "/tasks", "task:read"),
    ("attendance", "/attendance", "attendance:read_own"),
    ("attendance_admin", "/attendance/records", "attendance:read_all"),
    ("schedules", "/attendance/schedules", "schedule:manage"),
    ("leave", "/leave", "leave:request"),
    ("leave_approvals", "/leave/requests", "leave:approve"),
    ("todos", "/todos", "todo:manage_own"),
]

# ── Misc constants ──────────────────────────────────────────────────

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
