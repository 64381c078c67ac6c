"""Common module — shared utilities for Office Hub."""

from officehub.common.audit import AuditTrail, create_audit_entry
from officehub.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    AccessLevel,
    AttendanceStatus,
    LeaveStatus,
    LeaveType,
    MeetingStatus,
    MeetingType,
    ParticipantStatus,
    Priority,
    TaskStatus,
    UserStatus,
)
from officehub.common.exceptions import (
    AppException,
    AuthenticationException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from officehub.common.filters import apply_filters, apply_search, apply_sorting
from officehub.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)
from officehub.common.timekeeping import (
    TimeInterval,
    combine_on_date,
    compute_days_requested,
    compute_overtime_hours,
    compute_worked_hours,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "AccessLevel",
    "AttendanceStatus",
    "LeaveStatus",
    "LeaveType",
    "MeetingStatus",
    "MeetingType",
    "ParticipantStatus",
    "Priority",
    "TaskStatus",
    "UserStatus",
    "PERMISSIONS",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "AuthenticationException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    "apply_sorting",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
    # Time accounting
    "TimeInterval",
    "combine_on_date",
    "compute_days_requested",
    "compute_overtime_hours",
    "compute_worked_hours",
]
