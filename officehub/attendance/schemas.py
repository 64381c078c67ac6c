"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Upsert / *Create / *Update → request bodies (write)
  - *Response                   → response bodies (read)
  - *Summary                    → aggregate read representations
"""


import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from officehub.common.constants import AttendanceStatus
from officehub.common.pagination import PaginationMeta
from officehub.users.schemas import UserBrief


# ═════════════════════════════════════════════════════════════════════
# Attendance records
# ═════════════════════════════════════════════════════════════════════


class AttendanceRecordUpsert(BaseModel):
    """Payload for saving a day's attendance.

    Times are wall-clock ``HH:MM`` on ``date`` in the configured timezone.
    Saving replaces every field of an existing record for the same day.
    """

    user_id: Optional[uuid.UUID] = Field(
        None, description="Defaults to the current user",
    )
    date: date
    clock_in: Optional[time] = None
    clock_out: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    status: Optional[AttendanceStatus] = Field(
        None, description="Derived from clock-in and schedule when omitted",
    )
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_intervals(self):
        if self.clock_in and self.clock_out and self.clock_out < self.clock_in:
            raise ValueError("clock_out must not be earlier than clock_in")
        if self.break_start and self.break_end and self.break_end < self.break_start:
            raise ValueError("break_end must not be earlier than break_start")
        return self


class AttendanceRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    total_hours: float
    overtime_hours: float
    status: AttendanceStatus
    notes: Optional[str] = None
    user: Optional[UserBrief] = None
    created_at: datetime
    updated_at: datetime


class AttendanceSummary(BaseModel):
    """Aggregates over every record matching the filters (not just one page)."""

    total_records: int = 0
    present: int = 0
    late: int = 0
    absent: int = 0
    half_day: int = 0
    total_hours: float = 0.0
    average_hours: float = 0.0
    overtime_hours: float = 0.0


class AttendanceListResponse(BaseModel):
    data: list[AttendanceRecordResponse]
    meta: PaginationMeta
    summary: AttendanceSummary


# ═════════════════════════════════════════════════════════════════════
# Schedules
# ═════════════════════════════════════════════════════════════════════


def _check_days(days: list[int]) -> list[int]:
    if any(d < 0 or d > 6 for d in days):
        raise ValueError("days_of_week entries must be 0 (Sunday) to 6 (Saturday)")
    return sorted(set(days))


class ScheduleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    start_time: time
    end_time: time
    days_of_week: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    is_active: bool = True

    @field_validator("days_of_week")
    @classmethod
    def valid_days(cls, v: list[int]) -> list[int]:
        return _check_days(v)


class ScheduleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    days_of_week: Optional[list[int]] = None
    is_active: Optional[bool] = None

    @field_validator("days_of_week")
    @classmethod
    def valid_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        return _check_days(v) if v is not None else v


class ScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    start_time: time
    end_time: time
    days_of_week: list[int]
    is_active: bool
    scheduled_hours: float


class UserScheduleCreate(BaseModel):
    user_id: uuid.UUID
    schedule_id: uuid.UUID
    effective_date: date
    end_date: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.effective_date:
            raise ValueError("end_date must not be earlier than effective_date")
        return self


class UserScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    schedule_id: uuid.UUID
    effective_date: date
    end_date: Optional[date] = None
    is_active: bool
    schedule: ScheduleResponse
