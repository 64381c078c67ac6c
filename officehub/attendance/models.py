"""Attendance ORM models: Schedule, UserSchedule, AttendanceRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.common.constants import AttendanceStatus
from officehub.common.timekeeping import TimeInterval, compute_worked_hours
from officehub.database import Base
from officehub.users.models import User

_REFERENCE_DAY = date(2000, 1, 3)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Schedule(Base):
    """Office-hours template.  ``days_of_week`` uses 0 = Sunday … 6 = Saturday."""

    __tablename__ = "schedules"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    days_of_week: Mapped[list[int]] = mapped_column(
        sa.JSON, default=lambda: [1, 2, 3, 4, 5], nullable=False
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    @property
    def scheduled_hours(self) -> float:
        """Length of the working day; an end at or before the start wraps past midnight."""
        start = datetime.combine(_REFERENCE_DAY, self.start_time)
        end = datetime.combine(_REFERENCE_DAY, self.end_time)
        if end <= start:
            end += timedelta(days=1)
        return compute_worked_hours(TimeInterval(start, end))

    def hours_on(self, day: date) -> float:
        """Scheduled hours for *day*; ``0`` when the weekday is not a working day."""
        if day.isoweekday() % 7 not in (self.days_of_week or []):
            return 0.0
        return self.scheduled_hours

    def __repr__(self) -> str:
        return f"<Schedule {self.name!r} {self.start_time}-{self.end_time}>"


class UserSchedule(Base):
    __tablename__ = "user_schedules"
    __table_args__ = (
        sa.UniqueConstraint(
            "user_id", "schedule_id", "effective_date", name="uq_user_schedule"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False
    )
    effective_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )

    # Relationships
    schedule: Mapped[Schedule] = relationship(lazy="selectin")


class AttendanceRecord(Base):
    """One row per user per day; saving again replaces the row's values."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    clock_in: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    clock_out: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    break_start: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    break_end: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    total_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), default=Decimal("0"), nullable=False
    )
    overtime_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), default=Decimal("0"), nullable=False
    )
    status: Mapped[AttendanceStatus] = mapped_column(
        sa.Enum(AttendanceStatus, name="attendance_status"),
        default=AttendanceStatus.present,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    user: Mapped[User] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.user_id} {self.date} {self.status}>"
