"""Attendance service layer — daily records, schedules, schedule assignment.

Hours are derived with the pure functions in ``officehub.common.timekeeping``;
this module only resolves inputs (timezone, active schedule) and persists.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.attendance.models import AttendanceRecord, Schedule, UserSchedule
from officehub.attendance.schemas import (
    AttendanceListResponse,
    AttendanceRecordResponse,
    AttendanceRecordUpsert,
    AttendanceSummary,
    ScheduleCreate,
    ScheduleUpdate,
    UserScheduleCreate,
)
from officehub.common.audit import create_audit_entry
from officehub.common.constants import AttendanceStatus
from officehub.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from officehub.common.filters import apply_filters
from officehub.common.pagination import PaginationParams, paginate
from officehub.common.timekeeping import (
    TimeInterval,
    combine_on_date,
    compute_overtime_hours,
    compute_worked_hours,
)
from officehub.config import settings
from officehub.users.models import User

logger = logging.getLogger(__name__)


def _to_decimal(hours: float) -> Decimal:
    return Decimal(str(round(hours, 2)))


def _record_values(record: AttendanceRecord) -> dict[str, Any]:
    """JSON-serialisable snapshot for the audit trail."""
    return {
        "date": record.date.isoformat(),
        "clock_in": record.clock_in.isoformat() if record.clock_in else None,
        "clock_out": record.clock_out.isoformat() if record.clock_out else None,
        "break_start": record.break_start.isoformat() if record.break_start else None,
        "break_end": record.break_end.isoformat() if record.break_end else None,
        "total_hours": float(record.total_hours or 0),
        "overtime_hours": float(record.overtime_hours or 0),
        "status": record.status.value if record.status else None,
        "notes": record.notes,
    }


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: save, read, summarise."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def get_schedule_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        target_date: date,
    ) -> Optional[Schedule]:
        """Resolve the schedule in force for a user on a given date."""

        result = await db.execute(
            select(UserSchedule)
            .where(
                UserSchedule.user_id == user_id,
                UserSchedule.is_active.is_(True),
                UserSchedule.effective_date <= target_date,
                (
                    UserSchedule.end_date.is_(None)
                    | (UserSchedule.end_date >= target_date)
                ),
            )
            .order_by(UserSchedule.effective_date.desc())
            .limit(1)
        )
        assignment = result.scalars().first()
        if assignment is None or not assignment.schedule.is_active:
            return None
        return assignment.schedule

    @staticmethod
    def _derive_status(
        day: date,
        clock_in: Optional[datetime],
        schedule: Optional[Schedule],
    ) -> AttendanceStatus:
        """Absent without a clock-in; late after the scheduled start."""

        if clock_in is None:
            return AttendanceStatus.absent
        if schedule is not None and schedule.hours_on(day) > 0:
            start = combine_on_date(day, schedule.start_time, clock_in.tzinfo)
            if clock_in > start:
                return AttendanceStatus.late
        return AttendanceStatus.present

    @staticmethod
    def _validate_date_range(
        from_date: Optional[date],
        to_date: Optional[date],
    ) -> None:
        if from_date is None or to_date is None:
            return
        if from_date > to_date:
            raise ValidationException(
                {"date_range": ["from_date must be before or equal to to_date."]}
            )
        if (to_date - from_date).days > settings.MAX_DATE_RANGE_DAYS:
            raise ValidationException(
                {"date_range": [f"Date range cannot exceed {settings.MAX_DATE_RANGE_DAYS} days."]}
            )

    @staticmethod
    def _build_summary(records: Sequence[AttendanceRecord]) -> AttendanceSummary:
        """Aggregate attendance statistics from a list of records."""

        counts = {s: 0 for s in AttendanceStatus}
        total_hours = 0.0
        overtime = 0.0
        for r in records:
            counts[r.status] += 1
            total_hours += float(r.total_hours or 0)
            overtime += float(r.overtime_hours or 0)

        return AttendanceSummary(
            total_records=len(records),
            present=counts[AttendanceStatus.present],
            late=counts[AttendanceStatus.late],
            absent=counts[AttendanceStatus.absent],
            half_day=counts[AttendanceStatus.half_day],
            total_hours=round(total_hours, 2),
            average_hours=round(total_hours / len(records), 2) if records else 0.0,
            overtime_hours=round(overtime, 2),
        )

    # ── Save (upsert on user + date) ────────────────────────────────

    @staticmethod
    async def save_record(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: AttendanceRecordUpsert,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AttendanceRecord:
        """Create or wholly replace the record for ``(user_id, data.date)``."""

        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))

        tz = ZoneInfo(settings.TIMEZONE)
        clock_in = combine_on_date(data.date, data.clock_in, tz)
        clock_out = combine_on_date(data.date, data.clock_out, tz)
        break_start = combine_on_date(data.date, data.break_start, tz)
        break_end = combine_on_date(data.date, data.break_end, tz)

        worked = compute_worked_hours(
            TimeInterval(clock_in, clock_out),
            TimeInterval(break_start, break_end),
        )
        schedule = await AttendanceService.get_schedule_for_user(db, user_id, data.date)
        scheduled = schedule.hours_on(data.date) if schedule is not None else None
        overtime = compute_overtime_hours(worked, scheduled)

        values: dict[str, Any] = {
            "clock_in": clock_in,
            "clock_out": clock_out,
            "break_start": break_start,
            "break_end": break_end,
            "total_hours": _to_decimal(worked),
            "overtime_hours": _to_decimal(overtime),
            "status": data.status or AttendanceService._derive_status(
                data.date, clock_in, schedule,
            ),
            "notes": data.notes,
        }

        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.user_id == user_id,
                AttendanceRecord.date == data.date,
            )
        )
        record = result.scalars().first()

        old_values: Optional[dict[str, Any]] = None
        if record is None:
            record = AttendanceRecord(user_id=user_id, date=data.date, **values)
            db.add(record)
            action = "create"
        else:
            old_values = _record_values(record)
            for field, value in values.items():
                setattr(record, field, value)
            action = "update"

        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(
                "date",
                data.date.isoformat(),
                detail="Attendance for this day was saved concurrently; please retry.",
            )

        await db.refresh(record, attribute_names=["user"])

        await create_audit_entry(
            db,
            action=action,
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=_record_values(record),
        )

        return record

    # ── List with summary ───────────────────────────────────────────

    @staticmethod
    async def list_records(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> AttendanceListResponse:
        """Paginated records plus a summary computed over the whole filtered set."""

        AttendanceService._validate_date_range(from_date, to_date)

        query = select(AttendanceRecord).order_by(
            AttendanceRecord.date.desc(), AttendanceRecord.created_at.desc(),
        )
        query = apply_filters(
            query,
            AttendanceRecord,
            {
                "user_id": user_id,
                "date__from": from_date,
                "date__to": to_date,
                "status": status,
            },
        )

        page = await paginate(db, query, pagination, model=AttendanceRecord)
        all_records = (await db.execute(query)).scalars().all()

        return AttendanceListResponse(
            data=[AttendanceRecordResponse.model_validate(r) for r in page.data],
            meta=page.meta,
            summary=AttendanceService._build_summary(all_records),
        )

    # ── Get / delete ────────────────────────────────────────────────

    @staticmethod
    async def get_record(db: AsyncSession, record_id: uuid.UUID) -> AttendanceRecord:
        result = await db.execute(
            select(AttendanceRecord).where(AttendanceRecord.id == record_id)
        )
        record = result.scalars().first()
        if record is None:
            raise NotFoundException("AttendanceRecord", str(record_id))
        return record

    @staticmethod
    async def delete_record(
        db: AsyncSession,
        record_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        record = await AttendanceService.get_record(db, record_id)
        old_values = _record_values(record)
        await db.delete(record)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="attendance_record",
            entity_id=record_id,
            actor_id=actor_id,
            old_values=old_values,
        )


# ═════════════════════════════════════════════════════════════════════
# ScheduleService
# ═════════════════════════════════════════════════════════════════════


class ScheduleService:
    """Office-hour templates and their assignment to users."""

    @staticmethod
    async def list_schedules(
        db: AsyncSession,
        *,
        active_only: bool = False,
    ) -> Sequence[Schedule]:
        query = select(Schedule).order_by(Schedule.name)
        if active_only:
            query = query.where(Schedule.is_active.is_(True))
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def get_schedule(db: AsyncSession, schedule_id: uuid.UUID) -> Schedule:
        schedule = await db.get(Schedule, schedule_id)
        if schedule is None:
            raise NotFoundException("Schedule", str(schedule_id))
        return schedule

    @staticmethod
    async def create_schedule(
        db: AsyncSession,
        data: ScheduleCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Schedule:
        schedule = Schedule(**data.model_dump())
        db.add(schedule)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="schedule",
            entity_id=schedule.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return schedule

    @staticmethod
    async def update_schedule(
        db: AsyncSession,
        schedule_id: uuid.UUID,
        data: ScheduleUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Schedule:
        schedule = await ScheduleService.get_schedule(db, schedule_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return schedule

        for required in ("name", "start_time", "end_time", "days_of_week", "is_active"):
            if required in changes and changes[required] is None:
                raise ValidationException({required: [f"{required} cannot be null."]})

        old_values = {
            field: (
                getattr(schedule, field).isoformat()
                if hasattr(getattr(schedule, field), "isoformat")
                else getattr(schedule, field)
            )
            for field in changes
        }
        for field, value in changes.items():
            setattr(schedule, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="schedule",
            entity_id=schedule.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return schedule

    @staticmethod
    async def list_user_schedules(
        db: AsyncSession,
        *,
        user_id: Optional[uuid.UUID] = None,
    ) -> Sequence[UserSchedule]:
        query = select(UserSchedule).order_by(UserSchedule.effective_date.desc())
        if user_id is not None:
            query = query.where(UserSchedule.user_id == user_id)
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def assign_schedule(
        db: AsyncSession,
        data: UserScheduleCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> UserSchedule:
        if await db.get(User, data.user_id) is None:
            raise NotFoundException("User", str(data.user_id))
        await ScheduleService.get_schedule(db, data.schedule_id)

        assignment = UserSchedule(**data.model_dump())
        db.add(assignment)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(
                "effective_date",
                data.effective_date.isoformat(),
                detail="This schedule is already assigned to the user from that date.",
            )

        await db.refresh(assignment, attribute_names=["schedule"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="user_schedule",
            entity_id=assignment.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info(
            "Assigned schedule %s to user %s from %s",
            data.schedule_id, data.user_id, data.effective_date,
        )
        return assignment
