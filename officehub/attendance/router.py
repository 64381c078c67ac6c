"""Attendance router — daily records, summaries, schedules.

All endpoints require authentication. Cross-user reads and writes enforce
permission checks.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.attendance.schemas import (
    AttendanceListResponse,
    AttendanceRecordResponse,
    AttendanceRecordUpsert,
    ScheduleCreate,
    ScheduleResponse,
    ScheduleUpdate,
    UserScheduleCreate,
    UserScheduleResponse,
)
from officehub.attendance.service import AttendanceService, ScheduleService
from officehub.auth.dependencies import (
    current_level,
    get_current_user,
    has_permission,
    require_permission,
)
from officehub.common.constants import AttendanceStatus
from officehub.common.exceptions import ForbiddenException
from officehub.common.pagination import PaginationParams
from officehub.database import get_db
from officehub.users.models import User

router = APIRouter(prefix="", tags=["attendance"])


def _can(request: Request, permission: str) -> bool:
    return has_permission(current_level(request), permission)


# ── PUT /records — Save a day's attendance ─────────────────────────

@router.put("/records", response_model=AttendanceRecordResponse)
async def save_record(
    body: AttendanceRecordUpsert,
    request: Request,
    user: User = Depends(require_permission("attendance:write_own")),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace the attendance record for a user and day.

    Hours are computed server-side; recording for another user requires
    ``attendance:manage``.
    """
    target_id = body.user_id or user.id
    if target_id != user.id and not _can(request, "attendance:manage"):
        raise ForbiddenException(detail="You may only record your own attendance.")
    return await AttendanceService.save_record(db, target_id, body, actor_id=user.id)


# ── GET /records — List with summary ───────────────────────────────

@router.get("/records", response_model=AttendanceListResponse)
async def list_records(
    request: Request,
    user: User = Depends(require_permission("attendance:read_own")),
    db: AsyncSession = Depends(get_db),
    pagination: PaginationParams = Depends(),
    user_id: Optional[uuid.UUID] = Query(None, description="Filter by user"),
    from_date: Optional[date] = Query(None, description="Start date (inclusive)"),
    to_date: Optional[date] = Query(None, description="End date (inclusive)"),
    status: Optional[AttendanceStatus] = Query(None, description="Filter by status"),
):
    """Attendance records with a summary over the full filtered range.

    Without ``attendance:read_all`` only the caller's own records are visible.
    """
    if not _can(request, "attendance:read_all"):
        if user_id is not None and user_id != user.id:
            raise ForbiddenException(detail="You may only view your own attendance.")
        user_id = user.id

    return await AttendanceService.list_records(
        db,
        pagination,
        user_id=user_id,
        from_date=from_date,
        to_date=to_date,
        status=status,
    )


# ── GET /records/{id} ──────────────────────────────────────────────

@router.get("/records/{record_id}", response_model=AttendanceRecordResponse)
async def get_record(
    record_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("attendance:read_own")),
    db: AsyncSession = Depends(get_db),
):
    record = await AttendanceService.get_record(db, record_id)
    if record.user_id != user.id and not _can(request, "attendance:read_all"):
        raise ForbiddenException(detail="You may only view your own attendance.")
    return record


# ── DELETE /records/{id} ───────────────────────────────────────────

@router.delete("/records/{record_id}", status_code=204)
async def delete_record(
    record_id: uuid.UUID,
    user: User = Depends(require_permission("attendance:manage")),
    db: AsyncSession = Depends(get_db),
):
    await AttendanceService.delete_record(db, record_id, actor_id=user.id)


# ── Schedules ──────────────────────────────────────────────────────

@router.get("/schedules", response_model=list[ScheduleResponse])
async def list_schedules(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(False, description="Only active schedules"),
):
    return await ScheduleService.list_schedules(db, active_only=active_only)


@router.post("/schedules", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    body: ScheduleCreate,
    user: User = Depends(require_permission("schedule:manage")),
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService.create_schedule(db, body, actor_id=user.id)


@router.patch("/schedules/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: uuid.UUID,
    body: ScheduleUpdate,
    user: User = Depends(require_permission("schedule:manage")),
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService.update_schedule(db, schedule_id, body, actor_id=user.id)


# ── User schedule assignments ──────────────────────────────────────

@router.get("/user-schedules", response_model=list[UserScheduleResponse])
async def list_user_schedules(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_id: Optional[uuid.UUID] = Query(None, description="Filter by user"),
):
    if not _can(request, "schedule:manage"):
        if user_id is not None and user_id != user.id:
            raise ForbiddenException(detail="You may only view your own schedules.")
        user_id = user.id
    return await ScheduleService.list_user_schedules(db, user_id=user_id)


@router.post("/user-schedules", response_model=UserScheduleResponse, status_code=201)
async def assign_schedule(
    body: UserScheduleCreate,
    user: User = Depends(require_permission("schedule:manage")),
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService.assign_schedule(db, body, actor_id=user.id)
