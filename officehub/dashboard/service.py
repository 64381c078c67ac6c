"""Dashboard service — read-only aggregation queries across modules.

All methods are static async, following the project convention.
Counts are computed at DB level.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.attendance.models import AttendanceRecord
from officehub.common.audit import AuditTrail
from officehub.common.constants import (
    FEATURES,
    PERMISSIONS,
    AccessLevel,
    LeaveStatus,
    MeetingStatus,
    TaskStatus,
)
from officehub.config import settings
from officehub.dashboard.schemas import (
    DashboardStatsResponse,
    FeatureLink,
    RecentActivitiesResponse,
    RecentActivityItem,
)
from officehub.leave.models import LeaveRequest
from officehub.meetings.models import Meeting
from officehub.tasks.models import Task
from officehub.users.models import User


def _today() -> date:
    """Current date in the configured office timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def accessible_features(level: AccessLevel) -> list[FeatureLink]:
    granted = set(PERMISSIONS.get(level, []))
    return [
        FeatureLink(name=name, path=path)
        for name, path, permission in FEATURES
        if permission in granted
    ]


class DashboardService:
    """Async dashboard aggregation queries."""

    # ═════════════════════════════════════════════════════════════════
    # GET /stats
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        level: AccessLevel,
        *,
        scope_user_id: Optional[uuid.UUID] = None,
    ) -> DashboardStatsResponse:
        """Headline counts.  With *scope_user_id* the leave and attendance
        figures only cover that user."""
        today = _today()

        async def _count(query) -> int:
            return (await db.execute(query)).scalar() or 0

        task_counts = dict(
            (await db.execute(
                select(Task.status, func.count(Task.id)).group_by(Task.status)
            )).all()
        )

        leave_q = select(func.count(LeaveRequest.id)).where(
            LeaveRequest.status == LeaveStatus.pending,
        )
        attendance_q = select(func.count(AttendanceRecord.id)).where(
            AttendanceRecord.date == today,
        )
        if scope_user_id is not None:
            leave_q = leave_q.where(LeaveRequest.user_id == scope_user_id)
            attendance_q = attendance_q.where(AttendanceRecord.user_id == scope_user_id)

        return DashboardStatsResponse(
            date=today,
            access_level=level.value,
            total_meetings=await _count(select(func.count(Meeting.id))),
            upcoming_meetings=await _count(
                select(func.count(Meeting.id)).where(
                    Meeting.status == MeetingStatus.scheduled,
                    Meeting.start_time > datetime.now(timezone.utc),
                )
            ),
            total_tasks=sum(task_counts.values()),
            pending_tasks=task_counts.get(TaskStatus.pending, 0),
            completed_tasks=task_counts.get(TaskStatus.completed, 0),
            active_users=await _count(
                select(func.count(User.id)).where(User.is_active.is_(True))
            ),
            pending_leave_requests=await _count(leave_q),
            today_attendance=await _count(attendance_q),
            features=accessible_features(level),
        )

    # ═════════════════════════════════════════════════════════════════
    # GET /recent-activity
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_recent_activities(
        db: AsyncSession,
        *,
        limit: int = 20,
    ) -> RecentActivitiesResponse:
        """Latest audit-trail entries with the actor's name."""
        result = await db.execute(
            select(AuditTrail, User.first_name, User.last_name)
            .outerjoin(User, User.id == AuditTrail.actor_id)
            .order_by(AuditTrail.created_at.desc())
            .limit(limit)
        )
        items = [
            RecentActivityItem(
                id=entry.id,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                actor_id=entry.actor_id,
                actor_name=f"{first} {last}" if first else None,
                created_at=entry.created_at,
            )
            for entry, first, last in result.all()
        ]
        return RecentActivitiesResponse(data=items)
