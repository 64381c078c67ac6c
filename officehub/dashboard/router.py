"""Dashboard router — read-only endpoints for dashboard widgets.

Stats are visible to every authenticated user; leave and attendance counts
are limited to the caller's own rows unless they can read everyone's.
Recent activity needs ``audit:read``.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.dependencies import current_level, has_permission, require_permission
from officehub.dashboard.schemas import DashboardStatsResponse, RecentActivitiesResponse
from officehub.dashboard.service import DashboardService
from officehub.database import get_db
from officehub.users.models import User

router = APIRouter()


# ── GET /stats ──────────────────────────────────────────────────────

@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    request: Request,
    user: User = Depends(require_permission("dashboard:view")),
    db: AsyncSession = Depends(get_db),
):
    level = current_level(request)
    sees_all = has_permission(level, "leave:read_all") and has_permission(
        level, "attendance:read_all",
    )
    return await DashboardService.get_stats(
        db, level, scope_user_id=None if sees_all else user.id,
    )


# ── GET /recent-activity ────────────────────────────────────────────

@router.get("/recent-activity", response_model=RecentActivitiesResponse)
async def recent_activity(
    limit: int = Query(20, ge=1, le=100, description="Number of entries"),
    user: User = Depends(require_permission("audit:read")),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.get_recent_activities(db, limit=limit)
