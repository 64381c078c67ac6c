"""Dashboard Pydantic v2 schemas — read-only response models."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class FeatureLink(BaseModel):
    name: str
    path: str


class DashboardStatsResponse(BaseModel):
    """Headline counts plus the features the caller can reach."""

    date: date
    access_level: str
    total_meetings: int
    upcoming_meetings: int
    total_tasks: int
    pending_tasks: int
    completed_tasks: int
    active_users: int
    pending_leave_requests: int
    today_attendance: int
    features: list[FeatureLink]


class RecentActivityItem(BaseModel):
    id: uuid.UUID
    action: str
    entity_type: str
    entity_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    actor_name: Optional[str] = None
    created_at: datetime


class RecentActivitiesResponse(BaseModel):
    data: list[RecentActivityItem]
