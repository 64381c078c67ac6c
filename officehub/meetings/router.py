"""Meetings router — CRUD, participants, RSVP."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.dependencies import current_level, has_permission, require_permission
from officehub.common.constants import MeetingStatus, MeetingType
from officehub.common.pagination import PaginationParams
from officehub.database import get_db
from officehub.meetings.schemas import (
    MeetingCreate,
    MeetingResponse,
    MeetingUpdate,
    RSVPRequest,
)
from officehub.meetings.service import MeetingService
from officehub.users.models import User

router = APIRouter(prefix="", tags=["meetings"])


def _can_manage(request: Request) -> bool:
    return has_permission(current_level(request), "meeting:manage")


# ── GET / — List meetings ──────────────────────────────────────────

@router.get("")
async def list_meetings(
    user: User = Depends(require_permission("meeting:read")),
    db: AsyncSession = Depends(get_db),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by title or location"),
    status: Optional[MeetingStatus] = Query(None, description="Filter by status"),
    meeting_type: Optional[MeetingType] = Query(None, description="Filter by type"),
    organizer_id: Optional[uuid.UUID] = Query(None, description="Filter by organizer"),
    participant_id: Optional[uuid.UUID] = Query(None, description="Filter by participant"),
    upcoming: bool = Query(False, description="Only scheduled meetings in the future"),
):
    result = await MeetingService.list_meetings(
        db,
        pagination,
        search=search,
        status=status,
        meeting_type=meeting_type,
        organizer_id=organizer_id,
        participant_id=participant_id,
        upcoming=upcoming,
    )
    return {
        "data": [MeetingResponse.model_validate(m).model_dump(mode="json") for m in result.data],
        "meta": result.meta.model_dump(),
    }


# ── GET /{id} ──────────────────────────────────────────────────────

@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(
    meeting_id: uuid.UUID,
    user: User = Depends(require_permission("meeting:read")),
    db: AsyncSession = Depends(get_db),
):
    return await MeetingService.get_meeting(db, meeting_id)


# ── POST / — Schedule a meeting ────────────────────────────────────

@router.post("", response_model=MeetingResponse, status_code=201)
async def create_meeting(
    body: MeetingCreate,
    user: User = Depends(require_permission("meeting:create")),
    db: AsyncSession = Depends(get_db),
):
    return await MeetingService.create_meeting(db, body, organizer_id=user.id)


# ── PATCH /{id} ────────────────────────────────────────────────────

@router.patch("/{meeting_id}", response_model=MeetingResponse)
async def update_meeting(
    meeting_id: uuid.UUID,
    body: MeetingUpdate,
    request: Request,
    user: User = Depends(require_permission("meeting:read")),
    db: AsyncSession = Depends(get_db),
):
    return await MeetingService.update_meeting(
        db, meeting_id, body, user.id, can_manage=_can_manage(request),
    )


# ── PUT /{id}/rsvp ─────────────────────────────────────────────────

@router.put("/{meeting_id}/rsvp", response_model=MeetingResponse)
async def rsvp(
    meeting_id: uuid.UUID,
    body: RSVPRequest,
    user: User = Depends(require_permission("meeting:read")),
    db: AsyncSession = Depends(get_db),
):
    return await MeetingService.respond(db, meeting_id, user.id, body.status)


# ── DELETE /{id} ───────────────────────────────────────────────────

@router.delete("/{meeting_id}", status_code=204)
async def delete_meeting(
    meeting_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("meeting:read")),
    db: AsyncSession = Depends(get_db),
):
    await MeetingService.delete_meeting(
        db, meeting_id, user.id, can_manage=_can_manage(request),
    )
