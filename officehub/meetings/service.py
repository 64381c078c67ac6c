"""Meeting service — CRUD, participant management, RSVP."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.common.audit import create_audit_entry
from officehub.common.constants import MeetingStatus, MeetingType, ParticipantStatus
from officehub.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from officehub.common.filters import apply_filters, apply_search
from officehub.common.pagination import PaginatedResponse, PaginationParams, paginate
from officehub.meetings.models import Meeting, MeetingParticipant
from officehub.meetings.schemas import MeetingCreate, MeetingUpdate
from officehub.users.models import User


def _as_utc(value: datetime) -> datetime:
    """Naive values are read back from stores without offsets; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _audit_values(meeting: Meeting) -> dict[str, Any]:
    return {
        "title": meeting.title,
        "start_time": meeting.start_time.isoformat(),
        "end_time": meeting.end_time.isoformat(),
        "status": meeting.status.value,
        "participants": sorted(str(p.user_id) for p in meeting.participants),
    }


class MeetingService:
    """Async meeting operations."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def _check_users(db: AsyncSession, user_ids: Sequence[uuid.UUID]) -> None:
        if not user_ids:
            return
        result = await db.execute(select(User.id).where(User.id.in_(user_ids)))
        found = set(result.scalars().all())
        missing = [str(uid) for uid in user_ids if uid not in found]
        if missing:
            raise ValidationException({"participant_ids": [f"Unknown user(s): {missing}"]})

    @staticmethod
    def _check_manage(meeting: Meeting, actor_id: uuid.UUID, can_manage: bool) -> None:
        if meeting.organizer_id != actor_id and not can_manage:
            raise ForbiddenException(detail="Only the organizer can modify this meeting.")

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_meeting(
        db: AsyncSession,
        meeting_id: uuid.UUID,
        *,
        reload: bool = False,
    ) -> Meeting:
        query = select(Meeting).where(Meeting.id == meeting_id)
        if reload:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        meeting = result.scalars().first()
        if meeting is None:
            raise NotFoundException("Meeting", str(meeting_id))
        return meeting

    @staticmethod
    async def list_meetings(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        status: Optional[MeetingStatus] = None,
        meeting_type: Optional[MeetingType] = None,
        organizer_id: Optional[uuid.UUID] = None,
        participant_id: Optional[uuid.UUID] = None,
        upcoming: bool = False,
    ) -> PaginatedResponse:
        """Meetings ordered by start time; ``upcoming`` keeps scheduled future ones."""

        query = select(Meeting).order_by(Meeting.start_time.asc())
        query = apply_filters(
            query,
            Meeting,
            {
                "status": status,
                "meeting_type": meeting_type,
                "organizer_id": organizer_id,
            },
        )
        if participant_id is not None:
            query = query.where(
                Meeting.participants.any(MeetingParticipant.user_id == participant_id)
            )
        if upcoming:
            query = query.where(
                Meeting.status == MeetingStatus.scheduled,
                Meeting.start_time > datetime.now(timezone.utc),
            )
        if search:
            query = apply_search(query, Meeting, search, ["title", "location"])

        return await paginate(db, query, pagination, model=Meeting)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_meeting(
        db: AsyncSession,
        data: MeetingCreate,
        organizer_id: uuid.UUID,
    ) -> Meeting:
        await MeetingService._check_users(db, data.participant_ids)

        meeting = Meeting(
            **data.model_dump(exclude={"participant_ids"}),
            organizer_id=organizer_id,
        )
        meeting.participants = [
            MeetingParticipant(user_id=uid) for uid in data.participant_ids
        ]
        db.add(meeting)
        await db.flush()

        meeting = await MeetingService.get_meeting(db, meeting.id, reload=True)
        await create_audit_entry(
            db,
            action="create",
            entity_type="meeting",
            entity_id=meeting.id,
            actor_id=organizer_id,
            new_values=_audit_values(meeting),
        )
        return meeting

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_meeting(
        db: AsyncSession,
        meeting_id: uuid.UUID,
        data: MeetingUpdate,
        actor_id: uuid.UUID,
        *,
        can_manage: bool = False,
    ) -> Meeting:
        meeting = await MeetingService.get_meeting(db, meeting_id)
        MeetingService._check_manage(meeting, actor_id, can_manage)

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return meeting

        for required in ("title", "start_time", "end_time", "meeting_type", "status"):
            if required in changes and changes[required] is None:
                raise ValidationException({required: [f"{required} cannot be null."]})

        start = changes.get("start_time", meeting.start_time)
        end = changes.get("end_time", meeting.end_time)
        if _as_utc(end) <= _as_utc(start):
            raise ValidationException({"end_time": ["end_time must be after start_time."]})

        participant_ids = changes.pop("participant_ids", None)
        old_values = _audit_values(meeting)

        for field, value in changes.items():
            setattr(meeting, field, value)

        if participant_ids is not None:
            await MeetingService._check_users(db, participant_ids)
            # Keep existing rows so RSVP answers survive; drop the rest.
            current = {p.user_id: p for p in meeting.participants}
            meeting.participants = [
                current.get(uid) or MeetingParticipant(user_id=uid)
                for uid in participant_ids
            ]

        await db.flush()
        meeting = await MeetingService.get_meeting(db, meeting.id, reload=True)

        await create_audit_entry(
            db,
            action="update",
            entity_type="meeting",
            entity_id=meeting.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=_audit_values(meeting),
        )
        return meeting

    # ── RSVP ────────────────────────────────────────────────────────

    @staticmethod
    async def respond(
        db: AsyncSession,
        meeting_id: uuid.UUID,
        user_id: uuid.UUID,
        status: ParticipantStatus,
    ) -> Meeting:
        meeting = await MeetingService.get_meeting(db, meeting_id)
        participant = next(
            (p for p in meeting.participants if p.user_id == user_id), None,
        )
        if participant is None:
            raise ForbiddenException(detail="You are not a participant of this meeting.")

        participant.status = status
        await db.flush()
        return meeting

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_meeting(
        db: AsyncSession,
        meeting_id: uuid.UUID,
        actor_id: uuid.UUID,
        *,
        can_manage: bool = False,
    ) -> None:
        meeting = await MeetingService.get_meeting(db, meeting_id)
        MeetingService._check_manage(meeting, actor_id, can_manage)

        old_values = _audit_values(meeting)
        await db.delete(meeting)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="meeting",
            entity_id=meeting_id,
            actor_id=actor_id,
            old_values=old_values,
        )
