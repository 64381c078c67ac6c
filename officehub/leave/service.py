"""Leave service — apply, approve, reject, cancel, list.

State machine::

    pending ──approve──▶ approved ──cancel──▶ cancelled
       │  └───reject───▶ rejected
       └──────cancel───────────────────────▶ cancelled

Approve and reject happen at most once and only from ``pending``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.common.audit import create_audit_entry
from officehub.common.constants import LeaveStatus, LeaveType
from officehub.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from officehub.common.filters import apply_filters
from officehub.common.pagination import PaginatedResponse, PaginationParams, paginate
from officehub.common.timekeeping import compute_days_requested
from officehub.leave.models import LeaveRequest
from officehub.leave.schemas import LeaveRequestCreate
from officehub.users.models import User

logger = logging.getLogger(__name__)

_CANCELLABLE = (LeaveStatus.pending, LeaveStatus.approved)


class LeaveService:
    """Async leave-request operations."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def get_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        result = await db.execute(
            select(LeaveRequest).where(LeaveRequest.id == request_id)
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave_req

    @staticmethod
    def _require_pending(leave_req: LeaveRequest) -> None:
        if leave_req.status != LeaveStatus.pending:
            raise ValidationException(
                {"status": [f"Leave request is already {leave_req.status.value}."]}
            )

    # ── Apply ───────────────────────────────────────────────────────

    @staticmethod
    async def apply_leave(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: LeaveRequestCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveRequest:
        """Create a pending request; ``days_requested`` is computed here only."""

        user = await db.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundException("User", str(user_id))

        leave_req = LeaveRequest(
            user_id=user_id,
            leave_type=data.leave_type,
            start_date=data.start_date,
            end_date=data.end_date,
            days_requested=compute_days_requested(data.start_date, data.end_date),
            reason=data.reason,
            status=LeaveStatus.pending,
            created_by=actor_id,
        )
        db.add(leave_req)
        await db.flush()
        await db.refresh(leave_req, attribute_names=["user", "approver"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=actor_id,
            new_values={
                "user_id": str(user_id),
                "leave_type": data.leave_type.value,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
                "days_requested": leave_req.days_requested,
            },
        )
        logger.info(
            "Leave request %s created for user %s (%d day(s))",
            leave_req.id, user_id, leave_req.days_requested,
        )
        return leave_req

    # ── Approve ─────────────────────────────────────────────────────

    @staticmethod
    async def approve_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver_id: uuid.UUID,
    ) -> LeaveRequest:
        leave_req = await LeaveService.get_request(db, request_id)
        LeaveService._require_pending(leave_req)
        if leave_req.user_id == approver_id:
            raise ForbiddenException(detail="You cannot approve your own leave request.")

        leave_req.status = LeaveStatus.approved
        leave_req.approved_by = approver_id
        leave_req.approved_at = datetime.now(timezone.utc)
        await db.flush()
        await db.refresh(leave_req, attribute_names=["approver"])

        await create_audit_entry(
            db,
            action="approve",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=approver_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": LeaveStatus.approved.value},
        )
        logger.info("Leave request %s approved by %s", leave_req.id, approver_id)
        return leave_req

    # ── Reject ──────────────────────────────────────────────────────

    @staticmethod
    async def reject_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver_id: uuid.UUID,
        rejection_reason: str,
    ) -> LeaveRequest:
        leave_req = await LeaveService.get_request(db, request_id)
        LeaveService._require_pending(leave_req)
        if leave_req.user_id == approver_id:
            raise ForbiddenException(detail="You cannot reject your own leave request.")

        leave_req.status = LeaveStatus.rejected
        leave_req.approved_by = approver_id
        leave_req.approved_at = datetime.now(timezone.utc)
        leave_req.rejection_reason = rejection_reason
        await db.flush()
        await db.refresh(leave_req, attribute_names=["approver"])

        await create_audit_entry(
            db,
            action="reject",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=approver_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={
                "status": LeaveStatus.rejected.value,
                "rejection_reason": rejection_reason,
            },
        )
        logger.info("Leave request %s rejected by %s", leave_req.id, approver_id)
        return leave_req

    # ── Cancel ──────────────────────────────────────────────────────

    @staticmethod
    async def cancel_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        actor_id: uuid.UUID,
        *,
        can_manage: bool = False,
    ) -> LeaveRequest:
        """Cancel a pending or approved request (owner, or a leave manager)."""

        leave_req = await LeaveService.get_request(db, request_id)
        if leave_req.user_id != actor_id and not can_manage:
            raise ForbiddenException(detail="You can only cancel your own leave requests.")
        if leave_req.status not in _CANCELLABLE:
            raise ValidationException(
                {"status": [f"Cannot cancel a request that is {leave_req.status.value}."]}
            )

        old_status = leave_req.status.value
        leave_req.status = LeaveStatus.cancelled
        leave_req.cancelled_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="cancel",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=actor_id,
            old_values={"status": old_status},
            new_values={"status": LeaveStatus.cancelled.value},
        )
        return leave_req

    # ── List ────────────────────────────────────────────────────────

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> PaginatedResponse:
        """Requests overlapping ``[from_date, to_date]``, newest first."""

        if from_date and to_date and from_date > to_date:
            raise ValidationException(
                {"date_range": ["from_date must be before or equal to to_date."]}
            )

        query = select(LeaveRequest).order_by(LeaveRequest.created_at.desc())
        filters: dict[str, Any] = {
            "user_id": user_id,
            "status": status,
            "leave_type": leave_type,
            "end_date__from": from_date,
            "start_date__to": to_date,
        }
        query = apply_filters(query, LeaveRequest, filters)

        return await paginate(db, query, pagination, model=LeaveRequest)
