"""Leave router — apply, list, approve, reject, cancel."""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.dependencies import current_level, has_permission, require_permission
from officehub.common.constants import LeaveStatus, LeaveType
from officehub.common.exceptions import ForbiddenException
from officehub.common.pagination import PaginationParams
from officehub.database import get_db
from officehub.leave.schemas import (
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
)
from officehub.leave.service import LeaveService
from officehub.users.models import User

router = APIRouter(prefix="", tags=["leave"])


# ── POST /requests — Apply for leave ───────────────────────────────

@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
async def apply_leave(
    body: LeaveRequestCreate,
    request: Request,
    user: User = Depends(require_permission("leave:request")),
    db: AsyncSession = Depends(get_db),
):
    target_id = body.user_id or user.id
    if target_id != user.id and not has_permission(current_level(request), "leave:manage"):
        raise ForbiddenException(detail="You may only request leave for yourself.")
    return await LeaveService.apply_leave(db, target_id, body, actor_id=user.id)


# ── GET /requests — List leave requests ────────────────────────────

@router.get("/requests")
async def list_requests(
    request: Request,
    user: User = Depends(require_permission("leave:read_own")),
    db: AsyncSession = Depends(get_db),
    pagination: PaginationParams = Depends(),
    user_id: Optional[uuid.UUID] = Query(None, description="Filter by user"),
    status: Optional[LeaveStatus] = Query(None, description="Filter by status"),
    leave_type: Optional[LeaveType] = Query(None, description="Filter by leave type"),
    from_date: Optional[date] = Query(None, description="Overlapping from (inclusive)"),
    to_date: Optional[date] = Query(None, description="Overlapping to (inclusive)"),
):
    if not has_permission(current_level(request), "leave:read_all"):
        if user_id is not None and user_id != user.id:
            raise ForbiddenException(detail="You may only view your own leave requests.")
        user_id = user.id

    result = await LeaveService.list_requests(
        db,
        pagination,
        user_id=user_id,
        status=status,
        leave_type=leave_type,
        from_date=from_date,
        to_date=to_date,
    )
    return {
        "data": [LeaveRequestOut.model_validate(r).model_dump(mode="json") for r in result.data],
        "meta": result.meta.model_dump(),
    }


# ── GET /requests/{id} ─────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=LeaveRequestOut)
async def get_request(
    request_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("leave:read_own")),
    db: AsyncSession = Depends(get_db),
):
    leave_req = await LeaveService.get_request(db, request_id)
    if leave_req.user_id != user.id and not has_permission(
        current_level(request), "leave:read_all",
    ):
        raise ForbiddenException(detail="You may only view your own leave requests.")
    return leave_req


# ── PUT /requests/{id}/approve ─────────────────────────────────────

@router.put("/requests/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_request(
    request_id: uuid.UUID,
    user: User = Depends(require_permission("leave:approve")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.approve_leave(db, request_id, user.id)


# ── PUT /requests/{id}/reject ──────────────────────────────────────

@router.put("/requests/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_request(
    request_id: uuid.UUID,
    body: LeaveRejectRequest,
    user: User = Depends(require_permission("leave:approve")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.reject_leave(db, request_id, user.id, body.rejection_reason)


# ── PUT /requests/{id}/cancel ──────────────────────────────────────

@router.put("/requests/{request_id}/cancel", response_model=LeaveRequestOut)
async def cancel_request(
    request_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("leave:request")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.cancel_leave(
        db,
        request_id,
        user.id,
        can_manage=has_permission(current_level(request), "leave:manage"),
    )
