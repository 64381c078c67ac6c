"""Users router — User and Role API endpoints.

Routes:
    /users          — List, create users
    /users/{id}     — Get, update, deactivate user
    /roles          — List, create roles
    /roles/{id}     — Update, delete role
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.dependencies import get_current_user, require_permission, require_role
from officehub.common.constants import AccessLevel, UserStatus
from officehub.common.pagination import PaginationParams
from officehub.database import get_db
from officehub.users.models import User
from officehub.users.schemas import (
    RoleCreate,
    RoleResponse,
    RoleUpdate,
    UserCreate,
    UserCreatedResponse,
    UserResponse,
    UserUpdate,
)
from officehub.users.service import RoleService, UserService


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

users_router = APIRouter(prefix="", tags=["users"])
roles_router = APIRouter(prefix="", tags=["roles"])


# ═════════════════════════════════════════════════════════════════════
# User Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /users — List users ─────────────────────────────────────────

@users_router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("users:read")),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by name, email, or login id"),
    role_id: Optional[uuid.UUID] = Query(None, description="Filter by role"),
    status: Optional[UserStatus] = Query(None, description="Filter by status"),
    department: Optional[str] = Query(None, description="Filter by department"),
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
):
    result = await UserService.list_users(
        db,
        pagination,
        search=search,
        role_id=role_id,
        status=status,
        department=department,
        is_active=is_active,
    )
    return {
        "data": [UserResponse.model_validate(u).model_dump(mode="json") for u in result.data],
        "meta": result.meta.model_dump(),
    }


# ── GET /users/{id} — User detail ───────────────────────────────────

@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("users:read")),
):
    return await UserService.get_user(db, user_id)


# ── POST /users — Create user ───────────────────────────────────────

@users_router.post("", response_model=UserCreatedResponse, status_code=201)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("users:manage")),
):
    """Create a user.

    The login id is allocated from the role prefix when omitted.  When no
    password is supplied a temporary one is generated and returned in this
    response only; it is never retrievable again.
    """
    user, temporary_password = await UserService.create_user(
        db, body, actor_id=current_user.id,
    )
    response = UserCreatedResponse.model_validate(user)
    response.temporary_password = temporary_password
    return response


# ── PATCH /users/{id} — Update user ─────────────────────────────────

@users_router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("users:manage")),
):
    return await UserService.update_user(db, user_id, body, actor_id=current_user.id)


# ── DELETE /users/{id} — Deactivate user ────────────────────────────

@users_router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("users:manage")),
):
    return await UserService.deactivate_user(db, user_id, actor_id=current_user.id)


# ═════════════════════════════════════════════════════════════════════
# Role Endpoints
# ═════════════════════════════════════════════════════════════════════


@roles_router.get("", response_model=list[RoleResponse])
async def list_roles(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await RoleService.list_roles(db)


@roles_router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    body: RoleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(AccessLevel.admin)),
):
    return await RoleService.create_role(db, body, actor_id=current_user.id)


@roles_router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: uuid.UUID,
    body: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(AccessLevel.admin)),
):
    return await RoleService.update_role(db, role_id, body, actor_id=current_user.id)


@roles_router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(AccessLevel.admin)),
):
    await RoleService.delete_role(db, role_id, actor_id=current_user.id)
