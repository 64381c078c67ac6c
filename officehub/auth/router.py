"""Auth router — password login, logout, current user, password change."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.dependencies import current_level, get_current_user
from officehub.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    MessageResponse,
    TokenResponse,
    UserInfo,
)
from officehub.auth.service import (
    authenticate,
    change_password,
    create_session,
    revoke_session,
)
from officehub.common.audit import create_audit_entry
from officehub.common.constants import PERMISSIONS
from officehub.common.rate_limit import LOGIN_RATE_LIMIT, limiter
from officehub.database import get_db
from officehub.users.allocator import access_level_for
from officehub.users.models import User

router = APIRouter(prefix="", tags=["auth"])


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        user_id_login=user.user_id_login,
        display_name=user.full_name,
        email=user.email,
        role=user.role.role_name,
        access_level=access_level_for(user.role.role_name).value,
        department=user.department,
    )


# ── POST /login — Login id + password ──────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.user_id_login, body.password)

    ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    access_token, expires_in = await create_session(db, user, ip, user_agent)

    await create_audit_entry(
        db,
        action="login",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        new_values={"ip": ip, "user_agent": user_agent},
        ip_address=ip,
        user_agent=user_agent,
    )

    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=_user_info(user),
    )


# ── POST /logout — Revoke current session ──────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await revoke_session(db, request.state.token_hash)

    await create_audit_entry(
        db,
        action="logout",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    return MessageResponse(message="Logged out successfully")


# ── GET /me — Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    request: Request,
    user: User = Depends(get_current_user),
):
    level = current_level(request)
    return MeResponse(
        **_user_info(user).model_dump(),
        permissions=PERMISSIONS.get(level, []),
    )


# ── POST /change-password ──────────────────────────────────────────

@router.post("/change-password", response_model=MessageResponse)
async def change_own_password(
    body: ChangePasswordRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await change_password(
        db, user, body.current_password, body.new_password,
        keep_token_hash=request.state.token_hash,
    )

    await create_audit_entry(
        db,
        action="update",
        entity_type="user_password",
        entity_id=user.id,
        actor_id=user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    return MessageResponse(message="Password changed successfully")
