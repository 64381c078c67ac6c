"""Auth dependencies — JWT validation, RBAC enforcement."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.models import UserSession
from officehub.auth.service import hash_token
from officehub.common.constants import PERMISSIONS, AccessLevel
from officehub.common.exceptions import AuthenticationException, ForbiddenException
from officehub.config import settings
from officehub.database import get_db
from officehub.users.allocator import access_level_for
from officehub.users.models import User


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationException(detail="Missing or invalid Authorization header.")
    return auth_header[7:]


def has_permission(level: AccessLevel, permission: str) -> bool:
    return permission in PERMISSIONS.get(level, [])


def current_level(request: Request) -> AccessLevel:
    """Access level resolved by ``get_current_user`` for this request."""
    return getattr(request.state, "access_level", AccessLevel.employee)


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate JWT, verify session, return the authenticated User."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise AuthenticationException(detail="Token has expired.")
    except JWTError:
        raise AuthenticationException(detail="Invalid token.")

    if payload.get("type") != "access":
        raise AuthenticationException(detail="Invalid token type.")

    # Verify session exists, not revoked, not expired
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > datetime.now(timezone.utc),
        ),
    )
    if result.scalars().first() is None:
        raise AuthenticationException(detail="Session invalid or expired.")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise AuthenticationException(detail="Invalid token subject.")

    user_result = await db.execute(
        select(User).where(User.id == user_id, User.is_active.is_(True)),
    )
    user = user_result.scalars().first()
    if user is None:
        raise AuthenticationException(detail="User account is inactive or not found.")

    # The role may have changed since the token was issued; trust the database.
    request.state.access_level = access_level_for(user.role.role_name)
    request.state.token_hash = hash_token(token)

    return user


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed: AccessLevel) -> Callable:
    """Return a FastAPI dependency that enforces access-level membership."""

    async def _check(
        request: Request,
        user: User = Depends(get_current_user),
    ) -> User:
        level = current_level(request)
        if level not in allowed:
            raise ForbiddenException(
                detail=f"Access level '{level.value}' is not permitted. Required: {[a.value for a in allowed]}.",
            )
        return user

    return _check


# ── Permission-based dependency ─────────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that enforces a specific permission string."""

    async def _check(
        request: Request,
        user: User = Depends(get_current_user),
    ) -> User:
        level = current_level(request)
        if not has_permission(level, permission):
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to access level '{level.value}'.",
            )
        return user

    return _check
