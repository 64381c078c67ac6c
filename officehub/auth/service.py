"""Auth service — password verification, JWT issuance, session lifecycle."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from officehub.auth.models import UserSession
from officehub.common.constants import AccessLevel
from officehub.common.exceptions import AuthenticationException, ValidationException
from officehub.config import settings
from officehub.users.allocator import access_level_for
from officehub.users.models import User

logger = logging.getLogger(__name__)


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


# ── Login ───────────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, user_id_login: str, password: str) -> User:
    """Return the active user matching the credentials, or raise 401.

    The same error is raised for an unknown login id and a wrong password.
    """
    result = await db.execute(
        select(User).where(User.user_id_login == user_id_login.strip()),
    )
    user = result.scalars().first()
    if user is None or not verify_password(user.password_hash, password):
        logger.info("Failed login attempt for %s", user_id_login)
        raise AuthenticationException(detail="Invalid login id or password.")

    if not user.is_active:
        logger.info("Login refused for inactive user %s", user.user_id_login)
        raise AuthenticationException(detail="User account is inactive.")

    user.last_login = datetime.now(timezone.utc)
    await db.flush()
    logger.info("User %s logged in", user.user_id_login)
    return user


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(user_id: uuid.UUID, level: AccessLevel) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user_id),
        "level": level.value,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> tuple[str, int]:
    """Issue a token for *user* and persist its session.  Returns (token, expires_in)."""
    token, expires_in = create_access_token(user.id, access_level_for(user.role.role_name))

    session = UserSession(
        user_id=user.id,
        token_hash=hash_token(token),
        ip_address=ip,
        user_agent=user_agent,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )
    db.add(session)
    await db.flush()

    return token, expires_in


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Mark the session for *token_hash* as revoked."""
    await db.execute(
        update(UserSession)
        .where(UserSession.token_hash == token_hash)
        .values(is_revoked=True),
    )
    await db.flush()


async def revoke_user_sessions(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    keep_token_hash: Optional[str] = None,
) -> None:
    """Revoke every live session belonging to *user_id*, optionally sparing one."""
    stmt = update(UserSession).where(
        UserSession.user_id == user_id, UserSession.is_revoked.is_(False),
    )
    if keep_token_hash is not None:
        stmt = stmt.where(UserSession.token_hash != keep_token_hash)
    await db.execute(stmt.values(is_revoked=True))
    await db.flush()


# ── Password change ─────────────────────────────────────────────────

async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
    *,
    keep_token_hash: Optional[str] = None,
) -> None:
    """Set a new password and sign out every other session of *user*."""
    if not verify_password(user.password_hash, current_password):
        raise ValidationException(
            errors={"current_password": ["Current password is incorrect."]},
        )
    if current_password == new_password:
        raise ValidationException(
            errors={"new_password": ["New password must differ from the current one."]},
        )
    user.password_hash = hash_password(new_password)
    await db.flush()
    await revoke_user_sessions(db, user.id, keep_token_hash=keep_token_hash)
    logger.info("User %s changed their password", user.user_id_login)
