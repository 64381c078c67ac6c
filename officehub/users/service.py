"""Users service layer — async CRUD for users and roles.

Uses:
  - ``allocate_login_id`` from officehub.users.allocator
  - ``paginate()`` from officehub.common.pagination
  - ``apply_filters / apply_search`` from officehub.common.filters
  - ``create_audit_entry`` from officehub.common.audit
"""

from __future__ import annotations

import logging
import secrets
import string
import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.service import hash_password, revoke_user_sessions
from officehub.common.audit import create_audit_entry
from officehub.common.constants import UserStatus
from officehub.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from officehub.common.filters import apply_filters, apply_search
from officehub.common.pagination import PaginatedResponse, PaginationParams, paginate
from officehub.config import settings
from officehub.users.allocator import allocate_login_id
from officehub.users.models import Role, User
from officehub.users.schemas import RoleCreate, RoleUpdate, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_temporary_password(length: Optional[int] = None) -> str:
    """Random alphanumeric password containing at least one letter and digit."""
    length = length or settings.TEMP_PASSWORD_LENGTH
    while True:
        candidate = "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))
        if any(c.isalpha() for c in candidate) and any(c.isdigit() for c in candidate):
            return candidate


def _audit_values(user: User) -> dict[str, Any]:
    return {
        "user_id_login": user.user_id_login,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role_id": str(user.role_id),
        "department": user.department,
        "status": user.status.value,
        "is_active": user.is_active,
    }


# ═════════════════════════════════════════════════════════════════════
# UserService
# ═════════════════════════════════════════════════════════════════════


class UserService:
    """Async CRUD operations for users."""

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def list_users(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        role_id: Optional[uuid.UUID] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(User).order_by(User.user_id_login)

        filters: dict[str, Any] = {
            "role_id": role_id,
            "status": status,
            "department": department,
            "is_active": is_active,
        }
        query = apply_filters(query, User, filters)

        if search:
            query = apply_search(
                query,
                User,
                search,
                ["first_name", "last_name", "email", "user_id_login"],
            )

        return await paginate(db, query, pagination, model=User)

    # ── Get single ──────────────────────────────────────────────────

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalars().first()
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_user(
        db: AsyncSession,
        data: UserCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> tuple[User, Optional[str]]:
        """Create a user, allocating a login id when none is given.

        Returns ``(user, temporary_password)``; the password is ``None`` when
        the caller supplied one.  Two concurrent creations may read the same
        snapshot of login ids; the loser hits the unique constraint, rolls
        back and allocates again, up to ``LOGIN_ID_MAX_ATTEMPTS`` times.
        """
        role = await RoleService.get_role(db, data.role_id)
        # Rollback expires ORM state; keep plain values for the retry loop.
        role_id, role_name = role.id, role.role_name

        email = data.email.lower()
        existing = await db.execute(select(User.id).where(func.lower(User.email) == email))
        if existing.first() is not None:
            raise ConflictError("email", email)

        if data.user_id_login:
            taken = await db.execute(
                select(User.id).where(User.user_id_login == data.user_id_login),
            )
            if taken.first() is not None:
                raise ConflictError("user_id_login", data.user_id_login)

        temporary_password: Optional[str] = None
        password = data.password
        if not password:
            temporary_password = generate_temporary_password()
            password = temporary_password
        password_hash = hash_password(password)

        max_attempts = max(1, settings.LOGIN_ID_MAX_ATTEMPTS)
        for attempt in range(1, max_attempts + 1):
            login_id = data.user_id_login
            if not login_id:
                snapshot = (await db.execute(select(User.user_id_login))).scalars().all()
                login_id = allocate_login_id(role_name, snapshot)

            user = User(
                first_name=data.first_name,
                last_name=data.last_name,
                email=email,
                role_id=role_id,
                department=data.department,
                status=data.status,
                is_active=data.status == UserStatus.active,
                user_id_login=login_id,
                password_hash=password_hash,
            )
            db.add(user)
            try:
                await db.flush()
            except IntegrityError as exc:
                await db.rollback()
                err = str(exc.orig)
                if "user_id_login" in err:
                    if not data.user_id_login and attempt < max_attempts:
                        logger.warning(
                            "Login id %s taken concurrently; retrying (attempt %d/%d)",
                            login_id, attempt, max_attempts,
                        )
                        continue
                    raise ConflictError(
                        "user_id_login",
                        login_id,
                        detail=(
                            f"Login id '{login_id}' is already in use. "
                            "Please retry the request."
                        ),
                    )
                if "email" in err:
                    raise ConflictError("email", email)
                raise
            break

        await db.refresh(user, attribute_names=["role"])
        logger.info("Created user %s (%s)", user.user_id_login, role_name)

        await create_audit_entry(
            db,
            action="create",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
            new_values=_audit_values(user),
        )

        return user, temporary_password

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: UserUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        """Partial-update a user.  The login id never changes."""
        user = await UserService.get_user(db, user_id)

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return user

        for required in ("first_name", "last_name", "email", "role_id", "status", "is_active"):
            if required in changes and changes[required] is None:
                raise ValidationException(errors={required: [f"{required} cannot be null."]})

        if changes.get("email"):
            changes["email"] = changes["email"].lower()
        if "role_id" in changes:
            await RoleService.get_role(db, changes["role_id"])

        old_values: dict[str, Any] = {}
        for field, value in changes.items():
            old_val = getattr(user, field, None)
            if hasattr(old_val, "value"):
                old_val = old_val.value
            elif isinstance(old_val, uuid.UUID):
                old_val = str(old_val)
            old_values[field] = old_val
            setattr(user, field, value)

        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            if "email" in str(exc.orig):
                raise ConflictError("email", changes.get("email", ""))
            raise

        if "role_id" in changes:
            await db.refresh(user, attribute_names=["role"])

        if changes.get("is_active") is False or changes.get("status") == UserStatus.inactive:
            await revoke_user_sessions(db, user.id)

        await create_audit_entry(
            db,
            action="update",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )

        return user

    # ── Deactivate (soft delete) ────────────────────────────────────

    @staticmethod
    async def deactivate_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        if actor_id is not None and user_id == actor_id:
            raise ValidationException(errors={"id": ["You cannot deactivate yourself."]})

        user = await UserService.get_user(db, user_id)
        old_values = _audit_values(user)

        user.is_active = False
        user.status = UserStatus.inactive
        await db.flush()
        await revoke_user_sessions(db, user.id)

        await create_audit_entry(
            db,
            action="delete",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={"is_active": False, "status": UserStatus.inactive.value},
        )
        logger.info("Deactivated user %s", user.user_id_login)
        return user


# ═════════════════════════════════════════════════════════════════════
# RoleService
# ═════════════════════════════════════════════════════════════════════


class RoleService:
    """Async CRUD operations for roles."""

    @staticmethod
    async def list_roles(db: AsyncSession) -> Sequence[Role]:
        result = await db.execute(select(Role).order_by(Role.role_name))
        return result.scalars().all()

    @staticmethod
    async def get_role(db: AsyncSession, role_id: uuid.UUID) -> Role:
        result = await db.execute(select(Role).where(Role.id == role_id))
        role = result.scalars().first()
        if role is None:
            raise NotFoundException("Role", str(role_id))
        return role

    @staticmethod
    async def create_role(
        db: AsyncSession,
        data: RoleCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Role:
        existing = await db.execute(
            select(Role.id).where(func.lower(Role.role_name) == data.role_name.lower()),
        )
        if existing.first() is not None:
            raise ConflictError("role_name", data.role_name)

        role = Role(role_name=data.role_name, description=data.description)
        db.add(role)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="role",
            entity_id=role.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return role

    @staticmethod
    async def update_role(
        db: AsyncSession,
        role_id: uuid.UUID,
        data: RoleUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Role:
        role = await RoleService.get_role(db, role_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return role

        if "role_name" in changes and changes["role_name"] is None:
            raise ValidationException(errors={"role_name": ["role_name cannot be null."]})

        new_name = changes.get("role_name")
        if new_name is not None:
            new_name = new_name.strip()
            clash = await db.execute(
                select(Role.id).where(
                    func.lower(Role.role_name) == new_name.lower(),
                    Role.id != role_id,
                ),
            )
            if clash.first() is not None:
                raise ConflictError("role_name", new_name)
            changes["role_name"] = new_name

        old_values = {field: getattr(role, field) for field in changes}
        for field, value in changes.items():
            setattr(role, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="role",
            entity_id=role.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=changes,
        )
        return role

    @staticmethod
    async def delete_role(
        db: AsyncSession,
        role_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        role = await RoleService.get_role(db, role_id)

        in_use = await db.execute(
            select(func.count()).select_from(User).where(User.role_id == role_id),
        )
        count = in_use.scalar() or 0
        if count:
            raise ConflictError(
                "role_id",
                str(role_id),
                detail=f"Role '{role.role_name}' is assigned to {count} user(s).",
            )

        old_values = {"role_name": role.role_name, "description": role.description}
        await db.delete(role)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="role",
            entity_id=role_id,
            actor_id=actor_id,
            old_values=old_values,
        )
