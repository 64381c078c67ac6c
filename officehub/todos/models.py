"""Personal todo ORM model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from officehub.common.constants import Priority
from officehub.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PersonalTodo(Base):
    """A private checklist item; only its owner ever sees it."""

    __tablename__ = "personal_todos"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    completed: Mapped[bool] = mapped_column(sa.Boolean, default=False, nullable=False)
    priority: Mapped[Priority] = mapped_column(
        sa.Enum(Priority, name="priority"), default=Priority.medium, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
