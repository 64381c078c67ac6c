"""Task ORM models: Task."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.common.constants import Priority, TaskStatus
from officehub.database import Base
from officehub.users.models import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_task_progress"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    priority: Mapped[Priority] = mapped_column(
        sa.Enum(Priority, name="priority"), default=Priority.medium, nullable=False
    )
    status: Mapped[TaskStatus] = mapped_column(
        sa.Enum(TaskStatus, name="task_status"),
        default=TaskStatus.pending,
        nullable=False,
    )
    progress: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    department: Mapped[Optional[str]] = mapped_column(sa.String(100))
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    assignee: Mapped[Optional[User]] = relationship(
        foreign_keys=[assignee_id], lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Task {self.title!r} {self.status}>"
