"""Task service — async CRUD with assignee-limited updates."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.common.audit import create_audit_entry
from officehub.common.constants import Priority, TaskStatus
from officehub.common.exceptions import NotFoundException, ValidationException
from officehub.common.filters import apply_filters, apply_search
from officehub.common.pagination import PaginatedResponse, PaginationParams, paginate
from officehub.tasks.models import Task
from officehub.tasks.schemas import TaskCreate, TaskUpdate
from officehub.users.models import User

# Fields an assignee without task:manage may change on their own task
ASSIGNEE_FIELDS = frozenset({"status", "progress"})


def _jsonable(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class TaskService:
    """Async CRUD operations for tasks."""

    @staticmethod
    async def _check_assignee(db: AsyncSession, assignee_id: Optional[uuid.UUID]) -> None:
        if assignee_id is not None and await db.get(User, assignee_id) is None:
            raise ValidationException({"assignee_id": ["Assignee does not exist."]})

    @staticmethod
    async def list_tasks(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        assignee_id: Optional[uuid.UUID] = None,
        status: Optional[TaskStatus] = None,
        priority: Optional[Priority] = None,
        department: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(Task).order_by(Task.created_at.desc())
        query = apply_filters(
            query,
            Task,
            {
                "assignee_id": assignee_id,
                "status": status,
                "priority": priority,
                "department": department,
            },
        )
        if search:
            query = apply_search(query, Task, search, ["title"])
        return await paginate(db, query, pagination, model=Task)

    @staticmethod
    async def get_task(db: AsyncSession, task_id: uuid.UUID) -> Task:
        result = await db.execute(select(Task).where(Task.id == task_id))
        task = result.scalars().first()
        if task is None:
            raise NotFoundException("Task", str(task_id))
        return task

    @staticmethod
    async def create_task(
        db: AsyncSession,
        data: TaskCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Task:
        await TaskService._check_assignee(db, data.assignee_id)

        values = data.model_dump()
        if values["status"] == TaskStatus.completed:
            values["progress"] = 100

        task = Task(**values, created_by=actor_id)
        db.add(task)
        await db.flush()
        await db.refresh(task, attribute_names=["assignee"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="task",
            entity_id=task.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return task

    @staticmethod
    async def update_task(
        db: AsyncSession,
        task_id: uuid.UUID,
        data: TaskUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Task:
        task = await TaskService.get_task(db, task_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return task

        for required in ("title", "priority", "status", "progress"):
            if required in changes and changes[required] is None:
                raise ValidationException({required: [f"{required} cannot be null."]})
        if "assignee_id" in changes:
            await TaskService._check_assignee(db, changes["assignee_id"])
        if changes.get("status") == TaskStatus.completed:
            changes["progress"] = 100

        old_values = {field: _jsonable(getattr(task, field)) for field in changes}
        for field, value in changes.items():
            setattr(task, field, value)
        await db.flush()
        if "assignee_id" in changes:
            await db.refresh(task, attribute_names=["assignee"])

        await create_audit_entry(
            db,
            action="update",
            entity_type="task",
            entity_id=task.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={field: _jsonable(value) for field, value in changes.items()},
        )
        return task

    @staticmethod
    async def delete_task(
        db: AsyncSession,
        task_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        task = await TaskService.get_task(db, task_id)
        old_values = {"title": task.title, "status": task.status.value}
        await db.delete(task)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="task",
            entity_id=task_id,
            actor_id=actor_id,
            old_values=old_values,
        )
