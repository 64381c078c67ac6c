"""Personal todo service — every query is scoped to the owner."""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.common.constants import Priority
from officehub.common.exceptions import NotFoundException, ValidationException
from officehub.todos.models import PersonalTodo
from officehub.todos.schemas import TodoCreate, TodoUpdate


class TodoService:

    @staticmethod
    async def list_todos(
        db: AsyncSession,
        owner_id: uuid.UUID,
        *,
        completed: Optional[bool] = None,
        priority: Optional[Priority] = None,
    ) -> Sequence[PersonalTodo]:
        query = (
            select(PersonalTodo)
            .where(PersonalTodo.owner_id == owner_id)
            .order_by(PersonalTodo.completed.asc(), PersonalTodo.created_at.desc())
        )
        if completed is not None:
            query = query.where(PersonalTodo.completed.is_(completed))
        if priority is not None:
            query = query.where(PersonalTodo.priority == priority)
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def get_todo(
        db: AsyncSession,
        owner_id: uuid.UUID,
        todo_id: uuid.UUID,
    ) -> PersonalTodo:
        """Another user's todo is reported as missing, not forbidden."""
        result = await db.execute(
            select(PersonalTodo).where(
                PersonalTodo.id == todo_id,
                PersonalTodo.owner_id == owner_id,
            )
        )
        todo = result.scalars().first()
        if todo is None:
            raise NotFoundException("Todo", str(todo_id))
        return todo

    @staticmethod
    async def create_todo(
        db: AsyncSession,
        owner_id: uuid.UUID,
        data: TodoCreate,
    ) -> PersonalTodo:
        todo = PersonalTodo(owner_id=owner_id, **data.model_dump())
        db.add(todo)
        await db.flush()
        return todo

    @staticmethod
    async def update_todo(
        db: AsyncSession,
        owner_id: uuid.UUID,
        todo_id: uuid.UUID,
        data: TodoUpdate,
    ) -> PersonalTodo:
        todo = await TodoService.get_todo(db, owner_id, todo_id)
        changes = data.model_dump(exclude_unset=True)
        for required in ("title", "priority", "completed"):
            if required in changes and changes[required] is None:
                raise ValidationException({required: [f"{required} cannot be null."]})
        for field, value in changes.items():
            setattr(todo, field, value)
        await db.flush()
        return todo

    @staticmethod
    async def toggle_todo(
        db: AsyncSession,
        owner_id: uuid.UUID,
        todo_id: uuid.UUID,
    ) -> PersonalTodo:
        todo = await TodoService.get_todo(db, owner_id, todo_id)
        todo.completed = not todo.completed
        await db.flush()
        return todo

    @staticmethod
    async def delete_todo(
        db: AsyncSession,
        owner_id: uuid.UUID,
        todo_id: uuid.UUID,
    ) -> None:
        todo = await TodoService.get_todo(db, owner_id, todo_id)
        await db.delete(todo)
        await db.flush()
