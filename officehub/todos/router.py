"""Personal todos router — owner-scoped checklist."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.dependencies import require_permission
from officehub.common.constants import Priority
from officehub.database import get_db
from officehub.todos.schemas import TodoCreate, TodoResponse, TodoUpdate
from officehub.todos.service import TodoService
from officehub.users.models import User

router = APIRouter(prefix="", tags=["todos"])

_owner = require_permission("todo:manage_own")


@router.get("", response_model=list[TodoResponse])
async def list_todos(
    user: User = Depends(_owner),
    db: AsyncSession = Depends(get_db),
    completed: Optional[bool] = Query(None, description="Filter by completion"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
):
    return await TodoService.list_todos(db, user.id, completed=completed, priority=priority)


@router.post("", response_model=TodoResponse, status_code=201)
async def create_todo(
    body: TodoCreate,
    user: User = Depends(_owner),
    db: AsyncSession = Depends(get_db),
):
    return await TodoService.create_todo(db, user.id, body)


@router.patch("/{todo_id}", response_model=TodoResponse)
async def update_todo(
    todo_id: uuid.UUID,
    body: TodoUpdate,
    user: User = Depends(_owner),
    db: AsyncSession = Depends(get_db),
):
    return await TodoService.update_todo(db, user.id, todo_id, body)


@router.post("/{todo_id}/toggle", response_model=TodoResponse)
async def toggle_todo(
    todo_id: uuid.UUID,
    user: User = Depends(_owner),
    db: AsyncSession = Depends(get_db),
):
    return await TodoService.toggle_todo(db, user.id, todo_id)


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(
    todo_id: uuid.UUID,
    user: User = Depends(_owner),
    db: AsyncSession = Depends(get_db),
):
    await TodoService.delete_todo(db, user.id, todo_id)
