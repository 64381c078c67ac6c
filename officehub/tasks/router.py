"""Tasks router — CRUD; assignees may update progress on their own tasks."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from officehub.auth.dependencies import current_level, has_permission, require_permission
from officehub.common.constants import Priority, TaskStatus
from officehub.common.exceptions import ForbiddenException
from officehub.common.pagination import PaginationParams
from officehub.database import get_db
from officehub.tasks.schemas import TaskCreate, TaskResponse, TaskUpdate
from officehub.tasks.service import ASSIGNEE_FIELDS, TaskService
from officehub.users.models import User

router = APIRouter(prefix="", tags=["tasks"])


# ── GET / — List tasks ─────────────────────────────────────────────

@router.get("")
async def list_tasks(
    user: User = Depends(require_permission("task:read")),
    db: AsyncSession = Depends(get_db),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by title"),
    assignee_id: Optional[uuid.UUID] = Query(None, description="Filter by assignee"),
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
    department: Optional[str] = Query(None, description="Filter by department"),
):
    result = await TaskService.list_tasks(
        db,
        pagination,
        search=search,
        assignee_id=assignee_id,
        status=status,
        priority=priority,
        department=department,
    )
    return {
        "data": [TaskResponse.model_validate(t).model_dump(mode="json") for t in result.data],
        "meta": result.meta.model_dump(),
    }


# ── GET /{id} ──────────────────────────────────────────────────────

@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    user: User = Depends(require_permission("task:read")),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.get_task(db, task_id)


# ── POST / — Create task ───────────────────────────────────────────

@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    body: TaskCreate,
    user: User = Depends(require_permission("task:manage")),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.create_task(db, body, actor_id=user.id)


# ── PATCH /{id} — Update task ──────────────────────────────────────

@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    request: Request,
    user: User = Depends(require_permission("task:read")),
    db: AsyncSession = Depends(get_db),
):
    if not has_permission(current_level(request), "task:manage"):
        task = await TaskService.get_task(db, task_id)
        if task.assignee_id != user.id:
            raise ForbiddenException(detail="You can only update tasks assigned to you.")
        extra = set(body.model_dump(exclude_unset=True)) - ASSIGNEE_FIELDS
        if extra:
            raise ForbiddenException(
                detail=f"Assignees may only change {sorted(ASSIGNEE_FIELDS)}; got {sorted(extra)}.",
            )
    return await TaskService.update_task(db, task_id, body, actor_id=user.id)


# ── DELETE /{id} ───────────────────────────────────────────────────

@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    user: User = Depends(require_permission("task:manage")),
    db: AsyncSession = Depends(get_db),
):
    await TaskService.delete_task(db, task_id, actor_id=user.id)
