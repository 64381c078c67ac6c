"""Task Pydantic v2 schemas."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from officehub.common.constants import Priority, TaskStatus
from officehub.users.schemas import UserBrief


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    assignee_id: Optional[uuid.UUID] = None
    priority: Priority = Priority.medium
    status: TaskStatus = TaskStatus.pending
    progress: int = Field(0, ge=0, le=100)
    due_date: Optional[date] = None
    department: Optional[str] = Field(None, max_length=100)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    assignee_id: Optional[uuid.UUID] = None
    priority: Optional[Priority] = None
    status: Optional[TaskStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    due_date: Optional[date] = None
    department: Optional[str] = Field(None, max_length=100)


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    assignee_id: Optional[uuid.UUID] = None
    assignee: Optional[UserBrief] = None
    priority: Priority
    status: TaskStatus
    progress: int
    due_date: Optional[date] = None
    department: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
