"""Users Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response          → response bodies (read)
  - *Brief             → compact representations embedded elsewhere
"""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from officehub.common.constants import UserStatus


# ═════════════════════════════════════════════════════════════════════
# Role
# ═════════════════════════════════════════════════════════════════════


class RoleCreate(BaseModel):
    role_name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None

    @field_validator("role_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("role_name must not be blank")
        return v


class RoleUpdate(BaseModel):
    role_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None


class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role_name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RoleBrief(BaseModel):
    """Minimal role info embedded in user responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role_name: str


# ═════════════════════════════════════════════════════════════════════
# User — write schemas
# ═════════════════════════════════════════════════════════════════════


class UserCreate(BaseModel):
    """Payload for creating a user.

    ``user_id_login`` and ``password`` are optional: when omitted the login id
    is allocated from the role prefix and a temporary password is generated.
    """

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role_id: uuid.UUID
    department: Optional[str] = Field(default=None, max_length=100)
    status: UserStatus = UserStatus.active
    user_id_login: Optional[str] = Field(default=None, min_length=1, max_length=20)
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)


class UserUpdate(BaseModel):
    """Partial update; ``user_id_login`` is immutable and rejected if sent."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    role_id: Optional[uuid.UUID] = None
    department: Optional[str] = Field(default=None, max_length=100)
    status: Optional[UserStatus] = None
    is_active: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


# ═════════════════════════════════════════════════════════════════════
# User — read schemas
# ═════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id_login: str
    first_name: str
    last_name: str
    email: str
    department: Optional[str] = None
    status: UserStatus
    is_active: bool
    last_login: Optional[datetime] = None
    role: RoleBrief
    created_at: datetime
    updated_at: datetime


class UserCreatedResponse(UserResponse):
    """Returned once on creation; carries the generated password if any."""

    temporary_password: Optional[str] = None


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id_login: str
    first_name: str
    last_name: str
