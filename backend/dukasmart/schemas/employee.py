"""Employee management schemas (admin only)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from dukasmart.models.role import Permission, UserRole


class EmployeeCreate(BaseModel):
    username: str = Field(min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9_.-]+$")
    password: str = Field(min_length=8)
    email: EmailStr | None = None
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.EMPLOYEE
    # None -> role defaults
    permissions: list[Permission] | None = None


class EmployeeUpdate(BaseModel):
    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: UserRole | None = None
    permissions: list[Permission] | None = None
    is_active: bool | None = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str | None
    first_name: str | None
    last_name: str | None
    role: UserRole
    permissions: list[Permission] = Field(validation_alias="effective_permissions")
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime


class PermissionOption(BaseModel):
    value: Permission
    label: str
