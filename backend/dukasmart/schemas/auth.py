"""Auth request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from dukasmart.models.role import Permission, UserRole


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)


# ── Register ───────────────────────────────────────
class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9_.-]+$")
    password: str = Field(min_length=8)
    email: EmailStr | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


# ── Current User ───────────────────────────────────
class CurrentUser(BaseModel):
    id: UUID
    username: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole
    permissions: list[Permission]
    is_active: bool

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.username

    def has_permission(self, permission: Permission) -> bool:
        return self.is_admin or permission in self.permissions

    @classmethod
    def from_user(cls, user) -> "CurrentUser":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            permissions=user.effective_permissions,
            is_active=user.is_active,
        )


class MessageResponse(BaseModel):
    message: str
