"""
API request and response models for scaffold-api REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request bodies are typed loosely on purpose: RegisterUserUseCase owns the
field rules (name length, email format, password length) and reports every
violation at once. Duplicating those constraints here would make FastAPI
reject the request first with a different error shape.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import AccountStatus, LoginUser, PublicUser, UserRole
from core.pagination import Page

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    name: str = Field(description="Display name, at least 2 characters.")
    email: str = Field(description="Unique email address.")
    password: str = Field(description="Plaintext password, at least 8 characters.")
    role: Optional[UserRole] = Field(default=None, description="Defaults to USER.")
    account_status: Optional[AccountStatus] = Field(default=None, description="Defaults to ACTIVE.")


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public profile of a user, timestamps included. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: UserRole
    account_status: AccountStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            account_status=user.account_status,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LoginUserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: UserRole
    account_status: AccountStatus

    @classmethod
    def from_login_user(cls, user: LoginUser) -> "LoginUserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            account_status=user.account_status,
        )


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserResponse
    token: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: LoginUserResponse
    token: str


class UserPageResponse(BaseModel):
    """Response for GET /api/v1/users."""

    model_config = ConfigDict(frozen=True)

    items: list[UserResponse]
    total: int
    page: int
    per_page: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page[PublicUser]) -> "UserPageResponse":
        return cls(
            items=[UserResponse.from_public(u) for u in page.items],
            total=page.total,
            page=page.page,
            per_page=page.per_page,
            total_pages=page.total_pages,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    details: Optional[Any] = None
    trace_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    uptime: float
    timestamp: datetime


class DeepHealthResponse(HealthResponse):
    """Response for GET /api/v1/health/deep. checks maps dependency name -> "ok" | "error"."""

    checks: dict[str, str]
