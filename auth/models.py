"""
auth/models.py -- Domain dataclasses and enums for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own the
domain shape; stores and use cases do the work. The HTTP contract lives in
api/models.py and is mapped from these types by the route handlers.

Layer rule: auth/ may import from core/ but never from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"


@dataclass
class User:
    """A stored identity record.

    password_hash is the bcrypt output, never the plaintext. email is unique
    across the store; the store enforces it on create() and update().
    Timestamps are timezone-aware UTC; the store refreshes updated_at on
    every update().
    """

    id: str
    name: str
    email: str
    password_hash: str
    role: UserRole
    account_status: AccountStatus
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NewUser:
    """Creation payload handed to UserRepository.create(). The store assigns id and timestamps."""

    name: str
    email: str
    password_hash: str
    role: UserRole = UserRole.USER
    account_status: AccountStatus = AccountStatus.ACTIVE


@dataclass(frozen=True)
class PublicUser:
    """User without password_hash -- the only shape that leaves the auth layer."""

    id: str
    name: str
    email: str
    role: UserRole
    account_status: AccountStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> PublicUser:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            account_status=user.account_status,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@dataclass(frozen=True)
class LoginUser:
    """Subset of PublicUser returned by a successful login (no timestamps)."""

    id: str
    name: str
    email: str
    role: UserRole
    account_status: AccountStatus

    @classmethod
    def from_user(cls, user: User) -> LoginUser:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            account_status=user.account_status,
        )


@dataclass(frozen=True)
class TokenPayload:
    """Identity claims carried by an access token.

    iss/iat/exp are added by JWTService.generate() and stripped again by
    validate(); callers only ever see these three fields.
    """

    user_id: str
    email: str
    role: UserRole
