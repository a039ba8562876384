"""
auth/store.py -- UserRepository port and the in-memory store behind it.

Pattern: Repository. Use cases depend on the UserRepository Protocol only;
route and use-case code never touches storage directly. InMemoryUserStore
is the implementation wired in by default and in tests. A database-backed
store only needs to satisfy the same Protocol.

Contract every implementation must honour:
  - All methods are coroutines so an I/O-bound store can await its driver.
  - Read-your-writes for a single user record.
  - Storage errors propagate unchanged; callers do not retry.
  - Returned User objects are copies -- mutating one never changes the store.
  - Email is unique: create() raises DuplicateEmailError when the address is
    taken, checked atomically with the insert.

Concurrency: InMemoryUserStore guards its dict with a threading.Lock. No
method awaits while holding it, so it is safe from the event loop and from
worker threads alike.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import dataclasses
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from auth.models import NewUser, User

# Fields update() may change. id and created_at are immutable; updated_at is
# always stamped by the store itself.
_MUTABLE_FIELDS = frozenset({"name", "email", "password_hash", "role", "account_status"})


class DuplicateEmailError(ValueError):
    """Raised by create() when another user already has the email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email already in use: {email}")
        self.email = email


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserRepository(Protocol):
    async def find_by_id(self, user_id: str) -> User | None: ...

    async def find_by_email(self, email: str) -> User | None: ...

    async def create(self, data: NewUser) -> User: ...

    async def update(self, user_id: str, **fields: Any) -> User | None: ...

    async def delete(self, user_id: str) -> bool: ...

    async def list(self, offset: int = 0, limit: int = 100) -> list[User]: ...

    async def count(self) -> int: ...


class InMemoryUserStore:
    """Dict-backed UserRepository.

    Usage:
        store = InMemoryUserStore()
        user = await store.create(NewUser(name="Ada", email="ada@example.com", password_hash=h))
        found = await store.find_by_email("ada@example.com")
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()

    async def find_by_id(self, user_id: str) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return dataclasses.replace(user) if user is not None else None

    async def find_by_email(self, email: str) -> User | None:
        """Exact match. Callers normalize (strip + lower) before storing and looking up."""
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return dataclasses.replace(user)
        return None

    async def create(self, data: NewUser) -> User:
        now = _now()
        user = User(
            id=str(uuid.uuid4()),
            name=data.name,
            email=data.email,
            password_hash=data.password_hash,
            role=data.role,
            account_status=data.account_status,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            if any(existing.email == user.email for existing in self._users.values()):
                raise DuplicateEmailError(user.email)
            self._users[user.id] = user
        return dataclasses.replace(user)

    async def update(self, user_id: str, **fields: Any) -> User | None:
        """Apply a partial update and refresh updated_at.

        Returns the updated User, or None if user_id was not found.
        Raises ValueError for fields outside the mutable set, and
        DuplicateEmailError when email would collide with another user.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)!r}")
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            email = fields.get("email")
            if email is not None and any(
                other.email == email and other.id != user_id for other in self._users.values()
            ):
                raise DuplicateEmailError(email)
            updated = dataclasses.replace(current, **fields, updated_at=_now())
            self._users[user_id] = updated
            return dataclasses.replace(updated)

    async def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    async def list(self, offset: int = 0, limit: int = 100) -> list[User]:
        """Return users ordered by creation time (oldest first)."""
        with self._lock:
            ordered = sorted(self._users.values(), key=lambda u: u.created_at)
            return [dataclasses.replace(u) for u in ordered[offset : offset + limit]]

    async def count(self) -> int:
        with self._lock:
            return len(self._users)
