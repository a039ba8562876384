"""
tests/conftest.py -- Shared test fixtures for scaffold-api.

This module provides:
  - hasher / jwt_service / store: unit-level collaborators (bcrypt cost 4)
  - seed_user: callable fixture that stores a user with a real bcrypt hash
  - _patch_lifespan(): wires test collaborators into app.state, bypassing real startup
  - api_client: (client, store, jwt_service) -- TestClient on an isolated store

Environment must be set before any core/auth/api import: get_settings() is
cached on first call, and DEBUG=true lets it auto-generate SECRET_KEY instead
of raising. RATE_LIMIT_ENABLED=false keeps repeated logins from tripping the
login limiter.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any core/auth/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import AccountStatus, NewUser, User, UserRole
from auth.passwords import BcryptPasswordHasher
from auth.store import InMemoryUserStore
from auth.tokens import JWTService

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters"


def _seed_user(
    store: InMemoryUserStore,
    hasher: BcryptPasswordHasher,
    *,
    name: str = "Jane Doe",
    email: str = "jane@example.com",
    password: str = "correct-horse-battery",
    role: UserRole = UserRole.USER,
    account_status: AccountStatus = AccountStatus.ACTIVE,
) -> User:
    """Store a user directly, bypassing RegisterUserUseCase (e.g. to seed a SUSPENDED account)."""

    async def _create() -> User:
        password_hash = await hasher.hash(password)
        return await store.create(
            NewUser(
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                account_status=account_status,
            )
        )

    return asyncio.run(_create())


# ---------------------------------------------------------------------------
# Unit-level collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> BcryptPasswordHasher:
    # Cost 4 is bcrypt's minimum -- fast enough for tests, same code path.
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def jwt_service() -> JWTService:
    return JWTService(TEST_SECRET)


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def seed_user(store: InMemoryUserStore, hasher: BcryptPasswordHasher):
    """Return a callable that stores a user in this test's store and returns it.

    Usage:
        admin = seed_user(email="admin@example.com", role=UserRole.ADMIN)
    """

    def _seed(**kwargs) -> User:
        return _seed_user(store, hasher, **kwargs)

    return _seed


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: InMemoryUserStore, hasher: BcryptPasswordHasher, jwt_service: JWTService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created collaborators into app.state so TestClient routes see
    the test store and a JWTService whose secret the test knows.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.password_hasher = hasher
        app.state.jwt_service = jwt_service
        yield

    return test_lifespan


@pytest.fixture
def api_client(
    store: InMemoryUserStore,
    hasher: BcryptPasswordHasher,
    jwt_service: JWTService,
) -> Generator[tuple[TestClient, InMemoryUserStore, JWTService], None, None]:
    """Yield (client, store, jwt_service) for API integration tests.

    Function-scoped: every test starts with an empty store, so tests that
    register the same email never collide.
    """
    original = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(store, hasher, jwt_service)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield client, store, jwt_service
    finally:
        app.router.lifespan_context = original
