"""
auth/use_cases.py -- Application use cases for the authentication flow.

Each use case takes its collaborators through the constructor (store,
hasher, JWT service) and exposes a single async execute(). They are
stateless between calls, so one instance can serve concurrent requests.

Error policy:
  - Every failure is a typed AppError from core/errors.py.
  - Store errors are NOT caught or reclassified -- they propagate and the
    HTTP layer renders them as 500. The one exception is DuplicateEmailError,
    which is the store-side half of the email uniqueness rule.
  - Nothing here retries. A retried registration could mask a double submit.

Login ordering (kept deliberately):
  1. unknown email            -> AuthError("Invalid credentials")
  2. status cannot log in     -> DomainError(details={account_status, reason})
  3. wrong password           -> AuthError("Invalid credentials")
  Steps 1 and 3 share one message so a caller cannot tell which half of the
  credential pair was wrong, and both run one bcrypt comparison (step 1
  against timing_dummy_hash) so response time does not tell them apart.
  Step 2 runs before the password check, which reveals that the account
  exists (and its status) to anyone who knows the email; distinct error
  classes were judged more useful than hiding that.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from auth.account_status import AccountStatusPolicy
from auth.models import AccountStatus, LoginUser, NewUser, PublicUser, TokenPayload, User, UserRole
from auth.passwords import MIN_PASSWORD_LENGTH, Password, PasswordHasher, timing_dummy_hash
from auth.store import DuplicateEmailError, UserRepository
from auth.tokens import JWTService
from core.errors import AuthError, DomainError, NotFoundError, ValidationError
from core.pagination import Page, PageRequest, create_page

logger = logging.getLogger("scaffold.auth")

# Deliberately loose: one "@", no whitespace, a dot in the domain part.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

INVALID_CREDENTIALS = "Invalid credentials"

MAX_PASSWORD_LENGTH = 128


# ---------------------------------------------------------------------------
# Inputs and outputs
# ---------------------------------------------------------------------------


class RegisterUserInput(BaseModel):
    """Registration payload. Pydantic collects every violation, not just the first.

    name and email are trimmed (email also lower-cased) before the length and
    pattern checks run. password is taken verbatim -- whitespace is part of it.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=2, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    role: Optional[UserRole] = None
    account_status: Optional[AccountStatus] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return _normalize_email(value) if isinstance(value, str) else value


@dataclass(frozen=True)
class LoginInput:
    email: str
    password: str


@dataclass(frozen=True)
class RegisterResult:
    user: PublicUser
    token: str


@dataclass(frozen=True)
class LoginResult:
    user: LoginUser
    token: str


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _issue_token(jwt_service: JWTService, user: User) -> str:
    return jwt_service.generate(TokenPayload(user_id=user.id, email=user.email, role=user.role))


# ---------------------------------------------------------------------------
# Use cases
# ---------------------------------------------------------------------------


class RegisterUserUseCase:
    """Create an account and return it with a fresh access token.

    Side effect: exactly one store write on success.
    """

    def __init__(self, store: UserRepository, hasher: PasswordHasher, jwt_service: JWTService) -> None:
        self.store = store
        self.hasher = hasher
        self.jwt_service = jwt_service

    async def execute(self, data: Mapping[str, Any] | RegisterUserInput) -> RegisterResult:
        if isinstance(data, RegisterUserInput):
            payload = data
        else:
            try:
                payload = RegisterUserInput.model_validate(dict(data))
            except PydanticValidationError as exc:
                raise ValidationError.from_pydantic(exc) from exc

        if await self.store.find_by_email(payload.email) is not None:
            raise DomainError("Email already in use", details={"email": payload.email})

        password = await Password.from_plain(payload.password, self.hasher)
        try:
            user = await self.store.create(
                NewUser(
                    name=payload.name,
                    email=payload.email,
                    password_hash=password.hash,
                    role=payload.role or UserRole.USER,
                    account_status=payload.account_status or AccountStatus.ACTIVE,
                )
            )
        except DuplicateEmailError as exc:
            # Lost a race with a concurrent registration for the same email.
            raise DomainError("Email already in use", details={"email": payload.email}) from exc
        logger.info("Registered user %s (role=%s)", user.id, user.role.value)
        return RegisterResult(user=PublicUser.from_user(user), token=_issue_token(self.jwt_service, user))


class LoginUseCase:
    """Verify credentials and account status, then issue an access token."""

    def __init__(self, store: UserRepository, hasher: PasswordHasher, jwt_service: JWTService) -> None:
        self.store = store
        self.hasher = hasher
        self.jwt_service = jwt_service

    async def execute(self, data: LoginInput | Mapping[str, Any]) -> LoginResult:
        if not isinstance(data, LoginInput):
            data = LoginInput(email=str(data.get("email", "")), password=str(data.get("password", "")))

        user = await self.store.find_by_email(_normalize_email(data.email))
        if user is None:
            # Same bcrypt cost as a wrong password, so timing does not reveal the email.
            await self.hasher.compare(data.password, timing_dummy_hash(self.hasher.rounds))
            logger.warning("Login failed: unknown email")
            raise AuthError(INVALID_CREDENTIALS)

        policy = AccountStatusPolicy.from_status(user.account_status)
        if not policy.can_authenticate():
            logger.warning("Login refused for user %s: account status %s", user.id, policy)
            raise DomainError(
                f"Account cannot authenticate. Status: {policy}",
                details={"account_status": policy.value.value, "reason": policy.reason},
            )

        if not await Password.from_hash(user.password_hash).verify(data.password, self.hasher):
            logger.warning("Login failed for user %s: wrong password", user.id)
            raise AuthError(INVALID_CREDENTIALS)

        return LoginResult(user=LoginUser.from_user(user), token=_issue_token(self.jwt_service, user))


class GetCurrentUserUseCase:
    """Load the profile behind an already-verified token.

    No account-status gate: a suspended user holding an unexpired token can
    still read their own profile. Login is where status is enforced.
    """

    def __init__(self, store: UserRepository) -> None:
        self.store = store

    async def execute(self, user_id: str) -> PublicUser:
        user = await self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return PublicUser.from_user(user)


class ListUsersUseCase:
    def __init__(self, store: UserRepository) -> None:
        self.store = store

    async def execute(self, page_request: PageRequest) -> Page[PublicUser]:
        total = await self.store.count()
        users = await self.store.list(offset=page_request.offset, limit=page_request.per_page)
        return create_page([PublicUser.from_user(u) for u in users], total, page_request)
