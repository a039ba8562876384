"""
auth/tokens.py -- JWT issuance and validation.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, email and role plus the
       standard sub/iss/iat/exp claims. The signing secret must be at least
       32 characters; JWTService refuses to start with anything shorter.

  Fail closed: validate() never raises. Every outcome is a TokenValidation
       whose failure is one of three kinds -- EMPTY_TOKEN, EXPIRED, INVALID.
       jose's exception classes stay inside this module; callers branch on
       the failure kind only.

  Issuer pinning: the iss claim written at signing time is required at
       validation time, so a token minted by another service that happens to
       share the secret is still rejected.

  No revocation list: expiry is the only way a correctly signed token stops
       being accepted. Keep JWT_EXPIRES_IN short where logout must be immediate.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Union

from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import TokenPayload, UserRole
from core.config import MIN_SECRET_LENGTH

logger = logging.getLogger("scaffold.auth")

ALGORITHM = "HS256"
DEFAULT_EXPIRES_IN = "7d"
DEFAULT_ISSUER = "scaffold-api"

Duration = Union[str, int, timedelta]

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w|y)?\s*$", re.IGNORECASE)

_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 7 * 86400,
    "y": 365.25 * 86400,
}

_REQUIRED_CLAIMS = ("user_id", "email", "role")


class WeakSecretError(ValueError):
    """Raised when JWTService is given an empty or short signing secret."""


class TokenFailure(str, Enum):
    EMPTY_TOKEN = "empty_token"
    EXPIRED = "expired"
    INVALID = "invalid"


_FAILURE_MESSAGES: dict[TokenFailure, str] = {
    TokenFailure.EMPTY_TOKEN: "Token is required.",
    TokenFailure.EXPIRED: "Token has expired.",
    TokenFailure.INVALID: "Invalid token.",
}


@dataclass(frozen=True)
class TokenValidation:
    """Outcome of JWTService.validate(). Exactly one of payload / failure is set."""

    payload: TokenPayload | None = None
    failure: TokenFailure | None = None

    @property
    def valid(self) -> bool:
        return self.failure is None and self.payload is not None

    @property
    def message(self) -> str:
        return _FAILURE_MESSAGES[self.failure] if self.failure else ""

    @classmethod
    def ok(cls, payload: TokenPayload) -> TokenValidation:
        return cls(payload=payload)

    @classmethod
    def fail(cls, failure: TokenFailure) -> TokenValidation:
        return cls(failure=failure)


def parse_duration(value: Duration) -> timedelta:
    """Convert an expiry setting to a positive timedelta.

    Accepts a timedelta, an int of seconds, or a string: digits followed by an
    optional unit (ms, s, m, h, d, w, y). A bare digit string means seconds.
    Raises ValueError for anything else, including zero or negative values.
    """
    if isinstance(value, timedelta):
        delta = value
    elif isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    elif isinstance(value, int):
        delta = timedelta(seconds=value)
    elif isinstance(value, str):
        match = _DURATION_RE.match(value)
        if match is None:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        delta = timedelta(seconds=int(amount) * _UNIT_SECONDS[(unit or "s").lower()])
    else:
        raise ValueError(f"Invalid duration: {value!r}")
    if delta <= timedelta(0):
        raise ValueError(f"Duration must be positive: {value!r}")
    return delta


class JWTService:
    """Signs and verifies access tokens. Immutable after construction; safe to share."""

    def __init__(
        self,
        secret: str,
        default_expires_in: Duration = DEFAULT_EXPIRES_IN,
        issuer: str = DEFAULT_ISSUER,
    ) -> None:
        if not secret or not secret.strip():
            raise WeakSecretError("JWT secret must not be empty.")
        if len(secret) < MIN_SECRET_LENGTH:
            raise WeakSecretError(f"JWT secret must be at least {MIN_SECRET_LENGTH} characters long.")
        self._secret = secret
        self._default_ttl = parse_duration(default_expires_in)
        self.issuer = issuer

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    def generate(self, payload: TokenPayload, expires_in: Duration | None = None) -> str:
        """Encode a signed JWT for the given identity.

        Args:
            payload:    user_id / email / role to embed.
            expires_in: Override for the default expiry ("30m", "1h", 3600,
                        timedelta(...)). None uses the service default.
        """
        ttl = self._default_ttl if expires_in is None else parse_duration(expires_in)
        now = datetime.now(timezone.utc)
        claims = {
            "sub": payload.user_id,
            "user_id": payload.user_id,
            "email": payload.email,
            "role": UserRole(payload.role).value,
            "iss": self.issuer,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def validate(self, token: str | None) -> TokenValidation:
        """Verify signature, expiry and issuer, then extract the identity claims."""
        if not token or not token.strip():
            return TokenValidation.fail(TokenFailure.EMPTY_TOKEN)
        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM], issuer=self.issuer)
        except ExpiredSignatureError:
            return TokenValidation.fail(TokenFailure.EXPIRED)
        except JWTError as exc:
            logger.debug("JWT rejected: %s", exc)
            return TokenValidation.fail(TokenFailure.INVALID)

        if any(not claims.get(name) for name in _REQUIRED_CLAIMS):
            return TokenValidation.fail(TokenFailure.INVALID)
        try:
            role = UserRole(claims["role"])
        except ValueError:
            return TokenValidation.fail(TokenFailure.INVALID)
        return TokenValidation.ok(
            TokenPayload(user_id=str(claims["user_id"]), email=str(claims["email"]), role=role)
        )

    def decode(self, token: str) -> dict[str, Any] | None:
        """Return the claims WITHOUT verifying the signature, or None if unparseable.

        Diagnostics only. Anything returned here may have been forged; never
        base an authorization decision on it.
        """
        try:
            return jwt.get_unverified_claims(token)
        except JWTError:
            return None
