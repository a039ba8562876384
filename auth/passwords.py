"""
auth/passwords.py -- Password hashing port, bcrypt adapter and Password value object.

Security design decisions:
  bcrypt (direct usage, no passlib wrapper): the cost factor makes brute-force
      expensive for low-entropy secrets. Each hash embeds algorithm, cost and
      a random salt ($2b$10$<salt><digest>), so hashing the same plaintext
      twice gives different strings and verification needs nothing else.

  Off-loop hashing: bcrypt is CPU-bound (~50-100ms at cost 10). hash() and
      compare() run it in a worker thread via asyncio.to_thread so one login
      never stalls every other request on the event loop. bcrypt releases
      the GIL while hashing, so concurrent logins actually run in parallel.

  72-byte window: bcrypt only reads the first 72 bytes of input. bcrypt 4.x
      truncates silently, newer releases raise. Both hash() and compare()
      truncate explicitly so behaviour does not depend on the installed
      release.

  compare() never raises: an empty or malformed stored hash returns False,
      exactly like a wrong password. A distinct error would tell an attacker
      something about the stored record.

  Timing equalization: timing_dummy_hash() is a real bcrypt hash of a
      throwaway value at a given cost. LoginUseCase compares against it when
      the email is unknown, so an unknown email costs one bcrypt check just
      like a wrong password does.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import bcrypt

logger = logging.getLogger("scaffold.auth")

MIN_PASSWORD_LENGTH = 8
DEFAULT_BCRYPT_ROUNDS = 10
_BCRYPT_MAX_BYTES = 72


class EmptyInputError(ValueError):
    """Raised when asked to hash an empty or whitespace-only password."""


class WeakPasswordError(ValueError):
    """Raised when a plaintext password is shorter than MIN_PASSWORD_LENGTH."""


class InvalidHashError(ValueError):
    """Raised when wrapping an empty stored hash."""


class PasswordHasher(Protocol):
    rounds: int

    async def hash(self, plain: str) -> str: ...

    async def compare(self, plain: str, hashed: str) -> bool: ...


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class BcryptPasswordHasher:
    """PasswordHasher backed by bcrypt. Stateless apart from the cost factor; safe to share."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.rounds = rounds

    async def hash(self, plain: str) -> str:
        if not plain or not plain.strip():
            raise EmptyInputError("Password must not be empty.")
        return await asyncio.to_thread(self._hash_sync, plain)

    async def compare(self, plain: str, hashed: str) -> bool:
        if not plain or not plain.strip():
            return False
        if not hashed or not hashed.strip():
            return False
        return await asyncio.to_thread(self._compare_sync, plain, hashed)

    def _hash_sync(self, plain: str) -> str:
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    @staticmethod
    def _compare_sync(plain: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except Exception:
            # Malformed hash ("Invalid salt") -- indistinguishable from a mismatch.
            logger.debug("bcrypt rejected stored hash as malformed")
            return False


@lru_cache(maxsize=None)
def timing_dummy_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """bcrypt hash of a throwaway value at the given cost, built once per cost."""
    return bcrypt.hashpw(b"scaffold-timing-dummy", bcrypt.gensalt(rounds=rounds)).decode("utf-8")


@dataclass(frozen=True)
class Password:
    """Immutable wrapper around a password hash.

    Build with from_plain() during registration (validates, then hashes) or
    from_hash() when loading a stored user. The plaintext is never kept.
    """

    hash: str

    @classmethod
    def from_hash(cls, hashed: str) -> Password:
        if not hashed or not hashed.strip():
            raise InvalidHashError("Password hash must not be empty.")
        return cls(hashed)

    @classmethod
    async def from_plain(cls, plain: str, hasher: PasswordHasher) -> Password:
        if len(plain) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters.")
        return cls(await hasher.hash(plain))

    async def verify(self, plain: str, hasher: PasswordHasher) -> bool:
        return await hasher.compare(plain, self.hash)

    def __repr__(self) -> str:
        return "Password(hash=<redacted>)"
