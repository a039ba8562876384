"""Unit tests for auth/passwords.py -- bcrypt hasher and Password value object.

Covers:
- hash() is salted: same plaintext twice gives two different, both-verifiable hashes
- hash() output is self-describing ($2b$<cost>$...)
- hash() rejects empty / whitespace-only input with EmptyInputError
- compare() returns False (never raises) for empty plaintext, empty or malformed hash
- Password.from_plain() enforces the 8-character minimum (7 rejected, 8 accepted)
- Password.from_hash() rejects blank hashes with InvalidHashError
- timing_dummy_hash() is a real, cached bcrypt hash at the requested cost
"""

import pytest

from auth.passwords import (
    BcryptPasswordHasher,
    EmptyInputError,
    InvalidHashError,
    Password,
    WeakPasswordError,
    timing_dummy_hash,
)


class RecordingHasher:
    """PasswordHasher double that records calls and never does real work."""

    rounds = 4

    def __init__(self) -> None:
        self.hashed: list[str] = []

    async def hash(self, plain: str) -> str:
        self.hashed.append(plain)
        return f"hashed::{plain}"

    async def compare(self, plain: str, hashed: str) -> bool:
        return hashed == f"hashed::{plain}"


# ---------------------------------------------------------------------------
# BcryptPasswordHasher
# ---------------------------------------------------------------------------


class TestBcryptPasswordHasher:
    @pytest.mark.asyncio
    async def test_same_plaintext_hashes_differently(self, hasher: BcryptPasswordHasher) -> None:
        first = await hasher.hash("securePassword123")
        second = await hasher.hash("securePassword123")
        assert first != second
        assert await hasher.compare("securePassword123", first) is True
        assert await hasher.compare("securePassword123", second) is True

    @pytest.mark.asyncio
    async def test_hash_embeds_algorithm_and_cost(self) -> None:
        hashed = await BcryptPasswordHasher(rounds=5).hash("securePassword123")
        assert hashed.startswith("$2b$05$")
        assert "securePassword123" not in hashed

    @pytest.mark.asyncio
    async def test_default_cost_factor_is_ten(self) -> None:
        assert BcryptPasswordHasher().rounds == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("plain", ["", "   ", "\t\n"])
    async def test_hash_rejects_blank_input(self, hasher: BcryptPasswordHasher, plain: str) -> None:
        with pytest.raises(EmptyInputError):
            await hasher.hash(plain)

    @pytest.mark.asyncio
    async def test_compare_wrong_password(self, hasher: BcryptPasswordHasher) -> None:
        hashed = await hasher.hash("securePassword123")
        assert await hasher.compare("securePassword124", hashed) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("plain", "hashed"),
        [
            ("", "$2b$04$abcdefghijklmnopqrstuu"),
            ("   ", "$2b$04$abcdefghijklmnopqrstuu"),
            ("securePassword123", ""),
            ("securePassword123", "   "),
            ("securePassword123", "not-a-bcrypt-hash"),
        ],
    )
    async def test_compare_never_raises(self, hasher: BcryptPasswordHasher, plain: str, hashed: str) -> None:
        assert await hasher.compare(plain, hashed) is False

    @pytest.mark.asyncio
    async def test_long_passwords_are_accepted(self, hasher: BcryptPasswordHasher) -> None:
        plain = "x" * 100
        hashed = await hasher.hash(plain)
        assert await hasher.compare(plain, hashed) is True


# ---------------------------------------------------------------------------
# Password value object
# ---------------------------------------------------------------------------


class TestPassword:
    @pytest.mark.asyncio
    async def test_from_plain_rejects_seven_characters(self) -> None:
        fake = RecordingHasher()
        with pytest.raises(WeakPasswordError):
            await Password.from_plain("1234567", fake)
        assert fake.hashed == []

    @pytest.mark.asyncio
    async def test_from_plain_accepts_exactly_eight_characters(self) -> None:
        password = await Password.from_plain("12345678", RecordingHasher())
        assert password.hash == "hashed::12345678"

    @pytest.mark.asyncio
    async def test_from_plain_with_bcrypt_verifies(self, hasher: BcryptPasswordHasher) -> None:
        password = await Password.from_plain("securePassword123", hasher)
        assert await password.verify("securePassword123", hasher) is True
        assert await password.verify("wrong-password", hasher) is False

    @pytest.mark.parametrize("hashed", ["", "   "])
    def test_from_hash_rejects_blank(self, hashed: str) -> None:
        with pytest.raises(InvalidHashError):
            Password.from_hash(hashed)

    def test_from_hash_wraps_value(self) -> None:
        assert Password.from_hash("$2b$10$something").hash == "$2b$10$something"

    def test_password_is_immutable(self) -> None:
        password = Password.from_hash("$2b$10$something")
        with pytest.raises(AttributeError):
            password.hash = "other"  # type: ignore[misc]

    def test_repr_hides_hash(self) -> None:
        assert "$2b$" not in repr(Password.from_hash("$2b$10$something"))

    @pytest.mark.asyncio
    async def test_verify_delegates_to_hasher(self) -> None:
        password = Password.from_hash("hashed::letmein123")
        assert await password.verify("letmein123", RecordingHasher()) is True
        assert await password.verify("nope", RecordingHasher()) is False


# ---------------------------------------------------------------------------
# timing_dummy_hash
# ---------------------------------------------------------------------------


class TestTimingDummyHash:
    @pytest.mark.asyncio
    async def test_is_a_real_hash_at_the_requested_cost(self, hasher: BcryptPasswordHasher) -> None:
        dummy = timing_dummy_hash(4)
        assert dummy.startswith("$2b$04$")
        assert await hasher.compare("correct-horse-battery", dummy) is False

    def test_built_once_per_cost(self) -> None:
        assert timing_dummy_hash(4) is timing_dummy_hash(4)
