"""
auth/account_status.py -- Login gate derived from a user's account status.

Only ACTIVE accounts may authenticate. INACTIVE, SUSPENDED and
PENDING_VERIFICATION are a business-rule rejection (DomainError at the use
case), not a credential failure (AuthError), so a client can tell "wrong
password" apart from "right password, unusable account".
"""

from __future__ import annotations

from auth.models import AccountStatus


class InvalidStatusError(ValueError):
    """Raised by AccountStatusPolicy.from_string() for an unrecognized literal."""


_REASONS: dict[AccountStatus, str] = {
    AccountStatus.INACTIVE: "Account is inactive. Contact support to reactivate it.",
    AccountStatus.SUSPENDED: "Account is suspended. Contact support.",
    AccountStatus.PENDING_VERIFICATION: "Account is pending verification. Check your email.",
}


class AccountStatusPolicy:
    __slots__ = ("_status",)

    def __init__(self, status: AccountStatus) -> None:
        self._status = AccountStatus(status)

    @classmethod
    def from_status(cls, status: AccountStatus) -> AccountStatusPolicy:
        return cls(status)

    @classmethod
    def from_string(cls, value: str) -> AccountStatusPolicy:
        try:
            return cls(AccountStatus(value))
        except ValueError:
            raise InvalidStatusError(f"Invalid account status: {value!r}") from None

    @property
    def value(self) -> AccountStatus:
        return self._status

    def can_authenticate(self) -> bool:
        return self._status is AccountStatus.ACTIVE

    def is_active(self) -> bool:
        return self._status is AccountStatus.ACTIVE

    def is_inactive(self) -> bool:
        return self._status is AccountStatus.INACTIVE

    def is_suspended(self) -> bool:
        return self._status is AccountStatus.SUSPENDED

    def is_pending_verification(self) -> bool:
        return self._status is AccountStatus.PENDING_VERIFICATION

    @property
    def reason(self) -> str:
        """Human-readable explanation of why login is refused ("" for ACTIVE)."""
        if self.can_authenticate():
            return ""
        return _REASONS.get(self._status, "Account cannot authenticate.")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccountStatusPolicy):
            return NotImplemented
        return self._status is other._status

    def __hash__(self) -> int:
        return hash(self._status)

    def __str__(self) -> str:
        return self._status.value

    def __repr__(self) -> str:
        return f"AccountStatusPolicy({self._status.value})"
