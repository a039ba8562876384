"""
core/errors.py -- Typed application errors with transport-agnostic metadata.

Every failure raised by the auth layer is one of five kinds. The kind is a
closed enum that carries the machine-readable code and the HTTP status the
transport layer should use, so api/main.py renders errors with one handler
that reads exc.kind instead of an isinstance chain.

  kind              code               status
  VALIDATION        validation_error   400  malformed input, all violations listed
  AUTH              unauthorized       401  credentials or token not verifiable
  DOMAIN            domain_error       400  business rule violated
  FORBIDDEN         forbidden          403  authenticated but not allowed
  NOT_FOUND         not_found          404  referenced entity missing

Errors never generate a trace id themselves. The HTTP layer attaches the
request's id via with_trace_id() before rendering.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from pydantic import ValidationError as PydanticValidationError


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    AUTH = "unauthorized"
    DOMAIN = "domain_error"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 401,
    ErrorKind.DOMAIN: 400,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
}


class AppError(Exception):
    """Base for every error the application raises on purpose.

    Subclasses pin `kind` and a default message. Instances carry optional
    structured `details` (JSON-serializable) and an optional `trace_id`.
    """

    kind: ClassVar[ErrorKind]
    default_message: ClassVar[str] = "Application error."

    def __init__(
        self,
        message: str | None = None,
        *,
        details: Any = None,
        trace_id: str | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        self.trace_id = trace_id
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def with_trace_id(self, trace_id: str | None) -> AppError:
        """Attach a trace id unless one was supplied at construction. Returns self."""
        if not self.trace_id and trace_id:
            self.trace_id = trace_id
        return self

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        if self.trace_id:
            body["trace_id"] = self.trace_id
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, details={self.details!r})"


class ValidationError(AppError):
    """Input failed shape validation. details is a list of {field, message, code}."""

    kind = ErrorKind.VALIDATION
    default_message = "Request validation failed."

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, trace_id: str | None = None) -> ValidationError:
        """Build from a pydantic error, keeping every violation rather than the first."""
        return cls.from_error_list(exc.errors(), trace_id=trace_id)

    @classmethod
    def from_error_list(cls, errors: list[dict[str, Any]], trace_id: str | None = None) -> ValidationError:
        """Build from pydantic-style error dicts (loc, msg, type).

        FastAPI's RequestValidationError.errors() uses the same shape, with a
        leading "body"/"query"/"path" segment in loc that is dropped here.
        """
        details = []
        for err in errors:
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            details.append(
                {
                    "field": ".".join(loc),
                    "message": err.get("msg", "Invalid value."),
                    "code": err.get("type", "invalid"),
                }
            )
        if len(details) == 1:
            message = details[0]["message"]
        else:
            message = f"Validation failed on {len(details)} field(s)."
        return cls(message, details=details, trace_id=trace_id)


class AuthError(AppError):
    kind = ErrorKind.AUTH
    default_message = "Invalid or expired authentication token."


class DomainError(AppError):
    kind = ErrorKind.DOMAIN
    default_message = "Business rule violated."


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "You do not have permission to access this resource."


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found."
