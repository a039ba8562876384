"""Unit tests for core/errors.py and core/trace.py.

Covers:
- each AppError subclass maps to its code and HTTP status through ErrorKind
- to_dict() omits empty details / trace_id
- with_trace_id() never overwrites an id supplied at construction
- ValidationError.from_pydantic keeps every violation; from_error_list strips body/query/path
- trace id helpers: header reuse, generation, TraceIdFilter
"""

import logging

import pytest
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from core.errors import (
    AppError,
    AuthError,
    DomainError,
    ErrorKind,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from core.trace import TraceIdFilter, generate_trace_id, get_or_generate_trace_id, trace_id_var


class TestErrorKinds:
    @pytest.mark.parametrize(
        ("cls", "code", "status"),
        [
            (ValidationError, "validation_error", 400),
            (AuthError, "unauthorized", 401),
            (DomainError, "domain_error", 400),
            (ForbiddenError, "forbidden", 403),
            (NotFoundError, "not_found", 404),
        ],
    )
    def test_code_and_status(self, cls: type[AppError], code: str, status: int) -> None:
        err = cls("boom")
        assert isinstance(err, AppError)
        assert err.code == code
        assert err.status_code == status
        assert err.kind is ErrorKind(code)

    def test_default_message(self) -> None:
        assert AuthError().message == "Invalid or expired authentication token."
        assert str(NotFoundError()) == "Resource not found."

    def test_to_dict_minimal(self) -> None:
        assert DomainError("Email already in use").to_dict() == {
            "code": "domain_error",
            "message": "Email already in use",
        }

    def test_to_dict_full(self) -> None:
        err = NotFoundError("User not found", details={"user_id": "42"}, trace_id="t-1")
        assert err.to_dict() == {
            "code": "not_found",
            "message": "User not found",
            "details": {"user_id": "42"},
            "trace_id": "t-1",
        }

    def test_with_trace_id_keeps_original(self) -> None:
        err = AuthError(trace_id="original")
        assert err.with_trace_id("later") is err
        assert err.trace_id == "original"
        assert AuthError().with_trace_id("later").trace_id == "later"


class _Form(BaseModel):
    name: str = Field(min_length=2)
    age: int


class TestValidationErrorBuilders:
    def test_from_pydantic_collects_all_fields(self) -> None:
        with pytest.raises(PydanticValidationError) as exc_info:
            _Form.model_validate({"name": "x", "age": "old"})
        err = ValidationError.from_pydantic(exc_info.value, trace_id="t-2")
        assert [d["field"] for d in err.details] == ["name", "age"]
        assert err.message == "Validation failed on 2 field(s)."
        assert err.trace_id == "t-2"

    def test_single_error_uses_its_message(self) -> None:
        err = ValidationError.from_error_list([{"loc": ("body", "email"), "msg": "Field required", "type": "missing"}])
        assert err.message == "Field required"
        assert err.details == [{"field": "email", "message": "Field required", "code": "missing"}]

    def test_nested_location_is_dotted(self) -> None:
        err = ValidationError.from_error_list([{"loc": ("query", "filter", 0), "msg": "bad", "type": "x"}])
        assert err.details[0]["field"] == "filter.0"


class TestTraceHelpers:
    def test_header_value_reused(self) -> None:
        assert get_or_generate_trace_id("  abc-123 ") == "abc-123"

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing_header_generates(self, header) -> None:
        value = get_or_generate_trace_id(header)
        assert value
        assert value != get_or_generate_trace_id(header)

    def test_generated_ids_are_unique(self) -> None:
        assert generate_trace_id() != generate_trace_id()

    def test_filter_stamps_records(self) -> None:
        record = logging.LogRecord("scaffold.test", logging.INFO, __file__, 1, "msg", None, None)
        assert TraceIdFilter().filter(record) is True
        assert record.trace_id == "-"

        token = trace_id_var.set("req-9")
        try:
            fresh = logging.LogRecord("scaffold.test", logging.INFO, __file__, 1, "msg", None, None)
            TraceIdFilter().filter(fresh)
        finally:
            trace_id_var.reset(token)
        assert fresh.trace_id == "req-9"
