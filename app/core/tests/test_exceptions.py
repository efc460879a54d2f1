"""Tests for application exception classes."""

import pytest

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from registers.exceptions import (
    AlreadyCancelledError,
    EntryNotFoundError,
    InvalidStateError,
    NoOpenSessionError,
    RegisterAlreadyOpenError,
    SessionNotFoundError,
)


class TestBaseApplicationError:
    def test_defaults(self):
        error = BaseApplicationError("something failed")

        assert error.error_code == "APPLICATION_ERROR"
        assert error.details == {}
        assert str(error) == "[APPLICATION_ERROR] something failed"

    def test_to_dict_omits_empty_details(self):
        assert ValidationError("bad").to_dict() == {
            "error": "bad",
            "error_code": "VALIDATION_ERROR",
        }

    def test_to_dict_with_details(self):
        error = ConflictError("busy", error_code="BUSY", details={"id": "1"})

        assert error.to_dict() == {
            "error": "busy",
            "error_code": "BUSY",
            "details": {"id": "1"},
        }

    @pytest.mark.parametrize(
        "error_class,code",
        [
            (ValidationError, "VALIDATION_ERROR"),
            (NotFoundError, "NOT_FOUND"),
            (PermissionDeniedError, "PERMISSION_DENIED"),
            (ConflictError, "CONFLICT"),
        ],
    )
    def test_default_codes(self, error_class, code):
        assert error_class("x").error_code == code


class TestRegisterErrors:
    """Register errors carry distinct codes under the right base class."""

    def test_register_already_open(self):
        error = RegisterAlreadyOpenError(open_session_id="abc")

        assert isinstance(error, ConflictError)
        assert error.error_code == "REGISTER_ALREADY_OPEN"
        assert error.details == {"open_session_id": "abc"}

    def test_no_open_session_default_message(self):
        error = NoOpenSessionError()

        assert isinstance(error, ConflictError)
        assert error.message == "no register session is open"

    @pytest.mark.parametrize(
        "error_class,base,code",
        [
            (InvalidStateError, ConflictError, "INVALID_STATE"),
            (AlreadyCancelledError, ConflictError, "ALREADY_CANCELLED"),
            (SessionNotFoundError, NotFoundError, "SESSION_NOT_FOUND"),
            (EntryNotFoundError, NotFoundError, "ENTRY_NOT_FOUND"),
        ],
    )
    def test_codes(self, error_class, base, code):
        error = error_class("x")

        assert isinstance(error, base)
        assert error.error_code == code
