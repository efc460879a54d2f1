"""Tests for the DRF exception handler mapping application errors to responses."""

import pytest
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from core.exception_handler import application_exception_handler, status_for_error
from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from registers.exceptions import NoOpenSessionError, SessionNotFoundError


class TestStatusForError:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (ValidationError("x"), status.HTTP_400_BAD_REQUEST),
            (PermissionDeniedError("x"), status.HTTP_403_FORBIDDEN),
            (NotFoundError("x"), status.HTTP_404_NOT_FOUND),
            (ConflictError("x"), status.HTTP_409_CONFLICT),
            (SessionNotFoundError("x"), status.HTTP_404_NOT_FOUND),
            (NoOpenSessionError(), status.HTTP_409_CONFLICT),
            (BaseApplicationError("x"), status.HTTP_400_BAD_REQUEST),
        ],
    )
    def test_mapping(self, error, expected):
        assert status_for_error(error) == expected


class TestApplicationExceptionHandler:
    def test_renders_application_error(self):
        error = NoOpenSessionError(details={"reference_id": "order-1"})

        response = application_exception_handler(error, {"view": None})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {
            "error": "no register session is open",
            "error_code": "NO_OPEN_SESSION",
            "details": {"reference_id": "order-1"},
        }

    def test_falls_through_to_drf(self):
        response = application_exception_handler(NotAuthenticated(), {"view": None})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unknown_exceptions_are_not_handled(self):
        assert application_exception_handler(RuntimeError("boom"), {"view": None}) is None
