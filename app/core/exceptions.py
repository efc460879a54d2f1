"""
Base exception classes for application-wide error handling.

Every error raised by the service layer is typed, so API clients can branch
on ``error_code`` instead of matching message strings. The DRF exception
handler in ``core.exception_handler`` maps each class to an HTTP status.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input, rejected before any state change (400)
    ├── NotFoundError - Unknown resource id (404)
    ├── PermissionDeniedError - Actor may not perform the operation (403)
    └── ConflictError - Operation conflicts with current state (409)

Usage:
    from core.exceptions import ConflictError, ValidationError

    # Raise with message only
    raise ValidationError("opening balance must be >= 0")

    # Raise with error code for client handling
    raise ConflictError("register already open", error_code="REGISTER_ALREADY_OPEN")

    # Raise with additional details
    raise ValidationError(
        "Invalid method details",
        details={"check_number": ["This field is required."]},
    )

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, ids, amounts)

    Example:
        try:
            RegisterLifecycleService.close(session_id, 13000, actor=user)
        except NotFoundError as e:
            return Response(e.to_dict(), status=404)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "register already open",
                "error_code": "REGISTER_ALREADY_OPEN",
                "details": {"open_session_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when service-layer input validation fails.

    Use for:
    - Negative opening or closing balances
    - Unknown entry kinds or payment methods
    - Amount sign not matching the entry kind
    - Malformed method detail payloads

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for rules the services enforce regardless of caller.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        session = RegisterSession.objects.filter(id=session_id).first()
        if session is None:
            raise NotFoundError(
                f"Register session {session_id} not found",
                details={"session_id": str(session_id)},
            )
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the acting user may not perform an operation.

    Note:
        For authentication failures (missing/invalid token), DRF's
        AuthenticationFailed applies. This covers actor re-validation
        inside the services.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Opening a register while another one is open
    - Operating on a session in the wrong lifecycle state
    - Cancelling an entry twice

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"
