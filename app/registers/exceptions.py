"""
Register-specific exceptions.

Every error carries a distinct error_code so the order/payment flow and the
UI can branch on it. The base classes come from core.exceptions and decide
the HTTP status.

Exception Hierarchy:
    ConflictError (core)
    ├── RegisterAlreadyOpenError - open() while another session is open
    ├── InvalidStateError - Operation on a session in the wrong state
    ├── NoOpenSessionError - Payment recorded with no open session
    └── AlreadyCancelledError - Entry already offset by a cancellation
    NotFoundError (core)
    ├── SessionNotFoundError - Unknown session id
    └── EntryNotFoundError - Unknown entry id, or entry outside an open session

Reconciliation shortages and surpluses are data, never exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ConflictError, NotFoundError

if TYPE_CHECKING:
    import uuid
    from typing import Any


class RegisterAlreadyOpenError(ConflictError):
    """
    Raised when opening a register while another session is open.

    Surfaced to the operator as "close the current register first". Never
    resolved automatically.
    """

    default_error_code: str = "REGISTER_ALREADY_OPEN"

    def __init__(
        self,
        open_session_id: uuid.UUID | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        full_details: dict[str, Any] = {}
        if open_session_id is not None:
            full_details["open_session_id"] = str(open_session_id)
        if details:
            full_details.update(details)

        super().__init__(
            message="register already open",
            error_code=error_code,
            details=full_details,
        )


class InvalidStateError(ConflictError):
    """
    Raised when an operation targets a session in the wrong lifecycle state.

    Use for:
    - Closing a session that is already closed
    - Appending to a specific session that has been closed
    - Mutating or deleting persisted ledger rows
    """

    default_error_code: str = "INVALID_STATE"


class NoOpenSessionError(ConflictError):
    """
    Raised when a payment is recorded while no register is open.

    This is a hard stop for the calling order/payment flow: the sale must
    not be accepted without a till to record it against.
    """

    default_error_code: str = "NO_OPEN_SESSION"

    def __init__(self, message: str = "no register session is open", **kwargs):
        super().__init__(message, **kwargs)


class AlreadyCancelledError(ConflictError):
    """Raised when cancelling an entry that already has a cancellation."""

    default_error_code: str = "ALREADY_CANCELLED"


class SessionNotFoundError(NotFoundError):
    """Raised when a register session id is unknown."""

    default_error_code: str = "SESSION_NOT_FOUND"


class EntryNotFoundError(NotFoundError):
    """
    Raised when a ledger entry cannot be used for the requested operation.

    Covers both unknown ids (ENTRY_NOT_FOUND) and entries whose session is no
    longer open (ENTRY_NOT_IN_OPEN_SESSION).
    """

    default_error_code: str = "ENTRY_NOT_FOUND"
