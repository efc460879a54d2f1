"""
DRF exception handler for application errors.

Renders BaseApplicationError subclasses raised by services as JSON bodies
built from ``to_dict()``, with the HTTP status mapped from the error class.
Anything else falls through to DRF's default handler.

Configured in settings:
    REST_FRAMEWORK = {
        "EXCEPTION_HANDLER": "core.exception_handler.application_exception_handler",
    }
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses resolve through isinstance.
STATUS_BY_ERROR: tuple[tuple[type[BaseApplicationError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def status_for_error(exc: BaseApplicationError) -> int:
    """Return the HTTP status code for an application error."""
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def application_exception_handler(exc, context):
    """
    Convert application errors into API responses.

    Args:
        exc: The raised exception
        context: DRF handler context (view, request, args, kwargs)

    Returns:
        Response for handled exceptions, None to let Django re-raise
    """
    if isinstance(exc, BaseApplicationError):
        status_code = status_for_error(exc)
        view = context.get("view")
        logger.warning(
            "Request rejected: %s",
            exc,
            extra={
                "error_code": exc.error_code,
                "status_code": status_code,
                "view": view.__class__.__name__ if view else None,
            },
        )
        return Response(exc.to_dict(), status=status_code)

    return exception_handler(exc, context)
