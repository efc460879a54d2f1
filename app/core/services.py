"""
Base service layer patterns for business logic encapsulation.

Services hold the business rules; views handle HTTP concerns and models
handle persistence. Services signal failure by raising the typed errors in
``core.exceptions`` and never return partial results.

Usage:
    from core.services import BaseService

    class RegisterLifecycleService(BaseService):
        @classmethod
        def open(cls, opening_balance_cents: int, actor) -> RegisterSession:
            with cls.atomic():
                session = RegisterSession.objects.create(...)

            cls.get_logger().info("Register opened", extra={"session_id": str(session.id)})
            return session

Related:
    - core.exceptions: Error types raised by services
    - core.exception_handler: Maps those errors to HTTP responses
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator


class BaseService:
    """
    Base class for service layer classes.

    Provides:
    - A logger named after the concrete service
    - Explicit transaction boundaries

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Keep methods focused on a single operation
        - Raise core.exceptions subclasses for expected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get a logger named after the service class.

        Returns:
            Logger named "<module>.<ClassName>"
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Context manager for database transactions.

        Thin wrapper around Django's transaction.atomic() that makes
        transaction boundaries explicit in service code. Nested use
        creates a savepoint.

        Example:
            with cls.atomic():
                session = RegisterSession.objects.select_for_update().get(id=session_id)
                session.close(...)
                session.save()
        """
        with transaction.atomic():
            yield
