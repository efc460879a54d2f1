"""
Register lifecycle controller.

Orchestrates open/close/query operations on register sessions and enforces
the single-open-session invariant.

Concurrency:
    open(): the "is a session open?" pre-check gives a friendly error in the
        common case; the partial unique constraint on status=open is the real
        guard. Two racing opens both pass the pre-check, one INSERT wins and
        the other's IntegrityError becomes RegisterAlreadyOpenError.
    close(): locks the session row (SELECT ... FOR UPDATE) and re-checks the
        status inside the transaction. PaymentRecorder takes the same lock
        before appending, so an append either commits before the close (and
        is reconciled) or observes the closed session and fails.

Usage:
    from registers.services import RegisterLifecycleService

    session = RegisterLifecycleService.open(10000, actor=user, observations="morning shift")
    current = RegisterLifecycleService.get_current()
    result = RegisterLifecycleService.close(session.id, 13000, actor=user)
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import Q

from core.exceptions import ValidationError
from core.services import BaseService
from registers.exceptions import (
    InvalidStateError,
    RegisterAlreadyOpenError,
    SessionNotFoundError,
)
from registers.models import RegisterSession
from registers.permissions import require_operator
from registers.services.reconciliation import ReconciliationResult, reconcile_session
from registers.state_machines import RegisterSessionStatus

if TYPE_CHECKING:
    from django.db.models import QuerySet


@dataclass(frozen=True)
class CurrentRegister:
    """The open session together with its live till balance."""

    session: RegisterSession
    current_balance_cents: int


def _validate_balance(value, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{field_name} must be an integer number of cents",
            error_code="INVALID_AMOUNT",
            details={field_name: value},
        )
    if value < 0:
        raise ValidationError(
            f"{field_name} must be >= 0",
            error_code="NEGATIVE_BALANCE",
            details={field_name: value},
        )


class RegisterLifecycleService(BaseService):
    """
    Open, close and query register sessions.

    Mutating methods re-validate the actor and run in a single transaction.
    """

    @classmethod
    def _find_open_session(cls) -> RegisterSession | None:
        return RegisterSession.objects.filter(status=RegisterSessionStatus.OPEN).first()

    @classmethod
    def open(
        cls,
        opening_balance_cents: int,
        actor,
        observations: str = "",
    ) -> RegisterSession:
        """
        Open a new register session.

        Args:
            opening_balance_cents: Cash on hand at open, in cents (>= 0)
            actor: User opening the register
            observations: Optional free-text notes

        Returns:
            The created RegisterSession (status=open, no entries)

        Raises:
            PermissionDeniedError: Actor may not operate the register
            ValidationError: Negative or non-integer opening balance
            RegisterAlreadyOpenError: Another session is open
        """
        logger = cls.get_logger()
        require_operator(actor)
        _validate_balance(opening_balance_cents, "opening_balance_cents")

        with cls.atomic():
            existing = cls._find_open_session()
            if existing is not None:
                logger.warning(
                    "Register open rejected: session already open",
                    extra={"open_session_id": str(existing.id), "actor_id": actor.pk},
                )
                raise RegisterAlreadyOpenError(open_session_id=existing.id)

            try:
                with transaction.atomic():
                    session = RegisterSession.objects.create(
                        opened_by=actor,
                        opening_balance_cents=opening_balance_cents,
                        observations_open=observations or "",
                    )
            except IntegrityError as exc:
                # Lost the race against a concurrent open()
                logger.warning(
                    "Register open rejected by unique open-session constraint",
                    extra={"actor_id": actor.pk},
                )
                raise RegisterAlreadyOpenError() from exc

        logger.info(
            "Register opened",
            extra={
                "session_id": str(session.id),
                "opening_balance_cents": opening_balance_cents,
                "actor_id": actor.pk,
            },
        )
        return session

    @classmethod
    def close(
        cls,
        session_id: uuid.UUID | str,
        declared_closing_balance_cents: int,
        actor,
        observations: str = "",
    ) -> ReconciliationResult:
        """
        Close an open session and persist its reconciliation.

        Args:
            session_id: Session to close
            declared_closing_balance_cents: Cash counted by the operator
            actor: User closing the register
            observations: Optional free-text notes

        Returns:
            ReconciliationResult (a shortage or surplus is not an error)

        Raises:
            PermissionDeniedError: Actor may not operate the register
            ValidationError: Negative or non-integer declared balance
            SessionNotFoundError: Unknown session id
            InvalidStateError: Session is already closed
        """
        logger = cls.get_logger()
        require_operator(actor)
        _validate_balance(declared_closing_balance_cents, "declared_closing_balance_cents")

        with cls.atomic():
            session = RegisterSession.objects.select_for_update().filter(id=session_id).first()
            if session is None:
                raise SessionNotFoundError(
                    f"Register session {session_id} not found",
                    details={"session_id": str(session_id)},
                )
            if not session.is_open:
                logger.warning(
                    "Register close rejected: session already closed",
                    extra={"session_id": str(session.id), "actor_id": actor.pk},
                )
                raise InvalidStateError(
                    "register session is already closed",
                    error_code="SESSION_ALREADY_CLOSED",
                    details={"session_id": str(session.id), "status": session.status},
                )

            result = reconcile_session(session, declared_closing_balance_cents)
            session.close(result=result, actor=actor, observations=observations)
            session.save()

        logger.info(
            "Register closed",
            extra={
                "session_id": str(session.id),
                "expected_balance_cents": result.expected_balance_cents,
                "declared_closing_balance_cents": result.declared_closing_balance_cents,
                "difference_cents": result.difference_cents,
                "classification": str(result.classification),
                "actor_id": actor.pk,
            },
        )
        return result

    @classmethod
    def get_current(cls) -> CurrentRegister | None:
        """Return the open session with its live balance, or None."""
        session = cls._find_open_session()
        if session is None:
            return None
        return CurrentRegister(
            session=session,
            current_balance_cents=session.current_balance_cents(),
        )

    @classmethod
    def get_by_id(cls, session_id: uuid.UUID | str) -> RegisterSession:
        """
        Return a session with its entries loaded in sequence order.

        The stored reconciliation result is available through
        ``session.reconciliation`` once the session is closed.

        Raises:
            SessionNotFoundError: Unknown session id
        """
        session = (
            RegisterSession.objects.select_related("opened_by", "closed_by")
            .prefetch_related("entries__cancellation")
            .filter(id=session_id)
            .first()
        )
        if session is None:
            raise SessionNotFoundError(
                f"Register session {session_id} not found",
                details={"session_id": str(session_id)},
            )
        return session

    @classmethod
    def list_sessions(
        cls,
        status: str | None = None,
        opened_from: datetime.date | None = None,
        opened_to: datetime.date | None = None,
        search: str | None = None,
    ) -> QuerySet[RegisterSession]:
        """
        Sessions newest first, optionally filtered by status, open date and text.

        Date bounds are inclusive calendar days in the current time zone.
        search is a case-insensitive match on the open or close observations.
        """
        queryset = RegisterSession.objects.select_related("opened_by", "closed_by")
        if status:
            queryset = queryset.filter(status=status)
        if opened_from:
            queryset = queryset.filter(opened_at__date__gte=opened_from)
        if opened_to:
            queryset = queryset.filter(opened_at__date__lte=opened_to)
        if search:
            queryset = queryset.filter(
                Q(observations_open__icontains=search) | Q(observations_close__icontains=search)
            )
        return queryset.order_by("-opened_at")
