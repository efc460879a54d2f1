"""
Payment recorder: appends ledger entries to the open register session.

This is the contract consumed by the order/payment flow. All ledger writes go
through it so that entries are validated, sequenced and logged the same way.

Key features:
- Appends are serialized per session by locking the session row
  (SELECT ... FOR UPDATE) and assigning sequence = last_sequence + 1
- The open-status check and the insert happen in the same transaction, so
  no entry is accepted into a session that a concurrent close() has closed
- Corrections are new cancellation entries; nothing is updated or deleted

Usage:
    from registers.ledger.services import PaymentRecorder

    entry = PaymentRecorder.record_payment(
        kind=EntryKind.SALE,
        amount_cents=5000,
        method=PaymentMethod.CASH,
        actor=user,
        reference_id="order-42",
    )

    try:
        PaymentRecorder.record_payment(...)
    except NoOpenSessionError:
        # Hard stop: the sale must not be accepted without an open register
        ...
"""

from __future__ import annotations

import uuid
from typing import Any

from django.db import IntegrityError, transaction

from core.exceptions import ValidationError
from core.services import BaseService
from registers.exceptions import (
    AlreadyCancelledError,
    EntryNotFoundError,
    InvalidStateError,
    NoOpenSessionError,
    SessionNotFoundError,
)
from registers.models import RegisterSession
from registers.permissions import require_operator
from registers.state_machines import RegisterSessionStatus

from .models import EntryKind, LedgerEntry
from .types import RecordPaymentParams, details_to_payload


class PaymentRecorder(BaseService):
    """
    Appends payments and cancellations to the open register session.

    All methods are classmethods - no instance state is maintained.
    """

    @classmethod
    def _lock_open_session(cls, session_id: uuid.UUID | str | None = None) -> RegisterSession:
        """
        Lock and return the session entries will be appended to.

        Without a session_id this is the single open session. With one, that
        session must exist and still be open.

        Raises:
            NoOpenSessionError: No session is open
            SessionNotFoundError: session_id is unknown
            InvalidStateError: session_id refers to a closed session
        """
        if session_id is None:
            session = (
                RegisterSession.objects.select_for_update()
                .filter(status=RegisterSessionStatus.OPEN)
                .first()
            )
            if session is None:
                raise NoOpenSessionError()
            return session

        session = RegisterSession.objects.select_for_update().filter(id=session_id).first()
        if session is None:
            raise SessionNotFoundError(
                f"Register session {session_id} not found",
                details={"session_id": str(session_id)},
            )
        if not session.is_open:
            raise InvalidStateError(
                "register session is closed",
                error_code="SESSION_CLOSED",
                details={"session_id": str(session.id), "status": session.status},
            )
        return session

    @staticmethod
    def _append(session: RegisterSession, **fields: Any) -> LedgerEntry:
        """Insert the next entry of a locked session."""
        session.last_sequence += 1
        session.save(update_fields=["last_sequence", "updated_at"])
        return LedgerEntry.objects.create(
            session=session,
            sequence=session.last_sequence,
            **fields,
        )

    @classmethod
    def record_payment(
        cls,
        kind: str,
        amount_cents: int,
        method: str,
        actor,
        reference_id: str | None = None,
        details: dict[str, Any] | None = None,
        description: str | None = None,
        session_id: uuid.UUID | str | None = None,
    ) -> LedgerEntry:
        """
        Append a sale, expense or debt payment to the open session.

        Args:
            kind: sale, expense or debt_payment
            amount_cents: Signed amount in cents (expense negative)
            method: PaymentMethod value
            actor: User recording the payment
            reference_id: Optional external order/payment id
            details: Method-specific payload
            description: Optional free text
            session_id: Optional session the caller expects to be open

        Returns:
            The created LedgerEntry

        Raises:
            PermissionDeniedError: Actor may not operate the register
            ValidationError: Unknown kind/method, wrong sign, bad details
            NoOpenSessionError: No register is open
            SessionNotFoundError: session_id is unknown
            InvalidStateError: session_id refers to a closed session
        """
        logger = cls.get_logger()
        require_operator(actor)
        params = RecordPaymentParams(
            kind=kind,
            amount_cents=amount_cents,
            method=method,
            reference_id=reference_id,
            details=details,
            description=description,
            session_id=session_id,
        )

        with cls.atomic():
            try:
                session = cls._lock_open_session(params.session_id)
            except (NoOpenSessionError, InvalidStateError) as exc:
                logger.warning(
                    "Payment rejected: %s",
                    exc.error_code,
                    extra={
                        "kind": params.kind,
                        "amount_cents": params.amount_cents,
                        "reference_id": params.reference_id,
                        "actor_id": actor.pk,
                    },
                )
                raise
            entry = cls._append(
                session,
                kind=params.kind,
                amount_cents=params.amount_cents,
                method=params.method,
                details=details_to_payload(params.parsed_details),
                recorded_by=actor,
                reference_id=params.reference_id,
                description=params.description,
            )

        logger.info(
            "Payment recorded",
            extra={
                "entry_id": str(entry.id),
                "session_id": str(session.id),
                "sequence": entry.sequence,
                "kind": entry.kind,
                "amount_cents": entry.amount_cents,
                "method": entry.method,
                "actor_id": actor.pk,
            },
        )
        return entry

    @classmethod
    def record_cancellation(
        cls,
        original_entry_id: uuid.UUID | str,
        actor,
        description: str | None = None,
    ) -> LedgerEntry:
        """
        Append an entry offsetting a prior entry of the open session.

        The cancellation has amount = -original.amount and the original's
        method and details, so reconciliation treats both the same way.

        Raises:
            PermissionDeniedError: Actor may not operate the register
            EntryNotFoundError: Unknown entry, or its session is not open
            ValidationError: The entry is itself a cancellation
            AlreadyCancelledError: The entry was already cancelled
        """
        logger = cls.get_logger()
        require_operator(actor)

        with cls.atomic():
            original = LedgerEntry.objects.filter(id=original_entry_id).first()
            if original is None:
                raise EntryNotFoundError(
                    f"Ledger entry {original_entry_id} not found",
                    details={"entry_id": str(original_entry_id)},
                )

            session = RegisterSession.objects.select_for_update().get(id=original.session_id)
            if not session.is_open:
                logger.warning(
                    "Cancellation rejected: entry belongs to a closed session",
                    extra={"entry_id": str(original.id), "session_id": str(session.id)},
                )
                raise EntryNotFoundError(
                    "Ledger entry is not in an open register session",
                    error_code="ENTRY_NOT_IN_OPEN_SESSION",
                    details={"entry_id": str(original.id), "session_id": str(session.id)},
                )
            if original.kind == EntryKind.CANCELLATION:
                raise ValidationError(
                    "A cancellation entry cannot be cancelled",
                    error_code="CANNOT_CANCEL_CANCELLATION",
                    details={"entry_id": str(original.id)},
                )
            if LedgerEntry.objects.filter(cancels=original).exists():
                raise AlreadyCancelledError(
                    "Ledger entry is already cancelled",
                    details={"entry_id": str(original.id)},
                )

            try:
                with transaction.atomic():
                    entry = cls._append(
                        session,
                        kind=EntryKind.CANCELLATION,
                        amount_cents=-original.amount_cents,
                        method=original.method,
                        details=original.details,
                        recorded_by=actor,
                        reference_id=original.reference_id,
                        description=description,
                        cancels=original,
                    )
            except IntegrityError as exc:
                # One-to-one on cancels: another cancellation won the race
                raise AlreadyCancelledError(
                    "Ledger entry is already cancelled",
                    details={"entry_id": str(original.id)},
                ) from exc

        logger.info(
            "Entry cancelled",
            extra={
                "entry_id": str(entry.id),
                "cancelled_entry_id": str(original.id),
                "session_id": str(session.id),
                "amount_cents": entry.amount_cents,
                "method": entry.method,
                "actor_id": actor.pk,
            },
        )
        return entry

    @staticmethod
    def get_entry(entry_id: uuid.UUID | str) -> LedgerEntry:
        """
        Get an entry by ID.

        Raises:
            EntryNotFoundError: If the entry doesn't exist
        """
        entry = LedgerEntry.objects.select_related("cancellation").filter(id=entry_id).first()
        if entry is None:
            raise EntryNotFoundError(
                f"Ledger entry {entry_id} not found",
                details={"entry_id": str(entry_id)},
            )
        return entry
