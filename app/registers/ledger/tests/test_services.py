"""
Tests for PaymentRecorder.

Covers appends to the open session, sequencing, the no-open-register hard
stop, actor checks, and cancellations.
"""

import uuid

import pytest

from core.exceptions import PermissionDeniedError, ValidationError
from registers.exceptions import (
    AlreadyCancelledError,
    EntryNotFoundError,
    InvalidStateError,
    NoOpenSessionError,
    SessionNotFoundError,
)
from registers.ledger.models import EntryKind, LedgerEntry, PaymentMethod
from registers.ledger.services import PaymentRecorder
from registers.services import RegisterLifecycleService
from registers.tests.factories import LedgerEntryFactory, RegisterSessionFactory, UserFactory

# =============================================================================
# record_payment
# =============================================================================


class TestRecordPayment:
    """Tests for PaymentRecorder.record_payment."""

    def test_appends_to_open_session(self, open_session, operator_user):
        entry = PaymentRecorder.record_payment(
            kind=EntryKind.SALE,
            amount_cents=5000,
            method=PaymentMethod.CASH,
            actor=operator_user,
            reference_id="order-42",
        )

        assert entry.session_id == open_session.id
        assert entry.sequence == 1
        assert entry.recorded_by == operator_user
        assert entry.reference_id == "order-42"
        assert entry.details == {}

    def test_sequences_are_contiguous(self, open_session, operator_user):
        for amount in (1000, 2000, 3000):
            PaymentRecorder.record_payment(
                kind=EntryKind.SALE,
                amount_cents=amount,
                method=PaymentMethod.CASH,
                actor=operator_user,
            )

        sequences = list(open_session.entries.values_list("sequence", flat=True))
        open_session.refresh_from_db()
        assert sequences == [1, 2, 3]
        assert open_session.last_sequence == 3

    def test_stores_typed_details(self, open_session, operator_user):
        entry = PaymentRecorder.record_payment(
            kind=EntryKind.SALE,
            amount_cents=12000,
            method=PaymentMethod.CARD,
            details={"installments": 3},
            actor=operator_user,
        )

        entry.refresh_from_db()
        assert entry.details == {"installments": 3, "card_type": "credit"}

    def test_rejected_without_open_session(self, db, operator_user):
        """No register open is a hard stop: nothing is written."""
        with pytest.raises(NoOpenSessionError) as exc_info:
            PaymentRecorder.record_payment(
                kind=EntryKind.SALE,
                amount_cents=5000,
                method=PaymentMethod.CASH,
                actor=operator_user,
            )

        assert exc_info.value.error_code == "NO_OPEN_SESSION"
        assert LedgerEntry.objects.count() == 0

    def test_rejected_after_close(self, open_session, operator_user):
        RegisterLifecycleService.close(open_session.id, 10000, actor=operator_user)

        with pytest.raises(NoOpenSessionError):
            PaymentRecorder.record_payment(
                kind=EntryKind.SALE,
                amount_cents=5000,
                method=PaymentMethod.CASH,
                actor=operator_user,
            )

    def test_explicit_session_must_be_open(self, open_session, operator_user):
        RegisterLifecycleService.close(open_session.id, 10000, actor=operator_user)

        with pytest.raises(InvalidStateError) as exc_info:
            PaymentRecorder.record_payment(
                kind=EntryKind.SALE,
                amount_cents=5000,
                method=PaymentMethod.CASH,
                actor=operator_user,
                session_id=open_session.id,
            )

        assert exc_info.value.error_code == "SESSION_CLOSED"

    def test_explicit_unknown_session(self, open_session, operator_user):
        with pytest.raises(SessionNotFoundError):
            PaymentRecorder.record_payment(
                kind=EntryKind.SALE,
                amount_cents=5000,
                method=PaymentMethod.CASH,
                actor=operator_user,
                session_id=uuid.uuid4(),
            )

    def test_wrong_sign_is_rejected_before_write(self, open_session, operator_user):
        with pytest.raises(ValidationError):
            PaymentRecorder.record_payment(
                kind=EntryKind.EXPENSE,
                amount_cents=2000,
                method=PaymentMethod.CASH,
                actor=operator_user,
            )

        open_session.refresh_from_db()
        assert open_session.last_sequence == 0
        assert not open_session.entries.exists()

    def test_actor_without_permission(self, open_session, plain_user):
        with pytest.raises(PermissionDeniedError) as exc_info:
            PaymentRecorder.record_payment(
                kind=EntryKind.SALE,
                amount_cents=5000,
                method=PaymentMethod.CASH,
                actor=plain_user,
            )

        assert exc_info.value.error_code == "REGISTER_PERMISSION_REQUIRED"

    def test_inactive_actor(self, open_session):
        user = UserFactory(operator=True, is_active=False)

        with pytest.raises(PermissionDeniedError) as exc_info:
            PaymentRecorder.record_payment(
                kind=EntryKind.SALE,
                amount_cents=5000,
                method=PaymentMethod.CASH,
                actor=user,
            )

        assert exc_info.value.error_code == "ACTOR_INACTIVE"


# =============================================================================
# record_cancellation
# =============================================================================


class TestRecordCancellation:
    """Tests for PaymentRecorder.record_cancellation."""

    def test_offsets_the_original(self, open_session, operator_user):
        sale = PaymentRecorder.record_payment(
            kind=EntryKind.SALE,
            amount_cents=5000,
            method=PaymentMethod.CARD,
            details={"installments": 2},
            reference_id="order-7",
            actor=operator_user,
        )

        cancellation = PaymentRecorder.record_cancellation(
            sale.id, actor=operator_user, description="customer returned item"
        )

        assert cancellation.kind == EntryKind.CANCELLATION
        assert cancellation.amount_cents == -5000
        assert cancellation.method == PaymentMethod.CARD
        assert cancellation.details == sale.details
        assert cancellation.reference_id == "order-7"
        assert cancellation.cancels_id == sale.id
        assert cancellation.sequence == 2

    def test_cancelling_an_expense_is_positive(self, open_session, operator_user):
        expense = PaymentRecorder.record_payment(
            kind=EntryKind.EXPENSE,
            amount_cents=-2000,
            method=PaymentMethod.CASH,
            actor=operator_user,
        )

        cancellation = PaymentRecorder.record_cancellation(expense.id, actor=operator_user)

        assert cancellation.amount_cents == 2000

    def test_cancel_twice(self, open_session, operator_user):
        sale = LedgerEntryFactory(session=open_session)
        PaymentRecorder.record_cancellation(sale.id, actor=operator_user)

        with pytest.raises(AlreadyCancelledError):
            PaymentRecorder.record_cancellation(sale.id, actor=operator_user)

    def test_cannot_cancel_a_cancellation(self, open_session, operator_user):
        sale = LedgerEntryFactory(session=open_session)
        cancellation = PaymentRecorder.record_cancellation(sale.id, actor=operator_user)

        with pytest.raises(ValidationError) as exc_info:
            PaymentRecorder.record_cancellation(cancellation.id, actor=operator_user)

        assert exc_info.value.error_code == "CANNOT_CANCEL_CANCELLATION"

    def test_unknown_entry(self, open_session, operator_user):
        with pytest.raises(EntryNotFoundError) as exc_info:
            PaymentRecorder.record_cancellation(uuid.uuid4(), actor=operator_user)

        assert exc_info.value.error_code == "ENTRY_NOT_FOUND"

    def test_entry_of_closed_session(self, db, operator_user):
        """Closed sessions are final: their entries cannot be cancelled."""
        from registers.state_machines import RegisterSessionStatus

        closed = RegisterSessionFactory(status=RegisterSessionStatus.CLOSED)
        sale = LedgerEntryFactory(session=closed)

        with pytest.raises(EntryNotFoundError) as exc_info:
            PaymentRecorder.record_cancellation(sale.id, actor=operator_user)

        assert exc_info.value.error_code == "ENTRY_NOT_IN_OPEN_SESSION"


class TestGetEntry:
    def test_returns_entry(self, open_session):
        sale = LedgerEntryFactory(session=open_session)

        assert PaymentRecorder.get_entry(sale.id) == sale

    def test_unknown_entry(self, db):
        with pytest.raises(EntryNotFoundError):
            PaymentRecorder.get_entry(uuid.uuid4())
