"""
Ledger entry model for register sessions.

A LedgerEntry is one money movement recorded against a RegisterSession.
Entries are append-only: once saved they are never updated or deleted.
Corrections are new CANCELLATION entries that offset the original.

Usage:
    from registers.ledger.models import EntryKind, LedgerEntry, PaymentMethod

    # Entries are created through PaymentRecorder, which assigns the
    # per-session sequence under the session row lock.
    session.entries.all()  # ordered by sequence
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from registers.exceptions import InvalidStateError


class EntryKind(models.TextChoices):
    """
    Kinds of ledger entries and the sign their amount must carry.

    Values:
        SALE: Money received for a sale (positive)
        EXPENSE: Money paid out of the till (negative)
        DEBT_PAYMENT: Customer settling an earlier debt (positive)
        CANCELLATION: Offsets a prior entry (negated amount of the original)
    """

    SALE = "sale", "Sale"
    EXPENSE = "expense", "Expense"
    DEBT_PAYMENT = "debt_payment", "Debt Payment"
    CANCELLATION = "cancellation", "Cancellation"


class PaymentMethod(models.TextChoices):
    """
    Payment method tags.

    Whether a method moves physical cash is defined once, in
    registers.ledger.types.CASH_EQUIVALENT_METHODS.
    """

    CASH = "cash", "Cash"
    CARD = "card", "Card"
    PIX = "pix", "PIX"
    CHECK = "check", "Check"
    BANK_SLIP = "bank_slip", "Bank Slip"
    PROMISSORY_NOTE = "promissory_note", "Promissory Note"
    GATEWAY = "gateway", "Payment Gateway"


POSITIVE_KINDS = (EntryKind.SALE, EntryKind.DEBT_PAYMENT)


class LedgerEntry(UUIDPrimaryKeyMixin, models.Model):
    """
    An immutable money movement inside a register session.

    Fields:
        id: UUID primary key (from UUIDPrimaryKeyMixin)
        session: Owning register session
        sequence: 1-based position inside the session
        kind: EntryKind
        amount_cents: Signed amount in cents
        method: PaymentMethod
        details: Method-specific payload (see registers.ledger.types)
        recorded_at: When the movement was recorded
        recorded_by: Acting user, for audit
        reference_id: Optional external order/payment id
        description: Optional free text
        cancels: For cancellations, the entry being offset

    Constraints:
        - (session, sequence) is unique
        - amount sign matches kind, zero is never valid
        - only cancellations link to another entry, and each entry can be
          cancelled at most once (one-to-one)
    """

    session = models.ForeignKey(
        "registers.RegisterSession",
        on_delete=models.PROTECT,
        related_name="entries",
        help_text="Register session this entry belongs to",
    )
    sequence = models.PositiveIntegerField(
        help_text="Position of this entry inside its session (1-based)",
    )

    kind = models.CharField(
        max_length=20,
        choices=EntryKind.choices,
        help_text="Kind of money movement",
    )
    amount_cents = models.BigIntegerField(
        help_text="Signed amount in cents",
    )
    method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        help_text="Payment method",
    )
    details = models.JSONField(
        default=dict,
        blank=True,
        help_text="Method-specific payload keyed by method",
    )

    recorded_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        help_text="Timestamp when this entry was recorded",
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="register_entries",
        help_text="User who recorded this entry",
    )
    reference_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="External order/payment id (not owned by this app)",
    )
    description = models.TextField(
        null=True,
        blank=True,
        help_text="Human-readable description of this entry",
    )

    cancels = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cancellation",
        help_text="Entry offset by this cancellation",
    )

    class Meta:
        db_table = "ledger_entries"
        ordering = ["sequence"]
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        indexes = [
            models.Index(
                fields=["session", "recorded_at"],
                name="ledger_entry_session_time_idx",
            ),
            models.Index(fields=["recorded_at"], name="ledger_entry_recorded_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["session", "sequence"],
                name="unique_ledger_entry_sequence",
            ),
            models.CheckConstraint(
                condition=(
                    Q(kind__in=POSITIVE_KINDS, amount_cents__gt=0)
                    | Q(kind=EntryKind.EXPENSE, amount_cents__lt=0)
                    | (Q(kind=EntryKind.CANCELLATION) & ~Q(amount_cents=0))
                ),
                name="ledger_entry_amount_sign_matches_kind",
            ),
            models.CheckConstraint(
                condition=(
                    Q(kind=EntryKind.CANCELLATION, cancels__isnull=False)
                    | (~Q(kind=EntryKind.CANCELLATION) & Q(cancels__isnull=True))
                ),
                name="ledger_entry_cancellation_link",
            ),
        ]

    def __str__(self) -> str:
        return f"#{self.sequence} {self.get_kind_display()}: {self.amount_cents} cents ({self.method})"

    def save(self, *args, **kwargs):
        """Insert only; persisted entries are immutable."""
        if not self._state.adding:
            raise InvalidStateError(
                "ledger entries are append-only",
                error_code="ENTRY_IMMUTABLE",
                details={"entry_id": str(self.pk)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvalidStateError(
            "ledger entries cannot be deleted",
            error_code="ENTRY_IMMUTABLE",
            details={"entry_id": str(self.pk)},
        )

    @property
    def is_cancellation(self) -> bool:
        return self.kind == EntryKind.CANCELLATION
