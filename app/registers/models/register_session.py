"""
RegisterSession model: one open-to-close cycle of the physical cash till.

Usage:
    from registers.models import RegisterSession
    from registers.state_machines import RegisterSessionStatus

    # Sessions are created by RegisterLifecycleService.open() and closed by
    # RegisterLifecycleService.close(); both run inside a transaction.
    session = RegisterSession.objects.get(status=RegisterSessionStatus.OPEN)
    session.current_balance_cents()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from registers.exceptions import InvalidStateError
from registers.ledger.types import cash_equivalent_methods
from registers.state_machines import (
    ReconciliationClassification,
    RegisterSessionStatus,
)

if TYPE_CHECKING:
    from registers.services.reconciliation import ReconciliationResult


class RegisterSession(UUIDPrimaryKeyMixin, BaseModel):
    """
    Aggregate owning the ordered ledger entries between an open and a close.

    Uses django-fsm for the single OPEN -> CLOSED transition. The database
    guarantees that at most one session is open at any time through a
    unique constraint conditioned on status=open.

    State Flow:
        OPEN -> CLOSED (irreversible)

    Fields:
        status: Current FSM state
        opened_at/opened_by: Open event and actor
        opening_balance_cents: Cash on hand declared at open (>= 0)
        closed_at/closed_by: Close event and actor (null while open)
        closing_balance_declared_cents: Cash counted at close
        expected_balance_cents/difference_cents/classification:
            Reconciliation result persisted at close
        observations_open/observations_close: Free-text notes
        last_sequence: Number of entries appended so far

    Note:
        current balance is derived from the entries and never stored.
        Closed sessions are kept for reporting; deleting raises.
    """

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=RegisterSessionStatus.OPEN,
        choices=RegisterSessionStatus.choices,
        db_index=True,
        help_text="Current state of the register session (managed by FSM)",
    )

    # ==========================================================================
    # Open
    # ==========================================================================

    opened_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the register was opened",
    )
    opened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="opened_register_sessions",
        help_text="User who opened the register",
    )
    opening_balance_cents = models.BigIntegerField(
        help_text="Cash on hand declared at open, in cents",
    )
    observations_open = models.TextField(
        blank=True,
        default="",
        help_text="Notes entered at open",
    )

    # ==========================================================================
    # Close & Reconciliation
    # ==========================================================================

    closed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the register was closed",
    )
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="closed_register_sessions",
        help_text="User who closed the register",
    )
    closing_balance_declared_cents = models.BigIntegerField(
        null=True,
        blank=True,
        help_text="Cash on hand counted at close, in cents",
    )
    expected_balance_cents = models.BigIntegerField(
        null=True,
        blank=True,
        help_text="Expected cash on hand computed at close, in cents",
    )
    difference_cents = models.BigIntegerField(
        null=True,
        blank=True,
        help_text="Declared minus expected closing balance, in cents",
    )
    classification = models.CharField(
        max_length=10,
        choices=ReconciliationClassification.choices,
        null=True,
        blank=True,
        help_text="Reconciliation outcome (exact, shortage, surplus)",
    )
    observations_close = models.TextField(
        blank=True,
        default="",
        help_text="Notes entered at close",
    )

    # ==========================================================================
    # Ledger bookkeeping
    # ==========================================================================

    last_sequence = models.PositiveIntegerField(
        default=0,
        help_text="Sequence number of the last appended entry",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        db_table = "register_sessions"
        ordering = ["-opened_at"]
        verbose_name = "Register Session"
        verbose_name_plural = "Register Sessions"
        permissions = [
            ("operate_register", "Can open and close registers and record payments"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["status"],
                condition=Q(status=RegisterSessionStatus.OPEN),
                name="unique_open_register_session",
            ),
            models.CheckConstraint(
                condition=Q(opening_balance_cents__gte=0),
                name="register_session_opening_balance_non_negative",
            ),
            models.CheckConstraint(
                condition=(
                    Q(closing_balance_declared_cents__isnull=True)
                    | Q(closing_balance_declared_cents__gte=0)
                ),
                name="register_session_closing_balance_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"RegisterSession({self.id}, {self.status}, opened {self.opened_at:%Y-%m-%d %H:%M})"

    def delete(self, *args, **kwargs):
        raise InvalidStateError(
            "register sessions are retained and cannot be deleted",
            error_code="SESSION_RETAINED",
            details={"session_id": str(self.pk)},
        )

    @property
    def is_open(self) -> bool:
        return self.status == RegisterSessionStatus.OPEN

    def cash_entries_total_cents(self) -> int:
        """Sum of cash-equivalent entry amounts, cancellations included."""
        return self.entries.filter(method__in=cash_equivalent_methods()).aggregate(
            total=Coalesce(Sum("amount_cents"), Value(0), output_field=models.BigIntegerField())
        )["total"]

    def current_balance_cents(self) -> int:
        """
        Live till balance: opening balance plus cash-equivalent entries.

        This performs a database query; it is never cached on the row.
        """
        return self.opening_balance_cents + self.cash_entries_total_cents()

    @property
    def reconciliation(self) -> ReconciliationResult | None:
        """Stored reconciliation result, None while the session is open."""
        from registers.services.reconciliation import ReconciliationResult

        if self.is_open or self.expected_balance_cents is None:
            return None
        return ReconciliationResult(
            expected_balance_cents=self.expected_balance_cents,
            declared_closing_balance_cents=self.closing_balance_declared_cents,
            difference_cents=self.difference_cents,
            classification=self.classification,
        )

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=RegisterSessionStatus.OPEN,
        target=RegisterSessionStatus.CLOSED,
    )
    def close(self, result: ReconciliationResult, actor, observations: str = ""):
        """
        Close the register with its reconciliation result.

        Transition: OPEN -> CLOSED

        Stamps closed_at/closed_by and persists the declared balance with the
        computed expected balance, difference and classification. The caller
        saves the row.
        """
        self.closed_at = timezone.now()
        self.closed_by = actor
        self.observations_close = observations or ""
        self.closing_balance_declared_cents = result.declared_closing_balance_cents
        self.expected_balance_cents = result.expected_balance_cents
        self.difference_cents = result.difference_cents
        self.classification = result.classification
