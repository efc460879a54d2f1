# Generated manually for the initial registers schema

"""
Initial schema for register sessions and ledger entries.

Creates:
1. register_sessions with the partial unique index that allows at most one
   row with status = 'open'
2. ledger_entries with per-session sequence uniqueness and the sign/link
   check constraints
"""

import uuid

import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="RegisterSession",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[("open", "Open"), ("closed", "Closed")],
                        db_index=True,
                        default="open",
                        help_text="Current state of the register session (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "opened_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="When the register was opened",
                    ),
                ),
                (
                    "opening_balance_cents",
                    models.BigIntegerField(help_text="Cash on hand declared at open, in cents"),
                ),
                (
                    "observations_open",
                    models.TextField(blank=True, default="", help_text="Notes entered at open"),
                ),
                (
                    "closed_at",
                    models.DateTimeField(
                        blank=True, help_text="When the register was closed", null=True
                    ),
                ),
                (
                    "closing_balance_declared_cents",
                    models.BigIntegerField(
                        blank=True,
                        help_text="Cash on hand counted at close, in cents",
                        null=True,
                    ),
                ),
                (
                    "expected_balance_cents",
                    models.BigIntegerField(
                        blank=True,
                        help_text="Expected cash on hand computed at close, in cents",
                        null=True,
                    ),
                ),
                (
                    "difference_cents",
                    models.BigIntegerField(
                        blank=True,
                        help_text="Declared minus expected closing balance, in cents",
                        null=True,
                    ),
                ),
                (
                    "classification",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("exact", "Exact"),
                            ("shortage", "Shortage"),
                            ("surplus", "Surplus"),
                        ],
                        help_text="Reconciliation outcome (exact, shortage, surplus)",
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "observations_close",
                    models.TextField(blank=True, default="", help_text="Notes entered at close"),
                ),
                (
                    "last_sequence",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Sequence number of the last appended entry",
                    ),
                ),
                (
                    "closed_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who closed the register",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="closed_register_sessions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "opened_by",
                    models.ForeignKey(
                        help_text="User who opened the register",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="opened_register_sessions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Register Session",
                "verbose_name_plural": "Register Sessions",
                "db_table": "register_sessions",
                "ordering": ["-opened_at"],
                "permissions": [
                    ("operate_register", "Can open and close registers and record payments")
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "open")),
                        fields=("status",),
                        name="unique_open_register_session",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("opening_balance_cents__gte", 0)),
                        name="register_session_opening_balance_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("closing_balance_declared_cents__isnull", True),
                            ("closing_balance_declared_cents__gte", 0),
                            _connector="OR",
                        ),
                        name="register_session_closing_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "sequence",
                    models.PositiveIntegerField(
                        help_text="Position of this entry inside its session (1-based)"
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("sale", "Sale"),
                            ("expense", "Expense"),
                            ("debt_payment", "Debt Payment"),
                            ("cancellation", "Cancellation"),
                        ],
                        help_text="Kind of money movement",
                        max_length=20,
                    ),
                ),
                ("amount_cents", models.BigIntegerField(help_text="Signed amount in cents")),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("card", "Card"),
                            ("pix", "PIX"),
                            ("check", "Check"),
                            ("bank_slip", "Bank Slip"),
                            ("promissory_note", "Promissory Note"),
                            ("gateway", "Payment Gateway"),
                        ],
                        help_text="Payment method",
                        max_length=20,
                    ),
                ),
                (
                    "details",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Method-specific payload keyed by method",
                    ),
                ),
                (
                    "recorded_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        editable=False,
                        help_text="Timestamp when this entry was recorded",
                    ),
                ),
                (
                    "reference_id",
                    models.CharField(
                        blank=True,
                        help_text="External order/payment id (not owned by this app)",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "description",
                    models.TextField(
                        blank=True,
                        help_text="Human-readable description of this entry",
                        null=True,
                    ),
                ),
                (
                    "cancels",
                    models.OneToOneField(
                        blank=True,
                        help_text="Entry offset by this cancellation",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cancellation",
                        to="registers.ledgerentry",
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        help_text="User who recorded this entry",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="register_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "session",
                    models.ForeignKey(
                        help_text="Register session this entry belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="entries",
                        to="registers.registersession",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "db_table": "ledger_entries",
                "ordering": ["sequence"],
                "indexes": [
                    models.Index(
                        fields=["session", "recorded_at"],
                        name="ledger_entry_session_time_idx",
                    ),
                    models.Index(fields=["recorded_at"], name="ledger_entry_recorded_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("session", "sequence"),
                        name="unique_ledger_entry_sequence",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("kind__in", ("sale", "debt_payment")), ("amount_cents__gt", 0)),
                            models.Q(("kind", "expense"), ("amount_cents__lt", 0)),
                            models.Q(
                                ("kind", "cancellation"),
                                models.Q(("amount_cents", 0), _negated=True),
                            ),
                            _connector="OR",
                        ),
                        name="ledger_entry_amount_sign_matches_kind",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("kind", "cancellation"), ("cancels__isnull", False)),
                            models.Q(
                                models.Q(("kind", "cancellation"), _negated=True),
                                ("cancels__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="ledger_entry_cancellation_link",
                    ),
                ],
            },
        ),
    ]
