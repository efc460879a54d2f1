"""
Serializers for the registers API.

Request serializers take amounts in major units (decimal strings such as
"100.50") and convert them to integer cents once, through Money. Response
serializers expose every amount as integer cents in *_cents fields.

Serializer Hierarchy:
    Requests:
        OpenRegisterSerializer, CloseRegisterSerializer
        RecordPaymentSerializer, CancelEntrySerializer
        SessionFilterSerializer, DailySummaryQuerySerializer,
        DashboardQuerySerializer

    Responses:
        LedgerEntrySerializer
        RegisterSessionSerializer -> RegisterSessionDetailSerializer
        ReconciliationResultSerializer, CurrentRegisterSerializer
        SessionSummarySerializer, DailySummarySerializer, DashboardSerializer
"""

from __future__ import annotations

from rest_framework import serializers

from registers.ledger.models import EntryKind, LedgerEntry, PaymentMethod
from registers.ledger.types import Money
from registers.models import RegisterSession
from registers.services.dashboard import SALES_PERIODS
from registers.state_machines import RegisterSessionStatus

AMOUNT_FIELD_OPTIONS = {"max_digits": 14, "decimal_places": 2, "coerce_to_string": False}


# =============================================================================
# Request Serializers
# =============================================================================


class OpenRegisterSerializer(serializers.Serializer):
    """Open a register with the cash on hand."""

    opening_balance = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    observations = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_opening_balance(self, value) -> int:
        return Money.from_major(value).cents


class CloseRegisterSerializer(serializers.Serializer):
    """Close a register with the counted cash."""

    declared_closing_balance = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    observations = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_declared_closing_balance(self, value) -> int:
        return Money.from_major(value).cents


class RecordPaymentSerializer(serializers.Serializer):
    """
    Record a payment against the open register.

    The amount is signed: positive for sales and debt payments, negative
    for expenses.
    """

    kind = serializers.ChoiceField(
        choices=[
            (EntryKind.SALE, EntryKind.SALE.label),
            (EntryKind.EXPENSE, EntryKind.EXPENSE.label),
            (EntryKind.DEBT_PAYMENT, EntryKind.DEBT_PAYMENT.label),
        ]
    )
    amount = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    reference_id = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=255, default=None
    )
    details = serializers.DictField(required=False, default=dict)
    description = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, default=None
    )
    session_id = serializers.UUIDField(required=False, allow_null=True, default=None)

    def validate_amount(self, value) -> int:
        return Money.from_major(value).cents


class CancelEntrySerializer(serializers.Serializer):
    description = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, default=None
    )


class SessionFilterSerializer(serializers.Serializer):
    """Query parameters for the session list."""

    status = serializers.ChoiceField(choices=RegisterSessionStatus.choices, required=False)
    opened_from = serializers.DateField(required=False)
    opened_to = serializers.DateField(required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs: dict) -> dict:
        opened_from = attrs.get("opened_from")
        opened_to = attrs.get("opened_to")
        if opened_from and opened_to and opened_from > opened_to:
            raise serializers.ValidationError(
                {"opened_to": "opened_to must not be before opened_from"}
            )
        return attrs


class DailySummaryQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class DashboardQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=SALES_PERIODS, required=False, default=7)


# =============================================================================
# Response Serializers
# =============================================================================


class LedgerEntrySerializer(serializers.ModelSerializer):
    """A recorded ledger entry."""

    session_id = serializers.UUIDField(read_only=True)
    recorded_by_id = serializers.IntegerField(read_only=True)
    cancels_id = serializers.UUIDField(read_only=True, allow_null=True)
    cancelled_by_id = serializers.SerializerMethodField()

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "session_id",
            "sequence",
            "kind",
            "amount_cents",
            "method",
            "details",
            "recorded_at",
            "recorded_by_id",
            "reference_id",
            "description",
            "cancels_id",
            "cancelled_by_id",
        ]
        read_only_fields = fields

    def get_cancelled_by_id(self, obj: LedgerEntry) -> str | None:
        cancellation = getattr(obj, "cancellation", None)
        return str(cancellation.id) if cancellation else None


class ReconciliationResultSerializer(serializers.Serializer):
    expected_balance_cents = serializers.IntegerField()
    declared_closing_balance_cents = serializers.IntegerField()
    difference_cents = serializers.IntegerField()
    classification = serializers.CharField()


class RegisterSessionSerializer(serializers.ModelSerializer):
    """Session header; current_balance_cents is live while open, null once closed."""

    opened_by_id = serializers.IntegerField(read_only=True)
    closed_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    current_balance_cents = serializers.SerializerMethodField()

    class Meta:
        model = RegisterSession
        fields = [
            "id",
            "status",
            "opened_at",
            "opened_by_id",
            "opening_balance_cents",
            "observations_open",
            "closed_at",
            "closed_by_id",
            "closing_balance_declared_cents",
            "expected_balance_cents",
            "difference_cents",
            "classification",
            "observations_close",
            "current_balance_cents",
        ]
        read_only_fields = fields

    def get_current_balance_cents(self, obj: RegisterSession) -> int | None:
        if not obj.is_open:
            return None
        # Reuse a balance the caller already computed for this session
        current = self.context.get("current_register")
        if current is not None and current.session.pk == obj.pk:
            return current.current_balance_cents
        return obj.current_balance_cents()


class RegisterSessionDetailSerializer(RegisterSessionSerializer):
    """Session with its entries in sequence order and, once closed, its reconciliation."""

    entries = LedgerEntrySerializer(many=True, read_only=True)
    reconciliation = serializers.SerializerMethodField()

    class Meta(RegisterSessionSerializer.Meta):
        fields = RegisterSessionSerializer.Meta.fields + ["entries", "reconciliation"]
        read_only_fields = fields

    def get_reconciliation(self, obj: RegisterSession) -> dict | None:
        result = obj.reconciliation
        if result is None:
            return None
        return ReconciliationResultSerializer(result).data


class CurrentRegisterSerializer(serializers.Serializer):
    is_open = serializers.BooleanField()
    session = RegisterSessionSerializer(allow_null=True)


class EntryTotalsSerializer(serializers.Serializer):
    sales_total_cents = serializers.IntegerField()
    sales_count = serializers.IntegerField()
    sales_by_method = serializers.DictField(child=serializers.IntegerField())
    debt_payments_total_cents = serializers.IntegerField()
    debt_payments_by_method = serializers.DictField(child=serializers.IntegerField())
    expenses_total_cents = serializers.IntegerField()
    expenses_by_method = serializers.DictField(child=serializers.IntegerField())
    cancelled_count = serializers.IntegerField()
    cancelled_total_cents = serializers.IntegerField()
    cash_in_cents = serializers.IntegerField()
    cash_out_cents = serializers.IntegerField()


class SessionSummarySerializer(serializers.Serializer):
    session_id = serializers.UUIDField()
    status = serializers.CharField()
    opened_at = serializers.DateTimeField()
    closed_at = serializers.DateTimeField(allow_null=True)
    opening_balance_cents = serializers.IntegerField()
    balance_cents = serializers.IntegerField()
    entry_count = serializers.IntegerField()
    totals = EntryTotalsSerializer()


class DailySummarySerializer(serializers.Serializer):
    date = serializers.DateField()
    session_count = serializers.IntegerField()
    opening_balance_cents = serializers.IntegerField()
    balance_cents = serializers.IntegerField()
    totals = EntryTotalsSerializer()


class SalesPointSerializer(serializers.Serializer):
    date = serializers.DateField()
    sales_cents = serializers.IntegerField()
    sales_count = serializers.IntegerField()


class DashboardSerializer(serializers.Serializer):
    today = serializers.DateField()
    today_sales_cents = serializers.IntegerField()
    yesterday_sales_cents = serializers.IntegerField()
    sales_growth_percentage = serializers.IntegerField()
    today_sales_count = serializers.IntegerField()
    weekly_sales_count = serializers.IntegerField()
    recent_entries = LedgerEntrySerializer(many=True)
    sales_series = SalesPointSerializer(many=True)
