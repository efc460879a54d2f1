"""
Data types for register ledger operations.

Types:
    Money: Integer-cent amount, converted from major units once at the boundary
    RecordPaymentParams: Validated parameters for appending a payment entry
    CardDetails, CheckDetails, BankSlipDetails, PromissoryNoteDetails,
    GatewayDetails: Method-specific payloads, one per method that has one

Mappings:
    CASH_EQUIVALENT_METHODS: The single source of truth for which payment
        methods move physical cash in the till
    METHOD_DETAIL_TYPES: Which payload type each method carries

Usage:
    from registers.ledger.types import Money, is_cash_equivalent, parse_method_details

    Money.from_major("50.00").cents  # 5000
    is_cash_equivalent(PaymentMethod.CARD)  # False
    parse_method_details(PaymentMethod.CHECK, {"check_number": "000123"})
"""

from __future__ import annotations

import dataclasses
import datetime
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from django.core.exceptions import ImproperlyConfigured

from core.exceptions import ValidationError

from .models import POSITIVE_KINDS, EntryKind, PaymentMethod

# =============================================================================
# Cash-equivalent mapping
# =============================================================================

CASH_EQUIVALENT_METHODS: dict[str, bool] = {
    PaymentMethod.CASH: True,
    PaymentMethod.CARD: False,
    PaymentMethod.PIX: False,
    PaymentMethod.CHECK: False,
    PaymentMethod.BANK_SLIP: False,
    PaymentMethod.PROMISSORY_NOTE: False,
    PaymentMethod.GATEWAY: False,
}

_unmapped = set(PaymentMethod.values) - set(CASH_EQUIVALENT_METHODS)
if _unmapped:
    raise ImproperlyConfigured(
        f"CASH_EQUIVALENT_METHODS is missing payment methods: {sorted(_unmapped)}"
    )


def is_cash_equivalent(method: str) -> bool:
    """
    Return whether a payment method changes the physical cash on hand.

    Raises:
        ValidationError: If the method is unknown
    """
    try:
        return CASH_EQUIVALENT_METHODS[method]
    except KeyError:
        raise ValidationError(
            f"Unknown payment method: {method}",
            error_code="INVALID_METHOD",
            details={"method": method},
        )


def cash_equivalent_methods() -> list[str]:
    """Methods that count toward the till balance, for queryset filters."""
    return [method for method, is_cash in CASH_EQUIVALENT_METHODS.items() if is_cash]


# =============================================================================
# Money
# =============================================================================


@dataclass(frozen=True)
class Money:
    """
    A monetary amount in cents.

    All arithmetic happens on integer cents. Values expressed in major units
    (e.g. "50.25") are converted exactly once, by from_major(), and must
    have at most two decimal places; nothing is rounded.

    Example:
        Money.from_major("50.25")  # Money(cents=5025)
        str(Money(cents=-2500))    # "-25.00"
    """

    cents: int

    @classmethod
    def from_major(cls, value: Decimal | str | int) -> Money:
        """
        Convert a major-unit amount to cents.

        Raises:
            ValidationError: If the value is not a finite number with at most
                two decimal places
        """
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(
                f"Invalid amount: {value!r}",
                error_code="INVALID_AMOUNT",
            )
        if not amount.is_finite():
            raise ValidationError(f"Invalid amount: {value!r}", error_code="INVALID_AMOUNT")

        cents = amount * 100
        if cents != cents.to_integral_value():
            raise ValidationError(
                f"Amount {value} has more than two decimal places",
                error_code="INVALID_AMOUNT",
            )
        return cls(cents=int(cents))

    def to_major(self) -> Decimal:
        return Decimal(self.cents).scaleb(-2)

    def __str__(self) -> str:
        return f"{self.to_major():.2f}"

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(cents=self.cents + other.cents)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(cents=self.cents - other.cents)

    def __neg__(self) -> Money:
        return Money(cents=-self.cents)


# =============================================================================
# Method detail payloads
# =============================================================================


def _require_text(value: Any, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} is required")


def _require_iso_date(value: Any, name: str) -> None:
    if value is None:
        return
    try:
        datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an ISO date (YYYY-MM-DD)")


@dataclass(frozen=True)
class CardDetails:
    """Card payment: number of installments and credit/debit."""

    installments: int = 1
    card_type: str = "credit"

    def __post_init__(self) -> None:
        if isinstance(self.installments, bool) or not isinstance(self.installments, int):
            raise ValueError("installments must be an integer")
        if self.installments < 1:
            raise ValueError("installments must be >= 1")
        if self.card_type not in ("credit", "debit"):
            raise ValueError("card_type must be 'credit' or 'debit'")
        if self.card_type == "debit" and self.installments != 1:
            raise ValueError("debit card payments have a single installment")


CHECK_COMPENSATION_STATUSES = ("pending", "compensated", "rejected")


@dataclass(frozen=True)
class CheckDetails:
    """Paper check data needed to deposit and track compensation."""

    check_number: str
    bank: str = ""
    branch: str = ""
    account_number: str = ""
    account_holder: str = ""
    check_date: str | None = None
    presentation_date: str | None = None
    compensation_status: str = "pending"
    rejection_reason: str = ""

    def __post_init__(self) -> None:
        _require_text(self.check_number, "check_number")
        _require_iso_date(self.check_date, "check_date")
        _require_iso_date(self.presentation_date, "presentation_date")
        if self.compensation_status not in CHECK_COMPENSATION_STATUSES:
            raise ValueError(
                f"compensation_status must be one of {', '.join(CHECK_COMPENSATION_STATUSES)}"
            )


@dataclass(frozen=True)
class BankSlipDetails:
    """Bank slip (boleto) barcode and issuing bank."""

    code: str
    bank: str = ""

    def __post_init__(self) -> None:
        _require_text(self.code, "code")


@dataclass(frozen=True)
class PromissoryNoteDetails:
    """Promissory note number and installment due dates."""

    number: str
    due_dates: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        _require_text(self.number, "number")
        if not isinstance(self.due_dates, (list, tuple)):
            raise ValueError("due_dates must be a list of ISO dates")
        for due_date in self.due_dates:
            _require_iso_date(due_date, "due_dates")
        object.__setattr__(self, "due_dates", tuple(self.due_dates))


GATEWAY_STATUSES = ("approved", "pending", "in_process", "rejected", "cancelled", "refunded")


@dataclass(frozen=True)
class GatewayDetails:
    """Status reported by an external payment gateway for this payment."""

    provider: str
    status: str
    external_id: str = ""

    def __post_init__(self) -> None:
        _require_text(self.provider, "provider")
        if self.status not in GATEWAY_STATUSES:
            raise ValueError(f"status must be one of {', '.join(GATEWAY_STATUSES)}")


MethodDetails = CardDetails | CheckDetails | BankSlipDetails | PromissoryNoteDetails | GatewayDetails

METHOD_DETAIL_TYPES: dict[str, type | None] = {
    PaymentMethod.CASH: None,
    PaymentMethod.PIX: None,
    PaymentMethod.CARD: CardDetails,
    PaymentMethod.CHECK: CheckDetails,
    PaymentMethod.BANK_SLIP: BankSlipDetails,
    PaymentMethod.PROMISSORY_NOTE: PromissoryNoteDetails,
    PaymentMethod.GATEWAY: GatewayDetails,
}

_untyped = set(PaymentMethod.values) - set(METHOD_DETAIL_TYPES)
if _untyped:
    raise ImproperlyConfigured(
        f"METHOD_DETAIL_TYPES is missing payment methods: {sorted(_untyped)}"
    )


def parse_method_details(method: str, payload: dict[str, Any] | None) -> MethodDetails | None:
    """
    Build the typed payload for a payment method.

    Methods without a payload (cash, pix) accept only an empty payload.
    Card payments default to a single credit installment when no payload
    is given.

    Raises:
        ValidationError: Unknown method, unexpected keys, missing or
            malformed values
    """
    if method not in METHOD_DETAIL_TYPES:
        raise ValidationError(
            f"Unknown payment method: {method}",
            error_code="INVALID_METHOD",
            details={"method": method},
        )

    detail_type = METHOD_DETAIL_TYPES[method]
    payload = payload or {}
    if not isinstance(payload, dict):
        raise ValidationError("details must be an object", error_code="INVALID_METHOD_DETAILS")

    if detail_type is None:
        if payload:
            raise ValidationError(
                f"Payment method {method} does not accept details",
                error_code="INVALID_METHOD_DETAILS",
                details={"unexpected": sorted(payload)},
            )
        return None

    known = {f.name for f in dataclasses.fields(detail_type)}
    unexpected = sorted(set(payload) - known)
    if unexpected:
        raise ValidationError(
            f"Unexpected details for {method}: {', '.join(unexpected)}",
            error_code="INVALID_METHOD_DETAILS",
            details={"unexpected": unexpected},
        )

    try:
        return detail_type(**payload)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid details for {method}: {exc}",
            error_code="INVALID_METHOD_DETAILS",
            details={"method": method},
        )


def details_to_payload(details: MethodDetails | None) -> dict[str, Any]:
    """Serialize a typed payload for the JSON column."""
    if details is None:
        return {}
    payload = dataclasses.asdict(details)
    return {key: list(value) if isinstance(value, tuple) else value for key, value in payload.items()}


# =============================================================================
# Recorder parameters
# =============================================================================


@dataclass
class RecordPaymentParams:
    """
    Parameters for appending a payment entry to the open session.

    Required Attributes:
        kind: sale, expense or debt_payment (cancellations have their own path)
        amount_cents: Signed amount; positive for sale/debt_payment,
            negative for expense
        method: PaymentMethod value

    Optional Attributes:
        reference_id: External order/payment id
        details: Raw method payload, validated into a typed payload
        description: Free text
        session_id: Session the caller believes is open; must match

    Example:
        params = RecordPaymentParams(
            kind=EntryKind.EXPENSE,
            amount_cents=-2000,
            method=PaymentMethod.CASH,
            description="Cleaning supplies",
        )
    """

    kind: str
    amount_cents: int
    method: str
    reference_id: str | None = None
    details: dict[str, Any] | None = None
    description: str | None = None
    session_id: Any = None

    parsed_details: MethodDetails | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Validate params after initialization."""
        if self.kind not in EntryKind.values:
            raise ValidationError(
                f"Unknown entry kind: {self.kind}",
                error_code="INVALID_KIND",
                details={"kind": self.kind},
            )
        if self.kind == EntryKind.CANCELLATION:
            raise ValidationError(
                "Cancellations are recorded against an existing entry",
                error_code="INVALID_KIND",
                details={"kind": self.kind},
            )
        if isinstance(self.amount_cents, bool) or not isinstance(self.amount_cents, int):
            raise ValidationError(
                "amount_cents must be an integer number of cents",
                error_code="INVALID_AMOUNT",
            )
        if self.kind in POSITIVE_KINDS and self.amount_cents <= 0:
            raise ValidationError(
                f"{self.kind} amount must be positive",
                error_code="INVALID_AMOUNT_SIGN",
                details={"kind": self.kind, "amount_cents": self.amount_cents},
            )
        if self.kind == EntryKind.EXPENSE and self.amount_cents >= 0:
            raise ValidationError(
                "expense amount must be negative",
                error_code="INVALID_AMOUNT_SIGN",
                details={"kind": self.kind, "amount_cents": self.amount_cents},
            )
        self.parsed_details = parse_method_details(self.method, self.details)
