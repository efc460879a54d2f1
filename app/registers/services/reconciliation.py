"""
Reconciliation calculator.

Pure, deterministic functions: no database writes, no clock, no logging.
Entries are any objects exposing ``method`` and ``amount_cents`` (model
instances or plain records), which keeps the arithmetic testable on its own.

Rules:
    expected = opening balance + sum of amounts of cash-equivalent entries
    difference = declared - expected
    classification: exact (== 0), shortage (< 0), surplus (> 0)

Cancellations carry the method of the entry they offset, so they are
included or excluded by exactly the same rule as the original.

Usage:
    from registers.services.reconciliation import reconcile

    result = reconcile(10000, session.entries.all(), declared_closing_balance_cents=12500)
    result.classification  # "shortage"
    result.difference_cents  # -500
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Protocol

from registers.ledger.types import is_cash_equivalent
from registers.state_machines import ReconciliationClassification

if TYPE_CHECKING:
    from registers.models import RegisterSession


class EntryLike(Protocol):
    method: str
    amount_cents: int


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Comparison of the declared closing balance against the expected one.

    Attributes:
        expected_balance_cents: Opening balance plus cash-equivalent entries
        declared_closing_balance_cents: Cash counted by the operator
        difference_cents: declared - expected
        classification: exact, shortage or surplus
    """

    expected_balance_cents: int
    declared_closing_balance_cents: int
    difference_cents: int
    classification: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def expected_balance(opening_balance_cents: int, entries: Iterable[EntryLike]) -> int:
    """Opening balance plus the signed amounts of cash-equivalent entries."""
    return opening_balance_cents + sum(
        entry.amount_cents for entry in entries if is_cash_equivalent(entry.method)
    )


def classify(difference_cents: int) -> str:
    """Classify a reconciliation difference."""
    if difference_cents == 0:
        return ReconciliationClassification.EXACT
    if difference_cents < 0:
        return ReconciliationClassification.SHORTAGE
    return ReconciliationClassification.SURPLUS


def reconcile(
    opening_balance_cents: int,
    entries: Iterable[EntryLike],
    declared_closing_balance_cents: int,
) -> ReconciliationResult:
    """
    Reconcile a declared closing balance against the entries of a session.

    A non-zero difference is reported, never raised.
    """
    expected = expected_balance(opening_balance_cents, entries)
    difference = declared_closing_balance_cents - expected
    return ReconciliationResult(
        expected_balance_cents=expected,
        declared_closing_balance_cents=declared_closing_balance_cents,
        difference_cents=difference,
        classification=classify(difference),
    )


def reconcile_session(
    session: RegisterSession, declared_closing_balance_cents: int
) -> ReconciliationResult:
    """Reconcile using the persisted entries of a session."""
    entries = session.entries.only("method", "amount_cents")
    return reconcile(session.opening_balance_cents, entries, declared_closing_balance_cents)
