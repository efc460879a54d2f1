"""
Register session and daily summaries.

Read-only reports over ledger entries. Totals are net of cancellations: a
cancelled entry and its cancellation are both left out of the per-kind
totals and reported separately under cancelled_*.

Usage:
    from registers.services import RegisterSummaryService

    summary = RegisterSummaryService.session_summary(session.id)
    summary.sales_total_cents
    summary.sales_by_method  # {"cash": 5000, "card": 3000}

    daily = RegisterSummaryService.daily_summary(datetime.date(2024, 3, 1))
"""

from __future__ import annotations

import datetime
import uuid
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from core.exceptions import NotFoundError
from core.services import BaseService
from registers.exceptions import SessionNotFoundError
from registers.ledger.models import EntryKind, LedgerEntry
from registers.ledger.types import is_cash_equivalent
from registers.models import RegisterSession


def net_of_cancellations(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Entries that still count: drops cancellations and the entries they offset."""
    entries = list(entries)
    cancelled_ids = {entry.cancels_id for entry in entries if entry.kind == EntryKind.CANCELLATION}
    return [
        entry
        for entry in entries
        if entry.kind != EntryKind.CANCELLATION and entry.id not in cancelled_ids
    ]


@dataclass
class EntryTotals:
    """
    Per-kind totals in cents. Expenses are reported as a positive outflow.

    cash_in_cents and cash_out_cents only count cash-equivalent methods, so
    opening balance + cash_in - cash_out is the cash the drawer should hold.
    """

    sales_total_cents: int = 0
    sales_count: int = 0
    sales_by_method: dict[str, int] = field(default_factory=dict)
    debt_payments_total_cents: int = 0
    debt_payments_by_method: dict[str, int] = field(default_factory=dict)
    expenses_total_cents: int = 0
    expenses_by_method: dict[str, int] = field(default_factory=dict)
    cancelled_count: int = 0
    cancelled_total_cents: int = 0
    cash_in_cents: int = 0
    cash_out_cents: int = 0

    @classmethod
    def from_entries(cls, entries: Iterable[LedgerEntry]) -> EntryTotals:
        entries = list(entries)
        totals = cls()
        sales = defaultdict(int)
        debts = defaultdict(int)
        expenses = defaultdict(int)

        for entry in net_of_cancellations(entries):
            if entry.kind == EntryKind.SALE:
                totals.sales_total_cents += entry.amount_cents
                totals.sales_count += 1
                sales[entry.method] += entry.amount_cents
            elif entry.kind == EntryKind.DEBT_PAYMENT:
                totals.debt_payments_total_cents += entry.amount_cents
                debts[entry.method] += entry.amount_cents
            elif entry.kind == EntryKind.EXPENSE:
                totals.expenses_total_cents -= entry.amount_cents
                expenses[entry.method] -= entry.amount_cents

            if is_cash_equivalent(entry.method):
                if entry.amount_cents > 0:
                    totals.cash_in_cents += entry.amount_cents
                else:
                    totals.cash_out_cents -= entry.amount_cents

        for entry in entries:
            if entry.kind == EntryKind.CANCELLATION:
                totals.cancelled_count += 1
                totals.cancelled_total_cents -= entry.amount_cents

        totals.sales_by_method = dict(sales)
        totals.debt_payments_by_method = dict(debts)
        totals.expenses_by_method = dict(expenses)
        return totals

    def merge(self, other: EntryTotals) -> None:
        self.sales_total_cents += other.sales_total_cents
        self.sales_count += other.sales_count
        self.debt_payments_total_cents += other.debt_payments_total_cents
        self.expenses_total_cents += other.expenses_total_cents
        self.cancelled_count += other.cancelled_count
        self.cancelled_total_cents += other.cancelled_total_cents
        self.cash_in_cents += other.cash_in_cents
        self.cash_out_cents += other.cash_out_cents
        for target, source in (
            (self.sales_by_method, other.sales_by_method),
            (self.debt_payments_by_method, other.debt_payments_by_method),
            (self.expenses_by_method, other.expenses_by_method),
        ):
            for method, amount in source.items():
                target[method] = target.get(method, 0) + amount


@dataclass
class SessionSummary:
    session_id: uuid.UUID
    status: str
    opened_at: datetime.datetime
    closed_at: datetime.datetime | None
    opening_balance_cents: int
    balance_cents: int
    entry_count: int
    totals: EntryTotals


@dataclass
class DailySummary:
    date: datetime.date
    session_count: int
    opening_balance_cents: int
    balance_cents: int
    totals: EntryTotals


class RegisterSummaryService(BaseService):
    """Session and daily reports over recorded entries."""

    @staticmethod
    def _balance_cents(session: RegisterSession) -> int:
        # Closed sessions report the balance frozen at close
        if session.is_open or session.expected_balance_cents is None:
            return session.current_balance_cents()
        return session.expected_balance_cents

    @classmethod
    def session_summary(cls, session_id: uuid.UUID | str) -> SessionSummary:
        """
        Summarize one session.

        Raises:
            SessionNotFoundError: Unknown session id
        """
        session = RegisterSession.objects.filter(id=session_id).first()
        if session is None:
            raise SessionNotFoundError(
                f"Register session {session_id} not found",
                details={"session_id": str(session_id)},
            )
        entries = list(session.entries.all())
        return SessionSummary(
            session_id=session.id,
            status=session.status,
            opened_at=session.opened_at,
            closed_at=session.closed_at,
            opening_balance_cents=session.opening_balance_cents,
            balance_cents=cls._balance_cents(session),
            entry_count=len(entries),
            totals=EntryTotals.from_entries(entries),
        )

    @classmethod
    def daily_summary(cls, day: datetime.date) -> DailySummary:
        """
        Summarize every session opened on a calendar day.

        Raises:
            NotFoundError: No session was opened that day
        """
        sessions = list(
            RegisterSession.objects.filter(opened_at__date=day)
            .prefetch_related("entries")
            .order_by("opened_at")
        )
        if not sessions:
            raise NotFoundError(
                f"No register sessions opened on {day.isoformat()}",
                error_code="NO_SESSIONS_FOR_DATE",
                details={"date": day.isoformat()},
            )

        totals = EntryTotals()
        for session in sessions:
            totals.merge(EntryTotals.from_entries(session.entries.all()))

        return DailySummary(
            date=day,
            session_count=len(sessions),
            opening_balance_cents=sum(s.opening_balance_cents for s in sessions),
            balance_cents=sum(cls._balance_cents(s) for s in sessions),
            totals=totals,
        )
