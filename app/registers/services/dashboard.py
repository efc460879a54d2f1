"""
Dashboard and sales aggregation helpers.

Simple derived reports over ledger entries: today/yesterday totals, weekly
counts, growth percentage, most recent entries and a per-day sales series.
The fold functions take any objects with ``kind``, ``amount_cents`` and
``recorded_at``, plus an explicit ``today`` where the result depends on the
date. build_dashboard() is the only function that touches the database.

Growth percentage:
    previous == 0 and current == 0 -> 0
    previous == 0 and current > 0  -> 100
    otherwise round((current - previous) / previous * 100), halves rounded up
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Protocol

from django.conf import settings
from django.utils import timezone

from registers.ledger.models import EntryKind, LedgerEntry
from registers.services.summary import net_of_cancellations

DEFAULT_RECENT_LIMIT = 5
SALES_PERIODS = (7, 30, 180)


class DatedEntry(Protocol):
    kind: str
    amount_cents: int
    recorded_at: datetime.datetime


def entry_date(entry: DatedEntry) -> datetime.date:
    """Calendar day of an entry in the current time zone."""
    return timezone.localtime(entry.recorded_at).date()


def entries_on(entries: Iterable[DatedEntry], day: datetime.date) -> list[DatedEntry]:
    return [entry for entry in entries if entry_date(entry) == day]


def today_entries(entries: Iterable[DatedEntry], today: datetime.date | None = None) -> list[DatedEntry]:
    return entries_on(entries, today or timezone.localdate())


def yesterday_entries(
    entries: Iterable[DatedEntry], today: datetime.date | None = None
) -> list[DatedEntry]:
    today = today or timezone.localdate()
    return entries_on(entries, today - datetime.timedelta(days=1))


def sales_total(entries: Iterable[DatedEntry]) -> int:
    """Sum of sale amounts in cents."""
    return sum(entry.amount_cents for entry in entries if entry.kind == EntryKind.SALE)


def sales_count(entries: Iterable[DatedEntry]) -> int:
    return sum(1 for entry in entries if entry.kind == EntryKind.SALE)


def sales_growth_percentage(current: int, previous: int) -> int:
    """Percent change from previous to current, as an integer."""
    if previous == 0:
        return 100 if current > 0 else 0
    change = Decimal(current - previous) * 100 / Decimal(previous)
    return int((change + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def week_bounds(today: datetime.date) -> tuple[datetime.date, datetime.date]:
    """Sunday and Saturday of the week containing today."""
    days_since_sunday = (today.weekday() + 1) % 7
    start = today - datetime.timedelta(days=days_since_sunday)
    return start, start + datetime.timedelta(days=6)


def weekly_count(
    entries: Iterable[DatedEntry],
    kind: str = EntryKind.SALE,
    today: datetime.date | None = None,
) -> int:
    """Number of entries of a kind in the current Sunday-Saturday week."""
    start, end = week_bounds(today or timezone.localdate())
    return sum(1 for entry in entries if entry.kind == kind and start <= entry_date(entry) <= end)


def recent_entries(entries: Iterable[DatedEntry], limit: int = DEFAULT_RECENT_LIMIT) -> list[DatedEntry]:
    """Newest first, at most limit entries."""
    return sorted(entries, key=lambda entry: entry.recorded_at, reverse=True)[:limit]


@dataclass(frozen=True)
class SalesPoint:
    date: datetime.date
    sales_cents: int
    sales_count: int


def sales_by_period(
    entries: Iterable[DatedEntry],
    days: int,
    today: datetime.date | None = None,
) -> list[SalesPoint]:
    """One point per day for the last `days` days, oldest first, today included."""
    today = today or timezone.localdate()
    start = today - datetime.timedelta(days=days - 1)
    totals = {start + datetime.timedelta(days=offset): [0, 0] for offset in range(days)}
    for entry in entries:
        if entry.kind != EntryKind.SALE:
            continue
        bucket = totals.get(entry_date(entry))
        if bucket is not None:
            bucket[0] += entry.amount_cents
            bucket[1] += 1
    return [SalesPoint(date=day, sales_cents=cents, sales_count=count) for day, (cents, count) in totals.items()]


@dataclass(frozen=True)
class DashboardSnapshot:
    today: datetime.date
    today_sales_cents: int
    yesterday_sales_cents: int
    sales_growth_percentage: int
    today_sales_count: int
    weekly_sales_count: int
    recent_entries: Sequence[LedgerEntry]
    sales_series: Sequence[SalesPoint]


def build_dashboard(period_days: int = 7, today: datetime.date | None = None) -> DashboardSnapshot:
    """
    Load the entries the dashboard needs and fold them.

    Totals are net of cancellations and only need the loaded window. The
    recent list is queried on its own, so it is never empty while any entry
    exists. It shows raw entries, cancellations included, as they were recorded.
    """
    today = today or timezone.localdate()
    window_start = today - datetime.timedelta(days=max(period_days, 8))
    raw = list(
        LedgerEntry.objects.filter(recorded_at__date__gte=window_start).select_related(
            "cancellation"
        )
    )
    counted = net_of_cancellations(raw)
    today_list = today_entries(counted, today)
    today_total = sales_total(today_list)
    yesterday_total = sales_total(yesterday_entries(counted, today))
    limit = getattr(settings, "REGISTER_DASHBOARD_RECENT_LIMIT", DEFAULT_RECENT_LIMIT)

    return DashboardSnapshot(
        today=today,
        today_sales_cents=today_total,
        yesterday_sales_cents=yesterday_total,
        sales_growth_percentage=sales_growth_percentage(today_total, yesterday_total),
        today_sales_count=sales_count(today_list),
        weekly_sales_count=weekly_count(counted, EntryKind.SALE, today),
        recent_entries=list(
            LedgerEntry.objects.select_related("cancellation").order_by(
                "-recorded_at", "-sequence"
            )[:limit]
        ),
        sales_series=sales_by_period(counted, period_days, today),
    )
