"""
Tests for the reconciliation calculator.

The calculator is pure, so these tests use plain records instead of model
instances. Property tests use hypothesis.
"""

from dataclasses import dataclass

import pytest
from hypothesis import given
from hypothesis import strategies as st

from registers.ledger.models import PaymentMethod
from registers.ledger.types import CASH_EQUIVALENT_METHODS
from registers.services.reconciliation import classify, expected_balance, reconcile
from registers.state_machines import ReconciliationClassification


@dataclass
class Entry:
    method: str
    amount_cents: int


entries_strategy = st.lists(
    st.builds(
        Entry,
        method=st.sampled_from(PaymentMethod.values),
        amount_cents=st.integers(min_value=-10**7, max_value=10**7).filter(bool),
    ),
    max_size=30,
)


class TestReconcile:
    """Example-based reconciliation tests."""

    def test_exact(self):
        entries = [Entry(PaymentMethod.CASH, 5000), Entry(PaymentMethod.CASH, -2000)]

        result = reconcile(10000, entries, 13000)

        assert result.expected_balance_cents == 13000
        assert result.difference_cents == 0
        assert result.classification == ReconciliationClassification.EXACT

    def test_shortage(self):
        entries = [Entry(PaymentMethod.CASH, 5000), Entry(PaymentMethod.CASH, -2000)]

        result = reconcile(10000, entries, 12500)

        assert result.difference_cents == -500
        assert result.classification == ReconciliationClassification.SHORTAGE

    def test_surplus(self):
        result = reconcile(10000, [], 10001)

        assert result.difference_cents == 1
        assert result.classification == ReconciliationClassification.SURPLUS

    def test_non_cash_methods_are_ignored(self):
        entries = [
            Entry(PaymentMethod.CARD, 7000),
            Entry(PaymentMethod.PIX, 3000),
            Entry(PaymentMethod.CHECK, 1500),
            Entry(PaymentMethod.CASH, 500),
        ]

        assert expected_balance(10000, entries) == 10500

    def test_cancellation_offsets_original(self):
        """A cancellation carries the original's method and negated amount."""
        entries = [Entry(PaymentMethod.CASH, 5000), Entry(PaymentMethod.CASH, -5000)]

        assert expected_balance(10000, entries) == 10000

    def test_to_dict(self):
        assert reconcile(100, [], 100).to_dict() == {
            "expected_balance_cents": 100,
            "declared_closing_balance_cents": 100,
            "difference_cents": 0,
            "classification": "exact",
        }

    @pytest.mark.parametrize(
        "difference,classification",
        [
            (0, ReconciliationClassification.EXACT),
            (-1, ReconciliationClassification.SHORTAGE),
            (1, ReconciliationClassification.SURPLUS),
        ],
    )
    def test_classify(self, difference, classification):
        assert classify(difference) == classification


class TestReconcileProperties:
    """Properties that hold for any set of entries."""

    @given(
        opening=st.integers(min_value=0, max_value=10**9),
        entries=entries_strategy,
        declared=st.integers(min_value=0, max_value=10**9),
    )
    def test_difference_is_declared_minus_expected(self, opening, entries, declared):
        result = reconcile(opening, entries, declared)

        assert result.difference_cents == declared - result.expected_balance_cents
        assert result.classification == classify(result.difference_cents)

    @given(opening=st.integers(min_value=0, max_value=10**9), entries=entries_strategy)
    def test_only_cash_equivalent_entries_count(self, opening, entries):
        cash_only = [e for e in entries if CASH_EQUIVALENT_METHODS[e.method]]

        assert expected_balance(opening, entries) == expected_balance(opening, cash_only)

    @given(opening=st.integers(min_value=0, max_value=10**9), entries=entries_strategy)
    def test_entry_order_does_not_matter(self, opening, entries):
        assert expected_balance(opening, entries) == expected_balance(
            opening, list(reversed(entries))
        )

    @given(opening=st.integers(min_value=0, max_value=10**9), entries=entries_strategy)
    def test_cancelling_every_entry_restores_opening(self, opening, entries):
        cancellations = [Entry(e.method, -e.amount_cents) for e in entries]

        assert expected_balance(opening, entries + cancellations) == opening

    @given(opening=st.integers(min_value=0, max_value=10**9), entries=entries_strategy)
    def test_declaring_expected_is_exact(self, opening, entries):
        expected = expected_balance(opening, entries)

        result = reconcile(opening, entries, expected)

        assert result.classification == ReconciliationClassification.EXACT
