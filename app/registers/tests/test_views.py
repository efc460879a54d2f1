"""
Tests for registers API views.

Test Organization:
    - One class per endpoint
    - Tests follow pattern: test_<scenario>_<expected_outcome>

Amounts go in as decimal strings in major units and come back as integer
cents in *_cents fields.
"""

import datetime
import uuid
from unittest.mock import patch

from django.utils import timezone
from rest_framework import status

from registers.ledger.models import EntryKind, PaymentMethod
from registers.models import RegisterSession
from registers.state_machines import RegisterSessionStatus
from registers.tests.factories import LedgerEntryFactory, RegisterSessionFactory

# =============================================================================
# URL Constants
# =============================================================================

BASE_URL = "/api/v1/registers/"
SESSIONS_URL = f"{BASE_URL}sessions/"
OPEN_URL = f"{SESSIONS_URL}open/"
CURRENT_URL = f"{SESSIONS_URL}current/"
DAILY_SUMMARY_URL = f"{SESSIONS_URL}summary/daily/"
ENTRIES_URL = f"{BASE_URL}entries/"
DASHBOARD_URL = f"{BASE_URL}dashboard/"


def session_url(session_id, action=""):
    """Generate URL for a session detail or detail action."""
    suffix = f"{action}/" if action else ""
    return f"{SESSIONS_URL}{session_id}/{suffix}"


def entry_url(entry_id, action=""):
    suffix = f"{action}/" if action else ""
    return f"{ENTRIES_URL}{entry_id}/{suffix}"


# =============================================================================
# Sessions
# =============================================================================


class TestOpenRegister:
    """Tests for POST /api/v1/registers/sessions/open/."""

    def test_opens_register(self, operator_client, operator_user):
        response = operator_client.post(
            OPEN_URL,
            {"opening_balance": "100.00", "observations": "morning shift"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == RegisterSessionStatus.OPEN
        assert response.data["opening_balance_cents"] == 10000
        assert response.data["current_balance_cents"] == 10000
        assert response.data["opened_by_id"] == operator_user.id
        assert response.data["observations_open"] == "morning shift"

    def test_already_open_conflict(self, operator_client, open_session):
        response = operator_client.post(OPEN_URL, {"opening_balance": "50.00"}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "REGISTER_ALREADY_OPEN"
        assert response.data["details"]["open_session_id"] == str(open_session.id)

    def test_negative_balance_rejected(self, operator_client):
        response = operator_client.post(OPEN_URL, {"opening_balance": "-1.00"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not RegisterSession.objects.exists()

    def test_sub_cent_amount_rejected(self, operator_client):
        response = operator_client.post(OPEN_URL, {"opening_balance": "10.005"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_balance_rejected(self, operator_client):
        response = operator_client.post(OPEN_URL, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "opening_balance" in response.data

    def test_requires_operator_permission(self, plain_client):
        response = plain_client.post(OPEN_URL, {"opening_balance": "100.00"}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not RegisterSession.objects.exists()

    def test_requires_authentication(self, api_client, db):
        response = api_client.post(OPEN_URL, {"opening_balance": "100.00"}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestCloseRegister:
    """Tests for POST /api/v1/registers/sessions/{id}/close/."""

    def test_close_with_shortage(self, operator_client, open_session):
        LedgerEntryFactory(session=open_session, amount_cents=5000)

        response = operator_client.post(
            session_url(open_session.id, "close"),
            {"declared_closing_balance": "145.00", "observations": "counted twice"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            "expected_balance_cents": 15000,
            "declared_closing_balance_cents": 14500,
            "difference_cents": -500,
            "classification": "shortage",
        }
        open_session.refresh_from_db()
        assert open_session.status == RegisterSessionStatus.CLOSED

    def test_close_twice_conflict(self, operator_client, open_session):
        url = session_url(open_session.id, "close")
        operator_client.post(url, {"declared_closing_balance": "100.00"}, format="json")

        response = operator_client.post(url, {"declared_closing_balance": "100.00"}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "SESSION_ALREADY_CLOSED"

    def test_unknown_session(self, operator_client):
        response = operator_client.post(
            session_url(uuid.uuid4(), "close"),
            {"declared_closing_balance": "100.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "SESSION_NOT_FOUND"

    def test_negative_declared_balance(self, operator_client, open_session):
        response = operator_client.post(
            session_url(open_session.id, "close"),
            {"declared_closing_balance": "-5.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "NEGATIVE_BALANCE"

    def test_requires_operator_permission(self, plain_client, open_session):
        response = plain_client.post(
            session_url(open_session.id, "close"),
            {"declared_closing_balance": "100.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestCurrentRegister:
    """Tests for GET /api/v1/registers/sessions/current/."""

    def test_no_open_register(self, plain_client):
        response = plain_client.get(CURRENT_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"is_open": False, "session": None}

    def test_open_register(self, plain_client, open_session):
        LedgerEntryFactory(session=open_session, amount_cents=2500)

        response = plain_client.get(CURRENT_URL)

        assert response.data["is_open"] is True
        assert response.data["session"]["id"] == str(open_session.id)
        assert response.data["session"]["current_balance_cents"] == 12500

    def test_balance_computed_once(self, plain_client, open_session):
        """The serializer reuses the balance get_current() already computed."""
        with patch.object(
            RegisterSession, "current_balance_cents", autospec=True, return_value=12500
        ) as balance:
            response = plain_client.get(CURRENT_URL)

        assert response.data["session"]["current_balance_cents"] == 12500
        assert balance.call_count == 1


class TestSessionDetail:
    """Tests for GET /api/v1/registers/sessions/{id}/."""

    def test_includes_entries(self, plain_client, open_session):
        sale = LedgerEntryFactory(session=open_session)
        LedgerEntryFactory(
            session=open_session, kind=EntryKind.CANCELLATION, amount_cents=-5000, cancels=sale
        )

        response = plain_client.get(session_url(open_session.id))

        assert response.status_code == status.HTTP_200_OK
        entries = response.data["entries"]
        assert [e["sequence"] for e in entries] == [1, 2]
        assert entries[0]["cancelled_by_id"] == str(entries[1]["id"])
        assert entries[1]["cancels_id"] == str(sale.id)
        assert response.data["reconciliation"] is None

    def test_closed_session_has_reconciliation(self, plain_client, db):
        session = RegisterSessionFactory(
            status=RegisterSessionStatus.CLOSED,
            closing_balance_declared_cents=10200,
            expected_balance_cents=10000,
            difference_cents=200,
            classification="surplus",
            closed_at=timezone.now(),
        )

        response = plain_client.get(session_url(session.id))

        assert response.data["current_balance_cents"] is None
        assert response.data["reconciliation"]["classification"] == "surplus"
        assert response.data["reconciliation"]["difference_cents"] == 200

    def test_not_found(self, plain_client):
        response = plain_client.get(session_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestSessionList:
    """Tests for GET /api/v1/registers/sessions/."""

    def test_paginated_newest_first(self, plain_client, db):
        now = timezone.now()
        older = RegisterSessionFactory(
            status=RegisterSessionStatus.CLOSED, opened_at=now - datetime.timedelta(days=1)
        )
        newer = RegisterSessionFactory(opened_at=now)

        response = plain_client.get(SESSIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 2
        assert [s["id"] for s in response.data["results"]] == [str(newer.id), str(older.id)]

    def test_filter_by_status(self, plain_client, db):
        RegisterSessionFactory(status=RegisterSessionStatus.CLOSED)
        open_one = RegisterSessionFactory()

        response = plain_client.get(SESSIONS_URL, {"status": "open"})

        assert [s["id"] for s in response.data["results"]] == [str(open_one.id)]

    def test_search_observations(self, plain_client, db):
        match = RegisterSessionFactory(
            status=RegisterSessionStatus.CLOSED, observations_close="Till short after Inventory"
        )
        RegisterSessionFactory(observations_open="morning shift")

        response = plain_client.get(SESSIONS_URL, {"search": "inventory"})

        assert [s["id"] for s in response.data["results"]] == [str(match.id)]

    def test_invalid_date_range(self, plain_client):
        response = plain_client.get(
            SESSIONS_URL, {"opened_from": "2024-03-10", "opened_to": "2024-03-01"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSessionSummaries:
    """Tests for the session and daily summary endpoints."""

    def test_session_summary(self, plain_client, open_session):
        LedgerEntryFactory(session=open_session, amount_cents=5000)
        LedgerEntryFactory(session=open_session, amount_cents=3000, method=PaymentMethod.CARD)

        response = plain_client.get(session_url(open_session.id, "summary"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["balance_cents"] == 15000
        assert response.data["totals"]["sales_total_cents"] == 8000
        assert response.data["totals"]["sales_by_method"] == {"cash": 5000, "card": 3000}
        assert response.data["totals"]["cash_in_cents"] == 5000
        assert response.data["totals"]["cash_out_cents"] == 0

    def test_daily_summary_defaults_to_today(self, plain_client, open_session):
        response = plain_client.get(DAILY_SUMMARY_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["session_count"] == 1
        assert response.data["date"] == timezone.localdate().isoformat()

    def test_daily_summary_no_sessions(self, plain_client):
        response = plain_client.get(DAILY_SUMMARY_URL, {"date": "2020-01-01"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "NO_SESSIONS_FOR_DATE"


# =============================================================================
# Entries
# =============================================================================


class TestRecordPayment:
    """Tests for POST /api/v1/registers/entries/."""

    def test_records_sale(self, operator_client, open_session):
        response = operator_client.post(
            ENTRIES_URL,
            {"kind": "sale", "amount": "50.00", "method": "cash", "reference_id": "order-1"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["amount_cents"] == 5000
        assert response.data["sequence"] == 1
        assert response.data["session_id"] == str(open_session.id)
        assert response.data["reference_id"] == "order-1"

    def test_records_card_with_details(self, operator_client, open_session):
        response = operator_client.post(
            ENTRIES_URL,
            {
                "kind": "sale",
                "amount": "120.00",
                "method": "card",
                "details": {"installments": 3},
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["details"] == {"installments": 3, "card_type": "credit"}

    def test_expense_must_be_negative(self, operator_client, open_session):
        response = operator_client.post(
            ENTRIES_URL,
            {"kind": "expense", "amount": "20.00", "method": "cash"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_AMOUNT_SIGN"

    def test_no_open_register(self, operator_client):
        response = operator_client.post(
            ENTRIES_URL,
            {"kind": "sale", "amount": "50.00", "method": "cash"},
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "NO_OPEN_SESSION"

    def test_cancellation_kind_not_accepted(self, operator_client, open_session):
        response = operator_client.post(
            ENTRIES_URL,
            {"kind": "cancellation", "amount": "-50.00", "method": "cash"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_details(self, operator_client, open_session):
        response = operator_client.post(
            ENTRIES_URL,
            {"kind": "sale", "amount": "50.00", "method": "check", "details": {}},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_METHOD_DETAILS"

    def test_requires_operator_permission(self, plain_client, open_session):
        response = plain_client.post(
            ENTRIES_URL,
            {"kind": "sale", "amount": "50.00", "method": "cash"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestEntryDetailAndCancel:
    """Tests for GET /entries/{id}/ and POST /entries/{id}/cancel/."""

    def test_get_entry(self, plain_client, open_session):
        sale = LedgerEntryFactory(session=open_session)

        response = plain_client.get(entry_url(sale.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == str(sale.id)
        assert response.data["cancelled_by_id"] is None

    def test_get_unknown_entry(self, plain_client):
        response = plain_client.get(entry_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "ENTRY_NOT_FOUND"

    def test_cancel(self, operator_client, open_session):
        sale = LedgerEntryFactory(session=open_session, amount_cents=5000)

        response = operator_client.post(
            entry_url(sale.id, "cancel"), {"description": "wrong item"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["kind"] == EntryKind.CANCELLATION
        assert response.data["amount_cents"] == -5000
        assert response.data["cancels_id"] == str(sale.id)

    def test_cancel_twice_conflict(self, operator_client, open_session):
        sale = LedgerEntryFactory(session=open_session)
        operator_client.post(entry_url(sale.id, "cancel"), {}, format="json")

        response = operator_client.post(entry_url(sale.id, "cancel"), {}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "ALREADY_CANCELLED"


# =============================================================================
# Dashboard
# =============================================================================


class TestDashboard:
    """Tests for GET /api/v1/registers/dashboard/."""

    def test_default_period(self, plain_client, open_session):
        LedgerEntryFactory(session=open_session, amount_cents=5000)

        response = plain_client.get(DASHBOARD_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["today_sales_cents"] == 5000
        assert len(response.data["sales_series"]) == 7
        assert len(response.data["recent_entries"]) == 1

    def test_custom_period(self, plain_client):
        response = plain_client.get(DASHBOARD_URL, {"period": "30"})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data["sales_series"]) == 30

    def test_unsupported_period(self, plain_client):
        response = plain_client.get(DASHBOARD_URL, {"period": "15"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
