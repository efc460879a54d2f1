"""
Pytest fixtures for register tests.

Usage:
    def test_close(open_session, operator_user):
        result = RegisterLifecycleService.close(open_session.id, 10000, actor=operator_user)
        assert result.classification == ReconciliationClassification.EXACT
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from registers.services import RegisterLifecycleService
from registers.tests.factories import UserFactory

# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def operator_user(db):
    """User holding registers.operate_register."""
    return UserFactory(operator=True)


@pytest.fixture
def plain_user(db):
    """Authenticated user without register permissions."""
    return UserFactory()


# =============================================================================
# Session Fixtures
# =============================================================================


@pytest.fixture
def open_session(operator_user):
    """Register opened through the service with R$100.00 in the till."""
    return RegisterLifecycleService.open(
        opening_balance_cents=10000,
        actor=operator_user,
        observations="morning shift",
    )


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, some_user):
            client = authenticated_client_factory(some_user)
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


@pytest.fixture
def operator_client(authenticated_client_factory, operator_user):
    return authenticated_client_factory(operator_user)


@pytest.fixture
def plain_client(authenticated_client_factory, plain_user):
    return authenticated_client_factory(plain_user)
