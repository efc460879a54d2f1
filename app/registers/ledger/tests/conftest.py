"""Pytest fixtures for ledger tests; shared with the register tests."""

from registers.tests.conftest import open_session, operator_user, plain_user  # noqa: F401
