"""
State enums for register models.

These are Django TextChoices for database storage and admin integration.
RegisterSessionStatus is the django-fsm state of a RegisterSession.

State Machine Overview:

RegisterSession States:
    open → closed (single irreversible transition)

System-wide there is also the derived state "no session open", which holds
whenever no RegisterSession row has status=open. The database enforces that
at most one row is open.

Reconciliation Classification (set when a session closes):
    exact    difference == 0
    shortage difference < 0 (less cash counted than expected)
    surplus  difference > 0 (more cash counted than expected)
"""

from django.db import models


class RegisterSessionStatus(models.TextChoices):
    """
    States for the RegisterSession lifecycle.

    Terminal states: CLOSED

    State Flow:
        OPEN → CLOSED
    """

    OPEN = "open", "Open"
    CLOSED = "closed", "Closed"


class ReconciliationClassification(models.TextChoices):
    """Outcome of comparing declared and expected closing balances."""

    EXACT = "exact", "Exact"
    SHORTAGE = "shortage", "Shortage"
    SURPLUS = "surplus", "Surplus"
