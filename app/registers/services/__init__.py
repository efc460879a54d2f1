"""
Register services.

- RegisterLifecycleService: open/close/query register sessions
- RegisterSummaryService: session and daily reports
- reconciliation: pure reconciliation calculator
- dashboard: dashboard/sales aggregation helpers

The payment recorder lives with the ledger in registers.ledger.services.
"""

from registers.services.lifecycle import CurrentRegister, RegisterLifecycleService
from registers.services.reconciliation import ReconciliationResult, reconcile
from registers.services.summary import RegisterSummaryService

__all__ = [
    "CurrentRegister",
    "ReconciliationResult",
    "RegisterLifecycleService",
    "RegisterSummaryService",
    "reconcile",
]
