"""
Register domain models.

This module exposes all register models so Django's app registry finds them:
- RegisterSession: One open-to-close cycle of the cash till
- LedgerEntry: Append-only money movement inside a session (defined in
  registers.ledger.models)
"""

from registers.ledger.models import EntryKind, LedgerEntry, PaymentMethod
from registers.models.register_session import RegisterSession

__all__ = [
    "EntryKind",
    "LedgerEntry",
    "PaymentMethod",
    "RegisterSession",
]
