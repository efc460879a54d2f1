"""
State machine enums for register models.
"""

from registers.state_machines.states import (
    ReconciliationClassification,
    RegisterSessionStatus,
)

__all__ = [
    "ReconciliationClassification",
    "RegisterSessionStatus",
]
