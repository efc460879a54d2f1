"""
Registers app: cash register lifecycle and payment reconciliation.

This app handles:
- Opening and closing register sessions (at most one open at a time)
- Recording sales, expenses and debt payments against the open session
- Offsetting cancellations (the ledger is append-only)
- Reconciling the declared closing balance against the expected balance
- Session, daily and dashboard reports over recorded entries

Usage:
    from registers.services import RegisterLifecycleService
    from registers.ledger.services import PaymentRecorder
    from registers.ledger.models import EntryKind, PaymentMethod

    session = RegisterLifecycleService.open(opening_balance_cents=10000, actor=user)
    PaymentRecorder.record_payment(
        kind=EntryKind.SALE, amount_cents=5000, method=PaymentMethod.CASH, actor=user
    )
    result = RegisterLifecycleService.close(session.id, 15000, actor=user)
"""
