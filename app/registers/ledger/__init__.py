"""
Ledger - Append-only record of money movements in a register session.

Public API:
    Models (registers.ledger.models):
        LedgerEntry - One immutable money movement
        EntryKind - sale, expense, debt_payment, cancellation
        PaymentMethod - cash, card, pix, check, bank_slip, promissory_note, gateway

    Types (registers.ledger.types):
        Money - Integer-cent amount with a single major-unit conversion
        RecordPaymentParams - Validated recorder input
        CASH_EQUIVALENT_METHODS - Which methods move physical cash
        parse_method_details - Typed payload per payment method

    Service (registers.ledger.services):
        PaymentRecorder - Appends payments and cancellations to the open session

Usage:
    from registers.ledger.models import EntryKind, PaymentMethod
    from registers.ledger.services import PaymentRecorder

    entry = PaymentRecorder.record_payment(
        kind=EntryKind.SALE,
        amount_cents=5000,
        method=PaymentMethod.CASH,
        actor=user,
        reference_id="order-42",
    )
    offset = PaymentRecorder.record_cancellation(entry.id, actor=user)

Note:
    Submodules are imported directly; this package does not re-export them
    because registers.models loads the ledger models during app setup.
"""
