from __future__ import annotations

from escrow.models import Escrow, Transaction


def log_transaction(
    *,
    escrow: Escrow,
    kind: str,
    amount: int,
    user=None,
    reason: str = "",
    status: str = Transaction.Status.PENDING,
) -> Transaction:
    """
    Create and return a Transaction row for money the platform must move.

    This is a thin helper; execution happens in escrow.tasks.
    """
    return Transaction.objects.create(
        escrow=escrow,
        user=user,
        kind=kind,
        amount=amount,
        currency=escrow.currency,
        reason=reason,
        status=status,
    )


def pending_refunds_queryset():
    return (
        Transaction.objects.filter(
            kind=Transaction.Kind.REFUND,
            status=Transaction.Status.PENDING,
        )
        .select_related("escrow", "escrow__payment")
        .order_by("created_at")
    )
