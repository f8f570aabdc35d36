"""
Escrow lifecycle.

    created -> funded -> service_completed -> released
    funded | service_completed -> disputed
    funded | service_completed | disputed -> refunded

Every transition re-reads the row under ``select_for_update`` and writes with a
conditional ``UPDATE ... WHERE status IN (...)`` so two concurrent callers can
never both move the same escrow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from bookings.models import Booking
from core.errors import failed_precondition, not_found
from escrow.ledger import log_transaction
from escrow.models import Escrow, Transaction
from operator_core.audit import audit

logger = logging.getLogger(__name__)

MIN_PLATFORM_FEE_PERCENT = 0
MAX_PLATFORM_FEE_PERCENT = 30
DEFAULT_REFUND_REASON = "Booking cancelled"
AUTO_RELEASE_ACTOR = "auto"


@dataclass(frozen=True)
class RefundOutcome:
    escrow: Escrow
    refund_amount: int
    already_refunded: bool = False


@dataclass(frozen=True)
class ReleaseOutcome:
    escrow: Escrow
    release_amount: int
    platform_fee: int
    already_released: bool = False


def get_platform_fee_percent() -> int:
    configured = int(getattr(settings, "PLATFORM_FEE_PERCENT", 10))
    return min(max(configured, MIN_PLATFORM_FEE_PERCENT), MAX_PLATFORM_FEE_PERCENT)


def calculate_fees(total_amount: int, platform_fee_percent: int) -> tuple[int, int]:
    """Return ``(platform_fee, supplier_payout)``; the two always sum to the total."""
    platform_fee = int(round(total_amount * platform_fee_percent / 100))
    return platform_fee, total_amount - platform_fee


def create_escrow(*, booking: Booking, client, supplier, amount: int, currency: str) -> Escrow:
    fee_percent = get_platform_fee_percent()
    platform_fee, supplier_payout = calculate_fees(amount, fee_percent)
    escrow = Escrow.objects.create(
        booking=booking,
        client=client,
        supplier=supplier,
        total_amount=amount,
        platform_fee_percent=fee_percent,
        platform_fee=platform_fee,
        supplier_payout=supplier_payout,
        currency=currency,
        status=Escrow.Status.CREATED,
    )
    logger.info(
        "escrow %s created for booking %s total=%s fee=%s",
        escrow.pk,
        booking.pk,
        amount,
        platform_fee,
    )
    return escrow


def attach_payment(escrow: Escrow, payment) -> None:
    Escrow.objects.filter(pk=escrow.pk).update(payment=payment, updated_at=timezone.now())
    escrow.payment = payment


def _lock(escrow_id) -> Escrow:
    escrow = Escrow.objects.select_for_update().filter(pk=escrow_id).first()
    if escrow is None:
        raise not_found("escrow", escrow_id, message="Escrow não encontrado")
    return escrow


def _transition(escrow: Escrow, allowed, new_status: str, **fields) -> Escrow:
    """Conditionally move ``escrow`` to ``new_status``; caller holds the row lock."""
    previous = escrow.status
    updated = Escrow.objects.filter(pk=escrow.pk, status__in=list(allowed)).update(
        status=new_status, updated_at=timezone.now(), **fields
    )
    if updated != 1:
        escrow.refresh_from_db(fields=["status"])
        raise failed_precondition(
            f"Escrow {escrow.pk} moved from {previous} to {escrow.status} concurrently",
            message=f'Escrow não pode ser atualizado: status atual é "{escrow.status}"',
            details={"status": escrow.status},
        )
    escrow.refresh_from_db()
    logger.info("escrow %s transition %s -> %s", escrow.pk, previous, new_status)
    return escrow


def fund_escrow(escrow_id, *, payment_id=None) -> Escrow:
    """Mark the escrow funded once the provider confirms the payment. Idempotent."""
    with transaction.atomic():
        escrow = _lock(escrow_id)
        if escrow.status != Escrow.Status.CREATED:
            logger.info("escrow %s already funded (status: %s)", escrow.pk, escrow.status)
            return escrow

        fields = {"funded_at": timezone.now()}
        if payment_id is not None and escrow.payment_id is None:
            fields["payment_id"] = payment_id
        escrow = _transition(escrow, [Escrow.Status.CREATED], Escrow.Status.FUNDED, **fields)

        Booking.objects.filter(pk=escrow.booking_id).update(
            paid_amount=F("paid_amount") + escrow.total_amount,
            updated_at=timezone.now(),
        )
        booking = Booking.objects.get(pk=escrow.booking_id)
        booking.payment_status = (
            Booking.PaymentStatus.PAID if booking.is_fully_paid() else Booking.PaymentStatus.PARTIAL
        )
        if booking.payment_status == Booking.PaymentStatus.PARTIAL and booking.status in (
            Booking.Status.PENDING,
            Booking.Status.CONFIRMED,
        ):
            booking.status = Booking.Status.PARTIALLY_PAID
        booking.save(update_fields=["payment_status", "status", "updated_at"])
    return escrow


def mark_service_completed(escrow_id, *, auto_release_hours: int | None = None) -> Escrow:
    if auto_release_hours is None:
        auto_release_hours = int(getattr(settings, "ESCROW_AUTO_RELEASE_HOURS", 48))
    now = timezone.now()
    with transaction.atomic():
        escrow = _lock(escrow_id)
        if escrow.status != Escrow.Status.FUNDED:
            raise failed_precondition(
                f"Escrow {escrow.pk} cannot be marked completed from {escrow.status}",
                message=f'Escrow não pode ser concluído: status atual é "{escrow.status}"',
                details={"status": escrow.status},
            )
        return _transition(
            escrow,
            [Escrow.Status.FUNDED],
            Escrow.Status.SERVICE_COMPLETED,
            service_completed_at=now,
            auto_release_at=now + timedelta(hours=auto_release_hours),
        )


def open_dispute(escrow_id, *, reason: str) -> Escrow:
    with transaction.atomic():
        escrow = _lock(escrow_id)
        if escrow.status not in Escrow.DISPUTABLE_STATUSES:
            raise failed_precondition(
                f"Escrow {escrow.pk} cannot be disputed from {escrow.status}",
                message=f'Escrow não pode ser disputado: status atual é "{escrow.status}"',
                details={"status": escrow.status},
            )
        return _transition(
            escrow,
            Escrow.DISPUTABLE_STATUSES,
            Escrow.Status.DISPUTED,
            disputed_at=timezone.now(),
            dispute_reason=reason or "",
            auto_release_at=None,
        )


def refund_escrow(escrow_id, *, refunded_by: str, actor=None, reason: str | None = None):
    """
    Return the held funds to the client.

    Already-refunded escrows return the recorded amount without writing
    anything. The refund itself is queued as a pending REFUND transaction and
    executed by ``escrow.process_pending_refunds``.
    """
    reason = (reason or "").strip() or DEFAULT_REFUND_REASON
    with transaction.atomic():
        escrow = _lock(escrow_id)
        if escrow.status == Escrow.Status.REFUNDED:
            return RefundOutcome(
                escrow=escrow,
                refund_amount=escrow.refund_amount or escrow.total_amount,
                already_refunded=True,
            )
        if escrow.status not in Escrow.REFUNDABLE_STATUSES:
            raise failed_precondition(
                f"Escrow {escrow.pk} not refundable from {escrow.status}",
                message=f'Escrow não pode ser reembolsado: status atual é "{escrow.status}"',
                details={"status": escrow.status},
            )

        before = {"status": escrow.status}
        refund_amount = escrow.total_amount
        escrow = _transition(
            escrow,
            Escrow.REFUNDABLE_STATUSES,
            Escrow.Status.REFUNDED,
            refund_amount=refund_amount,
            refunded_by=refunded_by,
            refund_reason=reason,
            refunded_at=timezone.now(),
            auto_release_at=None,
        )
        refund_tx = log_transaction(
            escrow=escrow,
            kind=Transaction.Kind.REFUND,
            amount=refund_amount,
            user=escrow.client,
            reason=reason,
        )
        Booking.objects.filter(pk=escrow.booking_id).update(
            payment_status=Booking.PaymentStatus.REFUNDED,
            updated_at=timezone.now(),
        )
        audit(
            actor=actor,
            action="escrow.refunded",
            entity_type="escrow",
            entity_id=escrow.pk,
            reason=reason,
            before=before,
            after={"status": escrow.status, "refund_amount": refund_amount},
            meta={
                "booking_id": escrow.booking_id,
                "refunded_by": refunded_by,
                "refund_transaction_id": refund_tx.pk,
            },
        )
    return RefundOutcome(escrow=escrow, refund_amount=refund_amount)


def release_escrow(escrow_id, *, released_by: str, actor=None, notes: str | None = None):
    """Release funds to the supplier, keeping the platform fee. Idempotent."""
    notes = (notes or "").strip()
    with transaction.atomic():
        escrow = _lock(escrow_id)
        if escrow.status == Escrow.Status.RELEASED:
            return ReleaseOutcome(
                escrow=escrow,
                release_amount=escrow.release_amount or escrow.supplier_payout,
                platform_fee=escrow.platform_fee,
                already_released=True,
            )
        if escrow.status not in Escrow.RELEASABLE_STATUSES:
            raise failed_precondition(
                f"Escrow {escrow.pk} not releasable from {escrow.status}",
                message=f'Escrow não pode ser liberado: status atual é "{escrow.status}"',
                details={"status": escrow.status},
            )

        before = {"status": escrow.status}
        escrow = _transition(
            escrow,
            Escrow.RELEASABLE_STATUSES,
            Escrow.Status.RELEASED,
            release_amount=escrow.supplier_payout,
            released_by=released_by,
            release_notes=notes,
            released_at=timezone.now(),
            auto_release_at=None,
        )
        log_transaction(
            escrow=escrow,
            kind=Transaction.Kind.SUPPLIER_PAYOUT,
            amount=escrow.supplier_payout,
            user=escrow.supplier,
            reason=notes,
        )
        if escrow.platform_fee:
            log_transaction(
                escrow=escrow,
                kind=Transaction.Kind.PLATFORM_FEE,
                amount=escrow.platform_fee,
                status=Transaction.Status.COMPLETED,
            )
        Booking.objects.filter(pk=escrow.booking_id).update(
            payment_status=Booking.PaymentStatus.RELEASED,
            updated_at=timezone.now(),
        )
        audit(
            actor=actor,
            action="escrow.released",
            entity_type="escrow",
            entity_id=escrow.pk,
            reason=notes or f"Released by {released_by}",
            before=before,
            after={"status": escrow.status, "release_amount": escrow.supplier_payout},
            meta={"booking_id": escrow.booking_id, "released_by": released_by},
        )
    return ReleaseOutcome(
        escrow=escrow,
        release_amount=escrow.supplier_payout,
        platform_fee=escrow.platform_fee,
    )


def get_escrow_for_booking(booking_id) -> Escrow | None:
    """Most recent escrow for a booking that has not settled."""
    return (
        Escrow.objects.filter(booking_id=booking_id)
        .exclude(status__in=Escrow.TERMINAL_STATUSES)
        .order_by("-created_at", "-id")
        .first()
    )


def process_auto_releases(now=None) -> dict[str, int]:
    """Release completed escrows whose dispute window passed. Per-escrow failures are skipped."""
    now = now or timezone.now()
    due_ids = list(
        Escrow.objects.filter(
            status=Escrow.Status.SERVICE_COMPLETED,
            auto_release_at__lte=now,
        ).values_list("id", flat=True)
    )
    released = 0
    for escrow_id in due_ids:
        try:
            outcome = release_escrow(
                escrow_id,
                released_by=AUTO_RELEASE_ACTOR,
                notes="Auto-release after dispute window",
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("auto-release failed for escrow %s: %s", escrow_id, exc, exc_info=True)
            continue
        if not outcome.already_released:
            released += 1

    if released:
        logger.info("auto-released %s escrows", released)
    return {"processed": released, "checked": len(due_ids)}
