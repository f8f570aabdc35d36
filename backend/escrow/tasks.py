"""Celery tasks for escrow settlement."""

from __future__ import annotations

import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone

from core.feature_flags import is_feature_enabled
from payments.providers import (
    ProviderConfigurationError,
    ProviderError,
    ProviderRefundNotSupported,
    ProviderTransientError,
    RefundPaymentParams,
)
from payments.providers.selector import get_provider_by_name

from . import services
from .ledger import pending_refunds_queryset
from .models import Transaction

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 1000


@shared_task(name="escrow.process_auto_releases")
def process_auto_releases() -> dict[str, int]:
    """Release escrows whose dispute window has passed."""
    if not is_feature_enabled("escrow_auto_release"):
        logger.info("escrow auto-release disabled by feature flag; skipping run")
        return {"processed": 0, "checked": 0}
    return services.process_auto_releases()


def _execute_refund(tx: Transaction) -> str:
    """Run one pending refund against its provider and return the new status."""
    payment = tx.escrow.payment
    tx.attempts += 1
    if payment is None or not payment.provider_payment_id:
        tx.status = Transaction.Status.MANUAL
        tx.last_error = "No provider payment linked to escrow"
        return tx.status

    try:
        provider = get_provider_by_name(payment.provider)
        result = provider.refund_payment(
            RefundPaymentParams(
                provider_payment_id=payment.provider_payment_id,
                payment_id=str(payment.pk),
                amount=tx.amount,
                currency=tx.currency,
                reason=tx.reason or None,
            )
        )
    except ProviderRefundNotSupported as exc:
        tx.status = Transaction.Status.MANUAL
        tx.last_error = str(exc)[:MAX_ERROR_LENGTH]
        return tx.status
    except ProviderTransientError as exc:
        # Left pending for the next run.
        tx.last_error = str(exc)[:MAX_ERROR_LENGTH]
        logger.warning(
            "refund transaction %s transient failure (attempt %s): %s",
            tx.pk,
            tx.attempts,
            exc,
        )
        return tx.status
    except ProviderConfigurationError as exc:
        # Disabled or misconfigured provider; retried once it is back.
        tx.last_error = str(exc)[:MAX_ERROR_LENGTH]
        logger.error(
            "refund transaction %s provider %s unavailable: %s",
            tx.pk,
            payment.provider,
            exc,
        )
        return tx.status
    except ProviderError as exc:
        tx.status = Transaction.Status.FAILED
        tx.last_error = str(exc)[:MAX_ERROR_LENGTH]
        return tx.status

    if result.status == "failed":
        tx.status = Transaction.Status.FAILED
        tx.last_error = f"Provider reported refund {result.provider_refund_id} failed"
    else:
        tx.status = Transaction.Status.COMPLETED
        tx.last_error = ""
    tx.provider_reference = result.provider_refund_id or ""
    return tx.status


@shared_task(name="escrow.process_pending_refunds")
def process_pending_refunds() -> dict[str, int]:
    """
    Execute queued REFUND transactions against the original payment provider.

    Providers without a refund API leave the row in ``manual`` for finance to
    handle. Transient failures stay ``pending`` and are retried next run.
    """
    pending_ids = list(pending_refunds_queryset().values_list("id", flat=True))
    processed = 0
    for tx_id in pending_ids:
        with transaction.atomic():
            tx = (
                Transaction.objects.select_for_update(skip_locked=True, of=("self",))
                .select_related("escrow", "escrow__payment")
                .filter(pk=tx_id, status=Transaction.Status.PENDING)
                .first()
            )
            if tx is None:
                continue
            new_status = _execute_refund(tx)
            if new_status != Transaction.Status.PENDING:
                tx.processed_at = timezone.now()
                processed += 1
            tx.save(
                update_fields=[
                    "status",
                    "attempts",
                    "last_error",
                    "provider_reference",
                    "processed_at",
                ]
            )
        logger.info(
            "refund transaction %s for escrow %s -> %s",
            tx.pk,
            tx.escrow_id,
            new_status,
        )

    return {"processed": processed, "checked": len(pending_ids)}
