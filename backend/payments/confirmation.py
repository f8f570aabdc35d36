"""
confirmPayment: ask the provider whether a pending payment has been paid.

A paid result marks the Payment ``succeeded`` and funds its escrow in the same
transaction. Settled payments are answered from the database; a succeeded
payment whose escrow is still ``created`` is funded again.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from core import errors
from core.rate_limit import enforce_rate_limit
from core.service_log import get_service_logger
from escrow.models import Escrow
from escrow.services import fund_escrow
from operator_core.permissions import is_admin_user
from payments.models import Payment
from payments.providers import (
    PaymentStatusResult,
    ProviderConfigurationError,
    ProviderError,
    ProviderTransientError,
)
from payments.providers.selector import get_provider_by_name

FUNCTION_NAME = "confirmPayment"
INTERNAL_MESSAGE = "Erro ao verificar pagamento. Tente novamente."

PAYMENT_STATUS_BY_PROVIDER_STATUS = {
    "succeeded": Payment.Status.SUCCEEDED,
    "failed": Payment.Status.FAILED,
    "expired": Payment.Status.EXPIRED,
}


def _get_payment(data, context) -> Payment:
    payment_id = data.get("paymentId")
    payment_id = str(payment_id).strip() if payment_id is not None else ""
    if not payment_id:
        raise errors.invalid_argument(
            "paymentId is required",
            field="paymentId",
            message="paymentId é obrigatório",
            context=context,
        )
    payment = None
    if payment_id.isdigit():
        payment = Payment.objects.filter(pk=int(payment_id)).first()
    if payment is None:
        raise errors.not_found(
            "payment", payment_id, message="Pagamento não encontrado", context=context
        )
    context.resource_id = str(payment.pk)
    context.resource_type = "payment"
    return payment


def _check_with_provider(payment: Payment, log, context) -> PaymentStatusResult:
    try:
        provider = get_provider_by_name(payment.provider)
        return provider.get_payment_status(payment.provider_payment_id)
    except (ProviderTransientError, ProviderConfigurationError) as exc:
        log.event(
            logging.ERROR,
            "provider_status_check_failed",
            provider=payment.provider,
            payment_id=payment.pk,
            error=str(exc),
        )
        raise errors.unavailable(
            f"Provider {payment.provider} status check failed: {exc}",
            message="Método de pagamento temporariamente indisponível",
            context=context,
        ) from exc
    except ProviderError as exc:
        log.operation_failed("confirm_payment", exc, provider=payment.provider)
        raise errors.internal(
            f"Provider {payment.provider} status check rejected: {exc}",
            message=INTERNAL_MESSAGE,
            context=context,
        ) from exc


def _fund_linked_escrow(payment: Payment, log) -> Escrow | None:
    escrow = Escrow.objects.filter(payment=payment).first()
    if escrow is None:
        escrow_id = (payment.metadata or {}).get("escrowId")
        if escrow_id is not None:
            escrow = Escrow.objects.filter(pk=escrow_id).first()
    if escrow is None:
        log.event(logging.WARNING, "confirmed_payment_without_escrow", payment_id=payment.pk)
        return None

    previous_status = escrow.status
    escrow = fund_escrow(escrow.pk, payment_id=payment.pk)
    if escrow.status != previous_status:
        log.state_transition(
            "escrow", escrow.pk, previous_status, escrow.status, payment_id=payment.pk
        )
    return escrow


def confirm_payment(data, user, context: errors.ErrorContext) -> dict:
    """Confirm one payment with its provider. The payer or an administrator only."""
    log = get_service_logger(__name__, context, "payment")
    data = data if isinstance(data, dict) else {}
    log.operation_start("confirm_payment", payment_id=data.get("paymentId"))

    if user is None or not user.is_authenticated:
        raise errors.unauthenticated(context)

    enforce_rate_limit(user.id, FUNCTION_NAME, context, log)

    payment = _get_payment(data, context)
    if payment.user_id != user.id and not is_admin_user(user):
        raise errors.permission_denied(
            f"User {user.id} may not confirm payment {payment.pk}",
            message="Você não tem permissão para verificar este pagamento",
            context=context,
        )

    new_status = None
    provider_status = ""
    if payment.status == Payment.Status.PENDING:
        result = _check_with_provider(payment, log, context)
        provider_status = result.provider_status
        new_status = PAYMENT_STATUS_BY_PROVIDER_STATUS.get(result.status)
    else:
        log.idempotent_skip(
            "confirm_payment", "payment already settled", payment_id=payment.pk, status=payment.status
        )

    escrow = None
    with transaction.atomic():
        if new_status is not None:
            updated = Payment.objects.filter(
                pk=payment.pk, status=Payment.Status.PENDING
            ).update(status=new_status, updated_at=timezone.now())
            payment.refresh_from_db(fields=["status", "updated_at"])
            if updated:
                log.state_transition(
                    "payment",
                    payment.pk,
                    Payment.Status.PENDING,
                    payment.status,
                    provider_status=provider_status,
                )
        if payment.status == Payment.Status.SUCCEEDED:
            escrow = _fund_linked_escrow(payment, log)

    paid_amount = payment.amount if payment.status == Payment.Status.SUCCEEDED else 0
    log.operation_success(
        "confirm_payment",
        payment_id=payment.pk,
        status=payment.status,
        escrow_id=escrow.pk if escrow is not None else None,
    )
    return {
        "success": True,
        "paymentId": str(payment.pk),
        "status": payment.status,
        "paidAmount": paid_amount,
    }
