"""
createPaymentIntent: validate, gate, call the provider, then persist escrow + payment.

Order of checks (each fails fast with its own error kind):
  feature gate -> authentication -> rate limit -> request fields -> booking state
Provider side effects happen only after every check passed.
"""

from __future__ import annotations

import logging
import secrets
import time
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from core import errors
from core.feature_flags import require_feature_enabled
from core.rate_limit import enforce_rate_limit
from core.service_log import get_service_logger
from escrow.services import attach_payment, create_escrow
from payments.models import Payment
from payments.providers import (
    CreatePaymentParams,
    ProviderConfigurationError,
    ProviderPaymentError,
    ProviderTransientError,
)
from payments.providers.selector import get_payment_provider, provider_type_for_method
from payments.serializers import PaymentIntentRequestSerializer, first_validation_error

FUNCTION_NAME = "createPaymentIntent"
REFERENCE_PREFIX = "BC"
REFERENCE_LENGTH = 12
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_reference() -> str:
    """
    Human-shareable payment code: ``BC`` + base36(ms clock) + random base36,
    uppercased and cut to 12 characters. Not checked for uniqueness.
    """
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{REFERENCE_PREFIX}{timestamp}{random_part}".upper()[:REFERENCE_LENGTH]


def validate_booking_for_payment(booking_id, user, context=None) -> Booking:
    """Return the booking if ``user`` may pay for it now, else raise failed-precondition."""
    booking = None
    if str(booking_id).isdigit():
        booking = Booking.objects.filter(pk=int(booking_id)).select_related("supplier").first()
    if booking is None:
        raise errors.failed_precondition(
            f"Booking {booking_id} not found",
            message="Reserva não encontrada",
            context=context,
        )
    if booking.client_id != user.id:
        raise errors.failed_precondition(
            f"User {user.id} is not the client of booking {booking.pk}",
            message="Você não tem permissão para pagar esta reserva",
            context=context,
        )
    if not booking.is_payable():
        raise errors.failed_precondition(
            f"Booking {booking.pk} has non-payable status {booking.status}",
            message=f"Não é possível pagar reserva com status: {booking.status}",
            context=context,
        )
    if booking.is_fully_paid():
        raise errors.failed_precondition(
            f"Booking {booking.pk} already fully paid",
            message="Esta reserva já foi paga integralmente",
            context=context,
        )
    return booking


def _build_response(method: str, payment: Payment, result, expires_at) -> dict:
    response = {
        "success": True,
        "paymentId": str(payment.pk),
        "reference": payment.reference,
        "expiresAt": expires_at.isoformat(),
    }
    if method == Payment.Method.STRIPE:
        response["checkoutUrl"] = result.checkout_url
    elif method == Payment.Method.OPG:
        response["paymentUrl"] = result.payment_url
    elif method == Payment.Method.RPS:
        response["entityId"] = result.entity_id or getattr(settings, "PROXYPAY_ENTITY_ID", "")
        response["referenceNumber"] = result.reference_number
    return response


def create_payment_intent(data, user, context: errors.ErrorContext) -> dict:
    log = get_service_logger(__name__, context, "payment")
    data = data if isinstance(data, dict) else {}
    log.operation_start(
        "create_payment_intent",
        booking_id=data.get("bookingId"),
        amount=data.get("amount"),
        method=data.get("paymentMethod"),
    )

    require_feature_enabled("payments", context, log)

    if user is None or not user.is_authenticated:
        raise errors.unauthenticated(context)

    enforce_rate_limit(user.id, FUNCTION_NAME, context, log)

    serializer = PaymentIntentRequestSerializer(data=data)
    if not serializer.is_valid():
        field, message = first_validation_error(serializer.errors)
        raise errors.invalid_argument(
            f"Invalid payment request field: {field}",
            field=field,
            message=message,
            context=context,
        )
    validated = serializer.validated_data
    method = validated["paymentMethod"]

    booking = validate_booking_for_payment(validated["bookingId"], user, context)
    context.resource_id = str(booking.pk)
    context.resource_type = "booking"

    reference = generate_reference()
    description = validated.get("description") or f"BODA CONNECT - {booking.event_name or 'Reserva'}"
    expires_at = timezone.now() + timedelta(
        minutes=int(getattr(settings, "PAYMENT_EXPIRY_MINUTES", 30))
    )

    provider_type = provider_type_for_method(method)
    try:
        provider = get_payment_provider(provider_type)
    except ProviderConfigurationError as exc:
        log.event(logging.ERROR, "provider_not_available", provider=provider_type, error=str(exc))
        raise errors.unavailable(
            f"Payment provider {provider_type} not available",
            message="Método de pagamento temporariamente indisponível",
            context=context,
        ) from exc

    params = CreatePaymentParams(
        reference=reference,
        amount=validated["amount"],
        currency=validated["currency"],
        payment_method=method,
        booking_id=str(booking.pk),
        user_id=str(user.id),
        description=description,
        expires_at=expires_at,
        customer_phone=validated.get("customerPhone") or None,
        customer_email=validated.get("customerEmail") or None,
        customer_name=validated.get("customerName") or None,
        success_url=validated.get("successUrl") or None,
        cancel_url=validated.get("cancelUrl") or None,
        metadata={"supplierId": str(booking.supplier_id)},
    )

    log.event(logging.INFO, "creating_provider_payment", provider=provider.name, method=method)
    try:
        result = provider.create_payment_intent(params)
    except (ProviderTransientError, ProviderConfigurationError) as exc:
        log.event(
            logging.ERROR,
            "provider_call_failed",
            provider=provider.name,
            reference=reference,
            indeterminate=getattr(exc, "indeterminate", False),
            error=str(exc),
        )
        raise errors.unavailable(
            f"Provider {provider.name} failed: {exc}",
            message="Método de pagamento temporariamente indisponível",
            context=context,
        ) from exc
    except ProviderPaymentError as exc:
        log.operation_failed("create_payment_intent", exc, provider=provider.name)
        raise errors.internal(
            f"Provider {provider.name} rejected payment: {exc}", context=context
        ) from exc

    log.event(
        logging.INFO,
        "provider_payment_created",
        provider=provider.name,
        provider_payment_id=result.provider_payment_id,
    )

    try:
        with transaction.atomic():
            escrow = create_escrow(
                booking=booking,
                client=user,
                supplier=booking.supplier,
                amount=params.amount,
                currency=params.currency,
            )
            payment = Payment.objects.create(
                booking=booking,
                user=user,
                supplier=booking.supplier,
                amount=params.amount,
                currency=params.currency,
                payment_method=method,
                provider=provider.name,
                provider_payment_id=result.provider_payment_id,
                reference=reference,
                reference_number=result.reference_number or "",
                status=Payment.Status.PENDING,
                description=description,
                customer_phone=params.customer_phone or "",
                customer_email=params.customer_email or "",
                customer_name=params.customer_name or "",
                checkout_url=result.checkout_url or "",
                payment_url=result.payment_url or "",
                expires_at=expires_at,
                metadata={**result.provider_data, "escrowId": escrow.pk},
            )
            attach_payment(escrow, payment)
    except Exception as exc:  # noqa: BLE001
        # The provider already holds a live payment for this reference.
        log.event(
            logging.CRITICAL,
            "payment_persist_failed_after_provider_call",
            reference=reference,
            provider=provider.name,
            provider_payment_id=result.provider_payment_id,
            error=repr(exc),
        )
        raise errors.internal(
            f"Persisting payment {reference} failed after provider call: {exc}",
            context=context,
        ) from exc

    log.operation_success(
        "create_payment_intent",
        payment_id=payment.pk,
        escrow_id=escrow.pk,
        booking_id=booking.pk,
        provider=provider.name,
    )
    return _build_response(method, payment, result, expires_at)
