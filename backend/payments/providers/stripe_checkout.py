"""Stripe Checkout provider (hosted card payment page)."""

from __future__ import annotations

import logging
from typing import Any

import stripe
from django.conf import settings

from payments.providers.base import (
    CreatePaymentParams,
    CreatePaymentResult,
    PaymentProvider,
    PaymentStatusResult,
    ProviderConfigurationError,
    ProviderPaymentError,
    ProviderTransientError,
    RefundPaymentParams,
    RefundResult,
)

logger = logging.getLogger(__name__)
IDEMPOTENCY_VERSION = "v1"
DEFAULT_APP_BASE_URL = "https://bodaconnect.ao"


def _get_stripe_api_key() -> str:
    """Return the configured Stripe API key or raise if Stripe is off or unset."""
    if not getattr(settings, "STRIPE_ENABLED", False):
        raise ProviderConfigurationError("Stripe provider is not enabled.")
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise ProviderConfigurationError("Stripe secret key not configured.")
    return api_key


def _handle_stripe_error(exc: stripe.StripeError) -> None:
    """Map Stripe SDK errors onto the provider error types."""
    if isinstance(exc, stripe.CardError):
        raise ProviderPaymentError(exc.user_message or "Your card was declined.") from exc
    if isinstance(exc, stripe.APIConnectionError):
        raise ProviderTransientError(
            "Could not reach Stripe, outcome unknown.", indeterminate=True
        ) from exc
    if isinstance(exc, (stripe.RateLimitError, stripe.APIError)):
        raise ProviderTransientError("Temporary Stripe error, please retry.") from exc
    if isinstance(exc, (stripe.AuthenticationError, stripe.PermissionError)):
        raise ProviderConfigurationError(
            "Stripe credentials are invalid or unauthorized."
        ) from exc
    if isinstance(exc, stripe.InvalidRequestError):
        raise ProviderPaymentError(exc.user_message or "Invalid payment request.") from exc
    raise ProviderPaymentError(exc.user_message or "Stripe payment failure.") from exc


def _value(obj: Any, field: str, default: Any = None) -> Any:
    """Fetch a field off a Stripe object or dict payload."""
    if isinstance(obj, dict):
        return obj.get(field, default)
    return getattr(obj, field, default)


def map_refund_reason(reason: str | None) -> str | None:
    if not reason:
        return None
    lowered = reason.lower()
    if "duplicate" in lowered:
        return "duplicate"
    if "fraud" in lowered:
        return "fraudulent"
    return "requested_by_customer"


def _app_base_url() -> str:
    configured = (getattr(settings, "APP_BASE_URL", "") or "").strip()
    return (configured or DEFAULT_APP_BASE_URL).rstrip("/")


class StripeCheckoutProvider(PaymentProvider):
    name = "stripe"

    def __init__(self):
        self.api_key = _get_stripe_api_key()
        self.timeout = int(getattr(settings, "STRIPE_TIMEOUT_SECONDS", 20))

    def _configure(self) -> None:
        stripe.api_key = self.api_key
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)

    def create_payment_intent(self, params: CreatePaymentParams) -> CreatePaymentResult:
        self._configure()
        base_url = _app_base_url()
        metadata = {
            "reference": params.reference,
            "bookingId": params.booking_id,
            "userId": params.user_id,
            **params.metadata,
        }
        logger.info(
            "creating stripe checkout reference=%s amount=%s currency=%s",
            params.reference,
            params.amount,
            params.currency,
        )

        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": params.currency.lower(),
                            "product_data": {
                                "name": params.description or "Boda Connect Payment",
                                "description": f"Booking: {params.booking_id}",
                            },
                            "unit_amount": params.amount,
                        },
                        "quantity": 1,
                    }
                ],
                success_url=params.success_url
                or f"{base_url}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=params.cancel_url or f"{base_url}/payment/cancelled",
                client_reference_id=params.reference,
                customer_email=params.customer_email or None,
                expires_at=int(params.expires_at.timestamp()),
                metadata=metadata,
                idempotency_key=f"checkout:{IDEMPOTENCY_VERSION}:{params.reference}",
            )
        except stripe.StripeError as exc:
            _handle_stripe_error(exc)

        session_id = _value(session, "id")
        session_url = _value(session, "url")
        if not session_id or not session_url:
            raise ProviderPaymentError("Stripe did not return a checkout session URL.")

        return CreatePaymentResult(
            provider_payment_id=session_id,
            checkout_url=session_url,
            provider_data={
                "sessionId": session_id,
                "paymentIntent": _value(session, "payment_intent"),
            },
        )

    def get_payment_status(self, provider_payment_id: str) -> PaymentStatusResult:
        self._configure()
        try:
            session = stripe.checkout.Session.retrieve(provider_payment_id)
        except stripe.StripeError as exc:
            _handle_stripe_error(exc)

        session_status = _value(session, "status") or ""
        payment_status = _value(session, "payment_status") or ""
        if payment_status in ("paid", "no_payment_required"):
            status = "succeeded"
        elif session_status == "expired":
            status = "expired"
        else:
            status = "pending"
        amount_total = _value(session, "amount_total")
        return PaymentStatusResult(
            status=status,
            provider_status=payment_status or session_status,
            paid_amount=int(amount_total) if amount_total is not None else None,
        )

    def refund_payment(self, params: RefundPaymentParams) -> RefundResult:
        self._configure()
        try:
            session = stripe.checkout.Session.retrieve(params.provider_payment_id)
        except stripe.StripeError as exc:
            _handle_stripe_error(exc)

        payment_intent = _value(session, "payment_intent")
        if payment_intent is not None and not isinstance(payment_intent, str):
            payment_intent = _value(payment_intent, "id")
        if not payment_intent:
            raise ProviderPaymentError("No payment intent found for this checkout session")

        try:
            refund = stripe.Refund.create(
                payment_intent=payment_intent,
                amount=params.amount,
                reason=map_refund_reason(params.reason),
                metadata={"paymentId": params.payment_id, "originalReason": params.reason or "none"},
                idempotency_key=f"refund:{IDEMPOTENCY_VERSION}:{params.payment_id}",
            )
        except stripe.InvalidRequestError as exc:
            if getattr(exc, "code", "") == "charge_already_refunded":
                logger.info(
                    "Stripe payment intent %s already refunded; treating as done.", payment_intent
                )
                return RefundResult(provider_refund_id="", status="succeeded", amount=params.amount)
            _handle_stripe_error(exc)
        except stripe.StripeError as exc:
            _handle_stripe_error(exc)

        refund_status = _value(refund, "status")
        if refund_status not in ("succeeded", "pending"):
            refund_status = "failed"
        return RefundResult(
            provider_refund_id=_value(refund, "id") or "",
            status=refund_status,
            amount=int(_value(refund, "amount") or params.amount),
        )
