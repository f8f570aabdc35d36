from datetime import datetime, timezone

import pytest
import stripe

from payments.providers import (
    CreatePaymentParams,
    ProviderConfigurationError,
    ProviderPaymentError,
    ProviderTransientError,
    RefundPaymentParams,
)
from payments.providers.stripe_checkout import StripeCheckoutProvider, map_refund_reason


@pytest.fixture(autouse=True)
def stripe_settings(settings, monkeypatch):
    settings.STRIPE_ENABLED = True
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    settings.APP_BASE_URL = "https://app.example.com/"
    monkeypatch.setattr(stripe, "api_key", None)
    monkeypatch.setattr(stripe, "default_http_client", None)


def _params(**overrides):
    fields = {
        "reference": "BCABC123XYZ9",
        "amount": 25000,
        "currency": "AOA",
        "payment_method": "stripe",
        "booking_id": "42",
        "user_id": "7",
        "description": "BODA CONNECT - Casamento",
        "expires_at": datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
        "customer_email": "ana@example.com",
        "metadata": {"supplierId": "8"},
    }
    fields.update(overrides)
    return CreatePaymentParams(**fields)


def _install_session(monkeypatch, *, create=None, retrieve=None):
    namespace = {}
    if create is not None:
        namespace["create"] = staticmethod(create)
    if retrieve is not None:
        namespace["retrieve"] = staticmethod(retrieve)
    monkeypatch.setattr(stripe.checkout, "Session", type("MockSession", (), namespace))


def test_create_checkout_session(monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return {"id": "cs_test_1", "url": "https://checkout.stripe.com/cs_test_1"}

    _install_session(monkeypatch, create=fake_create)

    result = StripeCheckoutProvider().create_payment_intent(_params())

    assert result.provider_payment_id == "cs_test_1"
    assert result.checkout_url == "https://checkout.stripe.com/cs_test_1"
    assert captured["idempotency_key"] == "checkout:v1:BCABC123XYZ9"
    assert captured["client_reference_id"] == "BCABC123XYZ9"
    assert captured["line_items"][0]["price_data"]["currency"] == "aoa"
    assert captured["line_items"][0]["price_data"]["unit_amount"] == 25000
    assert captured["cancel_url"] == "https://app.example.com/payment/cancelled"
    assert captured["metadata"]["bookingId"] == "42"
    assert captured["metadata"]["supplierId"] == "8"
    assert stripe.api_key == "sk_test_123"


def test_session_without_url_is_payment_error(monkeypatch):
    _install_session(monkeypatch, create=lambda **kwargs: {"id": "cs_test_2", "url": None})

    with pytest.raises(ProviderPaymentError):
        StripeCheckoutProvider().create_payment_intent(_params())


@pytest.mark.parametrize(
    "error,error_cls",
    [
        (stripe.APIConnectionError("network down"), ProviderTransientError),
        (stripe.RateLimitError("slow down"), ProviderTransientError),
        (stripe.AuthenticationError("bad key"), ProviderConfigurationError),
        (stripe.CardError("declined", "card", "card_declined"), ProviderPaymentError),
    ],
)
def test_stripe_errors_are_classified(monkeypatch, error, error_cls):
    def fake_create(**kwargs):
        raise error

    _install_session(monkeypatch, create=fake_create)

    with pytest.raises(error_cls):
        StripeCheckoutProvider().create_payment_intent(_params())


def test_refund_uses_session_payment_intent(monkeypatch):
    captured = {}
    _install_session(
        monkeypatch, retrieve=lambda session_id: {"id": session_id, "payment_intent": "pi_1"}
    )

    def fake_refund(**kwargs):
        captured.update(kwargs)
        return {"id": "re_1", "status": "succeeded", "amount": kwargs["amount"]}

    monkeypatch.setattr(stripe, "Refund", type("MockRefund", (), {"create": staticmethod(fake_refund)}))

    result = StripeCheckoutProvider().refund_payment(
        RefundPaymentParams(
            provider_payment_id="cs_test_1",
            payment_id="5",
            amount=25000,
            currency="AOA",
            reason="Cliente cancelou",
        )
    )

    assert result.provider_refund_id == "re_1"
    assert result.status == "succeeded"
    assert captured["payment_intent"] == "pi_1"
    assert captured["reason"] == "requested_by_customer"
    assert captured["idempotency_key"] == "refund:v1:5"


def test_already_refunded_charge_counts_as_success(monkeypatch):
    _install_session(monkeypatch, retrieve=lambda session_id: {"payment_intent": "pi_1"})

    def fake_refund(**kwargs):
        raise stripe.InvalidRequestError("already refunded", None, code="charge_already_refunded")

    monkeypatch.setattr(stripe, "Refund", type("MockRefund", (), {"create": staticmethod(fake_refund)}))

    result = StripeCheckoutProvider().refund_payment(
        RefundPaymentParams(provider_payment_id="cs_1", payment_id="5", amount=100, currency="AOA")
    )

    assert result.status == "succeeded"
    assert result.amount == 100


def test_refund_without_payment_intent_is_payment_error(monkeypatch):
    _install_session(monkeypatch, retrieve=lambda session_id: {"payment_intent": None})

    with pytest.raises(ProviderPaymentError):
        StripeCheckoutProvider().refund_payment(
            RefundPaymentParams(provider_payment_id="cs_1", payment_id="5", amount=100, currency="AOA")
        )


@pytest.mark.parametrize(
    "reason,expected",
    [
        (None, None),
        ("Duplicate charge", "duplicate"),
        ("suspected fraud", "fraudulent"),
        ("cliente cancelou", "requested_by_customer"),
    ],
)
def test_map_refund_reason(reason, expected):
    assert map_refund_reason(reason) == expected


@pytest.mark.parametrize(
    "session,expected",
    [
        ({"status": "complete", "payment_status": "paid", "amount_total": 25000}, "succeeded"),
        ({"status": "open", "payment_status": "unpaid", "amount_total": 25000}, "pending"),
        ({"status": "expired", "payment_status": "unpaid", "amount_total": 25000}, "expired"),
    ],
)
def test_checkout_session_status(monkeypatch, session, expected):
    _install_session(monkeypatch, retrieve=lambda session_id: {"id": session_id, **session})

    result = StripeCheckoutProvider().get_payment_status("cs_test_1")

    assert result.status == expected
    assert result.paid_amount == 25000


def test_checkout_session_status_connection_error_is_transient(monkeypatch):
    def broken(session_id):
        raise stripe.APIConnectionError("down")

    _install_session(monkeypatch, retrieve=broken)

    with pytest.raises(ProviderTransientError):
        StripeCheckoutProvider().get_payment_status("cs_test_1")
