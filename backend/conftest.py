"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.cache import cache
from rest_framework.test import APIClient

from bookings.models import Booking
from payments.providers import (
    CreatePaymentResult,
    PaymentProvider,
    PaymentStatusResult,
    RefundResult,
)

User = get_user_model()


@pytest.fixture
def api_client():
    """DRF API client for request/response helpers."""
    return APIClient()


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


def _create_user(username: str, **extra) -> User:
    return User.objects.create_user(username=username, password="testpass", **extra)


@pytest.fixture
def client_user(db):
    return _create_user("client")


@pytest.fixture
def supplier_user(db):
    return _create_user("supplier")


@pytest.fixture
def other_user(db):
    return _create_user("other")


@pytest.fixture
def admin_user(db):
    user = _create_user("finance-admin", is_staff=True)
    group, _ = Group.objects.get_or_create(name="operator_admin")
    user.groups.add(group)
    return user


@pytest.fixture
def make_booking(client_user, supplier_user):
    def _make(**overrides) -> Booking:
        fields = {
            "client": client_user,
            "supplier": supplier_user,
            "event_name": "Casamento Ana & João",
            "status": Booking.Status.CONFIRMED,
            "total_amount": 50000,
            "paid_amount": 0,
            "currency": "AOA",
        }
        fields.update(overrides)
        return Booking.objects.create(**fields)

    return _make


@pytest.fixture
def booking(make_booking):
    return make_booking()


class FakeProvider(PaymentProvider):
    """In-memory provider that records every call."""

    name = "fake"

    def __init__(self, *, create_error=None, refund_error=None, refund_status="succeeded"):
        self.create_error = create_error
        self.refund_error = refund_error
        self.refund_status = refund_status
        self.provider_data = None
        self.payment_status = "succeeded"
        self.status_error = None
        self.created = []
        self.refunded = []
        self.status_checks = []

    def create_payment_intent(self, params):
        self.created.append(params)
        if self.create_error is not None:
            raise self.create_error
        provider_data = self.provider_data
        if provider_data is None:
            provider_data = {"fakeId": f"fake_{params.reference}"}
        return CreatePaymentResult(
            provider_payment_id=f"fake_{params.reference}",
            checkout_url="https://checkout.example.com/session",
            payment_url="https://pay.example.com/opg",
            reference_number="123456789",
            entity_id="10111",
            provider_data=provider_data,
        )

    def get_payment_status(self, provider_payment_id):
        self.status_checks.append(provider_payment_id)
        if self.status_error is not None:
            raise self.status_error
        return PaymentStatusResult(status=self.payment_status, provider_status=self.payment_status)

    def refund_payment(self, params):
        self.refunded.append(params)
        if self.refund_error is not None:
            raise self.refund_error
        return RefundResult(
            provider_refund_id=f"re_{params.payment_id}",
            status=self.refund_status,
            amount=params.amount,
        )


@pytest.fixture
def fake_provider(monkeypatch):
    """Route payment intents, confirmations and refund execution to a FakeProvider."""
    provider = FakeProvider()
    monkeypatch.setattr("payments.intents.get_payment_provider", lambda provider_type: provider)
    monkeypatch.setattr("escrow.tasks.get_provider_by_name", lambda name: provider)
    monkeypatch.setattr("payments.confirmation.get_provider_by_name", lambda name: provider)
    return provider
