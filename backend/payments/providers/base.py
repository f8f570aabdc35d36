"""Uniform interface over the external payment providers."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class ProviderError(Exception):
    """Base class for normalized provider failures."""


class ProviderConfigurationError(ProviderError):
    """Provider disabled, missing credentials, or credentials rejected."""


class ProviderTransientError(ProviderError):
    """
    Temporary provider/API issue that may be retried.

    ``indeterminate`` is set when the request may have reached the provider
    (e.g. a timeout), so the outcome on the provider side is unknown.
    """

    def __init__(self, message: str, *, indeterminate: bool = False):
        super().__init__(message)
        self.indeterminate = indeterminate


class ProviderPaymentError(ProviderError):
    """The provider rejected the request permanently."""


class ProviderRefundNotSupported(ProviderError):
    """The provider has no refund API; refunds must be handled manually."""


@dataclass(frozen=True)
class CreatePaymentParams:
    reference: str
    amount: int
    currency: str
    payment_method: str
    booking_id: str
    user_id: str
    description: str
    expires_at: datetime
    customer_phone: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    success_url: str | None = None
    cancel_url: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CreatePaymentResult:
    provider_payment_id: str
    checkout_url: str | None = None
    payment_url: str | None = None
    reference_number: str | None = None
    entity_id: str | None = None
    provider_data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentStatusResult:
    status: str  # "succeeded" | "pending" | "failed" | "expired"
    provider_status: str = ""
    paid_amount: int | None = None


@dataclass(frozen=True)
class RefundPaymentParams:
    provider_payment_id: str
    payment_id: str
    amount: int
    currency: str
    reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    provider_refund_id: str
    status: str  # "succeeded" | "pending" | "failed"
    amount: int


class PaymentProvider(abc.ABC):
    name: str = ""

    @abc.abstractmethod
    def create_payment_intent(self, params: CreatePaymentParams) -> CreatePaymentResult:
        """Start a payment with the provider and return its identifiers/URLs."""

    @abc.abstractmethod
    def get_payment_status(self, provider_payment_id: str) -> PaymentStatusResult:
        """Ask the provider whether a payment it created has been paid."""

    @abc.abstractmethod
    def refund_payment(self, params: RefundPaymentParams) -> RefundResult:
        """Return money for a previously captured payment."""
