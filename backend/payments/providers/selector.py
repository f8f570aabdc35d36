"""Map caller-facing payment methods onto provider implementations."""

from __future__ import annotations

import logging

from django.core.exceptions import ImproperlyConfigured

from payments.models import Payment
from payments.providers.base import PaymentProvider, ProviderConfigurationError
from payments.providers.proxypay import ProxyPayOPGProvider, ProxyPayRPSProvider
from payments.providers.stripe_checkout import StripeCheckoutProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[PaymentProvider]] = {
    ProxyPayOPGProvider.name: ProxyPayOPGProvider,
    ProxyPayRPSProvider.name: ProxyPayRPSProvider,
    StripeCheckoutProvider.name: StripeCheckoutProvider,
}

PROVIDER_TYPE_BY_METHOD: dict[str, str] = {
    Payment.Method.OPG: ProxyPayOPGProvider.name,
    Payment.Method.RPS: ProxyPayRPSProvider.name,
    Payment.Method.STRIPE: StripeCheckoutProvider.name,
}

_unmapped = set(Payment.Method.values) - set(PROVIDER_TYPE_BY_METHOD)
if _unmapped:
    raise ImproperlyConfigured(f"Payment methods without a provider: {sorted(_unmapped)}")


def provider_type_for_method(method: str) -> str:
    """Total over Payment.Method; raises ValueError for anything else."""
    try:
        return PROVIDER_TYPE_BY_METHOD[Payment.Method(method)]
    except ValueError:
        raise ValueError(f"Unknown payment method: {method!r}") from None


def get_payment_provider(provider_type: str) -> PaymentProvider:
    """
    Instantiate the provider for ``provider_type``.

    Raises ProviderConfigurationError when the provider is disabled or its
    credentials are missing.
    """
    provider_cls = PROVIDER_CLASSES.get(provider_type)
    if provider_cls is None:
        raise ProviderConfigurationError(f"Unknown provider type: {provider_type}")
    return provider_cls()


def get_provider_for_method(method: str) -> PaymentProvider:
    return get_payment_provider(provider_type_for_method(method))


def get_provider_by_name(name: str) -> PaymentProvider:
    """Resolve a provider from the name stored on a Payment (accepts dashes)."""
    normalized = (name or "").strip().lower().replace("-", "_")
    return get_payment_provider(normalized)


def get_available_payment_methods() -> list[str]:
    methods = []
    for method in Payment.Method.values:
        try:
            get_provider_for_method(method)
        except ProviderConfigurationError:
            logger.debug("payment method %s unavailable in this environment", method)
            continue
        methods.append(method)
    return methods
