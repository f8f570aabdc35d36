from payments.providers.base import (
    CreatePaymentParams,
    CreatePaymentResult,
    PaymentProvider,
    PaymentStatusResult,
    ProviderConfigurationError,
    ProviderError,
    ProviderPaymentError,
    ProviderRefundNotSupported,
    ProviderTransientError,
    RefundPaymentParams,
    RefundResult,
)

__all__ = [
    "CreatePaymentParams",
    "CreatePaymentResult",
    "PaymentProvider",
    "PaymentStatusResult",
    "ProviderConfigurationError",
    "ProviderError",
    "ProviderPaymentError",
    "ProviderRefundNotSupported",
    "ProviderTransientError",
    "RefundPaymentParams",
    "RefundResult",
]
