"""ProxyPay (Angola) providers: OPG mobile push and RPS ATM references."""

from __future__ import annotations

import logging
import random
import re

import requests
from django.conf import settings

from payments.providers.base import (
    CreatePaymentParams,
    CreatePaymentResult,
    PaymentProvider,
    PaymentStatusResult,
    ProviderConfigurationError,
    ProviderPaymentError,
    ProviderRefundNotSupported,
    ProviderTransientError,
    RefundPaymentParams,
    RefundResult,
)

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = "https://api.sandbox.proxypay.co.ao"
PRODUCTION_BASE_URL = "https://api.proxypay.co.ao"
ACCEPT_HEADER = "application/vnd.proxypay.v2+json"


def format_phone_for_proxypay(phone: str) -> str:
    """Normalize an Angolan number to the 9-digit 9XXXXXXXX form ProxyPay expects."""
    cleaned = re.sub(r"\D", "", phone or "")
    if cleaned.startswith("244"):
        cleaned = cleaned[3:]
    if len(cleaned) == 9 and not cleaned.startswith("9"):
        cleaned = "9" + cleaned[1:]
    return cleaned


def generate_rps_reference_number() -> str:
    return str(random.randint(100_000_000, 999_999_999))


def map_proxypay_status(provider_status: str) -> str:
    """Collapse ProxyPay payment states onto succeeded/failed/expired/pending."""
    lowered = (provider_status or "").lower()
    if lowered in ("accepted", "completed", "paid"):
        return "succeeded"
    if lowered in ("rejected", "failed", "error", "cancelled", "canceled"):
        return "failed"
    if lowered == "expired":
        return "expired"
    return "pending"


def _status_result(data: dict) -> PaymentStatusResult:
    provider_status = str(data.get("status") or "pending")
    amount = data.get("amount")
    try:
        paid_amount = int(float(amount)) if amount not in (None, "") else None
    except (TypeError, ValueError):
        paid_amount = None
    return PaymentStatusResult(
        status=map_proxypay_status(provider_status),
        provider_status=provider_status,
        paid_amount=paid_amount,
    )


class ProxyPayClient:
    """Thin HTTP wrapper; every call carries a timeout."""

    def __init__(self, api_key: str, *, use_sandbox: bool = True, timeout: float = 15.0):
        if not api_key:
            raise ProviderConfigurationError("ProxyPay API key not configured.")
        self.api_key = api_key
        self.base_url = SANDBOX_BASE_URL if use_sandbox else PRODUCTION_BASE_URL
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "ProxyPayClient":
        return cls(
            getattr(settings, "PROXYPAY_API_KEY", ""),
            use_sandbox=getattr(settings, "PROXYPAY_USE_SANDBOX", True),
            timeout=float(getattr(settings, "PROXYPAY_TIMEOUT_SECONDS", 15.0)),
        )

    def post(self, path: str, payload: dict, *, label: str) -> dict:
        return self._send(
            requests.post,
            path,
            label=label,
            json=payload,
            headers={"Accept": ACCEPT_HEADER, "Content-Type": "application/json"},
        )

    def get(self, path: str, *, label: str) -> dict:
        return self._send(requests.get, path, label=label, headers={"Accept": ACCEPT_HEADER})

    def _send(self, send, path: str, *, label: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = send(url, auth=("", self.api_key), timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            logger.error("proxypay %s timed out after %ss", label, self.timeout)
            raise ProviderTransientError(
                f"ProxyPay {label} request timed out", indeterminate=True
            ) from exc
        except requests.RequestException as exc:
            logger.error("proxypay %s connection error: %s", label, exc)
            raise ProviderTransientError(f"ProxyPay {label} connection error") from exc

        if response.status_code in (401, 403):
            raise ProviderConfigurationError(
                f"ProxyPay rejected credentials ({response.status_code})"
            )
        if response.status_code == 429 or response.status_code >= 500:
            logger.error(
                "proxypay %s API error %s: %s", label, response.status_code, response.text[:500]
            )
            raise ProviderTransientError(f"ProxyPay {label} API error: {response.status_code}")
        if not response.ok:
            logger.error(
                "proxypay %s API error %s: %s", label, response.status_code, response.text[:500]
            )
            raise ProviderPaymentError(f"ProxyPay {label} API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderPaymentError(f"ProxyPay {label} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise ProviderPaymentError(f"ProxyPay {label} returned an unexpected body")
        return data


class ProxyPayOPGProvider(PaymentProvider):
    """Push a payment request to the customer's Multicaixa Express phone."""

    name = "proxypay_opg"

    def __init__(self, client: ProxyPayClient | None = None):
        self.client = client or ProxyPayClient.from_settings()

    def create_payment_intent(self, params: CreatePaymentParams) -> CreatePaymentResult:
        if not params.customer_phone:
            raise ProviderPaymentError("Customer phone is required for OPG payments")

        logger.info(
            "creating proxypay opg payment reference=%s amount=%s", params.reference, params.amount
        )
        data = self.client.post(
            "/opg/v1/payments",
            {
                "reference_id": params.reference,
                "amount": str(params.amount),
                "mobile": format_phone_for_proxypay(params.customer_phone),
                "message": params.description[:50],
                "callback_url": getattr(settings, "PROXYPAY_WEBHOOK_URL", ""),
            },
            label="opg",
        )
        opg_id = str(data.get("id") or "")
        if not opg_id:
            raise ProviderPaymentError("ProxyPay OPG response missing id")

        return CreatePaymentResult(
            provider_payment_id=opg_id,
            payment_url=data.get("payment_url"),
            provider_data={"opgId": opg_id},
        )

    def get_payment_status(self, provider_payment_id: str) -> PaymentStatusResult:
        return _status_result(
            self.client.get(f"/opg/v1/payments/{provider_payment_id}", label="opg status")
        )

    def refund_payment(self, params: RefundPaymentParams) -> RefundResult:
        logger.warning(
            "proxypay opg refund requested for %s; must be processed manually",
            params.provider_payment_id,
        )
        raise ProviderRefundNotSupported("ProxyPay OPG refunds must be processed manually")


class ProxyPayRPSProvider(PaymentProvider):
    """Create an ATM / home-banking payment reference under the merchant entity."""

    name = "proxypay_rps"

    def __init__(self, client: ProxyPayClient | None = None, entity_id: str | None = None):
        self.client = client or ProxyPayClient.from_settings()
        self.entity_id = entity_id if entity_id is not None else settings.PROXYPAY_ENTITY_ID

    def create_payment_intent(self, params: CreatePaymentParams) -> CreatePaymentResult:
        fallback_reference = generate_rps_reference_number()
        logger.info("creating proxypay rps reference=%s amount=%s", params.reference, params.amount)
        data = self.client.post(
            "/references",
            {
                "reference_id": params.reference,
                "amount": str(params.amount),
                "end_datetime": params.expires_at.isoformat(),
                "custom_fields": {
                    "description": params.description[:100],
                    "bookingId": params.booking_id,
                },
            },
            label="rps",
        )
        rps_id = str(data.get("id") or "")
        if not rps_id:
            raise ProviderPaymentError("ProxyPay RPS response missing id")

        return CreatePaymentResult(
            provider_payment_id=rps_id,
            reference_number=str(data.get("reference") or fallback_reference),
            entity_id=self.entity_id or None,
            provider_data={"rpsId": rps_id},
        )

    def get_payment_status(self, provider_payment_id: str) -> PaymentStatusResult:
        return _status_result(
            self.client.get(f"/references/{provider_payment_id}", label="rps status")
        )

    def refund_payment(self, params: RefundPaymentParams) -> RefundResult:
        logger.warning(
            "proxypay rps refund requested for %s; must be processed manually",
            params.provider_payment_id,
        )
        raise ProviderRefundNotSupported("ProxyPay RPS refunds must be processed manually")
