from django.conf import settings
from rest_framework import serializers

from payments.models import Payment

REQUIRED_MESSAGE = "Campos obrigatórios"


def _min_amount() -> int:
    return int(getattr(settings, "PAYMENTS_MIN_AMOUNT", 100))


class PaymentIntentRequestSerializer(serializers.Serializer):
    """Validates the createPaymentIntent request; field names match the wire format."""

    bookingId = serializers.CharField(
        max_length=64,
        error_messages={"required": REQUIRED_MESSAGE, "blank": REQUIRED_MESSAGE},
    )
    amount = serializers.IntegerField(
        error_messages={"required": REQUIRED_MESSAGE, "invalid": "Valor inválido"},
    )
    currency = serializers.CharField(max_length=8, required=False, allow_blank=True)
    paymentMethod = serializers.ChoiceField(
        choices=Payment.Method.choices,
        error_messages={
            "required": REQUIRED_MESSAGE,
            "blank": REQUIRED_MESSAGE,
            "invalid_choice": "Método de pagamento inválido",
        },
    )
    customerPhone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    customerEmail = serializers.EmailField(required=False, allow_blank=True)
    customerName = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    successUrl = serializers.URLField(max_length=1000, required=False, allow_blank=True)
    cancelUrl = serializers.URLField(max_length=1000, required=False, allow_blank=True)

    def validate_amount(self, value: int) -> int:
        minimum = _min_amount()
        if value < minimum:
            currency = getattr(settings, "PAYMENTS_DEFAULT_CURRENCY", "AOA")
            raise serializers.ValidationError(
                f"Valor mínimo de pagamento é {minimum} {currency}"
            )
        return value

    def validate_currency(self, value: str) -> str:
        return (value or "").strip().upper()

    def validate(self, attrs):
        if attrs["paymentMethod"] == Payment.Method.OPG and not (
            attrs.get("customerPhone") or ""
        ).strip():
            raise serializers.ValidationError(
                {"customerPhone": "Número de telefone é obrigatório para pagamento mobile"}
            )
        if not attrs.get("currency"):
            attrs["currency"] = getattr(settings, "PAYMENTS_DEFAULT_CURRENCY", "AOA")
        return attrs


def first_validation_error(errors) -> tuple[str | None, str]:
    """Return ``(field, message)`` for the first error in a DRF errors dict."""
    if isinstance(errors, dict):
        for field, messages in errors.items():
            _nested, message = first_validation_error(messages)
            return (None if field == "non_field_errors" else field), message
    if isinstance(errors, (list, tuple)) and errors:
        return first_validation_error(errors[0])
    return None, str(errors)
