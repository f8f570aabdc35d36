from django.conf import settings
from django.db import models


class Payment(models.Model):
    """One payment attempt against a booking; created once, never deleted."""

    class Method(models.TextChoices):
        OPG = "opg", "Multicaixa Express (mobile push)"
        RPS = "rps", "ATM / bank reference"
        STRIPE = "stripe", "Card (hosted checkout)"

    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        SUCCEEDED = "succeeded", "succeeded"
        FAILED = "failed", "failed"
        EXPIRED = "expired", "expired"

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    supplier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_received",
    )
    amount = models.PositiveBigIntegerField(help_text="Amount in minor currency units.")
    currency = models.CharField(max_length=8, default="AOA")
    payment_method = models.CharField(max_length=16, choices=Method.choices)
    provider = models.CharField(max_length=32)
    provider_payment_id = models.CharField(max_length=255, blank=True, default="")
    reference = models.CharField(
        max_length=32,
        db_index=True,
        help_text="Human-shareable code (BC + 10 chars); not guaranteed unique.",
    )
    reference_number = models.CharField(max_length=32, blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    description = models.CharField(max_length=255, blank=True, default="")
    customer_phone = models.CharField(max_length=32, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")
    customer_name = models.CharField(max_length=200, blank=True, default="")
    checkout_url = models.URLField(max_length=1000, blank=True, default="")
    payment_url = models.URLField(max_length=1000, blank=True, default="")
    expires_at = models.DateTimeField()
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["booking", "status"], name="payments_booking_status_idx"),
            models.Index(fields=["provider", "provider_payment_id"], name="payments_provider_id_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.reference} {self.amount} {self.currency} ({self.status})"
