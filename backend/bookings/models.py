"""Database models for service reservations."""

from __future__ import annotations

from django.conf import settings
from django.db import models


class Booking(models.Model):
    """A client's reservation of a supplier's service for an event."""

    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        CONFIRMED = "confirmed", "confirmed"
        PARTIALLY_PAID = "partially_paid", "partially paid"
        IN_PROGRESS = "in_progress", "in progress"
        COMPLETED = "completed", "completed"
        CANCELLED = "cancelled", "cancelled"
        DISPUTED = "disputed", "disputed"
        REFUNDED = "refunded", "refunded"

    class PaymentStatus(models.TextChoices):
        UNPAID = "unpaid", "unpaid"
        PENDING = "pending", "pending"
        PARTIAL = "partial", "partial"
        PAID = "paid", "paid"
        REFUNDED = "refunded", "refunded"
        RELEASED = "released", "released"

    PAYABLE_STATUSES = frozenset({Status.PENDING, Status.CONFIRMED, Status.PARTIALLY_PAID})

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_client",
        on_delete=models.CASCADE,
    )
    supplier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_supplier",
        on_delete=models.CASCADE,
    )
    event_name = models.CharField(max_length=200, blank=True, default="")
    event_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    total_amount = models.PositiveBigIntegerField(
        default=0,
        help_text="Total price in minor currency units; 0 means no total recorded.",
    )
    paid_amount = models.PositiveBigIntegerField(default=0)
    currency = models.CharField(max_length=8, default="AOA")
    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["client", "status"], name="bookings_bo_client__5d0c1e_idx"),
            models.Index(fields=["supplier", "status"], name="bookings_bo_supplie_8a4f2b_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} ({self.status})"

    def is_payable(self) -> bool:
        """Return True if a payment may be started in the current status."""
        return self.status in self.PAYABLE_STATUSES

    def is_fully_paid(self) -> bool:
        """A total of 0 means no total was recorded and never counts as paid."""
        return self.total_amount > 0 and self.paid_amount >= self.total_amount
