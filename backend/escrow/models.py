from django.conf import settings
from django.db import models


class Escrow(models.Model):
    """Funds held by the platform between client payment and supplier payout."""

    class Status(models.TextChoices):
        CREATED = "created", "created"
        FUNDED = "funded", "funded"
        SERVICE_COMPLETED = "service_completed", "service completed"
        RELEASED = "released", "released"
        DISPUTED = "disputed", "disputed"
        REFUNDED = "refunded", "refunded"

    REFUNDABLE_STATUSES = (Status.FUNDED, Status.SERVICE_COMPLETED, Status.DISPUTED)
    RELEASABLE_STATUSES = (Status.SERVICE_COMPLETED,)
    DISPUTABLE_STATUSES = (Status.FUNDED, Status.SERVICE_COMPLETED)
    TERMINAL_STATUSES = (Status.RELEASED, Status.REFUNDED)

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="escrows",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrows_as_client",
    )
    supplier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrows_as_supplier",
    )
    payment = models.OneToOneField(
        "payments.Payment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="escrow",
    )
    total_amount = models.PositiveBigIntegerField()
    platform_fee_percent = models.PositiveSmallIntegerField()
    platform_fee = models.PositiveBigIntegerField()
    supplier_payout = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=8, default="AOA")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.CREATED)

    funded_at = models.DateTimeField(null=True, blank=True)
    service_completed_at = models.DateTimeField(null=True, blank=True)
    auto_release_at = models.DateTimeField(null=True, blank=True, db_index=True)
    disputed_at = models.DateTimeField(null=True, blank=True)
    dispute_reason = models.TextField(blank=True, default="")

    refund_amount = models.PositiveBigIntegerField(null=True, blank=True)
    refunded_by = models.CharField(max_length=64, blank=True, default="")
    refund_reason = models.TextField(blank=True, default="")
    refunded_at = models.DateTimeField(null=True, blank=True)

    release_amount = models.PositiveBigIntegerField(null=True, blank=True)
    released_by = models.CharField(max_length=64, blank=True, default="")
    release_notes = models.TextField(blank=True, default="")
    released_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["booking", "status"], name="escrow_booking_status_idx"),
            models.Index(fields=["status", "auto_release_at"], name="escrow_status_release_idx"),
        ]

    def __str__(self) -> str:
        return f"Escrow #{self.pk} booking={self.booking_id} {self.total_amount} ({self.status})"


class Transaction(models.Model):
    """A money movement the platform owes once an escrow settles."""

    class Kind(models.TextChoices):
        REFUND = "REFUND", "Refund to client"
        SUPPLIER_PAYOUT = "SUPPLIER_PAYOUT", "Supplier payout"
        PLATFORM_FEE = "PLATFORM_FEE", "Platform fee"

    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        COMPLETED = "completed", "completed"
        MANUAL = "manual", "manual processing required"
        FAILED = "failed", "failed"

    escrow = models.ForeignKey(Escrow, on_delete=models.PROTECT, related_name="transactions")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="escrow_transactions",
    )
    kind = models.CharField(max_length=32, choices=Kind.choices)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    amount = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=8, default="AOA")
    reason = models.TextField(blank=True, default="")
    provider_reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Provider refund/transfer id once executed.",
    )
    last_error = models.TextField(blank=True, default="")
    attempts = models.PositiveIntegerField(default=0)
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["kind", "status"], name="escrow_tx_kind_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.amount} {self.currency} ({self.status})"
