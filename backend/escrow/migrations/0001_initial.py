import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
        ("payments", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Escrow",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("total_amount", models.PositiveBigIntegerField()),
                ("platform_fee_percent", models.PositiveSmallIntegerField()),
                ("platform_fee", models.PositiveBigIntegerField()),
                ("supplier_payout", models.PositiveBigIntegerField()),
                ("currency", models.CharField(default="AOA", max_length=8)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("created", "created"),
                            ("funded", "funded"),
                            ("service_completed", "service completed"),
                            ("released", "released"),
                            ("disputed", "disputed"),
                            ("refunded", "refunded"),
                        ],
                        default="created",
                        max_length=20,
                    ),
                ),
                ("funded_at", models.DateTimeField(blank=True, null=True)),
                ("service_completed_at", models.DateTimeField(blank=True, null=True)),
                ("auto_release_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("disputed_at", models.DateTimeField(blank=True, null=True)),
                ("dispute_reason", models.TextField(blank=True, default="")),
                ("refund_amount", models.PositiveBigIntegerField(blank=True, null=True)),
                ("refunded_by", models.CharField(blank=True, default="", max_length=64)),
                ("refund_reason", models.TextField(blank=True, default="")),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("release_amount", models.PositiveBigIntegerField(blank=True, null=True)),
                ("released_by", models.CharField(blank=True, default="", max_length=64)),
                ("release_notes", models.TextField(blank=True, default="")),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrows",
                        to="bookings.booking",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrows_as_client",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "payment",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow",
                        to="payments.payment",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrows_as_supplier",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["booking", "status"], name="escrow_booking_status_idx"),
                    models.Index(
                        fields=["status", "auto_release_at"], name="escrow_status_release_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("REFUND", "Refund to client"),
                            ("SUPPLIER_PAYOUT", "Supplier payout"),
                            ("PLATFORM_FEE", "Platform fee"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "pending"),
                            ("completed", "completed"),
                            ("manual", "manual processing required"),
                            ("failed", "failed"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("amount", models.PositiveBigIntegerField()),
                ("currency", models.CharField(default="AOA", max_length=8)),
                ("reason", models.TextField(blank=True, default="")),
                (
                    "provider_reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Provider refund/transfer id once executed.",
                        max_length=255,
                    ),
                ),
                ("last_error", models.TextField(blank=True, default="")),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "escrow",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="escrow.escrow",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["kind", "status"], name="escrow_tx_kind_status_idx"),
                ],
            },
        ),
    ]
