import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "amount",
                    models.PositiveBigIntegerField(help_text="Amount in minor currency units."),
                ),
                ("currency", models.CharField(default="AOA", max_length=8)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("opg", "Multicaixa Express (mobile push)"),
                            ("rps", "ATM / bank reference"),
                            ("stripe", "Card (hosted checkout)"),
                        ],
                        max_length=16,
                    ),
                ),
                ("provider", models.CharField(max_length=32)),
                ("provider_payment_id", models.CharField(blank=True, default="", max_length=255)),
                (
                    "reference",
                    models.CharField(
                        db_index=True,
                        help_text="Human-shareable code (BC + 10 chars); not guaranteed unique.",
                        max_length=32,
                    ),
                ),
                ("reference_number", models.CharField(blank=True, default="", max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "pending"),
                            ("succeeded", "succeeded"),
                            ("failed", "failed"),
                            ("expired", "expired"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("customer_phone", models.CharField(blank=True, default="", max_length=32)),
                ("customer_email", models.EmailField(blank=True, default="", max_length=254)),
                ("customer_name", models.CharField(blank=True, default="", max_length=200)),
                ("checkout_url", models.URLField(blank=True, default="", max_length=1000)),
                ("payment_url", models.URLField(blank=True, default="", max_length=1000)),
                ("expires_at", models.DateTimeField()),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="bookings.booking",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["booking", "status"], name="payments_booking_status_idx"
                    ),
                    models.Index(
                        fields=["provider", "provider_payment_id"],
                        name="payments_provider_id_idx",
                    ),
                ],
            },
        ),
    ]
