import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("event_name", models.CharField(blank=True, default="", max_length=200)),
                ("event_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "pending"),
                            ("confirmed", "confirmed"),
                            ("partially_paid", "partially paid"),
                            ("in_progress", "in progress"),
                            ("completed", "completed"),
                            ("cancelled", "cancelled"),
                            ("disputed", "disputed"),
                            ("refunded", "refunded"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                (
                    "total_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Total price in minor currency units; 0 means no total recorded.",
                    ),
                ),
                ("paid_amount", models.PositiveBigIntegerField(default=0)),
                ("currency", models.CharField(default="AOA", max_length=8)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("unpaid", "unpaid"),
                            ("pending", "pending"),
                            ("partial", "partial"),
                            ("paid", "paid"),
                            ("refunded", "refunded"),
                            ("released", "released"),
                        ],
                        default="unpaid",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings_as_client",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings_as_supplier",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["client", "status"], name="bookings_bo_client__5d0c1e_idx"
                    ),
                    models.Index(
                        fields=["supplier", "status"], name="bookings_bo_supplie_8a4f2b_idx"
                    ),
                ],
            },
        ),
    ]
