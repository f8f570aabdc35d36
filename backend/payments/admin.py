from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "reference",
        "booking",
        "user",
        "amount",
        "currency",
        "payment_method",
        "status",
        "created_at",
    )
    list_filter = ("payment_method", "status", "provider")
    search_fields = ("reference", "provider_payment_id", "reference_number")
    readonly_fields = ("created_at", "updated_at")
