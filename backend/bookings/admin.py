from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "client",
        "supplier",
        "status",
        "payment_status",
        "total_amount",
        "paid_amount",
        "currency",
        "created_at",
    )
    list_filter = ("status", "payment_status")
    search_fields = ("event_name", "client__username", "supplier__username")
