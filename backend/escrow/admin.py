from django.contrib import admin

from .models import Escrow, Transaction


class TransactionInline(admin.TabularInline):
    model = Transaction
    extra = 0
    fields = ("kind", "status", "amount", "currency", "provider_reference", "attempts")
    readonly_fields = fields
    can_delete = False


@admin.register(Escrow)
class EscrowAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "booking",
        "client",
        "supplier",
        "total_amount",
        "platform_fee",
        "currency",
        "status",
        "auto_release_at",
    )
    list_filter = ("status", "currency")
    search_fields = ("booking__id", "client__username", "supplier__username")
    # Status moves only through escrow.services.
    readonly_fields = ("status", "created_at", "updated_at")
    inlines = [TransactionInline]


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "escrow", "kind", "status", "amount", "currency", "attempts", "created_at")
    list_filter = ("kind", "status")
    search_fields = ("provider_reference", "escrow__id")
