from django.contrib import admin

from core.feature_flags import clear_feature_flags_cache

from .models import FeatureFlag


@admin.register(FeatureFlag)
class FeatureFlagAdmin(admin.ModelAdmin):
    list_display = ("key", "enabled", "updated_at", "updated_by")
    search_fields = ("key",)
    list_filter = ("enabled",)
    ordering = ("key",)

    def save_model(self, request, obj, form, change):
        if getattr(request, "user", None) and request.user.is_authenticated:
            obj.updated_by = request.user
        super().save_model(request, obj, form, change)
        clear_feature_flags_cache(obj.key)
