from django.conf import settings
from django.db import models


class FeatureFlag(models.Model):
    """Stored kill-switch value; a missing row means the feature is enabled."""

    key = models.CharField(max_length=128, unique=True)
    enabled = models.BooleanField(default=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="operator_feature_flags_updated",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key}: {'on' if self.enabled else 'off'}"
