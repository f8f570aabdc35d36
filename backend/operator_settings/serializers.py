from rest_framework import serializers

from core.feature_flags import KNOWN_FEATURES
from operator_settings.models import FeatureFlag


class FeatureFlagSerializer(serializers.ModelSerializer):
    updated_by_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = FeatureFlag
        fields = ["id", "key", "enabled", "updated_at", "updated_by_id"]


class FeatureFlagPutSerializer(serializers.Serializer):
    key = serializers.CharField(max_length=128)
    enabled = serializers.BooleanField()
    reason = serializers.CharField(allow_blank=False, trim_whitespace=True)

    def validate_key(self, value: str) -> str:
        key = (value or "").strip()
        if key not in KNOWN_FEATURES:
            raise serializers.ValidationError(f"unknown feature flag: {key or '(empty)'}")
        return key

    def validate_reason(self, value: str) -> str:
        reason = (value or "").strip()
        if not reason:
            raise serializers.ValidationError("reason is required")
        return reason
