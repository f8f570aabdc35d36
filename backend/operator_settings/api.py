from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.feature_flags import get_all_feature_flags, set_feature_flag
from operator_core.audit import request_ip_and_ua
from operator_core.permissions import HasOperatorRole, IsOperator
from operator_settings.models import FeatureFlag
from operator_settings.serializers import FeatureFlagPutSerializer, FeatureFlagSerializer

logger = logging.getLogger(__name__)

ALLOWED_OPERATOR_ROLES = (
    "operator_support",
    "operator_finance",
    "operator_admin",
)


class OperatorFeatureFlagsView(APIView):
    http_method_names = ["get", "put"]

    def get_permissions(self):
        if self.request.method == "PUT":
            return [IsOperator(), HasOperatorRole.with_roles(["operator_admin"])()]
        return [IsOperator(), HasOperatorRole.with_roles(ALLOWED_OPERATOR_ROLES)()]

    def get(self, request):
        rows = FeatureFlag.objects.all().order_by("key").select_related("updated_by")
        return Response(
            {
                "effective": get_all_feature_flags(),
                "stored": FeatureFlagSerializer(rows, many=True).data,
            }
        )

    def put(self, request):
        payload = request.data if isinstance(request.data, dict) else {}
        serializer = FeatureFlagPutSerializer(data=payload)
        serializer.is_valid(raise_exception=True)

        ip, user_agent = request_ip_and_ua(request)
        flag = set_feature_flag(
            feature=serializer.validated_data["key"],
            enabled=serializer.validated_data["enabled"],
            actor=request.user,
            reason=serializer.validated_data["reason"],
            ip=ip,
            user_agent=user_agent,
        )
        return Response(FeatureFlagSerializer(flag).data, status=status.HTTP_200_OK)
