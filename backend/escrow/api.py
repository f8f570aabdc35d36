"""Escrow refund and release endpoints."""

from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from core.rpc import rpc_endpoint

from . import refunds


@api_view(["POST"])
@permission_classes([AllowAny])
@rpc_endpoint("refundEscrow", internal_message=refunds.REFUND_INTERNAL_MESSAGE)
def refund_escrow_view(request, context):
    return refunds.refund_escrow(request.data, request.user, context)


@api_view(["POST"])
@permission_classes([AllowAny])
@rpc_endpoint("releaseEscrow", internal_message=refunds.RELEASE_INTERNAL_MESSAGE)
def release_escrow_view(request, context):
    return refunds.release_escrow(request.data, request.user, context)
