"""Payment endpoints."""

from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from core.rpc import rpc_endpoint

from . import confirmation
from .intents import create_payment_intent


@api_view(["POST"])
@permission_classes([AllowAny])
@rpc_endpoint("createPaymentIntent")
def create_payment_intent_view(request, context):
    # Authentication is checked inside the service so the kill switch answers first.
    return create_payment_intent(request.data, request.user, context)


@api_view(["POST"])
@permission_classes([AllowAny])
@rpc_endpoint("confirmPayment", internal_message=confirmation.INTERNAL_MESSAGE)
def confirm_payment_view(request, context):
    return confirmation.confirm_payment(request.data, request.user, context)
