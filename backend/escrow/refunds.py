"""Privileged escrow entry operations: refund to client, release to supplier."""

from __future__ import annotations

from core import errors
from core.feature_flags import require_feature_enabled
from core.rate_limit import enforce_rate_limit
from core.service_log import get_service_logger
from escrow import services
from escrow.models import Escrow
from operator_core.permissions import is_admin_user

REFUND_INTERNAL_MESSAGE = "Erro ao reembolsar escrow. Tente novamente."
RELEASE_INTERNAL_MESSAGE = "Erro ao liberar escrow. Tente novamente."


def _escrow_id_from(data, context) -> str:
    escrow_id = data.get("escrowId")
    escrow_id = str(escrow_id).strip() if escrow_id is not None else ""
    if not escrow_id:
        raise errors.invalid_argument(
            "escrowId is required",
            field="escrowId",
            message="ID do escrow é obrigatório",
            context=context,
        )
    return escrow_id


def _get_escrow(escrow_id: str, context) -> Escrow:
    escrow = None
    if escrow_id.isdigit():
        escrow = Escrow.objects.filter(pk=int(escrow_id)).first()
    if escrow is None:
        raise errors.not_found(
            "escrow", escrow_id, message="Escrow não encontrado", context=context
        )
    context.resource_id = str(escrow.pk)
    context.resource_type = "escrow"
    return escrow


def refund_escrow(data, user, context: errors.ErrorContext) -> dict:
    """
    Refund an escrow to the client. Administrators only.

    A second call for an escrow that is already refunded succeeds with the
    recorded amount; that check runs under the same row lock as the transition.
    """
    log = get_service_logger(__name__, context, "escrow")
    data = data if isinstance(data, dict) else {}
    log.operation_start("refund_escrow", escrow_id=data.get("escrowId"))

    if user is None or not user.is_authenticated:
        raise errors.unauthenticated(context)

    escrow_id = _escrow_id_from(data, context)
    escrow = _get_escrow(escrow_id, context)

    if not is_admin_user(user):
        raise errors.permission_denied(
            f"User {user.id} is not an administrator",
            message="Apenas administradores podem processar reembolsos",
            context=context,
        )

    # Counted for administrators only.
    enforce_rate_limit(user.id, "refundEscrow", context, log)

    previous_status = escrow.status
    outcome = services.refund_escrow(
        escrow.pk,
        refunded_by=f"admin:{user.id}",
        actor=user,
        reason=data.get("reason"),
    )
    if outcome.already_refunded:
        log.idempotent_skip(
            "refund_escrow",
            "escrow already refunded",
            escrow_id=escrow.pk,
            refund_amount=outcome.refund_amount,
        )
    else:
        log.state_transition(
            "escrow",
            escrow.pk,
            previous_status,
            outcome.escrow.status,
            refund_amount=outcome.refund_amount,
        )
        log.operation_success(
            "refund_escrow", escrow_id=escrow.pk, refund_amount=outcome.refund_amount
        )

    return {
        "success": True,
        "escrowId": str(escrow.pk),
        "refundAmount": outcome.refund_amount,
    }


def release_escrow(data, user, context: errors.ErrorContext) -> dict:
    """Release an escrow to the supplier. Administrators or the escrow's client."""
    log = get_service_logger(__name__, context, "escrow")
    data = data if isinstance(data, dict) else {}
    log.operation_start("release_escrow", escrow_id=data.get("escrowId"))

    require_feature_enabled("escrow", context, log)

    if user is None or not user.is_authenticated:
        raise errors.unauthenticated(context)

    escrow_id = _escrow_id_from(data, context)
    escrow = _get_escrow(escrow_id, context)

    is_admin = is_admin_user(user)
    if not is_admin and escrow.client_id != user.id:
        raise errors.permission_denied(
            f"User {user.id} may not release escrow {escrow.pk}",
            message="Você não tem permissão para liberar este pagamento",
            context=context,
        )

    previous_status = escrow.status
    outcome = services.release_escrow(
        escrow.pk,
        released_by=f"admin:{user.id}" if is_admin else f"client:{user.id}",
        actor=user,
        notes=data.get("notes"),
    )
    if outcome.already_released:
        log.idempotent_skip("release_escrow", "escrow already released", escrow_id=escrow.pk)
    else:
        log.state_transition("escrow", escrow.pk, previous_status, outcome.escrow.status)
        log.operation_success(
            "release_escrow",
            escrow_id=escrow.pk,
            release_amount=outcome.release_amount,
            platform_fee=outcome.platform_fee,
        )

    return {
        "success": True,
        "escrowId": str(escrow.pk),
        "releaseAmount": outcome.release_amount,
        "platformFee": outcome.platform_fee,
    }
