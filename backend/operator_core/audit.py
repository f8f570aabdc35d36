from datetime import date, datetime
from decimal import Decimal

from operator_core.models import OperatorAuditEvent


def request_ip_and_ua(request) -> tuple[str, str]:
    if request is None:
        return "", ""
    meta = getattr(request, "META", {}) or {}
    ip = (meta.get("HTTP_X_FORWARDED_FOR") or "").split(",")[0].strip() or meta.get(
        "REMOTE_ADDR", ""
    )
    return ip, meta.get("HTTP_USER_AGENT", "")


def safe_json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: safe_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [safe_json_value(v) for v in value]
    return value


def audit(
    *,
    actor,
    action,
    entity_type,
    entity_id,
    reason,
    before=None,
    after=None,
    meta=None,
    ip=None,
    user_agent=None,
):
    """
    Persist an audit event. ``actor`` may be None for scheduled jobs.
    Raises ValueError if reason is missing.
    """

    if not reason:
        raise ValueError("reason is required for audit events")

    return OperatorAuditEvent.objects.create(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
        before_json=safe_json_value(before),
        after_json=safe_json_value(after),
        meta_json=safe_json_value(meta),
        ip=ip or "",
        user_agent=user_agent or "",
    )
