"""Structured, correlation-aware logging for money-moving operations."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from core.errors import ErrorContext

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "token",
        "access_token",
        "refresh_token",
        "api_key",
        "apikey",
        "secret",
        "authorization",
        "phone",
        "customer_phone",
        "customerphone",
        "mobile",
        "email",
        "customer_email",
        "customeremail",
        "card_number",
        "cardnumber",
        "cvv",
        "pin",
    }
)
REDACTED = "[REDACTED]"


def redact(value: Any, _depth: int = 0) -> Any:
    """Return a copy of ``value`` with sensitive mapping keys masked."""
    if _depth > 5:
        return value
    if isinstance(value, Mapping):
        cleaned = {}
        for key, item in value.items():
            if str(key).lower() in SENSITIVE_KEYS:
                cleaned[key] = REDACTED
            else:
                cleaned[key] = redact(item, _depth + 1)
        return cleaned
    if isinstance(value, (list, tuple)):
        return [redact(item, _depth + 1) for item in value]
    return value


class ServiceLogger(logging.LoggerAdapter):
    """
    Logger adapter that stamps every record with request correlation fields.

    Events are logged as ``"<event> <fields>"`` and the same fields are attached
    to the record via ``extra`` so JSON formatters can pick them up.
    """

    def __init__(self, logger: logging.Logger, context: ErrorContext, category: str):
        super().__init__(logger, {"category": category})
        self.context = context
        self.category = category
        self._started_at = time.monotonic()

    def process(self, msg, kwargs):
        # Context fields are read per record; resource ids are set mid-operation.
        extra = {**self.extra, **self.context.as_log_fields()}
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._started_at) * 1000)

    def event(self, level: int, event: str, **fields: Any) -> None:
        payload = redact(fields)
        self.log(
            level,
            "%s [%s] request=%s uid=%s %s",
            event,
            self.category,
            self.context.request_id,
            self.context.uid,
            payload,
            extra={"event": event},
        )

    def operation_start(self, operation: str, **fields: Any) -> None:
        self._started_at = time.monotonic()
        self.event(logging.INFO, f"{operation}_started", **fields)

    def operation_success(self, operation: str, **fields: Any) -> None:
        self.event(logging.INFO, f"{operation}_succeeded", duration_ms=self.elapsed_ms(), **fields)

    def operation_failed(self, operation: str, error: BaseException, **fields: Any) -> None:
        self.event(
            logging.ERROR,
            f"{operation}_failed",
            duration_ms=self.elapsed_ms(),
            error=repr(error),
            **fields,
        )

    def state_transition(self, entity: str, entity_id, from_state, to_state, **fields: Any):
        self.event(
            logging.INFO,
            "state_transition",
            entity=entity,
            entity_id=str(entity_id),
            from_state=from_state,
            to_state=to_state,
            **fields,
        )

    def idempotent_skip(self, operation: str, reason: str, **fields: Any) -> None:
        self.event(logging.INFO, "idempotent_skip", operation=operation, reason=reason, **fields)

    def rate_limit_hit(self, operation: str, count: int, limit: int) -> None:
        self.event(logging.WARNING, "rate_limit_hit", operation=operation, count=count, limit=limit)

    def kill_switch_active(self, feature: str) -> None:
        self.event(logging.WARNING, "kill_switch_active", feature=feature)


def get_service_logger(name: str, context: ErrorContext, category: str) -> ServiceLogger:
    return ServiceLogger(logging.getLogger(name), context, category)
