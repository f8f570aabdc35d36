"""Fixed-window per-user rate limiting backed by the shared Django cache."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from django.core.cache import cache

from core.errors import resource_exhausted

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = {"max_requests": 60, "window_seconds": 3600}
_KEY_PREFIX = "ratelimit"


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    count: int
    limit: int
    remaining: int
    reset_at: datetime
    retry_after_seconds: int | None = None


def get_rate_limit_config(operation: str) -> tuple[int, int]:
    """Return ``(max_requests, window_seconds)`` for an operation."""
    limits = getattr(settings, "RATE_LIMITS", None) or {}
    config = limits.get(operation) or limits.get("default") or DEFAULT_LIMIT
    return int(config["max_requests"]), int(config["window_seconds"])


def _window(window_seconds: int, now: float) -> tuple[int, datetime]:
    index = int(now // window_seconds)
    reset_at = datetime.fromtimestamp((index + 1) * window_seconds, tz=dt_timezone.utc)
    return index, reset_at


def _key(user_id, operation: str, index: int) -> str:
    return f"{_KEY_PREFIX}:{operation}:{user_id}:{index}"


def check_rate_limit(user_id, operation: str) -> RateLimitResult:
    """
    Count one call against the caller's window and report whether it is admitted.

    Cache failures admit the call (fail-open) and are logged.
    """
    max_requests, window_seconds = get_rate_limit_config(operation)
    now = time.time()
    index, reset_at = _window(window_seconds, now)
    key = _key(user_id, operation, index)

    try:
        cache.add(key, 0, timeout=window_seconds + 1)
        try:
            count = cache.incr(key)
        except ValueError:
            # Key expired between add() and incr().
            cache.set(key, 1, timeout=window_seconds + 1)
            count = 1
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "rate limit store unavailable for %s/%s, allowing request: %s",
            user_id,
            operation,
            exc,
        )
        return RateLimitResult(
            allowed=True,
            count=0,
            limit=max_requests,
            remaining=max_requests,
            reset_at=reset_at,
        )

    if count > max_requests:
        retry_after = max(1, math.ceil(reset_at.timestamp() - now))
        return RateLimitResult(
            allowed=False,
            count=count,
            limit=max_requests,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )

    return RateLimitResult(
        allowed=True,
        count=count,
        limit=max_requests,
        remaining=max_requests - count,
        reset_at=reset_at,
    )


def enforce_rate_limit(user_id, operation: str, context=None, log=None) -> RateLimitResult:
    """Like check_rate_limit but raises ``resource-exhausted`` when over the limit."""
    result = check_rate_limit(user_id, operation)
    if result.allowed:
        return result

    if log is not None:
        log.rate_limit_hit(operation, result.count, result.limit)
    else:
        logger.warning(
            "rate limit exceeded: %s/%s retry after %ss",
            user_id,
            operation,
            result.retry_after_seconds,
        )
    raise resource_exhausted(
        f"Rate limit exceeded: {user_id}/{operation}",
        message=(
            "Limite de requisições excedido. "
            f"Tente novamente em {result.retry_after_seconds} segundos."
        ),
        context=context,
        details={
            "retryAfterSeconds": result.retry_after_seconds,
            "resetAt": result.reset_at.isoformat(),
        },
    )


def get_rate_limit_status(user_id, operation: str) -> dict:
    """Read the current window without counting a call."""
    max_requests, window_seconds = get_rate_limit_config(operation)
    index, reset_at = _window(window_seconds, time.time())
    count = int(cache.get(_key(user_id, operation, index), 0) or 0)
    return {
        "count": count,
        "limit": max_requests,
        "remaining": max(0, max_requests - count),
        "reset_at": reset_at if count else None,
    }


def reset_rate_limit(user_id, operation: str) -> None:
    _max_requests, window_seconds = get_rate_limit_config(operation)
    index, _reset_at = _window(window_seconds, time.time())
    cache.delete(_key(user_id, operation, index))
