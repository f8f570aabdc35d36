"""Request/response wrapper shared by the payment and escrow endpoints."""

from __future__ import annotations

import functools
import logging

from rest_framework.exceptions import APIException
from rest_framework.response import Response

from core.errors import ErrorContext, ServiceError, internal

logger = logging.getLogger(__name__)


def build_context(request, function_name: str) -> ErrorContext:
    user = getattr(request, "user", None)
    uid = str(user.id) if user is not None and user.is_authenticated else None
    return ErrorContext(function_name=function_name, uid=uid)


def rpc_endpoint(function_name: str, *, internal_message: str | None = None):
    """
    Wrap a DRF view taking ``(request, context)`` and returning a JSON-able dict.

    ServiceErrors become ``{"error": {...}}`` responses with their mapped HTTP
    status. Anything else is logged with a stack trace and surfaced as a
    generic ``internal`` error so no internals leak to the caller.
    """

    def decorator(view_func):
        @functools.wraps(view_func)
        def wrapper(request, *args, **kwargs):
            context = build_context(request, function_name)
            try:
                result = view_func(request, context, *args, **kwargs)
            except ServiceError as exc:
                if exc.context is None:
                    exc.context = context
                logger.warning(
                    "%s failed [%s] request=%s uid=%s: %s",
                    function_name,
                    exc.kind.value,
                    context.request_id,
                    context.uid,
                    exc.internal_message,
                )
                return Response(exc.to_payload(), status=exc.http_status)
            except APIException:
                # Malformed bodies and the like are answered by DRF itself.
                raise
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "%s unexpected error request=%s uid=%s: %s",
                    function_name,
                    context.request_id,
                    context.uid,
                    exc,
                )
                error = internal(str(exc), message=internal_message, context=context)
                return Response(error.to_payload(), status=error.http_status)

            if isinstance(result, Response):
                return result
            return Response(result)

        return wrapper

    return decorator
