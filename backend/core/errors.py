"""Caller-facing error taxonomy shared by every RPC endpoint."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from rest_framework import status


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    FAILED_PRECONDITION = "failed-precondition"
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    RESOURCE_EXHAUSTED = "resource-exhausted"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


HTTP_STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FAILED_PRECONDITION: status.HTTP_412_PRECONDITION_FAILED,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.RESOURCE_EXHAUSTED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Safe, localized (pt-AO) messages shown when a call site gives none.
DEFAULT_USER_MESSAGES = {
    ErrorKind.UNAUTHENTICATED: "Você precisa estar autenticado",
    ErrorKind.INVALID_ARGUMENT: "Dados inválidos",
    ErrorKind.FAILED_PRECONDITION: "Operação não permitida no estado atual",
    ErrorKind.PERMISSION_DENIED: "Você não tem permissão para esta ação",
    ErrorKind.NOT_FOUND: "Recurso não encontrado",
    ErrorKind.RESOURCE_EXHAUSTED: "Muitas tentativas. Tente novamente mais tarde",
    ErrorKind.UNAVAILABLE: "Serviço temporariamente indisponível",
    ErrorKind.INTERNAL: "Erro interno. Tente novamente",
}


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class ErrorContext:
    """Correlation data attached to logs and error payloads for one request."""

    function_name: str
    request_id: str = field(default_factory=new_request_id)
    uid: str | None = None
    resource_id: str | None = None
    resource_type: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_log_fields(self) -> dict[str, Any]:
        fields = {
            "request_id": self.request_id,
            "function_name": self.function_name,
            "uid": self.uid,
        }
        if self.resource_id:
            fields["resource_id"] = self.resource_id
            fields["resource_type"] = self.resource_type
        fields.update(self.extra)
        return fields


class ServiceError(Exception):
    """
    A classified failure that is safe to return to the caller.

    ``internal_message`` goes to logs only; ``user_message`` is what the caller
    sees. ``details`` must be JSON-serializable and free of secrets.
    """

    def __init__(
        self,
        kind: ErrorKind,
        internal_message: str,
        *,
        user_message: str | None = None,
        context: ErrorContext | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(internal_message)
        self.kind = ErrorKind(kind)
        self.internal_message = internal_message
        self.user_message = user_message or DEFAULT_USER_MESSAGES[self.kind]
        self.context = context
        self.field = field
        self.details = dict(details or {})
        if field and "field" not in self.details:
            self.details["field"] = field

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_payload(self) -> dict[str, Any]:
        error: dict[str, Any] = {
            "code": self.kind.value,
            "message": self.user_message,
        }
        if self.details:
            error["details"] = self.details
        if self.context is not None:
            error["requestId"] = self.context.request_id
        return {"error": error}

    def __repr__(self) -> str:
        return f"ServiceError({self.kind.value!r}, {self.internal_message!r})"


def unauthenticated(context=None, message=None) -> ServiceError:
    return ServiceError(
        ErrorKind.UNAUTHENTICATED,
        "Caller is not authenticated",
        user_message=message,
        context=context,
    )


def invalid_argument(internal_message, *, field=None, message=None, context=None) -> ServiceError:
    return ServiceError(
        ErrorKind.INVALID_ARGUMENT,
        internal_message,
        user_message=message,
        context=context,
        field=field,
    )


def failed_precondition(internal_message, *, message=None, context=None, details=None):
    return ServiceError(
        ErrorKind.FAILED_PRECONDITION,
        internal_message,
        user_message=message,
        context=context,
        details=details,
    )


def permission_denied(internal_message, *, message=None, context=None) -> ServiceError:
    return ServiceError(
        ErrorKind.PERMISSION_DENIED,
        internal_message,
        user_message=message,
        context=context,
    )


def not_found(resource_type: str, resource_id, *, message=None, context=None) -> ServiceError:
    return ServiceError(
        ErrorKind.NOT_FOUND,
        f"{resource_type} {resource_id} not found",
        user_message=message,
        context=context,
        details={"resourceType": resource_type},
    )


def resource_exhausted(internal_message, *, message=None, context=None, details=None):
    return ServiceError(
        ErrorKind.RESOURCE_EXHAUSTED,
        internal_message,
        user_message=message,
        context=context,
        details=details,
    )


def unavailable(internal_message, *, message=None, context=None) -> ServiceError:
    return ServiceError(
        ErrorKind.UNAVAILABLE,
        internal_message,
        user_message=message,
        context=context,
    )


def internal(internal_message, *, message=None, context=None) -> ServiceError:
    return ServiceError(
        ErrorKind.INTERNAL,
        internal_message,
        user_message=message,
        context=context,
    )
