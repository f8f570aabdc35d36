import pytest
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.test import APIRequestFactory

from core import errors
from core.rpc import rpc_endpoint


@pytest.mark.parametrize(
    "kind,status_code",
    [
        (errors.ErrorKind.UNAUTHENTICATED, 401),
        (errors.ErrorKind.INVALID_ARGUMENT, 400),
        (errors.ErrorKind.FAILED_PRECONDITION, 412),
        (errors.ErrorKind.PERMISSION_DENIED, 403),
        (errors.ErrorKind.NOT_FOUND, 404),
        (errors.ErrorKind.RESOURCE_EXHAUSTED, 429),
        (errors.ErrorKind.UNAVAILABLE, 503),
        (errors.ErrorKind.INTERNAL, 500),
    ],
)
def test_every_kind_has_http_status_and_default_message(kind, status_code):
    error = errors.ServiceError(kind, "boom")
    assert error.http_status == status_code
    assert error.user_message == errors.DEFAULT_USER_MESSAGES[kind]


def test_error_codes_are_the_eight_wire_codes():
    assert {kind.value for kind in errors.ErrorKind} == {
        "unauthenticated",
        "invalid-argument",
        "failed-precondition",
        "permission-denied",
        "not-found",
        "resource-exhausted",
        "unavailable",
        "internal",
    }
    assert set(errors.HTTP_STATUS_BY_KIND) == set(errors.ErrorKind)


def test_payload_carries_field_details_and_request_id():
    context = errors.ErrorContext(function_name="createPaymentIntent")
    error = errors.invalid_argument(
        "amount too small",
        field="amount",
        message="Valor mínimo de pagamento é 100 AOA",
        context=context,
    )

    payload = error.to_payload()

    assert payload == {
        "error": {
            "code": "invalid-argument",
            "message": "Valor mínimo de pagamento é 100 AOA",
            "details": {"field": "amount"},
            "requestId": context.request_id,
        }
    }
    assert len(context.request_id) == 8


def test_internal_message_is_not_exposed():
    error = errors.internal("psycopg2.OperationalError: connection refused")
    payload = error.to_payload()
    assert "psycopg2" not in payload["error"]["message"]
    assert payload["error"]["message"] == "Erro interno. Tente novamente"


def test_not_found_names_resource_type():
    error = errors.not_found("escrow", 42, message="Escrow não encontrado")
    assert error.details == {"resourceType": "escrow"}
    assert error.internal_message == "escrow 42 not found"


def test_context_log_fields_include_resource_when_set():
    context = errors.ErrorContext(function_name="refundEscrow", uid="7")
    assert "resource_id" not in context.as_log_fields()
    context.resource_id = "3"
    context.resource_type = "escrow"
    fields = context.as_log_fields()
    assert fields["resource_id"] == "3"
    assert fields["resource_type"] == "escrow"
    assert fields["uid"] == "7"


def _make_view(raises):
    @api_view(["POST"])
    @permission_classes([AllowAny])
    @rpc_endpoint("testOperation", internal_message="Falhou. Tente novamente.")
    def view(request, context):
        raise raises

    return view


def test_rpc_endpoint_maps_service_error_to_status():
    view = _make_view(errors.permission_denied("nope", message="Sem permissão"))
    response = view(APIRequestFactory().post("/x/", {}, format="json"))

    assert response.status_code == 403
    assert response.data["error"]["code"] == "permission-denied"
    assert response.data["error"]["message"] == "Sem permissão"
    assert len(response.data["error"]["requestId"]) == 8


def test_rpc_endpoint_hides_unexpected_errors():
    view = _make_view(RuntimeError("secret internals"))
    response = view(APIRequestFactory().post("/x/", {}, format="json"))

    assert response.status_code == 500
    assert response.data["error"]["code"] == "internal"
    assert response.data["error"]["message"] == "Falhou. Tente novamente."
    assert "secret" not in str(response.data)


def test_rpc_endpoint_wraps_dict_results():
    @api_view(["POST"])
    @permission_classes([AllowAny])
    @rpc_endpoint("echo")
    def view(request, context):
        return {"success": True, "function": context.function_name}

    response = view(APIRequestFactory().post("/x/", {}, format="json"))

    assert response.status_code == 200
    assert response.data == {"success": True, "function": "echo"}
