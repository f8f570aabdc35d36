import logging

from core.errors import ErrorContext
from core.service_log import REDACTED, get_service_logger, redact


def test_redact_masks_sensitive_keys_recursively():
    data = {
        "amount": 5000,
        "customerPhone": "923456789",
        "nested": {"email": "ana@example.com", "items": [{"token": "abc"}]},
    }

    cleaned = redact(data)

    assert cleaned["amount"] == 5000
    assert cleaned["customerPhone"] == REDACTED
    assert cleaned["nested"]["email"] == REDACTED
    assert cleaned["nested"]["items"][0]["token"] == REDACTED
    assert data["customerPhone"] == "923456789"


def test_service_logger_stamps_correlation_fields(caplog):
    context = ErrorContext(function_name="createPaymentIntent", uid="12")
    log = get_service_logger("marketplace.test", context, "payment")

    with caplog.at_level(logging.INFO, logger="marketplace.test"):
        log.operation_start("create_payment_intent", customer_phone="923456789", amount=100)

    record = caplog.records[-1]
    assert record.request_id == context.request_id
    assert record.function_name == "createPaymentIntent"
    assert record.category == "payment"
    assert record.event == "create_payment_intent_started"
    assert "923456789" not in record.getMessage()
    assert REDACTED in record.getMessage()


def test_idempotent_skip_is_logged_at_info(caplog):
    log = get_service_logger("marketplace.test", ErrorContext(function_name="refundEscrow"), "escrow")

    with caplog.at_level(logging.INFO, logger="marketplace.test"):
        log.idempotent_skip("refund_escrow", "escrow already refunded", escrow_id=1)

    record = caplog.records[-1]
    assert record.levelno == logging.INFO
    assert record.event == "idempotent_skip"
    assert "escrow already refunded" in record.getMessage()


def test_resource_set_after_logger_creation_reaches_records(caplog):
    context = ErrorContext(function_name="refundEscrow", uid="3")
    log = get_service_logger("marketplace.test", context, "escrow")
    context.resource_id = "41"
    context.resource_type = "escrow"

    with caplog.at_level(logging.INFO, logger="marketplace.test"):
        log.operation_success("refund_escrow")

    record = caplog.records[-1]
    assert record.resource_id == "41"
    assert record.resource_type == "escrow"
