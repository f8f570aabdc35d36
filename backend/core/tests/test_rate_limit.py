import pytest

from core import rate_limit
from core.errors import ErrorKind, ServiceError


@pytest.fixture
def small_limits(settings):
    settings.RATE_LIMITS = {
        "createPaymentIntent": {"max_requests": 3, "window_seconds": 3600},
        "default": {"max_requests": 5, "window_seconds": 3600},
    }


def test_config_falls_back_to_default(small_limits):
    assert rate_limit.get_rate_limit_config("createPaymentIntent") == (3, 3600)
    assert rate_limit.get_rate_limit_config("somethingElse") == (5, 3600)


def test_calls_admitted_up_to_limit_then_rejected(small_limits):
    results = [rate_limit.check_rate_limit(7, "createPaymentIntent") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert results[2].remaining == 0
    assert results[3].retry_after_seconds >= 1


def test_counters_are_per_user(small_limits):
    for _ in range(3):
        rate_limit.check_rate_limit(1, "createPaymentIntent")

    assert rate_limit.check_rate_limit(2, "createPaymentIntent").allowed is True
    assert rate_limit.check_rate_limit(1, "createPaymentIntent").allowed is False


def test_enforce_raises_resource_exhausted_with_retry_details(small_limits):
    for _ in range(3):
        rate_limit.enforce_rate_limit(9, "createPaymentIntent")

    with pytest.raises(ServiceError) as excinfo:
        rate_limit.enforce_rate_limit(9, "createPaymentIntent")

    error = excinfo.value
    assert error.kind == ErrorKind.RESOURCE_EXHAUSTED
    assert error.user_message.startswith("Limite de requisições excedido.")
    assert error.details["retryAfterSeconds"] >= 1
    assert "resetAt" in error.details


def test_status_does_not_count_and_reset_clears(small_limits):
    rate_limit.check_rate_limit(4, "createPaymentIntent")
    rate_limit.check_rate_limit(4, "createPaymentIntent")

    status = rate_limit.get_rate_limit_status(4, "createPaymentIntent")
    assert status["count"] == 2
    assert status["remaining"] == 1
    assert rate_limit.get_rate_limit_status(4, "createPaymentIntent")["count"] == 2

    rate_limit.reset_rate_limit(4, "createPaymentIntent")
    assert rate_limit.get_rate_limit_status(4, "createPaymentIntent")["count"] == 0


class _BrokenCache:
    def add(self, *args, **kwargs):
        raise ConnectionError("redis down")

    def incr(self, *args, **kwargs):
        raise ConnectionError("redis down")


def test_cache_failure_admits_request(monkeypatch, small_limits):
    monkeypatch.setattr(rate_limit, "cache", _BrokenCache())

    result = rate_limit.check_rate_limit(1, "createPaymentIntent")

    assert result.allowed is True
    assert result.count == 0
