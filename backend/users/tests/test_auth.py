import pytest
from django.contrib.auth import get_user_model

pytestmark = pytest.mark.django_db

User = get_user_model()


@pytest.fixture
def user():
    return User.objects.create_user(
        username="demo",
        email="demo@example.com",
        password="Secret123!",
        phone="+244923456789",
    )


def test_token_pair_issued_for_valid_credentials(api_client, user):
    resp = api_client.post(
        "/api/users/token/", {"username": "demo", "password": "Secret123!"}, format="json"
    )

    assert resp.status_code == 200, resp.data
    assert "access" in resp.data
    assert "refresh" in resp.data


def test_token_rejected_for_bad_password(api_client, user):
    resp = api_client.post(
        "/api/users/token/", {"username": "demo", "password": "wrong"}, format="json"
    )

    assert resp.status_code == 401


def test_refresh_returns_new_access_token(api_client, user):
    pair = api_client.post(
        "/api/users/token/", {"username": "demo", "password": "Secret123!"}, format="json"
    ).data

    resp = api_client.post("/api/users/token/refresh/", {"refresh": pair["refresh"]}, format="json")

    assert resp.status_code == 200
    assert "access" in resp.data


def test_bearer_token_authenticates_payment_calls(api_client, user):
    access = api_client.post(
        "/api/users/token/", {"username": "demo", "password": "Secret123!"}, format="json"
    ).data["access"]
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    resp = api_client.post("/api/payments/intents/", {}, format="json")

    # Authenticated callers get past the auth check to field validation.
    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "invalid-argument"
