import pytest

from escrow import services
from escrow.models import Escrow
from operator_settings.models import FeatureFlag

pytestmark = pytest.mark.django_db

URL = "/api/escrow/release/"


@pytest.fixture
def completed_escrow(make_escrow):
    return services.mark_service_completed(make_escrow().pk)


def test_client_may_release_after_service(api_client, client_user, completed_escrow):
    api_client.force_authenticate(user=client_user)

    response = api_client.post(
        URL, {"escrowId": str(completed_escrow.pk), "notes": "Tudo certo"}, format="json"
    )

    assert response.status_code == 200, response.data
    assert response.data == {
        "success": True,
        "escrowId": str(completed_escrow.pk),
        "releaseAmount": 45000,
        "platformFee": 5000,
    }
    completed_escrow.refresh_from_db()
    assert completed_escrow.status == Escrow.Status.RELEASED
    assert completed_escrow.released_by == f"client:{client_user.pk}"
    assert completed_escrow.release_notes == "Tudo certo"


def test_admin_release_is_idempotent(api_client, admin_user, completed_escrow):
    api_client.force_authenticate(user=admin_user)

    first = api_client.post(URL, {"escrowId": str(completed_escrow.pk)}, format="json")
    second = api_client.post(URL, {"escrowId": str(completed_escrow.pk)}, format="json")

    assert first.status_code == second.status_code == 200
    assert first.data == second.data


def test_supplier_cannot_release(api_client, supplier_user, completed_escrow):
    api_client.force_authenticate(user=supplier_user)

    response = api_client.post(URL, {"escrowId": str(completed_escrow.pk)}, format="json")

    assert response.status_code == 403


def test_release_before_service_completed(api_client, client_user, make_escrow):
    api_client.force_authenticate(user=client_user)
    escrow = make_escrow(status=Escrow.Status.FUNDED)

    response = api_client.post(URL, {"escrowId": str(escrow.pk)}, format="json")

    assert response.status_code == 412
    assert '"funded"' in response.data["error"]["message"]


def test_release_blocked_by_escrow_kill_switch(api_client, client_user, completed_escrow):
    FeatureFlag.objects.create(key="escrow", enabled=False)
    api_client.force_authenticate(user=client_user)

    response = api_client.post(URL, {"escrowId": str(completed_escrow.pk)}, format="json")

    assert response.status_code == 503
    completed_escrow.refresh_from_db()
    assert completed_escrow.status == Escrow.Status.SERVICE_COMPLETED
