import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

OPS_HOST = "ops.example.com"

User = get_user_model()


@pytest.fixture(autouse=True)
def enable_operator_routes(settings):
    settings.ENABLE_OPERATOR = True
    settings.OPS_ALLOWED_HOSTS = [OPS_HOST]
    settings.ALLOWED_HOSTS = [OPS_HOST, "public.example.com", "testserver"]


def _operator(username: str, role: str):
    group, _ = Group.objects.get_or_create(name=role)
    user = User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="pass123",
        is_staff=True,
    )
    user.groups.add(group)
    return user


@pytest.fixture
def operator_admin_user(db):
    return _operator("op-admin", "operator_admin")


@pytest.fixture
def operator_support_user(db):
    return _operator("op-support", "operator_support")


@pytest.fixture
def normal_user(db):
    return User.objects.create_user(
        username="regular-user",
        email="regular@example.com",
        password="pass123",
        is_staff=False,
    )


@pytest.fixture
def ops_client(api_client):
    api_client.defaults["HTTP_HOST"] = OPS_HOST
    return api_client


@pytest.fixture
def operator_admin_client(ops_client, operator_admin_user):
    ops_client.force_authenticate(user=operator_admin_user)
    return ops_client


@pytest.fixture
def operator_support_client(ops_client, operator_support_user):
    ops_client.force_authenticate(user=operator_support_user)
    return ops_client


@pytest.fixture
def normal_user_ops_client(ops_client, normal_user):
    ops_client.force_authenticate(user=normal_user)
    return ops_client


@pytest.fixture
def feature_flag_factory(db):
    from operator_settings.models import FeatureFlag

    def _create(*, key="payments", enabled=False, **kwargs):
        return FeatureFlag.objects.create(key=key, enabled=enabled, **kwargs)

    return _create
