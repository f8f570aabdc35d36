from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management import CommandError, call_command

from operator_core.audit import audit
from operator_core.models import OperatorAuditEvent
from operator_core.permissions import is_admin_user

pytestmark = pytest.mark.django_db

User = get_user_model()


def test_bootstrap_creates_groups_and_assigns_role():
    user = User.objects.create_user(username="finance", password="pass123")
    out = StringIO()

    call_command("bootstrap_operator_roles", "--username", "finance", "--role", "operator_finance", stdout=out)

    assert set(Group.objects.values_list("name", flat=True)) == {
        "operator_support",
        "operator_finance",
        "operator_admin",
    }
    user.refresh_from_db()
    assert user.is_staff is True
    assert user.groups.filter(name="operator_finance").exists()
    assert is_admin_user(user) is True


def test_bootstrap_is_repeatable():
    call_command("bootstrap_operator_roles", stdout=StringIO())
    out = StringIO()

    call_command("bootstrap_operator_roles", stdout=out)

    assert "already exist" in out.getvalue()
    assert Group.objects.count() == 3


def test_bootstrap_unknown_user():
    with pytest.raises(CommandError):
        call_command("bootstrap_operator_roles", "--username", "ghost", stdout=StringIO())


def test_support_role_is_not_escrow_admin():
    group = Group.objects.create(name="operator_support")
    user = User.objects.create_user(username="support", password="x", is_staff=True)
    user.groups.add(group)

    assert is_admin_user(user) is False


def test_admin_role_requires_staff_flag():
    group = Group.objects.create(name="operator_admin")
    user = User.objects.create_user(username="not-staff", password="x", is_staff=False)
    user.groups.add(group)

    assert is_admin_user(user) is False


def test_inactive_superuser_is_not_admin():
    user = User.objects.create_superuser(username="root", password="x")
    user.is_active = False
    user.save(update_fields=["is_active"])

    assert is_admin_user(user) is False


def test_audit_requires_reason():
    with pytest.raises(ValueError):
        audit(actor=None, action="escrow.refunded", entity_type="escrow", entity_id=1, reason="")


def test_audit_serializes_values():
    event = audit(
        actor=None,
        action="escrow.released",
        entity_type="escrow",
        entity_id=5,
        reason="auto",
        before={"status": "service_completed"},
        after={"status": "released"},
        meta={"booking_id": 3},
    )

    assert event.entity_id == "5"
    assert event.actor is None
    assert OperatorAuditEvent.objects.get(pk=event.pk).after_json == {"status": "released"}
