"""Shared fixtures for escrow tests."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from escrow import services
from escrow.models import Escrow
from payments.models import Payment


@pytest.fixture
def make_escrow(booking, client_user, supplier_user):
    def _make(*, status=Escrow.Status.FUNDED, amount=50000, provider="stripe") -> Escrow:
        escrow = services.create_escrow(
            booking=booking,
            client=client_user,
            supplier=supplier_user,
            amount=amount,
            currency="AOA",
        )
        payment = Payment.objects.create(
            booking=booking,
            user=client_user,
            supplier=supplier_user,
            amount=amount,
            currency="AOA",
            payment_method=Payment.Method.STRIPE,
            provider=provider,
            provider_payment_id=f"cs_test_{escrow.pk}",
            reference=f"BCTEST{escrow.pk:06d}",
            status=Payment.Status.SUCCEEDED,
            expires_at=timezone.now() + timedelta(minutes=30),
        )
        services.attach_payment(escrow, payment)
        if status != Escrow.Status.CREATED:
            now = timezone.now()
            Escrow.objects.filter(pk=escrow.pk).update(status=status, funded_at=now)
            escrow.refresh_from_db()
        return escrow

    return _make
