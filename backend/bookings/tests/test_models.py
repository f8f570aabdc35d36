import pytest

from bookings.models import Booking

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "status,payable",
    [
        (Booking.Status.PENDING, True),
        (Booking.Status.CONFIRMED, True),
        (Booking.Status.PARTIALLY_PAID, True),
        (Booking.Status.IN_PROGRESS, False),
        (Booking.Status.COMPLETED, False),
        (Booking.Status.CANCELLED, False),
        (Booking.Status.DISPUTED, False),
        (Booking.Status.REFUNDED, False),
    ],
)
def test_is_payable(make_booking, status, payable):
    assert make_booking(status=status).is_payable() is payable


def test_fully_paid_only_when_paid_reaches_total(make_booking):
    assert make_booking(total_amount=50000, paid_amount=49999).is_fully_paid() is False
    assert make_booking(total_amount=50000, paid_amount=50000).is_fully_paid() is True


def test_zero_total_never_counts_as_paid(make_booking):
    assert make_booking(total_amount=0, paid_amount=0).is_fully_paid() is False
