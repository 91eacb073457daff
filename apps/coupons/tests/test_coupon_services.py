from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from apps.coupons import services
from apps.coupons.domain.rules import CouponContext
from apps.coupons.models import Coupon, CouponApplication, CouponUsage
from shared.domain.exceptions import CouponError

pytestmark = pytest.mark.django_db


@pytest.fixture
def coupon():
    now = timezone.now()
    return Coupon.objects.create(
        code="WELCOME",
        name="Welcome offer",
        discount_type=Coupon.DiscountType.FIXED_AMOUNT,
        discount_value=Decimal("200000"),
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=30),
        max_total_uses=2,
        max_uses_per_customer=None,
    )


def make_booking(room_type, customer_id, offset):
    check_in = date.today() + timedelta(days=20 + offset * 3)
    return Booking.objects.create(
        booking_code=f"BKTEST{customer_id}{offset}",
        customer_id=customer_id,
        property=room_type.property,
        room_type=room_type,
        check_in=check_in,
        check_out=check_in + timedelta(days=2),
        nights=2,
        room_price=Decimal("2000000"),
        total_amount=Decimal("2000000"),
    )


def context_for(room_type, customer_id=10, property_id=None):
    return CouponContext(
        customer_id=customer_id,
        property_id=property_id or room_type.property_id,
        property_type_id=room_type.property.property_type_id,
        location_id=room_type.property.location_id,
        check_in=date.today() + timedelta(days=20),
        nights=2,
        room_price=Decimal("2000000"),
        total_amount=Decimal("2000000"),
        currency="VND",
    )


def test_check_coupon_is_case_insensitive_and_never_raises(coupon, room_type):
    found, result = services.check_coupon("  welcome ", context_for(room_type))
    assert found == coupon
    assert result.is_valid
    assert result.discount_amount == Decimal("200000")

    missing, result = services.check_coupon("NOPE", context_for(room_type))
    assert missing is None
    assert not result.is_valid
    assert result.error_reason


def test_scoped_coupon_rejects_other_properties(coupon, room_type):
    coupon.applicable_to = Coupon.ApplicableTo.PROPERTY
    coupon.save()
    CouponApplication.objects.create(
        coupon=coupon,
        applicable_type=CouponApplication.ApplicableType.PROPERTY,
        applicable_id=room_type.property_id,
    )

    assert services.check_coupon("WELCOME", context_for(room_type))[1].is_valid
    with pytest.raises(CouponError):
        services.require_valid_coupon("WELCOME", context_for(room_type, property_id=room_type.property_id + 1))


def test_redeem_is_idempotent_per_booking(coupon, room_type):
    booking = make_booking(room_type, 10, 0)

    usage, events = services.redeem_coupon("WELCOME", context_for(room_type), booking_id=booking.pk)
    again, no_events = services.redeem_coupon("welcome", context_for(room_type), booking_id=booking.pk)

    assert len(events) == 1
    assert no_events == []
    assert again.pk == usage.pk
    coupon.refresh_from_db()
    assert coupon.used_count == 1


def test_redeem_rejects_a_second_coupon_on_the_same_booking(coupon, room_type):
    now = timezone.now()
    Coupon.objects.create(
        code="OTHER",
        name="Other",
        discount_type=Coupon.DiscountType.PERCENTAGE,
        discount_value=Decimal("5"),
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
    )
    booking = make_booking(room_type, 10, 0)
    services.redeem_coupon("WELCOME", context_for(room_type), booking_id=booking.pk)

    with pytest.raises(CouponError):
        services.redeem_coupon("OTHER", context_for(room_type), booking_id=booking.pk)


def test_total_limit_is_enforced(coupon, room_type):
    for offset, customer_id in enumerate((10, 11)):
        booking = make_booking(room_type, customer_id, offset)
        services.redeem_coupon("WELCOME", context_for(room_type, customer_id), booking_id=booking.pk)

    third = make_booking(room_type, 12, 2)
    with pytest.raises(CouponError):
        services.redeem_coupon("WELCOME", context_for(room_type, 12), booking_id=third.pk)

    coupon.refresh_from_db()
    assert coupon.used_count == 2
    assert CouponUsage.objects.count() == 2


def test_void_releases_one_use_and_never_goes_negative(coupon, room_type):
    booking = make_booking(room_type, 10, 0)
    services.redeem_coupon("WELCOME", context_for(room_type), booking_id=booking.pk)

    usage, events = services.void_coupon_usage(booking.pk)
    assert usage.pk is not None
    assert len(events) == 1
    assert services.void_coupon_usage(booking.pk) == (None, [])

    coupon.refresh_from_db()
    assert coupon.used_count == 0

    other = make_booking(room_type, 11, 1)
    CouponUsage.objects.create(coupon=coupon, booking=other, customer_id=11, discount_amount=Decimal("1"))
    services.void_coupon_usage(other.pk)
    coupon.refresh_from_db()
    assert coupon.used_count == 0


def test_deactivate_expired(coupon):
    now = timezone.now()
    expired = Coupon.objects.create(
        code="OLD",
        name="Old",
        discount_type=Coupon.DiscountType.PERCENTAGE,
        discount_value=Decimal("5"),
        start_date=now - timedelta(days=10),
        end_date=now - timedelta(days=1),
    )

    assert services.deactivate_expired(now) == [expired.pk]

    expired.refresh_from_db()
    coupon.refresh_from_db()
    assert not expired.is_active
    assert coupon.is_active
