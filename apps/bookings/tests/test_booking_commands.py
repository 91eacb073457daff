"""Tests for booking command handlers against the database."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone  # type: ignore

from apps.bookings.application.command_handlers import (
    AdminCancelBookingCommand,
    ApplyCouponCommand,
    CancelBookingCommand,
    CancelCouponCommand,
    CheckInBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    UpdateBookingStatusCommand,
)
from apps.bookings.domain.lifecycle import Actor, BookingStatus
from apps.bookings.models import Booking
from apps.bookings.repositories import DjangoBookingRepository
from apps.coupons.models import Coupon, CouponUsage
from shared.domain.exceptions import (
    ActionNotAllowed,
    CouponError,
    ExceedsCapacity,
    GuestCountExceeded,
    InvalidDateRange,
    RoomsUnavailable,
    RoomTypeNotFound,
)

pytestmark = pytest.mark.django_db

HOST = Actor.host(900)
ADMIN = Actor.admin(1)


def create(handlers, room_type, check_in, nights=3, *, customer_id=10, **kwargs):
    command = CreateBookingCommand(
        customer_id=customer_id,
        property_id=room_type.property_id,
        room_type_id=room_type.pk,
        check_in=check_in,
        check_out=check_in + timedelta(days=nights),
        **kwargs,
    )
    return handlers[CreateBookingCommand](command)


def make_coupon(**overrides) -> Coupon:
    now = timezone.now()
    values = dict(
        code="SPRING10",
        name="Spring sale",
        discount_type=Coupon.DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        max_discount_amount=Decimal("100000"),
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=60),
    )
    values.update(overrides)
    return Coupon.objects.create(**values)


def test_create_booking_is_confirmed_and_priced(handlers, room_type, next_friday):
    booking = create(handlers, room_type, next_friday)

    row = Booking.objects.get(pk=booking.id)
    assert row.status == Booking.Status.CONFIRMED
    assert row.room_price == Decimal("3400000")
    assert row.total_amount == Decimal("3400000")
    assert row.nights == 3
    assert row.booking_code.startswith("BK")


def test_overlapping_create_is_rejected_when_full(handlers, room_type, next_friday):
    create(handlers, room_type, next_friday)

    with pytest.raises(RoomsUnavailable):
        create(handlers, room_type, next_friday + timedelta(days=1), customer_id=11)

    assert Booking.objects.count() == 1


def test_same_day_turnover_is_bookable(handlers, room_type, next_friday):
    create(handlers, room_type, next_friday, nights=2)
    create(handlers, room_type, next_friday + timedelta(days=2), nights=2, customer_id=11)

    assert Booking.objects.occupying().count() == 2


def test_request_validation(handlers, room_type, today, next_friday):
    with pytest.raises(InvalidDateRange):
        create(handlers, room_type, today - timedelta(days=1))
    with pytest.raises(ExceedsCapacity):
        create(handlers, room_type, next_friday, rooms_count=2)
    with pytest.raises(GuestCountExceeded):
        create(handlers, room_type, next_friday, adults=3)
    with pytest.raises(ActionNotAllowed):
        create(handlers, room_type, next_friday, customer_id=900)

    assert Booking.objects.count() == 0


def test_inactive_room_type_is_not_found(handlers, room_type, next_friday):
    room_type.property.is_active = False
    room_type.property.save()

    with pytest.raises(RoomTypeNotFound):
        create(handlers, room_type, next_friday)


def test_create_with_capped_percentage_coupon(handlers, room_type, next_friday):
    coupon = make_coupon()

    booking = create(handlers, room_type, next_friday, coupon_code="spring10")

    row = Booking.objects.get(pk=booking.id)
    assert row.coupon_code == "SPRING10"
    assert row.coupon_discount_amount == Decimal("100000")
    assert row.total_amount == Decimal("3300000")
    coupon.refresh_from_db()
    assert coupon.used_count == 1
    assert CouponUsage.objects.get(booking_id=booking.id).discount_amount == Decimal("100000")


def test_coupon_per_customer_limit_blocks_second_booking(handlers, room_type, next_friday):
    make_coupon(max_uses_per_customer=1)
    create(handlers, room_type, next_friday, nights=2, coupon_code="SPRING10")

    with pytest.raises(CouponError) as exc_info:
        create(handlers, room_type, next_friday + timedelta(days=7), nights=2, coupon_code="SPRING10")

    assert exc_info.value.message == "You have already used this coupon the maximum number of times."
    assert Booking.objects.count() == 1
    assert CouponUsage.objects.count() == 1


def test_cancel_releases_rooms_and_coupon_once(handlers, room_type, next_friday):
    coupon = make_coupon()
    booking = create(handlers, room_type, next_friday, coupon_code="SPRING10")
    cancel = handlers[CancelBookingCommand]

    cancel(CancelBookingCommand(booking.id, Actor.customer(10), reason="plans changed"))
    cancel(CancelBookingCommand(booking.id, Actor.customer(10)))

    coupon.refresh_from_db()
    assert coupon.used_count == 0
    assert not CouponUsage.objects.exists()
    row = Booking.objects.get(pk=booking.id)
    assert row.status == Booking.Status.CANCELLED
    assert row.cancellation_reason == "plans changed"

    create(handlers, room_type, next_friday, customer_id=11)
    assert Booking.objects.occupying().count() == 1


def test_admin_restore_rechecks_capacity(handlers, room_type, next_friday):
    first = create(handlers, room_type, next_friday)
    handlers[CancelBookingCommand](CancelBookingCommand(first.id, Actor.customer(10)))
    create(handlers, room_type, next_friday, customer_id=11)

    with pytest.raises(RoomsUnavailable):
        handlers[UpdateBookingStatusCommand](
            UpdateBookingStatusCommand(first.id, ADMIN, BookingStatus.CONFIRMED, note="restore")
        )

    assert Booking.objects.get(pk=first.id).status == Booking.Status.CANCELLED


def mark_pending(booking, **changes):
    Booking.objects.filter(pk=booking.id).update(status=Booking.Status.PENDING, confirmed_at=None, **changes)


def test_customer_confirms_own_pending_booking(handlers, room_type, next_friday):
    booking = create(handlers, room_type, next_friday)
    mark_pending(booking)
    confirm = handlers[ConfirmBookingCommand]

    with pytest.raises(ActionNotAllowed):
        confirm(ConfirmBookingCommand(booking.id, Actor.customer(11)))
    with pytest.raises(ActionNotAllowed):
        confirm(ConfirmBookingCommand(booking.id, Actor.host(901)))
    confirm(ConfirmBookingCommand(booking.id, Actor.customer(10)))

    row = Booking.objects.get(pk=booking.id)
    assert row.status == Booking.Status.CONFIRMED
    assert row.confirmed_at is not None


def test_host_confirms_pending_booking(handlers, room_type, next_friday):
    booking = create(handlers, room_type, next_friday)
    mark_pending(booking)

    handlers[ConfirmBookingCommand](ConfirmBookingCommand(booking.id, HOST))

    assert Booking.objects.get(pk=booking.id).status == Booking.Status.CONFIRMED


def test_pending_booking_with_past_check_in_cannot_be_confirmed(handlers, room_type, today):
    booking = create(handlers, room_type, today, nights=2)
    mark_pending(booking, check_in=today - timedelta(days=1), check_out=today + timedelta(days=1))

    with pytest.raises(InvalidDateRange):
        handlers[ConfirmBookingCommand](ConfirmBookingCommand(booking.id, Actor.customer(10)))

    assert Booking.objects.get(pk=booking.id).status == Booking.Status.PENDING


def test_check_in_then_admin_cancel_frees_the_room(handlers, room_type, today):
    booking = create(handlers, room_type, today, nights=1)

    handlers[CheckInBookingCommand](CheckInBookingCommand(booking.id, HOST))
    assert Booking.objects.get(pk=booking.id).status == Booking.Status.CHECKED_IN

    with pytest.raises(ActionNotAllowed):
        handlers[AdminCancelBookingCommand](AdminCancelBookingCommand(booking.id, HOST, reason="leak"))
    handlers[AdminCancelBookingCommand](AdminCancelBookingCommand(booking.id, ADMIN, reason="water leak"))

    row = Booking.objects.get(pk=booking.id)
    assert row.status == Booking.Status.CANCELLED
    assert row.cancellation_source == Booking.CancellationSource.ADMIN
    create(handlers, room_type, today, nights=1, customer_id=11)


def test_apply_and_cancel_coupon_on_existing_booking(handlers, room_type, next_friday):
    coupon = make_coupon(
        code="FIXED50",
        discount_type=Coupon.DiscountType.FIXED_AMOUNT,
        discount_value=Decimal("50000"),
        max_discount_amount=None,
    )
    booking = create(handlers, room_type, next_friday)
    customer = Actor.customer(10)

    with pytest.raises(ActionNotAllowed):
        handlers[ApplyCouponCommand](ApplyCouponCommand(booking.id, Actor.customer(11), "FIXED50"))

    handlers[ApplyCouponCommand](ApplyCouponCommand(booking.id, customer, "fixed50"))
    handlers[ApplyCouponCommand](ApplyCouponCommand(booking.id, customer, "FIXED50"))

    row = Booking.objects.get(pk=booking.id)
    assert row.total_amount == Decimal("3350000")
    coupon.refresh_from_db()
    assert coupon.used_count == 1

    handlers[CancelCouponCommand](CancelCouponCommand(booking.id, customer))

    row.refresh_from_db()
    assert row.coupon_code == ""
    assert row.total_amount == row.room_price
    coupon.refresh_from_db()
    assert coupon.used_count == 0


def test_restore_from_cancelled_redeems_the_coupon_again(handlers, room_type, next_friday):
    coupon = make_coupon(max_total_uses=1)
    booking = create(handlers, room_type, next_friday, coupon_code="SPRING10")
    handlers[CancelBookingCommand](CancelBookingCommand(booking.id, Actor.customer(10)))

    handlers[UpdateBookingStatusCommand](
        UpdateBookingStatusCommand(booking.id, ADMIN, BookingStatus.CONFIRMED, note="restore")
    )

    coupon.refresh_from_db()
    assert coupon.used_count == 1
    assert CouponUsage.objects.get().booking_id == booking.id
    row = Booking.objects.get(pk=booking.id)
    assert row.coupon_code == "SPRING10"
    assert row.total_amount == Decimal("3300000")


def test_restore_drops_a_coupon_that_reached_its_limit(handlers, room_type, next_friday):
    coupon = make_coupon(max_total_uses=1)
    first = create(handlers, room_type, next_friday, coupon_code="SPRING10")
    handlers[CancelBookingCommand](CancelBookingCommand(first.id, Actor.customer(10)))
    create(handlers, room_type, next_friday + timedelta(days=7), customer_id=11, coupon_code="SPRING10")

    handlers[UpdateBookingStatusCommand](
        UpdateBookingStatusCommand(first.id, ADMIN, BookingStatus.CONFIRMED, note="restore")
    )

    coupon.refresh_from_db()
    assert coupon.used_count == 1
    assert CouponUsage.objects.count() == 1
    assert Booking.objects.occupying().exclude(coupon_code="").count() == 1
    row = Booking.objects.get(pk=first.id)
    assert row.status == Booking.Status.CONFIRMED
    assert row.coupon_code == ""
    assert row.coupon_discount_amount == Decimal("0")
    assert row.total_amount == row.room_price


def test_taken_booking_code_is_regenerated_on_insert(handlers, room_type, next_friday, monkeypatch):
    Booking.objects.create(
        booking_code="BKTAKEN",
        customer_id=12,
        property=room_type.property,
        room_type=room_type,
        check_in=next_friday,
        check_out=next_friday + timedelta(days=1),
        status=Booking.Status.CANCELLED,
    )
    codes = iter(["BKTAKEN", "BKFRESH"])
    monkeypatch.setattr(DjangoBookingRepository, "next_booking_code", lambda self: next(codes))

    booking = create(handlers, room_type, next_friday)

    assert booking.booking_code == "BKFRESH"
    assert Booking.objects.get(pk=booking.id).booking_code == "BKFRESH"
