"""Tests for the booking state machine and Booking aggregate guards."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from apps.bookings.domain.entities import Booking, CancellationPolicy
from apps.bookings.domain.events import BookingCancelled, BookingCreated, BookingMarkedNoShow
from apps.bookings.domain.lifecycle import (
    Actor,
    BookingStatus,
    PaymentStatus,
    can_transition,
    ensure_transition,
)
from apps.pricing.domain.calculator import RoomRates, quote
from shared.domain.exceptions import (
    ActionNotAllowed,
    BookingValidationError,
    InvalidDateRange,
    InvalidStatusTransition,
    TooEarlyForCheckIn,
)

CUSTOMER = Actor.customer(1)
HOST = Actor.host(900)
ADMIN = Actor.admin(5)

CHECK_IN = date(2025, 3, 20)
RATES = RoomRates(total_rooms=2, base_price=Decimal("1000000"))


def at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


def make_booking(**overrides) -> Booking:
    booking = Booking.create(
        booking_code="BK202503010000001234",
        customer_id=1,
        property_id=11,
        host_id=900,
        room_type_id=21,
        quote=quote(RATES, CHECK_IN, CHECK_IN + timedelta(days=2), 1),
        adults=2,
        children=0,
        now=at(date(2025, 3, 1)),
    )
    booking.assign_id(77)
    booking.clear_events()
    for name, value in overrides.items():
        setattr(booking, name, value)
    return booking


def test_transition_table():
    assert can_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    assert can_transition(BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT)
    assert not can_transition(BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED)
    assert not can_transition(BookingStatus.CANCELLED, BookingStatus.CONFIRMED)

    with pytest.raises(InvalidStatusTransition):
        ensure_transition(BookingStatus.CONFIRMED, BookingStatus.CHECKED_OUT)
    with pytest.raises(ActionNotAllowed):
        ensure_transition(BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, HOST)
    ensure_transition(BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, ADMIN)
    ensure_transition(BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, Actor.system())
    with pytest.raises(ActionNotAllowed):
        ensure_transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW, HOST)
    assert not can_transition(BookingStatus.NO_SHOW, BookingStatus.CONFIRMED)


def test_create_starts_confirmed_and_back_fills_ids():
    booking = Booking.create(
        booking_code="BK1",
        customer_id=1,
        property_id=11,
        host_id=900,
        room_type_id=21,
        quote=quote(RATES, CHECK_IN, CHECK_IN + timedelta(days=2), 1),
        adults=1,
        children=0,
        now=at(date(2025, 3, 1)),
        coupon_code="SAVE",
        coupon_discount=Decimal("150000"),
    )
    booking.assign_id(5)

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.occupies_inventory
    assert booking.total_amount == Decimal("1850000")
    event = booking.events[0]
    assert isinstance(event, BookingCreated)
    assert event.booking_id == 5
    assert event.aggregate_id == 5


def test_coupon_discount_never_makes_total_negative():
    booking = make_booking()

    booking.set_coupon("BIG", Decimal("5000000"))
    assert booking.total_amount == Decimal("0")

    booking.clear_coupon()
    assert booking.total_amount == booking.room_price


def test_customer_cancel_far_ahead_has_no_fee():
    booking = make_booking()

    assert booking.cancel(CUSTOMER, "", now=at(date(2025, 3, 1)))
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancellation_fee == Decimal("0")
    assert booking.cancellation_source == "customer"
    assert isinstance(booking.events[0], BookingCancelled)


def test_customer_cancel_inside_late_window_records_fee():
    booking = make_booking()

    booking.cancel(CUSTOMER, "change of plans", now=at(CHECK_IN - timedelta(days=5)))

    assert booking.cancellation_fee == Decimal("200000")


def test_customer_cannot_cancel_within_cutoff():
    booking = make_booking()

    with pytest.raises(InvalidStatusTransition):
        booking.cancel(CUSTOMER, "", now=at(CHECK_IN - timedelta(days=1), hour=6))


def test_customer_cannot_cancel_paid_or_foreign_booking():
    with pytest.raises(ActionNotAllowed):
        make_booking(payment_status=PaymentStatus.PAID).cancel(CUSTOMER, "", now=at(date(2025, 3, 1)))
    with pytest.raises(ActionNotAllowed):
        make_booking().cancel(Actor.customer(2), "", now=at(date(2025, 3, 1)))


def test_cancel_twice_is_a_no_op():
    booking = make_booking()
    booking.cancel(CUSTOMER, "", now=at(date(2025, 3, 1)))
    booking.clear_events()

    assert booking.cancel(CUSTOMER, "", now=at(date(2025, 3, 2))) is False
    assert booking.events == []


def test_host_cancel_requires_reason_and_is_blocked_after_check_in():
    with pytest.raises(BookingValidationError):
        make_booking().cancel(HOST, "  ", now=at(date(2025, 3, 1)))
    with pytest.raises(InvalidStatusTransition):
        make_booking(status=BookingStatus.CHECKED_IN).cancel(HOST, "flooding", now=at(CHECK_IN))


def test_admin_cancel_with_refund_updates_payment_status():
    booking = make_booking(payment_status=PaymentStatus.PAID)

    booking.cancel(ADMIN, "guest complaint", now=at(CHECK_IN), refund_amount=Decimal("500000"))

    assert booking.payment_status == PaymentStatus.PARTIAL_REFUND
    assert booking.refund_amount == Decimal("500000")

    full = make_booking(payment_status=PaymentStatus.PAID, status=BookingStatus.CHECKED_IN)
    full.cancel(ADMIN, "property closed", now=at(CHECK_IN), refund_amount=full.total_amount)
    assert full.payment_status == PaymentStatus.REFUNDED


def test_admin_refund_cannot_exceed_total():
    booking = make_booking()

    with pytest.raises(BookingValidationError):
        booking.cancel(ADMIN, "refund", now=at(CHECK_IN), refund_amount=Decimal("9999999"))


def test_check_in_and_out():
    booking = make_booking()

    with pytest.raises(TooEarlyForCheckIn):
        booking.check_in_guest(HOST, CHECK_IN - timedelta(days=1), at(CHECK_IN))
    with pytest.raises(ActionNotAllowed):
        booking.check_in_guest(CUSTOMER, CHECK_IN, at(CHECK_IN))

    assert booking.check_in_guest(HOST, CHECK_IN + timedelta(days=1), at(CHECK_IN)) == 1
    assert booking.status == BookingStatus.CHECKED_IN
    assert booking.check_out_guest(ADMIN, CHECK_IN + timedelta(days=1), at(CHECK_IN)) == 1
    assert booking.status == BookingStatus.CHECKED_OUT


def test_override_leaving_cancelled_resets_refund_status():
    booking = make_booking(payment_status=PaymentStatus.PAID)
    booking.cancel(ADMIN, "mistake", now=at(date(2025, 3, 2)), refund_amount=booking.total_amount)

    assert booking.override_status(ADMIN, BookingStatus.CONFIRMED, "restored", at(date(2025, 3, 3)))

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_status == PaymentStatus.UNPAID
    assert booking.cancelled_at is None
    with pytest.raises(ActionNotAllowed):
        booking.override_status(HOST, BookingStatus.CANCELLED, "", at(date(2025, 3, 3)))


def test_refund_payment_status_only_for_cancelled():
    booking = make_booking()

    with pytest.raises(InvalidStatusTransition):
        booking.set_payment_status(ADMIN, PaymentStatus.REFUNDED)
    assert booking.set_payment_status(ADMIN, PaymentStatus.PAID)
    assert booking.set_payment_status(ADMIN, PaymentStatus.PAID) is False


def test_coupon_changes_need_an_active_booking():
    booking = make_booking(status=BookingStatus.CHECKED_IN)

    with pytest.raises(InvalidStatusTransition):
        booking.ensure_coupon_editable()
    make_booking(status=BookingStatus.PENDING).ensure_coupon_editable()


def test_cancellation_policy_is_configurable():
    booking = make_booking()
    policy = CancellationPolicy(cutoff_hours=0, late_window_days=30, late_fee_percent=Decimal("50"))

    booking.cancel(CUSTOMER, "", now=at(date(2025, 3, 1)), policy=policy)

    assert booking.cancellation_fee == Decimal("1000000")


def test_no_show_only_after_the_grace_period():
    booking = make_booking()

    with pytest.raises(ActionNotAllowed):
        booking.mark_no_show(HOST, at(CHECK_IN, 12), grace_hours=6)
    with pytest.raises(InvalidStatusTransition):
        booking.mark_no_show(Actor.system(), at(CHECK_IN, 5), grace_hours=6)

    booking.mark_no_show(Actor.system(), at(CHECK_IN, 7), grace_hours=6)

    assert booking.status == BookingStatus.NO_SHOW
    assert not booking.occupies_inventory
    assert isinstance(booking.events[0], BookingMarkedNoShow)


def test_confirm_requires_a_participant_and_a_future_check_in():
    booking = make_booking(status=BookingStatus.PENDING)

    with pytest.raises(ActionNotAllowed):
        booking.confirm(Actor.customer(2), CHECK_IN, at(CHECK_IN))
    with pytest.raises(InvalidDateRange):
        booking.confirm(CUSTOMER, CHECK_IN + timedelta(days=1), at(CHECK_IN + timedelta(days=1)))

    booking.confirm(CUSTOMER, CHECK_IN, at(CHECK_IN))
    assert booking.status == BookingStatus.CONFIRMED
