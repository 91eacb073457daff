from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone  # type: ignore

from apps.audit.models import AuditLog
from apps.bookings.models import Booking
from apps.bookings.tasks import AUTO_REJECT_REASON, auto_reject_stale_pending, mark_no_shows
from apps.coupons.models import Coupon
from apps.coupons.tasks import deactivate_expired_coupons

pytestmark = pytest.mark.django_db


def pending_booking(room_type, check_in, *, hours_ago, payment_status=Booking.PaymentStatus.UNPAID):
    return Booking.objects.create(
        booking_code=f"BKPENDING{hours_ago}{payment_status}",
        customer_id=10,
        property=room_type.property,
        room_type=room_type,
        check_in=check_in,
        check_out=check_in + timedelta(days=2),
        nights=2,
        room_price=Decimal("2000000"),
        total_amount=Decimal("2000000"),
        status=Booking.Status.PENDING,
        payment_status=payment_status,
        booked_at=timezone.now() - timedelta(hours=hours_ago),
    )


def test_stale_unpaid_pending_bookings_are_rejected(settings, room_type, next_friday):
    settings.BOOKING_PENDING_AUTO_REJECT_HOURS = 24
    stale = pending_booking(room_type, next_friday, hours_ago=30)
    fresh = pending_booking(room_type, next_friday, hours_ago=2)
    paid = pending_booking(room_type, next_friday, hours_ago=30, payment_status=Booking.PaymentStatus.PAID)

    assert auto_reject_stale_pending() == {"rejected": 1}

    stale.refresh_from_db()
    assert stale.status == Booking.Status.CANCELLED
    assert stale.cancellation_source == Booking.CancellationSource.SYSTEM
    assert stale.cancellation_reason == AUTO_REJECT_REASON
    for booking in (fresh, paid):
        booking.refresh_from_db()
        assert booking.status == Booking.Status.PENDING


def confirmed_booking(room_type, check_in, code, *, payment_status=Booking.PaymentStatus.PAID):
    return Booking.objects.create(
        booking_code=code,
        customer_id=10,
        property=room_type.property,
        room_type=room_type,
        check_in=check_in,
        check_out=check_in + timedelta(days=3),
        nights=3,
        room_price=Decimal("3000000"),
        total_amount=Decimal("3000000"),
        status=Booking.Status.CONFIRMED,
        payment_status=payment_status,
    )


def test_paid_guests_who_never_arrive_are_marked_no_show(
    settings, room_type, today, django_capture_on_commit_callbacks
):
    settings.BOOKING_NO_SHOW_GRACE_HOURS = 6
    overdue = confirmed_booking(room_type, today - timedelta(days=1), "BKOVERDUE")
    unpaid = confirmed_booking(
        room_type, today - timedelta(days=1), "BKUNPAID", payment_status=Booking.PaymentStatus.UNPAID
    )
    upcoming = confirmed_booking(room_type, today + timedelta(days=5), "BKUPCOMING")

    with django_capture_on_commit_callbacks(execute=True):
        assert mark_no_shows() == {"marked": 1}
    assert mark_no_shows() == {"marked": 0}

    overdue.refresh_from_db()
    assert overdue.status == Booking.Status.NO_SHOW
    assert not Booking.objects.occupying().filter(pk=overdue.pk).exists()
    for booking in (unpaid, upcoming):
        booking.refresh_from_db()
        assert booking.status == Booking.Status.CONFIRMED
    entry = AuditLog.objects.get(table_name="bookings", record_id=str(overdue.pk))
    assert entry.old_values["status"] == "confirmed"
    assert entry.new_values["status"] == "no_show"


def test_expired_coupons_are_deactivated_and_audited():
    now = timezone.now()
    expired = Coupon.objects.create(
        code="WINTER",
        name="Winter",
        discount_type=Coupon.DiscountType.PERCENTAGE,
        discount_value=Decimal("15"),
        start_date=now - timedelta(days=60),
        end_date=now - timedelta(hours=1),
    )

    assert deactivate_expired_coupons() == {"deactivated": 1}
    assert deactivate_expired_coupons() == {"deactivated": 0}

    expired.refresh_from_db()
    assert not expired.is_active
    entry = AuditLog.objects.get(table_name="coupons")
    assert entry.record_id == str(expired.pk)
    assert entry.new_values == {"is_active": False}
