"""Booking models for the lodging booking engine."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.domain.lifecycle import OCCUPYING_STATUSES


class BookingQuerySet(models.QuerySet):
    def occupying(self):
        return self.filter(status__in=[status.value for status in OCCUPYING_STATUSES])

    def overlapping(self, check_in, check_out):
        return self.filter(check_in__lt=check_out, check_out__gt=check_in)


class Booking(models.Model):
    """Reservation of one or more identical rooms of a room type."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CHECKED_IN = "checked_in", _("Checked in")
        CHECKED_OUT = "checked_out", _("Checked out")
        CANCELLED = "cancelled", _("Cancelled")
        NO_SHOW = "no_show", _("No-show")

    class PaymentStatus(models.TextChoices):
        UNPAID = "unpaid", _("Unpaid")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")
        PARTIAL_REFUND = "partial_refund", _("Partially refunded")

    class CancellationSource(models.TextChoices):
        CUSTOMER = "customer", _("Customer")
        HOST = "host", _("Host")
        ADMIN = "admin", _("Administrator")
        SYSTEM = "system", _("System")

    booking_code = models.CharField(max_length=24, unique=True, editable=False)
    customer_id = models.PositiveBigIntegerField(db_index=True)
    property = models.ForeignKey(
        "inventory.Property",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    room_type = models.ForeignKey(
        "inventory.RoomType",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    check_in = models.DateField()
    check_out = models.DateField()
    nights = models.PositiveSmallIntegerField(default=1)
    rooms_count = models.PositiveSmallIntegerField(default=1)
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)

    guest_name = models.CharField(max_length=255, blank=True)
    guest_email = models.EmailField(blank=True)
    guest_phone = models.CharField(max_length=32, blank=True)
    special_requests = models.TextField(blank=True)

    currency = models.CharField(max_length=3, default="VND")
    room_price_subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    long_stay_discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"))
    long_stay_discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    room_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text=_("Quoted price of the stay before any coupon."),
    )
    coupon_code = models.CharField(max_length=50, blank=True)
    coupon_discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )

    booked_at = models.DateTimeField(default=timezone.now)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_out_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    cancelled_by = models.PositiveBigIntegerField(null=True, blank=True)
    cancellation_source = models.CharField(
        max_length=20,
        choices=CancellationSource.choices,
        blank=True,
    )
    cancellation_reason = models.CharField(max_length=500, blank=True)
    refund_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    cancellation_fee = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    admin_note = models.TextField(blank=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-booked_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(rooms_count__gte=1),
                name="booking_rooms_count_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(nights__gte=1),
                name="booking_nights_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["room_type", "check_in", "check_out"], name="booking_room_type_dates_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
            models.Index(fields=["customer_id", "status"], name="booking_customer_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} for room type {self.room_type_id}"

    @staticmethod
    def generate_booking_code() -> str:
        return f"BK{timezone.now():%Y%m%d%H%M%S}{secrets.randbelow(10_000):04d}"
