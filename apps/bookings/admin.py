"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "property",
        "room_type",
        "customer_id",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "rooms_count",
        "total_amount",
        "booked_at",
    )
    list_filter = ("status", "payment_status", "check_in", "cancellation_source")
    search_fields = ("booking_code", "property__name", "guest_email", "coupon_code")
    readonly_fields = (
        "booking_code",
        "booked_at",
        "updated_at",
        "room_price_subtotal",
        "long_stay_discount_amount",
        "room_price",
        "coupon_discount_amount",
        "total_amount",
        "nights",
    )
