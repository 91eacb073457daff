"""Admin registration for coupons."""

from __future__ import annotations

from django.contrib import admin

from .models import Coupon, CouponApplication, CouponUsage


class CouponApplicationInline(admin.TabularInline):
    model = CouponApplication
    extra = 0


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "discount_value",
        "applicable_to",
        "start_date",
        "end_date",
        "used_count",
        "max_total_uses",
        "is_active",
    )
    list_filter = ("discount_type", "applicable_to", "is_active")
    search_fields = ("code", "name")
    readonly_fields = ("used_count", "created_at", "updated_at")
    inlines = [CouponApplicationInline]


@admin.register(CouponUsage)
class CouponUsageAdmin(admin.ModelAdmin):
    list_display = ("coupon", "booking", "customer_id", "discount_amount", "applied_at")
    search_fields = ("coupon__code", "booking__booking_code")
    readonly_fields = ("coupon", "booking", "customer_id", "discount_amount", "applied_at")
