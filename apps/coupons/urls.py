"""URL routing for coupons."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import CouponApplyView, CouponCancelView, CouponValidateView

urlpatterns = [
    path("validate/", CouponValidateView.as_view(), name="coupon-validate"),
    path("apply/", CouponApplyView.as_view(), name="coupon-apply"),
    path("cancel/", CouponCancelView.as_view(), name="coupon-cancel"),
]
