"""Serializers for coupon endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class CouponRequestSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    booking_id = serializers.IntegerField(min_value=1)


class CouponCancelSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(min_value=1)


class CouponValidationSerializer(serializers.Serializer):
    """Результат проверки купона; причина отказа возвращается дословно."""

    is_valid = serializers.BooleanField()
    code = serializers.CharField(source="coupon.code", default=None)
    discount_type = serializers.CharField(source="coupon.discount_type", default=None)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    error_reason = serializers.CharField(allow_blank=True)
