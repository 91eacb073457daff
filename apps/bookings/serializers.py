"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.domain.lifecycle import BookingStatus, PaymentStatus

from .models import Booking


class StayRequestSerializer(serializers.Serializer):
    """Query parameters shared by availability and quote endpoints."""

    property_id = serializers.IntegerField(min_value=1)
    room_type_id = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    rooms_count = serializers.IntegerField(default=1)


class DetailedAvailabilityRequestSerializer(StayRequestSerializer):
    adults = serializers.IntegerField(min_value=0, default=1)
    children = serializers.IntegerField(min_value=0, default=0)


class CalendarRequestSerializer(serializers.Serializer):
    property_id = serializers.IntegerField(min_value=1)
    room_type_id = serializers.IntegerField(min_value=1)
    year = serializers.IntegerField(min_value=1)
    month = serializers.IntegerField()
    rooms_count = serializers.IntegerField(default=1)


class BookingCreateSerializer(serializers.Serializer):
    """Создание брони гостем; бизнес-проверки выполняет обработчик команды."""

    property_id = serializers.IntegerField(min_value=1)
    room_type_id = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    rooms_count = serializers.IntegerField(default=1)
    adults = serializers.IntegerField(min_value=0, default=1)
    children = serializers.IntegerField(min_value=0, default=0)
    coupon_code = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    guest_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    guest_email = serializers.EmailField(required=False, allow_blank=True, default="")
    guest_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class AdminCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)
    refund_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)


class StatusOverrideSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s.value for s in BookingStatus])
    note = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=[s.value for s in PaymentStatus])
    refund_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)


class BookingSerializer(serializers.ModelSerializer):
    """Детальный сериализатор бронирования."""

    property_id = serializers.ReadOnlyField(source="property.id")
    property_name = serializers.ReadOnlyField(source="property.name")
    room_type_id = serializers.ReadOnlyField(source="room_type.id")
    room_type_name = serializers.ReadOnlyField(source="room_type.name")

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "customer_id",
            "property_id",
            "property_name",
            "room_type_id",
            "room_type_name",
            "check_in",
            "check_out",
            "nights",
            "rooms_count",
            "adults",
            "children",
            "guest_name",
            "guest_email",
            "guest_phone",
            "special_requests",
            "currency",
            "room_price_subtotal",
            "long_stay_discount_percent",
            "long_stay_discount_amount",
            "room_price",
            "coupon_code",
            "coupon_discount_amount",
            "total_amount",
            "status",
            "payment_status",
            "booked_at",
            "confirmed_at",
            "checked_in_at",
            "checked_out_at",
            "cancelled_at",
            "cancelled_by",
            "cancellation_source",
            "cancellation_reason",
            "refund_amount",
            "cancellation_fee",
            "updated_at",
        ]
        read_only_fields = fields
