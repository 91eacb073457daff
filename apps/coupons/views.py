"""API views for coupons on existing bookings."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.application.command_handlers import ApplyCouponCommand, CancelCouponCommand
from apps.bookings.application.queries import validate_coupon_for_booking
from apps.bookings.domain.lifecycle import Actor
from apps.bookings.models import Booking
from apps.bookings.serializers import BookingSerializer
from shared.application.message_bus import message_bus

from .serializers import CouponCancelSerializer, CouponRequestSerializer, CouponValidationSerializer


class CouponValidateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = CouponRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = validate_coupon_for_booking(
            serializer.validated_data["code"],
            serializer.validated_data["booking_id"],
            request.user.id,
        )
        return Response(CouponValidationSerializer(result).data)


class CouponApplyView(APIView):
    """Применение купона гостем к своему бронированию."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = CouponRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(ApplyCouponCommand(
            booking_id=serializer.validated_data["booking_id"],
            actor=Actor.customer(request.user.id),
            coupon_code=serializer.validated_data["code"],
        ))
        return Response(BookingSerializer(Booking.objects.get(pk=booking.id)).data)


class CouponCancelView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = CouponCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(CancelCouponCommand(
            booking_id=serializer.validated_data["booking_id"],
            actor=Actor.customer(request.user.id),
        ))
        return Response(BookingSerializer(Booking.objects.get(pk=booking.id)).data)
