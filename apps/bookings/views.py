"""API views for the booking domain."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.application.command_handlers import (
    AdminCancelBookingCommand,
    CancelBookingCommand,
    CheckInBookingCommand,
    CheckOutBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    UpdateBookingStatusCommand,
    UpdatePaymentStatusCommand,
)
from apps.bookings.application.queries import BookingQueries
from apps.bookings.domain.lifecycle import Actor, BookingStatus, PaymentStatus
from apps.inventory.repositories import DjangoInventoryRepository
from shared.application.message_bus import message_bus

from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    AdminCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    CalendarRequestSerializer,
    CancelSerializer,
    DetailedAvailabilityRequestSerializer,
    PaymentStatusSerializer,
    StatusOverrideSerializer,
    StayRequestSerializer,
)


def actor_for(user, booking: Booking | None = None) -> Actor:
    """Администратор, владелец объекта или гость, в этом порядке."""
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return Actor.admin(user.id)
    if booking is not None and booking.property.host_id == user.id:
        return Actor.host(user.id)
    return Actor.customer(user.id)


def booking_queries() -> BookingQueries:
    return BookingQueries(DjangoInventoryRepository())


class AvailabilityView(APIView):
    """Проверка доступности номеров на период."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        serializer = StayRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        available = booking_queries().check_availability(
            data["property_id"],
            data["room_type_id"],
            data["check_in"],
            data["check_out"],
            data["rooms_count"],
        )
        return Response({"available": available})


class DetailedAvailabilityView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        serializer = DetailedAvailabilityRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        report = booking_queries().check_availability_detailed(
            data["property_id"],
            data["room_type_id"],
            data["check_in"],
            data["check_out"],
            data["rooms_count"],
            adults=data["adults"],
            children=data["children"],
        )
        return Response(report.to_dict())


class AvailabilityCalendarView(APIView):
    """Календарь доступности на месяц."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        serializer = CalendarRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        month = booking_queries().get_available_dates_in_month(
            data["property_id"],
            data["room_type_id"],
            data["year"],
            data["month"],
            data["rooms_count"],
        )
        return Response(month.to_dict())


class PriceQuoteView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        serializer = StayRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        quote = booking_queries().get_price_quote(
            data["property_id"],
            data["room_type_id"],
            data["check_in"],
            data["check_out"],
            data["rooms_count"],
        )
        return Response(quote.to_dict())


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Бронирования: список по роли, просмотр, создание и переходы статусов.

    Все изменения идут через команды шины сообщений.
    """

    queryset = Booking.objects.select_related("property", "room_type").all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilterSet

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        return qs.filter(Q(customer_id=user.id) | Q(property__host_id=user.id))

    def _respond(self, booking_id: int, status_code=status.HTTP_200_OK) -> Response:
        booking = self.get_queryset().get(pk=booking_id)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data, status=status_code)

    def _input(self, serializer_class):
        serializer = serializer_class(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def create(self, request, *args, **kwargs):  # type: ignore
        data = self._input(BookingCreateSerializer)
        booking = message_bus.handle_command(CreateBookingCommand(customer_id=request.user.id, **data))
        return self._respond(booking.id, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        message_bus.handle_command(ConfirmBookingCommand(booking.pk, actor_for(request.user, booking)))
        return self._respond(booking.pk)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        data = self._input(CancelSerializer)
        message_bus.handle_command(
            CancelBookingCommand(booking.pk, actor_for(request.user, booking), reason=data["reason"])
        )
        return self._respond(booking.pk)

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        message_bus.handle_command(CheckInBookingCommand(booking.pk, actor_for(request.user, booking)))
        return self._respond(booking.pk)

    @action(detail=True, methods=["post"], url_path="check-out")
    def check_out(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        message_bus.handle_command(CheckOutBookingCommand(booking.pk, actor_for(request.user, booking)))
        return self._respond(booking.pk)

    @action(detail=True, methods=["post"], url_path="admin-cancel")
    def admin_cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        data = self._input(AdminCancelSerializer)
        message_bus.handle_command(AdminCancelBookingCommand(
            booking.pk,
            actor_for(request.user, booking),
            reason=data["reason"],
            refund_amount=data.get("refund_amount"),
        ))
        return self._respond(booking.pk)

    @action(detail=True, methods=["post"], url_path="status")
    def override_status(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        data = self._input(StatusOverrideSerializer)
        message_bus.handle_command(UpdateBookingStatusCommand(
            booking.pk,
            actor_for(request.user, booking),
            status=BookingStatus(data["status"]),
            note=data["note"],
        ))
        return self._respond(booking.pk)

    @action(detail=True, methods=["post"], url_path="payment-status")
    def payment_status(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        data = self._input(PaymentStatusSerializer)
        message_bus.handle_command(UpdatePaymentStatusCommand(
            booking.pk,
            actor_for(request.user, booking),
            payment_status=PaymentStatus(data["payment_status"]),
            refund_amount=data.get("refund_amount"),
        ))
        return self._respond(booking.pk)
