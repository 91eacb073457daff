"""Persistence for the Booking aggregate."""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.entities import Booking
from apps.bookings.domain.lifecycle import BookingStatus, PaymentStatus
from apps.bookings.models import Booking as BookingModel
from apps.inventory.models import Property
from shared.domain.value_objects import DateRange
from shared.infrastructure.locking import lock_queryset_if_possible

logger = logging.getLogger(__name__)

BOOKING_CODE_ATTEMPTS = 5

_PLAIN_FIELDS = (
    "booking_code",
    "customer_id",
    "property_id",
    "room_type_id",
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
    "admin_note",
)


class DjangoBookingRepository:
    """Maps ``apps.bookings.models.Booking`` rows to Booking aggregates."""

    def next_booking_code(self) -> str:
        code = BookingModel.generate_booking_code()
        while BookingModel.objects.filter(booking_code=code).exists():
            code = BookingModel.generate_booking_code()
        return code

    def get_by_id(self, booking_id: int, *, lock: bool = False) -> Booking | None:
        queryset = BookingModel.objects.filter(pk=booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        model = queryset.first()
        if model is None:
            return None
        return self._to_entity(model)

    def list_stale_pending(self, created_before) -> list[int]:
        return list(
            BookingModel.objects.filter(
                status=BookingModel.Status.PENDING,
                payment_status=BookingModel.PaymentStatus.UNPAID,
                booked_at__lt=created_before,
            ).values_list("pk", flat=True)
        )

    def list_no_show_candidates(self, check_in_on_or_before) -> list[int]:
        """Confirmed, paid bookings whose guests never checked in."""
        return list(
            BookingModel.objects.filter(
                status=BookingModel.Status.CONFIRMED,
                payment_status=BookingModel.PaymentStatus.PAID,
                check_in__lte=check_in_on_or_before,
                checked_in_at__isnull=True,
            ).values_list("pk", flat=True)
        )

    def save(self, booking: Booking) -> None:
        fields = self._to_fields(booking)
        if booking.id is None:
            model = self._insert(booking, fields)
            booking.assign_id(model.pk)
            logger.debug(f"Inserted booking {booking.booking_code} (ID: {model.pk})")
            return

        fields["updated_at"] = timezone.now()
        BookingModel.objects.filter(pk=booking.id).update(**fields)

    def _insert(self, booking: Booking, fields: dict) -> BookingModel:
        """
        Insert inside a savepoint; a concurrent insert that took the same
        booking code gets a fresh code instead of failing the whole command.
        """
        for attempt in range(1, BOOKING_CODE_ATTEMPTS + 1):
            try:
                with transaction.atomic():
                    return BookingModel.objects.create(**fields)
            except IntegrityError:
                code_taken = BookingModel.objects.filter(booking_code=fields["booking_code"]).exists()
                if not code_taken or attempt >= BOOKING_CODE_ATTEMPTS:
                    raise
                logger.warning(f"Booking code {fields['booking_code']} already taken, generating a new one")
                booking.assign_booking_code(self.next_booking_code())
                fields["booking_code"] = booking.booking_code

    def _to_fields(self, booking: Booking) -> dict:
        fields = {name: getattr(booking, name) for name in _PLAIN_FIELDS}
        fields.update(
            check_in=booking.check_in,
            check_out=booking.check_out,
            nights=booking.nights,
            status=booking.status.value,
            payment_status=booking.payment_status.value,
        )
        return fields

    def _to_entity(self, model: BookingModel) -> Booking:
        host_id = Property.objects.filter(pk=model.property_id).values_list("host_id", flat=True).first()
        values = {name: getattr(model, name) for name in _PLAIN_FIELDS}
        return Booking(
            id=model.pk,
            host_id=host_id,
            dates=DateRange(model.check_in, model.check_out),
            status=BookingStatus(model.status),
            payment_status=PaymentStatus(model.payment_status),
            **values,
        )
