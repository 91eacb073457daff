"""Persistence for the inventory ledger."""

from __future__ import annotations

import logging

from apps.inventory.domain.ledger import Reservation, RoomTypeInventory
from apps.inventory.models import RoomType
from shared.domain.value_objects import DateRange
from shared.infrastructure.locking import lock_queryset_if_possible

logger = logging.getLogger(__name__)


class DjangoInventoryRepository:
    """
    Loads RoomTypeInventory aggregates from bookings.

    The ledger is never stored; it is rebuilt from the bookings that occupy
    inventory. Locking the room type row is what serialises concurrent
    commits for the same room type.
    """

    def get_room_type(
        self,
        room_type_id: int,
        *,
        property_id: int | None = None,
        lock: bool = False,
    ) -> RoomType | None:
        """Return the room type if it exists and is bookable, else None."""

        queryset = RoomType.objects.filter(pk=room_type_id)
        if property_id is not None:
            queryset = queryset.filter(property_id=property_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)

        room_type = queryset.first()
        if room_type is None:
            return None
        if not room_type.is_bookable():
            logger.info(f"Room type {room_type_id} is inactive or its property is inactive")
            return None
        return room_type

    def get_for_room_type(
        self,
        room_type: RoomType,
        window: DateRange,
        *,
        exclude_booking_id: int | None = None,
    ) -> RoomTypeInventory:
        """Build the ledger for every booking overlapping ``window``."""

        from apps.bookings.models import Booking  # local import to avoid circular

        bookings = (
            Booking.objects.filter(room_type_id=room_type.pk)
            .occupying()
            .overlapping(window.start_date, window.end_date)
        )

        if exclude_booking_id is not None:
            bookings = bookings.exclude(pk=exclude_booking_id)

        reservations = [
            Reservation(booking_id=pk, dates=DateRange(check_in, check_out), rooms=rooms_count)
            for pk, check_in, check_out, rooms_count in bookings.values_list(
                "pk", "check_in", "check_out", "rooms_count"
            )
        ]

        return RoomTypeInventory(
            room_type_id=room_type.pk,
            total_rooms=room_type.total_rooms,
            reservations=reservations,
        )

    def load(
        self,
        room_type_id: int,
        window: DateRange,
        *,
        property_id: int | None = None,
        lock: bool = False,
    ) -> tuple[RoomType, RoomTypeInventory] | None:
        room_type = self.get_room_type(room_type_id, property_id=property_id, lock=lock)
        if room_type is None:
            return None
        return room_type, self.get_for_room_type(room_type, window)
