"""
Inventory Domain Events

Published after commit when rooms are committed to, or released from,
a booking.
"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange


@dataclass
class InventoryAllocated(DomainEvent):
    """
    Event: Rooms committed to a booking for a date range

    ``remaining_rooms`` is the lowest number of rooms still free on any
    night of the range after the allocation.
    """
    room_type_id: int
    booking_id: int | None
    dates: DateRange
    rooms: int
    remaining_rooms: int


@dataclass
class InventoryReleased(DomainEvent):
    """Event: Rooms held by a booking became available again"""
    room_type_id: int
    booking_id: int
    dates: DateRange
    rooms: int
