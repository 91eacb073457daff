"""Message-bus wiring for the booking engine.

Event subscribers are fire-and-forget: they run after commit and a failure
never affects the booking that produced the event.
"""

from __future__ import annotations

import logging

from apps.bookings.application.command_handlers import build_handlers
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingCheckedIn,
    BookingCheckedOut,
    BookingConfirmed,
    BookingCreated,
    BookingMarkedNoShow,
    BookingStatusOverridden,
    PaymentStatusChanged,
)
from apps.coupons.domain.events import CouponApplied, CouponVoided
from apps.inventory.domain.events import InventoryAllocated, InventoryReleased

logger = logging.getLogger("apps.bookings.events")


def log_booking_event(event) -> None:
    """Emit every booking event as a structured log line for downstream consumers."""
    logger.info(event.__class__.__name__, extra={"domain_event": event.to_dict()})


def warn_on_low_inventory(event: InventoryAllocated) -> None:
    if event.remaining_rooms == 0:
        logger.info(
            f"Room type {event.room_type_id} is sold out for {event.dates}",
            extra={"domain_event": event.to_dict()},
        )


EVENT_SUBSCRIBERS = {
    BookingCreated: [log_booking_event],
    BookingConfirmed: [log_booking_event],
    BookingCancelled: [log_booking_event],
    BookingCheckedIn: [log_booking_event],
    BookingCheckedOut: [log_booking_event],
    BookingMarkedNoShow: [log_booking_event],
    BookingStatusOverridden: [log_booking_event],
    PaymentStatusChanged: [log_booking_event],
    CouponApplied: [log_booking_event],
    CouponVoided: [log_booking_event],
    InventoryAllocated: [log_booking_event, warn_on_low_inventory],
    InventoryReleased: [log_booking_event],
}


def register(bus) -> None:
    for event_type, subscribers in EVENT_SUBSCRIBERS.items():
        for subscriber in subscribers:
            bus.register_event_handler(event_type, subscriber)

    for command_type, handler in build_handlers().items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler)
