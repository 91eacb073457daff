"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange


@dataclass
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created (directly CONFIRMED)

    Triggers:
    - Send confirmation to the customer
    - Notify the host
    """
    booking_id: int | None
    booking_code: str
    property_id: int
    room_type_id: int
    customer_id: int
    dates: DateRange
    rooms_count: int
    total_amount: Decimal
    status: str


@dataclass
class BookingConfirmed(DomainEvent):
    """Event: A pending booking was confirmed (PENDING -> CONFIRMED)"""
    booking_id: int
    property_id: int
    customer_id: int


@dataclass
class BookingCheckedIn(DomainEvent):
    """Event: Guest has checked in (CONFIRMED -> CHECKED_IN)"""
    booking_id: int
    property_id: int
    late_by_days: int


@dataclass
class BookingCheckedOut(DomainEvent):
    """
    Event: Guest has checked out (CHECKED_IN -> CHECKED_OUT)

    Triggers:
    - Request review from the customer
    """
    booking_id: int
    property_id: int
    customer_id: int
    early_by_days: int


@dataclass
class BookingCancelled(DomainEvent):
    """
    Event: Booking was cancelled

    Triggers:
    - Process refund (if applicable)
    - Notify customer and host
    """
    booking_id: int
    property_id: int
    customer_id: int
    cancelled_by: str
    reason: str
    old_status: str
    refund_amount: Decimal | None
    cancellation_fee: Decimal


@dataclass
class BookingMarkedNoShow(DomainEvent):
    """Event: The guest never arrived (CONFIRMED -> NO_SHOW)"""
    booking_id: int
    property_id: int
    customer_id: int
    grace_hours: int


@dataclass
class BookingStatusOverridden(DomainEvent):
    """Event: An administrator forced a status change"""
    booking_id: int
    old_status: str
    new_status: str
    note: str


@dataclass
class PaymentStatusChanged(DomainEvent):
    booking_id: int
    old_status: str
    new_status: str
