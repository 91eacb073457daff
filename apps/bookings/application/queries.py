"""
Booking Queries

Read-only operations: availability checks, the monthly availability
calendar and price quotes. Nothing here takes locks; results are advisory
and the commit path always re-checks.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List
import logging

from django.conf import settings
from django.utils import timezone

from shared.domain.exceptions import (
    BookingNotFound,
    BookingValidationError,
    InvalidDateRange,
    InvalidRoomsCount,
    RoomTypeNotFound,
)
from shared.domain.value_objects import DateRange
from apps.bookings.application.validation import (
    validate_guests,
    validate_rooms_count,
    validate_stay_dates,
)
from apps.pricing.domain import calculator
from apps.pricing.holidays import get_holiday_calendar

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityReport:
    available: bool
    reasons: List[str] = field(default_factory=list)
    max_rooms_available: int = 0
    total_rooms: int = 0
    rooms_requested: int = 0
    nights: int = 0

    def to_dict(self) -> dict:
        return {
            'available': self.available,
            'reasons': self.reasons,
            'max_rooms_available': self.max_rooms_available,
            'total_rooms': self.total_rooms,
            'rooms_requested': self.rooms_requested,
            'nights': self.nights,
        }


@dataclass
class CalendarDay:
    day: date
    total_rooms: int
    booked_rooms: int
    available_rooms: int
    is_available: bool
    price_per_room: object
    price_type: str

    def to_dict(self) -> dict:
        return {
            'date': self.day.isoformat(),
            'total_rooms': self.total_rooms,
            'booked_rooms': self.booked_rooms,
            'available_rooms': self.available_rooms,
            'is_available': self.is_available,
            'price_per_room': self.price_per_room,
            'price_type': self.price_type,
        }


@dataclass
class MonthAvailability:
    room_type_id: int
    year: int
    month: int
    rooms_requested: int
    days: List[CalendarDay] = field(default_factory=list)

    @property
    def available_dates(self) -> List[date]:
        return [d.day for d in self.days if d.is_available]

    def to_dict(self) -> dict:
        return {
            'room_type_id': self.room_type_id,
            'year': self.year,
            'month': self.month,
            'rooms_requested': self.rooms_requested,
            'available_dates': [d.isoformat() for d in self.available_dates],
            'days': [d.to_dict() for d in self.days],
        }


class BookingQueries:
    """Availability and pricing reads over the inventory repository"""

    def __init__(self, inventory_repo, clock=timezone.now, holiday_calendar_factory=get_holiday_calendar):
        self.inventory_repo = inventory_repo
        self.clock = clock
        self.holiday_calendar_factory = holiday_calendar_factory

    def _today(self) -> date:
        return timezone.localdate(self.clock())

    def check_availability(
        self,
        property_id: int,
        room_type_id: int,
        check_in: date,
        check_out: date,
        rooms_count: int = 1,
    ) -> bool:
        """
        IsAvailable for a stay

        Raises InvalidDateRange / InvalidRoomsCount for malformed input or a
        check-in in the past; missing or inactive room types are simply
        unavailable.
        """
        validate_stay_dates(check_in, check_out, self._today())
        if rooms_count < 1:
            raise InvalidRoomsCount(rooms_count=rooms_count)

        dates = DateRange(check_in, check_out)
        loaded = self.inventory_repo.load(room_type_id, dates, property_id=property_id)
        if loaded is None:
            return False
        _, inventory = loaded
        return inventory.can_allocate(dates, rooms_count)

    def check_availability_detailed(
        self,
        property_id: int,
        room_type_id: int,
        check_in: date,
        check_out: date,
        rooms_count: int = 1,
        adults: int = 1,
        children: int = 0,
    ) -> AvailabilityReport:
        """Every reason the stay cannot be booked, instead of the first error"""
        report = AvailabilityReport(available=False, rooms_requested=rooms_count)

        room_type = self.inventory_repo.get_room_type(room_type_id, property_id=property_id)
        if room_type is None:
            report.reasons.append(RoomTypeNotFound.default_message)
            return report
        report.total_rooms = room_type.total_rooms

        checks = (
            lambda: validate_stay_dates(check_in, check_out, self._today()),
            lambda: validate_rooms_count(room_type, rooms_count),
            lambda: validate_guests(room_type, adults, children),
        )
        for check in checks:
            try:
                check()
            except BookingValidationError as e:
                report.reasons.append(e.message)

        if check_out <= check_in:
            return report

        dates = DateRange(check_in, check_out)
        report.nights = len(dates)
        inventory = self.inventory_repo.get_for_room_type(room_type, dates)
        report.max_rooms_available = inventory.free_rooms(dates)

        if rooms_count >= 1 and report.max_rooms_available < rooms_count <= room_type.total_rooms:
            report.reasons.append(
                f"Only {report.max_rooms_available} room(s) available for the selected dates."
            )

        report.available = not report.reasons
        return report

    def get_available_dates_in_month(
        self,
        property_id: int,
        room_type_id: int,
        year: int,
        month: int,
        rooms_count: int = 1,
    ) -> MonthAvailability:
        """
        Per-day calendar for one month; past days are omitted

        A day is available when its single night can take ``rooms_count``
        more rooms. This does not guarantee multi-night stays.
        """
        if not 1 <= month <= 12:
            raise BookingValidationError("Month must be between 1 and 12.", month=month)

        today = self._today()
        if (year, month) < (today.year, today.month):
            raise InvalidDateRange("Cannot view availability for a past month.", year=year, month=month)

        room_type = self.inventory_repo.get_room_type(room_type_id, property_id=property_id)
        if room_type is None:
            raise RoomTypeNotFound(room_type_id=room_type_id)
        validate_rooms_count(room_type, rooms_count)

        first = date(year, month, 1)
        next_month = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        window = DateRange(max(first, today), next_month)

        inventory = self.inventory_repo.get_for_room_type(room_type, window)
        available = set(inventory.available_dates_in_month(year, month, rooms_count, not_before=today))
        rates = room_type.rates()
        holiday_calendar = self.holiday_calendar_factory()

        result = MonthAvailability(
            room_type_id=room_type.pk,
            year=year,
            month=month,
            rooms_requested=rooms_count,
        )
        for day in window.nights():
            booked = inventory.occupancy_on(day)
            price_type, price = calculator.nightly_rate(rates, day, holiday_calendar)
            result.days.append(CalendarDay(
                day=day,
                total_rooms=room_type.total_rooms,
                booked_rooms=booked,
                available_rooms=max(0, room_type.total_rooms - booked),
                is_available=day in available,
                price_per_room=price,
                price_type=price_type,
            ))
        return result

    def get_price_quote(
        self,
        property_id: int,
        room_type_id: int,
        check_in: date,
        check_out: date,
        rooms_count: int = 1,
    ) -> calculator.PriceQuote:
        validate_stay_dates(check_in, check_out, self._today())
        room_type = self.inventory_repo.get_room_type(room_type_id, property_id=property_id)
        if room_type is None:
            raise RoomTypeNotFound(room_type_id=room_type_id)
        return calculator.quote(
            room_type.rates(),
            check_in,
            check_out,
            rooms_count,
            holiday_calendar=self.holiday_calendar_factory(),
            currency=getattr(settings, 'BOOKING_CURRENCY', 'VND'),
        )


def validate_coupon_for_booking(code: str, booking_id: int, customer_id: int):
    """
    ValidateCoupon against an existing booking of ``customer_id``

    Returns the rules ValidationResult; a rejected coupon is a result, not
    an error.
    """
    from apps.bookings.application.command_handlers import coupon_context_for
    from apps.bookings.repositories import DjangoBookingRepository
    from apps.coupons import services as coupon_services
    from apps.inventory.models import Property

    booking = DjangoBookingRepository().get_by_id(booking_id)
    if booking is None or booking.customer_id != customer_id:
        raise BookingNotFound(booking_id=booking_id)

    property_obj = Property.objects.get(pk=booking.property_id)
    _, result = coupon_services.check_coupon(
        code,
        coupon_context_for(booking, property_obj),
        exclude_booking_id=booking.id,
    )
    return result
