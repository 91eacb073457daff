"""
Pricing Calculator

Pure, deterministic quote for a stay: nightly rate selection, long-stay
discount and a single half-up rounding of the final total.

Nightly rate precedence:
    weekend price (Sat/Sun, if set) > holiday price (if set) > base price

Long-stay discount:
    monthly (>= 28 nights) replaces weekly (>= 7 nights); never both.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List
import logging

from shared.domain.base import ValueObject
from shared.domain.exceptions import ExceedsCapacity, InvalidDateRange, InvalidRoomsCount
from shared.domain.value_objects import DateRange, Money

logger = logging.getLogger(__name__)

WEEKLY_DISCOUNT_MIN_NIGHTS = 7
MONTHLY_DISCOUNT_MIN_NIGHTS = 28

SATURDAY = 5
SUNDAY = 6


class PriceType:
    WEEKDAY = 'weekday'
    WEEKEND = 'weekend'
    HOLIDAY = 'holiday'


class DiscountType:
    NONE = 'none'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'


@dataclass(frozen=True)
class RoomRates(ValueObject):
    """Rate card of a room type"""
    total_rooms: int
    base_price: Decimal
    weekend_price: Decimal | None = None
    holiday_price: Decimal | None = None
    weekly_discount_percent: Decimal = Decimal('0')
    monthly_discount_percent: Decimal = Decimal('0')


@dataclass(frozen=True)
class NightlyRate(ValueObject):
    night: date
    price_type: str
    price_per_room: Decimal
    total_for_rooms: Decimal

    def to_dict(self) -> dict:
        return {
            'date': self.night.isoformat(),
            'day_of_week': self.night.strftime('%A'),
            'price_type': self.price_type,
            'price_per_room': self.price_per_room,
            'total_for_rooms': self.total_for_rooms,
        }


@dataclass(frozen=True)
class PriceQuote(ValueObject):
    """Result of pricing a stay; ``room_price`` is the rounded total"""
    check_in: date
    check_out: date
    nights: int
    rooms_count: int
    currency: str
    nightly_breakdown: List[NightlyRate] = field(default_factory=list)
    subtotal: Decimal = Decimal('0')
    discount_type: str = DiscountType.NONE
    discount_percent: Decimal = Decimal('0')
    discount_amount: Decimal = Decimal('0')
    room_price: Decimal = Decimal('0')

    @property
    def average_price_per_night(self) -> Decimal:
        """Average price of one room for one night, after the long-stay discount"""
        per_room_night = Money(self.room_price, self.currency) / (self.nights * self.rooms_count)
        return per_room_night.rounded().amount

    def to_dict(self) -> dict:
        return {
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat(),
            'nights': self.nights,
            'rooms_count': self.rooms_count,
            'currency': self.currency,
            'nightly_breakdown': [rate.to_dict() for rate in self.nightly_breakdown],
            'subtotal': self.subtotal,
            'discount_type': self.discount_type,
            'discount_percent': self.discount_percent,
            'discount_amount': self.discount_amount,
            'room_price': self.room_price,
            'average_price_per_night': self.average_price_per_night,
        }


def is_weekend(night: date) -> bool:
    return night.weekday() in (SATURDAY, SUNDAY)


def _is_holiday(holiday_calendar, night: date) -> bool:
    if holiday_calendar is None:
        return False
    try:
        return bool(holiday_calendar.is_holiday(night))
    except Exception as e:
        logger.warning(f"Holiday calendar failed for {night}, using regular pricing: {e}")
        return False


def nightly_rate(rates: RoomRates, night: date, holiday_calendar=None) -> tuple[str, Decimal]:
    """Pick the rate for one night: weekend, then holiday, then base"""
    if is_weekend(night) and rates.weekend_price is not None:
        return PriceType.WEEKEND, Decimal(rates.weekend_price)
    if rates.holiday_price is not None and _is_holiday(holiday_calendar, night):
        return PriceType.HOLIDAY, Decimal(rates.holiday_price)
    return PriceType.WEEKDAY, Decimal(rates.base_price)


def long_stay_discount(rates: RoomRates, nights: int) -> tuple[str, Decimal]:
    if nights >= MONTHLY_DISCOUNT_MIN_NIGHTS and rates.monthly_discount_percent:
        return DiscountType.MONTHLY, Decimal(rates.monthly_discount_percent)
    if nights >= WEEKLY_DISCOUNT_MIN_NIGHTS and rates.weekly_discount_percent:
        return DiscountType.WEEKLY, Decimal(rates.weekly_discount_percent)
    return DiscountType.NONE, Decimal('0')


def validate_stay(rates: RoomRates, check_in: date, check_out: date, rooms_count: int):
    """
    Raises:
        InvalidDateRange: check_out is not after check_in
        InvalidRoomsCount: rooms_count < 1
        ExceedsCapacity: rooms_count > total_rooms (regardless of bookings)
    """
    if check_out <= check_in:
        raise InvalidDateRange(check_in=check_in.isoformat(), check_out=check_out.isoformat())
    if rooms_count < 1:
        raise InvalidRoomsCount(rooms_count=rooms_count)
    if rooms_count > rates.total_rooms:
        raise ExceedsCapacity(
            f"Requested {rooms_count} rooms but this room type only has {rates.total_rooms}.",
            rooms_count=rooms_count,
            total_rooms=rates.total_rooms,
        )


def quote(
    rates: RoomRates,
    check_in: date,
    check_out: date,
    rooms_count: int,
    *,
    holiday_calendar=None,
    currency: str = 'VND',
) -> PriceQuote:
    """
    Price a stay of ``rooms_count`` identical rooms over [check_in, check_out)

    The result depends only on the arguments. Intermediate amounts keep
    full precision; the total is rounded half-up once.
    """
    validate_stay(rates, check_in, check_out, rooms_count)

    dates = DateRange(check_in, check_out)
    breakdown = []
    subtotal = Money.zero(currency)
    for night in dates.nights():
        price_type, price = nightly_rate(rates, night, holiday_calendar)
        total_for_rooms = Money(price, currency) * rooms_count
        breakdown.append(NightlyRate(
            night=night,
            price_type=price_type,
            price_per_room=price,
            total_for_rooms=total_for_rooms.amount,
        ))
        subtotal = subtotal + total_for_rooms

    nights = len(dates)
    discount_type, discount_percent = long_stay_discount(rates, nights)
    total = (subtotal * ((Decimal('100') - discount_percent) / Decimal('100'))).rounded()

    return PriceQuote(
        check_in=check_in,
        check_out=check_out,
        nights=nights,
        rooms_count=rooms_count,
        currency=currency,
        nightly_breakdown=breakdown,
        subtotal=subtotal.amount,
        discount_type=discount_type,
        discount_percent=discount_percent,
        discount_amount=subtotal.amount - total.amount,
        room_price=total.amount,
    )
