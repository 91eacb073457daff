"""
Coupon Rules

Pure validation and discount calculation. Checks run in a fixed order and
stop at the first failure, each with its own reason:

1. exists and active
2. within the validity window
3. total usage limit
4. per-customer usage limit
5. minimum order amount
6. minimum nights
7. applicability (all / property / property type / location)
8. check-in weekday
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from shared.domain.base import ValueObject
from shared.domain.value_objects import Money

PERCENTAGE = 'percentage'
FIXED_AMOUNT = 'fixed_amount'
FREE_NIGHT = 'free_night'

APPLICABLE_ALL = 'all'

WEEKDAY_ABBREVIATIONS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')


@dataclass(frozen=True)
class CouponTerms(ValueObject):
    """Snapshot of a coupon's terms at validation time"""
    code: str
    discount_type: str
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    max_discount_amount: Decimal | None = None
    min_order_amount: Decimal | None = None
    min_nights: int | None = None
    applicable_days: str = ''
    applicable_to: str = APPLICABLE_ALL
    applicable_targets: frozenset = frozenset()
    max_total_uses: int | None = None
    max_uses_per_customer: int | None = None
    used_count: int = 0

    def allowed_weekdays(self) -> set[int]:
        days = {part.strip() for part in self.applicable_days.split(',') if part.strip()}
        return {WEEKDAY_ABBREVIATIONS.index(day) for day in days if day in WEEKDAY_ABBREVIATIONS}


@dataclass(frozen=True)
class CouponContext(ValueObject):
    """The booking a coupon is being checked against"""
    customer_id: int
    property_id: int
    property_type_id: int | None
    location_id: int | None
    check_in: date
    nights: int
    room_price: Decimal
    total_amount: Decimal
    currency: str = 'VND'

    def targets(self) -> dict:
        return {
            'property': self.property_id,
            'property_type': self.property_type_id,
            'location': self.location_id,
        }


@dataclass(frozen=True)
class ValidationResult(ValueObject):
    is_valid: bool
    coupon: CouponTerms | None = None
    error_reason: str = ''
    discount_amount: Decimal = Decimal('0')

    @classmethod
    def rejected(cls, reason: str, coupon: CouponTerms | None = None) -> 'ValidationResult':
        return cls(is_valid=False, coupon=coupon, error_reason=reason)


def _format_amount(amount: Decimal, currency: str) -> str:
    return str(Money(amount, currency))


def validate(
    coupon: CouponTerms | None,
    context: CouponContext,
    *,
    now: datetime,
    customer_usage_count: int,
) -> ValidationResult:
    """Run the ordered coupon checks; on success include the discount"""
    if coupon is None:
        return ValidationResult.rejected("Coupon code does not exist.")
    if not coupon.is_active:
        return ValidationResult.rejected("This coupon is no longer active.", coupon)

    if now < coupon.start_date:
        return ValidationResult.rejected("This coupon is not valid yet.", coupon)
    if now > coupon.end_date:
        return ValidationResult.rejected("This coupon has expired.", coupon)

    if coupon.max_total_uses is not None and coupon.used_count >= coupon.max_total_uses:
        return ValidationResult.rejected("This coupon has reached its usage limit.", coupon)

    if coupon.max_uses_per_customer is not None and customer_usage_count >= coupon.max_uses_per_customer:
        return ValidationResult.rejected(
            "You have already used this coupon the maximum number of times.", coupon
        )

    if coupon.min_order_amount is not None and context.total_amount < coupon.min_order_amount:
        return ValidationResult.rejected(
            f"The order total must be at least {_format_amount(coupon.min_order_amount, context.currency)} "
            f"to use this coupon.",
            coupon,
        )

    if coupon.min_nights is not None and context.nights < coupon.min_nights:
        return ValidationResult.rejected(
            f"This coupon requires a stay of at least {coupon.min_nights} nights.", coupon
        )

    if not is_applicable(coupon, context):
        return ValidationResult.rejected("This coupon is not applicable to the selected property.", coupon)

    allowed_weekdays = coupon.allowed_weekdays()
    if allowed_weekdays and context.check_in.weekday() not in allowed_weekdays:
        return ValidationResult.rejected(
            f"This coupon is only valid for check-in on {coupon.applicable_days}.", coupon
        )

    discount = calculate_discount(
        coupon,
        total_amount=context.total_amount,
        room_price=context.room_price,
        nights=context.nights,
        currency=context.currency,
    )
    return ValidationResult(is_valid=True, coupon=coupon, discount_amount=discount)


def is_applicable(coupon: CouponTerms, context: CouponContext) -> bool:
    if coupon.applicable_to == APPLICABLE_ALL:
        return True
    target_id = context.targets().get(coupon.applicable_to)
    if target_id is None:
        return False
    return (coupon.applicable_to, target_id) in coupon.applicable_targets


def calculate_discount(
    coupon: CouponTerms,
    *,
    total_amount: Decimal,
    room_price: Decimal,
    nights: int,
    currency: str = 'VND',
) -> Decimal:
    """
    Discount for a valid coupon, clamped to [0, total_amount]

    - percentage:   room_price * value / 100, capped by max_discount_amount
    - fixed_amount: min(value, total_amount)
    - free_night:   value * (room_price / nights), capped at total_amount
    """
    value = Decimal(coupon.discount_value)
    total = Decimal(total_amount)

    if coupon.discount_type == PERCENTAGE:
        discount = Decimal(room_price) * value / Decimal('100')
        if coupon.max_discount_amount is not None:
            discount = min(discount, Decimal(coupon.max_discount_amount))
    elif coupon.discount_type == FIXED_AMOUNT:
        discount = min(value, total)
    elif coupon.discount_type == FREE_NIGHT:
        discount = value * (Decimal(room_price) / Decimal(max(nights, 1)))
    else:
        discount = Decimal('0')

    discount = max(Decimal('0'), min(discount, total))
    return Money(discount, currency).rounded().amount
