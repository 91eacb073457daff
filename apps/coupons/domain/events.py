"""Coupon Domain Events"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass
class CouponApplied(DomainEvent):
    coupon_code: str
    booking_id: int
    customer_id: int
    discount_amount: Decimal


@dataclass
class CouponVoided(DomainEvent):
    """Event: A coupon usage was removed (booking cancelled or coupon withdrawn)"""
    coupon_code: str
    booking_id: int
    customer_id: int
