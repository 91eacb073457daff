"""Coupon services: validation against live data, redemption and voiding.

Redemption and voiding never open their own transaction; they run inside
the caller's Unit of Work so a coupon usage is written or removed together
with the booking it belongs to.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from django.db.models import F, Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.coupons.domain import rules
from apps.coupons.domain.events import CouponApplied, CouponVoided
from apps.coupons.models import Coupon, CouponUsage
from shared.domain.exceptions import CouponError
from shared.infrastructure.locking import lock_queryset_if_possible

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def get_coupon(code: str, *, lock: bool = False) -> Coupon | None:
    queryset = Coupon.objects.filter(code__iexact=normalize_code(code))
    if lock:
        queryset = lock_queryset_if_possible(queryset)
    return queryset.first()


def customer_usage_count(coupon: Coupon, customer_id: int, *, exclude_booking_id: int | None = None) -> int:
    usages = CouponUsage.objects.filter(coupon=coupon, customer_id=customer_id)
    if exclude_booking_id is not None:
        usages = usages.exclude(booking_id=exclude_booking_id)
    return usages.count()


def check_coupon(
    code: str,
    context: rules.CouponContext,
    *,
    now: datetime | None = None,
    exclude_booking_id: int | None = None,
    lock: bool = False,
) -> tuple[Coupon | None, rules.ValidationResult]:
    """Validate ``code`` for ``context``; never raises for a rejected coupon."""

    coupon = get_coupon(code, lock=lock)
    usage_count = (
        customer_usage_count(coupon, context.customer_id, exclude_booking_id=exclude_booking_id)
        if coupon is not None
        else 0
    )
    result = rules.validate(
        coupon.to_terms() if coupon is not None else None,
        context,
        now=now or timezone.now(),
        customer_usage_count=usage_count,
    )
    if not result.is_valid:
        logger.info(f"Coupon {normalize_code(code)} rejected for customer {context.customer_id}: {result.error_reason}")
    return coupon, result


def require_valid_coupon(code: str, context: rules.CouponContext, **kwargs) -> tuple[Coupon, Decimal]:
    """Like ``check_coupon`` but raises ``CouponError`` with the reason."""

    coupon, result = check_coupon(code, context, **kwargs)
    if not result.is_valid:
        raise CouponError(result.error_reason, code=normalize_code(code))
    return coupon, result.discount_amount


def redeem_coupon(
    code: str,
    context: rules.CouponContext,
    *,
    booking_id: int,
    now: datetime | None = None,
) -> tuple[CouponUsage, list]:
    """
    Record a coupon usage for ``booking_id`` and bump ``used_count``.

    Idempotent per booking: redeeming the same coupon again returns the
    existing usage; a different coupon on the same booking is rejected.
    Validation is repeated under the coupon row lock and the counter is
    incremented with a compare-and-increment, so the total limit holds
    under concurrency.
    """

    existing = CouponUsage.objects.select_related("coupon").filter(booking_id=booking_id).first()
    if existing is not None:
        if existing.coupon.code.upper() == normalize_code(code):
            logger.info(f"Coupon {existing.coupon.code} already applied to booking {booking_id}")
            return existing, []
        raise CouponError("A different coupon is already applied to this booking.", booking_id=booking_id)

    coupon, discount = require_valid_coupon(code, context, now=now, lock=True, exclude_booking_id=booking_id)

    incremented = (
        Coupon.objects.filter(pk=coupon.pk)
        .filter(Q(max_total_uses__isnull=True) | Q(used_count__lt=F("max_total_uses")))
        .update(used_count=F("used_count") + 1, updated_at=timezone.now())
    )
    if not incremented:
        raise CouponError("This coupon has reached its usage limit.", code=coupon.code)

    usage = CouponUsage.objects.create(
        coupon=coupon,
        booking_id=booking_id,
        customer_id=context.customer_id,
        discount_amount=discount,
    )
    logger.info(f"Coupon {coupon.code} redeemed by booking {booking_id}, discount {discount}")

    event = CouponApplied(
        aggregate_id=coupon.pk,
        coupon_code=coupon.code,
        booking_id=booking_id,
        customer_id=context.customer_id,
        discount_amount=discount,
    )
    return usage, [event]


def void_coupon_usage(booking_id: int) -> tuple[CouponUsage | None, list]:
    """
    Remove the coupon usage of a booking and release one use.

    No usage means nothing to do, which keeps repeated cancellation safe.
    ``used_count`` never drops below zero.
    """

    usage = lock_queryset_if_possible(
        CouponUsage.objects.select_related("coupon").filter(booking_id=booking_id)
    ).first()
    if usage is None:
        return None, []

    coupon = usage.coupon
    CouponUsage.objects.filter(pk=usage.pk).delete()
    Coupon.objects.filter(pk=coupon.pk, used_count__gt=0).update(
        used_count=F("used_count") - 1,
        updated_at=timezone.now(),
    )
    logger.info(f"Coupon {coupon.code} released by booking {booking_id}")

    event = CouponVoided(
        aggregate_id=coupon.pk,
        coupon_code=coupon.code,
        booking_id=booking_id,
        customer_id=usage.customer_id,
    )
    return usage, [event]


def deactivate_expired(now: datetime | None = None) -> list[int]:
    """Switch off active coupons whose validity window has ended."""

    now = now or timezone.now()
    expired_ids = list(
        Coupon.objects.filter(is_active=True, end_date__lt=now).values_list("pk", flat=True)
    )
    if expired_ids:
        Coupon.objects.filter(pk__in=expired_ids).update(is_active=False, updated_at=now)
    return expired_ids
