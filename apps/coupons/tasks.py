"""Celery tasks for coupons."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.uow import get_audit_sink

from .services import deactivate_expired

logger = logging.getLogger(__name__)


@shared_task(name="coupons.deactivate_expired_coupons")
def deactivate_expired_coupons() -> dict[str, int]:
    """
    Switch off active coupons whose end date has passed.

    Runs hourly through Celery Beat.
    """
    coupon_ids = deactivate_expired(timezone.now())
    if not coupon_ids:
        return {"deactivated": 0}

    sink = get_audit_sink()
    if sink is not None:
        for coupon_id in coupon_ids:
            sink.log_update("coupons", coupon_id, {"is_active": True}, {"is_active": False})

    logger.info(f"Deactivated {len(coupon_ids)} expired coupons")
    return {"deactivated": len(coupon_ids)}
