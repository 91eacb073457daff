"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.application.command_handlers import AdminCancelBookingCommand, MarkNoShowCommand
from apps.bookings.domain.lifecycle import Actor
from apps.bookings.repositories import DjangoBookingRepository
from shared.application.message_bus import message_bus
from shared.domain.exceptions import BookingError

logger = logging.getLogger(__name__)

AUTO_REJECT_REASON = "Automatically rejected: not confirmed or paid in time"


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat)
# ============================================================================

@shared_task(name="bookings.auto_reject_stale_pending")
def auto_reject_stale_pending() -> dict[str, int]:
    """
    Cancel pending, unpaid bookings older than BOOKING_PENDING_AUTO_REJECT_HOURS.

    Runs hourly through Celery Beat.

    Returns:
        dict: {"rejected": number of cancelled bookings}
    """
    hours = getattr(settings, "BOOKING_PENDING_AUTO_REJECT_HOURS", 24)
    cutoff = timezone.now() - timedelta(hours=hours)
    rejected_count = 0

    for booking_id in DjangoBookingRepository().list_stale_pending(cutoff):
        try:
            message_bus.handle_command(AdminCancelBookingCommand(
                booking_id=booking_id,
                actor=Actor.system(),
                reason=AUTO_REJECT_REASON,
            ))
            rejected_count += 1
        except BookingError as e:
            logger.error(f"Error auto-rejecting booking {booking_id}: {e.message}", exc_info=True)

    if rejected_count > 0:
        logger.info(f"Auto-rejected {rejected_count} stale pending bookings")

    return {"rejected": rejected_count}


@shared_task(name="bookings.mark_no_shows")
def mark_no_shows() -> dict[str, int]:
    """
    Mark confirmed, paid bookings as no-shows once BOOKING_NO_SHOW_GRACE_HOURS
    have passed since the start of the check-in date without a check-in.

    Runs hourly through Celery Beat.

    Returns:
        dict: {"marked": number of bookings marked as no-show}
    """
    grace_hours = getattr(settings, "BOOKING_NO_SHOW_GRACE_HOURS", 6)
    latest_check_in = (timezone.localtime() - timedelta(hours=grace_hours)).date()
    marked_count = 0

    for booking_id in DjangoBookingRepository().list_no_show_candidates(latest_check_in):
        try:
            message_bus.handle_command(MarkNoShowCommand(
                booking_id=booking_id,
                actor=Actor.system(),
                grace_hours=grace_hours,
            ))
            marked_count += 1
        except BookingError as e:
            logger.error(f"Error marking booking {booking_id} as no-show: {e.message}", exc_info=True)

    if marked_count > 0:
        logger.info(f"Marked {marked_count} bookings as no-show")

    return {"marked": marked_count}
