"""Celery tasks for the audit log."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import AuditLogService

logger = logging.getLogger(__name__)


@shared_task(name="audit.cleanup_old_audit_logs")
def cleanup_old_audit_logs() -> dict[str, int]:
    """
    Delete audit entries older than BOOKING_AUDIT_LOG_RETENTION_DAYS.

    Runs daily through Celery Beat.
    """
    deleted = AuditLogService().cleanup_old_logs()
    if deleted:
        logger.info(f"Deleted {deleted} audit log entries past retention")
    return {"deleted": deleted}
