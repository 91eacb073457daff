"""Audit-log sink backed by the AuditLog table."""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from .models import AuditLog

logger = logging.getLogger(__name__)


class AuditLogService:
    """Writes audit entries; configured through ``BOOKING_AUDIT_LOG_SINK``."""

    def log_action(
        self,
        action_type: str,
        table_name: str,
        record_id,
        old_values: dict | None = None,
        new_values: dict | None = None,
        actor_id: int | None = None,
    ) -> AuditLog:
        entry = AuditLog.objects.create(
            action_type=action_type,
            table_name=table_name,
            record_id="" if record_id is None else str(record_id),
            actor_id=actor_id,
            old_values=old_values,
            new_values=new_values,
        )
        logger.debug(f"Audit {action_type} {table_name}#{record_id}")
        return entry

    def log_insert(self, table_name: str, record_id, new_values: dict | None, actor_id: int | None = None):
        return self.log_action(AuditLog.ActionType.INSERT, table_name, record_id, None, new_values, actor_id)

    def log_update(
        self,
        table_name: str,
        record_id,
        old_values: dict | None,
        new_values: dict | None,
        actor_id: int | None = None,
    ):
        return self.log_action(AuditLog.ActionType.UPDATE, table_name, record_id, old_values, new_values, actor_id)

    def log_delete(self, table_name: str, record_id, old_values: dict | None, actor_id: int | None = None):
        return self.log_action(AuditLog.ActionType.DELETE, table_name, record_id, old_values, None, actor_id)

    def cleanup_old_logs(self, retention_days: int | None = None) -> int:
        if retention_days is None:
            retention_days = getattr(settings, "BOOKING_AUDIT_LOG_RETENTION_DAYS", 180)
        cutoff = timezone.now() - timedelta(days=retention_days)
        deleted, _ = AuditLog.objects.filter(action_time__lt=cutoff).delete()
        return deleted
