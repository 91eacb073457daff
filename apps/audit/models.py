"""Audit log model."""

from __future__ import annotations

from django.core.serializers.json import DjangoJSONEncoder  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class AuditLog(models.Model):
    class ActionType(models.TextChoices):
        INSERT = "INSERT", _("Insert")
        UPDATE = "UPDATE", _("Update")
        DELETE = "DELETE", _("Delete")

    action_type = models.CharField(max_length=20, choices=ActionType.choices)
    table_name = models.CharField(max_length=100)
    record_id = models.CharField(max_length=64, blank=True)
    actor_id = models.PositiveBigIntegerField(null=True, blank=True)
    old_values = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    new_values = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    action_time = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _("Audit log entry")
        verbose_name_plural = _("Audit log")
        ordering = ["-action_time"]
        indexes = [
            models.Index(fields=["table_name", "record_id"], name="audit_log_table_record_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.action_type} {self.table_name}#{self.record_id}"
