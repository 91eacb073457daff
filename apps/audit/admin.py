"""Admin registration for the audit log."""

from __future__ import annotations

from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action_time", "action_type", "table_name", "record_id", "actor_id")
    list_filter = ("action_type", "table_name")
    search_fields = ("record_id",)
    readonly_fields = (
        "action_type",
        "table_name",
        "record_id",
        "actor_id",
        "old_values",
        "new_values",
        "action_time",
    )

    def has_add_permission(self, request):  # type: ignore
        return False
