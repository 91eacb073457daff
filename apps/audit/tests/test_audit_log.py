from datetime import timedelta

import pytest
from django.utils import timezone  # type: ignore

from apps.audit.models import AuditLog
from apps.audit.services import AuditLogService
from apps.audit.tasks import cleanup_old_audit_logs
from apps.bookings.application.command_handlers import CancelBookingCommand, CreateBookingCommand
from apps.bookings.domain.lifecycle import Actor
from shared.domain.exceptions import RoomsUnavailable

pytestmark = pytest.mark.django_db


def create_command(room_type, check_in, customer_id=10):
    return CreateBookingCommand(
        customer_id=customer_id,
        property_id=room_type.property_id,
        room_type_id=room_type.pk,
        check_in=check_in,
        check_out=check_in + timedelta(days=2),
    )


def test_committed_changes_are_audited(handlers, room_type, next_friday, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        booking = handlers[CreateBookingCommand](create_command(room_type, next_friday))
    with django_capture_on_commit_callbacks(execute=True):
        handlers[CancelBookingCommand](CancelBookingCommand(booking.id, Actor.customer(10), reason="ill"))

    insert = AuditLog.objects.get(table_name="bookings", action_type=AuditLog.ActionType.INSERT)
    update = AuditLog.objects.get(table_name="bookings", action_type=AuditLog.ActionType.UPDATE)

    assert insert.record_id == str(booking.id)
    assert insert.actor_id == 10
    assert insert.new_values["status"] == "confirmed"
    assert update.old_values["status"] == "confirmed"
    assert update.new_values["status"] == "cancelled"


def test_rejected_commands_leave_no_audit_trail(handlers, room_type, next_friday, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        handlers[CreateBookingCommand](create_command(room_type, next_friday))

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(RoomsUnavailable):
            handlers[CreateBookingCommand](create_command(room_type, next_friday, customer_id=11))

    assert callbacks == []
    assert AuditLog.objects.filter(action_type=AuditLog.ActionType.INSERT).count() == 1


def test_cleanup_removes_entries_past_retention(settings):
    settings.BOOKING_AUDIT_LOG_RETENTION_DAYS = 30
    service = AuditLogService()
    old = service.log_insert("bookings", 1, {"status": "confirmed"})
    AuditLog.objects.filter(pk=old.pk).update(action_time=timezone.now() - timedelta(days=31))
    recent = service.log_delete("coupon_usages", 2, {"booking_id": 1})

    assert cleanup_old_audit_logs() == {"deleted": 1}
    assert list(AuditLog.objects.values_list("pk", flat=True)) == [recent.pk]
