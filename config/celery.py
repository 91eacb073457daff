import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("booking_engine")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Pending bookings not confirmed in time - every hour
    "auto-reject-stale-pending-bookings": {
        "task": "bookings.auto_reject_stale_pending",
        "schedule": crontab(minute=5),
    },
    # Paid guests who never checked in - every hour
    "mark-no-show-bookings": {
        "task": "bookings.mark_no_shows",
        "schedule": crontab(minute=15),
    },
    # Coupons past their end date - every hour
    "deactivate-expired-coupons": {
        "task": "coupons.deactivate_expired_coupons",
        "schedule": crontab(minute=0),
        "options": {"expires": 3000},
    },
    # Audit retention - daily at 03:30
    "cleanup-old-audit-logs": {
        "task": "audit.cleanup_old_audit_logs",
        "schedule": crontab(minute=30, hour=3),
    },
}
