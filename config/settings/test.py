"""Test settings: in-memory SQLite (PostgreSQL when DB_ENGINE selects it), eager Celery, fast hashing."""

import os

from .base import *  # noqa: F401,F403

DEBUG = False

# Concurrency tests need row locks; they run when DB_ENGINE selects PostgreSQL.
if 'postgresql' not in os.environ.get('DB_ENGINE', ''):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

BOOKING_COMMIT_RETRY_BACKOFF_SECONDS = 0
BOOKING_HOLIDAY_CALENDAR = 'apps.pricing.holidays.FixedDateHolidayCalendar'
BOOKING_HOLIDAYS = ['01-01', '04-30', '05-01', '09-02']
BOOKING_AUDIT_LOG_SINK = 'apps.audit.services.AuditLogService'
