"""Holiday calendar collaborator used by the pricing calculator."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Protocol

from django.conf import settings  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_HOLIDAYS = ("01-01", "04-30", "05-01", "09-02")


class HolidayCalendar(Protocol):
    def is_holiday(self, day: date) -> bool:
        ...


class FixedDateHolidayCalendar:
    """Holidays that fall on the same month and day every year (``MM-DD``)."""

    def __init__(self, holidays: Iterable[str] | None = None) -> None:
        if holidays is None:
            holidays = getattr(settings, "BOOKING_HOLIDAYS", DEFAULT_HOLIDAYS)
        self._month_days = {self._parse(value) for value in holidays}

    @staticmethod
    def _parse(value: str) -> tuple[int, int]:
        month, day = value.split("-")
        return int(month), int(day)

    def is_holiday(self, day: date) -> bool:
        return (day.month, day.day) in self._month_days


def get_holiday_calendar() -> HolidayCalendar | None:
    """Instantiate ``BOOKING_HOLIDAY_CALENDAR``; None disables holiday pricing."""

    path = getattr(settings, "BOOKING_HOLIDAY_CALENDAR", "")
    if not path:
        return None
    try:
        return import_string(path)()
    except Exception as exc:
        logger.warning(f"Holiday calendar {path} is unavailable, holiday pricing skipped: {exc}")
        return None
