"""Shared pytest fixtures: a bookable property with one room type."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone  # type: ignore


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def next_friday(today):
    """A Friday at least a week ahead, clear of the customer cancellation cutoff."""
    start = today + timedelta(days=8)
    return start + timedelta(days=(4 - start.weekday()) % 7)


@pytest.fixture
def property_obj(db):
    from apps.inventory.models import Property

    return Property.objects.create(host_id=900, name="Riverside Hotel", property_type_id=3, location_id=7)


@pytest.fixture
def room_type(property_obj):
    from apps.inventory.models import RoomType

    return RoomType.objects.create(
        property=property_obj,
        name="Deluxe Double",
        total_rooms=1,
        base_price=Decimal("1000000"),
        weekend_price=Decimal("1200000"),
        max_adults=2,
        max_children=1,
        max_guests=3,
    )


@pytest.fixture
def handlers():
    from apps.bookings.application.command_handlers import build_handlers

    return build_handlers()
