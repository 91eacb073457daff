"""Tests for the per-room-type inventory ledger."""

import random
from datetime import date, timedelta

import pytest

from apps.inventory.domain.events import InventoryAllocated, InventoryReleased
from apps.inventory.domain.ledger import Reservation, RoomTypeInventory, ranges_overlap
from shared.domain.exceptions import RoomsUnavailable
from shared.domain.value_objects import DateRange

BASE = date(2025, 6, 1)


def stay(start_offset: int, nights: int) -> DateRange:
    start = BASE + timedelta(days=start_offset)
    return DateRange(start, start + timedelta(days=nights))


def test_same_day_turnover_is_not_an_overlap():
    assert not ranges_overlap(BASE, BASE + timedelta(days=2), BASE + timedelta(days=2), BASE + timedelta(days=4))
    assert ranges_overlap(BASE, BASE + timedelta(days=3), BASE + timedelta(days=2), BASE + timedelta(days=4))


def test_single_room_allows_back_to_back_stays():
    inventory = RoomTypeInventory(room_type_id=1, total_rooms=1)
    inventory.allocate(10, stay(0, 2))

    assert inventory.can_allocate(stay(2, 2))
    assert not inventory.can_allocate(stay(1, 2))


def test_free_rooms_uses_the_busiest_night():
    inventory = RoomTypeInventory(
        room_type_id=1,
        total_rooms=5,
        reservations=[
            Reservation(1, stay(0, 3), rooms=2),
            Reservation(2, stay(2, 3), rooms=2),
        ],
    )

    assert inventory.occupancy_on(BASE + timedelta(days=2)) == 4
    assert inventory.free_rooms(stay(0, 5)) == 1
    assert inventory.can_allocate(stay(0, 5), 1)
    assert not inventory.can_allocate(stay(0, 5), 2)
    assert inventory.can_allocate(stay(3, 2), 3)


def test_request_above_total_rooms_is_never_available():
    inventory = RoomTypeInventory(room_type_id=1, total_rooms=2)

    assert not inventory.can_allocate(stay(0, 1), 3)
    assert not inventory.can_allocate(stay(0, 1), 0)


def test_allocate_raises_with_context_when_full():
    inventory = RoomTypeInventory(room_type_id=7, total_rooms=1)
    inventory.allocate(1, stay(0, 3))

    with pytest.raises(RoomsUnavailable) as exc_info:
        inventory.allocate(2, stay(2, 2))

    assert exc_info.value.context["room_type_id"] == 7
    assert exc_info.value.context["rooms_requested"] == 1
    assert len(inventory.reservations) == 1


def test_allocate_and_deallocate_emit_events():
    inventory = RoomTypeInventory(room_type_id=3, total_rooms=2)
    reservation = inventory.allocate(None, stay(0, 2))
    inventory.assign_booking(reservation, 42)

    allocated = inventory.events[0]
    assert isinstance(allocated, InventoryAllocated)
    assert allocated.booking_id == 42
    assert allocated.remaining_rooms == 1

    inventory.clear_events()
    assert inventory.deallocate(42) is reservation
    assert isinstance(inventory.events[0], InventoryReleased)


def test_deallocate_unknown_booking_is_a_no_op():
    inventory = RoomTypeInventory(room_type_id=3, total_rooms=2)

    assert inventory.deallocate(99) is None
    assert inventory.events == []


def test_available_dates_in_month_skips_full_and_past_days():
    inventory = RoomTypeInventory(room_type_id=1, total_rooms=1)
    inventory.allocate(1, DateRange(date(2025, 6, 10), date(2025, 6, 12)))

    days = inventory.available_dates_in_month(2025, 6, not_before=date(2025, 6, 5))

    assert days[0] == date(2025, 6, 5)
    assert date(2025, 6, 10) not in days
    assert date(2025, 6, 11) not in days
    assert date(2025, 6, 12) in days
    assert days[-1] == date(2025, 6, 30)


def test_capacity_invariant_holds_for_random_requests():
    rng = random.Random(20250601)
    inventory = RoomTypeInventory(room_type_id=1, total_rooms=3)

    for booking_id in range(1, 400):
        dates = stay(rng.randint(0, 40), rng.randint(1, 6))
        rooms = rng.randint(1, 3)
        if inventory.can_allocate(dates, rooms):
            inventory.allocate(booking_id, dates, rooms)
        else:
            with pytest.raises(RoomsUnavailable):
                inventory.allocate(booking_id, dates, rooms)
        if rng.random() < 0.1 and inventory.reservations:
            inventory.deallocate(rng.choice(inventory.reservations).booking_id)

    for offset in range(50):
        assert inventory.occupancy_on(BASE + timedelta(days=offset)) <= 3
