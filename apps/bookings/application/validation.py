"""Request-shape checks shared by booking commands and availability queries."""

from __future__ import annotations

from datetime import date

from shared.domain.exceptions import (
    ExceedsCapacity,
    GuestCountExceeded,
    InvalidDateRange,
    InvalidRoomsCount,
)


def validate_stay_dates(check_in: date, check_out: date, today: date | None = None) -> None:
    if check_out <= check_in:
        raise InvalidDateRange(check_in=check_in.isoformat(), check_out=check_out.isoformat())
    if today is not None and check_in < today:
        raise InvalidDateRange("Check-in date cannot be in the past.", check_in=check_in.isoformat())


def validate_rooms_count(room_type, rooms_count: int) -> None:
    if rooms_count < 1:
        raise InvalidRoomsCount(rooms_count=rooms_count)
    if rooms_count > room_type.total_rooms:
        raise ExceedsCapacity(
            f"Requested {rooms_count} rooms but this room type only has {room_type.total_rooms}.",
            rooms_count=rooms_count,
            total_rooms=room_type.total_rooms,
        )


def validate_guests(room_type, adults: int, children: int) -> None:
    """Guest counts apply to the room type, not per room."""

    if adults < 0 or children < 0 or adults + children < 1:
        raise GuestCountExceeded("At least one guest is required.")
    if adults > room_type.max_adults:
        raise GuestCountExceeded(f"This room type allows at most {room_type.max_adults} adults.")
    if children > room_type.max_children:
        raise GuestCountExceeded(f"This room type allows at most {room_type.max_children} children.")
    if adults + children > room_type.max_guests:
        raise GuestCountExceeded(f"This room type allows at most {room_type.max_guests} guests.")
