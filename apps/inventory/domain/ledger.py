"""
Inventory Ledger

The per-night count of committed rooms for one room type, derived from
the bookings that occupy inventory (confirmed and checked-in). This is the
aggregate that every commit path goes through to prevent overbooking.

Strategy:
1. Domain check: can_allocate() compares free rooms against the request
   for every night of the stay.
2. Pessimistic locking: the room type row is loaded with SELECT FOR UPDATE,
   which serialises check-then-reserve per room type.
"""

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List

from shared.domain.base import Aggregate
from shared.domain.exceptions import RoomsUnavailable
from shared.domain.value_objects import DateRange


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """
    Half-open interval overlap: [a, b) and [c, d) overlap iff a < d and c < b

    A check-out on day X never conflicts with a check-in on day X.
    """
    return start_a < end_b and start_b < end_a


@dataclass
class Reservation:
    """Rooms held by one booking for a date range"""
    booking_id: int | None
    dates: DateRange
    rooms: int = 1

    def __post_init__(self):
        if self.rooms < 1:
            raise ValueError("Reservation must hold at least one room")


@dataclass(eq=False)
class RoomTypeInventory(Aggregate):
    """
    Inventory Aggregate Root for a single room type

    Key invariant: for every night d,
        sum(r.rooms for r in reservations if d in r.dates) <= total_rooms

    Usage:
        inventory = inventory_repo.get_for_room_type(room_type, dates, lock=True)

        if inventory.can_allocate(dates, rooms_count):
            inventory.allocate(booking_id, dates, rooms_count)
        else:
            raise RoomsUnavailable()
    """

    room_type_id: int
    total_rooms: int
    reservations: List[Reservation] = field(default_factory=list)

    def __post_init__(self):
        if self.id is None:
            self.id = self.room_type_id

    # ----- Queries -----

    def occupancy_on(self, night: date) -> int:
        """Rooms committed for a single night"""
        return sum(r.rooms for r in self.reservations if r.dates.contains(night))

    def peak_occupancy(self, dates: DateRange) -> int:
        """Highest per-night occupancy over the range"""
        overlapping = self.get_reservations_for_period(dates)
        if not overlapping:
            return 0
        return max(
            sum(r.rooms for r in overlapping if r.dates.contains(night))
            for night in dates.nights()
        )

    def free_rooms(self, dates: DateRange) -> int:
        """Rooms that can still be sold for every night of the range"""
        return max(0, self.total_rooms - self.peak_occupancy(dates))

    def can_allocate(self, dates: DateRange, rooms: int = 1) -> bool:
        """
        IsAvailable: true iff free rooms cover the request on every night

        Requests for more rooms than the room type has are never available.
        """
        if rooms < 1 or rooms > self.total_rooms:
            return False
        return self.free_rooms(dates) >= rooms

    def get_reservations_for_period(self, dates: DateRange) -> List[Reservation]:
        """All reservations sharing at least one night with the range"""
        return [
            r for r in self.reservations
            if ranges_overlap(r.dates.start_date, r.dates.end_date, dates.start_date, dates.end_date)
        ]

    def get_reservation(self, booking_id: int) -> Reservation | None:
        return next((r for r in self.reservations if r.booking_id == booking_id), None)

    def available_dates_in_month(
        self,
        year: int,
        month: int,
        rooms: int = 1,
        *,
        not_before: date | None = None,
    ) -> List[date]:
        """
        Dates whose single night [d, d+1) can take ``rooms`` more rooms

        This is an advisory calendar: a run of available single nights does
        not guarantee that a multi-night stay across them is bookable.
        """
        return [
            day for day in self._month_days(year, month, not_before)
            if self.can_allocate(DateRange.single_night(day), rooms)
        ]

    @staticmethod
    def _month_days(year: int, month: int, not_before: date | None) -> Iterable[date]:
        first = date(year, month, 1)
        for offset in range(monthrange(year, month)[1]):
            day = first + timedelta(days=offset)
            if not_before is not None and day < not_before:
                continue
            yield day

    # ----- Commands -----

    def allocate(self, booking_id: int | None, dates: DateRange, rooms: int = 1) -> Reservation:
        """
        Commit rooms to a booking

        Raises:
            RoomsUnavailable: if any night of the range lacks free rooms
        """
        if not self.can_allocate(dates, rooms):
            raise RoomsUnavailable(
                f"Only {self.free_rooms(dates)} of {self.total_rooms} rooms available "
                f"for {dates}; {rooms} requested.",
                room_type_id=self.room_type_id,
                check_in=dates.start_date.isoformat(),
                check_out=dates.end_date.isoformat(),
                rooms_requested=rooms,
            )

        reservation = Reservation(booking_id=booking_id, dates=dates, rooms=rooms)
        self.reservations.append(reservation)

        from apps.inventory.domain.events import InventoryAllocated

        self.add_event(InventoryAllocated(
            aggregate_id=self.id,
            room_type_id=self.room_type_id,
            booking_id=booking_id,
            dates=dates,
            rooms=rooms,
            remaining_rooms=self.free_rooms(dates),
        ))

        return reservation

    def assign_booking(self, reservation: Reservation, booking_id: int):
        """Attach the persisted booking id to a reservation made before insert"""
        reservation.booking_id = booking_id
        for event in self._events:
            if getattr(event, 'booking_id', 0) is None:
                event.booking_id = booking_id

    def deallocate(self, booking_id: int) -> Reservation | None:
        """
        Release the rooms held by a booking

        Releasing a booking that holds nothing is a no-op, which keeps
        cancellation idempotent.
        """
        reservation = self.get_reservation(booking_id)
        if reservation is None:
            return None

        self.reservations.remove(reservation)

        from apps.inventory.domain.events import InventoryReleased

        self.add_event(InventoryReleased(
            aggregate_id=self.id,
            room_type_id=self.room_type_id,
            booking_id=booking_id,
            dates=reservation.dates,
            rooms=reservation.rooms,
        ))
        return reservation

    def __str__(self):
        return f"RoomTypeInventory(room_type={self.room_type_id}, total_rooms={self.total_rooms})"
