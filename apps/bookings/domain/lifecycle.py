"""
Booking Lifecycle

Status enums, the central transition table and the actor model.

State transitions:
- PENDING -> CONFIRMED (capacity re-checked)
- PENDING -> CANCELLED
- CONFIRMED -> CHECKED_IN (host, on or after the check-in date)
- CONFIRMED -> CANCELLED (customer, host or admin)
- CONFIRMED -> NO_SHOW (admin or system, after the check-in grace period)
- CHECKED_IN -> CHECKED_OUT (host)
- CHECKED_IN -> CANCELLED (admin or system)

CHECKED_OUT, CANCELLED and NO_SHOW are terminal. Only CONFIRMED and CHECKED_IN
bookings occupy inventory; PENDING is a reserved state that new bookings
skip (they are created CONFIRMED).
"""

from dataclasses import dataclass
from enum import Enum

from shared.domain.exceptions import ActionNotAllowed, InvalidStatusTransition


class BookingStatus(Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CHECKED_IN = 'checked_in'
    CHECKED_OUT = 'checked_out'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'


class PaymentStatus(Enum):
    UNPAID = 'unpaid'
    PAID = 'paid'
    REFUNDED = 'refunded'
    PARTIAL_REFUND = 'partial_refund'


class ActorRole(Enum):
    CUSTOMER = 'customer'
    HOST = 'host'
    ADMIN = 'admin'
    SYSTEM = 'system'


TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

PRIVILEGED_ROLES = frozenset({ActorRole.ADMIN, ActorRole.SYSTEM})

# Transitions that exist in the table but only privileged actors may take.
RESTRICTED_TRANSITIONS: dict[tuple[BookingStatus, BookingStatus], frozenset[ActorRole]] = {
    (BookingStatus.CHECKED_IN, BookingStatus.CANCELLED): PRIVILEGED_ROLES,
    (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW): PRIVILEGED_ROLES,
}

OCCUPYING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN})
TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)
REFUND_PAYMENT_STATUSES = frozenset({PaymentStatus.REFUNDED, PaymentStatus.PARTIAL_REFUND})


@dataclass(frozen=True)
class Actor:
    """Who is performing a lifecycle operation"""
    user_id: int | None
    role: ActorRole

    @classmethod
    def customer(cls, user_id: int) -> 'Actor':
        return cls(user_id, ActorRole.CUSTOMER)

    @classmethod
    def host(cls, user_id: int) -> 'Actor':
        return cls(user_id, ActorRole.HOST)

    @classmethod
    def admin(cls, user_id: int | None) -> 'Actor':
        return cls(user_id, ActorRole.ADMIN)

    @classmethod
    def system(cls) -> 'Actor':
        return cls(None, ActorRole.SYSTEM)

    @property
    def is_admin(self) -> bool:
        return self.role in (ActorRole.ADMIN, ActorRole.SYSTEM)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: BookingStatus, target: BookingStatus, actor: Actor | None = None):
    """
    Raises:
        InvalidStatusTransition: target is not reachable from current
        ActionNotAllowed: the transition is restricted to other roles
    """
    if not can_transition(current, target):
        raise InvalidStatusTransition(
            f"Cannot change booking status from {current.value} to {target.value}.",
            current=current.value,
            target=target.value,
        )
    allowed_roles = RESTRICTED_TRANSITIONS.get((current, target))
    if allowed_roles is not None and (actor is None or actor.role not in allowed_roles):
        raise ActionNotAllowed(
            f"Only an administrator can change a booking from {current.value} to {target.value}."
        )
