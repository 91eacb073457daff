"""
Booking Domain Entities

Core business entity for the booking domain:
- Booking: aggregate representing a reservation of N identical rooms
- CancellationPolicy: customer self-service cancellation terms

Status values and the transition table live in
``apps.bookings.domain.lifecycle``; every status change below goes through
``ensure_transition`` so illegal transitions fail the same way everywhere.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from shared.domain.base import Aggregate
from shared.domain.exceptions import (
    ActionNotAllowed,
    BookingValidationError,
    InvalidDateRange,
    InvalidStatusTransition,
    TooEarlyForCheckIn,
)
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.lifecycle import (
    Actor,
    ActorRole,
    BookingStatus,
    OCCUPYING_STATUSES,
    PaymentStatus,
    REFUND_PAYMENT_STATUSES,
    ensure_transition,
)


@dataclass(frozen=True)
class CancellationPolicy:
    """
    Customer cancellation terms

    - no self-cancellation within ``cutoff_hours`` of check-in
    - a fee of ``late_fee_percent`` of the total when cancelling a confirmed
      booking ``late_window_days`` or fewer days before check-in
    """
    cutoff_hours: int = 24
    late_window_days: int = 7
    late_fee_percent: Decimal = Decimal('10')


@dataclass(eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - check_in < check_out (the stay is a half-open DateRange)
    - rooms_count >= 1
    - total_amount = max(0, room_price - coupon_discount_amount)
    - only CONFIRMED / CHECKED_IN bookings occupy inventory
    """

    booking_code: str
    customer_id: int
    property_id: int
    host_id: int
    room_type_id: int
    dates: DateRange
    rooms_count: int = 1
    adults: int = 1
    children: int = 0

    # Guest contact information
    guest_name: str = ''
    guest_email: str = ''
    guest_phone: str = ''
    special_requests: str = ''

    # Pricing
    currency: str = 'VND'
    room_price_subtotal: Decimal = Decimal('0')
    long_stay_discount_percent: Decimal = Decimal('0')
    long_stay_discount_amount: Decimal = Decimal('0')
    room_price: Decimal = Decimal('0')
    coupon_code: str = ''
    coupon_discount_amount: Decimal = Decimal('0')
    total_amount: Decimal = Decimal('0')

    # Status tracking
    status: BookingStatus = BookingStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.UNPAID

    # Timestamps
    booked_at: datetime | None = None
    confirmed_at: datetime | None = None
    checked_in_at: datetime | None = None
    checked_out_at: datetime | None = None
    cancelled_at: datetime | None = None

    # Cancellation details
    cancelled_by: int | None = None
    cancellation_source: str = ''
    cancellation_reason: str = ''
    refund_amount: Decimal | None = None
    cancellation_fee: Decimal = Decimal('0')
    admin_note: str = ''

    def __post_init__(self):
        if self.rooms_count < 1:
            raise BookingValidationError("Rooms count must be at least 1")

    # ----- Factory -----

    @classmethod
    def create(
        cls,
        *,
        booking_code: str,
        customer_id: int,
        property_id: int,
        host_id: int,
        room_type_id: int,
        quote,
        adults: int,
        children: int,
        now: datetime,
        coupon_code: str = '',
        coupon_discount: Decimal = Decimal('0'),
        guest_name: str = '',
        guest_email: str = '',
        guest_phone: str = '',
        special_requests: str = '',
    ) -> 'Booking':
        """
        New bookings start CONFIRMED: they occupy inventory from insert.

        Events: BookingCreated
        """
        booking = cls(
            booking_code=booking_code,
            customer_id=customer_id,
            property_id=property_id,
            host_id=host_id,
            room_type_id=room_type_id,
            dates=DateRange(quote.check_in, quote.check_out),
            rooms_count=quote.rooms_count,
            adults=adults,
            children=children,
            guest_name=guest_name,
            guest_email=guest_email,
            guest_phone=guest_phone,
            special_requests=special_requests,
            currency=quote.currency,
            room_price_subtotal=quote.subtotal,
            long_stay_discount_percent=quote.discount_percent,
            long_stay_discount_amount=quote.discount_amount,
            room_price=quote.room_price,
            status=BookingStatus.CONFIRMED,
            booked_at=now,
            confirmed_at=now,
        )
        booking.set_coupon(coupon_code, coupon_discount)

        from apps.bookings.domain.events import BookingCreated

        booking.add_event(BookingCreated(
            aggregate_id=booking.id,
            booking_id=booking.id,
            booking_code=booking.booking_code,
            property_id=booking.property_id,
            room_type_id=booking.room_type_id,
            customer_id=booking.customer_id,
            dates=booking.dates,
            rooms_count=booking.rooms_count,
            total_amount=booking.total_amount,
            status=booking.status.value,
        ))
        return booking

    def assign_id(self, booking_id: int):
        """Set the identity generated on insert and back-fill pending events"""
        self.id = booking_id
        for event in self._events:
            if event.aggregate_id is None:
                event.aggregate_id = booking_id
            if getattr(event, 'booking_id', 0) is None:
                event.booking_id = booking_id

    def assign_booking_code(self, booking_code: str):
        """Replace a booking code that turned out to be taken on insert"""
        self.booking_code = booking_code
        for event in self._events:
            if hasattr(event, 'booking_code'):
                event.booking_code = booking_code

    # ----- Queries -----

    @property
    def check_in(self) -> date:
        return self.dates.start_date

    @property
    def check_out(self) -> date:
        return self.dates.end_date

    @property
    def nights(self) -> int:
        return len(self.dates)

    @property
    def occupies_inventory(self) -> bool:
        return self.status in OCCUPYING_STATUSES

    @property
    def has_coupon(self) -> bool:
        return bool(self.coupon_code)

    def snapshot(self) -> dict:
        """Flat representation for the audit trail"""
        return {
            'booking_code': self.booking_code,
            'customer_id': self.customer_id,
            'room_type_id': self.room_type_id,
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat(),
            'rooms_count': self.rooms_count,
            'room_price': str(self.room_price),
            'coupon_code': self.coupon_code,
            'coupon_discount_amount': str(self.coupon_discount_amount),
            'total_amount': str(self.total_amount),
            'status': self.status.value,
            'payment_status': self.payment_status.value,
        }

    # ----- Coupon -----

    def set_coupon(self, code: str, discount: Decimal):
        """Record a coupon and recompute the total (never below zero)"""
        discount = Decimal(discount or 0)
        if discount < 0:
            raise BookingValidationError("Coupon discount cannot be negative")
        self.coupon_code = code or ''
        self.coupon_discount_amount = min(discount, self.room_price) if code else Decimal('0')
        self.total_amount = max(Decimal('0'), self.room_price - self.coupon_discount_amount)

    def clear_coupon(self):
        self.set_coupon('', Decimal('0'))

    def ensure_coupon_editable(self):
        if self.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise InvalidStatusTransition(
                f"Coupons can only be changed on pending or confirmed bookings (status: {self.status.value})."
            )

    # ----- Authorization -----

    def ensure_customer(self, actor: Actor):
        if actor.role != ActorRole.CUSTOMER or actor.user_id != self.customer_id:
            raise ActionNotAllowed("Only the customer who made the booking can do this.")

    def ensure_host_or_admin(self, actor: Actor):
        if actor.is_admin:
            return
        if actor.role != ActorRole.HOST or actor.user_id != self.host_id:
            raise ActionNotAllowed("Only the host of this property can do this.")

    def ensure_participant(self, actor: Actor):
        """The booking's own customer, the property host or an administrator"""
        if actor.role == ActorRole.CUSTOMER:
            self.ensure_customer(actor)
        else:
            self.ensure_host_or_admin(actor)

    # ----- Transitions -----

    def confirm(self, actor: Actor, today: date, now: datetime):
        """
        Confirm a pending booking (PENDING -> CONFIRMED)

        The customer who made the booking, the host or an administrator may
        confirm. A stay whose check-in date has passed cannot be confirmed.
        Capacity must be re-checked by the caller under the room type lock.
        Events: BookingConfirmed
        """
        self.ensure_participant(actor)
        ensure_transition(self.status, BookingStatus.CONFIRMED, actor)
        if self.check_in < today:
            raise InvalidDateRange(
                "Cannot confirm a booking whose check-in date has passed.",
                check_in=self.check_in.isoformat(),
            )

        from apps.bookings.domain.events import BookingConfirmed

        self.status = BookingStatus.CONFIRMED
        self.confirmed_at = now

        self.add_event(BookingConfirmed(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            customer_id=self.customer_id,
        ))

    def cancel(
        self,
        actor: Actor,
        reason: str,
        *,
        now: datetime,
        policy: CancellationPolicy = CancellationPolicy(),
        refund_amount: Decimal | None = None,
    ) -> bool:
        """
        Cancel the booking on behalf of ``actor``

        Cancelling an already cancelled booking changes nothing and
        returns False. Returns True when the status changed.

        Events: BookingCancelled
        """
        if self.status == BookingStatus.CANCELLED:
            return False

        reason = (reason or '').strip()
        fee = Decimal('0')

        if actor.role == ActorRole.CUSTOMER:
            self.ensure_customer(actor)
            fee = self._customer_cancellation_fee(now, policy)
            refund_amount = None
        elif actor.role == ActorRole.HOST:
            self.ensure_host_or_admin(actor)
            if not reason:
                raise BookingValidationError("A reason is required when the host cancels a booking.")
            if self.status == BookingStatus.CHECKED_IN:
                raise InvalidStatusTransition("The host cannot cancel a booking after check-in.")
            refund_amount = None
        else:
            if not reason:
                raise BookingValidationError("A reason is required for administrative cancellation.")
            refund_amount = self._validate_refund(refund_amount)

        ensure_transition(self.status, BookingStatus.CANCELLED, actor)

        from apps.bookings.domain.events import BookingCancelled

        old_status = self.status
        self.status = BookingStatus.CANCELLED
        self.cancelled_at = now
        self.cancelled_by = actor.user_id
        self.cancellation_source = actor.role.value
        self.cancellation_reason = reason
        self.cancellation_fee = fee
        self.refund_amount = refund_amount

        if refund_amount and self.payment_status == PaymentStatus.PAID:
            self.payment_status = (
                PaymentStatus.REFUNDED if refund_amount >= self.total_amount else PaymentStatus.PARTIAL_REFUND
            )

        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            customer_id=self.customer_id,
            cancelled_by=actor.role.value,
            reason=reason,
            old_status=old_status.value,
            refund_amount=refund_amount,
            cancellation_fee=fee,
        ))
        return True

    def _customer_cancellation_fee(self, now: datetime, policy: CancellationPolicy) -> Decimal:
        if self.status == BookingStatus.CHECKED_IN:
            raise InvalidStatusTransition("A booking cannot be cancelled after check-in.")
        if self.status == BookingStatus.CHECKED_OUT:
            raise InvalidStatusTransition("A completed booking cannot be cancelled.")
        if self.payment_status == PaymentStatus.PAID:
            raise ActionNotAllowed("Paid bookings can only be cancelled by an administrator.")
        if self.status != BookingStatus.CONFIRMED:
            return Decimal('0')

        check_in_at = datetime.combine(self.check_in, time.min, tzinfo=now.tzinfo)
        if now >= check_in_at - timedelta(hours=policy.cutoff_hours):
            raise InvalidStatusTransition(
                f"Bookings cannot be cancelled less than {policy.cutoff_hours} hours before check-in."
            )
        if (self.check_in - now.date()).days <= policy.late_window_days:
            fee = Money(self.total_amount, self.currency) * (Decimal(policy.late_fee_percent) / Decimal('100'))
            return fee.rounded().amount
        return Decimal('0')

    def _validate_refund(self, refund_amount: Decimal | None) -> Decimal | None:
        if refund_amount is None:
            return None
        refund_amount = Decimal(refund_amount)
        if refund_amount < 0 or refund_amount > self.total_amount:
            raise BookingValidationError(
                f"Refund amount must be between 0 and the booking total ({self.total_amount})."
            )
        return refund_amount

    def check_in_guest(self, actor: Actor, today: date, now: datetime) -> int:
        """
        Check in (CONFIRMED -> CHECKED_IN); host or admin only

        Returns how many days after the check-in date the guest arrived.
        Events: BookingCheckedIn
        """
        self.ensure_host_or_admin(actor)
        ensure_transition(self.status, BookingStatus.CHECKED_IN, actor)
        if today < self.check_in:
            raise TooEarlyForCheckIn(
                f"Check-in is only possible from {self.check_in.isoformat()}.",
                check_in=self.check_in.isoformat(),
            )

        from apps.bookings.domain.events import BookingCheckedIn

        late_by_days = (today - self.check_in).days
        self.status = BookingStatus.CHECKED_IN
        self.checked_in_at = now

        self.add_event(BookingCheckedIn(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            late_by_days=late_by_days,
        ))
        return late_by_days

    def check_out_guest(self, actor: Actor, today: date, now: datetime) -> int:
        """
        Check out (CHECKED_IN -> CHECKED_OUT); host or admin only

        Returns the signed number of days between the planned check-out and
        today (positive when the guest left early).
        Events: BookingCheckedOut
        """
        self.ensure_host_or_admin(actor)
        ensure_transition(self.status, BookingStatus.CHECKED_OUT, actor)

        from apps.bookings.domain.events import BookingCheckedOut

        early_by_days = (self.check_out - today).days
        self.status = BookingStatus.CHECKED_OUT
        self.checked_out_at = now

        self.add_event(BookingCheckedOut(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            customer_id=self.customer_id,
            early_by_days=early_by_days,
        ))
        return early_by_days

    def mark_no_show(self, actor: Actor, now: datetime, grace_hours: int = 0):
        """
        The guest never arrived (CONFIRMED -> NO_SHOW); admin or system only

        Only possible once ``grace_hours`` have passed since the start of the
        check-in date. The booking stops occupying inventory.
        Events: BookingMarkedNoShow
        """
        if not actor.is_admin:
            raise ActionNotAllowed("Only an administrator can mark a booking as a no-show.")
        ensure_transition(self.status, BookingStatus.NO_SHOW, actor)
        deadline = datetime.combine(self.check_in, time.min, tzinfo=now.tzinfo) + timedelta(hours=grace_hours)
        if now < deadline:
            raise InvalidStatusTransition(
                f"A booking can only be marked as a no-show after {deadline.isoformat()}.",
                check_in=self.check_in.isoformat(),
            )

        from apps.bookings.domain.events import BookingMarkedNoShow

        self.status = BookingStatus.NO_SHOW

        self.add_event(BookingMarkedNoShow(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            customer_id=self.customer_id,
            grace_hours=grace_hours,
        ))

    def override_status(self, actor: Actor, target: BookingStatus, note: str, now: datetime) -> bool:
        """
        Administrative status change that bypasses the transition table

        Side effects (timestamps, refund reset) still apply; inventory and
        coupon consequences are handled by the caller.
        Events: BookingStatusOverridden
        """
        if not actor.is_admin:
            raise ActionNotAllowed("Only an administrator can override a booking status.")
        if target == self.status:
            return False

        from apps.bookings.domain.events import BookingStatusOverridden

        old_status = self.status
        self.status = target
        self.admin_note = note or self.admin_note

        if target == BookingStatus.CONFIRMED:
            self.confirmed_at = self.confirmed_at or now
        elif target == BookingStatus.CHECKED_IN:
            self.checked_in_at = now
        elif target == BookingStatus.CHECKED_OUT:
            self.checked_out_at = now
        elif target == BookingStatus.CANCELLED:
            self.cancelled_at = now
            self.cancelled_by = actor.user_id
            self.cancellation_source = actor.role.value
            self.cancellation_reason = note or self.cancellation_reason

        if old_status == BookingStatus.CANCELLED:
            self.cancelled_at = None
            if self.payment_status in REFUND_PAYMENT_STATUSES:
                self.payment_status = PaymentStatus.UNPAID
                self.refund_amount = None

        self.add_event(BookingStatusOverridden(
            aggregate_id=self.id,
            booking_id=self.id,
            old_status=old_status.value,
            new_status=target.value,
            note=note,
        ))
        return True

    def set_payment_status(self, actor: Actor, target: PaymentStatus, refund_amount: Decimal | None = None) -> bool:
        """
        Administrative payment status update

        Refund statuses are only meaningful for cancelled bookings.
        Events: PaymentStatusChanged
        """
        if not actor.is_admin:
            raise ActionNotAllowed("Only an administrator can update the payment status.")
        if target in REFUND_PAYMENT_STATUSES and self.status != BookingStatus.CANCELLED:
            raise InvalidStatusTransition("Refund statuses can only be set on cancelled bookings.")
        if target == self.payment_status:
            return False

        from apps.bookings.domain.events import PaymentStatusChanged

        old_status = self.payment_status
        self.payment_status = target
        if target in REFUND_PAYMENT_STATUSES and refund_amount is not None:
            self.refund_amount = self._validate_refund(refund_amount)

        self.add_event(PaymentStatusChanged(
            aggregate_id=self.id,
            booking_id=self.id,
            old_status=old_status.value,
            new_status=target.value,
        ))
        return True

    def __str__(self):
        return f"Booking({self.booking_code}, {self.status.value})"
