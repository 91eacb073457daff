"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Create a booking (validate, price, coupon, commit)
- ConfirmBookingCommand: Confirm a pending booking
- CancelBookingCommand: Cancel as customer or host
- AdminCancelBookingCommand: Cancel as administrator, with refund
- CheckInBookingCommand / CheckOutBookingCommand: Host stay transitions
- MarkNoShowCommand: Guest never arrived (system or admin)
- UpdateBookingStatusCommand: Administrative status override
- UpdatePaymentStatusCommand: Administrative payment status update
- ApplyCouponCommand / CancelCouponCommand: Coupon on an existing booking
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging

from django.conf import settings
from django.utils import timezone

from shared.application.retry import run_in_transaction_with_retry
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    ActionNotAllowed,
    BookingError,
    BookingNotFound,
    CouponError,
    RoomTypeNotFound,
)
from shared.domain.value_objects import DateRange
from apps.bookings.application.validation import (
    validate_guests,
    validate_rooms_count,
    validate_stay_dates,
)
from apps.bookings.domain.entities import Booking, CancellationPolicy
from apps.bookings.domain.lifecycle import (
    Actor,
    BookingStatus,
    OCCUPYING_STATUSES,
    PaymentStatus,
)
from apps.coupons import services as coupon_services
from apps.coupons.domain.rules import CouponContext
from apps.pricing.domain import calculator
from apps.pricing.holidays import get_holiday_calendar

logger = logging.getLogger(__name__)

BOOKINGS_TABLE = 'bookings'
COUPON_USAGES_TABLE = 'coupon_usages'

LATE_CHECK_IN_WARNING_DAYS = 3


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    customer_id: int
    property_id: int
    room_type_id: int
    check_in: date
    check_out: date
    rooms_count: int = 1
    adults: int = 1
    children: int = 0
    coupon_code: str = ''
    guest_name: str = ''
    guest_email: str = ''
    guest_phone: str = ''
    special_requests: str = ''


@dataclass
class ConfirmBookingCommand:
    booking_id: int
    actor: Actor


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking as its customer or host"""
    booking_id: int
    actor: Actor
    reason: str = ''


@dataclass
class AdminCancelBookingCommand:
    booking_id: int
    actor: Actor
    reason: str
    refund_amount: Decimal | None = None


@dataclass
class CheckInBookingCommand:
    booking_id: int
    actor: Actor


@dataclass
class CheckOutBookingCommand:
    booking_id: int
    actor: Actor


@dataclass
class MarkNoShowCommand:
    booking_id: int
    actor: Actor
    grace_hours: int = 0


@dataclass
class UpdateBookingStatusCommand:
    """Administrative override; bypasses the transition guards"""
    booking_id: int
    actor: Actor
    status: BookingStatus
    note: str = ''


@dataclass
class UpdatePaymentStatusCommand:
    booking_id: int
    actor: Actor
    payment_status: PaymentStatus
    refund_amount: Decimal | None = None


@dataclass
class ApplyCouponCommand:
    booking_id: int
    actor: Actor
    coupon_code: str


@dataclass
class CancelCouponCommand:
    booking_id: int
    actor: Actor


# ===== Helpers =====

def cancellation_policy_from_settings() -> CancellationPolicy:
    return CancellationPolicy(
        cutoff_hours=getattr(settings, 'BOOKING_CUSTOMER_CANCEL_CUTOFF_HOURS', 24),
        late_window_days=getattr(settings, 'BOOKING_LATE_CANCELLATION_DAYS', 7),
        late_fee_percent=Decimal(str(getattr(settings, 'BOOKING_LATE_CANCELLATION_FEE_PERCENT', 10))),
    )


def coupon_context_for(booking: Booking, property_obj) -> CouponContext:
    """Coupon context of an existing booking; the order total is the pre-coupon price"""
    return CouponContext(
        customer_id=booking.customer_id,
        property_id=booking.property_id,
        property_type_id=property_obj.property_type_id,
        location_id=property_obj.location_id,
        check_in=booking.check_in,
        nights=booking.nights,
        room_price=booking.room_price,
        total_amount=booking.room_price,
        currency=booking.currency,
    )


class BookingCommandHandler:
    """
    Shared plumbing: loading the booking under lock, retries and the
    inventory/coupon side effects of leaving or entering occupying states.
    """

    def __init__(self, booking_repo, inventory_repo, clock=timezone.now):
        self.booking_repo = booking_repo
        self.inventory_repo = inventory_repo
        self.clock = clock

    def handle(self, command):
        return run_in_transaction_with_retry(
            self._handle,
            command,
            context={'command': type(command).__name__, 'booking_id': getattr(command, 'booking_id', None)},
        )

    def _handle(self, command):
        raise NotImplementedError

    def _load_booking(self, booking_id: int) -> Booking:
        booking = self.booking_repo.get_by_id(booking_id, lock=True)
        if booking is None:
            raise BookingNotFound(booking_id=booking_id)
        return booking

    def _lock_inventory(self, booking: Booking, exclude_self: bool = False):
        room_type = self.inventory_repo.get_room_type(booking.room_type_id, lock=True)
        if room_type is None:
            raise RoomTypeNotFound(room_type_id=booking.room_type_id)
        inventory = self.inventory_repo.get_for_room_type(
            room_type,
            booking.dates,
            exclude_booking_id=booking.id if exclude_self else None,
        )
        return room_type, inventory

    def _reserve(self, uow, booking: Booking):
        """Re-check capacity under lock before a booking starts occupying"""
        _, inventory = self._lock_inventory(booking, exclude_self=True)
        inventory.allocate(booking.id, booking.dates, booking.rooms_count)
        uow.collect_events(inventory)

    def _release(self, uow, booking: Booking):
        """Rooms of a booking that stopped occupying become free again"""
        _, inventory = self._lock_inventory(booking)
        inventory.deallocate(booking.id)
        uow.collect_events(inventory)

    def _void_coupon(self, uow, booking: Booking, actor_id):
        usage, events = coupon_services.void_coupon_usage(booking.id)
        if usage is None:
            return
        uow.add_events(events)
        uow.record_delete(
            COUPON_USAGES_TABLE,
            usage.pk,
            {'coupon_id': usage.coupon_id, 'booking_id': booking.id, 'discount_amount': str(usage.discount_amount)},
            actor_id,
        )

    def _redeem_again(self, uow, booking: Booking, actor_id):
        """
        A booking coming back from CANCELLED lost its coupon usage. Redeem it
        again under the coupon lock; when the coupon no longer applies the
        booking goes back to the full price.
        """
        from apps.inventory.models import Property

        property_obj = Property.objects.get(pk=booking.property_id)
        code = booking.coupon_code
        try:
            usage, events = coupon_services.redeem_coupon(
                code,
                coupon_context_for(booking, property_obj),
                booking_id=booking.id,
                now=self.clock(),
            )
        except CouponError as e:
            logger.warning(f"Coupon {code} dropped from restored booking {booking.booking_code}: {e.message}")
            booking.clear_coupon()
            return

        uow.add_events(events)
        booking.set_coupon(usage.coupon.code, usage.discount_amount)
        uow.record_insert(
            COUPON_USAGES_TABLE,
            usage.pk,
            {'coupon': usage.coupon.code, 'booking_id': booking.id, 'discount_amount': str(usage.discount_amount)},
            actor_id,
        )

    def _save(self, uow, booking: Booking, old_values: dict, actor_id):
        uow.collect_events(booking)
        self.booking_repo.save(booking)
        uow.record_update(BOOKINGS_TABLE, booking.id, old_values, booking.snapshot(), actor_id)


# ===== Command Handlers =====

class CreateBookingHandler(BookingCommandHandler):
    """
    Handler for CreateBooking command

    Strategy:
    1. Validate the request (room type, dates, guests, rooms, host != customer)
    2. Price the stay with the Pricing Calculator
    3. Validate the coupon (if any) and compute the discount
    4. Start a transaction and lock the room type row (SELECT FOR UPDATE)
    5. Re-check availability in the Inventory Ledger
    6. Insert the booking (CONFIRMED), record the coupon usage and bump
       the coupon counter; all or nothing
    7. Commit, then publish events and write the audit trail

    The whole unit is retried on serialization failures.
    """

    def __init__(self, booking_repo, inventory_repo, clock=timezone.now, holiday_calendar_factory=get_holiday_calendar):
        super().__init__(booking_repo, inventory_repo, clock)
        self.holiday_calendar_factory = holiday_calendar_factory

    def handle(self, command: CreateBookingCommand) -> Booking:
        """
        Handle booking creation

        Returns: Created Booking aggregate

        Raises:
            BookingValidationError subclasses, RoomTypeNotFound, CouponError,
            RoomsUnavailable, ConcurrencyConflict
        """
        logger.info(
            f"Creating booking for room type {command.room_type_id}, "
            f"customer {command.customer_id}, dates {command.check_in} - {command.check_out}, "
            f"rooms {command.rooms_count}"
        )
        context = {
            'room_type_id': command.room_type_id,
            'check_in': command.check_in.isoformat(),
            'check_out': command.check_out.isoformat(),
            'rooms_count': command.rooms_count,
            'customer_id': command.customer_id,
        }
        try:
            booking = run_in_transaction_with_retry(self._handle, command, context=context)
        except BookingError as e:
            logger.warning(f"Booking rejected ({e.code}): {e.message} {context}")
            raise

        logger.info(f"Booking created successfully: {booking.booking_code} (ID: {booking.id})")
        return booking

    def _handle(self, command: CreateBookingCommand) -> Booking:
        now = self.clock()
        today = timezone.localdate(now)

        room_type = self.inventory_repo.get_room_type(command.room_type_id, property_id=command.property_id)
        if room_type is None:
            raise RoomTypeNotFound(room_type_id=command.room_type_id)
        property_obj = room_type.property

        validate_stay_dates(command.check_in, command.check_out, today)
        validate_rooms_count(room_type, command.rooms_count)
        validate_guests(room_type, command.adults, command.children)
        if property_obj.host_id == command.customer_id:
            raise ActionNotAllowed("Hosts cannot book their own property.")

        quote = calculator.quote(
            room_type.rates(),
            command.check_in,
            command.check_out,
            command.rooms_count,
            holiday_calendar=self.holiday_calendar_factory(),
            currency=getattr(settings, 'BOOKING_CURRENCY', 'VND'),
        )

        coupon_code = ''
        coupon_discount = Decimal('0')
        coupon_context = None
        if command.coupon_code:
            coupon_context = CouponContext(
                customer_id=command.customer_id,
                property_id=property_obj.pk,
                property_type_id=property_obj.property_type_id,
                location_id=property_obj.location_id,
                check_in=command.check_in,
                nights=quote.nights,
                room_price=quote.room_price,
                total_amount=quote.room_price,
                currency=quote.currency,
            )
            coupon, coupon_discount = coupon_services.require_valid_coupon(
                command.coupon_code, coupon_context, now=now
            )
            coupon_code = coupon.code

        dates = DateRange(command.check_in, command.check_out)

        with DjangoUnitOfWork() as uow:
            locked_room_type = self.inventory_repo.get_room_type(room_type.pk, lock=True)
            if locked_room_type is None:
                raise RoomTypeNotFound(room_type_id=room_type.pk)
            inventory = self.inventory_repo.get_for_room_type(locked_room_type, dates)

            reservation = inventory.allocate(None, dates, command.rooms_count)

            booking = Booking.create(
                booking_code=self.booking_repo.next_booking_code(),
                customer_id=command.customer_id,
                property_id=property_obj.pk,
                host_id=property_obj.host_id,
                room_type_id=room_type.pk,
                quote=quote,
                adults=command.adults,
                children=command.children,
                now=now,
                coupon_code=coupon_code,
                coupon_discount=coupon_discount,
                guest_name=command.guest_name,
                guest_email=command.guest_email,
                guest_phone=command.guest_phone,
                special_requests=command.special_requests,
            )
            self.booking_repo.save(booking)
            inventory.assign_booking(reservation, booking.id)

            if coupon_code:
                usage, events = coupon_services.redeem_coupon(
                    coupon_code, coupon_context, booking_id=booking.id, now=now
                )
                uow.add_events(events)
                if usage.discount_amount != booking.coupon_discount_amount:
                    booking.set_coupon(coupon_code, usage.discount_amount)
                    self.booking_repo.save(booking)
                uow.record_insert(
                    COUPON_USAGES_TABLE,
                    usage.pk,
                    {'coupon': coupon_code, 'booking_id': booking.id, 'discount_amount': str(usage.discount_amount)},
                    command.customer_id,
                )

            uow.collect_events(booking)
            uow.collect_events(inventory)
            uow.record_insert(BOOKINGS_TABLE, booking.id, booking.snapshot(), command.customer_id)

        return booking


class ConfirmBookingHandler(BookingCommandHandler):
    """Handler for confirming a pending booking (its customer, the host or an admin)"""

    def _handle(self, command: ConfirmBookingCommand) -> Booking:
        logger.info(f"Confirming booking {command.booking_id}")
        now = self.clock()

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            booking.ensure_participant(command.actor)
            old_values = booking.snapshot()

            if booking.status == BookingStatus.CONFIRMED:
                return booking

            booking.confirm(command.actor, timezone.localdate(now), now)
            self._reserve(uow, booking)
            self._save(uow, booking, old_values, command.actor.user_id)

        logger.info(f"Booking {booking.booking_code} confirmed successfully")
        return booking


class CancelBookingHandler(BookingCommandHandler):
    """
    Handler for cancelling a booking

    Cancelling releases the rooms and voids the coupon usage in the same
    transaction. Cancelling an already cancelled booking is a no-op.
    """

    def _handle(self, command) -> Booking:
        logger.info(
            f"Cancelling booking {command.booking_id} as {command.actor.role.value}, "
            f"reason: {command.reason!r}"
        )

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            old_values = booking.snapshot()
            was_occupying = booking.occupies_inventory

            changed = booking.cancel(
                command.actor,
                command.reason,
                now=timezone.localtime(self.clock()),
                policy=cancellation_policy_from_settings(),
                refund_amount=getattr(command, 'refund_amount', None),
            )
            if not changed:
                logger.info(f"Booking {booking.booking_code} is already cancelled")
                return booking

            if was_occupying:
                self._release(uow, booking)
            self._void_coupon(uow, booking, command.actor.user_id)
            self._save(uow, booking, old_values, command.actor.user_id)

        logger.info(
            f"Booking {booking.booking_code} cancelled by {command.actor.role.value} "
            f"(fee {booking.cancellation_fee}, refund {booking.refund_amount})"
        )
        return booking


class AdminCancelBookingHandler(CancelBookingHandler):
    """Administrator cancellation: always allowed before completion, reason required"""

    def _handle(self, command: AdminCancelBookingCommand) -> Booking:
        if not command.actor.is_admin:
            raise ActionNotAllowed("Only an administrator can use administrative cancellation.")
        return super()._handle(command)


class CheckInBookingHandler(BookingCommandHandler):
    """Handler for checking in guests"""

    def _handle(self, command: CheckInBookingCommand) -> Booking:
        logger.info(f"Checking in booking {command.booking_id}")
        now = self.clock()

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            old_values = booking.snapshot()
            late_by_days = booking.check_in_guest(command.actor, timezone.localdate(now), now)
            self._save(uow, booking, old_values, command.actor.user_id)

        if late_by_days > LATE_CHECK_IN_WARNING_DAYS:
            logger.warning(
                f"Booking {booking.booking_code} checked in {late_by_days} days after the check-in date"
            )
        logger.info(f"Booking {booking.booking_code} checked in successfully")
        return booking


class CheckOutBookingHandler(BookingCommandHandler):
    """Handler for checking out guests"""

    def _handle(self, command: CheckOutBookingCommand) -> Booking:
        logger.info(f"Checking out booking {command.booking_id}")
        now = self.clock()

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            old_values = booking.snapshot()
            early_by_days = booking.check_out_guest(command.actor, timezone.localdate(now), now)
            self._save(uow, booking, old_values, command.actor.user_id)

        if early_by_days > 0:
            logger.warning(f"Booking {booking.booking_code} checked out {early_by_days} day(s) early")
        elif early_by_days < 0:
            logger.warning(f"Booking {booking.booking_code} checked out {-early_by_days} day(s) late")
        logger.info(f"Booking {booking.booking_code} checked out successfully")
        return booking


class MarkNoShowHandler(BookingCommandHandler):
    """
    Handler for guests who never arrived

    The booking leaves the occupying states, so its rooms are released.
    The coupon usage stays: the booking was not cancelled.
    """

    def _handle(self, command: MarkNoShowCommand) -> Booking:
        logger.info(f"Marking booking {command.booking_id} as a no-show")

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            old_values = booking.snapshot()
            booking.mark_no_show(command.actor, timezone.localtime(self.clock()), command.grace_hours)
            self._release(uow, booking)
            self._save(uow, booking, old_values, command.actor.user_id)

        logger.info(f"Booking {booking.booking_code} marked as a no-show")
        return booking


class UpdateBookingStatusHandler(BookingCommandHandler):
    """
    Administrative status override

    Guards are bypassed, side effects are not: entering an occupying
    status re-checks capacity under lock, entering CANCELLED voids the
    coupon usage, and leaving CANCELLED clears refund payment statuses and
    redeems the booking's coupon again.
    """

    def _handle(self, command: UpdateBookingStatusCommand) -> Booking:
        logger.info(
            f"Admin {command.actor.user_id} setting booking {command.booking_id} "
            f"status to {command.status.value}"
        )

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            old_values = booking.snapshot()
            old_status = booking.status
            was_occupying = booking.occupies_inventory

            if not booking.override_status(command.actor, command.status, command.note, self.clock()):
                return booking

            will_occupy = command.status in OCCUPYING_STATUSES
            if will_occupy and not was_occupying:
                self._reserve(uow, booking)
            elif was_occupying and not will_occupy:
                self._release(uow, booking)

            if command.status == BookingStatus.CANCELLED:
                self._void_coupon(uow, booking, command.actor.user_id)
            elif old_status == BookingStatus.CANCELLED and booking.has_coupon:
                self._redeem_again(uow, booking, command.actor.user_id)

            self._save(uow, booking, old_values, command.actor.user_id)

        logger.info(f"Booking {booking.booking_code} status overridden to {booking.status.value}")
        return booking


class UpdatePaymentStatusHandler(BookingCommandHandler):
    def _handle(self, command: UpdatePaymentStatusCommand) -> Booking:
        logger.info(
            f"Setting payment status of booking {command.booking_id} to {command.payment_status.value}"
        )

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            old_values = booking.snapshot()
            if booking.set_payment_status(command.actor, command.payment_status, command.refund_amount):
                self._save(uow, booking, old_values, command.actor.user_id)

        return booking


class ApplyCouponHandler(BookingCommandHandler):
    """
    Apply a coupon to an existing booking

    Idempotent per booking: re-applying the same coupon changes nothing.
    """

    def _handle(self, command: ApplyCouponCommand) -> Booking:
        logger.info(f"Applying coupon {command.coupon_code!r} to booking {command.booking_id}")

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            booking.ensure_customer(command.actor)
            booking.ensure_coupon_editable()
            old_values = booking.snapshot()

            room_type = self.inventory_repo.get_room_type(booking.room_type_id)
            if room_type is None:
                raise RoomTypeNotFound(room_type_id=booking.room_type_id)

            usage, events = coupon_services.redeem_coupon(
                command.coupon_code,
                coupon_context_for(booking, room_type.property),
                booking_id=booking.id,
                now=self.clock(),
            )
            if not events:
                return booking

            uow.add_events(events)
            booking.set_coupon(usage.coupon.code, usage.discount_amount)
            uow.record_insert(
                COUPON_USAGES_TABLE,
                usage.pk,
                {'coupon': usage.coupon.code, 'booking_id': booking.id, 'discount_amount': str(usage.discount_amount)},
                command.actor.user_id,
            )
            self._save(uow, booking, old_values, command.actor.user_id)

        logger.info(
            f"Coupon {booking.coupon_code} applied to booking {booking.booking_code}, "
            f"discount {booking.coupon_discount_amount}"
        )
        return booking


class CancelCouponHandler(BookingCommandHandler):
    """Withdraw the coupon of a booking and restore the full price"""

    def _handle(self, command: CancelCouponCommand) -> Booking:
        logger.info(f"Removing coupon from booking {command.booking_id}")

        with DjangoUnitOfWork() as uow:
            booking = self._load_booking(command.booking_id)
            booking.ensure_customer(command.actor)
            booking.ensure_coupon_editable()
            if not booking.has_coupon:
                return booking

            old_values = booking.snapshot()
            self._void_coupon(uow, booking, command.actor.user_id)
            booking.clear_coupon()
            self._save(uow, booking, old_values, command.actor.user_id)

        return booking


def build_handlers(booking_repo=None, inventory_repo=None) -> dict:
    """Command type -> handler callable, wired with the Django repositories"""
    from apps.bookings.repositories import DjangoBookingRepository
    from apps.inventory.repositories import DjangoInventoryRepository

    booking_repo = booking_repo or DjangoBookingRepository()
    inventory_repo = inventory_repo or DjangoInventoryRepository()

    return {
        CreateBookingCommand: CreateBookingHandler(booking_repo, inventory_repo).handle,
        ConfirmBookingCommand: ConfirmBookingHandler(booking_repo, inventory_repo).handle,
        CancelBookingCommand: CancelBookingHandler(booking_repo, inventory_repo).handle,
        AdminCancelBookingCommand: AdminCancelBookingHandler(booking_repo, inventory_repo).handle,
        CheckInBookingCommand: CheckInBookingHandler(booking_repo, inventory_repo).handle,
        CheckOutBookingCommand: CheckOutBookingHandler(booking_repo, inventory_repo).handle,
        MarkNoShowCommand: MarkNoShowHandler(booking_repo, inventory_repo).handle,
        UpdateBookingStatusCommand: UpdateBookingStatusHandler(booking_repo, inventory_repo).handle,
        UpdatePaymentStatusCommand: UpdatePaymentStatusHandler(booking_repo, inventory_repo).handle,
        ApplyCouponCommand: ApplyCouponHandler(booking_repo, inventory_repo).handle,
        CancelCouponCommand: CancelCouponHandler(booking_repo, inventory_repo).handle,
    }
