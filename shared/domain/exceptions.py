"""
Domain Exceptions

Single error taxonomy shared by every booking-engine module. Each error
carries a stable machine-readable ``code`` and the HTTP status the API
layer maps it to (see ``shared.infrastructure.exception_handler``).
"""


class BookingError(Exception):
    """Base class for all expected booking-engine errors"""

    code = 'booking_error'
    http_status = 400
    default_message = 'Booking request could not be processed.'

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'code': self.code, 'detail': self.message}


# ===== Validation (400) =====

class BookingValidationError(BookingError):
    code = 'validation_error'
    default_message = 'Invalid booking request.'


class InvalidDateRange(BookingValidationError):
    code = 'invalid_date_range'
    default_message = 'Check-out date must be after check-in date.'


class InvalidRoomsCount(BookingValidationError):
    code = 'invalid_rooms_count'
    default_message = 'Rooms count must be at least 1.'


class ExceedsCapacity(BookingValidationError):
    code = 'exceeds_capacity'
    default_message = 'Requested rooms exceed the total rooms of this room type.'


class GuestCountExceeded(BookingValidationError):
    code = 'guest_count_exceeded'
    default_message = 'Guest count is outside the limits of this room type.'


class InvalidStatusTransition(BookingValidationError):
    code = 'invalid_status_transition'
    default_message = 'This status change is not allowed.'


class TooEarlyForCheckIn(InvalidStatusTransition):
    code = 'too_early_for_check_in'
    default_message = 'Guests cannot check in before the check-in date.'


class CouponError(BookingValidationError):
    """Coupon rejected; ``message`` is the specific, user-facing reason"""

    code = 'coupon_error'
    default_message = 'Coupon cannot be applied.'


# ===== Authorization (403) =====

class ActionNotAllowed(BookingError):
    code = 'action_not_allowed'
    http_status = 403
    default_message = 'You are not allowed to perform this action.'


# ===== Not found (404) =====

class NotFound(BookingError):
    code = 'not_found'
    http_status = 404
    default_message = 'Resource not found.'


class RoomTypeNotFound(NotFound):
    code = 'room_type_not_found'
    default_message = 'Room type not found or inactive.'


class BookingNotFound(NotFound):
    code = 'booking_not_found'
    default_message = 'Booking not found.'


# ===== Conflicts (409) =====

class UnavailableError(BookingError):
    code = 'unavailable'
    http_status = 409
    default_message = 'Requested inventory is not available.'


class RoomsUnavailable(UnavailableError):
    code = 'rooms_unavailable'
    default_message = 'Not enough rooms available for the selected dates.'


class ConcurrencyConflict(BookingError):
    code = 'concurrency_conflict'
    http_status = 409
    default_message = 'The booking could not be completed because of concurrent updates. Please retry.'


# ===== Server (500) =====

class PersistenceError(BookingError):
    """Unexpected storage failure; the message shown to clients is opaque"""

    code = 'persistence_error'
    http_status = 500
    default_message = 'An internal error occurred. Please try again later.'

    def to_dict(self) -> dict:
        return {'code': self.code, 'detail': self.default_message}
