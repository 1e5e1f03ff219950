"""Failure kinds raised by the booking lifecycle engine.

Everything except :class:`NotificationFailure` reaches the caller. Notification
failures are absorbed by ``deliver_best_effort`` and only logged.
"""


class BookingError(Exception):
    """Base class for booking lifecycle failures."""


class ValidationError(BookingError, ValueError):
    """Malformed input: bad date range, occupancy out of bounds, missing field."""


class NotFoundError(BookingError, LookupError):
    """A referenced booking, room, category or extra does not exist."""


class NoAvailabilityError(BookingError):
    """No room in the category is free for the requested range."""


class ConcurrencyConflict(BookingError):
    """A concurrent write broke the no-overlap rule at commit time.

    The caller should retry with a fresh availability check.
    """


class NotificationFailure(BookingError):
    """A guest notification could not be delivered."""
