"""Guest notifications.

Delivery (email, templates) lives outside this package. The lifecycle service
only sees the BookingNotifier protocol and calls it through deliver_best_effort,
so a failing notifier can never undo a committed booking change.
"""

import logging
from datetime import datetime
from typing import Callable, Protocol

from hotel_booking.core.errors import NotificationFailure
from hotel_booking.models.booking import Booking
from hotel_booking.models.cancellation import BookingCancellation

logger = logging.getLogger(__name__)


class BookingNotifier(Protocol):
    def send_booking_confirmation(self, booking: Booking) -> None: ...

    def send_booking_modification(self, booking: Booking, modified_at: datetime) -> None: ...

    def send_booking_cancellation(self, booking: Booking, cancellation: BookingCancellation) -> None: ...


class LoggingNotifier:
    """Default notifier: records what would have been sent."""

    def send_booking_confirmation(self, booking: Booking) -> None:
        logger.info("Confirmation for booking %s (guest %s)", booking.booking_number, booking.guest_id)

    def send_booking_modification(self, booking: Booking, modified_at: datetime) -> None:
        logger.info("Modification notice for booking %s (batch %s)", booking.booking_number, modified_at.isoformat())

    def send_booking_cancellation(self, booking: Booking, cancellation: BookingCancellation) -> None:
        logger.info(
            "Cancellation notice for booking %s: fee=%s refund=%s",
            booking.booking_number, cancellation.cancellation_fee, cancellation.refunded_amount,
        )


def deliver_best_effort(kind: str, send: Callable[..., object], *args) -> bool:
    """Run one notifier call; any failure is logged and reported as False."""
    try:
        send(*args)
        return True
    except NotificationFailure as e:
        logger.warning("Notification %s not delivered: %s", kind, e)
        return False
    except Exception:
        logger.exception("Notification %s failed; booking change is kept", kind)
        return False
