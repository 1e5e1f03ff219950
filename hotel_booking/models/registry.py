"""Import every model so Base.metadata is complete (Alembic, create_all in tests)."""

from hotel_booking.models.room_category import RoomCategory  # noqa: F401
from hotel_booking.models.room import Room  # noqa: F401
from hotel_booking.models.booking_extra import BookingExtra, BookingExtraSelection  # noqa: F401
from hotel_booking.models.booking import Booking  # noqa: F401
from hotel_booking.models.payment import Payment  # noqa: F401
from hotel_booking.models.invoice import Invoice  # noqa: F401
from hotel_booking.models.booking_modification import BookingModification  # noqa: F401
from hotel_booking.models.cancellation import BookingCancellation  # noqa: F401
from hotel_booking.models.audit_log import AuditLog  # noqa: F401
