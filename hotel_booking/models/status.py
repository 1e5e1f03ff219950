import enum


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    MODIFIED = "MODIFIED"


# Statuses in which a booking may still be edited or cancelled
MUTABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.MODIFIED})

# Statuses a booking may be confirmed from, by hand or by a PAID payment
CONFIRMABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.MODIFIED})


class PaymentStatus(str, enum.Enum):
    """Shared by payments and invoices."""

    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIAL = "PARTIAL"


class PaymentMethod(str, enum.Enum):
    CARD = "CARD"
    CASH = "CASH"
    ONLINE = "ONLINE"
    INVOICE = "INVOICE"
    TRANSFER = "TRANSFER"
