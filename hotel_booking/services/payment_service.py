import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from hotel_booking.core.config import settings
from hotel_booking.core.errors import ValidationError
from hotel_booking.models.booking import Booking
from hotel_booking.models.invoice import Invoice
from hotel_booking.models.payment import Payment
from hotel_booking.models.status import BookingStatus, CONFIRMABLE_STATUSES, PaymentMethod, PaymentStatus
from hotel_booking.repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def make_invoice_number(today: date | None = None) -> str:
    year = (today or date.today()).year
    return f"{settings.INVOICE_PREFIX}{year}-{uuid.uuid4().hex[:8].upper()}"


def create_invoice_for_booking(
    repo: BookingRepository,
    booking: Booking,
    method: PaymentMethod,
    status: PaymentStatus = PaymentStatus.PAID,
) -> Invoice:
    """One invoice per booking; an existing invoice is returned unchanged."""
    existing = repo.find_invoice_by_booking_id(booking.id)
    if existing:
        return existing
    if booking.total_price is None:
        raise ValidationError("booking has no total price to invoice")

    now = datetime.now(timezone.utc)
    invoice = Invoice(
        invoice_number=make_invoice_number(now.date()),
        booking_id=booking.id,
        amount=booking.total_price,
        payment_method=method,
        invoice_status=status,
        issued_at=now,
        paid_at=now if status == PaymentStatus.PAID else None,
    )
    return repo.save_invoice(invoice)


def record_payment(
    repo: BookingRepository,
    booking: Booking,
    amount: Decimal | None = None,
    method: PaymentMethod = PaymentMethod.CARD,
    status: PaymentStatus = PaymentStatus.PAID,
    today: date | None = None,
) -> Payment:
    """Record a payment; a PAID one confirms the booking and issues its invoice.

    An existing PENDING payment is settled instead of adding a second row.
    """
    if booking.status == BookingStatus.CANCELLED:
        raise ValidationError(f"booking {booking.booking_number} is cancelled")

    effective = amount if amount is not None else booking.total_price
    if effective is None:
        raise ValidationError("payment amount is required")
    effective = Decimal(effective).quantize(CENT, rounding=ROUND_HALF_UP)
    if effective < 0:
        raise ValidationError("payment amount must not be negative")

    payment = next((p for p in repo.find_payments_by_booking_id(booking.id) if p.status == PaymentStatus.PENDING), None)
    if payment is None:
        payment = Payment(booking_id=booking.id)
    payment.amount = effective
    payment.method = method
    payment.status = status
    if status == PaymentStatus.PAID:
        payment.paid_at = datetime.now(timezone.utc)
    repo.save_payment(payment)

    if status == PaymentStatus.PAID:
        if booking.status in CONFIRMABLE_STATUSES:
            booking.status = BookingStatus.CONFIRMED
        if booking.check_out_date < (today or date.today()):
            booking.status = BookingStatus.COMPLETED
        repo.save_booking(booking)
        create_invoice_for_booking(repo, booking, method)

    logger.info("Payment of %s (%s) recorded for booking %s", effective, status.value, booking.booking_number)
    return payment
