import logging
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from hotel_booking.models.booking import Booking
from hotel_booking.models.cancellation import BookingCancellation
from hotel_booking.models.status import BookingStatus, PaymentStatus
from hotel_booking.repositories.booking_repository import BookingRepository
from hotel_booking.schemas.booking import CancellationQuote

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

FREE_CANCELLATION_DAYS = 30
MEDIUM_FEE_DAYS = 7
HIGH_FEE_DAYS = 1

# (minimum days before check-in, share of the total charged); first match wins
FEE_TIERS = (
    (FREE_CANCELLATION_DAYS, Decimal("0.00")),
    (MEDIUM_FEE_DAYS, Decimal("0.20")),
    (HIGH_FEE_DAYS, Decimal("0.50")),
)
FULL_FEE = Decimal("1.00")


def days_until_check_in(check_in: date, today: date | None = None) -> int:
    """Calendar days from today to check-in; zero or negative on/after the day."""
    return (check_in - (today or date.today())).days


def fee_percentage(days: int) -> Decimal:
    for min_days, pct in FEE_TIERS:
        if days >= min_days:
            return pct
    return FULL_FEE


def calculate_fee(booking: Booking, total_price: Decimal | None, today: date | None = None) -> Decimal:
    if total_price is None:
        return Decimal("0.00")
    pct = fee_percentage(days_until_check_in(booking.check_in_date, today))
    return (Decimal(total_price) * pct).quantize(CENT, rounding=ROUND_HALF_UP)


def quote_cancellation(booking: Booking, today: date | None = None) -> CancellationQuote:
    total = Decimal(booking.total_price or 0).quantize(CENT, rounding=ROUND_HALF_UP)
    fee = calculate_fee(booking, total, today)
    return CancellationQuote(
        booking_id=booking.id,
        days_before_check_in=days_until_check_in(booking.check_in_date, today),
        total_price=total,
        fee=fee,
        refund=total - fee,
    )


def build_cancellation(
    booking: Booking,
    reason: str,
    handled_by: str | None,
    fee: Decimal,
    refunded_amount: Decimal,
    cancelled_at: datetime | None = None,
) -> BookingCancellation:
    return BookingCancellation(
        booking_id=booking.id,
        cancelled_at=cancelled_at or datetime.now(timezone.utc),
        reason=reason or "",
        cancellation_fee=fee,
        refunded_amount=refunded_amount,
        handled_by_id=handled_by,
    )


def process_cancellation(
    repo: BookingRepository,
    booking: Booking,
    cancellation: BookingCancellation,
    refunded_amount: Decimal,
) -> BookingCancellation:
    """Cancel the booking and reconcile its payments and invoice.

    Only flushes. The caller's unit of work commits booking, cancellation,
    payments and invoice together or not at all.
    """
    refunded = Decimal(refunded_amount or 0)

    booking.status = BookingStatus.CANCELLED
    repo.save_booking(booking)

    cancellation.booking_id = booking.id
    repo.save_cancellation(cancellation)

    for payment in repo.find_payments_by_booking_id(booking.id):
        if payment.status != PaymentStatus.PAID:
            continue
        if refunded < Decimal(payment.amount):
            payment.status = PaymentStatus.PARTIAL
            payment.refunded_amount = refunded
        else:
            payment.status = PaymentStatus.REFUNDED
            payment.refunded_amount = payment.amount
        repo.save_payment(payment)

    invoice = repo.find_invoice_by_booking_id(booking.id)
    if invoice:
        invoice.invoice_status = PaymentStatus.PARTIAL if refunded < Decimal(invoice.amount) else PaymentStatus.REFUNDED
        repo.save_invoice(invoice)

    logger.info(
        "Booking %s cancelled: fee=%s refunded=%s",
        booking.booking_number, cancellation.cancellation_fee, refunded,
    )
    return cancellation
