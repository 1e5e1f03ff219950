from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from hotel_booking.core.errors import NotFoundError, ValidationError
from hotel_booking.models.booking import Booking
from hotel_booking.models.booking_extra import BookingExtra
from hotel_booking.repositories.booking_repository import BookingRepository

CENT = Decimal("0.01")


def count_nights(check_in: date | None, check_out: date | None) -> int:
    if check_in is None or check_out is None:
        raise ValidationError("check-in and check-out dates are required")
    nights = (check_out - check_in).days
    if nights < 1:
        raise ValidationError("check-out must be at least one night after check-in")
    return nights


def calculate_price(
    price_per_night: Decimal | None,
    check_in: date | None,
    check_out: date | None,
    occupancy: int | None,
    extras: Iterable[BookingExtra],
) -> Decimal:
    """nights * rate + extras (per-person extras times occupancy), half-up to cents.

    Pure: same inputs, same Decimal.
    """
    if price_per_night is None:
        raise ValidationError("room category has no nightly rate")
    nights = count_nights(check_in, check_out)
    persons = occupancy if occupancy and occupancy > 0 else 1

    total = Decimal(price_per_night) * nights
    for extra in extras:
        if extra is None or extra.price is None:
            continue
        price = Decimal(extra.price)
        total += price * persons if extra.per_person else price
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_booking_price(repo: BookingRepository, booking: Booking, extras: Iterable[BookingExtra] | None = None) -> Decimal:
    category = repo.get_category(booking.room_category_id)
    if not category:
        raise NotFoundError(f"room category {booking.room_category_id} not found")
    if extras is None:
        extras = repo.find_extras_for_booking(booking.id) if booking.id is not None else []
    return calculate_price(category.price_per_night, booking.check_in_date, booking.check_out_date, booking.amount, extras)
