from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class BookingCreate(BaseModel):
    guest_id: str
    room_category_id: int
    check_in_date: date
    check_out_date: date
    amount: int = 1
    extra_ids: list[int] = Field(default_factory=list)


class BookingUpdate(BaseModel):
    """Partial update; None leaves the field untouched."""

    check_in_date: date | None = None
    check_out_date: date | None = None
    amount: int | None = None
    extra_ids: list[int] | None = None


class BookingSnapshot(BaseModel):
    """Immutable copy of the audited scalar values of a booking."""

    model_config = ConfigDict(frozen=True)

    check_in_date: date | None = None
    check_out_date: date | None = None
    amount: int | None = None
    total_price: Decimal | None = None
    extra_names: frozenset[str] = frozenset()

    @classmethod
    def of(cls, booking, extra_names) -> "BookingSnapshot":
        return cls(
            check_in_date=booking.check_in_date,
            check_out_date=booking.check_out_date,
            amount=booking.amount,
            total_price=booking.total_price,
            extra_names=frozenset(n for n in extra_names if n is not None),
        )


class FieldChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    old_value: str | None = None
    new_value: str | None = None


class CancellationQuote(BaseModel):
    booking_id: int
    days_before_check_in: int
    total_price: Decimal
    fee: Decimal
    refund: Decimal
