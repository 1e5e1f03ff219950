from decimal import Decimal

from sqlalchemy import String, Integer, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from hotel_booking.db.session import Base

class BookingExtra(Base):
    __tablename__ = "booking_extras"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), index=True)  # compared by name in the modification audit
    description: Mapped[str] = mapped_column(String(500), default="")
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    per_person: Mapped[bool] = mapped_column(Boolean, default=False)


class BookingExtraSelection(Base):
    """Extras chosen for a booking; the composite key keeps the set unique."""

    __tablename__ = "booking_extra_selections"

    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True)
    extra_id: Mapped[int] = mapped_column(ForeignKey("booking_extras.id"), primary_key=True)
