from datetime import datetime

from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from hotel_booking.db.session import Base

class BookingModification(Base):
    """One changed field of one edit. Rows of the same edit share modified_at."""

    __tablename__ = "booking_modifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id"), index=True)
    modified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    field_changed: Mapped[str] = mapped_column(String(64))  # checkInDate, checkOutDate, amount, totalPrice, extras
    old_value: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    new_value: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    handled_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
