from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import DDL, String, Integer, Date, DateTime, Numeric, Enum, ForeignKey, CheckConstraint, Index, event
from sqlalchemy.orm import Mapped, mapped_column
from hotel_booking.db.session import Base
from hotel_booking.models.status import BookingStatus

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_bookings_date_order"),
        Index("ix_bookings_dates", "check_in_date", "check_out_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)  # YYYYMMDD-XXXXXXXX

    check_in_date: Mapped[date] = mapped_column(Date)
    check_out_date: Mapped[date] = mapped_column(Date)  # exclusive: nights = check_out - check_in
    amount: Mapped[int] = mapped_column(Integer, default=1)  # number of guests

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, native_enum=False, length=32), default=BookingStatus.PENDING, index=True
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

    guest_id: Mapped[str] = mapped_column(String(36), index=True)
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id"), nullable=True, index=True)
    room_category_id: Mapped[int] = mapped_column(ForeignKey("room_categories.id"), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days


# Database backstop for room assignment: no two non-cancelled bookings hold the
# same room for intersecting [check_in, check_out) ranges. A violation surfaces
# as IntegrityError, which the repository turns into ConcurrencyConflict.
PG_NO_ROOM_OVERLAP = """
ALTER TABLE bookings
ADD CONSTRAINT no_room_overlap
EXCLUDE USING gist (
    room_id WITH =,
    daterange(check_in_date, check_out_date, '[)') WITH &&
)
WHERE (room_id IS NOT NULL AND status <> 'CANCELLED')
"""

_SQLITE_OVERLAP_GUARD = """
CREATE TRIGGER no_room_overlap_{event}
BEFORE {event} ON bookings
WHEN NEW.room_id IS NOT NULL AND NEW.status <> 'CANCELLED' AND EXISTS (
    SELECT 1 FROM bookings b
    WHERE b.room_id = NEW.room_id
      AND b.id IS NOT NEW.id
      AND b.status <> 'CANCELLED'
      AND b.check_in_date < NEW.check_out_date
      AND b.check_out_date > NEW.check_in_date
)
BEGIN
    SELECT RAISE(ABORT, 'no_room_overlap');
END
"""
SQLITE_NO_ROOM_OVERLAP = [_SQLITE_OVERLAP_GUARD.format(event=e) for e in ("INSERT", "UPDATE")]

event.listen(Booking.__table__, "after_create", DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"))
event.listen(Booking.__table__, "after_create", DDL(PG_NO_ROOM_OVERLAP).execute_if(dialect="postgresql"))
for _stmt in SQLITE_NO_ROOM_OVERLAP:
    event.listen(Booking.__table__, "after_create", DDL(_stmt).execute_if(dialect="sqlite"))
