from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from hotel_booking.db.session import Base

class RoomCategory(Base):
    __tablename__ = "room_categories"
    __table_args__ = (CheckConstraint("price_per_night >= 0", name="ck_room_categories_price_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, index=True)  # e.g. Single, Double, Deluxe
    description: Mapped[str] = mapped_column(String(500), default="")
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    max_occupancy: Mapped[int] = mapped_column(Integer, default=1)
