from sqlalchemy import String, Integer, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from hotel_booking.db.session import Base

class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("room_categories.id"), index=True)
    room_number: Mapped[str] = mapped_column(String(20), unique=True)
    # Inactive rooms (maintenance, retired) are never offered for assignment
    active: Mapped[bool] = mapped_column(Boolean, default=True)
