from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, DateTime, Numeric, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from hotel_booking.db.session import Base
from hotel_booking.models.status import PaymentMethod, PaymentStatus

class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True)  # INV-YYYY-XXXXXXXX
    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id"), unique=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod, native_enum=False, length=20), default=PaymentMethod.CARD)
    invoice_status: Mapped[PaymentStatus] = mapped_column(Enum(PaymentStatus, native_enum=False, length=20), default=PaymentStatus.PENDING)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
