"""Persistence contract of the booking lifecycle engine.

Every method works on the caller's ``Session`` and only flushes; committing is
the unit of work's job so a whole lifecycle operation stays one transaction.
"""

import logging
from datetime import date
from typing import Iterable

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hotel_booking.core.errors import ConcurrencyConflict
from hotel_booking.models.booking import Booking
from hotel_booking.models.booking_extra import BookingExtra, BookingExtraSelection
from hotel_booking.models.booking_modification import BookingModification
from hotel_booking.models.cancellation import BookingCancellation
from hotel_booking.models.invoice import Invoice
from hotel_booking.models.payment import Payment
from hotel_booking.models.room import Room
from hotel_booking.models.room_category import RoomCategory
from hotel_booking.models.status import BookingStatus

logger = logging.getLogger(__name__)


class BookingRepository:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------
    # CATEGORIES / ROOMS / EXTRAS
    # -------------------------
    def get_category(self, category_id: int) -> RoomCategory | None:
        return self.db.get(RoomCategory, category_id)

    def find_category_by_name(self, name: str) -> RoomCategory | None:
        return self.db.execute(select(RoomCategory).where(RoomCategory.name == name)).scalar_one_or_none()

    def list_categories(self) -> list[RoomCategory]:
        return list(self.db.execute(select(RoomCategory).order_by(RoomCategory.id)).scalars())

    def find_active_rooms_by_category(self, category_id: int, for_update: bool = False) -> list[Room]:
        """Active rooms of a category in ascending id order.

        With ``for_update`` the rows stay locked until the transaction ends, which
        serializes concurrent room assignment inside one category.
        """
        stmt = (
            select(Room)
            .where(Room.category_id == category_id, Room.active.is_(True))
            .order_by(Room.id)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return list(self.db.execute(stmt).scalars())

    def find_extras(self, extra_ids: Iterable[int]) -> list[BookingExtra]:
        ids = sorted(set(extra_ids))
        if not ids:
            return []
        return list(self.db.execute(select(BookingExtra).where(BookingExtra.id.in_(ids)).order_by(BookingExtra.id)).scalars())

    def find_extras_for_booking(self, booking_id: int) -> list[BookingExtra]:
        stmt = (
            select(BookingExtra)
            .join(BookingExtraSelection, BookingExtraSelection.extra_id == BookingExtra.id)
            .where(BookingExtraSelection.booking_id == booking_id)
            .order_by(BookingExtra.id)
        )
        return list(self.db.execute(stmt).scalars())

    def set_booking_extras(self, booking_id: int, extra_ids: Iterable[int]) -> None:
        self.db.execute(delete(BookingExtraSelection).where(BookingExtraSelection.booking_id == booking_id))
        for extra_id in sorted(set(extra_ids)):
            self.db.add(BookingExtraSelection(booking_id=booking_id, extra_id=extra_id))
        self.db.flush()

    # -------------------------
    # BOOKINGS
    # -------------------------
    def exists_overlapping_booking(
        self,
        room_id: int,
        start: date,
        end: date,
        exclude_status: BookingStatus = BookingStatus.CANCELLED,
        exclude_booking_id: int | None = None,
    ) -> bool:
        # [start, end) against [check_in, check_out): same-day turnover is not a conflict
        cond = [
            Booking.room_id == room_id,
            Booking.status != exclude_status,
            Booking.check_in_date < end,
            Booking.check_out_date > start,
        ]
        if exclude_booking_id is not None:
            cond.append(Booking.id != exclude_booking_id)
        return bool(self.db.execute(select(exists().where(*cond))).scalar())

    def find_active_bookings_for_room(self, room_id: int) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.room_id == room_id, Booking.status != BookingStatus.CANCELLED)
            .order_by(Booking.check_in_date, Booking.id)
        )
        return list(self.db.execute(stmt).scalars())

    def save_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.warning("Booking %s rejected by the database: %s", booking.booking_number, e.orig)
            raise ConcurrencyConflict(
                f"booking {booking.booking_number} conflicts with a concurrent write; retry the availability check"
            ) from e
        return booking

    def find_booking_by_id(self, booking_id: int, for_update: bool = False) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def find_booking_by_number(self, booking_number: str) -> Booking | None:
        return self.db.execute(select(Booking).where(Booking.booking_number == booking_number)).scalar_one_or_none()

    def booking_number_exists(self, booking_number: str) -> bool:
        return bool(self.db.execute(select(exists().where(Booking.booking_number == booking_number))).scalar())

    # -------------------------
    # PAYMENTS / INVOICES
    # -------------------------
    def save_payment(self, payment: Payment) -> Payment:
        self.db.add(payment)
        self.db.flush()
        return payment

    def find_payments_by_booking_id(self, booking_id: int) -> list[Payment]:
        stmt = select(Payment).where(Payment.booking_id == booking_id).order_by(Payment.created_at, Payment.id)
        return list(self.db.execute(stmt).scalars())

    def save_invoice(self, invoice: Invoice) -> Invoice:
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def find_invoice_by_booking_id(self, booking_id: int) -> Invoice | None:
        return self.db.execute(select(Invoice).where(Invoice.booking_id == booking_id)).scalar_one_or_none()

    # -------------------------
    # AUDIT / CANCELLATIONS
    # -------------------------
    def save_modification(self, modification: BookingModification) -> BookingModification:
        self.db.add(modification)
        self.db.flush()
        return modification

    def find_modifications_by_booking_id(self, booking_id: int) -> list[BookingModification]:
        stmt = (
            select(BookingModification)
            .where(BookingModification.booking_id == booking_id)
            .order_by(BookingModification.modified_at.desc(), BookingModification.id.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def save_cancellation(self, cancellation: BookingCancellation) -> BookingCancellation:
        self.db.add(cancellation)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConcurrencyConflict(f"booking {cancellation.booking_id} was cancelled concurrently") from e
        return cancellation

    def find_cancellation_by_booking_id(self, booking_id: int) -> BookingCancellation | None:
        return self.db.execute(
            select(BookingCancellation).where(BookingCancellation.booking_id == booking_id)
        ).scalar_one_or_none()
