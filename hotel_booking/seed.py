import logging
from decimal import Decimal

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from hotel_booking.core.logging_config import configure_logging
from hotel_booking.db.session import SessionLocal
from hotel_booking.models.booking_extra import BookingExtra
from hotel_booking.models.room import Room
from hotel_booking.models.room_category import RoomCategory

logger = logging.getLogger(__name__)

# name, price per night, max occupancy, room numbers
CATEGORIES = [
    ("Single", Decimal("50.00"), 1, ["101", "102", "103"]),
    ("Double", Decimal("80.00"), 2, ["201", "202", "203", "204"]),
    ("Deluxe", Decimal("140.00"), 4, ["301", "302"]),
]

# name, unit price, per person
EXTRAS = [
    ("Breakfast", Decimal("10.00"), True),
    ("Parking", Decimal("8.00"), False),
    ("Spa", Decimal("25.00"), True),
]


def ensure_category(db: Session, name: str, price_per_night: Decimal, max_occupancy: int) -> RoomCategory:
    c = db.execute(select(RoomCategory).where(RoomCategory.name == name)).scalar_one_or_none()
    if c:
        return c
    c = RoomCategory(name=name, price_per_night=price_per_night, max_occupancy=max_occupancy)
    db.add(c)
    db.flush()
    return c


def ensure_room(db: Session, category: RoomCategory, room_number: str, active: bool = True) -> Room:
    r = db.execute(select(Room).where(Room.room_number == room_number)).scalar_one_or_none()
    if r:
        return r
    r = Room(category_id=category.id, room_number=room_number, active=active)
    db.add(r)
    db.flush()
    return r


def ensure_extra(db: Session, name: str, price: Decimal, per_person: bool) -> BookingExtra:
    e = db.execute(select(BookingExtra).where(BookingExtra.name == name)).scalar_one_or_none()
    if e:
        return e
    e = BookingExtra(name=name, price=price, per_person=per_person)
    db.add(e)
    db.flush()
    return e


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # Seeding must not crash before migrations have been applied.
        try:
            db.execute(text("SELECT 1 FROM room_categories LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("room_categories table not found yet; skipping seed (run alembic upgrade head)")
            return

        for name, price, max_occ, numbers in CATEGORIES:
            category = ensure_category(db, name, price, max_occ)
            for number in numbers:
                ensure_room(db, category, number)
        for name, price, per_person in EXTRAS:
            ensure_extra(db, name, price, per_person)
        db.commit()
        logger.info("Seeded %d categories and %d extras", len(CATEGORIES), len(EXTRAS))
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    run()
