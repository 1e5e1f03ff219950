"""
Unit of Work

One lifecycle operation = one Session = one transaction. Leaving the block
normally commits; any exception rolls everything back.

Usage:
    with SqlAlchemyUnitOfWork() as uow:
        booking = uow.bookings.find_booking_by_id(booking_id, for_update=True)
        ...
    # committed here
"""

import logging

from sqlalchemy.exc import IntegrityError

from hotel_booking.core.errors import ConcurrencyConflict
from hotel_booking.db.session import SessionLocal
from hotel_booking.repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self.session = None
        self.bookings = None

    def __enter__(self):
        # Entities are handed back to callers after commit, keep them loaded
        self.session = self.session_factory(expire_on_commit=False)
        self.bookings = BookingRepository(self.session)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                logger.debug("Rolling back unit of work after %s", exc_type.__name__)
                self.rollback()
        finally:
            self.session.close()
        return False

    def commit(self):
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConcurrencyConflict("transaction rejected by a database constraint") from e

    def rollback(self):
        self.session.rollback()
