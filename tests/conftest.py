"""
Shared fixtures: an in-memory SQLite database per test, a small room catalog
and a lifecycle service with a fixed clock and a recording notifier.
"""
import os

# Settings require DATABASE_URL at import time; tests build their own engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import hotel_booking.models.registry  # noqa: F401
from hotel_booking import seed
from hotel_booking.core.errors import NotificationFailure
from hotel_booking.db.session import Base
from hotel_booking.db.unit_of_work import SqlAlchemyUnitOfWork
from hotel_booking.schemas.booking import BookingCreate
from hotel_booking.services.booking_service import BookingLifecycleService

TODAY = date(2026, 10, 17)


class RecordingNotifier:
    """Collects notifier calls; set ``fail_with`` to make every call raise."""

    def __init__(self):
        self.calls = []
        self.fail_with = None

    def _record(self, kind, *args):
        self.calls.append((kind, *args))
        if self.fail_with is not None:
            raise self.fail_with

    def send_booking_confirmation(self, booking):
        self._record("confirmation", booking)

    def send_booking_modification(self, booking, modified_at):
        self._record("modification", booking, modified_at)

    def send_booking_cancellation(self, booking, cancellation):
        self._record("cancellation", booking, cancellation)

    def kinds(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def catalog(session_factory):
    """Standard: 2 rooms, max 2 guests. Suite: 1 active + 1 inactive room. Empty: no rooms."""
    db = session_factory()
    try:
        standard = seed.ensure_category(db, "Standard", Decimal("50.00"), 2)
        suite = seed.ensure_category(db, "Suite", Decimal("140.00"), 4)
        empty = seed.ensure_category(db, "Empty", Decimal("70.00"), 2)
        r101 = seed.ensure_room(db, standard, "101")
        r102 = seed.ensure_room(db, standard, "102")
        r301 = seed.ensure_room(db, suite, "301")
        r302 = seed.ensure_room(db, suite, "302", active=False)
        breakfast = seed.ensure_extra(db, "Breakfast", Decimal("10.00"), True)
        parking = seed.ensure_extra(db, "Parking", Decimal("8.00"), False)
        db.commit()
        ns = SimpleNamespace(
            standard=standard.id, suite=suite.id, empty=empty.id,
            r101=r101.id, r102=r102.id, r301=r301.id, r302=r302.id,
            breakfast=breakfast.id, parking=parking.id,
        )
    finally:
        db.close()
    return ns


@pytest.fixture
def uow(session_factory):
    """Direct repository access for service-level tests; commits on exit."""
    return lambda: SqlAlchemyUnitOfWork(session_factory)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(session_factory, notifier):
    return BookingLifecycleService(session_factory, notifier=notifier, clock=lambda: TODAY, notifications_enabled=True)


@pytest.fixture
def make_request(catalog):
    def _make(offset_in=40, nights=2, category=None, amount=1, extra_ids=(), guest_id="guest-1"):
        check_in = TODAY.fromordinal(TODAY.toordinal() + offset_in)
        return BookingCreate(
            guest_id=guest_id,
            room_category_id=category or catalog.standard,
            check_in_date=check_in,
            check_out_date=check_in.fromordinal(check_in.toordinal() + nights),
            amount=amount,
            extra_ids=list(extra_ids),
        )
    return _make


@pytest.fixture
def failing_notifier(notifier):
    notifier.fail_with = NotificationFailure("smtp down")
    return notifier
