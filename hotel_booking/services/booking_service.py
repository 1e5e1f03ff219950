"""Booking lifecycle: create, confirm, update, pay, cancel.

Each operation runs in one SqlAlchemyUnitOfWork. Validation happens before the
first write; notifications go out only after commit, through deliver_best_effort.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable

from hotel_booking.core.config import settings
from hotel_booking.core.errors import ConcurrencyConflict, NoAvailabilityError, NotFoundError, ValidationError
from hotel_booking.db.session import SessionLocal
from hotel_booking.db.unit_of_work import SqlAlchemyUnitOfWork
from hotel_booking.models.booking import Booking
from hotel_booking.models.booking_extra import BookingExtra
from hotel_booking.models.booking_modification import BookingModification
from hotel_booking.models.cancellation import BookingCancellation
from hotel_booking.models.payment import Payment
from hotel_booking.models.room_category import RoomCategory
from hotel_booking.models.status import BookingStatus, CONFIRMABLE_STATUSES, MUTABLE_STATUSES, PaymentMethod, PaymentStatus
from hotel_booking.repositories.booking_repository import BookingRepository
from hotel_booking.schemas.booking import BookingCreate, BookingSnapshot, BookingUpdate, CancellationQuote
from hotel_booking.services import availability_service, cancellation_service, modification_service, payment_service
from hotel_booking.services.audit_service import log_audit
from hotel_booking.services.notification_service import BookingNotifier, LoggingNotifier, deliver_best_effort
from hotel_booking.services.pricing_service import calculate_price, count_nights

logger = logging.getLogger(__name__)


def make_booking_number(today: date | None = None) -> str:
    return f"{(today or date.today()):%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


class BookingLifecycleService:
    def __init__(
        self,
        session_factory=SessionLocal,
        notifier: BookingNotifier | None = None,
        clock: Callable[[], date] = date.today,
        notifications_enabled: bool | None = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock
        self.notifications_enabled = settings.NOTIFICATIONS_ENABLED if notifications_enabled is None else notifications_enabled

    def _uow(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory)

    def _notify(self, kind: str, send, *args) -> bool:
        if not self.notifications_enabled:
            return False
        return deliver_best_effort(kind, send, *args)

    # -------------------------
    # QUERIES
    # -------------------------
    def get_booking(self, booking_id: int) -> Booking:
        with self._uow() as uow:
            return _load_booking(uow.bookings, booking_id)

    def find_by_booking_number(self, booking_number: str) -> Booking:
        with self._uow() as uow:
            booking = uow.bookings.find_booking_by_number(booking_number)
            if not booking:
                raise NotFoundError(f"booking {booking_number} not found")
            return booking

    def booking_extras(self, booking_id: int) -> list[BookingExtra]:
        with self._uow() as uow:
            return uow.bookings.find_extras_for_booking(booking_id)

    def payments(self, booking_id: int) -> list[Payment]:
        with self._uow() as uow:
            return uow.bookings.find_payments_by_booking_id(booking_id)

    def is_room_available(self, category_id: int, start: date, end: date, exclude_booking_id: int | None = None) -> bool:
        """Read-only check for form validation; an empty or inverted range is never available."""
        if start is None or end is None or end <= start:
            return False
        with self._uow() as uow:
            return availability_service.is_room_available(uow.bookings, category_id, start, end, exclude_booking_id)

    def available_categories(
        self, check_in: date, check_out: date, occupancy: int, category_name: str | None = None
    ) -> list[RoomCategory]:
        with self._uow() as uow:
            return availability_service.available_categories(uow.bookings, check_in, check_out, occupancy, category_name)

    def modification_history(self, booking_id: int) -> list[BookingModification]:
        with self._uow() as uow:
            _load_booking(uow.bookings, booking_id)
            return modification_service.find_modifications(uow.bookings, booking_id)

    def quote_cancellation(self, booking_id: int, today: date | None = None) -> CancellationQuote:
        with self._uow() as uow:
            booking = _load_booking(uow.bookings, booking_id)
            return cancellation_service.quote_cancellation(booking, today or self.clock())

    # -------------------------
    # CREATE / CONFIRM
    # -------------------------
    def create(self, request: BookingCreate) -> Booking:
        if request.amount < 1:
            raise ValidationError("a booking needs at least one guest")
        count_nights(request.check_in_date, request.check_out_date)

        with self._uow() as uow:
            repo = uow.bookings
            category = repo.get_category(request.room_category_id)
            if not category:
                raise NotFoundError(f"room category {request.room_category_id} not found")
            _check_occupancy(category, request.amount)
            extras = _load_extras(repo, request.extra_ids)

            booking_number = self._new_booking_number(repo)

            # Rooms of the category stay locked until commit, so no other create
            # can pick the same room between the overlap check and the insert.
            room = availability_service.assign_room(
                repo, category.id, request.check_in_date, request.check_out_date, lock=True
            )

            booking = Booking(
                booking_number=booking_number,
                check_in_date=request.check_in_date,
                check_out_date=request.check_out_date,
                amount=request.amount,
                status=BookingStatus.PENDING,
                guest_id=request.guest_id,
                room_id=room.id,
                room_category_id=category.id,
                total_price=calculate_price(
                    category.price_per_night, request.check_in_date, request.check_out_date, request.amount, extras
                ),
            )
            repo.save_booking(booking)
            repo.set_booking_extras(booking.id, [e.id for e in extras])
            log_audit(uow.session, request.guest_id, "booking.create", "booking", booking.id, {
                "bookingNumber": booking.booking_number,
                "roomId": room.id,
                "totalPrice": booking.total_price,
            })

        logger.info("Booking %s created in room %s", booking.booking_number, room.room_number)
        self._notify("confirmation", self.notifier.send_booking_confirmation, booking)
        return booking

    def confirm(self, booking_id: int, handled_by: str | None = None) -> Booking:
        with self._uow() as uow:
            booking = _load_booking(uow.bookings, booking_id, for_update=True)
            if booking.status not in CONFIRMABLE_STATUSES:
                raise ValidationError(f"only pending or modified bookings can be confirmed (status {booking.status.value})")
            booking.status = BookingStatus.CONFIRMED
            uow.bookings.save_booking(booking)
            log_audit(uow.session, handled_by, "booking.confirm", "booking", booking.id, {"bookingNumber": booking.booking_number})
        return booking

    def _new_booking_number(self, repo: BookingRepository) -> str:
        for _ in range(settings.BOOKING_NUMBER_ATTEMPTS):
            number = make_booking_number(self.clock())
            if not repo.booking_number_exists(number):
                return number
        raise ConcurrencyConflict("could not allocate a unique booking number")

    # -------------------------
    # UPDATE
    # -------------------------
    def update(self, booking_id: int, changes: BookingUpdate, handled_by: str | None, reason: str | None = None) -> Booking:
        with self._uow() as uow:
            repo = uow.bookings
            booking = _load_booking(repo, booking_id, for_update=True)
            _check_mutable(booking)

            current_extras = repo.find_extras_for_booking(booking.id)
            before = BookingSnapshot.of(booking, [e.name for e in current_extras])

            check_in = changes.check_in_date or booking.check_in_date
            check_out = changes.check_out_date or booking.check_out_date
            amount = changes.amount if changes.amount is not None else booking.amount
            count_nights(check_in, check_out)
            if amount is None or amount < 1:
                raise ValidationError("a booking needs at least one guest")

            category = repo.get_category(booking.room_category_id)
            if not category:
                raise NotFoundError(f"room category {booking.room_category_id} not found")
            _check_occupancy(category, amount)

            new_extras = _load_extras(repo, changes.extra_ids) if changes.extra_ids is not None else current_extras
            extras_changed = {e.id for e in new_extras} != {e.id for e in current_extras}
            dates_changed = (check_in, check_out) != (booking.check_in_date, booking.check_out_date)

            if dates_changed:
                self._ensure_room_for_new_dates(repo, booking, check_in, check_out)

            booking.check_in_date = check_in
            booking.check_out_date = check_out
            if dates_changed or extras_changed or amount != booking.amount:
                booking.amount = amount
                booking.total_price = calculate_price(category.price_per_night, check_in, check_out, amount, new_extras)
            repo.save_booking(booking)
            if extras_changed:
                repo.set_booking_extras(booking.id, [e.id for e in new_extras])

            after = BookingSnapshot.of(booking, [e.name for e in new_extras])
            modified_at = datetime.now(timezone.utc)
            rows = modification_service.record_changes(repo, booking.id, before, after, handled_by, reason, modified_at)

        if rows:
            self._notify("modification", self.notifier.send_booking_modification, booking, modified_at)
        return booking

    def _ensure_room_for_new_dates(self, repo: BookingRepository, booking: Booking, check_in: date, check_out: date) -> None:
        # Lock the category like create does, then re-check the booking's own room
        repo.find_active_rooms_by_category(booking.room_category_id, for_update=True)
        if booking.room_id is None:
            booking.room_id = availability_service.assign_room(repo, booking.room_category_id, check_in, check_out).id
            return
        if not availability_service.is_room_free(repo, booking.room_id, check_in, check_out, exclude_booking_id=booking.id):
            raise NoAvailabilityError(
                f"room {booking.room_id} is not free for {check_in.isoformat()}..{check_out.isoformat()}"
            )

    # -------------------------
    # PAYMENTS / CANCELLATION
    # -------------------------
    def record_payment(
        self,
        booking_id: int,
        amount: Decimal | None = None,
        method: PaymentMethod = PaymentMethod.CARD,
        status: PaymentStatus = PaymentStatus.PAID,
    ) -> Payment:
        with self._uow() as uow:
            booking = _load_booking(uow.bookings, booking_id, for_update=True)
            return payment_service.record_payment(uow.bookings, booking, amount, method, status, self.clock())

    def cancel(self, booking_id: int, reason: str, handled_by: str | None, today: date | None = None) -> BookingCancellation:
        with self._uow() as uow:
            repo = uow.bookings
            booking = _load_booking(repo, booking_id, for_update=True)
            _check_mutable(booking)

            total = Decimal(booking.total_price or 0)
            fee = cancellation_service.calculate_fee(booking, total, today or self.clock())
            refunded = total - fee
            cancellation = cancellation_service.build_cancellation(booking, reason, handled_by, fee, refunded)
            cancellation_service.process_cancellation(repo, booking, cancellation, refunded)
            log_audit(uow.session, handled_by, "booking.cancel", "booking", booking.id, {
                "bookingNumber": booking.booking_number,
                "fee": fee,
                "refund": refunded,
            })

        self._notify("cancellation", self.notifier.send_booking_cancellation, booking, cancellation)
        return cancellation


def _load_booking(repo: BookingRepository, booking_id: int, for_update: bool = False) -> Booking:
    booking = repo.find_booking_by_id(booking_id, for_update=for_update)
    if not booking:
        raise NotFoundError(f"booking {booking_id} not found")
    return booking


def _load_extras(repo: BookingRepository, extra_ids) -> list[BookingExtra]:
    wanted = set(extra_ids or ())
    extras = repo.find_extras(wanted)
    missing = wanted - {e.id for e in extras}
    if missing:
        raise NotFoundError(f"booking extras not found: {sorted(missing)}")
    return extras


def _check_occupancy(category: RoomCategory, amount: int) -> None:
    if category.max_occupancy is not None and amount > category.max_occupancy:
        raise ValidationError(f"{category.name} takes at most {category.max_occupancy} guests")


def _check_mutable(booking: Booking) -> None:
    if booking.status not in MUTABLE_STATUSES:
        raise ValidationError(f"booking {booking.booking_number} can no longer be changed (status {booking.status.value})")
