import json
import re
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from hotel_booking.core.errors import ConcurrencyConflict, NoAvailabilityError, NotFoundError, ValidationError
from hotel_booking.models.audit_log import AuditLog
from hotel_booking.models.booking import Booking
from hotel_booking.models.booking_extra import BookingExtra
from hotel_booking.models.cancellation import BookingCancellation
from hotel_booking.models.status import BookingStatus, PaymentStatus
from hotel_booking.repositories.booking_repository import BookingRepository
from hotel_booking.schemas.booking import BookingUpdate
from hotel_booking.services import booking_service
from hotel_booking.services.booking_service import BookingLifecycleService
from hotel_booking.services.modification_service import AMOUNT, CHECK_OUT, EXTRAS, TOTAL_PRICE


def count(uow, model):
    with uow() as u:
        return u.session.execute(select(func.count()).select_from(model)).scalar()


# -------------------------
# create
# -------------------------
def test_create_assigns_room_prices_and_notifies(service, make_request, catalog, notifier, today):
    booking = service.create(make_request(nights=2, amount=2, extra_ids=[catalog.breakfast]))

    assert re.fullmatch(rf"{today:%Y%m%d}-[0-9A-F]{{8}}", booking.booking_number)
    assert booking.status == BookingStatus.PENDING
    assert booking.room_id == catalog.r101
    assert booking.total_price == Decimal("120.00")
    assert [e.name for e in service.booking_extras(booking.id)] == ["Breakfast"]
    assert notifier.kinds() == ["confirmation"]
    assert service.find_by_booking_number(booking.booking_number).id == booking.id


def test_created_booking_occupies_its_room(service, make_request, catalog):
    booking = service.create(make_request(category=catalog.suite))
    start, end = booking.check_in_date, booking.check_out_date

    assert not service.is_room_available(catalog.suite, start, end)
    assert service.is_room_available(catalog.suite, start, end, exclude_booking_id=booking.id)
    assert service.is_room_available(catalog.suite, end, end + timedelta(days=1))
    with pytest.raises(NoAvailabilityError):
        service.create(make_request(category=catalog.suite))


def test_invalid_range_is_never_available(service, catalog, today):
    assert not service.is_room_available(catalog.standard, today, today)
    assert not service.is_room_available(catalog.standard, today, today - timedelta(days=1))


def test_create_writes_audit_log(service, make_request, uow):
    booking = service.create(make_request(guest_id="guest-9"))
    with uow() as u:
        entry = u.session.execute(select(AuditLog).where(AuditLog.action == "booking.create")).scalar_one()
    assert entry.actor_id == "guest-9"
    assert entry.entity_id == str(booking.id)
    assert json.loads(entry.details_json)["totalPrice"] == "100.00"


@pytest.mark.parametrize("kwargs, error", [
    ({"nights": 0}, ValidationError),
    ({"nights": -2}, ValidationError),
    ({"amount": 0}, ValidationError),
    ({"amount": 3}, ValidationError),
    ({"category": 999}, NotFoundError),
    ({"extra_ids": [999]}, NotFoundError),
])
def test_invalid_create_writes_nothing(service, make_request, uow, notifier, kwargs, error):
    with pytest.raises(error):
        service.create(make_request(**kwargs))
    assert count(uow, Booking) == 0
    assert notifier.calls == []


def test_category_without_rooms_cannot_be_booked(service, make_request, catalog, uow):
    with pytest.raises(NoAvailabilityError):
        service.create(make_request(category=catalog.empty))
    assert count(uow, Booking) == 0


def test_notifier_failure_keeps_the_booking(service, make_request, notifier, uow):
    notifier.fail_with = RuntimeError("mail server unreachable")
    booking = service.create(make_request())
    assert notifier.kinds() == ["confirmation"]
    assert service.get_booking(booking.id).status == BookingStatus.PENDING
    assert count(uow, Booking) == 1


def test_notifications_can_be_switched_off(session_factory, notifier, make_request, today):
    quiet = BookingLifecycleService(session_factory, notifier=notifier, clock=lambda: today, notifications_enabled=False)
    quiet.create(make_request())
    assert notifier.calls == []


def test_exhausted_booking_numbers_raise_conflict(service, make_request, monkeypatch):
    monkeypatch.setattr(booking_service, "make_booking_number", lambda today=None: "20261017-DEADBEEF")
    service.create(make_request())
    with pytest.raises(ConcurrencyConflict):
        service.create(make_request(offset_in=80))


def test_duplicate_insert_surfaces_as_conflict(service, make_request, uow):
    first = service.create(make_request())
    with pytest.raises(ConcurrencyConflict):
        with uow() as u:
            clash = Booking(
                booking_number=first.booking_number,
                check_in_date=first.check_in_date,
                check_out_date=first.check_out_date,
                amount=1,
                guest_id="other",
                room_id=first.room_id,
                room_category_id=first.room_category_id,
            )
            u.bookings.save_booking(clash)
    assert count(uow, Booking) == 1


def test_constraint_violation_at_commit_rolls_back(service, make_request, uow):
    first = service.create(make_request())
    with pytest.raises(ConcurrencyConflict):
        with uow() as u:
            u.session.add(Booking(
                booking_number=first.booking_number,
                check_in_date=first.check_in_date,
                check_out_date=first.check_out_date,
                amount=1,
                guest_id="other",
                room_category_id=first.room_category_id,
            ))
    assert count(uow, Booking) == 1


# -------------------------
# confirm / payment
# -------------------------
def test_confirm_from_pending_only_once(service, make_request):
    booking = service.create(make_request())
    assert service.confirm(booking.id, "staff-1").status == BookingStatus.CONFIRMED
    with pytest.raises(ValidationError):
        service.confirm(booking.id, "staff-1")


def _mark_modified(uow, booking_id):
    with uow() as u:
        b = u.bookings.find_booking_by_id(booking_id)
        b.status = BookingStatus.MODIFIED
        u.bookings.save_booking(b)


def test_modified_booking_confirms_by_hand_and_by_payment(service, make_request, uow):
    by_hand = service.create(make_request(offset_in=40))
    by_payment = service.create(make_request(offset_in=50))
    _mark_modified(uow, by_hand.id)
    _mark_modified(uow, by_payment.id)

    assert service.confirm(by_hand.id, "staff-1").status == BookingStatus.CONFIRMED
    service.record_payment(by_payment.id)
    assert service.get_booking(by_payment.id).status == BookingStatus.CONFIRMED


def test_paid_payment_confirms_and_issues_invoice(service, make_request, uow):
    booking = service.create(make_request())
    payment = service.record_payment(booking.id)

    assert payment.status == PaymentStatus.PAID
    assert payment.amount == Decimal("100.00")
    assert service.get_booking(booking.id).status == BookingStatus.CONFIRMED
    with uow() as u:
        invoice = u.bookings.find_invoice_by_booking_id(booking.id)
    assert re.fullmatch(r"INV-\d{4}-[0-9A-F]{8}", invoice.invoice_number)
    assert invoice.amount == Decimal("100.00")
    assert invoice.invoice_status == PaymentStatus.PAID


def test_pending_payment_is_settled_in_place(service, make_request):
    booking = service.create(make_request())
    service.record_payment(booking.id, status=PaymentStatus.PENDING)
    assert service.get_booking(booking.id).status == BookingStatus.PENDING

    service.record_payment(booking.id)
    (payment,) = service.payments(booking.id)
    assert payment.status == PaymentStatus.PAID


def test_paying_a_finished_stay_completes_it(service, make_request):
    booking = service.create(make_request(offset_in=-5, nights=2))
    service.record_payment(booking.id)
    assert service.get_booking(booking.id).status == BookingStatus.COMPLETED


def test_negative_payment_is_rejected(service, make_request):
    booking = service.create(make_request())
    with pytest.raises(ValidationError):
        service.record_payment(booking.id, amount=Decimal("-1"))


# -------------------------
# update
# -------------------------
def test_longer_stay_is_repriced_and_audited(service, make_request, notifier):
    booking = service.create(make_request(nights=2))
    updated = service.update(
        booking.id, BookingUpdate(check_out_date=booking.check_out_date + timedelta(days=1)), "staff-2", "late flight"
    )

    assert updated.total_price == Decimal("150.00")
    assert updated.room_id == booking.room_id
    history = service.modification_history(booking.id)
    assert sorted(h.field_changed for h in history) == [CHECK_OUT, TOTAL_PRICE]
    assert {h.handled_by_id for h in history} == {"staff-2"}
    assert {h.reason for h in history} == {"late flight"}
    assert len({h.modified_at for h in history}) == 1
    assert notifier.kinds() == ["confirmation", "modification"]


def test_update_without_changes_is_silent(service, make_request, notifier):
    booking = service.create(make_request())
    service.update(booking.id, BookingUpdate(check_in_date=booking.check_in_date), "staff-2")
    assert service.modification_history(booking.id) == []
    assert notifier.kinds() == ["confirmation"]


def test_more_guests_change_amount_and_per_person_extras(service, make_request, catalog):
    booking = service.create(make_request(amount=1, extra_ids=[catalog.breakfast]))
    updated = service.update(booking.id, BookingUpdate(amount=2), None)
    assert updated.total_price == Decimal("120.00")
    assert {h.field_changed for h in service.modification_history(booking.id)} == {AMOUNT, TOTAL_PRICE}


def test_swapping_for_an_extra_with_the_same_name_is_not_audited(service, make_request, catalog, uow):
    booking = service.create(make_request(extra_ids=[catalog.breakfast]))
    with uow() as u:
        twin = BookingExtra(name="Breakfast", price=Decimal("10.00"), per_person=True)
        u.session.add(twin)
        u.session.flush()
        twin_id = twin.id

    service.update(booking.id, BookingUpdate(extra_ids=[twin_id]), None)
    assert [e.id for e in service.booking_extras(booking.id)] == [twin_id]
    assert service.modification_history(booking.id) == []


def test_changed_extras_are_audited_by_name(service, make_request, catalog):
    booking = service.create(make_request(extra_ids=[catalog.breakfast]))
    service.update(booking.id, BookingUpdate(extra_ids=[catalog.parking]), None)
    extras_row = next(h for h in service.modification_history(booking.id) if h.field_changed == EXTRAS)
    assert (extras_row.old_value, extras_row.new_value) == ("Breakfast", "Parking")


def test_moving_onto_an_occupied_room_is_refused(service, make_request, catalog):
    first = service.create(make_request(category=catalog.suite, offset_in=40, nights=2))
    second = service.create(make_request(category=catalog.suite, offset_in=42, nights=2))

    with pytest.raises(NoAvailabilityError):
        service.update(second.id, BookingUpdate(check_in_date=first.check_out_date - timedelta(days=1)), None)

    unchanged = service.get_booking(second.id)
    assert unchanged.check_in_date == second.check_in_date
    assert service.modification_history(second.id) == []


def test_update_rejects_invalid_values(service, make_request):
    booking = service.create(make_request())
    with pytest.raises(ValidationError):
        service.update(booking.id, BookingUpdate(check_out_date=booking.check_in_date), None)
    with pytest.raises(ValidationError):
        service.update(booking.id, BookingUpdate(amount=5), None)
    with pytest.raises(NotFoundError):
        service.update(booking.id + 100, BookingUpdate(amount=1), None)


# -------------------------
# cancel
# -------------------------
def test_cancel_charges_tier_fee_and_reconciles_payment(service, make_request, notifier, uow):
    booking = service.create(make_request(offset_in=10, nights=4))
    service.record_payment(booking.id)

    quote = service.quote_cancellation(booking.id)
    cancellation = service.cancel(booking.id, "change of plans", "staff-3")

    assert quote.fee == cancellation.cancellation_fee == Decimal("40.00")
    assert cancellation.refunded_amount == Decimal("160.00")
    assert service.get_booking(booking.id).status == BookingStatus.CANCELLED
    (payment,) = service.payments(booking.id)
    assert payment.status == PaymentStatus.PARTIAL
    assert payment.refunded_amount == Decimal("160.00")
    with uow() as u:
        assert u.bookings.find_invoice_by_booking_id(booking.id).invoice_status == PaymentStatus.PARTIAL
    assert notifier.kinds()[-1] == "cancellation"


def test_cancel_on_check_in_day_refunds_nothing(service, make_request):
    booking = service.create(make_request(offset_in=0, nights=2))
    service.record_payment(booking.id)
    cancellation = service.cancel(booking.id, "", None)

    assert cancellation.cancellation_fee == Decimal("100.00")
    assert cancellation.refunded_amount == Decimal("0.00")
    (payment,) = service.payments(booking.id)
    assert payment.status == PaymentStatus.PARTIAL
    assert payment.refunded_amount == Decimal("0.00")


def test_cancelled_booking_is_final_and_frees_the_room(service, make_request, catalog):
    booking = service.create(make_request(category=catalog.suite))
    service.cancel(booking.id, "", None)

    with pytest.raises(ValidationError):
        service.cancel(booking.id, "", None)
    with pytest.raises(ValidationError):
        service.update(booking.id, BookingUpdate(amount=2), None)
    with pytest.raises(ValidationError):
        service.record_payment(booking.id)
    assert service.is_room_available(catalog.suite, booking.check_in_date, booking.check_out_date)


def test_cancellation_survives_notifier_failure(service, make_request, failing_notifier):
    booking = service.create(make_request())
    service.cancel(booking.id, "", None)
    assert failing_notifier.kinds() == ["confirmation", "cancellation"]
    assert service.get_booking(booking.id).status == BookingStatus.CANCELLED


def test_unknown_booking_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_booking(12345)
    with pytest.raises(NotFoundError):
        service.find_by_booking_number("19990101-00000000")
    with pytest.raises(NotFoundError):
        service.cancel(12345, "", None)


def test_failed_cancellation_changes_nothing(service, make_request, notifier, uow, monkeypatch):
    booking = service.create(make_request(offset_in=10, nights=4))
    service.record_payment(booking.id)

    def invoice_write_fails(self, invoice):
        raise RuntimeError("invoice store unavailable")

    monkeypatch.setattr(BookingRepository, "save_invoice", invoice_write_fails)
    with pytest.raises(RuntimeError):
        service.cancel(booking.id, "change of plans", "staff-3")

    assert service.get_booking(booking.id).status == BookingStatus.CONFIRMED
    (payment,) = service.payments(booking.id)
    assert payment.status == PaymentStatus.PAID
    assert payment.refunded_amount is None
    with uow() as u:
        assert u.bookings.find_cancellation_by_booking_id(booking.id) is None
        assert u.bookings.find_invoice_by_booking_id(booking.id).invoice_status == PaymentStatus.PAID
    assert count(uow, BookingCancellation) == 0
    assert notifier.kinds() == ["confirmation"]
