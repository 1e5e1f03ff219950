import logging
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from hotel_booking.models.booking_modification import BookingModification
from hotel_booking.repositories.booking_repository import BookingRepository
from hotel_booking.schemas.booking import BookingSnapshot, FieldChange

logger = logging.getLogger(__name__)

CHECK_IN = "checkInDate"
CHECK_OUT = "checkOutDate"
AMOUNT = "amount"
TOTAL_PRICE = "totalPrice"
EXTRAS = "extras"


def _fmt_date(v: date | None) -> str | None:
    return v.isoformat() if v is not None else None


def _fmt_int(v: int | None) -> str | None:
    return str(v) if v is not None else None


def _fmt_money(v: Decimal | None) -> str | None:
    if v is None:
        return None
    return str(Decimal(v).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _fmt_extras(names: Iterable[str]) -> str:
    return ", ".join(sorted(names))


def diff_snapshots(before: BookingSnapshot, after: BookingSnapshot) -> list[FieldChange]:
    """Field-by-field difference of two snapshots, in a fixed field order."""
    candidates = [
        (CHECK_IN, _fmt_date(before.check_in_date), _fmt_date(after.check_in_date)),
        (CHECK_OUT, _fmt_date(before.check_out_date), _fmt_date(after.check_out_date)),
        (AMOUNT, _fmt_int(before.amount), _fmt_int(after.amount)),
        # 100 and 100.00 are the same price
        (TOTAL_PRICE, _fmt_money(before.total_price), _fmt_money(after.total_price)),
    ]
    changes = [FieldChange(field=f, old_value=old, new_value=new) for f, old, new in candidates if old != new]

    # name equality, not identity; order never matters
    if before.extra_names != after.extra_names:
        changes.append(
            FieldChange(field=EXTRAS, old_value=_fmt_extras(before.extra_names), new_value=_fmt_extras(after.extra_names))
        )
    return changes


def record_changes(
    repo: BookingRepository,
    booking_id: int,
    before: BookingSnapshot,
    after: BookingSnapshot,
    handled_by: str | None,
    reason: str | None = None,
    modified_at: datetime | None = None,
) -> list[BookingModification]:
    """Persist one BookingModification per changed field; all share one timestamp."""
    changes = diff_snapshots(before, after)
    if not changes:
        return []

    ts = modified_at or datetime.now(timezone.utc)
    rows = []
    for change in changes:
        rows.append(repo.save_modification(BookingModification(
            booking_id=booking_id,
            modified_at=ts,
            field_changed=change.field,
            old_value=change.old_value,
            new_value=change.new_value,
            handled_by_id=handled_by,
            reason=reason,
        )))
    logger.info("Booking %s modified: %s", booking_id, ", ".join(c.field for c in changes))
    return rows


def record_changes_from_snapshot(
    repo: BookingRepository,
    booking_id: int,
    prev_check_in: date | None,
    prev_check_out: date | None,
    prev_amount: int | None,
    prev_total_price: Decimal | None,
    prev_extra_names: Iterable[str] | None,
    after: BookingSnapshot,
    handled_by: str | None,
    reason: str | None = None,
    modified_at: datetime | None = None,
) -> list[BookingModification]:
    """Same as record_changes, for callers that only kept the previous scalars."""
    before = BookingSnapshot(
        check_in_date=prev_check_in,
        check_out_date=prev_check_out,
        amount=prev_amount,
        total_price=prev_total_price,
        extra_names=frozenset(prev_extra_names or ()),
    )
    return record_changes(repo, booking_id, before, after, handled_by, reason, modified_at)


def find_modifications(repo: BookingRepository, booking_id: int) -> list[BookingModification]:
    return repo.find_modifications_by_booking_id(booking_id)
