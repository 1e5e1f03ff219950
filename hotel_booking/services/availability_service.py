import logging
from datetime import date

from hotel_booking.core.errors import NoAvailabilityError
from hotel_booking.models.room import Room
from hotel_booking.models.room_category import RoomCategory
from hotel_booking.repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All Types"


def is_room_free(repo: BookingRepository, room_id: int, start: date, end: date, exclude_booking_id: int | None = None) -> bool:
    return not repo.exists_overlapping_booking(room_id, start, end, exclude_booking_id=exclude_booking_id)


def is_room_available(
    repo: BookingRepository,
    category_id: int,
    start: date,
    end: date,
    exclude_booking_id: int | None = None,
) -> bool:
    """True when at least one active room of the category is free for [start, end).

    exclude_booking_id lets an edited booking ignore its own slot.
    """
    for room in repo.find_active_rooms_by_category(category_id):
        if is_room_free(repo, room.id, start, end, exclude_booking_id):
            return True
    return False


def assign_room(repo: BookingRepository, category_id: int, start: date, end: date, lock: bool = False) -> Room:
    """First free room of the category by ascending id.

    With lock=True the candidate rooms are locked for the rest of the transaction,
    so the caller must insert the booking in that same transaction.
    """
    rooms = repo.find_active_rooms_by_category(category_id, for_update=lock)
    for room in rooms:
        if is_room_free(repo, room.id, start, end):
            logger.debug("Assigned room %s (category %s) for %s..%s", room.room_number, category_id, start, end)
            return room
    if not rooms:
        raise NoAvailabilityError(f"category {category_id} has no active rooms")
    raise NoAvailabilityError(f"no room available in category {category_id} for {start.isoformat()}..{end.isoformat()}")


def available_categories(
    repo: BookingRepository,
    check_in: date | None,
    check_out: date | None,
    occupancy: int,
    category_name: str | None = None,
) -> list[RoomCategory]:
    """Categories that fit the party and still have a free room for the stay."""
    if check_in is None or check_out is None or check_out <= check_in:
        return []

    if category_name is None or category_name == ALL_CATEGORIES:
        candidates = repo.list_categories()
    else:
        category = repo.find_category_by_name(category_name)
        if not category:
            return []
        candidates = [category]

    out = []
    for category in candidates:
        if category.max_occupancy is None or occupancy > category.max_occupancy:
            continue
        if is_room_available(repo, category.id, check_in, check_out):
            out.append(category)
    return out
