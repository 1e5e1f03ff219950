"""no overlapping active bookings per room

Database backstop for room assignment: two non-cancelled bookings may not hold
the same room for intersecting [check_in, check_out) ranges. A violation
surfaces as IntegrityError, which the repository turns into ConcurrencyConflict.
PostgreSQL gets an exclusion constraint, SQLite a pair of guard triggers.

Revision ID: 0002_no_room_overlap
Revises: 0001_initial
Create Date: 2026-10-17
"""

from alembic import op

revision = "0002_no_room_overlap"
down_revision = "0001_initial"
branch_labels = None
depends_on = None

SQLITE_GUARD = """
CREATE TRIGGER no_room_overlap_{event}
BEFORE {event} ON bookings
WHEN NEW.room_id IS NOT NULL AND NEW.status <> 'CANCELLED' AND EXISTS (
    SELECT 1 FROM bookings b
    WHERE b.room_id = NEW.room_id
      AND b.id IS NOT NEW.id
      AND b.status <> 'CANCELLED'
      AND b.check_in_date < NEW.check_out_date
      AND b.check_out_date > NEW.check_in_date
)
BEGIN
    SELECT RAISE(ABORT, 'no_room_overlap');
END
"""


def upgrade() -> None:
    dialect = op.get_bind().dialect.name
    if dialect == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
            ADD CONSTRAINT no_room_overlap
            EXCLUDE USING gist (
                room_id WITH =,
                daterange(check_in_date, check_out_date, '[)') WITH &&
            )
            WHERE (room_id IS NOT NULL AND status <> 'CANCELLED')
            """
        )
    elif dialect == "sqlite":
        for event in ("INSERT", "UPDATE"):
            op.execute(SQLITE_GUARD.format(event=event))


def downgrade() -> None:
    dialect = op.get_bind().dialect.name
    if dialect == "postgresql":
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS no_room_overlap")
    elif dialect == "sqlite":
        for event in ("INSERT", "UPDATE"):
            op.execute(f"DROP TRIGGER IF EXISTS no_room_overlap_{event}")
