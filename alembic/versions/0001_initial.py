"""initial booking lifecycle schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

BOOKING_STATUSES = ("PENDING", "CONFIRMED", "CHECKED_IN", "CANCELLED", "COMPLETED", "MODIFIED")
PAYMENT_STATUSES = ("PENDING", "PAID", "FAILED", "REFUNDED", "PARTIAL")
PAYMENT_METHODS = ("CARD", "CASH", "ONLINE", "INVOICE", "TRANSFER")


def upgrade() -> None:
    op.create_table(
        "room_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("max_occupancy", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("price_per_night >= 0", name="ck_room_categories_price_non_negative"),
    )
    op.create_index("ix_room_categories_name", "room_categories", ["name"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("room_categories.id"), nullable=False),
        sa.Column("room_number", sa.String(length=20), nullable=False, unique=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    op.create_index("ix_rooms_category_id", "rooms", ["category_id"])

    op.create_table(
        "booking_extras",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("per_person", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_booking_extras_name", "booking_extras", ["name"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_number", sa.String(length=64), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.Enum(*BOOKING_STATUSES, name="bookingstatus", native_enum=False, length=32), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("guest_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=True),
        sa.Column("room_category_id", sa.Integer(), sa.ForeignKey("room_categories.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("check_out_date > check_in_date", name="ck_bookings_date_order"),
    )
    op.create_index("ix_bookings_booking_number", "bookings", ["booking_number"], unique=True)
    op.create_index("ix_bookings_dates", "bookings", ["check_in_date", "check_out_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_guest_id", "bookings", ["guest_id"])
    op.create_index("ix_bookings_room_id", "bookings", ["room_id"])
    op.create_index("ix_bookings_room_category_id", "bookings", ["room_category_id"])

    op.create_table(
        "booking_extra_selections",
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("extra_id", sa.Integer(), sa.ForeignKey("booking_extras.id"), primary_key=True),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("method", sa.Enum(*PAYMENT_METHODS, name="paymentmethod", native_enum=False, length=20), nullable=False),
        sa.Column("status", sa.Enum(*PAYMENT_STATUSES, name="paymentstatus", native_enum=False, length=20), nullable=False),
        sa.Column("refunded_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("transaction_ref", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_number", sa.String(length=50), nullable=False, unique=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.Enum(*PAYMENT_METHODS, name="paymentmethod", native_enum=False, length=20), nullable=False),
        sa.Column("invoice_status", sa.Enum(*PAYMENT_STATUSES, name="paymentstatus", native_enum=False, length=20), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "booking_modifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("modified_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("field_changed", sa.String(length=64), nullable=False),
        sa.Column("old_value", sa.String(length=1000), nullable=True),
        sa.Column("new_value", sa.String(length=1000), nullable=True),
        sa.Column("handled_by_id", sa.String(length=36), nullable=True),
        sa.Column("reason", sa.String(length=500), nullable=True),
    )
    op.create_index("ix_booking_modifications_booking_id", "booking_modifications", ["booking_id"])
    op.create_index("ix_booking_modifications_modified_at", "booking_modifications", ["modified_at"])
    op.create_index("ix_booking_modifications_handled_by_id", "booking_modifications", ["handled_by_id"])

    op.create_table(
        "booking_cancellations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("cancellation_fee", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("refunded_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("handled_by_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_booking_cancellations_handled_by_id", "booking_cancellations", ["handled_by_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("booking_cancellations")
    op.drop_table("booking_modifications")
    op.drop_table("invoices")
    op.drop_table("payments")
    op.drop_table("booking_extra_selections")
    op.drop_table("bookings")
    op.drop_table("booking_extras")
    op.drop_table("rooms")
    op.drop_table("room_categories")
