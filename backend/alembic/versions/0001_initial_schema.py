"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the marketplace tables: users, venues, booking_requests.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("admin", "store", "user", name="userrole")
venue_status = sa.Enum("active", "hidden", name="venuestatus")
request_status = sa.Enum("pending", "approved", "rejected", "completed", "canceled", name="requeststatus")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone_number", sa.String(40), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("password_hash", sa.String(255), nullable=False, server_default=""),
        sa.Column("password_changed", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("notifications_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("email_notifications", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("push_notifications", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # --- venues ---
    op.create_table(
        "venues",
        sa.Column("venue_id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("location", sa.String(500), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("status", venue_status, nullable=False, server_default="active"),
        sa.Column("venue_type", sa.String(50), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("amenities", sa.JSON, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_venues_owner_id", "venues", ["owner_id"])

    # --- booking_requests ---
    op.create_table(
        "booking_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("venue_id", sa.String(36), nullable=False),
        sa.Column("requester_id", sa.String(36), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(40), nullable=True),
        sa.Column("party_size", sa.Integer, nullable=False),
        sa.Column("arrival_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price_offer", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", request_status, nullable=False, server_default="pending"),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("party_size >= 1", name="ck_booking_requests_party_size"),
        sa.CheckConstraint("price_offer >= 0", name="ck_booking_requests_price_offer"),
        sa.CheckConstraint("updated_at >= created_at", name="ck_booking_requests_updated_after_created"),
    )
    op.create_index("ix_booking_requests_venue_id", "booking_requests", ["venue_id"])
    op.create_index("ix_booking_requests_requester_id", "booking_requests", ["requester_id"])
    op.create_index("ix_booking_requests_status", "booking_requests", ["status"])


def downgrade() -> None:
    op.drop_table("booking_requests")
    op.drop_table("venues")
    op.drop_table("users")
    request_status.drop(op.get_bind(), checkfirst=True)
    venue_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
