"""initial schema: facilities, courts, rules, blocked ranges, policies, reservations

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "facilities",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("owner_id", sa.Integer, nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("is_active", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("opening_hours", sa.Text, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.Text, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "courts",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("facility_id", sa.Integer, sa.ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("price_per_hour", sa.Float, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.Text, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "availability_rules",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("court_id", sa.Integer, sa.ForeignKey("courts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer, nullable=False),
        sa.Column("start_time", sa.Integer, nullable=False),
        sa.Column("end_time", sa.Integer, nullable=False),
        sa.Column("is_active", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("price_per_hour_override", sa.Float),
        sa.Column("created_at", sa.Text, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.Text, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("court_id", "day_of_week", "start_time", "end_time"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6"),
        sa.CheckConstraint("start_time >= 0 AND end_time <= 1439 AND start_time < end_time"),
    )
    op.create_index(
        "ix_availability_rules_court_day", "availability_rules",
        ["court_id", "day_of_week", "is_active"],
    )

    op.create_table(
        "blocked_ranges",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("facility_id", sa.Integer, sa.ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("court_id", sa.Integer, sa.ForeignKey("courts.id", ondelete="CASCADE")),
        sa.Column("block_type", sa.Text, nullable=False, server_default=sa.text("'one_time'")),
        sa.Column("is_active", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("start_date", sa.Date),
        sa.Column("end_date", sa.Date),
        sa.Column("start_time", sa.Integer),
        sa.Column("end_time", sa.Integer),
        sa.Column("day_of_week", sa.Integer),
        sa.Column("reason", sa.Text),
        sa.Column("created_by", sa.Integer),
        sa.Column("created_at", sa.Text, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("block_type IN ('one_time', 'recurring', 'date_range')"),
    )
    op.create_index("ix_blocked_ranges_court", "blocked_ranges", ["court_id", "is_active"])
    op.create_index("ix_blocked_ranges_facility", "blocked_ranges", ["facility_id", "is_active"])

    op.create_table(
        "booking_policies",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("facility_id", sa.Integer, sa.ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("court_id", sa.Integer, sa.ForeignKey("courts.id", ondelete="CASCADE")),
        sa.Column("max_advance_booking_days", sa.Integer),
        sa.Column("min_booking_duration_minutes", sa.Integer),
        sa.Column("max_booking_duration_minutes", sa.Integer),
        sa.Column("min_advance_notice_minutes", sa.Integer),
        sa.Column("pending_expiration_hours", sa.Integer),
        sa.UniqueConstraint("facility_id", "court_id"),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("court_id", sa.Integer, sa.ForeignKey("courts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column("booking_date", sa.Date, nullable=False),
        sa.Column("start_time", sa.Integer, nullable=False),
        sa.Column("end_time", sa.Integer, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.Column("price", sa.Float),
        sa.Column("expires_at", sa.DateTime),
        sa.Column("rejection_reason", sa.Text),
        sa.Column("cancellation_reason", sa.Text),
        sa.Column("decided_by", sa.Integer),
        sa.CheckConstraint("start_time < end_time"),
    )
    op.create_index(
        "ix_reservations_court_date_status", "reservations",
        ["court_id", "booking_date", "status"],
    )
    op.create_index("ix_reservations_pending_expiry", "reservations", ["status", "expires_at"])


def downgrade():
    op.drop_table("reservations")
    op.drop_table("booking_policies")
    op.drop_table("blocked_ranges")
    op.drop_table("availability_rules")
    op.drop_table("courts")
    op.drop_table("facilities")
