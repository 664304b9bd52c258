"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _money(name: str, nullable: bool = False, default: str | None = "0") -> sa.Column:
    return sa.Column(
        name,
        sa.Numeric(10, 2),
        nullable=nullable,
        server_default=sa.text(default) if default is not None else None,
    )


def _rate(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(5, 4), nullable=False, server_default=sa.text("0"))


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("season_months", sa.JSON(), nullable=False),
        sa.Column("is_weekend", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "packages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        _money("base_price", default=None),
        sa.Column("min_capacity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("early_bird_cutoff", sa.DateTime(timezone=True), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("base_price >= 0", name="ck_packages_base_price_non_negative"),
        sa.CheckConstraint("min_capacity >= 1", name="ck_packages_min_capacity_positive"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_packages_event_id"), "packages", ["event_id"], unique=False)

    op.create_table(
        "addons",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        _money("price"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_addons_event_id"), "addons", ["event_id"], unique=False)

    op.create_table(
        "itinerary_days",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=True),
        _money("base_price", nullable=True, default=None),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_itinerary_days_event_id"), "itinerary_days", ["event_id"], unique=False)

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("company", sa.String(length=200), nullable=True),
        sa.Column("position", sa.String(length=200), nullable=True),
        sa.Column("source", sa.String(length=50), nullable=False, server_default="website"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="lead"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="NEW"),
        sa.Column("lead_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("interested_events", sa.JSON(), nullable=False),
        sa.Column("recommended_packages", sa.JSON(), nullable=False),
        sa.Column("conversation_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("order_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("lead_score >= 0 AND lead_score <= 100", name="ck_leads_score_range"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_leads_email"), "leads", ["email"], unique=False)

    op.create_table(
        "lead_status_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("from_status", sa.String(length=32), nullable=True),
        sa.Column("to_status", sa.String(length=32), nullable=False),
        sa.Column("changed_by", sa.String(length=255), nullable=False, server_default="system"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_lead_status_history_lead_id"), "lead_status_history", ["lead_id"], unique=False
    )

    op.create_table(
        "quotes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("package_id", sa.Integer(), nullable=False),
        sa.Column("addon_ids", sa.JSON(), nullable=False),
        sa.Column("itinerary_ids", sa.JSON(), nullable=False),
        sa.Column("travelers", sa.Integer(), nullable=False),
        sa.Column("travel_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("travel_end", sa.DateTime(timezone=True), nullable=False),
        _money("base_price", default=None),
        _rate("seasonal_rate"),
        _money("seasonal_amount"),
        _rate("early_bird_rate"),
        _money("early_bird_amount"),
        _rate("last_minute_rate"),
        _money("last_minute_amount"),
        _rate("group_rate"),
        _money("group_amount"),
        _rate("weekend_rate"),
        _money("weekend_amount"),
        _money("addons_total"),
        _money("itineraries_total"),
        _money("subtotal", default=None),
        _money("final_price", default=None),
        sa.Column("days_until_event", sa.Integer(), nullable=True),
        sa.Column("includes_weekend", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("calculation_notes", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="SENT"),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("email_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_quotes_lead_id"), "quotes", ["lead_id"], unique=False)
    op.create_index(op.f("ix_quotes_event_id"), "quotes", ["event_id"], unique=False)
    op.create_index(op.f("ix_quotes_package_id"), "quotes", ["package_id"], unique=False)

    op.create_table(
        "system_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("level", sa.String(length=10), nullable=False),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_system_events_created_at"), "system_events", ["created_at"], unique=False)
    op.create_index(op.f("ix_system_events_level"), "system_events", ["level"], unique=False)
    op.create_index(op.f("ix_system_events_event_type"), "system_events", ["event_type"], unique=False)
    op.create_index(op.f("ix_system_events_lead_id"), "system_events", ["lead_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("system_events")
    op.drop_table("quotes")
    op.drop_table("lead_status_history")
    op.drop_table("leads")
    op.drop_table("itinerary_days")
    op.drop_table("addons")
    op.drop_table("packages")
    op.drop_table("events")
