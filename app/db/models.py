from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Pricing metadata
    season_months: Mapped[list] = mapped_column(JSON, default=list)  # High-season months (1-12)
    is_weekend: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)  # None = derive from travel dates

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    packages: Mapped[list["Package"]] = relationship("Package", back_populates="event", cascade="all, delete-orphan")


class Package(Base):
    __tablename__ = "packages"
    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_packages_base_price_non_negative"),
        CheckConstraint("min_capacity >= 1", name="ck_packages_min_capacity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    min_capacity: Mapped[int] = mapped_column(Integer, default=1)
    max_capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    early_bird_cutoff: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    event: Mapped["Event"] = relationship("Event", back_populates="packages")


class AddOn(Base):
    __tablename__ = "addons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))


class ItineraryDay(Base):
    __tablename__ = "itinerary_days"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    day_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    base_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)  # NULL contributes 0


class Lead(Base):
    __tablename__ = "leads"
    __table_args__ = (
        CheckConstraint("lead_score >= 0 AND lead_score <= 100", name="ck_leads_score_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Contact fields (each optional)
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    source: Mapped[str] = mapped_column(String(50), default="website")
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(20), default="lead")  # lead, admin

    status: Mapped[str] = mapped_column(String(32), default="NEW")
    lead_score: Mapped[int] = mapped_column(Integer, default=0)

    # Engagement signals used by lead scoring
    interested_events: Mapped[list] = mapped_column(JSON, default=list)
    recommended_packages: Mapped[list] = mapped_column(JSON, default=list)
    conversation_count: Mapped[int] = mapped_column(Integer, default=0)
    order_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    status_history: Mapped[list["LeadStatusHistory"]] = relationship(
        "LeadStatusHistory",
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="LeadStatusHistory.id",
    )
    quotes: Mapped[list["Quote"]] = relationship("Quote", back_populates="lead", cascade="all, delete-orphan")


class LeadStatusHistory(Base):
    """
    Append-only audit trail of lead status changes.
    from_status is NULL for the entry written when the lead is created.
    """

    __tablename__ = "lead_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lead_id: Mapped[int] = mapped_column(Integer, ForeignKey("leads.id"), index=True)
    from_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    to_status: Mapped[str] = mapped_column(String(32))
    changed_by: Mapped[str] = mapped_column(String(255), default="system")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    lead: Mapped["Lead"] = relationship("Lead", back_populates="status_history")


class Quote(Base):
    __tablename__ = "quotes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lead_id: Mapped[int] = mapped_column(Integer, ForeignKey("leads.id"), index=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id"), index=True)
    package_id: Mapped[int] = mapped_column(Integer, ForeignKey("packages.id"), index=True)
    addon_ids: Mapped[list] = mapped_column(JSON, default=list)
    itinerary_ids: Mapped[list] = mapped_column(JSON, default=list)

    travelers: Mapped[int] = mapped_column(Integer)
    travel_start: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    travel_end: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    # Pricing breakdown: rates are fractions (0.20 = 20%), amounts are money
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    seasonal_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), default=Decimal("0"))
    seasonal_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    early_bird_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), default=Decimal("0"))
    early_bird_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    last_minute_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), default=Decimal("0"))
    last_minute_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    group_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), default=Decimal("0"))
    group_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    weekend_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), default=Decimal("0"))
    weekend_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    addons_total: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    itineraries_total: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    final_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    days_until_event: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    includes_weekend: Mapped[bool] = mapped_column(Boolean, default=False)
    calculation_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    status: Mapped[str] = mapped_column(String(20), default="SENT")  # SENT, VIEWED, ACCEPTED, EXPIRED, DECLINED
    expiry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    email_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    lead: Mapped["Lead"] = relationship("Lead", back_populates="quotes")
    event: Mapped["Event"] = relationship("Event")
    package: Mapped["Package"] = relationship("Package")


class SystemEvent(Base):
    """Structured log of key system events and failures."""

    __tablename__ = "system_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level: Mapped[str] = mapped_column(String(10), index=True)  # INFO, WARN, ERROR
    event_type: Mapped[str] = mapped_column(String(100), index=True)
    lead_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("leads.id"), nullable=True, index=True)
    payload: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
