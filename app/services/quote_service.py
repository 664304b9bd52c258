"""
Quote service - turns a pricing computation into a persisted quote.

compute_quote is the pure core (ownership check, pricing, totals, expiry, notes).
generate_quote is the shell around it: loads records, persists the quote, moves the
lead to QUOTE_SENT through the state machine and sends the quote email.

Side effects after the quote is committed never undo it: a rejected lead transition
or a failed email is logged (and recorded as a SystemEvent) and the quote stands.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.constants.event_types import (
    EVENT_QUOTE_EMAIL_FAILURE,
    EVENT_QUOTE_EMAIL_SENT,
    EVENT_QUOTE_GENERATED,
    EVENT_QUOTE_LEAD_TRANSITION_SKIPPED,
)
from app.constants.statuses import ACTOR_SYSTEM, QUOTE_STATUS_SENT, QUOTE_STATUSES, STATUS_QUOTE_SENT
from app.core.config import settings
from app.db.helpers import commit_and_refresh
from app.db.models import AddOn, Event, ItineraryDay, Lead, Package, Quote
from app.services.errors import InternalError, InvalidTransitionError, NotFoundError, ValidationError
from app.services.leads.scoring import calculate_lead_score
from app.services.leads.state_machine import apply_transition
from app.services.notifications import QuoteNotifier
from app.services.pricing_service import (
    PricingResult,
    calculate_quote,
    round_money,
    to_decimal,
)
from app.services.system_event_service import error, info, warn
from app.utils.datetime_utils import as_utc_instant

logger = logging.getLogger(__name__)

NOTES_SEPARATOR = " | "


@dataclass
class QuoteRequest:
    lead_id: int
    event_id: int
    package_id: int
    travelers: int
    travel_dates: tuple[date, date]
    addon_ids: list[int] = field(default_factory=list)
    itinerary_ids: list[int] = field(default_factory=list)
    notes: str | None = None
    currency: str = "USD"


@dataclass
class QuoteComputation:
    pricing: PricingResult
    addons_total: Decimal
    itineraries_total: Decimal
    final_price: Decimal
    expiry_date: datetime
    calculation_notes: str
    currency: str

    def pricing_breakdown(self) -> dict[str, Any]:
        return {
            **self.pricing.as_dict(),
            "addons_total": float(self.addons_total),
            "itineraries_total": float(self.itineraries_total),
            "final_price": float(self.final_price),
            "currency": self.currency,
        }


@dataclass
class QuoteGenerationResult:
    quote: Quote
    lead: Lead
    computation: QuoteComputation
    lead_transitioned: bool
    email_sent: bool


def _format_rate(rate: Decimal) -> str:
    return f"{float(rate) * 100:g}%"


def build_calculation_notes(
    pricing: PricingResult,
    addons: Sequence[Any] = (),
    itineraries: Sequence[Any] = (),
) -> str:
    """
    Human-readable summary of a quote, one clause per non-zero adjustment in fixed
    order (seasonal, early bird, last minute, group, weekend), then add-ons and
    itineraries. Zero-rate adjustments are omitted.
    """
    notes = []
    days = pricing.days_until_event

    if pricing.seasonal_rate > 0:
        notes.append(f"Seasonal adjustment: +{_format_rate(pricing.seasonal_rate)}")
    if pricing.early_bird_rate > 0:
        notes.append(
            f"Early bird discount: -{_format_rate(pricing.early_bird_rate)} ({days} days before event)"
        )
    if pricing.last_minute_rate > 0:
        notes.append(
            f"Last minute surcharge: +{_format_rate(pricing.last_minute_rate)} ({days} days before event)"
        )
    if pricing.group_rate > 0:
        notes.append(f"Group discount: -{_format_rate(pricing.group_rate)}")
    if pricing.weekend_rate > 0:
        notes.append(f"Weekend surcharge: +{_format_rate(pricing.weekend_rate)}")

    if addons:
        notes.append(f"Add-ons included: {', '.join(a.title for a in addons)}")
    if itineraries:
        notes.append(f"Itineraries included: {', '.join(i.title for i in itineraries)}")

    return NOTES_SEPARATOR.join(notes)


def compute_quote(
    event: Event,
    package: Package,
    addons: Sequence[AddOn],
    itineraries: Sequence[ItineraryDay],
    travelers: int,
    travel_dates: Sequence[Any],
    currency: str = "USD",
    now: datetime | None = None,
    calendar: Mapping[int, Any] | None = None,
    expiry_days: int = 30,
) -> QuoteComputation:
    """
    Price a package for a group and assemble the quote totals. No I/O.

    Raises:
        ValidationError: If the package does not belong to the event (checked before pricing)
    """
    if package.event_id != event.id:
        raise ValidationError(
            "Package does not belong to the specified event",
            details={"package_id": package.id, "event_id": event.id},
        )

    now = now or datetime.now(UTC)
    pricing = calculate_quote(
        package.base_price, event, package, travelers, travel_dates, now=now, calendar=calendar
    )

    addons_total = round_money(sum((to_decimal(a.price) for a in addons), Decimal("0")))
    itineraries_total = round_money(
        sum((to_decimal(i.base_price) for i in itineraries), Decimal("0"))
    )
    final_price = round_money(pricing.subtotal + addons_total + itineraries_total)

    return QuoteComputation(
        pricing=pricing,
        addons_total=addons_total,
        itineraries_total=itineraries_total,
        final_price=final_price,
        expiry_date=now + timedelta(days=expiry_days),
        calculation_notes=build_calculation_notes(pricing, addons, itineraries),
        currency=currency,
    )


def _load_for_event(db: Session, model, ids: Sequence[int], event_id: int) -> list:
    """Fetch add-ons / itinerary days by id, restricted to the event, in request order."""
    if not ids:
        return []
    stmt = select(model).where(model.id.in_(ids)).where(model.event_id == event_id)
    rows = {row.id: row for row in db.execute(stmt).scalars().all()}
    return [rows[i] for i in dict.fromkeys(ids) if i in rows]


def _quote_from_computation(
    request: QuoteRequest,
    package: Package,
    addons: Sequence[AddOn],
    itineraries: Sequence[ItineraryDay],
    computation: QuoteComputation,
) -> Quote:
    pricing = computation.pricing
    return Quote(
        event_id=request.event_id,
        package_id=package.id,
        addon_ids=[a.id for a in addons],
        itinerary_ids=[i.id for i in itineraries],
        travelers=request.travelers,
        travel_start=as_utc_instant(request.travel_dates[0]),
        travel_end=as_utc_instant(request.travel_dates[1]),
        base_price=pricing.base_price,
        seasonal_rate=pricing.seasonal_rate,
        seasonal_amount=pricing.seasonal_amount,
        early_bird_rate=pricing.early_bird_rate,
        early_bird_amount=pricing.early_bird_amount,
        last_minute_rate=pricing.last_minute_rate,
        last_minute_amount=pricing.last_minute_amount,
        group_rate=pricing.group_rate,
        group_amount=pricing.group_amount,
        weekend_rate=pricing.weekend_rate,
        weekend_amount=pricing.weekend_amount,
        addons_total=computation.addons_total,
        itineraries_total=computation.itineraries_total,
        subtotal=pricing.subtotal,
        final_price=computation.final_price,
        days_until_event=pricing.days_until_event,
        includes_weekend=pricing.includes_weekend,
        calculation_notes=computation.calculation_notes,
        notes=request.notes,
        currency=computation.currency,
        status=QUOTE_STATUS_SENT,
        expiry_date=computation.expiry_date,
        email_sent=False,
    )


async def generate_quote(
    db: Session,
    request: QuoteRequest,
    notifier: QuoteNotifier,
    now: datetime | None = None,
) -> QuoteGenerationResult:
    """
    Generate, persist and deliver a quote for a lead.

    Args:
        db: Database session
        request: Lead/event/package ids, selections, travelers and travel dates
        notifier: Quote email collaborator
        now: Reference time (defaults to current UTC time)

    Returns:
        QuoteGenerationResult with the persisted quote and its computation

    Raises:
        NotFoundError: Lead, event or package missing (nothing written)
        ValidationError: Package does not belong to the event (nothing written)
    """
    now = now or datetime.now(UTC)

    lead = db.get(Lead, request.lead_id)
    if not lead:
        raise NotFoundError("Lead not found")

    event = db.get(Event, request.event_id)
    package = db.get(Package, request.package_id)
    if not event or not package:
        raise NotFoundError("Event or package not found")

    addons = _load_for_event(db, AddOn, request.addon_ids, event.id)
    itineraries = _load_for_event(db, ItineraryDay, request.itinerary_ids, event.id)

    computation = compute_quote(
        event,
        package,
        addons,
        itineraries,
        request.travelers,
        request.travel_dates,
        currency=request.currency,
        now=now,
        calendar=settings.seasonal_calendar,
        expiry_days=settings.quote_expiry_days,
    )

    quote = _quote_from_computation(request, package, addons, itineraries, computation)
    lead.quotes.append(quote)

    lead_transitioned = True
    try:
        apply_transition(
            lead,
            STATUS_QUOTE_SENT,
            actor=ACTOR_SYSTEM,
            note=f"Quote generated for {event.title} - {package.title}",
            now=now,
        )
    except InvalidTransitionError as exc:
        # Quote still stands; status is left for an admin to move by hand
        lead_transitioned = False
        lead.lead_score = calculate_lead_score(lead, now)
        skipped = exc

    commit_and_refresh(db, quote, lead)
    logger.info(
        f"Quote {quote.id} generated for lead {lead.id}: "
        f"{computation.final_price} {computation.currency} ({computation.calculation_notes or 'no adjustments'})"
    )
    info(
        db=db,
        event_type=EVENT_QUOTE_GENERATED,
        lead_id=lead.id,
        payload={"quote_id": quote.id, "final_price": float(computation.final_price)},
    )

    if not lead_transitioned:
        logger.warning(
            f"Lead {lead.id} left in {lead.status} after quote {quote.id}: {skipped.message}"
        )
        warn(
            db=db,
            event_type=EVENT_QUOTE_LEAD_TRANSITION_SKIPPED,
            lead_id=lead.id,
            payload={"quote_id": quote.id, "from_status": lead.status, "to_status": STATUS_QUOTE_SENT},
        )

    email_sent = False
    if lead.email:
        email_sent = await _send_quote_email(db, notifier, lead, quote, event, package, addons, itineraries, now)

    return QuoteGenerationResult(
        quote=quote,
        lead=lead,
        computation=computation,
        lead_transitioned=lead_transitioned,
        email_sent=email_sent,
    )


async def _send_quote_email(
    db: Session,
    notifier: QuoteNotifier,
    lead: Lead,
    quote: Quote,
    event: Event,
    package: Package,
    addons: Sequence[AddOn],
    itineraries: Sequence[ItineraryDay],
    now: datetime,
) -> bool:
    """Send the quote email and flag the quote as emailed. Never raises."""
    try:
        sent = await notifier.send_quote_email(lead, quote, event, package, addons, itineraries)
    except Exception as e:
        logger.error(f"Failed to send quote email for quote {quote.id} to lead {lead.id}: {e}")
        error(
            db=db,
            event_type=EVENT_QUOTE_EMAIL_FAILURE,
            lead_id=lead.id,
            payload={"quote_id": quote.id},
            exc=e,
        )
        return False

    if not sent:
        logger.warning(f"Quote email for quote {quote.id} was not sent")
        return False

    try:
        quote.email_sent = True
        quote.email_sent_at = now
        commit_and_refresh(db, quote)
    except InternalError as e:
        logger.error(f"Quote {quote.id} emailed but could not be flagged as sent: {e}")
        return True

    info(db=db, event_type=EVENT_QUOTE_EMAIL_SENT, lead_id=lead.id, payload={"quote_id": quote.id})
    return True


# ---- Admin quote management ----

# Fields an admin may overwrite directly; pricing is never recomputed on update
MONEY_FIELDS = {
    "base_price",
    "seasonal_amount",
    "early_bird_amount",
    "last_minute_amount",
    "group_amount",
    "weekend_amount",
    "addons_total",
    "itineraries_total",
    "subtotal",
    "final_price",
}
RATE_FIELDS = {"seasonal_rate", "early_bird_rate", "last_minute_rate", "group_rate", "weekend_rate"}
PLAIN_FIELDS = {"status", "notes", "calculation_notes", "currency", "travelers", "addon_ids", "itinerary_ids"}


def get_quote(db: Session, quote_id: int) -> Quote:
    quote = db.get(Quote, quote_id)
    if not quote:
        raise NotFoundError("Quote not found")
    return quote


def list_quotes(
    db: Session,
    *,
    lead_id: int | None = None,
    event_id: int | None = None,
    status: str | None = None,
    limit: int = 50,
) -> list[Quote]:
    stmt = select(Quote).order_by(desc(Quote.created_at), desc(Quote.id))
    if lead_id is not None:
        stmt = stmt.where(Quote.lead_id == lead_id)
    if event_id is not None:
        stmt = stmt.where(Quote.event_id == event_id)
    if status:
        stmt = stmt.where(Quote.status == status.upper())
    stmt = stmt.limit(max(0, min(limit, 100)))  # Clamp to [0, 100]
    return list(db.execute(stmt).scalars().all())


def update_quote(db: Session, quote_id: int, changes: Mapping[str, Any]) -> Quote:
    """
    Overwrite stored quote fields. Money is rounded to 2 places; nothing is re-priced.

    Raises:
        NotFoundError: If the quote does not exist
        ValidationError: On an unknown quote status, a negative amount, a rate outside 0..1,
            or a malformed travel date pair
    """
    quote = get_quote(db, quote_id)
    try:
        _apply_quote_changes(quote, changes)
    except ValidationError:
        db.rollback()
        raise

    commit_and_refresh(db, quote)
    logger.info(f"Quote updated: {quote.id} ({', '.join(sorted(changes))})")
    return quote


def _apply_quote_changes(quote: Quote, changes: Mapping[str, Any]) -> None:
    for key, value in changes.items():
        if value is None:
            continue
        if key in MONEY_FIELDS:
            amount = to_decimal(value)
            if amount.is_nan() or amount < 0:
                raise ValidationError(f"{key} must be a non-negative amount")
            setattr(quote, key, round_money(amount))
        elif key in RATE_FIELDS:
            rate = to_decimal(value)
            if rate.is_nan() or not 0 <= rate <= 1:
                raise ValidationError(f"{key} must be a fraction between 0 and 1")
            setattr(quote, key, rate)
        elif key == "status":
            status = str(value).upper()
            if status not in QUOTE_STATUSES:
                raise ValidationError(f"Invalid quote status: {value}")
            quote.status = status
        elif key == "expiry_date":
            quote.expiry_date = as_utc_instant(value)
        elif key == "travel_dates":
            if len(value) != 2:
                raise ValidationError("travel_dates must contain exactly two dates")
            quote.travel_start = as_utc_instant(value[0])
            quote.travel_end = as_utc_instant(value[1])
        elif key in PLAIN_FIELDS:
            setattr(quote, key, value)


def delete_quote(db: Session, quote_id: int) -> None:
    quote = get_quote(db, quote_id)
    db.delete(quote)
    db.commit()
    logger.info(f"Quote deleted: {quote_id}")
