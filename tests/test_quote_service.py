"""
Tests for quote service - pure quote computation, notes, and the generate_quote flow.
"""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.constants.statuses import STATUS_CLOSED_WON, STATUS_CONTACTED, STATUS_NEW, STATUS_QUOTE_SENT
from app.db.models import AddOn, Lead, LeadStatusHistory, Quote, SystemEvent
from app.services.errors import NotFoundError, ValidationError
from app.services.pricing_service import calculate_quote
from app.services.quote_service import (
    QuoteRequest,
    build_calculation_notes,
    compute_quote,
    delete_quote,
    generate_quote,
    get_quote,
    list_quotes,
    update_quote,
)

NOW = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)


def make_event(days_out=150, season_months=(5,), is_weekend=None, event_id=1):
    return SimpleNamespace(
        id=event_id,
        title="Cup Final",
        start_date=NOW + timedelta(days=days_out),
        season_months=list(season_months),
        is_weekend=is_weekend,
    )


def make_package(event_id=1, base_price="1000.00", **kwargs):
    return SimpleNamespace(
        id=10,
        event_id=event_id,
        title="Gold",
        base_price=Decimal(base_price),
        min_capacity=kwargs.get("min_capacity", 1),
        early_bird_cutoff=kwargs.get("early_bird_cutoff"),
    )


def item(title, price):
    return SimpleNamespace(title=title, price=price, base_price=price)


# Calculation notes
def test_notes_list_non_zero_adjustments_in_order():
    pricing = calculate_quote(
        1000, make_event(), make_package(), 4, (date(2026, 5, 30), date(2026, 6, 1)), now=NOW
    )

    notes = build_calculation_notes(pricing)

    assert notes == (
        "Seasonal adjustment: +20% | Early bird discount: -10% (150 days before event) | "
        "Group discount: -8% | Weekend surcharge: +8%"
    )


def test_notes_last_minute_and_seasonal_ten_percent():
    pricing = calculate_quote(
        800,
        make_event(days_out=10, season_months=()),
        make_package(),
        2,
        (date(2026, 1, 12), date(2026, 1, 14)),
        now=NOW,
        calendar={1: "0.10"},
    )

    assert build_calculation_notes(pricing) == (
        "Seasonal adjustment: +10% | Last minute surcharge: +25% (10 days before event)"
    )


def test_notes_include_addons_and_itineraries():
    pricing = calculate_quote(
        500, make_event(days_out=60, season_months=()), make_package(), 1,
        (date(2026, 3, 2), date(2026, 3, 4)), now=NOW,
    )

    notes = build_calculation_notes(
        pricing,
        [item("Transfer", 50), item("Tour", 20)],
        [item("City Walk", 100)],
    )

    assert notes == "Add-ons included: Transfer, Tour | Itineraries included: City Walk"


def test_notes_empty_without_adjustments_or_extras():
    pricing = calculate_quote(
        500, make_event(days_out=60, season_months=()), make_package(), 1,
        (date(2026, 3, 2), date(2026, 3, 4)), now=NOW,
    )
    assert build_calculation_notes(pricing) == ""


# Pure computation
def test_compute_quote_totals_and_expiry():
    addons = [item("Transfer", Decimal("75.00")), item("Tour", Decimal("50.00"))]
    itineraries = [item("City Walk", Decimal("120.00")), item("Free Day", None)]

    result = compute_quote(
        make_event(),
        make_package(),
        addons,
        itineraries,
        travelers=4,
        travel_dates=(date(2026, 5, 30), date(2026, 6, 1)),
        currency="EUR",
        now=NOW,
    )

    assert result.pricing.subtotal == Decimal("1100.00")
    assert result.addons_total == Decimal("125.00")
    assert result.itineraries_total == Decimal("120.00")  # NULL itinerary price contributes 0
    assert result.final_price == Decimal("1345.00")
    assert result.expiry_date == NOW + timedelta(days=30)
    assert result.currency == "EUR"
    assert "Add-ons included: Transfer, Tour" in result.calculation_notes

    breakdown = result.pricing_breakdown()
    assert breakdown["subtotal"] == 1100.0
    assert breakdown["final_price"] == 1345.0
    assert breakdown["seasonal_rate"] == 0.2
    assert breakdown["days_until_event"] == 150
    assert breakdown["currency"] == "EUR"


def test_compute_quote_custom_expiry_days():
    result = compute_quote(
        make_event(), make_package(), [], [], 1, (date(2026, 5, 30), date(2026, 6, 1)), now=NOW, expiry_days=7
    )
    assert result.expiry_date == NOW + timedelta(days=7)


def test_compute_quote_rejects_package_from_other_event(monkeypatch):
    """Ownership is checked before pricing runs."""
    calls = []
    monkeypatch.setattr(
        "app.services.quote_service.calculate_quote",
        lambda *args, **kwargs: calls.append(args),
    )

    with pytest.raises(ValidationError) as exc_info:
        compute_quote(
            make_event(event_id=1), make_package(event_id=2), [], [], 2,
            (date(2026, 5, 30), date(2026, 6, 1)), now=NOW,
        )

    assert exc_info.value.message == "Package does not belong to the specified event"
    assert calls == []


# generate_quote flow
def quote_request(lead, event, package, **kwargs):
    start = event.start_date.date()
    defaults = {
        "lead_id": lead.id,
        "event_id": event.id,
        "package_id": package.id,
        "travelers": 2,
        "travel_dates": (start, start + timedelta(days=2)),
    }
    defaults.update(kwargs)
    return QuoteRequest(**defaults)


@pytest.mark.asyncio
async def test_generate_quote_happy_path(db, lead, event, package, addons, itineraries, make_notifier):
    notifier = make_notifier()
    request = quote_request(
        lead, event, package,
        addon_ids=[a.id for a in addons],
        itinerary_ids=[i.id for i in itineraries],
        notes="Prefers aisle seats",
    )

    result = await generate_quote(db, request, notifier)

    quote = result.quote
    assert quote.id is not None
    assert quote.lead_id == lead.id
    assert quote.status == "SENT"
    assert quote.notes == "Prefers aisle seats"
    assert quote.addon_ids == [a.id for a in addons]
    assert quote.addons_total == Decimal("125.00")
    assert quote.itineraries_total == Decimal("120.00")
    assert quote.final_price == quote.subtotal + Decimal("245.00")
    assert quote.calculation_notes == result.computation.calculation_notes
    assert "Add-ons included: Airport Transfer, Stadium Tour" in quote.calculation_notes

    # Lead moved CONTACTED -> QUOTE_SENT with audit entry
    db.refresh(lead)
    assert result.lead_transitioned is True
    assert lead.status == STATUS_QUOTE_SENT
    entry = lead.status_history[-1]
    assert entry.from_status == STATUS_CONTACTED
    assert entry.to_status == STATUS_QUOTE_SENT
    assert entry.changed_by == "system"
    assert entry.notes == "Quote generated for Champions Final - VIP Hospitality"
    # name 10 + email 20 + phone 15 + recency 15 + one quote 10
    assert lead.lead_score == 70

    # Email sent and recorded
    assert result.email_sent is True
    assert notifier.sent == [{"to": "jordan@example.com", "quote_id": quote.id, "package": "VIP Hospitality"}]
    db.refresh(quote)
    assert quote.email_sent is True
    assert quote.email_sent_at is not None

    event_types = [e.event_type for e in db.query(SystemEvent).order_by(SystemEvent.id).all()]
    assert event_types == ["quote.generated", "email.quote_sent"]


@pytest.mark.asyncio
async def test_generate_quote_expiry_is_thirty_days_after_creation(db, lead, event, package, make_notifier):
    now = datetime.now(UTC).replace(microsecond=0)

    result = await generate_quote(db, quote_request(lead, event, package), make_notifier(), now=now)

    expiry = result.quote.expiry_date.replace(tzinfo=UTC)
    assert expiry == now + timedelta(days=30)


@pytest.mark.asyncio
async def test_generate_quote_missing_lead(db, event, package, make_notifier):
    request = QuoteRequest(
        lead_id=999, event_id=event.id, package_id=package.id, travelers=1,
        travel_dates=(date.today(), date.today() + timedelta(days=1)),
    )

    with pytest.raises(NotFoundError) as exc_info:
        await generate_quote(db, request, make_notifier())

    assert exc_info.value.message == "Lead not found"
    assert db.query(Quote).count() == 0


@pytest.mark.asyncio
async def test_generate_quote_missing_event_or_package(db, lead, event, package, make_notifier):
    with pytest.raises(NotFoundError) as exc_info:
        await generate_quote(db, quote_request(lead, event, package, package_id=999), make_notifier())
    assert exc_info.value.message == "Event or package not found"

    with pytest.raises(NotFoundError):
        await generate_quote(db, quote_request(lead, event, package, event_id=999), make_notifier())

    assert db.query(Quote).count() == 0


@pytest.mark.asyncio
async def test_generate_quote_package_mismatch_writes_nothing(db, lead, event, other_event_package, make_notifier):
    notifier = make_notifier()
    request = quote_request(lead, event, other_event_package)

    with pytest.raises(ValidationError):
        await generate_quote(db, request, notifier)

    db.refresh(lead)
    assert db.query(Quote).count() == 0
    assert lead.status == STATUS_CONTACTED
    assert db.query(LeadStatusHistory).count() == 0
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_generate_quote_ignores_addons_from_other_events(db, lead, event, package, other_event_package, make_notifier):
    foreign = AddOn(event_id=other_event_package.event_id, title="Pit Lane Walk", price=Decimal("300.00"))
    db.add(foreign)
    db.commit()

    result = await generate_quote(
        db, quote_request(lead, event, package, addon_ids=[foreign.id]), make_notifier()
    )

    assert result.quote.addon_ids == []
    assert result.quote.addons_total == Decimal("0.00")


@pytest.mark.asyncio
async def test_generate_quote_email_failure_keeps_quote(db, lead, event, package, make_notifier):
    notifier = make_notifier(fail=True)

    result = await generate_quote(db, quote_request(lead, event, package), notifier)

    assert result.email_sent is False
    quote = db.get(Quote, result.quote.id)
    assert quote is not None
    assert quote.email_sent is False
    assert quote.email_sent_at is None
    db.refresh(lead)
    assert lead.status == STATUS_QUOTE_SENT

    failure = db.query(SystemEvent).filter(SystemEvent.event_type == "email.quote_send_failure").one()
    assert failure.level == "ERROR"
    assert failure.lead_id == lead.id
    assert failure.payload["quote_id"] == quote.id
    assert failure.payload["error"]["type"] == "ConnectionError"


@pytest.mark.asyncio
async def test_generate_quote_without_email_skips_notifier(db, event, package, make_notifier):
    lead = Lead(name="No Email", phone="123", status=STATUS_CONTACTED)
    db.add(lead)
    db.commit()
    db.refresh(lead)
    notifier = make_notifier()

    result = await generate_quote(db, quote_request(lead, event, package), notifier)

    assert result.email_sent is False
    assert notifier.sent == []
    assert result.quote.email_sent is False


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [STATUS_NEW, STATUS_CLOSED_WON])
async def test_generate_quote_keeps_quote_when_lead_cannot_move(db, event, package, status, make_notifier):
    """A lead that may not move to QUOTE_SENT keeps its status; the quote is still created."""
    lead = Lead(name="Stuck", email="stuck@example.com", status=status)
    db.add(lead)
    db.commit()
    db.refresh(lead)

    result = await generate_quote(db, quote_request(lead, event, package), make_notifier())

    db.refresh(lead)
    assert result.lead_transitioned is False
    assert result.quote.id is not None
    assert lead.status == status
    assert db.query(LeadStatusHistory).count() == 0
    # Score still reflects the new quote: name 10 + email 20 + recency 15 + quote 10
    assert lead.lead_score == 55

    skipped = db.query(SystemEvent).filter(SystemEvent.event_type == "quote.lead_transition_skipped").one()
    assert skipped.level == "WARN"
    assert skipped.payload["from_status"] == status


@pytest.mark.asyncio
async def test_repeat_quote_for_quote_sent_lead_appends_history(db, lead, event, package, make_notifier):
    """QUOTE_SENT -> QUOTE_SENT is a same-status transition and is still recorded."""
    await generate_quote(db, quote_request(lead, event, package), make_notifier())
    await generate_quote(db, quote_request(lead, event, package, travelers=6), make_notifier())

    db.refresh(lead)
    assert lead.status == STATUS_QUOTE_SENT
    assert len(lead.quotes) == 2
    assert [h.to_status for h in lead.status_history] == [STATUS_QUOTE_SENT, STATUS_QUOTE_SENT]


# Admin quote management
@pytest.mark.asyncio
async def test_update_quote_overwrites_without_repricing(db, lead, event, package, make_notifier):
    result = await generate_quote(db, quote_request(lead, event, package), make_notifier())
    subtotal = result.quote.subtotal

    quote = update_quote(
        db,
        result.quote.id,
        {"status": "accepted", "final_price": 999.999, "notes": "Discount agreed"},
    )

    assert quote.status == "ACCEPTED"
    assert quote.final_price == Decimal("1000.00")
    assert quote.subtotal == subtotal
    assert quote.notes == "Discount agreed"


@pytest.mark.asyncio
async def test_update_quote_travel_dates_and_bad_status(db, lead, event, package, make_notifier):
    result = await generate_quote(db, quote_request(lead, event, package), make_notifier())

    quote = update_quote(db, result.quote.id, {"travel_dates": [date(2027, 2, 1), date(2027, 2, 5)]})
    assert quote.travel_start.date() == date(2027, 2, 1)
    assert quote.travel_end.date() == date(2027, 2, 5)

    with pytest.raises(ValidationError):
        update_quote(db, result.quote.id, {"status": "PAID"})


@pytest.mark.asyncio
async def test_update_quote_rejects_out_of_range_rates_and_amounts(db, lead, event, package, make_notifier):
    result = await generate_quote(db, quote_request(lead, event, package), make_notifier())
    quote_id = result.quote.id
    stored_rate = result.quote.seasonal_rate

    with pytest.raises(ValidationError):
        update_quote(db, quote_id, {"notes": "Bumped", "seasonal_rate": 20})
    with pytest.raises(ValidationError):
        update_quote(db, quote_id, {"group_rate": -0.08})
    with pytest.raises(ValidationError):
        update_quote(db, quote_id, {"final_price": -500})
    with pytest.raises(ValidationError):
        update_quote(db, quote_id, {"subtotal": "lots"})

    quote = get_quote(db, quote_id)
    assert quote.seasonal_rate == stored_rate
    assert quote.notes is None


@pytest.mark.asyncio
async def test_list_get_delete_quotes(db, lead, event, package, make_notifier):
    first = await generate_quote(db, quote_request(lead, event, package), make_notifier())
    await generate_quote(db, quote_request(lead, event, package, travelers=5), make_notifier())

    assert len(list_quotes(db)) == 2
    assert len(list_quotes(db, lead_id=lead.id, status="sent")) == 2
    assert list_quotes(db, lead_id=lead.id + 1) == []
    assert get_quote(db, first.quote.id).id == first.quote.id

    delete_quote(db, first.quote.id)
    with pytest.raises(NotFoundError):
        get_quote(db, first.quote.id)
    assert len(list_quotes(db)) == 1
