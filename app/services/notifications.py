"""
Quote email notifications with dry-run mode for development.

The quote orchestrator only depends on the QuoteNotifier protocol; the API wires in
EmailQuoteNotifier, tests substitute their own implementation.
"""

import logging
from collections.abc import Sequence
from email.message import EmailMessage
from html import escape
from typing import Protocol

import aiosmtplib

from app.core.config import settings
from app.db.models import AddOn, Event, ItineraryDay, Lead, Package, Quote

logger = logging.getLogger(__name__)


class QuoteNotifier(Protocol):
    async def send_quote_email(
        self,
        lead: Lead,
        quote: Quote,
        event: Event,
        package: Package,
        addons: Sequence[AddOn],
        itineraries: Sequence[ItineraryDay],
    ) -> bool: ...


def _money(amount, currency: str) -> str:
    return f"{currency} {float(amount):,.2f}"


def _percent(rate) -> str:
    return f"{float(rate) * 100:g}%"


def render_quote_email(
    lead: Lead,
    quote: Quote,
    event: Event,
    package: Package,
    addons: Sequence[AddOn] = (),
    itineraries: Sequence[ItineraryDay] = (),
) -> tuple[str, str]:
    """
    Build the (subject, plain-text body) of a quote email.

    Only non-zero adjustments are listed, in the same order as the calculation notes.
    """
    currency = quote.currency
    subject = f"Your Sports Travel Quote: {package.title or 'Travel Package'}"

    lines = [
        f"Hello {lead.name or 'Valued Customer'},",
        "",
        "Thank you for your interest in our sports travel packages. Here is your personalized quote:",
        "",
        f"Package: {package.title}",
        f"Event: {event.title}" + (f" ({event.location})" if event.location else ""),
        f"Travel dates: {quote.travel_start:%Y-%m-%d} - {quote.travel_end:%Y-%m-%d}",
        f"Travelers: {quote.travelers}",
        "",
        f"Base price: {_money(quote.base_price, currency)}",
    ]

    adjustments = (
        ("Seasonal adjustment", "+", quote.seasonal_rate, quote.seasonal_amount),
        ("Early bird discount", "-", quote.early_bird_rate, quote.early_bird_amount),
        ("Last minute surcharge", "+", quote.last_minute_rate, quote.last_minute_amount),
        ("Group discount", "-", quote.group_rate, quote.group_amount),
        ("Weekend surcharge", "+", quote.weekend_rate, quote.weekend_amount),
    )
    for label, sign, rate, amount in adjustments:
        if rate:
            lines.append(f"{label} ({_percent(rate)}): {sign}{_money(amount, currency)}")

    for addon in addons:
        lines.append(f"Add-on - {addon.title}: {_money(addon.price, currency)}")
    for day in itineraries:
        lines.append(f"Itinerary - {day.title}: {_money(day.base_price or 0, currency)}")

    lines += [
        "",
        f"Total: {_money(quote.final_price, currency)}",
        f"This quote is valid until {quote.expiry_date:%Y-%m-%d}.",
    ]
    return subject, "\n".join(lines)


def render_quote_email_html(body: str) -> str:
    """Wrap the plain-text quote body as minimal HTML, one paragraph per block."""
    blocks = [b for b in body.split("\n\n") if b.strip()]
    paragraphs = "".join(
        "<p>" + "<br>".join(escape(line) for line in block.splitlines()) + "</p>" for block in blocks
    )
    return f"<html><body>{paragraphs}</body></html>"


class EmailQuoteNotifier:
    """Sends quote emails over SMTP (aiosmtplib); logs only in dry-run mode."""

    def __init__(self, dry_run: bool | None = None):
        self.dry_run = settings.email_dry_run if dry_run is None else dry_run

    async def send_quote_email(
        self,
        lead: Lead,
        quote: Quote,
        event: Event,
        package: Package,
        addons: Sequence[AddOn] = (),
        itineraries: Sequence[ItineraryDay] = (),
    ) -> bool:
        subject, body = render_quote_email(lead, quote, event, package, addons, itineraries)

        dry_run = self.dry_run
        if not dry_run and not settings.smtp_host:
            logger.warning("SMTP host not configured - falling back to dry-run for quote email")
            dry_run = True

        if dry_run:
            logger.info(f"[DRY-RUN] Would send quote {quote.id} to {lead.email}: {subject}")
            return True

        msg = EmailMessage()
        msg["From"] = settings.email_from
        msg["To"] = lead.email
        msg["Subject"] = subject
        msg.set_content(body)
        msg.add_alternative(render_quote_email_html(body), subtype="html")

        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            start_tls=bool(settings.smtp_username),
        )
        logger.info(f"Quote email sent to {lead.email} for quote {quote.id}")
        return True
