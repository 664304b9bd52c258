"""
Pricing service - dynamic price adjustments for travel package quotes.

Each adjustment is a rate expressed as a fraction of the package base price:
- Seasonal: event high-season months (+20%) or the default calendar (+20% / +10%)
- Early bird: package cutoff, or 120+ days before the event (-10%)
- Last minute: fewer than 15 days before the event (+25%)
- Group: at least max(4, package min capacity) travelers (-8%)
- Weekend: event weekend flag, or travel dates touching Sat/Sun (+8%)

Everything here is pure: no database access, no clock reads unless `now` is omitted.
Inputs are assumed validated upstream; malformed values degrade to zero rates
(or a NaN base price) instead of raising.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.utils.datetime_utils import as_utc_instant, dt_replace_utc

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
ZERO = Decimal("0")

HIGH_SEASON_RATE = Decimal("0.20")
EARLY_BIRD_RATE = Decimal("0.10")
EARLY_BIRD_MIN_DAYS = 120
LAST_MINUTE_RATE = Decimal("0.25")
LAST_MINUTE_MAX_DAYS = 15  # exclusive
GROUP_RATE = Decimal("0.08")
GROUP_MIN_TRAVELERS = 4
WEEKEND_RATE = Decimal("0.08")

# Fallback calendar when the event does not define its own season months
DEFAULT_SEASONAL_CALENDAR: dict[int, Decimal] = {
    4: Decimal("0.10"),  # April
    5: Decimal("0.10"),  # May
    6: Decimal("0.20"),  # June
    7: Decimal("0.20"),  # July
    9: Decimal("0.10"),  # September
    12: Decimal("0.20"),  # December
}


@dataclass
class PricingResult:
    """Rates, rounded amounts and temporal facts for one quote computation."""

    base_price: Decimal
    seasonal_rate: Decimal
    seasonal_amount: Decimal
    early_bird_rate: Decimal
    early_bird_amount: Decimal
    last_minute_rate: Decimal
    last_minute_amount: Decimal
    group_rate: Decimal
    group_amount: Decimal
    weekend_rate: Decimal
    weekend_amount: Decimal
    subtotal: Decimal
    days_until_event: int | None
    includes_weekend: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "base_price": float(self.base_price),
            "seasonal_rate": float(self.seasonal_rate),
            "seasonal_amount": float(self.seasonal_amount),
            "early_bird_rate": float(self.early_bird_rate),
            "early_bird_amount": float(self.early_bird_amount),
            "last_minute_rate": float(self.last_minute_rate),
            "last_minute_amount": float(self.last_minute_amount),
            "group_rate": float(self.group_rate),
            "group_amount": float(self.group_amount),
            "weekend_rate": float(self.weekend_rate),
            "weekend_amount": float(self.weekend_amount),
            "subtotal": float(self.subtotal),
            "days_until_event": self.days_until_event,
            "includes_weekend": self.includes_weekend,
        }


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def round_money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _read_field(source: Any, key: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def _as_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def days_until(start: Any, now: datetime | None = None) -> int | None:
    """
    Whole days from now until start, floored (negative once the event has started).

    Returns None when start is missing or not a date.
    """
    start_at = as_utc_instant(start)
    if start_at is None:
        return None
    now = dt_replace_utc(now) if now else datetime.now(UTC)
    # timedelta.days is already floored for negative deltas
    return (start_at - now).days


def seasonal_multiplier(
    event: Any,
    travel_month: int | None,
    calendar: Mapping[int, Any] | None = None,
) -> Decimal:
    """
    Seasonal rate for the travel month.

    Event-specific season months win (+20%); otherwise the month is looked up in the
    seasonal calendar (deployment config, DEFAULT_SEASONAL_CALENDAR when not given).
    """
    if travel_month is None:
        return ZERO

    season_months = _read_field(event, "season_months")
    if season_months and travel_month in season_months:
        return HIGH_SEASON_RATE

    table = DEFAULT_SEASONAL_CALENDAR if calendar is None else calendar
    return to_decimal(table.get(travel_month), ZERO)


def early_bird_discount(
    days_until_event: int | None,
    early_bird_cutoff: Any = None,
    now: datetime | None = None,
) -> Decimal:
    """
    Early bird rate.

    A package cutoff, when present, is the only rule applied: the generic 120-day
    window is not consulted even if the cutoff has passed.
    """
    if early_bird_cutoff:
        now = dt_replace_utc(now) if now else datetime.now(UTC)
        if isinstance(early_bird_cutoff, datetime):
            before_cutoff = now <= dt_replace_utc(early_bird_cutoff)
        else:
            cutoff_day = _as_date(early_bird_cutoff)
            before_cutoff = cutoff_day is not None and now.date() <= cutoff_day
        return EARLY_BIRD_RATE if before_cutoff else ZERO

    if days_until_event is None:
        return ZERO
    return EARLY_BIRD_RATE if days_until_event >= EARLY_BIRD_MIN_DAYS else ZERO


def last_minute_surcharge(days_until_event: int | None) -> Decimal:
    if days_until_event is None:
        return ZERO
    return LAST_MINUTE_RATE if days_until_event < LAST_MINUTE_MAX_DAYS else ZERO


def group_discount(travelers: int, min_capacity: int | None = 1) -> Decimal:
    threshold = max(GROUP_MIN_TRAVELERS, min_capacity or 1)
    try:
        return GROUP_RATE if travelers >= threshold else ZERO
    except TypeError:
        return ZERO


def weekend_surcharge(event: Any, travel_dates: Sequence[Any]) -> Decimal:
    """
    Weekend rate.

    An explicit event.is_weekend flag decides; otherwise every day of the inclusive
    travel range is scanned for a Saturday or Sunday.
    """
    flag = _read_field(event, "is_weekend")
    if flag is not None:
        return WEEKEND_RATE if flag else ZERO

    if not travel_dates or len(travel_dates) < 2:
        return ZERO
    start, end = _as_date(travel_dates[0]), _as_date(travel_dates[1])
    if start is None or end is None:
        return ZERO

    day = start
    while day <= end:
        if day.weekday() >= 5:  # Saturday=5, Sunday=6
            return WEEKEND_RATE
        day += timedelta(days=1)
    return ZERO


def calculate_quote(
    base_price: Any,
    event: Any,
    package: Any,
    travelers: int,
    travel_dates: Sequence[Any],
    now: datetime | None = None,
    calendar: Mapping[int, Any] | None = None,
) -> PricingResult:
    """
    Compute every adjustment for a package quote.

    subtotal = base + seasonal - early_bird + last_minute - group + weekend,
    summed over the rounded amounts so the identity holds exactly.

    Args:
        base_price: Package base price (Decimal, number or numeric string)
        event: Event record (season_months, is_weekend, start_date)
        package: Package record (early_bird_cutoff, min_capacity)
        travelers: Number of travelers
        travel_dates: (start, end) travel dates
        now: Reference time (defaults to current UTC time)
        calendar: Default seasonal calendar override (month -> rate)

    Returns:
        PricingResult with rates, amounts, subtotal and temporal facts
    """
    now = dt_replace_utc(now) if now else datetime.now(UTC)
    base = to_decimal(base_price, Decimal("NaN"))

    days_until_event = days_until(_read_field(event, "start_date"), now)
    travel_start = _as_date(travel_dates[0]) if travel_dates else None
    travel_month = travel_start.month if travel_start else None

    seasonal_rate = seasonal_multiplier(event, travel_month, calendar)
    early_bird_rate = early_bird_discount(
        days_until_event, _read_field(package, "early_bird_cutoff"), now
    )
    last_minute_rate = last_minute_surcharge(days_until_event)
    group_rate = group_discount(travelers, _read_field(package, "min_capacity"))
    weekend_rate = weekend_surcharge(event, travel_dates)

    seasonal_amount = round_money(base * seasonal_rate)
    early_bird_amount = round_money(base * early_bird_rate)
    last_minute_amount = round_money(base * last_minute_rate)
    group_amount = round_money(base * group_rate)
    weekend_amount = round_money(base * weekend_rate)

    subtotal = (
        base
        + seasonal_amount
        - early_bird_amount
        + last_minute_amount
        - group_amount
        + weekend_amount
    )

    logger.debug(
        f"Pricing computed: base={base} days_until_event={days_until_event} "
        f"month={travel_month} travelers={travelers} subtotal={subtotal}"
    )

    return PricingResult(
        base_price=base,
        seasonal_rate=seasonal_rate,
        seasonal_amount=seasonal_amount,
        early_bird_rate=early_bird_rate,
        early_bird_amount=early_bird_amount,
        last_minute_rate=last_minute_rate,
        last_minute_amount=last_minute_amount,
        group_rate=group_rate,
        group_amount=group_amount,
        weekend_rate=weekend_rate,
        weekend_amount=weekend_amount,
        subtotal=round_money(subtotal),
        days_until_event=days_until_event,
        includes_weekend=weekend_rate > 0,
    )
