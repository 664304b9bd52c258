"""
Quote API request/response schemas.
"""

from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings


def _normalize_currency(value: str) -> str:
    currency = value.strip().upper()
    if currency not in settings.supported_currencies:
        raise ValueError(
            f"Unsupported currency '{value}'. Supported: {', '.join(settings.supported_currencies)}"
        )
    return currency


class GenerateQuoteRequest(BaseModel):
    """Request schema for generating a quote."""

    lead_id: int
    event_id: int
    package_id: int
    addon_ids: list[int] = Field(default_factory=list)
    itinerary_ids: list[int] = Field(default_factory=list)
    travelers: int = Field(ge=1)
    travel_dates: list[date]
    notes: str | None = None
    currency: str = Field(default_factory=lambda: settings.default_currency)

    @field_validator("travelers")
    @classmethod
    def check_travelers(cls, value: int) -> int:
        if value > settings.max_travelers:
            raise ValueError(f"travelers must be at most {settings.max_travelers}")
        return value

    @field_validator("travel_dates")
    @classmethod
    def check_travel_dates(cls, value: list[date]) -> list[date]:
        if len(value) != 2:
            raise ValueError("travel_dates must contain exactly two dates (start, end)")
        start, end = value
        if start >= end:
            raise ValueError("travel start date must be before the end date")
        if start < datetime.now(UTC).date():
            raise ValueError("travel start date cannot be in the past")
        return value

    @field_validator("currency")
    @classmethod
    def check_currency(cls, value: str) -> str:
        return _normalize_currency(value)


class QuoteUpdateRequest(BaseModel):
    """Admin overwrite of stored quote fields. Omitted fields are left unchanged."""

    status: str | None = None
    notes: str | None = None
    calculation_notes: str | None = None
    currency: str | None = None
    travelers: int | None = Field(default=None, ge=1)
    travel_dates: list[date] | None = None
    addon_ids: list[int] | None = None
    itinerary_ids: list[int] | None = None
    expiry_date: datetime | None = None
    base_price: float | None = Field(default=None, ge=0)
    seasonal_rate: float | None = Field(default=None, ge=0, le=1)
    seasonal_amount: float | None = Field(default=None, ge=0)
    early_bird_rate: float | None = Field(default=None, ge=0, le=1)
    early_bird_amount: float | None = Field(default=None, ge=0)
    last_minute_rate: float | None = Field(default=None, ge=0, le=1)
    last_minute_amount: float | None = Field(default=None, ge=0)
    group_rate: float | None = Field(default=None, ge=0, le=1)
    group_amount: float | None = Field(default=None, ge=0)
    weekend_rate: float | None = Field(default=None, ge=0, le=1)
    weekend_amount: float | None = Field(default=None, ge=0)
    addons_total: float | None = Field(default=None, ge=0)
    itineraries_total: float | None = Field(default=None, ge=0)
    subtotal: float | None = Field(default=None, ge=0)
    final_price: float | None = Field(default=None, ge=0)

    @field_validator("currency")
    @classmethod
    def check_currency(cls, value: str | None) -> str | None:
        return _normalize_currency(value) if value is not None else None


class QuoteResponse(BaseModel):
    """Response schema for a single quote. Rates are fractions, amounts are 2-place numbers."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    event_id: int
    package_id: int
    addon_ids: list[int] = Field(default_factory=list)
    itinerary_ids: list[int] = Field(default_factory=list)
    travelers: int
    travel_start: datetime
    travel_end: datetime
    base_price: float
    seasonal_rate: float
    seasonal_amount: float
    early_bird_rate: float
    early_bird_amount: float
    last_minute_rate: float
    last_minute_amount: float
    group_rate: float
    group_amount: float
    weekend_rate: float
    weekend_amount: float
    addons_total: float
    itineraries_total: float
    subtotal: float
    final_price: float
    days_until_event: int | None = None
    includes_weekend: bool
    calculation_notes: str | None = None
    notes: str | None = None
    currency: str
    status: str
    expiry_date: datetime
    email_sent: bool
    email_sent_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None


class GenerateQuoteResponse(BaseModel):
    quote: QuoteResponse
    pricing_breakdown: dict
    calculation_notes: str
