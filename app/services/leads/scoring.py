"""
Lead scoring - 0-100 score summed from independent bonuses.

Two formulas coexist:
- calculate_lead_score: pipeline scoring, used on lead capture and every status change
- calculate_conversation_lead_score: AI-conversation scoring, weighs recency higher
  and also rewards leads created within the last 30 days

Both read a lead-like object (ORM Lead or any object with the same attributes).
"""

from datetime import UTC, datetime
from typing import Any

from app.utils.datetime_utils import dt_replace_utc

MAX_SCORE = 100

NAME_BONUS = 10
EMAIL_BONUS = 20
PHONE_BONUS = 15
COMPANY_BONUS = 10
POSITION_BONUS = 5
PER_CONVERSATION = 2
CONVERSATION_CAP = 20
PER_INTERESTED_EVENT = 5
PER_RECOMMENDED_PACKAGE = 5
PER_QUOTE = 10
QUOTE_CAP = 30
PER_ORDER = 15
ORDER_CAP = 45


def _count(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return max(value, 0)
    try:
        return len(value)
    except TypeError:
        return 0


def days_since_creation(lead: Any, now: datetime | None = None) -> int:
    """Whole days since the lead was created (0 for leads not yet persisted)."""
    created_at = dt_replace_utc(getattr(lead, "created_at", None))
    if created_at is None:
        return 0
    now = dt_replace_utc(now) if now else datetime.now(UTC)
    return (now - created_at).days


def _base_score(lead: Any) -> int:
    score = 0

    # Contact completeness
    if getattr(lead, "name", None):
        score += NAME_BONUS
    if getattr(lead, "email", None):
        score += EMAIL_BONUS
    if getattr(lead, "phone", None):
        score += PHONE_BONUS

    # Engagement
    score += min(_count(getattr(lead, "conversation_count", 0)) * PER_CONVERSATION, CONVERSATION_CAP)
    score += _count(getattr(lead, "interested_events", None)) * PER_INTERESTED_EVENT
    score += _count(getattr(lead, "recommended_packages", None)) * PER_RECOMMENDED_PACKAGE

    # Firmographic
    if getattr(lead, "company", None):
        score += COMPANY_BONUS
    if getattr(lead, "position", None):
        score += POSITION_BONUS

    # Pipeline progress
    score += min(_count(getattr(lead, "quotes", None)) * PER_QUOTE, QUOTE_CAP)
    score += min(_count(getattr(lead, "order_count", 0)) * PER_ORDER, ORDER_CAP)
    return score


def clamp_score(score: int) -> int:
    return max(0, min(score, MAX_SCORE))


def calculate_lead_score(lead: Any, now: datetime | None = None) -> int:
    score = _base_score(lead)
    if days_since_creation(lead, now) <= 7:
        score += 15
    return clamp_score(score)


def calculate_conversation_lead_score(lead: Any, now: datetime | None = None) -> int:
    score = _base_score(lead)
    age_days = days_since_creation(lead, now)
    if age_days <= 7:
        score += 20
    elif age_days <= 30:
        score += 10
    return clamp_score(score)
