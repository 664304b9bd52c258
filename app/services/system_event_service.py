"""
System event logging service.

Records lead pipeline milestones and side-effect failures (quote emails, skipped
lead transitions) to the system_events table, next to the regular log lines.
All SystemEvent creation should go through log_event (or info/warn/error) so the
payload shape stays consistent.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, desc, select
from sqlalchemy.orm import Session

from app.db.models import SystemEvent
from app.middleware.correlation_id import get_correlation_id

logger = logging.getLogger(__name__)

# Default retention: delete events older than this many days
DEFAULT_RETENTION_DAYS = 90

LEVEL_INFO = "INFO"
LEVEL_WARN = "WARN"
LEVEL_ERROR = "ERROR"


def log_event(
    db: Session,
    level: str,
    event_type: str,
    lead_id: int | None = None,
    payload: dict | None = None,
    exc: BaseException | None = None,
    correlation_id: str | None = None,
) -> SystemEvent:
    """
    Log a system event to the database.

    Args:
        db: Database session
        level: Event level (INFO, WARN, ERROR)
        event_type: Type of event (e.g., "quote.generated", "email.quote_send_failure")
        lead_id: Optional lead ID associated with the event
        payload: Optional additional event data (copied, never mutated)
        exc: Optional exception; its type and message are added to the payload
        correlation_id: Optional correlation ID (defaults to the current request's)

    Returns:
        Created SystemEvent object
    """
    normalized: dict = dict(payload) if payload else {}
    if exc is not None:
        normalized["error"] = {
            "type": type(exc).__name__,
            "message": str(exc)[:500],  # Truncate to avoid huge payloads
        }
    resolved_cid = correlation_id or get_correlation_id()
    if resolved_cid is not None:
        normalized["correlation_id"] = resolved_cid

    event = SystemEvent(
        level=level.upper(),
        event_type=event_type,
        lead_id=lead_id,
        payload=normalized or None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def info(db: Session, event_type: str, lead_id: int | None = None, **kwargs) -> SystemEvent:
    return log_event(db, level=LEVEL_INFO, event_type=event_type, lead_id=lead_id, **kwargs)


def warn(db: Session, event_type: str, lead_id: int | None = None, **kwargs) -> SystemEvent:
    return log_event(db, level=LEVEL_WARN, event_type=event_type, lead_id=lead_id, **kwargs)


def error(db: Session, event_type: str, lead_id: int | None = None, **kwargs) -> SystemEvent:
    return log_event(db, level=LEVEL_ERROR, event_type=event_type, lead_id=lead_id, **kwargs)


def list_events(
    db: Session,
    *,
    lead_id: int | None = None,
    event_type: str | None = None,
    limit: int = 50,
) -> list[SystemEvent]:
    """Most recent events first, optionally filtered by lead and/or type."""
    stmt = select(SystemEvent).order_by(desc(SystemEvent.id))
    if lead_id is not None:
        stmt = stmt.where(SystemEvent.lead_id == lead_id)
    if event_type:
        stmt = stmt.where(SystemEvent.event_type == event_type)
    stmt = stmt.limit(max(0, min(limit, 200)))
    return list(db.execute(stmt).scalars().all())


def cleanup_old_events(
    db: Session,
    *,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    cutoff: datetime | None = None,
) -> int:
    """
    Delete SystemEvents older than retention_days (or before cutoff if provided).

    Returns:
        Number of rows deleted
    """
    if cutoff is None:
        cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    if cutoff.tzinfo is None:
        cutoff = cutoff.replace(tzinfo=UTC)
    stmt = delete(SystemEvent).where(SystemEvent.created_at < cutoff)
    result = db.execute(stmt)
    db.commit()
    deleted = result.rowcount
    logger.info(f"SystemEvent retention: deleted {deleted} events older than {cutoff.isoformat()}")
    return deleted
