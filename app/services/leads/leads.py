import logging
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.constants.event_types import EVENT_LEAD_CAPTURED
from app.constants.statuses import ACTOR_SYSTEM, STATUS_NEW
from app.db.helpers import commit_and_refresh
from app.db.models import Lead, LeadStatusHistory
from app.services.leads.scoring import calculate_lead_score

logger = logging.getLogger(__name__)

# Contact/profile fields copied between LeadProfile snapshots and Lead rows
PROFILE_FIELDS = ("name", "email", "phone", "company", "position", "source", "message")


@dataclass(frozen=True)
class LeadProfile:
    """Immutable snapshot of the visitor-supplied part of a lead."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None
    source: str | None = None
    message: str | None = None
    interested_events: tuple[int, ...] = field(default_factory=tuple)


def profile_from_lead(lead: Lead) -> LeadProfile:
    return LeadProfile(
        **{name: getattr(lead, name) for name in PROFILE_FIELDS},
        interested_events=tuple(lead.interested_events or ()),
    )


def merge_lead_profile(existing: LeadProfile, update: LeadProfile) -> LeadProfile:
    """
    Return a new profile where every absent (None/empty) field of update keeps the
    existing value. Interested events are merged as an ordered union.
    """
    changes = {}
    for f in fields(LeadProfile):
        if f.name == "interested_events":
            continue
        value = getattr(update, f.name)
        if value:
            changes[f.name] = value

    merged_events = list(existing.interested_events)
    for event_id in update.interested_events:
        if event_id not in merged_events:
            merged_events.append(event_id)
    changes["interested_events"] = tuple(merged_events)

    return replace(existing, **changes)


def get_lead_or_none(db: Session, lead_id: int) -> Lead | None:
    """
    Load a lead by ID. Returns None if not found.

    Use when the caller will handle "not found" (e.g. raise, log).
    """
    return db.get(Lead, lead_id)


def find_lead_by_email(db: Session, email: str) -> Lead | None:
    stmt = select(Lead).where(Lead.email == email).order_by(desc(Lead.created_at)).limit(1)
    return db.execute(stmt).scalars().first()


def capture_lead(
    db: Session,
    profile: LeadProfile,
    event_id: int | None = None,
    now: datetime | None = None,
) -> tuple[Lead, bool]:
    """
    Create a lead from a public submission, or merge it into the existing lead
    with the same email.

    Policy:
    - Existing lead (matched by email) -> merge, keep its status and history
    - Otherwise -> new lead in NEW with its creation audit entry (None -> NEW)
    Either way the score is recomputed.

    Args:
        db: Database session
        profile: Submitted contact data
        event_id: Optional event the visitor showed interest in
        now: Reference time (defaults to current UTC time)

    Returns:
        (lead, created) tuple
    """
    now = now or datetime.now(UTC)
    if event_id is not None:
        profile = replace(profile, interested_events=(*profile.interested_events, event_id))

    existing = find_lead_by_email(db, profile.email) if profile.email else None

    if existing:
        merged = merge_lead_profile(profile_from_lead(existing), profile)
        for name in PROFILE_FIELDS:
            setattr(existing, name, getattr(merged, name))
        existing.interested_events = list(merged.interested_events)
        lead, created = existing, False
        logger.info(f"Updated existing lead: {lead.id}")
    else:
        lead = Lead(
            **{name: getattr(profile, name) for name in PROFILE_FIELDS if getattr(profile, name)},
            interested_events=list(dict.fromkeys(profile.interested_events)),
            recommended_packages=[],
            conversation_count=0,
            order_count=0,
            role="lead",
            status=STATUS_NEW,
            lead_score=0,
            created_at=now,
        )
        lead.status_history.append(
            LeadStatusHistory(
                from_status=None,
                to_status=STATUS_NEW,
                changed_by=ACTOR_SYSTEM,
                notes="Lead created from website",
                created_at=now,
            )
        )
        db.add(lead)
        created = True

    lead.lead_score = calculate_lead_score(lead, now)
    commit_and_refresh(db, lead)

    if created:
        logger.info(f"Created new lead: {lead.id}")

    from app.services.system_event_service import info

    info(
        db=db,
        event_type=EVENT_LEAD_CAPTURED,
        lead_id=lead.id,
        payload={"created": created, "lead_score": lead.lead_score},
    )
    return lead, created
