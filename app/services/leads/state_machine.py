"""
Lead lifecycle state machine - defines allowed status transitions and the transition helper.

This centralizes all lead status changes: apply_transition is the only code path that
assigns lead.status, and every call appends an audit row to lead.status_history.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.constants.event_types import EVENT_LEAD_STATUS_CHANGED
from app.constants.statuses import (
    LEAD_STATUSES,
    STATUS_CLOSED_LOST,
    STATUS_CLOSED_WON,
    STATUS_CONTACTED,
    STATUS_INTERESTED,
    STATUS_NEW,
    STATUS_QUOTE_SENT,
)
from app.db.helpers import commit_and_refresh
from app.db.models import Lead, LeadStatusHistory
from app.services.errors import InvalidTransitionError, NotFoundError
from app.services.leads.scoring import calculate_lead_score

logger = logging.getLogger(__name__)

# Define allowed transitions
# Format: {from_status: [allowed_to_statuses]}
ALLOWED_TRANSITIONS = {
    STATUS_NEW: [STATUS_CONTACTED, STATUS_CLOSED_LOST],
    STATUS_CONTACTED: [STATUS_QUOTE_SENT, STATUS_CLOSED_LOST],
    STATUS_QUOTE_SENT: [
        STATUS_INTERESTED,
        STATUS_CONTACTED,  # Follow-up call after the quote
        STATUS_CLOSED_LOST,
    ],
    STATUS_INTERESTED: [
        STATUS_QUOTE_SENT,  # Revised quote
        STATUS_CLOSED_WON,
        STATUS_CLOSED_LOST,
    ],
    STATUS_CLOSED_WON: [
        # Terminal state - no transitions allowed
    ],
    STATUS_CLOSED_LOST: [
        STATUS_CONTACTED,  # Re-engagement
    ],
}

TERMINAL_STATES = {STATUS_CLOSED_WON}

# State semantics (for documentation)
STATE_SEMANTICS = {
    STATUS_NEW: "Lead captured, nobody has reached out yet",
    STATUS_CONTACTED: "Sales has been in touch",
    STATUS_QUOTE_SENT: "At least one quote has been generated for the lead",
    STATUS_INTERESTED: "Lead responded positively to a quote",
    STATUS_CLOSED_WON: "Booking confirmed - terminal success state",
    STATUS_CLOSED_LOST: "Lead declined or went silent (can be re-engaged)",
}


def is_transition_allowed(from_status: str, to_status: str) -> bool:
    """
    Check if a status transition is allowed.

    Unknown statuses are never allowed; staying in the same status always is.

    Args:
        from_status: Current status
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise
    """
    if from_status not in LEAD_STATUSES or to_status not in LEAD_STATUSES:
        return False
    if from_status == to_status:
        return True
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def apply_transition(
    lead: Lead,
    to_status: str,
    actor: str,
    note: str | None = None,
    now: datetime | None = None,
) -> LeadStatusHistory:
    """
    Move a lead to a new status, append the audit entry and recompute the lead score.

    Does not commit: the caller owns the transaction.

    Args:
        lead: Lead object (mutated in place)
        to_status: Target status
        actor: Who made the change (admin email, "system", ...)
        note: Optional free-text note stored on the history entry
        now: Timestamp for the history entry (defaults to current UTC time)

    Returns:
        The appended LeadStatusHistory entry

    Raises:
        InvalidTransitionError: If the transition table rejects the move
    """
    from_status = lead.status

    if not is_transition_allowed(from_status, to_status):
        logger.warning(
            f"Invalid status transition attempted: {from_status} -> {to_status} for lead {lead.id}"
        )
        raise InvalidTransitionError(from_status, to_status, get_allowed_transitions(from_status))

    now = now or datetime.now(UTC)
    entry = LeadStatusHistory(
        from_status=from_status,
        to_status=to_status,
        changed_by=actor,
        notes=note,
        created_at=now,
    )
    lead.status = to_status
    lead.status_history.append(entry)
    lead.lead_score = calculate_lead_score(lead, now)

    logger.info(
        f"Lead {lead.id} transitioned: {from_status} -> {to_status} by {actor}"
        + (f" (note: {note})" if note else "")
    )
    return entry


def change_lead_status(
    db: Session,
    lead_id: int,
    to_status: str,
    actor: str,
    note: str | None = None,
) -> Lead:
    """
    Status-transition operation for admin requests: load, transition, commit.

    Raises:
        NotFoundError: If the lead does not exist
        InvalidTransitionError: If the transition table rejects the move
    """
    lead = db.get(Lead, lead_id)
    if not lead:
        raise NotFoundError("Lead not found")

    apply_transition(lead, to_status, actor=actor, note=note)
    commit_and_refresh(db, lead)

    from app.services.system_event_service import info

    info(
        db=db,
        event_type=EVENT_LEAD_STATUS_CHANGED,
        lead_id=lead.id,
        payload={"to_status": to_status, "changed_by": actor},
    )
    return lead


def get_allowed_transitions(from_status: str) -> list[str]:
    """
    Get list of allowed transitions from a status.

    Args:
        from_status: Current status

    Returns:
        List of allowed target statuses
    """
    return list(ALLOWED_TRANSITIONS.get(from_status, []))


def is_terminal_state(status: str) -> bool:
    return status in TERMINAL_STATES


def get_state_semantics(status: str) -> str | None:
    return STATE_SEMANTICS.get(status)
