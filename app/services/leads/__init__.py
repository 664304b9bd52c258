"""Lead capture, lifecycle and scoring. Re-exports for stable public API."""

from app.services.leads.leads import (
    LeadProfile,
    capture_lead,
    get_lead_or_none,
    merge_lead_profile,
)
from app.services.leads.scoring import (
    calculate_conversation_lead_score,
    calculate_lead_score,
)
from app.services.leads.state_machine import (
    ALLOWED_TRANSITIONS,
    apply_transition,
    change_lead_status,
    get_allowed_transitions,
    is_transition_allowed,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "LeadProfile",
    "apply_transition",
    "calculate_conversation_lead_score",
    "calculate_lead_score",
    "capture_lead",
    "change_lead_status",
    "get_allowed_transitions",
    "get_lead_or_none",
    "is_transition_allowed",
    "merge_lead_profile",
]
