"""
Event type constants for SystemEvent.

Use these instead of string literals to ensure consistency.
"""

# ---- Leads ----
EVENT_LEAD_CAPTURED = "lead.captured"
EVENT_LEAD_STATUS_CHANGED = "lead.status_changed"

# ---- Quotes ----
EVENT_QUOTE_GENERATED = "quote.generated"
EVENT_QUOTE_LEAD_TRANSITION_SKIPPED = "quote.lead_transition_skipped"

# ---- Email ----
EVENT_QUOTE_EMAIL_SENT = "email.quote_sent"
EVENT_QUOTE_EMAIL_FAILURE = "email.quote_send_failure"
