"""
Lead and quote status constants - centralized to avoid circular imports.
"""

# Lead pipeline statuses
STATUS_NEW = "NEW"
STATUS_CONTACTED = "CONTACTED"
STATUS_QUOTE_SENT = "QUOTE_SENT"
STATUS_INTERESTED = "INTERESTED"
STATUS_CLOSED_WON = "CLOSED_WON"  # Terminal
STATUS_CLOSED_LOST = "CLOSED_LOST"  # Can be re-engaged

LEAD_STATUSES = (
    STATUS_NEW,
    STATUS_CONTACTED,
    STATUS_QUOTE_SENT,
    STATUS_INTERESTED,
    STATUS_CLOSED_WON,
    STATUS_CLOSED_LOST,
)

# Quote statuses
QUOTE_STATUS_SENT = "SENT"
QUOTE_STATUS_VIEWED = "VIEWED"
QUOTE_STATUS_ACCEPTED = "ACCEPTED"
QUOTE_STATUS_EXPIRED = "EXPIRED"
QUOTE_STATUS_DECLINED = "DECLINED"

QUOTE_STATUSES = (
    QUOTE_STATUS_SENT,
    QUOTE_STATUS_VIEWED,
    QUOTE_STATUS_ACCEPTED,
    QUOTE_STATUS_EXPIRED,
    QUOTE_STATUS_DECLINED,
)

# Actor recorded on history entries written by the service itself
ACTOR_SYSTEM = "system"
