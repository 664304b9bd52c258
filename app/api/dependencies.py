"""FastAPI dependencies for API routes."""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.deps import get_db
from app.db.models import Lead
from app.services.errors import NotFoundError
from app.services.leads import get_lead_or_none
from app.services.notifications import EmailQuoteNotifier, QuoteNotifier


def get_lead_or_404(lead_id: int, db: Session = Depends(get_db)) -> Lead:
    """
    Resolve lead by path parameter lead_id; raise 404 if not found.

    Use as a dependency on routes with path parameter {lead_id}.
    """
    lead = get_lead_or_none(db, lead_id)
    if not lead:
        raise NotFoundError("Lead not found")
    return lead


def get_quote_notifier() -> QuoteNotifier:
    """Quote email collaborator; tests override this dependency."""
    return EmailQuoteNotifier()
