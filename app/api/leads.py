import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_lead_or_404
from app.db.deps import get_db
from app.db.models import Lead
from app.schemas.leads import (
    LeadCaptureRequest,
    LeadDetailResponse,
    StatusChangeRequest,
    StatusChangeResponse,
)
from app.services.leads import LeadProfile, capture_lead, change_lead_status

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=LeadDetailResponse, status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadCaptureRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Capture a lead from the website.
    Returns 201 for a new lead, 200 when merged into the existing lead with the same email.
    """
    profile = LeadProfile(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        company=payload.company,
        position=payload.position,
        source=payload.source,
        message=payload.message,
        interested_events=tuple(payload.interested_events),
    )
    lead, created = capture_lead(db, profile, event_id=payload.event_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return lead


@router.get("/{lead_id}", response_model=LeadDetailResponse)
def get_lead(lead: Lead = Depends(get_lead_or_404)):
    """Get a lead with its full status history."""
    return lead


@router.post("/{lead_id}/status", response_model=StatusChangeResponse)
def update_lead_status(
    lead_id: int,
    payload: StatusChangeRequest,
    db: Session = Depends(get_db),
):
    """
    Move a lead to a new status.
    400 with valid_transitions when the transition table rejects the move, 404 if the lead is missing.
    """
    lead = change_lead_status(
        db,
        lead_id,
        payload.status,
        actor=payload.changed_by or "system",
        note=payload.notes,
    )
    return {"lead": lead, "lead_score": lead.lead_score}
