import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_quote_notifier
from app.db.deps import get_db
from app.schemas.quotes import (
    GenerateQuoteRequest,
    GenerateQuoteResponse,
    QuoteResponse,
    QuoteUpdateRequest,
)
from app.services.notifications import QuoteNotifier
from app.services.quote_service import (
    QuoteRequest,
    delete_quote,
    generate_quote,
    get_quote,
    list_quotes,
    update_quote,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate", response_model=GenerateQuoteResponse, status_code=status.HTTP_201_CREATED)
async def generate(
    payload: GenerateQuoteRequest,
    db: Session = Depends(get_db),
    notifier: QuoteNotifier = Depends(get_quote_notifier),
):
    """
    Generate a priced quote for a lead, move the lead to QUOTE_SENT and email the quote.
    404 for a missing lead/event/package, 400 when the package belongs to another event.
    """
    request = QuoteRequest(
        lead_id=payload.lead_id,
        event_id=payload.event_id,
        package_id=payload.package_id,
        travelers=payload.travelers,
        travel_dates=(payload.travel_dates[0], payload.travel_dates[1]),
        addon_ids=payload.addon_ids,
        itinerary_ids=payload.itinerary_ids,
        notes=payload.notes,
        currency=payload.currency,
    )
    result = await generate_quote(db, request, notifier)
    return {
        "quote": result.quote,
        "pricing_breakdown": result.computation.pricing_breakdown(),
        "calculation_notes": result.computation.calculation_notes,
    }


@router.get("", response_model=list[QuoteResponse])
def list_all_quotes(
    lead_id: int | None = None,
    event_id: int | None = None,
    status: str | None = None,
    limit: int = 50,
    db: Session = Depends(get_db),
):
    """
    List quotes, newest first.
    Query params: lead_id, event_id, status (SENT, VIEWED, ACCEPTED, EXPIRED, DECLINED), limit (default 50).
    """
    return list_quotes(db, lead_id=lead_id, event_id=event_id, status=status, limit=limit)


@router.get("/{quote_id}", response_model=QuoteResponse)
def read_quote(quote_id: int, db: Session = Depends(get_db)):
    return get_quote(db, quote_id)


@router.patch("/{quote_id}", response_model=QuoteResponse)
def patch_quote(quote_id: int, payload: QuoteUpdateRequest, db: Session = Depends(get_db)):
    """Overwrite stored quote fields. Pricing is not recomputed."""
    return update_quote(db, quote_id, payload.model_dump(exclude_unset=True))


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_quote(quote_id: int, db: Session = Depends(get_db)):
    delete_quote(db, quote_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
