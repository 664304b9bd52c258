"""
Pydantic schemas for API request/response validation.
"""

from app.schemas.leads import (
    LeadCaptureRequest,
    LeadDetailResponse,
    LeadResponse,
    LeadStatusHistoryResponse,
    StatusChangeRequest,
    StatusChangeResponse,
)
from app.schemas.quotes import (
    GenerateQuoteRequest,
    GenerateQuoteResponse,
    QuoteResponse,
    QuoteUpdateRequest,
)

__all__ = [
    "GenerateQuoteRequest",
    "GenerateQuoteResponse",
    "LeadCaptureRequest",
    "LeadDetailResponse",
    "LeadResponse",
    "LeadStatusHistoryResponse",
    "QuoteResponse",
    "QuoteUpdateRequest",
    "StatusChangeRequest",
    "StatusChangeResponse",
]
