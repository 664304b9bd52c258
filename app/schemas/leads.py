"""
Lead API request/response schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.constants.statuses import ACTOR_SYSTEM, LEAD_STATUSES


class LeadCaptureRequest(BaseModel):
    """Public lead capture form. Every contact field is optional."""

    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=200)
    position: str | None = Field(default=None, max_length=200)
    source: str | None = Field(default="website", max_length=50)
    message: str | None = None
    event_id: int | None = None
    interested_events: list[int] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("email must be a valid email address")
        return value


class StatusChangeRequest(BaseModel):
    """Request schema for moving a lead to a new status."""

    status: str
    notes: str | None = None
    changed_by: str = ACTOR_SYSTEM

    @field_validator("status")
    @classmethod
    def check_status(cls, value: str) -> str:
        status = value.strip().upper()
        if status not in LEAD_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(LEAD_STATUSES)}")
        return status


class LeadStatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_status: str | None = None
    to_status: str
    changed_by: str
    notes: str | None = None
    created_at: datetime


class LeadResponse(BaseModel):
    """Response schema for a single lead."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None
    source: str | None = None
    message: str | None = None
    status: str
    lead_score: int
    interested_events: list[int] = Field(default_factory=list)
    recommended_packages: list[int] = Field(default_factory=list)
    conversation_count: int = 0
    order_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None


class LeadDetailResponse(LeadResponse):
    status_history: list[LeadStatusHistoryResponse] = Field(default_factory=list)


class StatusChangeResponse(BaseModel):
    lead: LeadDetailResponse
    lead_score: int
