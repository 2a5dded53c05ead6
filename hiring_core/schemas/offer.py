"""
Pydantic schemas for offers.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from hiring_core.schemas.base import TimestampedRead


class OfferCreate(BaseModel):
    """Request to draft an offer for an application."""

    application_id: UUID


class OfferWithdrawRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class OfferRead(TimestampedRead):
    """Read model for offers."""

    organization_id: UUID
    application_id: UUID
    status: str
    previous_stage: Optional[str] = None
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    withdrawal_reason: Optional[str] = None
    deleted_at: Optional[datetime] = None


class OfferTransitionResult(BaseModel):
    """Offer together with the owning application's stage after the change."""

    offer: OfferRead
    application_stage: str


class OfferViewResult(BaseModel):
    """Result of a candidate opening an offer."""

    offer_id: UUID
    status: str
    viewed_at: Optional[datetime] = None
    # False when the call was a no-op
    first_view: bool
