"""
Pydantic schemas for approval requests.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from hiring_core.schemas.base import TimestampedRead


class ApprovalCreate(BaseModel):
    """Payload to request a sign-off."""

    entity_type: str = Field(..., min_length=1, max_length=50)
    entity_id: UUID
    approval_type: Literal["JOB_PUBLISH", "OFFER_SEND"]
    approver_id: UUID
    reason: Optional[str] = Field(default=None, max_length=1000)


class ApprovalRespond(BaseModel):
    """Approver's decision. Validated again by the service."""

    status: str
    reason: Optional[str] = Field(default=None, max_length=1000)


class ApprovalRead(TimestampedRead):
    """Read model for approval requests."""

    organization_id: UUID
    entity_type: str
    entity_id: UUID
    approval_type: str
    requester_id: UUID
    approver_id: UUID
    status: str
    reason: Optional[str] = None
    responded_at: Optional[datetime] = None
    consumed_at: Optional[datetime] = None
