"""
ApprovalRequest model.

Generic second-party sign-off keyed by (entity_type, entity_id, approval_type).
Once APPROVED or REJECTED a request is immutable, apart from consumed_at which
records the single downstream action an approval authorized.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import OrgScopedModel


class ApprovalStatus:
    """Approval request statuses."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    RESPONSES = [APPROVED, REJECTED]


class ApprovalType:
    """Sensitive actions that may be gated by an approval."""
    JOB_PUBLISH = "JOB_PUBLISH"
    OFFER_SEND = "OFFER_SEND"

    ALL = [JOB_PUBLISH, OFFER_SEND]


class ApprovalRequest(OrgScopedModel):
    """A request for a designated approver to sign off on one action."""

    __tablename__ = "approval_requests"

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    approval_type: Mapped[str] = mapped_column(String(50), nullable=False)

    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization_members.id"),
        nullable=False,
    )
    approver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization_members.id"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ApprovalStatus.PENDING)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    consumed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_approval_requests_key", "entity_type", "entity_id", "approval_type"),
    )
