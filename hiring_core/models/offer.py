"""
Offer model.

One-to-one with a non-deleted Application. Status only advances
DRAFT -> SENT -> VIEWED -> SIGNED, or moves to WITHDRAWN from any
non-terminal status.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import OrgScopedModel


class OfferStatus:
    """Offer statuses."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    VIEWED = "VIEWED"
    SIGNED = "SIGNED"
    WITHDRAWN = "WITHDRAWN"

    ALL = [DRAFT, SENT, VIEWED, SIGNED, WITHDRAWN]
    TERMINAL = [SIGNED, WITHDRAWN]
    WITHDRAWABLE = [DRAFT, SENT, VIEWED]


class Offer(OrgScopedModel):
    """Offer extended to the candidate of one application."""

    __tablename__ = "offers"

    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("applications.id"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OfferStatus.DRAFT)

    # Application stage held before the offer; restored on withdrawal
    previous_stage: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_by_member_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization_members.id"),
        nullable=True,
    )

    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    withdrawn_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    withdrawal_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # At most one non-deleted offer per application
        Index(
            "uq_offers_application_active",
            "application_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
