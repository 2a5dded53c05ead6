"""
Application model.

A candidate's attempt at one job. Withdrawal is a soft delete (deleted_at);
rows are never physically removed.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import TimestampedModel


class Application(TimestampedModel):
    """
    Application table - a candidate in a job's funnel.

    stage is a free-form funnel label (applied/screening/interview/offer/...)
    matching one of the job's stage ids or a special action stage.
    """
    
    __tablename__ = "applications"
    
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("jobs.id"),
        nullable=False,
        index=True,
    )
    
    # The candidate who owns (and alone may withdraw) the application
    candidate_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )
    
    stage: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="applied",
    )
    
    # Stage-derived timestamps
    offered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    hired_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    rejected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    rejection_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    
    # Soft delete (set on withdrawal)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_applications_job_stage", "job_id", "stage"),
    )
