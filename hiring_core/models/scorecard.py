"""
Scorecard and Interview models.

Both are per-application, per-stage records counted by stage gates.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import TimestampedModel


class InterviewStatus:
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    ACTIVE = [SCHEDULED, IN_PROGRESS]


class Scorecard(TimestampedModel):
    """A reviewer's structured evaluation of a candidate at one stage."""

    __tablename__ = "scorecards"

    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("applications.id"),
        nullable=False,
    )
    stage_id: Mapped[str] = mapped_column(String(100), nullable=False)
    scorer_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization_members.id"),
        nullable=False,
    )
    overall_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    recommendation: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_scorecards_application_stage", "application_id", "stage_id"),
    )


class Interview(TimestampedModel):
    """An interview held (or planned) for an application at one stage."""

    __tablename__ = "interviews"

    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("applications.id"),
        nullable=False,
    )
    stage_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InterviewStatus.SCHEDULED)

    __table_args__ = (
        Index("ix_interviews_application_stage", "application_id", "stage_id"),
    )
