"""
Rated profile models.

CoachProfile and MentorProfile both carry a denormalized {rating, count} pair
that must always equal the mean and count of their current Score rows.
"""

import uuid
from typing import Optional

from sqlalchemy import Float, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import TimestampedModel


class CoachProfile(TimestampedModel):
    """Career coach offering paid sessions."""

    __tablename__ = "coach_profiles"

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
        unique=True,
    )

    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class MentorProfile(TimestampedModel):
    """Job seeker volunteering as a mentor."""

    __tablename__ = "mentor_profiles"

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
        unique=True,
    )

    mentor_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mentor_review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
