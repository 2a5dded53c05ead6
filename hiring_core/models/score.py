"""
Score model.

One rating per rater per rated target. The denormalized aggregate lives on the
target row (see rated_profile.py) and is recomputed from these rows.
"""

import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import TimestampedModel


class Score(TimestampedModel):
    """An individual rating of a coach or mentor."""

    __tablename__ = "scores"

    # "coach" or "mentor"
    target_type: Mapped[str] = mapped_column(String(30), nullable=False)
    target_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    rater_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("target_type", "target_id", "rater_account_id", name="uq_scores_target_rater"),
        Index("ix_scores_target", "target_type", "target_id"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_scores_rating_range"),
    )
