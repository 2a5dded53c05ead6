"""
Pydantic schemas for ratings.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from hiring_core.schemas.base import TimestampedRead


class ScoreUpsert(BaseModel):
    """Payload to rate a coach or mentor. The rating range is enforced by the service."""

    rating: int
    comment: Optional[str] = Field(default=None, max_length=2000)


class ScoreRead(TimestampedRead):
    target_type: str
    target_id: UUID
    rater_account_id: UUID
    rating: int
    comment: Optional[str] = None


class AggregateRating(BaseModel):
    """Denormalized {rating, count} stored on the rated target."""

    target_type: str
    target_id: UUID
    rating: Optional[float] = None
    count: int


class ScoreUpsertResult(BaseModel):
    score: ScoreRead
    aggregate: AggregateRating
