"""
Score aggregation for rated profiles.

Coaches and mentors carry a denormalized {rating, count}. It is always
recomputed from every current score of the target, inside the same
transaction as the write that changed the scores, so it never drifts.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Tuple, Type
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.db.session import atomic
from hiring_core.errors import Forbidden, NotFound, ValidationFailed
from hiring_core.models.rated_profile import CoachProfile, MentorProfile
from hiring_core.repositories.score_repository import ScoreRepository
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.score import AggregateRating, ScoreRead, ScoreUpsertResult
from hiring_core.services.access_control import require_actor

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class RatedTarget:
    """Where a target type keeps its aggregate."""

    target_type: str
    model: Type[Any]
    rating_field: str
    count_field: str


RATED_TARGETS: Dict[str, RatedTarget] = {
    "coach": RatedTarget("coach", CoachProfile, "rating", "review_count"),
    "mentor": RatedTarget("mentor", MentorProfile, "mentor_rating", "mentor_review_count"),
}


def compute_aggregate(ratings: List[int]) -> Tuple[Optional[float], int]:
    """Mean rounded half-up to one decimal, and the count. No ratings gives (None, 0)."""
    if not ratings:
        return None, 0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)), len(ratings)


def validate_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationFailed(
            "INVALID_RATING",
            f"Rating must be a whole number from {MIN_RATING} to {MAX_RATING}",
            {"rating": rating},
        )
    return rating


class ScoreAggregator:
    """Writes scores and keeps the rated profile's aggregate in step."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ScoreRepository(db)

    @staticmethod
    def _target(target_type: str) -> RatedTarget:
        target = RATED_TARGETS.get(target_type)
        if target is None:
            raise ValidationFailed(
                "UNKNOWN_TARGET_TYPE",
                f"'{target_type}' cannot be rated",
                {"allowed": sorted(RATED_TARGETS)},
            )
        return target

    async def _load_profile(self, target: RatedTarget, target_id: UUID):
        result = await self.db.execute(select(target.model).where(target.model.id == target_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFound("TARGET_NOT_FOUND", f"{target.target_type.title()} not found")
        return profile

    async def _recompute(self, target: RatedTarget, profile) -> AggregateRating:
        ratings = await self.repository.list_ratings(target.target_type, profile.id)
        rating, count = compute_aggregate(ratings)
        setattr(profile, target.rating_field, rating)
        setattr(profile, target.count_field, count)
        await self.db.flush()
        return AggregateRating(target_type=target.target_type, target_id=profile.id, rating=rating, count=count)

    async def upsert_score(
        self,
        target_type: str,
        target_id: UUID,
        rater_id: UUID,
        rating: Any,
        comment: Optional[str] = None,
    ) -> ScoreUpsertResult:
        """
        Record the rater's score for a target, replacing any earlier one.

        Raises:
            ValidationFailed: rating outside 1-5 or unknown target type
            NotFound: target does not exist
            Forbidden: rater owns the target profile
        """
        target = self._target(target_type)
        rating = validate_rating(rating)

        async with atomic(self.db, f"upsert_{target_type}_score"):
            profile = await self._load_profile(target, target_id)
            if profile.account_id == rater_id:
                raise Forbidden("SELF_RATING", "You cannot rate your own profile")

            score = await self.repository.upsert(target_type, target_id, rater_id, rating, comment)
            aggregate = await self._recompute(target, profile)
            result = ScoreUpsertResult(score=ScoreRead.model_validate(score), aggregate=aggregate)

        logger.info(
            "%s %s rated %d by %s; aggregate %s over %d",
            target_type,
            target_id,
            rating,
            rater_id,
            aggregate.rating,
            aggregate.count,
        )
        return result

    async def delete_score(
        self,
        target_type: str,
        score_id: UUID,
        actor: Optional[AuthContext],
    ) -> AggregateRating:
        """Remove a score (moderation) and recompute the target's aggregate."""
        ctx = require_actor(actor)
        if not ctx.is_platform_admin:
            raise Forbidden("PLATFORM_ADMIN_REQUIRED", "Only platform admins can delete scores")
        target = self._target(target_type)

        async with atomic(self.db, f"delete_{target_type}_score"):
            score = await self.repository.get_by_id(target_type, score_id)
            if score is None:
                raise NotFound("SCORE_NOT_FOUND", "Score not found")
            profile = await self._load_profile(target, score.target_id)
            await self.repository.delete(score)
            aggregate = await self._recompute(target, profile)

        logger.info("Score %s deleted by platform admin %s", score_id, ctx.account_id)
        return aggregate

    async def recompute(self, target_type: str, target_id: UUID) -> AggregateRating:
        """Rebuild a target's aggregate from its scores (repair path)."""
        target = self._target(target_type)
        async with atomic(self.db, f"recompute_{target_type}_rating"):
            profile = await self._load_profile(target, target_id)
            aggregate = await self._recompute(target, profile)
        return aggregate
