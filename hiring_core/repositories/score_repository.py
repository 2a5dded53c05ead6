"""
Score repository - database operations for individual ratings.
"""

import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.score import Score


class ScoreRepository:
    """Repository for Score database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, target_type: str, score_id: UUID) -> Optional[Score]:
        result = await self.db.execute(
            select(Score).where(
                Score.id == score_id,
                Score.target_type == target_type,
            )
        )
        return result.scalar_one_or_none()
    
    async def get_for_rater(self, target_type: str, target_id: UUID, rater_id: UUID) -> Optional[Score]:
        """Get the rater's current score for a target."""
        result = await self.db.execute(
            select(Score).where(
                Score.target_type == target_type,
                Score.target_id == target_id,
                Score.rater_account_id == rater_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def upsert(
        self,
        target_type: str,
        target_id: UUID,
        rater_id: UUID,
        rating: int,
        comment: Optional[str],
    ) -> Score:
        """Replace the rater's score for the target, or create it (last write wins)."""
        score = await self.get_for_rater(target_type, target_id, rater_id)
        if score is None:
            score = Score(
                id=uuid.uuid4(),
                target_type=target_type,
                target_id=target_id,
                rater_account_id=rater_id,
                rating=rating,
                comment=comment,
            )
            self.db.add(score)
        else:
            score.rating = rating
            score.comment = comment
        await self.db.flush()
        return score
    
    async def list_ratings(self, target_type: str, target_id: UUID) -> List[int]:
        """All current rating values for a target."""
        result = await self.db.execute(
            select(Score.rating).where(
                Score.target_type == target_type,
                Score.target_id == target_id,
            )
        )
        return [int(value) for value in result.scalars().all()]
    
    async def delete(self, score: Score) -> None:
        await self.db.delete(score)
        await self.db.flush()
