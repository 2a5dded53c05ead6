"""
Score router - ratings for coaches and mentors.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.dependencies import require_auth_context
from hiring_core.db.session import get_db
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.score import AggregateRating, ScoreUpsert, ScoreUpsertResult
from hiring_core.services.score_aggregator import ScoreAggregator

router = APIRouter(prefix="/scores", tags=["scores"])


@router.put("/{target_type}/{target_id}", response_model=ScoreUpsertResult)
async def upsert_score(
    target_type: str,
    target_id: UUID,
    data: ScoreUpsert,
    actor: AuthContext = Depends(require_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Rate a coach or mentor; re-rating replaces the caller's earlier score."""
    service = ScoreAggregator(db)
    return await service.upsert_score(target_type, target_id, actor.account_id, data.rating, data.comment)


@router.delete("/{target_type}/{score_id}", response_model=AggregateRating)
async def delete_score(
    target_type: str,
    score_id: UUID,
    actor: AuthContext = Depends(require_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Moderation: platform admins remove a score."""
    service = ScoreAggregator(db)
    return await service.delete_score(target_type, score_id, actor)
