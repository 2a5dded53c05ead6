"""
Job router - stage configuration and stage-gate checks.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.dependencies import get_auth_context
from hiring_core.db.session import get_db
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.pipeline import TransitionPlan
from hiring_core.schemas.stage_config import JobStagesUpdate, StageDefinition
from hiring_core.services.job_stage_service import JobStageService
from hiring_core.services.pipeline_service import PipelineService

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}/stages", response_model=List[StageDefinition])
async def get_job_stages(
    job_id: UUID,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Resolved stage list of a job (defaults when none is configured)."""
    service = JobStageService(db)
    return await service.get_stages(job_id, actor)


@router.put("/{job_id}/stages", response_model=List[StageDefinition])
async def update_job_stages(
    job_id: UUID,
    data: JobStagesUpdate,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Replace a job's stage list. Malformed configuration returns 422."""
    service = JobStageService(db)
    return await service.update_stages(job_id, data.stages, actor)


@router.get("/{job_id}/applications/{application_id}/stage-gate", response_model=TransitionPlan)
async def get_stage_gate(
    job_id: UUID,
    application_id: UUID,
    to_stage: str = Query(..., min_length=1, max_length=100),
    from_stage: Optional[str] = Query(None, max_length=100),
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Check a proposed move without applying it.

    from_stage defaults to the application's current stage.
    """
    service = PipelineService(db)
    return await service.plan_transition(job_id, application_id, to_stage, actor, from_stage=from_stage)
