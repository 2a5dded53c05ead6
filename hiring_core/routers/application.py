"""
Application router - stage transitions, withdrawal and reopening.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.dependencies import get_auth_context
from hiring_core.db.session import get_db
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.pipeline import (
    AdvanceStageRequest,
    ApplicationRead,
    ReopenApplicationRequest,
    StageTransitionResult,
    WithdrawApplicationRequest,
)
from hiring_core.services.pipeline_service import PipelineService

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("/{application_id}/stage", response_model=StageTransitionResult)
async def advance_stage(
    application_id: UUID,
    data: AdvanceStageRequest,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Move an application to another stage.

    Blocked transitions return 409 with the unmet requirements in
    error.details.blockers.
    """
    service = PipelineService(db)
    return await service.advance_stage(
        application_id,
        data.target_stage,
        actor,
        rejection_reason=data.rejection_reason,
        reject_remaining=data.reject_remaining,
    )


@router.post("/{application_id}/withdraw", response_model=ApplicationRead)
async def withdraw_application(
    application_id: UUID,
    data: Optional[WithdrawApplicationRequest] = None,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Candidate withdraws their own application."""
    service = PipelineService(db)
    return await service.withdraw(application_id, actor, reason=data.reason if data else None)


@router.post("/{application_id}/reopen", response_model=StageTransitionResult)
async def reopen_application(
    application_id: UUID,
    data: Optional[ReopenApplicationRequest] = None,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    service = PipelineService(db)
    data = data or ReopenApplicationRequest()
    return await service.reopen(application_id, actor, restore_to_stage=data.restore_to_stage)
