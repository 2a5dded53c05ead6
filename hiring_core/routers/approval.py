"""
Approval router - request and answer sign-offs.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.dependencies import get_auth_context
from hiring_core.db.session import get_db
from hiring_core.schemas.approval import ApprovalCreate, ApprovalRead, ApprovalRespond
from hiring_core.schemas.auth import AuthContext
from hiring_core.services.approval_service import ApprovalService

router = APIRouter(prefix="/approvals", tags=["approvals"])


@router.get("", response_model=List[ApprovalRead])
async def list_approvals(
    status: Optional[str] = None,
    approval_type: Optional[str] = None,
    limit: int = Query(25, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Approvals the caller requested or must answer."""
    service = ApprovalService(db)
    return await service.list_for_member(
        actor,
        status=status,
        approval_type=approval_type,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=ApprovalRead, status_code=status.HTTP_201_CREATED)
async def request_approval(
    data: ApprovalCreate,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    service = ApprovalService(db)
    return await service.request(
        data.entity_type,
        data.entity_id,
        data.approval_type,
        data.approver_id,
        actor,
        reason=data.reason,
    )


@router.post("/{approval_id}/respond", response_model=ApprovalRead)
async def respond_to_approval(
    approval_id: UUID,
    data: ApprovalRespond,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject. A second response returns 409."""
    service = ApprovalService(db)
    return await service.respond(approval_id, data.status, data.reason, actor)
