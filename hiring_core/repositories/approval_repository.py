"""
ApprovalRequest repository - database operations for approvals.
"""

import uuid
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.approval_request import ApprovalRequest, ApprovalStatus


class ApprovalRepository:
    """Repository for ApprovalRequest database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, organization_id: UUID, approval_id: UUID) -> Optional[ApprovalRequest]:
        """Get an approval by ID for a specific organization."""
        result = await self.db.execute(
            select(ApprovalRequest).where(
                ApprovalRequest.id == approval_id,
                ApprovalRequest.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def latest_for_key(
        self,
        organization_id: UUID,
        entity_type: str,
        entity_id: UUID,
        approval_type: str,
        status: Optional[str] = None,
    ) -> Optional[ApprovalRequest]:
        """Most recent request for (entity_type, entity_id, approval_type)."""
        query = select(ApprovalRequest).where(
            ApprovalRequest.organization_id == organization_id,
            ApprovalRequest.entity_type == entity_type,
            ApprovalRequest.entity_id == entity_id,
            ApprovalRequest.approval_type == approval_type,
        )
        if status is not None:
            query = query.where(ApprovalRequest.status == status)
        query = query.order_by(ApprovalRequest.created_at.desc()).limit(1)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
    
    async def create(
        self,
        organization_id: UUID,
        entity_type: str,
        entity_id: UUID,
        approval_type: str,
        requester_id: UUID,
        approver_id: UUID,
        reason: Optional[str] = None,
    ) -> ApprovalRequest:
        """Create a PENDING approval request."""
        approval = ApprovalRequest(
            id=uuid.uuid4(),
            organization_id=organization_id,
            entity_type=entity_type,
            entity_id=entity_id,
            approval_type=approval_type,
            requester_id=requester_id,
            approver_id=approver_id,
            status=ApprovalStatus.PENDING,
            reason=reason,
        )
        self.db.add(approval)
        await self.db.flush()
        return approval
    
    async def resolve(
        self,
        approval: ApprovalRequest,
        status: str,
        reason: Optional[str],
        responded_at: datetime,
    ) -> bool:
        """Resolve a PENDING request. False if it was already resolved."""
        values = {"status": status, "responded_at": responded_at, "updated_at": responded_at}
        if reason is not None:
            values["reason"] = reason
        result = await self.db.execute(
            update(ApprovalRequest)
            .where(
                ApprovalRequest.id == approval.id,
                ApprovalRequest.status == ApprovalStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            return False
        for field, value in values.items():
            setattr(approval, field, value)
        return True
    
    async def mark_consumed(self, approval: ApprovalRequest, consumed_at: datetime) -> bool:
        """Stamp an APPROVED request as used. False if it was used already."""
        result = await self.db.execute(
            update(ApprovalRequest)
            .where(
                ApprovalRequest.id == approval.id,
                ApprovalRequest.status == ApprovalStatus.APPROVED,
                ApprovalRequest.consumed_at.is_(None),
            )
            .values(consumed_at=consumed_at, updated_at=consumed_at)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            return False
        approval.consumed_at = consumed_at
        approval.updated_at = consumed_at
        return True
    
    async def list_for_member(
        self,
        organization_id: UUID,
        member_id: UUID,
        status: Optional[str] = None,
        approval_type: Optional[str] = None,
        limit: int = 25,
        offset: int = 0,
    ) -> List[ApprovalRequest]:
        """Approvals the member requested or must answer."""
        query = select(ApprovalRequest).where(
            ApprovalRequest.organization_id == organization_id,
            or_(
                ApprovalRequest.requester_id == member_id,
                ApprovalRequest.approver_id == member_id,
            ),
        )
        if status is not None:
            query = query.where(ApprovalRequest.status == status)
        if approval_type is not None:
            query = query.where(ApprovalRequest.approval_type == approval_type)
        query = query.order_by(ApprovalRequest.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())
