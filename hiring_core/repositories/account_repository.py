"""
Account and OrganizationMember repository - database operations for actors.
"""

from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.account import Account
from hiring_core.models.job import Job, JobAssignment
from hiring_core.models.organization import OrganizationMember


class AccountRepository:
    """Repository for accounts and their organization memberships."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Get an account by ID."""
        result = await self.db.execute(
            select(Account).where(Account.id == account_id)
        )
        return result.scalar_one_or_none()
    
    async def get_membership(self, account_id: UUID) -> Optional[OrganizationMember]:
        """Get the account's organization membership (first one wins)."""
        result = await self.db.execute(
            select(OrganizationMember)
            .where(OrganizationMember.account_id == account_id)
            .order_by(OrganizationMember.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()
    
    async def get_member(self, organization_id: UUID, member_id: UUID) -> Optional[OrganizationMember]:
        """Get a member by ID within an organization."""
        result = await self.db.execute(
            select(OrganizationMember).where(
                OrganizationMember.id == member_id,
                OrganizationMember.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def list_account_ids_by_roles(
        self,
        organization_id: UUID,
        roles: List[str],
    ) -> List[UUID]:
        """Account ids of the organization's members holding one of the roles."""
        result = await self.db.execute(
            select(OrganizationMember.account_id)
            .where(
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.role.in_(roles),
            )
            .order_by(OrganizationMember.created_at.asc())
        )
        return list(result.scalars().all())
    
    async def get_assigned_job_ids(self, organization_id: UUID, member_id: UUID) -> Set[UUID]:
        """Jobs a scoped member recruits for, manages, or is assigned to review."""
        owned = await self.db.execute(
            select(Job.id).where(
                Job.organization_id == organization_id,
                (Job.recruiter_id == member_id) | (Job.hiring_manager_id == member_id),
            )
        )
        assigned = await self.db.execute(
            select(JobAssignment.job_id)
            .join(Job, Job.id == JobAssignment.job_id)
            .where(
                JobAssignment.member_id == member_id,
                Job.organization_id == organization_id,
            )
        )
        return set(owned.scalars().all()) | set(assigned.scalars().all())
