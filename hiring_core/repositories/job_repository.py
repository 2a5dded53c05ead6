"""
Job repository - database operations for jobs.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.job import Job


class JobRepository:
    """Repository for Job database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, job_id: UUID) -> Optional[Job]:
        """Get a job by ID."""
        result = await self.db.execute(
            select(Job).where(Job.id == job_id)
        )
        return result.scalar_one_or_none()
    
    async def get_in_org(self, organization_id: UUID, job_id: UUID) -> Optional[Job]:
        """Get a job by ID for a specific organization."""
        result = await self.db.execute(
            select(Job).where(
                Job.id == job_id,
                Job.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def set_stages(self, job: Job, stages: List[dict]) -> Job:
        """Replace the job's stage list with already-validated configuration."""
        job.stages = stages
        await self.db.flush()
        return job
