"""
Application repository - database operations for applications and the
per-stage records (scorecards, interviews) that stage gates count.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.application import Application
from hiring_core.models.job import Job
from hiring_core.models.scorecard import Interview, InterviewStatus, Scorecard


# Stages whose applications are no longer active in the funnel
INACTIVE_STAGES = ["rejected", "talent-pool", "hired", "withdrawn"]


class ApplicationRepository:
    """Repository for Application database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, application_id: UUID, include_deleted: bool = False) -> Optional[Application]:
        """Get an application by ID. Soft-deleted rows are hidden unless asked for."""
        query = select(Application).where(Application.id == application_id)
        if not include_deleted:
            query = query.where(Application.deleted_at.is_(None))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
    
    async def get_with_job(
        self,
        application_id: UUID,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> Optional[Tuple[Application, Job]]:
        """Get an application together with its owning job."""
        query = (
            select(Application, Job)
            .join(Job, Job.id == Application.job_id)
            .where(Application.id == application_id)
        )
        if not include_deleted:
            query = query.where(Application.deleted_at.is_(None))
        if for_update:
            query = query.with_for_update(of=Application)
        result = await self.db.execute(query)
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]
    
    async def count_scorecards(self, application_id: UUID, stage_id: str) -> int:
        """Count scorecards submitted for an application at a stage."""
        result = await self.db.execute(
            select(func.count(Scorecard.id)).where(
                Scorecard.application_id == application_id,
                Scorecard.stage_id == stage_id,
            )
        )
        return int(result.scalar_one())
    
    async def count_interviews(
        self,
        application_id: UUID,
        statuses: List[str],
        stage_id: Optional[str] = None,
    ) -> int:
        """Count interviews for an application, optionally at one stage."""
        query = select(func.count(Interview.id)).where(
            Interview.application_id == application_id,
            Interview.status.in_(statuses),
        )
        if stage_id is not None:
            query = query.where(Interview.stage_id == stage_id)
        result = await self.db.execute(query)
        return int(result.scalar_one())
    
    async def count_completed_interviews(self, application_id: UUID, stage_id: str) -> int:
        return await self.count_interviews(application_id, [InterviewStatus.COMPLETED], stage_id)
    
    async def count_other_active(self, job_id: UUID, except_application_id: UUID) -> int:
        """Count other applications of the job still moving through the funnel."""
        result = await self.db.execute(
            select(func.count(Application.id)).where(
                Application.job_id == job_id,
                Application.id != except_application_id,
                Application.deleted_at.is_(None),
                Application.stage.not_in(INACTIVE_STAGES),
            )
        )
        return int(result.scalar_one())
    
    async def reject_others(
        self,
        job_id: UUID,
        except_application_id: UUID,
        reason: str,
        rejected_at: datetime,
    ) -> int:
        """Reject every other active application of the job. Returns the row count."""
        result = await self.db.execute(
            update(Application)
            .where(
                Application.job_id == job_id,
                Application.id != except_application_id,
                Application.deleted_at.is_(None),
                Application.stage.not_in(INACTIVE_STAGES),
            )
            .values(
                stage="rejected",
                rejected_at=rejected_at,
                rejection_reason=reason,
                updated_at=rejected_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
