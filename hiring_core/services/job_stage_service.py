"""
Job stage configuration service.

Stage lists are validated here, when written, so that every reader can trust
what is stored on the job.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.permissions import Roles
from hiring_core.db.session import atomic
from hiring_core.errors import NotFound, ValidationFailed
from hiring_core.repositories.job_repository import JobRepository
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.stage_config import StageDefinition
from hiring_core.services import stage_registry
from hiring_core.services.access_control import can_access_job, require_staff
from hiring_core.services.audit_trail import AuditTrail

logger = logging.getLogger(__name__)


class JobStageService:
    """Service for reading and replacing a job's pipeline stages."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = JobRepository(db)
        self.audit = AuditTrail(db)

    async def get_stages(self, job_id: UUID, actor: Optional[AuthContext]) -> List[StageDefinition]:
        ctx = require_staff(actor, Roles.ALL, "view pipeline stages")
        job = await self.repository.get_in_org(ctx.organization_id, job_id)
        if job is None or not can_access_job(ctx, job):
            raise NotFound("JOB_NOT_FOUND", "Job not found")
        return stage_registry.resolve_job_stages(job.stages, job.id)

    async def update_stages(
        self,
        job_id: UUID,
        stages: List[Dict[str, Any]],
        actor: Optional[AuthContext],
    ) -> List[StageDefinition]:
        """Validate and replace the job's stage list."""
        ctx = require_staff(actor, Roles.ELEVATED, "configure pipeline stages")

        try:
            config = stage_registry.parse_stages(stages)
        except ValidationError as exc:
            raise ValidationFailed(
                "INVALID_STAGE_CONFIG",
                "Stage configuration is invalid",
                {"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        stored = [stage.model_dump(exclude_none=True) for stage in config.root]

        async with atomic(self.db, "update_job_stages"):
            job = await self.repository.get_in_org(ctx.organization_id, job_id)
            if job is None or not can_access_job(ctx, job):
                raise NotFound("JOB_NOT_FOUND", "Job not found")
            previous = job.stages
            await self.repository.set_stages(job, stored)
            resolved = [stage_registry.resolve_stage(stage) for stage in config.root]

        logger.info("Job %s stages updated by member %s (%d stages)", job_id, ctx.member_id, len(stored))
        await self.audit.append(
            action="job.stages_updated",
            entity_type="job",
            entity_id=job_id,
            actor_id=ctx.account_id,
            organization_id=ctx.organization_id,
            changes={"stages": {"from": previous, "to": stored}},
        )
        return resolved
