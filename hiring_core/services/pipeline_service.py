"""
Pipeline service - moves applications through a job's stages.

Every command loads the application and its job, checks the actor's role and
job visibility, then applies the change in a single transaction. Audit entries
and notifications follow the commit and never affect its outcome.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.permissions import Roles
from hiring_core.db.session import atomic
from hiring_core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from hiring_core.models.notification import NotificationType
from hiring_core.models.offer import OfferStatus
from hiring_core.repositories.application_repository import ApplicationRepository
from hiring_core.repositories.offer_repository import OfferRepository
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.pipeline import ApplicationRead, StageTransitionResult, TransitionPlan
from hiring_core.schemas.stage_config import StageDefinition
from hiring_core.services import stage_registry
from hiring_core.services.access_control import can_access_job, require_actor, require_staff
from hiring_core.services.audit_trail import AuditTrail
from hiring_core.services.notification_dispatcher import NotificationDispatcher
from hiring_core.services.soft_delete import soft_delete
from hiring_core.services.stage_gate_evaluator import StageGateEvaluator
from hiring_core.utils.time import utc_now

logger = logging.getLogger(__name__)


# Stages reopen() accepts
REOPENABLE_STAGES = ["rejected", "talent-pool", "withdrawn"]

POSITION_FILLED = "position_filled"


class PipelineService:
    """Service for application stage transitions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ApplicationRepository(db)
        self.offers = OfferRepository(db)
        self.evaluator = StageGateEvaluator(db)
        self.audit = AuditTrail(db)
        self.notifications = NotificationDispatcher(db)

    async def _load_visible(
        self,
        ctx: AuthContext,
        application_id: UUID,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> tuple:
        """Application and job, or NotFound when absent or outside the actor's scope."""
        row = await self.repository.get_with_job(
            application_id,
            include_deleted=include_deleted,
            for_update=for_update,
        )
        if row is None or not can_access_job(ctx, row[1]):
            raise NotFound("APPLICATION_NOT_FOUND", "Application not found")
        return row

    @staticmethod
    def _resolve_target(stages: List[StageDefinition], target_stage: str) -> Optional[StageDefinition]:
        target = stage_registry.find_stage(stages, target_stage)
        if target is None and stage_registry.is_special_action_stage(target_stage):
            target = StageDefinition(
                id=target_stage,
                name=target_stage.replace("-", " ").title(),
                phase_group=stage_registry.get_phase_group(target_stage),
                is_built_in=True,
            )
        return target

    @staticmethod
    def _phase_of(stages: List[StageDefinition], stage_id: str) -> str:
        current = stage_registry.find_stage(stages, stage_id)
        if current is not None:
            return current.phase_group
        return stage_registry.get_phase_group(stage_id)

    async def advance_stage(
        self,
        application_id: UUID,
        target_stage: str,
        actor: Optional[AuthContext],
        rejection_reason: Optional[str] = None,
        reject_remaining: bool = False,
    ) -> StageTransitionResult:
        """
        Move an application to another stage of its job.

        Raises:
            Unauthorized: no actor
            Forbidden: actor may not manage the pipeline
            NotFound: application absent, withdrawn, or not visible
            ValidationFailed: target is not a stage of the job
            Conflict: same stage, closed application, missing offer, or gate blockers
        """
        ctx = require_staff(actor, Roles.PIPELINE, "move candidates between stages")
        target_stage = target_stage.strip()

        async with atomic(self.db, "advance_stage"):
            application, job = await self._load_visible(ctx, application_id, for_update=True)
            stages = stage_registry.resolve_job_stages(job.stages, job.id)

            target = self._resolve_target(stages, target_stage)
            if target is None:
                raise ValidationFailed(
                    "UNKNOWN_STAGE",
                    f"'{target_stage}' is not a stage of this job",
                    {"stage": target_stage, "valid_stages": [stage.id for stage in stages]},
                )

            from_stage = application.stage
            if from_stage == target.id:
                raise Conflict("ALREADY_IN_STAGE", f"Application is already in '{target.id}'")

            if self._phase_of(stages, from_stage) in stage_registry.CLOSED_PHASES:
                raise Conflict(
                    "APPLICATION_CLOSED",
                    f"Application in '{from_stage}' cannot be moved; reopen it first",
                    {"current_stage": from_stage},
                )

            if target.phase_group == "offer":
                offer = await self.offers.get_active_for_application(application.id)
                if offer is None or offer.status == OfferStatus.WITHDRAWN:
                    raise Conflict(
                        "OFFER_REQUIRED",
                        "Create an offer to move this candidate to the offer stage",
                        {"stage": target.id},
                    )

            blockers = await self.evaluator.evaluate_stages(stages, application.id, from_stage, target.id)
            if blockers:
                raise Conflict(
                    "STAGE_GATE_BLOCKED",
                    "Stage requirements are not met",
                    {"blockers": [blocker.model_dump() for blocker in blockers]},
                )

            now = utc_now()
            application.stage = target.id
            application.updated_at = now
            if target.phase_group == "hired":
                application.hired_at = now
            if target.id == "rejected":
                application.rejected_at = now
                application.rejection_reason = rejection_reason

            rejected_count = 0
            if reject_remaining and target.phase_group == "hired":
                rejected_count = await self.repository.reject_others(
                    job.id,
                    application.id,
                    POSITION_FILLED,
                    now,
                )
            await self.db.flush()

            result = StageTransitionResult(
                application=ApplicationRead.model_validate(application),
                from_stage=from_stage,
                to_stage=target.id,
                rejected_count=rejected_count,
            )
            job_title = job.title

        logger.info(
            "Application %s moved %s -> %s by member %s (rejected others: %d)",
            application_id,
            from_stage,
            target.id,
            ctx.member_id,
            rejected_count,
        )

        await self.audit.append(
            action="application.stage_changed",
            entity_type="application",
            entity_id=application_id,
            actor_id=ctx.account_id,
            organization_id=ctx.organization_id,
            changes={"stage": {"from": from_stage, "to": target.id}},
            details={"rejected_count": rejected_count} if rejected_count else None,
        )
        await self.notifications.notify(
            result.application.candidate_account_id,
            NotificationType.STAGE_CHANGED,
            "Application update",
            f"Your application for {job_title} has moved to {target.name}.",
            {"application_id": application_id, "job_id": result.application.job_id, "stage": target.id},
        )
        return result

    async def withdraw(
        self,
        application_id: UUID,
        actor: Optional[AuthContext],
        reason: Optional[str] = None,
    ) -> ApplicationRead:
        """
        Candidate withdraws their own application.

        The application is soft-deleted together with its active offer. Staff
        notification and the audit entry are best-effort.
        """
        ctx = require_actor(actor)

        async with atomic(self.db, "withdraw_application"):
            row = await self.repository.get_with_job(application_id, include_deleted=True, for_update=True)
            if row is None:
                raise NotFound("APPLICATION_NOT_FOUND", "Application not found")
            application, job = row
            if application.candidate_account_id != ctx.account_id:
                raise Forbidden("NOT_APPLICATION_OWNER", "Only the candidate can withdraw this application")
            if application.deleted_at is not None:
                raise Conflict("ALREADY_WITHDRAWN", "Application has already been withdrawn")

            now = utc_now()
            previous_stage = application.stage
            application.stage = stage_registry.WITHDRAWN_STAGE
            await soft_delete(self.db, "application", application, now, reason)
            await self.db.flush()
            result = ApplicationRead.model_validate(application)
            organization_id, job_title = job.organization_id, job.title

        logger.info("Application %s withdrawn by candidate %s", application_id, ctx.account_id)

        await self._after_withdraw(organization_id, job_title, result, previous_stage, reason, ctx)
        return result

    async def _after_withdraw(
        self,
        organization_id: UUID,
        job_title: str,
        application: ApplicationRead,
        previous_stage: str,
        reason: Optional[str],
        ctx: AuthContext,
    ) -> None:
        await self.notifications.notify_roles(
            organization_id,
            Roles.NOTIFIED_STAFF,
            NotificationType.APPLICATION_WITHDRAWN,
            "Candidate withdrew",
            f"A candidate withdrew their application for {job_title}.",
            {"application_id": application.id, "job_id": application.job_id},
        )
        await self.audit.append(
            action="application.withdrawn",
            entity_type="application",
            entity_id=application.id,
            actor_id=ctx.account_id,
            organization_id=organization_id,
            changes={"stage": {"from": previous_stage, "to": application.stage}},
            details={"reason": reason} if reason else None,
        )

    async def reopen(
        self,
        application_id: UUID,
        actor: Optional[AuthContext],
        restore_to_stage: str = "applied",
    ) -> StageTransitionResult:
        """Bring a rejected, talent-pool or withdrawn application back into the funnel."""
        ctx = require_staff(actor, Roles.PIPELINE, "reopen applications")
        restore_to_stage = restore_to_stage.strip()

        async with atomic(self.db, "reopen_application"):
            application, job = await self._load_visible(
                ctx,
                application_id,
                include_deleted=True,
                for_update=True,
            )
            if application.stage not in REOPENABLE_STAGES:
                raise Conflict(
                    "NOT_REOPENABLE",
                    f"Application in '{application.stage}' is still open",
                    {"current_stage": application.stage},
                )

            stages = stage_registry.resolve_job_stages(job.stages, job.id)
            target = stage_registry.find_stage(stages, restore_to_stage)
            if target is None or target.phase_group in ("offer", "hired"):
                raise ValidationFailed(
                    "INVALID_RESTORE_STAGE",
                    f"Cannot reopen into '{restore_to_stage}'",
                    {"stage": restore_to_stage},
                )

            now = utc_now()
            from_stage = application.stage
            application.stage = target.id
            application.rejected_at = None
            application.rejection_reason = None
            application.deleted_at = None
            application.updated_at = now
            await self.db.flush()
            result = StageTransitionResult(
                application=ApplicationRead.model_validate(application),
                from_stage=from_stage,
                to_stage=target.id,
            )

        logger.info("Application %s reopened into %s by member %s", application_id, target.id, ctx.member_id)
        await self.audit.append(
            action="application.reopened",
            entity_type="application",
            entity_id=application_id,
            actor_id=ctx.account_id,
            organization_id=ctx.organization_id,
            changes={"stage": {"from": from_stage, "to": target.id}},
        )
        return result

    async def plan_transition(
        self,
        job_id: UUID,
        application_id: UUID,
        to_stage: str,
        actor: Optional[AuthContext],
        from_stage: Optional[str] = None,
    ) -> TransitionPlan:
        """Blockers and prompts for a proposed move, without changing anything."""
        ctx = require_staff(actor, Roles.ALL, "view stage requirements")
        application, job = await self._load_visible(ctx, application_id)
        if application.job_id != job_id:
            raise NotFound("APPLICATION_NOT_FOUND", "Application not found")
        return await self.evaluator.plan(job, application.id, from_stage or application.stage, to_stage)

