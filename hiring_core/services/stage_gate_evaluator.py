"""
Stage gate evaluation.

Gates are configured on the stage a candidate is leaving: a stage with
required_scorecards / required_interviews cannot be advanced past until the
application has enough scorecards / completed interviews recorded at that
stage. Evaluation only reads, so it can be called any number of times.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.job import Job
from hiring_core.models.scorecard import InterviewStatus
from hiring_core.repositories.application_repository import ApplicationRepository
from hiring_core.repositories.job_repository import JobRepository
from hiring_core.schemas.pipeline import Blocker, Suggestion, TransitionPlan
from hiring_core.schemas.stage_config import StageDefinition
from hiring_core.services import stage_registry

logger = logging.getLogger(__name__)


class StageGateEvaluator:
    """Computes the blockers for a proposed stage transition."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.job_repository = JobRepository(db)
        self.application_repository = ApplicationRepository(db)

    async def evaluate(
        self,
        job_id: UUID,
        application_id: UUID,
        from_stage: str,
        to_stage: str,
    ) -> List[Blocker]:
        """
        Blockers for moving an application from from_stage to to_stage.

        An empty list means the transition may proceed.
        """
        job = await self.job_repository.get_by_id(job_id)
        if job is None:
            return []
        stages = stage_registry.resolve_job_stages(job.stages, job.id)
        return await self.evaluate_stages(stages, application_id, from_stage, to_stage)

    async def evaluate_stages(
        self,
        stages: List[StageDefinition],
        application_id: UUID,
        from_stage: str,
        to_stage: str,
    ) -> List[Blocker]:
        """Same as evaluate(), for callers that already resolved the job's stages."""
        if stage_registry.is_special_action_stage(to_stage):
            return []

        from_def = stage_registry.find_stage(stages, from_stage)
        if from_def is None or from_def.config is None or not from_def.config.is_gated:
            return []

        from_index = stage_registry.stage_index(stages, from_stage)
        to_index = stage_registry.stage_index(stages, to_stage)
        if 0 <= to_index < from_index:
            # Moving back never requires the leaving stage's gate
            return []

        config = from_def.config
        blockers: List[Blocker] = []

        if config.required_scorecards > 0:
            current = await self.application_repository.count_scorecards(application_id, from_stage)
            if current < config.required_scorecards:
                blockers.append(
                    Blocker(
                        action="gate_scorecards_required",
                        message=(
                            f"{current} of {config.required_scorecards} required scorecards "
                            f"submitted for {from_def.name}."
                        ),
                        metadata=_gate_metadata(current, config.required_scorecards, from_def),
                    )
                )

        if config.required_interviews > 0:
            current = await self.application_repository.count_completed_interviews(application_id, from_stage)
            if current < config.required_interviews:
                blockers.append(
                    Blocker(
                        action="gate_interviews_required",
                        message=(
                            f"{current} of {config.required_interviews} required interviews "
                            f"completed for {from_def.name}."
                        ),
                        metadata=_gate_metadata(current, config.required_interviews, from_def),
                    )
                )

        if blockers:
            logger.debug(
                "Transition %s -> %s for application %s blocked by %d gate(s)",
                from_stage,
                to_stage,
                application_id,
                len(blockers),
            )
        return blockers

    async def plan(
        self,
        job: Job,
        application_id: UUID,
        from_stage: str,
        to_stage: str,
        stages: Optional[List[StageDefinition]] = None,
    ) -> TransitionPlan:
        """Blockers plus the optional prompts to show around a transition."""
        if stages is None:
            stages = stage_registry.resolve_job_stages(job.stages, job.id)
        blockers = await self.evaluate_stages(stages, application_id, from_stage, to_stage)

        to_def = stage_registry.find_stage(stages, to_stage)
        to_phase = to_def.phase_group if to_def is not None else stage_registry.get_phase_group(to_stage)
        suggestions: List[Suggestion] = []

        if to_phase == "interview":
            active = await self.application_repository.count_interviews(application_id, InterviewStatus.ACTIVE)
            if active == 0:
                suggestions.append(
                    Suggestion(
                        action="prompt_schedule_interview",
                        message="Would you like to schedule an interview with this candidate?",
                        metadata={"application_id": str(application_id), "job_id": str(job.id)},
                    )
                )

        if to_phase == "hired":
            others = await self.application_repository.count_other_active(job.id, application_id)
            if others > 0:
                noun = "candidate is" if others == 1 else "candidates are"
                suggestions.append(
                    Suggestion(
                        action="suggest_reject_others",
                        message=f"{others} other {noun} still active for this role. Would you like to reject them?",
                        metadata={"job_id": str(job.id), "other_count": others},
                    )
                )
            suggestions.append(
                Suggestion(action="auto_log_milestone", message="Hired milestone will be recorded.")
            )

        if to_stage == "rejected":
            suggestions.append(
                Suggestion(
                    action="prompt_send_rejection_email",
                    message="Would you like to send a rejection email to the candidate?",
                    metadata={"application_id": str(application_id)},
                )
            )

        return TransitionPlan(allowed=not blockers, blockers=blockers, suggestions=suggestions)


def _gate_metadata(current: int, required: int, stage: StageDefinition) -> dict:
    return {
        "current": current,
        "required": required,
        "stage_id": stage.id,
        "stage_name": stage.name,
    }
