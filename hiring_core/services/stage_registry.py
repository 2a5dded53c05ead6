"""
Pipeline stage registry.

Built-in stage definitions, phase groups, and resolution of a job's stored
stage list into StageDefinition objects. Jobs without a stage list use the
default linear pipeline.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from hiring_core.errors import InternalError
from hiring_core.schemas.stage_config import JobStage, JobStagesConfig, StageDefinition

logger = logging.getLogger(__name__)


BUILT_IN_STAGES: List[StageDefinition] = [
    StageDefinition(id="applied", name="Applied", phase_group="applied", is_built_in=True),
    StageDefinition(id="screening", name="Screening", phase_group="review", is_built_in=True),
    StageDefinition(id="qualified", name="Qualified", phase_group="review", is_built_in=True),
    StageDefinition(id="interview", name="Interview", phase_group="interview", is_built_in=True),
    StageDefinition(id="offer", name="Offer", phase_group="offer", is_built_in=True),
    StageDefinition(id="hired", name="Hired", phase_group="hired", is_built_in=True),
    # Special action stages: reachable from anywhere, not part of the linear order
    StageDefinition(id="rejected", name="Rejected", phase_group="rejected", is_built_in=True),
    StageDefinition(id="talent-pool", name="Talent Pool", phase_group="talent-pool", is_built_in=True),
]

_STAGE_MAP: Dict[str, StageDefinition] = {stage.id: stage for stage in BUILT_IN_STAGES}

SPECIAL_ACTION_STAGES = ["rejected", "talent-pool"]

# Set only by the candidate withdrawing, never by staff
WITHDRAWN_STAGE = "withdrawn"

# Phase groups an application cannot leave through a stage move (reopen instead)
CLOSED_PHASES = ["hired", "rejected", "talent-pool", "withdrawn"]

# Checked in order; the first group with a matching keyword wins
PHASE_GROUP_KEYWORDS = [
    ("applied", ["applied", "new", "received", "submission"]),
    ("review", [
        "screen", "screening", "review", "reviewing", "qualified", "assessment",
        "evaluate", "background", "check", "shortlist",
    ]),
    ("interview", [
        "interview", "phone", "technical", "culture", "onsite", "on site",
        "panel", "final", "behavioral", "case study",
    ]),
    ("offer", ["offer", "negotiation", "compensation", "package"]),
    ("hired", ["hired", "accepted", "onboarding", "start"]),
    ("rejected", ["rejected", "declined", "denied", "disqualified"]),
    ("withdrawn", ["withdrawn", "withdrew", "cancelled"]),
]


def infer_phase_group(stage_id_or_name: str) -> str:
    """Infer a phase group from a custom stage id or name. Unknown stages count as review."""
    normalized = stage_id_or_name.lower().replace("-", " ").replace("_", " ")
    for group, keywords in PHASE_GROUP_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return group
    return "review"


def get_phase_group(stage_id: str) -> str:
    built_in = _STAGE_MAP.get(stage_id)
    if built_in is not None:
        return built_in.phase_group
    if stage_id == WITHDRAWN_STAGE:
        return "withdrawn"
    return infer_phase_group(stage_id)


def resolve_stage(stage: JobStage) -> StageDefinition:
    """Resolve one configured stage against the built-in registry."""
    built_in = _STAGE_MAP.get(stage.id)
    if built_in is not None:
        # Built-in stages keep their phase group; the name may be overridden
        return built_in.model_copy(update={"name": stage.name, "config": stage.config})
    return StageDefinition(
        id=stage.id,
        name=stage.name,
        phase_group=stage.phase_group or infer_phase_group(stage.id or stage.name),
        is_built_in=False,
        config=stage.config,
    )


def default_stages() -> List[StageDefinition]:
    """The linear default pipeline (no special action stages)."""
    return [stage for stage in BUILT_IN_STAGES if stage.id not in SPECIAL_ACTION_STAGES]


def parse_stages(raw: Any) -> JobStagesConfig:
    """Validate a raw stage list. Raises pydantic's ValidationError."""
    return JobStagesConfig.model_validate(raw)


def resolve_job_stages(raw: Optional[List[Dict[str, Any]]], job_id: Any = None) -> List[StageDefinition]:
    """
    Resolve a job's stored stage list.

    Stage lists are validated when written, so stored configuration that no
    longer validates is a server-side fault, reported as InternalError.
    """
    if not raw:
        return default_stages()
    try:
        config = parse_stages(raw)
    except ValidationError as exc:
        logger.error("Stored stage configuration for job %s is invalid: %s", job_id, exc)
        raise InternalError(
            "INVALID_STAGE_CONFIG",
            "The job's stage configuration is invalid",
            {"job_id": str(job_id) if job_id is not None else None},
        ) from exc
    return [resolve_stage(stage) for stage in config.root]


def find_stage(stages: List[StageDefinition], stage_id: str) -> Optional[StageDefinition]:
    for stage in stages:
        if stage.id == stage_id:
            return stage
    return None


def stage_index(stages: List[StageDefinition], stage_id: str) -> int:
    """Position of a stage in the job's ordered list, -1 when absent."""
    for index, stage in enumerate(stages):
        if stage.id == stage_id:
            return index
    return -1


def is_special_action_stage(stage_id: str) -> bool:
    return stage_id in SPECIAL_ACTION_STAGES
