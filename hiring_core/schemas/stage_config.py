"""
Typed stage-gate configuration for a job's pipeline.

A job's stage list is validated with JobStagesConfig when it is written, so
readers never interpret loosely typed JSON.
"""

import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator


PhaseGroup = Literal[
    "applied",
    "review",
    "interview",
    "offer",
    "hired",
    "rejected",
    "withdrawn",
    "talent-pool",
]

_STAGE_ID_RE = re.compile(r"^[a-z0-9][a-z0-9_-]{0,99}$")


class StageGateConfig(BaseModel):
    """Requirements that must be met before a candidate advances past a stage."""

    required_scorecards: int = Field(default=0, ge=0, le=50)
    required_interviews: int = Field(default=0, ge=0, le=50)
    scorecard_template_id: Optional[str] = Field(default=None, max_length=100)

    model_config = ConfigDict(extra="forbid")

    @property
    def is_gated(self) -> bool:
        return self.required_scorecards > 0 or self.required_interviews > 0


class JobStage(BaseModel):
    """One entry of a job's stage list."""

    id: str
    name: str = Field(..., min_length=1, max_length=100)
    phase_group: Optional[PhaseGroup] = None
    config: Optional[StageGateConfig] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("id")
    @classmethod
    def _slug_id(cls, value: str) -> str:
        value = value.strip().lower()
        if not _STAGE_ID_RE.match(value):
            raise ValueError("stage id must be a lowercase slug (letters, digits, '-' or '_')")
        return value


class JobStagesConfig(RootModel[List[JobStage]]):
    """Ordered stage list of a job."""

    @model_validator(mode="after")
    def _check_stages(self) -> "JobStagesConfig":
        stages = self.root
        if not stages:
            raise ValueError("a job needs at least one stage")
        ids = [stage.id for stage in stages]
        duplicates = sorted({stage_id for stage_id in ids if ids.count(stage_id) > 1})
        if duplicates:
            raise ValueError(f"duplicate stage ids: {', '.join(duplicates)}")
        return self


class JobStagesUpdate(BaseModel):
    """Request body for replacing a job's stage list; validated by JobStageService."""

    stages: List[dict]


class StageDefinition(BaseModel):
    """A stage resolved against the built-in registry."""

    id: str
    name: str
    phase_group: PhaseGroup
    is_built_in: bool
    config: Optional[StageGateConfig] = None
