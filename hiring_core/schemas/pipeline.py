"""
Pydantic schemas for applications and stage transitions.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from hiring_core.schemas.base import TimestampedRead


BlockerAction = Literal["gate_scorecards_required", "gate_interviews_required"]

SuggestionAction = Literal[
    "prompt_schedule_interview",
    "prompt_send_rejection_email",
    "suggest_reject_others",
    "auto_log_milestone",
]


class ApplicationRead(TimestampedRead):
    """Read model for applications."""

    job_id: UUID
    candidate_account_id: UUID
    stage: str
    offered_at: Optional[datetime] = None
    hired_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    deleted_at: Optional[datetime] = None


class AdvanceStageRequest(BaseModel):
    """Request to move an application to another stage."""

    target_stage: str = Field(..., min_length=1, max_length=100)
    rejection_reason: Optional[str] = Field(default=None, max_length=500)
    # Only meaningful when hiring: reject every other active candidate of the job
    reject_remaining: bool = False


class WithdrawApplicationRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class ReopenApplicationRequest(BaseModel):
    restore_to_stage: str = Field(default="applied", min_length=1, max_length=100)


class StageTransitionResult(BaseModel):
    """Outcome of an applied stage transition."""

    application: ApplicationRead
    from_stage: str
    to_stage: str
    rejected_count: int = 0


class Blocker(BaseModel):
    """A requirement that blocks a stage transition."""

    action: BlockerAction
    message: str
    metadata: Dict[str, Any]


class Suggestion(BaseModel):
    """A non-blocking prompt shown around a stage transition."""

    action: SuggestionAction
    message: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TransitionPlan(BaseModel):
    """Blockers plus optional prompts for a proposed transition."""

    allowed: bool
    blockers: List[Blocker]
    suggestions: List[Suggestion]
