"""
Job and JobAssignment models.

A job owns its hiring funnel. Its stage list (with stage-gate configuration)
is stored as JSON that has been validated against
hiring_core.schemas.stage_config.JobStagesConfig at write time.
"""

import uuid
from typing import Optional

from sqlalchemy import JSON, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import OrgScopedModel, TimestampedModel


class Job(OrgScopedModel):
    """A job posting with its pipeline definition."""

    __tablename__ = "jobs"

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    # NULL means the built-in default stages with no gates
    stages: Mapped[Optional[list]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )

    recruiter_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization_members.id"),
        nullable=True,
    )

    hiring_manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization_members.id"),
        nullable=True,
    )


class JobAssignment(TimestampedModel):
    """Reviewer assignment: scoped roles only see jobs they are assigned to."""

    __tablename__ = "job_assignments"

    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("jobs.id"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization_members.id"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("job_id", "member_id", name="uq_job_assignment_member"),
    )
