"""
Base models with common fields.

Every table gets:
- id (UUID primary key)
- created_at (when the record was created)
- updated_at (when the record was last modified)

Organization-owned tables additionally carry organization_id, which is the
ownership scope used by every authorization check.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.db.base import Base
from hiring_core.utils.time import utc_now


class TimestampedModel(Base):
    """
    Abstract base class for all models.
    
    This is not a real table - it's a template that other models inherit from.
    """
    
    __abstract__ = True
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    
    # Timestamps are set client-side so they are available without a refresh
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
    )


class OrgScopedModel(TimestampedModel):
    """Abstract base for rows owned by one employer organization."""

    __abstract__ = True

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
