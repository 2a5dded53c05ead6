"""
Account model.

A person who can sign in: a candidate, a coach or mentor, or employer staff
(through an OrganizationMember row).
"""

from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import TimestampedModel


class Account(TimestampedModel):
    """Account table - one row per signed-in person."""
    
    __tablename__ = "accounts"
    
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )
    
    name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )
    
    # Platform staff (not organization staff); may moderate scores
    is_platform_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
