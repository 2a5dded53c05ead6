"""
Organization and OrganizationMember models.

An organization is an employer; members are its staff with one role each.
"""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import OrgScopedModel, TimestampedModel


class Organization(TimestampedModel):
    """Employer organization."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(200), nullable=False)


class OrganizationMember(OrgScopedModel):
    """Staff membership of an account in an organization."""

    __tablename__ = "organization_members"

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    # One of hiring_core.core.permissions.Roles
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="MEMBER")

    __table_args__ = (
        UniqueConstraint("organization_id", "account_id", name="uq_org_member_account"),
    )
