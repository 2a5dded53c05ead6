"""
Authorization snapshot for one command.
"""

from typing import FrozenSet, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthContext(BaseModel):
    """
    Who is acting, resolved once before a command starts.

    Candidates and coaches have no organization membership, so the member
    fields are optional; staff commands require them.
    """

    account_id: UUID
    member_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    role: Optional[str] = None
    has_full_access: bool = False
    # Populated for scoped roles (HIRING_MANAGER, MEMBER); empty for full-access roles
    assigned_job_ids: FrozenSet[UUID] = frozenset()
    is_platform_admin: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def is_staff(self) -> bool:
        return self.member_id is not None and self.organization_id is not None
