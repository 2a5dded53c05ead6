"""
Authorization snapshot resolution and job visibility.

An AuthContext is resolved once per command; services only read it.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.permissions import has_full_access, raise_if_not_roles
from hiring_core.errors import Forbidden, Unauthorized
from hiring_core.models.job import Job
from hiring_core.repositories.account_repository import AccountRepository
from hiring_core.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


class AuthContextResolver:
    """Builds the AuthContext of an authenticated account."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = AccountRepository(db)

    async def resolve(self, account_id: UUID) -> Optional[AuthContext]:
        account = await self.repository.get_by_id(account_id)
        if account is None:
            return None

        member = await self.repository.get_membership(account.id)
        if member is None:
            # Candidates, coaches and mentors act without a membership
            return AuthContext(account_id=account.id, is_platform_admin=account.is_platform_admin)

        full_access = has_full_access(member.role)
        assigned = frozenset()
        if not full_access:
            assigned = frozenset(
                await self.repository.get_assigned_job_ids(member.organization_id, member.id)
            )

        return AuthContext(
            account_id=account.id,
            member_id=member.id,
            organization_id=member.organization_id,
            role=member.role,
            has_full_access=full_access,
            assigned_job_ids=assigned,
            is_platform_admin=account.is_platform_admin,
        )


def can_access_job(ctx: Optional[AuthContext], job: Job) -> bool:
    """Whether the actor may see the job (and therefore its applications)."""
    if ctx is None or not ctx.is_staff:
        return False
    if job.organization_id != ctx.organization_id:
        return False
    return ctx.has_full_access or job.id in ctx.assigned_job_ids


def require_actor(ctx: Optional[AuthContext]) -> AuthContext:
    if ctx is None:
        raise Unauthorized("NOT_AUTHENTICATED", "Authentication required")
    return ctx


def require_staff(ctx: Optional[AuthContext], roles: List[str], action: str) -> AuthContext:
    """The actor must be an organization member holding one of the roles."""
    ctx = require_actor(ctx)
    if not ctx.is_staff:
        raise Forbidden("NOT_ORGANIZATION_MEMBER", f"Only organization members can {action}")
    raise_if_not_roles(ctx.role, roles, action)
    return ctx
