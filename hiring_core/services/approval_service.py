"""
Approval service - second-party sign-off for sensitive actions.

A request is keyed by (entity_type, entity_id, approval_type) and answered
exactly once by its designated approver. An APPROVED request authorizes one
downstream action, which consumes it.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.permissions import Roles
from hiring_core.db.session import atomic
from hiring_core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from hiring_core.models.approval_request import ApprovalRequest, ApprovalStatus, ApprovalType
from hiring_core.models.notification import NotificationType
from hiring_core.repositories.account_repository import AccountRepository
from hiring_core.repositories.approval_repository import ApprovalRepository
from hiring_core.schemas.approval import ApprovalRead
from hiring_core.schemas.auth import AuthContext
from hiring_core.services.access_control import require_staff
from hiring_core.services.audit_trail import AuditTrail
from hiring_core.services.notification_dispatcher import NotificationDispatcher
from hiring_core.utils.time import utc_now

logger = logging.getLogger(__name__)


class ApprovalService:
    """Service for approval requests."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ApprovalRepository(db)
        self.accounts = AccountRepository(db)
        self.audit = AuditTrail(db)
        self.notifications = NotificationDispatcher(db)

    async def request(
        self,
        entity_type: str,
        entity_id: UUID,
        approval_type: str,
        approver_id: UUID,
        actor: Optional[AuthContext],
        reason: Optional[str] = None,
    ) -> ApprovalRead:
        """Ask a member of the organization to approve an action."""
        ctx = require_staff(actor, Roles.ELEVATED, "request approvals")
        if approval_type not in ApprovalType.ALL:
            raise ValidationFailed(
                "INVALID_APPROVAL_TYPE",
                f"Unknown approval type '{approval_type}'",
                {"allowed": ApprovalType.ALL},
            )
        if approver_id == ctx.member_id:
            raise ValidationFailed("SELF_APPROVAL", "You cannot approve your own request")

        async with atomic(self.db, "request_approval"):
            approver = await self.accounts.get_member(ctx.organization_id, approver_id)
            if approver is None:
                raise NotFound("APPROVER_NOT_FOUND", "Approver not found")

            pending = await self.repository.latest_for_key(
                ctx.organization_id,
                entity_type,
                entity_id,
                approval_type,
                status=ApprovalStatus.PENDING,
            )
            if pending is not None:
                raise Conflict(
                    "APPROVAL_ALREADY_PENDING",
                    "An approval request for this action is already pending",
                    {"approval_id": pending.id},
                )

            approval = await self.repository.create(
                organization_id=ctx.organization_id,
                entity_type=entity_type,
                entity_id=entity_id,
                approval_type=approval_type,
                requester_id=ctx.member_id,
                approver_id=approver_id,
                reason=reason,
            )
            result = ApprovalRead.model_validate(approval)
            approver_account_id = approver.account_id

        logger.info("Approval %s (%s) requested by member %s", result.id, approval_type, ctx.member_id)
        await self.audit.append(
            action="approval.requested",
            entity_type="approval_request",
            entity_id=result.id,
            actor_id=ctx.account_id,
            organization_id=ctx.organization_id,
            details={"entity_type": entity_type, "entity_id": entity_id, "approval_type": approval_type},
        )
        await self.notifications.notify(
            approver_account_id,
            NotificationType.APPROVAL_PENDING,
            "Approval requested",
            f"Your approval is requested ({approval_type.replace('_', ' ').lower()}).",
            {"approval_id": result.id, "entity_type": entity_type, "entity_id": entity_id},
            send_email=True,
        )
        return result

    async def respond(
        self,
        approval_id: UUID,
        status: str,
        reason: Optional[str],
        actor: Optional[AuthContext],
    ) -> ApprovalRead:
        """
        Approve or reject a pending request.

        Only the designated approver may answer, and only once: any second
        response is a Conflict, whatever it asks for.
        """
        ctx = require_staff(actor, Roles.ALL, "respond to approvals")
        status = (status or "").strip().upper()

        async with atomic(self.db, "respond_approval"):
            approval = await self.repository.get_by_id(ctx.organization_id, approval_id)
            if approval is None:
                raise NotFound("APPROVAL_NOT_FOUND", "Approval request not found")
            if approval.approver_id != ctx.member_id:
                raise Forbidden("NOT_APPROVER", "Only the designated approver can respond")
            if approval.status != ApprovalStatus.PENDING:
                raise Conflict(
                    "APPROVAL_ALREADY_RESOLVED",
                    f"Approval request was already {approval.status.lower()}",
                    {"status": approval.status},
                )
            if status not in ApprovalStatus.RESPONSES:
                raise ValidationFailed(
                    "INVALID_APPROVAL_STATUS",
                    "Status must be APPROVED or REJECTED",
                    {"allowed": ApprovalStatus.RESPONSES},
                )

            resolved = await self.repository.resolve(approval, status, reason, utc_now())
            if not resolved:
                raise Conflict("APPROVAL_ALREADY_RESOLVED", "Approval request was already resolved")

            requester = await self.accounts.get_member(ctx.organization_id, approval.requester_id)
            requester_account_id = requester.account_id if requester is not None else None
            result = ApprovalRead.model_validate(approval)

        logger.info("Approval %s %s by member %s", approval_id, status, ctx.member_id)
        await self.audit.append(
            action=f"approval.{status.lower()}",
            entity_type="approval_request",
            entity_id=approval_id,
            actor_id=ctx.account_id,
            organization_id=ctx.organization_id,
            changes={"status": {"from": ApprovalStatus.PENDING, "to": status}},
        )
        if requester_account_id is not None:
            approved = status == ApprovalStatus.APPROVED
            await self.notifications.notify(
                requester_account_id,
                NotificationType.APPROVAL_APPROVED if approved else NotificationType.APPROVAL_REJECTED,
                "Approval granted" if approved else "Approval declined",
                f"Your request was {status.lower()}." + (f" Reason: {reason}" if reason else ""),
                {"approval_id": approval_id, "entity_type": result.entity_type, "entity_id": result.entity_id},
            )
        return result

    async def latest_for(
        self,
        entity_type: str,
        entity_id: UUID,
        approval_type: str,
        actor: Optional[AuthContext],
    ) -> Optional[ApprovalRead]:
        """Most recent request for the key, so callers can check before re-requesting."""
        ctx = require_staff(actor, Roles.ALL, "view approvals")
        approval = await self.repository.latest_for_key(ctx.organization_id, entity_type, entity_id, approval_type)
        if approval is None:
            return None
        return ApprovalRead.model_validate(approval)

    async def consume(
        self,
        organization_id: UUID,
        entity_type: str,
        entity_id: UUID,
        approval_type: str,
    ) -> ApprovalRequest:
        """
        Use up the APPROVED request for the key.

        Runs inside the caller's transaction; the caller commits.

        Raises:
            Conflict: no approved, unused request exists
        """
        approval = await self.repository.latest_for_key(
            organization_id,
            entity_type,
            entity_id,
            approval_type,
            status=ApprovalStatus.APPROVED,
        )
        if approval is None or approval.consumed_at is not None:
            raise Conflict(
                "APPROVAL_REQUIRED",
                f"An approved {approval_type} request is required",
                {"entity_type": entity_type, "entity_id": entity_id, "approval_type": approval_type},
            )
        if not await self.repository.mark_consumed(approval, utc_now()):
            raise Conflict("APPROVAL_ALREADY_USED", "The approval has already been used")
        return approval

    async def list_for_member(
        self,
        actor: Optional[AuthContext],
        status: Optional[str] = None,
        approval_type: Optional[str] = None,
        limit: int = 25,
        offset: int = 0,
    ) -> List[ApprovalRead]:
        """Requests the actor made or must answer, newest first."""
        ctx = require_staff(actor, Roles.ALL, "view approvals")
        approvals = await self.repository.list_for_member(
            ctx.organization_id,
            ctx.member_id,
            status=status,
            approval_type=approval_type,
            limit=limit,
            offset=offset,
        )
        return [ApprovalRead.model_validate(approval) for approval in approvals]
