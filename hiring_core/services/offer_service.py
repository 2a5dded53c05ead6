"""
Offer service - the offer lifecycle.

DRAFT -> SENT -> VIEWED -> SIGNED, or WITHDRAWN from any of DRAFT, SENT and
VIEWED. Status changes go through OfferRepository.transition(), a conditional
update, so two racing requests can never both move the same offer.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.config import settings
from hiring_core.core.permissions import Roles
from hiring_core.db.session import atomic
from hiring_core.errors import Conflict, Forbidden, NotFound
from hiring_core.models.application import Application
from hiring_core.models.approval_request import ApprovalType
from hiring_core.models.job import Job
from hiring_core.models.notification import NotificationType
from hiring_core.models.offer import Offer, OfferStatus
from hiring_core.repositories.account_repository import AccountRepository
from hiring_core.repositories.application_repository import ApplicationRepository
from hiring_core.repositories.offer_repository import OfferRepository
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.offer import OfferRead, OfferTransitionResult, OfferViewResult
from hiring_core.services import stage_registry
from hiring_core.services.access_control import can_access_job, require_actor, require_staff
from hiring_core.services.approval_service import ApprovalService
from hiring_core.services.audit_trail import AuditTrail
from hiring_core.services.notification_dispatcher import NotificationDispatcher
from hiring_core.services.soft_delete import soft_delete
from hiring_core.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _OfferParties:
    """Plain values read inside the transaction for the side effects that follow it."""

    organization_id: UUID
    application_id: UUID
    candidate_account_id: UUID
    job_id: UUID
    job_title: str

    @classmethod
    def of(cls, application: Application, job: Job) -> "_OfferParties":
        return cls(
            organization_id=job.organization_id,
            application_id=application.id,
            candidate_account_id=application.candidate_account_id,
            job_id=job.id,
            job_title=job.title,
        )


class OfferService:
    """Service for offer lifecycle operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = OfferRepository(db)
        self.applications = ApplicationRepository(db)
        self.accounts = AccountRepository(db)
        self.approvals = ApprovalService(db)
        self.audit = AuditTrail(db)
        self.notifications = NotificationDispatcher(db)

    async def _load_for_staff(self, ctx: AuthContext, offer_id: UUID) -> Tuple[Offer, Application, Job]:
        offer = await self.repository.get_by_id(offer_id)
        if offer is None or offer.organization_id != ctx.organization_id:
            raise NotFound("OFFER_NOT_FOUND", "Offer not found")
        row = await self.applications.get_with_job(offer.application_id, for_update=True)
        if row is None or not can_access_job(ctx, row[1]):
            raise NotFound("OFFER_NOT_FOUND", "Offer not found")
        return offer, row[0], row[1]

    async def _load_for_candidate(self, ctx: AuthContext, offer_id: UUID) -> Tuple[Offer, Application, Job]:
        offer = await self.repository.get_by_id(offer_id)
        if offer is None:
            raise NotFound("OFFER_NOT_FOUND", "Offer not found")
        row = await self.applications.get_with_job(offer.application_id)
        if row is None:
            raise NotFound("OFFER_NOT_FOUND", "Offer not found")
        application, job = row
        if application.candidate_account_id != ctx.account_id:
            raise Forbidden("NOT_OFFER_RECIPIENT", "Only the candidate can act on this offer")
        return offer, application, job

    @staticmethod
    def _invalid_transition(offer: Offer, action: str) -> Conflict:
        return Conflict(
            "INVALID_OFFER_TRANSITION",
            f"Cannot {action} an offer that is {offer.status}",
            {"offer_id": offer.id, "status": offer.status},
        )

    async def create(self, application_id: UUID, actor: Optional[AuthContext]) -> OfferTransitionResult:
        """Draft an offer and move the application into the offer stage."""
        ctx = require_staff(actor, Roles.ELEVATED, "create offers")

        async with atomic(self.db, "create_offer"):
            row = await self.applications.get_with_job(application_id, for_update=True)
            if row is None or not can_access_job(ctx, row[1]):
                raise NotFound("APPLICATION_NOT_FOUND", "Application not found")
            application, job = row

            stages = stage_registry.resolve_job_stages(job.stages, job.id)
            current = stage_registry.find_stage(stages, application.stage)
            current_phase = current.phase_group if current else stage_registry.get_phase_group(application.stage)
            if current_phase in stage_registry.CLOSED_PHASES:
                raise Conflict(
                    "APPLICATION_CLOSED",
                    f"Cannot make an offer to an application in '{application.stage}'",
                    {"current_stage": application.stage},
                )

            now = utc_now()
            existing = await self.repository.get_active_for_application(application.id)
            if existing is not None:
                if existing.status != OfferStatus.WITHDRAWN:
                    raise Conflict(
                        "OFFER_EXISTS",
                        "This application already has an offer",
                        {"offer_id": existing.id, "status": existing.status},
                    )
                # A withdrawn offer is retired so a new one can be made
                await soft_delete(self.db, "offer", existing, now)
                await self.db.flush()

            offer = await self.repository.create(
                organization_id=job.organization_id,
                application_id=application.id,
                previous_stage=application.stage,
                created_by_member_id=ctx.member_id,
            )
            offer_stage = next((stage.id for stage in stages if stage.phase_group == "offer"), "offer")
            application.stage = offer_stage
            application.offered_at = now
            application.updated_at = now

            self.audit.stage(
                action="offer.created",
                entity_type="offer",
                entity_id=offer.id,
                actor_id=ctx.account_id,
                organization_id=job.organization_id,
                changes={"application_stage": {"from": offer.previous_stage, "to": offer_stage}},
                details={"application_id": application.id},
            )
            await self.db.flush()
            result = OfferTransitionResult(
                offer=OfferRead.model_validate(offer),
                application_stage=application.stage,
            )

        logger.info("Offer %s created for application %s by member %s", result.offer.id, application_id, ctx.member_id)
        await self.notifications.notify_roles(
            job.organization_id,
            Roles.NOTIFIED_STAFF,
            NotificationType.OFFER_CREATED,
            "Offer drafted",
            f"An offer was drafted for a candidate on {job.title}.",
            {"offer_id": result.offer.id, "application_id": application_id, "job_id": job.id},
        )
        return result

    async def send(self, offer_id: UUID, actor: Optional[AuthContext]) -> OfferRead:
        """Send a DRAFT offer to the candidate, consuming its approval when one is required."""
        ctx = require_staff(actor, Roles.ELEVATED, "send offers")

        async with atomic(self.db, "send_offer"):
            offer, application, job = await self._load_for_staff(ctx, offer_id)
            if offer.status != OfferStatus.DRAFT:
                raise self._invalid_transition(offer, "send")

            if settings.OFFER_SEND_REQUIRES_APPROVAL:
                await self.approvals.consume(ctx.organization_id, "offer", offer.id, ApprovalType.OFFER_SEND)

            if not await self.repository.transition(offer, [OfferStatus.DRAFT], OfferStatus.SENT, sent_at=utc_now()):
                raise Conflict("CONCURRENT_MODIFICATION", "The offer was changed by another request")
            parties = _OfferParties.of(application, job)
            result = OfferRead.model_validate(offer)

        logger.info("Offer %s sent by member %s", offer_id, ctx.member_id)
        await self.audit.append(
            action="offer.sent",
            entity_type="offer",
            entity_id=offer_id,
            actor_id=ctx.account_id,
            organization_id=ctx.organization_id,
            changes={"status": {"from": OfferStatus.DRAFT, "to": OfferStatus.SENT}},
        )
        await self.notifications.notify(
            parties.candidate_account_id,
            NotificationType.OFFER_SENT,
            "You have an offer",
            f"You received an offer for {parties.job_title}.",
            {"offer_id": offer_id, "job_id": parties.job_id},
            send_email=True,
        )
        return result

    async def record_view(self, offer_id: UUID, actor: Optional[AuthContext]) -> OfferViewResult:
        """
        Record the candidate opening a SENT offer.

        The first view moves the offer to VIEWED and writes the staff inbox
        rows in the same transaction; any later call changes nothing.
        """
        ctx = require_actor(actor)

        async with atomic(self.db, "record_offer_view"):
            offer, application, job = await self._load_for_candidate(ctx, offer_id)
            first_view = False
            if offer.status == OfferStatus.SENT:
                first_view = await self.repository.transition(
                    offer,
                    [OfferStatus.SENT],
                    OfferStatus.VIEWED,
                    viewed_at=utc_now(),
                )
                if first_view:
                    staff = await self.accounts.list_account_ids_by_roles(
                        job.organization_id,
                        Roles.NOTIFIED_STAFF,
                    )
                    self.notifications.stage_in_app(
                        staff,
                        NotificationType.OFFER_VIEWED,
                        "Offer viewed",
                        f"The candidate opened their offer for {job.title}.",
                        {"offer_id": offer.id, "application_id": application.id, "job_id": job.id},
                    )
                else:
                    # Another request recorded the first view
                    await self.db.refresh(offer)
            result = OfferViewResult(
                offer_id=offer.id,
                status=offer.status,
                viewed_at=offer.viewed_at,
                first_view=first_view,
            )

        if first_view:
            logger.info("Offer %s viewed by candidate %s", offer_id, ctx.account_id)
        return result

    async def sign(self, offer_id: UUID, actor: Optional[AuthContext]) -> OfferRead:
        """Candidate accepts a VIEWED offer."""
        ctx = require_actor(actor)

        async with atomic(self.db, "sign_offer"):
            offer, application, job = await self._load_for_candidate(ctx, offer_id)
            if offer.status != OfferStatus.VIEWED:
                raise self._invalid_transition(offer, "sign")
            if not await self.repository.transition(offer, [OfferStatus.VIEWED], OfferStatus.SIGNED, signed_at=utc_now()):
                raise Conflict("CONCURRENT_MODIFICATION", "The offer was changed by another request")
            parties = _OfferParties.of(application, job)
            result = OfferRead.model_validate(offer)

        logger.info("Offer %s signed by candidate %s", offer_id, ctx.account_id)
        await self.audit.append(
            action="offer.signed",
            entity_type="offer",
            entity_id=offer_id,
            actor_id=ctx.account_id,
            organization_id=parties.organization_id,
            changes={"status": {"from": OfferStatus.VIEWED, "to": OfferStatus.SIGNED}},
        )
        await self.notifications.notify_roles(
            parties.organization_id,
            Roles.NOTIFIED_STAFF,
            NotificationType.OFFER_SIGNED,
            "Offer signed",
            f"The candidate signed their offer for {parties.job_title}.",
            {"offer_id": offer_id, "application_id": parties.application_id, "job_id": parties.job_id},
            send_email=True,
        )
        return result

    async def withdraw(
        self,
        offer_id: UUID,
        actor: Optional[AuthContext],
        reason: Optional[str] = None,
    ) -> OfferTransitionResult:
        """Withdraw an unsigned offer; an application still at the offer stage goes back where it was."""
        ctx = require_staff(actor, Roles.ELEVATED, "withdraw offers")

        async with atomic(self.db, "withdraw_offer"):
            offer, application, job = await self._load_for_staff(ctx, offer_id)
            if offer.status in OfferStatus.TERMINAL:
                raise self._invalid_transition(offer, "withdraw")

            from_status = offer.status
            now = utc_now()
            withdrawn = await self.repository.transition(
                offer,
                OfferStatus.WITHDRAWABLE,
                OfferStatus.WITHDRAWN,
                withdrawn_at=now,
                withdrawal_reason=reason,
            )
            if not withdrawn:
                raise Conflict("CONCURRENT_MODIFICATION", "The offer was changed by another request")

            # Applications that already left the offer phase keep their stage
            stages = stage_registry.resolve_job_stages(job.stages, job.id)
            current = stage_registry.find_stage(stages, application.stage)
            current_phase = current.phase_group if current else stage_registry.get_phase_group(application.stage)
            restored_stage = None
            if current_phase == "offer":
                restored_stage = offer.previous_stage or settings.PRE_OFFER_FALLBACK_STAGE
                application.stage = restored_stage
                application.updated_at = now
            await self.db.flush()
            result = OfferTransitionResult(
                offer=OfferRead.model_validate(offer),
                application_stage=application.stage,
            )
            parties = _OfferParties.of(application, job)

        logger.info(
            "Offer %s withdrawn by member %s; application %s at %s",
            offer_id,
            ctx.member_id,
            parties.application_id,
            result.application_stage,
        )
        changes = {"status": {"from": from_status, "to": OfferStatus.WITHDRAWN}}
        if restored_stage is not None:
            changes["application_stage"] = {"to": restored_stage}
        await self.audit.append(
            action="offer.withdrawn",
            entity_type="offer",
            entity_id=offer_id,
            actor_id=ctx.account_id,
            organization_id=ctx.organization_id,
            changes=changes,
            details={"reason": reason} if reason else None,
        )
        if from_status in (OfferStatus.SENT, OfferStatus.VIEWED):
            await self.notifications.notify(
                parties.candidate_account_id,
                NotificationType.OFFER_WITHDRAWN,
                "Offer withdrawn",
                f"Your offer for {parties.job_title} has been withdrawn.",
                {"offer_id": offer_id, "job_id": parties.job_id},
                send_email=True,
            )
        return result
