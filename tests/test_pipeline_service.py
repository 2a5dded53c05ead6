from types import SimpleNamespace

import pytest
from sqlalchemy import select

from hiring_core.errors import Conflict, Forbidden, NotFound, Unauthorized, ValidationFailed
from hiring_core.models.application import Application
from hiring_core.models.audit_log import AuditLog
from hiring_core.models.notification import NotificationJob, NotificationType
from hiring_core.models.offer import Offer, OfferStatus
from hiring_core.repositories.audit_log_repository import AuditLogRepository
from hiring_core.services.offer_service import OfferService
from hiring_core.services.pipeline_service import PipelineService
from hiring_core.services.soft_delete import UnregisteredEntityType, registered_types, soft_delete

from conftest import GATED_STAGES, context_for, count_rows, naive, ref, reload, set_stage


@pytest.mark.db
@pytest.mark.asyncio
async def test_advance_stage_moves_application_and_records_side_effects(db, hiring):
    service = PipelineService(db)
    await set_stage(db, hiring.application.id, "screening")

    result = await service.advance_stage(hiring.application.id, "qualified", hiring.ctx.recruiter)

    assert result.from_stage == "screening"
    assert result.to_stage == "qualified"
    assert result.application.stage == "qualified"
    assert (await reload(db, Application, hiring.application.id)).stage == "qualified"

    entries = await AuditLogRepository(db).list_for_entity("application", hiring.application.id)
    assert [entry.action for entry in entries] == ["application.stage_changed"]
    assert entries[0].changes == {"stage": {"from": "screening", "to": "qualified"}}
    assert entries[0].actor_account_id == hiring.ctx.recruiter.account_id

    jobs = (await db.execute(select(NotificationJob))).scalars().all()
    assert [(job.account_id, job.type) for job in jobs] == [(hiring.candidate.id, NotificationType.STAGE_CHANGED)]
    assert jobs[0].data["stage"] == "qualified"


@pytest.mark.db
@pytest.mark.asyncio
async def test_advance_stage_rejects_unknown_and_same_stage(db, hiring):
    service = PipelineService(db)

    with pytest.raises(ValidationFailed) as exc_info:
        await service.advance_stage(hiring.application.id, "limbo", hiring.ctx.admin)
    assert exc_info.value.code == "UNKNOWN_STAGE"
    assert "interview" in exc_info.value.details["valid_stages"]

    with pytest.raises(Conflict) as exc_info:
        await service.advance_stage(hiring.application.id, "interview", hiring.ctx.admin)
    assert exc_info.value.code == "ALREADY_IN_STAGE"


@pytest.mark.db
@pytest.mark.asyncio
async def test_advance_stage_checks_roles_and_job_visibility(db, seed, hiring):
    service = PipelineService(db)
    application_id = hiring.application.id

    with pytest.raises(Unauthorized):
        await service.advance_stage(application_id, "qualified", None)

    with pytest.raises(Forbidden) as exc_info:
        await service.advance_stage(application_id, "qualified", hiring.ctx.candidate)
    assert exc_info.value.code == "NOT_ORGANIZATION_MEMBER"

    with pytest.raises(Forbidden) as exc_info:
        await service.advance_stage(application_id, "qualified", hiring.ctx.reviewer)
    assert exc_info.value.code == "INSUFFICIENT_ROLE"

    # Hiring manager of another job in the same organization
    other_manager = await seed.member(hiring.org, "HIRING_MANAGER")
    await seed.job(hiring.org, title="Designer", hiring_manager=other_manager)
    await db.commit()
    other_ctx = await context_for(db, other_manager.account_id)
    with pytest.raises(NotFound):
        await service.advance_stage(application_id, "qualified", other_ctx)

    # Staff of another organization
    rival = await seed.organization(name="Rival")
    rival_admin = await seed.member(rival, "ADMIN")
    await db.commit()
    with pytest.raises(NotFound):
        await service.advance_stage(application_id, "qualified", await context_for(db, rival_admin.account_id))

    result = await service.advance_stage(application_id, "qualified", hiring.ctx.hiring_manager)
    assert result.to_stage == "qualified"


@pytest.mark.db
@pytest.mark.asyncio
async def test_stage_gate_blocks_transition_without_changing_anything(db, seed):
    org = await seed.organization()
    recruiter = ref(await seed.member(org, "RECRUITER"), "account_id")
    job = await seed.job(org, stages=GATED_STAGES, recruiter=recruiter)
    application = ref(await seed.application(job, stage="screening"))
    await seed.scorecard(application, "screening", recruiter)
    await db.commit()
    ctx = await context_for(db, recruiter.account_id)
    service = PipelineService(db)

    with pytest.raises(Conflict) as exc_info:
        await service.advance_stage(application.id, "interview", ctx)
    assert exc_info.value.code == "STAGE_GATE_BLOCKED"
    blockers = exc_info.value.details["blockers"]
    assert len(blockers) == 1
    assert blockers[0]["metadata"]["current"] == 1
    assert blockers[0]["metadata"]["required"] == 2
    assert (await reload(db, Application, application.id)).stage == "screening"
    assert await count_rows(db, AuditLog) == 0

    await seed.scorecard(application, "screening", recruiter)
    await db.commit()
    result = await service.advance_stage(application.id, "interview", ctx)
    assert result.to_stage == "interview"


@pytest.mark.db
@pytest.mark.asyncio
async def test_offer_stage_requires_an_offer(db, hiring):
    with pytest.raises(Conflict) as exc_info:
        await PipelineService(db).advance_stage(hiring.application.id, "offer", hiring.ctx.recruiter)
    assert exc_info.value.code == "OFFER_REQUIRED"


@pytest.mark.db
@pytest.mark.asyncio
async def test_offer_stage_not_reachable_through_withdrawn_offer(db, hiring):
    offers = OfferService(db)
    created = await offers.create(hiring.application.id, hiring.ctx.recruiter)
    await offers.withdraw(created.offer.id, hiring.ctx.recruiter)

    with pytest.raises(Conflict) as exc_info:
        await PipelineService(db).advance_stage(hiring.application.id, "offer", hiring.ctx.recruiter)
    assert exc_info.value.code == "OFFER_REQUIRED"


@pytest.mark.db
@pytest.mark.asyncio
async def test_hiring_can_reject_remaining_candidates(db, seed, hiring):
    await set_stage(db, hiring.application.id, "offer")
    second = await seed.application(hiring.job, stage="screening")
    third = await seed.application(hiring.job, stage="interview")
    already_rejected = await seed.application(hiring.job, stage="rejected")
    await db.commit()

    result = await PipelineService(db).advance_stage(
        hiring.application.id,
        "hired",
        hiring.ctx.admin,
        reject_remaining=True,
    )

    assert result.rejected_count == 2
    assert result.application.hired_at is not None
    for other in (second, third):
        row = await reload(db, Application, other.id)
        assert row.stage == "rejected"
        assert row.rejection_reason == "position_filled"
        assert row.rejected_at is not None
    assert (await reload(db, Application, already_rejected.id)).rejection_reason is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_reject_remaining_is_ignored_outside_hiring(db, seed, hiring):
    other = await seed.application(hiring.job, stage="screening")
    await db.commit()

    result = await PipelineService(db).advance_stage(
        hiring.application.id,
        "rejected",
        hiring.ctx.recruiter,
        rejection_reason="Not a fit",
        reject_remaining=True,
    )

    assert result.rejected_count == 0
    assert result.application.rejection_reason == "Not a fit"
    assert (await reload(db, Application, other.id)).stage == "screening"


@pytest.mark.db
@pytest.mark.asyncio
async def test_closed_application_cannot_be_moved(db, hiring):
    service = PipelineService(db)
    await service.advance_stage(hiring.application.id, "rejected", hiring.ctx.recruiter)

    with pytest.raises(Conflict) as exc_info:
        await service.advance_stage(hiring.application.id, "screening", hiring.ctx.recruiter)
    assert exc_info.value.code == "APPLICATION_CLOSED"


@pytest.mark.db
@pytest.mark.asyncio
async def test_audit_failure_does_not_undo_the_transition(db, hiring, monkeypatch):
    def broken_add(self, *args, **kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(AuditLogRepository, "add", broken_add)

    result = await PipelineService(db).advance_stage(hiring.application.id, "qualified", hiring.ctx.recruiter)

    assert result.to_stage == "qualified"
    assert (await reload(db, Application, hiring.application.id)).stage == "qualified"
    assert await count_rows(db, NotificationJob) == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_candidate_withdraws_once(db, hiring):
    service = PipelineService(db)

    result = await service.withdraw(hiring.application.id, hiring.ctx.candidate, reason="Accepted elsewhere")
    assert result.stage == "withdrawn"
    assert result.deleted_at is not None

    with pytest.raises(Conflict) as exc_info:
        await service.withdraw(hiring.application.id, hiring.ctx.candidate)
    assert exc_info.value.code == "ALREADY_WITHDRAWN"

    row = await reload(db, Application, hiring.application.id)
    assert naive(row.deleted_at) == naive(result.deleted_at)

    entries = await AuditLogRepository(db).list_for_entity("application", hiring.application.id)
    assert [entry.action for entry in entries] == ["application.withdrawn"]
    assert entries[0].details == {"reason": "Accepted elsewhere"}


@pytest.mark.db
@pytest.mark.asyncio
async def test_withdraw_requires_the_candidate(db, hiring):
    service = PipelineService(db)

    with pytest.raises(Forbidden) as exc_info:
        await service.withdraw(hiring.application.id, hiring.ctx.recruiter)
    assert exc_info.value.code == "NOT_APPLICATION_OWNER"

    with pytest.raises(Unauthorized):
        await service.withdraw(hiring.application.id, None)


@pytest.mark.db
@pytest.mark.asyncio
async def test_withdraw_notifies_staff(db, hiring):
    await PipelineService(db).withdraw(hiring.application.id, hiring.ctx.candidate)

    result = await db.execute(
        select(NotificationJob.account_id).where(NotificationJob.type == NotificationType.APPLICATION_WITHDRAWN)
    )
    recipients = set(result.scalars().all())
    assert recipients == {hiring.members.admin.account_id, hiring.members.recruiter.account_id}


@pytest.mark.db
@pytest.mark.asyncio
async def test_withdraw_cascades_to_the_active_offer(db, hiring):
    offers = OfferService(db)
    created = await offers.create(hiring.application.id, hiring.ctx.recruiter)
    await offers.send(created.offer.id, hiring.ctx.recruiter)

    await PipelineService(db).withdraw(hiring.application.id, hiring.ctx.candidate)

    offer = await reload(db, Offer, created.offer.id)
    assert offer.status == OfferStatus.WITHDRAWN
    assert offer.withdrawal_reason == "application_withdrawn"
    assert offer.withdrawn_at is not None
    assert offer.deleted_at is not None


@pytest.mark.db
@pytest.mark.asyncio
async def test_withdraw_keeps_signed_offer_status(db, hiring):
    offers = OfferService(db)
    created = await offers.create(hiring.application.id, hiring.ctx.recruiter)
    await offers.send(created.offer.id, hiring.ctx.recruiter)
    await offers.record_view(created.offer.id, hiring.ctx.candidate)
    await offers.sign(created.offer.id, hiring.ctx.candidate)

    await PipelineService(db).withdraw(hiring.application.id, hiring.ctx.candidate)

    offer = await reload(db, Offer, created.offer.id)
    assert offer.status == OfferStatus.SIGNED
    assert offer.deleted_at is not None


@pytest.mark.db
@pytest.mark.asyncio
async def test_withdrawn_application_is_hidden_from_stage_moves(db, hiring):
    service = PipelineService(db)
    await service.withdraw(hiring.application.id, hiring.ctx.candidate)

    with pytest.raises(NotFound):
        await service.advance_stage(hiring.application.id, "qualified", hiring.ctx.recruiter)


@pytest.mark.db
@pytest.mark.asyncio
async def test_reopen_brings_closed_applications_back(db, hiring):
    service = PipelineService(db)
    await service.advance_stage(hiring.application.id, "rejected", hiring.ctx.recruiter, rejection_reason="Timing")

    result = await service.reopen(hiring.application.id, hiring.ctx.recruiter, restore_to_stage="screening")

    assert result.from_stage == "rejected"
    assert result.to_stage == "screening"
    assert result.application.rejected_at is None
    assert result.application.rejection_reason is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_reopen_restores_withdrawn_application(db, hiring):
    service = PipelineService(db)
    await service.withdraw(hiring.application.id, hiring.ctx.candidate)

    result = await service.reopen(hiring.application.id, hiring.ctx.admin)

    assert result.to_stage == "applied"
    assert result.application.deleted_at is None
    assert (await reload(db, Application, hiring.application.id)).deleted_at is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_reopen_rejects_open_applications_and_offer_targets(db, hiring):
    service = PipelineService(db)

    with pytest.raises(Conflict) as exc_info:
        await service.reopen(hiring.application.id, hiring.ctx.recruiter)
    assert exc_info.value.code == "NOT_REOPENABLE"

    await service.advance_stage(hiring.application.id, "talent-pool", hiring.ctx.recruiter)
    for target in ("offer", "hired", "nowhere"):
        with pytest.raises(ValidationFailed) as exc_info:
            await service.reopen(hiring.application.id, hiring.ctx.recruiter, restore_to_stage=target)
        assert exc_info.value.code == "INVALID_RESTORE_STAGE"


@pytest.mark.db
@pytest.mark.asyncio
async def test_plan_transition_is_read_only(db, hiring):
    service = PipelineService(db)

    plan = await service.plan_transition(hiring.job.id, hiring.application.id, "rejected", hiring.ctx.hiring_manager)

    assert plan.allowed
    assert plan.suggestions[0].action == "prompt_send_rejection_email"
    assert (await reload(db, Application, hiring.application.id)).stage == "interview"

    with pytest.raises(NotFound):
        await service.plan_transition(hiring.org.id, hiring.application.id, "rejected", hiring.ctx.admin)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_soft_delete_of_unregistered_type_raises():
    entity = SimpleNamespace(deleted_at=None, updated_at=None)

    with pytest.raises(UnregisteredEntityType) as exc_info:
        await soft_delete(None, "scorecard", entity)

    assert "application" in str(exc_info.value)
    assert entity.deleted_at is None
    assert registered_types() == ["application", "offer"]
