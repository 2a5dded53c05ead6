"""
HTTP-level tests for routing, bearer authentication and the error envelope.
"""

import uuid

import pytest

from conftest import GATED_STAGES, auth_headers, ref


async def _gated_application(db, seed):
    org = await seed.organization()
    recruiter = ref(await seed.member(org, "RECRUITER"), "account_id")
    job = ref(await seed.job(org, stages=GATED_STAGES, recruiter=recruiter))
    candidate = ref(await seed.account(name="Candidate"))
    application = ref(await seed.application(job, candidate, stage="screening"))
    await seed.scorecard(application, "screening", recruiter)
    await db.commit()
    return recruiter, job, candidate, application


@pytest.mark.db
@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["api_ok"] is True
    assert body["db_ok"] is True
    assert body["migrations_current"] is False


@pytest.mark.db
@pytest.mark.asyncio
async def test_missing_and_invalid_tokens_use_the_error_envelope(client, hiring):
    url = f"/applications/{hiring.application.id}/stage"

    response = await client.post(url, json={"target_stage": "qualified"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    response = await client.post(
        url,
        json={"target_stage": "qualified"},
        headers={"Authorization": "Bearer not-a-real-token"},
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"

    response = await client.post(url, json={"target_stage": "qualified"}, headers=auth_headers(uuid.uuid4()))
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNKNOWN_ACCOUNT"


@pytest.mark.db
@pytest.mark.asyncio
async def test_advance_stage_over_http(client, hiring):
    response = await client.post(
        f"/applications/{hiring.application.id}/stage",
        json={"target_stage": "rejected", "rejection_reason": "Not a fit"},
        headers=auth_headers(hiring.members.recruiter.account_id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["from_stage"] == "interview"
    assert body["to_stage"] == "rejected"
    assert body["application"]["rejection_reason"] == "Not a fit"

    response = await client.post(
        f"/applications/{hiring.application.id}/stage",
        json={"target_stage": "screening"},
        headers=auth_headers(hiring.members.recruiter.account_id),
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "APPLICATION_CLOSED"


@pytest.mark.db
@pytest.mark.asyncio
async def test_blocked_transition_returns_blockers(client, db, seed):
    recruiter, job, _, application = await _gated_application(db, seed)
    headers = auth_headers(recruiter.account_id)

    response = await client.post(
        f"/applications/{application.id}/stage",
        json={"target_stage": "interview"},
        headers=headers,
    )

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "STAGE_GATE_BLOCKED"
    assert error["details"]["blockers"] == [
        {
            "action": "gate_scorecards_required",
            "message": "1 of 2 required scorecards submitted for Phone Screen.",
            "metadata": {"current": 1, "required": 2, "stage_id": "screening", "stage_name": "Phone Screen"},
        }
    ]

    response = await client.get(
        f"/jobs/{job.id}/applications/{application.id}/stage-gate",
        params={"to_stage": "interview"},
        headers=headers,
    )
    assert response.status_code == 200
    plan = response.json()
    assert plan["allowed"] is False
    assert plan["blockers"][0]["metadata"]["current"] == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_stage_configuration_round_trip(client, hiring):
    headers = auth_headers(hiring.members.admin.account_id)
    url = f"/jobs/{hiring.job.id}/stages"

    response = await client.get(url, headers=headers)
    assert response.status_code == 200
    assert [stage["id"] for stage in response.json()][:2] == ["applied", "screening"]

    response = await client.put(url, json={"stages": GATED_STAGES}, headers=headers)
    assert response.status_code == 200
    stages = response.json()
    assert stages[1]["name"] == "Phone Screen"
    assert stages[1]["config"]["required_scorecards"] == 2

    response = await client.put(
        url,
        json={"stages": [{"id": "screening", "name": "Screen", "config": {"required_scorecards": -2}}]},
        headers=headers,
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "INVALID_STAGE_CONFIG"
    assert error["details"]["errors"]

    response = await client.put(url, json={"stages": GATED_STAGES}, headers=auth_headers(hiring.members.hiring_manager.account_id))
    assert response.status_code == 403


@pytest.mark.db
@pytest.mark.asyncio
async def test_offer_flow_over_http(client, hiring):
    staff = auth_headers(hiring.members.recruiter.account_id)
    candidate = auth_headers(hiring.candidate.id)

    response = await client.post("/offers", json={"application_id": str(hiring.application.id)}, headers=staff)
    assert response.status_code == 201
    offer_id = response.json()["offer"]["id"]

    response = await client.post(f"/offers/{offer_id}/send", headers=staff)
    assert response.status_code == 200
    assert response.json()["status"] == "SENT"

    first = await client.post(f"/offers/{offer_id}/view", headers=candidate)
    second = await client.post(f"/offers/{offer_id}/view", headers=candidate)
    assert first.json()["first_view"] is True
    assert second.json()["first_view"] is False

    response = await client.post(f"/offers/{offer_id}/sign", headers=candidate)
    assert response.status_code == 200
    assert response.json()["status"] == "SIGNED"

    response = await client.post(f"/offers/{offer_id}/withdraw", json={"reason": "late"}, headers=staff)
    assert response.status_code == 409
    assert response.json()["error"]["details"]["offer_id"] == offer_id


@pytest.mark.db
@pytest.mark.asyncio
async def test_candidate_withdraws_over_http(client, hiring):
    headers = auth_headers(hiring.candidate.id)
    url = f"/applications/{hiring.application.id}/withdraw"

    response = await client.post(url, json={"reason": "Relocating"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["stage"] == "withdrawn"

    response = await client.post(url, headers=headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_WITHDRAWN"


@pytest.mark.db
@pytest.mark.asyncio
async def test_approval_endpoints(client, hiring):
    requester = auth_headers(hiring.members.recruiter.account_id)
    approver = auth_headers(hiring.members.admin.account_id)

    response = await client.post(
        "/approvals",
        json={
            "entity_type": "job",
            "entity_id": str(hiring.job.id),
            "approval_type": "JOB_PUBLISH",
            "approver_id": str(hiring.members.admin.id),
        },
        headers=requester,
    )
    assert response.status_code == 201
    approval_id = response.json()["id"]

    response = await client.get("/approvals", headers=approver)
    assert [item["id"] for item in response.json()] == [approval_id]

    response = await client.post(f"/approvals/{approval_id}/respond", json={"status": "APPROVED"}, headers=approver)
    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"

    response = await client.post(f"/approvals/{approval_id}/respond", json={"status": "REJECTED"}, headers=approver)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "APPROVAL_ALREADY_RESOLVED"


@pytest.mark.db
@pytest.mark.asyncio
async def test_score_endpoints(client, db, seed):
    coach = ref(await seed.coach())
    rater = ref(await seed.account(name="Rater"))
    await db.commit()
    url = f"/scores/coach/{coach.id}"

    response = await client.put(url, json={"rating": 5})
    assert response.status_code == 401

    response = await client.put(url, json={"rating": 7}, headers=auth_headers(rater.id))
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_RATING"

    response = await client.put(url, json={"rating": 4, "comment": "Sharp advice"}, headers=auth_headers(rater.id))
    assert response.status_code == 200
    assert response.json()["aggregate"] == {
        "target_type": "coach",
        "target_id": str(coach.id),
        "rating": 4.0,
        "count": 1,
    }
