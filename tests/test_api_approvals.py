"""Tests for record creation and the approval endpoints."""
import uuid

import pytest

from portal.db.models import JobDesk


def _job_desk_body(**overrides) -> dict:
    body = {"business_name": "Desk North", "vat_number": "IT00000000001", "city": "Torino"}
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_submit_approve_flow(make_client, admin, territorial_manager):
    tm_client = make_client(territorial_manager)
    admin_client = make_client(admin)

    created = await tm_client.post("/job-desks", json=_job_desk_body())
    assert created.status_code == 201
    data = created.json()
    assert data["kind"] == "job_desk"
    assert data["pending_approval"] is True
    assert data["is_active"] is False
    assert data["approval_state"] == "pending_approval"
    record_id = data["id"]

    pending = await admin_client.get("/approvals/pending")
    assert pending.status_code == 200
    assert pending.json()["total"] == 1
    item = pending.json()["items"][0]
    assert item["id"] == record_id
    assert item["submitted_by"]["id"] == str(territorial_manager.id)

    approved = await admin_client.post(f"/approvals/job_desk/{record_id}/approve")
    assert approved.status_code == 200
    assert approved.json()["state"] == "approved"
    assert approved.json()["approved_by_id"] == str(admin.id)

    again = await admin_client.post(f"/approvals/job_desk/{record_id}/approve")
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_state_transition"

    fetched = await tm_client.get(f"/job-desks/{record_id}")
    assert fetched.json()["approval_state"] == "approved"
    assert fetched.json()["is_active"] is True


@pytest.mark.asyncio
async def test_reject_deletes_record(db, make_client, admin, territorial_manager):
    tm_client = make_client(territorial_manager)
    admin_client = make_client(admin)
    record_id = (await tm_client.post("/job-desks", json=_job_desk_body())).json()["id"]

    rejected = await admin_client.post(
        f"/approvals/job_desk/{record_id}/reject", json={"reason": "Missing VAT certificate"}
    )
    assert rejected.status_code == 200
    assert rejected.json()["state"] == "rejected"
    assert rejected.json()["reason"] == "Missing VAT certificate"

    missing = await admin_client.get(f"/job-desks/{record_id}")
    assert missing.status_code == 404
    assert missing.json()["code"] == "record_not_found"
    assert db.get(JobDesk, uuid.UUID(record_id)) is None


@pytest.mark.asyncio
async def test_reject_without_body(make_client, admin, territorial_manager):
    record_id = (await make_client(territorial_manager).post("/job-desks", json=_job_desk_body())).json()["id"]

    response = await make_client(admin).post(f"/approvals/job_desk/{record_id}/reject")
    assert response.status_code == 200
    assert response.json()["reason"] is None


@pytest.mark.asyncio
async def test_admin_submission_auto_approved(make_client, admin):
    response = await make_client(admin).post(
        "/reporters",
        json={"first_name": "Ada", "last_name": "Rossi", "tax_code": "RSSDAA80A01H501U"},
    )
    assert response.status_code == 201
    assert response.json()["approval_state"] == "auto_approved"
    assert response.json()["approved_by_id"] is None


@pytest.mark.asyncio
async def test_non_approver_is_denied(make_client, territorial_manager):
    client = make_client(territorial_manager)
    record_id = (await client.post("/job-desks", json=_job_desk_body())).json()["id"]

    response = await client.post(f"/approvals/job_desk/{record_id}/approve")
    assert response.status_code == 403
    assert response.json()["code"] == "authorization_denied"
    assert response.json()["reason"] == "not_approver"

    assert (await client.get("/approvals/pending")).status_code == 403


@pytest.mark.asyncio
async def test_creation_denied_by_rank(make_client, territorial_manager):
    response = await make_client(territorial_manager).post(
        "/agents", json={"business_name": "Agent Smith", "vat_number": "IT99"}
    )
    assert response.status_code == 403
    assert response.json()["reason"] == "same_rank_territorial"


@pytest.mark.asyncio
async def test_duplicate_vat_number(make_client, admin):
    client = make_client(admin)
    await client.post("/companies", json={"business_name": "A", "vat_number": "IT1"})

    response = await client.post("/companies", json={"business_name": "B", "vat_number": "IT1"})
    assert response.status_code == 409
    assert response.json() == {
        "detail": "A record with this vat_number already exists",
        "code": "duplicate_key",
        "field": "vat_number",
    }


@pytest.mark.asyncio
async def test_mutations_require_csrf_header(make_client, admin):
    client = make_client(admin, csrf=False)
    response = await client.post("/companies", json={"business_name": "A", "vat_number": "IT1"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_kind_is_rejected(make_client, admin):
    response = await make_client(admin).post(f"/approvals/spaceship/{uuid.uuid4()}/approve")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_record_crud_scoping(make_client, admin, territorial_manager, job_desk, reporter):
    desk_client = make_client(job_desk)
    created = await desk_client.post("/companies", json={"business_name": "Acme", "vat_number": "IT5"})
    company_id = created.json()["id"]

    assert created.json()["owner_id"] == str(job_desk.id)
    assert created.json()["managed_by_id"] == str(territorial_manager.id)

    # Supervisor can see and edit it; an unrelated reporter cannot
    tm_client = make_client(territorial_manager)
    listed = await tm_client.get("/companies")
    assert [c["id"] for c in listed.json()] == [company_id]
    patched = await tm_client.patch(f"/companies/{company_id}", json={"city": "Bari"})
    assert patched.json()["city"] == "Bari"

    reporter_client = make_client(reporter)
    assert (await reporter_client.get(f"/companies/{company_id}")).status_code == 403
    assert (await reporter_client.get("/companies")).json() == []

    deleted = await desk_client.delete(f"/companies/{company_id}")
    assert deleted.status_code == 204
    assert (await desk_client.get(f"/companies/{company_id}")).status_code == 404
