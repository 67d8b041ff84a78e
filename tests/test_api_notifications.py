"""Tests for the /me/notifications endpoints."""
import pytest

from portal.db.models import Notification


async def _submit_job_desk(make_client, submitter, vat: str = "IT777") -> str:
    response = await make_client(submitter).post(
        "/job-desks", json={"business_name": f"Desk {vat}", "vat_number": vat}
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_list_and_count(make_client, admin, super_admin, territorial_manager):
    record_id = await _submit_job_desk(make_client, territorial_manager)
    client = make_client(admin)

    response = await client.get("/me/notifications")
    assert response.status_code == 200
    data = response.json()
    assert data["unread_count"] == 1
    item = data["items"][0]
    assert item["type"] == "job_desk_pending"
    assert item["entity_id"] == record_id
    assert item["title"] == "New job desk pending approval"

    count = await client.get("/me/notifications/count")
    assert count.json() == {"count": 1}

    # Super admins are approvers too
    assert (await make_client(super_admin).get("/me/notifications/count")).json() == {"count": 1}


@pytest.mark.asyncio
async def test_submitter_is_not_notified(make_client, admin, territorial_manager):
    await _submit_job_desk(make_client, territorial_manager)

    response = await make_client(territorial_manager).get("/me/notifications")
    assert response.json() == {"items": [], "unread_count": 0}


@pytest.mark.asyncio
async def test_mark_read_is_idempotent_per_user(make_client, admin, super_admin, territorial_manager):
    await _submit_job_desk(make_client, territorial_manager)
    client = make_client(admin)
    notification_id = (await client.get("/me/notifications")).json()["items"][0]["id"]

    first = await client.post(f"/me/notifications/{notification_id}/read")
    assert first.status_code == 200
    assert first.json() == {"status": "read"}

    second = await client.post(f"/me/notifications/{notification_id}/read")
    assert second.status_code == 404
    assert second.json()["code"] == "not_found_or_already_read"

    assert (await client.get("/me/notifications/count")).json() == {"count": 0}
    # The other approver's read state is independent
    assert (await make_client(super_admin).get("/me/notifications/count")).json() == {"count": 1}


@pytest.mark.asyncio
async def test_mark_read_by_non_recipient(make_client, admin, territorial_manager):
    await _submit_job_desk(make_client, territorial_manager)
    notification_id = (await make_client(admin).get("/me/notifications")).json()["items"][0]["id"]

    response = await make_client(territorial_manager).post(f"/me/notifications/{notification_id}/read")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_mark_all_read(make_client, admin, territorial_manager):
    await _submit_job_desk(make_client, territorial_manager, vat="IT1")
    await _submit_job_desk(make_client, territorial_manager, vat="IT2")
    client = make_client(admin)

    response = await client.post("/me/notifications/read-all")
    assert response.status_code == 200
    assert response.json() == {"marked_read": 2}

    again = await client.post("/me/notifications/read-all")
    assert again.json() == {"marked_read": 0}


@pytest.mark.asyncio
async def test_delete_notification(db, make_client, admin, territorial_manager):
    await _submit_job_desk(make_client, territorial_manager)
    client = make_client(admin)
    notification_id = (await client.get("/me/notifications")).json()["items"][0]["id"]

    response = await client.delete(f"/me/notifications/{notification_id}")
    assert response.status_code == 204
    assert db.query(Notification).count() == 0

    missing = await client.delete(f"/me/notifications/{notification_id}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_notifications_require_session(client):
    assert (await client.get("/me/notifications")).status_code == 401
