"""Tests for estates and estate-level access control."""

import uuid

import pytest

from legatepro.db.enums import EstateEventType
from legatepro.db.models import Estate, EstateEvent
from tests.conftest import estate_url


@pytest.mark.asyncio
async def test_unauthenticated_estate_access_is_401(client, estate):
    for path in ("/api/estates", estate_url(estate), estate_url(estate, "/documents")):
        response = await client.get(path)
        assert response.status_code == 401, path


@pytest.mark.asyncio
async def test_create_estate_logs_event(client_for, owner, db):
    async with client_for(owner) as c:
        response = await c.post(
            "/api/estates",
            json={"display_name": "  Estate of John Roe ", "decedent_name": "John Roe"},
        )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["display_name"] == "Estate of John Roe"
    assert data["status"] == "OPEN"
    assert data["role"] == "OWNER"

    events = db.query(EstateEvent).filter(EstateEvent.estate_id == uuid.UUID(data["id"])).all()
    assert [e.type for e in events] == [EstateEventType.ESTATE_CREATED.value]


@pytest.mark.asyncio
async def test_free_plan_second_estate_is_payment_required(client_for, free_user):
    async with client_for(free_user) as c:
        first = await c.post("/api/estates", json={"display_name": "First"})
        assert first.status_code == 201

        second = await c.post("/api/estates", json={"display_name": "Second"})

    assert second.status_code == 402
    body = second.json()
    assert body["ok"] is False
    assert body["code"] == "PAYMENT_REQUIRED"
    assert second.headers["X-LegatePro-Plan-Id"] == "free"
    assert second.headers["X-LegatePro-Plan-Limit"] == "1"
    assert second.headers["X-LegatePro-Plan-Current"] == "1"
    assert second.headers["X-LegatePro-Upgrade-Url"].endswith("/app/billing")


@pytest.mark.asyncio
async def test_list_includes_shared_estates_with_role(client_for, estate, viewer, owner):
    async with client_for(viewer) as c:
        response = await c.get("/api/estates")
    assert response.status_code == 200
    rows = response.json()["data"]
    assert [r["id"] for r in rows] == [str(estate.id)]
    assert rows[0]["role"] == "VIEWER"

    async with client_for(owner) as c:
        compact = await c.get("/api/estates", params={"compact": "1"})
    row = compact.json()["data"][0]
    assert row["role"] == "OWNER"
    assert "court_county" not in row


@pytest.mark.asyncio
async def test_list_status_filter(client_for, estate, owner, db):
    closed = Estate(owner_id=owner.id, display_name="Closed estate", status="CLOSED")
    db.add(closed)
    db.commit()

    async with client_for(owner) as c:
        open_rows = (await c.get("/api/estates", params={"status": "open"})).json()["data"]
        closed_rows = (await c.get("/api/estates", params={"status": "CLOSED"})).json()["data"]
        all_rows = (await c.get("/api/estates", params={"status": "all"})).json()["data"]
        bad = await c.get("/api/estates", params={"status": "archived"})

    assert [r["id"] for r in open_rows] == [str(estate.id)]
    assert [r["id"] for r in closed_rows] == [str(closed.id)]
    assert len(all_rows) == 2
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_outsider_gets_404_not_403(client_for, estate, outsider):
    async with client_for(outsider) as c:
        response = await c.get(estate_url(estate))
        patched = await c.patch(estate_url(estate), json={"notes": "x"})
    assert response.status_code == 404
    assert response.json()["error"] == "Estate not found"
    assert patched.status_code == 404


@pytest.mark.asyncio
async def test_viewer_can_read_but_not_write(client_for, estate, viewer):
    async with client_for(viewer) as c:
        read = await c.get(estate_url(estate))
        write = await c.patch(estate_url(estate), json={"case_number": "2024-001"})
        create_task = await c.post(estate_url(estate, "/tasks"), json={"title": "Inventory"})

    assert read.status_code == 200
    assert read.json()["data"]["role"] == "VIEWER"
    assert write.status_code == 403
    assert write.json()["code"] == "FORBIDDEN"
    assert create_task.status_code == 403


@pytest.mark.asyncio
async def test_editor_update_logs_changed_fields(client_for, estate, editor, db):
    async with client_for(editor) as c:
        response = await c.patch(
            estate_url(estate), json={"case_number": "2024-PR-17", "status": "CLOSED"}
        )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["case_number"] == "2024-PR-17"
    assert data["status"] == "CLOSED"
    assert data["display_name"] == "Estate of Jane Doe"

    event = db.query(EstateEvent).filter(
        EstateEvent.estate_id == estate.id,
        EstateEvent.type == EstateEventType.ESTATE_UPDATED.value,
    ).one()
    assert sorted(event.meta["changed_fields"]) == ["case_number", "status"]


@pytest.mark.asyncio
async def test_only_owner_deletes_estate(client_for, estate, editor, owner):
    async with client_for(editor) as c:
        denied = await c.delete(estate_url(estate))
    assert denied.status_code == 403

    async with client_for(owner) as c:
        deleted = await c.delete(estate_url(estate))
        gone = await c.get(estate_url(estate))
    assert deleted.status_code == 200
    assert deleted.json()["data"]["deleted"] is True
    assert gone.status_code == 404
