"""Tests for estate collaborators (owner-managed membership)."""

import pytest

from legatepro.db.enums import EstateEventType
from legatepro.db.models import Estate, EstateCollaborator, EstateEvent
from tests.conftest import estate_url


def _events(db, estate, event_type):
    return db.query(EstateEvent).filter(
        EstateEvent.estate_id == estate.id, EstateEvent.type == event_type.value
    ).all()


@pytest.mark.asyncio
async def test_any_member_lists_collaborators(client_for, estate, viewer, owner, editor):
    async with client_for(viewer) as c:
        response = await c.get(estate_url(estate, "/collaborators"))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["owner_id"] == str(owner.id)
    roles = {row["user_id"]: row["role"] for row in data["collaborators"]}
    assert roles == {str(editor.id): "EDITOR", str(viewer.id): "VIEWER"}


@pytest.mark.asyncio
async def test_add_collaborator_creates_and_logs(client_for, estate, owner, outsider, db):
    async with client_for(owner) as c:
        response = await c.post(
            estate_url(estate, "/collaborators"),
            json={"user_id": str(outsider.id), "role": "EDITOR"},
        )
        again = await c.post(
            estate_url(estate, "/collaborators"),
            json={"user_id": str(outsider.id), "role": "EDITOR"},
        )
        changed = await c.post(
            estate_url(estate, "/collaborators"),
            json={"user_id": str(outsider.id), "role": "VIEWER"},
        )

    assert response.status_code == 201
    assert response.json()["data"]["role"] == "EDITOR"
    assert again.status_code == 200
    assert changed.status_code == 200
    assert changed.json()["data"]["role"] == "VIEWER"

    assert len(_events(db, estate, EstateEventType.COLLABORATOR_ADDED)) == 1
    assert len(_events(db, estate, EstateEventType.COLLABORATOR_ROLE_CHANGED)) == 1


@pytest.mark.asyncio
async def test_add_owner_or_unknown_user_rejected(client_for, estate, owner):
    import uuid

    async with client_for(owner) as c:
        self_add = await c.post(
            estate_url(estate, "/collaborators"),
            json={"user_id": str(owner.id), "role": "EDITOR"},
        )
        unknown = await c.post(
            estate_url(estate, "/collaborators"),
            json={"user_id": str(uuid.uuid4()), "role": "VIEWER"},
        )
        as_owner = await c.post(
            estate_url(estate, "/collaborators"),
            json={"user_id": str(owner.id), "role": "OWNER"},
        )

    assert self_add.status_code == 400
    assert self_add.json()["error"] == "Owner already has access"
    assert unknown.status_code == 404
    assert as_owner.status_code == 400


@pytest.mark.asyncio
async def test_free_plan_cannot_add_collaborators(client_for, free_user, outsider, db):
    estate = Estate(owner_id=free_user.id, display_name="Small estate")
    db.add(estate)
    db.commit()

    async with client_for(free_user) as c:
        response = await c.post(
            estate_url(estate, "/collaborators"),
            json={"user_id": str(outsider.id), "role": "VIEWER"},
        )
    assert response.status_code == 402
    assert response.json()["code"] == "ENTITLEMENT_REQUIRED"
    assert db.query(EstateCollaborator).filter(EstateCollaborator.estate_id == estate.id).count() == 0


@pytest.mark.asyncio
async def test_only_owner_manages_collaborators(client_for, estate, editor, viewer):
    async with client_for(editor) as c:
        response = await c.patch(
            estate_url(estate, f"/collaborators/{viewer.id}"), json={"role": "EDITOR"}
        )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_change_role(client_for, estate, owner, viewer):
    async with client_for(owner) as c:
        response = await c.patch(
            estate_url(estate, f"/collaborators/{viewer.id}"), json={"role": "EDITOR"}
        )
        owner_patch = await c.patch(
            estate_url(estate, f"/collaborators/{owner.id}"), json={"role": "VIEWER"}
        )
    assert response.status_code == 200
    assert response.json()["data"]["role"] == "EDITOR"
    assert owner_patch.status_code == 400


@pytest.mark.asyncio
async def test_remove_owner_is_rejected(client_for, estate, owner):
    async with client_for(owner) as c:
        response = await c.delete(estate_url(estate, f"/collaborators/{owner.id}"))
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot remove owner"


@pytest.mark.asyncio
async def test_remove_collaborator(client_for, estate, owner, viewer, outsider, db):
    async with client_for(owner) as c:
        removed = await c.delete(estate_url(estate, f"/collaborators/{viewer.id}"))
        missing = await c.delete(estate_url(estate, f"/collaborators/{outsider.id}"))
    assert removed.status_code == 200
    assert missing.status_code == 404
    assert len(_events(db, estate, EstateEventType.COLLABORATOR_REMOVED)) == 1

    async with client_for(viewer) as c:
        response = await c.get(estate_url(estate))
    assert response.status_code == 404
