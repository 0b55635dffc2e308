"""Tests for documents, contacts, notes and tasks."""

import uuid
from datetime import date, timedelta

import pytest

from legatepro.db.enums import EstateEventType
from legatepro.db.models import EstateDocument, EstateEvent, Invoice
from tests.conftest import estate_url


def _event_types(db, estate):
    return [
        e.type
        for e in db.query(EstateEvent)
        .filter(EstateEvent.estate_id == estate.id)
        .order_by(EstateEvent.created_at.asc())
        .all()
    ]


# =============================================================================
# Documents
# =============================================================================

@pytest.fixture
def sensitive_document(db, estate, owner) -> EstateDocument:
    document = EstateDocument(
        estate_id=estate.id,
        owner_id=owner.id,
        label="Bank account numbers",
        subject="BANKING",
        tags=["accounts"],
        is_sensitive=True,
    )
    db.add(document)
    db.commit()
    return document


@pytest.mark.asyncio
async def test_viewer_never_sees_sensitive_documents(client_for, estate, viewer, sensitive_document):
    async with client_for(viewer) as c:
        listed = await c.get(estate_url(estate, "/documents"))
        fetched = await c.get(estate_url(estate, f"/documents/{sensitive_document.id}"))
        asked = await c.get(estate_url(estate, "/documents"), params={"sensitive": "true"})

    assert listed.status_code == 200
    assert listed.json()["data"] == []
    assert fetched.status_code == 404
    assert asked.json()["data"] == []


@pytest.mark.asyncio
async def test_editor_sees_sensitive_documents(client_for, estate, editor, sensitive_document):
    async with client_for(editor) as c:
        listed = await c.get(estate_url(estate, "/documents"))
        fetched = await c.get(estate_url(estate, f"/documents/{sensitive_document.id}"))
    assert [d["id"] for d in listed.json()["data"]] == [str(sensitive_document.id)]
    assert fetched.status_code == 200
    assert fetched.json()["data"]["is_sensitive"] is True


@pytest.mark.asyncio
async def test_sensitive_documents_are_created_by_editors_only(client_for, estate, editor, viewer):
    payload = {"label": "Death certificate", "subject": "LEGAL", "is_sensitive": True}
    async with client_for(editor) as c:
        created = await c.post(estate_url(estate, "/documents"), json=payload)
    async with client_for(viewer) as c:
        denied = await c.post(estate_url(estate, "/documents"), json=payload)

    assert created.status_code == 201
    assert created.json()["data"]["is_sensitive"] is True
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_create_document_cleans_tags(client_for, estate, editor, db):
    async with client_for(editor) as c:
        response = await c.post(
            estate_url(estate, "/documents"),
            json={
                "label": " Last will ",
                "subject": "LEGAL",
                "tags": [" will ", "", "will", 7, "original"],
            },
        )
        missing_label = await c.post(estate_url(estate, "/documents"), json={"label": "   "})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["label"] == "Last will"
    assert data["tags"] == ["will", "original"]
    assert missing_label.status_code == 400
    assert EstateEventType.DOCUMENT_CREATED.value in _event_types(db, estate)


@pytest.mark.asyncio
async def test_document_filters(client_for, estate, owner, db):
    db.add_all(
        [
            EstateDocument(estate_id=estate.id, label="Deed", subject="PROPERTY", tags=["House"]),
            EstateDocument(estate_id=estate.id, label="Will", subject="LEGAL", tags=["original"]),
        ]
    )
    db.commit()

    async with client_for(owner) as c:
        by_subject = await c.get(estate_url(estate, "/documents"), params={"subject": "LEGAL"})
        by_tag = await c.get(estate_url(estate, "/documents"), params={"tag": "house"})
        by_query = await c.get(estate_url(estate, "/documents"), params={"q": "dee"})

    assert [d["label"] for d in by_subject.json()["data"]] == ["Will"]
    assert [d["label"] for d in by_tag.json()["data"]] == ["Deed"]
    assert [d["label"] for d in by_query.json()["data"]] == ["Deed"]


@pytest.mark.asyncio
async def test_update_document_whitelist(client_for, estate, editor, sensitive_document):
    async with client_for(editor) as c:
        response = await c.patch(
            estate_url(estate, f"/documents/{sensitive_document.id}"),
            json={"location": "Safe deposit box", "estate_id": "ignored", "subject": None},
        )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["location"] == "Safe deposit box"
    assert data["subject"] == "BANKING"
    assert data["estate_id"] == str(estate.id)


# =============================================================================
# Contacts
# =============================================================================

@pytest.mark.asyncio
async def test_contacts_primary_is_exclusive(client_for, estate, editor, db):
    async with client_for(editor) as c:
        first = await c.post(
            estate_url(estate, "/contacts"),
            json={"name": "Alex Attorney", "role": "ATTORNEY", "is_primary": True},
        )
        second = await c.post(
            estate_url(estate, "/contacts"),
            json={"name": "Bea Beneficiary", "role": "BENEFICIARY", "is_primary": True},
        )
        listed = await c.get(estate_url(estate, "/contacts"))

    assert first.status_code == 201
    assert second.status_code == 201
    rows = {c["name"]: c["is_primary"] for c in listed.json()["data"]}
    assert rows == {"Alex Attorney": False, "Bea Beneficiary": True}
    assert _event_types(db, estate).count(EstateEventType.CONTACT_LINKED.value) == 2


@pytest.mark.asyncio
async def test_contact_delete_logs_unlinked(client_for, estate, editor, db):
    async with client_for(editor) as c:
        created = await c.post(estate_url(estate, "/contacts"), json={"name": "Carl Creditor"})
        contact_id = created.json()["data"]["id"]
        deleted = await c.delete(estate_url(estate, f"/contacts/{contact_id}"))
        gone = await c.get(estate_url(estate, f"/contacts/{contact_id}"))

    assert deleted.status_code == 200
    assert gone.status_code == 404
    assert EstateEventType.CONTACT_UNLINKED.value in _event_types(db, estate)


# =============================================================================
# Notes
# =============================================================================

@pytest.mark.asyncio
async def test_only_owner_pins_notes(client_for, estate, editor, owner):
    async with client_for(editor) as c:
        pinned = await c.post(estate_url(estate, "/notes"), json={"body": "Call bank", "pinned": True})
        created = await c.post(estate_url(estate, "/notes"), json={"body": "Call bank"})
        note_id = created.json()["data"]["id"]
        pin_attempt = await c.patch(estate_url(estate, f"/notes/{note_id}"), json={"pinned": True})

    assert pinned.status_code == 403
    assert created.status_code == 201
    assert pin_attempt.status_code == 403

    async with client_for(owner) as c:
        response = await c.patch(estate_url(estate, f"/notes/{note_id}"), json={"pinned": True})
    assert response.status_code == 200
    assert response.json()["data"]["pinned"] is True


@pytest.mark.asyncio
async def test_notes_are_sanitized_and_pinned_first(client_for, estate, owner, db):
    async with client_for(owner) as c:
        await c.post(estate_url(estate, "/notes"), json={"body": "Pinned one", "pinned": True})
        created = await c.post(
            estate_url(estate, "/notes"), json={"body": "<script>x</script><b>Bold</b> text"}
        )
        only_tags = await c.post(estate_url(estate, "/notes"), json={"body": "<i></i>"})
        listed = await c.get(estate_url(estate, "/notes"))

    assert created.json()["data"]["body"] == "Bold text"
    assert only_tags.status_code == 400
    bodies = [n["body"] for n in listed.json()["data"]]
    assert bodies == ["Pinned one", "Bold text"]
    types = _event_types(db, estate)
    assert types.count(EstateEventType.NOTE_CREATED.value) == 2


@pytest.mark.asyncio
async def test_note_plain_text_keeps_ampersands_and_angle_brackets(client_for, estate, editor):
    body = "Tom & Jerry: a < b"
    long_body = "&" * 5000
    async with client_for(editor) as c:
        created = await c.post(estate_url(estate, "/notes"), json={"body": body})
        note_id = created.json()["data"]["id"]
        fetched = await c.get(estate_url(estate, f"/notes/{note_id}"))
        at_limit = await c.post(estate_url(estate, "/notes"), json={"body": long_body})

    assert created.status_code == 201
    assert created.json()["data"]["body"] == body
    assert fetched.json()["data"]["body"] == body
    assert at_limit.status_code == 201
    assert at_limit.json()["data"]["body"] == long_body


@pytest.mark.asyncio
async def test_empty_note_update_is_400(client_for, estate, editor):
    async with client_for(editor) as c:
        created = await c.post(estate_url(estate, "/notes"), json={"body": "Draft"})
        note_id = created.json()["data"]["id"]
        empty = await c.patch(estate_url(estate, f"/notes/{note_id}"), json={})
        edited = await c.patch(estate_url(estate, f"/notes/{note_id}"), json={"body": "Final"})
    assert empty.status_code == 400
    assert edited.json()["data"]["body"] == "Final"


# =============================================================================
# Tasks
# =============================================================================

@pytest.mark.asyncio
async def test_task_completion_tracks_completed_at(client_for, estate, editor, db):
    async with client_for(editor) as c:
        created = await c.post(estate_url(estate, "/tasks"), json={"title": "  File inventory "})
        task = created.json()["data"]
        done = await c.patch(estate_url(estate, f"/tasks/{task['id']}"), json={"status": "done"})
        reopened = await c.patch(
            estate_url(estate, f"/tasks/{task['id']}"), json={"status": "IN_PROGRESS"}
        )

    assert created.status_code == 201
    assert task["title"] == "File inventory"
    assert task["status"] == "NOT_STARTED"
    assert task["completed_at"] is None
    assert done.json()["data"]["completed_at"] is not None
    assert reopened.json()["data"]["completed_at"] is None

    types = _event_types(db, estate)
    assert EstateEventType.TASK_COMPLETED.value in types
    assert EstateEventType.TASK_REOPENED.value in types


@pytest.mark.asyncio
async def test_task_overdue_filter(client_for, estate, editor):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    next_week = (date.today() + timedelta(days=7)).isoformat()
    async with client_for(editor) as c:
        await c.post(estate_url(estate, "/tasks"), json={"title": "Late", "due_date": yesterday})
        await c.post(estate_url(estate, "/tasks"), json={"title": "Soon", "due_date": next_week})
        bad_date = await c.post(
            estate_url(estate, "/tasks"), json={"title": "Bad", "due_date": "not-a-date"}
        )
        overdue = await c.get(estate_url(estate, "/tasks"), params={"overdue": "true"})

    assert bad_date.status_code == 400
    rows = overdue.json()["data"]
    assert [t["title"] for t in rows] == ["Late"]
    assert rows[0]["is_overdue"] is True


@pytest.mark.asyncio
async def test_task_links_must_stay_in_estate(client_for, estate, editor, other_estate, db):
    foreign_invoice = Invoice(
        estate_id=other_estate.id, invoice_number="INV-00001", issue_date=date(2024, 1, 2)
    )
    own_document = EstateDocument(estate_id=estate.id, label="Will")
    db.add_all([foreign_invoice, own_document])
    db.commit()

    async with client_for(editor) as c:
        foreign = await c.post(
            estate_url(estate, "/tasks"),
            json={"title": "Collect fee", "related_invoice_id": str(foreign_invoice.id)},
        )
        unknown = await c.post(
            estate_url(estate, "/tasks"),
            json={"title": "Review", "related_document_id": str(uuid.uuid4())},
        )
        linked = await c.post(
            estate_url(estate, "/tasks"),
            json={"title": "File will", "related_document_id": str(own_document.id)},
        )
        relinked = await c.patch(
            estate_url(estate, f"/tasks/{linked.json()['data']['id']}"),
            json={"related_invoice_id": str(foreign_invoice.id)},
        )

    assert foreign.status_code == 400
    assert foreign.json()["error"] == "Invoice does not belong to this estate"
    assert unknown.status_code == 400
    assert linked.status_code == 201
    assert linked.json()["data"]["related_document_id"] == str(own_document.id)
    assert relinked.status_code == 400
