"""Tests for collaborator invites: send, resend, revoke and accept."""

from datetime import timedelta

import pytest

from legatepro.core.config import settings
from legatepro.db.enums import EstateRole, InviteStatus
from legatepro.db.models import Estate, EstateCollaborator, EstateInvite
from legatepro.db.types import utcnow
from legatepro.services import invite_service
from tests.conftest import estate_url, make_user


@pytest.mark.asyncio
async def test_send_invite_then_resend_reuses_it(client_for, estate, owner, db):
    async with client_for(owner) as c:
        first = await c.post(
            estate_url(estate, "/invites"), json={"email": "Heir@Example.org", "role": "VIEWER"}
        )
        second = await c.post(
            estate_url(estate, "/invites"), json={"email": "heir@example.org", "role": "EDITOR"}
        )

    assert first.status_code == 201
    sent = first.json()["data"]
    assert sent["email"] == "heir@example.org"
    assert sent["status"] == "PENDING"
    assert len(sent["token"]) == 48
    assert sent["invite_url"] == f"{settings.app_base_url}/app/invites/{sent['token']}"

    assert second.status_code == 200
    resent = second.json()["data"]
    assert resent["reused"] is True
    assert resent["role"] == "EDITOR"
    assert resent["token"] != sent["token"]

    assert db.query(EstateInvite).filter(EstateInvite.estate_id == estate.id).count() == 1


@pytest.mark.asyncio
async def test_cannot_invite_yourself(client_for, estate, owner):
    async with client_for(owner) as c:
        response = await c.post(
            estate_url(estate, "/invites"), json={"email": owner.email.upper(), "role": "VIEWER"}
        )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invites_are_owner_only(client_for, estate, editor):
    async with client_for(editor) as c:
        listed = await c.get(estate_url(estate, "/invites"))
        sent = await c.post(
            estate_url(estate, "/invites"), json={"email": "x@example.org", "role": "VIEWER"}
        )
    assert listed.status_code == 403
    assert sent.status_code == 403


@pytest.mark.asyncio
async def test_free_plan_cannot_invite(client_for, free_user, db):
    estate = Estate(owner_id=free_user.id, display_name="Small estate")
    db.add(estate)
    db.commit()

    async with client_for(free_user) as c:
        response = await c.post(
            estate_url(estate, "/invites"), json={"email": "x@example.org", "role": "VIEWER"}
        )
    assert response.status_code == 402
    assert response.json()["code"] == "ENTITLEMENT_REQUIRED"


@pytest.mark.asyncio
async def test_accept_invite_adds_collaborator(client_for, estate, owner, db):
    invitee = make_user(db, "invitee")
    async with client_for(owner) as c:
        sent = await c.post(
            estate_url(estate, "/invites"), json={"email": invitee.email, "role": "EDITOR"}
        )
    token = sent.json()["data"]["token"]

    async with client_for(invitee) as c:
        accepted = await c.post(estate_url(estate, f"/invites/{token}/accept"))
        again = await c.post(estate_url(estate, f"/invites/{token}/accept"))
        estate_view = await c.get(estate_url(estate))

    assert accepted.status_code == 200
    assert accepted.json()["data"] == {"estate_id": str(estate.id), "role": "EDITOR"}
    assert again.status_code == 400
    assert estate_view.status_code == 200
    assert estate_view.json()["data"]["role"] == "EDITOR"

    invite = db.query(EstateInvite).filter(EstateInvite.token == token).one()
    assert invite.status == InviteStatus.ACCEPTED.value
    assert invite.accepted_by_user_id == invitee.id


@pytest.mark.asyncio
async def test_accept_with_other_email_is_forbidden(client_for, estate, owner, outsider):
    async with client_for(owner) as c:
        sent = await c.post(
            estate_url(estate, "/invites"), json={"email": "someone-else@example.org"}
        )
    token = sent.json()["data"]["token"]

    async with client_for(outsider) as c:
        response = await c.post(estate_url(estate, f"/invites/{token}/accept"))
        unknown = await c.post(estate_url(estate, "/invites/deadbeef/accept"))
    assert response.status_code == 403
    assert unknown.status_code == 404


def test_expired_invite_cannot_be_accepted(db, estate, owner):
    invitee = make_user(db, "late")
    result = invite_service.send_invite(db, estate, owner, invitee.email, EstateRole.VIEWER)
    result.invite.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    with pytest.raises(invite_service.InviteError) as exc:
        invite_service.accept_invite(db, result.invite.token, invitee)
    assert exc.value.status_code == 400

    db.refresh(result.invite)
    assert result.invite.status == InviteStatus.EXPIRED.value
    assert db.query(EstateCollaborator).filter(EstateCollaborator.user_id == invitee.id).count() == 0


@pytest.mark.asyncio
async def test_revoke_is_idempotent(client_for, estate, owner, db):
    async with client_for(owner) as c:
        await c.post(estate_url(estate, "/invites"), json={"email": "gone@example.org"})
        first = await c.delete(estate_url(estate, "/invites"), params={"email": "GONE@example.org"})
        second = await c.delete(estate_url(estate, "/invites"), params={"email": "gone@example.org"})
        missing = await c.delete(estate_url(estate, "/invites"), params={"token": "nope"})
        no_params = await c.delete(estate_url(estate, "/invites"))

    assert first.json()["data"] == {"revoked": True}
    assert second.status_code == 200
    assert second.json()["data"] == {"revoked": False}
    assert missing.status_code == 200
    assert no_params.status_code == 400

    invite = db.query(EstateInvite).filter(EstateInvite.email == "gone@example.org").one()
    assert invite.status == InviteStatus.REVOKED.value
    assert invite.revoked_at is not None


def test_list_marks_stale_invites_expired(db, estate, owner):
    result = invite_service.send_invite(db, estate, owner, "stale@example.org", EstateRole.VIEWER)
    result.invite.expires_at = utcnow() - timedelta(days=1)
    db.commit()

    invites = invite_service.list_invites(db, estate.id)
    assert [i.status for i in invites] == [InviteStatus.EXPIRED.value]
    assert invite_service.count_pending_invites(db, estate.id) == 0


def test_pending_invite_cap(db, estate, owner, monkeypatch):
    monkeypatch.setattr(settings, "MAX_ACTIVE_INVITES", 2)
    invite_service.send_invite(db, estate, owner, "a@example.org", EstateRole.VIEWER)
    invite_service.send_invite(db, estate, owner, "b@example.org", EstateRole.VIEWER)

    with pytest.raises(invite_service.InviteError) as exc:
        invite_service.send_invite(db, estate, owner, "c@example.org", EstateRole.VIEWER)
    assert exc.value.status_code == 429

    # Re-sending an existing pending invite is still allowed
    result = invite_service.send_invite(db, estate, owner, "a@example.org", EstateRole.EDITOR)
    assert result.reused is True
