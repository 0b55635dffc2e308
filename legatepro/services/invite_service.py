"""Collaborator invite service.

Invites are emailed links carrying a 48-character hex token. A pending invite
for the same email is reused (fresh token and expiry) instead of duplicated.
"""

from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from legatepro.core.config import settings
from legatepro.core.security import generate_invite_token
from legatepro.db.enums import EstateRole, InviteStatus
from legatepro.db.models import Estate, EstateInvite, User
from legatepro.db.types import utcnow
from legatepro.services import collaborator_service
from legatepro.services.auth_service import normalize_email


class InviteError(Exception):
    """Invite operation rejected; ``status_code`` is the HTTP status to return."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class InviteSendResult:
    invite: EstateInvite
    reused: bool


def invite_url(token: str) -> str:
    return f"{settings.app_base_url}/app/invites/{token}"


def is_expired(invite: EstateInvite) -> bool:
    return invite.expires_at is not None and invite.expires_at <= utcnow()


def expire_stale_invites(db: Session, estate_id: UUID) -> int:
    """Mark pending invites past their expiry as EXPIRED. Returns the count."""
    stale = db.query(EstateInvite).filter(
        EstateInvite.estate_id == estate_id,
        EstateInvite.status == InviteStatus.PENDING.value,
        EstateInvite.expires_at <= utcnow(),
    ).all()
    for invite in stale:
        invite.status = InviteStatus.EXPIRED.value
    if stale:
        db.commit()
    return len(stale)


def list_invites(db: Session, estate_id: UUID) -> list[EstateInvite]:
    """All invites for an estate, newest first, with stale ones marked expired."""
    expire_stale_invites(db, estate_id)
    return db.query(EstateInvite).filter(
        EstateInvite.estate_id == estate_id
    ).order_by(EstateInvite.created_at.desc()).all()


def count_pending_invites(db: Session, estate_id: UUID) -> int:
    return db.query(func.count(EstateInvite.id)).filter(
        EstateInvite.estate_id == estate_id,
        EstateInvite.status == InviteStatus.PENDING.value,
        EstateInvite.expires_at > utcnow(),
    ).scalar() or 0


def get_invite_by_token(db: Session, token: str) -> EstateInvite | None:
    return db.query(EstateInvite).filter(EstateInvite.token == token).first()


def send_invite(
    db: Session,
    estate: Estate,
    inviter: User,
    email: str,
    role: EstateRole,
) -> InviteSendResult:
    """
    Create an invite, or refresh the pending one for this email.

    Raises:
        InviteError 400: Inviting yourself
        InviteError 429: Too many pending invites on the estate
    """
    email = normalize_email(email)
    if email == normalize_email(inviter.email):
        raise InviteError("You cannot invite yourself", 400)

    expires_at = utcnow() + timedelta(days=settings.INVITE_TTL_DAYS)
    existing = db.query(EstateInvite).filter(
        EstateInvite.estate_id == estate.id,
        EstateInvite.email == email,
        EstateInvite.status == InviteStatus.PENDING.value,
    ).order_by(EstateInvite.created_at.desc()).first()

    if existing:
        existing.token = generate_invite_token()
        existing.role = role.value
        existing.expires_at = expires_at
        existing.created_by_user_id = inviter.id
        db.commit()
        db.refresh(existing)
        return InviteSendResult(invite=existing, reused=True)

    if count_pending_invites(db, estate.id) >= settings.MAX_ACTIVE_INVITES:
        raise InviteError(
            f"Maximum of {settings.MAX_ACTIVE_INVITES} pending invites reached", 429
        )

    invite = EstateInvite(
        estate_id=estate.id,
        email=email,
        role=role.value,
        token=generate_invite_token(),
        status=InviteStatus.PENDING.value,
        created_by_user_id=inviter.id,
        expires_at=expires_at,
    )
    db.add(invite)
    db.commit()
    db.refresh(invite)
    return InviteSendResult(invite=invite, reused=False)


def find_invite(
    db: Session,
    estate_id: UUID,
    *,
    token: str | None = None,
    email: str | None = None,
) -> EstateInvite | None:
    query = db.query(EstateInvite).filter(EstateInvite.estate_id == estate_id)
    if token:
        query = query.filter(EstateInvite.token == token)
    elif email:
        query = query.filter(EstateInvite.email == normalize_email(email))
    else:
        return None
    return query.order_by(EstateInvite.created_at.desc()).first()


def revoke_invite(db: Session, invite: EstateInvite | None) -> bool:
    """
    Revoke an invite. Idempotent.

    Returns:
        True when a pending invite was revoked by this call

    Raises:
        InviteError 400: Invite already accepted
    """
    if invite is None or invite.status == InviteStatus.REVOKED.value:
        return False
    if invite.status == InviteStatus.EXPIRED.value:
        return False
    if invite.status == InviteStatus.PENDING.value and is_expired(invite):
        invite.status = InviteStatus.EXPIRED.value
        db.commit()
        return False
    if invite.status != InviteStatus.PENDING.value:
        raise InviteError("Invite can no longer be revoked", 400)

    invite.status = InviteStatus.REVOKED.value
    invite.revoked_at = utcnow()
    db.commit()
    return True


def accept_invite(db: Session, token: str, user: User) -> EstateInvite:
    """
    Accept an invite as the signed-in user.

    Raises:
        InviteError 404: Unknown token
        InviteError 400: Invite not pending, or expired
        InviteError 403: Signed-in email differs from the invited email
    """
    invite = get_invite_by_token(db, token)
    if not invite:
        raise InviteError("Invite not found", 404)
    if invite.status != InviteStatus.PENDING.value:
        raise InviteError("Invite is no longer valid", 400)
    if is_expired(invite):
        invite.status = InviteStatus.EXPIRED.value
        db.commit()
        raise InviteError("Invite has expired", 400)
    if normalize_email(user.email) != normalize_email(invite.email):
        raise InviteError("This invite was sent to a different email address", 403)

    estate = db.get(Estate, invite.estate_id)
    if estate is None:
        raise InviteError("Invite not found", 404)

    if estate.owner_id != user.id:
        collaborator_service.upsert_collaborator(
            db, estate.id, user.id, EstateRole(invite.role), commit=False
        )
    invite.status = InviteStatus.ACCEPTED.value
    invite.accepted_by_user_id = user.id
    invite.accepted_at = utcnow()
    db.commit()
    db.refresh(invite)
    return invite
