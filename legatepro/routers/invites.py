"""Collaborator invites router.

Owners send and revoke invites; any signed-in user whose email matches can
accept one. Writes are rate limited per client.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from legatepro.core.deps import get_current_user, get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_owner
from legatepro.core.rate_limit import INVITES_LIMIT, limiter
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType
from legatepro.db.models import User
from legatepro.schemas.estate import InviteAccepted, InviteCreate, InviteRead, InviteSent
from legatepro.services import activity_service, invite_service
from legatepro.services.entitlements import require_feature
from legatepro.services.invite_service import InviteError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_invites(
    access: EstateAccess = Depends(estate_owner),
    db: Session = Depends(get_db),
):
    """All invites for the estate, newest first; stale pending ones are marked expired."""
    invites = invite_service.list_invites(db, access.estate_id)
    return ok([InviteRead.model_validate(i) for i in invites])


@router.post("", dependencies=[Depends(require_csrf_header)])
@limiter.limit(INVITES_LIMIT)
def send_invite(
    request: Request,
    response: Response,
    data: InviteCreate,
    access: EstateAccess = Depends(estate_owner),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Invite someone by email.

    Re-inviting a pending address refreshes its token and expiry (200);
    a new invite is a 201.
    """
    require_feature(user, "collaborator_invites")
    try:
        result = invite_service.send_invite(db, access.estate, user, data.email, data.role)
    except InviteError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    invite = result.invite
    response.status_code = 200 if result.reused else 201
    activity_service.record_event(
        db,
        access.estate_id,
        user.id,
        EstateEventType.COLLABORATOR_INVITE_SENT,
        f"Invited {invite.email} as {invite.role.lower()}",
        meta={"email": invite.email, "role": invite.role, "reused": result.reused},
    )
    return ok(
        InviteSent(
            invite_url=invite_service.invite_url(invite.token),
            token=invite.token,
            email=invite.email,
            role=invite.role,
            status=invite.status,
            expires_at=invite.expires_at,
            reused=result.reused,
        )
    )


@router.delete("", dependencies=[Depends(require_csrf_header)])
@limiter.limit(INVITES_LIMIT)
def revoke_invite(
    request: Request,
    token: str | None = None,
    email: str | None = None,
    access: EstateAccess = Depends(estate_owner),
    db: Session = Depends(get_db),
):
    """
    Revoke an invite by token or email. Idempotent.

    Missing, already revoked and expired invites all succeed without change.
    """
    if not token and not email:
        raise HTTPException(status_code=400, detail="token or email is required")

    invite = invite_service.find_invite(db, access.estate_id, token=token, email=email)
    try:
        revoked = invite_service.revoke_invite(db, invite)
    except InviteError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if revoked:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.COLLABORATOR_INVITE_REVOKED,
            f"Revoked invite for {invite.email}",
            meta={"email": invite.email, "role": invite.role},
        )
    return ok({"revoked": revoked})


@router.post("/{token}/accept", dependencies=[Depends(require_csrf_header)])
@limiter.limit(INVITES_LIMIT)
def accept_invite(
    request: Request,
    estate_id: UUID,
    token: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Accept an invite as the signed-in user, joining the estate with the invited role."""
    invite = invite_service.get_invite_by_token(db, token)
    if not invite or invite.estate_id != estate_id:
        raise HTTPException(status_code=404, detail="Invite not found")

    try:
        invite = invite_service.accept_invite(db, token, user)
    except InviteError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    activity_service.record_event(
        db,
        invite.estate_id,
        user.id,
        EstateEventType.COLLABORATOR_INVITE_ACCEPTED,
        f"{user.email} accepted an invite as {invite.role.lower()}",
        meta={"email": invite.email, "role": invite.role},
    )
    logger.info(
        "Invite accepted",
        extra={"estate_id": str(invite.estate_id), "user_id": str(user.id)},
    )
    return ok(InviteAccepted(estate_id=invite.estate_id, role=invite.role))
