"""Collaborators router - who else can see or edit an estate.

Mounted under ``/api/estates/{estate_id}/collaborators``. Reads are open to
any member; changes are owner-only.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from legatepro.core.deps import get_current_user, get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_owner, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType
from legatepro.db.models import User
from legatepro.schemas.estate import (
    CollaboratorAdd,
    CollaboratorList,
    CollaboratorRead,
    CollaboratorRoleUpdate,
)
from legatepro.services import activity_service, collaborator_service
from legatepro.services.entitlements import (
    EntitlementError,
    can_add_collaborator,
    can_invite_collaborators,
    get_entitlements,
    get_upgrade_reason,
)

router = APIRouter()


def _read(collaborator) -> CollaboratorRead:
    return CollaboratorRead(**collaborator_service.to_read_dict(collaborator))


@router.get("")
def list_collaborators(
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    collaborators = collaborator_service.list_collaborators(db, access.estate_id)
    return ok(
        CollaboratorList(
            owner_id=access.estate.owner_id,
            collaborators=[_read(c) for c in collaborators],
        )
    )


@router.post("", dependencies=[Depends(require_csrf_header)])
def add_collaborator(
    data: CollaboratorAdd,
    response: Response,
    access: EstateAccess = Depends(estate_owner),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Add a collaborator, or change the role of an existing one.

    Same role is a no-op. New collaborators count against the owner's plan.
    """
    estate = access.estate
    if data.user_id == estate.owner_id:
        raise HTTPException(status_code=400, detail="Owner already has access")

    target = db.get(User, data.user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    existing = collaborator_service.get_collaborator(db, estate.id, data.user_id)
    if not existing:
        if not can_invite_collaborators(user):
            raise EntitlementError(
                get_upgrade_reason("collaborator_invites"),
                feature="collaborator_invites",
                plan=get_entitlements(user).plan,
            )
        current = collaborator_service.count_collaborators(db, estate.id)
        if not can_add_collaborator(user, current):
            raise EntitlementError(
                get_upgrade_reason("collaborators"),
                feature="collaborator_invites",
                plan=get_entitlements(user).plan,
            )

    result = collaborator_service.upsert_collaborator(db, estate.id, data.user_id, data.role)
    if result.created:
        response.status_code = 201
        activity_service.record_event(
            db,
            estate.id,
            user.id,
            EstateEventType.COLLABORATOR_ADDED,
            f"Added {target.email} as {data.role.value.lower()}",
            meta={"user_id": target.id, "role": data.role},
        )
    elif result.changed:
        activity_service.record_event(
            db,
            estate.id,
            user.id,
            EstateEventType.COLLABORATOR_ROLE_CHANGED,
            f"Changed {target.email} to {data.role.value.lower()}",
            meta={"user_id": target.id, "previous_role": result.previous_role, "role": data.role},
        )

    db.refresh(result.collaborator)
    return ok(_read(result.collaborator))


@router.patch("/{user_id}", dependencies=[Depends(require_csrf_header)])
def update_collaborator_role(
    user_id: UUID,
    data: CollaboratorRoleUpdate,
    access: EstateAccess = Depends(estate_owner),
    db: Session = Depends(get_db),
):
    estate = access.estate
    if user_id == estate.owner_id:
        raise HTTPException(status_code=400, detail="Cannot change the owner's role")

    collaborator = collaborator_service.get_collaborator(db, estate.id, user_id)
    if not collaborator:
        raise HTTPException(status_code=404, detail="Collaborator not found")

    previous = collaborator_service.update_role(db, collaborator, data.role)
    if previous != data.role.value:
        activity_service.record_event(
            db,
            estate.id,
            access.user_id,
            EstateEventType.COLLABORATOR_ROLE_CHANGED,
            f"Collaborator role changed to {data.role.value.lower()}",
            meta={"user_id": user_id, "previous_role": previous, "role": data.role},
        )
    db.refresh(collaborator)
    return ok(_read(collaborator))


@router.delete("/{user_id}", dependencies=[Depends(require_csrf_header)])
def remove_collaborator(
    user_id: UUID,
    access: EstateAccess = Depends(estate_owner),
    db: Session = Depends(get_db),
):
    estate = access.estate
    if user_id == estate.owner_id:
        raise HTTPException(status_code=400, detail="Cannot remove owner")

    collaborator = collaborator_service.get_collaborator(db, estate.id, user_id)
    if not collaborator:
        raise HTTPException(status_code=404, detail="Collaborator not found")

    role = collaborator.role
    collaborator_service.remove_collaborator(db, collaborator)
    activity_service.record_event(
        db,
        estate.id,
        access.user_id,
        EstateEventType.COLLABORATOR_REMOVED,
        "Collaborator removed",
        meta={"user_id": user_id, "role": role},
    )
    return ok({"user_id": user_id, "removed": True})
