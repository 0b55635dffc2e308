"""Estate access control - the single place estate permissions are decided.

Roles, in increasing privilege: VIEWER < EDITOR < OWNER.
- OWNER: ``estate.owner_id`` (never stored as a collaborator)
- EDITOR / VIEWER: collaborator rows; unknown stored roles are treated as VIEWER
- Anyone else has no access at all

Non-members get 404 rather than 403 so estate ids cannot be enumerated.
Members below the required role get 403.
"""

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from legatepro.core.deps import get_current_user, get_db
from legatepro.db.enums import EstateRole
from legatepro.db.models import Estate, EstateCollaborator, User


@dataclass
class EstateAccess:
    """Resolved membership of one user on one estate."""

    estate: Estate
    user_id: UUID
    role: EstateRole

    @property
    def estate_id(self) -> UUID:
        return self.estate.id

    @property
    def is_owner(self) -> bool:
        return self.role == EstateRole.OWNER

    @property
    def can_edit(self) -> bool:
        return self.has_at_least(EstateRole.EDITOR)

    @property
    def can_view_sensitive(self) -> bool:
        return self.has_at_least(EstateRole.EDITOR)

    def has_at_least(self, role: EstateRole) -> bool:
        return self.role.rank >= role.rank


def normalize_role(value: str | None) -> EstateRole:
    """Coerce a stored collaborator role; anything unrecognized is VIEWER."""
    if value and EstateRole.has_value(value.upper()):
        role = EstateRole(value.upper())
        # OWNER is only ever derived from estate.owner_id
        return EstateRole.VIEWER if role == EstateRole.OWNER else role
    return EstateRole.VIEWER


def get_estate_access(db: Session, estate_id: UUID, user_id: UUID) -> EstateAccess | None:
    """Resolve the user's role on an estate, or None when they have no access."""
    estate = db.get(Estate, estate_id)
    if not estate:
        return None

    if estate.owner_id == user_id:
        return EstateAccess(estate=estate, user_id=user_id, role=EstateRole.OWNER)

    collaborator = db.scalars(
        select(EstateCollaborator).where(
            EstateCollaborator.estate_id == estate_id,
            EstateCollaborator.user_id == user_id,
        )
    ).first()
    if not collaborator:
        return None

    return EstateAccess(
        estate=estate, user_id=user_id, role=normalize_role(collaborator.role)
    )


def require_estate_access(
    db: Session,
    estate_id: UUID,
    user_id: UUID,
    at_least: EstateRole = EstateRole.VIEWER,
) -> EstateAccess:
    """
    Resolve access and enforce a minimum role.

    Raises:
        HTTPException 404: Estate missing or user is not a member
        HTTPException 403: Member, but below ``at_least``
    """
    access = get_estate_access(db, estate_id, user_id)
    if access is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estate not found")

    if not access.has_at_least(at_least):
        if at_least == EstateRole.OWNER:
            detail = "Only the estate owner can do this"
        else:
            detail = "You do not have permission to modify this estate"
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

    return access


def can_access_estate(db: Session, estate_id: UUID, user_id: UUID) -> bool:
    """Non-raising membership check."""
    return get_estate_access(db, estate_id, user_id) is not None


def accessible_estate_ids(db: Session, user_id: UUID) -> list[UUID]:
    """Ids of every estate the user owns or collaborates on."""
    owned = db.scalars(select(Estate.id).where(Estate.owner_id == user_id)).all()
    shared = db.scalars(
        select(EstateCollaborator.estate_id).where(EstateCollaborator.user_id == user_id)
    ).all()
    return list(dict.fromkeys([*owned, *shared]))


# =============================================================================
# Route dependencies
# =============================================================================

def estate_member(at_least: EstateRole = EstateRole.VIEWER):
    """
    Dependency factory resolving ``estate_id`` from the path.

    Usage:
        @router.get("/{estate_id}/notes")
        def list_notes(access: EstateAccess = Depends(estate_viewer)):
            ...
    """

    def dependency(
        estate_id: UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> EstateAccess:
        return require_estate_access(db, estate_id, user.id, at_least=at_least)

    return dependency


estate_viewer = estate_member(EstateRole.VIEWER)
estate_editor = estate_member(EstateRole.EDITOR)
estate_owner = estate_member(EstateRole.OWNER)
