"""Collaborator service - estate membership management.

The owner is implied by ``estate.owner_id`` and never stored as a row.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from legatepro.db.enums import EstateRole
from legatepro.db.models import EstateCollaborator


@dataclass
class UpsertResult:
    collaborator: EstateCollaborator
    created: bool
    previous_role: str | None

    @property
    def changed(self) -> bool:
        return self.created or self.previous_role != self.collaborator.role


def list_collaborators(db: Session, estate_id: UUID) -> list[EstateCollaborator]:
    return (
        db.query(EstateCollaborator)
        .options(joinedload(EstateCollaborator.user))
        .filter(EstateCollaborator.estate_id == estate_id)
        .order_by(EstateCollaborator.added_at.asc())
        .all()
    )


def count_collaborators(db: Session, estate_id: UUID) -> int:
    return db.scalar(
        select(func.count())
        .select_from(EstateCollaborator)
        .where(EstateCollaborator.estate_id == estate_id)
    ) or 0


def get_collaborator(db: Session, estate_id: UUID, user_id: UUID) -> EstateCollaborator | None:
    return (
        db.query(EstateCollaborator)
        .filter(
            EstateCollaborator.estate_id == estate_id,
            EstateCollaborator.user_id == user_id,
        )
        .first()
    )


def upsert_collaborator(
    db: Session,
    estate_id: UUID,
    user_id: UUID,
    role: EstateRole,
    *,
    commit: bool = True,
) -> UpsertResult:
    """
    Add a collaborator or change an existing one's role.

    Same role is a no-op (nothing written).
    """
    existing = get_collaborator(db, estate_id, user_id)
    if existing:
        previous = existing.role
        if previous != role.value:
            existing.role = role.value
            if commit:
                db.commit()
        return UpsertResult(collaborator=existing, created=False, previous_role=previous)

    collaborator = EstateCollaborator(estate_id=estate_id, user_id=user_id, role=role.value)
    db.add(collaborator)
    if commit:
        db.commit()
        db.refresh(collaborator)
    return UpsertResult(collaborator=collaborator, created=True, previous_role=None)


def update_role(db: Session, collaborator: EstateCollaborator, role: EstateRole) -> str:
    """Set a new role, returning the previous one."""
    previous = collaborator.role
    if previous != role.value:
        collaborator.role = role.value
        db.commit()
    return previous


def remove_collaborator(db: Session, collaborator: EstateCollaborator) -> None:
    db.delete(collaborator)
    db.commit()


def to_read_dict(collaborator: EstateCollaborator) -> dict:
    user = collaborator.user
    return {
        "user_id": collaborator.user_id,
        "role": collaborator.role,
        "added_at": collaborator.added_at,
        "email": user.email if user else None,
        "name": user.display_name if user else None,
    }
