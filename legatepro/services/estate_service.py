"""Estate service - workspace CRUD and membership listing."""

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from legatepro.core.estate_access import normalize_role
from legatepro.db.enums import EstateRole, EstateStatus
from legatepro.db.models import Estate, EstateCollaborator, User
from legatepro.schemas.estate import EstateCreate, EstateUpdate

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 500
MAX_LIST_LIMIT = 1000


def count_owned_estates(db: Session, owner_id: UUID) -> int:
    return db.scalar(select(func.count()).select_from(Estate).where(Estate.owner_id == owner_id)) or 0


def list_estates(
    db: Session,
    user_id: UUID,
    *,
    status: str | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
) -> list[tuple[Estate, EstateRole]]:
    """
    Estates the user owns or collaborates on, newest first.

    Args:
        status: "open", "closed" or "all"/None
        limit: Clamped to 1..1000

    Returns:
        (estate, role) pairs
    """
    limit = max(1, min(MAX_LIST_LIMIT, limit))
    shared_ids = select(EstateCollaborator.estate_id).where(EstateCollaborator.user_id == user_id)
    query = db.query(Estate).filter(
        or_(Estate.owner_id == user_id, Estate.id.in_(shared_ids))
    )
    if status and status.lower() != "all":
        query = query.filter(Estate.status == status.upper())
    estates = query.order_by(Estate.created_at.desc()).limit(limit).all()

    roles = dict(
        db.execute(
            select(EstateCollaborator.estate_id, EstateCollaborator.role).where(
                EstateCollaborator.user_id == user_id
            )
        ).all()
    )

    result = []
    for estate in estates:
        if estate.owner_id == user_id:
            role = EstateRole.OWNER
        else:
            role = normalize_role(roles.get(estate.id))
        result.append((estate, role))
    return result


def create_estate(db: Session, owner: User, data: EstateCreate) -> Estate:
    estate = Estate(
        owner_id=owner.id,
        display_name=data.display_name,
        case_number=data.case_number,
        court_county=data.court_county,
        court_state=data.court_state,
        status=data.status.value,
        decedent_name=data.decedent_name,
        decedent_date_of_death=data.decedent_date_of_death,
        notes=data.notes,
    )
    db.add(estate)
    db.commit()
    db.refresh(estate)
    logger.info("Estate created", extra={"estate_id": str(estate.id), "user_id": str(owner.id)})
    return estate


def update_estate(db: Session, estate: Estate, data: EstateUpdate) -> list[str]:
    """
    Apply a partial update.

    Returns:
        Names of fields whose value actually changed
    """
    changed: list[str] = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("display_name", "status") and value is None:
            continue
        if isinstance(value, EstateStatus):
            value = value.value
        if field == "display_name":
            value = value.strip()
        if getattr(estate, field) != value:
            setattr(estate, field, value)
            changed.append(field)

    if changed:
        db.commit()
        db.refresh(estate)
    return changed


def delete_estate(db: Session, estate: Estate) -> None:
    """Delete an estate and, through the ORM cascade, everything it scopes."""
    db.delete(estate)
    db.commit()
