"""Properties router - real estate held by the estate."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType
from legatepro.schemas.finances import (
    PropertyCreate,
    PropertyRead,
    PropertyUpdate,
    UtilityRead,
)
from legatepro.services import activity_service, property_service, utility_service

router = APIRouter()


def _get_or_404(db: Session, estate_id: UUID, property_id: UUID):
    prop = property_service.get_property(db, estate_id, property_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


@router.get("")
def list_properties(
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    properties = property_service.list_properties(db, access.estate_id)
    return ok([PropertyRead.model_validate(p) for p in properties])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_property(
    data: PropertyCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    prop = property_service.create_property(db, access.estate_id, access.user_id, data)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.PROPERTY_CREATED,
        f"Property added: {prop.label}",
        meta={"property_id": prop.id},
    )
    return ok(PropertyRead.model_validate(prop))


@router.get("/{property_id}")
def get_property(
    property_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(PropertyRead.model_validate(_get_or_404(db, access.estate_id, property_id)))


@router.get("/{property_id}/utilities")
def list_property_utilities(
    property_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    prop = _get_or_404(db, access.estate_id, property_id)
    utilities = utility_service.list_utilities(db, access.estate_id, property_id=prop.id)
    return ok([UtilityRead.model_validate(u) for u in utilities])


@router.patch("/{property_id}", dependencies=[Depends(require_csrf_header)])
def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    prop = _get_or_404(db, access.estate_id, property_id)
    changed = property_service.update_property(db, prop, data)
    if changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.PROPERTY_UPDATED,
            f"Property updated: {prop.label}",
            meta={"property_id": prop.id, "changed_fields": changed},
        )
    return ok(PropertyRead.model_validate(prop))


@router.delete("/{property_id}", dependencies=[Depends(require_csrf_header)])
def delete_property(
    property_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    """Delete a property. Its rent payments, expenses and utility accounts stay, unlinked."""
    prop = _get_or_404(db, access.estate_id, property_id)
    label = prop.label
    property_service.delete_property(db, prop)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.PROPERTY_DELETED,
        f"Property removed: {label}",
        meta={"property_id": property_id},
    )
    return ok({"id": property_id, "deleted": True})
