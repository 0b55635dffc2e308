"""Utilities router - utility accounts kept running on estate property."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType, UtilityType
from legatepro.schemas.finances import UtilityCreate, UtilityRead, UtilityUpdate
from legatepro.services import activity_service, utility_service
from legatepro.services.estate_refs import RecordNotInEstate

router = APIRouter()


def _get_or_404(db: Session, estate_id: UUID, utility_id: UUID):
    utility = utility_service.get_utility(db, estate_id, utility_id)
    if not utility:
        raise HTTPException(status_code=404, detail="Utility account not found")
    return utility


@router.get("")
def list_utilities(
    property_id: UUID | None = None,
    type: UtilityType | None = None,
    q: str | None = Query(None, max_length=200),
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    utilities = utility_service.list_utilities(
        db, access.estate_id, property_id=property_id, utility_type=type, q=q
    )
    return ok([UtilityRead.model_validate(u) for u in utilities])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_utility(
    data: UtilityCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    try:
        utility = utility_service.create_utility(db, access.estate_id, access.user_id, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))

    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.UTILITY_CREATED,
        f"Utility account added: {utility.provider_name}",
        meta={"utility_id": utility.id, "property_id": utility.property_id},
    )
    return ok(UtilityRead.model_validate(utility))


@router.get("/{utility_id}")
def get_utility(
    utility_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(UtilityRead.model_validate(_get_or_404(db, access.estate_id, utility_id)))


@router.patch("/{utility_id}", dependencies=[Depends(require_csrf_header)])
def update_utility(
    utility_id: UUID,
    data: UtilityUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    utility = _get_or_404(db, access.estate_id, utility_id)
    try:
        changed = utility_service.update_utility(db, utility, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))

    if changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.UTILITY_UPDATED,
            f"Utility account updated: {utility.provider_name}",
            meta={"utility_id": utility.id, "changed_fields": changed},
        )
    return ok(UtilityRead.model_validate(utility))


@router.delete("/{utility_id}", dependencies=[Depends(require_csrf_header)])
def delete_utility(
    utility_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    utility = _get_or_404(db, access.estate_id, utility_id)
    provider = utility.provider_name
    utility_service.delete_utility(db, utility)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.UTILITY_DELETED,
        f"Utility account removed: {provider}",
        meta={"utility_id": utility_id},
    )
    return ok({"id": utility_id, "deleted": True})
