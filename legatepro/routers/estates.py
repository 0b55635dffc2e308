"""Estates router - the workspaces every other record hangs off."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from legatepro.core.config import settings
from legatepro.core.deps import get_current_user, get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_owner, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType, EstateRole
from legatepro.db.models import Estate, User
from legatepro.schemas.estate import EstateCompact, EstateCreate, EstateRead, EstateUpdate
from legatepro.services import activity_service, estate_service
from legatepro.services.entitlements import (
    can_create_another_estate,
    get_entitlements,
    get_upgrade_reason,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _estate_read(estate: Estate, role: EstateRole) -> EstateRead:
    return EstateRead.model_validate(estate).model_copy(update={"role": role})


@router.get("")
def list_estates(
    status: str | None = None,
    compact: bool = False,
    limit: int = Query(estate_service.DEFAULT_LIST_LIMIT, ge=1, le=estate_service.MAX_LIST_LIMIT),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Estates the user owns or collaborates on, newest first, each with the user's role."""
    if status and status.lower() not in ("open", "closed", "all"):
        raise HTTPException(status_code=400, detail="status must be open, closed or all")
    rows = estate_service.list_estates(db, user.id, status=status, limit=limit)
    if compact:
        return ok([
            EstateCompact.model_validate(estate).model_copy(update={"role": role})
            for estate, role in rows
        ])
    return ok([_estate_read(estate, role) for estate, role in rows])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_estate(
    data: EstateCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Open a new estate owned by the current user.

    Plan limit reached: 402 with upgrade hints in ``X-LegatePro-*`` headers.
    """
    owned = estate_service.count_owned_estates(db, user.id)
    if not can_create_another_estate(user, owned):
        ent = get_entitlements(user)
        raise HTTPException(
            status_code=402,
            detail={"error": get_upgrade_reason("estates"), "code": "PAYMENT_REQUIRED"},
            headers={
                "X-LegatePro-Upgrade-Url": f"{settings.app_base_url}/app/billing",
                "X-LegatePro-Plan-Id": ent.plan.value,
                "X-LegatePro-Plan-Limit": str(ent.limits.estates),
                "X-LegatePro-Plan-Current": str(owned),
                "X-LegatePro-Subscription-Status": ent.status.value,
            },
        )

    estate = estate_service.create_estate(db, user, data)
    activity_service.record_event(
        db,
        estate.id,
        user.id,
        EstateEventType.ESTATE_CREATED,
        f"Estate created: {estate.display_name}",
    )
    return ok(_estate_read(estate, EstateRole.OWNER))


@router.get("/{estate_id}")
def get_estate(access: EstateAccess = Depends(estate_viewer)):
    return ok(_estate_read(access.estate, access.role))


@router.patch("/{estate_id}", dependencies=[Depends(require_csrf_header)])
def update_estate(
    data: EstateUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    estate = access.estate
    changed = estate_service.update_estate(db, estate, data)
    if changed:
        activity_service.record_event(
            db,
            estate.id,
            access.user_id,
            EstateEventType.ESTATE_UPDATED,
            "Estate details updated",
            meta={"changed_fields": changed},
        )
    return ok(_estate_read(estate, access.role))


@router.delete("/{estate_id}", dependencies=[Depends(require_csrf_header)])
def delete_estate(
    access: EstateAccess = Depends(estate_owner),
    db: Session = Depends(get_db),
):
    """Delete an estate and everything it scopes. Owner only."""
    estate_id = access.estate_id
    estate_service.delete_estate(db, access.estate)
    logger.info(
        "Estate deleted", extra={"estate_id": str(estate_id), "user_id": str(access.user_id)}
    )
    return ok({"id": estate_id, "deleted": True})
