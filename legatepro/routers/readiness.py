"""Readiness router - how close an estate is to a complete court packet, and what to do next."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db
from legatepro.core.estate_access import EstateAccess, estate_viewer
from legatepro.core.responses import ok
from legatepro.schemas.activity import ReadinessPlan, ReadinessResult
from legatepro.services import readiness_plan_service, readiness_service

router = APIRouter()


@router.get("")
def get_readiness(
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(ReadinessResult(**readiness_service.compute_readiness(db, access.estate_id)))


@router.get("/plan")
async def get_readiness_plan(
    refresh: bool = False,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    """
    Next-step plan built from the readiness signals.

    Cached on the estate; ``refresh=1`` forces regeneration and needs edit access.
    """
    if refresh and not access.can_edit:
        raise HTTPException(status_code=403, detail="You do not have permission to refresh the plan")
    plan = await readiness_plan_service.get_plan(db, access.estate, refresh=refresh)
    return ok(ReadinessPlan(**plan))
