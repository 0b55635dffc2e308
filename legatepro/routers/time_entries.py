"""Time entries router - hours worked on the estate, for fees and billing."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType
from legatepro.schemas.finances import (
    TimeEntryBilled,
    TimeEntryCreate,
    TimeEntryRead,
    TimeEntryUpdate,
    TimeSummary,
)
from legatepro.services import activity_service, settings_service, time_service

router = APIRouter()


def _get_or_404(db: Session, estate_id: UUID, entry_id: UUID):
    entry = time_service.get_entry(db, estate_id, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Time entry not found")
    return entry


@router.get("")
def list_entries(
    start: date | None = None,
    end: date | None = None,
    billable: bool | None = None,
    billed: bool | None = None,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    entries = time_service.list_entries(
        db, access.estate_id, start=start, end=end, billable=billable, billed=billed
    )
    return ok([TimeEntryRead.model_validate(e) for e in entries])


@router.get("/summary")
def time_summary(
    start: date | None = None,
    end: date | None = None,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    """Hour and value totals, optionally limited to a date range."""
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="start must be on or before end")
    return ok(TimeSummary(**time_service.summarize(db, access.estate_id, start=start, end=end)))


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_entry(
    data: TimeEntryCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    defaults = settings_service.billing_defaults(db, access.estate.owner_id)
    entry = time_service.create_entry(
        db, access.estate_id, access.user_id, data, default_rate_cents=defaults.hourly_rate_cents
    )
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.TIME_LOGGED,
        f"Logged {entry.minutes} min: {entry.description}",
        meta={"time_entry_id": entry.id, "minutes": entry.minutes, "billable": entry.billable},
    )
    return ok(TimeEntryRead.model_validate(entry))


@router.get("/{entry_id}")
def get_entry(
    entry_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(TimeEntryRead.model_validate(_get_or_404(db, access.estate_id, entry_id)))


@router.patch("/{entry_id}", dependencies=[Depends(require_csrf_header)])
def update_entry(
    entry_id: UUID,
    data: TimeEntryUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    entry = _get_or_404(db, access.estate_id, entry_id)
    time_service.update_entry(db, entry, data)
    return ok(TimeEntryRead.model_validate(entry))


@router.patch("/{entry_id}/billed", dependencies=[Depends(require_csrf_header)])
def set_billed(
    entry_id: UUID,
    data: TimeEntryBilled,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    entry = _get_or_404(db, access.estate_id, entry_id)
    time_service.set_billed(db, entry, data.billed)
    return ok(TimeEntryRead.model_validate(entry))


@router.delete("/{entry_id}", dependencies=[Depends(require_csrf_header)])
def delete_entry(
    entry_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    entry = _get_or_404(db, access.estate_id, entry_id)
    time_service.delete_entry(db, entry)
    return ok({"id": entry_id, "deleted": True})
