"""Activity router - the estate timeline."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType
from legatepro.schemas.activity import EventPage, EventRead, ManualEventCreate
from legatepro.services import activity_service
from legatepro.services.note_service import sanitize_text

router = APIRouter()


@router.get("")
def list_activity(
    limit: int = Query(activity_service.DEFAULT_LIMIT, ge=1, le=activity_service.MAX_LIMIT),
    cursor: datetime | None = None,
    types: str | None = Query(None, description="Comma-separated event types"),
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    """
    Newest events first.

    Pass the returned ``next_cursor`` back as ``cursor`` for the next page.
    """
    type_list = [t.strip() for t in types.split(",") if t.strip()] if types else None
    events, next_cursor = activity_service.list_events(
        db, access.estate_id, types=type_list, limit=limit, cursor=cursor
    )
    return ok(
        EventPage(
            events=[EventRead.model_validate(e) for e in events],
            next_cursor=next_cursor,
        )
    )


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def add_manual_entry(
    data: ManualEventCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    """Add a free-text entry to the timeline."""
    note = sanitize_text(data.note)
    if not note:
        raise HTTPException(status_code=400, detail="note is required")

    event = activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.NOTE_CREATED,
        note,
        detail=note,
        meta={"manual": True},
    )
    if event is None:
        raise HTTPException(status_code=500, detail="Could not save activity entry")
    return ok(EventRead.model_validate(event))
