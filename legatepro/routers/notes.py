"""Notes router - free-text estate notes.

Editors write notes; pinning and unpinning is reserved for the owner.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType
from legatepro.schemas.records import NoteCreate, NoteRead, NoteUpdate
from legatepro.services import activity_service, note_service

router = APIRouter()

PREVIEW_LENGTH = 120


def _preview(body: str) -> str:
    return body if len(body) <= PREVIEW_LENGTH else body[:PREVIEW_LENGTH] + "..."


def _get_or_404(db: Session, estate_id: UUID, note_id: UUID):
    note = note_service.get_note(db, estate_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.get("")
def list_notes(
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    """Pinned notes first, then newest."""
    notes = note_service.list_notes(db, access.estate_id)
    return ok([NoteRead.model_validate(n) for n in notes])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_note(
    data: NoteCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    if data.pinned and not access.is_owner:
        raise HTTPException(status_code=403, detail="Only the estate owner can pin notes")

    try:
        note = note_service.create_note(
            db, access.estate_id, access.user_id, data.body, pinned=data.pinned
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.NOTE_CREATED,
        "Note added",
        detail=_preview(note.body),
        meta={"note_id": note.id, "pinned": note.pinned},
    )
    return ok(NoteRead.model_validate(note))


@router.get("/{note_id}")
def get_note(
    note_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(NoteRead.model_validate(_get_or_404(db, access.estate_id, note_id)))


@router.patch("/{note_id}", dependencies=[Depends(require_csrf_header)])
def update_note(
    note_id: UUID,
    data: NoteUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    """
    Edit a note's body and/or pin state.

    An update with neither field is a 400.
    """
    if data.body is None and data.pinned is None:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if data.pinned is not None and not access.is_owner:
        raise HTTPException(status_code=403, detail="Only the estate owner can pin notes")

    note = _get_or_404(db, access.estate_id, note_id)
    try:
        changes = note_service.update_note(db, note, body=data.body, pinned=data.pinned)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if changes["body"]:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.NOTE_UPDATED,
            "Note edited",
            detail=_preview(note.body),
            meta={"note_id": note.id},
        )
    if changes["pinned"]:
        pinned = note.pinned
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.NOTE_PINNED if pinned else EstateEventType.NOTE_UNPINNED,
            "Note pinned" if pinned else "Note unpinned",
            meta={"note_id": note.id},
        )
    return ok(NoteRead.model_validate(note))


@router.delete("/{note_id}", dependencies=[Depends(require_csrf_header)])
def delete_note(
    note_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    note = _get_or_404(db, access.estate_id, note_id)
    preview = _preview(note.body)
    note_service.delete_note(db, note)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.NOTE_DELETED,
        "Note deleted",
        detail=preview,
        meta={"note_id": note_id},
    )
    return ok({"id": note_id, "deleted": True})
