"""Note service - free-text estate notes.

Bodies are stored as plain text: every HTML tag is stripped on write and the
entities nh3 emits are decoded again, so `&` and `<` round-trip unchanged.
"""

import html
from uuid import UUID

import nh3
from sqlalchemy.orm import Session

from legatepro.db.models import EstateNote

MAX_BODY_LENGTH = 5000


def sanitize_text(text: str) -> str:
    """Strip all HTML, leaving plain (unescaped) text."""
    return html.unescape(nh3.clean(text, tags=set(), attributes={})).strip()


def list_notes(db: Session, estate_id: UUID) -> list[EstateNote]:
    """Pinned notes first, then newest."""
    return db.query(EstateNote).filter(
        EstateNote.estate_id == estate_id
    ).order_by(EstateNote.pinned.desc(), EstateNote.created_at.desc()).all()


def get_note(db: Session, estate_id: UUID, note_id: UUID) -> EstateNote | None:
    return db.query(EstateNote).filter(
        EstateNote.id == note_id,
        EstateNote.estate_id == estate_id,
    ).first()


def clean_body(body: str) -> str:
    """
    Sanitize and validate a note body.

    Raises:
        ValueError: Empty after sanitizing, or longer than 5000 characters
    """
    cleaned = sanitize_text(body or "")
    if not cleaned:
        raise ValueError("Note body is required")
    if len(cleaned) > MAX_BODY_LENGTH:
        raise ValueError(f"Note body must be at most {MAX_BODY_LENGTH} characters")
    return cleaned


def create_note(
    db: Session, estate_id: UUID, owner_id: UUID, body: str, pinned: bool = False
) -> EstateNote:
    note = EstateNote(
        estate_id=estate_id,
        owner_id=owner_id,
        body=clean_body(body),
        pinned=pinned,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def update_note(
    db: Session,
    note: EstateNote,
    *,
    body: str | None = None,
    pinned: bool | None = None,
) -> dict[str, bool]:
    """
    Apply body and/or pinned changes.

    Returns:
        {"body": changed?, "pinned": changed?}
    """
    changes = {"body": False, "pinned": False}
    if body is not None:
        cleaned = clean_body(body)
        if cleaned != note.body:
            note.body = cleaned
            changes["body"] = True
    if pinned is not None and pinned != note.pinned:
        note.pinned = pinned
        changes["pinned"] = True

    if any(changes.values()):
        db.commit()
        db.refresh(note)
    return changes


def delete_note(db: Session, note: EstateNote) -> None:
    db.delete(note)
    db.commit()
