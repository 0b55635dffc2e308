"""Document index service.

Callers pass ``include_sensitive`` from the member's estate access; rows with
``is_sensitive`` are never returned to members who cannot view them.
"""

from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from legatepro.db.enums import DocumentSubject
from legatepro.db.models import EstateDocument
from legatepro.schemas.records import DocumentCreate, DocumentUpdate


def list_documents(
    db: Session,
    estate_id: UUID,
    *,
    include_sensitive: bool,
    q: str | None = None,
    subject: DocumentSubject | None = None,
    tag: str | None = None,
    sensitive: bool | None = None,
) -> list[EstateDocument]:
    """List an estate's documents, newest first, with optional filters."""
    query = db.query(EstateDocument).filter(EstateDocument.estate_id == estate_id)
    if not include_sensitive:
        query = query.filter(EstateDocument.is_sensitive.is_(False))
    elif sensitive is not None:
        query = query.filter(EstateDocument.is_sensitive.is_(sensitive))
    if subject:
        query = query.filter(EstateDocument.subject == subject.value)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(
                EstateDocument.label.ilike(pattern),
                EstateDocument.notes.ilike(pattern),
                EstateDocument.location.ilike(pattern),
            )
        )
    documents = query.order_by(EstateDocument.created_at.desc()).all()

    # Tag filtering happens in Python; JSON containment differs per backend
    if tag:
        wanted = tag.strip().lower()
        documents = [d for d in documents if any(t.lower() == wanted for t in (d.tags or []))]
    return documents


def get_document(
    db: Session, estate_id: UUID, document_id: UUID, *, include_sensitive: bool
) -> EstateDocument | None:
    """Fetch one document; hidden sensitive rows look the same as missing ones."""
    document = db.query(EstateDocument).filter(
        EstateDocument.id == document_id,
        EstateDocument.estate_id == estate_id,
    ).first()
    if document and document.is_sensitive and not include_sensitive:
        return None
    return document


def create_document(
    db: Session, estate_id: UUID, owner_id: UUID, data: DocumentCreate
) -> EstateDocument:
    document = EstateDocument(
        estate_id=estate_id,
        owner_id=owner_id,
        label=data.label,
        subject=data.subject.value,
        location=data.location,
        url=data.url,
        tags=data.tags,
        notes=data.notes,
        is_sensitive=data.is_sensitive,
        file_name=data.file_name,
        file_type=data.file_type,
        file_size_bytes=data.file_size_bytes,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


def update_document(db: Session, document: EstateDocument, data: DocumentUpdate) -> list[str]:
    """Apply whitelisted fields that were sent. Returns the changed field names."""
    changed: list[str] = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("label", "subject", "tags", "is_sensitive") and value is None:
            continue
        if isinstance(value, DocumentSubject):
            value = value.value
        if field == "label":
            value = value.strip() or document.label
        if getattr(document, field) != value:
            setattr(document, field, value)
            changed.append(field)
    if changed:
        db.commit()
        db.refresh(document)
    return changed


def delete_document(db: Session, document: EstateDocument) -> None:
    db.delete(document)
    db.commit()


def subject_counts(db: Session, estate_id: UUID) -> dict[str, int]:
    """Number of documents per subject (all documents, sensitive included)."""
    rows = db.query(EstateDocument.subject, func.count(EstateDocument.id)).filter(
        EstateDocument.estate_id == estate_id
    ).group_by(EstateDocument.subject).all()
    counts: dict[str, int] = {}
    for subject, count in rows:
        key = (subject or DocumentSubject.OTHER.value).upper()
        counts[key] = counts.get(key, 0) + count
    return counts
