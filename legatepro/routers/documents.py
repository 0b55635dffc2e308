"""Documents router - the estate's document index.

Sensitive documents are visible to editors and the owner only. For everyone
else they are left out of lists and a direct fetch is a 404.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import DocumentSubject, EstateEventType
from legatepro.schemas.records import DocumentCreate, DocumentRead, DocumentUpdate
from legatepro.services import activity_service, document_service

router = APIRouter()


def _get_or_404(db: Session, access: EstateAccess, document_id: UUID):
    document = document_service.get_document(
        db, access.estate_id, document_id, include_sensitive=access.can_view_sensitive
    )
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.get("")
def list_documents(
    q: str | None = None,
    subject: DocumentSubject | None = None,
    tag: str | None = None,
    sensitive: bool | None = None,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    documents = document_service.list_documents(
        db,
        access.estate_id,
        include_sensitive=access.can_view_sensitive,
        q=q,
        subject=subject,
        tag=tag,
        sensitive=sensitive,
    )
    return ok([DocumentRead.model_validate(d) for d in documents])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_document(
    data: DocumentCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    document = document_service.create_document(db, access.estate_id, access.user_id, data)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.DOCUMENT_CREATED,
        f"Document added: {document.label}",
        meta={"document_id": document.id, "subject": document.subject},
    )
    return ok(DocumentRead.model_validate(document))


@router.get("/{document_id}")
def get_document(
    document_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(DocumentRead.model_validate(_get_or_404(db, access, document_id)))


@router.patch("/{document_id}", dependencies=[Depends(require_csrf_header)])
def update_document(
    document_id: UUID,
    data: DocumentUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    document = _get_or_404(db, access, document_id)
    changed = document_service.update_document(db, document, data)
    if changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.DOCUMENT_UPDATED,
            f"Document updated: {document.label}",
            meta={"document_id": document.id, "changed_fields": changed},
        )
    return ok(DocumentRead.model_validate(document))


@router.delete("/{document_id}", dependencies=[Depends(require_csrf_header)])
def delete_document(
    document_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    document = _get_or_404(db, access, document_id)
    label = document.label
    document_service.delete_document(db, document)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.DOCUMENT_DELETED,
        f"Document removed: {label}",
        meta={"document_id": document_id},
    )
    return ok({"id": document_id, "deleted": True})
