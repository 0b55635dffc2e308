"""Contacts router - heirs, attorneys, banks, creditors and vendors linked to an estate."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import ContactRole, EstateEventType
from legatepro.schemas.records import ContactCreate, ContactRead, ContactUpdate
from legatepro.services import activity_service, contact_service

router = APIRouter()


def _get_or_404(db: Session, estate_id: UUID, contact_id: UUID):
    contact = contact_service.get_contact(db, estate_id, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.get("")
def list_contacts(
    q: str | None = None,
    role: ContactRole | None = None,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    contacts = contact_service.list_contacts(db, access.estate_id, q=q, role=role)
    return ok([ContactRead.model_validate(c) for c in contacts])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_contact(
    data: ContactCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    contact = contact_service.create_contact(db, access.estate_id, access.user_id, data)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.CONTACT_LINKED,
        f"Contact added: {contact.name}",
        meta={"contact_id": contact.id, "role": contact.role},
    )
    return ok(ContactRead.model_validate(contact))


@router.get("/{contact_id}")
def get_contact(
    contact_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(ContactRead.model_validate(_get_or_404(db, access.estate_id, contact_id)))


@router.patch("/{contact_id}", dependencies=[Depends(require_csrf_header)])
def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    contact = _get_or_404(db, access.estate_id, contact_id)
    changed = contact_service.update_contact(db, contact, data)
    if changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.CONTACT_UPDATED,
            f"Contact updated: {contact.name}",
            meta={"contact_id": contact.id, "changed_fields": changed},
        )
    return ok(ContactRead.model_validate(contact))


@router.delete("/{contact_id}", dependencies=[Depends(require_csrf_header)])
def delete_contact(
    contact_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    contact = _get_or_404(db, access.estate_id, contact_id)
    name = contact.name
    contact_service.delete_contact(db, contact)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.CONTACT_UNLINKED,
        f"Contact removed: {name}",
        meta={"contact_id": contact_id},
    )
    return ok({"id": contact_id, "deleted": True})
