"""Contact service - people and organizations linked to an estate."""

from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from legatepro.db.enums import ContactRole
from legatepro.db.models import Contact
from legatepro.schemas.records import ContactCreate, ContactUpdate


def list_contacts(
    db: Session,
    estate_id: UUID,
    *,
    q: str | None = None,
    role: ContactRole | None = None,
) -> list[Contact]:
    """Primary contacts first, then alphabetical."""
    query = db.query(Contact).filter(Contact.estate_id == estate_id)
    if role:
        query = query.filter(Contact.role == role.value)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Contact.name.ilike(pattern),
                Contact.email.ilike(pattern),
                Contact.phone.ilike(pattern),
                Contact.relationship.ilike(pattern),
            )
        )
    return query.order_by(Contact.is_primary.desc(), Contact.name.asc()).all()


def count_contacts(db: Session, estate_id: UUID) -> int:
    return db.query(Contact).filter(Contact.estate_id == estate_id).count()


def get_contact(db: Session, estate_id: UUID, contact_id: UUID) -> Contact | None:
    return db.query(Contact).filter(
        Contact.id == contact_id,
        Contact.estate_id == estate_id,
    ).first()


def _clear_other_primaries(db: Session, estate_id: UUID, keep_id: UUID | None) -> None:
    query = db.query(Contact).filter(
        Contact.estate_id == estate_id,
        Contact.is_primary.is_(True),
    )
    if keep_id is not None:
        query = query.filter(Contact.id != keep_id)
    for other in query.all():
        other.is_primary = False


def create_contact(db: Session, estate_id: UUID, owner_id: UUID, data: ContactCreate) -> Contact:
    values = data.model_dump()
    values["role"] = data.role.value
    contact = Contact(estate_id=estate_id, owner_id=owner_id, **values)
    if contact.is_primary:
        _clear_other_primaries(db, estate_id, keep_id=None)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


def update_contact(db: Session, contact: Contact, data: ContactUpdate) -> list[str]:
    changed: list[str] = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("name", "role", "is_primary") and value is None:
            continue
        if isinstance(value, ContactRole):
            value = value.value
        if field == "name":
            value = value.strip() or contact.name
        if getattr(contact, field) != value:
            setattr(contact, field, value)
            changed.append(field)

    if "is_primary" in changed and contact.is_primary:
        _clear_other_primaries(db, contact.estate_id, keep_id=contact.id)
    if changed:
        db.commit()
        db.refresh(contact)
    return changed


def delete_contact(db: Session, contact: Contact) -> None:
    db.delete(contact)
    db.commit()
