"""Validation of ids one estate record uses to point at another.

A record may only link to rows of its own estate. An id from another estate
is rejected the same way as one that does not exist, so estates never leak
each other's ids.
"""

from typing import Any, Mapping
from uuid import UUID

from sqlalchemy.orm import Session

from legatepro.db.models import EstateDocument, EstateProperty, Invoice


class RecordNotInEstate(ValueError):
    """A referenced id is unknown or belongs to another estate."""


# field name -> (model, label used in the error message)
PROPERTY_REF = {"property_id": (EstateProperty, "Property")}
DOCUMENT_REF = {"document_id": (EstateDocument, "Document")}
TASK_REFS = {
    "related_document_id": (EstateDocument, "Document"),
    "related_invoice_id": (Invoice, "Invoice"),
}


def ensure_in_estate(
    db: Session, model: Any, estate_id: UUID, record_id: UUID | None, label: str
) -> None:
    """
    Check one reference. ``None`` means unlinked and is always allowed.

    Raises:
        RecordNotInEstate: No row with that id on this estate
    """
    if record_id is None:
        return
    exists = db.query(model.id).filter(
        model.id == record_id,
        model.estate_id == estate_id,
    ).first()
    if not exists:
        raise RecordNotInEstate(f"{label} does not belong to this estate")


def check_references(
    db: Session,
    estate_id: UUID,
    values: Mapping[str, Any],
    refs: Mapping[str, tuple[Any, str]],
) -> None:
    """Check every reference field present in ``values``."""
    for field, (model, label) in refs.items():
        if field in values:
            ensure_in_estate(db, model, estate_id, values[field], label)
