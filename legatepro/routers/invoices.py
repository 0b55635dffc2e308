"""Invoices router - bills raised by the estate, with a DRAFT to PAID lifecycle."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType, InvoiceStatus
from legatepro.schemas.finances import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceStatusUpdate,
    InvoiceUpdate,
)
from legatepro.services import activity_service, invoice_service, settings_service
from legatepro.services.invoice_service import InvoiceLockedError, InvoiceTransitionError

router = APIRouter()


def _get_or_404(db: Session, estate_id: UUID, invoice_id: UUID):
    invoice = invoice_service.get_invoice(db, estate_id, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get("")
def list_invoices(
    status: InvoiceStatus | None = None,
    sort: str | None = None,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    invoices = invoice_service.list_invoices(db, access.estate_id, status=status, sort=sort)
    return ok([InvoiceRead.model_validate(i) for i in invoices])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_invoice(
    data: InvoiceCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    defaults = settings_service.billing_defaults(db, access.estate.owner_id)
    invoice = invoice_service.create_invoice(
        db, access.estate_id, access.user_id, data, defaults=defaults
    )
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.INVOICE_CREATED,
        f"Invoice {invoice.invoice_number} created",
        meta={
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "total_cents": invoice.total_cents,
        },
    )
    return ok(InvoiceRead.model_validate(invoice))


@router.get("/{invoice_id}")
def get_invoice(
    invoice_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(InvoiceRead.model_validate(_get_or_404(db, access.estate_id, invoice_id)))


@router.patch("/{invoice_id}", dependencies=[Depends(require_csrf_header)])
def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    """Edit invoice fields and recalculate totals. Line items are editable on drafts only."""
    invoice = _get_or_404(db, access.estate_id, invoice_id)
    try:
        changed = invoice_service.update_invoice(db, invoice, data)
    except InvoiceLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.INVOICE_UPDATED,
            f"Invoice {invoice.invoice_number} updated",
            meta={"invoice_id": invoice.id, "changed_fields": changed},
        )
    return ok(InvoiceRead.model_validate(invoice))


@router.patch("/{invoice_id}/status", dependencies=[Depends(require_csrf_header)])
def change_invoice_status(
    invoice_id: UUID,
    data: InvoiceStatusUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    """
    Move an invoice along its lifecycle.

    DRAFT -> SENT | VOID, SENT -> PAID | OVERDUE | VOID, OVERDUE -> PAID | VOID.
    PAID and VOID are terminal. Same status is a no-op.
    """
    invoice = _get_or_404(db, access.estate_id, invoice_id)
    try:
        previous = invoice_service.change_status(db, invoice, data.status)
    except InvoiceTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if previous is not None:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.INVOICE_STATUS_CHANGED,
            f"Invoice {invoice.invoice_number} marked {invoice.status.lower()}",
            meta={
                "invoice_id": invoice.id,
                "previous_status": previous,
                "status": invoice.status,
            },
        )
    return ok(InvoiceRead.model_validate(invoice))


@router.delete("/{invoice_id}", dependencies=[Depends(require_csrf_header)])
def delete_invoice(
    invoice_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    invoice = _get_or_404(db, access.estate_id, invoice_id)
    number = invoice.invoice_number
    invoice_service.delete_invoice(db, invoice)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.INVOICE_DELETED,
        f"Invoice {number} deleted",
        meta={"invoice_id": invoice_id},
    )
    return ok({"id": invoice_id, "deleted": True})
