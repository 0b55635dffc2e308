"""Rent router - rent collected on estate properties, plus the CSV ledger."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType
from legatepro.schemas.finances import RentCreate, RentRead, RentUpdate
from legatepro.services import activity_service, rent_service
from legatepro.services.estate_refs import RecordNotInEstate
from legatepro.services.rent_service import format_dollars

router = APIRouter()


def _get_or_404(db: Session, estate_id: UUID, rent_id: UUID):
    payment = rent_service.get_rent(db, estate_id, rent_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Rent payment not found")
    return payment


@router.get("")
def list_rent(
    property_id: UUID | None = None,
    year: int | None = Query(None, ge=1900, le=2200),
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    payments = rent_service.list_rent(db, access.estate_id, property_id=property_id, year=year)
    return ok([RentRead.model_validate(p) for p in payments])


@router.get("/export", response_class=StreamingResponse)
def export_rent_ledger(
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
) -> StreamingResponse:
    """Rent ledger (CSV)."""
    filename = rent_service.ledger_filename(access.estate_id)
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
    }
    return StreamingResponse(
        rent_service.stream_rent_ledger(db, access.estate_id),
        media_type="text/csv",
        headers=headers,
    )


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_rent(
    data: RentCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    try:
        payment = rent_service.create_rent(db, access.estate_id, access.user_id, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))

    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.RENT_RECORDED,
        f"Rent recorded for {payment.period_label} ({format_dollars(payment.amount_cents)})",
        meta={
            "rent_id": payment.id,
            "property_id": payment.property_id,
            "amount_cents": payment.amount_cents,
        },
    )
    return ok(RentRead.model_validate(payment))


@router.get("/{rent_id}")
def get_rent(
    rent_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(RentRead.model_validate(_get_or_404(db, access.estate_id, rent_id)))


@router.patch("/{rent_id}", dependencies=[Depends(require_csrf_header)])
def update_rent(
    rent_id: UUID,
    data: RentUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    payment = _get_or_404(db, access.estate_id, rent_id)
    try:
        changed = rent_service.update_rent(db, payment, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))

    if changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.RENT_UPDATED,
            f"Rent payment updated for {payment.period_label}",
            meta={"rent_id": payment.id, "changed_fields": changed},
        )
    return ok(RentRead.model_validate(payment))


@router.delete("/{rent_id}", dependencies=[Depends(require_csrf_header)])
def delete_rent(
    rent_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    payment = _get_or_404(db, access.estate_id, rent_id)
    period = payment.period_label
    rent_service.delete_rent(db, payment)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.RENT_DELETED,
        f"Rent payment deleted for {period}",
        meta={"rent_id": rent_id},
    )
    return ok({"id": rent_id, "deleted": True})
