"""Rent service - rent collected on estate property, plus the CSV ledger."""

from typing import Iterator
from uuid import UUID

from sqlalchemy.orm import Session

from legatepro.db.models import EstateProperty, RentPayment
from legatepro.schemas.finances import RentCreate, RentUpdate
from legatepro.services.estate_refs import PROPERTY_REF, check_references
from legatepro.utils.csv_export import stream_csv

LEDGER_HEADERS = ("Date", "Period", "Tenant", "Property", "Method", "Amount", "Notes")


def list_rent(
    db: Session,
    estate_id: UUID,
    *,
    property_id: UUID | None = None,
    year: int | None = None,
) -> list[RentPayment]:
    """Rent payments, most recent payment date first."""
    query = db.query(RentPayment).filter(RentPayment.estate_id == estate_id)
    if property_id:
        query = query.filter(RentPayment.property_id == property_id)
    if year:
        query = query.filter(RentPayment.period_year == year)
    return query.order_by(
        RentPayment.payment_date.desc(), RentPayment.created_at.desc()
    ).all()


def get_rent(db: Session, estate_id: UUID, rent_id: UUID) -> RentPayment | None:
    return db.query(RentPayment).filter(
        RentPayment.id == rent_id,
        RentPayment.estate_id == estate_id,
    ).first()


def create_rent(db: Session, estate_id: UUID, owner_id: UUID, data: RentCreate) -> RentPayment:
    """
    Record a rent payment.

    Raises:
        RecordNotInEstate: property_id given but not one of the estate's properties
    """
    check_references(db, estate_id, data.model_dump(), PROPERTY_REF)
    payment = RentPayment(estate_id=estate_id, owner_id=owner_id, **data.model_dump())
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return payment


def update_rent(db: Session, payment: RentPayment, data: RentUpdate) -> list[str]:
    values = data.model_dump(exclude_unset=True)
    check_references(db, payment.estate_id, values, PROPERTY_REF)

    required = ("period_month", "period_year", "amount_cents", "payment_date", "is_late")
    changed: list[str] = []
    for field, value in values.items():
        if field in required and value is None:
            continue
        if getattr(payment, field) != value:
            setattr(payment, field, value)
            changed.append(field)
    if changed:
        db.commit()
        db.refresh(payment)
    return changed


def delete_rent(db: Session, payment: RentPayment) -> None:
    db.delete(payment)
    db.commit()


# =============================================================================
# CSV ledger
# =============================================================================

def format_dollars(cents: int) -> str:
    return f"{(cents or 0) / 100:.2f}"


def ledger_filename(estate_id: UUID) -> str:
    return f"estate-{estate_id}-rent-ledger.csv"


def stream_rent_ledger(db: Session, estate_id: UUID) -> Iterator[str]:
    """Rent ledger as CSV, oldest payment first."""
    labels = dict(
        db.query(EstateProperty.id, EstateProperty.label)
        .filter(EstateProperty.estate_id == estate_id)
        .all()
    )
    payments = db.query(RentPayment).filter(
        RentPayment.estate_id == estate_id
    ).order_by(RentPayment.payment_date.asc(), RentPayment.created_at.asc()).all()

    rows = (
        (
            p.payment_date.isoformat(),
            p.period_label,
            p.tenant_name,
            labels.get(p.property_id, "") if p.property_id else "",
            p.method,
            format_dollars(p.amount_cents),
            p.notes,
        )
        for p in payments
    )
    return stream_csv(LEDGER_HEADERS, rows)
