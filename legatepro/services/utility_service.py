"""Utility account service - electric, water and other services on estate property."""

from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from legatepro.db.enums import UtilityType
from legatepro.db.models import UtilityAccount
from legatepro.schemas.finances import UtilityCreate, UtilityUpdate
from legatepro.services.estate_refs import PROPERTY_REF, check_references


def list_utilities(
    db: Session,
    estate_id: UUID,
    *,
    property_id: UUID | None = None,
    utility_type: UtilityType | None = None,
    q: str | None = None,
) -> list[UtilityAccount]:
    """Accounts sorted by provider. ``q`` matches provider, account number and notes."""
    query = db.query(UtilityAccount).filter(UtilityAccount.estate_id == estate_id)
    if property_id:
        query = query.filter(UtilityAccount.property_id == property_id)
    if utility_type:
        query = query.filter(UtilityAccount.utility_type == utility_type.value)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(
                UtilityAccount.provider_name.ilike(pattern),
                UtilityAccount.account_number.ilike(pattern),
                UtilityAccount.notes.ilike(pattern),
            )
        )
    return query.order_by(
        UtilityAccount.provider_name.asc(), UtilityAccount.created_at.asc()
    ).all()


def get_utility(db: Session, estate_id: UUID, utility_id: UUID) -> UtilityAccount | None:
    return db.query(UtilityAccount).filter(
        UtilityAccount.id == utility_id,
        UtilityAccount.estate_id == estate_id,
    ).first()


def create_utility(
    db: Session, estate_id: UUID, owner_id: UUID, data: UtilityCreate
) -> UtilityAccount:
    """
    Add a utility account.

    Raises:
        RecordNotInEstate: property_id is not one of the estate's properties
    """
    values = data.model_dump()
    check_references(db, estate_id, values, PROPERTY_REF)
    values["utility_type"] = data.utility_type.value
    utility = UtilityAccount(estate_id=estate_id, owner_id=owner_id, **values)
    db.add(utility)
    db.commit()
    db.refresh(utility)
    return utility


def update_utility(db: Session, utility: UtilityAccount, data: UtilityUpdate) -> list[str]:
    values = data.model_dump(exclude_unset=True)
    check_references(db, utility.estate_id, values, PROPERTY_REF)

    required = ("provider_name", "utility_type", "balance_due_cents")
    changed: list[str] = []
    for field, value in values.items():
        if field in required and value is None:
            continue
        if isinstance(value, UtilityType):
            value = value.value
        if field == "provider_name":
            value = value.strip() or utility.provider_name
        if getattr(utility, field) != value:
            setattr(utility, field, value)
            changed.append(field)
    if changed:
        db.commit()
        db.refresh(utility)
    return changed


def delete_utility(db: Session, utility: UtilityAccount) -> None:
    db.delete(utility)
    db.commit()
