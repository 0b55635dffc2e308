"""Property service - real property held by the estate."""

from uuid import UUID

from sqlalchemy.orm import Session

from legatepro.db.enums import PropertyType
from legatepro.db.models import EstateProperty, Expense, RentPayment, UtilityAccount
from legatepro.schemas.finances import PropertyCreate, PropertyUpdate


def list_properties(db: Session, estate_id: UUID) -> list[EstateProperty]:
    return db.query(EstateProperty).filter(
        EstateProperty.estate_id == estate_id
    ).order_by(EstateProperty.label.asc()).all()


def count_properties(db: Session, estate_id: UUID) -> int:
    return db.query(EstateProperty).filter(EstateProperty.estate_id == estate_id).count()


def get_property(db: Session, estate_id: UUID, property_id: UUID) -> EstateProperty | None:
    return db.query(EstateProperty).filter(
        EstateProperty.id == property_id,
        EstateProperty.estate_id == estate_id,
    ).first()


def create_property(
    db: Session, estate_id: UUID, owner_id: UUID, data: PropertyCreate
) -> EstateProperty:
    values = data.model_dump()
    values["property_type"] = data.property_type.value
    prop = EstateProperty(estate_id=estate_id, owner_id=owner_id, **values)
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return prop


def update_property(db: Session, prop: EstateProperty, data: PropertyUpdate) -> list[str]:
    required = ("label", "property_type", "is_rented", "is_sold")
    changed: list[str] = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in required and value is None:
            continue
        if isinstance(value, PropertyType):
            value = value.value
        if field == "label":
            value = value.strip() or prop.label
        if getattr(prop, field) != value:
            setattr(prop, field, value)
            changed.append(field)
    if changed:
        db.commit()
        db.refresh(prop)
    return changed


def delete_property(db: Session, prop: EstateProperty) -> None:
    """Delete a property; linked rent, expenses and utility accounts are kept but detached."""
    for model in (RentPayment, Expense, UtilityAccount):
        db.query(model).filter(
            model.estate_id == prop.estate_id,
            model.property_id == prop.id,
        ).update({model.property_id: None}, synchronize_session=False)
    db.delete(prop)
    db.commit()
