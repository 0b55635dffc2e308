"""Expense service - money paid out of (or on behalf of) the estate."""

from datetime import date
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from legatepro.db.enums import ExpenseCategory
from legatepro.db.models import Expense
from legatepro.schemas.finances import ExpenseCreate, ExpenseUpdate
from legatepro.services.estate_refs import DOCUMENT_REF, PROPERTY_REF, check_references

EXPENSE_REFS = {**PROPERTY_REF, **DOCUMENT_REF}

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


def list_expenses(
    db: Session,
    estate_id: UUID,
    *,
    category: ExpenseCategory | None = None,
    is_paid: bool | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    q: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[Expense]:
    """Expenses newest first. ``q`` matches description, payee and notes."""
    limit = max(1, min(MAX_LIMIT, limit))
    query = db.query(Expense).filter(Expense.estate_id == estate_id)
    if category:
        query = query.filter(Expense.category == category.value)
    if is_paid is not None:
        query = query.filter(Expense.is_paid.is_(is_paid))
    if date_from:
        query = query.filter(Expense.incurred_on >= date_from)
    if date_to:
        query = query.filter(Expense.incurred_on <= date_to)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Expense.description.ilike(pattern),
                Expense.payee.ilike(pattern),
                Expense.notes.ilike(pattern),
            )
        )
    return query.order_by(
        Expense.incurred_on.desc(), Expense.created_at.desc()
    ).limit(limit).all()


def count_expenses(db: Session, estate_id: UUID) -> int:
    return db.query(Expense).filter(Expense.estate_id == estate_id).count()


def get_expense(db: Session, estate_id: UUID, expense_id: UUID) -> Expense | None:
    return db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.estate_id == estate_id,
    ).first()


def create_expense(db: Session, estate_id: UUID, owner_id: UUID, data: ExpenseCreate) -> Expense:
    """
    Record an expense.

    Raises:
        RecordNotInEstate: property_id or document_id is not on this estate
    """
    values = data.model_dump()
    check_references(db, estate_id, values, EXPENSE_REFS)
    values["category"] = data.category.value
    expense = Expense(estate_id=estate_id, owner_id=owner_id, **values)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def update_expense(db: Session, expense: Expense, data: ExpenseUpdate) -> list[str]:
    """Only fields present in the request are touched."""
    values = data.model_dump(exclude_unset=True)
    check_references(db, expense.estate_id, values, EXPENSE_REFS)

    required = ("incurred_on", "category", "description", "amount_cents", "is_paid")
    changed: list[str] = []
    for field, value in values.items():
        if field in required and value is None:
            continue
        if isinstance(value, ExpenseCategory):
            value = value.value
        if field == "description":
            value = value.strip() or expense.description
        if getattr(expense, field) != value:
            setattr(expense, field, value)
            changed.append(field)
    if changed:
        db.commit()
        db.refresh(expense)
    return changed


def delete_expense(db: Session, expense: Expense) -> None:
    db.delete(expense)
    db.commit()
