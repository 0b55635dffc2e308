"""Expenses router - money paid out of (or on behalf of) the estate."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType, ExpenseCategory
from legatepro.schemas.finances import ExpenseCreate, ExpenseList, ExpenseRead, ExpenseUpdate
from legatepro.services import activity_service, expense_service
from legatepro.services.estate_refs import RecordNotInEstate
from legatepro.services.rent_service import format_dollars

router = APIRouter()


def _get_or_404(db: Session, estate_id: UUID, expense_id: UUID):
    expense = expense_service.get_expense(db, estate_id, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.get("")
def list_expenses(
    category: ExpenseCategory | None = None,
    is_paid: bool | None = None,
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    q: str | None = None,
    limit: int = Query(expense_service.DEFAULT_LIMIT, ge=1, le=expense_service.MAX_LIMIT),
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    """Expenses newest first, with the total of the rows returned."""
    expenses = expense_service.list_expenses(
        db,
        access.estate_id,
        category=category,
        is_paid=is_paid,
        date_from=date_from,
        date_to=date_to,
        q=q,
        limit=limit,
    )
    items = [ExpenseRead.model_validate(e) for e in expenses]
    return ok(ExpenseList(items=items, total_cents=sum(e.amount_cents for e in items)))


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_expense(
    data: ExpenseCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    try:
        expense = expense_service.create_expense(db, access.estate_id, access.user_id, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))

    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.EXPENSE_CREATED,
        f"Expense recorded: {expense.description} ({format_dollars(expense.amount_cents)})",
        meta={
            "expense_id": expense.id,
            "category": expense.category,
            "amount_cents": expense.amount_cents,
        },
    )
    return ok(ExpenseRead.model_validate(expense))


@router.get("/{expense_id}")
def get_expense(
    expense_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(ExpenseRead.model_validate(_get_or_404(db, access.estate_id, expense_id)))


@router.patch("/{expense_id}", dependencies=[Depends(require_csrf_header)])
def update_expense(
    expense_id: UUID,
    data: ExpenseUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    """Update only the fields present in the request body."""
    expense = _get_or_404(db, access.estate_id, expense_id)
    try:
        changed = expense_service.update_expense(db, expense, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))
    if changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.EXPENSE_UPDATED,
            f"Expense updated: {expense.description}",
            meta={"expense_id": expense.id, "changed_fields": changed},
        )
    return ok(ExpenseRead.model_validate(expense))


@router.delete("/{expense_id}", dependencies=[Depends(require_csrf_header)])
def delete_expense(
    expense_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    expense = _get_or_404(db, access.estate_id, expense_id)
    description = expense.description
    expense_service.delete_expense(db, expense)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.EXPENSE_DELETED,
        f"Expense deleted: {description}",
        meta={"expense_id": expense_id},
    )
    return ok({"id": expense_id, "deleted": True})
