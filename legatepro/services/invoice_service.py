"""Invoice service - fee invoices with line items and a status lifecycle.

Totals are always derived from the line items:
    amount   = round(quantity * rate_cents)   (unless given explicitly)
    subtotal = sum(amount)
    tax      = round(subtotal * tax_rate / 100)
    total    = subtotal + tax
"""

import re
from datetime import date
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from legatepro.db.enums import INVOICE_TRANSITIONS, InvoiceStatus
from legatepro.db.models import Invoice
from legatepro.db.types import utcnow
from legatepro.schemas.finances import InvoiceCreate, InvoiceUpdate, LineItemIn
from legatepro.services.settings_service import BillingDefaults

NUMBER_PREFIX = "INV-"
NUMBER_WIDTH = 5
_NUMBER_RE = re.compile(r"^INV-(\d+)$")

SORT_FIELDS = {
    "issue_date": Invoice.issue_date,
    "due_date": Invoice.due_date,
    "total": Invoice.total_cents,
    "created": Invoice.created_at,
    "number": Invoice.invoice_number,
}


class InvoiceTransitionError(ValueError):
    pass


class InvoiceLockedError(Exception):
    """Line items can only be edited while the invoice is a draft."""


# =============================================================================
# Totals
# =============================================================================

def price_line_items(items: list[LineItemIn]) -> list[dict]:
    priced = []
    for item in items:
        amount = item.amount_cents
        if amount is None:
            amount = round(item.quantity * item.rate_cents)
        priced.append(
            {
                "type": item.type.value,
                "label": item.label.strip(),
                "quantity": item.quantity,
                "rate_cents": item.rate_cents,
                "amount_cents": amount,
            }
        )
    return priced


def compute_totals(line_items: list[dict], tax_rate: float) -> dict[str, int]:
    subtotal = sum(int(item.get("amount_cents") or 0) for item in line_items)
    tax = round(subtotal * (tax_rate or 0) / 100)
    return {"subtotal_cents": subtotal, "tax_cents": tax, "total_cents": subtotal + tax}


def _apply_totals(invoice: Invoice) -> None:
    for key, value in compute_totals(invoice.line_items or [], invoice.tax_rate).items():
        setattr(invoice, key, value)


# =============================================================================
# Numbering
# =============================================================================

def format_invoice_number(sequence: int) -> str:
    return f"{NUMBER_PREFIX}{sequence:0{NUMBER_WIDTH}d}"


def next_invoice_number(db: Session, estate_id: UUID) -> str:
    """One past the highest INV-NNNNN already issued on the estate."""
    numbers = db.query(Invoice.invoice_number).filter(Invoice.estate_id == estate_id).all()
    highest = 0
    for (number,) in numbers:
        match = _NUMBER_RE.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return format_invoice_number(highest + 1)


# =============================================================================
# CRUD
# =============================================================================

def list_invoices(
    db: Session,
    estate_id: UUID,
    *,
    status: InvoiceStatus | None = None,
    sort: str | None = None,
) -> list[Invoice]:
    """
    List invoices. ``sort`` is a SORT_FIELDS key, ``-`` prefix for descending.

    Defaults to newest issue date first.
    """
    query = db.query(Invoice).filter(Invoice.estate_id == estate_id)
    if status:
        query = query.filter(Invoice.status == status.value)

    descending = True
    column = Invoice.issue_date
    if sort:
        descending = sort.startswith("-")
        column = SORT_FIELDS.get(sort.lstrip("-"), Invoice.issue_date)
    order = column.desc() if descending else column.asc()
    return query.order_by(order, Invoice.created_at.desc()).all()


def count_invoices(db: Session, estate_id: UUID) -> int:
    return db.query(Invoice).filter(Invoice.estate_id == estate_id).count()


def get_invoice(db: Session, estate_id: UUID, invoice_id: UUID) -> Invoice | None:
    return db.query(Invoice).filter(
        Invoice.id == invoice_id,
        Invoice.estate_id == estate_id,
    ).first()


def create_invoice(
    db: Session,
    estate_id: UUID,
    owner_id: UUID,
    data: InvoiceCreate,
    defaults: BillingDefaults | None = None,
) -> Invoice:
    """
    Create a DRAFT invoice with the next number in the estate's sequence.

    Currency and due date fall back to ``defaults`` (the estate owner's
    workspace settings) when the request leaves them out.
    """
    defaults = defaults or BillingDefaults()
    line_items = price_line_items(data.line_items)
    issue_date = data.issue_date or date.today()
    attempts = 3
    while True:
        invoice = Invoice(
            estate_id=estate_id,
            owner_id=owner_id,
            invoice_number=next_invoice_number(db, estate_id),
            status=InvoiceStatus.DRAFT.value,
            issue_date=issue_date,
            due_date=data.due_date or defaults.due_date_for(issue_date),
            notes=data.notes,
            currency=data.currency or defaults.currency,
            line_items=line_items,
            tax_rate=data.tax_rate,
        )
        _apply_totals(invoice)
        db.add(invoice)
        try:
            db.commit()
        except IntegrityError:
            # Concurrent create took the number; recompute and retry
            db.rollback()
            attempts -= 1
            if not attempts:
                raise
            continue
        db.refresh(invoice)
        return invoice


def update_invoice(db: Session, invoice: Invoice, data: InvoiceUpdate) -> list[str]:
    """
    Apply a partial update and recalculate totals.

    Raises:
        InvoiceLockedError: Line items sent for a non-draft invoice
    """
    values = data.model_dump(exclude_unset=True)
    changed: list[str] = []

    if "line_items" in values and data.line_items is not None:
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise InvoiceLockedError("Only draft invoices can have line items edited")
        invoice.line_items = price_line_items(data.line_items)
        changed.append("line_items")

    for field in ("issue_date", "due_date", "notes", "currency", "tax_rate"):
        if field not in values:
            continue
        value = values[field]
        if field in ("issue_date", "currency", "tax_rate") and value is None:
            continue
        if field == "currency":
            value = value.upper()
        if getattr(invoice, field) != value:
            setattr(invoice, field, value)
            changed.append(field)

    if changed:
        _apply_totals(invoice)
        db.commit()
        db.refresh(invoice)
    return changed


def change_status(db: Session, invoice: Invoice, new_status: InvoiceStatus) -> str | None:
    """
    Move an invoice along its lifecycle.

    Returns:
        The previous status, or None when the status was unchanged

    Raises:
        InvoiceTransitionError: Transition not allowed
    """
    current = InvoiceStatus(invoice.status)
    if new_status == current:
        return None
    if new_status not in INVOICE_TRANSITIONS[current]:
        raise InvoiceTransitionError(
            f"Cannot change invoice status from {current.value} to {new_status.value}"
        )

    invoice.status = new_status.value
    if new_status == InvoiceStatus.PAID:
        invoice.paid_at = utcnow()
    db.commit()
    db.refresh(invoice)
    return current.value


def delete_invoice(db: Session, invoice: Invoice) -> None:
    db.delete(invoice)
    db.commit()
