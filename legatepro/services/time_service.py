"""Time entry service - hours spent administering the estate."""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from legatepro.db.models import TimeEntry
from legatepro.db.types import utcnow
from legatepro.schemas.finances import TimeEntryCreate, TimeEntryUpdate


def list_entries(
    db: Session,
    estate_id: UUID,
    *,
    start: date | None = None,
    end: date | None = None,
    billable: bool | None = None,
    billed: bool | None = None,
) -> list[TimeEntry]:
    query = db.query(TimeEntry).filter(TimeEntry.estate_id == estate_id)
    if start:
        query = query.filter(TimeEntry.entry_date >= start)
    if end:
        query = query.filter(TimeEntry.entry_date <= end)
    if billable is not None:
        query = query.filter(TimeEntry.billable.is_(billable))
    if billed is not None:
        query = query.filter(TimeEntry.billed.is_(billed))
    return query.order_by(TimeEntry.entry_date.desc(), TimeEntry.created_at.desc()).all()


def get_entry(db: Session, estate_id: UUID, entry_id: UUID) -> TimeEntry | None:
    return db.query(TimeEntry).filter(
        TimeEntry.id == entry_id,
        TimeEntry.estate_id == estate_id,
    ).first()


def create_entry(
    db: Session,
    estate_id: UUID,
    owner_id: UUID,
    data: TimeEntryCreate,
    default_rate_cents: int | None = None,
) -> TimeEntry:
    """Log time. Entries sent without a rate take ``default_rate_cents``."""
    values = data.model_dump()
    if values["hourly_rate_cents"] is None:
        values["hourly_rate_cents"] = default_rate_cents
    entry = TimeEntry(estate_id=estate_id, owner_id=owner_id, **values)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def update_entry(db: Session, entry: TimeEntry, data: TimeEntryUpdate) -> list[str]:
    required = ("entry_date", "description", "minutes", "billable")
    changed: list[str] = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in required and value is None:
            continue
        if field == "description":
            value = value.strip() or entry.description
        if getattr(entry, field) != value:
            setattr(entry, field, value)
            changed.append(field)
    if changed:
        db.commit()
        db.refresh(entry)
    return changed


def set_billed(db: Session, entry: TimeEntry, billed: bool) -> TimeEntry:
    """Mark billed (stamping billed_at) or unbilled (clearing it)."""
    if billed and not entry.billed:
        entry.billed = True
        entry.billed_at = utcnow()
    elif not billed and entry.billed:
        entry.billed = False
        entry.billed_at = None
    db.commit()
    db.refresh(entry)
    return entry


def delete_entry(db: Session, entry: TimeEntry) -> None:
    db.delete(entry)
    db.commit()


def _hours(minutes: int) -> float:
    return round(minutes / 60, 2)


def summarize(
    db: Session,
    estate_id: UUID,
    *,
    start: date | None = None,
    end: date | None = None,
) -> dict:
    """Totals over entries in the optional [start, end] date range."""
    entries = list_entries(db, estate_id, start=start, end=end)

    total = billable = billed = unbilled = 0
    unbilled_value = 0
    for entry in entries:
        total += entry.minutes
        if entry.billable:
            billable += entry.minutes
            if entry.billed:
                billed += entry.minutes
            else:
                unbilled += entry.minutes
                unbilled_value += entry.value_cents

    return {
        "total_entries": len(entries),
        "total_hours": _hours(total),
        "billable_hours": _hours(billable),
        "non_billable_hours": _hours(total - billable),
        "billed_hours": _hours(billed),
        "unbilled_billable_hours": _hours(unbilled),
        "unbilled_value_cents": unbilled_value,
    }
