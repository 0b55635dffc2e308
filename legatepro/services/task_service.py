"""Task service - estate to-do items."""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from legatepro.db.enums import TaskStatus
from legatepro.db.models import EstateTask
from legatepro.db.types import utcnow
from legatepro.schemas.records import TaskCreate, TaskUpdate
from legatepro.services.estate_refs import TASK_REFS, check_references


def is_overdue(task: EstateTask, today: date | None = None) -> bool:
    """Past due and not done."""
    today = today or date.today()
    return bool(task.due_date and task.due_date < today and not task.is_done)


def list_tasks(
    db: Session,
    estate_id: UUID,
    *,
    status: TaskStatus | None = None,
    overdue: bool | None = None,
) -> list[EstateTask]:
    """Open tasks by due date (undated last), then newest."""
    query = db.query(EstateTask).filter(EstateTask.estate_id == estate_id)
    if status:
        query = query.filter(EstateTask.status == status.value)
    tasks = query.order_by(
        EstateTask.due_date.is_(None),
        EstateTask.due_date.asc(),
        EstateTask.created_at.desc(),
    ).all()
    if overdue is not None:
        today = date.today()
        tasks = [t for t in tasks if is_overdue(t, today) == overdue]
    return tasks


def get_task(db: Session, estate_id: UUID, task_id: UUID) -> EstateTask | None:
    return db.query(EstateTask).filter(
        EstateTask.id == task_id,
        EstateTask.estate_id == estate_id,
    ).first()


def _apply_status(task: EstateTask, status: TaskStatus) -> None:
    """Set status, keeping ``completed_at`` in step with DONE."""
    if status == TaskStatus.DONE and not task.is_done:
        task.completed_at = utcnow()
    elif status != TaskStatus.DONE:
        task.completed_at = None
    task.status = status.value


def create_task(db: Session, estate_id: UUID, owner_id: UUID, data: TaskCreate) -> EstateTask:
    check_references(db, estate_id, data.model_dump(), TASK_REFS)
    task = EstateTask(
        estate_id=estate_id,
        owner_id=owner_id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        related_document_id=data.related_document_id,
        related_invoice_id=data.related_invoice_id,
        status=TaskStatus.NOT_STARTED.value,
    )
    _apply_status(task, data.status)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, task: EstateTask, data: TaskUpdate) -> tuple[list[str], str | None]:
    """
    Apply a partial update.

    Returns:
        (changed fields, previous status if status changed else None)

    Raises:
        RecordNotInEstate: A related document or invoice is not on this estate
    """
    values = data.model_dump(exclude_unset=True)
    check_references(db, task.estate_id, values, TASK_REFS)

    changed: list[str] = []
    previous_status = None
    for field, value in values.items():
        if field == "status":
            if value is not None and value.value != task.status:
                previous_status = task.status
                _apply_status(task, value)
                changed.append("status")
            continue
        if field == "title":
            if value is None or not value.strip():
                continue
            value = value.strip()
        if getattr(task, field) != value:
            setattr(task, field, value)
            changed.append(field)

    if changed:
        db.commit()
        db.refresh(task)
    return changed, previous_status


def delete_task(db: Session, task: EstateTask) -> None:
    db.delete(task)
    db.commit()


def task_counts(db: Session, estate_id: UUID, today: date | None = None) -> dict[str, int]:
    tasks = db.query(EstateTask.status, EstateTask.due_date).filter(
        EstateTask.estate_id == estate_id
    ).all()
    today = today or date.today()
    total = len(tasks)
    completed = sum(1 for status, _ in tasks if status == TaskStatus.DONE.value)
    overdue = sum(
        1
        for status, due in tasks
        if due and due < today and status != TaskStatus.DONE.value
    )
    return {
        "total": total,
        "completed": completed,
        "incomplete": total - completed,
        "overdue": overdue,
    }
