"""Tasks router - the estate's to-do list."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from legatepro.core.deps import get_db, require_csrf_header
from legatepro.core.estate_access import EstateAccess, estate_editor, estate_viewer
from legatepro.core.responses import ok
from legatepro.db.enums import EstateEventType, TaskStatus
from legatepro.db.models import EstateTask
from legatepro.schemas.records import TaskCreate, TaskRead, TaskUpdate
from legatepro.services import activity_service, task_service
from legatepro.services.estate_refs import RecordNotInEstate

router = APIRouter()


def _read(task: EstateTask, today: date | None = None) -> TaskRead:
    return TaskRead.model_validate(task).model_copy(
        update={"is_overdue": task_service.is_overdue(task, today)}
    )


def _get_or_404(db: Session, estate_id: UUID, task_id: UUID) -> EstateTask:
    task = task_service.get_task(db, estate_id, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("")
def list_tasks(
    status: TaskStatus | None = None,
    overdue: bool | None = None,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    today = date.today()
    tasks = task_service.list_tasks(db, access.estate_id, status=status, overdue=overdue)
    return ok([_read(t, today) for t in tasks])


@router.post("", status_code=201, dependencies=[Depends(require_csrf_header)])
def create_task(
    data: TaskCreate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    try:
        task = task_service.create_task(db, access.estate_id, access.user_id, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))

    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.TASK_CREATED,
        f"Task created: {task.title}",
        meta={"task_id": task.id, "status": task.status, "due_date": task.due_date},
    )
    return ok(_read(task))


@router.get("/{task_id}")
def get_task(
    task_id: UUID,
    access: EstateAccess = Depends(estate_viewer),
    db: Session = Depends(get_db),
):
    return ok(_read(_get_or_404(db, access.estate_id, task_id)))


@router.patch("/{task_id}", dependencies=[Depends(require_csrf_header)])
def update_task(
    task_id: UUID,
    data: TaskUpdate,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    task = _get_or_404(db, access.estate_id, task_id)
    try:
        changed, previous_status = task_service.update_task(db, task, data)
    except RecordNotInEstate as e:
        raise HTTPException(status_code=400, detail=str(e))

    if previous_status is not None:
        if task.status == TaskStatus.DONE.value:
            event_type, summary = EstateEventType.TASK_COMPLETED, f"Task completed: {task.title}"
        elif previous_status == TaskStatus.DONE.value:
            event_type, summary = EstateEventType.TASK_REOPENED, f"Task reopened: {task.title}"
        else:
            event_type, summary = EstateEventType.TASK_UPDATED, f"Task updated: {task.title}"
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            event_type,
            summary,
            meta={
                "task_id": task.id,
                "previous_status": previous_status,
                "status": task.status,
                "changed_fields": changed,
            },
        )
    elif changed:
        activity_service.record_event(
            db,
            access.estate_id,
            access.user_id,
            EstateEventType.TASK_UPDATED,
            f"Task updated: {task.title}",
            meta={"task_id": task.id, "changed_fields": changed},
        )
    return ok(_read(task))


@router.delete("/{task_id}", dependencies=[Depends(require_csrf_header)])
def delete_task(
    task_id: UUID,
    access: EstateAccess = Depends(estate_editor),
    db: Session = Depends(get_db),
):
    task = _get_or_404(db, access.estate_id, task_id)
    title = task.title
    task_service.delete_task(db, task)
    activity_service.record_event(
        db,
        access.estate_id,
        access.user_id,
        EstateEventType.TASK_DELETED,
        f"Task deleted: {title}",
        meta={"task_id": task_id},
    )
    return ok({"id": task_id, "deleted": True})
