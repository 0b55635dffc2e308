"""Workspace settings router - the signed-in user's firm details and billing defaults."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from legatepro.core.deps import get_current_user, get_db, require_csrf_header
from legatepro.core.responses import ok
from legatepro.db.models import User
from legatepro.schemas.settings import WorkspaceSettingsRead, WorkspaceSettingsUpdate
from legatepro.services import settings_service

router = APIRouter()


@router.get("")
def get_settings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    settings = settings_service.get_or_create_settings(db, user.id)
    return ok(WorkspaceSettingsRead.model_validate(settings))


@router.patch("", dependencies=[Depends(require_csrf_header)])
def update_settings(
    data: WorkspaceSettingsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    settings = settings_service.get_or_create_settings(db, user.id)
    changed = settings_service.update_settings(db, settings, data)
    return ok({
        "settings": WorkspaceSettingsRead.model_validate(settings),
        "changed_fields": changed,
    })
